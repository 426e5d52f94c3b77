# ======================================================================================================================
# 📁 file        : mu_ctrl_custom.py — TControl: дерево контролов, композиция из данных, вставка в хост
# 🕒 created     : 05.10.2026 11:40
# 🎉 contains    : TControlState, TCreateRequest, TControl, DEFAULT_HTML
# 🌅 project     : Modular UI 2026 🜂
# ======================================================================================================================
# 🚢 ...imports...
from __future__ import annotations
import asyncio
import copy
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional
from mu_sys import *
from mu_events import TDispatcher, TScope
from mu_props import TProperty, TReactiveObject, kind_of
from mu_host import THostDocument, THostElement, THostObserver
from mu_binder import TTemplateBinder, TParseResult, new_uid
from mu_ctrl_sort import TSortIndex, TChildFilter
from mu_registry import CONTROL_REGISTRY, TModuleResolver
# 💎🧩⚙️ ... __ALL__ ...
__all__ = ["TControlState", "TCreateRequest", "TControl", "TProperty", "DEFAULT_HTML"]
# 💎 ... CONFIG / CONSTS ...
DEFAULT_HTML = '<div id="@{_mainDiv}"><div id="@{_controlsDiv}"></div></div>'
# ----------------------------------------------------------------------------------------------------------------------
# 🧩 TControlState — жизненный цикл контрола
# ----------------------------------------------------------------------------------------------------------------------
class TControlState(str, Enum):
    UNCONSTRUCTED = "unconstructed"
    QUEUED = "queued"               # запрос на создание стоит в очереди родителя
    INSTANTIATED = "instantiated"   # объект создан, данные применены, ждёт вставки
    BOUND = "bound"                 # разметка в хосте, привязки установлены
    LIVE = "live"                   # Init() отработал
    REMOVED = "removed"
# ----------------------------------------------------------------------------------------------------------------------
# 🧩 TCreateRequest — запись очереди создания детей
# ----------------------------------------------------------------------------------------------------------------------
@dataclass
class TCreateRequest:
    name: str
    data: Dict[str, Any] = field(default_factory=dict)
# ----------------------------------------------------------------------------------------------------------------------
# 🧩 TControl — базовый контрол
# ----------------------------------------------------------------------------------------------------------------------
class TControl(TOwnerObject, TReactiveObject):
    """
    Узел дерева композиции.

    Потомки объявляют свойства через TProperty, разметку через html (атрибут класса или property),
    стили через styles и логику через Init(). __init__ не переопределяется: движок создаёт
    контролы фабрикой без аргументов; для своих полей есть do_init().
    """
    # 💎 встроенные реактивные свойства
    parentElement = TProperty(DEFAULT_CONTAINER)
    hideData = TProperty(False)
    cssText = TProperty("")
    cssClass = TProperty("")
    visible = TProperty(True)
    visibleDisplayCss = TProperty("inherit")
    hiddenDisplayCss = TProperty("none")
    orderBy = TProperty("")
    orderAsc = TProperty(True)

    control_type = "TControl"
    html = DEFAULT_HTML
    styles: List[str] = []
    binder = TTemplateBinder()
    # ⚡🛠️ ▸ __init__
    def __init__(self, Owner: "TControl | None" = None, Name: str | None = None):
        TReactiveObject.__init__(self)
        TOwnerObject.__init__(self, Owner, Name)
        self._uid = new_uid()
        self._dispatcher = TDispatcher()
        self._caller_hooks: Dict[tuple, tuple] = {}
        self.state = TControlState.INSTANTIATED
        self.region: THostElement | None = None
        # --- очереди ---
        self._create_queue: List[TCreateRequest] = []
        self._create_running = False
        self._insert_queues: Dict[str, List["TControl"]] = {}
        self._pending_html: List["TControl"] = []
        self._parsed: TParseResult | None = None
        # --- сортировка / фильтр ---
        self._sort = TSortIndex(self)
        self._filter = TChildFilter(self)
        self._filter_callbacks: Dict[str, Callable] = {}
        # --- только у корня ---
        self._path: str | None = None
        self._document: THostDocument | None = None
        self._resolver: TModuleResolver | None = None
        self._tasks: set[asyncio.Task] = set()
        self._applied_styles: List[str] = []
        # --- собственные подписки контрола ---
        self.on("orderBy", self._sort.order)
        self.on("orderAsc", self._sort.order)
        self.on("visible", self._visible_changed)
        self.on("cssText", self._css_text_changed)
        self.on("cssClass", self._css_class_changed)
        self.do_init()
        # ⚡🛠️ TControl ▸ End of __init__

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        if "__init__" in cls.__dict__ and cls.__name__ not in {"TTopLevelContainer"}:
            raise TypeError(
                f"❌ {cls.__name__} не должен переопределять __init__(). "
                f"Используй do_init() для полей и Init() для логики после вставки."
            )

    def __getattr__(self, name: str):
        # сюда попадаем, только если обычный поиск атрибута не нашёл ничего: ищем ребёнка
        if name.startswith("__"):
            raise AttributeError(name)
        components = self.__dict__.get("Components")
        if components and name in components:
            return components[name]
        raise AttributeError(f"{type(self).__name__} has no attribute or child {name!r}")

    def __repr__(self):
        state = getattr(self.__dict__.get("state"), "value", "?")
        return f"<{self.controlType} {self.Name or '?'} [{state}]>"
    # ..................................................................................................................
    # 🔁 Переопределяемое
    # ..................................................................................................................
    def do_init(self):
        pass

    def Init(self):
        """Вызывается один раз, когда разметка контрола уже в хосте и привязки установлены."""
        pass
    # ..................................................................................................................
    # 🏷️ Свойства-сводки
    # ..................................................................................................................
    @property
    def controlType(self) -> str:
        return vars(type(self)).get("control_type", type(self).__name__)

    @property
    def childControls(self) -> List["TControl"]:
        return list(self.Components.values())

    @property
    def is_live(self) -> bool:
        return self.state == TControlState.LIVE

    @property
    def is_removed(self) -> bool:
        return self.state == TControlState.REMOVED

    @property
    def document(self) -> THostDocument | None:
        return self.TopLevel._document

    @property
    def source_path(self) -> str:
        return self.TopLevel._path or controls_path()

    @property
    def resolver(self) -> TModuleResolver:
        top = self.TopLevel
        if top._resolver is None:
            top._resolver = TModuleResolver(top._path or controls_path())
        return top._resolver

    def container_element(self, name: str) -> THostElement | None:
        element = self.__dict__.get(name)
        return element if isinstance(element, THostElement) else None
    # ..................................................................................................................
    # 📡 События
    # ..................................................................................................................
    def on(self, event_name: str, callback: Callable, immediate: bool = False,
           caller: "TControl | None" = None) -> Callable:
        """
        Постоянная подписка.
        immediate — сразу вызвать callback с текущим значением одноимённого свойства (если оно не None);
        caller    — отписаться автоматически, когда caller излучит remove.
        """
        self._dispatcher.on(event_name, callback)
        if immediate and self.is_property(event_name) and self._properties.get(event_name) is not None:
            callback(self._properties[event_name])
        if caller is not None:
            self._hook_caller(event_name, callback, callback, caller)
        return callback

    def once(self, event_name: str, callback: Callable, caller: "TControl | None" = None) -> Callable:
        if caller is None:
            self._dispatcher.once(event_name, callback)
            return callback

        def _fire(data):
            self._release_caller(event_name, callback)
            callback(data)

        self._dispatcher.once(event_name, _fire)
        self._hook_caller(event_name, callback, _fire, caller)
        return callback

    def off(self, event_name: str, callback: Callable):
        registered = self._release_caller(event_name, callback)
        self._dispatcher.off(event_name, registered or callback)

    def _hook_caller(self, event_name: str, callback: Callable, registered: Callable, caller: "TControl"):
        # (событие, callback) → (caller, хук на его remove, что лежит в диспетчере)
        self._release_caller(event_name, callback)

        def _hook(_c):
            self.off(event_name, callback)

        caller._dispatcher.on("remove", _hook)
        self._caller_hooks[(event_name, callback)] = (caller, _hook, registered)

    def _release_caller(self, event_name: str, callback: Callable) -> Callable | None:
        entry = self._caller_hooks.pop((event_name, callback), None)
        if entry is None:
            return None
        caller, hook, registered = entry
        caller._dispatcher.off("remove", hook)
        return registered

    def emit(self, event_name: str, data: Any = None, scope: TScope | str = TScope.LOCAL):
        try:
            scope = TScope(scope)
        except ValueError:
            self.log("emit", f"⚠️ {event_name}: unknown scope {scope!r}, emitting locally")
            scope = TScope.LOCAL
        if scope in (TScope.LOCAL, TScope.BUBBLE, TScope.LOCAL_TOP):
            self._dispatcher.emit(event_name, data)
        if self.is_removed:
            return
        if scope == TScope.BUBBLE and self.Owner is not None:
            self.Owner.emit(event_name, data, scope)
        top = self.TopLevel
        if scope == TScope.TOP or (scope == TScope.LOCAL_TOP and top is not self):
            top._dispatcher.emit(event_name, data)

    def clearEvents(self):
        for caller, hook, _registered in self._caller_hooks.values():
            caller._dispatcher.off("remove", hook)
        self._caller_hooks.clear()
        self._dispatcher.clear_events()
    # ..................................................................................................................
    # 🔔 Уведомления наружу
    # ..................................................................................................................
    def _property_changed(self, name: str, value: Any, notify: bool):
        if notify:
            self.NotifyProperty(name)
        self.emit(name, value)

    def NotifyProperty(self, names: str | List[str]):
        """Сообщает предкам об изменении свойства (или списка свойств): событие data на каждом уровне."""
        if isinstance(names, str):
            names = [names]
        data = {n: copy.copy(self._properties[n]) for n in names
                if n in self._properties and self._properties[n] is not None}
        self._notify(data)

    def _notify(self, data: Dict[str, Any]):
        if self.Owner is not None and not self.hideData and not self.is_removed:
            self.Owner._notify({self.Name: data})
        self.emit("data", data)
    # ..................................................................................................................
    # 🧬 Set / Get
    # ..................................................................................................................
    def Set(self, data: Dict[str, Any]):
        """
        Применяет данные к контролу:
        - remove: true — удалить себя из родителя;
        - _ключи и controlType — игнорируются;
        - ключ-свойство — присваивание (без внешнего уведомления);
        - ключ-ребёнок — Set() у ребёнка;
        - новый ключ с controlType — в очередь создания.
        """
        if not isinstance(data, dict):
            self.log("Set", f"⚠️ data is not an object: {type(data).__name__}")
            return
        for key, value in data.items():
            if key == REMOVE_KEY:
                if value is True:
                    self._remove_self()
                    return
                continue
            if not isinstance(key, str) or key.startswith("_") or key == TYPE_KEY:
                continue
            if self.is_property(key):
                if value is None or kind_of(value) is not None:
                    self._assign(key, value, notify=False)
                else:
                    self.log("Set", f"⚠️ {key}: unsupported value type {type(value).__name__}")
            elif key in self.Components:
                if isinstance(value, dict):
                    self.Components[key].Set(value)
            elif isinstance(value, dict) and TYPE_KEY in value:
                self._queue_child(key, value)

    def Get(self, sparse: bool = True) -> Dict[str, Any]:
        """Снимок данных: controlType, свойства (sparse — без '' и []), дети без hideData."""
        data: Dict[str, Any] = {TYPE_KEY: self.controlType}
        for name, value in self._properties.items():
            if sparse and (value == "" or value == []):
                continue
            data[name] = copy.copy(value)
        for name, child in self.Components.items():
            if not child.hideData:
                data[name] = child.Get(sparse)
        return data
    # ..................................................................................................................
    # 🗑️ Удаление
    # ..................................................................................................................
    def _remove_self(self):
        if self.Owner is None:
            self.warn("Set", EInvalidRemoval(f"{self.Name or self.controlType} has no parent"))
            return
        self.Owner.RemoveChild(self.Name)

    def RemoveChild(self, name: str) -> bool:
        child = self.Components.get(name)
        if child is None:
            return False
        if child.region is not None:
            child.region.remove()
        for node in reversed(list(child.iter_tree())):
            node.emit("remove", node)
        child.detach()
        self._sort.remove(child)
        for node in child.iter_tree():
            node.clearEvents()
            node.state = TControlState.REMOVED
        self.debug("RemoveChild", name)
        return True
    # ..................................................................................................................
    # 🎨 Стили / видимость
    # ..................................................................................................................
    def ApplyStyle(self, ref: str) -> bool:
        """Подключает таблицу стилей через корень. Один ref — одна ссылка в документе."""
        top = self.TopLevel
        if ref in top._applied_styles:
            return False
        top._applied_styles.append(ref)
        if top._document is None:
            self.log("ApplyStyle", f"⚠️ no host document for {ref!r}")
            return False
        href = ref if ref.startswith(("http://", "https://", "/")) else f"{self.source_path.rstrip('/')}/{ref}"
        top._document.add_stylesheet(href)
        return True

    def Show(self):
        self.visible = True

    def Hide(self):
        self.visible = False

    def _show(self):
        if self.region is not None:
            self.region.display = self.visibleDisplayCss

    def _hide(self):
        if self.region is not None:
            self.region.display = self.hiddenDisplayCss

    def _visible_changed(self, visible):
        if self.region is None or not self.is_live:
            return
        parent = self.Owner
        if visible and parent is not None and parent._filter.active:
            parent._filter.evaluate(self)
        elif visible:
            self._show()
        else:
            self._hide()

    def _css_text_changed(self, value):
        if self.region is not None:
            self.region.css_text = value

    def _css_class_changed(self, value):
        if self.region is not None:
            self.region.class_name = value

    def filter(self, predicate: Callable[["TControl"], bool] | None, monitor: List[str] | None = None):
        """
        Визуальный фильтр детей: predicate решает _show/_hide, свойство visible не меняется.
        monitor — имена свойств детей, смена которых перезапускает predicate для этого ребёнка.
        """
        if predicate is not None and not callable(predicate):
            self.log("filter", "⚠️ filter predicate is not callable")
            return
        self._filter.apply(predicate, monitor)
    # ..................................................................................................................
    # ⏳ Отложенная работа (задачи дерева живут у корня)
    # ..................................................................................................................
    def _spawn(self, coro) -> asyncio.Task | None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            coro.close()
            self.log("_spawn", "⚠️ no running event loop, deferred work dropped")
            return None
        top = self.TopLevel
        task = loop.create_task(coro)
        top._tasks.add(task)
        task.add_done_callback(top._task_done)
        return task

    def _task_done(self, task: asyncio.Task):
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            self.log("_task_done", f"💥 {exc.__class__.__name__}: {exc}")

    async def settle(self):
        """Ждёт, пока в дереве не останется отложенной работы (создание, загрузка, вставка)."""
        top = self.TopLevel
        while top._tasks:
            await asyncio.wait(list(top._tasks))
    # ..................................................................................................................
    # 🏗️ Очередь создания детей
    # ..................................................................................................................
    def _queue_child(self, name: str, data: Dict[str, Any]):
        self._create_queue.append(TCreateRequest(name, data))
        if not self._create_running:
            self._create_running = True
            if self._spawn(self._create_driver()) is None:
                self._create_running = False
                self._create_queue.clear()

    async def _create_driver(self):
        try:
            while self._create_queue:
                await asyncio.sleep(0)
                request = self._create_queue[0]
                try:
                    await self._create_one(request)
                except Exception as e:
                    self.log("_create_driver", f"💥 unable to create {request.name!r}: {e.__class__.__name__}: {e}")
                self._create_queue.pop(0)
        finally:
            self._create_running = False

    async def _resolve_module(self, type_name: str) -> bool:
        if CONTROL_REGISTRY.has(type_name):
            return True
        if self.Owner is not None:
            return await self.Owner._resolve_module(type_name)
        return await self.resolver.resolve(type_name)

    async def _create_one(self, request: TCreateRequest):
        if self.is_removed:
            return
        existing = self.Components.get(request.name)
        if existing is not None:
            existing.Set(request.data)
            return

        type_name = request.data.get(TYPE_KEY)
        if not isinstance(type_name, str) or not await self._resolve_module(type_name):
            self.warn("_create_one", EResolutionFailure(
                f"control {request.name!r} of type {type_name!r} not created"))
            return
        existing = self.Components.get(request.name)
        if existing is not None:
            existing.Set(request.data)
            return

        cls = CONTROL_REGISTRY.get(type_name)
        child: TControl = cls()
        child.attach(self, request.name)
        for ref in cls.styles:
            child.ApplyStyle(ref)
        child.Set(request.data)
        if child.is_removed:
            return
        self._sort.insert(child)
        self.debug("_create_one", f"{request.name}: {type_name}")

        if self.is_live:
            self._queue_html(child)
        else:
            self._pending_html.append(child)
    # ..................................................................................................................
    # 🖼️ Очередь вставки в хост (по контейнеру)
    # ..................................................................................................................
    def _queue_html(self, child: "TControl"):
        container = child.parentElement or DEFAULT_CONTAINER
        queue = self._insert_queues.setdefault(container, [])
        queue.append(child)
        if len(queue) == 1:
            self._spawn(self._insert_driver(container))

    async def _insert_driver(self, container: str):
        queue = self._insert_queues[container]
        while queue:
            child = queue[0]
            if not child.is_removed and not self.is_removed:
                try:
                    await self._insert(container, child)
                except Exception as e:
                    self.log("_insert_driver", f"💥 {child.Name}: {e.__class__.__name__}: {e}")
            queue.pop(0)
        if self._insert_queues.get(container) is queue:
            del self._insert_queues[container]

    async def _insert(self, container_name: str, child: "TControl") -> bool:
        """
        Вставка региона ребёнка в контейнер и ожидание подтверждения:
        наблюдатель за контейнером или fallback-опрос get_element_by_id. Кто первый, тот и финализирует.
        """
        container = self.container_element(container_name)
        document = self.document
        if container is None or document is None:
            self.warn("_insert", EInsertionStall(
                f"{child.Name}: container {container_name!r} not found in {self.Name or self.controlType}"))
            return False

        loop = asyncio.get_running_loop()
        confirmed = loop.create_future()
        region = document.create_element("div", id=child._uid)
        region.display = "none"
        child.region = region

        def _observed(records, observer):
            if region.parent is container and region.is_attached and not confirmed.done():
                confirmed.set_result("observer")

        observer = THostObserver(document, _observed)
        observer.observe(container)

        child._parsed = child.binder.parse(child)
        region.set_inner_html(child._parsed.html)
        self._sort.place(container, child)

        poll = self._spawn(self._poll_insertion(child, confirmed))
        try:
            how = await confirmed
        finally:
            observer.disconnect()
            if poll is not None:
                poll.cancel()

        if how == "removed":
            self.debug("_insert", f"{child.Name}: removed before insertion was confirmed")
            return False
        if how is None:
            self.warn("_insert", EInsertionStall(
                f"{child.Name}: element {child._uid} not found in host after {poll_limit()} polls"))
            return False
        if how == "poll":
            self.log("_insert", f"falling back to polling for {child.Name!r}")
        child._finalize(self)
        return True

    async def _poll_insertion(self, child: "TControl", confirmed: asyncio.Future):
        for _ in range(poll_limit()):
            await asyncio.sleep(poll_interval())
            if confirmed.done():
                return
            if child.is_removed:
                confirmed.set_result("removed")
                return
            if self.document.get_element_by_id(child._uid) is not None:
                confirmed.set_result("poll")
                return
        if not confirmed.done():
            confirmed.set_result(None)

    def _finalize(self, parent: "TControl"):
        """Разметка в хосте: привязки → css → видимость → Init() → live → события → отложенные дети."""
        self.binder.bind(self, self._parsed)
        self._parsed = None
        self.state = TControlState.BOUND

        self.region.css_text = self.cssText
        self.region.class_name = self.cssClass
        if not self.visible:
            self._hide()
        elif parent._filter.active:
            parent._filter.evaluate(self)
        else:
            self._show()
        parent._filter.attach_child(self)

        self.Init()
        self.state = TControlState.LIVE

        self.emit("init", self)
        parent.emit(self.Name, self)
        parent.emit("newChildControl", self)

        while self._pending_html:
            self._queue_html(self._pending_html.pop(0))
# ----------------------------------------------------------------------------------------------------------------------
# 🌍 Встроенный тип
# ----------------------------------------------------------------------------------------------------------------------
CONTROL_REGISTRY.register(TControl, builtin=True)
