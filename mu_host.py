# ======================================================================================================================
# 📁 file        : mu_host.py — Хост-дисплей Modular UI: живой HTML-документ в памяти (BeautifulSoup)
# 🕒 created     : 03.10.2026 08:20
# 🎉 contains    : THostMutation, THostElement, THostObserver, THostDocument
# 🌅 project     : Modular UI 2026 🜂
# ======================================================================================================================
# 🚢 ...imports...
from __future__ import annotations
import asyncio
from typing import Any, Callable, Dict, List, Optional
from bs4 import BeautifulSoup, NavigableString, Tag
from pydantic import BaseModel, Field
# 💎🧩⚙️ ... __ALL__ ...
__all__ = ["THostMutation", "THostElement", "THostObserver", "THostDocument", "BOOLEAN_PROPS"]
# 💎 ... CONFIG / CONSTS ...
DEFAULT_HTML = "<!DOCTYPE html><html><head></head><body></body></html>"
BOOLEAN_PROPS = {"hidden", "disabled", "checked"}
# ----------------------------------------------------------------------------------------------------------------------
# 🧩 THostMutation — запись изменения документа (для наблюдателей и ws-моста)
# ----------------------------------------------------------------------------------------------------------------------
class THostMutation(BaseModel):
    type: str                                   # childList | attributes | text | stylesheet
    target: Optional[str] = None                # id элемента-цели (если есть)
    added: List[str] = Field(default_factory=list)
    removed: List[str] = Field(default_factory=list)
    before: Optional[str] = None                # id соседа, перед которым вставили
    html: Optional[str] = None                  # outer html вставленного узла
    attribute: Optional[str] = None
    value: Any = None
# ----------------------------------------------------------------------------------------------------------------------
# 🧩 THostElement — обёртка над одним тегом
# ----------------------------------------------------------------------------------------------------------------------
class THostElement:
    """
    Живой элемент хоста. Один тег ↔ одна обёртка (кэш в документе),
    поэтому слушатели и live-значения живут столько же, сколько элемент.
    """

    def __init__(self, document: "THostDocument", tag: Tag):
        self.document = document
        self.tag = tag
        self.props: Dict[str, Any] = {}
        self.listeners: Dict[str, List[Callable]] = {}
        self._css_text = ""
        self._display = ""

    def __repr__(self):
        return f"<THostElement {self.tag_name}#{self.id}>"
    # ..................................................................................................................
    # 🏷️ Идентичность и дерево
    # ..................................................................................................................
    @property
    def id(self) -> Optional[str]:
        return self.tag.get("id")

    @id.setter
    def id(self, value: str):
        self.tag["id"] = value

    @property
    def tag_name(self) -> str:
        return self.tag.name

    @property
    def parent(self) -> "THostElement | None":
        p = self.tag.parent
        if p is None or p is self.document.soup:
            return None
        return self.document.wrap(p)

    @property
    def children(self) -> List["THostElement"]:
        return [self.document.wrap(c) for c in self.tag.children if isinstance(c, Tag)]

    @property
    def is_attached(self) -> bool:
        p = self.tag.parent
        while p is not None:
            if p is self.document.soup:
                return True
            p = p.parent
        return False
    # ..................................................................................................................
    # 🌳 Мутации дерева
    # ..................................................................................................................
    def append_child(self, child: "THostElement") -> "THostElement":
        return self.insert_before(child, None)

    def insert_before(self, child: "THostElement", ref: "THostElement | None") -> "THostElement":
        """Вставляет child перед ref (или в конец, если ref нет / ref не наш ребёнок)."""
        old_parent = child.parent
        if child.tag.parent is not None:
            child.tag.extract()
            if old_parent is not None and old_parent is not self:
                self.document.notify(old_parent, THostMutation(type="childList", target=old_parent.id,
                                                               removed=[child.id or ""]))
        if ref is not None and ref.tag.parent is self.tag:
            ref.tag.insert_before(child.tag)
            before = ref.id
        else:
            self.tag.append(child.tag)
            before = None
        self.document.notify(self, THostMutation(type="childList", target=self.id, added=[child.id or ""],
                                                 before=before, html=str(child.tag)))
        return child

    def remove(self):
        old_parent = self.parent
        if self.tag.parent is None:
            return
        self.tag.extract()
        if old_parent is not None:
            self.document.notify(old_parent, THostMutation(type="childList", target=old_parent.id,
                                                           removed=[self.id or ""]))

    def set_inner_html(self, html: str):
        self.tag.clear()
        for node in self.document.parse_fragment(html):
            self.tag.append(node)
        self.document.notify(self, THostMutation(type="childList", target=self.id, html=html))

    @property
    def inner_html(self) -> str:
        return self.tag.decode_contents()
    # ..................................................................................................................
    # 🎛️ Live-свойства
    # ..................................................................................................................
    def get_prop(self, name: str) -> Any:
        if name == "textContent":
            return self.tag.get_text()
        if name in self.props:
            return self.props[name]
        if name in BOOLEAN_PROPS:
            return name in self.tag.attrs
        value = self.tag.get(name)
        if isinstance(value, list):
            return " ".join(value)
        return "" if value is None else value

    def set_prop(self, name: str, value: Any):
        """Пишет live-значение и отражает его в разметке (для render() и ws-моста)."""
        if name == "textContent":
            self.tag.string = "" if value is None else str(value)
        else:
            self.props[name] = value
            if name in BOOLEAN_PROPS or isinstance(value, bool):
                if value:
                    self.tag[name] = ""
                elif name in self.tag.attrs:
                    del self.tag[name]
            else:
                self.tag[name] = _attr_str(value)
        self.document.notify(self, THostMutation(type="attributes", target=self.id, attribute=name,
                                                 value=_wire_value(value)))

    @property
    def css_text(self) -> str:
        return self._css_text

    @css_text.setter
    def css_text(self, value: str):
        self._css_text = value or ""
        self._apply_style()

    @property
    def display(self) -> str:
        return self._display

    @display.setter
    def display(self, value: str):
        self._display = value or ""
        self._apply_style()

    @property
    def class_name(self) -> str:
        return self.get_prop("class")

    @class_name.setter
    def class_name(self, value: str):
        if value:
            self.tag["class"] = value
        elif "class" in self.tag.attrs:
            del self.tag["class"]
        self.document.notify(self, THostMutation(type="attributes", target=self.id, attribute="class",
                                                 value=value or ""))

    def _apply_style(self):
        parts = [self._css_text.strip().rstrip(";")] if self._css_text.strip() else []
        if self._display:
            parts.append(f"display:{self._display}")
        style = ";".join(parts)
        if style:
            self.tag["style"] = style
        elif "style" in self.tag.attrs:
            del self.tag["style"]
        self.document.notify(self, THostMutation(type="attributes", target=self.id, attribute="style",
                                                 value=style))
    # ..................................................................................................................
    # 📡 События элемента
    # ..................................................................................................................
    def add_event_listener(self, event: str, callback: Callable):
        self.listeners.setdefault(event, []).append(callback)

    def remove_event_listener(self, event: str, callback: Callable):
        cbs = self.listeners.get(event, [])
        if callback in cbs:
            cbs.remove(callback)

    def dispatch_event(self, event: str):
        """Хост-сторона (пользователь / браузер) сообщает об изменении элемента."""
        for cb in list(self.listeners.get(event, [])):
            cb(event)
# ----------------------------------------------------------------------------------------------------------------------
# 🧩 THostObserver — наблюдатель за списком детей
# ----------------------------------------------------------------------------------------------------------------------
class THostObserver:
    """
    Аналог MutationObserver: записи копятся и доставляются пачкой на следующем шаге loop.
    """

    def __init__(self, document: "THostDocument", callback: Callable[[List[THostMutation], "THostObserver"], Any]):
        self.document = document
        self.callback = callback
        self.targets: List[THostElement] = []
        self._records: List[THostMutation] = []
        self._scheduled = False

    def observe(self, target: THostElement):
        if target not in self.targets:
            self.targets.append(target)
        if self not in self.document.observers:
            self.document.observers.append(self)

    def disconnect(self):
        self.targets.clear()
        self._records.clear()
        if self in self.document.observers:
            self.document.observers.remove(self)

    def _queue(self, record: THostMutation):
        self._records.append(record)
        if self._scheduled:
            return
        self._scheduled = True
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # без loop-а (синхронный рендер) доставляем сразу
            self._deliver()
            return
        loop.call_soon(self._deliver)

    def _deliver(self):
        self._scheduled = False
        if not self._records:
            return
        records, self._records = self._records, []
        self.callback(records, self)
# ----------------------------------------------------------------------------------------------------------------------
# 🧩 THostDocument — документ хоста
# ----------------------------------------------------------------------------------------------------------------------
class THostDocument:
    def __init__(self, html: str | None = None):
        self.soup = BeautifulSoup(html or DEFAULT_HTML, "html.parser")
        if self.soup.html is None:
            self.soup.append(self.soup.new_tag("html"))
        if self.soup.head is None:
            self.soup.html.insert(0, self.soup.new_tag("head"))
        if self.soup.body is None:
            self.soup.html.append(self.soup.new_tag("body"))
        self._wrappers: Dict[int, THostElement] = {}
        self.observers: List[THostObserver] = []
        self.observers_enabled = True
        self.mutation_listeners: List[Callable[[THostMutation], Any]] = []
        self.stylesheets: List[str] = []

    def wrap(self, tag: Tag) -> THostElement:
        w = self._wrappers.get(id(tag))
        if w is None or w.tag is not tag:
            w = THostElement(self, tag)
            self._wrappers[id(tag)] = w
        return w

    @property
    def body(self) -> THostElement:
        return self.wrap(self.soup.body)

    @property
    def head(self) -> THostElement:
        return self.wrap(self.soup.head)

    def create_element(self, tag_name: str, id: str | None = None) -> THostElement:
        tag = self.soup.new_tag(tag_name)
        if id:
            tag["id"] = id
        return self.wrap(tag)

    def get_element_by_id(self, element_id: str) -> THostElement | None:
        """Ищет только среди элементов, вставленных в документ."""
        if not element_id:
            return None
        tag = self.soup.find(id=element_id)
        return self.wrap(tag) if tag is not None else None

    def parse_fragment(self, html: str) -> list:
        fragment = BeautifulSoup(html or "", "html.parser")
        return [n for n in list(fragment.contents) if isinstance(n, (Tag, NavigableString))]

    def add_stylesheet(self, href: str) -> THostElement:
        link = self.create_element("link")
        link.tag["rel"] = "stylesheet"
        link.tag["type"] = "text/css"
        link.tag["href"] = href
        self.stylesheets.append(href)
        self.head.append_child(link)
        self.notify(self.head, THostMutation(type="stylesheet", value=href))
        return link

    def on_mutation(self, callback: Callable[[THostMutation], Any]):
        self.mutation_listeners.append(callback)

    def notify(self, target: THostElement, record: THostMutation):
        for fn in list(self.mutation_listeners):
            fn(record)
        if not self.observers_enabled or record.type != "childList":
            return
        for observer in list(self.observers):
            if any(t is target for t in observer.targets):
                observer._queue(record)

    def render(self, pretty: bool = False) -> str:
        return self.soup.prettify() if pretty else str(self.soup)
# ---
def _attr_str(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (list, tuple)):
        return ",".join(_attr_str(v) for v in value)
    return str(value)
# ---
def _wire_value(value: Any) -> Any:
    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    if isinstance(value, (list, tuple)):
        return [_wire_value(v) for v in value]
    return str(value)
