# ======================================================================================================================
# 📁 file        : mu_ctrl_sort.py — Сортировка и визуальный фильтр дочерних контролов (capability-объекты)
# 🕒 created     : 05.10.2026 09:15
# 🎉 contains    : sort_key, TSortIndex, TChildFilter
# 🌅 project     : Modular UI 2026 🜂
# ======================================================================================================================
# 🚢 ...imports...
from __future__ import annotations
from typing import Any, Callable, Dict, List, Optional, Tuple
from mu_sys import *
# 💎🧩⚙️ ... __ALL__ ...
__all__ = ["sort_key", "TSortIndex", "TChildFilter"]
# ---
def sort_key(value: Any) -> Tuple[int, Any]:
    """Числа сравниваются как числа, остальное как строка в нижнем регистре. Числа идут раньше строк."""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return (0, value)
    if isinstance(value, (list, tuple)):
        value = ",".join(str(v) for v in value)
    return (1, str(value).lower())
# ----------------------------------------------------------------------------------------------------------------------
# 🧩 TSortIndex — упорядоченный вид детей по owner.orderBy / owner.orderAsc
# ----------------------------------------------------------------------------------------------------------------------
class TSortIndex:
    """
    Индекс сортировки одного родителя.
    - insert(): новый ребёнок встаёт на своё место (вызывается движком при создании);
    - order(): полная пересортировка при смене orderBy / orderAsc;
    - order_single(): локальная перестановка при смене значения ключа у одного ребёнка;
    - place(): вставка региона ребёнка в контейнер на его позицию (шаг вставки).
    Регионы двигаются только у live-детей.
    """

    def __init__(self, owner):
        self.owner = owner
        self.sorted: List[Any] = []
        self._callbacks: Dict[str, Tuple[str, Callable]] = {}  # имя ребёнка → (свойство, колбэк)

    @property
    def active(self) -> bool:
        return bool(self.owner.orderBy)

    def is_sortable(self, child) -> bool:
        order_by = self.owner.orderBy
        return (bool(order_by)
                and child.is_property(order_by)
                and child._properties.get(order_by) is not None
                and child.parentElement == DEFAULT_CONTAINER)

    def key(self, child):
        return sort_key(child._properties.get(self.owner.orderBy))

    def _index_for(self, child) -> int:
        k = self.key(child)
        for i, other in enumerate(self.sorted):
            ok = self.key(other)
            if (ok > k) if self.owner.orderAsc else (ok < k):
                return i
        return len(self.sorted)
    # ..................................................................................................................
    # 🔗 Подписки на ключ сортировки у детей
    # ..................................................................................................................
    def _subscribe(self, child):
        self._unsubscribe(child)
        prop = self.owner.orderBy

        def _changed(_value, child=child):
            self.order_single(child)

        child.on(prop, _changed, caller=self.owner)
        self._callbacks[child.Name] = (prop, _changed)

    def _unsubscribe(self, child):
        entry = self._callbacks.pop(child.Name, None)
        if entry:
            child.off(*entry)
    # ..................................................................................................................
    # 🚀 Операции
    # ..................................................................................................................
    def insert(self, child) -> bool:
        if not self.is_sortable(child):
            return False
        if child in self.sorted:
            self.sorted.remove(child)
        self.sorted.insert(self._index_for(child), child)
        self._subscribe(child)
        return True

    def remove(self, child):
        self._unsubscribe(child)
        if child in self.sorted:
            self.sorted.remove(child)

    def order(self, *_):
        """Полная пересортировка: O(n log n) сортировка + проход с конца insert_before."""
        for child in list(self.sorted):
            self._unsubscribe(child)

        if not self.active:
            self.sorted = []
            return

        sortable = [c for c in self.owner.childControls if not c.is_removed and self.is_sortable(c)]
        sortable.sort(key=self.key, reverse=not self.owner.orderAsc)
        self.sorted = sortable
        for child in sortable:
            self._subscribe(child)

        container = self.owner.container_element(DEFAULT_CONTAINER)
        live = [c for c in sortable if c.is_live and c.region is not None]
        if container is None or not live:
            return
        container.append_child(live[-1].region)
        for i in range(len(live) - 2, -1, -1):
            container.insert_before(live[i].region, live[i + 1].region)

    def order_single(self, child):
        if not self.active or child.is_removed:
            return
        if child in self.sorted:
            self.sorted.remove(child)
        if not self.is_sortable(child):
            return
        index = self._index_for(child)
        self.sorted.insert(index, child)
        if not child.is_live:
            return
        container = self.owner.container_element(DEFAULT_CONTAINER)
        if container is not None:
            self._move(container, child, index)

    def place(self, container, child):
        """Вставляет регион ещё не live ребёнка в контейнер: по месту в индексе или в конец."""
        if self.active and child in self.sorted:
            self._move(container, child, self.sorted.index(child))
        else:
            container.append_child(child.region)

    def _move(self, container, child, index: int):
        following = next((c for c in self.sorted[index + 1:] if c.is_live and c.region is not None), None)
        if following is None:
            container.append_child(child.region)
        else:
            container.insert_before(child.region, following.region)
# ----------------------------------------------------------------------------------------------------------------------
# 🧩 TChildFilter — визуальный фильтр (visible не трогает, только _show/_hide)
# ----------------------------------------------------------------------------------------------------------------------
class TChildFilter:
    def __init__(self, owner):
        self.owner = owner
        self.predicate: Optional[Callable[[Any], bool]] = None
        self.monitor: List[str] = []

    @property
    def active(self) -> bool:
        return self.predicate is not None

    def apply(self, predicate: Callable[[Any], bool] | None, monitor: List[str] | None = None):
        self.predicate = predicate
        self.set_monitor(monitor or [])
        for child in self.owner.childControls:
            if child.is_live:
                self.evaluate(child)

    def set_monitor(self, names: List[str]):
        """Дифф старого и нового списка: подписка на новые свойства, отписка от ушедших."""
        old, new = set(self.monitor), list(dict.fromkeys(names))
        for name in new:
            if name not in old:
                for child in self.owner.childControls:
                    self.subscribe(child, name)
        for name in self.monitor:
            if name not in new:
                for child in self.owner.childControls:
                    self.unsubscribe(child, name)
        self.monitor = new

    def subscribe(self, child, name: str):
        if name in child._filter_callbacks:
            return

        def _changed(_value, child=child):
            if child.is_live:
                self.evaluate(child)

        child._filter_callbacks[name] = child.on(name, _changed, caller=self.owner)

    def unsubscribe(self, child, name: str):
        cb = child._filter_callbacks.pop(name, None)
        if cb is not None:
            child.off(name, cb)

    def attach_child(self, child):
        """Новый ребёнок на финализации: подписки монитора."""
        for name in self.monitor:
            self.subscribe(child, name)

    def passes(self, child) -> bool:
        return self.predicate is None or bool(self.predicate(child))

    def evaluate(self, child):
        if child.visible and self.passes(child):
            child._show()
        else:
            child._hide()
