# ======================================================================================================================
# 📁 file        : mu_events.py — Локальная шина событий и области всплытия Modular UI
# 🕒 created     : 02.10.2026 11:05
# 🎉 contains    : TScope, TDispatcherEvent, TDispatcher
# 🌅 project     : Modular UI 2026 🜂
# ======================================================================================================================
# 🚢 ...imports...
from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List
# 💎🧩⚙️ ... __ALL__ ...
__all__ = ["TScope", "TCallback", "TDispatcherEvent", "TDispatcher"]
# ----------------------------------------------------------------------------------------------------------------------
# 🧩 TScope — области доставки emit()
# ----------------------------------------------------------------------------------------------------------------------
class TScope(str, Enum):
    LOCAL = "local"          # только этот контрол
    BUBBLE = "bubble"        # этот контрол и все предки до корня
    TOP = "top"              # только корень
    LOCAL_TOP = "local_top"  # этот контрол и корень
# ----------------------------------------------------------------------------------------------------------------------
# 🧩 TCallback — запись подписки
# ----------------------------------------------------------------------------------------------------------------------
@dataclass(eq=False)
class TCallback:
    callback: Callable[[Any], Any]
    once: bool = False
# ----------------------------------------------------------------------------------------------------------------------
# 🧩 TDispatcherEvent — список колбэков одного события
# ----------------------------------------------------------------------------------------------------------------------
class TDispatcherEvent:
    def __init__(self):
        self.callbacks: List[TCallback] = []

    def register(self, callback: Callable, once: bool = False) -> None:
        self.callbacks.append(TCallback(callback, once))

    def unregister(self, callback: Callable) -> None:
        """Снимает первую запись с этим колбэком (по идентичности)."""
        for i, c in enumerate(self.callbacks):
            if c.callback is callback:
                del self.callbacks[i]
                return

    def unregister_all(self) -> None:
        self.callbacks.clear()

    def fire(self, data: Any) -> None:
        """
        Вызывает снимок списка: отписки во время вызова не ломают обход.
        once-колбэки снимаются только после прохода по всему снимку.
        """
        snapshot = list(self.callbacks)
        once = []
        for c in snapshot:
            c.callback(data)
            if c.once:
                once.append(c)
        for c in once:
            if c in self.callbacks:
                self.callbacks.remove(c)
# ----------------------------------------------------------------------------------------------------------------------
# 🧩 TDispatcher — локальная шина (без областей)
# ----------------------------------------------------------------------------------------------------------------------
class TDispatcher:
    """
    Локальная шина событий. Контрол держит её как capability и добавляет маршрутизацию по TScope.
    Резолвер держит свою собственную — для одноразовых сигналов "resolved".
    """

    def __init__(self):
        self.events: Dict[str, TDispatcherEvent] = {}

    def emit(self, event_name: str, data: Any = None) -> None:
        event = self.events.get(event_name)
        if event:
            event.fire(data)

    def on(self, event_name: str, callback: Callable) -> Callable:
        self._event(event_name).register(callback)
        return callback

    def once(self, event_name: str, callback: Callable) -> Callable:
        self._event(event_name).register(callback, once=True)
        return callback

    def off(self, event_name: str, callback: Callable) -> None:
        event = self.events.get(event_name)
        if event is None:
            return
        event.unregister(callback)
        if not event.callbacks:
            del self.events[event_name]

    def clear_events(self) -> None:
        for event in self.events.values():
            event.unregister_all()
        self.events.clear()

    def has_listeners(self, event_name: str) -> bool:
        event = self.events.get(event_name)
        return bool(event and event.callbacks)

    def _event(self, event_name: str) -> TDispatcherEvent:
        event = self.events.get(event_name)
        if event is None:
            event = TDispatcherEvent()
            self.events[event_name] = event
        return event
