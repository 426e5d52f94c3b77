# ======================================================================================================================
# 📁 file        : mu_props.py — Реактивные свойства контролов (явная схема вместо интроспекции полей)
# 🕒 created     : 03.10.2026 12:10
# 🎉 contains    : TPropertySpec, TProperty, TReactiveObject, kind_of
# 🌅 project     : Modular UI 2026 🜂
# ======================================================================================================================
# 🚢 ...imports...
from __future__ import annotations
import copy
from dataclasses import dataclass
from typing import Any, Dict, List
# 💎🧩⚙️ ... __ALL__ ...
__all__ = ["TPropertySpec", "TProperty", "TReactiveObject", "kind_of", "PROPERTY_KINDS"]
# 💎 ... CONFIG / CONSTS ...
PROPERTY_KINDS = ("str", "number", "bool", "list")
# ---
def kind_of(value: Any) -> str | None:
    """str | number | bool | list, иначе None (такое значение не может быть реактивным)."""
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "str"
    if isinstance(value, (list, tuple)):
        return "list"
    return None
# ----------------------------------------------------------------------------------------------------------------------
# 🧩 TPropertySpec — строка схемы {name, kind, default}
# ----------------------------------------------------------------------------------------------------------------------
@dataclass(frozen=True)
class TPropertySpec:
    name: str
    kind: str
    default: Any
# ----------------------------------------------------------------------------------------------------------------------
# 🧩 TProperty — дескриптор реактивного свойства
# ----------------------------------------------------------------------------------------------------------------------
class TProperty:
    """
    Объявление реактивного свойства на уровне класса:

        class TCounter(TControl):
            caption = TProperty("")
            count = TProperty(0)

    Чтение отдаёт живое значение из obj._properties, запись идёт через obj._assign()
    (сравнение → сохранение → внешнее уведомление → локальное событие <name>).
    """

    def __init__(self, default: Any):
        kind = kind_of(default)
        if kind is None:
            raise TypeError(f"TProperty: unsupported default {default!r} (str, number, bool or list expected)")
        self.default = list(default) if kind == "list" else default
        self.kind = kind
        self.name = ""

    def __set_name__(self, owner, name: str):
        if name.startswith("_"):
            raise TypeError(f"{owner.__name__}.{name}: internal names cannot be reactive properties")
        self.name = name

    def __get__(self, obj, objtype=None):
        if obj is None:
            return self
        return obj._properties.get(self.name)

    def __set__(self, obj, value):
        obj._assign(self.name, value, notify=True)

    def __repr__(self):
        return f"TProperty({self.name}={self.default!r}:{self.kind})"

    @property
    def spec(self) -> TPropertySpec:
        return TPropertySpec(self.name, self.kind, copy.copy(self.default))

    def initial(self) -> Any:
        return copy.copy(self.default)

    def coerce(self, value: Any) -> Any:
        """None → значение по умолчанию; tuple → list для списков; остальное как есть."""
        if value is None:
            return self.initial()
        if self.kind == "list" and isinstance(value, tuple):
            return list(value)
        return value

    def same(self, old: Any, new: Any) -> bool:
        if self.kind == "number":
            return old == new and isinstance(new, (int, float)) and not isinstance(new, bool)
        return type(old) is type(new) and old == new
# ----------------------------------------------------------------------------------------------------------------------
# 🧩 TReactiveObject — носитель схемы
# ----------------------------------------------------------------------------------------------------------------------
class TReactiveObject:
    """
    Собирает упорядоченную схему в __init_subclass__ (база → потомок).
    Потомок может переопределить дефолт обычным присваиванием: `orderBy = "rank"`.
    """
    _schema: Dict[str, TProperty] = {}

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        schema: Dict[str, TProperty] = {}
        for klass in reversed(cls.__mro__):
            for name, value in list(vars(klass).items()):
                if isinstance(value, TProperty):
                    schema[name] = value
                elif name in schema and klass is cls and kind_of(value) is not None:
                    # переопределение дефолта базового свойства простым значением
                    prop = TProperty(value)
                    prop.__set_name__(cls, name)
                    setattr(cls, name, prop)
                    schema[name] = prop
        cls._schema = schema

    def __init__(self):
        self._properties: Dict[str, Any] = {name: prop.initial() for name, prop in type(self)._schema.items()}

    @classmethod
    def schema(cls) -> List[TPropertySpec]:
        return [prop.spec for prop in cls._schema.values()]

    @classmethod
    def is_property(cls, name: str) -> bool:
        return name in cls._schema

    def _assign(self, name: str, value: Any, notify: bool = True) -> bool:
        """
        Единственный путь записи свойства. True — значение изменилось.
        notify=False — запись движком (Set), внешнее уведомление не поднимаем.
        """
        prop = type(self)._schema[name]
        value = prop.coerce(value)
        if prop.same(self._properties.get(name), value):
            return False
        self._properties[name] = value
        self._property_changed(name, value, notify)
        return True

    def _property_changed(self, name: str, value: Any, notify: bool):
        """Переопределяй в потомках."""
        pass
