# ======================================================================================================================
# 📁 file        : mu_sys.py — базовые классы Modular UI
# 🕒 created     : 02.10.2026 09:40
# 🎉 contains    : ENV-конфиг (_key/_set_key), иерархия ошибок EModularError, TOwnerObject (дерево владения)
# 🌅 project     : Modular UI 2026 🜂
# ======================================================================================================================
# 🚢 ...imports...
from __future__ import annotations
import os
import traceback
from datetime import datetime
from typing import MutableMapping, Dict, Iterator
from mu_logger import format_line, route
# 💎 ... Переназначаемая ENV-мапа ...
_ENV: MutableMapping[str, str] = os.environ
# 🍍 ... global utilities ...
def set_env_mapping(mapping: MutableMapping[str, str] | None) -> None:
    global _ENV
    _ENV = os.environ if mapping is None else mapping
# ---
def get_env_mapping() -> MutableMapping[str, str]:
    return _ENV
# ---
def _s(v):
    return '' if v is None else str(v)
# ---
def _set_key(name: str, value: str) -> bool:
    if not name:
        return False
    _ENV[name] = '' if value is None else _s(value)
    return True
# ---
def _key(name: str | None, default: str = '') -> str | None:
    if not name:
        return None
    v = _ENV.get(name)
    if v is not None and v != '':
        return v
    _ENV[name] = str(default)
    return str(default)
# ---
def key_int(name: str, default: int = 0) -> int:
    try:
        return int(_key(name, str(default)))
    except (TypeError, ValueError):
        return default
# 💎 ... CONFIG / CONSTS ...
DEFAULT_CONTAINER = "_controlsDiv"   # контейнер детей по умолчанию
TYPE_KEY = "controlType"             # маркер типа в данных Set()
REMOVE_KEY = "remove"                # команда удаления в данных Set()
# ---
def controls_path() -> str:
    return _key('MU_CONTROLS_PATH', 'controls')
# ---
def poll_interval() -> float:
    """Интервал fallback-опроса вставки, секунды."""
    return key_int('MU_POLL_INTERVAL_MS', 20) / 1000.0
# ---
def poll_limit() -> int:
    return key_int('MU_POLL_LIMIT', 10)
# 💎🧩⚙️ ... __ALL__ ...
__all__ = [
    'TOwnerObject',
    'EModularError', 'EResolutionFailure', 'EBindingConflict', 'EInsertionStall', 'EInvalidRemoval',
    'set_env_mapping', 'get_env_mapping',
    '_s', '_set_key', '_key', 'key_int',
    'controls_path', 'poll_interval', 'poll_limit',
    'DEFAULT_CONTAINER', 'TYPE_KEY', 'REMOVE_KEY',
]
# ----------------------------------------------------------------------------------------------------------------------
# 💥 Ошибки Modular UI
# ----------------------------------------------------------------------------------------------------------------------
class EModularError(Exception):
    """Базовая ошибка. Наружу через Set/Get/on/emit не пробрасывается — только в лог."""
    kind = "error"


class EResolutionFailure(EModularError):
    """Модуль контрола не скачан / не разобран / не хватает базового типа."""
    kind = "ResolutionFailure"


class EBindingConflict(EModularError):
    """Дубль атрибута, литеральный id, неподдержанная пара элемент/атрибут."""
    kind = "BindingConflict"


class EInsertionStall(EModularError):
    """Ни наблюдатель, ни опрос не подтвердили вставку в хост."""
    kind = "InsertionStall"


class EInvalidRemoval(EModularError):
    """remove у контрола без родителя."""
    kind = "InvalidRemoval"
# ----------------------------------------------------------------------------------------------------------------------
# 🧩 TOwnerObject — иерархия владения, регистрация и логика родословной
# ----------------------------------------------------------------------------------------------------------------------
class TOwnerObject:
    # ⚡🛠️ ▸ __init__
    def __init__(self, Owner: "TOwnerObject | None" = None, Name: str | None = None):
        """
        Базовый узел дерева владения.
        💠 объект знает своего Owner, хранит детей в self.Components.
        Owner можно не передавать: движок композиции создаёт объект фабрикой,
        а привязку к родителю делает позже через attach().
        """
        self.Owner: "TOwnerObject | None" = None
        self.f_name: str = Name or ""
        # 👨‍👩‍👧‍👧 ... Дочерние компоненты ...
        self.Components: Dict[str, "TOwnerObject"] = {}
        self._top: "TOwnerObject | None" = None
        if Owner is not None:
            self.attach(Owner, self.f_name)
        # ⚡🛠️ TOwnerObject ▸ End of __init__
    # ..................................................................................................................
    # 🏷️👨‍👩‍👧‍👧 Идентичность и родословная
    # ..................................................................................................................
    @property
    def Name(self) -> str:
        return self.f_name

    @property
    def TopLevel(self) -> "TOwnerObject":
        """Корень дерева. Вычисляется один раз и кэшируется."""
        if self._top is None:
            self._top = self.Owner.TopLevel if self.Owner is not None else self
        return self._top
    # ---
    def attach(self, Owner: "TOwnerObject", Name: str):
        """
        Привязывает self к Owner под именем Name. Owner назначается ровно один раз.
        """
        if self.Owner is not None:
            self.fail("attach", f"{self.Name} already owned by {self.Owner.Name}", RuntimeError)
        if not Name:
            self.fail("attach", "empty name", ValueError)
        if Name in Owner.Components:
            self.fail("attach", f"Duplicate component: {Name}", ValueError)
        self.f_name = Name
        self.Owner = Owner
        self._top = None
        Owner.Components[Name] = self
    # ---
    def detach(self):
        """Исключает self из Owner.Components. Owner-ссылка остаётся (для логов и remove-колбэков)."""
        if self.Owner is not None and self.Owner.Components.get(self.Name) is self:
            del self.Owner.Components[self.Name]
    # ---
    def id(self) -> str:
        """
        Полный путь владения через точку, от корня до текущего узла.
        """
        path = [self.Name or self.__class__.__name__]
        p = self.Owner
        guard = 0
        while p is not None and guard < 1024:
            path.append(p.Name or p.__class__.__name__)
            p = p.Owner
            guard += 1
        if guard >= 1024:
            self.fail("id", "Ownership cycle detected", RuntimeError)
        return ".".join(reversed(path))
    # ..................................................................................................................
    # 🔍 Поиск и служебные
    # ..................................................................................................................
    def find(self, name: str) -> "TOwnerObject | None":
        """
        Возвращает прямого ребёнка по имени среди self.Components или None, если такого нет.
        """
        return self.Components.get(name)
    # ---
    def iter_tree(self) -> Iterator["TOwnerObject"]:
        """
        Генератор обхода вниз по иерархии от текущего узла. Даёт self, затем рекурсивно всех детей.
        """
        yield self
        for child in list(self.Components.values()):
            yield from child.iter_tree()
    # ..................................................................................................................
    # 📡 Log / Debug / Fail
    # ..................................................................................................................
    def log(self, function: str, *parts, window: int = 1):
        """
        Базовый логгер для всех owner-компонентов: пишет в TLogRouter / консоль.
        """
        route(format_line(self.Name or self.__class__.__name__, function, *parts), window)
    # ---
    def warn(self, function: str, error: EModularError):
        """Боковой канал для ошибок раздела EModularError: строка в лог с пометкой вида ошибки."""
        self.log(function, f"⚠️ {error.kind}: {error}")
    # ---
    def debug(self, func: str, *parts):
        """
        Отладочный вывод (иконка 🔍). Включается только если DEBUG_MODE == '1'.
        """
        if not _key("DEBUG_MODE", "0") == "1":
            return
        msg = " ".join(str(p) for p in parts)
        print(f"🔍 [DEBUG][{self.__class__.__name__}.{func}] {msg}", flush=True)
    # ---
    def fail(self, function: str, msg: str, exc_type: type = Exception):
        """
        Аварийный выход с логированием стека в файл MU_FAIL_LOG.
        Только для ошибок программиста — ошибки композиции идут через warn().
        """
        trace_limit = key_int("TRACE_LIMIT", 12)
        stack = "".join(traceback.format_stack(limit=trace_limit))
        cls_name = self.__class__.__name__
        owner_name = getattr(self.Owner, "Name", None)
        owner_part = f"\n📦 owner: {owner_name}" if owner_name else ""
        text = (
            f"\n💥 {cls_name}.{function}() FAILED{owner_part}\n⚙️ message: {msg}"
            f"\n\n🧩 Traceback (most recent calls):\n{stack}"
        )

        self.log("fail", msg)

        fail_log = _key("MU_FAIL_LOG", "log/fail.log")
        try:
            folder = os.path.dirname(fail_log)
            if folder:
                os.makedirs(folder, exist_ok=True)
            with open(fail_log, "a", encoding="utf-8") as f:
                f.write(f"[{datetime.now().isoformat()}]{text}\n{'-' * 80}\n")
        except OSError:
            pass

        raise exc_type(f"{cls_name}.{function}(): {msg}")
