# ======================================================================================================================
# 📁 file        : mu_registry.py — Реестр типов контролов и динамический загрузчик модулей
# 🕒 created     : 04.10.2026 10:02
# 🎉 contains    : TControlRegistry / CONTROL_REGISTRY, register_control, control_class,
#                  TModuleSource / TFileModuleSource / THttpModuleSource, TModuleResolver
# 🌅 project     : Modular UI 2026 🜂
# ======================================================================================================================
# 🚢 ...imports...
from __future__ import annotations
import asyncio
import importlib.util
import re
import sys
from pathlib import Path
from typing import Dict, List, Optional, Set
import aiohttp
from mu_sys import *
from mu_events import TDispatcher
from mu_logger import LoggableComponent
# 💎🧩⚙️ ... __ALL__ ...
__all__ = ["TControlRegistry", "CONTROL_REGISTRY", "register_control", "control_class",
           "TModuleSource", "TFileModuleSource", "THttpModuleSource", "module_source_for",
           "TModuleResolver", "declared_bases", "load_module"]
# 💎 ... CONFIG / CONSTS ...
TYPE_NAME_RE = re.compile(r"^[a-zA-Z0-9_]+$")
# явная ссылка модуля на базовый тип: control_class("TBase")
BASE_REF_RE = re.compile(r"""control_class\(\s*["']([a-zA-Z0-9_]+)["']\s*\)""")
MODULE_PREFIX = "mu_control_"
# ----------------------------------------------------------------------------------------------------------------------
# 🧩 TControlRegistry — процессный реестр "имя типа → класс"
# ----------------------------------------------------------------------------------------------------------------------
class TControlRegistry(LoggableComponent):
    def __init__(self):
        self._classes: Dict[str, type] = {}
        self._builtins: Set[str] = set()

    def register(self, cls: type, name: str | None = None, builtin: bool = False) -> type:
        """
        Явная регистрация реализации. Имя по умолчанию — имя класса.
        Повторная регистрация того же имени заменяет класс (перезагрузка модуля).
        """
        from mu_ctrl_custom import TControl

        if not isinstance(cls, type) or not issubclass(cls, TControl):
            raise TypeError(f"register_control: {cls!r} is not a TControl subclass")
        name = name or cls.__name__
        if not TYPE_NAME_RE.match(name):
            raise ValueError(f"register_control: invalid type name {name!r}")
        cls.control_type = name
        self._classes[name] = cls
        if builtin:
            self._builtins.add(name)
        self.log("register", f"🧩 {name} registered")
        return cls

    def get(self, name: str) -> Optional[type]:
        return self._classes.get(name)

    def has(self, name: str) -> bool:
        return name in self._classes

    def names(self) -> List[str]:
        return list(self._classes.keys())

    def reset(self):
        """Забывает всё, кроме встроенных типов (для тестов и перезапуска)."""
        for name in list(self._classes):
            if name not in self._builtins:
                del self._classes[name]
                sys.modules.pop(f"{MODULE_PREFIX}{name}", None)
# ----------------------------------------------------------------------------------------------------------------------
# 🌍 Global instance
# ----------------------------------------------------------------------------------------------------------------------
CONTROL_REGISTRY = TControlRegistry()


def register_control(cls: type | None = None, *, name: str | None = None):
    """
    Шаг регистрации, который делает каждый модуль реализации:

        register_control(TButton)
        register_control(TButton, name="Button")

    или декоратором: @register_control / @register_control(name="Button").
    """
    if cls is None:
        return lambda c: CONTROL_REGISTRY.register(c, name)
    return CONTROL_REGISTRY.register(cls, name)


def control_class(name: str) -> type:
    """Явная ссылка на базовый тип. Загрузчик находит её в исходнике и грузит базу заранее."""
    cls = CONTROL_REGISTRY.get(name)
    if cls is None:
        raise EResolutionFailure(f"base type {name!r} is not loaded")
    return cls


def declared_bases(source: str) -> List[str]:
    """Все control_class("X") из текста модуля, без повторов, в порядке появления."""
    seen: List[str] = []
    for m in BASE_REF_RE.finditer(source or ""):
        if m.group(1) not in seen:
            seen.append(m.group(1))
    return seen


def load_module(type_name: str, source: str, origin: str):
    """Компилирует и исполняет текст модуля как mu_control_<type_name>."""
    module_name = f"{MODULE_PREFIX}{type_name}"
    spec = importlib.util.spec_from_loader(module_name, loader=None, origin=origin)
    module = importlib.util.module_from_spec(spec)
    module.__file__ = origin
    sys.modules[module_name] = module
    try:
        code = compile(source, origin, "exec")
        exec(code, module.__dict__)
    except EResolutionFailure:
        sys.modules.pop(module_name, None)
        raise
    except Exception as e:
        sys.modules.pop(module_name, None)
        raise EResolutionFailure(f"{type_name}: module error {e.__class__.__name__}: {e}") from e
    return module
# ----------------------------------------------------------------------------------------------------------------------
# 🧩 TModuleSource — откуда берётся текст модуля
# ----------------------------------------------------------------------------------------------------------------------
class TModuleSource:
    async def fetch(self, type_name: str) -> str:
        """Переопределяй в потомках. Ошибка → EResolutionFailure."""
        raise NotImplementedError

    def origin(self, type_name: str) -> str:
        return f"<{type_name}>"


class TFileModuleSource(TModuleSource):
    """Каталог с файлами <Type>.py."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def origin(self, type_name: str) -> str:
        return str(self.path / f"{type_name}.py")

    async def fetch(self, type_name: str) -> str:
        file = self.path / f"{type_name}.py"
        try:
            return await asyncio.to_thread(file.read_text, encoding="utf-8")
        except OSError as e:
            raise EResolutionFailure(f"{type_name}: cannot read {file}: {e}") from e


class THttpModuleSource(TModuleSource):
    """Удалённый каталог: GET <base_url>/<Type>.py через aiohttp."""

    def __init__(self, base_url: str, timeout: float | None = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def origin(self, type_name: str) -> str:
        return f"{self.base_url}/{type_name}.py"

    async def fetch(self, type_name: str) -> str:
        url = self.origin(type_name)
        timeout = aiohttp.ClientTimeout(total=self.timeout)
        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.get(url) as resp:
                    if resp.status >= 400:
                        raise EResolutionFailure(f"{type_name}: GET {url} → HTTP {resp.status}")
                    return await resp.text()
        except aiohttp.ClientError as e:
            raise EResolutionFailure(f"{type_name}: GET {url} failed: {e}") from e


def module_source_for(path: str | Path | TModuleSource | None) -> TModuleSource:
    if isinstance(path, TModuleSource):
        return path
    path = str(path) if path else controls_path()
    if path.startswith(("http://", "https://")):
        return THttpModuleSource(path)
    return TFileModuleSource(path)
# ----------------------------------------------------------------------------------------------------------------------
# 🧩 TModuleResolver — загрузка по имени типа (живёт только у корня дерева)
# ----------------------------------------------------------------------------------------------------------------------
class TModuleResolver(LoggableComponent):
    """
    Имя типа → True/False "реализация доступна".
    - в кэше → True сразу, без загрузки;
    - загрузка уже идёт → ждём одноразовый сигнал resolved:<name>, вторую не начинаем;
    - иначе: текст модуля → базовые типы (рекурсивно, все до одного) → исполнение модуля → сигнал.
    Никогда не бросает: любая ошибка → лог + False.
    """

    def __init__(self, source: TModuleSource | str | Path | None = None,
                 registry: TControlRegistry | None = None):
        self.source = module_source_for(source)
        self.registry = registry or CONTROL_REGISTRY
        self.pending: Set[str] = set()
        self.signals = TDispatcher()
        self.loaded: List[str] = []      # порядок исполнения модулей
        self._tasks: Set[asyncio.Task] = set()

    async def resolve(self, type_name: str, _chain: tuple = ()) -> bool:
        if self.registry.has(type_name):
            return True
        if not type_name or not TYPE_NAME_RE.match(type_name):
            self.log("resolve", f"⚠️ ResolutionFailure: invalid type name {type_name!r}")
            return False
        if type_name in _chain:
            self.log("resolve", f"⚠️ ResolutionFailure: circular base types {' → '.join(_chain + (type_name,))}")
            return False

        loop = asyncio.get_running_loop()
        done = loop.create_future()

        def _resolved(ok):
            if not done.done():
                done.set_result(bool(ok))

        self.signals.once(f"resolved:{type_name}", _resolved)

        if type_name not in self.pending:
            self.pending.add(type_name)
            task = loop.create_task(self._load(type_name, _chain + (type_name,)))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)

        return await done

    async def _load(self, type_name: str, chain: tuple):
        try:
            source = await self.source.fetch(type_name)
            bases = [b for b in declared_bases(source) if b != type_name]
            if bases:
                results = await asyncio.gather(*(self.resolve(b, chain) for b in bases))
                missing = [b for b, ok in zip(bases, results) if not ok]
                if missing:
                    raise EResolutionFailure(f"{type_name}: base type(s) not loaded: {', '.join(missing)}")
            load_module(type_name, source, self.source.origin(type_name))
            if not self.registry.has(type_name):
                raise EResolutionFailure(f"{type_name}: module did not register {type_name}")
        except Exception as e:
            self.pending.discard(type_name)
            kind = getattr(e, "kind", e.__class__.__name__)
            self.log("_load", f"⚠️ {kind}: unable to load {type_name!r}. {e}")
            self.signals.emit(f"resolved:{type_name}", False)
            return

        self.pending.discard(type_name)
        self.loaded.append(type_name)
        self.log("_load", f"✅ {type_name} loaded")
        self.signals.emit(f"resolved:{type_name}", True)
