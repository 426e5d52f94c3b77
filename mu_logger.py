# ======================================================================================================================
# 📁 file        : mu_logger.py — Rich LogRouter для Modular UI
# 🕒 created     : 02.10.2026 09:12
# 🎉 contains    : TLogRouter, LOG_ROUTER, init_log_router, LoggableComponent
# 🌅 project     : Modular UI 2026 🜂
# ======================================================================================================================
# 🚢 ...imports...
from __future__ import annotations
import threading
import time
from datetime import datetime
from rich.console import Console
from rich.live import Live
from rich.panel import Panel
from rich.text import Text
# 💎🧩⚙️ ... __ALL__ ...
__all__ = ["TLogRouter", "LOG_ROUTER", "init_log_router", "LoggableComponent", "format_line", "route"]
# 💎 ... CONFIG / CONSTS ...
BUFFER_LIMIT = 200
# ----------------------------------------------------------------------------------------------------------------------
# 🧩 TLogRouter — лог-центр с несколькими окнами
# ----------------------------------------------------------------------------------------------------------------------
class TLogRouter:
    """Глобальный Rich лог-центр с несколькими окнами."""

    def __init__(self, window_count: int = 3, refresh_rate: float = 0.5, live: bool = False):
        self.console = Console()
        self.window_count = window_count
        self.refresh_rate = refresh_rate
        self.buffers = {i: [] for i in range(1, window_count + 1)}
        self.lock = threading.Lock()
        self._stop = False
        self.thread: threading.Thread | None = None

        # Подписчики на логи: callables вида fn(message: str, window: int)
        self.subscribers = []

        # поток рендера поднимаем только по запросу (CLI serve), в тестах он не нужен
        if live:
            self.start()

    # ------------------------------------------------------------------------------------------------------------------
    # API
    # ------------------------------------------------------------------------------------------------------------------
    def write(self, message: str, window: int = 1):
        """Добавляет строку в окно и рассылает подписчикам."""
        with self.lock:
            buf = self.buffers.setdefault(window, [])
            buf.append(message)
            if len(buf) > BUFFER_LIMIT:
                buf.pop(0)

        for fn in list(self.subscribers):
            try:
                fn(message, window)
            except Exception:
                # ни один подписчик не должен уронить лог-центр
                pass

    def lines(self, window: int = 1) -> list[str]:
        """Копия буфера окна."""
        with self.lock:
            return list(self.buffers.get(window, []))

    def clear(self):
        with self.lock:
            for buf in self.buffers.values():
                buf.clear()

    def add_subscriber(self, fn):
        """Регистрирует внешнего подписчика логов.

        fn: callable(message: str, window: int)
        """
        if not fn:
            return
        if fn not in self.subscribers:
            self.subscribers.append(fn)

    def remove_subscriber(self, fn):
        """Отписывает подписчика логов."""
        try:
            self.subscribers.remove(fn)
        except ValueError:
            pass

    def start(self):
        """Поднимает фоновый поток Rich Live консоли."""
        if self.thread is not None and self.thread.is_alive():
            return
        self._stop = False
        self.thread = threading.Thread(target=self._render_loop, daemon=True)
        self.thread.start()

    def stop(self):
        """Останавливает обновление консоли."""
        self._stop = True
        if self.thread is not None:
            self.thread.join(timeout=2)
            self.thread = None
    # ..................................................................................................................
    # 🎨 Render
    # ..................................................................................................................
    def _render_loop(self):
        """Фоновый цикл обновления Rich Live Console."""
        with Live(console=self.console, refresh_per_second=max(1, int(1 / self.refresh_rate))) as live:
            while not self._stop:
                live.update(self._layout())
                time.sleep(self.refresh_rate)

    def _layout(self):
        """Создаёт layout из панелей (по окнам)."""
        panels = []
        with self.lock:
            for i in range(1, self.window_count + 1):
                lines = self.buffers.get(i, [])
                text = "\n".join(lines[-20:]) or "(no logs)"
                panels.append(Panel(Text(text), title=f"Log Window {i}"))

        return Panel.fit(
            Text("\n\n".join(p.renderable.plain for p in panels)),
            title="Modular UI Log Console",
        )
# ----------------------------------------------------------------------------------------------------------------------
# 🌍 Global instance
# ----------------------------------------------------------------------------------------------------------------------
LOG_ROUTER: TLogRouter | None = None


def init_log_router(live: bool = False) -> TLogRouter:
    global LOG_ROUTER
    if LOG_ROUTER is None:
        LOG_ROUTER = TLogRouter(live=live)
    elif live:
        LOG_ROUTER.start()
    return LOG_ROUTER


def format_line(source: str, function: str, *parts) -> str:
    """Единый формат строки лога: [MU_1][12:00:00][source]function(): msg"""
    from mu_sys import _key

    project_symbol = _key('PROJECT_SYMBOL', 'MU')
    project_version = _key('PROJECT_VERSION', '1')
    now = datetime.now().strftime('%H:%M:%S')
    msg = ' '.join(str(p) for p in parts)
    return f'[{project_symbol}_{project_version}][{now}][{source}]{function}(): {msg}'


def route(text: str, window: int = 1):
    """Строка → LOG_ROUTER, а если его нет — в stdout."""
    try:
        if LOG_ROUTER:
            LOG_ROUTER.write(text, window=window)
        else:
            print(text, flush=True)
    except Exception:
        print(text, flush=True)


class LoggableComponent:
    """
    Базовый миксин для объектов вне дерева владения (резолвер, биндер, ws-мост).
    Формат строки тот же, что у TOwnerObject.log(), источник — имя класса.
    """

    def log(self, function: str, *parts, window: int = 1):
        route(format_line(self.__class__.__name__, function, *parts), window)
