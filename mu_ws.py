# ======================================================================================================================
# 📁 file        : mu_ws.py — WebSocket-мост между документом хоста и браузером
# 🕒 created     : 06.10.2026 15:05
# 🎉 contains    : TwsChannel, TwsMessage, TLocalHostServer
# 🌅 project     : Modular UI 2026 🜂
# ======================================================================================================================
# 🚢 ...imports...
from __future__ import annotations
import asyncio
import json
from enum import Enum
from typing import Any, Dict, Optional, Set
import websockets
from pydantic import BaseModel
from mu_sys import *
from mu_logger import LoggableComponent
import mu_logger
from mu_host import THostMutation
# 💎🧩⚙️ ... __ALL__ ...
__all__ = ["TwsChannel", "TwsMessage", "TLocalHostServer"]
# ----------------------------------------------------------------------------------------------------------------------
# 🧩 TwsChannel / TwsMessage — формат сообщений моста
# ----------------------------------------------------------------------------------------------------------------------
class TwsChannel(str, Enum):
    SYSTEM = "system"   # ответы на команды, приветствие, ошибки
    DOM = "dom"         # записи мутаций документа
    DATA = "data"       # событие data корня (путь к изменённому свойству)
    LOG = "log"         # строки лог-центра


class TwsMessage(BaseModel):
    channel: TwsChannel
    type: str
    level: Optional[str] = None
    text: Optional[str] = None
    data: Any = None

    def to_json(self) -> str:
        return self.model_dump_json(exclude_none=True)

    @classmethod
    def system(cls, text: str, level: str = "info") -> "TwsMessage":
        return cls(channel=TwsChannel.SYSTEM, type="system_message", level=level, text=text)
# ----------------------------------------------------------------------------------------------------------------------
# 🧩 TLocalHostServer — ws-сервер поверх корня дерева
# ----------------------------------------------------------------------------------------------------------------------
class TLocalHostServer(LoggableComponent):
    """
    Подписчики получают:
    - snapshot документа при подключении;
    - каждую мутацию документа (канал dom);
    - каждое событие data корня (канал data);
    - строки лога (канал log).
    Команды подписчика: ping, set (Set() у корня), change (изменение элемента на стороне хоста).
    """

    def __init__(self, top, host: str | None = None, port: int | None = None):
        self.top = top
        self.host = host if host is not None else _key("MU_WS_HOST", "0.0.0.0")
        self.port = int(port) if port is not None else key_int("MU_WS_PORT", 8082)
        self.subscribers: Set[Any] = set()
        self._server = None
        self._sends: Set[asyncio.Task] = set()
        self._attached = False
        self.log("__init__", f"initialized on ws://{self.host}:{self.port}")
    # ..................................................................................................................
    # 🌳 Life Cycle
    # ..................................................................................................................
    def attach(self):
        """Подписка на документ, корень и лог-центр."""
        if self._attached:
            return
        self._attached = True
        self.top.document.on_mutation(self._on_mutation)
        self.top.on("data", self._on_data)
        if mu_logger.LOG_ROUTER:
            mu_logger.LOG_ROUTER.add_subscriber(self._on_log)

    async def start(self):
        self.attach()
        self._server = await websockets.serve(self._serve_subscriber, self.host, self.port)
        # port=0 — порт выбирает ОС
        for sock in getattr(self._server, "sockets", None) or []:
            self.port = sock.getsockname()[1]
            break
        self.log("start", f"listening on ws://{self.host}:{self.port}")

    async def serve_forever(self):
        if self._server is not None:
            await self._server.wait_closed()

    async def stop(self):
        if mu_logger.LOG_ROUTER:
            mu_logger.LOG_ROUTER.remove_subscriber(self._on_log)
        for ws in list(self.subscribers):
            await ws.close(code=1001, reason="server shutdown")
        if self._server is not None:
            self._server.close()
            await self._server.wait_closed()
            self._server = None
        self.log("stop", "server stopped")
    # ..................................................................................................................
    # 👥 Подписчики
    # ..................................................................................................................
    async def _serve_subscriber(self, ws):
        self.subscribers.add(ws)
        addr = getattr(ws, "remote_address", None)
        self.log("_serve_subscriber", f"subscriber connected: {addr}")
        try:
            snapshot = TwsMessage(channel=TwsChannel.SYSTEM, type="snapshot", text=self.top.document.render())
            await ws.send(snapshot.to_json())
            async for msg in ws:
                await self._on_subscriber_query(ws, msg)
        except websockets.ConnectionClosed as e:
            self.log("_serve_subscriber", f"⚠️ {e}")
        finally:
            self.subscribers.discard(ws)
            self.log("_serve_subscriber", f"subscriber disconnected: {addr}")

    async def _on_subscriber_query(self, ws, msg: str):
        await ws.send(self.handle_query(msg).to_json())

    def handle_query(self, msg: str) -> TwsMessage:
        """JSON-команда подписчика → ответ. Без сети: удобно вызывать напрямую."""
        try:
            data = json.loads(msg)
        except json.JSONDecodeError:
            return TwsMessage.system(f"invalid JSON: {msg}", "error")
        if not isinstance(data, dict):
            return TwsMessage.system(f"invalid command: {msg}", "error")

        cmd = data.get("cmd")
        if cmd == "ping":
            return TwsMessage.system("pong")
        if cmd == "set":
            payload = data.get("data")
            if not isinstance(payload, dict):
                return TwsMessage.system("set: data must be an object", "error")
            self.top.Set(payload)
            return TwsMessage.system("ok")
        if cmd == "change":
            return self._change(data)
        return TwsMessage.system(f"unknown command: {cmd}", "error")

    def _change(self, data: Dict[str, Any]) -> TwsMessage:
        """Хост сообщает: у элемента id изменился attribute → пишем live-значение и шлём событие."""
        element_id = data.get("id")
        attribute = data.get("attribute") or "value"
        element = self.top.document.get_element_by_id(element_id) if isinstance(element_id, str) else None
        if element is None:
            return TwsMessage.system(f"change: element {element_id!r} not found", "error")
        element.set_prop(attribute, data.get("value"))
        element.dispatch_event(data.get("event") or "change")
        return TwsMessage.system("ok")
    # ..................................................................................................................
    # 📡 Рассылка
    # ..................................................................................................................
    async def send_to_subscribers(self, message: TwsMessage):
        if not self.subscribers:
            return
        text = message.to_json()
        await asyncio.gather(*(ws.send(text) for ws in list(self.subscribers)), return_exceptions=True)

    def broadcast(self, message: TwsMessage):
        """Рассылка из синхронного колбэка: отправка уходит отдельной задачей."""
        if not self.subscribers:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        task = loop.create_task(self.send_to_subscribers(message))
        self._sends.add(task)
        task.add_done_callback(self._sends.discard)

    def _on_mutation(self, record: THostMutation):
        self.broadcast(TwsMessage(channel=TwsChannel.DOM, type="mutation", data=record.model_dump()))

    def _on_data(self, data: Dict[str, Any]):
        self.broadcast(TwsMessage(channel=TwsChannel.DATA, type="data", data=data))

    def _on_log(self, line: str, window: int):
        self.broadcast(TwsMessage(channel=TwsChannel.LOG, type="log_line", text=line))
