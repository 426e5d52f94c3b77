# ======================================================================================================================
# 📁 file        : mu_application.py — Точка монтирования дерева и CLI Modular UI
# 🕒 created     : 06.10.2026 10:20
# 🎉 contains    : TTopLevelContainer, load_data, compose, main
# 🌅 project     : Modular UI 2026 🜂
# ======================================================================================================================
# 🚢 ...imports...
from __future__ import annotations
import argparse
import asyncio
import json
from pathlib import Path
from typing import Any, Dict
from mu_sys import *
from mu_logger import init_log_router
from mu_host import THostDocument
from mu_ctrl_custom import TControl, TControlState
# 💎🧩⚙️ ... __ALL__ ...
__all__ = ["TTopLevelContainer", "load_data", "compose", "main"]
# ----------------------------------------------------------------------------------------------------------------------
# 🧩 TTopLevelContainer — корень дерева, смонтированный в документ хоста
# ----------------------------------------------------------------------------------------------------------------------
class TTopLevelContainer(TControl):
    """
    Корень: держит резолвер модулей, документ хоста и все отложенные задачи дерева.
    Разметка корня вставляется сразу (в элемент с id=element или в body), корень live с рождения.
    """
    # ⚡🛠️ ▸ __init__
    def __init__(self, path: str | None = None, element: str | None = None,
                 document: THostDocument | None = None, Name: str = "TopLevel"):
        super().__init__(None, Name)
        self._path = path
        self._document = document if document is not None else THostDocument()
        self.mount(element)
        # ⚡🛠️ TTopLevelContainer ▸ End of __init__

    def mount(self, element: str | None = None) -> bool:
        document = self._document
        host = document.get_element_by_id(element) if element else document.body
        if host is None:
            self.log("mount", f"⚠️ unable to find element {element!r}")
            return False

        region = document.create_element("div", id=self._uid)
        self.region = region
        parsed = self.binder.parse(self)
        region.set_inner_html(parsed.html)
        host.append_child(region)
        self.binder.bind(self, parsed)
        self.state = TControlState.BOUND

        region.css_text = self.cssText
        region.class_name = self.cssClass
        if self.visible:
            self._show()
        else:
            self._hide()
        for ref in self.styles:
            self.ApplyStyle(ref)

        self.Init()
        self.state = TControlState.LIVE
        self.emit("init", self)
        self.log("mount", f"✅ mounted into {element or 'body'}")

        while self._pending_html:
            self._queue_html(self._pending_html.pop(0))
        return True
# ---
def load_data(file: str | Path) -> Dict[str, Any]:
    with open(file, "r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"{file}: top-level JSON value must be an object")
    return data
# ---
async def compose(data: Dict[str, Any], path: str | None = None, element: str | None = None,
                  document: THostDocument | None = None) -> TTopLevelContainer:
    """Создаёт корень, применяет данные и ждёт, пока дерево не достроится."""
    top = TTopLevelContainer(path=path, element=element, document=document)
    top.Set(data)
    await top.settle()
    return top
# ----------------------------------------------------------------------------------------------------------------------
# 🖥️ CLI
# ----------------------------------------------------------------------------------------------------------------------
def _parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="modular-ui", description="Modular UI: compose a control tree from JSON data")
    parser.add_argument("--live-log", action="store_true", help="Show rich live log windows")
    sub = parser.add_subparsers(dest="command", required=True)

    render = sub.add_parser("render", help="Compose DATA into a document and print / save the HTML")
    render.add_argument("data", help="JSON file with the composition data")
    render.add_argument("--path", default=None, help="Control modules directory or http(s) URL")
    render.add_argument("--element", default=None, help="Host element id to mount into (default: body)")
    render.add_argument("--template", default=None, help="HTML file used as the host document")
    render.add_argument("--out", default=None, help="Output HTML file (default: stdout)")
    render.add_argument("--pretty", action="store_true", help="Pretty-print the HTML")

    serve = sub.add_parser("serve", help="Compose DATA and bridge the live document over a websocket")
    serve.add_argument("data", help="JSON file with the composition data")
    serve.add_argument("--path", default=None, help="Control modules directory or http(s) URL")
    serve.add_argument("--element", default=None, help="Host element id to mount into (default: body)")
    serve.add_argument("--template", default=None, help="HTML file used as the host document")
    serve.add_argument("--host", default=None, help="Websocket host (MU_WS_HOST)")
    serve.add_argument("--port", type=int, default=None, help="Websocket port (MU_WS_PORT)")
    return parser
# ---
def _document(template: str | None) -> THostDocument:
    if not template:
        return THostDocument()
    return THostDocument(Path(template).read_text(encoding="utf-8"))
# ---
async def _render(args) -> int:
    top = await compose(load_data(args.data), args.path, args.element, _document(args.template))
    html = top.document.render(pretty=args.pretty)
    if args.out:
        Path(args.out).write_text(html, encoding="utf-8")
        top.log("render", f"✅ {args.out} written")
    else:
        print(html)
    return 0
# ---
async def _serve(args) -> int:
    from mu_ws import TLocalHostServer

    top = await compose(load_data(args.data), args.path, args.element, _document(args.template))
    server = TLocalHostServer(top, host=args.host, port=args.port)
    await server.start()
    try:
        await server.serve_forever()
    finally:
        await server.stop()
    return 0
# ---
def main(argv: list[str] | None = None) -> int:
    args = _parser().parse_args(argv)
    router = init_log_router(live=args.live_log)
    try:
        if args.command == "render":
            return asyncio.run(_render(args))
        return asyncio.run(_serve(args))
    except KeyboardInterrupt:
        return 130
    finally:
        router.stop()


if __name__ == "__main__":
    raise SystemExit(main())
