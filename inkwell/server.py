"""Development server for Inkwell.

Serves the built site locally and rebuilds it when sources change:
- Every HTML response gets a small script that reloads the page on a
  websocket ``reload`` message.
- Directory listings and missing paths return 404, using 404.html if the
  site has one.
- watchdog watches site/, assets/, data/ and inkwell.yaml; builds go to a
  staging directory that replaces the served one only when they succeed.

Key classes:
- DevServer: Runs the HTTP server, the websocket server and the watcher.
- _ReloadHandler: HTTP handler that injects the reload script.
- _ChangeHandler: watchdog handler that triggers rebuilds.
"""

from __future__ import annotations

import asyncio
import functools
import json
import os
import shutil
import threading
import time
from http.server import SimpleHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path

import websockets
from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

from .build import BuildError, ConfigError, build_site, load_config

WATCHED_FOLDERS = ("site", "assets", "data")

RELOAD_SCRIPT_TEMPLATE = """
<script>
(() => {{
  const socket = new WebSocket('ws://' + location.hostname + ':{ws_port}');
  socket.onmessage = (event) => {{
    const message = JSON.parse(event.data || '{{}}');
    if (message.type === 'reload') location.reload();
  }};
}})();
</script>
"""


def inject_reload_script(html: str, script: str) -> str:
    """Insert the reload script before </body>, or append it."""
    if "</body>" in html:
        return html.replace("</body>", f"{script}</body>", 1)
    return html + script


class _ReloadHandler(SimpleHTTPRequestHandler):
    """Static file handler for the built site with live reload."""

    reload_script = RELOAD_SCRIPT_TEMPLATE.format(ws_port=4001)

    def end_headers(self):
        self.send_header("Cache-Control", "no-cache, no-store, must-revalidate")
        super().end_headers()

    def list_directory(self, path):  # pragma: no cover - exercised via send_head
        return self._serve_404()

    def _send_html(self, status: int, html: str) -> None:
        encoded = inject_reload_script(html, self.reload_script).encode("utf-8")
        self.send_response(status)
        self.send_header("Content-type", "text/html; charset=utf-8")
        self.send_header("Content-Length", str(len(encoded)))
        self.end_headers()
        self.wfile.write(encoded)

    def _serve_404(self):
        error_page = Path(self.directory) / "404.html"
        if error_page.exists():
            self._send_html(404, error_page.read_text(encoding="utf-8"))
        else:
            self.send_error(404, "File not found")
        return None

    def send_head(self):
        target = Path(self.translate_path(self.path))
        if target.is_dir():
            target = target / "index.html"
        if not target.is_file():
            return self._serve_404()
        if target.suffix == ".html":
            self._send_html(200, target.read_text(encoding="utf-8"))
            return None
        return super().send_head()


class DevServer:
    """Development server with rebuild-on-change and live reload.

    Attributes:
        project_root: Root directory of the project.
        config: Site configuration.
        output_dir: Directory being served.
        http_port: Port for the HTTP server.
        ws_port: Port for the reload websocket.
    """

    def __init__(self, project_root: Path, http_port: int | None = None, ws_port: int | None = None):
        self.project_root = project_root
        self.config = load_config(project_root)
        self.output_dir = project_root / self.config.get("output_dir", "output")
        self._staging_dir = self.output_dir.with_name(self.output_dir.name + ".staging")
        self.http_port = int(http_port or self.config.get("port", 4000))
        if ws_port is not None:
            self.ws_port = ws_port
        elif http_port is not None:
            self.ws_port = self.http_port + 1
        else:
            self.ws_port = int(self.config.get("ws_port", self.http_port + 1))
        self._reload_script = RELOAD_SCRIPT_TEMPLATE.format(ws_port=self.ws_port)
        self._root_url = f"http://localhost:{self.http_port}"
        self._observer: Observer | None = None
        self._ws_clients: set = set()
        self._loop = asyncio.new_event_loop()
        self._lock = threading.Lock()
        self._last_signature: tuple | None = None

    def start(self, include_unpublished: bool = False) -> None:  # pragma: no cover - integration path
        self._build(include_unpublished)
        self._last_signature = self._compute_signature()
        threading.Thread(target=self._start_http, daemon=True).start()
        threading.Thread(target=self._start_ws, daemon=True).start()
        self._start_watcher(include_unpublished)
        try:
            while True:
                time.sleep(1)
        except KeyboardInterrupt:
            self.stop()

    def stop(self) -> None:
        if self._observer:
            self._observer.stop()
            self._observer.join()
        self._loop.call_soon_threadsafe(self._loop.stop)

    def _build(self, include_unpublished: bool) -> None:
        staging = self._staging_dir
        if staging.exists():
            shutil.rmtree(staging)
        result = build_site(
            self.project_root,
            include_unpublished=include_unpublished,
            root_url=self._root_url,
            output_dir_override=staging,
        )
        if self.output_dir.exists():
            shutil.rmtree(self.output_dir)
        os.replace(staging, self.output_dir)
        for warning in result.warnings:
            print(f"Warning: {warning}")

    def rebuild(self, include_unpublished: bool) -> bool:
        """Rebuild when the sources changed since the last build.

        Build errors are printed and the previous output keeps being served.

        Returns:
            True if a new build was activated and clients were told to reload.
        """
        if not self._lock.acquire(blocking=False):
            return False
        try:
            signature = self._compute_signature()
            if signature == self._last_signature:
                return False
            self._last_signature = signature
            print("Change detected; rebuilding...")
            try:
                self._build(include_unpublished)
            except (BuildError, ConfigError) as exc:
                print(f"Build failed: {exc}")
                return False
            self._broadcast_reload()
            return True
        finally:
            self._lock.release()

    def _start_http(self) -> None:  # pragma: no cover - integration path
        handler_cls = type(
            "_ReloadHandlerWithPort",
            (_ReloadHandler,),
            {"reload_script": self._reload_script},
        )
        handler = functools.partial(handler_cls, directory=str(self.output_dir))
        httpd = ThreadingHTTPServer(("", self.http_port), handler)
        print(f"Serving {self.output_dir} at http://localhost:{self.http_port}")
        httpd.serve_forever()

    def _start_ws(self) -> None:  # pragma: no cover - integration path
        asyncio.set_event_loop(self._loop)
        try:
            self._loop.run_until_complete(self._run_ws_server())
        except OSError as exc:
            print(f"Live reload unavailable (port {self.ws_port}): {exc}")

    async def _run_ws_server(self) -> None:  # pragma: no cover - integration path
        async with websockets.serve(self._ws_handler, "0.0.0.0", self.ws_port):
            await asyncio.Future()

    async def _ws_handler(self, websocket):
        self._ws_clients.add(websocket)
        try:
            await websocket.wait_closed()
        finally:
            self._ws_clients.discard(websocket)

    def _broadcast_reload(self) -> None:
        message = json.dumps({"type": "reload"})
        asyncio.run_coroutine_threadsafe(self._async_broadcast(message), self._loop)

    async def _async_broadcast(self, message: str) -> None:
        for ws in list(self._ws_clients):
            try:
                await ws.send(message)
            except websockets.ConnectionClosed:
                self._ws_clients.discard(ws)

    def _start_watcher(self, include_unpublished: bool) -> None:
        handler = _ChangeHandler(self, include_unpublished)
        observer = Observer()
        for folder in WATCHED_FOLDERS:
            watch_path = self.project_root / folder
            if watch_path.exists():
                observer.schedule(handler, str(watch_path), recursive=True)
        observer.schedule(handler, str(self.project_root), recursive=False)
        observer.start()
        self._observer = observer

    def _compute_signature(self) -> tuple:
        """Snapshot (path, mtime, size) of every watched source file."""
        candidates = [self.project_root / "inkwell.yaml"]
        for folder in WATCHED_FOLDERS:
            root = self.project_root / folder
            if root.exists():
                candidates.extend(sorted(root.rglob("*")))
        entries: list[tuple] = []
        for path in candidates:
            try:
                stat = path.stat()
            except OSError:
                continue
            if path.is_file():
                rel = path.relative_to(self.project_root).as_posix()
                entries.append((rel, stat.st_mtime_ns, stat.st_size))
        return tuple(entries)


class _ChangeHandler(FileSystemEventHandler):
    def __init__(self, server: DevServer, include_unpublished: bool):
        super().__init__()
        self.server = server
        self.include_unpublished = include_unpublished

    def on_any_event(self, event):
        if event.is_directory:
            return
        path = Path(os.fsdecode(event.src_path))
        for ignored in (self.server.output_dir, self.server._staging_dir):
            if path == ignored or ignored in path.parents:
                return
        try:
            rel = path.relative_to(self.server.project_root)
        except ValueError:
            rel = path
        if any(part.startswith(".") for part in rel.parts):
            return
        self.server.rebuild(self.include_unpublished)
