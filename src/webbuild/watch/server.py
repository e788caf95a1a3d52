"""Development HTTP server with single-page-app fallback and a reload counter.

:class:`DevServer` serves a directory (``public/`` by default) on a
background thread. Requests for paths that do not exist on disk are
answered with the fallback document (``index.html``) so client-side routes
survive a page reload.

Live reload is exposed as a build counter at ``/__livereload``: every
successful rebuild bumps it via :meth:`DevServer.notify_reload`, and a
page-side client polls it and reloads when the number changes.
"""

from __future__ import annotations

import json
import logging
import threading
from http.server import SimpleHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path
from typing import Any, Optional
from urllib.parse import urlsplit

from webbuild.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

RELOAD_PATH = "/__livereload"


class DevServer:
    """Serve *root* over HTTP on a daemon thread.

    Args:
        root: Directory to serve.
        host: Bind address.
        port: Bind port; ``0`` picks a free port.
        fallback: Document (relative to *root*) served for unknown paths.
    """

    def __init__(self, root: Path, host: str = "127.0.0.1", port: int = 5000, fallback: str = "index.html") -> None:
        self._root = root
        self._host = host
        self._port = port
        self._fallback = fallback.lstrip("/")
        self._build_id = 0
        self._lock = threading.Lock()
        self._httpd: Optional[ThreadingHTTPServer] = None
        self._thread: Optional[threading.Thread] = None

    @property
    def build_id(self) -> int:
        with self._lock:
            return self._build_id

    @property
    def port(self) -> int:
        if self._httpd is not None:
            return self._httpd.server_address[1]
        return self._port

    @property
    def url(self) -> str:
        return f"http://{self._host}:{self.port}"

    @property
    def is_running(self) -> bool:
        return self._httpd is not None

    def notify_reload(self) -> None:
        with self._lock:
            self._build_id += 1

    def start(self) -> None:
        """Bind and start serving.

        Raises:
            ConfigurationError: If the address cannot be bound (e.g. the
                port is already in use).
        """
        if self._httpd is not None:
            return
        self._root.mkdir(parents=True, exist_ok=True)
        try:
            httpd = ThreadingHTTPServer((self._host, self._port), self._make_handler())
        except OSError as exc:
            raise ConfigurationError(
                f"Cannot serve on {self._host}:{self._port}: {exc}"
            ) from exc
        httpd.daemon_threads = True
        self._httpd = httpd
        self._thread = threading.Thread(
            target=httpd.serve_forever, name="webbuild-server", daemon=True
        )
        self._thread.start()
        logger.debug("Serving %s at %s", self._root, self.url)

    def stop(self) -> None:
        if self._httpd is None:
            return
        self._httpd.shutdown()
        self._httpd.server_close()
        if self._thread is not None:
            self._thread.join(timeout=5)
        self._httpd = None
        self._thread = None

    def _make_handler(self) -> type[SimpleHTTPRequestHandler]:
        server = self
        root = str(self._root)

        class SpaRequestHandler(SimpleHTTPRequestHandler):
            def __init__(self, *args: Any, **kwargs: Any) -> None:
                super().__init__(*args, directory=root, **kwargs)

            def do_GET(self) -> None:
                if urlsplit(self.path).path == RELOAD_PATH:
                    self._send_reload_state()
                    return
                self._apply_fallback()
                super().do_GET()

            def do_HEAD(self) -> None:
                self._apply_fallback()
                super().do_HEAD()

            def end_headers(self) -> None:
                self.send_header("Cache-Control", "no-store")
                super().end_headers()

            def _apply_fallback(self) -> None:
                if Path(self.translate_path(self.path)).exists():
                    return
                if (server._root / server._fallback).is_file():
                    self.path = "/" + server._fallback

            def _send_reload_state(self) -> None:
                body = json.dumps({"build": server.build_id}).encode("utf-8")
                self.send_response(200)
                self.send_header("Content-Type", "application/json")
                self.send_header("Content-Length", str(len(body)))
                self.end_headers()
                self.wfile.write(body)

            def log_message(self, format: str, *args: Any) -> None:
                logger.debug("%s - %s", self.address_string(), format % args)

        return SpaRequestHandler
