"""Local HTTP listener that notices when the browser returns from Pocket.

Pocket redirects the user's browser to ``redirect_uri`` once the request
token has been approved. The redirect carries no payload we need; reaching
the listener at all is the signal that the access token can be requested.
"""

import http.server
import logging
import threading
import urllib.parse
from typing import Any, Optional

logger = logging.getLogger(__name__)

IGNORED_PATHS = frozenset({"/favicon.ico", "/robots.txt"})
IGNORED_PREFIXES = ("/apple-touch-icon",)

SUCCESS_PAGE = """<html>
<head><title>Authorized</title></head>
<body style="font-family: sans-serif; padding: 40px; text-align: center;">
    <h1>Authorized.</h1>
    <p>You can close this window and return to your terminal.</p>
</body>
</html>
"""


def is_ignored_path(path: str) -> bool:
    """Return True for requests browsers make on their own (favicons etc.)."""

    parsed = urllib.parse.urlparse(path or "/")
    return parsed.path in IGNORED_PATHS or parsed.path.startswith(IGNORED_PREFIXES)


class CallbackListener:
    """Single-use callback endpoint bound to an ephemeral loopback port.

    Usage::

        with CallbackListener() as listener:
            url = auth.get_authorize_url(token, listener.redirect_uri)
            print(url)
            listener.wait()

    The signal fires at most once no matter how many requests arrive.
    """

    def __init__(self, host: str = "127.0.0.1", port: int = 0):
        self.host = host
        self.port = int(port)
        self._server: Optional[http.server.ThreadingHTTPServer] = None
        self._thread: Optional[threading.Thread] = None
        self._signal = threading.Event()
        self._lock = threading.Lock()
        self._hits = 0

    @property
    def redirect_uri(self) -> str:
        if self._server is None:
            raise RuntimeError("CallbackListener is not started")
        return f"http://{self.host}:{self.port}/"

    @property
    def signalled(self) -> bool:
        return self._signal.is_set()

    @property
    def hits(self) -> int:
        """Number of genuine callback requests received (ignored paths excluded)."""
        with self._lock:
            return self._hits

    def start(self) -> "CallbackListener":
        if self._server is not None:
            return self

        server = http.server.ThreadingHTTPServer((self.host, self.port), self._create_handler_class())
        server.daemon_threads = True
        self._server = server
        self.port = server.server_address[1]

        self._thread = threading.Thread(target=server.serve_forever, name="pocket-callback", daemon=True)
        self._thread.start()
        logger.debug("Callback listener bound to %s", self.redirect_uri)
        return self

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until the callback is hit. Returns False if ``timeout`` elapsed first."""
        return self._signal.wait(timeout)

    def close(self) -> None:
        server, self._server = self._server, None
        if server is None:
            return

        server.shutdown()
        server.server_close()
        if self._thread is not None:
            self._thread.join()
            self._thread = None
        logger.debug("Callback listener closed")

    def __enter__(self) -> "CallbackListener":
        return self.start()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _record_hit(self) -> bool:
        with self._lock:
            self._hits += 1
            first = not self._signal.is_set()
            self._signal.set()
        return first

    def _create_handler_class(self) -> type:
        listener = self

        class CallbackHandler(http.server.BaseHTTPRequestHandler):
            def log_message(self, format: str, *args: Any) -> None:
                logger.debug("callback: " + format, *args)

            def do_GET(self) -> None:
                if is_ignored_path(self.path):
                    self._send(404, "Not Found\n", "text/plain")
                    return

                if listener._record_hit():
                    logger.info("Authorization callback received")
                self._send(200, SUCCESS_PAGE, "text/html")

            def _send(self, status: int, body: str, content_type: str) -> None:
                data = body.encode("utf-8")
                self.send_response(status)
                self.send_header("Content-Type", f"{content_type}; charset=utf-8")
                self.send_header("Content-Length", str(len(data)))
                self.end_headers()
                self.wfile.write(data)

        return CallbackHandler
