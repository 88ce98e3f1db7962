# server.py
import logging
import socket
import threading
from typing import Optional

from werkzeug.serving import BaseWSGIServer, make_server

from .app import create_app
from .config import ServerConfig
from .counters import UsageCounters
from .errors import BindError
from .pipeline import UploadPipeline

logger = logging.getLogger(__name__)

LISTEN_BACKLOG = 128


class InFlightRequests:
    """WSGI middleware counting requests that are still being handled."""

    def __init__(self, wsgi_app):
        self.wsgi_app = wsgi_app
        self._active = 0
        self._cond = threading.Condition()

    def __call__(self, environ, start_response):
        with self._cond:
            self._active += 1
        try:
            return self.wsgi_app(environ, start_response)
        finally:
            with self._cond:
                self._active -= 1
                self._cond.notify_all()

    @property
    def active(self) -> int:
        with self._cond:
            return self._active

    def wait_idle(self, timeout: Optional[float] = None) -> bool:
        with self._cond:
            return self._cond.wait_for(lambda: self._active == 0, timeout)


class UploadServer:
    """One HTTP listener for the upload page and POST /upload.

    The listener runs werkzeug's threaded server on a daemon thread. Shutting
    down stops the accept loop and closes the port; a hard shutdown also sets
    ``cancel_event`` so uploads still streaming abort at their next chunk.
    """

    def __init__(self, config: ServerConfig, counters: UsageCounters, index_html: Optional[str] = None):
        self.config = config
        self.cancel_event = threading.Event()
        self.pipeline = UploadPipeline(
            config.upload_directory,
            counters,
            max_request_bytes=config.max_request_bytes,
            cancel_event=self.cancel_event,
        )
        self.app = create_app(self.pipeline, index_html=index_html)
        self.in_flight = InFlightRequests(self.app.wsgi_app)
        self.app.wsgi_app = self.in_flight
        self._httpd: Optional[BaseWSGIServer] = None
        self._thread: Optional[threading.Thread] = None

    @property
    def port(self) -> int:
        if self._httpd is None:
            return self.config.bind_port
        return self._httpd.server_address[1]

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        host, port = self.config.bind_host, self.config.bind_port
        # bind here: werkzeug exits the process when it fails to bind by itself
        try:
            sock = socket.create_server((host, port), backlog=LISTEN_BACKLOG)
        except OSError as e:
            raise BindError(f"cannot bind {host}:{port}: {e.strerror or e}") from e
        try:
            self._httpd = make_server(host, port, self.app, threaded=True, fd=sock.fileno())
        finally:
            # werkzeug listens on a duplicate of this descriptor
            sock.close()
        # closing must not join request threads; draining is InFlightRequests' job
        self._httpd.block_on_close = False

        self._thread = threading.Thread(
            target=self._httpd.serve_forever,
            name=f"filedrop-server-{self.port}",
            daemon=True,
        )
        self._thread.start()
        logger.info("listening on %s:%d, saving to %s", host, self.port, self.config.upload_directory)

    def shutdown(self, graceful: bool = False, timeout: Optional[float] = None) -> bool:
        """Stop serving. Returns False if a graceful drain timed out."""
        if self._httpd is None:
            return True
        if not graceful:
            self.cancel_event.set()
        self._httpd.shutdown()
        self._httpd.server_close()
        if self._thread is not None:
            self._thread.join()

        drained = True
        if graceful:
            drained = self.in_flight.wait_idle(timeout)
            if not drained:
                logger.warning("%d uploads still running after %.1fs", self.in_flight.active, timeout)
                self.cancel_event.set()
        logger.info("server on port %d stopped (%s)", self.port, "graceful" if graceful else "hard")
        self._httpd = None
        return drained
