# lifecycle.py
"""Start, replace and stop the one upload server a process may run.

``ServerLifecycle`` is either stopped or running exactly one ``ServerHandle``.
Every transition happens under a single lock, so two concurrent ``start()``
calls end with one listener: the later call tears the earlier one down first.
"""
import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from .config import DEFAULT_BIND_HOST, FALLBACK_ADDRESS, MAX_REQUEST_BYTES, ServerConfig, default_upload_dir
from .counters import UsageCounters
from .errors import DirectoryError
from .network import allocate_ephemeral_port, resolve_local_address
from .qr import encode_as_image, to_data_url
from .server import UploadServer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AccessInfo:
    url: str
    encoded_image: bytes
    address: str
    port: int

    @property
    def qr_data_url(self) -> str:
        return to_data_url(self.encoded_image)

    def to_dict(self) -> dict:
        return {
            "success": True,
            "url": self.url,
            "qrCode": self.qr_data_url,
            "ip": self.address,
            "port": self.port,
        }


@dataclass(frozen=True)
class ServerStatus:
    received_count: int
    total_bytes: int
    upload_directory: Path

    def to_dict(self) -> dict:
        return {
            "received_count": self.received_count,
            "total_size": self.total_bytes,
            "upload_dir": str(self.upload_directory),
        }


@dataclass
class ServerHandle:
    server: UploadServer
    access: AccessInfo

    def cancel(self, graceful: bool = False, timeout: Optional[float] = None) -> bool:
        return self.server.shutdown(graceful=graceful, timeout=timeout)


class ServerLifecycle:
    def __init__(
        self,
        counters: Optional[UsageCounters] = None,
        upload_directory: Optional[Path] = None,
        address_resolver: Callable[[], Optional[str]] = resolve_local_address,
        port_allocator: Callable[[], int] = allocate_ephemeral_port,
        image_encoder: Callable[[str], bytes] = encode_as_image,
        max_request_bytes: int = MAX_REQUEST_BYTES,
        bind_host: str = DEFAULT_BIND_HOST,
        index_html: Optional[str] = None,
    ):
        self.counters = counters if counters is not None else UsageCounters()
        self.upload_directory = Path(upload_directory) if upload_directory is not None else default_upload_dir()
        self.address_resolver = address_resolver
        self.port_allocator = port_allocator
        self.image_encoder = image_encoder
        self.max_request_bytes = max_request_bytes
        self.bind_host = bind_host
        self.index_html = index_html
        self._lock = threading.Lock()
        self._handle: Optional[ServerHandle] = None

    @property
    def running(self) -> bool:
        with self._lock:
            return self._handle is not None

    @property
    def access(self) -> Optional[AccessInfo]:
        with self._lock:
            return self._handle.access if self._handle is not None else None

    def start(self) -> AccessInfo:
        """Bring up a fresh server, replacing the running one if any."""
        with self._lock:
            if self._handle is not None:
                logger.info("replacing server on port %d", self._handle.access.port)
                self._handle.cancel()
                self._handle = None

            port = self.port_allocator()
            address = self.address_resolver()
            if address is None:
                logger.warning("cannot determine local address, advertising %s", FALLBACK_ADDRESS)
                address = FALLBACK_ADDRESS

            try:
                self.upload_directory.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise DirectoryError(f"cannot create upload directory {self.upload_directory}: {e.strerror or e}") from e

            config = ServerConfig(
                bind_port=port,
                upload_directory=self.upload_directory,
                max_request_bytes=self.max_request_bytes,
                bind_host=self.bind_host,
            )
            server = UploadServer(config, self.counters, index_html=self.index_html)
            server.start()

            # port 0 asks the OS to pick one, so the URL is built from the bound port
            url = f"http://{address}:{server.port}"
            try:
                image = self.image_encoder(url)
            except Exception:
                server.shutdown()
                raise

            access = AccessInfo(url=url, encoded_image=image, address=address, port=server.port)
            self._handle = ServerHandle(server=server, access=access)
            logger.info("sharing at %s", url)
            return access

    def stop(self, graceful: bool = False, timeout: Optional[float] = None) -> None:
        """Stop the running server; a no-op when nothing runs.

        The default is a hard stop: uploads still streaming are aborted and may
        leave truncated files behind.
        """
        with self._lock:
            if self._handle is None:
                return
            handle, self._handle = self._handle, None
            handle.cancel(graceful=graceful, timeout=timeout)

    def status(self) -> ServerStatus:
        received_count, total_bytes = self.counters.snapshot()
        return ServerStatus(received_count, total_bytes, self.upload_directory)
