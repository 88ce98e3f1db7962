# config.py
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path

APP_TITLE = "LAN File Drop"

UPLOAD_DIR_NAME = "LocalSend"
INDEX_HTML_PATH = Path(__file__).parent / "HTML" / "index.html"

MAX_REQUEST_BYTES = int(os.environ.get("FILEDROP_MAX_REQUEST_BYTES", 500_000_000))
CHUNK_SIZE = 1024 * 1024      # 1 MiB per read/write while streaming a part
MAX_NAME_LENGTH = 255
MAX_NAME_ATTEMPTS = 100       # exclusive-create retries before giving up on a name

DEFAULT_BIND_HOST = "0.0.0.0"
FALLBACK_ADDRESS = "0.0.0.0"


def default_upload_dir() -> Path:
    """<downloads>/LocalSend, where downloads is ~/Downloads or the temp dir."""
    override = os.environ.get("FILEDROP_UPLOAD_DIR")
    if override:
        return Path(override).expanduser()
    downloads = Path.home() / "Downloads"
    base = downloads if downloads.is_dir() else Path(tempfile.gettempdir())
    return base / UPLOAD_DIR_NAME


@dataclass(frozen=True)
class ServerConfig:
    bind_port: int
    upload_directory: Path
    max_request_bytes: int = MAX_REQUEST_BYTES
    bind_host: str = DEFAULT_BIND_HOST
