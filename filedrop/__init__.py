"""LAN File Drop: a temporary upload page for pushing files to this machine from a browser."""
from .counters import UsageCounters
from .errors import (
    AddressError,
    BindError,
    DirectoryError,
    FileDropError,
    MultipartParseError,
    OversizeError,
    UploadCancelled,
    UploadIOError,
)
from .lifecycle import AccessInfo, ServerLifecycle, ServerStatus
from .pipeline import UploadPipeline, UploadResult
from .server import UploadServer

__version__ = "0.1.0"
