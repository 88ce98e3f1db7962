# pipeline.py
import logging
import os
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import BinaryIO, Iterable, List, Optional, Tuple

from .config import CHUNK_SIZE, MAX_REQUEST_BYTES
from .counters import UsageCounters
from .errors import FileDropError, UploadCancelled, UploadIOError
from .multipart import MultipartReader
from .utils import create_unique_file, format_bytes, sanitize_filename

logger = logging.getLogger(__name__)


@dataclass
class UploadedPart:
    declared_filename: str
    resolved_path: Path
    bytes_written: int = 0


@dataclass
class UploadResult:
    files: List[str] = field(default_factory=list)
    success: bool = True

    @property
    def message(self) -> str:
        return f"{len(self.files)} files uploaded"

    def to_dict(self) -> dict:
        return {"success": self.success, "message": self.message, "files": list(self.files)}


class UploadPipeline:
    """Writes the file parts of one upload request into ``upload_directory``.

    Parts are handled in the order the client sent them. The first failing
    part aborts the request and its partial file is left on disk. Nothing is
    counted in ``counters`` unless every part of the request was stored.
    """

    def __init__(
        self,
        upload_directory: Path,
        counters: UsageCounters,
        max_request_bytes: int = MAX_REQUEST_BYTES,
        chunk_size: int = CHUNK_SIZE,
        cancel_event: Optional[threading.Event] = None,
    ):
        self.upload_directory = Path(upload_directory)
        self.counters = counters
        self.max_request_bytes = max_request_bytes
        self.chunk_size = chunk_size
        self.cancel_event = cancel_event

    def handle_stream(self, stream: BinaryIO, boundary) -> UploadResult:
        reader = MultipartReader(stream, boundary, chunk_size=self.chunk_size, max_bytes=self.max_request_bytes)
        return self.handle(reader)

    def handle(self, parts: Iterable[Tuple[str, Iterable[bytes]]]) -> UploadResult:
        stored: List[UploadedPart] = []
        for declared_filename, chunks in parts:
            self._check_cancelled()
            stored.append(self._store(declared_filename, chunks))

        for part in stored:
            self.counters.record(part.bytes_written)
        return UploadResult(files=[part.resolved_path.name for part in stored])

    def _store(self, declared_filename: str, chunks: Iterable[bytes]) -> UploadedPart:
        name = sanitize_filename(declared_filename)
        try:
            path, out = create_unique_file(self.upload_directory, name)
        except OSError as e:
            raise UploadIOError(f"cannot create {name}: {e.strerror or e}") from e

        part = UploadedPart(declared_filename, path)
        try:
            with out:
                for chunk in chunks:
                    self._check_cancelled()
                    try:
                        out.write(chunk)
                    except OSError as e:
                        raise UploadIOError(f"cannot write {path.name}: {e.strerror or e}") from e
                    part.bytes_written += len(chunk)
                try:
                    out.flush()
                    os.fsync(out.fileno())
                except OSError as e:
                    raise UploadIOError(f"cannot flush {path.name}: {e.strerror or e}") from e
        except FileDropError as e:
            logger.warning(
                "upload of %r aborted after %s, partial file left at %s: %s",
                declared_filename,
                format_bytes(part.bytes_written),
                path,
                e.message,
            )
            raise

        logger.info("saved %s (%s)", path, format_bytes(part.bytes_written))
        return part

    def _check_cancelled(self) -> None:
        if self.cancel_event is not None and self.cancel_event.is_set():
            raise UploadCancelled("server is shutting down")
