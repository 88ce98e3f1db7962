# multipart.py
"""Incremental multipart/form-data reading on top of werkzeug's sans-io decoder.

Unlike ``request.files``, nothing is spooled: each file part is handed out as an
iterator of raw chunks as they come off the request stream, so the caller can
write them straight to their final destination.
"""
from typing import BinaryIO, Iterator, Optional, Tuple

from werkzeug.exceptions import ClientDisconnected, RequestEntityTooLarge
from werkzeug.sansio.multipart import Data, Epilogue, Field, File, MultipartDecoder, NeedData

from .config import CHUNK_SIZE
from .errors import MultipartParseError, OversizeError


class MultipartReader:
    def __init__(self, stream: BinaryIO, boundary, chunk_size: int = CHUNK_SIZE, max_bytes: Optional[int] = None):
        if isinstance(boundary, str):
            boundary = boundary.encode("latin-1")
        if not boundary:
            raise MultipartParseError("missing multipart boundary")
        self._decoder = MultipartDecoder(boundary)
        self._read = stream.read
        self.chunk_size = chunk_size
        self.max_bytes = max_bytes
        self.bytes_read = 0
        self._eof = False

    def __iter__(self) -> Iterator[Tuple[str, Iterator[bytes]]]:
        while True:
            event = self._next_event()
            if isinstance(event, Epilogue):
                return
            if isinstance(event, File):
                chunks = self._iter_data()
                yield event.filename, chunks
                # drain whatever the consumer left unread
                for _ in chunks:
                    pass
            elif isinstance(event, Field):
                for _ in self._iter_data():
                    pass

    def _iter_data(self) -> Iterator[bytes]:
        while True:
            event = self._next_event()
            if not isinstance(event, Data):
                raise MultipartParseError("malformed multipart body")
            if event.data:
                yield event.data
            if not event.more_data:
                return

    def _next_event(self):
        try:
            event = self._decoder.next_event()
            while isinstance(event, NeedData):
                if self._eof:
                    raise MultipartParseError("multipart body ended before the closing boundary")
                self._decoder.receive_data(self._read_chunk())
                event = self._decoder.next_event()
        except ValueError as e:
            raise MultipartParseError(f"malformed multipart body: {e}") from e
        return event

    def _read_chunk(self) -> Optional[bytes]:
        try:
            data = self._read(self.chunk_size)
        except RequestEntityTooLarge as e:
            raise OversizeError(self._oversize_message()) from e
        except (ClientDisconnected, OSError) as e:
            raise MultipartParseError("upload stream ended unexpectedly") from e
        if not data:
            self._eof = True
            return None
        self.bytes_read += len(data)
        if self.max_bytes is not None and self.bytes_read > self.max_bytes:
            raise OversizeError(self._oversize_message())
        return data

    def _oversize_message(self) -> str:
        if self.max_bytes is None:
            return "request body too large"
        return f"request body exceeds {self.max_bytes} bytes"
