# errors.py
"""Error types shared by the upload server and its lifecycle.

Every error carries the HTTP status used when it surfaces from a request, so
the route layer can render it as ``{"success": false, "message": ...}``.
"""


class FileDropError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"success": False, "message": self.message}


class DirectoryError(FileDropError):
    """Upload directory could not be created."""


class BindError(FileDropError):
    """Listener could not be bound to the chosen port."""


class AddressError(FileDropError):
    """No LAN address could be determined."""


class MultipartParseError(FileDropError):
    status_code = 400


class UploadIOError(FileDropError):
    """Create, write or flush of an uploaded file failed."""


class OversizeError(FileDropError):
    status_code = 413


class UploadCancelled(FileDropError):
    """Server was stopped while the upload was still streaming."""

    status_code = 503
