# qr.py
import base64
from io import BytesIO
from typing import Optional, TextIO

import qrcode


def _make(url: str, box_size: int = 10, border: int = 4) -> qrcode.QRCode:
    qr = qrcode.QRCode(
        version=1,
        error_correction=qrcode.constants.ERROR_CORRECT_L,
        box_size=box_size,
        border=border,
    )
    qr.add_data(url)
    qr.make(fit=True)
    return qr


def encode_as_image(url: str) -> bytes:
    """PNG bytes of a QR code for ``url``."""
    img = _make(url).make_image(fill_color="black", back_color="white")
    buffered = BytesIO()
    img.save(buffered, format="PNG")
    return buffered.getvalue()


def to_data_url(image: bytes, mimetype: str = "image/png") -> str:
    return f"data:{mimetype};base64,{base64.b64encode(image).decode()}"


def print_ascii(url: str, out: Optional[TextIO] = None) -> None:
    """Draw the QR code for ``url`` with block characters, for terminals."""
    _make(url, border=1).print_ascii(out=out)
