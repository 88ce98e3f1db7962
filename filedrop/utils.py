# utils.py
import errno
import re
import uuid
from pathlib import Path
from typing import BinaryIO, Optional, Tuple

from .config import MAX_NAME_ATTEMPTS, MAX_NAME_LENGTH

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]")


def sanitize_filename(name: str) -> str:
    """Keep only [A-Za-z0-9._-]; fall back to a generated name when nothing usable is left."""
    base = _UNSAFE_CHARS.sub("", name or "")[:MAX_NAME_LENGTH]
    # "." and ".." would resolve to the directory itself or its parent
    if not base.strip("."):
        return f"upload-{uuid.uuid4().hex}"
    return base


def split_name(name: str) -> Tuple[str, Optional[str]]:
    """Split at the last dot. A lone leading dot (".bashrc") is not an extension."""
    stem, dot, ext = name.rpartition(".")
    if not dot or not stem:
        return name, None
    return stem, ext


def _suffixed_name(stem: str, ext: Optional[str], counter: int) -> str:
    tail = f"_{counter}" if ext is None else f"_{counter}.{ext}"
    if len(tail) >= MAX_NAME_LENGTH:
        # the extension alone fills the limit, so suffix the whole name instead
        stem, tail = f"{stem}.{ext}", f"_{counter}"
    return stem[: MAX_NAME_LENGTH - len(tail)] + tail


def resolve_unique_path(directory: Path, name: str) -> Path:
    """First of name, stem_1.ext, stem_2.ext, ... that does not exist yet.

    The stem is shortened so a suffixed name never exceeds MAX_NAME_LENGTH.
    Only a fast-path probe; create_unique_file is what actually claims the name.
    """
    candidate = directory / name
    if not candidate.exists():
        return candidate
    stem, ext = split_name(name)
    counter = 1
    while True:
        candidate = directory / _suffixed_name(stem, ext, counter)
        if not candidate.exists():
            return candidate
        counter += 1


def create_unique_file(directory: Path, name: str, attempts: int = MAX_NAME_ATTEMPTS) -> Tuple[Path, BinaryIO]:
    """Open a new file for writing without ever truncating an existing one.

    A concurrent upload may claim the probed name first; exclusive creation
    fails then and the name is probed again.
    """
    for _ in range(attempts):
        path = resolve_unique_path(directory, name)
        try:
            return path, open(path, "xb")
        except FileExistsError:
            continue
    raise FileExistsError(errno.EEXIST, f"no free name after {attempts} attempts", str(directory / name))


def format_bytes(num: int) -> str:
    value = float(num)
    for unit in ["B", "KB", "MB", "GB", "TB"]:
        if value < 1024.0:
            return f"{value:.1f} {unit}"
        value /= 1024.0
    return f"{value:.1f} PB"
