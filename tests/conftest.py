"""
Shared pytest fixtures for the file drop tests.

Provides:
- Isolated upload directories and usage counters
- A pipeline and Flask test client bound to them
- Helpers for building multipart bodies
"""

import json
import socket
import urllib.request
from io import BytesIO

import pytest
from werkzeug.datastructures import FileStorage, MultiDict
from werkzeug.test import encode_multipart

from filedrop.app import create_app
from filedrop.counters import UsageCounters
from filedrop.pipeline import UploadPipeline


def multipart_body(files, boundary="----filedrop-test-boundary"):
    """Encode ``[(filename, bytes), ...]`` as one multipart body of ``files`` fields."""
    values = MultiDict(
        ("files", FileStorage(stream=BytesIO(content), filename=name, name="files"))
        for name, content in files
    )
    return encode_multipart(values, boundary=boundary)


def file_fields(files):
    """Form data for the Flask test client: ``{"files": [(stream, name), ...]}``."""
    return {"files": [(BytesIO(content), name) for name, content in files]}


def post_files(port, files):
    """POST ``files`` to a live server on 127.0.0.1; returns (status, json body)."""
    boundary, body = multipart_body(files)
    req = urllib.request.Request(
        f"http://127.0.0.1:{port}/upload",
        data=body,
        headers={"Content-Type": f"multipart/form-data; boundary={boundary}"},
        method="POST",
    )
    with urllib.request.urlopen(req, timeout=5) as resp:
        return resp.status, json.loads(resp.read())


def accepts_connections(port):
    try:
        with socket.create_connection(("127.0.0.1", port), timeout=1):
            return True
    except OSError:
        return False


@pytest.fixture
def upload_dir(tmp_path):
    path = tmp_path / "uploads"
    path.mkdir()
    return path


@pytest.fixture
def counters():
    return UsageCounters()


@pytest.fixture
def pipeline(upload_dir, counters):
    return UploadPipeline(upload_dir, counters)


@pytest.fixture
def app(pipeline):
    app = create_app(pipeline)
    app.config.update(TESTING=True)
    return app


@pytest.fixture
def client(app):
    return app.test_client()
