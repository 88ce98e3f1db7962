# routes/core.py
import logging

from flask import Blueprint, Response, current_app, jsonify, request
from werkzeug.exceptions import RequestEntityTooLarge

from ..config import INDEX_HTML_PATH
from ..errors import FileDropError, MultipartParseError, OversizeError

logger = logging.getLogger(__name__)

bp = Blueprint("core", __name__)

# load index HTML file
try:
    with open(INDEX_HTML_PATH, "r", encoding="utf-8") as f:
        INDEX_HTML = f.read()
except OSError:
    INDEX_HTML = "<html><body><h1>index.html missing</h1></body></html>"


@bp.get("/")
def index():
    html = current_app.config.get("INDEX_HTML") or INDEX_HTML
    return Response(html, mimetype="text/html")


@bp.post("/upload")
def upload():
    if request.mimetype != "multipart/form-data":
        raise MultipartParseError("expected a multipart/form-data body")
    boundary = request.mimetype_params.get("boundary")
    if not boundary:
        raise MultipartParseError("missing multipart boundary")

    pipeline = current_app.extensions["filedrop"]
    result = pipeline.handle_stream(request.stream, boundary)
    logger.info("%s from %s: %s", result.message, request.remote_addr, ", ".join(result.files))
    return jsonify(result.to_dict())


@bp.app_errorhandler(FileDropError)
def filedrop_error(e: FileDropError):
    logger.warning("upload from %s failed: %s", request.remote_addr, e.message)
    return jsonify(e.to_dict()), e.status_code


@bp.app_errorhandler(RequestEntityTooLarge)
def too_large(e):
    limit = current_app.config.get("MAX_CONTENT_LENGTH")
    return filedrop_error(OversizeError(f"request body exceeds {limit} bytes"))
