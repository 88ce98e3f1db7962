# app.py
from typing import Optional

from flask import Flask

from .config import APP_TITLE
from .pipeline import UploadPipeline
from .routes import register_routes


def create_app(pipeline: UploadPipeline, index_html: Optional[str] = None) -> Flask:
    """Flask app serving the upload page and feeding POST /upload into ``pipeline``."""
    app = Flask(__name__)
    # bodies above the cap are refused on Content-Length before a part is read
    app.config.update(
        MAX_CONTENT_LENGTH=pipeline.max_request_bytes,
        APP_TITLE=APP_TITLE,
        INDEX_HTML=index_html,
    )
    app.extensions["filedrop"] = pipeline

    # register all blueprints
    register_routes(app)
    return app
