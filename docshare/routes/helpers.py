# docshare/routes/helpers.py
from flask import current_app, jsonify, request

from docshare.errors import DocShareError
from docshare.services.render_pipeline import PyMuPdfRenderer
from docshare.storage.blob_storage import BlobStorage


def current_blob_storage() -> BlobStorage:
    return current_app.extensions["blob_storage"]


def current_renderer():
    renderer = current_app.extensions.get("pdf_renderer")
    if renderer is None:
        renderer = PyMuPdfRenderer()
        current_app.extensions["pdf_renderer"] = renderer
    return renderer


def error_response(error: DocShareError):
    """{error, kind} JSON with the status code attached to the error."""
    return jsonify(error.to_dict()), error.status_code


def bad_request(message: str):
    return jsonify({"error": message}), 400


def share_url(file_id: str) -> str:
    """Link to the document page; PUBLIC_BASE_URL wins over the request host."""
    base = current_app.config.get("PUBLIC_BASE_URL") or request.host_url
    return f"{base.rstrip('/')}/file/{file_id}"
