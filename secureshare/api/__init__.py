"""
SecureShare REST API

Upload, download, info and delete endpoints with OpenAPI/Swagger documentation.
"""

from flask import Blueprint
from flask_restx import Api

api_bp = Blueprint("api", __name__, url_prefix="/api")

api = Api(
    api_bp,
    version="1.0",
    title="SecureShare API",
    description="Temporary storage for client-side encrypted files",
    doc="/docs",  # Swagger UI will be available at /api/docs
    license="MIT",
)

# Import namespaces after api is created to avoid circular imports
from .namespaces import download_ns, files_ns, info_ns, upload_ns  # noqa: E402

api.add_namespace(upload_ns, path="/upload")
api.add_namespace(download_ns, path="/download")
api.add_namespace(info_ns, path="/info")
api.add_namespace(files_ns, path="/files")


from werkzeug.exceptions import RequestEntityTooLarge  # noqa: E402

from .namespaces import too_large_response  # noqa: E402


@api.errorhandler(RequestEntityTooLarge)
def handle_request_too_large(error):
    """Body exceeded MAX_CONTENT_LENGTH before reaching a handler."""
    return too_large_response()
