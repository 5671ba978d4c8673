"""
API Models for request parsing and Swagger documentation
"""

from flask_restx import fields, reqparse
from werkzeug.datastructures import FileStorage

from . import api

# =============================================================================
# Request Parsers
# =============================================================================

upload_parser = reqparse.RequestParser()
upload_parser.add_argument(
    "file",
    location="files",
    type=FileStorage,
    required=True,
    help="Encrypted payload",
)
upload_parser.add_argument(
    "originalName",
    location="form",
    type=str,
    required=False,
    help="Display name returned on download",
)
upload_parser.add_argument(
    "mimeType",
    location="form",
    type=str,
    required=False,
    help="Declared content type returned on download",
)

# =============================================================================
# Response Models
# =============================================================================

upload_response = api.model(
    "UploadResponse",
    {
        "fileId": fields.String(
            description="32 lowercase hex characters",
            example="3f2a9c0e8b7d4f1a6e5c2b9d0a8f7e6c",
        ),
        "message": fields.String(example="File uploaded successfully"),
    },
)

file_info_response = api.model(
    "FileInfoResponse",
    {
        "originalName": fields.String(description="Display name given at upload"),
        "uploadDate": fields.String(description="Upload time (ISO timestamp)"),
        "size": fields.Integer(description="Stored size in bytes"),
        "mimeType": fields.String(description="Declared content type"),
        "expiresAt": fields.String(description="Expiry time (ISO timestamp)"),
    },
)

error_response = api.model(
    "ErrorResponse",
    {
        "error": fields.String(description="Error message"),
        "category": fields.String(description="Error category", allow_null=True),
        "title": fields.String(description="Short error title", allow_null=True),
        "action": fields.String(description="Suggested next step", allow_null=True),
    },
)
