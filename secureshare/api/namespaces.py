"""
API Namespaces - Organized endpoint groups
"""

from urllib.parse import quote

from flask import current_app, request, send_file
from flask_restx import Namespace, Resource

from ..application.rate_limit_service import DOWNLOAD_SCOPE, UPLOAD_SCOPE
from ..domain.errors import (
    ErrorCategory,
    NotFoundError,
    PayloadTooLargeError,
    StorageError,
    ValidationError,
    create_error_response,
)
from ..domain.file_storage.entities import DEFAULT_ORIGINAL_NAME
from .models import error_response, file_info_response, upload_parser, upload_response
from .rate_limit_decorator import rate_limit

# Characters kept verbatim in the X-Original-Mimetype header
_MEDIA_TYPE_SAFE = "/;=+-._ "


def too_large_response():
    """413 body naming the configured cap."""
    label = current_app.config.get("SECURESHARE_MAX_UPLOAD_LABEL", "")
    return create_error_response(
        ErrorCategory.FILE_TOO_LARGE,
        status_code=413,
        message=f"File too large (max {label})" if label else None,
    )


def _not_found_response():
    return create_error_response(ErrorCategory.FILE_NOT_FOUND, status_code=404)


def _download_name(original_name: str) -> str:
    # Control characters would break the Content-Disposition header
    name = "".join(ch for ch in original_name if ch.isprintable())
    return name or DEFAULT_ORIGINAL_NAME


# =============================================================================
# Upload Namespace
# =============================================================================

upload_ns = Namespace("upload", description="Store an encrypted file")


@upload_ns.route("")
class Upload(Resource):
    """Accept one payload and return its identifier"""

    @upload_ns.doc("upload_file")
    @upload_ns.expect(upload_parser)
    @upload_ns.response(200, "Success", upload_response)
    @upload_ns.response(400, "No File Uploaded", error_response)
    @upload_ns.response(413, "File Too Large", error_response)
    @upload_ns.response(429, "Too Many Requests", error_response)
    @rate_limit(UPLOAD_SCOPE)
    def post(self):
        """
        Upload a file

        Expects multipart/form-data with the payload in the "file" field.
        The optional "originalName" and "mimeType" fields are stored as given
        and echoed back on download.
        """
        upload = request.files.get("file")
        if upload is None:
            return create_error_response(
                ErrorCategory.INVALID_REQUEST, "Missing 'file' part", status_code=400
            )

        original_name = request.form.get("originalName") or None
        media_type = request.form.get("mimeType") or None

        try:
            descriptor = current_app.transfer_service.ingest(
                upload.stream, original_name=original_name, media_type=media_type
            )
        except PayloadTooLargeError:
            return too_large_response()
        except ValidationError as e:
            return create_error_response(
                ErrorCategory.INVALID_REQUEST, str(e), status_code=400
            )
        except Exception as e:
            current_app.logger.exception(f"Upload failed: {str(e)}")
            return create_error_response(
                ErrorCategory.UPLOAD_FAILED, str(e), status_code=500
            )
        finally:
            upload.close()

        return {
            "fileId": descriptor.file_id.value,
            "message": "File uploaded successfully",
        }, 200


# =============================================================================
# Download Namespace
# =============================================================================

download_ns = Namespace("download", description="Retrieve an encrypted file")


@download_ns.route("/<string:file_id>")
@download_ns.param("file_id", "The file identifier")
class Download(Resource):
    """Stream a stored payload"""

    @download_ns.doc("download_file")
    @download_ns.produces(["application/octet-stream"])
    @download_ns.response(200, "Payload bytes")
    @download_ns.response(404, "File Not Found", error_response)
    @download_ns.response(429, "Too Many Requests", error_response)
    @rate_limit(DOWNLOAD_SCOPE)
    def get(self, file_id):
        """
        Download a file

        The payload is returned as application/octet-stream. The display
        name and declared type travel in X-Original-Filename (percent-encoded)
        and X-Original-Mimetype.
        """
        try:
            descriptor, stream = current_app.transfer_service.fetch(file_id)
        except NotFoundError:
            return _not_found_response()
        except StorageError as e:
            current_app.logger.exception(f"Download failed: {str(e)}")
            return create_error_response(
                ErrorCategory.DOWNLOAD_FAILED, str(e), status_code=500
            )

        try:
            response = send_file(
                stream,
                mimetype="application/octet-stream",
                as_attachment=True,
                download_name=_download_name(descriptor.original_name),
                conditional=False,
                etag=False,
                max_age=0,
            )
        except Exception:
            stream.close()
            raise

        response.content_length = descriptor.size_bytes
        response.headers["X-Original-Filename"] = quote(descriptor.original_name, safe="")
        response.headers["X-Original-Mimetype"] = quote(
            descriptor.media_type, safe=_MEDIA_TYPE_SAFE
        )
        return response


# =============================================================================
# Info Namespace
# =============================================================================

info_ns = Namespace("info", description="File metadata")


@info_ns.route("/<string:file_id>")
@info_ns.param("file_id", "The file identifier")
class FileInfo(Resource):
    """Metadata lookup without touching the payload"""

    @info_ns.doc("get_file_info")
    @info_ns.response(200, "Success", file_info_response)
    @info_ns.response(404, "File Not Found", error_response)
    def get(self, file_id):
        """Get file metadata"""
        try:
            descriptor = current_app.transfer_service.describe(file_id)
        except NotFoundError:
            return _not_found_response()

        return descriptor.to_public_dict(), 200


# =============================================================================
# Files Namespace
# =============================================================================

files_ns = Namespace("files", description="File management operations")


@files_ns.route("/<string:file_id>")
@files_ns.param("file_id", "The file identifier")
class StoredFile(Resource):
    """Early removal"""

    @files_ns.doc("delete_file")
    @files_ns.response(204, "File Deleted")
    @files_ns.response(404, "File Not Found", error_response)
    @files_ns.response(429, "Too Many Requests", error_response)
    @rate_limit(DOWNLOAD_SCOPE)
    def delete(self, file_id):
        """
        Delete a file before it expires

        Removal is idempotent: a second delete of the same id returns 404.
        """
        try:
            deleted = current_app.transfer_service.delete(file_id)
        except StorageError as e:
            current_app.logger.exception(f"Delete failed for {file_id[:8]}: {str(e)}")
            return create_error_response(
                ErrorCategory.SYSTEM_ERROR, str(e), status_code=500
            )

        if not deleted:
            return _not_found_response()
        return "", 204
