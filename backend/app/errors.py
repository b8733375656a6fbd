"""Storage error taxonomy.

Each error carries a stable ``kind`` and the HTTP status it maps to.
Routes let these propagate; the handler registered in ``app.main`` renders
them as ``{"error": kind, "detail": message}``.
"""


class StorageError(Exception):
    """Base class for all storage pipeline failures."""

    kind = "storage_error"
    status_code = 500
    default_message = "Storage error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class PayloadTooLarge(StorageError):
    kind = "payload_too_large"
    status_code = 413
    default_message = "File exceeds the maximum allowed size"


class UnsupportedType(StorageError):
    kind = "unsupported_type"
    status_code = 415
    default_message = "File type is not allowed"


class NotFound(StorageError):
    kind = "not_found"
    status_code = 404
    default_message = "File not found"


class StorageBackendError(StorageError):
    kind = "storage_backend_error"
    status_code = 500
    default_message = "Failed to store file"
