"""Failure taxonomy for the storage services.

Services raise these; ``fileshare.main`` is the only place they become
HTTP responses (``{"error": message}`` with ``status_code``).
"""


class FileShareError(Exception):
    status_code = 500
    message = "Internal server error"

    def __init__(self, detail: str | None = None, message: str | None = None):
        super().__init__(detail or message or self.message)
        if message:
            self.message = message


class ValidationFailure(FileShareError):
    status_code = 400
    message = "Invalid request"


class NotFound(FileShareError):
    status_code = 404
    message = "File not found"


class PayloadTooLarge(FileShareError):
    status_code = 413
    message = "File too large"


class StoreFailure(FileShareError):
    """I/O or database fault. The detail stays in server logs."""
    status_code = 500
    message = "Storage failure"
