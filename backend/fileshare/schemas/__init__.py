from fileshare.schemas.file import ErrorResponse, FileInfoResponse, HealthResponse, UploadResponse

__all__ = ["ErrorResponse", "FileInfoResponse", "HealthResponse", "UploadResponse"]
