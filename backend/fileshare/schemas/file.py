"""File response schemas. Field names follow the public JSON contract."""
from datetime import datetime

from fileshare.schemas.base import CamelModel


class UploadResponse(CamelModel):
    success: bool = True
    message: str = "File uploaded successfully"
    url: str
    filename: str
    original_name: str
    size: int
    mimetype: str


class FileInfoResponse(CamelModel):
    original_name: str
    filename: str
    mimetype: str
    size: int
    upload_date: datetime


class HealthResponse(CamelModel):
    status: str = "OK"
    timestamp: datetime


class ErrorResponse(CamelModel):
    error: str
