"""File upload, retrieval and info routes."""
import logging
from datetime import datetime, timezone
from typing import AsyncIterator, Optional
from urllib.parse import quote

from fastapi import APIRouter, Request, UploadFile, File as FastAPIFile
from fastapi.responses import StreamingResponse

from fileshare.deps import AppSettings, Blobs, Metadata, Policy
from fileshare.schemas.file import ErrorResponse, FileInfoResponse, UploadResponse
from fileshare.services.blob_store import CHUNK_SIZE
from fileshare.services.errors import NotFound, ValidationFailure
from fileshare.services.key_generator import extension_of, new_key
from fileshare.services.metadata_store import FileRecord

logger = logging.getLogger(__name__)

router = APIRouter(tags=["files"])

DEFAULT_MIME_TYPE = "application/octet-stream"


async def _upload_chunks(upload: UploadFile) -> AsyncIterator[bytes]:
    while chunk := await upload.read(CHUNK_SIZE):
        yield chunk


def content_disposition(filename: str) -> str:
    """Inline disposition keeping the original name readable by browsers."""
    if all(0x20 <= ord(c) < 0x7F for c in filename) and '"' not in filename and "\\" not in filename:
        return f'inline; filename="{filename}"'
    return f"inline; filename*=utf-8''{quote(filename, safe='')}"


@router.post(
    "/upload",
    response_model=UploadResponse,
    responses={400: {"model": ErrorResponse}, 413: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def upload_file(
    request: Request,
    config: AppSettings,
    blobs: Blobs,
    metadata: Metadata,
    policy: Policy,
    file: Optional[UploadFile] = FastAPIFile(None),
):
    """Store one uploaded file and return its shareable URL."""
    if file is None or not file.filename:
        raise ValidationFailure("Upload without a file part", message="No file uploaded")

    original_name = file.filename
    mime_type = file.content_type or DEFAULT_MIME_TYPE
    if not policy.accepts(original_name, mime_type):
        logger.warning(f"Rejected upload {original_name!r}: type {mime_type!r} not accepted")
        raise ValidationFailure(f"Type {mime_type} not accepted", message="File type not allowed")

    key = new_key(extension_of(original_name))
    size = await blobs.write(key, _upload_chunks(file), config.MAX_UPLOAD_BYTES)

    record = FileRecord(
        key=key,
        original_name=original_name,
        mime_type=mime_type,
        size_bytes=size,
        upload_date=datetime.now(timezone.utc),
    )
    await metadata.put(record)
    logger.info(f"Stored {key} ({size} bytes, {mime_type}) for {original_name!r}")

    return UploadResponse(
        url=str(request.url_for("download_file", key=key)),
        filename=key,
        original_name=original_name,
        size=size,
        mimetype=mime_type,
    )


@router.get(
    "/file/{key}",
    name="download_file",
    responses={404: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def download_file(key: str, blobs: Blobs, metadata: Metadata):
    """Stream a stored blob, restoring its content type and filename when known."""
    # Blob presence is authoritative; metadata alone is not retrievable
    if not await blobs.exists(key):
        raise NotFound(f"No blob for {key}")

    record = await metadata.get(key)
    if record is not None:
        headers = {
            "Content-Type": record.mime_type,
            "Content-Disposition": content_disposition(record.original_name),
        }
    else:
        headers = {"Content-Type": DEFAULT_MIME_TYPE}

    chunks = await blobs.open(key)
    return StreamingResponse(chunks, headers=headers)


@router.get("/info/{key}", response_model=FileInfoResponse, responses={404: {"model": ErrorResponse}})
async def get_file_info(key: str, metadata: Metadata):
    """Get file metadata by key."""
    record = await metadata.get(key)
    if record is None:
        raise NotFound(f"No metadata for {key}")
    return FileInfoResponse(
        original_name=record.original_name,
        filename=record.key,
        mimetype=record.mime_type,
        size=record.size_bytes,
        upload_date=record.upload_date,
    )
