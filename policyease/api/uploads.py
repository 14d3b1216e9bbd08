"""
Upload validation for document analysis.

Only pdf, txt and md files up to the configured size reach the composer; the
pipeline itself assumes these checks already passed.
"""

import logging
from pathlib import Path

from fastapi import HTTPException, UploadFile, status

from policyease.agent.schemas.requests import Attachment

logger = logging.getLogger(__name__)

ALLOWED_TYPES = {
    ".pdf": "application/pdf",
    ".txt": "text/plain",
    ".md": "text/markdown",
}
CHUNK_SIZE = 1024 * 1024  # 1MB


def resolve_mime_type(filename: str | None, content_type: str | None) -> str:
    """Media type from the extension, falling back to the declared content type."""
    ext = Path(filename or "").suffix.lower()
    if ext in ALLOWED_TYPES:
        return ALLOWED_TYPES[ext]
    declared = (content_type or "").split(";")[0].strip().lower()
    if declared in ALLOWED_TYPES.values():
        return declared
    raise HTTPException(
        status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
        detail=f"File type not allowed. Allowed types: {', '.join(ALLOWED_TYPES)}",
    )


async def read_attachment(file: UploadFile, max_bytes: int) -> Attachment:
    """Validate an upload and return it as an `Attachment`."""
    mime_type = resolve_mime_type(file.filename, file.content_type)

    data = bytearray()
    try:
        while True:
            chunk = await file.read(CHUNK_SIZE)
            if not chunk:
                break
            data.extend(chunk)
            if len(data) > max_bytes:
                raise HTTPException(
                    status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                    detail=f"File too large. Maximum size: {max_bytes / (1024 * 1024):.0f}MB",
                )
    finally:
        await file.close()

    if not data:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Uploaded file is empty")

    logger.debug(f"Accepted upload {file.filename} ({len(data)} bytes, {mime_type})")
    return Attachment(mime_type=mime_type, data=bytes(data), filename=Path(file.filename or "").name or None)
