"""
Storage of uploaded cover images and PDFs.

Files are written under ``<upload_dir>/covers`` or ``<upload_dir>/pdfs``
with a random uuid4 filename that keeps the original extension. They
are served back read-only from ``/api/static``.
"""

from __future__ import annotations

import logging
import os
import uuid
from pathlib import Path
from typing import Dict, Optional

from fastapi import UploadFile


logger = logging.getLogger(__name__)

COVER = "cover"
PDF = "pdf"

ALLOWED_TYPES: Dict[str, frozenset] = {
    COVER: frozenset({"image/jpeg", "image/jpg", "image/png", "image/gif"}),
    PDF: frozenset({"application/pdf"}),
}

SUBDIRS = {COVER: "covers", PDF: "pdfs"}


class UploadError(ValueError):
    """An uploaded file was rejected (wrong type or too large)."""


def static_url(kind: str, filename: str) -> str:
    return f"/api/static/{SUBDIRS[kind]}/{filename}"


def check_upload(upload: Optional[UploadFile], kind: str) -> None:
    """Reject a missing file or one whose MIME type is not allowed for ``kind``."""
    if upload is None or not upload.filename:
        raise UploadError("Both cover and PDF are required")
    if upload.content_type not in ALLOWED_TYPES[kind]:
        raise UploadError(
            f"Invalid file type for {kind}: {upload.content_type}. "
            "Only images and PDFs are allowed."
        )


def read_upload(upload: Optional[UploadFile], kind: str, max_size: int) -> bytes:
    """Check type and size of ``upload`` and return its contents.

    Nothing is written to disk here, so every file of a request can be
    checked before any of them is stored.
    """
    check_upload(upload, kind)
    data = upload.file.read(max_size + 1)
    if len(data) > max_size:
        raise UploadError(f"File too large: {upload.filename} exceeds {max_size} bytes")
    return data


def write_upload(data: bytes, original_name: str, kind: str, upload_dir: Path) -> str:
    """Store already-checked upload bytes and return the generated filename."""
    ext = os.path.splitext(original_name or "")[1].lower()
    filename = f"{uuid.uuid4()}{ext}"
    target_dir = Path(upload_dir) / SUBDIRS[kind]
    target_dir.mkdir(parents=True, exist_ok=True)
    (target_dir / filename).write_bytes(data)
    logger.info("Stored %s upload %s as %s (%d bytes)", kind, original_name, filename, len(data))
    return filename
