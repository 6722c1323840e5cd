# app/services/uploads.py
from __future__ import annotations

import re
import time
import random
from dataclasses import dataclass
from pathlib import Path

from fastapi import UploadFile

from app.core.config import settings
from app.core.errors import ValidationError
from app.core.logger import logger

ALLOWED_TYPES = {
    "application/pdf",
    "text/plain",
    "image/jpeg",
    "image/jpg",
    "image/png",
}

CHUNK_SIZE = 64 * 1024
_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


@dataclass
class StoredUpload:
    path: str
    content_type: str
    original_name: str
    size: int


def has_file(upload: UploadFile | None) -> bool:
    # Un <input type="file"> vacío llega como parte sin nombre
    return upload is not None and bool(upload.filename)


def _safe_name(filename: str) -> str:
    base = Path(filename.replace("\\", "/")).name
    cleaned = _UNSAFE_CHARS.sub("_", base).strip("._")
    return cleaned[:200] or "upload"


def ensure_upload_dir() -> Path:
    target = Path(settings.upload_dir)
    target.mkdir(parents=True, exist_ok=True)
    return target


async def save_upload(upload: UploadFile) -> StoredUpload:
    """
    Guarda el fichero en UPLOAD_DIR con nombre <ms>-<aleatorio>-<original>.
    Tipo fuera de la lista permitida o tamaño > MAX_FILE_SIZE -> ValidationError,
    y en ese caso no queda nada en disco.
    """
    content_type = (upload.content_type or "").split(";")[0].strip().lower()
    if content_type not in ALLOWED_TYPES:
        raise ValidationError("Invalid file type. Only PDF, TXT, and images are allowed.")

    stored_name = f"{int(time.time() * 1000)}-{random.randint(0, 10**9 - 1)}-{_safe_name(upload.filename)}"
    dest = ensure_upload_dir() / stored_name

    size = 0
    too_large = False
    with dest.open("wb") as out:
        while chunk := await upload.read(CHUNK_SIZE):
            size += len(chunk)
            if size > settings.max_file_size:
                too_large = True
                break
            out.write(chunk)

    if too_large:
        dest.unlink(missing_ok=True)
        limit_mb = settings.max_file_size / (1024 * 1024)
        raise ValidationError(f"File too large. Maximum size is {limit_mb:.2f}MB.")

    logger.info(f"Stored upload '{upload.filename}' ({size} bytes) as {dest}")
    return StoredUpload(path=str(dest), content_type=content_type, original_name=upload.filename, size=size)
