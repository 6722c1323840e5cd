# app/services/credentials.py
from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

from fastapi import UploadFile
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import NotFoundError, ValidationError, StorageError
from app.core.logger import logger
from app.db.models import Credential, CREDENTIAL_COMPLETED
from app.services.uploads import has_file, save_upload

NO_DATA_MSG = "No credential data provided (send a file or non-blank text)"


async def list_credentials(session: AsyncSession) -> list[Credential]:
    res = await session.execute(select(Credential).order_by(Credential.id.asc()))
    return list(res.scalars().all())


async def get_credential(session: AsyncSession, credential_id: int) -> Credential:
    cred = await session.get(Credential, credential_id)
    if not cred:
        raise NotFoundError("Credential not found")
    return cred


async def fulfill_credential(
    session: AsyncSession,
    credential_id: int,
    text: str | None = None,
    upload: UploadFile | None = None,
) -> Credential:
    """
    Marca la credencial como completada con el texto o el fichero recibido.

    Si llega fichero, gana sobre el texto. Sobrescribe siempre lo anterior
    (sin histórico). Un id inexistente da NotFoundError antes de escribir nada.
    """
    cred = await get_credential(session, credential_id)

    stored = None
    if has_file(upload):
        stored = await save_upload(upload)
        cred.credential_data = f"File uploaded: {stored.original_name}"
        cred.file_path = stored.path
        cred.file_type = stored.content_type
    elif text is not None and text.strip():
        cred.credential_data = text
        cred.file_path = None
        cred.file_type = None
    else:
        raise ValidationError(NO_DATA_MSG)

    cred.status = CREDENTIAL_COMPLETED
    cred.updated_at = datetime.now(timezone.utc)

    try:
        await session.commit()
    except SQLAlchemyError as e:
        await session.rollback()
        # Sin fila que lo referencie, el fichero sobra
        if stored:
            Path(stored.path).unlink(missing_ok=True)
        raise StorageError("Failed to upload credential") from e

    logger.info(f"Credential {cred.id} ('{cred.name}') fulfilled via {'file' if cred.file_path else 'text'}")
    return cred
