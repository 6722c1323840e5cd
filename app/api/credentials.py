# app/api/credentials.py
from fastapi import APIRouter, Depends, File, Form, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models import Credential
from app.db.session import get_session
from app.services import credentials as svc

router = APIRouter()


def credential_out(c: Credential) -> dict:
    return {
        "id": c.id,
        "name": c.name,
        "description": c.description,
        "instructions": c.instructions,
        "status": c.status,
        "credential_data": c.credential_data,
        "file_path": c.file_path,
        "file_type": c.file_type,
        "created_at": c.created_at.isoformat() if c.created_at else None,
        "updated_at": c.updated_at.isoformat() if c.updated_at else None,
    }


@router.get("")
async def list_credentials(s: AsyncSession = Depends(get_session)):
    return [credential_out(c) for c in await svc.list_credentials(s)]


@router.get("/{credential_id}")
async def get_credential(credential_id: int, s: AsyncSession = Depends(get_session)):
    return credential_out(await svc.get_credential(s, credential_id))


@router.post("/{credential_id}/upload")
async def upload_credential(
    credential_id: int,
    credential_text: str | None = Form(None),
    file: UploadFile | None = File(None),
    s: AsyncSession = Depends(get_session),
):
    cred = await svc.fulfill_credential(s, credential_id, text=credential_text, upload=file)
    return credential_out(cred)
