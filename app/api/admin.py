# app/api/admin.py
from datetime import datetime, timezone
from pathlib import Path

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.db.models import CREDENTIAL_COMPLETED
from app.db.session import get_session
from app.services.booking import list_appointments
from app.services.credentials import list_credentials

router = APIRouter()
templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent.parent / "templates"))


def _base_context() -> dict:
    # Datos de referencia (cuentas, contactos...) vienen de REPORT_REFERENCE, no del código
    return {
        "title": settings.report_title,
        "reference": settings.report_reference,
        "generated_at": datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M UTC"),
    }


@router.get("/credentials", response_class=HTMLResponse)
async def credentials_report(request: Request, s: AsyncSession = Depends(get_session)):
    creds = await list_credentials(s)
    completed = sum(1 for c in creds if c.status == CREDENTIAL_COMPLETED)
    return templates.TemplateResponse(
        request,
        "admin/credentials.html",
        {**_base_context(), "credentials": creds, "completed": completed, "total": len(creds)},
    )


@router.get("/appointments", response_class=HTMLResponse)
async def appointments_report(request: Request, s: AsyncSession = Depends(get_session)):
    rows = await list_appointments(s)
    return templates.TemplateResponse(
        request,
        "admin/appointments.html",
        {**_base_context(), "rows": rows},
    )
