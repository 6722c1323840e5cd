# app/api/appointments.py
from typing import Any

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import ValidationError
from app.db.models import Appointment
from app.db.session import get_session
from app.services.availability import available_slots
from app.services.booking import book_appointment, ensure_weekday, list_appointments, parse_date

router = APIRouter()


class BookingInput(BaseModel):
    # Todo opcional: los mensajes de "campo obligatorio" los da el servicio
    credential_id: int | None = None
    name: Any = None
    company_name: Any = None
    email: Any = None
    appointment_date: Any = None
    appointment_time: Any = None


def appointment_out(a: Appointment) -> dict:
    return {
        "id": a.id,
        "credential_id": a.credential_id,
        "name": a.name,
        "company_name": a.company_name,
        "email": a.email,
        "appointment_date": a.appointment_date.isoformat(),
        "appointment_time": a.appointment_time.strftime("%H:%M:%S"),
        "status": a.status,
        "created_at": a.created_at.isoformat() if a.created_at else None,
    }


@router.get("/available")
async def get_available(date: str | None = Query(None), s: AsyncSession = Depends(get_session)):
    if not date or not date.strip():
        raise ValidationError("Query parameter 'date' is required")
    day = parse_date(date)
    ensure_weekday(day)
    slots = await available_slots(s, day)
    return {"available": [slot.strftime("%H:%M:%S") for slot in slots]}


@router.post("")
async def create_appointment(body: BookingInput, s: AsyncSession = Depends(get_session)):
    appt = await book_appointment(
        s,
        credential_id=body.credential_id,
        name=body.name,
        company_name=body.company_name,
        email=body.email,
        appointment_date=body.appointment_date,
        appointment_time=body.appointment_time,
    )
    return appointment_out(appt)


@router.get("")
async def get_appointments(s: AsyncSession = Depends(get_session)):
    rows = await list_appointments(s)
    return [{**appointment_out(a), "credential_name": cred_name} for a, cred_name in rows]
