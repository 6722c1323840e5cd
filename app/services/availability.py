# app/services/availability.py
from __future__ import annotations

from datetime import date, time, datetime, timedelta
from typing import Iterable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.db.models import Appointment, APPOINTMENT_SCHEDULED


def slot_template() -> list[time]:
    """Franjas fijas: desde SLOT_START_HOUR (incluida) hasta SLOT_END_HOUR (excluida)."""
    step = timedelta(minutes=settings.slot_minutes)
    current = datetime.combine(date.min, time(settings.slot_start_hour))
    end = datetime.combine(date.min, time(0)) + timedelta(hours=settings.slot_end_hour)

    slots = []
    while current < end:
        slots.append(current.time())
        current += step
    return slots


def open_slots(booked: Iterable[time]) -> list[time]:
    # Igualdad exacta; se conserva el orden de la plantilla
    taken = set(booked)
    return [slot for slot in slot_template() if slot not in taken]


async def booked_times(session: AsyncSession, day: date) -> list[time]:
    res = await session.execute(
        select(Appointment.appointment_time).where(
            Appointment.appointment_date == day,
            Appointment.status == APPOINTMENT_SCHEDULED,
        )
    )
    return list(res.scalars().all())


async def available_slots(session: AsyncSession, day: date) -> list[time]:
    """No filtra fines de semana: eso se comprueba antes de llamar aquí."""
    return open_slots(await booked_times(session, day))
