# app/services/booking.py
from __future__ import annotations

from datetime import date, time, datetime, timedelta
from zoneinfo import ZoneInfo

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.errors import ValidationError, ConflictError, StorageError
from app.core.logger import logger
from app.db.models import Appointment, Credential, APPOINTMENT_SCHEDULED
from app.services.availability import slot_template

WEEKDAY_ONLY_MSG = "Appointments are only available Monday-Friday"
SLOT_TAKEN_MSG = "This time slot is no longer available"

# Orden de validación: primero los campos de contacto, luego fecha y hora
_CONTACT_FIELDS = (
    ("name", "Name"),
    ("company_name", "Company name"),
    ("email", "Email"),
)


def business_today() -> date:
    return datetime.now(ZoneInfo(settings.business_timezone)).date()


def parse_date(value) -> date:
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip())
    except ValueError:
        raise ValidationError("Invalid date format, expected YYYY-MM-DD")


def parse_time(value) -> time:
    if isinstance(value, time):
        return value
    try:
        return time.fromisoformat(str(value).strip())
    except ValueError:
        raise ValidationError("Invalid time format, expected HH:MM:SS")


def ensure_weekday(day: date) -> None:
    # weekday(): lunes=0 ... domingo=6
    if day.weekday() >= 5:
        raise ValidationError(WEEKDAY_ONLY_MSG)


def ensure_in_window(day: date, today: date) -> None:
    # Ambos extremos incluidos: [mañana, hoy + BOOKING_WINDOW_DAYS]
    first_day = today + timedelta(days=1)
    last_day = today + timedelta(days=settings.booking_window_days)
    if not (first_day <= day <= last_day):
        raise ValidationError(
            f"Appointment date must be between {first_day.isoformat()} and {last_day.isoformat()}"
        )


def _required(value, label: str) -> str:
    if value is None or not str(value).strip():
        raise ValidationError(f"{label} is required")
    return str(value).strip()


async def _slot_taken(session: AsyncSession, day: date, slot: time) -> bool:
    res = await session.execute(
        select(Appointment.id).where(
            Appointment.appointment_date == day,
            Appointment.appointment_time == slot,
            Appointment.status == APPOINTMENT_SCHEDULED,
        )
    )
    return res.first() is not None


async def book_appointment(
    session: AsyncSession,
    *,
    credential_id: int | None,
    name,
    company_name,
    email,
    appointment_date,
    appointment_time,
    today: date | None = None,
) -> Appointment:
    """
    Reserva una franja para un contacto.

    La consulta previa solo da un error rápido; la garantía real es el índice
    único parcial sobre (fecha, hora) de citas 'scheduled'. Si dos reservas
    concurrentes pasan la consulta, la segunda falla en el INSERT y se
    devuelve el mismo conflicto.
    """
    submitted = {"name": name, "company_name": company_name, "email": email}
    contact = {field: _required(submitted.get(field), label) for field, label in _CONTACT_FIELDS}

    if appointment_date is None or not str(appointment_date).strip():
        raise ValidationError("Appointment date is required")
    if appointment_time is None or not str(appointment_time).strip():
        raise ValidationError("Appointment time is required")

    day = parse_date(appointment_date)
    slot = parse_time(appointment_time)

    ensure_weekday(day)
    ensure_in_window(day, today or business_today())

    if slot not in slot_template():
        raise ValidationError(f"{slot.isoformat()} is not a bookable time slot")

    if await _slot_taken(session, day, slot):
        logger.info(f"Slot {day} {slot} already booked, rejecting")
        raise ConflictError(SLOT_TAKEN_MSG)

    appt = Appointment(
        credential_id=credential_id,
        appointment_date=day,
        appointment_time=slot,
        status=APPOINTMENT_SCHEDULED,
        **contact,
    )
    session.add(appt)
    try:
        await session.commit()
    except IntegrityError:
        await session.rollback()
        logger.warning(f"Concurrent booking lost the race for {day} {slot}")
        raise ConflictError(SLOT_TAKEN_MSG)
    except SQLAlchemyError as e:
        await session.rollback()
        raise StorageError("Failed to book appointment") from e

    logger.info(f"Appointment {appt.id} booked for {contact['company_name']} on {day} at {slot}")
    return appt


async def list_appointments(session: AsyncSession) -> list[tuple[Appointment, str | None]]:
    """Todas las citas, las más recientes primero, con el nombre de la credencial."""
    res = await session.execute(
        select(Appointment, Credential.name)
        .outerjoin(Credential, Appointment.credential_id == Credential.id)
        .order_by(Appointment.appointment_date.desc(), Appointment.appointment_time.desc())
    )
    return [(appt, cred_name) for appt, cred_name in res.all()]
