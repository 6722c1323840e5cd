# app/db/models.py
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy import String, Text, Integer, DateTime, Date, Time, Index, text
from datetime import datetime, date, time, timezone

CREDENTIAL_NEEDED = "needed"
CREDENTIAL_COMPLETED = "completed"
APPOINTMENT_SCHEDULED = "scheduled"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class Credential(Base):
    __tablename__ = "credentials"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), unique=True)
    description: Mapped[str | None] = mapped_column(Text)
    instructions: Mapped[str | None] = mapped_column(Text)

    # needed -> completed, nunca al revés
    status: Mapped[str] = mapped_column(String(50), default=CREDENTIAL_NEEDED)
    credential_data: Mapped[str | None] = mapped_column(Text)
    file_path: Mapped[str | None] = mapped_column(String(500))
    file_type: Mapped[str | None] = mapped_column(String(100))

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)


class Appointment(Base):
    __tablename__ = "appointments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    # Referencia informativa: no es FK, puede apuntar a una credencial inexistente
    credential_id: Mapped[int | None] = mapped_column(Integer)

    name: Mapped[str] = mapped_column(String(255))
    company_name: Mapped[str] = mapped_column(String(255))
    email: Mapped[str] = mapped_column(String(255))

    appointment_date: Mapped[date] = mapped_column(Date)
    appointment_time: Mapped[time] = mapped_column(Time)
    status: Mapped[str] = mapped_column(String(50), default=APPOINTMENT_SCHEDULED)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)

    __table_args__ = (
        # Una sola cita activa por franja; la BD es quien decide el conflicto
        Index(
            "uq_appointments_scheduled_slot",
            "appointment_date",
            "appointment_time",
            unique=True,
            sqlite_where=text("status = 'scheduled'"),
            postgresql_where=text("status = 'scheduled'"),
        ),
    )
