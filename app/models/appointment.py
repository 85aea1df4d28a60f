from datetime import UTC, datetime
from uuid import uuid4

from sqlalchemy import DateTime, UniqueConstraint
from sqlmodel import Field, SQLModel


def _utc_naive_now() -> datetime:
    """Naive UTC for TIMESTAMP WITHOUT TIME ZONE columns."""
    return datetime.now(UTC).replace(tzinfo=None)


def new_appointment_id() -> str:
    return f"apt-{uuid4().hex}"


class Appointment(SQLModel, table=True):
    __tablename__ = "appointments"
    # One appointment per branch and slot; the insert is the double-booking guard
    __table_args__ = (UniqueConstraint("branch_id", "slot_start", name="uq_appointments_branch_slot"),)

    id: str = Field(default_factory=new_appointment_id, primary_key=True)
    name: str
    email: str
    topic_id: str = Field(index=True)
    branch_id: str = Field(index=True)
    # Naive columns: branch wall-clock time, seconds zeroed
    slot_start: datetime = Field(sa_type=DateTime(timezone=False), index=True, nullable=False)
    reason: str = ""
    created_at: datetime = Field(default_factory=_utc_naive_now, sa_type=DateTime(timezone=False), nullable=False)


class AppointmentCreate(SQLModel):
    """Raw booking request; every field is checked by the booking pipeline."""

    name: str | None = None
    email: str | None = None
    topic_id: str | None = None
    branch_id: str | None = None
    slot_start: str | None = None
    reason: str | None = None


class AppointmentPublic(SQLModel):
    id: str
    name: str
    email: str
    topic_id: str
    branch_id: str
    slot_start: datetime
    reason: str = ""
    created_at: datetime
