from datetime import datetime
from pydantic import BaseModel, field_validator


class SlotInfo(BaseModel):
    start: datetime
    end: datetime
    available: bool


class BookAppointmentRequest(BaseModel):
    name: str | None = None
    email: str | None = None
    topic_id: str | None = None
    branch_id: str | None = None
    slot_start: str | None = None  # ISO 8601, e.g. 2026-02-07T09:30:00
    reason: str | None = None

    @field_validator("topic_id", "branch_id", mode="before")
    @classmethod
    def _ids_as_strings(cls, value: object) -> object:
        # Catalog ids may arrive as JSON numbers
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value


class DeleteAllResponse(BaseModel):
    deleted: int


class ConfirmationQueuedResponse(BaseModel):
    appointment_id: str
    email_enabled: bool


class ErrorResponse(BaseModel):
    detail: str
    kind: str
    timestamp: datetime
