from app.models.appointment import Appointment, AppointmentCreate, AppointmentPublic
from app.models.catalog import Branch, Topic

__all__ = [
    "Appointment",
    "AppointmentCreate",
    "AppointmentPublic",
    "Branch",
    "Topic",
]
