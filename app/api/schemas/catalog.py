from datetime import date, time
from pydantic import BaseModel


class BusinessHoursResponse(BaseModel):
    branch_id: str
    date: date
    closed: bool
    open_time: time | None = None
    close_time: time | None = None
    lunch_start: time | None = None
    lunch_end: time | None = None
