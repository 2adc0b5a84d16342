import uuid
from datetime import date, time
from pydantic import BaseModel, Field, model_validator

class _WindowIn(BaseModel):
    barber_id: uuid.UUID
    weekday: int = Field(ge=0, le=6)  # 0=Sun..6=Sat
    start_minute: int = Field(ge=0, le=24*60-1)
    end_minute: int = Field(ge=1, le=24*60)

    @model_validator(mode="after")
    def _start_before_end(self):
        if self.start_minute >= self.end_minute:
            raise ValueError("start_minute must be before end_minute")
        return self

class WorkHoursCreate(_WindowIn):
    pass

class WorkHoursOut(WorkHoursCreate):
    id: uuid.UUID
    org_id: uuid.UUID
    class Config: from_attributes = True

class BreakCreate(_WindowIn):
    kind: str = "lunch"
    note: str | None = None

class BreakOut(BreakCreate):
    id: uuid.UUID
    org_id: uuid.UUID
    class Config: from_attributes = True

class ExceptionCreate(BaseModel):
    barber_id: uuid.UUID
    exception_date: date
    is_closed: bool = True
    note: str | None = None

class ExceptionOut(ExceptionCreate):
    id: uuid.UUID
    org_id: uuid.UUID
    class Config: from_attributes = True

class OpenSlotsOut(BaseModel):
    barber_id: uuid.UUID
    slot_date: date
    slot_minutes: int
    slots: list[time]
