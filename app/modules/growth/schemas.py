import uuid
from datetime import date, time, datetime
from decimal import Decimal
from typing import Literal
from pydantic import BaseModel

class SyncSummaryOut(BaseModel):
    tenants_processed: int
    errors: int
    warnings: int = 0
    started_at: datetime | None = None
    finished_at: datetime | None = None

class EmptySlotOut(BaseModel):
    id: uuid.UUID
    barber_id: uuid.UUID
    slot_date: date
    slot_time: time
    status: Literal["open", "notified", "filled"]
    class Config: from_attributes = True

class ClientBehaviorOut(BaseModel):
    id: uuid.UUID
    client_id: uuid.UUID
    client_name: str | None = None
    client_phone: str | None = None
    total_appointments: int
    completed: int
    cancelled: int
    no_show: int
    cancel_rate: float
    classification: Literal["normal", "at_risk", "blocked"]
    last_appointment_date: date | None = None
    class Config: from_attributes = True

class ReactivationEntryOut(BaseModel):
    id: uuid.UUID
    client_id: uuid.UUID
    client_name: str | None = None
    client_phone: str | None = None
    days_inactive: int
    last_appointment_date: date | None = None
    status: Literal["pending", "sent", "returned"]
    class Config: from_attributes = True

class MoneyLostAlertOut(BaseModel):
    id: uuid.UUID
    alert_date: date
    empty_slots_count: int
    cancellations_count: int
    no_shows_count: int
    estimated_loss: Decimal
    cancel_rate: float
    is_critical: bool
    is_dismissed: bool
    class Config: from_attributes = True

class BarberScoreOut(BaseModel):
    id: uuid.UUID
    barber_id: uuid.UUID
    total_appointments: int
    completed_appointments: int
    canceled_appointments: int
    no_show_clients: int
    revenue: Decimal
    cancel_rate: float
    score: int
    class Config: from_attributes = True
