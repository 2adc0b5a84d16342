import uuid
from datetime import date, time
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.config import settings
from app.modules.availability.repository import AvailabilityRepository
from app.modules.availability.calendar import WorkCalendar, weekday_of
from app.modules.availability.slots import generate_slots, resolve_open_slots
from app.modules.appointments.repository import AppointmentRepository

class AvailabilityService:
    def __init__(self, s: AsyncSession, *, slot_minutes: int | None = None, honor_breaks: bool | None = None):
        self.s = s
        self.repo = AvailabilityRepository(s)
        self.appts = AppointmentRepository(s)
        self.slot_minutes = slot_minutes or settings.GROWTH_SLOT_MINUTES
        self.honor_breaks = settings.GROWTH_HONOR_BREAKS if honor_breaks is None else honor_breaks

    async def create_work_hours(self, org: uuid.UUID, **data):
        obj = await self.repo.create_work_hours(org, **data)
        await self.s.commit()
        return obj

    async def create_break(self, org: uuid.UUID, **data):
        obj = await self.repo.create_break(org, **data)
        await self.s.commit()
        return obj

    async def create_exception(self, org: uuid.UUID, **data):
        obj = await self.repo.create_exception(org, **data)
        await self.s.commit()
        return obj

    async def load_calendar(self, org: uuid.UUID, barber_id: uuid.UUID, day: date) -> WorkCalendar:
        weekday = weekday_of(day)
        hours = await self.repo.list_work_hours(org, barber_id, weekday)
        breaks = await self.repo.list_breaks(org, barber_id, weekday)
        exceptions = await self.repo.list_exceptions(org, barber_id, day)
        return WorkCalendar.from_rules(barber_id, hours, breaks, exceptions)

    async def candidate_slots(self, org: uuid.UUID, barber_id: uuid.UUID, day: date) -> list[time]:
        cal = await self.load_calendar(org, barber_id, day)
        return generate_slots(cal, day, self.slot_minutes, honor_breaks=self.honor_breaks)

    async def open_slots(self, org: uuid.UUID, barber_id: uuid.UUID, day: date) -> list[time]:
        """Bookable start times left for the barber on `day`.

        Raises CalendarConfigError if the weekday's rules are inconsistent.
        """
        candidates = await self.candidate_slots(org, barber_id, day)
        if not candidates:
            return []
        booked = await self.appts.list_booked_for_day(org, barber_id, day)
        return resolve_open_slots(candidates, [(a.appointment_time, a.duration_minutes) for a in booked], self.slot_minutes)
