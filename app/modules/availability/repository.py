import uuid
from datetime import date
from typing import Sequence
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from app.modules.availability.models import WorkHourRule, BreakRule, DateException

class AvailabilityRepository:
    def __init__(self, s: AsyncSession): self.s = s

    # work hours
    async def create_work_hours(self, org: uuid.UUID, **data) -> WorkHourRule:
        obj = WorkHourRule(org_id=org, **data); self.s.add(obj); await self.s.flush(); return obj
    async def list_work_hours(self, org: uuid.UUID, barber_id: uuid.UUID, weekday: int | None = None) -> Sequence[WorkHourRule]:
        cond = [WorkHourRule.org_id==org, WorkHourRule.barber_id==barber_id, WorkHourRule.deleted_at.is_(None)]
        if weekday is not None: cond.append(WorkHourRule.weekday==weekday)
        res = await self.s.execute(select(WorkHourRule).where(*cond).order_by(WorkHourRule.weekday, WorkHourRule.start_minute))
        return res.scalars().all()

    # breaks
    async def create_break(self, org: uuid.UUID, **data) -> BreakRule:
        obj = BreakRule(org_id=org, **data); self.s.add(obj); await self.s.flush(); return obj
    async def list_breaks(self, org: uuid.UUID, barber_id: uuid.UUID, weekday: int | None = None) -> Sequence[BreakRule]:
        cond = [BreakRule.org_id==org, BreakRule.barber_id==barber_id, BreakRule.deleted_at.is_(None)]
        if weekday is not None: cond.append(BreakRule.weekday==weekday)
        res = await self.s.execute(select(BreakRule).where(*cond).order_by(BreakRule.weekday, BreakRule.start_minute))
        return res.scalars().all()

    # exceptions
    async def create_exception(self, org: uuid.UUID, **data) -> DateException:
        obj = DateException(org_id=org, **data); self.s.add(obj); await self.s.flush(); return obj
    async def list_exceptions(self, org: uuid.UUID, barber_id: uuid.UUID, on: date | None = None) -> Sequence[DateException]:
        cond = [DateException.org_id==org, DateException.barber_id==barber_id, DateException.deleted_at.is_(None)]
        if on is not None: cond.append(DateException.exception_date==on)
        res = await self.s.execute(select(DateException).where(*cond).order_by(DateException.exception_date))
        return res.scalars().all()
