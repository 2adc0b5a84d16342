from datetime import date
import uuid
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.db import get_session
from app.core.security import get_principal, require_scopes, Principal
from app.modules.availability.service import AvailabilityService
from app.modules.availability.schemas import (
    WorkHoursCreate, WorkHoursOut, BreakCreate, BreakOut, ExceptionCreate, ExceptionOut, OpenSlotsOut
)
from app.modules.directory.repository import DirectoryRepository
from app.modules.growth.errors import CalendarConfigError

router = APIRouter()

def svc(s: AsyncSession = Depends(get_session)) -> AvailabilityService:
    return AvailabilityService(s)

async def _barber_or_404(service: AvailabilityService, org: uuid.UUID, barber_id: uuid.UUID):
    barber = await DirectoryRepository(service.s).get_barber(org, barber_id)
    if not barber:
        raise HTTPException(404, "barber not found")
    return barber

# Work hours
@router.post("/availability/work-hours", response_model=WorkHoursOut, dependencies=[Depends(require_scopes("availability:write"))])
async def create_work_hours(payload: WorkHoursCreate, principal: Principal = Depends(get_principal), service: AvailabilityService = Depends(svc)):
    await _barber_or_404(service, principal.org_id, payload.barber_id)
    return await service.create_work_hours(principal.org_id, **payload.model_dump())

@router.get("/availability/work-hours", response_model=list[WorkHoursOut], dependencies=[Depends(require_scopes("availability:read"))])
async def list_work_hours(barber_id: uuid.UUID, principal: Principal = Depends(get_principal), service: AvailabilityService = Depends(svc)):
    return await service.repo.list_work_hours(principal.org_id, barber_id)

# Breaks
@router.post("/availability/breaks", response_model=BreakOut, dependencies=[Depends(require_scopes("availability:write"))])
async def create_break(payload: BreakCreate, principal: Principal = Depends(get_principal), service: AvailabilityService = Depends(svc)):
    await _barber_or_404(service, principal.org_id, payload.barber_id)
    return await service.create_break(principal.org_id, **payload.model_dump())

@router.get("/availability/breaks", response_model=list[BreakOut], dependencies=[Depends(require_scopes("availability:read"))])
async def list_breaks(barber_id: uuid.UUID, principal: Principal = Depends(get_principal), service: AvailabilityService = Depends(svc)):
    return await service.repo.list_breaks(principal.org_id, barber_id)

# Date exceptions
@router.post("/availability/exceptions", response_model=ExceptionOut, dependencies=[Depends(require_scopes("availability:write"))])
async def create_exception(payload: ExceptionCreate, principal: Principal = Depends(get_principal), service: AvailabilityService = Depends(svc)):
    await _barber_or_404(service, principal.org_id, payload.barber_id)
    return await service.create_exception(principal.org_id, **payload.model_dump())

@router.get("/availability/exceptions", response_model=list[ExceptionOut], dependencies=[Depends(require_scopes("availability:read"))])
async def list_exceptions(barber_id: uuid.UUID, principal: Principal = Depends(get_principal), service: AvailabilityService = Depends(svc)):
    return await service.repo.list_exceptions(principal.org_id, barber_id)

# Open slots
@router.get("/availability/slots", response_model=OpenSlotsOut, dependencies=[Depends(require_scopes("availability:read"))])
async def open_slots(barber_id: uuid.UUID, date: date, principal: Principal = Depends(get_principal), service: AvailabilityService = Depends(svc)):
    await _barber_or_404(service, principal.org_id, barber_id)
    try:
        slots = await service.open_slots(principal.org_id, barber_id, date)
    except CalendarConfigError as e:
        raise HTTPException(409, e.reason)
    return {"barber_id": barber_id, "slot_date": date, "slot_minutes": service.slot_minutes, "slots": slots}
