from datetime import date
import uuid
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.db import get_session
from app.core.security import get_principal, require_scopes, Principal
from app.modules.growth.repository import GrowthRepository
from app.modules.growth.reactivation import SENT
from app.modules.growth.service import GrowthSyncService, local_today
from app.modules.growth.schemas import (
    SyncSummaryOut, EmptySlotOut, ClientBehaviorOut, ReactivationEntryOut, MoneyLostAlertOut, BarberScoreOut
)

router = APIRouter()

def repo(s: AsyncSession = Depends(get_session)) -> GrowthRepository:
    return GrowthRepository(s)

def sync_service() -> GrowthSyncService:
    return GrowthSyncService()

# Sync now
@router.post("/growth/sync", response_model=SyncSummaryOut, dependencies=[Depends(require_scopes("growth:write"))])
async def sync_now(principal: Principal = Depends(get_principal), service: GrowthSyncService = Depends(sync_service)):
    summary = await service.sync_tenant(principal.org_id)
    return summary.as_dict()

# Signals
@router.get("/growth/empty-slots", response_model=list[EmptySlotOut], dependencies=[Depends(require_scopes("growth:read"))])
async def list_empty_slots(date: date | None = None, principal: Principal = Depends(get_principal), r: GrowthRepository = Depends(repo)):
    return await r.list_empty_slots(principal.org_id, date or local_today())

@router.get("/growth/client-behavior", response_model=list[ClientBehaviorOut], dependencies=[Depends(require_scopes("growth:read"))])
async def list_client_behavior(classification: str | None = None, limit: int = 100, offset: int = 0, principal: Principal = Depends(get_principal), r: GrowthRepository = Depends(repo)):
    return await r.list_client_behavior(principal.org_id, classification=classification, limit=limit, offset=offset)

@router.get("/growth/reactivation-queue", response_model=list[ReactivationEntryOut], dependencies=[Depends(require_scopes("growth:read"))])
async def list_reactivation_queue(status: str | None = "pending", limit: int = 100, offset: int = 0, principal: Principal = Depends(get_principal), r: GrowthRepository = Depends(repo)):
    return await r.list_reactivation_queue(principal.org_id, status=status, limit=limit, offset=offset)

@router.post("/growth/reactivation-queue/{entry_id}/sent", response_model=ReactivationEntryOut, dependencies=[Depends(require_scopes("growth:write"))])
async def mark_sent(entry_id: uuid.UUID, principal: Principal = Depends(get_principal), r: GrowthRepository = Depends(repo)):
    entry = await r.get_reactivation_entry(principal.org_id, entry_id)
    if not entry:
        raise HTTPException(404, "Reactivation entry not found")
    entry.status = SENT
    await r.session.commit()
    return entry

@router.get("/growth/money-lost-alert", response_model=MoneyLostAlertOut | None, dependencies=[Depends(require_scopes("growth:read"))])
async def get_money_lost_alert(date: date | None = None, principal: Principal = Depends(get_principal), r: GrowthRepository = Depends(repo)):
    alert = await r.get_alert(principal.org_id, date or local_today())
    if alert is None or alert.is_dismissed:
        return None
    return alert

@router.post("/growth/money-lost-alerts/{alert_id}/dismiss", response_model=MoneyLostAlertOut, dependencies=[Depends(require_scopes("growth:write"))])
async def dismiss_alert(alert_id: uuid.UUID, principal: Principal = Depends(get_principal), r: GrowthRepository = Depends(repo)):
    alert = await r.get_alert_by_id(principal.org_id, alert_id)
    if not alert:
        raise HTTPException(404, "Alert not found")
    alert.is_dismissed = True
    await r.session.commit()
    return alert

@router.get("/growth/barber-scores", response_model=list[BarberScoreOut], dependencies=[Depends(require_scopes("growth:read"))])
async def list_barber_scores(principal: Principal = Depends(get_principal), r: GrowthRepository = Depends(repo)):
    return await r.list_barber_scores(principal.org_id)
