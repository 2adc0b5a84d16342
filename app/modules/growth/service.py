import uuid
import asyncio
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Callable
from zoneinfo import ZoneInfo

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.config import settings
from app.core.db import SessionLocal
from app.modules.appointments.models import CANCELLED, NO_SHOW
from app.modules.appointments.repository import AppointmentRepository
from app.modules.availability.service import AvailabilityService
from app.modules.directory.repository import DirectoryRepository
from app.modules.growth.behavior import aggregate_behavior
from app.modules.growth.errors import CalendarConfigError, TenantSyncError
from app.modules.growth.loss import estimate_loss
from app.modules.growth.policy import GrowthPolicy
from app.modules.growth.reactivation import build_reactivation_plan
from app.modules.growth.repository import GrowthRepository
from app.modules.growth.scores import compute_barber_scores
from app.platform.ports.cache import CachePort
from app.platform.ports.event_bus import EventBusPort
from app.platform.provider_registry import registry

log = logging.getLogger("growth.sync")

SYNC_TOPIC = "growth.sync.completed"

def _now() -> datetime:
    return datetime.now(timezone.utc)

def local_today() -> date:
    return datetime.now(ZoneInfo(settings.TIMEZONE)).date()

@dataclass
class TenantResult:
    org_id: uuid.UUID
    ok: bool = True
    empty_slots: int = 0
    clients: int = 0
    queued: int = 0
    alert_written: bool = False
    errors: int = 0
    warnings: int = 0

@dataclass
class SyncSummary:
    tenants_processed: int = 0
    errors: int = 0
    warnings: int = 0
    started_at: datetime | None = None
    finished_at: datetime | None = None
    tenants: list[TenantResult] = field(default_factory=list)

    def as_dict(self) -> dict:
        return {
            "tenants_processed": self.tenants_processed,
            "errors": self.errors,
            "warnings": self.warnings,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
        }

class GrowthSyncService:
    """Recomputes the growth signal tables for every tenant.

    Each tenant runs in its own session and commits on its own, so a failure
    in one tenant never undoes or blocks another. Running it again over the
    same data leaves the tables unchanged.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession] | Callable[[], AsyncSession] = SessionLocal,
        *,
        policy: GrowthPolicy | None = None,
        cache: CachePort | None = None,
        bus: EventBusPort | None = None,
        today: Callable[[], date] = local_today,
        concurrency: int | None = None,
    ):
        self.session_factory = session_factory
        self.policy = policy or GrowthPolicy.from_settings()
        self.cache = cache if cache is not None else registry.cache()
        self.bus = bus if bus is not None else registry.event_bus()
        self.today = today
        self.concurrency = concurrency or settings.GROWTH_SYNC_CONCURRENCY

    # ---- entry points ----
    async def run(self) -> SyncSummary:
        """Sync all tenants. Raises only when the tenant list itself cannot be read."""
        summary = SyncSummary(started_at=_now())
        day = self.today()
        async with self.session_factory() as s:
            tenants = await DirectoryRepository(s).list_tenant_ids()
        log.info("Starting growth sync for %d tenants (day=%s)", len(tenants), day)

        sem = asyncio.Semaphore(self.concurrency)
        async def one(org_id: uuid.UUID) -> TenantResult:
            async with sem:
                return await self._sync_guarded(org_id, day)

        results = await asyncio.gather(*(one(org) for org in tenants))
        for r in results:
            self._fold(summary, r)
        summary.finished_at = _now()
        log.info("Growth sync finished: tenants_processed=%d errors=%d warnings=%d",
                 summary.tenants_processed, summary.errors, summary.warnings)
        return summary

    async def sync_tenant(self, org_id: uuid.UUID) -> SyncSummary:
        summary = SyncSummary(started_at=_now())
        self._fold(summary, await self._sync_guarded(org_id, self.today()))
        summary.finished_at = _now()
        return summary

    # ---- internals ----
    @staticmethod
    def _fold(summary: SyncSummary, r: TenantResult) -> None:
        summary.tenants.append(r)
        summary.errors += r.errors
        summary.warnings += r.warnings
        if r.ok:
            summary.tenants_processed += 1

    async def _sync_guarded(self, org_id: uuid.UUID, day: date) -> TenantResult:
        try:
            result = await self.sync_tenant_day(org_id, day)
        except Exception as e:
            log.exception("Growth sync failed, continuing with next tenant: %s", TenantSyncError(org_id, e))
            return TenantResult(org_id=org_id, ok=False, errors=1)
        await self._publish(org_id, day, result)
        return result

    async def _publish(self, org_id: uuid.UUID, day: date, result: TenantResult) -> None:
        try:
            await self.bus.publish(topic=SYNC_TOPIC, key=str(org_id), value={
                "org_id": str(org_id),
                "date": day.isoformat(),
                "empty_slots": result.empty_slots,
                "clients": result.clients,
                "queued": result.queued,
                "alert_written": result.alert_written,
                "errors": result.errors,
            })
        except Exception:
            log.exception("Publishing %s failed for org=%s", SYNC_TOPIC, org_id)

    async def sync_tenant_day(self, org_id: uuid.UUID, day: date) -> TenantResult:
        """One tenant's pass. Raises on tenant-level failure after rolling back."""
        result = TenantResult(org_id=org_id)
        async with self.session_factory() as s:
            try:
                await self._run_pipeline(s, org_id, day, result)
                await s.commit()
            except Exception:
                await s.rollback()
                raise
        return result

    async def _run_pipeline(self, s: AsyncSession, org_id: uuid.UUID, day: date, result: TenantResult) -> None:
        directory = DirectoryRepository(s)
        appts = AppointmentRepository(s)
        growth = GrowthRepository(s)
        availability = AvailabilityService(s, slot_minutes=self.policy.slot_minutes, honor_breaks=self.policy.honor_breaks)

        # 1. empty slots, barber by barber
        barbers = await directory.list_barbers(org_id)
        resolved = []
        for barber in barbers:
            try:
                open_times = await availability.open_slots(org_id, barber.id, day)
            except CalendarConfigError as e:
                log.warning("Skipping slots for org=%s barber=%s: %s", org_id, barber.id, e.reason)
                result.warnings += 1
                continue
            except Exception:
                log.exception("Slot resolution failed for org=%s barber=%s", org_id, barber.id)
                result.errors += 1
                continue
            result.empty_slots += await growth.sync_empty_slots(org_id, barber.id, day, open_times)
            resolved.append(barber.id)
        # inactive or misconfigured barbers offer nothing today
        await growth.fill_unresolved_slots(org_id, day, resolved)

        # 2. client behavior over the whole history
        history = await appts.list_history(org_id)
        known_barbers = await directory.barber_ids(org_id)
        stats = aggregate_behavior(history, self.policy, known_barber_ids=known_barbers)
        contacts = await self._contacts(growth, org_id, [st.client_id for st in stats])
        result.clients = await growth.sync_client_behavior(org_id, stats, contacts)

        # 3. reactivation queue (needs behavior)
        await growth.purge_deleted_reactivation_entries(org_id)
        existing = await growth.reactivation_entries(org_id)
        plan = build_reactivation_plan(stats, existing, day, self.policy)
        result.queued = await growth.apply_reactivation_plan(org_id, plan, existing, contacts)

        # 4. barber scores
        prices = await directory.service_prices(org_id)
        scores = compute_barber_scores([b.id for b in barbers], history, prices)
        await growth.sync_barber_scores(org_id, scores)

        # 5. money lost today
        counts = await appts.day_status_counts(org_id, day)
        avg_price = await directory.average_service_price(org_id)
        if avg_price is None:
            avg_price = self.policy.default_avg_service_price
        est = estimate_loss(
            empty_slots=result.empty_slots,
            cancellations=counts[CANCELLED],
            no_shows=counts[NO_SHOW],
            total_appointments=sum(counts.values()),
            avg_price=avg_price,
            policy=self.policy,
        )
        result.alert_written = await growth.upsert_money_lost_alert(org_id, day, est) is not None
        log.debug("org=%s slots=%d clients=%d queued=%d loss=%s", org_id, result.empty_slots, result.clients, result.queued, est.estimated_loss)

    async def _contacts(self, growth: GrowthRepository, org_id: uuid.UUID, client_ids: list[uuid.UUID]) -> dict[uuid.UUID, dict]:
        contacts: dict[uuid.UUID, dict] = {}
        missing = []
        for cid in client_ids:
            hit = await self.cache.get(f"client:{org_id}:{cid}")
            if hit is None:
                missing.append(cid)
            else:
                contacts[cid] = hit
        if missing:
            loaded = await growth.client_contacts(org_id, missing)
            for cid, contact in loaded.items():
                await self.cache.set(f"client:{org_id}:{cid}", contact)
            contacts.update(loaded)
        return contacts

async def run_growth_sync(session_factory=SessionLocal, **kwargs) -> SyncSummary:
    return await GrowthSyncService(session_factory, **kwargs).run()

# ---- Background schedule ----

async def run_growth_sync_scheduler(interval_seconds: float | None = None):
    interval = interval_seconds or settings.GROWTH_SYNC_INTERVAL_SECONDS
    log.info("Growth sync scheduler started (every %ss)", interval)
    try:
        while True:
            try:
                await run_growth_sync()
            except Exception:
                # systemic failure: next tick retries the whole pass
                log.exception("Growth sync run failed")
            await asyncio.sleep(interval)
    except asyncio.CancelledError:
        log.info("Growth sync scheduler cancelled; shutting down")
        raise
