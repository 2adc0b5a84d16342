import uuid
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, Mapping

from app.modules.growth.behavior import BehaviorStats, BLOCKED
from app.modules.growth.policy import GrowthPolicy

PENDING = "pending"
SENT = "sent"
RETURNED = "returned"


@dataclass
class QueueItem:
    client_id: uuid.UUID
    days_inactive: int
    last_appointment_date: date
    status: str
    queued_on: date


@dataclass
class ReactivationPlan:
    upserts: list[QueueItem] = field(default_factory=list)
    deletes: list[uuid.UUID] = field(default_factory=list)


def days_inactive(last: date, today: date) -> int:
    return (today - last).days


def is_inactive(stats: BehaviorStats, today: date, policy: GrowthPolicy) -> bool:
    if stats.classification == BLOCKED or stats.last_appointment_date is None:
        return False
    return days_inactive(stats.last_appointment_date, today) > policy.inactive_days


def has_returned(stats: BehaviorStats | None, queued_on: date) -> bool:
    return bool(stats and stats.last_completed_date and stats.last_completed_date > queued_on)


def build_reactivation_plan(stats: Iterable[BehaviorStats], existing: Mapping[uuid.UUID, object], today: date, policy: GrowthPolicy) -> ReactivationPlan:
    """Work out which queue rows to write and which to drop.

    `existing` maps client_id to the stored entry (anything with `status` and
    `queued_on`). A stored `sent`/`returned` status is kept while the client
    stays away; a completed visit after the entry was queued removes it, or
    restarts it as `pending` if the client has already gone inactive again.
    """
    plan = ReactivationPlan()
    by_client = {s.client_id: s for s in stats}

    for cid in sorted(by_client, key=str):
        st = by_client[cid]
        if not is_inactive(st, today, policy):
            continue
        days = days_inactive(st.last_appointment_date, today)
        entry = existing.get(cid)
        if entry is None or has_returned(st, entry.queued_on):
            plan.upserts.append(QueueItem(cid, days, st.last_appointment_date, PENDING, today))
        else:
            plan.upserts.append(QueueItem(cid, days, st.last_appointment_date, entry.status, entry.queued_on))

    queued = {item.client_id for item in plan.upserts}
    plan.deletes = sorted((cid for cid in existing if cid not in queued), key=str)
    return plan
