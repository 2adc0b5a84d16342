"""
Client behavior aggregation.

Recomputes, from a tenant's full appointment history, one record per client:
status counters, cancellation rate, last visit dates and a classification.
The output fully replaces whatever was stored before; nothing here is
incremental.
"""
import logging
import uuid
from dataclasses import dataclass
from datetime import date
from typing import Iterable

from app.modules.appointments.models import STATUSES, COMPLETED, CANCELLED, NO_SHOW
from app.modules.growth.policy import GrowthPolicy

log = logging.getLogger("growth.behavior")

NORMAL = "normal"
AT_RISK = "at_risk"
BLOCKED = "blocked"


@dataclass
class BehaviorStats:
    client_id: uuid.UUID
    total_appointments: int = 0
    completed: int = 0
    cancelled: int = 0
    no_show: int = 0
    cancel_rate: float = 0.0
    classification: str = NORMAL
    last_appointment_date: date | None = None
    last_completed_date: date | None = None


def cancel_rate_of(cancelled: int, total: int) -> float:
    return cancelled / total if total > 0 else 0.0


def classify(total: int, cancelled: int, policy: GrowthPolicy) -> str:
    rate = cancel_rate_of(cancelled, total)
    if rate > policy.blocked_cancel_rate and total >= policy.blocked_min_appointments:
        return BLOCKED
    if rate > policy.at_risk_cancel_rate:
        return AT_RISK
    return NORMAL


def aggregate_behavior(appointments: Iterable, policy: GrowthPolicy, known_barber_ids: set[uuid.UUID] | None = None) -> list[BehaviorStats]:
    """Group appointments by client and compute one BehaviorStats per client.

    Rows without a client, with an unknown status, or pointing at a barber
    outside `known_barber_ids` are skipped with a warning. Output is ordered
    by client id so repeated runs produce the same sequence.
    """
    by_client: dict[uuid.UUID, BehaviorStats] = {}
    for a in appointments:
        if a.client_id is None:
            log.warning("Skipping appointment %s: no client", a.id)
            continue
        if a.status not in STATUSES:
            log.warning("Skipping appointment %s: unknown status %r", a.id, a.status)
            continue
        if known_barber_ids is not None and a.barber_id is not None and a.barber_id not in known_barber_ids:
            log.warning("Skipping appointment %s: barber %s not found in org %s", a.id, a.barber_id, a.org_id)
            continue

        st = by_client.get(a.client_id)
        if st is None:
            st = by_client[a.client_id] = BehaviorStats(client_id=a.client_id)
        st.total_appointments += 1
        if a.status == COMPLETED:
            st.completed += 1
            if st.last_completed_date is None or a.appointment_date > st.last_completed_date:
                st.last_completed_date = a.appointment_date
        elif a.status == CANCELLED:
            st.cancelled += 1
        elif a.status == NO_SHOW:
            st.no_show += 1
        if st.last_appointment_date is None or a.appointment_date > st.last_appointment_date:
            st.last_appointment_date = a.appointment_date

    out = []
    for cid in sorted(by_client, key=str):
        st = by_client[cid]
        st.cancel_rate = cancel_rate_of(st.cancelled, st.total_appointments)
        st.classification = classify(st.total_appointments, st.cancelled, policy)
        out.append(st)
    return out
