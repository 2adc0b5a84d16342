from dataclasses import dataclass
from decimal import Decimal

from app.core.config import settings


@dataclass(frozen=True)
class GrowthPolicy:
    """Tunable thresholds for classification, reactivation and loss alerts."""

    slot_minutes: int = 30
    honor_breaks: bool = True
    inactive_days: int = 30
    at_risk_cancel_rate: float = 0.25
    blocked_cancel_rate: float = 0.5
    blocked_min_appointments: int = 3
    critical_cancel_rate: float = 0.30
    critical_empty_slots: int = 3
    default_avg_service_price: Decimal = Decimal("50.00")

    @classmethod
    def from_settings(cls) -> "GrowthPolicy":
        return cls(
            slot_minutes=settings.GROWTH_SLOT_MINUTES,
            honor_breaks=settings.GROWTH_HONOR_BREAKS,
            inactive_days=settings.GROWTH_INACTIVE_DAYS,
            at_risk_cancel_rate=settings.GROWTH_AT_RISK_CANCEL_RATE,
            blocked_cancel_rate=settings.GROWTH_BLOCKED_CANCEL_RATE,
            blocked_min_appointments=settings.GROWTH_BLOCKED_MIN_APPOINTMENTS,
            critical_cancel_rate=settings.GROWTH_CRITICAL_CANCEL_RATE,
            critical_empty_slots=settings.GROWTH_CRITICAL_EMPTY_SLOTS,
            default_avg_service_price=Decimal(str(settings.GROWTH_DEFAULT_AVG_SERVICE_PRICE)),
        )
