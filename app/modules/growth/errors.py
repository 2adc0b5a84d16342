import uuid


class GrowthError(Exception):
    """Base error for the growth engine."""


class CalendarConfigError(GrowthError):
    """A barber's rules for one weekday cannot produce a schedule (overlap, inverted window)."""

    def __init__(self, barber_id: uuid.UUID | None, weekday: int, reason: str):
        self.barber_id = barber_id
        self.weekday = weekday
        self.reason = reason
        super().__init__(f"barber={barber_id} weekday={weekday}: {reason}")


class TenantSyncError(GrowthError):
    def __init__(self, org_id: uuid.UUID, cause: BaseException):
        self.org_id = org_id
        self.cause = cause
        super().__init__(f"org={org_id}: {cause!r}")
