# medtrack/service/compliance.py
from datetime import date, timedelta
from typing import Iterable, List

from ..models import CompliancePoint, DaySummary, DoseStatus, Medication
from .day_view import doses_for_date
from .dose_store import DoseStatusStore


def rate(taken: int, total: int) -> int:
    """round(100 * taken / total) with halves rounded up; 0 when nothing was scheduled."""
    if total <= 0:
        return 0
    return (200 * taken + total) // (2 * total)


def day_summary(
    medications: Iterable[Medication], store: DoseStatusStore, on: date
) -> DaySummary:
    doses = doses_for_date(medications, store, on)
    counts = {status: 0 for status in DoseStatus}
    for dose in doses:
        counts[dose.status] += 1

    total = len(doses)
    return DaySummary(
        date=on,
        total=total,
        taken=counts[DoseStatus.TAKEN],
        pending=counts[DoseStatus.PENDING],
        skipped=counts[DoseStatus.SKIPPED],
        postponed=counts[DoseStatus.POSTPONED],
        rate=rate(counts[DoseStatus.TAKEN], total),
    )


def rolling_rate(
    medications: Iterable[Medication], store: DoseStatusStore, days: int, today: date
) -> int:
    """
    Adherence over `days` calendar days ending `today` (inclusive).

    Counts are summed first and the ratio taken once; averaging each day's
    rate would weigh a 1-dose day the same as a 10-dose day.
    """
    if days < 1:
        raise ValueError("days must be >= 1")

    medications = list(medications)
    total = taken = 0
    for offset in range(days):
        summary = day_summary(medications, store, today - timedelta(days=offset))
        total += summary.total
        taken += summary.taken
    return rate(taken, total)


def weekly_series(
    medications: Iterable[Medication], store: DoseStatusStore, today: date
) -> List[CompliancePoint]:
    """Seven daily rates, oldest first, ending today."""
    medications = list(medications)
    points = []
    for offset in range(6, -1, -1):
        on = today - timedelta(days=offset)
        points.append(CompliancePoint(date=on, rate=day_summary(medications, store, on).rate))
    return points
