# medtrack/service/missed_doses.py
import math
from datetime import datetime, time as dt_time
from typing import Iterable, List

from ..models import DoseStatus, Medication, MissedDose
from .day_view import doses_for_date
from .dose_store import DoseStatusStore


def minutes_late(now: datetime, scheduled: datetime) -> int:
    return math.floor((now - scheduled).total_seconds() / 60)


def check_missed_doses(
    medications: Iterable[Medication], store: DoseStatusStore, now: datetime
) -> List[MissedDose]:
    """
    Critical doses still pending today at least `critical_alert_delay` minutes
    after their scheduled time.

    Read-only: same state and same `now` give the same list, so debouncing
    repeated alerts is up to whoever delivers them. Only today's occurrences
    are scanned; a dose left pending yesterday is not reported.
    """
    today = now.date()
    missed: List[MissedDose] = []

    for dose in doses_for_date(medications, store, today):
        med = dose.medication
        if not med.is_critical or dose.status != DoseStatus.PENDING:
            continue

        hours, minutes = (int(p) for p in dose.time.split(":"))
        scheduled = datetime.combine(today, dt_time(hours, minutes))
        late = minutes_late(now, scheduled)

        if late >= med.critical_alert_delay:
            missed.append(
                MissedDose(
                    medication_id=med.id,
                    medication_name=med.name,
                    scheduled_time=dose.time,
                    minutes_late=late,
                )
            )

    return missed
