# medtrack/service/day_view.py
import logging
from datetime import date, datetime, timedelta
from typing import Iterable, List, Optional

from ..models import DoseForDay, DoseStatus, ImplicitPending, Medication, Recorded
from .dose_store import DoseStatusStore
from .recurrence import project_day

logger = logging.getLogger(__name__)


def doses_for_date(
    medications: Iterable[Medication], store: DoseStatusStore, on: date
) -> List[DoseForDay]:
    """
    Join every active medication's projected times for `on` with the store.
    Unrecorded occurrences come back as ImplicitPending. Sorted by time;
    ties keep medication order.
    """
    doses: List[DoseForDay] = []
    for med in medications:
        try:
            times = project_day(med, on)
        except (TypeError, ValueError) as e:
            # a half-configured medication must not break everyone else's day
            logger.warning("Skipping medication %s for %s: %s", getattr(med, "id", "?"), on, e)
            continue

        for time in times:
            record = store.lookup(med.id, on, time)
            outcome = Recorded(record=record) if record is not None else ImplicitPending()
            doses.append(
                DoseForDay(
                    medication=med,
                    scheduled_date=on,
                    time=time,
                    dose=med.dose,
                    dose_unit=med.dose_unit,
                    outcome=outcome,
                )
            )

    doses.sort(key=lambda d: d.time)
    return doses


def next_dose(
    medications: Iterable[Medication],
    store: DoseStatusStore,
    now: datetime,
    horizon_days: int = 7,
) -> Optional[DoseForDay]:
    """First pending dose from `now` on: later today, else within the next `horizon_days` days."""
    medications = list(medications)
    today = now.date()
    current = now.strftime("%H:%M")

    for dose in doses_for_date(medications, store, today):
        if dose.status == DoseStatus.PENDING and dose.time >= current:
            return dose

    for offset in range(1, horizon_days + 1):
        for dose in doses_for_date(medications, store, today + timedelta(days=offset)):
            if dose.status == DoseStatus.PENDING:
                return dose

    return None
