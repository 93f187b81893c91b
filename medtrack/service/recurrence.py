# medtrack/service/recurrence.py
from datetime import date
from typing import List

from ..models import Medication, MedicationStatus


def is_active_on(medication: Medication, on: date) -> bool:
    """start_date <= on <= end_date (both inclusive) and status is active."""
    if medication.status != MedicationStatus.ACTIVE:
        return False
    if medication.start_date > on:
        return False
    if medication.end_date is not None and on > medication.end_date:
        return False
    return True


def project_day(medication: Medication, on: date) -> List[str]:
    """
    Scheduled times of day for `medication` on `on`, ascending.
    - frequency_type / frequency_value are descriptive only; `schedules` is
      the single source of occurrence times.
    - Not active that day (or nothing scheduled) -> [].
    """
    if not is_active_on(medication, on):
        return []
    # HH:MM is zero-padded so string order is time order
    return sorted(medication.schedules)
