# medtrack/service/session.py
import logging
from datetime import date, datetime
from typing import Any, Callable, Dict, Iterable, List, Optional

from ..models import (
    CompliancePoint,
    DaySummary,
    DoseForDay,
    DoseRecord,
    DoseStatus,
    Medication,
    MedicationStatus,
    MissedDose,
    SideEffectNote,
    StockOperation,
    normalize_time,
    require_schedule_when_active,
)
from . import compliance, day_view, inventory, missed_doses
from .dose_store import DoseStatusStore
from .recurrence import is_active_on

logger = logging.getLogger(__name__)


class UnknownMedicationError(LookupError):
    def __init__(self, medication_id: str):
        super().__init__(f"Medication not found: {medication_id}")
        self.medication_id = medication_id


class AdherenceSession:
    """
    One user's medications and dose records plus the operations over them.

    Each session owns its own state, so several can live side by side
    (one per user, one per test). Reads are pure projections; the only
    mutations are recording a dose and changing stock (plus medication
    edits and bulk replacement from sync).
    """

    def __init__(
        self,
        medications: Iterable[Medication] = (),
        dose_records: Iterable[DoseRecord] = (),
        clock: Optional[Callable[[], datetime]] = None,
        recredit_on_reversal: bool = True,
        side_effects: Iterable[SideEffectNote] = (),
    ):
        self._clock = clock or datetime.now
        self.recredit_on_reversal = recredit_on_reversal
        self._medications: Dict[str, Medication] = {}
        self.replace_medications(medications)
        self.store = DoseStatusStore(dose_records)
        self._side_effects: List[SideEffectNote] = list(side_effects)

    # clock

    def now(self) -> datetime:
        return self._clock()

    def today(self) -> date:
        return self.now().date()

    # bulk sync

    def replace_medications(self, medications: Iterable[Medication]) -> None:
        self._medications = {m.id: m for m in medications}

    def replace_dose_records(self, records: Iterable[DoseRecord]) -> None:
        self.store.replace_all(records)

    def replace_side_effects(self, notes: Iterable[SideEffectNote]) -> None:
        self._side_effects = list(notes)

    # medications

    @property
    def medications(self) -> List[Medication]:
        return list(self._medications.values())

    def get_medication(self, medication_id: str) -> Medication:
        try:
            return self._medications[medication_id]
        except KeyError:
            raise UnknownMedicationError(medication_id) from None

    def add_medication(self, medication: Medication) -> Medication:
        if medication.id in self._medications:
            raise ValueError(f"Medication id already in use: {medication.id}")
        self._medications[medication.id] = medication
        logger.info("Added medication %s (%s)", medication.id, medication.name)
        return medication

    def update_medication(self, medication_id: str, updates: Dict[str, Any]) -> Medication:
        current = self.get_medication(medication_id)
        data = current.model_dump()
        # accept both stored (camelCase) and attribute names
        by_alias = {f.alias: name for name, f in Medication.model_fields.items() if f.alias}
        data.update({by_alias.get(k, k): v for k, v in updates.items()})
        data["id"] = current.id
        data["updated_at"] = self.now()
        updated = require_schedule_when_active(Medication.model_validate(data))
        self._medications[medication_id] = updated
        return updated

    def delete_medication(self, medication_id: str) -> int:
        """Remove the medication and its dose records; returns the number of records dropped."""
        self.get_medication(medication_id)
        del self._medications[medication_id]
        dropped = self.store.remove_medication(medication_id)
        self._side_effects = [n for n in self._side_effects if n.medication_id != medication_id]
        logger.info("Deleted medication %s and %d dose records", medication_id, dropped)
        return dropped

    def toggle_medication_status(self, medication_id: str) -> Medication:
        med = self.get_medication(medication_id)
        new_status = (
            MedicationStatus.INACTIVE if med.status == MedicationStatus.ACTIVE
            else MedicationStatus.ACTIVE
        )
        updated = require_schedule_when_active(
            med.model_copy(update={"status": new_status, "updated_at": self.now()})
        )
        self._medications[medication_id] = updated
        return updated

    def medications_for_date(self, on: date) -> List[Medication]:
        return [m for m in self._medications.values() if is_active_on(m, on)]

    # day view

    def doses_for_date(self, on: date) -> List[DoseForDay]:
        return day_view.doses_for_date(self.medications, self.store, on)

    def next_dose(self, horizon_days: int = 7) -> Optional[DoseForDay]:
        return day_view.next_dose(self.medications, self.store, self.now(), horizon_days)

    # dose status

    def record_or_update_dose(
        self,
        medication_id: str,
        time: str,
        on: date,
        status: DoseStatus,
        notes: Optional[str] = None,
    ) -> DoseRecord:
        """
        Create or overwrite the record for (medication, on, time).

        Any status may replace any other, including going back to pending.
        Entering "taken" from anything else takes one dose out of stock and
        remembers how much actually came off (less than a dose when stock
        ran out). Leaving "taken" gives exactly that back when
        recredit_on_reversal is set. A repeated "taken" leaves stock alone.
        `time` must be one of the medication's scheduled times.
        """
        med = self.get_medication(medication_id)
        time = normalize_time(time)
        if time not in med.schedules:
            raise ValueError(f"{time} is not a scheduled time of medication {med.id}")
        status = DoseStatus(status)
        now = self.now()

        existing = self.store.lookup(med.id, on, time)
        previous = existing.status if existing is not None else None
        deducted = existing.stock_deducted if existing is not None else 0

        if status == DoseStatus.TAKEN and previous != DoseStatus.TAKEN:
            updated = inventory.adjust_stock(
                med, inventory.dose_quantity(med), StockOperation.SUBTRACT, now
            )
            deducted = med.stock - updated.stock
            self._medications[med.id] = updated
        elif previous == DoseStatus.TAKEN and status != DoseStatus.TAKEN:
            if self.recredit_on_reversal and deducted:
                self._medications[med.id] = inventory.adjust_stock(
                    med, deducted, StockOperation.ADD, now
                )
            deducted = 0

        actual_time = None if status == DoseStatus.PENDING else now
        if existing is None:
            record = DoseRecord(
                medication_id=med.id,
                scheduled_time=time,
                date=on,
                status=status,
                actual_time=actual_time,
                notes=notes,
                stock_deducted=deducted,
                created_at=now,
            )
        else:
            changes: Dict[str, Any] = {
                "status": status,
                "actual_time": actual_time,
                "stock_deducted": deducted,
            }
            if notes is not None:
                changes["notes"] = notes
            record = existing.model_copy(update=changes)

        self.store.upsert(record)
        logger.info(
            "Dose %s %s %s: %s -> %s",
            med.id, on, time, previous.value if previous else "none", status.value,
        )
        return record

    # inventory

    def set_stock(self, medication_id: str, quantity: int) -> Medication:
        med = inventory.set_stock(self.get_medication(medication_id), quantity, self.now())
        self._medications[medication_id] = med
        return med

    def adjust_stock(self, medication_id: str, delta: int, direction: StockOperation) -> Medication:
        med = inventory.adjust_stock(self.get_medication(medication_id), delta, direction, self.now())
        self._medications[medication_id] = med
        return med

    def update_stock(self, medication_id: str, quantity: int, operation: StockOperation) -> Medication:
        med = inventory.update_stock(self.get_medication(medication_id), quantity, operation, self.now())
        self._medications[medication_id] = med
        return med

    def low_stock_medications(self) -> List[Medication]:
        return inventory.low_stock_medications(self.medications)

    def empty_stock_medications(self) -> List[Medication]:
        return inventory.empty_stock_medications(self.medications)

    # alerting / statistics

    def check_missed_doses(self, now: Optional[datetime] = None) -> List[MissedDose]:
        return missed_doses.check_missed_doses(self.medications, self.store, now or self.now())

    def day_summary(self, on: date) -> DaySummary:
        return compliance.day_summary(self.medications, self.store, on)

    def rolling_rate(self, days: int, today: Optional[date] = None) -> int:
        return compliance.rolling_rate(self.medications, self.store, days, today or self.today())

    def weekly_series(self, today: Optional[date] = None) -> List[CompliancePoint]:
        return compliance.weekly_series(self.medications, self.store, today or self.today())

    # side effects

    def add_side_effect(self, note: SideEffectNote) -> SideEffectNote:
        self.get_medication(note.medication_id)
        self._side_effects.append(note)
        logger.info("Side effect noted for %s on %s (%s)", note.medication_id, note.date, note.severity.value)
        return note

    def side_effects(
        self, since: Optional[date] = None, medication_id: Optional[str] = None
    ) -> List[SideEffectNote]:
        """Notes on or after `since`, newest first."""
        notes = [
            n for n in self._side_effects
            if (since is None or n.date >= since)
            and (medication_id is None or n.medication_id == medication_id)
        ]
        return sorted(notes, key=lambda n: (n.date, n.created_at), reverse=True)
