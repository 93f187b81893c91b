# medtrack/service/dose_store.py
import logging
from datetime import date
from typing import Dict, Iterable, List, Optional, Tuple

from ..models import DoseRecord

logger = logging.getLogger(__name__)

DoseKey = Tuple[str, date, str]  # (medication_id, date, scheduled_time)


class DoseStatusStore:
    """
    Dose records indexed by their logical key.
    Only occurrences someone acted on live here; an unrecorded dose is
    implicitly pending and has no entry.
    """

    def __init__(self, records: Iterable[DoseRecord] = ()):
        self._records: Dict[DoseKey, DoseRecord] = {}
        self.replace_all(records)

    def __len__(self) -> int:
        return len(self._records)

    def replace_all(self, records: Iterable[DoseRecord]) -> None:
        """Bulk replace (e.g. after a remote sync). Duplicated keys keep the newest record."""
        indexed: Dict[DoseKey, DoseRecord] = {}
        for rec in records:
            existing = indexed.get(rec.key)
            if existing is not None:
                logger.warning(
                    "Duplicate dose record for %s on %s at %s; keeping the newest",
                    rec.medication_id, rec.date, rec.scheduled_time,
                )
                if existing.created_at > rec.created_at:
                    continue
            indexed[rec.key] = rec
        self._records = indexed

    def lookup(self, medication_id: str, on: date, time: str) -> Optional[DoseRecord]:
        return self._records.get((medication_id, on, time))

    def upsert(self, record: DoseRecord) -> DoseRecord:
        self._records[record.key] = record
        return record

    def remove_medication(self, medication_id: str) -> int:
        """Drop every record of a medication; returns how many were removed."""
        keys = [k for k in self._records if k[0] == medication_id]
        for k in keys:
            del self._records[k]
        return len(keys)

    def records(self, medication_id: Optional[str] = None) -> List[DoseRecord]:
        recs = list(self._records.values())
        if medication_id is not None:
            recs = [r for r in recs if r.medication_id == medication_id]
        return recs
