# medtrack/service/crud_sync.py
import logging
from typing import Callable, Iterable, List, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from ..config import settings
from ..database import DOSE_RECORDS_COLL, MEDICATIONS_COLL, SIDE_EFFECTS_COLL, db
from ..models import DoseRecord, Medication, SideEffectNote
from .session import AdherenceSession

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


def _to_doc(model: BaseModel) -> dict:
    # ISO-8601 strings and camelCase keys, same shape the sync API exchanges
    return model.model_dump(mode="json", by_alias=True)


def _parse_all(model: Type[M], docs: Iterable[dict]) -> List[M]:
    """Validate stored documents, skipping (and logging) the ones that don't fit."""
    parsed: List[M] = []
    for doc in docs:
        doc = dict(doc)
        doc.pop("_id", None)
        try:
            parsed.append(model.model_validate(doc))
        except ValidationError as e:
            logger.warning(
                "Skipping invalid %s document %s: %s",
                model.__name__, doc.get("id"), e.errors()[:3],
            )
    return parsed


async def fetch_medications() -> List[Medication]:
    docs = await db[MEDICATIONS_COLL].find({}).to_list(length=None)
    return _parse_all(Medication, docs)


async def fetch_dose_records() -> List[DoseRecord]:
    docs = await db[DOSE_RECORDS_COLL].find({}).to_list(length=None)
    return _parse_all(DoseRecord, docs)


async def fetch_side_effects() -> List[SideEffectNote]:
    docs = await db[SIDE_EFFECTS_COLL].find({}).to_list(length=None)
    return _parse_all(SideEffectNote, docs)


async def load_session(clock: Optional[Callable] = None) -> AdherenceSession:
    """Build a fresh session from whatever the database holds."""
    medications = await fetch_medications()
    records = await fetch_dose_records()
    notes = await fetch_side_effects()
    logger.info(
        "Loaded %d medications, %d dose records and %d side-effect notes",
        len(medications), len(records), len(notes),
    )
    return AdherenceSession(
        medications,
        records,
        clock=clock,
        recredit_on_reversal=settings.RECREDIT_ON_REVERSAL,
        side_effects=notes,
    )


async def save_medication(medication: Medication):
    result = await db[MEDICATIONS_COLL].replace_one(
        {"id": medication.id}, _to_doc(medication), upsert=True
    )
    return {"updated": result.modified_count}


async def save_dose_record(record: DoseRecord):
    result = await db[DOSE_RECORDS_COLL].replace_one(
        {"id": record.id}, _to_doc(record), upsert=True
    )
    return {"updated": result.modified_count}


async def save_side_effect(note: SideEffectNote):
    result = await db[SIDE_EFFECTS_COLL].replace_one(
        {"id": note.id}, _to_doc(note), upsert=True
    )
    return {"updated": result.modified_count}


async def remove_medication(medication_id: str):
    await db[MEDICATIONS_COLL].delete_one({"id": medication_id})
    await db[SIDE_EFFECTS_COLL].delete_many({"medicationId": medication_id})
    result = await db[DOSE_RECORDS_COLL].delete_many({"medicationId": medication_id})
    return {"deleted_records": result.deleted_count}


async def replace_medications(medications: List[Medication]):
    await db[MEDICATIONS_COLL].delete_many({})
    if medications:
        await db[MEDICATIONS_COLL].insert_many([_to_doc(m) for m in medications])
    return {"count": len(medications)}


async def replace_dose_records(records: List[DoseRecord]):
    await db[DOSE_RECORDS_COLL].delete_many({})
    if records:
        await db[DOSE_RECORDS_COLL].insert_many([_to_doc(r) for r in records])
    return {"count": len(records)}
