# medtrack/routes/sync.py
from typing import List

from fastapi import APIRouter, Depends

from ..dependencies import get_session
from ..models import DoseRecord, Medication
from ..service import crud_sync
from ..service.session import AdherenceSession

router = APIRouter()


@router.get("/medications")
async def export_medications(session: AdherenceSession = Depends(get_session)):
    return {"medications": session.medications}


@router.put("/medications", summary="Replace all medications (after a remote sync)")
async def replace_medications(medications: List[Medication],
                              session: AdherenceSession = Depends(get_session)):
    session.replace_medications(medications)
    return {"status": "ok", **await crud_sync.replace_medications(medications)}


@router.get("/doses")
async def export_dose_records(session: AdherenceSession = Depends(get_session)):
    return {"doseRecords": session.store.records()}


@router.put("/doses", summary="Replace all dose records (after a remote sync)")
async def replace_dose_records(records: List[DoseRecord],
                               session: AdherenceSession = Depends(get_session)):
    session.replace_dose_records(records)
    return {"status": "ok", **await crud_sync.replace_dose_records(records)}
