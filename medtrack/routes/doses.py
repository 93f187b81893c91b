# medtrack/routes/doses.py
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from ..dependencies import get_session
from ..models import DoseUpdate
from ..service.crud_sync import save_dose_record, save_medication
from ..service.session import AdherenceSession, UnknownMedicationError

router = APIRouter()


@router.get("/", summary="Doses scheduled for a day")
async def fetch_doses(on: Optional[date] = Query(None, alias="date", description="YYYY-MM-DD, default today"),
                      session: AdherenceSession = Depends(get_session)):
    on = on or session.today()
    return {"status": "ok", "date": on, "doses": session.doses_for_date(on)}


@router.get("/next", summary="Next pending dose")
async def fetch_next_dose(session: AdherenceSession = Depends(get_session)):
    return {"status": "ok", "dose": session.next_dose()}


@router.post("/{medication_id}/schedule/{time}")
async def record_dose(medication_id: str, time: str, body: DoseUpdate,
                      session: AdherenceSession = Depends(get_session)):
    """Mark one occurrence taken / skipped / postponed, or re-open it as pending."""
    on = body.on or session.today()
    try:
        record = session.record_or_update_dose(medication_id, time, on, body.status, body.notes)
    except UnknownMedicationError:
        raise HTTPException(status_code=404, detail="Medication not found")
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    medication = session.get_medication(medication_id)
    await save_dose_record(record)
    await save_medication(medication)
    return {"status": "ok", "record": record, "stock": medication.stock}
