# medtrack/routes/medications.py
from datetime import date
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import ValidationError

from ..dependencies import get_session
from ..models import Medication, MedicationCreate, SideEffectCreate, SideEffectNote, StockUpdate
from ..service.crud_sync import remove_medication, save_medication, save_side_effect
from ..service.session import AdherenceSession, UnknownMedicationError

router = APIRouter()


@router.get("/", summary="List medications")
async def list_medications(session: AdherenceSession = Depends(get_session)):
    return {"status": "ok", "medications": session.medications}


@router.post("/", summary="Add a medication")
async def create_medication(payload: MedicationCreate, session: AdherenceSession = Depends(get_session)):
    medication = Medication.model_validate(payload.model_dump())
    try:
        session.add_medication(medication)
    except ValueError as e:
        raise HTTPException(status_code=409, detail=str(e))
    await save_medication(medication)
    return {"status": "ok", "medication": medication}


@router.get("/low-stock", summary="Active medications that are running low or out")
async def low_stock(session: AdherenceSession = Depends(get_session)):
    return {
        "status": "ok",
        "low": session.low_stock_medications(),
        "empty": session.empty_stock_medications(),
    }


@router.get("/{medication_id}")
async def get_medication(medication_id: str, session: AdherenceSession = Depends(get_session)):
    try:
        medication = session.get_medication(medication_id)
    except UnknownMedicationError:
        raise HTTPException(status_code=404, detail="Medication not found")
    return {"status": "ok", "medication": medication}


@router.patch("/{medication_id}")
async def update_medication(medication_id: str, updates: Dict[str, Any],
                            session: AdherenceSession = Depends(get_session)):
    try:
        medication = session.update_medication(medication_id, updates)
    except UnknownMedicationError:
        raise HTTPException(status_code=404, detail="Medication not found")
    except ValidationError as e:
        raise HTTPException(
            status_code=422,
            detail=e.errors(include_url=False, include_context=False, include_input=False),
        )
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    await save_medication(medication)
    return {"status": "ok", "medication": medication}


@router.delete("/{medication_id}")
async def delete_medication(medication_id: str, session: AdherenceSession = Depends(get_session)):
    try:
        dropped = session.delete_medication(medication_id)
    except UnknownMedicationError:
        raise HTTPException(status_code=404, detail="Medication not found")
    await remove_medication(medication_id)
    return {"status": "ok", "deleted_records": dropped}


@router.post("/{medication_id}/toggle-status")
async def toggle_status(medication_id: str, session: AdherenceSession = Depends(get_session)):
    try:
        medication = session.toggle_medication_status(medication_id)
    except UnknownMedicationError:
        raise HTTPException(status_code=404, detail="Medication not found")
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    await save_medication(medication)
    return {"status": "ok", "medication": medication}


@router.post("/{medication_id}/stock")
async def update_stock(medication_id: str, body: StockUpdate,
                       session: AdherenceSession = Depends(get_session)):
    """
    Manual inventory change.
    operation=set  -> absolute quantity
    operation=add / subtract -> relative, never below 0
    """
    try:
        medication = session.update_stock(medication_id, body.quantity, body.operation)
    except UnknownMedicationError:
        raise HTTPException(status_code=404, detail="Medication not found")
    await save_medication(medication)
    return {"status": "ok", "stock": medication.stock, "medication": medication}


@router.post("/{medication_id}/side-effects", summary="Note a side effect")
async def add_side_effect(medication_id: str, body: SideEffectCreate,
                          session: AdherenceSession = Depends(get_session)):
    note = SideEffectNote(
        medication_id=medication_id,
        date=body.on or session.today(),
        symptoms=body.symptoms,
        severity=body.severity,
        notes=body.notes,
        created_at=session.now(),
    )
    try:
        session.add_side_effect(note)
    except UnknownMedicationError:
        raise HTTPException(status_code=404, detail="Medication not found")
    await save_side_effect(note)
    return {"status": "ok", "sideEffect": note}


@router.get("/{medication_id}/side-effects")
async def list_side_effects(medication_id: str, since: Optional[date] = None,
                            session: AdherenceSession = Depends(get_session)):
    try:
        session.get_medication(medication_id)
    except UnknownMedicationError:
        raise HTTPException(status_code=404, detail="Medication not found")
    return {"status": "ok", "sideEffects": session.side_effects(since, medication_id)}
