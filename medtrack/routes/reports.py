# medtrack/routes/reports.py
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import PlainTextResponse

from ..dependencies import get_session
from ..service.report import export_report
from ..service.session import AdherenceSession

router = APIRouter()


@router.get("/summary")
async def day_summary(on: Optional[date] = Query(None, alias="date"),
                      session: AdherenceSession = Depends(get_session)):
    return {"status": "ok", "summary": session.day_summary(on or session.today())}


@router.get("/weekly")
async def weekly(session: AdherenceSession = Depends(get_session)):
    return {"status": "ok", "series": session.weekly_series()}


@router.get("/compliance")
async def compliance(days: int = Query(7, ge=1, le=366),
                     session: AdherenceSession = Depends(get_session)):
    return {"status": "ok", "days": days, "rate": session.rolling_rate(days)}


@router.get("/export", response_class=PlainTextResponse)
async def export(session: AdherenceSession = Depends(get_session)):
    return export_report(session)
