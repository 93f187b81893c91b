# medtrack/routes/alerts.py
import asyncio
import logging

from fastapi import APIRouter, Depends, FastAPI

from ..dependencies import get_dispatcher, get_session
from ..models import PanicRequest
from ..service.alerts import AlertDispatcher, build_alert_events, panic_event
from ..service.session import AdherenceSession

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/missed-doses", summary="Critical doses overdue past their grace delay")
async def missed_doses(session: AdherenceSession = Depends(get_session)):
    return {"status": "ok", "missed": session.check_missed_doses()}


@router.get("/events", summary="Alert events that would be dispatched now")
async def pending_events(session: AdherenceSession = Depends(get_session)):
    return {"status": "ok", "events": build_alert_events(session)}


@router.post("/check", summary="Build alert events and hand them to the delivery service")
async def check_and_dispatch(session: AdherenceSession = Depends(get_session),
                             dispatcher: AlertDispatcher = Depends(get_dispatcher)):
    events = build_alert_events(session)
    results = await dispatcher.dispatch_all(events)
    return {"status": "ok", "events": events, "results": results}


@router.post("/panic")
async def panic(body: PanicRequest, session: AdherenceSession = Depends(get_session),
                dispatcher: AlertDispatcher = Depends(get_dispatcher)):
    event = panic_event(body.message, body.medication_id, now=session.now())
    result = await dispatcher.dispatch(event)
    return {"status": "ok", "event": event, "result": result}


# Background poller (host side; the engine itself never schedules anything)
async def missed_dose_poller(app: FastAPI, interval: int):
    """
    Re-check missed doses and stock every `interval` seconds and dispatch.
    Started from main.py when MISSED_DOSE_POLL_SECONDS > 0.
    """
    while True:
        try:
            events = build_alert_events(app.state.session)
            if events:
                logger.info("Dispatching %d alert events", len(events))
                await app.state.dispatcher.dispatch_all(events)
        except Exception:
            logger.exception("Missed-dose check failed; retrying in %ds", interval)
        await asyncio.sleep(interval)
