# medtrack/service/alerts.py
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

import httpx

from ..config import settings
from ..models import AlertEvent, AlertType

logger = logging.getLogger(__name__)

ALERTS_ENDPOINT = "/alerts"


def build_alert_events(session, now: Optional[datetime] = None) -> List[AlertEvent]:
    """
    Facts the delivery side needs to alert caregivers:
      - one missed_dose event per overdue critical dose
      - one low_stock event per active medication that is low or empty
    Who gets told, and how often, is decided by the receiver.
    """
    now = now or session.now()
    events: List[AlertEvent] = []

    for missed in session.check_missed_doses(now):
        events.append(AlertEvent(
            type=AlertType.MISSED_DOSE,
            medication_id=missed.medication_id,
            payload={
                "medicationName": missed.medication_name,
                "scheduledTime": missed.scheduled_time,
                "minutesLate": missed.minutes_late,
                "date": now.date().isoformat(),
            },
            created_at=now,
        ))

    stock_alerts = [(m, False) for m in session.low_stock_medications()]
    stock_alerts += [(m, True) for m in session.empty_stock_medications()]
    for med, empty in stock_alerts:
        events.append(AlertEvent(
            type=AlertType.LOW_STOCK,
            medication_id=med.id,
            payload={
                "medicationName": med.name,
                "remaining": med.stock,
                "threshold": med.low_stock_threshold,
                "empty": empty,
            },
            created_at=now,
        ))

    return events


def panic_event(message: str, medication_id: Optional[str] = None,
                now: Optional[datetime] = None) -> AlertEvent:
    return AlertEvent(
        type=AlertType.PANIC,
        medication_id=medication_id,
        payload={"message": message},
        created_at=now or datetime.now(),
    )


class AlertDispatcher:
    """Hands alert events to the external delivery service (push/SMS)."""

    def __init__(self, base_url: Optional[str] = None, timeout: Optional[float] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.base_url = (base_url or settings.ALERT_DISPATCH_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.ALERT_DISPATCH_TIMEOUT
        self.transport = transport

    async def dispatch(self, event: AlertEvent) -> Dict[str, Any]:
        """POST one event. Delivery failures are reported in the result, not raised."""
        url = self.base_url + ALERTS_ENDPOINT
        body = event.model_dump(mode="json", by_alias=True)
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                resp = await client.post(url, json=body)
            data = {
                "success": 200 <= resp.status_code < 300,
                "status_code": resp.status_code,
                "endpoint": ALERTS_ENDPOINT,
            }
            if not data["success"]:
                data["body"] = resp.text[:500]
                logger.warning("Alert %s rejected: %s", event.type.value, data)
            return data
        except httpx.HTTPError as e:
            err = {"success": False, "error": str(e), "endpoint": ALERTS_ENDPOINT}
            logger.error("Alert %s not delivered: %s", event.type.value, err)
            return err

    async def dispatch_all(self, events: List[AlertEvent]) -> List[Dict[str, Any]]:
        results = []
        for event in events:
            results.append(await self.dispatch(event))
        return results
