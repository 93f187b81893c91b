# medtrack/main.py
import asyncio
import logging
from contextlib import asynccontextmanager, suppress

from fastapi import FastAPI

from .config import settings
from .routes import alerts, doses, medications, reports, sync
from .service.alerts import AlertDispatcher
from .service.crud_sync import load_session
from .service.session import AdherenceSession

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.LOAD_ON_STARTUP:
        app.state.session = await load_session()

    poller = None
    if settings.MISSED_DOSE_POLL_SECONDS > 0:
        poller = asyncio.create_task(
            alerts.missed_dose_poller(app, settings.MISSED_DOSE_POLL_SECONDS)
        )
    yield
    if poller is not None:
        poller.cancel()
        with suppress(asyncio.CancelledError):
            await poller


app = FastAPI(title="medtrack adherence engine", lifespan=lifespan)
app.state.session = AdherenceSession(recredit_on_reversal=settings.RECREDIT_ON_REVERSAL)
app.state.dispatcher = AlertDispatcher()

# Routers with prefixes + tags for Swagger
app.include_router(medications.router, prefix="/api/medications", tags=["Medications"])
app.include_router(doses.router, prefix="/api/doses", tags=["Doses"])
app.include_router(reports.router, prefix="/api/reports", tags=["Reports"])
app.include_router(alerts.router, prefix="/api/alerts", tags=["Alerts"])
app.include_router(sync.router, prefix="/api/sync", tags=["Sync"])
