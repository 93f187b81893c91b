# medtrack/database.py
from motor.motor_asyncio import AsyncIOMotorClient

from .config import settings

MEDICATIONS_COLL = "medications"
DOSE_RECORDS_COLL = "dose_records"
SIDE_EFFECTS_COLL = "side_effects"

client = AsyncIOMotorClient(settings.MONGO_URI)
db = client[settings.DB_NAME]
