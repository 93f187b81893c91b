# medtrack/config.py
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    MONGO_URI: str = "mongodb://localhost:27017"
    DB_NAME: str = "medtrack"

    # External alert delivery service (push/SMS gateway)
    ALERT_DISPATCH_URL: str = "http://localhost:8001"
    ALERT_DISPATCH_TIMEOUT: float = 10.0

    # Put the dose back into stock when a "taken" dose is changed to anything else
    RECREDIT_ON_REVERSAL: bool = True

    LOAD_ON_STARTUP: bool = True
    MISSED_DOSE_POLL_SECONDS: int = 0  # 0 = poller disabled
    LOG_LEVEL: str = "INFO"


settings = Settings()
