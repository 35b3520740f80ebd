from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import List, Optional

class Settings(BaseSettings):
    # MongoDB settings
    MONGO_URI: str
    DATABASE_NAME: str = "wastereport"

    # Gemini API settings
    GOOGLE_API_KEY: str
    GEMINI_MODEL: str = "gemini-1.5-flash"
    GEMINI_TIMEOUT: float = 60.0
    OPTIMIZE_IMAGES: bool = True

    # Verification policy (empty / None disables the check)
    ALLOWED_IMAGE_TYPES: List[str] = []
    MAX_IMAGE_BYTES: Optional[int] = None
    MAX_VERIFY_ATTEMPTS: Optional[int] = None
    MIN_CONFIDENCE: Optional[float] = None

    RECENT_REPORTS_LIMIT: int = 10

    # Sessions (and their report in progress) expire after this much inactivity
    SESSION_EXPIRE_MINUTES: int = 30

    CORS_ORIGINS: List[str] = [
        "http://localhost:8000",
        "http://127.0.0.1:8000",
        "http://localhost:3000",  # For frontend development
        "http://127.0.0.1:3000",  # For frontend development
    ]
    LOG_LEVEL: str = "INFO"

    # Twilio Settings (collector alerts are skipped while unset)
    TWILIO_ACCOUNT_SID: str = ""
    TWILIO_AUTH_TOKEN: str = ""
    TWILIO_PHONE_NUMBER: str = ""
    COLLECTOR_PHONE_NUMBER: str = ""

    class Config:
        env_file = ".env"

@lru_cache()
def get_settings():
    return Settings()
