import secrets
from datetime import datetime, timezone
from zoneinfo import ZoneInfo

from app.core.config import settings

def utcnow() -> datetime:
    # Stored timestamps are naive UTC
    return datetime.now(timezone.utc).replace(tzinfo=None)

def clinic_now() -> datetime:
    # Appointment dates and times are wall-clock times in the clinic's timezone
    return datetime.now(ZoneInfo(settings.CLINIC_TIMEZONE)).replace(tzinfo=None)

def generate_otp(length: int = 6) -> str:
    return "".join(secrets.choice("0123456789") for _ in range(length))

def generate_transaction_id() -> str:
    return f"TRX{utcnow():%Y%m%d%H%M%S}{secrets.token_hex(4).upper()}"
