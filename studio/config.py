import os
from datetime import time
from pathlib import Path
from zoneinfo import ZoneInfo

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)


def _int_env(name: str, default: str) -> int:
    raw = os.getenv(name, default)
    try:
        return int(raw)
    except (ValueError, TypeError):
        raise ValueError(f"Invalid integer for {name}: {raw!r}") from None


def _float_env(name: str, default: str) -> float:
    raw = os.getenv(name, default)
    try:
        return float(raw)
    except (ValueError, TypeError):
        raise ValueError(f"Invalid float for {name}: {raw!r}") from None


def _time_env(name: str, default: str) -> time:
    raw = os.getenv(name, default)
    try:
        return time.fromisoformat(raw)
    except ValueError:
        raise ValueError(f"Invalid HH:MM time for {name}: {raw!r}") from None


def _bool_env(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./studio.db")

# Business calendar (single practitioner)
BUSINESS_NAME = os.getenv("BUSINESS_NAME", "Glow Beauty Studio")
BUSINESS_TIMEZONE = ZoneInfo(os.getenv("BUSINESS_TIMEZONE", "America/New_York"))
BUSINESS_OPEN = _time_env("BUSINESS_OPEN", "09:00")
BUSINESS_CLOSE = _time_env("BUSINESS_CLOSE", "18:00")
SLOT_STEP_MINUTES = _int_env("SLOT_STEP_MINUTES", "30")
# Comma separated weekday numbers, Monday=0 ... Sunday=6
CLOSED_WEEKDAYS = frozenset(
    int(day) for day in os.getenv("CLOSED_WEEKDAYS", "").split(",") if day.strip()
)
BOOKING_WINDOW_DAYS = _int_env("BOOKING_WINDOW_DAYS", "180")
PROVIDER_ID = os.getenv("PROVIDER_ID", "studio-main")

# Lifecycle policy
ADMIN_CAN_CANCEL_PAST = _bool_env("ADMIN_CAN_CANCEL_PAST", "true")
PAYMENT_MAX_FAILURES = _int_env("PAYMENT_MAX_FAILURES", "3")

# Store resilience
DB_RETRY_ATTEMPTS = _int_env("DB_RETRY_ATTEMPTS", "3")
DB_RETRY_BACKOFF = _float_env("DB_RETRY_BACKOFF", "0.2")
DB_STATEMENT_TIMEOUT_MS = _int_env("DB_STATEMENT_TIMEOUT_MS", "5000")

# Security - CRITICAL: No default secret key in production
SECRET_KEY = os.getenv("SECRET_KEY")
if not SECRET_KEY:
    import warnings

    warnings.warn(
        "SECRET_KEY not set! Using insecure default - DO NOT USE IN PRODUCTION", RuntimeWarning, stacklevel=2
    )
    SECRET_KEY = "INSECURE-DEV-KEY-CHANGE-IN-PRODUCTION"  # noqa: S105 - Dev fallback only

ADMIN_USERNAME = os.getenv("ADMIN_USERNAME", "admin")
# No default credential: admin login stays disabled until a bcrypt hash is configured
ADMIN_PASSWORD_HASH = os.getenv("ADMIN_PASSWORD_HASH") or None
if not ADMIN_PASSWORD_HASH:
    import warnings

    warnings.warn(
        "ADMIN_PASSWORD_HASH not set! Admin login is disabled until it is configured", RuntimeWarning, stacklevel=2
    )
JWT_EXPIRES_MINUTES = _int_env("JWT_EXPIRES_MINUTES", "1440")

# Payment provider webhook
PAYMENT_WEBHOOK_SECRET = os.getenv("PAYMENT_WEBHOOK_SECRET")

# Resend Email Configuration
RESEND_API_KEY = os.getenv("RESEND_API_KEY")
EMAIL_FROM_ADDRESS = os.getenv("EMAIL_FROM_ADDRESS", "Glow Beauty Studio <bookings@glowstudio.com>")
STUDIO_NOTIFY_EMAIL = os.getenv("STUDIO_NOTIFY_EMAIL")

# Google Calendar mirror (best-effort)
GOOGLE_CALENDAR_ID = os.getenv("GOOGLE_CALENDAR_ID")
GOOGLE_CALENDAR_ACCESS_TOKEN = os.getenv("GOOGLE_CALENDAR_ACCESS_TOKEN")

# Frontend base URL for CORS and links
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:5173")
ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", f"{FRONTEND_URL},http://localhost:3000").split(",")

# Rate limiting for public forms
RATE_LIMIT_ENABLED = _bool_env("RATE_LIMIT_ENABLED", "true")
REDIS_URL = os.getenv("REDIS_URL")

if SLOT_STEP_MINUTES < 5:
    raise ValueError(f"SLOT_STEP_MINUTES must be >= 5, got {SLOT_STEP_MINUTES}")
if BUSINESS_CLOSE <= BUSINESS_OPEN:
    raise ValueError(f"BUSINESS_CLOSE ({BUSINESS_CLOSE}) must be after BUSINESS_OPEN ({BUSINESS_OPEN})")
if PAYMENT_MAX_FAILURES < 1:
    raise ValueError(f"PAYMENT_MAX_FAILURES must be >= 1, got {PAYMENT_MAX_FAILURES}")
if DB_RETRY_ATTEMPTS < 1:
    raise ValueError(f"DB_RETRY_ATTEMPTS must be >= 1, got {DB_RETRY_ATTEMPTS}")
