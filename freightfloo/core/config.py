import os
from pathlib import Path

from dotenv import load_dotenv

_BASE_DIR = Path(__file__).resolve().parent.parent.parent
load_dotenv(_BASE_DIR / ".env")


def _flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Settings:
    APP_ENV = os.getenv("APP_ENV", "development")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

    DATABASE_URL = os.getenv("DATABASE_URL")

    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-change-me")
    SESSION_COOKIE = os.getenv("SESSION_COOKIE_NAME", "ff_session")
    SESSION_TTL_SECONDS = int(os.getenv("SESSION_TTL_MINUTES", "120")) * 60
    # Signup wizard tokens are short-lived; an abandoned wizard simply expires.
    SIGNUP_TTL_SECONDS = int(os.getenv("SIGNUP_TTL_MINUTES", "60")) * 60

    # Reverse auction: a new bid must undercut the lowest pending bid by at least this much.
    MIN_BID_DECREMENT = float(os.getenv("MIN_BID_DECREMENT", "20"))
    # When true, accepting a bid rejects every other PENDING bid on the shipment.
    AUTO_REJECT_SIBLING_BIDS = _flag("AUTO_REJECT_SIBLING_BIDS")
    MAX_PAYMENT_AMOUNT = float(os.getenv("MAX_PAYMENT_AMOUNT", "10000"))

    BASE_URL = os.getenv("BASE_URL", "http://localhost:8990").rstrip("/")

    SMTP_HOST = os.getenv("SMTP_HOST", "smtp.resend.com")
    SMTP_PORT = int(os.getenv("SMTP_PORT", "587"))
    SMTP_USER = os.getenv("SMTP_USER")
    SMTP_PASSWORD = os.getenv("SMTP_PASSWORD")
    SMTP_FROM_EMAIL = os.getenv("SMTP_FROM_EMAIL", SMTP_USER or "noreply@freightfloo.com")

    STRIPE_SECRET_KEY = os.getenv("STRIPE_SECRET_KEY")
    # Signing secret of the /api/payments/webhook endpoint (whsec_...)
    STRIPE_WEBHOOK_SECRET = os.getenv("STRIPE_WEBHOOK_SECRET")


settings = Settings()
