import json
import os

from dotenv import load_dotenv

load_dotenv()

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
DEBUG = LOG_LEVEL == "DEBUG"

DRY_RUN = os.getenv("DRY_RUN", "false").lower() == "true"

DATABASE_URL = os.getenv("DATABASE_URL")
if not DATABASE_URL:
    raise ValueError("DATABASE_URL must be set in the environment")

ALLOWED_ORIGINS_RAW = os.getenv("ALLOWED_ORIGINS", "*")
ALLOWED_ORIGINS: list[str] = [origin.strip() for origin in ALLOWED_ORIGINS_RAW.split(",")]

# Payments
STRIPE_SECRET_KEY = os.getenv("STRIPE_SECRET_KEY")
STRIPE_WEBHOOK_SECRET = os.getenv("STRIPE_WEBHOOK_SECRET")
STRIPE_CURRENCY = os.getenv("STRIPE_CURRENCY", "usd").lower()
CHECKOUT_SESSION_TTL_MINUTES = int(os.getenv("CHECKOUT_SESSION_TTL_MINUTES", "35"))
PAYMENT_TIMEOUT = int(os.getenv("PAYMENT_TIMEOUT", "20"))

# External calendar sync
CALENDAR_FETCH_TIMEOUT = float(os.getenv("CALENDAR_FETCH_TIMEOUT", "30"))
CALENDAR_USER_AGENT = os.getenv("CALENDAR_USER_AGENT", "BnB Booking Calendar Sync/1.0")
SYNC_INTER_CALL_DELAY = float(os.getenv("SYNC_INTER_CALL_DELAY", "1.0"))
SYNC_INTERVAL_SECONDS = int(os.getenv("SYNC_INTERVAL_SECONDS", "3600"))
CLEANUP_INTERVAL_SECONDS = int(os.getenv("CLEANUP_INTERVAL_SECONDS", str(7 * 24 * 3600)))
SYNC_LOG_RETENTION_DAYS = int(os.getenv("SYNC_LOG_RETENTION_DAYS", "30"))
SYNC_SUMMARY_TTL_SECONDS = int(os.getenv("SYNC_SUMMARY_TTL_SECONDS", str(7 * 24 * 3600)))
ENABLE_SCHEDULER = os.getenv("ENABLE_SCHEDULER", "true").lower() == "true"

# Outbound calendar feed
OUTBOUND_CALENDAR_CACHE_SECONDS = int(os.getenv("OUTBOUND_CALENDAR_CACHE_SECONDS", "300"))
CALENDAR_PRODID = os.getenv("CALENDAR_PRODID", "-//BnB Booking//Booking System//EN")
CALENDAR_UID_DOMAIN = os.getenv("CALENDAR_UID_DOMAIN", "bnb-booking.local")

# Notifications
NOTIFICATION_WEBHOOK_URL = os.getenv("NOTIFICATION_WEBHOOK_URL")
NOTIFICATION_TIMEOUT = float(os.getenv("NOTIFICATION_TIMEOUT", "10"))

# Booking rules
MAX_GUESTS = int(os.getenv("MAX_GUESTS", "20"))

# Room references issued before the canonical id migration
LEGACY_ROOM_ID_ALIASES: dict[str, str] = json.loads(os.getenv("LEGACY_ROOM_ID_ALIASES", "{}"))
