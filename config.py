import os

from dotenv import load_dotenv

load_dotenv()

# Render provides DATABASE_URL starting with "postgres://..."
# SQLAlchemy 2.x requires "postgresql://...", patch it here.
_raw_db_url = os.getenv("DATABASE_URL", "sqlite:///./dosealert.db")
DATABASE_URL = _raw_db_url.replace("postgres://", "postgresql://", 1)

SECRET_KEY = os.getenv("SECRET_KEY", "dosealert-secret-key-change-in-production")
ALGORITHM = os.getenv("ALGORITHM", "HS256")

# Firebase service account JSON (raw JSON string or path to a JSON file).
FIREBASE_SERVICE_ACCOUNT = os.getenv("FIREBASE_SERVICE_ACCOUNT", "")

# Secret for external scheduler endpoints (e.g., cron-job.org)
JOB_RUN_KEY = os.getenv("JOB_RUN_KEY", "")

# Wall-clock reminder slots, server-local time.
REMINDER_TIME_MORNING = os.getenv("REMINDER_TIME_MORNING", "08:00")
REMINDER_TIME_NOON = os.getenv("REMINDER_TIME_NOON", "13:00")
REMINDER_TIME_NIGHT = os.getenv("REMINDER_TIME_NIGHT", "20:00")

# Device tokens unused for this many days are pruned by the cleanup run.
TOKEN_RETENTION_DAYS = int(os.getenv("TOKEN_RETENTION_DAYS", "30"))

# Upper bound on concurrent push sends within one slot run.
SEND_MAX_WORKERS = int(os.getenv("SEND_MAX_WORKERS", "6"))

CORS_ORIGINS = os.getenv("CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()


def reminder_timings() -> dict[str, str]:
    """Slot -> "HH:MM" mapping stamped on new reminder records.

    Single override point for per-deployment (and later per-user) clock times.
    """
    return {
        "morning": REMINDER_TIME_MORNING,
        "noon": REMINDER_TIME_NOON,
        "night": REMINDER_TIME_NIGHT,
    }
