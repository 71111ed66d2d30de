import logging
from datetime import datetime

from sqlalchemy.orm import Session

from config import TOKEN_RETENTION_DAYS
from services.device_registry import DeviceRegistry
from services.reminder_store import deactivate_expired

logger = logging.getLogger("dosealert.cleanup")


def expire_reminders(db: Session, now: datetime | None = None) -> int:
    """Deactivate active reminders whose course ended before `now`."""
    count = deactivate_expired(db, now)
    db.commit()
    if count:
        logger.info("Deactivated %d expired reminder(s)", count)
    return count


def prune_endpoints(db: Session, now: datetime | None = None, retention_days: int = TOKEN_RETENTION_DAYS) -> int:
    """Delete device tokens that are inactive or unused for `retention_days`."""
    count = DeviceRegistry(db).prune_stale_endpoints(now, retention_days)
    db.commit()
    logger.info("Pruned %d stale device token(s)", count)
    return count


def run_cleanup(db: Session, now: datetime | None = None) -> dict:
    now = now or datetime.now()
    return {
        "expired_reminders": expire_reminders(db, now),
        "pruned_endpoints": prune_endpoints(db, now),
    }
