import logging
from datetime import datetime, timedelta

from sqlalchemy import or_
from sqlalchemy.orm import Session

from config import TOKEN_RETENTION_DAYS
from models.device_token import DeviceToken, DevicePlatform
from models.notification_settings import NotificationSettings

logger = logging.getLogger("dosealert.devices")

_PREFERENCE_FIELDS = ("enabled", "medication_reminders", "email_notifications", "push_notifications")
DEFAULT_PREFERENCES = {
    "enabled": True,
    "medication_reminders": True,
    "email_notifications": False,
    "push_notifications": True,
}


class DeviceRegistry:
    """Push endpoints and notification preferences, backed by the app database.

    Mutating methods flush but never commit; the caller owns the transaction.
    """

    def __init__(self, db: Session):
        self.db = db

    # ─── Endpoints ────────────────────────────────────────
    def register_endpoint(
        self,
        user_id: int,
        token: str,
        platform: str | DevicePlatform,
        device_id: str,
        now: datetime | None = None,
    ) -> DeviceToken:
        try:
            platform = DevicePlatform(platform)
        except ValueError:
            raise ValueError("Invalid platform. Must be: android, ios, or web") from None
        now = now or datetime.now()
        row = (
            self.db.query(DeviceToken)
            .filter(DeviceToken.user_id == user_id, DeviceToken.device_id == device_id)
            .first()
        )
        if row:
            row.token = token
            row.platform = platform
            row.last_used = now
            row.is_active = True
        else:
            row = DeviceToken(
                user_id=user_id,
                token=token,
                platform=platform,
                device_id=device_id,
                last_used=now,
                is_active=True,
            )
            self.db.add(row)
        self.db.flush()
        return row

    def remove_endpoint(self, user_id: int, device_id: str) -> int:
        return (
            self.db.query(DeviceToken)
            .filter(DeviceToken.user_id == user_id, DeviceToken.device_id == device_id)
            .delete()
        )

    def list_active_endpoints(self, user_id: int) -> list[DeviceToken]:
        return (
            self.db.query(DeviceToken)
            .filter(DeviceToken.user_id == user_id, DeviceToken.is_active == True)  # noqa: E712
            .order_by(DeviceToken.id.asc())
            .all()
        )

    def deactivate_endpoint(self, token: str) -> int:
        count = (
            self.db.query(DeviceToken)
            .filter(DeviceToken.token == token, DeviceToken.is_active == True)  # noqa: E712
            .update({"is_active": False})
        )
        if count:
            logger.info("Deactivated %d endpoint(s) for invalid token %s…", count, token[:12])
        return count

    def touch_endpoint(self, token: str, now: datetime | None = None) -> int:
        return (
            self.db.query(DeviceToken)
            .filter(DeviceToken.token == token)
            .update({"last_used": now or datetime.now()})
        )

    def prune_stale_endpoints(self, now: datetime | None = None, retention_days: int = TOKEN_RETENTION_DAYS) -> int:
        cutoff = (now or datetime.now()) - timedelta(days=retention_days)
        return (
            self.db.query(DeviceToken)
            .filter(or_(DeviceToken.is_active == False, DeviceToken.last_used < cutoff))  # noqa: E712
            .delete()
        )

    # ─── Preferences ──────────────────────────────────────
    def get_preferences(self, user_id: int) -> NotificationSettings:
        """Stored settings, or an unsaved row carrying the defaults."""
        row = self.db.query(NotificationSettings).filter(NotificationSettings.user_id == user_id).first()
        if row:
            return row
        return NotificationSettings(user_id=user_id, **DEFAULT_PREFERENCES)

    def update_preferences(self, user_id: int, **flags) -> NotificationSettings:
        row = self.db.query(NotificationSettings).filter(NotificationSettings.user_id == user_id).first()
        if not row:
            row = NotificationSettings(user_id=user_id, **DEFAULT_PREFERENCES)
            self.db.add(row)
        for key in _PREFERENCE_FIELDS:
            value = flags.get(key)
            if value is not None:
                setattr(row, key, bool(value))
        self.db.flush()
        return row
