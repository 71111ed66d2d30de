"""
Firebase Cloud Messaging delivery for medication reminders.

The Firebase app is initialized once by `init_firebase()` and handed to
`FirebaseDelivery`, which the dispatcher receives at construction time.
`send()` never raises: every outcome comes back as a `DeliveryResult`.
"""

import enum
import json
import logging
import os
import tempfile
from dataclasses import dataclass, field
from datetime import datetime

import firebase_admin
from firebase_admin import credentials, exceptions as firebase_exceptions, messaging

from config import FIREBASE_SERVICE_ACCOUNT

logger = logging.getLogger("dosealert.push")

SLOT_EMOJI = {"morning": "🌅", "noon": "☀️", "night": "🌙"}


class DeliveryErrorKind(str, enum.Enum):
    invalid_token = "INVALID_TOKEN"
    other = "OTHER"


@dataclass
class ReminderPayload:
    medicine_name: str
    dosage: str
    slot: str
    user_id: int
    prescription_id: int | None = None

    @property
    def title(self) -> str:
        return f"{SLOT_EMOJI.get(self.slot, '💊')} Time to Take Your Medicine"

    @property
    def body(self) -> str:
        return f"{self.medicine_name} - {self.dosage}"

    def data(self) -> dict[str, str]:
        # FCM data values must be strings.
        return {
            "type": "medication_reminder",
            "medicineName": self.medicine_name,
            "dosage": self.dosage,
            "timeSlot": self.slot,
            "userId": str(self.user_id),
            "prescriptionId": str(self.prescription_id) if self.prescription_id is not None else "",
            "timestamp": datetime.now().isoformat(),
        }


@dataclass
class DeliveryResult:
    token: str
    ok: bool
    message_id: str | None = None
    error_kind: DeliveryErrorKind | None = None
    error: str = ""
    extra: dict = field(default_factory=dict)

    @classmethod
    def success(cls, token: str, message_id: str | None = None) -> "DeliveryResult":
        return cls(token=token, ok=True, message_id=message_id)

    @classmethod
    def failure(cls, token: str, kind: DeliveryErrorKind, error: str = "") -> "DeliveryResult":
        return cls(token=token, ok=False, error_kind=kind, error=error)

    @property
    def invalid_token(self) -> bool:
        return self.error_kind == DeliveryErrorKind.invalid_token


def init_firebase(service_account: str | None = None) -> firebase_admin.App | None:
    """Initialize the default Firebase app once and return it.

    Accepts the service account as raw JSON (Render-style env var, possibly
    wrapped in stray quotes) or as a path to the JSON file. Returns None when
    nothing is configured so the API can still boot without push.
    """
    if firebase_admin._apps:
        return firebase_admin.get_app()
    firebase_sa = FIREBASE_SERVICE_ACCOUNT if service_account is None else service_account
    if not firebase_sa:
        logger.warning("FIREBASE_SERVICE_ACCOUNT not set; push reminders are disabled")
        return None

    if os.path.isfile(firebase_sa):
        return firebase_admin.initialize_app(credentials.Certificate(firebase_sa))

    try:
        sa_dict = json.loads(firebase_sa)
    except json.JSONDecodeError:
        cleaned = firebase_sa.strip().strip("'").strip('"')
        try:
            sa_dict = json.loads(cleaned)
        except json.JSONDecodeError:
            logger.warning("Could not parse FIREBASE_SERVICE_ACCOUNT as JSON, writing to temp file...")
            tmp = tempfile.NamedTemporaryFile(mode="w", suffix=".json", delete=False)
            tmp.write(firebase_sa)
            tmp.close()
            os.environ["GOOGLE_APPLICATION_CREDENTIALS"] = tmp.name
            return firebase_admin.initialize_app()

    # Fix escaped newlines in private_key (common Render issue)
    if "private_key" in sa_dict and "\\n" in sa_dict["private_key"]:
        sa_dict["private_key"] = sa_dict["private_key"].replace("\\n", "\n")
    app = firebase_admin.initialize_app(credentials.Certificate(sa_dict))
    logger.info("Firebase Admin SDK initialized")
    return app


def classify_send_error(exc: Exception) -> DeliveryErrorKind:
    if isinstance(exc, (messaging.UnregisteredError, messaging.SenderIdMismatchError)):
        return DeliveryErrorKind.invalid_token
    if isinstance(exc, firebase_exceptions.InvalidArgumentError) and "registration token" in str(exc).lower():
        return DeliveryErrorKind.invalid_token
    return DeliveryErrorKind.other


def build_reminder_message(token: str, payload: ReminderPayload) -> messaging.Message:
    return messaging.Message(
        token=token,
        notification=messaging.Notification(title=payload.title, body=payload.body),
        data=payload.data(),
        android=messaging.AndroidConfig(
            priority="high",
            notification=messaging.AndroidNotification(
                channel_id="medication_reminders",
                sound="default",
                icon="ic_medication",
                color="#4CAF50",
                tag=f"med_{payload.medicine_name}",
                visibility="public",
            ),
        ),
        apns=messaging.APNSConfig(
            headers={"apns-priority": "10", "apns-push-type": "alert"},
            payload=messaging.APNSPayload(
                aps=messaging.Aps(
                    alert=messaging.ApsAlert(title=payload.title, body=payload.body),
                    sound="default",
                    badge=1,
                    category="MEDICATION_REMINDER",
                    thread_id=f"medication_{payload.medicine_name}",
                    content_available=True,
                ),
            ),
        ),
    )


class FirebaseDelivery:
    def __init__(self, app: firebase_admin.App | None):
        self.app = app

    @property
    def available(self) -> bool:
        return self.app is not None

    def send(self, token: str, payload: ReminderPayload) -> DeliveryResult:
        if not self.app:
            return DeliveryResult.failure(token, DeliveryErrorKind.other, "Firebase not initialized")
        try:
            message_id = messaging.send(build_reminder_message(token, payload), app=self.app)
        except Exception as exc:
            kind = classify_send_error(exc)
            logger.warning("Push send failed for user %s (%s): %s", payload.user_id, kind.value, exc)
            return DeliveryResult.failure(token, kind, str(exc))
        return DeliveryResult.success(token, message_id)
