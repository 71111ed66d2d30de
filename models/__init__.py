from models.prescription import Prescription, PrescriptionStatus
from models.reminder import Reminder
from models.device_token import DeviceToken, DevicePlatform
from models.notification_settings import NotificationSettings

__all__ = [
    "Prescription",
    "PrescriptionStatus",
    "Reminder",
    "DeviceToken",
    "DevicePlatform",
    "NotificationSettings",
]
