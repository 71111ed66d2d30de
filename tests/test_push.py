import pytest
from firebase_admin import exceptions as firebase_exceptions, messaging

import services.push as push
from services.push import (
    DeliveryErrorKind,
    FirebaseDelivery,
    ReminderPayload,
    build_reminder_message,
    classify_send_error,
)

PAYLOAD = ReminderPayload(
    medicine_name="Paracetamol",
    dosage="1-1-1",
    slot="morning",
    user_id=7,
    prescription_id=3,
)


@pytest.mark.parametrize(
    "exc,kind",
    [
        (messaging.UnregisteredError("Requested entity was not found."), DeliveryErrorKind.invalid_token),
        (messaging.SenderIdMismatchError("SenderId mismatch"), DeliveryErrorKind.invalid_token),
        (
            firebase_exceptions.InvalidArgumentError("The registration token is not a valid FCM registration token"),
            DeliveryErrorKind.invalid_token,
        ),
        (firebase_exceptions.InvalidArgumentError("Invalid color"), DeliveryErrorKind.other),
        (firebase_exceptions.UnavailableError("Service unavailable"), DeliveryErrorKind.other),
        (ConnectionError("reset by peer"), DeliveryErrorKind.other),
    ],
)
def test_classify_send_error(exc, kind):
    assert classify_send_error(exc) == kind


def test_payload_title_body_and_string_data():
    assert PAYLOAD.title == "🌅 Time to Take Your Medicine"
    assert PAYLOAD.body == "Paracetamol - 1-1-1"
    data = PAYLOAD.data()
    assert data["type"] == "medication_reminder"
    assert data["timeSlot"] == "morning"
    assert data["userId"] == "7"
    assert data["prescriptionId"] == "3"
    assert all(isinstance(v, str) for v in data.values())


def test_message_targets_token_with_high_priority():
    msg = build_reminder_message("tok-a", PAYLOAD)
    assert msg.token == "tok-a"
    assert msg.notification.title == PAYLOAD.title
    assert msg.android.priority == "high"
    assert msg.android.notification.channel_id == "medication_reminders"
    assert msg.apns.headers["apns-priority"] == "10"


def test_delivery_without_firebase_fails_softly():
    delivery = FirebaseDelivery(None)
    assert delivery.available is False
    result = delivery.send("tok-a", PAYLOAD)
    assert result.ok is False
    assert result.error_kind == DeliveryErrorKind.other
    assert "not initialized" in result.error


def test_delivery_success_returns_message_id(monkeypatch):
    calls = []

    def fake_send(message, app=None):
        calls.append((message.token, app))
        return "projects/demo/messages/1"

    app = object()
    monkeypatch.setattr(push.messaging, "send", fake_send)
    result = FirebaseDelivery(app).send("tok-a", PAYLOAD)

    assert result.ok is True
    assert result.message_id == "projects/demo/messages/1"
    assert calls == [("tok-a", app)]


def test_delivery_classifies_provider_errors(monkeypatch):
    def fake_send(message, app=None):
        raise messaging.UnregisteredError("Requested entity was not found.")

    monkeypatch.setattr(push.messaging, "send", fake_send)
    result = FirebaseDelivery(object()).send("tok-dead", PAYLOAD)

    assert result.ok is False
    assert result.invalid_token is True
    assert result.token == "tok-dead"


def test_init_firebase_without_credentials_returns_none(monkeypatch):
    monkeypatch.setattr(push.firebase_admin, "_apps", {})
    assert push.init_firebase("") is None
