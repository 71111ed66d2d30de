from datetime import datetime, timedelta

from models.device_token import DeviceToken
from models.reminder import Reminder
from services.device_registry import DeviceRegistry
from services.reconciler import expire_reminders, prune_endpoints, run_cleanup

NOW = datetime(2026, 3, 10, 8, 0, 0)


def _reminder(db, rx, name, end_date):
    row = Reminder(
        user_id=rx.user_id,
        prescription_id=rx.id,
        medicine_name=name,
        dosage="1-0-0",
        morning=True,
        start_date=NOW - timedelta(days=10),
        end_date=end_date,
    )
    db.add(row)
    return row


def test_expire_reminders_flips_only_finished_courses(db, make_prescription):
    rx = make_prescription()
    _reminder(db, rx, "Finished", NOW - timedelta(days=1))
    _reminder(db, rx, "EndsNow", NOW)
    _reminder(db, rx, "Running", NOW + timedelta(days=3))
    _reminder(db, rx, "OpenEnded", None)
    db.commit()

    assert expire_reminders(db, NOW) == 1
    active = {r.medicine_name for r in db.query(Reminder).filter(Reminder.is_active == True)}  # noqa: E712
    assert active == {"EndsNow", "Running", "OpenEnded"}


def test_expire_reminders_transitions_once(db, make_prescription):
    rx = make_prescription()
    _reminder(db, rx, "Finished", NOW - timedelta(days=1))
    db.commit()

    assert expire_reminders(db, NOW) == 1
    assert expire_reminders(db, NOW + timedelta(days=1)) == 0


def test_prune_endpoints_removes_inactive_and_stale(db):
    registry = DeviceRegistry(db)
    registry.register_endpoint(1, "fresh", "android", "phone", NOW - timedelta(days=2))
    registry.register_endpoint(1, "stale", "ios", "tablet", NOW - timedelta(days=31))
    registry.register_endpoint(2, "dead", "web", "browser", NOW)
    registry.deactivate_endpoint("dead")
    db.commit()

    assert prune_endpoints(db, NOW, retention_days=30) == 2
    assert [row.token for row in db.query(DeviceToken).all()] == ["fresh"]


def test_run_cleanup_reports_both_counts(db, make_prescription):
    rx = make_prescription()
    _reminder(db, rx, "Finished", NOW - timedelta(days=1))
    DeviceRegistry(db).register_endpoint(1, "old", "android", "phone", NOW - timedelta(days=90))
    db.commit()

    assert run_cleanup(db, NOW) == {"expired_reminders": 1, "pruned_endpoints": 1}
