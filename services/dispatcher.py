"""
Time-slot reminder dispatch.

One run handles one slot (morning / noon / night):

  FETCH DUE      active reminders for the slot whose course covers `now`
  RESOLVE        per user: preferences gate, then active device tokens
  SEND           one push per (reminder, device), fanned out on a small pool
  RECONCILE      deactivate invalid tokens, touch used ones, stamp reminders

Delivery is at-least-once: re-running a slot re-sends. Nothing is queued
between runs; whatever a truncated run missed is picked up by the next one.
The DB session is only used from the calling thread.
"""

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field, asdict
from datetime import datetime

from sqlalchemy.orm import Session

from config import SEND_MAX_WORKERS
from models.reminder import Reminder
from services.device_registry import DeviceRegistry
from services.push import DeliveryErrorKind, DeliveryResult, ReminderPayload
from services.reminder_store import ReminderSlot, get_due_reminders, mark_notified

logger = logging.getLogger("dosealert.dispatch")


@dataclass
class SlotRunSummary:
    slot: str
    due: int = 0
    processed: int = 0
    sent: int = 0
    failed: int = 0
    invalid_tokens: int = 0
    skipped: int = 0
    errors: list[str] = field(default_factory=list)
    duration_ms: int = 0

    def to_dict(self):
        return asdict(self)


@dataclass
class _UserTargets:
    allowed: bool
    tokens: list[str] = field(default_factory=list)
    error: str = ""


class ReminderDispatcher:
    """Sends due reminders for a slot through an injected delivery client.

    `delivery` needs a `send(token, payload) -> DeliveryResult` method
    (see `services.push.FirebaseDelivery`).
    """

    def __init__(
        self,
        db: Session,
        delivery,
        registry: DeviceRegistry | None = None,
        max_workers: int = SEND_MAX_WORKERS,
    ):
        self.db = db
        self.delivery = delivery
        self.registry = registry or DeviceRegistry(db)
        self.max_workers = max(1, max_workers)

    def run_slot(self, slot: str | ReminderSlot, now: datetime | None = None) -> SlotRunSummary:
        slot = ReminderSlot.parse(slot)
        now = now or datetime.now()
        started = time.monotonic()
        summary = SlotRunSummary(slot=slot.value)

        reminders = get_due_reminders(self.db, slot, now)
        summary.due = len(reminders)
        if not reminders:
            logger.info("No %s reminders due", slot.value)
            summary.duration_ms = int((time.monotonic() - started) * 1000)
            return summary

        jobs = self._resolve(reminders, summary)
        results = self._send_all(jobs, slot)
        self._reconcile(jobs, results, summary, now)

        summary.duration_ms = int((time.monotonic() - started) * 1000)
        logger.info(
            "%s run: due=%d processed=%d sent=%d failed=%d invalid_tokens=%d skipped=%d",
            slot.label, summary.due, summary.processed, summary.sent,
            summary.failed, summary.invalid_tokens, summary.skipped,
        )
        return summary

    # ─── Resolve ──────────────────────────────────────────
    def _targets_for(self, user_id: int) -> _UserTargets:
        try:
            prefs = self.registry.get_preferences(user_id)
            if not prefs.allows_push_reminders:
                return _UserTargets(allowed=False)
            tokens = [ep.token for ep in self.registry.list_active_endpoints(user_id)]
        except Exception as exc:
            logger.exception("Could not resolve devices for user %s: %s", user_id, exc)
            return _UserTargets(allowed=False, error=str(exc))
        return _UserTargets(allowed=True, tokens=tokens)

    def _resolve(self, reminders: list[Reminder], summary: SlotRunSummary) -> list[tuple[Reminder, list[str]]]:
        cache: dict[int, _UserTargets] = {}
        jobs = []
        for reminder in reminders:
            if reminder.user_id not in cache:
                cache[reminder.user_id] = self._targets_for(reminder.user_id)
            targets = cache[reminder.user_id]
            if targets.error:
                summary.skipped += 1
                summary.errors.append(f"user {reminder.user_id}: {targets.error}")
                continue
            if not targets.allowed:
                summary.skipped += 1
                continue
            if not targets.tokens:
                logger.info("User %s has no active devices; skipping %s", reminder.user_id, reminder.medicine_name)
                summary.skipped += 1
                continue
            jobs.append((reminder, list(targets.tokens)))
        return jobs

    # ─── Send ─────────────────────────────────────────────
    def _send_one(self, token: str, payload: ReminderPayload) -> DeliveryResult:
        try:
            result = self.delivery.send(token, payload)
        except Exception as exc:
            logger.exception("Delivery client raised for user %s: %s", payload.user_id, exc)
            return DeliveryResult.failure(token, DeliveryErrorKind.other, str(exc))
        if result is None:
            return DeliveryResult.failure(token, DeliveryErrorKind.other, "no result")
        return result

    def _send_all(self, jobs, slot: ReminderSlot) -> list[list[DeliveryResult]]:
        if not jobs:
            return []
        with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            futures = []
            for reminder, tokens in jobs:
                payload = ReminderPayload(
                    medicine_name=reminder.medicine_name,
                    dosage=reminder.dosage,
                    slot=slot.value,
                    user_id=reminder.user_id,
                    prescription_id=reminder.prescription_id,
                )
                futures.append([pool.submit(self._send_one, token, payload) for token in tokens])
            return [[f.result() for f in per_reminder] for per_reminder in futures]

    # ─── Reconcile ────────────────────────────────────────
    def _reconcile(self, jobs, results, summary: SlotRunSummary, now: datetime) -> None:
        invalidated: set[str] = set()
        delivered: set[str] = set()
        attempted_ids = []
        for (reminder, _tokens), outcomes in zip(jobs, results):
            attempted_ids.append(reminder.id)
            for outcome in outcomes:
                if outcome.ok:
                    summary.sent += 1
                    delivered.add(outcome.token)
                    continue
                summary.failed += 1
                if outcome.invalid_token:
                    invalidated.add(outcome.token)
                else:
                    logger.warning(
                        "Reminder %s to user %s failed: %s",
                        reminder.id, reminder.user_id, outcome.error or "unknown error",
                    )

        for token in invalidated:
            summary.invalid_tokens += self._endpoint_write(
                "deactivate token", self.registry.deactivate_endpoint, token,
            )
        for token in delivered - invalidated:
            self._endpoint_write("update token last_used", self.registry.touch_endpoint, token, now)

        summary.processed = len(attempted_ids)
        mark_notified(self.db, attempted_ids, now)
        self.db.commit()

    def _endpoint_write(self, action: str, write, *args) -> int:
        # Savepoint per write: a failed UPDATE must not abort the run's transaction.
        try:
            with self.db.begin_nested():
                return write(*args) or 0
        except Exception as exc:
            logger.exception("Could not %s: %s", action, exc)
            return 0


def run_slot(db: Session, delivery, slot: str | ReminderSlot, now: datetime | None = None) -> SlotRunSummary:
    return ReminderDispatcher(db, delivery).run_slot(slot, now)


def run_all_slots(db: Session, delivery, now: datetime | None = None) -> dict:
    """Run morning, noon and night back to back and aggregate the counts."""
    summaries = [run_slot(db, delivery, slot, now) for slot in ReminderSlot]
    return {
        "total_processed": sum(s.processed for s in summaries),
        "total_sent": sum(s.sent for s in summaries),
        "total_failed": sum(s.failed for s in summaries),
        "slots": {s.slot: s.to_dict() for s in summaries},
    }
