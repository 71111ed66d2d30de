import hmac

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

import config
from database import get_db
from dependencies import get_delivery
from services.dispatcher import run_all_slots, run_slot
from services.reconciler import run_cleanup
from services.reminder_store import ReminderSlot

router = APIRouter(prefix="/jobs", tags=["Jobs"])


def _require_job_key(key: str = Query(default="")) -> None:
    if not config.JOB_RUN_KEY:
        raise HTTPException(status_code=503, detail="JOB_RUN_KEY is not configured")
    if not hmac.compare_digest(key, config.JOB_RUN_KEY):
        raise HTTPException(status_code=401, detail="Invalid job key")


@router.get("/run-reminders", dependencies=[Depends(_require_job_key)])
def run_all_reminders(
    db: Session = Depends(get_db),
    delivery=Depends(get_delivery),
):
    """Run morning, noon and night dispatch back to back (manual catch-up)."""
    return {"ok": True, **run_all_slots(db, delivery)}


@router.get("/run-reminders/{slot}", dependencies=[Depends(_require_job_key)])
def run_slot_reminders(
    slot: str,
    db: Session = Depends(get_db),
    delivery=Depends(get_delivery),
):
    """External scheduler hook: 08:00 morning, 13:00 noon, 20:00 night."""
    try:
        slot_value = ReminderSlot.parse(slot)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    summary = run_slot(db, delivery, slot_value)
    return {"ok": True, "count": summary.processed, **summary.to_dict()}


@router.get("/run-cleanup", dependencies=[Depends(_require_job_key)])
def run_cleanup_job(db: Session = Depends(get_db)):
    """External scheduler hook, once a day: expire finished courses, prune stale tokens."""
    return {"ok": True, **run_cleanup(db)}
