from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from database import get_db
from dependencies import get_current_user_id
from schemas.reminder import ReminderOut
from services.reminder_store import list_user_reminders

router = APIRouter(prefix="/reminders", tags=["Reminders"])


@router.get("/", response_model=list[ReminderOut])
def list_reminders(
    include_inactive: bool = False,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """The caller's medication reminders, newest first."""
    return list_user_reminders(db, user_id, active_only=not include_inactive)
