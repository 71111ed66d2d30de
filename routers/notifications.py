from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from database import get_db
from dependencies import get_current_user_id, get_delivery
from schemas.notification import DeliveryResultOut, ReminderTestRequest
from services.device_registry import DeviceRegistry
from services.push import ReminderPayload

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.post("/test", response_model=list[DeliveryResultOut])
def send_test_reminder(
    data: ReminderTestRequest,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    delivery=Depends(get_delivery),
):
    """Push one reminder to every active device of the caller, ignoring preferences."""
    registry = DeviceRegistry(db)
    tokens = [ep.token for ep in registry.list_active_endpoints(user_id)]
    if not tokens:
        raise HTTPException(status_code=400, detail="No FCM tokens for this user")
    payload = ReminderPayload(
        medicine_name=data.medicine_name,
        dosage=data.dosage,
        slot=data.time_slot,
        user_id=user_id,
    )
    results = []
    for token in tokens:
        outcome = delivery.send(token, payload)
        if outcome.invalid_token:
            registry.deactivate_endpoint(token)
        results.append(
            DeliveryResultOut(
                token=token,
                status="SENT" if outcome.ok else "FAILED",
                error=None if outcome.ok else (outcome.error or outcome.error_kind.value),
            )
        )
    db.commit()
    return results
