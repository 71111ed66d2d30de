from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from database import get_db
from dependencies import get_current_user_id
from schemas.device import (
    DeviceTokenOut,
    DeviceTokenRegister,
    NotificationSettingsOut,
    NotificationSettingsUpdate,
)
from services.device_registry import DeviceRegistry

router = APIRouter(prefix="/devices", tags=["Devices"])


@router.post("/register", response_model=DeviceTokenOut)
def register_device(
    data: DeviceTokenRegister,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Register (or refresh) this install's FCM token."""
    try:
        row = DeviceRegistry(db).register_endpoint(user_id, data.token, data.platform, data.device_id)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    db.commit()
    db.refresh(row)
    return row


@router.get("/", response_model=list[DeviceTokenOut])
def list_devices(
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    return DeviceRegistry(db).list_active_endpoints(user_id)


@router.delete("/{device_id}")
def remove_device(
    device_id: str,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    removed = DeviceRegistry(db).remove_endpoint(user_id, device_id)
    if not removed:
        raise HTTPException(status_code=404, detail="Device not found")
    db.commit()
    return {"message": "FCM token removed successfully"}


@router.get("/settings", response_model=NotificationSettingsOut)
def get_settings(
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    return DeviceRegistry(db).get_preferences(user_id)


@router.put("/settings", response_model=NotificationSettingsOut)
def update_settings(
    data: NotificationSettingsUpdate,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    row = DeviceRegistry(db).update_preferences(user_id, **data.model_dump(exclude_unset=True))
    db.commit()
    db.refresh(row)
    return row
