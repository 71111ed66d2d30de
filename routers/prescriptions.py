from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from database import get_db
from dependencies import get_current_user_id
from models.prescription import Prescription, PrescriptionStatus
from schemas.prescription import (
    PrescriptionCreate,
    PrescriptionOut,
    PrescriptionStatusUpdate,
    PrescriptionUpdate,
)
from services.prescription_lifecycle import (
    on_prescription_archived_or_completed,
    on_prescription_deleted,
    on_prescription_reactivated,
    on_prescription_saved,
    on_prescription_updated,
)

router = APIRouter(prefix="/prescriptions", tags=["Prescriptions"])


def _get_owned(db: Session, prescription_id: int, user_id: int) -> Prescription:
    row = (
        db.query(Prescription)
        .filter(Prescription.id == prescription_id, Prescription.user_id == user_id)
        .first()
    )
    if not row:
        raise HTTPException(status_code=404, detail="Prescription not found or access denied")
    return row


@router.get("/", response_model=list[PrescriptionOut])
def list_prescriptions(
    current_only: bool = False,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    q = db.query(Prescription).filter(Prescription.user_id == user_id)
    if current_only:
        q = q.filter(Prescription.status == PrescriptionStatus.current)
    return q.order_by(Prescription.created_at.desc(), Prescription.id.desc()).all()


@router.post("/", response_model=PrescriptionOut, status_code=201)
def save_prescription(
    data: PrescriptionCreate,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Save a reviewed prescription; current ones get reminders right away."""
    row = Prescription(
        user_id=user_id,
        doctor_name=data.doctor_name,
        notes=data.notes,
        medicines=[m.model_dump() for m in data.medicines],
        status=PrescriptionStatus.current if data.is_current else PrescriptionStatus.archived,
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    on_prescription_saved(db, row)
    return row


@router.put("/{prescription_id}", response_model=PrescriptionOut)
def update_prescription(
    prescription_id: int,
    data: PrescriptionUpdate,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    row = _get_owned(db, prescription_id, user_id)
    update_data = data.model_dump(exclude_unset=True)
    if "medicines" in update_data:
        update_data["medicines"] = update_data["medicines"] or []
    for key, value in update_data.items():
        setattr(row, key, value)
    db.commit()
    db.refresh(row)
    on_prescription_updated(db, row)
    return row


@router.put("/{prescription_id}/status", response_model=PrescriptionOut)
def update_prescription_status(
    prescription_id: int,
    data: PrescriptionStatusUpdate,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Archive, complete, or mark a prescription current again."""
    row = _get_owned(db, prescription_id, user_id)
    row.status = PrescriptionStatus(data.status)
    db.commit()
    db.refresh(row)
    if row.is_current:
        on_prescription_reactivated(db, row)
    else:
        on_prescription_archived_or_completed(db, row.id)
    return row


@router.delete("/{prescription_id}")
def delete_prescription(
    prescription_id: int,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    row = _get_owned(db, prescription_id, user_id)
    on_prescription_deleted(db, row.id)
    db.delete(row)
    db.commit()
    return {"message": "Prescription deleted"}
