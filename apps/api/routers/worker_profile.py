"""Worker self-service: profile, own case history and the notification feed"""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlmodel import Session, select
from database import get_session
from models import Account, Worker, Prescription, HealthCamp, Notification, CampStatus
from schemas import (
    WorkerProfileUpdate, WorkerResponse, HealthCampResponse, NotificationResponse
)
from dependencies import get_current_worker
from routers.workers import history_entry
from validators.business_rules import get_business_rules
from datetime import datetime
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/worker", tags=["Worker Self-Service"])

rules = get_business_rules()


@router.get("/profile")
def get_profile(worker: Worker = Depends(get_current_worker)):
    return {"worker": WorkerResponse.model_validate(worker)}


@router.put("/profile")
def update_profile(
    profile_data: WorkerProfileUpdate,
    worker: Worker = Depends(get_current_worker),
    session: Session = Depends(get_session)
):
    """Update contact details and location"""
    updates = profile_data.model_dump(exclude_unset=True)
    if not updates:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No fields to update"
        )

    for key, value in updates.items():
        setattr(worker, key, value)

    session.add(worker)
    session.commit()
    session.refresh(worker)

    logger.info(f"Worker {worker.unique_id} updated {', '.join(updates)}")

    return {"worker": WorkerResponse.model_validate(worker)}


@router.get("/prescriptions")
def list_my_prescriptions(
    worker: Worker = Depends(get_current_worker),
    session: Session = Depends(get_session)
):
    rows = session.exec(
        select(Prescription, Account)
        .join(Account, Prescription.doctor_id == Account.id, isouter=True)
        .where(Prescription.worker_id == worker.id)
        .order_by(Prescription.created_at.desc(), Prescription.id.desc())
    ).all()

    return {"prescriptions": [history_entry(prescription, doctor) for prescription, doctor in rows]}


@router.get("/prescriptions/{prescription_id}")
def get_my_prescription(
    prescription_id: int,
    worker: Worker = Depends(get_current_worker),
    session: Session = Depends(get_session)
):
    """One of the caller's prescriptions; anyone else's is reported as missing"""
    row = session.exec(
        select(Prescription, Account)
        .join(Account, Prescription.doctor_id == Account.id, isouter=True)
        .where(Prescription.id == prescription_id, Prescription.worker_id == worker.id)
    ).first()
    if not row:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Prescription not found"
        )

    prescription, doctor = row
    return {"prescription": history_entry(prescription, doctor)}


@router.get("/notifications")
def get_notifications(
    worker: Worker = Depends(get_current_worker),
    session: Session = Depends(get_session)
):
    """Latest broadcast notifications and the next scheduled camps"""
    notifications = session.exec(
        select(Notification)
        .where(Notification.is_broadcast == True)  # noqa: E712
        .order_by(Notification.created_at.desc(), Notification.id.desc())
        .limit(rules.NOTIFICATION_FEED_LIMIT)
    ).all()

    upcoming_camps = session.exec(
        select(HealthCamp)
        .where(
            HealthCamp.status == CampStatus.SCHEDULED.value,
            HealthCamp.scheduled_date >= datetime.utcnow()
        )
        .order_by(HealthCamp.scheduled_date, HealthCamp.id)
        .limit(rules.UPCOMING_CAMPS_LIMIT)
    ).all()

    # Read state is not tracked per worker, so every entry counts as unread
    feed = [NotificationResponse.model_validate(n) for n in notifications]

    return {
        "notifications": feed,
        "upcoming_camps": [HealthCampResponse.model_validate(camp) for camp in upcoming_camps],
        "unread_count": len(feed)
    }
