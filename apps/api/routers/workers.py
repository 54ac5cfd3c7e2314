"""Worker registry endpoints for doctors and government operators"""
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlmodel import Session, select
from database import get_session
from models import Account, Worker, Prescription
from schemas import WorkerCreate, WorkerResponse, CaseHistoryEntry
from dependencies import get_current_user, require_doctor
from validators.business_rules import get_business_rules
from typing import Optional
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/workers", tags=["Workers"])

rules = get_business_rules()


def history_entry(prescription: Prescription, doctor: Optional[Account]) -> CaseHistoryEntry:
    entry = CaseHistoryEntry.model_validate(prescription)
    if doctor:
        entry.doctor_name = doctor.name
        entry.doctor_hospital = doctor.hospital_name
    return entry


def get_worker_or_404(session: Session, unique_id: str) -> Worker:
    worker = session.exec(select(Worker).where(Worker.unique_id == unique_id)).first()
    if not worker:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Worker not found"
        )
    return worker


@router.post("", status_code=status.HTTP_201_CREATED)
def create_worker(
    worker_data: WorkerCreate,
    current_user: Account = Depends(require_doctor),
    session: Session = Depends(get_session)
):
    """Register a worker (doctors only). A duplicate unique_id is a 409."""
    new_worker = Worker(**worker_data.model_dump())

    session.add(new_worker)
    # IntegrityError on a duplicate unique_id is mapped to 409 by the app handler
    session.commit()
    session.refresh(new_worker)

    logger.info(f"Worker {new_worker.unique_id} registered by doctor {current_user.id}")

    return {"worker": WorkerResponse.model_validate(new_worker)}


@router.get("")
def list_workers(
    district: Optional[str] = None,
    limit: int = Query(default=rules.DEFAULT_PAGE_LIMIT, ge=1, le=rules.MAX_PAGE_LIMIT),
    offset: int = Query(default=0, ge=0),
    current_user: Account = Depends(get_current_user),
    session: Session = Depends(get_session)
):
    """List workers, newest first, optionally for one district"""
    query = select(Worker)
    if district:
        query = query.where(Worker.current_district == district)

    workers = session.exec(
        query.order_by(Worker.created_at.desc(), Worker.id.desc()).offset(offset).limit(limit)
    ).all()

    return {"workers": [WorkerResponse.model_validate(worker) for worker in workers]}


@router.get("/{unique_id}")
def get_worker(
    unique_id: str,
    current_user: Account = Depends(get_current_user),
    session: Session = Depends(get_session)
):
    """Fetch a worker by their unique ID"""
    worker = get_worker_or_404(session, unique_id)
    return {"worker": WorkerResponse.model_validate(worker)}


@router.get("/{unique_id}/history")
def get_worker_history(
    unique_id: str,
    current_user: Account = Depends(get_current_user),
    session: Session = Depends(get_session)
):
    """A worker's case history, newest first, with the treating doctor"""
    worker = get_worker_or_404(session, unique_id)

    rows = session.exec(
        select(Prescription, Account)
        .join(Account, Prescription.doctor_id == Account.id, isouter=True)
        .where(Prescription.worker_id == worker.id)
        .order_by(Prescription.created_at.desc(), Prescription.id.desc())
    ).all()

    return {
        "worker": {"id": worker.id, "unique_id": worker.unique_id, "name": worker.name},
        "history": [history_entry(prescription, doctor) for prescription, doctor in rows]
    }
