"""Case reporting and dashboard analytics endpoints"""
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlmodel import Session, select
from database import get_session
from models import Account, Worker, Prescription
from schemas import CaseCreate, PrescriptionResponse
from dependencies import get_current_user, require_doctor, get_hub
from services.broadcast import BroadcastHub, EventType
from services import aggregation
from validators.business_rules import get_business_rules, resolve_time_range
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/cases", tags=["Cases"])

rules = get_business_rules()


def resolve_worker_id(session: Session, case_data: CaseCreate):
    """The worker a case is filed against, or None for an anonymous case"""
    if case_data.worker_id is not None:
        if not session.get(Worker, case_data.worker_id):
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Worker not found"
            )
        return case_data.worker_id

    if case_data.worker_unique_id:
        worker = session.exec(
            select(Worker).where(Worker.unique_id == case_data.worker_unique_id)
        ).first()
        if not worker:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Worker not found"
            )
        return worker.id

    return None


def validate_time_range(time_range: str) -> str:
    try:
        resolve_time_range(time_range)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )
    return time_range


@router.post("", status_code=status.HTTP_201_CREATED)
async def submit_case(
    case_data: CaseCreate,
    current_user: Account = Depends(require_doctor),
    session: Session = Depends(get_session),
    hub: BroadcastHub = Depends(get_hub)
):
    """Report a case (doctors only) and push it to live dashboards"""
    worker_id = resolve_worker_id(session, case_data)

    prescription = Prescription(
        worker_id=worker_id,
        doctor_id=current_user.id,
        diagnosis=case_data.diagnosis,
        medications=[item.model_dump(exclude_none=True) for item in case_data.medications],
        voice_note_url=case_data.voice_note_url,
        hospital_name=current_user.hospital_name or "Unknown Hospital",
        district=case_data.district,
        latitude=case_data.latitude,
        longitude=case_data.longitude
    )

    session.add(prescription)
    session.commit()
    session.refresh(prescription)

    logger.info(f"Case {prescription.id} ({prescription.diagnosis}) reported by doctor {current_user.id}")

    # Published after commit so subscribers can already query the row
    await hub.broadcast(EventType.NEW_CASE, {
        "id": prescription.id,
        "diagnosis": prescription.diagnosis,
        "district": prescription.district,
        "latitude": prescription.latitude,
        "longitude": prescription.longitude,
        "hospital_name": prescription.hospital_name,
        "created_at": prescription.created_at
    })

    return {
        "message": "Case reported successfully",
        "prescription": PrescriptionResponse.model_validate(prescription)
    }


@router.get("/stats")
def get_case_stats(
    time_range: str = Query(default=rules.DEFAULT_TIME_RANGE, alias="timeRange"),
    current_user: Account = Depends(get_current_user),
    session: Session = Depends(get_session)
):
    """Totals, today's count, active workers and district/diagnosis breakdowns"""
    return aggregation.case_stats(session, validate_time_range(time_range))


@router.get("/heatmap")
def get_heatmap(
    time_range: str = Query(default=rules.DEFAULT_TIME_RANGE, alias="timeRange"),
    current_user: Account = Depends(get_current_user),
    session: Session = Depends(get_session)
):
    """Case locations merged into weighted points for the map"""
    return aggregation.heatmap(session, validate_time_range(time_range))


@router.get("/trends")
def get_trends(
    current_user: Account = Depends(get_current_user),
    session: Session = Depends(get_session)
):
    """Daily counts per diagnosis over the last 30 days"""
    return aggregation.disease_trends(session)
