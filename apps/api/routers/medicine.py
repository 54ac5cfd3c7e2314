"""Medicine requisition endpoints"""
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlmodel import Session, select
from database import get_session
from models import Account, MedicineRequest, MedicineRequestStatus
from schemas import MedicineRequestCreate, MedicineStatusUpdate, MedicineRequestResponse
from dependencies import get_current_user, require_doctor, require_government, get_hub
from services.broadcast import BroadcastHub, EventType
from services import aggregation
from validators.business_rules import get_business_rules
from typing import Optional
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/medicine", tags=["Medicine"])

rules = get_business_rules()


@router.post("/request", status_code=status.HTTP_201_CREATED)
async def submit_medicine_request(
    request_data: MedicineRequestCreate,
    current_user: Account = Depends(require_doctor),
    session: Session = Depends(get_session),
    hub: BroadcastHub = Depends(get_hub)
):
    """Submit a medicine requisition for the doctor's hospital (doctors only)"""
    medicine_request = MedicineRequest(
        doctor_id=current_user.id,
        hospital_name=current_user.hospital_name or "Unknown Hospital",
        district=request_data.district or "Unknown",
        medicines=[item.model_dump(exclude_none=True) for item in request_data.medicines],
        status=MedicineRequestStatus.PENDING.value
    )

    session.add(medicine_request)
    session.commit()
    session.refresh(medicine_request)

    logger.info(f"Medicine request {medicine_request.id} submitted for {medicine_request.district}")

    await hub.broadcast(EventType.NEW_MEDICINE_REQUEST, {
        "id": medicine_request.id,
        "hospital_name": medicine_request.hospital_name,
        "district": medicine_request.district,
        "medicines": medicine_request.medicines,
        "status": medicine_request.status,
        "created_at": medicine_request.created_at
    })

    return {
        "message": "Medicine request submitted successfully",
        "request": MedicineRequestResponse.model_validate(medicine_request)
    }


@router.get("/requests")
def list_medicine_requests(
    status_filter: Optional[MedicineRequestStatus] = Query(default=None, alias="status"),
    district: Optional[str] = None,
    limit: int = Query(default=rules.DEFAULT_PAGE_LIMIT, ge=1, le=rules.MAX_PAGE_LIMIT),
    offset: int = Query(default=0, ge=0),
    current_user: Account = Depends(get_current_user),
    session: Session = Depends(get_session)
):
    """List requisitions newest first, with per-status totals"""
    query = (
        select(MedicineRequest, Account)
        .join(Account, MedicineRequest.doctor_id == Account.id, isouter=True)
    )
    if status_filter:
        query = query.where(MedicineRequest.status == status_filter.value)
    if district:
        query = query.where(MedicineRequest.district == district)

    rows = session.exec(
        query.order_by(MedicineRequest.created_at.desc(), MedicineRequest.id.desc())
        .offset(offset)
        .limit(limit)
    ).all()

    requests = []
    for medicine_request, doctor in rows:
        item = MedicineRequestResponse.model_validate(medicine_request)
        if doctor:
            item.doctor_name = doctor.name
            item.doctor_email = doctor.email
        requests.append(item)

    return {
        "requests": requests,
        "stats": aggregation.medicine_request_status_counts(session)
    }


@router.patch("/request/{request_id}")
async def update_medicine_request_status(
    request_id: int,
    update: MedicineStatusUpdate,
    current_user: Account = Depends(require_government),
    session: Session = Depends(get_session),
    hub: BroadcastHub = Depends(get_hub)
):
    """Set a requisition's status (government only). Any status may follow any other."""
    medicine_request = session.get(MedicineRequest, request_id)
    if not medicine_request:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Request not found"
        )

    # Last write wins; there is no version check
    medicine_request.status = update.status.value
    session.add(medicine_request)
    session.commit()
    session.refresh(medicine_request)

    logger.info(f"Medicine request {request_id} set to {medicine_request.status} by {current_user.id}")

    await hub.broadcast(
        EventType.MEDICINE_REQUEST_UPDATE,
        MedicineRequestResponse.model_validate(medicine_request).model_dump()
    )

    return {
        "message": "Request updated successfully",
        "request": MedicineRequestResponse.model_validate(medicine_request)
    }


@router.get("/demand")
def get_medicine_demand(
    current_user: Account = Depends(require_government),
    session: Session = Depends(get_session)
):
    """Outstanding demand per district (government only)"""
    return aggregation.medicine_demand(session)
