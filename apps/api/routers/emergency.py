"""Worker emergency requests"""
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlmodel import Session, select
from database import get_session
from models import Account, AccountRole, Worker, EmergencyRequest, EmergencyStatus
from schemas import EmergencyCreate, EmergencyStatusUpdate, EmergencyResponse
from dependencies import get_current_user, get_current_worker, get_hub
from services.broadcast import BroadcastHub, EventType
from validators.business_rules import get_business_rules
from typing import Optional
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/emergency", tags=["Emergency"])

rules = get_business_rules()

# Groups that hear about new emergencies
RESPONDER_GROUPS = [AccountRole.GOVERNMENT.value, AccountRole.DOCTOR.value]


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_emergency(
    emergency_data: EmergencyCreate,
    worker: Worker = Depends(get_current_worker),
    session: Session = Depends(get_session),
    hub: BroadcastHub = Depends(get_hub)
):
    """Raise an emergency (worker token)"""
    emergency = EmergencyRequest(
        worker_id=worker.id,
        type=emergency_data.type,
        description=emergency_data.description,
        latitude=emergency_data.latitude,
        longitude=emergency_data.longitude
    )

    session.add(emergency)
    session.commit()
    session.refresh(emergency)

    logger.info(f"Emergency {emergency.id} ({emergency.type}) raised by worker {worker.unique_id}")

    payload = EmergencyResponse.model_validate(emergency).model_dump()
    for group in RESPONDER_GROUPS:
        await hub.emit_to_group(group, EventType.NEW_EMERGENCY, payload)

    return {
        "message": "Emergency request created",
        "emergency": EmergencyResponse.model_validate(emergency)
    }


@router.get("/my-requests")
def list_my_emergencies(
    worker: Worker = Depends(get_current_worker),
    session: Session = Depends(get_session)
):
    """The calling worker's emergencies, newest first"""
    emergencies = session.exec(
        select(EmergencyRequest)
        .where(EmergencyRequest.worker_id == worker.id)
        .order_by(EmergencyRequest.created_at.desc(), EmergencyRequest.id.desc())
    ).all()

    return {"emergencies": [EmergencyResponse.model_validate(e) for e in emergencies]}


@router.get("")
def list_emergencies(
    status_filter: Optional[EmergencyStatus] = Query(default=None, alias="status"),
    limit: int = Query(default=rules.DEFAULT_PAGE_LIMIT, ge=1, le=rules.MAX_PAGE_LIMIT),
    offset: int = Query(default=0, ge=0),
    current_user: Account = Depends(get_current_user),
    session: Session = Depends(get_session)
):
    """All emergencies with the reporting worker's contact details"""
    query = (
        select(EmergencyRequest, Worker)
        .join(Worker, EmergencyRequest.worker_id == Worker.id, isouter=True)
    )
    if status_filter:
        query = query.where(EmergencyRequest.status == status_filter.value)

    rows = session.exec(
        query.order_by(EmergencyRequest.created_at.desc(), EmergencyRequest.id.desc())
        .offset(offset)
        .limit(limit)
    ).all()

    emergencies = []
    for emergency, worker in rows:
        item = EmergencyResponse.model_validate(emergency)
        if worker:
            item.worker_name = worker.name
            item.worker_phone = worker.phone
            item.worker_unique_id = worker.unique_id
        emergencies.append(item)

    return {"emergencies": emergencies}


@router.put("/{emergency_id}")
async def update_emergency_status(
    emergency_id: int,
    update: EmergencyStatusUpdate,
    current_user: Account = Depends(get_current_user),
    session: Session = Depends(get_session),
    hub: BroadcastHub = Depends(get_hub)
):
    """Move an emergency to any status in the allow-list"""
    emergency = session.get(EmergencyRequest, emergency_id)
    if not emergency:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Emergency request not found"
        )

    emergency.status = update.status.value
    session.add(emergency)
    session.commit()
    session.refresh(emergency)

    logger.info(f"Emergency {emergency_id} set to {emergency.status} by {current_user.id}")

    await hub.broadcast(
        EventType.EMERGENCY_UPDATED,
        EmergencyResponse.model_validate(emergency).model_dump()
    )

    return {"emergency": EmergencyResponse.model_validate(emergency)}
