"""Health camp scheduling and the worker notification that announces it"""
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlmodel import Session, select
from database import get_session
from models import Account, HealthCamp, Notification, NotificationType, CampStatus
from schemas import HealthCampCreate, HealthCampResponse
from dependencies import get_current_user, require_government, get_hub
from services.broadcast import BroadcastHub, EventType
from validators.business_rules import CAMP_TYPES
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/health-camps", tags=["Health Camps"])

MAPS_SEARCH_URL = "https://www.google.com/maps/search/?api=1&query={lat},{lon}"


def build_maps_link(
    maps_link: Optional[str],
    latitude: Optional[Decimal],
    longitude: Optional[Decimal]
) -> Optional[str]:
    """Explicit link first, then one built from coordinates, else none"""
    if maps_link:
        return maps_link
    if latitude is not None and longitude is not None:
        return MAPS_SEARCH_URL.format(lat=latitude, lon=longitude)
    return None


def format_camp_date(value: datetime) -> str:
    """e.g. Saturday, 15 March 2025, 10:30 AM"""
    hour = value.hour % 12 or 12
    return f"{value:%A}, {value.day} {value:%B %Y}, {hour}:{value:%M %p}"


def camp_notification_message(camp: HealthCamp) -> str:
    message = f"{camp.camp_type} at {camp.location_name} on {format_camp_date(camp.scheduled_date)}."
    if camp.description:
        message += f" {camp.description}"
    if camp.maps_link:
        message += f"\n\nNavigate to location: {camp.maps_link}"
    return message


def as_naive_utc(value: datetime) -> datetime:
    # Rows store naive UTC timestamps
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_health_camp(
    camp_data: HealthCampCreate,
    current_user: Account = Depends(require_government),
    session: Session = Depends(get_session),
    hub: BroadcastHub = Depends(get_hub)
):
    """Schedule a camp and announce it to every worker (government only)"""
    camp = HealthCamp(
        camp_name=camp_data.camp_name,
        camp_type=camp_data.camp_type,
        location_name=camp_data.location_name,
        latitude=camp_data.latitude,
        longitude=camp_data.longitude,
        maps_link=build_maps_link(camp_data.maps_link, camp_data.latitude, camp_data.longitude),
        scheduled_date=as_naive_utc(camp_data.scheduled_date),
        description=camp_data.description,
        created_by=current_user.id,
        status=CampStatus.SCHEDULED.value
    )
    session.add(camp)
    # Flush for the camp id; camp and notification share one commit
    session.flush()

    notification = Notification(
        title=f"New Health Camp: {camp.camp_name}",
        message=camp_notification_message(camp),
        type=NotificationType.HEALTH_CAMP.value,
        reference_id=camp.id,
        is_broadcast=True
    )
    session.add(notification)
    session.commit()
    session.refresh(camp)

    logger.info(f"Health camp {camp.id} ({camp.camp_type}) scheduled by {current_user.id}")

    camp_response = HealthCampResponse.model_validate(camp)
    await hub.broadcast(EventType.NEW_HEALTH_CAMP, camp_response.model_dump())

    return {
        "message": "Health camp created and notifications sent to all workers",
        "camp": camp_response
    }


@router.get("")
def list_health_camps(
    status_filter: Optional[CampStatus] = Query(default=None, alias="status"),
    camp_type: Optional[str] = None,
    upcoming: bool = False,
    current_user: Account = Depends(get_current_user),
    session: Session = Depends(get_session)
):
    """Camps ordered by scheduled date"""
    query = select(HealthCamp)
    if status_filter:
        query = query.where(HealthCamp.status == status_filter.value)
    if camp_type:
        query = query.where(HealthCamp.camp_type == camp_type)
    if upcoming:
        query = query.where(HealthCamp.scheduled_date >= datetime.utcnow())

    camps = session.exec(query.order_by(HealthCamp.scheduled_date, HealthCamp.id)).all()

    return {
        "camps": [HealthCampResponse.model_validate(camp) for camp in camps],
        "total": len(camps),
        "camp_types": CAMP_TYPES
    }


@router.get("/meta/types")
def get_camp_types(current_user: Account = Depends(get_current_user)):
    return {"camp_types": CAMP_TYPES}


@router.get("/{camp_id}")
def get_health_camp(
    camp_id: int,
    current_user: Account = Depends(get_current_user),
    session: Session = Depends(get_session)
):
    camp = session.get(HealthCamp, camp_id)
    if not camp:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Health camp not found"
        )
    return {"camp": HealthCampResponse.model_validate(camp)}
