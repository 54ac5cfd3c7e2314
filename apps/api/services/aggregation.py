"""
Dashboard aggregation queries
Read-only views over reported cases and medicine requests: summary stats,
heatmap points, disease trend series and per-district medicine demand.

Every function takes an optional ``now`` so the window arithmetic can be
pinned in tests; by default it is the current UTC time, matching the naive
UTC timestamps stored on the rows.
"""

from collections import OrderedDict
from datetime import datetime, timedelta, time
from typing import Any, Dict, List, Optional
from sqlmodel import Session, select, func
import logging

from models import Prescription, MedicineRequest
from validators.business_rules import get_business_rules, resolve_time_range

logger = logging.getLogger(__name__)


def _window_start(time_range: str, now: datetime) -> datetime:
    return now - resolve_time_range(time_range)


def case_stats(session: Session, time_range: str = "7d", now: Optional[datetime] = None) -> Dict[str, Any]:
    """
    Summary counts for the government dashboard.

    total_cases, active_workers and both breakdowns are restricted to the
    window; today_cases always counts the current calendar day. Rows with
    equal counts come back in whatever order the store produces.
    """
    rules = get_business_rules()
    now = now or datetime.utcnow()
    since = _window_start(time_range, now)
    in_window = Prescription.created_at > since

    total_cases = session.exec(
        select(func.count(Prescription.id)).where(in_window)
    ).one()

    day_start = datetime.combine(now.date(), time.min)
    today_cases = session.exec(
        select(func.count(Prescription.id)).where(
            Prescription.created_at >= day_start,
            Prescription.created_at < day_start + timedelta(days=1)
        )
    ).one()

    active_workers = session.exec(
        select(func.count(func.distinct(Prescription.worker_id))).where(
            in_window,
            Prescription.worker_id.is_not(None)
        )
    ).one()

    district_count = func.count(Prescription.id).label("count")
    by_district = session.exec(
        select(Prescription.district, district_count)
        .where(in_window, Prescription.district.is_not(None))
        .group_by(Prescription.district)
        .order_by(district_count.desc())
    ).all()

    diagnosis_count = func.count(Prescription.id).label("count")
    by_diagnosis = session.exec(
        select(Prescription.diagnosis, diagnosis_count)
        .where(in_window)
        .group_by(Prescription.diagnosis)
        .order_by(diagnosis_count.desc())
        .limit(rules.TOP_DIAGNOSES_LIMIT)
    ).all()

    return {
        "total_cases": int(total_cases),
        "today_cases": int(today_cases),
        "active_workers": int(active_workers),
        "by_district": [{"district": district, "count": int(count)} for district, count in by_district],
        "by_diagnosis": [{"diagnosis": diagnosis, "count": int(count)} for diagnosis, count in by_diagnosis],
    }


def heatmap(session: Session, time_range: str = "7d", now: Optional[datetime] = None) -> Dict[str, Any]:
    """
    Plottable case locations, one point per distinct (latitude, longitude).

    Cases without both coordinates are not plottable and are skipped. The
    weight of a point is the number of cases at it; diagnoses are listed once
    each, newest first.
    """
    now = now or datetime.utcnow()
    since = _window_start(time_range, now)

    rows = session.exec(
        select(Prescription)
        .where(
            Prescription.created_at > since,
            Prescription.latitude.is_not(None),
            Prescription.longitude.is_not(None)
        )
        .order_by(Prescription.created_at.desc())
    ).all()

    points: Dict[tuple, Dict[str, Any]] = OrderedDict()
    for row in rows:
        key = (row.latitude, row.longitude)
        point = points.get(key)
        if point is None:
            point = points[key] = {
                "lat": float(row.latitude),
                "lng": float(row.longitude),
                "weight": 0,
                "district": row.district,
                "diagnoses": [],
            }
        point["weight"] += 1
        if row.diagnosis not in point["diagnoses"]:
            point["diagnoses"].append(row.diagnosis)

    return {"heatmap_data": list(points.values()), "raw_cases": len(rows)}


def disease_trends(session: Session, now: Optional[datetime] = None) -> Dict[str, List[Dict[str, Any]]]:
    """
    Daily case counts per diagnosis over the trend lookback, oldest day first.

    A diagnosis with no cases on a given day is absent from that day's row
    rather than reported as zero.
    """
    rules = get_business_rules()
    now = now or datetime.utcnow()
    since = now - timedelta(days=rules.TREND_LOOKBACK_DAYS)

    rows = session.exec(
        select(Prescription.created_at, Prescription.diagnosis)
        .where(Prescription.created_at > since)
        .order_by(Prescription.created_at)
    ).all()

    trends: Dict[str, Dict[str, Any]] = OrderedDict()
    for created_at, diagnosis in rows:
        day = created_at.date().isoformat()
        entry = trends.setdefault(day, {"date": day})
        entry[diagnosis] = entry.get(diagnosis, 0) + 1

    return {"trends": list(trends.values())}


def medicine_demand(session: Session) -> Dict[str, List[Dict[str, Any]]]:
    """
    Outstanding medicine demand per district.

    Only pending and approved requests count. Each district reports how many
    requests it has open and the summed quantity per medicine name; a line
    without a quantity counts as one unit.
    """
    rules = get_business_rules()
    requests = session.exec(
        select(MedicineRequest).where(MedicineRequest.status.in_(rules.DEMAND_STATUSES))
    ).all()

    demand: Dict[Optional[str], Dict[str, Any]] = {}
    for request in requests:
        summary = demand.setdefault(request.district, {
            "district": request.district,
            "total_requests": 0,
            "medicines": {},
        })
        summary["total_requests"] += 1
        for item in request.medicines or []:
            name = item.get("name")
            if not name:
                logger.warning(f"Skipping unnamed medicine line on request {request.id}")
                continue
            quantity = item.get("quantity")
            summary["medicines"][name] = summary["medicines"].get(name, 0) + (1 if quantity is None else int(quantity))

    ordered = sorted(demand.values(), key=lambda summary: summary["total_requests"], reverse=True)
    return {"demand": ordered}


def medicine_request_status_counts(session: Session) -> Dict[str, int]:
    """Number of medicine requests in each status, across all districts"""
    rows = session.exec(
        select(MedicineRequest.status, func.count(MedicineRequest.id))
        .group_by(MedicineRequest.status)
    ).all()
    return {status: int(count) for status, count in rows}
