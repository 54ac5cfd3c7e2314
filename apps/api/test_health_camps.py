"""Health camps and the notification written with each one"""
from datetime import datetime, timedelta

from fastapi.testclient import TestClient
from sqlmodel import Session, select

from models import HealthCamp, Notification
from routers.health_camps import format_camp_date
from services.broadcast import EventType


def camp_payload(**overrides):
    payload = {
        "camp_name": "Dengue Awareness Drive",
        "camp_type": "Dengue Checkup",
        "location_name": "Perumbavoor Bus Stand",
        "latitude": 10.1158,
        "longitude": 76.4773,
        "scheduled_date": "2025-03-15T10:30:00",
        "description": "Free screening for all workers.",
    }
    payload.update(overrides)
    return payload


def test_format_camp_date():
    assert format_camp_date(datetime(2025, 3, 15, 10, 30)) == "Saturday, 15 March 2025, 10:30 AM"
    assert format_camp_date(datetime(2025, 3, 5, 15, 5)) == "Wednesday, 5 March 2025, 3:05 PM"


def test_create_camp_writes_notification(client: TestClient, session: Session, hub, government_headers):
    response = client.post("/api/health-camps", headers=government_headers, json=camp_payload())

    assert response.status_code == 201
    camp = response.json()["camp"]
    link = "https://www.google.com/maps/search/?api=1&query=10.1158,76.4773"
    assert camp["maps_link"] == link
    assert camp["status"] == "scheduled"

    notifications = session.exec(select(Notification)).all()
    assert len(notifications) == 1
    notification = notifications[0]
    assert notification.title == "New Health Camp: Dengue Awareness Drive"
    assert notification.type == "health_camp"
    assert notification.reference_id == camp["id"]
    assert notification.message == (
        "Dengue Checkup at Perumbavoor Bus Stand on Saturday, 15 March 2025, 10:30 AM. "
        "Free screening for all workers."
        f"\n\nNavigate to location: {link}"
    )

    event, data = hub.broadcasts[-1]
    assert event == EventType.NEW_HEALTH_CAMP
    assert data["id"] == camp["id"]


def test_explicit_maps_link_wins(client: TestClient, hub, government_headers):
    response = client.post(
        "/api/health-camps", headers=government_headers,
        json=camp_payload(maps_link="https://maps.example/camp")
    )
    assert response.json()["camp"]["maps_link"] == "https://maps.example/camp"


def test_unlocatable_camp_has_no_link(client: TestClient, session: Session, hub, government_headers):
    response = client.post(
        "/api/health-camps", headers=government_headers,
        json=camp_payload(latitude=None, longitude=None, description=None)
    )

    assert response.status_code == 201
    assert response.json()["camp"]["maps_link"] is None
    message = session.exec(select(Notification)).one().message
    assert message == "Dengue Checkup at Perumbavoor Bus Stand on Saturday, 15 March 2025, 10:30 AM."


def test_invalid_camp_type(client: TestClient, session: Session, hub, government_headers):
    response = client.post("/api/health-camps", headers=government_headers, json=camp_payload(camp_type="Yoga"))

    assert response.status_code == 400
    assert "Must be one of" in response.json()["detail"]
    assert session.exec(select(HealthCamp)).all() == []
    assert session.exec(select(Notification)).all() == []


def test_doctor_cannot_create_camp(client: TestClient, hub, doctor_headers):
    response = client.post("/api/health-camps", headers=doctor_headers, json=camp_payload())
    assert response.status_code == 403


def test_list_filters_and_order(client: TestClient, hub, government_headers):
    future = datetime.utcnow() + timedelta(days=3)
    later = datetime.utcnow() + timedelta(days=10)
    client.post("/api/health-camps", headers=government_headers,
                json=camp_payload(camp_name="Later", camp_type="Eye Camp", scheduled_date=later.isoformat()))
    client.post("/api/health-camps", headers=government_headers,
                json=camp_payload(camp_name="Soon", scheduled_date=future.isoformat()))
    client.post("/api/health-camps", headers=government_headers,
                json=camp_payload(camp_name="Past"))

    everything = client.get("/api/health-camps", headers=government_headers).json()
    assert [c["camp_name"] for c in everything["camps"]] == ["Past", "Soon", "Later"]
    assert everything["total"] == 3
    assert "Dengue Checkup" in everything["camp_types"]

    upcoming = client.get("/api/health-camps", headers=government_headers, params={"upcoming": "true"}).json()
    assert [c["camp_name"] for c in upcoming["camps"]] == ["Soon", "Later"]

    eye = client.get("/api/health-camps", headers=government_headers, params={"camp_type": "Eye Camp"}).json()
    assert [c["camp_name"] for c in eye["camps"]] == ["Later"]


def test_meta_types_and_get_by_id(client: TestClient, hub, government_headers, doctor_headers):
    types = client.get("/api/health-camps/meta/types", headers=doctor_headers).json()["camp_types"]
    assert len(types) == 8

    camp_id = client.post("/api/health-camps", headers=government_headers, json=camp_payload()).json()["camp"]["id"]
    assert client.get(f"/api/health-camps/{camp_id}", headers=doctor_headers).json()["camp"]["id"] == camp_id
    assert client.get("/api/health-camps/999", headers=doctor_headers).status_code == 404
