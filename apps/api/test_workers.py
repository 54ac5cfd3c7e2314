"""Worker registry endpoints"""
from datetime import datetime, timedelta

from fastapi.testclient import TestClient
from sqlmodel import Session

from models import Prescription


def test_doctor_registers_worker(client: TestClient, doctor_headers):
    response = client.post("/api/workers", headers=doctor_headers, json={
        "unique_id": "MW-KL-1001",
        "name": "Suresh Yadav",
        "age": 28,
        "origin_state": "Uttar Pradesh",
        "phone": "+919000001001",
        "current_district": "Ernakulam",
        "latitude": 9.9816,
        "longitude": 76.2999,
    })

    assert response.status_code == 201
    worker = response.json()["worker"]
    assert worker["unique_id"] == "MW-KL-1001"
    assert worker["latitude"] == 9.9816
    assert "otp" not in worker


def test_duplicate_unique_id_conflicts(client: TestClient, session: Session, doctor_headers, worker):
    response = client.post("/api/workers", headers=doctor_headers, json={
        "unique_id": worker.unique_id,
        "name": "Someone Else",
    })
    assert response.status_code == 409
    session.rollback()


def test_government_cannot_register_worker(client: TestClient, government_headers):
    response = client.post("/api/workers", headers=government_headers, json={
        "unique_id": "MW-KL-1002",
        "name": "Anita Devi",
    })
    assert response.status_code == 403


def test_out_of_range_latitude_rejected(client: TestClient, doctor_headers):
    response = client.post("/api/workers", headers=doctor_headers, json={
        "unique_id": "MW-KL-1003",
        "name": "Anita Devi",
        "latitude": 91,
    })
    assert response.status_code == 400


def test_list_and_filter_by_district(client: TestClient, doctor_headers, worker):
    client.post("/api/workers", headers=doctor_headers, json={
        "unique_id": "MW-KL-2001",
        "name": "Mohammed Alam",
        "current_district": "Kozhikode",
    })

    everyone = client.get("/api/workers", headers=doctor_headers).json()["workers"]
    assert {w["unique_id"] for w in everyone} == {worker.unique_id, "MW-KL-2001"}

    kozhikode = client.get("/api/workers", headers=doctor_headers, params={"district": "Kozhikode"}).json()
    assert [w["unique_id"] for w in kozhikode["workers"]] == ["MW-KL-2001"]


def test_get_worker_by_unique_id(client: TestClient, government_headers, worker):
    response = client.get(f"/api/workers/{worker.unique_id}", headers=government_headers)
    assert response.status_code == 200
    assert response.json()["worker"]["name"] == "Ravi Kumar"

    missing = client.get("/api/workers/MW-NOPE", headers=government_headers)
    assert missing.status_code == 404


def test_history_newest_first_with_doctor(client: TestClient, session: Session, doctor, doctor_headers, worker):
    now = datetime.utcnow()
    for days_ago, diagnosis in [(3, "Typhoid"), (1, "Dengue")]:
        session.add(Prescription(
            worker_id=worker.id,
            doctor_id=doctor.id,
            diagnosis=diagnosis,
            medications=[{"name": "Paracetamol"}],
            created_at=now - timedelta(days=days_ago)
        ))
    session.commit()

    response = client.get(f"/api/workers/{worker.unique_id}/history", headers=doctor_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["worker"] == {"id": worker.id, "unique_id": worker.unique_id, "name": worker.name}
    assert [entry["diagnosis"] for entry in data["history"]] == ["Dengue", "Typhoid"]
    assert data["history"][0]["doctor_name"] == "Dr. Test"
    assert data["history"][0]["doctor_hospital"] == "General Hospital Ernakulam"


def test_workers_require_account_token(client: TestClient, worker_headers):
    assert client.get("/api/workers").status_code == 401
    assert client.get("/api/workers", headers=worker_headers).status_code == 403
