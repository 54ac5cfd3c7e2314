"""Shared pytest fixtures: in-memory database, app client, accounts and tokens"""
import os
import tempfile

# Must be set before the app modules read them at import time
os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SEED_DEMO_DATA"] = "false"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["ENVIRONMENT"] = "development"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="health-bridge-uploads-")

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel

from auth import get_password_hash, account_token_for, worker_token_for
from database import engine, get_session
from dependencies import get_hub
from main import app
from models import Account, AccountRole, Worker


class RecordingHub:
    """Stands in for the broadcast hub and remembers what was published"""

    def __init__(self):
        self.broadcasts = []
        self.group_emits = []

    async def broadcast(self, event, data):
        self.broadcasts.append((event, data))
        return 0

    async def emit_to_group(self, group, event, data):
        self.group_emits.append((group, event, data))
        return 0


@pytest.fixture(name="session")
def session_fixture():
    SQLModel.metadata.create_all(engine)
    with Session(engine) as session:
        yield session
    SQLModel.metadata.drop_all(engine)


@pytest.fixture(name="client")
def client_fixture(session: Session):
    def get_session_override():
        return session

    app.dependency_overrides[get_session] = get_session_override
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture(name="hub")
def recording_hub_fixture(client: TestClient):
    hub = RecordingHub()
    app.dependency_overrides[get_hub] = lambda: hub
    return hub


def make_account(session: Session, email: str, role: AccountRole, **fields) -> Account:
    account = Account(
        email=email,
        password_hash=get_password_hash(fields.pop("password", "secret123")),
        role=role,
        name=fields.pop("name", "Test User"),
        **fields
    )
    session.add(account)
    session.commit()
    session.refresh(account)
    return account


@pytest.fixture(name="doctor")
def doctor_fixture(session: Session) -> Account:
    return make_account(
        session, "doctor@test.health", AccountRole.DOCTOR,
        name="Dr. Test", hospital_name="General Hospital Ernakulam"
    )


@pytest.fixture(name="government")
def government_fixture(session: Session) -> Account:
    return make_account(session, "officer@test.health", AccountRole.GOVERNMENT, name="Officer Test")


@pytest.fixture(name="worker")
def worker_fixture(session: Session) -> Worker:
    worker = Worker(
        unique_id="MW-TEST-0001",
        name="Ravi Kumar",
        age=30,
        phone="+919000000001",
        current_district="Ernakulam",
        latitude=Decimal("9.98160000"),
        longitude=Decimal("76.29990000")
    )
    session.add(worker)
    session.commit()
    session.refresh(worker)
    return worker


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture(name="doctor_headers")
def doctor_headers_fixture(doctor: Account) -> dict:
    return bearer(account_token_for(doctor))


@pytest.fixture(name="government_headers")
def government_headers_fixture(government: Account) -> dict:
    return bearer(account_token_for(government))


@pytest.fixture(name="worker_headers")
def worker_headers_fixture(worker: Worker) -> dict:
    return bearer(worker_token_for(worker))
