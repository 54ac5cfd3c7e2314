#!/usr/bin/env python3
"""
Seed demo accounts, workers, cases and medicine requests for local development
Run with: python seed_demo_data.py

Seeding only happens on an empty account table, so restarting the API with
SEED_DEMO_DATA=true never duplicates rows.
"""

import os
import random
import sys
sys.path.append(os.path.dirname(os.path.abspath(__file__)))

from datetime import datetime, timedelta
from decimal import Decimal
import logging

from sqlmodel import Session, select
from dotenv import load_dotenv

# auth reads SECRET_KEY at import time
load_dotenv()

from models import (
    Account, AccountRole, Worker, Prescription, MedicineRequest, MedicineRequestStatus
)
from auth import get_password_hash

logger = logging.getLogger(__name__)

DOCTOR_PASSWORD = "doctor123"
GOVERNMENT_PASSWORD = "gov123"

# (district, latitude, longitude)
DISTRICTS = [
    ("Ernakulam", Decimal("9.98160000"), Decimal("76.29990000")),
    ("Thiruvananthapuram", Decimal("8.52410000"), Decimal("76.93660000")),
    ("Kozhikode", Decimal("11.25880000"), Decimal("75.78040000")),
    ("Thrissur", Decimal("10.52760000"), Decimal("76.21440000")),
    ("Kollam", Decimal("8.89320000"), Decimal("76.61410000")),
    ("Kannur", Decimal("11.87450000"), Decimal("75.37040000")),
]

WORKERS = [
    ("MW-KL-0001", "Ravi Kumar", 32, "Male", "Bihar", "+919000000001", "Ernakulam"),
    ("MW-KL-0002", "Suresh Yadav", 28, "Male", "Uttar Pradesh", "+919000000002", "Ernakulam"),
    ("MW-KL-0003", "Anita Devi", 35, "Female", "Jharkhand", "+919000000003", "Thiruvananthapuram"),
    ("MW-KL-0004", "Mohammed Alam", 41, "Male", "West Bengal", "+919000000004", "Kozhikode"),
    ("MW-KL-0005", "Pradeep Mahato", 26, "Male", "Odisha", "+919000000005", "Thrissur"),
    ("MW-KL-0006", "Lakshmi Oraon", 30, "Female", "Assam", "+919000000006", "Kollam"),
    ("MW-KL-0007", "Rajesh Paswan", 38, "Male", "Bihar", "+919000000007", "Kannur"),
    ("MW-KL-0008", "Sunita Kumari", 24, "Female", "Jharkhand", "+919000000008", "Ernakulam"),
]

# diagnosis -> medications prescribed for it
DIAGNOSES = {
    "Dengue": [{"name": "Paracetamol", "dosage": "500mg", "frequency": "TID", "quantity": 15}],
    "Malaria": [{"name": "Artemether", "dosage": "80mg", "frequency": "BID", "quantity": 6}],
    "Typhoid": [{"name": "Azithromycin", "dosage": "500mg", "frequency": "OD", "quantity": 7}],
    "Tuberculosis": [{"name": "Isoniazid", "dosage": "300mg", "frequency": "OD", "quantity": 30}],
    "Leptospirosis": [{"name": "Doxycycline", "dosage": "100mg", "frequency": "BID", "quantity": 14}],
    "Acute Diarrhoea": [{"name": "ORS", "dosage": "1 sachet", "frequency": "after each stool", "quantity": 10}],
}

PRESCRIPTION_COUNT = 50


def _location(district: str):
    for name, latitude, longitude in DISTRICTS:
        if name == district:
            return latitude, longitude
    return None, None


def seed_demo_data(session: Session, now: datetime = None) -> bool:
    """Insert the demo rows. Returns False when accounts already exist."""
    if session.exec(select(Account)).first():
        logger.info("Accounts present, skipping demo seed")
        return False

    now = now or datetime.utcnow()
    rng = random.Random(2024)

    doctor_hash = get_password_hash(DOCTOR_PASSWORD)
    doctors = [
        Account(
            email="doctor@ernakulam.health",
            password_hash=doctor_hash,
            role=AccountRole.DOCTOR,
            name="Dr. Anjali Menon",
            hospital_name="General Hospital Ernakulam",
            hospital_id="GH-EKM-01"
        ),
        Account(
            email="doctor@kozhikode.health",
            password_hash=doctor_hash,
            role=AccountRole.DOCTOR,
            name="Dr. Faisal Rahman",
            hospital_name="Government Medical College Kozhikode",
            hospital_id="GMC-KKD-01"
        ),
    ]
    officer = Account(
        email="officer@health.kerala.gov",
        password_hash=get_password_hash(GOVERNMENT_PASSWORD),
        role=AccountRole.GOVERNMENT,
        name="Sreeja Nair"
    )
    session.add_all(doctors + [officer])

    workers = []
    for unique_id, name, age, gender, origin_state, phone, district in WORKERS:
        latitude, longitude = _location(district)
        workers.append(Worker(
            unique_id=unique_id,
            name=name,
            age=age,
            gender=gender,
            origin_state=origin_state,
            phone=phone,
            current_district=district,
            latitude=latitude,
            longitude=longitude
        ))
    session.add_all(workers)
    session.flush()

    diagnoses = list(DIAGNOSES)
    for _ in range(PRESCRIPTION_COUNT):
        doctor = rng.choice(doctors)
        worker = rng.choice(workers)
        district, latitude, longitude = rng.choice(DISTRICTS)
        diagnosis = rng.choice(diagnoses)
        session.add(Prescription(
            worker_id=worker.id,
            doctor_id=doctor.id,
            diagnosis=diagnosis,
            medications=[dict(item) for item in DIAGNOSES[diagnosis]],
            hospital_name=doctor.hospital_name,
            district=district,
            latitude=latitude,
            longitude=longitude,
            created_at=now - timedelta(minutes=rng.randint(0, 30 * 24 * 60 - 1))
        ))

    session.add_all([
        MedicineRequest(
            doctor_id=doctors[0].id,
            hospital_name=doctors[0].hospital_name,
            district="Ernakulam",
            medicines=[
                {"name": "Paracetamol", "quantity": 500},
                {"name": "ORS", "quantity": 200},
            ],
            status=MedicineRequestStatus.PENDING.value,
            created_at=now - timedelta(days=2)
        ),
        MedicineRequest(
            doctor_id=doctors[0].id,
            hospital_name=doctors[0].hospital_name,
            district="Ernakulam",
            medicines=[
                {"name": "Paracetamol", "quantity": 200},
                {"name": "Artemether", "quantity": 100},
            ],
            status=MedicineRequestStatus.APPROVED.value,
            created_at=now - timedelta(days=1)
        ),
    ])

    session.commit()
    logger.info(
        f"Seeded {len(doctors) + 1} accounts, {len(workers)} workers, "
        f"{PRESCRIPTION_COUNT} cases and 2 medicine requests"
    )
    return True


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')

    from database import engine, create_db_and_tables

    create_db_and_tables()
    with Session(engine) as session:
        if seed_demo_data(session):
            print("Demo data created")
            print(f"  Doctors: doctor@ernakulam.health, doctor@kozhikode.health / {DOCTOR_PASSWORD}")
            print(f"  Government: officer@health.kerala.gov / {GOVERNMENT_PASSWORD}")
        else:
            print("Database already has accounts, nothing to do")
