from typing import Optional, List
from datetime import datetime
from decimal import Decimal
from sqlmodel import Field, SQLModel, Relationship
from sqlalchemy import Column, String, JSON
from enum import Enum


class AccountRole(str, Enum):
    DOCTOR = "doctor"
    GOVERNMENT = "government"


class MedicineRequestStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    FULFILLED = "fulfilled"
    REJECTED = "rejected"


class EmergencyStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    RESOLVED = "resolved"
    CANCELLED = "cancelled"


class CampStatus(str, Enum):
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class CampType(str, Enum):
    GENERAL_CHECKUP = "General Checkup"
    DENGUE_CHECKUP = "Dengue Checkup"
    COVID_19 = "COVID-19"
    MALARIA_SCREENING = "Malaria Screening"
    EYE_CAMP = "Eye Camp"
    DENTAL_CAMP = "Dental Camp"
    VACCINATION_DRIVE = "Vaccination Drive"
    BLOOD_DONATION = "Blood Donation"


class NotificationType(str, Enum):
    HEALTH_CAMP = "health_camp"
    GENERAL = "general"


class Account(SQLModel, table=True):
    """Doctor or government operator login"""
    id: Optional[int] = Field(default=None, primary_key=True)
    email: str = Field(unique=True, index=True)
    password_hash: str
    role: AccountRole
    name: str
    hospital_name: Optional[str] = None
    hospital_id: Optional[str] = Field(default=None, max_length=50)
    created_at: datetime = Field(default_factory=datetime.utcnow)

    prescriptions: List["Prescription"] = Relationship(back_populates="doctor")


class Worker(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    unique_id: str = Field(unique=True, index=True, max_length=50)
    name: str
    age: Optional[int] = None
    gender: Optional[str] = Field(default=None, max_length=20)
    origin_state: Optional[str] = Field(default=None, max_length=100)
    phone: Optional[str] = Field(default=None, index=True, max_length=20)
    current_district: Optional[str] = Field(default=None, max_length=100)
    latitude: Optional[Decimal] = Field(default=None, max_digits=10, decimal_places=8)
    longitude: Optional[Decimal] = Field(default=None, max_digits=11, decimal_places=8)

    # Transient login state, cleared on successful verification
    otp: Optional[str] = Field(default=None, max_length=6)
    otp_expires_at: Optional[datetime] = None

    created_at: datetime = Field(default_factory=datetime.utcnow)

    prescriptions: List["Prescription"] = Relationship(back_populates="worker")


class Prescription(SQLModel, table=True):
    """A reported case. Append-only."""
    id: Optional[int] = Field(default=None, primary_key=True)
    worker_id: Optional[int] = Field(default=None, foreign_key="worker.id", index=True)
    doctor_id: int = Field(foreign_key="account.id")
    diagnosis: str = Field(max_length=500)
    medications: List[dict] = Field(sa_column=Column(JSON, nullable=False))
    voice_note_url: Optional[str] = Field(default=None, max_length=500)
    hospital_name: Optional[str] = None
    district: Optional[str] = Field(default=None, max_length=100)
    latitude: Optional[Decimal] = Field(default=None, max_digits=10, decimal_places=8)
    longitude: Optional[Decimal] = Field(default=None, max_digits=11, decimal_places=8)
    created_at: datetime = Field(default_factory=datetime.utcnow, index=True)

    worker: Optional[Worker] = Relationship(back_populates="prescriptions")
    doctor: Account = Relationship(back_populates="prescriptions")


class MedicineRequest(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    doctor_id: int = Field(foreign_key="account.id")
    hospital_name: Optional[str] = None
    district: Optional[str] = Field(default=None, max_length=100)
    medicines: List[dict] = Field(sa_column=Column(JSON, nullable=False))
    status: str = Field(default=MedicineRequestStatus.PENDING.value, sa_column=Column(String(20)))
    created_at: datetime = Field(default_factory=datetime.utcnow)


class EmergencyRequest(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    worker_id: int = Field(foreign_key="worker.id", index=True)
    type: str = Field(max_length=50)
    description: Optional[str] = None
    latitude: Optional[Decimal] = Field(default=None, max_digits=10, decimal_places=8)
    longitude: Optional[Decimal] = Field(default=None, max_digits=11, decimal_places=8)
    status: str = Field(default=EmergencyStatus.PENDING.value, sa_column=Column(String(20)))
    created_at: datetime = Field(default_factory=datetime.utcnow)


class HealthCamp(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    camp_name: str
    camp_type: str = Field(max_length=50)
    location_name: str
    latitude: Optional[Decimal] = Field(default=None, max_digits=10, decimal_places=8)
    longitude: Optional[Decimal] = Field(default=None, max_digits=11, decimal_places=8)
    maps_link: Optional[str] = Field(default=None, max_length=500)
    scheduled_date: datetime
    description: Optional[str] = None
    created_by: int = Field(foreign_key="account.id")
    status: str = Field(default=CampStatus.SCHEDULED.value, sa_column=Column(String(20)))
    created_at: datetime = Field(default_factory=datetime.utcnow)


class Notification(SQLModel, table=True):
    """Write-once feed entry read by polling"""
    id: Optional[int] = Field(default=None, primary_key=True)
    title: str
    message: str
    type: str = Field(max_length=50)
    reference_id: Optional[int] = None
    is_broadcast: bool = Field(default=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)
