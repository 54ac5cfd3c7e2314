from typing import Annotated, Optional, List, Dict, Any
from decimal import Decimal
from pydantic import AfterValidator, BaseModel, EmailStr, Field, field_validator
from models import AccountRole, MedicineRequestStatus, EmergencyStatus, CampType
from datetime import datetime


def _required_text(value: str) -> str:
    if value is None or not value.strip():
        raise ValueError("must not be empty")
    return value

NonBlankStr = Annotated[str, AfterValidator(_required_text)]

Latitude = Optional[Decimal]
Longitude = Optional[Decimal]

# ==================== LINE ITEMS ====================

class MedicationItem(BaseModel):
    """One medicine line on a case or a requisition"""
    name: NonBlankStr
    dosage: Optional[str] = None
    frequency: Optional[str] = None
    quantity: Optional[int] = Field(default=None, ge=0)

# ==================== ACCOUNTS ====================

class AccountRegister(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)
    name: NonBlankStr
    role: AccountRole
    hospital_name: Optional[str] = None
    hospital_id: Optional[str] = None

class AccountLogin(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)

class AccountResponse(BaseModel):
    id: int
    email: str
    name: str
    role: AccountRole
    hospital_name: Optional[str] = None
    hospital_id: Optional[str] = None

    class Config:
        from_attributes = True

class AuthResponse(BaseModel):
    token: str
    user: AccountResponse

# ==================== WORKERS ====================

class WorkerCreate(BaseModel):
    unique_id: NonBlankStr
    name: NonBlankStr
    age: Optional[int] = Field(default=None, ge=0, le=130)
    gender: Optional[str] = None
    origin_state: Optional[str] = None
    phone: Optional[str] = None
    current_district: Optional[str] = None
    latitude: Latitude = Field(default=None, ge=-90, le=90)
    longitude: Longitude = Field(default=None, ge=-180, le=180)

class WorkerProfileUpdate(BaseModel):
    phone: Optional[str] = None
    current_district: Optional[str] = None
    latitude: Latitude = Field(default=None, ge=-90, le=90)
    longitude: Longitude = Field(default=None, ge=-180, le=180)

class WorkerResponse(BaseModel):
    id: int
    unique_id: str
    name: str
    age: Optional[int] = None
    gender: Optional[str] = None
    origin_state: Optional[str] = None
    phone: Optional[str] = None
    current_district: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    created_at: datetime

    class Config:
        from_attributes = True

class OTPRequest(BaseModel):
    phone: NonBlankStr

class OTPVerify(BaseModel):
    phone: NonBlankStr
    otp: NonBlankStr

# ==================== CASES ====================

class CaseCreate(BaseModel):
    worker_id: Optional[int] = None
    worker_unique_id: Optional[str] = None
    diagnosis: NonBlankStr = Field(max_length=500)
    medications: List[MedicationItem] = Field(min_length=1)
    voice_note_url: Optional[str] = None
    district: Optional[str] = None
    latitude: Latitude = Field(default=None, ge=-90, le=90)
    longitude: Longitude = Field(default=None, ge=-180, le=180)

class PrescriptionResponse(BaseModel):
    id: int
    worker_id: Optional[int] = None
    doctor_id: int
    diagnosis: str
    medications: List[Dict[str, Any]]
    voice_note_url: Optional[str] = None
    hospital_name: Optional[str] = None
    district: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    created_at: datetime

    class Config:
        from_attributes = True

class CaseHistoryEntry(PrescriptionResponse):
    doctor_name: Optional[str] = None
    doctor_hospital: Optional[str] = None

# ==================== MEDICINE REQUESTS ====================

class MedicineRequestCreate(BaseModel):
    medicines: List[MedicationItem] = Field(min_length=1)
    district: Optional[str] = None

class MedicineStatusUpdate(BaseModel):
    status: MedicineRequestStatus

class MedicineRequestResponse(BaseModel):
    id: int
    doctor_id: int
    hospital_name: Optional[str] = None
    district: Optional[str] = None
    medicines: List[Dict[str, Any]]
    status: str
    created_at: datetime
    doctor_name: Optional[str] = None
    doctor_email: Optional[str] = None

    class Config:
        from_attributes = True

# ==================== EMERGENCIES ====================

class EmergencyCreate(BaseModel):
    type: NonBlankStr = Field(max_length=50)
    description: Optional[str] = None
    latitude: Latitude = Field(default=None, ge=-90, le=90)
    longitude: Longitude = Field(default=None, ge=-180, le=180)

class EmergencyStatusUpdate(BaseModel):
    status: EmergencyStatus

class EmergencyResponse(BaseModel):
    id: int
    worker_id: int
    type: str
    description: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    status: str
    created_at: datetime
    worker_name: Optional[str] = None
    worker_phone: Optional[str] = None
    worker_unique_id: Optional[str] = None

    class Config:
        from_attributes = True

# ==================== HEALTH CAMPS ====================

class HealthCampCreate(BaseModel):
    camp_name: NonBlankStr
    camp_type: str
    location_name: NonBlankStr
    latitude: Latitude = Field(default=None, ge=-90, le=90)
    longitude: Longitude = Field(default=None, ge=-180, le=180)
    maps_link: Optional[str] = None
    scheduled_date: datetime
    description: Optional[str] = None

    @field_validator("camp_type")
    @classmethod
    def validate_camp_type(cls, v):
        valid = [camp_type.value for camp_type in CampType]
        if v not in valid:
            raise ValueError(f"Invalid camp_type. Must be one of: {', '.join(valid)}")
        return v

class HealthCampResponse(BaseModel):
    id: int
    camp_name: str
    camp_type: str
    location_name: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    maps_link: Optional[str] = None
    scheduled_date: datetime
    description: Optional[str] = None
    status: str
    created_at: datetime

    class Config:
        from_attributes = True

class NotificationResponse(BaseModel):
    id: int
    title: str
    message: str
    type: str
    reference_id: Optional[int] = None
    created_at: datetime
    is_read: bool = False

    class Config:
        from_attributes = True
