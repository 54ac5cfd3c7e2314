"""One-time code login for workers"""
from fastapi import APIRouter, Depends, HTTPException, status, Request
from sqlmodel import Session, select
from database import get_session
from models import Worker
from schemas import OTPRequest, OTPVerify, WorkerResponse
from auth import worker_token_for
from dependencies import get_current_worker
from limiter import limiter
from utils.notification_service import notification_service, render_otp_message
from validators.business_rules import get_business_rules
from datetime import datetime, timedelta
import os
import secrets
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/worker-auth", tags=["Worker Authentication"])

rules = get_business_rules()


def generate_otp(length: int = rules.OTP_LENGTH) -> str:
    """Uniform numeric code without a leading zero"""
    low = 10 ** (length - 1)
    return str(low + secrets.randbelow(9 * low))


def find_worker_by_phone(session: Session, phone: str) -> Worker:
    worker = session.exec(select(Worker).where(Worker.phone == phone)).first()
    if not worker:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Worker not found with this phone number"
        )
    return worker


@router.post("/request-otp")
@limiter.limit("3/minute")
def request_otp(request: Request, otp_request: OTPRequest, session: Session = Depends(get_session)):
    """Issue a fresh code, replacing any pending one"""
    worker = find_worker_by_phone(session, otp_request.phone)

    otp = generate_otp()
    worker.otp = otp
    worker.otp_expires_at = datetime.utcnow() + timedelta(minutes=rules.OTP_VALIDITY_MINUTES)
    session.add(worker)
    session.commit()

    sent, detail = notification_service.send_sms(worker.phone, render_otp_message(otp, rules.OTP_VALIDITY_MINUTES))
    if not sent:
        logger.error(f"OTP SMS to worker {worker.unique_id} failed: {detail}")

    logger.info(f"OTP issued for worker {worker.unique_id}")

    response = {"message": "OTP sent successfully"}
    if os.getenv("ENVIRONMENT", "development") != "production":
        response["otp_for_testing"] = otp
    return response


@router.post("/verify-otp")
@limiter.limit("10/minute")
def verify_otp(request: Request, otp_verify: OTPVerify, session: Session = Depends(get_session)):
    """Exchange a valid code for a worker token. Each code works once."""
    worker = find_worker_by_phone(session, otp_verify.phone)

    if not worker.otp or not secrets.compare_digest(worker.otp, otp_verify.otp):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid OTP"
        )

    if worker.otp_expires_at is None or worker.otp_expires_at < datetime.utcnow():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="OTP has expired"
        )

    # Consume the code before the token exists so a replay fails
    worker.otp = None
    worker.otp_expires_at = None
    session.add(worker)
    session.commit()
    session.refresh(worker)

    logger.info(f"Worker {worker.unique_id} logged in")

    return {
        "message": "Login successful",
        "token": worker_token_for(worker),
        "worker": WorkerResponse.model_validate(worker)
    }


@router.get("/me")
def get_worker_me(worker: Worker = Depends(get_current_worker)):
    return {"worker": WorkerResponse.model_validate(worker)}
