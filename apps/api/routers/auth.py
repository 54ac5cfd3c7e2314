from fastapi import APIRouter, Depends, HTTPException, status, Request
from sqlmodel import Session, select
from database import get_session
from models import Account
from schemas import AccountRegister, AccountLogin, AccountResponse, AuthResponse
from auth import get_password_hash, verify_password, account_token_for
from dependencies import get_current_user
from limiter import limiter
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Authentication"])


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("3/minute")
def register(request: Request, account_data: AccountRegister, session: Session = Depends(get_session)):
    """Register a doctor or government account"""
    existing = session.exec(select(Account).where(Account.email == account_data.email)).first()
    if existing:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Email already registered"
        )

    new_account = Account(
        email=account_data.email,
        password_hash=get_password_hash(account_data.password),
        name=account_data.name,
        role=account_data.role,
        hospital_name=account_data.hospital_name,
        hospital_id=account_data.hospital_id
    )

    session.add(new_account)
    session.commit()
    session.refresh(new_account)

    logger.info(f"Registered {new_account.role.value} account {new_account.id}")

    return AuthResponse(
        token=account_token_for(new_account),
        user=AccountResponse.model_validate(new_account)
    )


@router.post("/login", response_model=AuthResponse)
@limiter.limit("5/minute")
def login(request: Request, credentials: AccountLogin, session: Session = Depends(get_session)):
    """Login with email and password"""
    account = session.exec(select(Account).where(Account.email == credentials.email)).first()
    if not account or not verify_password(credentials.password, account.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials"
        )

    return AuthResponse(
        token=account_token_for(account),
        user=AccountResponse.model_validate(account)
    )


@router.get("/me")
def get_current_user_info(current_user: Account = Depends(get_current_user)):
    """Get current account information"""
    return {"user": AccountResponse.model_validate(current_user)}
