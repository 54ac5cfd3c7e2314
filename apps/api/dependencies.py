from typing import Optional
from fastapi import Depends, HTTPException, status, Request
from fastapi.requests import HTTPConnection
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlmodel import Session
from database import get_session
from models import Account, AccountRole, Worker
from auth import decode_token, ACCOUNT_TOKEN_TYPE, WORKER_TOKEN_TYPE
from services.broadcast import BroadcastHub

# Missing headers are reported as 401 below rather than HTTPBearer's default
security = HTTPBearer(auto_error=False)


def _token_payload(credentials: Optional[HTTPAuthorizationCredentials]) -> dict:
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Access token required"
        )
    payload = decode_token(credentials.credentials)
    if not payload:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token"
        )
    return payload


def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    session: Session = Depends(get_session)
) -> Account:
    """Get current authenticated doctor or government account"""
    payload = _token_payload(credentials)

    if payload.get("type") != ACCOUNT_TOKEN_TYPE:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid token type"
        )

    account = session.get(Account, int(payload.get("sub")))
    if not account:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )

    # Store actor in request state for the request logging middleware
    request.state.actor = f"{AccountRole(account.role).value}:{account.id}"

    return account


def get_current_worker(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    session: Session = Depends(get_session)
) -> Worker:
    """Get current worker from an OTP-issued token"""
    payload = _token_payload(credentials)

    if payload.get("type") != WORKER_TOKEN_TYPE:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid token type"
        )

    worker = session.get(Worker, int(payload.get("sub")))
    if not worker:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Worker not found"
        )

    request.state.actor = f"worker:{worker.id}"

    return worker


def require_role(allowed_role: AccountRole):
    """Dependency factory for single role access control"""
    def role_checker(current_user: Account = Depends(get_current_user)) -> Account:
        if current_user.role != allowed_role:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Access denied. Insufficient permissions."
            )
        return current_user
    return role_checker


# Convenience dependencies for the two account roles
require_doctor = require_role(AccountRole.DOCTOR)
require_government = require_role(AccountRole.GOVERNMENT)


def get_hub(connection: HTTPConnection) -> BroadcastHub:
    """The application's broadcast hub, built in the lifespan handler; serves HTTP and WebSocket routes"""
    return connection.app.state.hub
