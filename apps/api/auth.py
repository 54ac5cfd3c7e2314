from datetime import datetime, timedelta, timezone
from typing import Optional
from jose import JWTError, jwt
import bcrypt
import os
import uuid

from models import AccountRole

# Security configuration
SECRET_KEY = os.getenv("SECRET_KEY")
if not SECRET_KEY:
    raise ValueError(
        "SECRET_KEY environment variable must be set. "
        "Generate a secure key with: python -c 'import secrets; print(secrets.token_urlsafe(32))'"
    )
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_DAYS = int(os.getenv("ACCESS_TOKEN_EXPIRE_DAYS", "7"))
WORKER_TOKEN_EXPIRE_DAYS = int(os.getenv("WORKER_TOKEN_EXPIRE_DAYS", "7"))

ACCOUNT_TOKEN_TYPE = "access"
WORKER_TOKEN_TYPE = "worker"


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against a hash using bcrypt directly"""
    try:
        return bcrypt.checkpw(
            plain_password.encode('utf-8'),
            hashed_password.encode('utf-8')
        )
    except ValueError:
        # Malformed stored hash
        return False


def get_password_hash(password: str) -> str:
    """Generate password hash using bcrypt directly"""
    return bcrypt.hashpw(
        password.encode('utf-8'),
        bcrypt.gensalt()
    ).decode('utf-8')


def _encode(data: dict, token_type: str, expires_delta: timedelta) -> str:
    to_encode = data.copy()
    to_encode.update({
        "exp": datetime.now(timezone.utc) + expires_delta,
        "type": token_type,
        "jti": str(uuid.uuid4())
    })
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create JWT for a doctor or government account"""
    return _encode(data, ACCOUNT_TOKEN_TYPE, expires_delta or timedelta(days=ACCESS_TOKEN_EXPIRE_DAYS))


def create_worker_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create JWT for a worker who logged in with a one-time code"""
    return _encode(data, WORKER_TOKEN_TYPE, expires_delta or timedelta(days=WORKER_TOKEN_EXPIRE_DAYS))


def account_token_for(account) -> str:
    return create_access_token(data={
        "sub": str(account.id),
        "role": AccountRole(account.role).value,
        "name": account.name,
        "hospital_name": account.hospital_name,
    })


def worker_token_for(worker) -> str:
    return create_worker_token(data={
        "sub": str(worker.id),
        "unique_id": worker.unique_id,
        "name": worker.name,
    })


def decode_token(token: str) -> Optional[dict]:
    """Decode and verify JWT token"""
    try:
        return jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError:
        return None
