from contextlib import asynccontextmanager
from datetime import datetime
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from dotenv import load_dotenv
import os
import logging

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Load environment variables from .env file FIRST
load_dotenv()

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session
from database import create_db_and_tables, engine
from routers import (
    auth, workers, cases, medicine, emergency, health_camps, uploads,
    worker_auth, worker_profile, realtime
)
from middleware.request_logger import RequestLoggingMiddleware
from middleware.security_headers import SecurityHeadersMiddleware
from services.broadcast import BroadcastHub
from seed_demo_data import seed_demo_data
from limiter import limiter
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

SEED_DEMO_DATA = os.getenv("SEED_DEMO_DATA", "true").lower() == "true"


@asynccontextmanager
async def lifespan(app: FastAPI):
    create_db_and_tables()
    if SEED_DEMO_DATA:
        with Session(engine) as session:
            seed_demo_data(session)

    app.state.hub = BroadcastHub()
    yield
    await app.state.hub.close()


app = FastAPI(
    title="Health Bridge API",
    description="Case reporting, medicine requisitions, emergencies and health camps for migrant worker healthcare",
    version="0.1.0",
    lifespan=lifespan
)

# Set up rate limiter
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    # Every rejected input is a 400, never FastAPI's default 422
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path"))
    message = first.get("msg", "Invalid input")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": f"{field}: {message}" if field else message}
    )


@app.exception_handler(IntegrityError)
async def integrity_exception_handler(request: Request, exc: IntegrityError):
    logger.warning(f"Integrity error on {request.method} {request.url.path}: {exc.orig}")
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content={"detail": "Record already exists"}
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.method} {request.url.path}", exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Server error"}
    )


# CORS configuration
origins = [
    "http://localhost:3000",  # Development frontend
    os.getenv("FRONTEND_URL", "http://localhost:3000"),  # Production frontend from env
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "X-Requested-With", "Accept", "Origin"],
)

app.add_middleware(RequestLoggingMiddleware)

# Add security headers middleware (should be first to apply to all responses)
app.add_middleware(SecurityHeadersMiddleware)

# Include routers
app.include_router(auth.router)
app.include_router(workers.router)
app.include_router(cases.router)
app.include_router(medicine.router)
app.include_router(emergency.router)
app.include_router(health_camps.router)
app.include_router(uploads.router)
app.include_router(worker_auth.router)
app.include_router(worker_profile.router)
app.include_router(realtime.router)

# Uploaded voice notes are served back read-only
os.makedirs(uploads.UPLOAD_DIR, exist_ok=True)
app.mount("/uploads", StaticFiles(directory=uploads.UPLOAD_DIR), name="uploads")


@app.get("/")
def read_root():
    return {"message": "Welcome to Health Bridge API"}


@app.get("/api/health")
def health_check():
    return {"status": "ok", "timestamp": datetime.utcnow().isoformat()}
