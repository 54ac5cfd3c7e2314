"""Business rule configuration and validation"""
from datetime import timedelta
from typing import Dict, List
from pydantic import BaseModel

from models import CampType


class BusinessRules(BaseModel):
    """Business rules configuration"""
    # Worker one-time code
    OTP_LENGTH: int = 6
    OTP_VALIDITY_MINUTES: int = 5

    # Listing defaults
    DEFAULT_PAGE_LIMIT: int = 50
    MAX_PAGE_LIMIT: int = 500

    # Dashboard aggregation
    DEFAULT_TIME_RANGE: str = "7d"
    TOP_DIAGNOSES_LIMIT: int = 10
    TREND_LOOKBACK_DAYS: int = 30
    DEMAND_STATUSES: List[str] = ["pending", "approved"]

    # Worker notification feed
    NOTIFICATION_FEED_LIMIT: int = 50
    UPCOMING_CAMPS_LIMIT: int = 10

    # Voice note uploads
    MAX_VOICE_NOTE_BYTES: int = 10 * 1024 * 1024
    ALLOWED_AUDIO_TYPES: List[str] = [
        "audio/webm",
        "audio/mp3",
        "audio/mpeg",
        "audio/wav",
        "audio/ogg",
    ]


# Lookback interval for each dashboard time-range token
TIME_RANGES: Dict[str, timedelta] = {
    "24h": timedelta(hours=24),
    "7d": timedelta(days=7),
    "30d": timedelta(days=30),
}

CAMP_TYPES: List[str] = [camp_type.value for camp_type in CampType]


# Global instance - can be loaded from database
business_rules = BusinessRules()


def get_business_rules() -> BusinessRules:
    """Get current business rules"""
    return business_rules


def resolve_time_range(token: str) -> timedelta:
    """Map a dashboard time-range token (24h, 7d, 30d) to its lookback interval"""
    try:
        return TIME_RANGES[token]
    except KeyError:
        raise ValueError(
            f"Invalid time_range '{token}'. Must be one of: {', '.join(TIME_RANGES)}"
        )
