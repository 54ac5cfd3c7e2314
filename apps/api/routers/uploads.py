"""Voice note uploads attached to reported cases"""
from fastapi import APIRouter, Depends, HTTPException, status, UploadFile, File
from models import Account
from dependencies import require_doctor
from validators.business_rules import get_business_rules
from datetime import datetime
import os
import secrets
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/uploads", tags=["Uploads"])

rules = get_business_rules()

UPLOAD_DIR = os.getenv("UPLOAD_DIR", os.path.join(os.path.dirname(os.path.dirname(__file__)), "uploads"))
VOICE_NOTE_DIR = "voice-notes"
READ_CHUNK_BYTES = 1024 * 1024

# Stored extension by MIME type; the client filename is never trusted
AUDIO_EXTENSIONS = {
    "audio/webm": ".webm",
    "audio/mp3": ".mp3",
    "audio/mpeg": ".mp3",
    "audio/wav": ".wav",
    "audio/ogg": ".ogg",
}


def voice_note_filename(content_type: str) -> str:
    ext = AUDIO_EXTENSIONS.get(content_type, ".webm")
    stamp = int(datetime.utcnow().timestamp() * 1000)
    return f"voice-{stamp}-{secrets.randbelow(10**9)}{ext}"


async def read_limited(upload: UploadFile, max_bytes: int) -> bytes:
    """Read an upload in chunks, stopping as soon as it passes max_bytes"""
    content = bytearray()
    while True:
        chunk = await upload.read(READ_CHUNK_BYTES)
        if not chunk:
            return bytes(content)
        content.extend(chunk)
        if len(content) > max_bytes:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"File size must be less than {max_bytes // (1024 * 1024)}MB"
            )


@router.post("/voice-note")
async def upload_voice_note(
    audio: UploadFile = File(...),
    current_user: Account = Depends(require_doctor)
):
    """Store a recorded voice note (doctors only)"""
    if audio.content_type not in rules.ALLOWED_AUDIO_TYPES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Only audio files are allowed"
        )

    # Size is checked before anything touches the disk
    content = await read_limited(audio, rules.MAX_VOICE_NOTE_BYTES)

    filename = voice_note_filename(audio.content_type)
    target_dir = os.path.join(UPLOAD_DIR, VOICE_NOTE_DIR)
    os.makedirs(target_dir, exist_ok=True)

    with open(os.path.join(target_dir, filename), "wb") as f:
        f.write(content)

    logger.info(f"Voice note {filename} uploaded by doctor {current_user.id}")

    return {
        "message": "Voice note uploaded successfully",
        "url": f"/uploads/{VOICE_NOTE_DIR}/{filename}",
        "filename": filename
    }
