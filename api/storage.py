"""
Supabase Storage: audio boost uploads.
"""
import logging
import os
import re
import time

logger = logging.getLogger(__name__)

AUDIO_BUCKET = "audio-boosts"
MAX_AUDIO_BYTES = 25 * 1024 * 1024
ALLOWED_AUDIO_EXTENSIONS = {".mp3", ".m4a", ".wav", ".ogg", ".webm", ".aac"}


class StorageError(Exception):
    """Upload to object storage failed."""


def safe_filename(filename: str) -> str:
    name = os.path.basename(filename or "")
    name = re.sub(r"[^A-Za-z0-9._-]", "_", name)
    return name.strip("._") or "audio"


def validate_audio(filename: str, size: int | None) -> str | None:
    """Return an error message for an unacceptable upload, else None."""
    ext = os.path.splitext(filename or "")[1].lower()
    if ext not in ALLOWED_AUDIO_EXTENSIONS:
        return f"Unsupported audio type {ext or '(none)'}"
    if size is not None and size > MAX_AUDIO_BYTES:
        return "Audio file too large (max 25MB)"
    return None


def upload_audio(supabase, filename: str, data: bytes, content_type: str = None) -> str:
    """Upload to the audio bucket as <epoch-ms>-<name> and return its public URL."""
    path = f"{int(time.time() * 1000)}-{safe_filename(filename)}"
    bucket = supabase.storage.from_(AUDIO_BUCKET)
    options = {"content-type": content_type} if content_type else None
    try:
        if options:
            bucket.upload(path, data, options)
        else:
            bucket.upload(path, data)
    except Exception as e:
        logger.error("[storage] upload failed for %s: %s %s", path, type(e).__name__, e)
        raise StorageError(str(e)) from e
    url = bucket.get_public_url(path)
    logger.info("[storage] uploaded %s (%d bytes)", path, len(data))
    return url
