"""
Attachment storage on the Supabase `od-attachments` bucket.
Objects live under `<account_id>/<epoch_ms>.<ext>`.
"""

import logging
import os
import time

from app.core.config import settings
from app.core.exceptions import RemoteServiceError, ValidationFailed

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = {"pdf", "doc", "docx", "jpg", "jpeg", "png"}


def attachment_extension(filename: str) -> str:
    ext = os.path.splitext(filename or "")[1].lstrip(".").lower()
    if ext not in ALLOWED_EXTENSIONS:
        raise ValidationFailed(
            f"Attachment type '.{ext}' not allowed. Allowed: {', '.join(sorted(ALLOWED_EXTENSIONS))}"
        )
    return ext


def build_attachment_path(account_id: str, filename: str) -> str:
    ext = attachment_extension(filename)
    return f"{account_id}/{int(time.time() * 1000)}.{ext}"


def upload_attachment(db, account_id: str, filename: str, content: bytes, content_type: str | None = None) -> tuple[str, str]:
    """Upload and return (object path, public URL)."""
    path = build_attachment_path(account_id, filename)
    bucket = db.storage.from_(settings.ATTACHMENTS_BUCKET)
    try:
        bucket.upload(path, content, {"content-type": content_type or "application/octet-stream"})
    except Exception:
        logger.exception("Attachment upload failed for %s", path)
        raise RemoteServiceError("Failed to upload attachment")

    try:
        public_url = bucket.get_public_url(path)
    except Exception:
        logger.exception("Could not resolve public URL for %s", path)
        remove_attachment(db, path)
        raise RemoteServiceError("Failed to upload attachment")
    return path, public_url


def remove_attachment(db, path: str) -> None:
    """Best-effort delete of an object no request row points at."""
    try:
        db.storage.from_(settings.ATTACHMENTS_BUCKET).remove([path])
        logger.info("Removed orphaned attachment %s", path)
    except Exception:
        logger.exception("Could not remove orphaned attachment %s", path)
