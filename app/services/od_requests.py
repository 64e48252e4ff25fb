"""
OD request lifecycle.

    pending ──approve──▶ approved
       └────reject───▶ rejected

Both transitions are terminal. Updates are filtered on status=pending, so a
second approve/reject matches no row and is answered with InvalidTransition.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from app.core.database import execute
from app.core.exceptions import InvalidTransition, NotFound, ValidationFailed
from app.core.storage import remove_attachment, upload_attachment
from app.schemas.workflow import ODCreate

logger = logging.getLogger(__name__)

PENDING = "pending"
APPROVED = "approved"
REJECTED = "rejected"

STUDENT_FIELDS = "user_id, name, email, register_number, department, section"
UNKNOWN_STUDENT = {"name": "Unknown", "email": "", "register_number": "", "department": "", "section": ""}


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def attach_students(db, rows: list[dict]) -> list[dict]:
    """Add a `student` profile to each row with one batched lookup."""
    student_ids = sorted({r["student_id"] for r in rows if r.get("student_id")})
    profiles = {}
    if student_ids:
        result = execute(
            db.table("students").select(STUDENT_FIELDS).in_("user_id", student_ids),
            "Failed to fetch student details",
        )
        profiles = {p["user_id"]: p for p in result.data}

    for row in rows:
        row["student"] = profiles.get(row.get("student_id"), UNKNOWN_STUDENT)
    return rows


def create_request(
    db,
    student_id: str,
    body: ODCreate,
    attachment: Optional[tuple[str, bytes, Optional[str]]] = None,
) -> dict:
    """
    Upload the optional attachment, then insert the request as pending.
    A failed upload aborts before the insert; a failed insert removes the upload.
    """
    attachment_path = None
    attachment_url = None
    if attachment:
        filename, content, content_type = attachment
        attachment_path, attachment_url = upload_attachment(db, student_id, filename, content, content_type)

    data = {
        "student_id": student_id,
        "title": body.title,
        "od_type": body.od_type,
        "event_name": body.event_name,
        "od_date": body.od_date.isoformat(),
        "timings": body.timings,
        "period": body.period,
        "attachment_url": attachment_url,
        "status": PENDING,
    }
    try:
        result = execute(db.table("od_requests").insert(data), "Failed to submit OD request")
    except Exception:
        if attachment_path:
            remove_attachment(db, attachment_path)
        raise

    logger.info("OD request created by %s for %s", student_id, data["od_date"])
    return result.data[0]


def get_request(db, request_id: str) -> dict:
    result = execute(
        db.table("od_requests").select("*").eq("id", request_id).limit(1),
        "Failed to fetch OD request",
    )
    if not result.data:
        raise NotFound("OD request not found")
    return result.data[0]


def _transition(db, request_id: str, update_data: dict, failure_message: str) -> dict:
    result = execute(
        db.table("od_requests")
        .update(update_data)
        .eq("id", request_id)
        .eq("status", PENDING),
        failure_message,
    )
    if result.data:
        return result.data[0]

    current = get_request(db, request_id)
    raise InvalidTransition(f"OD request is already {current['status']}")


def approve_request(db, request_id: str, approver_id: str) -> dict:
    update_data = {
        "status": APPROVED,
        "approved_by": approver_id,
        "approved_at": now_iso(),
    }
    row = _transition(db, request_id, update_data, "Failed to approve request")
    logger.info("OD request %s approved by %s", request_id, approver_id)
    return row


def reject_request(db, request_id: str, reason: Optional[str]) -> dict:
    if not reason or not reason.strip():
        raise ValidationFailed("Please provide a reason for rejection")

    update_data = {
        "status": REJECTED,
        "rejection_reason": reason,
    }
    row = _transition(db, request_id, update_data, "Failed to reject request")
    logger.info("OD request %s rejected", request_id)
    return row


def list_my_requests(db, student_id: str, limit: Optional[int] = None) -> list[dict]:
    query = (
        db.table("od_requests")
        .select("*")
        .eq("student_id", student_id)
        .order("created_at", desc=True)
    )
    if limit is not None:
        query = query.limit(limit)
    return execute(query, "Failed to fetch requests").data


def list_pending_requests(db) -> list[dict]:
    # review queue: oldest first
    result = execute(
        db.table("od_requests")
        .select("*")
        .eq("status", PENDING)
        .order("created_at", desc=False),
        "Failed to fetch pending requests",
    )
    return attach_students(db, result.data)


def attendance_status(records: list[dict], on_date: str) -> str:
    for rec in records:
        if rec["date"] == on_date:
            return "present" if rec["is_present"] else "absent"
    return "not_marked"


def fetch_attendance_for(db, request_ids: list[str]) -> dict[str, list[dict]]:
    by_request: dict[str, list[dict]] = {rid: [] for rid in request_ids}
    if not request_ids:
        return by_request
    result = execute(
        db.table("attendance")
        .select("id, od_request_id, date, is_present")
        .in_("od_request_id", request_ids),
        "Failed to fetch attendance",
    )
    for rec in result.data:
        by_request.setdefault(rec["od_request_id"], []).append(rec)
    return by_request


def list_approved_requests(db) -> list[dict]:
    result = execute(
        db.table("od_requests")
        .select("*")
        .eq("status", APPROVED)
        .order("approved_at", desc=True),
        "Failed to fetch approved ODs",
    )
    rows = attach_students(db, result.data)
    attendance = fetch_attendance_for(db, [r["id"] for r in rows])
    for row in rows:
        row["attendance"] = attendance.get(row["id"], [])
        row["attendance_status"] = attendance_status(row["attendance"], row["od_date"])
    return rows
