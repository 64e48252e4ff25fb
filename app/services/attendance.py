"""
Attendance against approved OD requests.

Students self-report one mark per (request, date). Marks are immutable: an
existing record blocks any further write for that pair.
"""

import logging
from datetime import date
from typing import Optional

from app.core.database import execute
from app.core.exceptions import Forbidden, InvalidTransition
from app.services.od_requests import (
    APPROVED,
    attach_students,
    attendance_status,
    fetch_attendance_for,
    get_request,
)

logger = logging.getLogger(__name__)


def get_attendance(db, request_id: str, on_date: str) -> Optional[dict]:
    result = execute(
        db.table("attendance")
        .select("*")
        .eq("od_request_id", request_id)
        .eq("date", on_date)
        .limit(1),
        "Failed to fetch attendance",
    )
    return result.data[0] if result.data else None


def list_markable_requests(db, student_id: str) -> list[dict]:
    """The student's approved ODs, newest OD date first, with mark state."""
    result = execute(
        db.table("od_requests")
        .select("id, title, event_name, od_date, timings")
        .eq("student_id", student_id)
        .eq("status", APPROVED)
        .order("od_date", desc=True),
        "Failed to fetch approved ODs",
    )
    rows = result.data
    attendance = fetch_attendance_for(db, [r["id"] for r in rows])
    for row in rows:
        records = attendance.get(row["id"], [])
        row["attendance"] = records
        row["attendance_status"] = attendance_status(records, row["od_date"])
        row["can_mark"] = row["attendance_status"] == "not_marked"
    return rows


def mark_attendance(
    db,
    student_id: str,
    request_id: str,
    is_present: bool,
    on_date: Optional[date] = None,
) -> dict:
    od = get_request(db, request_id)
    if od["student_id"] != student_id:
        raise Forbidden("You can only mark attendance for your own OD requests")
    if od["status"] != APPROVED:
        raise InvalidTransition("Attendance can only be marked for approved OD requests")

    mark_date = on_date.isoformat() if on_date else od["od_date"]
    existing = get_attendance(db, request_id, mark_date)
    if existing:
        raise InvalidTransition(
            f"Attendance already marked as {'present' if existing['is_present'] else 'absent'} for {mark_date}"
        )

    result = execute(
        db.table("attendance").insert({
            "od_request_id": request_id,
            "date": mark_date,
            "is_present": is_present,
        }),
        "Failed to mark attendance",
    )
    logger.info("Attendance for %s on %s marked %s", request_id, mark_date, "present" if is_present else "absent")
    return result.data[0]


def attendance_calendar(db, on_date: Optional[date] = None) -> dict:
    """
    Present records grouped by date, newest date first. With `on_date`,
    only that day's students are returned.
    """
    query = (
        db.table("attendance")
        .select("id, date, is_present, od_request_id")
        .eq("is_present", True)
    )
    if on_date:
        query = query.eq("date", on_date.isoformat())
    records = execute(query.order("date", desc=True), "Failed to fetch attendance").data

    request_ids = sorted({r["od_request_id"] for r in records})
    requests = {}
    if request_ids:
        result = execute(
            db.table("od_requests").select("id, title, student_id").in_("id", request_ids),
            "Failed to fetch OD requests",
        )
        requests = {r["id"]: r for r in result.data}

    entries = []
    for rec in records:
        od = requests.get(rec["od_request_id"], {})
        entries.append({
            "attendance_id": rec["id"],
            "date": rec["date"],
            "od_request_id": rec["od_request_id"],
            "title": od.get("title", ""),
            "student_id": od.get("student_id"),
        })
    attach_students(db, entries)

    by_date: dict[str, list[dict]] = {}
    for entry in entries:
        by_date.setdefault(entry["date"], []).append(entry)

    if on_date:
        return {"date": on_date.isoformat(), "students": by_date.get(on_date.isoformat(), [])}
    return {"dates": list(by_date.keys()), "by_date": by_date}
