"""
Dashboard summaries and the teacher-facing student directory.
"""

from typing import Optional

from app.core.database import execute
from app.services.od_requests import APPROVED, PENDING, REJECTED, attach_students, list_my_requests

RECENT_LIMIT = 5


def _count_statuses(rows: list[dict]) -> dict:
    return {
        "total": len(rows),
        "pending": sum(1 for r in rows if r["status"] == PENDING),
        "approved": sum(1 for r in rows if r["status"] == APPROVED),
        "rejected": sum(1 for r in rows if r["status"] == REJECTED),
    }


def student_dashboard(db, student_id: str) -> dict:
    statuses = execute(
        db.table("od_requests").select("status").eq("student_id", student_id),
        "Failed to fetch requests",
    )
    return {
        "recent_requests": list_my_requests(db, student_id, limit=RECENT_LIMIT),
        "stats": _count_statuses(statuses.data),
    }


def teacher_dashboard(db) -> dict:
    pending = execute(
        db.table("od_requests")
        .select("*")
        .eq("status", PENDING)
        .order("created_at", desc=True)
        .limit(RECENT_LIMIT),
        "Failed to fetch dashboard data",
    )
    statuses = execute(db.table("od_requests").select("status"), "Failed to fetch dashboard data")
    students = execute(
        db.table("students").select("id", count="exact"),
        "Failed to fetch dashboard data",
    )
    total_students = students.count if getattr(students, "count", None) is not None else len(students.data)

    stats = _count_statuses(statuses.data)
    return {
        "recent_pending": attach_students(db, pending.data),
        "stats": {
            "total_requests": stats["total"],
            "pending_requests": stats["pending"],
            "approved_requests": stats["approved"],
            "total_students": total_students,
        },
    }


def _matches(student: dict, search: str) -> bool:
    term = search.lower()
    return any(
        term in (student.get(field) or "").lower()
        for field in ("name", "email", "register_number")
    )


def student_directory(db, search: Optional[str] = None, department: Optional[str] = None) -> dict:
    students = execute(
        db.table("students").select("*").order("name"),
        "Failed to fetch students",
    ).data

    user_ids = [s["user_id"] for s in students]
    counts = {uid: {"od_requests_count": 0, "approved_count": 0} for uid in user_ids}
    if user_ids:
        requests = execute(
            db.table("od_requests").select("student_id, status").in_("student_id", user_ids),
            "Failed to fetch students",
        )
        for req in requests.data:
            entry = counts.get(req["student_id"])
            if entry is None:
                continue
            entry["od_requests_count"] += 1
            if req["status"] == APPROVED:
                entry["approved_count"] += 1

    departments = sorted({s["department"] for s in students if s.get("department")})

    filtered = students
    if search:
        filtered = [s for s in filtered if _matches(s, search)]
    if department and department != "all":
        filtered = [s for s in filtered if s.get("department") == department]

    return {
        "students": [{**s, **counts[s["user_id"]]} for s in filtered],
        "departments": departments,
    }
