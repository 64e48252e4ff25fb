"""
Teacher router — Review queue, approve/reject OD, approved ODs, students, attendance calendar.
"""

from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends
from app.core.security import require_role
from app.core.database import get_supabase
from app.schemas.workflow import ODReject
from app.services import od_requests
from app.services.attendance import attendance_calendar
from app.services.dashboard import student_directory, teacher_dashboard
from app.utils.response import success_response

router = APIRouter(prefix="/api/teacher", tags=["Teacher"])


@router.get("/dashboard")
async def get_dashboard(
    user: dict = Depends(require_role(["teacher"])),
):
    db = get_supabase()
    return success_response(data={
        "profile": user["profile"],
        **teacher_dashboard(db),
    })


# ===== OD APPROVAL =====

@router.get("/od/pending")
async def get_pending_od(
    user: dict = Depends(require_role(["teacher"])),
):
    db = get_supabase()
    return success_response(data=od_requests.list_pending_requests(db))


@router.get("/od/approved")
async def get_approved_od(
    user: dict = Depends(require_role(["teacher"])),
):
    db = get_supabase()
    return success_response(data=od_requests.list_approved_requests(db))


@router.get("/od/{od_id}")
async def get_od_request(
    od_id: str,
    user: dict = Depends(require_role(["teacher"])),
):
    db = get_supabase()
    row = od_requests.get_request(db, od_id)
    return success_response(data=od_requests.attach_students(db, [row])[0])


@router.patch("/od/{od_id}/approve")
async def approve_od(
    od_id: str,
    user: dict = Depends(require_role(["teacher"])),
):
    db = get_supabase()
    row = od_requests.approve_request(db, od_id, user["user_id"])
    return success_response(data=row, message="Request approved successfully")


@router.patch("/od/{od_id}/reject")
async def reject_od(
    od_id: str,
    body: ODReject,
    user: dict = Depends(require_role(["teacher"])),
):
    db = get_supabase()
    row = od_requests.reject_request(db, od_id, body.rejection_reason)
    return success_response(data=row, message="Request rejected successfully")


# ===== STUDENTS & ATTENDANCE =====

@router.get("/students")
async def list_students(
    search: Optional[str] = None,
    department: Optional[str] = None,
    user: dict = Depends(require_role(["teacher"])),
):
    db = get_supabase()
    return success_response(data=student_directory(db, search=search, department=department))


@router.get("/attendance/calendar")
async def get_attendance_calendar(
    on_date: Optional[date] = None,
    user: dict = Depends(require_role(["teacher"])),
):
    db = get_supabase()
    return success_response(data=attendance_calendar(db, on_date))
