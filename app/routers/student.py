"""
Student router — Submit OD, view my requests, dashboard, mark attendance.
All queries use user_id (Supabase account id), which is what od_requests.student_id holds.
"""

from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from pydantic import ValidationError
from app.core.security import require_role
from app.core.database import get_supabase
from app.core.exceptions import Forbidden, ValidationFailed
from app.schemas.workflow import AttendanceMark, ODCreate
from app.services import attendance as attendance_service
from app.services import od_requests
from app.services.dashboard import student_dashboard
from app.utils.response import success_response

router = APIRouter(prefix="/api/student", tags=["Student"])


def _parse_od_form(**fields) -> ODCreate:
    try:
        return ODCreate(**fields)
    except ValidationError as e:
        err = e.errors()[0]
        field = ".".join(str(p) for p in err["loc"])
        raise ValidationFailed(f"{field}: {err['msg']}")


@router.post("/od")
async def submit_od(
    title: str = Form(""),
    od_type: str = Form(""),
    event_name: str = Form(""),
    od_date: str = Form(""),
    timings: str = Form(""),
    period: Optional[str] = Form(None),
    attachment: Optional[UploadFile] = File(None),
    user: dict = Depends(require_role(["student"])),
):
    # validate everything before touching storage
    body = _parse_od_form(
        title=title,
        od_type=od_type,
        event_name=event_name,
        od_date=od_date,
        timings=timings,
        period=period,
    )

    upload = None
    if attachment is not None and attachment.filename:
        upload = (attachment.filename, await attachment.read(), attachment.content_type)

    db = get_supabase()
    row = od_requests.create_request(db, user["user_id"], body, upload)
    return success_response(data=row, message="OD request submitted successfully")


@router.get("/od")
async def get_my_od_requests(
    limit: Optional[int] = Query(None, ge=1),
    user: dict = Depends(require_role(["student"])),
):
    db = get_supabase()
    return success_response(data=od_requests.list_my_requests(db, user["user_id"], limit=limit))


@router.get("/od/{od_id}")
async def get_my_od_request(
    od_id: str,
    user: dict = Depends(require_role(["student"])),
):
    db = get_supabase()
    row = od_requests.get_request(db, od_id)
    if row["student_id"] != user["user_id"]:
        raise Forbidden("You can only view your own OD requests")
    return success_response(data=row)


@router.get("/dashboard")
async def get_dashboard(
    user: dict = Depends(require_role(["student"])),
):
    db = get_supabase()
    return success_response(data={
        "profile": user["profile"],
        **student_dashboard(db, user["user_id"]),
    })


# ===== ATTENDANCE =====

@router.get("/attendance")
async def get_markable_ods(
    user: dict = Depends(require_role(["student"])),
):
    db = get_supabase()
    return success_response(data=attendance_service.list_markable_requests(db, user["user_id"]))


@router.get("/attendance/{od_id}")
async def get_attendance_status(
    od_id: str,
    on_date: Optional[date] = None,
    user: dict = Depends(require_role(["student"])),
):
    """Existing mark for the OD date (or `on_date`); `can_mark` is false once one exists."""
    db = get_supabase()
    od = od_requests.get_request(db, od_id)
    if od["student_id"] != user["user_id"]:
        raise Forbidden("You can only view attendance for your own OD requests")

    mark_date = on_date.isoformat() if on_date else od["od_date"]
    record = attendance_service.get_attendance(db, od_id, mark_date)
    return success_response(data={
        "od_request_id": od_id,
        "date": mark_date,
        "record": record,
        "can_mark": record is None and od["status"] == od_requests.APPROVED,
    })


@router.post("/attendance/{od_id}")
async def mark_attendance(
    od_id: str,
    body: AttendanceMark,
    user: dict = Depends(require_role(["student"])),
):
    db = get_supabase()
    record = attendance_service.mark_attendance(
        db, user["user_id"], od_id, body.is_present, body.on_date
    )
    return success_response(
        data=record,
        message=f"Attendance marked as {'present' if body.is_present else 'absent'}",
    )
