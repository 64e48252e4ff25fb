from fastapi import APIRouter, Depends
from app.core.security import require_role
from app.core.database import get_supabase
from app.schemas.workflow import EventCreate
from app.services import events
from app.utils.response import success_response

router = APIRouter(prefix="/api/events", tags=["Events"])


@router.get("")
async def list_events(
    user: dict = Depends(require_role(["student", "teacher"])),
):
    db = get_supabase()
    return success_response(data=events.list_events(db))


@router.post("")
async def create_event(
    body: EventCreate,
    user: dict = Depends(require_role(["teacher"])),
):
    db = get_supabase()
    row = events.create_event(db, user["user_id"], body)
    return success_response(data=row, message="Event created")
