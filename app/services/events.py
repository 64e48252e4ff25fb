import logging

from app.core.database import execute
from app.schemas.workflow import EventCreate

logger = logging.getLogger(__name__)


def list_events(db) -> list[dict]:
    result = execute(
        db.table("events")
        .select("id, title, event_date, description")
        .order("event_date", desc=False),
        "Failed to fetch events",
    )
    return result.data


def create_event(db, creator_id: str, body: EventCreate) -> dict:
    data = {
        "title": body.title,
        "event_date": body.event_date.isoformat(),
        "description": body.description,
        "created_by": creator_id,
    }
    result = execute(db.table("events").insert(data), "Failed to create event")
    logger.info("Event '%s' created by %s", body.title, creator_id)
    return result.data[0]
