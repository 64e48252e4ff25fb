"""
Pydantic schemas for OD requests, attendance and events.
"""

from pydantic import AfterValidator, BaseModel, field_validator
from typing import Annotated, Literal, Optional
from datetime import date


def _not_blank(value: str) -> str:
    if not value or not value.strip():
        raise ValueError("must not be blank")
    return value


RequiredText = Annotated[str, AfterValidator(_not_blank)]

ODType = Literal["daily", "sports", "cultural", "academic", "technical", "other"]


# ---- OD Request ----
class ODCreate(BaseModel):
    title: RequiredText
    od_type: ODType
    event_name: RequiredText
    od_date: date
    timings: RequiredText
    period: Optional[str] = None

    @field_validator("od_date")
    @classmethod
    def not_in_past(cls, value: date) -> date:
        if value < date.today():
            raise ValueError("OD date cannot be in the past")
        return value

    @field_validator("period")
    @classmethod
    def blank_period_is_none(cls, value: Optional[str]) -> Optional[str]:
        return value if value and value.strip() else None


class ODReject(BaseModel):
    # blank reasons are refused by the lifecycle service
    rejection_reason: str = ""


# ---- Attendance ----
class AttendanceMark(BaseModel):
    is_present: bool
    on_date: Optional[date] = None  # defaults to the OD date


# ---- Events ----
class EventCreate(BaseModel):
    title: RequiredText
    event_date: date
    description: Optional[str] = None
