from __future__ import annotations
from datetime import date as date_type, time as time_type
from typing import Optional
from pydantic import BaseModel, Field, field_validator

from blueprints.program.calendar import weekday_from_name

_HHMM = r"^([01]\d|2[0-3]):[0-5]\d$"
_COLOR = r"^#[0-9a-fA-F]{6}$"

# ---------- Participants ----------
class ParticipantIn(BaseModel):
    given_name: str = Field(min_length=1, max_length=120)
    surname: str = Field(min_length=1, max_length=120)
    is_captain: bool = False
    availability_restriction: str = Field(
        "sin_restriccion",
        pattern="^(sin_restriccion|solo_fines_semana|solo_entre_semana|solo_sabados|solo_domingos)$",
    )

class ParticipantOut(ParticipantIn):
    id: int

# ---------- Time Slots ----------
class TimeSlotIn(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    time: time_type
    order_no: int = Field(0, ge=0)

class TimeSlotOut(TimeSlotIn):
    id: int

# ---------- Territories ----------
class TerritoryIn(BaseModel):
    number: str = Field(min_length=1, max_length=20)
    image_url: Optional[str] = Field(None, max_length=500)

class TerritoryOut(TerritoryIn):
    id: int

# ---------- Meeting Points ----------
class MeetingPointIn(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    address: Optional[str] = Field(None, max_length=255)
    maps_url: Optional[str] = Field(None, max_length=500)

class MeetingPointOut(MeetingPointIn):
    id: int
    is_zoom: bool = False

# ---------- Preaching Groups ----------
class PreachingGroupIn(BaseModel):
    number: int = Field(ge=1)
    name: Optional[str] = Field(None, max_length=120)

class PreachingGroupOut(PreachingGroupIn):
    id: int

# ---------- Special Days ----------
class SpecialDayIn(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    date: Optional[date_type] = None
    block_type: str = Field("completo", pattern="^(completo|manana|tarde)$")
    color: str = Field("#1a365d", pattern=_COLOR)

class SpecialDayOut(SpecialDayIn):
    id: int

# ---------- Settings ----------
class MeetingDaysIn(BaseModel):
    weekday_meeting_day: Optional[str] = None
    weekday_meeting_time: Optional[str] = Field(None, pattern=_HHMM)
    weekend_meeting_day: Optional[str] = None
    weekend_meeting_time: Optional[str] = Field(None, pattern=_HHMM)

    @field_validator("weekday_meeting_day", "weekend_meeting_day")
    @classmethod
    def check_day(cls, v: Optional[str]) -> Optional[str]:
        if v in (None, ""):
            return None
        if weekday_from_name(v) is None:
            raise ValueError(f"unknown day name: {v}")
        return v.strip().lower()
