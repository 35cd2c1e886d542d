from __future__ import annotations
from datetime import date as date_type
from typing import List, Optional
from pydantic import BaseModel, Field, model_validator

# ---------- Entries ----------
class GroupAssignmentIn(BaseModel):
    group_id: int
    territory_id: Optional[int] = None
    captain_id: Optional[int] = None
    meeting_point_id: Optional[int] = None
    salida_index: int = Field(0, ge=0)

class EntryIn(BaseModel):
    date: date_type
    time_slot_id: Optional[int] = None
    meeting_point_id: Optional[int] = None
    territory_ids: List[int] = Field(default_factory=list)
    captain_id: Optional[int] = None
    is_special_message: bool = False
    special_message_text: Optional[str] = Field(None, max_length=500)
    full_day_span: bool = False
    is_by_group: bool = False
    group_assignments: List[GroupAssignmentIn] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_kind(self):
        if self.is_special_message and self.is_by_group:
            raise ValueError("is_special_message and is_by_group are mutually exclusive")
        if self.is_special_message:
            if not (self.special_message_text or "").strip():
                raise ValueError("special_message_text is required for a special message")
            if not self.full_day_span and self.time_slot_id is None:
                raise ValueError("time_slot_id is required unless full_day_span is set")
        else:
            if self.full_day_span:
                raise ValueError("full_day_span applies to special messages only")
            if self.time_slot_id is None:
                raise ValueError("time_slot_id is required")
        return self

    def to_fields(self) -> dict:
        data = self.model_dump()
        data["territory_ids"] = list(dict.fromkeys(self.territory_ids)) or None
        data["group_assignments"] = [a.model_dump() for a in self.group_assignments] if self.is_by_group else None
        if self.is_special_message:
            data.update(meeting_point_id=None, territory_ids=None, captain_id=None)
            if self.full_day_span:
                data["time_slot_id"] = None
        else:
            data["special_message_text"] = None
        if self.is_by_group:
            data.update(captain_id=None, territory_ids=None)
        return data

# campos que se pueden editar según el tipo de entrada
PATCH_FIELDS_BY_KIND = {
    "special": frozenset({"special_message_text"}),
    "group": frozenset({"meeting_point_id", "group_assignments"}),
    "outing": frozenset({"meeting_point_id", "territory_ids", "captain_id"}),
}

class EntryPatch(BaseModel):
    meeting_point_id: Optional[int] = None
    territory_ids: Optional[List[int]] = None
    captain_id: Optional[int] = None
    special_message_text: Optional[str] = Field(None, max_length=500)
    group_assignments: Optional[List[GroupAssignmentIn]] = None

    def fields_not_allowed(self, kind: str) -> List[str]:
        return sorted(self.model_fields_set - PATCH_FIELDS_BY_KIND[kind])

    def to_fields(self) -> dict:
        data = self.model_dump(exclude_unset=True)
        if "territory_ids" in data:
            data["territory_ids"] = list(dict.fromkeys(self.territory_ids or []))
        if self.group_assignments is not None:
            data["group_assignments"] = [a.model_dump() for a in self.group_assignments]
        return data

# ---------- Ranges ----------
class DateRange(BaseModel):
    date_from: date_type
    date_to: date_type

    @model_validator(mode="after")
    def check_order(self):
        if self.date_to < self.date_from:
            raise ValueError("date_to must be >= date_from")
        return self

# ---------- Extra messages ----------
class ExtraMessageIn(BaseModel):
    date: date_type
    message: str = Field(min_length=1, max_length=500)
    color: Optional[str] = Field(None, pattern="^#[0-9a-fA-F]{6}$")

class ExtraMessageOut(ExtraMessageIn):
    id: int
