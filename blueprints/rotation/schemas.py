from __future__ import annotations
from datetime import date as date_type
from typing import List, Optional
from pydantic import BaseModel, Field, model_validator

# ---------- Fixed assignments ----------
class FixedAssignmentIn(BaseModel):
    day_of_week: int = Field(ge=0, le=6)  # 0=lunes .. 6=domingo
    time_slot_id: int
    captain_id: int

class FixedAssignmentOut(FixedAssignmentIn):
    id: int

# ---------- Rotation run ----------
class RotationRequest(BaseModel):
    date_from: Optional[date_type] = None
    date_to: Optional[date_type] = None
    dates: List[date_type] = Field(default_factory=list)
    preview_id: Optional[str] = None

    @model_validator(mode="after")
    def check_dates(self):
        if self.preview_id:
            return self
        if not self.dates and (self.date_from is None or self.date_to is None):
            raise ValueError("either dates or date_from/date_to are required")
        if self.date_from and self.date_to and self.date_to < self.date_from:
            raise ValueError("date_to must be >= date_from")
        return self
