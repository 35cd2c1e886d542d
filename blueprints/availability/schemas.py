from __future__ import annotations
from typing import List
from pydantic import BaseModel, Field, field_validator

from models import DayBlock

class AvailabilityOverrideIn(BaseModel):
    day_of_week: int = Field(ge=0, le=6)  # 0=lunes .. 6=domingo
    block: str = DayBlock.BOTH.value

    @field_validator("block")
    @classmethod
    def check_block(cls, v: str) -> str:
        return DayBlock(v).value

class AvailabilityIn(BaseModel):
    overrides: List[AvailabilityOverrideIn] = Field(default_factory=list)
