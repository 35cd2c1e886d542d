# blueprints/program/calendar.py
from __future__ import annotations
import unicodedata
from dataclasses import dataclass
from datetime import date, time, timedelta
from typing import Iterable, List, Optional

from models import DayBlock, SpecialDayBlock

# 0=Lunes .. 6=Domingo, como date.weekday()
WEEKDAYS_ES = ["lunes", "martes", "miércoles", "jueves", "viernes", "sábado", "domingo"]

WEEKDAY_MEETING_LABEL = "REUNIÓN VIDA Y MINISTERIO CRISTIANO"
WEEKEND_MEETING_LABEL = "REUNIÓN PÚBLICA"


def normalize_day_name(name: str | None) -> str:
    """'Miércoles' -> 'miercoles'."""
    if not name:
        return ""
    decomposed = unicodedata.normalize("NFD", name.strip().lower())
    return "".join(ch for ch in decomposed if unicodedata.category(ch) != "Mn")


_WEEKDAY_BY_NAME = {normalize_day_name(n): i for i, n in enumerate(WEEKDAYS_ES)}


def weekday_from_name(name: str | None) -> Optional[int]:
    return _WEEKDAY_BY_NAME.get(normalize_day_name(name))


def daterange(d_from: date, d_to: date) -> Iterable[date]:
    d = d_from
    while d <= d_to:
        yield d
        d += timedelta(days=1)


def parse_hhmm(value) -> Optional[time]:
    if value is None or value == "":
        return None
    if isinstance(value, time):
        return value
    parts = str(value).strip().split(":")
    try:
        return time(int(parts[0]), int(parts[1]) if len(parts) > 1 else 0)
    except (ValueError, IndexError):
        return None


def fmt_hhmm(value) -> str:
    t = parse_hhmm(value)
    return f"{t.hour:02d}:{t.minute:02d}" if t else ""


def block_for_hour(hour: int, afternoon_from_hour: int) -> DayBlock:
    return DayBlock.MORNING if hour < afternoon_from_hour else DayBlock.AFTERNOON


@dataclass(frozen=True)
class MeetingDays:
    """Días de reunión semanales (clave de configuración ``dias_reunion``)."""
    weekday_meeting_day: Optional[str] = None
    weekday_meeting_time: Optional[str] = None
    weekend_meeting_day: Optional[str] = None
    weekend_meeting_time: Optional[str] = None

    @classmethod
    def from_setting(cls, value: dict | None) -> "MeetingDays":
        value = value or {}
        return cls(
            weekday_meeting_day=value.get("weekday_meeting_day"),
            weekday_meeting_time=value.get("weekday_meeting_time"),
            weekend_meeting_day=value.get("weekend_meeting_day"),
            weekend_meeting_time=value.get("weekend_meeting_time"),
        )

    def to_setting(self) -> dict:
        return {
            "weekday_meeting_day": self.weekday_meeting_day,
            "weekday_meeting_time": self.weekday_meeting_time,
            "weekend_meeting_day": self.weekend_meeting_day,
            "weekend_meeting_time": self.weekend_meeting_time,
        }

    def blocked_weekdays(self) -> set[int]:
        days = {weekday_from_name(self.weekday_meeting_day), weekday_from_name(self.weekend_meeting_day)}
        days.discard(None)
        return days

    def meeting_message(
        self,
        d: date,
        afternoon_from_hour: int,
        default_weekday_time: str = "19:30",
        default_weekend_time: str = "18:00",
    ) -> Optional[tuple[DayBlock, str]]:
        """Mensaje de reunión para la fecha y la mitad del día en la que cae."""
        wd = d.weekday()
        if wd == weekday_from_name(self.weekday_meeting_day):
            hhmm = fmt_hhmm(self.weekday_meeting_time or default_weekday_time)
            label = WEEKDAY_MEETING_LABEL
        elif wd == weekday_from_name(self.weekend_meeting_day):
            hhmm = fmt_hhmm(self.weekend_meeting_time or default_weekend_time)
            label = WEEKEND_MEETING_LABEL
        else:
            return None
        t = parse_hhmm(hhmm)
        block = block_for_hour(t.hour, afternoon_from_hour) if t else DayBlock.AFTERNOON
        return block, f"{label} {hhmm} HRS."


@dataclass(frozen=True)
class SpecialDayInfo:
    id: int
    name: str
    date: Optional[date]
    block_type: SpecialDayBlock

    def blocks(self, d: date, block: DayBlock) -> bool:
        if self.date != d:
            return False
        if self.block_type is SpecialDayBlock.FULL:
            return True
        return self.block_type.value == block.value


def special_days_on(special_days: Iterable[SpecialDayInfo], d: date) -> List[SpecialDayInfo]:
    return [s for s in special_days if s.date == d]
