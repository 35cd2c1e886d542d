# blueprints/program/entries.py
"""Immutable snapshots of program rows used by the scheduler and the grid.

A ``ScheduleEntry`` row means one of three things, so it is converted into
exactly one of ``OutingEntry``, ``SpecialMessageEntry`` or ``GroupFanoutEntry``.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, List, Optional, Tuple, Union

from models import (
    AvailabilityRestriction, CaptainAvailability, DayBlock, FixedAssignment,
    MeetingPoint, Participant, PreachingGroup, ScheduleEntry, SpecialDay,
    SpecialDayBlock, Territory, TimeSlot,
)
from .calendar import SpecialDayInfo, fmt_hhmm, parse_hhmm


@dataclass(frozen=True)
class SlotInfo:
    id: int
    name: str
    time: str  # HH:MM

    @property
    def hour(self) -> int:
        t = parse_hhmm(self.time)
        return t.hour if t else 0


@dataclass(frozen=True)
class GroupAssignment:
    group_id: int
    territory_id: Optional[int] = None
    captain_id: Optional[int] = None
    meeting_point_id: Optional[int] = None
    salida_index: int = 0


@dataclass(frozen=True)
class OutingEntry:
    id: Optional[int]
    date: date
    time_slot_id: Optional[int]
    meeting_point_id: Optional[int] = None
    territory_ids: Tuple[int, ...] = ()
    captain_id: Optional[int] = None


@dataclass(frozen=True)
class SpecialMessageEntry:
    id: Optional[int]
    date: date
    time_slot_id: Optional[int]
    text: str = ""
    full_day_span: bool = False


@dataclass(frozen=True)
class GroupFanoutEntry:
    id: Optional[int]
    date: date
    time_slot_id: Optional[int]
    meeting_point_id: Optional[int] = None
    assignments: Tuple[GroupAssignment, ...] = ()

    @property
    def is_individual(self) -> bool:
        # todos con salida_index 0/None -> cada grupo sale por su cuenta
        return all(not a.salida_index for a in self.assignments)


Entry = Union[OutingEntry, SpecialMessageEntry, GroupFanoutEntry]


@dataclass(frozen=True)
class CaptainInfo:
    id: int
    given_name: str
    surname: str
    restriction: AvailabilityRestriction = AvailabilityRestriction.NONE

    @property
    def display_name(self) -> str:
        return f"{self.given_name} {self.surname}".strip()


@dataclass(frozen=True)
class FixedRule:
    day_of_week: int
    time_slot_id: int
    captain_id: int


@dataclass(frozen=True)
class AvailabilityOverride:
    captain_id: int
    day_of_week: int
    block: DayBlock


@dataclass(frozen=True)
class TerritoryInfo:
    id: int
    number: str
    image_url: Optional[str] = None


@dataclass(frozen=True)
class MeetingPointInfo:
    id: int
    name: str
    address: Optional[str] = None
    maps_url: Optional[str] = None

    @property
    def is_zoom(self) -> bool:
        return "zoom" in (self.name or "").lower()


@dataclass
class Catalog:
    """Lookup tables for labels; missing ids resolve to blank labels."""
    territories: dict = field(default_factory=dict)
    meeting_points: dict = field(default_factory=dict)
    participants: dict = field(default_factory=dict)
    groups: dict = field(default_factory=dict)  # group_id -> number

    def captain_name(self, captain_id: Optional[int]) -> str:
        p = self.participants.get(captain_id) if captain_id is not None else None
        return p.display_name if p else ""


# ---------- converters ----------
def _int_or_none(v) -> Optional[int]:
    try:
        return int(v) if v is not None and v != "" else None
    except (TypeError, ValueError):
        return None


def territory_ids_of(row: ScheduleEntry) -> Tuple[int, ...]:
    ids = [i for i in (_int_or_none(x) for x in (row.territory_ids or [])) if i is not None]
    if not ids and row.territory_id:
        ids = [row.territory_id]
    return tuple(ids)


def group_assignments_of(raw: Iterable[dict] | None) -> Tuple[GroupAssignment, ...]:
    out: List[GroupAssignment] = []
    for a in raw or []:
        gid = _int_or_none(a.get("group_id"))
        if gid is None:
            continue
        out.append(GroupAssignment(
            group_id=gid,
            territory_id=_int_or_none(a.get("territory_id")),
            captain_id=_int_or_none(a.get("captain_id")),
            meeting_point_id=_int_or_none(a.get("meeting_point_id")),
            salida_index=_int_or_none(a.get("salida_index")) or 0,
        ))
    return tuple(out)


def entry_from_model(row: ScheduleEntry) -> Entry:
    if row.is_special_message:
        return SpecialMessageEntry(
            id=row.id, date=row.date, time_slot_id=row.time_slot_id,
            text=row.special_message_text or "", full_day_span=bool(row.full_day_span),
        )
    if row.is_by_group:
        return GroupFanoutEntry(
            id=row.id, date=row.date, time_slot_id=row.time_slot_id,
            meeting_point_id=row.meeting_point_id,
            assignments=group_assignments_of(row.group_assignments),
        )
    return OutingEntry(
        id=row.id, date=row.date, time_slot_id=row.time_slot_id,
        meeting_point_id=row.meeting_point_id,
        territory_ids=territory_ids_of(row),
        captain_id=row.captain_id,
    )


def slot_from_model(ts: TimeSlot) -> SlotInfo:
    return SlotInfo(id=ts.id, name=ts.name, time=fmt_hhmm(ts.time))


def captain_from_model(p: Participant) -> CaptainInfo:
    return CaptainInfo(
        id=p.id, given_name=p.given_name or "", surname=p.surname or "",
        restriction=AvailabilityRestriction.parse(p.availability_restriction),
    )


def fixed_rule_from_model(fa: FixedAssignment) -> FixedRule:
    return FixedRule(day_of_week=fa.day_of_week, time_slot_id=fa.time_slot_id, captain_id=fa.captain_id)


def override_from_model(ca: CaptainAvailability) -> AvailabilityOverride:
    try:
        block = DayBlock(ca.block)
    except ValueError:
        block = DayBlock.BOTH
    return AvailabilityOverride(captain_id=ca.captain_id, day_of_week=ca.day_of_week, block=block)


def special_day_from_model(sd: SpecialDay) -> SpecialDayInfo:
    try:
        block_type = SpecialDayBlock(sd.block_type)
    except ValueError:
        block_type = SpecialDayBlock.FULL
    return SpecialDayInfo(id=sd.id, name=sd.name, date=sd.date, block_type=block_type)


def build_catalog(
    territories: Iterable[Territory] = (),
    meeting_points: Iterable[MeetingPoint] = (),
    participants: Iterable[Participant] = (),
    groups: Iterable[PreachingGroup] = (),
) -> Catalog:
    return Catalog(
        territories={t.id: TerritoryInfo(t.id, t.number, t.image_url) for t in territories},
        meeting_points={m.id: MeetingPointInfo(m.id, m.name, m.address, m.maps_url) for m in meeting_points},
        participants={p.id: captain_from_model(p) for p in participants},
        groups={g.id: g.number for g in groups},
    )
