# blueprints/program/store.py
"""Schedule-entry store: list / create / update / delete over ``ScheduleEntry``."""
from __future__ import annotations
import logging
from datetime import date
from typing import Any, Dict, List, Optional

from werkzeug.exceptions import NotFound

from extensions import db
from models import ScheduleEntry, TimeSlot

log = logging.getLogger(__name__)

_WRITABLE = (
    "date", "time_slot_id", "meeting_point_id", "territory_id", "territory_ids",
    "captain_id", "is_special_message", "special_message_text", "full_day_span",
    "is_by_group", "group_assignments",
)


def list_entries(date_from: date, date_to: date) -> List[ScheduleEntry]:
    return (ScheduleEntry.query
            .outerjoin(TimeSlot, TimeSlot.id == ScheduleEntry.time_slot_id)
            .filter(ScheduleEntry.active.is_(True),
                    ScheduleEntry.date >= date_from,
                    ScheduleEntry.date <= date_to)
            .order_by(ScheduleEntry.date.asc(), TimeSlot.time.asc(), ScheduleEntry.id.asc())
            .all())


def get_entry(entry_id: int) -> ScheduleEntry:
    row = db.session.get(ScheduleEntry, entry_id)
    if row is None or not row.active:
        raise NotFound(f"schedule entry {entry_id} not found")
    return row


def _apply(row: ScheduleEntry, fields: Dict[str, Any]) -> None:
    for key in _WRITABLE:
        if key in fields:
            setattr(row, key, fields[key])
    # territory_ids siempre reemplaza al territory_id heredado, aunque venga vacío
    if "territory_ids" in fields and "territory_id" not in fields:
        row.territory_id = None


def entry_kind(row: ScheduleEntry) -> str:
    if row.is_special_message:
        return "special"
    if row.is_by_group:
        return "group"
    return "outing"


def create_entry(fields: Dict[str, Any]) -> int:
    row = ScheduleEntry()
    _apply(row, fields)
    db.session.add(row)
    db.session.commit()
    return row.id


def update_entry(entry_id: int, fields: Dict[str, Any]) -> ScheduleEntry:
    row = get_entry(entry_id)
    _apply(row, fields)
    db.session.commit()
    return row


def delete_entry(entry_id: int) -> None:
    row = get_entry(entry_id)
    row.active = False
    db.session.commit()


def find_outing(d: date, time_slot_id: Optional[int], exclude_id: Optional[int] = None) -> Optional[ScheduleEntry]:
    q = ScheduleEntry.query.filter_by(date=d, time_slot_id=time_slot_id, active=True, is_special_message=False)
    if exclude_id is not None:
        q = q.filter(ScheduleEntry.id != exclude_id)
    return q.first()


def clear_range(date_from: date, date_to: date) -> int:
    rows = list_entries(date_from, date_to)
    for r in rows:
        r.active = False
    db.session.commit()
    log.info("program cleared", extra={"event": "program_cleared", "count": len(rows)})
    return len(rows)
