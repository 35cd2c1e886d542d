# blueprints/program/routes.py
from __future__ import annotations
import logging
from datetime import date
from typing import Any, Dict

from flask import Blueprint, abort, request, url_for

from blueprints.core.responses import business_error, created, ok
from models import ScheduleEntry
from . import services as svc
from . import store
from .schemas import DateRange, EntryIn, EntryPatch, ExtraMessageIn

api_bp = Blueprint("program_api", __name__)

log = logging.getLogger(__name__)


def entry_to_dict(e: ScheduleEntry) -> Dict[str, Any]:
    return {
        "id": e.id,
        "date": e.date.isoformat(),
        "time_slot_id": e.time_slot_id,
        "meeting_point_id": e.meeting_point_id,
        "territory_ids": list(e.territory_ids or ([e.territory_id] if e.territory_id else [])),
        "captain_id": e.captain_id,
        "is_special_message": e.is_special_message,
        "special_message_text": e.special_message_text,
        "full_day_span": e.full_day_span,
        "is_by_group": e.is_by_group,
        "group_assignments": e.group_assignments or [],
    }


def _range_from_args() -> DateRange:
    # ?from=YYYY-MM-DD&to=YYYY-MM-DD (también date_from/date_to)
    return DateRange.model_validate({
        "date_from": request.args.get("from") or request.args.get("date_from"),
        "date_to": request.args.get("to") or request.args.get("date_to"),
    })


# ---------- entries ----------
@api_bp.get("/program/entries")
def entries_list():
    rng = _range_from_args()
    items = store.list_entries(rng.date_from, rng.date_to)
    return ok({"ok": True, "items": [entry_to_dict(e) for e in items]})

@api_bp.post("/program/entries")
def entries_create():
    parsed = EntryIn.model_validate(request.get_json(silent=True) or {})
    if not parsed.is_special_message and store.find_outing(parsed.date, parsed.time_slot_id):
        log.warning("duplicate entry", extra={"event": "entry_duplicate", "path": request.path})
        return business_error("DUPLICATE_ENTRY", {"date": parsed.date.isoformat(), "time_slot_id": parsed.time_slot_id})
    entry_id = store.create_entry(parsed.to_fields())
    return created(url_for("program_api.entries_get", entry_id=entry_id),
                   entry_to_dict(store.get_entry(entry_id)))

@api_bp.get("/program/entries/<int:entry_id>")
def entries_get(entry_id: int):
    return ok(entry_to_dict(store.get_entry(entry_id)))

@api_bp.put("/program/entries/<int:entry_id>")
def entries_update(entry_id: int):
    parsed = EntryPatch.model_validate(request.get_json(silent=True) or {})
    kind = store.entry_kind(store.get_entry(entry_id))
    stray = parsed.fields_not_allowed(kind)
    if stray:
        return business_error("FIELDS_NOT_ALLOWED", {"kind": kind, "fields": stray}, status=422)
    if kind == "special" and "special_message_text" in parsed.model_fields_set \
            and not (parsed.special_message_text or "").strip():
        return business_error("FIELDS_NOT_ALLOWED", {"kind": kind, "fields": ["special_message_text"]}, status=422)
    row = store.update_entry(entry_id, parsed.to_fields())
    return ok(entry_to_dict(row))

@api_bp.delete("/program/entries/<int:entry_id>")
def entries_delete(entry_id: int):
    store.delete_entry(entry_id)
    return "", 204

@api_bp.post("/program/clear")
def program_clear():
    rng = DateRange.model_validate(request.get_json(silent=True) or {})
    n = store.clear_range(rng.date_from, rng.date_to)
    return ok({"ok": True, "cleared": n})

# ---------- grid ----------
@api_bp.get("/program/grid")
def program_grid():
    rng = _range_from_args()
    rows = svc.load_grid(rng.date_from, rng.date_to)
    return ok({
        "period": {"from": rng.date_from.isoformat(), "to": rng.date_to.isoformat()},
        "rows": [r.to_dict() for r in rows],
    })

@api_bp.get("/program/my-assignments/<int:participant_id>")
def my_assignments(participant_id: int):
    rng = _range_from_args()
    return ok({"ok": True, "items": svc.my_assignments(participant_id, rng.date_from, rng.date_to)})

# ---------- extra messages ----------
@api_bp.get("/program/extra-messages")
def extra_messages_list():
    d_from = request.args.get("from")
    d_to = request.args.get("to")
    try:
        items = svc.list_extra_messages(
            date.fromisoformat(d_from) if d_from else None,
            date.fromisoformat(d_to) if d_to else None,
        )
    except ValueError:
        abort(400, description="Bad date")
    return ok({"ok": True, "items": [svc.extra_message_to_dict(m) for m in items]})

@api_bp.post("/program/extra-messages")
def extra_messages_create():
    parsed = ExtraMessageIn.model_validate(request.get_json(silent=True) or {})
    m = svc.save_extra_message(parsed.model_dump())
    return created(url_for("program_api.extra_messages_list"), svc.extra_message_to_dict(m))

@api_bp.put("/program/extra-messages/<int:message_id>")
def extra_messages_update(message_id: int):
    parsed = ExtraMessageIn.model_validate(request.get_json(silent=True) or {})
    m = svc.save_extra_message(parsed.model_dump(), message_id=message_id)
    return ok(svc.extra_message_to_dict(m))

@api_bp.delete("/program/extra-messages/<int:message_id>")
def extra_messages_delete(message_id: int):
    svc.delete_extra_message(message_id)
    return "", 204
