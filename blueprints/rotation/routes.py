# blueprints/rotation/routes.py
from __future__ import annotations
import logging

from flask import Blueprint, current_app, request, url_for
from sqlalchemy.exc import IntegrityError

from blueprints.core.responses import business_error, created, handle_integrity_error, ok
from blueprints.program.calendar import daterange
from extensions import db
from .schemas import FixedAssignmentIn, FixedAssignmentOut, RotationRequest
from .services import (
    RotationApplyError, RotationInputError, apply_mutations, create_fixed,
    delete_fixed, list_fixed, plan_rotation, preview_store,
)

api_bp = Blueprint("rotation_api", __name__)

log = logging.getLogger(__name__)


def _fixed_out(row) -> dict:
    return FixedAssignmentOut.model_validate({
        "id": row.id, "day_of_week": row.day_of_week,
        "time_slot_id": row.time_slot_id, "captain_id": row.captain_id,
    }).model_dump(mode="json")


def _dates(parsed: RotationRequest):
    if parsed.dates:
        return sorted(set(parsed.dates))
    return list(daterange(parsed.date_from, parsed.date_to))


def _plan(parsed: RotationRequest):
    hour = current_app.config.get("SCHEDULER_AFTERNOON_FROM_HOUR", 12)
    return plan_rotation(_dates(parsed), afternoon_from_hour=hour)


# ---------- fixed assignments ----------
@api_bp.get("/fixed-assignments")
def fixed_list():
    return ok({"ok": True, "items": [_fixed_out(r) for r in list_fixed()]})

@api_bp.post("/fixed-assignments")
def fixed_create():
    parsed = FixedAssignmentIn.model_validate(request.get_json(silent=True) or {})
    try:
        row = create_fixed(parsed.day_of_week, parsed.time_slot_id, parsed.captain_id)
    except IntegrityError as ex:
        db.session.rollback()
        return handle_integrity_error(ex)
    return created(url_for("rotation_api.fixed_list"), _fixed_out(row))

@api_bp.delete("/fixed-assignments/<int:fixed_id>")
def fixed_delete(fixed_id: int):
    delete_fixed(fixed_id)
    return "", 204

# ---------- rotation ----------
@api_bp.post("/rotation/preview")
def rotation_preview():
    parsed = RotationRequest.model_validate(request.get_json(silent=True) or {})
    if parsed.preview_id:
        return business_error("BAD_REQUEST", {"field": "preview_id"}, status=400)
    try:
        result = _plan(parsed)
    except RotationInputError as ex:
        return business_error(ex.code, ex.message)
    pid = preview_store.save(result.mutations)
    return ok({
        "ok": True,
        "preview_id": pid,
        "proposed": [m.to_dict() for m in result.mutations],
        "skipped": result.skipped,
    })

@api_bp.post("/rotation/assign")
def rotation_assign():
    parsed = RotationRequest.model_validate(request.get_json(silent=True) or {})
    skipped = []
    if parsed.preview_id:
        mutations = preview_store.pop(parsed.preview_id)
        if mutations is None:
            return business_error("NOT_FOUND", {"preview_id": parsed.preview_id}, status=404)
    else:
        try:
            result = _plan(parsed)
        except RotationInputError as ex:
            return business_error(ex.code, ex.message)
        mutations, skipped = result.mutations, result.skipped

    try:
        applied = apply_mutations(mutations)
    except RotationApplyError as ex:
        return business_error("APPLY_FAILED", str(ex.cause), status=500, applied=ex.applied)
    log.info("rotation applied", extra={"event": "rotation_applied", "applied": applied})
    return ok({"ok": True, "applied": applied, "skipped": skipped})
