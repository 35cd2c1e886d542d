# blueprints/availability/routes.py
from __future__ import annotations

from flask import Blueprint, abort, request

from blueprints.core.responses import business_error, ok
from extensions import db
from models import Participant
from .schemas import AvailabilityIn
from .services import list_overrides, upsert_batch

api_bp = Blueprint("availability_api", __name__)


def _captain_or_404(captain_id: int) -> Participant:
    p = db.session.get(Participant, captain_id) or abort(404)
    return p


def _rows_out(rows) -> list:
    return [{"day_of_week": r.day_of_week, "block": r.block} for r in rows]


@api_bp.get("/captains/<int:captain_id>/availability")
def availability_get(captain_id: int):
    p = _captain_or_404(captain_id)
    rows = list_overrides(captain_id)
    return ok({
        "ok": True,
        "captain_id": p.id,
        "restriction": p.availability_restriction,
        # sin filas: disponible todos los días
        "always_available": not rows,
        "overrides": _rows_out(rows),
    })

@api_bp.put("/captains/<int:captain_id>/availability")
def availability_put(captain_id: int):
    p = _captain_or_404(captain_id)
    if not p.is_captain:
        return business_error("NOT_A_CAPTAIN", {"captain_id": captain_id})
    parsed = AvailabilityIn.model_validate(request.get_json(silent=True) or {})
    rows = upsert_batch(captain_id, [o.model_dump() for o in parsed.overrides])
    return ok({"ok": True, "captain_id": captain_id, "overrides": _rows_out(rows)})
