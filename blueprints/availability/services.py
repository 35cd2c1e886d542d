# blueprints/availability/services.py
from __future__ import annotations
from collections import defaultdict
from datetime import date
from typing import Dict, Iterable, List, Optional

from extensions import db
from models import AvailabilityRestriction, CaptainAvailability, DayBlock
from blueprints.program.entries import AvailabilityOverride, CaptainInfo, override_from_model

# 0=Lunes .. 6=Domingo
ALLOWED_WEEKDAYS: Dict[AvailabilityRestriction, frozenset[int]] = {
    AvailabilityRestriction.NONE: frozenset(range(7)),
    AvailabilityRestriction.WEEKENDS_ONLY: frozenset({5, 6}),
    AvailabilityRestriction.WEEKDAYS_ONLY: frozenset({0, 1, 2, 3, 4}),
    AvailabilityRestriction.SATURDAYS_ONLY: frozenset({5}),
    AvailabilityRestriction.SUNDAYS_ONLY: frozenset({6}),
}


def allowed_weekdays(restriction) -> frozenset[int]:
    return ALLOWED_WEEKDAYS[AvailabilityRestriction.parse(restriction)]


def restriction_allows(captain: CaptainInfo, d: date) -> bool:
    return d.weekday() in allowed_weekdays(captain.restriction)


class AvailabilityResolver:
    """Decides whether a captain may lead an outing on a date and half-day block.

    Two checks must both pass: the captain's weekday restriction and the
    fine-grained per-day overrides. A captain without any override rows is
    available every day in both blocks.
    """

    def __init__(self, overrides: Iterable[AvailabilityOverride] = ()):
        self._by_captain: Dict[int, Dict[int, DayBlock]] = defaultdict(dict)
        for o in overrides:
            self._by_captain[o.captain_id][o.day_of_week] = o.block

    def has_overrides(self, captain_id: int) -> bool:
        return bool(self._by_captain.get(captain_id))

    def override_allows(self, captain_id: int, weekday: int, block: DayBlock) -> bool:
        if not self.has_overrides(captain_id):
            # política por defecto: sin filas = siempre disponible
            return True
        day_block = self._by_captain[captain_id].get(weekday)
        if day_block is None:
            return False
        return day_block is DayBlock.BOTH or day_block is block

    def is_available(self, captain: CaptainInfo, d: date, block: DayBlock) -> bool:
        return restriction_allows(captain, d) and self.override_allows(captain.id, d.weekday(), block)


# ---------- store ----------
def list_overrides(captain_id: Optional[int] = None) -> List[CaptainAvailability]:
    q = CaptainAvailability.query
    if captain_id is not None:
        q = q.filter_by(captain_id=captain_id)
    return q.order_by(CaptainAvailability.captain_id, CaptainAvailability.day_of_week).all()


def load_resolver() -> AvailabilityResolver:
    return AvailabilityResolver(override_from_model(r) for r in list_overrides())


def upsert_batch(captain_id: int, overrides: Iterable[dict]) -> List[CaptainAvailability]:
    """Reemplaza todas las filas del capitán por las recibidas."""
    CaptainAvailability.query.filter_by(captain_id=captain_id).delete()
    rows = []
    seen = set()
    for o in overrides:
        day = int(o["day_of_week"])
        if day in seen:
            continue
        seen.add(day)
        block = o.get("block") or DayBlock.BOTH.value
        row = CaptainAvailability(captain_id=captain_id, day_of_week=day, block=DayBlock(block).value)
        db.session.add(row)
        rows.append(row)
    db.session.commit()
    return rows
