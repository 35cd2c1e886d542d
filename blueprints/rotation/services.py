# blueprints/rotation/services.py
from __future__ import annotations
import logging
import secrets
import time
from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, Iterable, List, Optional, Sequence, Set, Tuple

from werkzeug.exceptions import NotFound

from extensions import db
from models import FixedAssignment, Participant, ScheduleEntry, SpecialDay, TimeSlot, DayBlock
from blueprints.availability.services import AvailabilityResolver, load_resolver
from blueprints.program.calendar import MeetingDays, SpecialDayInfo, block_for_hour
from blueprints.program.entries import (
    CaptainInfo, Entry, FixedRule, GroupFanoutEntry, OutingEntry, SlotInfo,
    SpecialMessageEntry, captain_from_model, entry_from_model, fixed_rule_from_model,
    slot_from_model, special_day_from_model,
)
from blueprints.program import store as entry_store
from blueprints.program.settings import load_meeting_days

log = logging.getLogger(__name__)

SCHEDULER_AFTERNOON_FROM_HOUR = 12


# ===== errors =====
class RotationInputError(Exception):
    def __init__(self, code: str, message: str):
        super().__init__(message)
        self.code = code
        self.message = message


class RotationApplyError(Exception):
    def __init__(self, applied: int, cause: Exception):
        super().__init__(f"applied {applied} assignments before failure: {cause}")
        self.applied = applied
        self.cause = cause


# ===== DTO =====
@dataclass
class EntryMutation:
    action: str  # create | update
    date: date
    time_slot_id: int
    captain_id: int
    source: str  # fixed | rotation
    entry_id: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "action": self.action,
            "date": self.date.isoformat(),
            "time_slot_id": self.time_slot_id,
            "captain_id": self.captain_id,
            "source": self.source,
            "entry_id": self.entry_id,
        }


@dataclass
class RotationState:
    """Cursor de rotación compartido por todo el rango y ambos bloques."""
    index: int = 0


@dataclass
class RotationResult:
    mutations: List[EntryMutation]
    skipped: List[Dict[str, Any]]
    state: RotationState


@dataclass
class _DayContext:
    day: date
    used_today: Set[int] = field(default_factory=set)


def primary_slots(
    slots: Iterable[SlotInfo], afternoon_from_hour: int = SCHEDULER_AFTERNOON_FROM_HOUR
) -> Dict[DayBlock, SlotInfo]:
    """Earliest morning slot and earliest afternoon slot, compared as HH:MM strings."""
    ordered = sorted(slots, key=lambda s: s.time)
    out: Dict[DayBlock, SlotInfo] = {}
    for s in ordered:
        out.setdefault(block_for_hour(s.hour, afternoon_from_hour), s)
    return out


def pick_from_rotation(
    pool: Sequence[CaptainInfo],
    start: int,
    accept,
) -> Tuple[Optional[CaptainInfo], int]:
    """Devuelve (capitán, nuevo índice). Sin candidato el índice no cambia."""
    total = len(pool)
    for i in range(total):
        idx = (start + i) % total
        candidate = pool[idx]
        if accept(candidate):
            return candidate, (idx + 1) % total
    return None, start


class RotationScheduler:
    def __init__(
        self,
        *,
        time_slots: Iterable[SlotInfo],
        fixed_assignments: Iterable[FixedRule],
        captains: Sequence[CaptainInfo],
        resolver: Optional[AvailabilityResolver] = None,
        meeting_days: Optional[MeetingDays] = None,
        special_days: Iterable[SpecialDayInfo] = (),
        afternoon_from_hour: int = SCHEDULER_AFTERNOON_FROM_HOUR,
    ):
        self.afternoon_from_hour = afternoon_from_hour
        self.slots = primary_slots(time_slots, afternoon_from_hour)
        self.fixed = {(f.day_of_week, f.time_slot_id): f.captain_id for f in fixed_assignments}
        fixed_captains = set(self.fixed.values())
        # mantiene el orden de entrada (apellido, nombre)
        self.pool: List[CaptainInfo] = [c for c in captains if c.id not in fixed_captains]
        self.resolver = resolver or AvailabilityResolver()
        self.meeting_days = meeting_days or MeetingDays()
        self.special_days = list(special_days)

    # ---- blocking ----
    def is_blocked(self, d: date, block: DayBlock, slot: SlotInfo, day_entries: List[Entry]) -> bool:
        if d.weekday() in self.meeting_days.blocked_weekdays():
            return True
        if any(sd.blocks(d, block) for sd in self.special_days):
            return True
        for e in day_entries:
            if not isinstance(e, SpecialMessageEntry):
                continue
            if e.full_day_span:
                return True
            if e.time_slot_id == slot.id and block_for_hour(slot.hour, self.afternoon_from_hour) is block:
                return True
        return False

    # ---- main loop ----
    def assign(
        self,
        dates: Iterable[date],
        entries: Iterable[Entry],
        state: Optional[RotationState] = None,
    ) -> RotationResult:
        state = state or RotationState()
        by_day: Dict[date, List[Entry]] = {}
        for e in entries:
            by_day.setdefault(e.date, []).append(e)

        mutations: List[EntryMutation] = []
        skipped: List[Dict[str, Any]] = []

        for d in sorted(set(dates)):
            ctx = _DayContext(day=d)
            day_entries = by_day.get(d, [])
            for block in (DayBlock.MORNING, DayBlock.AFTERNOON):
                slot = self.slots.get(block)
                if slot is None:
                    continue
                if self.is_blocked(d, block, slot, day_entries):
                    continue
                mutation = self._assign_slot(ctx, block, slot, day_entries, state, skipped)
                if mutation is not None:
                    mutations.append(mutation)

        return RotationResult(mutations=mutations, skipped=skipped, state=state)

    def _assign_slot(
        self,
        ctx: _DayContext,
        block: DayBlock,
        slot: SlotInfo,
        day_entries: List[Entry],
        state: RotationState,
        skipped: List[Dict[str, Any]],
    ) -> Optional[EntryMutation]:
        existing = next(
            (e for e in day_entries
             if not isinstance(e, SpecialMessageEntry) and e.time_slot_id == slot.id),
            None,
        )
        if isinstance(existing, GroupFanoutEntry):
            # salida por grupos: los capitanes van por grupo, no se toca
            return None
        if isinstance(existing, OutingEntry) and existing.captain_id:
            ctx.used_today.add(existing.captain_id)
            return None

        d = ctx.day
        source = "fixed"
        captain_id = self.fixed.get((d.weekday(), slot.id))
        if captain_id is None:
            source = "rotation"
            chosen, state.index = pick_from_rotation(
                self.pool,
                state.index,
                lambda c: (
                    self.resolver.is_available(c, d, block)
                    and c.id not in ctx.used_today
                ),
            )
            if chosen is None:
                # nadie disponible: la celda queda vacía, no es un error
                skipped.append({"date": d.isoformat(), "time_slot_id": slot.id, "block": block.value})
                return None
            captain_id = chosen.id

        ctx.used_today.add(captain_id)
        if existing is not None:
            return EntryMutation("update", d, slot.id, captain_id, source, entry_id=existing.id)
        return EntryMutation("create", d, slot.id, captain_id, source)


# ===== loading & applying =====
def eligible_captains() -> List[Participant]:
    return (Participant.query
            .filter_by(active=True, is_captain=True)
            .order_by(Participant.surname.asc(), Participant.given_name.asc())
            .all())


def build_scheduler(*, afternoon_from_hour: int = SCHEDULER_AFTERNOON_FROM_HOUR) -> RotationScheduler:
    """Snapshot de todo lo que necesita el planificador, leído una sola vez."""
    captains = eligible_captains()
    if not captains:
        raise RotationInputError(
            "NO_ELIGIBLE_CAPTAINS",
            "No hay capitanes elegibles. Marca participantes como capitanes.",
        )
    slots = [slot_from_model(s) for s in TimeSlot.query.filter_by(active=True).all()]
    scheduler = RotationScheduler(
        time_slots=slots,
        fixed_assignments=[fixed_rule_from_model(f) for f in FixedAssignment.query.filter_by(active=True).all()],
        captains=[captain_from_model(c) for c in captains],
        resolver=load_resolver(),
        meeting_days=load_meeting_days(),
        special_days=[special_day_from_model(s) for s in SpecialDay.query.filter_by(active=True).all()],
        afternoon_from_hour=afternoon_from_hour,
    )
    if not scheduler.slots:
        raise RotationInputError("NO_TIME_SLOTS", "No hay horarios de salida configurados.")
    return scheduler


def plan_rotation(dates: Sequence[date], *, afternoon_from_hour: int = SCHEDULER_AFTERNOON_FROM_HOUR) -> RotationResult:
    scheduler = build_scheduler(afternoon_from_hour=afternoon_from_hour)
    entries = [entry_from_model(r) for r in entry_store.list_entries(min(dates), max(dates))]
    result = scheduler.assign(dates, entries)
    log.info("rotation planned", extra={
        "event": "rotation_planned",
        "count": len(result.mutations),
        "skipped": len(result.skipped),
    })
    return result


def _open_outing(row: Optional[ScheduleEntry]) -> bool:
    # sigue siendo una salida normal, activa y sin capitán
    return (row is not None and row.active and not row.is_special_message
            and not row.is_by_group and row.captain_id is None)


def _resolve_target(m: EntryMutation) -> Tuple[Optional[str], Optional[int]]:
    """Vuelve a mirar el store: la vista previa pudo quedar desactualizada."""
    if m.action == "update":
        row = db.session.get(ScheduleEntry, m.entry_id)
        return ("update", m.entry_id) if _open_outing(row) else (None, None)
    existing = entry_store.find_outing(m.date, m.time_slot_id)
    if existing is None:
        return "create", None
    return ("update", existing.id) if _open_outing(existing) else (None, None)


def apply_mutations(mutations: Iterable[EntryMutation]) -> int:
    """Aplica una por una; lo ya aplicado no se revierte si algo falla.

    Las mutaciones cuyo horario ya tiene capitán se descartan sin contar.
    """
    applied = 0
    for m in mutations:
        try:
            action, entry_id = _resolve_target(m)
            if action is None:
                log.info("rotation mutation dropped %s slot=%s", m.date, m.time_slot_id,
                         extra={"event": "rotation_stale"})
                continue
            if action == "update":
                entry_store.update_entry(entry_id, {"captain_id": m.captain_id})
            else:
                entry_store.create_entry({
                    "date": m.date,
                    "time_slot_id": m.time_slot_id,
                    "captain_id": m.captain_id,
                })
        except Exception as ex:
            db.session.rollback()
            log.error("rotation mutation failed", extra={"event": "rotation_failed", "applied": applied})
            raise RotationApplyError(applied, ex) from ex
        applied += 1
    return applied


class PreviewStore:
    """Vistas previas en memoria, con tope de cantidad y vencimiento."""

    def __init__(self, max_items: int = 64, ttl_seconds: float = 3600, clock=time.monotonic):
        self.max_items = max_items
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._data: "OrderedDict[str, Tuple[float, List[EntryMutation]]]" = OrderedDict()

    def _expire(self) -> None:
        now = self._clock()
        for pid in [p for p, (saved, _) in self._data.items() if now - saved > self.ttl_seconds]:
            del self._data[pid]
        while len(self._data) > self.max_items:
            self._data.popitem(last=False)

    def save(self, mutations: List[EntryMutation]) -> str:
        pid = secrets.token_urlsafe(8)
        self._data[pid] = (self._clock(), list(mutations))
        self._expire()
        return pid

    def pop(self, pid: str) -> Optional[List[EntryMutation]]:
        self._expire()
        item = self._data.pop(pid, None)
        return item[1] if item is not None else None

    def __len__(self) -> int:
        return len(self._data)

preview_store = PreviewStore()


# ===== fixed assignments =====
def list_fixed() -> List[FixedAssignment]:
    return (FixedAssignment.query.filter_by(active=True)
            .order_by(FixedAssignment.day_of_week, FixedAssignment.time_slot_id)
            .all())


def create_fixed(day_of_week: int, time_slot_id: int, captain_id: int) -> FixedAssignment:
    """Una sola regla por (día, horario): si existe, se reactiva con el capitán nuevo."""
    row = FixedAssignment.query.filter_by(day_of_week=day_of_week, time_slot_id=time_slot_id).first()
    if row is None:
        row = FixedAssignment(day_of_week=day_of_week, time_slot_id=time_slot_id)
        db.session.add(row)
    row.captain_id = captain_id
    row.active = True
    db.session.commit()
    return row


def delete_fixed(fixed_id: int) -> None:
    row = db.session.get(FixedAssignment, fixed_id)
    if row is None or not row.active:
        raise NotFound(f"fixed assignment {fixed_id} not found")
    row.active = False
    db.session.commit()
