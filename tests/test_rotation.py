from __future__ import annotations
from collections import Counter
from datetime import date, timedelta

from models import AvailabilityRestriction, DayBlock, SpecialDayBlock
from blueprints.availability.services import AvailabilityResolver
from blueprints.program.calendar import MeetingDays, SpecialDayInfo
from blueprints.program.entries import (
    AvailabilityOverride, CaptainInfo, FixedRule, GroupAssignment, GroupFanoutEntry,
    OutingEntry, SlotInfo, SpecialMessageEntry,
)
from blueprints.rotation.services import (
    PreviewStore, RotationScheduler, RotationState, pick_from_rotation, primary_slots,
)

MON = date(2026, 10, 19)
TUE = MON + timedelta(days=1)
WED = MON + timedelta(days=2)

MORNING = SlotInfo(1, "Mañana", "09:30")
AFTERNOON = SlotInfo(2, "Tarde", "16:00")

def _captains(*surnames, restriction=AvailabilityRestriction.NONE):
    return [CaptainInfo(id=i + 1, given_name="N", surname=s, restriction=restriction)
            for i, s in enumerate(surnames)]

def _scheduler(captains, **kw):
    kw.setdefault("time_slots", [MORNING, AFTERNOON])
    kw.setdefault("fixed_assignments", [])
    return RotationScheduler(captains=captains, **kw)

def _apply(entries, mutations):
    """Aplica las mutaciones sobre entradas en memoria, como haría el store."""
    out = [e for e in entries]
    next_id = 1000
    for m in mutations:
        if m.action == "update":
            out = [OutingEntry(e.id, e.date, e.time_slot_id, e.meeting_point_id, e.territory_ids, m.captain_id)
                   if e.id == m.entry_id else e for e in out]
        else:
            out.append(OutingEntry(next_id, m.date, m.time_slot_id, captain_id=m.captain_id))
            next_id += 1
    return out


def test_primary_slots_earliest_per_block():
    slots = [SlotInfo(1, "a", "09:30"), SlotInfo(2, "b", "08:00"), SlotInfo(3, "c", "16:00"), SlotInfo(4, "d", "13:00")]
    primary = primary_slots(slots, afternoon_from_hour=12)
    assert primary[DayBlock.MORNING].id == 2
    assert primary[DayBlock.AFTERNOON].id == 4

def test_pick_from_rotation_keeps_index_when_nobody_fits():
    pool = _captains("A", "B", "C")
    chosen, idx = pick_from_rotation(pool, 1, lambda c: False)
    assert chosen is None and idx == 1
    chosen, idx = pick_from_rotation(pool, 2, lambda c: c.surname == "A")
    assert chosen.surname == "A" and idx == 1

def test_round_robin_fairness():
    captains = _captains("A", "B", "C")
    result = _scheduler(captains).assign([MON, TUE, WED], [])
    assert len(result.mutations) == 6
    assert all(m.action == "create" and m.source == "rotation" for m in result.mutations)
    counts = Counter(m.captain_id for m in result.mutations)
    assert counts == {1: 2, 2: 2, 3: 2}
    # orden: morning antes que afternoon, el cursor sigue entre días
    assert [m.captain_id for m in result.mutations] == [1, 2, 3, 1, 2, 3]

def test_fairness_over_several_cycles():
    captains = _captains("A", "B", "C", "D")
    dates = [MON + timedelta(days=i) for i in range(6)]
    result = _scheduler(captains).assign(dates, [])
    assert Counter(m.captain_id for m in result.mutations) == {1: 3, 2: 3, 3: 3, 4: 3}

def test_no_same_day_repeat():
    captains = _captains("A", "B")
    prefilled = [OutingEntry(10, MON, MORNING.id, captain_id=1)]
    result = _scheduler(captains).assign([MON], prefilled)
    assert len(result.mutations) == 1
    assert result.mutations[0].time_slot_id == AFTERNOON.id
    assert result.mutations[0].captain_id == 2

def test_fixed_assignment_does_not_move_cursor():
    captains = _captains("A", "B", "C", "F")
    fixed = [FixedRule(day_of_week=MON.weekday(), time_slot_id=MORNING.id, captain_id=4)]
    with_fixed = _scheduler(captains, fixed_assignments=fixed).assign([MON], [])
    assert [(m.source, m.captain_id) for m in with_fixed.mutations] == [("fixed", 4), ("rotation", 1)]
    assert with_fixed.state.index == 1

    # mismo resultado que con la mañana ya ocupada por F
    prefilled = [OutingEntry(10, MON, MORNING.id, captain_id=4)]
    with_prefill = _scheduler(captains, fixed_assignments=fixed).assign([MON], prefilled)
    assert [m.captain_id for m in with_prefill.mutations] == [1]
    assert with_prefill.state.index == 1

def test_fixed_captain_is_left_out_of_rotation():
    captains = _captains("A", "F")
    fixed = [FixedRule(day_of_week=MON.weekday(), time_slot_id=MORNING.id, captain_id=2)]
    result = _scheduler(captains, fixed_assignments=fixed).assign([TUE, WED], [])
    assert {m.captain_id for m in result.mutations} == {1}
    # A ya salió por la mañana: la tarde queda vacía
    assert len(result.skipped) == 2

def test_second_run_is_idempotent():
    captains = _captains("A", "B", "C")
    entries = [OutingEntry(1, TUE, AFTERNOON.id, meeting_point_id=7)]
    first = _scheduler(captains).assign([MON, TUE, WED], entries)
    assert any(m.action == "update" and m.entry_id == 1 for m in first.mutations)
    second = _scheduler(captains).assign([MON, TUE, WED], _apply(entries, first.mutations))
    assert second.mutations == []

def test_meeting_day_produces_no_mutations():
    captains = _captains("A", "B")
    md = MeetingDays(weekday_meeting_day="martes")
    result = _scheduler(captains, meeting_days=md).assign([MON, TUE, WED], [])
    assert all(m.date != TUE for m in result.mutations)
    assert len(result.mutations) == 4

def test_meeting_day_name_is_accent_insensitive():
    md = MeetingDays(weekday_meeting_day="Miercoles", weekend_meeting_day="DOMINGO")
    assert md.blocked_weekdays() == {2, 6}

def test_special_days_block_halves():
    captains = _captains("A", "B")
    special = [
        SpecialDayInfo(1, "Asamblea", MON, SpecialDayBlock.FULL),
        SpecialDayInfo(2, "Visita", TUE, SpecialDayBlock.MORNING),
    ]
    result = _scheduler(captains, special_days=special).assign([MON, TUE], [])
    assert [(m.date, m.time_slot_id) for m in result.mutations] == [(TUE, AFTERNOON.id)]

def test_special_message_entries_block():
    captains = _captains("A", "B")
    entries = [
        SpecialMessageEntry(1, MON, None, text="Asamblea", full_day_span=True),
        SpecialMessageEntry(2, TUE, AFTERNOON.id, text="Limpieza"),
    ]
    result = _scheduler(captains).assign([MON, TUE], entries)
    assert [(m.date, m.time_slot_id) for m in result.mutations] == [(TUE, MORNING.id)]

def test_group_fanout_slot_is_left_alone():
    captains = _captains("A", "B")
    entries = [GroupFanoutEntry(5, MON, MORNING.id, assignments=(GroupAssignment(group_id=1),))]
    result = _scheduler(captains).assign([MON], entries)
    assert [m.time_slot_id for m in result.mutations] == [AFTERNOON.id]
    assert result.mutations[0].captain_id == 1

def test_exhausted_rotation_is_skipped():
    captains = _captains("A", "B", restriction=AvailabilityRestriction.WEEKENDS_ONLY)
    result = _scheduler(captains).assign([MON], [])
    assert result.mutations == []
    assert [s["block"] for s in result.skipped] == ["manana", "tarde"]

def test_overrides_are_respected():
    captains = _captains("A", "B")
    resolver = AvailabilityResolver([AvailabilityOverride(captain_id=1, day_of_week=MON.weekday(), block=DayBlock.AFTERNOON)])
    result = _scheduler(captains, resolver=resolver).assign([MON], [])
    assert [(m.time_slot_id, m.captain_id) for m in result.mutations] == [(MORNING.id, 2), (AFTERNOON.id, 1)]

def test_state_can_be_threaded_between_runs():
    captains = _captains("A", "B", "C")
    state = RotationState(index=2)
    result = _scheduler(captains).assign([MON], [], state=state)
    assert [m.captain_id for m in result.mutations] == [3, 1]
    assert result.state is state and state.index == 1

def test_preview_store_expires_and_caps():
    now = [0.0]
    store = PreviewStore(max_items=2, ttl_seconds=60, clock=lambda: now[0])
    old = store.save([])
    now[0] = 30
    kept = store.save([])
    now[0] = 61
    assert store.pop(old) is None
    assert store.pop(kept) == []

    first, second, third = store.save([]), store.save([]), store.save([])
    assert len(store) == 2
    assert store.pop(first) is None
    assert store.pop(second) == [] and store.pop(third) == []
