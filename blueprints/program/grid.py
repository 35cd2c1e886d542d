# blueprints/program/grid.py
"""Printable program grid.

Turns the sparse schedule entries of a date range into ordered rows with the
table geometry already resolved: the date cell's rowspan, the half-day cells
and which rows are covered by a span from a row above (``None`` cells).
The same rows feed the on-screen editor and the print view, so the output is
a pure function of the input.
"""
from __future__ import annotations
from dataclasses import dataclass, field, asdict
from datetime import date
from typing import Any, Dict, Iterable, List, Optional, Sequence

from models import DayBlock, SpecialDayBlock
from .calendar import (
    WEEKDAYS_ES, MeetingDays, SpecialDayInfo, block_for_hour, special_days_on,
)
from .entries import (
    Catalog, Entry, GroupFanoutEntry, OutingEntry, SlotInfo, SpecialMessageEntry,
)

GRID_AFTERNOON_FROM_HOUR = 14
GROUPS_PER_LINE = 6
GROUP_SUPERINTENDENT_LABEL = "Superintendente de cada grupo"


# ===== DTO =====
@dataclass(frozen=True)
class ExtraMessageInfo:
    date: date
    message: str
    color: str = "#2c5282"


@dataclass
class GroupLine:
    groups: str
    territory: str = ""
    territory_image_url: str = ""
    meeting_point: str = ""
    captain: str = ""


@dataclass
class HalfCell:
    kind: str  # outing | groups_individual | groups_departure | message | empty
    entry_id: Optional[int] = None
    time: str = ""
    meeting_point: str = ""
    address: str = ""
    maps_url: str = ""
    is_zoom: bool = False
    territory: str = ""
    territory_image_url: str = ""
    captain: str = ""
    message: str = ""
    groups: List[GroupLine] = field(default_factory=list)
    group_text_lines: List[str] = field(default_factory=list)
    rowspan: int = 1


@dataclass
class PrintRow:
    date: date
    row_index: int
    date_rowspan: int
    date_label: Optional[str] = None
    banner: Optional[ExtraMessageInfo] = None
    full_day_message: Optional[str] = None
    # None: la celda está cubierta por el rowspan de una fila anterior
    morning: Optional[HalfCell] = None
    afternoon: Optional[HalfCell] = None

    def to_dict(self) -> Dict[str, Any]:
        out = asdict(self)
        out["date"] = self.date.isoformat()
        if self.banner is not None:
            out["banner"]["date"] = self.banner.date.isoformat()
        return out


# ===== helpers =====
def classify_slot(slot: SlotInfo, afternoon_from_hour: int = GRID_AFTERNOON_FROM_HOUR) -> DayBlock:
    name = (slot.name or "").lower()
    if "mañana" in name or "manana" in name:
        return DayBlock.MORNING
    if "tarde" in name:
        return DayBlock.AFTERNOON
    return block_for_hour(slot.hour, afternoon_from_hour)


def date_label(d: date) -> str:
    return f"{WEEKDAYS_ES[d.weekday()].upper()} {d.day}"


def territory_sort_key(number: str):
    # numéricos primero en orden numérico, luego alfanuméricos
    head = number.strip()
    digits = ""
    for ch in head:
        if not ch.isdigit():
            break
        digits += ch
    if digits:
        return (0, int(digits), head)
    return (1, 0, head)


def territory_label(territory_ids: Iterable[int], catalog: Catalog) -> tuple[str, str]:
    found = [catalog.territories[t] for t in territory_ids if t in catalog.territories]
    numbers = sorted((t.number for t in found), key=territory_sort_key)
    image = (found[0].image_url or "") if len(found) == 1 else ""
    return ", ".join(numbers), image


def _chunks(items: Sequence, size: int) -> List[Sequence]:
    size = max(1, size)
    return [items[i:i + size] for i in range(0, len(items), size)]


class GridMaterializer:
    def __init__(
        self,
        time_slots: Iterable[SlotInfo],
        *,
        catalog: Optional[Catalog] = None,
        special_days: Iterable[SpecialDayInfo] = (),
        meeting_days: Optional[MeetingDays] = None,
        extra_messages: Iterable[ExtraMessageInfo] = (),
        afternoon_from_hour: int = GRID_AFTERNOON_FROM_HOUR,
        groups_per_line: int = GROUPS_PER_LINE,
        default_weekday_time: str = "19:30",
        default_weekend_time: str = "18:00",
    ):
        self.slots: Dict[int, SlotInfo] = {s.id: s for s in time_slots}
        self.catalog = catalog or Catalog()
        self.special_days = list(special_days)
        self.meeting_days = meeting_days or MeetingDays()
        self.afternoon_from_hour = afternoon_from_hour
        self.groups_per_line = groups_per_line
        self.default_weekday_time = default_weekday_time
        self.default_weekend_time = default_weekend_time
        self.banners: Dict[date, ExtraMessageInfo] = {}
        for m in extra_messages:
            self.banners.setdefault(m.date, m)
        self.block_of: Dict[int, DayBlock] = {
            s.id: classify_slot(s, afternoon_from_hour) for s in self.slots.values()
        }

    # ---- public ----
    def materialize(self, dates: Iterable[date], entries: Iterable[Entry]) -> List[PrintRow]:
        by_day: Dict[date, List[Entry]] = {}
        for e in entries:
            by_day.setdefault(e.date, []).append(e)
        rows: List[PrintRow] = []
        for d in sorted(set(dates)):
            rows.extend(self.rows_for_day(d, by_day.get(d, [])))
        return rows

    def rows_for_day(self, d: date, day_entries: List[Entry]) -> List[PrintRow]:
        label = date_label(d)
        banner = self.banners.get(d)

        full = self._full_day_message(d, day_entries)
        if full is not None:
            return [PrintRow(date=d, row_index=0, date_rowspan=1, date_label=label,
                             banner=banner, full_day_message=full)]

        morning_msg = self._half_message(d, DayBlock.MORNING, day_entries)
        afternoon_msg = self._half_message(d, DayBlock.AFTERNOON, day_entries)

        if morning_msg is not None:
            morning_cells = [HalfCell(kind="message", message=morning_msg)]
        else:
            morning_cells = self._cells_for(self._outings(day_entries, DayBlock.MORNING))
        if afternoon_msg is not None:
            afternoon_cells = [HalfCell(kind="message", message=afternoon_msg)]
        else:
            afternoon_cells = self._cells_for(self._outings(day_entries, DayBlock.AFTERNOON))

        total = max(len(morning_cells), len(afternoon_cells), 1)
        morning_col = self._morning_column(morning_cells, total, is_message=morning_msg is not None)
        afternoon_col = self._afternoon_column(afternoon_cells, total, is_message=afternoon_msg is not None)

        rows = []
        for i in range(total):
            rows.append(PrintRow(
                date=d,
                row_index=i,
                date_rowspan=total,
                date_label=label if i == 0 else None,
                banner=banner if i == 0 else None,
                morning=morning_col[i],
                afternoon=afternoon_col[i],
            ))
        return rows

    # ---- messages ----
    def _full_day_message(self, d: date, day_entries: List[Entry]) -> Optional[str]:
        for e in day_entries:
            if isinstance(e, SpecialMessageEntry) and e.full_day_span:
                return e.text
        for sd in special_days_on(self.special_days, d):
            if sd.block_type is SpecialDayBlock.FULL:
                return sd.name
        return None

    def _half_message(self, d: date, block: DayBlock, day_entries: List[Entry]) -> Optional[str]:
        for e in day_entries:
            if (isinstance(e, SpecialMessageEntry) and not e.full_day_span
                    and self.block_of.get(e.time_slot_id) is block):
                return e.text
        for sd in special_days_on(self.special_days, d):
            if sd.block_type.value == block.value:
                return sd.name
        meeting = self.meeting_days.meeting_message(
            d, self.afternoon_from_hour, self.default_weekday_time, self.default_weekend_time,
        )
        if meeting is not None and meeting[0] is block:
            return meeting[1]
        return None

    # ---- entries -> cells ----
    def _outings(self, day_entries: List[Entry], block: DayBlock) -> List[Entry]:
        picked = [
            e for e in day_entries
            if not isinstance(e, SpecialMessageEntry) and self.block_of.get(e.time_slot_id) is block
        ]
        return sorted(picked, key=lambda e: (self.slots[e.time_slot_id].time, e.id or 0))

    def _cells_for(self, entries: List[Entry]) -> List[HalfCell]:
        cells: List[HalfCell] = []
        for e in entries:
            if isinstance(e, GroupFanoutEntry):
                if e.is_individual:
                    cells.append(self._individual_groups_cell(e))
                else:
                    cells.extend(self._departure_cells(e))
            else:
                cells.append(self._outing_cell(e))
        return cells

    def _slot_time(self, slot_id: Optional[int]) -> str:
        s = self.slots.get(slot_id)
        return s.time if s else ""

    def _outing_cell(self, e: OutingEntry) -> HalfCell:
        point = self.catalog.meeting_points.get(e.meeting_point_id)
        territory, image = territory_label(e.territory_ids, self.catalog)
        return HalfCell(
            kind="outing",
            entry_id=e.id,
            time=self._slot_time(e.time_slot_id),
            meeting_point=point.name if point else "",
            address=(point.address or "") if point else "",
            maps_url=(point.maps_url or "") if point else "",
            is_zoom=point.is_zoom if point else False,
            territory=territory,
            territory_image_url=image,
            captain=self.catalog.captain_name(e.captain_id),
        )

    def _individual_groups_cell(self, e: GroupFanoutEntry) -> HalfCell:
        lines = []
        for a in e.assignments:
            number = self.catalog.groups.get(a.group_id)
            territory, image = territory_label([a.territory_id] if a.territory_id else [], self.catalog)
            lines.append((number if number is not None else 0, GroupLine(
                groups=f"G{number if number is not None else '?'}",
                territory=territory,
                territory_image_url=image,
            )))
        lines.sort(key=lambda t: t[0])
        groups = [g for _, g in lines]
        text_lines = [
            " / ".join(f"{g.groups}: {g.territory}" for g in chunk)
            for chunk in _chunks(groups, self.groups_per_line)
        ]
        return HalfCell(
            kind="groups_individual",
            entry_id=e.id,
            time=self._slot_time(e.time_slot_id),
            captain=GROUP_SUPERINTENDENT_LABEL,
            groups=groups,
            group_text_lines=text_lines,
        )

    def _departure_cells(self, e: GroupFanoutEntry) -> List[HalfCell]:
        by_salida: Dict[int, list] = {}
        for a in e.assignments:
            by_salida.setdefault(a.salida_index or 0, []).append(a)

        cells = []
        for idx in sorted(by_salida):
            assignments = by_salida[idx]
            numbers = sorted({
                self.catalog.groups[a.group_id] for a in assignments if a.group_id in self.catalog.groups
            })
            territory_ids = [a.territory_id for a in assignments if a.territory_id]
            territory, image = territory_label(dict.fromkeys(territory_ids), self.catalog)
            captain_id = next((a.captain_id for a in assignments if a.captain_id), None)
            point_id = next((a.meeting_point_id for a in assignments if a.meeting_point_id), e.meeting_point_id)
            point = self.catalog.meeting_points.get(point_id)
            line = GroupLine(
                groups="G" + "-".join(str(n) for n in numbers) if numbers else "",
                territory=territory,
                territory_image_url=image,
                meeting_point=point.name if point else "",
                captain=self.catalog.captain_name(captain_id),
            )
            cells.append(HalfCell(
                kind="groups_departure",
                entry_id=e.id,
                time=self._slot_time(e.time_slot_id),
                meeting_point=line.meeting_point,
                territory=territory,
                territory_image_url=image,
                captain=line.captain,
                groups=[line],
                group_text_lines=[f"{line.groups} - {line.territory} : {line.meeting_point} - {line.captain}"],
            ))
        return cells

    # ---- geometry ----
    @staticmethod
    def _message_column(cell: HalfCell, total: int) -> List[Optional[HalfCell]]:
        cell.rowspan = total
        return [cell] + [None] * (total - 1)

    def _morning_column(self, cells: List[HalfCell], total: int, is_message: bool) -> List[Optional[HalfCell]]:
        if is_message:
            return self._message_column(cells[0], total)
        return [cells[i] if i < len(cells) else HalfCell(kind="empty") for i in range(total)]

    def _afternoon_column(self, cells: List[HalfCell], total: int, is_message: bool) -> List[Optional[HalfCell]]:
        """Each cell spans floor(total/count) rows, except the last, which takes the remainder (5 rows, 2 cells: 2 + 3)."""
        if is_message:
            return self._message_column(cells[0], total)
        count = len(cells)
        if count == 0 or count >= total:
            return [cells[i] if i < count else HalfCell(kind="empty") for i in range(total)]

        # menos salidas de tarde que de mañana: cada una ocupa varias filas
        span = total // count
        column: List[Optional[HalfCell]] = [None] * total
        for i, cell in enumerate(cells):
            anchor = i * span
            # la última absorbe el resto para no dejar huecos en la tabla
            cell.rowspan = span if i < count - 1 else total - anchor
            column[anchor] = cell
        return column


def materialize_rows(
    entries: Iterable[Entry],
    time_slots: Iterable[SlotInfo],
    dates: Iterable[date],
    special_days: Iterable[SpecialDayInfo] = (),
    meeting_days: Optional[MeetingDays] = None,
    extra_messages: Iterable[ExtraMessageInfo] = (),
    catalog: Optional[Catalog] = None,
    **options,
) -> List[PrintRow]:
    grid = GridMaterializer(
        time_slots,
        catalog=catalog,
        special_days=special_days,
        meeting_days=meeting_days,
        extra_messages=extra_messages,
        **options,
    )
    return grid.materialize(dates, entries)
