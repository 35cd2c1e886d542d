from datetime import datetime, time as time_type, date as date_type
from enum import Enum as PyEnum

from sqlalchemy import (
    ForeignKey, UniqueConstraint, Index, Boolean, Date, DateTime, Time,
    Integer, Text, JSON
)
from sqlalchemy.orm import relationship, Mapped, mapped_column

from extensions import db

# ---------- Enums ----------
class AvailabilityRestriction(PyEnum):
    NONE = "sin_restriccion"
    WEEKENDS_ONLY = "solo_fines_semana"
    WEEKDAYS_ONLY = "solo_entre_semana"
    SATURDAYS_ONLY = "solo_sabados"
    SUNDAYS_ONLY = "solo_domingos"

    @classmethod
    def parse(cls, raw) -> "AvailabilityRestriction":
        # valores vacíos o desconocidos equivalen a "sin restricción"
        if isinstance(raw, cls):
            return raw
        try:
            return cls(raw)
        except ValueError:
            return cls.NONE


class DayBlock(PyEnum):
    MORNING = "manana"
    AFTERNOON = "tarde"
    BOTH = "ambos"


class SpecialDayBlock(PyEnum):
    FULL = "completo"
    MORNING = "manana"
    AFTERNOON = "tarde"


# ---------- Directory ----------
class Participant(db.Model):
    id: Mapped[int] = mapped_column(primary_key=True)
    given_name: Mapped[str] = mapped_column(db.String(120), nullable=False)
    surname: Mapped[str] = mapped_column(db.String(120), nullable=False, index=True)
    is_captain: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    # texto y no Enum: valores desconocidos se tratan como sin_restriccion
    availability_restriction: Mapped[str] = mapped_column(
        db.String(32), default=AvailabilityRestriction.NONE.value, nullable=False
    )
    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)

    availability = relationship("CaptainAvailability", back_populates="captain", cascade="all, delete-orphan")

    @property
    def display_name(self) -> str:
        return f"{self.given_name} {self.surname}".strip()

    def __repr__(self):
        return f"<Participant {self.surname}, {self.given_name}>"


class Territory(db.Model):
    id: Mapped[int] = mapped_column(primary_key=True)
    number: Mapped[str] = mapped_column(db.String(20), nullable=False, unique=True, index=True)
    image_url: Mapped[str | None] = mapped_column(db.String(500))
    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    def __repr__(self):
        return f"<Territory {self.number}>"


class MeetingPoint(db.Model):
    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(db.String(200), nullable=False)
    address: Mapped[str | None] = mapped_column(db.String(255))
    maps_url: Mapped[str | None] = mapped_column(db.String(500))
    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    @property
    def is_zoom(self) -> bool:
        return "zoom" in (self.name or "").lower()


class TimeSlot(db.Model):
    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(db.String(100), nullable=False)
    time: Mapped[time_type] = mapped_column(Time, nullable=False)
    order_no: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    __table_args__ = (
        Index("ix_timeslot_order_no", "order_no"),
    )


class PreachingGroup(db.Model):
    id: Mapped[int] = mapped_column(primary_key=True)
    number: Mapped[int] = mapped_column(Integer, nullable=False, unique=True)
    name: Mapped[str | None] = mapped_column(db.String(120))


# ---------- Program ----------
class ScheduleEntry(db.Model):
    id: Mapped[int] = mapped_column(primary_key=True)
    date: Mapped[date_type] = mapped_column(Date, nullable=False, index=True)
    time_slot_id: Mapped[int | None] = mapped_column(ForeignKey("time_slot.id", ondelete="SET NULL"))
    meeting_point_id: Mapped[int | None] = mapped_column(ForeignKey("meeting_point.id", ondelete="SET NULL"))
    # legacy: un solo territorio; las entradas nuevas usan territory_ids
    territory_id: Mapped[int | None] = mapped_column(ForeignKey("territory.id", ondelete="SET NULL"))
    territory_ids: Mapped[list | None] = mapped_column(JSON)
    captain_id: Mapped[int | None] = mapped_column(ForeignKey("participant.id", ondelete="SET NULL"), index=True)

    is_special_message: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    special_message_text: Mapped[str | None] = mapped_column(Text)
    full_day_span: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    is_by_group: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    group_assignments: Mapped[list | None] = mapped_column(JSON)

    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    time_slot = relationship("TimeSlot")
    meeting_point = relationship("MeetingPoint")
    captain = relationship("Participant")

    __table_args__ = (
        Index("ix_entry_date_slot", "date", "time_slot_id"),
    )


class FixedAssignment(db.Model):
    id: Mapped[int] = mapped_column(primary_key=True)
    day_of_week: Mapped[int] = mapped_column(Integer, nullable=False)  # 0=Mon .. 6=Sun
    time_slot_id: Mapped[int] = mapped_column(ForeignKey("time_slot.id", ondelete="CASCADE"), nullable=False)
    captain_id: Mapped[int] = mapped_column(ForeignKey("participant.id", ondelete="CASCADE"), nullable=False)
    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)

    captain = relationship("Participant")
    time_slot = relationship("TimeSlot")

    __table_args__ = (
        UniqueConstraint("day_of_week", "time_slot_id", name="uq_fixed_day_slot"),
    )


class CaptainAvailability(db.Model):
    id: Mapped[int] = mapped_column(primary_key=True)
    captain_id: Mapped[int] = mapped_column(ForeignKey("participant.id", ondelete="CASCADE"), nullable=False, index=True)
    day_of_week: Mapped[int] = mapped_column(Integer, nullable=False)  # 0=Mon .. 6=Sun
    block: Mapped[str] = mapped_column(db.String(16), nullable=False, default=DayBlock.BOTH.value)

    captain = relationship("Participant", back_populates="availability")

    __table_args__ = (
        UniqueConstraint("captain_id", "day_of_week", name="uq_availability_captain_day"),
    )


class SpecialDay(db.Model):
    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(db.String(255), nullable=False)
    date: Mapped[date_type | None] = mapped_column(Date, index=True)
    block_type: Mapped[str] = mapped_column(db.String(16), nullable=False, default=SpecialDayBlock.FULL.value)
    color: Mapped[str] = mapped_column(db.String(16), nullable=False, default="#1a365d")
    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)


class ExtraMessage(db.Model):
    id: Mapped[int] = mapped_column(primary_key=True)
    date: Mapped[date_type] = mapped_column(Date, nullable=False, index=True)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    color: Mapped[str] = mapped_column(db.String(16), nullable=False, default="#2c5282")
    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)


class SystemSetting(db.Model):
    id: Mapped[int] = mapped_column(primary_key=True)
    key: Mapped[str] = mapped_column(db.String(100), nullable=False, unique=True)
    value: Mapped[dict | None] = mapped_column(JSON)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
