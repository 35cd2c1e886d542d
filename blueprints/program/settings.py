# blueprints/program/settings.py
from __future__ import annotations

from extensions import db
from models import SystemSetting
from .calendar import MeetingDays

MEETING_DAYS_KEY = "dias_reunion"


def get_setting(key: str) -> dict | None:
    row = SystemSetting.query.filter_by(key=key).first()
    return row.value if row else None


def put_setting(key: str, value: dict) -> SystemSetting:
    row = SystemSetting.query.filter_by(key=key).first()
    if row is None:
        row = SystemSetting(key=key)
        db.session.add(row)
    row.value = value
    db.session.commit()
    return row


def load_meeting_days() -> MeetingDays:
    return MeetingDays.from_setting(get_setting(MEETING_DAYS_KEY))


def save_meeting_days(md: MeetingDays) -> MeetingDays:
    put_setting(MEETING_DAYS_KEY, md.to_setting())
    return md
