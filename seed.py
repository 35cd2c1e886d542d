"""
Idempotent seed script.
Uso:
  python seed.py --reset        # borra y recrea la base + datos de demo
  python seed.py                # completa solo lo que falta (idempotente)
  python seed.py --rotate 14    # además asigna capitanes para los próximos N días
"""
from datetime import date, time, timedelta
import argparse

from app import create_app
from extensions import db
from models import (
    MeetingPoint, Participant, PreachingGroup, SpecialDay, Territory, TimeSlot,
)
from blueprints.program.calendar import MeetingDays, daterange
from blueprints.program.settings import MEETING_DAYS_KEY, get_setting, save_meeting_days

def get_or_create(model, defaults=None, **by):
    """Creación idempotente por claves únicas."""
    inst = db.session.query(model).filter_by(**by).first()
    if inst:
        return inst, False
    data = dict(defaults or {})
    data.update(by)
    inst = model(**data)
    db.session.add(inst)
    db.session.flush()
    return inst, True

# ---- catálogos ----
def seed_directory():
    ids = {}

    for name, t, order_no in (
        ("Mañana", time(9, 30), 1),
        ("Tarde", time(16, 0), 2),
        ("Zoom mañana", time(10, 0), 3),
    ):
        s, _ = get_or_create(TimeSlot, name=name, defaults=dict(time=t, order_no=order_no))
        ids[f"slot:{name}"] = s.id

    for name, address in (
        ("Salón del Reino", "Av. Principal 123"),
        ("Plaza Central", "Calle 5 y Libertad"),
        ("Zoom", None),
    ):
        p, _ = get_or_create(MeetingPoint, name=name, defaults=dict(address=address))
        ids[f"point:{name}"] = p.id

    for number in ("1", "2", "3", "4", "5", "10", "12", "15A"):
        get_or_create(Territory, number=number)

    for n in range(1, 5):
        get_or_create(PreachingGroup, number=n, defaults=dict(name=f"Grupo {n}"))

    captains = (
        ("Juan", "Pérez", "sin_restriccion"),
        ("Luis", "García", "solo_fines_semana"),
        ("Carlos", "López", "sin_restriccion"),
        ("Andrés", "Martínez", "solo_entre_semana"),
        ("Pedro", "Sánchez", "sin_restriccion"),
    )
    for given, surname, restriction in captains:
        get_or_create(
            Participant, given_name=given, surname=surname,
            defaults=dict(is_captain=True, availability_restriction=restriction),
        )
    get_or_create(Participant, given_name="Marta", surname="Ruiz", defaults=dict(is_captain=False))

    year = date.today().year
    get_or_create(SpecialDay, name="Asamblea de circuito", defaults=dict(
        date=date(year, 11, 15), block_type="completo", color="#1a365d",
    ))

    if get_setting(MEETING_DAYS_KEY) is None:
        save_meeting_days(MeetingDays(
            weekday_meeting_day="miércoles", weekday_meeting_time="19:30",
            weekend_meeting_day="domingo", weekend_meeting_time="10:00",
        ))

    db.session.commit()
    return ids

def seed_rotation(days: int):
    # import local: el planificador necesita el contexto de la app
    from blueprints.rotation.services import apply_mutations, plan_rotation
    start = date.today()
    dates = list(daterange(start, start + timedelta(days=days - 1)))
    result = plan_rotation(dates)
    applied = apply_mutations(result.mutations)
    print(f"[seed] rotation: {applied} assigned, {len(result.skipped)} skipped")

# ---- main ----
def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("--reset", action="store_true", help="drop + create + full seed (demo)")
    parser.add_argument("--rotate", type=int, default=0, help="assign captains for the next N days")
    args = parser.parse_args()

    app = create_app()
    with app.app_context():
        if args.reset:
            db.drop_all()
        db.create_all()
        seed_directory()
        if args.rotate:
            seed_rotation(args.rotate)
        print("[seed] reset+seed complete" if args.reset else "[seed] soft seed complete")

if __name__ == "__main__":
    main()
