# seeds/component_types_seeds.py
from models.component import ComponentType
from sqlalchemy.orm import Session

# default_replacement_distance in km
DEFAULTS = [
    dict(name="Chain", default_replacement_distance=3000, description="Drive chain"),
    dict(name="Cassette", default_replacement_distance=9000, description="Rear sprocket cluster"),
    dict(name="Chainrings", default_replacement_distance=15000, description="Front chainrings"),
    dict(name="Brake Pads", default_replacement_distance=2000, description="Rim or disc brake pads"),
    dict(name="Brake Rotors", default_replacement_distance=10000, description="Disc brake rotors"),
    dict(name="Front Tire", default_replacement_distance=5000, description="Front tyre"),
    dict(name="Rear Tire", default_replacement_distance=3500, description="Rear tyre"),
    dict(name="Bar Tape", default_replacement_distance=8000, description="Handlebar tape"),
    dict(name="Cables", default_replacement_distance=10000, description="Shift and brake cables"),
    dict(name="Bottom Bracket", default_replacement_distance=20000, description="Crank bearings"),
]


def seed_component_types(session: Session) -> int:
    existing = {t.name for t in session.query(ComponentType).all()}
    added = 0
    for row in DEFAULTS:
        if row["name"] in existing:
            continue
        session.add(ComponentType(**row))
        added += 1
    session.commit()
    return added
