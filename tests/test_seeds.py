from db import SessionLocal
from models import ComponentType
from seeds.component_types_seeds import DEFAULTS, seed_component_types


def test_seed_component_types_is_idempotent(chain):
    with SessionLocal() as db:
        added = seed_component_types(db)
        again = seed_component_types(db)
        names = {t.name for t in db.query(ComponentType).all()}

    assert added == len(DEFAULTS) - 1  # Chain already present
    assert again == 0
    assert names == {row["name"] for row in DEFAULTS}


def test_seeded_distances_are_positive():
    assert all(row["default_replacement_distance"] > 0 for row in DEFAULTS)
