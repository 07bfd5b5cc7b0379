"""Pytest configuration and fixtures."""

import os
import tempfile

# Point the app at a throwaway SQLite file before anything imports db.py
_DB_DIR = tempfile.mkdtemp(prefix="bikewear-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_DB_DIR, 'test.db')}"
os.environ["JWT_SECRET_KEY"] = "test-secret"
os.environ["STRAVA_CLIENT_ID"] = "12345"
os.environ["STRAVA_CLIENT_SECRET"] = "strava-secret"

import pytest

from db import engine, SessionLocal
from models import Base, User, ComponentType, BikeComponent, Bike
from services.bike_service import create_bike


@pytest.fixture(autouse=True)
def db_schema():
    """Fresh tables for every test."""
    Base.metadata.create_all(engine)
    yield
    Base.metadata.drop_all(engine)


def _create_user(email: str) -> User:
    with SessionLocal() as db:
        user = User(email=email, password_hash="not-a-real-hash")
        db.add(user)
        db.commit()
        db.refresh(user)
        return user


@pytest.fixture
def user() -> User:
    return _create_user("rider@example.com")


@pytest.fixture
def other_user() -> User:
    return _create_user("someone.else@example.com")


@pytest.fixture
def make_bike(user):
    def _make(name: str = "Road bike", total_distance: float = 0, owner: User = None) -> Bike:
        return create_bike((owner or user).id, name, total_distance=total_distance)
    return _make


def _create_type(name: str, distance: float) -> ComponentType:
    with SessionLocal() as db:
        ctype = ComponentType(name=name, default_replacement_distance=distance)
        db.add(ctype)
        db.commit()
        db.refresh(ctype)
        return ctype


@pytest.fixture
def chain() -> ComponentType:
    return _create_type("Chain", 3000)


@pytest.fixture
def brake_pads() -> ComponentType:
    return _create_type("Brake Pads", 2000)


def set_current_distance(component_id, km: float) -> None:
    """Stand-in for the distance sync writing wear onto a component."""
    with SessionLocal() as db:
        db.query(BikeComponent).filter(BikeComponent.id == component_id).update({"current_distance": km})
        db.commit()


def set_total_distance(bike_id, km: float) -> None:
    with SessionLocal() as db:
        db.query(Bike).filter(Bike.id == bike_id).update({"total_distance": km})
        db.commit()


def active_components(bike_id, component_type_id):
    with SessionLocal() as db:
        return (
            db.query(BikeComponent)
            .filter(
                BikeComponent.bike_id == bike_id,
                BikeComponent.component_type_id == component_type_id,
                BikeComponent.is_active.is_(True),
            )
            .all()
        )
