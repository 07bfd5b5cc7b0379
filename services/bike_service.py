# services/bike_service.py
from __future__ import annotations
import logging
import math
import uuid
from datetime import date, datetime
from typing import List, Optional, Mapping

from sqlalchemy.exc import SQLAlchemyError

from db import SessionLocal
from models import Bike, BikeComponent
from services.errors import InvalidInput, NotFound, DependencyFailure

logger = logging.getLogger(__name__)

# total_distance is only moved by recorded rides and the distance sync
BIKE_FIELDS = {"name", "brand", "model", "bike_type", "year", "weight", "price", "purchase_date"}


def _sanitize_fields(data: Mapping | None, allowed: set[str]) -> dict:
    """Return only keys present in `allowed` and non-None values."""
    if not data:
        return {}
    return {k: v for k, v in data.items() if k in allowed and v is not None}


def get_owned_bike(db, user_id: uuid.UUID, bike_id: uuid.UUID, *, for_update: bool = False) -> Bike:
    """Load a garage bike belonging to `user_id` inside an open session, or raise NotFound."""
    query = db.query(Bike).filter(
        Bike.id == bike_id,
        Bike.user_id == user_id,
        Bike.retired_at.is_(None),
    )
    if for_update:
        query = query.with_for_update()
    bike = query.first()
    if not bike:
        raise NotFound("Bike not found")
    return bike


def accrue_distance(db, bike: Bike, distance_km: float) -> int:
    """
    Add ridden distance to a bike and to every active component on it.
    Runs inside the caller's session; returns the number of components touched.
    """
    bike.total_distance = float(bike.total_distance or 0) + distance_km
    rows = (
        db.query(BikeComponent)
        .filter(BikeComponent.bike_id == bike.id, BikeComponent.is_active.is_(True))
        .all()
    )
    for c in rows:
        c.current_distance = float(c.current_distance or 0) + distance_km
    return len(rows)


# ───────────── BIKES ──────────────────────────────────────────────────────────
def list_bikes(user_id: uuid.UUID) -> List[Bike]:
    with SessionLocal() as db:
        return (
            db.query(Bike)
            .filter(Bike.user_id == user_id, Bike.retired_at.is_(None))
            .order_by(Bike.created_at.asc())
            .all()
        )


def get_bike(user_id: uuid.UUID, bike_id: uuid.UUID) -> Optional[Bike]:
    with SessionLocal() as db:
        return (
            db.query(Bike)
            .filter(Bike.id == bike_id, Bike.user_id == user_id, Bike.retired_at.is_(None))
            .first()
        )


def create_bike(
    user_id: uuid.UUID,
    name: str,
    *,
    brand: Optional[str] = None,
    model: Optional[str] = None,
    bike_type: Optional[str] = None,
    year: Optional[int] = None,
    weight: Optional[float] = None,
    price: Optional[float] = None,
    purchase_date: Optional[date] = None,
    total_distance: float = 0,
) -> Bike:
    if not name or not name.strip():
        raise InvalidInput("Bike name is required")
    if total_distance is None or not math.isfinite(total_distance) or total_distance < 0:
        raise InvalidInput("total_distance must be zero or positive")

    with SessionLocal() as db:
        bike = Bike(
            user_id=user_id,
            name=name.strip(),
            brand=brand,
            model=model,
            bike_type=bike_type,
            year=year,
            weight=weight,
            price=price,
            purchase_date=purchase_date,
            total_distance=float(total_distance),
        )
        db.add(bike)
        db.commit()
        db.refresh(bike)
        return bike


def update_bike(user_id: uuid.UUID, bike_id: uuid.UUID, patch: Mapping) -> bool:
    """
    Only descriptive fields can be patched. Unknown keys are dropped.
    Returns False when the caller has no such bike, even for an empty patch.
    """
    patch = _sanitize_fields(patch, BIKE_FIELDS)
    if "name" in patch and not str(patch["name"]).strip():
        raise InvalidInput("Bike name is required")

    with SessionLocal() as db:
        try:
            bike = get_owned_bike(db, user_id, bike_id, for_update=True)
        except NotFound:
            return False
        if not patch:
            return True
        for key, value in patch.items():
            setattr(bike, key, value)
        db.commit()
        return True


def record_distance(user_id: uuid.UUID, bike_id: uuid.UUID, distance_km: float) -> Bike:
    """Log a ride: bike and its active components grow by the same distance."""
    if distance_km is None or not math.isfinite(distance_km) or distance_km <= 0:
        raise InvalidInput("distance_km must be positive")

    with SessionLocal() as db:
        bike = get_owned_bike(db, user_id, bike_id, for_update=True)
        try:
            touched = accrue_distance(db, bike, float(distance_km))
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.exception(f"record_distance failed for bike {bike_id}")
            raise DependencyFailure("Could not record distance") from e
        db.refresh(bike)
        logger.info(f"Recorded {distance_km:.1f} km on bike {bike_id} ({touched} components)")
        return bike


def retire_bike(user_id: uuid.UUID, bike_id: uuid.UUID) -> bool:
    """
    Take a bike out of the garage: deactivate its components and stamp
    `retired_at`. Rows stay in place so maintenance history survives.
    """
    with SessionLocal() as db:
        bike = get_owned_bike(db, user_id, bike_id, for_update=True)
        try:
            (
                db.query(BikeComponent)
                .filter(BikeComponent.bike_id == bike.id, BikeComponent.is_active.is_(True))
                .update({"is_active": False}, synchronize_session=False)
            )
            bike.retired_at = datetime.utcnow()
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.exception(f"retire_bike failed for bike {bike_id}")
            raise DependencyFailure("Could not retire bike") from e
        logger.info(f"Retired bike {bike_id}")
        return True
