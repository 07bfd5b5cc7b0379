# services/component_service.py
from __future__ import annotations
import logging
import math
import uuid
from typing import List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import joinedload

from db import SessionLocal
from models import (
    Bike,
    BikeComponent,
    ComponentType,
    MaintenanceRecord,
    MaintenanceAction,
    PartsInventoryItem,
)
from models.component import ACTIVE_TYPE_INDEX
from services.bike_service import get_owned_bike
from services.errors import InvalidInput, NotFound, Conflict, DependencyFailure
from services.wear import GarageCondition, aggregate_condition

logger = logging.getLogger(__name__)


# ───────────── CATALOG ────────────────────────────────────────────────────────
def list_component_types() -> List[ComponentType]:
    with SessionLocal() as db:
        return db.query(ComponentType).order_by(ComponentType.name.asc()).all()


# ───────────── ACTIVE COMPONENTS ──────────────────────────────────────────────
def list_active_components(user_id: uuid.UUID, bike_id: uuid.UUID) -> List[BikeComponent]:
    with SessionLocal() as db:
        get_owned_bike(db, user_id, bike_id)
        return (
            db.query(BikeComponent)
            .options(joinedload(BikeComponent.component_type))
            .filter(BikeComponent.bike_id == bike_id, BikeComponent.is_active.is_(True))
            .order_by(BikeComponent.created_at.asc())
            .all()
        )


def _is_active_type_clash(e: IntegrityError) -> bool:
    """True when the one-active-per-type index rejected the write."""
    message = str(e.orig)
    return ACTIVE_TYPE_INDEX in message or "UNIQUE constraint failed: bike_components." in message


def _active_component_exists(db, bike_id: uuid.UUID, component_type_id: uuid.UUID) -> bool:
    return (
        db.query(BikeComponent.id)
        .filter(
            BikeComponent.bike_id == bike_id,
            BikeComponent.component_type_id == component_type_id,
            BikeComponent.is_active.is_(True),
        )
        .first()
        is not None
    )


def add_component(
    user_id: uuid.UUID,
    bike_id: uuid.UUID,
    component_type_id: uuid.UUID,
    *,
    replacement_distance: Optional[float] = None,
    current_distance: Optional[float] = None,
) -> BikeComponent:
    """
    Install a component on a bike.

    A missing or non-positive `replacement_distance` falls back to the
    catalog default. `current_distance` logs a used part retroactively, so
    `install_distance` can end up negative when it exceeds the bike's total.
    """
    if not component_type_id:
        raise InvalidInput("component_type_id is required")
    starting = float(current_distance or 0)
    if not math.isfinite(starting) or starting < 0:
        raise InvalidInput("current_distance must be zero or positive")
    if replacement_distance is not None and not math.isfinite(replacement_distance):
        raise InvalidInput("replacement_distance must be a finite number")

    with SessionLocal() as db:
        bike = get_owned_bike(db, user_id, bike_id)
        ctype = db.query(ComponentType).filter(ComponentType.id == component_type_id).first()
        if not ctype:
            raise NotFound("Component type not found")

        threshold = replacement_distance if replacement_distance and replacement_distance > 0 else ctype.default_replacement_distance
        if not threshold or threshold <= 0:
            raise InvalidInput("replacement_distance must be positive")

        if _active_component_exists(db, bike.id, ctype.id):
            raise Conflict(f"{ctype.name} is already installed on this bike")

        comp = BikeComponent(
            bike_id=bike.id,
            component_type_id=ctype.id,
            replacement_distance=float(threshold),
            current_distance=starting,
            install_distance=float(bike.total_distance or 0) - starting,
            is_active=True,
        )
        db.add(comp)
        try:
            db.commit()
        except IntegrityError as e:
            db.rollback()
            if _is_active_type_clash(e):
                logger.warning(f"Concurrent install of type {ctype.id} on bike {bike.id}")
                raise Conflict(f"{ctype.name} is already installed on this bike") from e
            logger.warning(f"add_component rejected by a constraint on bike {bike_id}: {e.orig}")
            raise InvalidInput("Component distances are out of range") from e
        except SQLAlchemyError as e:
            db.rollback()
            logger.exception(f"add_component failed for bike {bike_id}")
            raise DependencyFailure("Could not add component") from e

        comp = (
            db.query(BikeComponent)
            .options(joinedload(BikeComponent.component_type))
            .filter(BikeComponent.id == comp.id)
            .one()
        )
        logger.info(f"Installed {ctype.name} on bike {bike.id} (component {comp.id})")
        return comp


def _load_active_component(db, user_id: uuid.UUID, component_id: uuid.UUID) -> BikeComponent:
    comp = (
        db.query(BikeComponent)
        .join(Bike, Bike.id == BikeComponent.bike_id)
        .filter(
            BikeComponent.id == component_id,
            BikeComponent.is_active.is_(True),
            Bike.user_id == user_id,
            Bike.retired_at.is_(None),
        )
        .with_for_update()
        .first()
    )
    if not comp:
        raise NotFound("Active component not found")
    return comp


def _load_inventory_item(db, user_id: uuid.UUID, item_id: uuid.UUID, component_type_id: uuid.UUID) -> PartsInventoryItem:
    item = (
        db.query(PartsInventoryItem)
        .filter(PartsInventoryItem.id == item_id, PartsInventoryItem.user_id == user_id)
        .with_for_update()
        .first()
    )
    if not item:
        raise NotFound("Inventory item not found")
    if item.component_type_id != component_type_id:
        raise InvalidInput("Inventory item is for a different component type")
    if (item.quantity or 0) <= 0:
        raise InvalidInput("Inventory item is out of stock")
    return item


def _consume_inventory(db, item: PartsInventoryItem) -> None:
    if item.quantity > 1:
        item.quantity -= 1
    else:
        db.delete(item)


def replace_component(
    user_id: uuid.UUID,
    component_id: uuid.UUID,
    *,
    inventory_item_id: Optional[uuid.UUID] = None,
    cost: Optional[float] = None,
    notes: Optional[str] = None,
) -> BikeComponent:
    """
    Retire an active component and install a fresh one of the same type.

    Deactivation, the `replaced` audit row, the optional stock consumption
    and the new install commit together or not at all.
    """
    if cost is not None and (not math.isfinite(cost) or cost < 0):
        raise InvalidInput("cost cannot be negative")

    with SessionLocal() as db:
        old = _load_active_component(db, user_id, component_id)
        bike = db.query(Bike).filter(Bike.id == old.bike_id).with_for_update().one()
        item = None
        if inventory_item_id:
            item = _load_inventory_item(db, user_id, inventory_item_id, old.component_type_id)
            if cost is None:
                cost = item.purchase_price

        at_distance = float(bike.total_distance or 0)
        try:
            old.is_active = False
            # the old row must be inactive before the new one hits the unique index
            db.flush()

            db.add(MaintenanceRecord(
                bike_component_id=old.id,
                action_type=MaintenanceAction.REPLACED,
                distance_at_action=at_distance,
                cost=cost,
                notes=notes or None,
            ))
            if item is not None:
                _consume_inventory(db, item)

            new = BikeComponent(
                bike_id=old.bike_id,
                component_type_id=old.component_type_id,
                replacement_distance=old.replacement_distance,
                current_distance=0,
                install_distance=at_distance,
                is_active=True,
            )
            db.add(new)
            db.commit()
        except IntegrityError as e:
            db.rollback()
            if _is_active_type_clash(e):
                logger.warning(f"Replace of component {component_id} lost a race")
                raise Conflict("Component was changed by another request") from e
            logger.exception(f"replace_component rejected by a constraint for component {component_id}")
            raise DependencyFailure("Could not replace component") from e
        except SQLAlchemyError as e:
            db.rollback()
            logger.exception(f"replace_component failed for component {component_id}")
            raise DependencyFailure("Could not replace component") from e

        new = (
            db.query(BikeComponent)
            .options(joinedload(BikeComponent.component_type))
            .filter(BikeComponent.id == new.id)
            .one()
        )
        source = " (from inventory)" if item is not None else ""
        logger.info(f"Replaced component {component_id} with {new.id} on bike {new.bike_id} at {at_distance:.1f} km{source}")
        return new


def remove_component(
    user_id: uuid.UUID,
    component_id: uuid.UUID,
    *,
    notes: Optional[str] = None,
) -> MaintenanceRecord:
    """Take a component off the bike without installing a successor."""
    with SessionLocal() as db:
        comp = _load_active_component(db, user_id, component_id)
        bike = db.query(Bike).filter(Bike.id == comp.bike_id).one()
        try:
            comp.is_active = False
            record = MaintenanceRecord(
                bike_component_id=comp.id,
                action_type=MaintenanceAction.REMOVED,
                distance_at_action=float(bike.total_distance or 0),
                notes=notes or None,
            )
            db.add(record)
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.exception(f"remove_component failed for component {component_id}")
            raise DependencyFailure("Could not remove component") from e
        db.refresh(record)
        logger.info(f"Removed component {component_id} from bike {bike.id}")
        return record


# ───────────── HISTORY ────────────────────────────────────────────────────────
def list_maintenance_records(user_id: uuid.UUID, bike_id: uuid.UUID) -> List[MaintenanceRecord]:
    with SessionLocal() as db:
        get_owned_bike(db, user_id, bike_id)
        return (
            db.query(MaintenanceRecord)
            .join(BikeComponent, BikeComponent.id == MaintenanceRecord.bike_component_id)
            .options(
                joinedload(MaintenanceRecord.bike_component).joinedload(BikeComponent.component_type)
            )
            .filter(BikeComponent.bike_id == bike_id)
            .order_by(MaintenanceRecord.created_at.desc())
            .all()
        )


# ───────────── GARAGE ─────────────────────────────────────────────────────────
def get_garage_condition(user_id: uuid.UUID) -> GarageCondition:
    with SessionLocal() as db:
        rows = (
            db.query(BikeComponent)
            .join(Bike, Bike.id == BikeComponent.bike_id)
            .filter(
                Bike.user_id == user_id,
                Bike.retired_at.is_(None),
                BikeComponent.is_active.is_(True),
            )
            .all()
        )
        return aggregate_condition(rows)
