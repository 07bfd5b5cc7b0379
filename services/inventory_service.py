# services/inventory_service.py
from __future__ import annotations
import logging
import uuid
from typing import List, Optional

from sqlalchemy.orm import joinedload

from db import SessionLocal
from models import ComponentType, PartsInventoryItem
from services.errors import InvalidInput, NotFound

logger = logging.getLogger(__name__)


def list_inventory(user_id: uuid.UUID) -> List[PartsInventoryItem]:
    """Spare parts in stock, i.e. rows with quantity > 0."""
    with SessionLocal() as db:
        return (
            db.query(PartsInventoryItem)
            .options(joinedload(PartsInventoryItem.component_type))
            .filter(PartsInventoryItem.user_id == user_id, PartsInventoryItem.quantity > 0)
            .order_by(PartsInventoryItem.created_at.desc())
            .all()
        )


def _load_item(db, user_id: uuid.UUID, item_id: uuid.UUID) -> PartsInventoryItem:
    item = (
        db.query(PartsInventoryItem)
        .options(joinedload(PartsInventoryItem.component_type))
        .filter(PartsInventoryItem.id == item_id, PartsInventoryItem.user_id == user_id)
        .first()
    )
    if not item:
        raise NotFound("Inventory item not found")
    return item


def add_inventory_item(
    user_id: uuid.UUID,
    component_type_id: uuid.UUID,
    *,
    quantity: int = 1,
    purchase_price: Optional[float] = None,
    notes: Optional[str] = None,
) -> PartsInventoryItem:
    if quantity is None or quantity < 1:
        raise InvalidInput("quantity must be at least 1")
    if purchase_price is not None and purchase_price < 0:
        raise InvalidInput("purchase_price cannot be negative")

    with SessionLocal() as db:
        ctype = db.query(ComponentType).filter(ComponentType.id == component_type_id).first()
        if not ctype:
            raise NotFound("Component type not found")

        item = PartsInventoryItem(
            user_id=user_id,
            component_type_id=ctype.id,
            quantity=int(quantity),
            purchase_price=purchase_price,
            notes=notes or None,
        )
        db.add(item)
        db.commit()
        return _load_item(db, user_id, item.id)


def update_inventory_quantity(user_id: uuid.UUID, item_id: uuid.UUID, quantity: int) -> PartsInventoryItem:
    """Correct the stock count. Zero keeps the row but hides it from the listing."""
    if quantity is None or quantity < 0:
        raise InvalidInput("quantity cannot be negative")

    with SessionLocal() as db:
        item = _load_item(db, user_id, item_id)
        item.quantity = int(quantity)
        db.commit()
        if item.quantity == 0:
            logger.info(f"Inventory item {item_id} is out of stock")
        return item


def delete_inventory_item(user_id: uuid.UUID, item_id: uuid.UUID) -> None:
    with SessionLocal() as db:
        item = _load_item(db, user_id, item_id)
        db.delete(item)
        db.commit()
        logger.info(f"Deleted inventory item {item_id}")
