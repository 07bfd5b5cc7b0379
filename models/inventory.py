import uuid
from sqlalchemy import Column, Text, TIMESTAMP, Float, Integer, ForeignKey, CheckConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from .base import Base


class PartsInventoryItem(Base):
    """
    Spare parts on the shelf. One unit is consumed when a component is
    replaced from stock; the row goes away when the last unit is used.
    """
    __tablename__ = "parts_inventory"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    component_type_id = Column(UUID(as_uuid=True), ForeignKey("component_types.id"), nullable=False)

    quantity = Column(Integer, nullable=False, default=1)
    purchase_price = Column(Float)
    notes = Column(Text)

    created_at = Column(TIMESTAMP, server_default=func.now())
    updated_at = Column(TIMESTAMP, server_default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="inventory_items")
    component_type = relationship("ComponentType")

    __table_args__ = (
        CheckConstraint("quantity >= 0", name="parts_inventory_quantity_nonneg"),
    )
