import uuid
from sqlalchemy import (
    Column, Text, TIMESTAMP, Float, Boolean, ForeignKey,
    CheckConstraint, Index, true,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from .base import Base


class MaintenanceAction:
    REPLACED = "replaced"
    REMOVED = "removed"


class ComponentType(Base):
    """
    Catalog of trackable parts (e.g., Chain, Brake Pads) with the distance
    a part of that kind is expected to last.
    """
    __tablename__ = "component_types"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(Text, unique=True, nullable=False)
    default_replacement_distance = Column(Float, nullable=False)  # km
    description = Column(Text)
    created_at = Column(TIMESTAMP, server_default=func.now())

    components = relationship("BikeComponent", back_populates="component_type")

    __table_args__ = (
        CheckConstraint(
            "default_replacement_distance > 0",
            name="component_types_default_distance_pos",
        ),
    )


class BikeComponent(Base):
    """
    A part of a given type installed on a bike. Replacing it deactivates
    this row and installs a fresh one; rows are never deleted.
    """
    __tablename__ = "bike_components"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    bike_id = Column(UUID(as_uuid=True), ForeignKey("bikes.id", ondelete="CASCADE"), nullable=False)
    component_type_id = Column(UUID(as_uuid=True), ForeignKey("component_types.id"), nullable=False)

    replacement_distance = Column(Float, nullable=False)        # km threshold for this instance
    current_distance = Column(Float, nullable=False, default=0)  # km ridden since install
    install_distance = Column(Float)                             # bike total_distance at install
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(TIMESTAMP, server_default=func.now())
    updated_at = Column(TIMESTAMP, server_default=func.now(), onupdate=func.now())

    bike = relationship("Bike", back_populates="components")
    component_type = relationship("ComponentType", back_populates="components")
    maintenance_records = relationship("MaintenanceRecord", back_populates="bike_component")

    __table_args__ = (
        CheckConstraint("replacement_distance > 0", name="bike_components_replacement_pos"),
        CheckConstraint("current_distance >= 0", name="bike_components_current_nonneg"),
    )


class MaintenanceRecord(Base):
    """
    Append-only log of actions taken on a component instance.
    `bike_component_id` points at the instance that was retired.
    """
    __tablename__ = "maintenance_records"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    bike_component_id = Column(
        UUID(as_uuid=True), ForeignKey("bike_components.id", ondelete="CASCADE"), nullable=False
    )
    action_type = Column(Text, nullable=False)      # replaced, removed
    distance_at_action = Column(Float, nullable=False)
    cost = Column(Float)
    notes = Column(Text)
    created_at = Column(TIMESTAMP, server_default=func.now())

    bike_component = relationship("BikeComponent", back_populates="maintenance_records")


# At most one active instance per (bike, component type)
ACTIVE_TYPE_INDEX = "uq_bike_components_active_type"
Index(
    ACTIVE_TYPE_INDEX,
    BikeComponent.bike_id,
    BikeComponent.component_type_id,
    unique=True,
    postgresql_where=BikeComponent.is_active == true(),
    sqlite_where=BikeComponent.is_active == true(),
)
Index("ix_bike_components_bike_active", BikeComponent.bike_id, BikeComponent.is_active)
Index("ix_maintenance_records_component", MaintenanceRecord.bike_component_id)
