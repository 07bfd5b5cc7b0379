import uuid
from sqlalchemy import Column, Text, TIMESTAMP, Date, Float, Integer, ForeignKey, CheckConstraint, Index
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from .base import Base


class Bike(Base):
    __tablename__ = "bikes"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)

    name = Column(Text, nullable=False)
    brand = Column(Text)
    model = Column(Text)
    bike_type = Column(Text)        # e.g., road, gravel, mtb
    year = Column(Integer)
    weight = Column(Float)          # kg
    price = Column(Float)
    purchase_date = Column(Date)

    # Lifetime distance in km, owned by manual entry or the distance sync
    total_distance = Column(Float, nullable=False, default=0)

    # Set when the bike leaves the garage; its components stay as history
    retired_at = Column(TIMESTAMP)

    created_at = Column(TIMESTAMP, server_default=func.now())
    updated_at = Column(TIMESTAMP, server_default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="bikes")
    components = relationship("BikeComponent", back_populates="bike")

    __table_args__ = (
        CheckConstraint("total_distance >= 0", name="bikes_total_distance_nonneg"),
    )

    @property
    def is_retired(self) -> bool:
        return self.retired_at is not None


Index("ix_bikes_user_created", Bike.user_id, Bike.created_at)
