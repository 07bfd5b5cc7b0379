import uuid
from sqlalchemy import Column, Text, TIMESTAMP, Float, ForeignKey, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func

from .base import Base


class StravaActivity(Base):
    """Activities already counted by the distance sync."""
    __tablename__ = "strava_activities"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    bike_id = Column(UUID(as_uuid=True), ForeignKey("bikes.id", ondelete="SET NULL"))
    strava_activity_id = Column(Text, nullable=False)
    distance = Column(Float, nullable=False)  # km
    processed_at = Column(TIMESTAMP, server_default=func.now())

    __table_args__ = (
        UniqueConstraint("user_id", "strava_activity_id", name="uq_strava_activities_user_activity"),
    )
