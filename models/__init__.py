from .base import Base
from .user import User, Profile
from .bike import Bike
from .component import (
    ComponentType,
    BikeComponent,
    MaintenanceRecord,
    MaintenanceAction,
)
from .inventory import PartsInventoryItem
from .strava import StravaActivity
