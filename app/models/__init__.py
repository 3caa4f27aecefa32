from app.models.user import Role, User, UserCreate, UserPublic
from app.models.service import Service, ServiceCreate, ServicePublic, ServiceType
from app.models.availability import AvailabilityWindow, AvailabilityWindowPublic
from app.models.appointment import Appointment, AppointmentPublic, AppointmentStatus

__all__ = [
    "Role",
    "User",
    "UserCreate",
    "UserPublic",
    "Service",
    "ServiceCreate",
    "ServicePublic",
    "ServiceType",
    "AvailabilityWindow",
    "AvailabilityWindowPublic",
    "Appointment",
    "AppointmentPublic",
    "AppointmentStatus",
]
