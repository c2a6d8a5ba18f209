"""
schemas/enums.py

- Status vocabularies shared by models, schemas and the analytics layer.
- str-based Enums so DB string values compare equal to members.
"""

from enum import Enum


class AttendanceStatus(str, Enum):
    PRESENT = "PRESENT"
    ABSENT = "ABSENT"
    LATE = "LATE"


class RequestStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class ReferralStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    RETURNED_TO_DEPUTY = "returned_to_deputy"
    RESOLVED = "resolved"


class ObservationType(str, Enum):
    ACADEMIC = "academic"
    BEHAVIORAL = "behavioral"
    POSITIVE = "positive"
    GENERAL = "general"


class ExitStatus(str, Enum):
    PENDING_PICKUP = "pending_pickup"
    COMPLETED = "completed"
    EXPIRED = "expired"


class AppointmentStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    MISSED = "missed"


class NotificationType(str, Enum):
    ALERT = "alert"
    INFO = "info"
    SUCCESS = "success"


class Role(str, Enum):
    VISITOR = "visitor"   # school selected, nobody logged in yet
    ADMIN = "admin"
    STAFF = "staff"
    PARENT = "parent"


# staff permission keys that act as roles
PERM_DEPUTY = "deputy"
PERM_COUNSELOR = "students"
