from enum import Enum


class TutorType(str, Enum):
    SOLE_TUTOR = "sole_tutor"
    ORGANIZATION = "organization"


class BookingStatus(str, Enum):
    PENDING = "pending"
    COUNTER_PROPOSED = "counter_proposed"
    ACCEPTED = "accepted"
    DECLINED = "declined"
    EXPIRED = "expired"
    CANCELLED = "cancelled"


class AcceptedBy(str, Enum):
    TUTOR = "tutor"
    STUDENT = "student"


# Estados desde los que todavía se puede negociar
ACTIVE_BOOKING_STATUSES = (BookingStatus.PENDING.value, BookingStatus.COUNTER_PROPOSED.value)

BOOKING_CATEGORIES = (
    "Business & Management",
    "Technology & Data",
    "Engineering & Physical Science",
    "Health & Medicine",
    "Arts & Humanities",
    "Personal Development & Education",
)
