from .coaching.constants import TutorType, BookingStatus, AcceptedBy
from .coaching.booking_request import CoachingBookingRequest
from .coaching.coaching_profile import TutorCoachingProfile
from .coaching.availability import TutorAvailability
