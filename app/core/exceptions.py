class TutorHubException(Exception):
    """Base exception for TutorHub application"""
    code = "Error"
    status_code = 400

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message

    def to_detail(self) -> dict:
        return {"code": self.code, "message": self.message}


class AvailabilityError(TutorHubException):
    """Exception raised for availability-related errors"""
    pass


class BookingError(TutorHubException):
    """Exception raised for booking-related errors"""
    pass


class ReviewError(TutorHubException):
    """Exception raised for review-related errors"""
    pass


class ProfileError(TutorHubException):
    """Exception raised for tutor profile errors"""
    pass


class AuthenticationError(TutorHubException):
    """Exception raised for authentication errors"""
    code = "Unauthenticated"
    status_code = 401


class AuthorizationError(TutorHubException):
    """Exception raised for authorization errors"""
    code = "Forbidden"
    status_code = 403


class NotFoundError(TutorHubException):
    """Slot, booking or profile is absent or not owned by the caller"""
    code = "NotFound"
    status_code = 404


class InvalidFieldError(TutorHubException):
    """Payload or filter carries a key that is not recognized"""
    code = "InvalidField"


# Availability

class InvalidDayError(AvailabilityError):
    code = "InvalidDay"


class InvalidTimeFormatError(AvailabilityError):
    code = "InvalidTimeFormat"


class InvalidTimeRangeError(AvailabilityError):
    code = "InvalidTimeRange"


class OverlappingSlotsError(AvailabilityError):
    code = "OverlappingSlots"
    status_code = 409


# Booking

class InvalidDateError(BookingError):
    code = "InvalidDate"


class PastBookingError(BookingError):
    code = "PastBooking"


class NoAvailabilityError(BookingError):
    code = "NoAvailability"


class OutsideAvailabilityError(BookingError):
    code = "OutsideAvailability"


class SlotTakenError(BookingError):
    code = "SlotTaken"
    status_code = 409


class AlreadyCompletedError(BookingError):
    code = "AlreadyCompleted"
    status_code = 409


class CannotCompleteCancelledError(BookingError):
    code = "CannotCompleteCancelled"
    status_code = 409


class CannotCancelCompletedError(BookingError):
    code = "CannotCancelCompleted"
    status_code = 409


# Profiles

class TutorProfileNotFoundError(ProfileError):
    code = "TutorProfileNotFound"
    status_code = 404


class ProfileExistsError(ProfileError):
    code = "ProfileExists"
    status_code = 409


class InvalidCategoryError(ProfileError):
    code = "InvalidCategory"


class DuplicateCategoryError(ProfileError):
    code = "DuplicateCategory"
    status_code = 409


# Reviews

class ReviewNotAllowedError(ReviewError):
    code = "ReviewNotAllowed"
    status_code = 403


class DuplicateReviewError(ReviewError):
    code = "DuplicateReview"
    status_code = 409


class InvalidRatingError(ReviewError):
    code = "InvalidRating"
