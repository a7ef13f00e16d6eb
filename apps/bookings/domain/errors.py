"""
Booking Domain Errors

Every failure the booking core can report carries a stable ``code`` so
that handlers can turn it into a structured result and the API can map
it onto an HTTP status without inspecting messages.
"""


class BookingError(Exception):
    """Base class for booking core failures"""

    code = 'booking_error'

    def __init__(self, message: str = ''):
        super().__init__(message or self.__class__.__doc__ or self.code)
        self.message = message or self.__class__.__doc__ or self.code


# ===== Not found =====

class NotFound(BookingError):
    """Requested object does not exist"""
    code = 'not_found'


class ItemNotFound(NotFound):
    """Bookable item not found"""
    code = 'item_not_found'


class BookingNotFound(NotFound):
    """Booking not found"""
    code = 'booking_not_found'


class PromoCodeNotFound(NotFound):
    """Promo code not found"""
    code = 'promo_code_not_found'


class GiftCardNotFound(NotFound):
    """Gift card not found"""
    code = 'gift_card_not_found'


class PackageNotFound(NotFound):
    """Package not found"""
    code = 'package_not_found'


# ===== Validation =====

class BookingValidationError(BookingError):
    """Booking request failed validation"""
    code = 'validation_error'


class InvalidBookingType(BookingValidationError):
    """Booking type must be vessel or tour"""
    code = 'invalid_booking_type'


class PromoCodeInvalid(BookingValidationError):
    """Promo code cannot be applied"""
    code = 'promo_code_invalid'


class GiftCardInvalid(BookingValidationError):
    """Gift card cannot be applied"""
    code = 'gift_card_invalid'


class InsufficientCashback(BookingValidationError):
    """Cashback balance is insufficient"""
    code = 'insufficient_cashback'


class InvalidBookingRequest(BookingValidationError):
    """Booking request is invalid"""
    code = 'invalid_booking_request'


# ===== State machine =====

class InvalidTransition(BookingError):
    """Status transition is not permitted"""
    code = 'invalid_transition'


class ReasonRequired(BookingError):
    """A reason is required for this status change"""
    code = 'reason_required'


class Unauthorized(BookingError):
    """Actor is not allowed to change this booking"""
    code = 'unauthorized'


class UnknownAutoAction(BookingError):
    """Transition table references an unknown auto-action"""
    code = 'unknown_auto_action'
