"""Errors raised by the cafehop core"""


class CafeError(Exception):
    """Base class for rejected input in the core"""


class InvalidOrderError(CafeError, ValueError):
    """Order cannot be placed (empty cart, bad quantity, bad tax or pickup)"""


class IllegalTransitionError(CafeError):
    """Status change not allowed by the order state machine.

    requested is None when an order was advanced with no next status.
    """

    def __init__(self, current, requested=None):
        self.current = current
        self.requested = requested
        if requested is None:
            message = f"Order is already '{current.value}' and has no next status"
        else:
            message = f"Cannot move order from '{current.value}' to '{requested.value}'"
        super().__init__(message)


class UnknownOptionError(CafeError, ValueError):
    """Selection references a customization or option the item doesn't have"""


class UnknownItemError(CafeError, LookupError):
    """Menu item id isn't in the catalog"""


class ItemUnavailableError(CafeError):
    """Menu item is flagged unavailable"""


class MenuValidationError(CafeError, ValueError):
    """Menu edit rejected (missing name/price/category, empty option, duplicate id)"""


class InvalidLocationError(CafeError, ValueError):
    """User coordinate isn't a finite latitude/longitude"""


class ReviewReplyError(CafeError, ValueError):
    """Reply rejected (already replied or too short)"""
