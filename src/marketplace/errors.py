"""Exceptions raised by the data layer and turned into failed results."""


class MarketplaceError(Exception):
    """Base class for every expected failure in the application."""


class RemoteError(MarketplaceError):
    """The document store or account store could not complete a call."""


class ConflictError(RemoteError):
    """A versioned write found a different document version than expected."""


class NotFoundError(MarketplaceError):
    """A referenced document does not exist."""


class ValidationError(MarketplaceError):
    """Input was rejected before anything was written."""


class OrderValidationError(ValidationError):
    pass


class InvalidTransitionError(ValidationError):
    """An order status change that the lifecycle does not allow."""


class AuthError(MarketplaceError):
    """Bad credentials, no signed-in user, or an email already registered."""
