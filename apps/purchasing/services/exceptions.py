"""Domain exceptions for purchasing app."""

from apps.core.exceptions import (
    ConflictError,
    DomainError,
    NotFoundError,
    ValidationError,
)


class PurchasingServiceError(DomainError):
    """Base exception for all purchasing service errors."""
    pass


class SessionNotFoundError(PurchasingServiceError, NotFoundError):
    """Purchase session does not exist."""
    pass


class ItemNotFoundError(PurchasingServiceError, NotFoundError):
    """Session item does not exist in this session."""
    pass


class VariantNotFoundError(PurchasingServiceError, NotFoundError):
    """Variant does not exist or is inactive."""
    pass


class SupplierNotFoundError(PurchasingServiceError, NotFoundError):
    """Supplier does not exist or is inactive."""
    pass


class LotNotFoundError(PurchasingServiceError, NotFoundError):
    """Purchase lot does not exist."""
    pass


class DuplicateSessionDateError(PurchasingServiceError, ConflictError):
    """Another session already exists for this date."""
    pass


class InvalidSessionTransitionError(PurchasingServiceError, ConflictError):
    """Session status does not allow this operation."""
    pass


class SessionNotOpenError(InvalidSessionTransitionError):
    """Operation requires an OPEN session."""
    pass


class DuplicateSessionItemError(PurchasingServiceError, ConflictError):
    """Variant already has an item in this session."""
    pass


class ItemUnavailableError(PurchasingServiceError, ConflictError):
    """Item is held by another actor or no longer reservable."""
    pass


class InvalidStateTransitionError(PurchasingServiceError, ConflictError):
    """Item state does not allow this transition."""
    pass


class LotAlreadyWeighedError(PurchasingServiceError, ConflictError):
    """Measured weight was already recorded for this lot."""
    pass


class InvalidQuantityError(PurchasingServiceError, ValidationError):
    """Quantity, cost or weight is missing, not positive or not integral."""
    pass


class InvalidReservationDurationError(PurchasingServiceError, ValidationError):
    """Reservation duration must be 10, 15 or 30 minutes."""
    pass


class MissingPurchaseUnitError(PurchasingServiceError, ValidationError):
    """No purchase unit could be resolved for the item."""
    pass


class NotWeighableLotError(PurchasingServiceError, ValidationError):
    """Only discrete container lots carry a measured weight."""
    pass
