"""Domain exceptions for pricing app."""

from apps.core.exceptions import (
    ConflictError,
    DomainError,
    FatalError,
    NotFoundError,
    ValidationError,
)


class PricingServiceError(DomainError):
    """Base exception for all pricing service errors."""
    pass


class PricingConfigError(PricingServiceError, FatalError):
    """Pricing settings could not be read or hold unusable values."""
    pass


class SessionNotFoundError(PricingServiceError, NotFoundError):
    """Purchase session does not exist."""
    pass


class VariantNotFoundError(PricingServiceError, NotFoundError):
    """Variant does not exist."""
    pass


class DailyPriceNotFoundError(PricingServiceError, NotFoundError):
    """No daily price exists for this session and variant."""
    pass


class InvalidManualPriceError(PricingServiceError, ValidationError):
    """Manual sale price must be greater than zero."""
    pass


class InvalidConversionError(PricingServiceError, ValidationError):
    """Conversion factor must be positive and needs a purchase unit."""
    pass


class InvalidPricingSettingError(PricingServiceError, ValidationError):
    """Margin must be in (0, 2) and rounding step positive."""
    pass


class ClosedSessionError(PricingServiceError, ConflictError):
    """Prices of a closed session can no longer change."""
    pass
