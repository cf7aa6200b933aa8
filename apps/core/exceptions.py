"""
Error taxonomy shared by the purchasing and pricing services.

Each app defines its concrete errors in ``services/exceptions.py`` as
subclasses of one of the kinds below. Views map the kind to an HTTP
status; ``FatalError`` is never caught by views and surfaces as a 500.
"""


class DomainError(Exception):
    """Base exception for all service-layer errors."""
    pass


class ValidationError(DomainError):
    """Malformed or out-of-range input. No state was changed."""
    pass


class NotFoundError(DomainError):
    """A referenced record does not exist."""
    pass


class ConflictError(DomainError):
    """The current state does not permit the operation. Re-read and retry."""
    pass


class FatalError(DomainError):
    """Configuration or storage failure. Safe to retry once resolved."""
    pass
