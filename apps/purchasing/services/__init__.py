"""
Purchasing services - Business logic layer.

This package contains all business operations for the purchasing app:
- Session lifecycle (planning, open, closed)
- Session item planning and the reservation state machine
- The append-only lot store
"""

# Session lifecycle
from .session_lifecycle import (
    create_session,
    reschedule_session,
    open_session,
    close_session,
    get_session,
    list_sessions,
)

# Item planning
from .item_planning import (
    add_item,
    update_item_plan,
    remove_item,
    list_session_items,
)

# Item state machine
from .item_state_machine import (
    RESERVATION_MINUTES,
    reserve_item,
    release_item,
    cancel_item,
    confirm_item,
)

# Lot store
from .lot_store import (
    list_lots,
    get_lot,
    weigh_lot,
    purchase_summary,
)

from .reference_prices import last_reference_for_variant

# Domain Exceptions
from .exceptions import (
    PurchasingServiceError,
    SessionNotFoundError,
    ItemNotFoundError,
    VariantNotFoundError,
    SupplierNotFoundError,
    LotNotFoundError,
    DuplicateSessionDateError,
    InvalidSessionTransitionError,
    SessionNotOpenError,
    DuplicateSessionItemError,
    ItemUnavailableError,
    InvalidStateTransitionError,
    LotAlreadyWeighedError,
    InvalidQuantityError,
    InvalidReservationDurationError,
    MissingPurchaseUnitError,
    NotWeighableLotError,
)

__all__ = [
    # Session Lifecycle
    'create_session',
    'reschedule_session',
    'open_session',
    'close_session',
    'get_session',
    'list_sessions',
    # Item Planning
    'add_item',
    'update_item_plan',
    'remove_item',
    'list_session_items',
    # Item State Machine
    'RESERVATION_MINUTES',
    'reserve_item',
    'release_item',
    'cancel_item',
    'confirm_item',
    # Lot Store
    'list_lots',
    'get_lot',
    'weigh_lot',
    'purchase_summary',
    'last_reference_for_variant',
    # Exceptions
    'PurchasingServiceError',
    'SessionNotFoundError',
    'ItemNotFoundError',
    'VariantNotFoundError',
    'SupplierNotFoundError',
    'LotNotFoundError',
    'DuplicateSessionDateError',
    'InvalidSessionTransitionError',
    'SessionNotOpenError',
    'DuplicateSessionItemError',
    'ItemUnavailableError',
    'InvalidStateTransitionError',
    'LotAlreadyWeighedError',
    'InvalidQuantityError',
    'InvalidReservationDurationError',
    'MissingPurchaseUnitError',
    'NotWeighableLotError',
]
