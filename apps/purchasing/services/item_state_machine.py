"""
Session item state machine.

    PENDING -> RESERVED -> PURCHASED
       |  ^        |
       |  +--------+  (release, or expiry)
       +-----------+--> CANCELLED

Every transition is a single predicate-guarded UPDATE so that two requests
racing on the same item cannot both win. Reads never write; an expired
reservation is only replaced by the next successful reserve.
"""

import logging
from datetime import timedelta
from decimal import Decimal
from uuid import UUID

from django.db import transaction
from django.db.models import Q
from django.utils import timezone

from apps.accounts.models import User
from apps.catalog.models import Supplier
from apps.core import events
from apps.pricing.models import DailyPrice
from apps.pricing.services.recompute import recompute_daily_price
from apps.purchasing.models import (
    ItemState,
    PurchaseLot,
    PurchaseSession,
    SessionItem,
    SessionStatus,
)
from .exceptions import (
    InvalidQuantityError,
    InvalidReservationDurationError,
    InvalidStateTransitionError,
    ItemNotFoundError,
    ItemUnavailableError,
    MissingPurchaseUnitError,
    SessionNotFoundError,
    SessionNotOpenError,
    SupplierNotFoundError,
)
from .lot_store import append_lots, split_quantity

logger = logging.getLogger(__name__)

RESERVATION_MINUTES = (10, 15, 30)


def _require_open_session(session_id: UUID) -> PurchaseSession:
    try:
        session = PurchaseSession.objects.get(id=session_id)
    except PurchaseSession.DoesNotExist:
        raise SessionNotFoundError("Purchase session not found")

    if session.status != SessionStatus.OPEN:
        raise SessionNotOpenError("Session is not open for purchasing")
    return session


def _item_queryset(session_id: UUID, item_id: UUID):
    return SessionItem.objects.filter(id=item_id, session_id=session_id)


def _get_item(session_id: UUID, item_id: UUID) -> SessionItem:
    try:
        return _item_queryset(session_id, item_id).select_related('variant', 'reserved_by').get()
    except SessionItem.DoesNotExist:
        raise ItemNotFoundError("Item not found in this session")


def _emit(signal, item: SessionItem, **extra):
    events.emit_on_commit(
        signal,
        SessionItem,
        session_id=item.session_id,
        variant_id=item.variant_id,
        item_id=item.id,
        **extra,
    )


@transaction.atomic
def reserve_item(
    *,
    session_id: UUID,
    item_id: UUID,
    actor: User,
    minutes: int,
) -> SessionItem:
    """
    Hold an item for ``actor`` for a few minutes.

    Succeeds only when the item is PENDING, or RESERVED with an expired
    hold. The check and the write are one UPDATE statement.

    Raises:
        InvalidReservationDurationError: If minutes not in 10, 15, 30
        SessionNotFoundError: If session doesn't exist
        SessionNotOpenError: If session is not open
        ItemNotFoundError: If item doesn't exist in session
        ItemUnavailableError: If another actor holds it or it is terminal
    """
    if minutes not in RESERVATION_MINUTES:
        raise InvalidReservationDurationError(
            f"Reservation must last one of {RESERVATION_MINUTES} minutes"
        )

    _require_open_session(session_id)

    now = timezone.now()
    updated = _item_queryset(session_id, item_id).filter(
        Q(state=ItemState.PENDING)
        | Q(state=ItemState.RESERVED, reservation_expires_at__lte=now)
    ).update(
        state=ItemState.RESERVED,
        reserved_by=actor,
        reservation_expires_at=now + timedelta(minutes=minutes),
        updated_at=now,
    )

    if not updated:
        if not _item_queryset(session_id, item_id).exists():
            raise ItemNotFoundError("Item not found in this session")
        raise ItemUnavailableError("Item is not available for reservation")

    item = _get_item(session_id, item_id)
    logger.info("Item %s reserved by %s until %s", item.id, actor.email, item.reservation_expires_at)
    _emit(events.item_reserved, item)
    return item


@transaction.atomic
def release_item(*, session_id: UUID, item_id: UUID) -> SessionItem:
    """
    Give up a reservation: RESERVED -> PENDING.

    Raises:
        ItemNotFoundError: If item doesn't exist in session
        InvalidStateTransitionError: If item is not reserved
    """
    updated = _item_queryset(session_id, item_id).filter(
        state=ItemState.RESERVED,
    ).update(
        state=ItemState.PENDING,
        reserved_by=None,
        reservation_expires_at=None,
        updated_at=timezone.now(),
    )

    if not updated:
        item = _get_item(session_id, item_id)
        raise InvalidStateTransitionError(
            f"Cannot release an item in state '{item.state}'"
        )

    item = _get_item(session_id, item_id)
    _emit(events.item_released, item)
    return item


@transaction.atomic
def cancel_item(*, session_id: UUID, item_id: UUID) -> SessionItem:
    """
    Drop an item from today's purchase: PENDING/RESERVED -> CANCELLED.

    Raises:
        ItemNotFoundError: If item doesn't exist in session
        InvalidStateTransitionError: If item is already purchased or cancelled
    """
    updated = _item_queryset(session_id, item_id).filter(
        state__in=[ItemState.PENDING, ItemState.RESERVED],
    ).update(
        state=ItemState.CANCELLED,
        reserved_by=None,
        reservation_expires_at=None,
        updated_at=timezone.now(),
    )

    if not updated:
        item = _get_item(session_id, item_id)
        raise InvalidStateTransitionError(
            f"Cannot cancel an item in state '{item.state}'"
        )

    item = _get_item(session_id, item_id)
    logger.info("Item %s cancelled", item.id)
    _emit(events.item_cancelled, item)
    return item


@transaction.atomic
def confirm_item(
    *,
    session_id: UUID,
    item_id: UUID,
    supplier_id: UUID,
    quantity: Decimal,
    unit_cost: Decimal,
    actor: User,
) -> tuple[SessionItem, list[PurchaseLot], DailyPrice]:
    """
    Record the purchase of an item and price it.

    This operation:
    1. Validates quantity, unit cost, session and supplier
    2. Resolves the purchase unit (variant first, then item reference)
    3. Moves the item to PURCHASED with a guarded update
    4. Appends lots (one per container for discrete units)
    5. Recomputes the (session, variant) daily price

    All of it commits or rolls back together.

    Returns:
        Tuple of (item, created lots, daily price)

    Raises:
        InvalidQuantityError: If quantity/cost not positive or fractional
            container quantity
        SessionNotFoundError: If session doesn't exist
        SessionNotOpenError: If session is not open
        SupplierNotFoundError: If supplier doesn't exist or inactive
        ItemNotFoundError: If item doesn't exist in session
        InvalidStateTransitionError: If item is purchased or cancelled
        MissingPurchaseUnitError: If no purchase unit can be resolved
    """
    if quantity is None or quantity <= 0:
        raise InvalidQuantityError("Quantity must be greater than zero")
    if unit_cost is None or unit_cost <= 0:
        raise InvalidQuantityError("Unit cost must be greater than zero")

    session = _require_open_session(session_id)

    try:
        supplier = Supplier.objects.get(id=supplier_id, is_active=True)
    except Supplier.DoesNotExist:
        raise SupplierNotFoundError("Supplier not found or inactive")

    item = _get_item(session_id, item_id)
    if item.state in (ItemState.PURCHASED, ItemState.CANCELLED):
        raise InvalidStateTransitionError(
            f"Cannot confirm an item in state '{item.state}'"
        )

    variant = item.variant
    purchase_unit = variant.purchase_unit or item.reference_purchase_unit
    if not purchase_unit:
        raise MissingPurchaseUnitError(
            "Set a purchase unit on the variant or the item before confirming"
        )
    split_quantity(quantity, purchase_unit)

    updated = _item_queryset(session_id, item_id).filter(
        state__in=[ItemState.PENDING, ItemState.RESERVED],
    ).update(
        state=ItemState.PURCHASED,
        reserved_by=None,
        reservation_expires_at=None,
        updated_at=timezone.now(),
    )
    if not updated:
        raise InvalidStateTransitionError("Item was purchased or cancelled concurrently")

    lots = append_lots(
        session=session,
        variant=variant,
        supplier=supplier,
        quantity=quantity,
        unit_cost=unit_cost,
        purchase_unit=purchase_unit,
        purchased_by=actor,
    )

    daily_price = recompute_daily_price(session_id=session.id, variant_id=variant.id)

    item.refresh_from_db()
    logger.info(
        "Item %s purchased: %s %s at %s from %s (%d lots)",
        item.id, quantity, purchase_unit, unit_cost, supplier.name, len(lots),
    )
    _emit(events.item_confirmed, item, lot_ids=[lot.id for lot in lots])
    return item, lots, daily_price
