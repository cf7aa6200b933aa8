"""Item planning service - building and reading a session's shopping list."""

import logging
from decimal import Decimal
from typing import Optional
from uuid import UUID

from django.db import transaction, IntegrityError
from django.utils import timezone

from apps.catalog.models import PurchaseUnit, Variant
from apps.core import events
from apps.purchasing.models import (
    ItemOrigin,
    ItemState,
    SessionItem,
    SessionStatus,
)
from .exceptions import (
    DuplicateSessionItemError,
    InvalidQuantityError,
    InvalidSessionTransitionError,
    InvalidStateTransitionError,
    ItemNotFoundError,
    VariantNotFoundError,
)
from .lot_store import empty_summary, purchase_summary
from .reference_prices import last_reference_for_variant
from .session_lifecycle import get_session, lock_session

logger = logging.getLogger(__name__)

# Marker for "argument not supplied" on partial updates
UNSET = object()


def _check_positive(value, label):
    if value is not None and value <= 0:
        raise InvalidQuantityError(f"{label} must be greater than zero")


def _editable_item(session_id: UUID, item_id: UUID) -> SessionItem:
    """Lock an item that may still be edited or removed from the plan."""
    session = lock_session(session_id)
    if session.status != SessionStatus.PLANNING:
        raise InvalidSessionTransitionError("Items can only be changed while planning")

    try:
        item = SessionItem.objects.select_for_update().get(id=item_id, session_id=session_id)
    except SessionItem.DoesNotExist:
        raise ItemNotFoundError("Item not found in this session")

    if item.origin != ItemOrigin.PLANNED:
        raise InvalidStateTransitionError("Only planned items can be changed")
    if item.state != ItemState.PENDING:
        raise InvalidStateTransitionError(
            f"Cannot change an item in state '{item.state}'"
        )
    return item


@transaction.atomic
def add_item(
    *,
    session_id: UUID,
    variant_id: UUID,
    origin: str = ItemOrigin.PLANNED,
    planned_quantity: Optional[Decimal] = None,
    reference_price: Optional[Decimal] = None,
    reference_purchase_unit: Optional[str] = None,
) -> SessionItem:
    """
    Add a variant to a session's list.

    Without a reference price the last real purchase of the variant is used,
    then the latest computed daily cost. The reference unit falls back to the
    variant's purchase unit and then its sale unit.

    Raises:
        InvalidQuantityError: If quantity or reference price not positive
        SessionNotFoundError: If session doesn't exist
        InvalidSessionTransitionError: If session is closed
        VariantNotFoundError: If variant doesn't exist or inactive
        DuplicateSessionItemError: If variant already listed in session
    """
    _check_positive(planned_quantity, "Planned quantity")
    _check_positive(reference_price, "Reference price")

    session = lock_session(session_id)
    if session.status not in (SessionStatus.PLANNING, SessionStatus.OPEN):
        raise InvalidSessionTransitionError("Cannot add items to a closed session")

    try:
        variant = Variant.objects.get(id=variant_id, is_active=True)
    except Variant.DoesNotExist:
        raise VariantNotFoundError("Variant not found or inactive")

    if SessionItem.objects.filter(session_id=session_id, variant_id=variant_id).exists():
        raise DuplicateSessionItemError("Variant is already on this session's list")

    reference_unit = reference_purchase_unit or ''
    if reference_price is None:
        reference = last_reference_for_variant(variant_id=variant.id)
        reference_price = reference.price
        reference_unit = reference.purchase_unit
    if not reference_unit:
        reference_unit = variant.purchase_unit or variant.sale_unit or PurchaseUnit.WEIGHT

    try:
        item = SessionItem.objects.create(
            session=session,
            variant=variant,
            origin=origin,
            planned_quantity=planned_quantity,
            reference_price=reference_price,
            reference_purchase_unit=reference_unit,
        )
    except IntegrityError:
        raise DuplicateSessionItemError("Variant is already on this session's list")

    events.emit_on_commit(
        events.item_added,
        SessionItem,
        session_id=session.id,
        variant_id=variant.id,
        item_id=item.id,
    )
    return item


@transaction.atomic
def update_item_plan(
    *,
    session_id: UUID,
    item_id: UUID,
    planned_quantity=UNSET,
    reference_price=UNSET,
    reference_purchase_unit=UNSET,
) -> SessionItem:
    """
    Edit the plan of a pending, planned item while the session is planning.

    Only supplied fields change; ``None`` clears quantity or price.
    """
    item = _editable_item(session_id, item_id)

    update_fields = []
    if planned_quantity is not UNSET:
        _check_positive(planned_quantity, "Planned quantity")
        item.planned_quantity = planned_quantity
        update_fields.append('planned_quantity')
    if reference_price is not UNSET:
        _check_positive(reference_price, "Reference price")
        item.reference_price = reference_price
        update_fields.append('reference_price')
    if reference_purchase_unit is not UNSET:
        item.reference_purchase_unit = reference_purchase_unit or ''
        update_fields.append('reference_purchase_unit')

    if update_fields:
        item.save(update_fields=update_fields + ['updated_at'])
        events.emit_on_commit(
            events.item_updated,
            SessionItem,
            session_id=item.session_id,
            variant_id=item.variant_id,
            item_id=item.id,
        )
    return item


@transaction.atomic
def remove_item(*, session_id: UUID, item_id: UUID) -> None:
    """Take a pending, planned item off the list while the session is planning."""
    item = _editable_item(session_id, item_id)
    variant_id = item.variant_id
    item.delete()

    events.emit_on_commit(
        events.item_removed,
        SessionItem,
        session_id=session_id,
        variant_id=variant_id,
        item_id=item_id,
    )


def list_session_items(*, session_id: UUID) -> list[SessionItem]:
    """
    Items of a session as buyers should see them.

    An expired reservation is shown as PENDING with no holder; nothing is
    written. Each item gets a ``purchase`` attribute with what has been
    bought for its variant so far.
    """
    get_session(session_id=session_id)

    items = list(
        SessionItem.objects
        .filter(session_id=session_id)
        .select_related('variant__product', 'reserved_by')
        .order_by('created_at')
    )
    summary = purchase_summary(session_id=session_id)
    now = timezone.now()

    for item in items:
        if item.reservation_expired(now):
            item.state = ItemState.PENDING
            item.reserved_by = None
            item.reservation_expires_at = None
        item.purchase = summary.get(item.variant_id, empty_summary())
    return items
