"""
Lot store - append-only record of real purchases.

Lots are only created by purchase confirmation. The single write allowed
afterwards is recording the measured weight of a container lot, once.
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from django.db import transaction
from django.db.models import DecimalField, ExpressionWrapper, F, Max, QuerySet, Sum
from django.utils import timezone

from apps.accounts.models import User
from apps.catalog.models import DISCRETE_CONTAINER_UNITS, Supplier, Variant
from apps.pricing.services.recompute import recompute_daily_price
from apps.purchasing.models import PurchaseLot, PurchaseSession, SessionStatus
from .exceptions import (
    InvalidQuantityError,
    InvalidSessionTransitionError,
    LotAlreadyWeighedError,
    LotNotFoundError,
    NotWeighableLotError,
)

logger = logging.getLogger(__name__)

MAX_CONTAINERS_PER_PURCHASE = 500


def is_discrete_container(purchase_unit: str) -> bool:
    return purchase_unit in DISCRETE_CONTAINER_UNITS


def split_quantity(quantity: Decimal, purchase_unit: str) -> list[Decimal]:
    """
    Quantities of the lots a purchase is recorded as.

    Discrete containers become one lot per physical unit so each can be
    weighed on its own; continuous units stay a single lot.

    Raises:
        InvalidQuantityError: If quantity is not positive, or a container
            quantity is fractional or above ``MAX_CONTAINERS_PER_PURCHASE``
    """
    if quantity <= 0:
        raise InvalidQuantityError("Quantity must be greater than zero")

    if not is_discrete_container(purchase_unit):
        return [quantity]

    if quantity != quantity.to_integral_value():
        raise InvalidQuantityError(
            f"Quantity for '{purchase_unit}' must be a whole number"
        )
    if quantity > MAX_CONTAINERS_PER_PURCHASE:
        raise InvalidQuantityError(
            f"At most {MAX_CONTAINERS_PER_PURCHASE} '{purchase_unit}' can be bought at once"
        )
    return [Decimal('1')] * int(quantity)


def append_lots(
    *,
    session: PurchaseSession,
    variant: Variant,
    supplier: Supplier,
    quantity: Decimal,
    unit_cost: Decimal,
    purchase_unit: str,
    purchased_by: User,
    purchased_at: Optional[datetime] = None,
) -> list[PurchaseLot]:
    """
    Record a purchase as one or more lots.

    Must run inside the caller's transaction; nothing else creates lots.

    Raises:
        InvalidQuantityError: If quantity or unit cost is not positive, or a
            container quantity is fractional or too large
    """
    if unit_cost is None or unit_cost <= 0:
        raise InvalidQuantityError("Unit cost must be greater than zero")

    purchased_at = purchased_at or timezone.now()
    lots = [
        PurchaseLot(
            session=session,
            variant=variant,
            supplier=supplier,
            quantity=lot_quantity,
            unit_cost=unit_cost,
            purchase_unit=purchase_unit,
            purchased_by=purchased_by,
            purchased_at=purchased_at,
        )
        for lot_quantity in split_quantity(quantity, purchase_unit)
    ]
    return PurchaseLot.objects.bulk_create(lots)


def list_lots(
    *,
    session_id: Optional[UUID] = None,
    variant_id: Optional[UUID] = None,
) -> QuerySet[PurchaseLot]:
    queryset = PurchaseLot.objects.select_related(
        'variant__product',
        'supplier',
        'purchased_by',
    )
    if session_id is not None:
        queryset = queryset.filter(session_id=session_id)
    if variant_id is not None:
        queryset = queryset.filter(variant_id=variant_id)
    return queryset.order_by('purchased_at', 'created_at', 'id')


def get_lot(*, lot_id: UUID) -> PurchaseLot:
    try:
        return PurchaseLot.objects.select_related('session').get(id=lot_id)
    except PurchaseLot.DoesNotExist:
        raise LotNotFoundError("Purchase lot not found")


@transaction.atomic
def weigh_lot(*, lot_id: UUID, measured_weight: Decimal) -> PurchaseLot:
    """
    Record the measured net weight of a container lot.

    The weight can be set once. The (session, variant) price is recomputed
    in the same transaction since a weighed lot normalizes by its real
    weight.

    Raises:
        InvalidQuantityError: If weight is not positive
        LotNotFoundError: If lot doesn't exist
        NotWeighableLotError: If lot was not bought in a container unit
        InvalidSessionTransitionError: If the lot's session is closed
        LotAlreadyWeighedError: If a weight was already recorded
    """
    if measured_weight is None or measured_weight <= 0:
        raise InvalidQuantityError("Measured weight must be greater than zero")

    lot = get_lot(lot_id=lot_id)

    if not is_discrete_container(lot.purchase_unit):
        raise NotWeighableLotError(
            f"Lots bought by '{lot.purchase_unit}' are not weighed"
        )
    if lot.session.status == SessionStatus.CLOSED:
        raise InvalidSessionTransitionError("Cannot weigh lots of a closed session")

    updated = PurchaseLot.objects.filter(
        id=lot_id,
        measured_weight__isnull=True,
    ).update(measured_weight=measured_weight, weighed_at=timezone.now())
    if not updated:
        raise LotAlreadyWeighedError("Lot has already been weighed")

    lot.refresh_from_db()
    logger.info("Lot %s weighed at %s kg", lot.id, measured_weight)

    recompute_daily_price(session_id=lot.session_id, variant_id=lot.variant_id)
    return lot


def purchase_summary(*, session_id: UUID) -> dict[UUID, dict]:
    """
    Bought quantity, total spend and last purchase time per variant.

    Returns:
        Mapping of variant id to ``{'bought_quantity', 'bought_total',
        'last_purchased_at'}``
    """
    rows = (
        PurchaseLot.objects
        .filter(session_id=session_id)
        .values('variant_id')
        .annotate(
            bought_quantity=Sum('quantity'),
            bought_total=Sum(ExpressionWrapper(
                F('quantity') * F('unit_cost'),
                output_field=DecimalField(max_digits=20, decimal_places=5),
            )),
            last_purchased_at=Max('purchased_at'),
        )
        .order_by()
    )
    return {
        row['variant_id']: {
            'bought_quantity': row['bought_quantity'] or Decimal('0'),
            'bought_total': (row['bought_total'] or Decimal('0')).quantize(Decimal('0.01')),
            'last_purchased_at': row['last_purchased_at'],
        }
        for row in rows
    }


def empty_summary() -> dict:
    return {
        'bought_quantity': Decimal('0'),
        'bought_total': Decimal('0.00'),
        'last_purchased_at': None,
    }
