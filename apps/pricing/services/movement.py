"""
Movement resolver - how today's price compares with the last known one.

The previous price of a variant is its READY price in the nearest session
with a strictly earlier ``date_key``. Sessions without a READY price for the
variant are skipped.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID

from django.db.models import OuterRef, QuerySet, Subquery

from apps.pricing.models import DailyPrice, PriceStatus
from apps.purchasing.models import PurchaseSession
from .exceptions import DailyPriceNotFoundError, SessionNotFoundError


class Movement(str, Enum):
    NEW = 'new'
    UP = 'up'
    DOWN = 'down'
    SAME = 'same'


@dataclass(frozen=True)
class PriceView:
    """A daily price with its comparison against the previous session."""

    price: DailyPrice
    movement: Movement
    delta: Optional[Decimal]
    previous_price: Optional[Decimal]
    previous_date_key: Optional[date]


def resolve_movement(
    today: Optional[Decimal],
    previous: Optional[Decimal],
) -> tuple[Movement, Optional[Decimal]]:
    if today is None or previous is None:
        return Movement.NEW, None

    delta = today - previous
    if delta > 0:
        return Movement.UP, delta
    if delta < 0:
        return Movement.DOWN, delta
    return Movement.SAME, delta


def _with_previous(queryset: QuerySet[DailyPrice]) -> QuerySet[DailyPrice]:
    previous = (
        DailyPrice.objects
        .filter(
            variant_id=OuterRef('variant_id'),
            status=PriceStatus.READY,
            session__date_key__lt=OuterRef('session__date_key'),
        )
        .order_by('-session__date_key')
    )
    return queryset.annotate(
        previous_price=Subquery(previous.values('sale_price')[:1]),
        previous_date_key=Subquery(previous.values('session__date_key')[:1]),
    )


def _to_view(price: DailyPrice) -> PriceView:
    movement, delta = resolve_movement(price.sale_price, price.previous_price)
    return PriceView(
        price=price,
        movement=movement,
        delta=delta,
        previous_price=price.previous_price,
        previous_date_key=price.previous_date_key,
    )


def _base_queryset() -> QuerySet[DailyPrice]:
    return DailyPrice.objects.select_related(
        'session',
        'variant__product',
        'anchor_lot',
        'manual_set_by',
    )


def get_daily_price(*, session_id: UUID, variant_id: UUID) -> PriceView:
    """
    Raises:
        DailyPriceNotFoundError: If the variant has no price in the session
    """
    try:
        price = _with_previous(_base_queryset()).get(
            session_id=session_id,
            variant_id=variant_id,
        )
    except DailyPrice.DoesNotExist:
        raise DailyPriceNotFoundError("No daily price for this variant in this session")
    return _to_view(price)


def list_daily_prices(*, session_id: UUID, only_ready: bool = False) -> list[PriceView]:
    """
    All prices of a session enriched with movement against the previous one.

    Raises:
        SessionNotFoundError: If session doesn't exist
    """
    if not PurchaseSession.objects.filter(id=session_id).exists():
        raise SessionNotFoundError("Purchase session not found")

    queryset = _base_queryset().filter(session_id=session_id)
    if only_ready:
        queryset = queryset.filter(status=PriceStatus.READY)

    queryset = _with_previous(queryset).order_by('variant__product__name', 'variant__name')
    return [_to_view(price) for price in queryset]
