"""Prices still waiting for lots or a conversion factor."""

from uuid import UUID

from django.db.models import OuterRef, Subquery

from apps.pricing.models import DailyPrice, PriceStatus, PricingMode
from apps.purchasing.models import PurchaseSession
from .exceptions import SessionNotFoundError


def list_pending_prices(*, session_id: UUID) -> list[DailyPrice]:
    """
    PENDING and PARTIAL prices of a session.

    Each one carries ``suggested_price``: the manual price most recently set
    for the same variant in another session, to help an admin fill the gap.
    """
    if not PurchaseSession.objects.filter(id=session_id).exists():
        raise SessionNotFoundError("Purchase session not found")

    last_manual = (
        DailyPrice.objects
        .filter(
            variant_id=OuterRef('variant_id'),
            pricing_mode=PricingMode.MANUAL,
            manual_price__isnull=False,
        )
        .exclude(session_id=session_id)
        .order_by('-manual_set_at', '-updated_at')
    )
    return list(
        DailyPrice.objects
        .select_related('variant__product')
        .filter(
            session_id=session_id,
            status__in=[PriceStatus.PENDING, PriceStatus.PARTIAL],
        )
        .annotate(suggested_price=Subquery(last_manual.values('manual_price')[:1]))
        .order_by('-updated_at')
    )
