"""Reference price lookup used when planning a session item."""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional
from uuid import UUID

from apps.pricing.models import DailyPrice
from apps.purchasing.models import PurchaseLot


@dataclass(frozen=True)
class ReferencePrice:
    price: Optional[Decimal]
    purchase_unit: str
    source: str  # 'lot', 'daily_price' or 'none'


NO_REFERENCE = ReferencePrice(price=None, purchase_unit='', source='none')


def last_reference_for_variant(*, variant_id: UUID) -> ReferencePrice:
    """
    Last known purchase cost for a variant.

    Prefers the most recent real lot in any session. Falls back to the most
    recently updated daily price with a computed cost, expressed in the
    sale unit.
    """
    last_lot = (
        PurchaseLot.objects
        .filter(variant_id=variant_id)
        .order_by('-purchased_at', '-created_at')
        .only('unit_cost', 'purchase_unit')
        .first()
    )
    if last_lot is not None:
        return ReferencePrice(
            price=last_lot.unit_cost,
            purchase_unit=last_lot.purchase_unit,
            source='lot',
        )

    last_price = (
        DailyPrice.objects
        .filter(variant_id=variant_id, normalized_cost__isnull=False)
        .order_by('-updated_at', '-created_at')
        .only('normalized_cost', 'sale_unit')
        .first()
    )
    if last_price is not None:
        return ReferencePrice(
            price=last_price.normalized_cost,
            purchase_unit=last_price.sale_unit,
            source='daily_price',
        )

    return NO_REFERENCE
