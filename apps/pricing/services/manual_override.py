"""Manual price override - an admin fixes the sale price by hand."""

import logging
from decimal import Decimal, InvalidOperation
from uuid import UUID

from django.db import transaction
from django.utils import timezone

from apps.accounts.models import User
from apps.pricing.models import DailyPrice, PriceStatus, PricingMode
from .exceptions import DailyPriceNotFoundError, InvalidManualPriceError
from .pricing_config import get_pricing_snapshot
from .recompute import (
    CENT,
    emit_price_updated,
    get_variant,
    recompute_daily_price,
    require_unclosed_session,
)

logger = logging.getLogger(__name__)


@transaction.atomic
def set_manual_price(
    *,
    session_id: UUID,
    variant_id: UUID,
    price,
    actor: User,
    note: str = '',
) -> DailyPrice:
    """
    Pin the sale price of a variant for a session.

    Later automatic recomputes keep this price until it is cleared.

    Raises:
        InvalidManualPriceError: If price is not a positive number
        SessionNotFoundError: If session doesn't exist
        ClosedSessionError: If session is closed
        VariantNotFoundError: If variant doesn't exist
    """
    try:
        manual_price = Decimal(str(price))
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidManualPriceError("Sale price must be a number")
    if not manual_price.is_finite() or manual_price <= 0:
        raise InvalidManualPriceError("Sale price must be greater than zero")
    manual_price = manual_price.quantize(CENT)

    snapshot = get_pricing_snapshot()
    require_unclosed_session(session_id)
    variant = get_variant(variant_id)

    manual_fields = {
        'sale_unit': variant.sale_unit,
        'pricing_mode': PricingMode.MANUAL,
        'manual_price': manual_price,
        'sale_price': manual_price,
        'manual_set_by': actor,
        'manual_set_at': timezone.now(),
        'manual_note': note or '',
        'status': PriceStatus.READY,
    }
    daily_price, _ = DailyPrice.objects.update_or_create(
        session_id=session_id,
        variant_id=variant_id,
        defaults=manual_fields,
        create_defaults={**manual_fields, 'margin_pct': snapshot.margin_pct},
    )

    logger.info(
        "Manual price %s set for variant %s in session %s by %s",
        manual_price, variant_id, session_id, actor.email,
    )
    emit_price_updated(daily_price)
    return daily_price


@transaction.atomic
def clear_manual_price(*, session_id: UUID, variant_id: UUID) -> DailyPrice:
    """
    Drop a manual override and go back to the computed price.

    Raises:
        SessionNotFoundError: If session doesn't exist
        ClosedSessionError: If session is closed
        DailyPriceNotFoundError: If the variant has no price in the session
    """
    require_unclosed_session(session_id)

    try:
        daily_price = DailyPrice.objects.select_for_update().get(
            session_id=session_id,
            variant_id=variant_id,
        )
    except DailyPrice.DoesNotExist:
        raise DailyPriceNotFoundError("No daily price for this variant in this session")

    daily_price.pricing_mode = PricingMode.AUTO
    daily_price.manual_price = None
    daily_price.manual_set_by = None
    daily_price.manual_set_at = None
    daily_price.manual_note = ''
    daily_price.save(update_fields=[
        'pricing_mode',
        'manual_price',
        'manual_set_by',
        'manual_set_at',
        'manual_note',
        'updated_at',
    ])

    logger.info("Manual price cleared for variant %s in session %s", variant_id, session_id)
    return recompute_daily_price(session_id=session_id, variant_id=variant_id)

