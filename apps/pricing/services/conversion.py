"""Variant conversion factor updates and the recomputes they imply."""

import logging
from decimal import Decimal, InvalidOperation
from typing import Optional
from uuid import UUID

from django.db import transaction

from apps.catalog.models import Variant
from apps.pricing.models import DailyPrice
from apps.purchasing.models import PurchaseLot, SessionStatus
from .exceptions import InvalidConversionError, VariantNotFoundError
from .recompute import recompute_daily_price, require_unclosed_session

logger = logging.getLogger(__name__)


def parse_conversion_factor(value) -> Optional[Decimal]:
    """Blank means "no factor"; anything else must be a positive number."""
    if value is None or value == '':
        return None
    try:
        factor = Decimal(str(value).replace(',', '.'))
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidConversionError("Conversion factor must be a number")
    if not factor.is_finite() or factor <= 0:
        raise InvalidConversionError("Conversion factor must be greater than zero")
    return factor


@transaction.atomic
def set_conversion_factor(
    *,
    variant_id: UUID,
    conversion_factor,
    session_id: Optional[UUID] = None,
) -> list[DailyPrice]:
    """
    Change how a variant's purchase unit converts into its sale unit.

    Recomputes the given session, or when none is given every session that
    is not closed and has lots of the variant.

    Raises:
        InvalidConversionError: If factor not positive or variant has no
            purchase unit
        VariantNotFoundError: If variant doesn't exist
        SessionNotFoundError: If the given session doesn't exist
        ClosedSessionError: If the given session is closed
    """
    factor = parse_conversion_factor(conversion_factor)
    if session_id is not None:
        require_unclosed_session(session_id)

    try:
        variant = Variant.objects.select_for_update().get(id=variant_id)
    except Variant.DoesNotExist:
        raise VariantNotFoundError("Variant not found")

    if factor is not None and not variant.purchase_unit:
        raise InvalidConversionError("Variant has no purchase unit to convert from")

    variant.conversion_factor = factor
    variant.save(update_fields=['conversion_factor', 'updated_at'])
    logger.info("Variant %s conversion factor set to %s", variant.id, factor)

    if session_id is not None:
        session_ids = [session_id]
    else:
        session_ids = list(
            PurchaseLot.objects
            .filter(variant_id=variant.id)
            .exclude(session__status=SessionStatus.CLOSED)
            .order_by('session_id')
            .values_list('session_id', flat=True)
            .distinct()
        )

    return [
        recompute_daily_price(session_id=sid, variant_id=variant.id)
        for sid in session_ids
    ]
