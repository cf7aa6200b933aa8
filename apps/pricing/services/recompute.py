"""
Pricing recompute engine.

Derives the daily sale price of a (session, variant) pair from its lots:

    anchor cost  = highest normalized lot cost (ties -> most recent lot)
    sale price   = round_up(anchor cost * (1 + margin), round step)

The result depends only on persisted lots, the variant's unit settings and
the pricing settings, so every recompute can be retried safely. An active
manual override is never replaced by the automatic price.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Optional
from uuid import UUID

from django.db import transaction

from apps.catalog.models import Variant
from apps.core import events
from apps.pricing.models import DailyPrice, PriceStatus, PricingMode
from apps.purchasing.models import PurchaseLot, PurchaseSession, SessionStatus
from .exceptions import ClosedSessionError, SessionNotFoundError, VariantNotFoundError
from .normalizer import LotCost, UnitConfig, normalize_cost, round_up
from .pricing_config import PricingSnapshot, get_pricing_snapshot, update_pricing_settings

logger = logging.getLogger(__name__)

CENT = Decimal('0.01')


@dataclass(frozen=True)
class AnchorChoice:
    lot: PurchaseLot
    cost: Decimal


def select_anchor(lots: Iterable[PurchaseLot], unit_config: UnitConfig) -> Optional[AnchorChoice]:
    """
    Pick the lot whose normalized cost sets the price.

    ``lots`` must be ordered by (purchased_at, created_at, id); among equal
    costs and equal timestamps the later lot in that order wins.
    """
    best = None
    best_time = None
    for lot in lots:
        cost = normalize_cost(LotCost.from_lot(lot), unit_config)
        if cost is None:
            continue
        lot_time = lot.cost_timestamp
        if best is None or cost > best.cost or (cost == best.cost and lot_time >= best_time):
            best = AnchorChoice(lot=lot, cost=cost)
            best_time = lot_time
    return best


def compute_sale_price(cost: Decimal, snapshot: PricingSnapshot) -> Decimal:
    return round_up(cost * (1 + snapshot.margin_pct), snapshot.round_step).quantize(CENT)


def get_variant(variant_id: UUID) -> Variant:
    try:
        return Variant.objects.get(id=variant_id)
    except Variant.DoesNotExist:
        raise VariantNotFoundError("Variant not found")


def require_unclosed_session(session_id: UUID) -> PurchaseSession:
    try:
        session = PurchaseSession.objects.get(id=session_id)
    except PurchaseSession.DoesNotExist:
        raise SessionNotFoundError("Purchase session not found")

    if session.status == SessionStatus.CLOSED:
        raise ClosedSessionError("Prices of a closed session can no longer change")
    return session


def emit_price_updated(price: DailyPrice) -> None:
    events.emit_on_commit(
        events.daily_price_updated,
        DailyPrice,
        session_id=price.session_id,
        variant_id=price.variant_id,
    )


@transaction.atomic
def recompute_daily_price(*, session_id: UUID, variant_id: UUID) -> DailyPrice:
    """
    Recompute and store the daily price of one variant in one session.

    Outcomes:
    - manual override active: sale price re-asserted from it, READY
    - no lots: PENDING, no cost or price
    - lots but none expressible in the sale unit: PARTIAL, no cost or price
    - otherwise: READY with the anchor lot recorded

    Raises:
        PricingConfigError: If pricing settings cannot be read
        SessionNotFoundError: If session doesn't exist
        ClosedSessionError: If session is closed
        VariantNotFoundError: If variant doesn't exist
    """
    snapshot = get_pricing_snapshot()
    require_unclosed_session(session_id)
    variant = get_variant(variant_id)

    existing = (
        DailyPrice.objects
        .select_for_update()
        .filter(session_id=session_id, variant_id=variant_id)
        .first()
    )
    if existing is not None and existing.is_manual:
        existing.sale_unit = variant.sale_unit
        existing.margin_pct = snapshot.margin_pct
        existing.sale_price = existing.manual_price
        existing.status = PriceStatus.READY
        existing.save(update_fields=['sale_unit', 'margin_pct', 'sale_price', 'status', 'updated_at'])
        emit_price_updated(existing)
        return existing

    lots = list(
        PurchaseLot.objects
        .filter(session_id=session_id, variant_id=variant_id)
        .order_by('purchased_at', 'created_at', 'id')
    )
    anchor = select_anchor(lots, UnitConfig.from_variant(variant))

    values = {
        'sale_unit': variant.sale_unit,
        'margin_pct': snapshot.margin_pct,
        'pricing_mode': PricingMode.AUTO,
        'manual_price': None,
        'manual_set_by': None,
        'manual_set_at': None,
        'manual_note': '',
    }
    if anchor is None:
        values.update(
            normalized_cost=None,
            sale_price=None,
            anchor_lot=None,
            status=PriceStatus.PARTIAL if lots else PriceStatus.PENDING,
        )
        if lots:
            logger.warning(
                "Variant %s in session %s has %d lots but none convert to '%s'",
                variant_id, session_id, len(lots), variant.sale_unit,
            )
    else:
        values.update(
            normalized_cost=anchor.cost.quantize(CENT),
            sale_price=compute_sale_price(anchor.cost, snapshot),
            anchor_lot=anchor.lot,
            status=PriceStatus.READY,
        )
        logger.debug(
            "Variant %s in session %s anchored on lot %s at %s",
            variant_id, session_id, anchor.lot.id, anchor.cost,
        )

    price, _ = DailyPrice.objects.update_or_create(
        session_id=session_id,
        variant_id=variant_id,
        defaults=values,
    )
    emit_price_updated(price)
    return price


@transaction.atomic
def recompute_session(*, session_id: UUID) -> list[DailyPrice]:
    """
    Recompute every variant bought in a session.

    Raises:
        SessionNotFoundError: If session doesn't exist
        ClosedSessionError: If session is closed
    """
    require_unclosed_session(session_id)

    variant_ids = list(
        PurchaseLot.objects
        .filter(session_id=session_id)
        .order_by('variant_id')
        .values_list('variant_id', flat=True)
        .distinct()
    )
    prices = [
        recompute_daily_price(session_id=session_id, variant_id=variant_id)
        for variant_id in variant_ids
    ]
    logger.info("Recomputed %d prices for session %s", len(prices), session_id)
    return prices


@transaction.atomic
def recompute_open_sessions() -> list[DailyPrice]:
    """Recompute every open session, e.g. after the margin changed."""
    prices = []
    session_ids = PurchaseSession.objects.filter(
        status=SessionStatus.OPEN,
    ).values_list('id', flat=True)
    for session_id in session_ids:
        prices.extend(recompute_session(session_id=session_id))
    return prices


@transaction.atomic
def change_pricing_settings(
    *,
    margin_pct=None,
    round_step=None,
) -> tuple[PricingSnapshot, list[DailyPrice]]:
    """
    Store new pricing settings and reprice every open session with them.

    The settings are only kept if the whole sweep succeeds.

    Raises:
        InvalidPricingSettingError: If margin not in (0, 2) or step not positive
        PricingConfigError: If pricing settings cannot be read
    """
    snapshot = update_pricing_settings(margin_pct=margin_pct, round_step=round_step)
    if margin_pct is None and round_step is None:
        return snapshot, []
    return snapshot, recompute_open_sessions()
