"""Pricing settings - margin and rounding step read fresh for every computation."""

import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

from django.conf import settings
from django.db import DatabaseError, transaction

from apps.pricing.models import PricingSetting, PricingSettingKey
from .exceptions import InvalidPricingSettingError, PricingConfigError

logger = logging.getLogger(__name__)

MAX_MARGIN_PCT = Decimal('2')


@dataclass(frozen=True)
class PricingSnapshot:
    """Margin and rounding step as read at the start of one computation."""

    margin_pct: Decimal
    round_step: Decimal


def normalize_margin(value) -> Decimal:
    """
    Accept a margin as a fraction (0.35) or a percentage (35).

    Values above 1 are read as percentages.

    Raises:
        InvalidPricingSettingError: If not a number or not in (0, 2)
    """
    try:
        margin = Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidPricingSettingError("Margin must be a number, e.g. 0.35 or 35")

    if not margin.is_finite():
        raise InvalidPricingSettingError("Margin must be a number, e.g. 0.35 or 35")
    if margin > 1:
        margin = margin / 100
    if not (0 < margin < MAX_MARGIN_PCT):
        raise InvalidPricingSettingError("Margin must be greater than 0 and less than 2")
    return margin


def _valid_snapshot(margin_pct: Decimal, round_step: Decimal) -> bool:
    return 0 < margin_pct < MAX_MARGIN_PCT and round_step > 0


def get_pricing_snapshot() -> PricingSnapshot:
    """
    Read current margin and rounding step.

    Missing rows fall back to ``PRICING_DEFAULT_MARGIN_PCT`` and
    ``PRICING_DEFAULT_ROUND_STEP``. Never cached.

    Raises:
        PricingConfigError: If the settings table cannot be read or holds
            values no price can be computed with
    """
    try:
        stored = dict(PricingSetting.objects.values_list('key', 'value'))
    except DatabaseError as exc:
        logger.error("Pricing settings could not be read: %s", exc)
        raise PricingConfigError("Pricing settings are unavailable") from exc

    snapshot = PricingSnapshot(
        margin_pct=Decimal(stored.get(PricingSettingKey.MARGIN_PCT.value, settings.PRICING_DEFAULT_MARGIN_PCT)),
        round_step=Decimal(stored.get(PricingSettingKey.ROUND_STEP.value, settings.PRICING_DEFAULT_ROUND_STEP)),
    )
    if not _valid_snapshot(snapshot.margin_pct, snapshot.round_step):
        raise PricingConfigError(
            f"Stored pricing settings are unusable: margin={snapshot.margin_pct} "
            f"round_step={snapshot.round_step}"
        )
    return snapshot


@transaction.atomic
def update_pricing_settings(
    *,
    margin_pct=None,
    round_step=None,
) -> PricingSnapshot:
    """
    Store a new margin and/or rounding step.

    Does not recompute anything; see ``change_pricing_settings``.

    Raises:
        InvalidPricingSettingError: If margin not in (0, 2) or step not positive
    """
    updates = {}
    if margin_pct is not None:
        updates[PricingSettingKey.MARGIN_PCT] = normalize_margin(margin_pct)
    if round_step is not None:
        try:
            step = Decimal(str(round_step))
        except (InvalidOperation, TypeError, ValueError):
            raise InvalidPricingSettingError("Rounding step must be a number")
        if not step.is_finite() or step <= 0:
            raise InvalidPricingSettingError("Rounding step must be greater than zero")
        updates[PricingSettingKey.ROUND_STEP] = step

    for key, value in updates.items():
        PricingSetting.objects.update_or_create(key=key, defaults={'value': value})
        logger.info("Pricing setting %s set to %s", key, value)

    return get_pricing_snapshot()

