"""
Pricing services - Business logic layer.

This package contains all business operations for the pricing app:
- Unit and cost normalization
- Daily price recompute (per variant, per session, open sessions)
- Manual overrides and conversion factor updates
- Movement against the previous session
"""

# Normalizer
from .normalizer import (
    LotCost,
    UnitConfig,
    normalize_cost,
    round_up,
)

# Settings
from .pricing_config import (
    PricingSnapshot,
    get_pricing_snapshot,
    update_pricing_settings,
    normalize_margin,
)

# Recompute engine
from .recompute import (
    select_anchor,
    recompute_daily_price,
    recompute_session,
    recompute_open_sessions,
    change_pricing_settings,
)

# Manual override
from .manual_override import (
    set_manual_price,
    clear_manual_price,
)

from .conversion import set_conversion_factor

# Movement
from .movement import (
    Movement,
    PriceView,
    resolve_movement,
    get_daily_price,
    list_daily_prices,
)

from .pending import list_pending_prices

# Domain Exceptions
from .exceptions import (
    PricingServiceError,
    PricingConfigError,
    SessionNotFoundError,
    VariantNotFoundError,
    DailyPriceNotFoundError,
    InvalidManualPriceError,
    InvalidConversionError,
    InvalidPricingSettingError,
    ClosedSessionError,
)

__all__ = [
    # Normalizer
    'LotCost',
    'UnitConfig',
    'normalize_cost',
    'round_up',
    # Settings
    'PricingSnapshot',
    'get_pricing_snapshot',
    'update_pricing_settings',
    'normalize_margin',
    # Recompute Engine
    'select_anchor',
    'recompute_daily_price',
    'recompute_session',
    'recompute_open_sessions',
    'change_pricing_settings',
    # Manual Override
    'set_manual_price',
    'clear_manual_price',
    'set_conversion_factor',
    # Movement
    'Movement',
    'PriceView',
    'resolve_movement',
    'get_daily_price',
    'list_daily_prices',
    'list_pending_prices',
    # Exceptions
    'PricingServiceError',
    'PricingConfigError',
    'SessionNotFoundError',
    'VariantNotFoundError',
    'DailyPriceNotFoundError',
    'InvalidManualPriceError',
    'InvalidConversionError',
    'InvalidPricingSettingError',
    'ClosedSessionError',
]
