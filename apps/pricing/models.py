# ==========================================
# apps/pricing/models.py
# ==========================================

from django.db import models
import uuid

from apps.catalog.models import SaleUnit


class PricingSettingKey(models.TextChoices):
    MARGIN_PCT = 'margin_pct', 'Margin (fraction of cost)'
    ROUND_STEP = 'round_step', 'Rounding step'


class PricingSetting(models.Model):
    """Process-wide named numeric parameter read by the recompute engine."""

    key = models.CharField(max_length=50, choices=PricingSettingKey.choices, unique=True)
    value = models.DecimalField(max_digits=12, decimal_places=4)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'pricing_settings'
        ordering = ['key']

    def __str__(self):
        return f"{self.key}={self.value}"


class PricingMode(models.TextChoices):
    AUTO = 'auto', 'Automatic'
    MANUAL = 'manual', 'Manual'


class PriceStatus(models.TextChoices):
    PENDING = 'pending', 'Pending'
    PARTIAL = 'partial', 'Partial'
    READY = 'ready', 'Ready'


class DailyPrice(models.Model):
    """
    Sale price of one variant for one session.

    Written by the recompute engine only, except for the manual override
    fields which an admin sets directly. ``status`` is READY exactly when
    ``sale_price`` is set.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    session = models.ForeignKey('purchasing.PurchaseSession', on_delete=models.CASCADE, related_name='daily_prices')
    variant = models.ForeignKey('catalog.Variant', on_delete=models.PROTECT, related_name='daily_prices')

    sale_unit = models.CharField(max_length=20, choices=SaleUnit.choices, default=SaleUnit.WEIGHT)
    normalized_cost = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    margin_pct = models.DecimalField(max_digits=6, decimal_places=4)
    sale_price = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)

    pricing_mode = models.CharField(max_length=20, choices=PricingMode.choices, default=PricingMode.AUTO)
    manual_price = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    manual_set_by = models.ForeignKey(
        'accounts.User',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='manual_prices'
    )
    manual_set_at = models.DateTimeField(null=True, blank=True)
    manual_note = models.CharField(max_length=300, blank=True)

    status = models.CharField(max_length=20, choices=PriceStatus.choices, default=PriceStatus.PENDING)
    anchor_lot = models.ForeignKey(
        'purchasing.PurchaseLot',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='anchored_prices'
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'daily_prices'
        unique_together = [['session', 'variant']]
        constraints = [
            models.CheckConstraint(
                condition=(
                    models.Q(status=PriceStatus.READY, sale_price__isnull=False)
                    | (~models.Q(status=PriceStatus.READY) & models.Q(sale_price__isnull=True))
                ),
                name='daily_price_ready_iff_priced',
            ),
        ]
        indexes = [
            models.Index(fields=['variant', 'status'], name='daily_price_history_idx'),
        ]
        ordering = ['-updated_at']

    def __str__(self):
        return f"{self.variant_id} @ {self.session_id}: {self.sale_price} ({self.status})"

    @property
    def is_manual(self):
        return self.pricing_mode == PricingMode.MANUAL and self.manual_price is not None
