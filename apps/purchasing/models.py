# ==========================================
# apps/purchasing/models.py
# ==========================================

from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone
from decimal import Decimal
import uuid

from apps.catalog.models import PurchaseUnit


class SessionStatus(models.TextChoices):
    PLANNING = 'planning', 'Planning'
    OPEN = 'open', 'Open'
    CLOSED = 'closed', 'Closed'


class ItemOrigin(models.TextChoices):
    PLANNED = 'planned', 'Planned'
    UNPLANNED = 'unplanned', 'Unplanned'


class ItemState(models.TextChoices):
    PENDING = 'pending', 'Pending'
    RESERVED = 'reserved', 'Reserved'
    PURCHASED = 'purchased', 'Purchased'
    CANCELLED = 'cancelled', 'Cancelled'


TERMINAL_ITEM_STATES = frozenset({ItemState.PURCHASED, ItemState.CANCELLED})


class PurchaseSession(models.Model):
    """One business day's purchasing cycle."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    # Business day this session buys for; ordering key for price history
    date_key = models.DateField(unique=True)

    status = models.CharField(
        max_length=20,
        choices=SessionStatus.choices,
        default=SessionStatus.PLANNING
    )
    created_by = models.ForeignKey(
        'accounts.User',
        on_delete=models.PROTECT,
        related_name='purchase_sessions_created'
    )
    opened_at = models.DateTimeField(null=True, blank=True)
    closed_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'purchase_sessions'
        indexes = [
            models.Index(fields=['status'], name='purchase_session_status_idx'),
        ]
        ordering = ['-date_key']

    def __str__(self):
        return f"{self.date_key} ({self.status})"

    @property
    def is_open(self):
        return self.status == SessionStatus.OPEN


class SessionItem(models.Model):
    """Planned (or unplanned) purchase line for one variant in a session."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    session = models.ForeignKey(PurchaseSession, on_delete=models.CASCADE, related_name='items')
    variant = models.ForeignKey('catalog.Variant', on_delete=models.PROTECT, related_name='session_items')

    origin = models.CharField(max_length=20, choices=ItemOrigin.choices, default=ItemOrigin.PLANNED)
    planned_quantity = models.DecimalField(
        max_digits=10,
        decimal_places=3,
        null=True,
        blank=True,
        validators=[MinValueValidator(Decimal('0.001'))]
    )
    reference_price = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    reference_purchase_unit = models.CharField(
        max_length=20,
        choices=PurchaseUnit.choices,
        blank=True,
        default=''
    )

    # Only changed through apps.purchasing.services.item_state_machine
    state = models.CharField(max_length=20, choices=ItemState.choices, default=ItemState.PENDING)
    reserved_by = models.ForeignKey(
        'accounts.User',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='reserved_items'
    )
    reservation_expires_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'purchase_session_items'
        unique_together = [['session', 'variant']]
        indexes = [
            models.Index(fields=['session', 'state'], name='session_item_state_idx'),
        ]
        ordering = ['created_at']

    def __str__(self):
        return f"{self.variant_id} @ {self.session_id} ({self.state})"

    def reservation_expired(self, now=None):
        now = now or timezone.now()
        return (
            self.state == ItemState.RESERVED
            and self.reservation_expires_at is not None
            and self.reservation_expires_at <= now
        )


class PurchaseLot(models.Model):
    """
    One real purchase. Append-only.

    Commercial facts never change after creation. The measured weight of a
    container lot may be recorded once, through the lot store.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    session = models.ForeignKey(PurchaseSession, on_delete=models.PROTECT, related_name='lots')
    variant = models.ForeignKey('catalog.Variant', on_delete=models.PROTECT, related_name='lots')
    supplier = models.ForeignKey('catalog.Supplier', on_delete=models.PROTECT, related_name='lots')

    quantity = models.DecimalField(
        max_digits=10,
        decimal_places=3,
        validators=[MinValueValidator(Decimal('0.001'))]
    )
    unit_cost = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.01'))]
    )
    purchase_unit = models.CharField(max_length=20, choices=PurchaseUnit.choices)

    measured_weight = models.DecimalField(
        max_digits=10,
        decimal_places=3,
        null=True,
        blank=True,
        validators=[MinValueValidator(Decimal('0.001'))]
    )
    weighed_at = models.DateTimeField(null=True, blank=True)

    purchased_by = models.ForeignKey(
        'accounts.User',
        on_delete=models.PROTECT,
        related_name='purchase_lots'
    )
    purchased_at = models.DateTimeField(default=timezone.now)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'purchase_lots'
        indexes = [
            models.Index(fields=['session', 'variant'], name='purchase_lot_pair_idx'),
            models.Index(fields=['variant', 'purchased_at'], name='purchase_lot_history_idx'),
        ]
        ordering = ['purchased_at', 'created_at']

    def __str__(self):
        return f"{self.quantity} {self.purchase_unit} @ {self.unit_cost}"

    @property
    def cost_timestamp(self):
        """Time used to break ties between equally priced lots."""
        return self.weighed_at or self.purchased_at
