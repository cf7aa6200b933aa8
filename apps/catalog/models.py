# ==========================================
# apps/catalog/models.py
# ==========================================

from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models
from decimal import Decimal
import uuid


class SaleUnit(models.TextChoices):
    WEIGHT = 'weight', 'Weight (kg)'
    BUNCH = 'bunch', 'Bunch'
    PIECE = 'piece', 'Piece'
    TRAY = 'tray', 'Tray'
    BAG = 'bag', 'Bag'


class PurchaseUnit(models.TextChoices):
    WEIGHT = 'weight', 'Weight (kg)'
    BUNCH = 'bunch', 'Bunch'
    PIECE = 'piece', 'Piece'
    TRAY = 'tray', 'Tray'
    BAG = 'bag', 'Bag'
    BOX = 'box', 'Box'
    BALE = 'bale', 'Bale'


# Units bought as whole physical containers. Quantities must be integral and
# each container becomes its own lot so it can be weighed on its own.
DISCRETE_CONTAINER_UNITS = frozenset({
    PurchaseUnit.BOX,
    PurchaseUnit.BAG,
    PurchaseUnit.BALE,
    PurchaseUnit.BUNCH,
})


class Product(models.Model):
    """A product as the customer knows it (e.g. tomato)."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=200, db_index=True)
    category = models.CharField(max_length=100, blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'products'
        ordering = ['category', 'name']

    def __str__(self):
        return self.name


class Variant(models.Model):
    """
    Sellable configuration of a product with its unit settings.

    ``conversion_factor`` is read relative to the unit pair: kilograms per
    container when selling by weight, bunches per bale, pieces per box/bag,
    trays or bags per box.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name='variants')
    name = models.CharField(max_length=200)

    sale_unit = models.CharField(max_length=20, choices=SaleUnit.choices, default=SaleUnit.WEIGHT)
    purchase_unit = models.CharField(max_length=20, choices=PurchaseUnit.choices, blank=True, default='')
    conversion_factor = models.DecimalField(
        max_digits=10,
        decimal_places=4,
        null=True,
        blank=True,
        validators=[MinValueValidator(Decimal('0.0001'))]
    )

    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'variants'
        unique_together = [['product', 'name']]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(conversion_factor__isnull=True) | ~models.Q(purchase_unit=''),
                name='variant_conversion_requires_purchase_unit',
            ),
        ]
        ordering = ['product__name', 'name']

    def __str__(self):
        return f"{self.product.name} - {self.name}"

    def clean(self):
        if self.conversion_factor is not None and not self.purchase_unit:
            raise ValidationError({
                'purchase_unit': 'A purchase unit is required when a conversion factor is set.'
            })


class Supplier(models.Model):
    """Wholesale stall or grower we buy from."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=200, unique=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'suppliers'
        ordering = ['name']

    def __str__(self):
        return self.name
