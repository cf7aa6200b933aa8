# ==========================================
# apps/catalog/admin.py
# ==========================================

from django.contrib import admin
from .models import Product, Variant, Supplier


class VariantInline(admin.TabularInline):
    """Inline admin for variants within a product."""
    model = Variant
    extra = 0
    fields = ['name', 'sale_unit', 'purchase_unit', 'conversion_factor', 'is_active']


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ['name', 'category', 'is_active', 'updated_at']
    list_filter = ['category', 'is_active']
    search_fields = ['name', 'category']
    inlines = [VariantInline]


@admin.register(Variant)
class VariantAdmin(admin.ModelAdmin):
    """
    Admin interface for variants.

    Conversion factors edited here only apply to prices on the next
    recompute; use the pricing conversion endpoint to recompute at once.
    """

    list_display = ['__str__', 'sale_unit', 'purchase_unit', 'conversion_factor', 'is_active']
    list_filter = ['sale_unit', 'purchase_unit', 'is_active']
    search_fields = ['name', 'product__name']
    list_select_related = ['product']


@admin.register(Supplier)
class SupplierAdmin(admin.ModelAdmin):
    list_display = ['name', 'is_active', 'created_at']
    list_filter = ['is_active']
    search_fields = ['name']
