# ==========================================
# apps/pricing/admin.py
# ==========================================

from django.contrib import admin
from .models import PricingSetting, DailyPrice


@admin.register(PricingSetting)
class PricingSettingAdmin(admin.ModelAdmin):
    """
    Margin and rounding step.

    Changes made here apply on the next recompute only; the settings API
    endpoint also recomputes open sessions.
    """

    list_display = ['key', 'value', 'updated_at']


@admin.register(DailyPrice)
class DailyPriceAdmin(admin.ModelAdmin):
    """Daily prices are written by the recompute engine; read-only here."""

    list_display = [
        'variant',
        'session',
        'status',
        'pricing_mode',
        'normalized_cost',
        'sale_price',
        'updated_at',
    ]
    list_filter = ['status', 'pricing_mode', 'sale_unit']
    search_fields = ['variant__name', 'variant__product__name']
    list_select_related = ['variant__product', 'session']
    ordering = ['-updated_at']

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False
