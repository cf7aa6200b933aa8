# ==========================================
# apps/purchasing/admin.py
# ==========================================

from django.contrib import admin
from .models import PurchaseSession, SessionItem, PurchaseLot


class SessionItemInline(admin.TabularInline):
    model = SessionItem
    extra = 0
    fields = ['variant', 'origin', 'planned_quantity', 'reference_price', 'state', 'reserved_by']
    readonly_fields = ['state', 'reserved_by']
    raw_id_fields = ['variant']


@admin.register(PurchaseSession)
class PurchaseSessionAdmin(admin.ModelAdmin):
    """
    Sessions are opened and closed through the API so that the close-time
    price sweep always runs; status is read-only here.
    """

    list_display = ['date_key', 'status', 'created_by', 'opened_at', 'closed_at']
    list_filter = ['status']
    date_hierarchy = 'date_key'
    ordering = ['-date_key']
    readonly_fields = ['status', 'opened_at', 'closed_at', 'created_at', 'updated_at']
    inlines = [SessionItemInline]


@admin.register(PurchaseLot)
class PurchaseLotAdmin(admin.ModelAdmin):
    """Lots are append-only; the admin only shows them."""

    list_display = [
        'variant',
        'session',
        'supplier',
        'quantity',
        'purchase_unit',
        'unit_cost',
        'measured_weight',
        'purchased_at',
    ]
    list_filter = ['purchase_unit', 'session__status', 'supplier']
    search_fields = ['variant__name', 'variant__product__name', 'supplier__name']
    ordering = ['-purchased_at']

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
