# ==========================================
# apps/accounts/admin.py
# ==========================================

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from .models import User, UserRole


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    """Admin interface for staff accounts and their roles."""

    list_display = [
        'email',
        'display_name',
        'role',
        'is_active',
        'is_staff',
        'created_at',
        'last_login',
    ]

    list_filter = [
        'role',
        'is_active',
        'is_staff',
        'is_superuser',
    ]

    search_fields = [
        'email',
        'display_name',
    ]

    ordering = ['-created_at']

    # Remove username field references from BaseUserAdmin
    fieldsets = (
        ('Basic Information', {
            'fields': ('email', 'display_name', 'role', 'password')
        }),
        ('Permissions', {
            'fields': ('is_active', 'is_staff', 'is_superuser', 'groups', 'user_permissions'),
        }),
        ('Timestamps', {
            'fields': ('created_at', 'last_login'),
            'classes': ('collapse',),
        }),
    )

    add_fieldsets = (
        ('Create User', {
            'classes': ('wide',),
            'fields': ('email', 'display_name', 'role', 'password1', 'password2'),
        }),
    )

    readonly_fields = ['created_at', 'last_login']
    filter_horizontal = ['groups', 'user_permissions']

    actions = ['make_buyers', 'make_sellers']

    @admin.action(description='Set role: buyer')
    def make_buyers(self, request, queryset):
        count = queryset.filter(is_superuser=False).update(role=UserRole.BUYER)
        self.message_user(request, f'Updated {count} user(s).')

    @admin.action(description='Set role: seller')
    def make_sellers(self, request, queryset):
        count = queryset.filter(is_superuser=False).update(role=UserRole.SELLER)
        self.message_user(request, f'Updated {count} user(s).')
