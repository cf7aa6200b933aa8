from rest_framework import permissions


class IsPricingAdmin(permissions.BasePermission):
    """
    Permission: User must hold the admin role.

    Used for endpoints that change prices, margins or unit conversions.
    """

    message = 'Only pricing admins can perform this action.'

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and user.is_pricing_admin)


class IsBuyerOrAdmin(permissions.BasePermission):
    """
    Permission: User must be a buyer or an admin.

    Sellers only read published prices; they do not touch purchasing.
    """

    message = 'Only buyers and admins can work on purchase sessions.'

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and user.can_purchase)
