from rest_framework import serializers

from apps.accounts.models import User
from apps.catalog.models import PurchaseUnit, Variant
from .models import ItemOrigin, PurchaseLot, PurchaseSession, SessionItem, SessionStatus
from .services import RESERVATION_MINUTES

QUANTITY = dict(max_digits=10, decimal_places=3)
MONEY = dict(max_digits=12, decimal_places=2)


class UserMinimalSerializer(serializers.ModelSerializer):
    """Minimal user info for nested serialization."""

    display_name = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = ['id', 'email', 'display_name']
        read_only_fields = fields

    def get_display_name(self, obj):
        return obj.get_display_name()


class VariantMinimalSerializer(serializers.ModelSerializer):
    """Variant with its unit settings for nested serialization."""

    product_name = serializers.CharField(source='product.name', read_only=True)

    class Meta:
        model = Variant
        fields = ['id', 'product_name', 'name', 'sale_unit', 'purchase_unit', 'conversion_factor']
        read_only_fields = fields


class PurchaseSessionSerializer(serializers.ModelSerializer):
    created_by = UserMinimalSerializer(read_only=True)

    class Meta:
        model = PurchaseSession
        fields = [
            'id',
            'date_key',
            'status',
            'created_by',
            'opened_at',
            'closed_at',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields


class SessionDateSerializer(serializers.Serializer):
    """Input for creating or rescheduling a session."""

    date_key = serializers.DateField()


class SessionFilterSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=SessionStatus.choices, required=False)
    date_from = serializers.DateField(required=False)
    date_to = serializers.DateField(required=False)


class PurchaseSummarySerializer(serializers.Serializer):
    bought_quantity = serializers.DecimalField(max_digits=14, decimal_places=3)
    bought_total = serializers.DecimalField(max_digits=16, decimal_places=2)
    last_purchased_at = serializers.DateTimeField(allow_null=True)


class SessionItemSerializer(serializers.ModelSerializer):
    variant = VariantMinimalSerializer(read_only=True)
    reserved_by = UserMinimalSerializer(read_only=True)
    purchase = serializers.SerializerMethodField()

    class Meta:
        model = SessionItem
        fields = [
            'id',
            'session',
            'variant',
            'origin',
            'planned_quantity',
            'reference_price',
            'reference_purchase_unit',
            'state',
            'reserved_by',
            'reservation_expires_at',
            'purchase',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields

    def get_purchase(self, obj):
        summary = getattr(obj, 'purchase', None)
        if summary is None:
            return None
        return PurchaseSummarySerializer(summary).data


class AddItemSerializer(serializers.Serializer):
    variant = serializers.UUIDField()
    origin = serializers.ChoiceField(choices=ItemOrigin.choices, default=ItemOrigin.PLANNED)
    planned_quantity = serializers.DecimalField(required=False, allow_null=True, **QUANTITY)
    reference_price = serializers.DecimalField(required=False, allow_null=True, **MONEY)
    reference_purchase_unit = serializers.ChoiceField(
        choices=PurchaseUnit.choices,
        required=False,
        allow_blank=True,
    )


class UpdateItemPlanSerializer(serializers.Serializer):
    """Partial plan edit; only fields present in the payload change."""

    planned_quantity = serializers.DecimalField(required=False, allow_null=True, **QUANTITY)
    reference_price = serializers.DecimalField(required=False, allow_null=True, **MONEY)
    reference_purchase_unit = serializers.ChoiceField(
        choices=PurchaseUnit.choices,
        required=False,
        allow_blank=True,
    )


class ReserveItemSerializer(serializers.Serializer):
    minutes = serializers.ChoiceField(choices=RESERVATION_MINUTES)


class ConfirmItemSerializer(serializers.Serializer):
    supplier = serializers.UUIDField()
    quantity = serializers.DecimalField(**QUANTITY)
    unit_cost = serializers.DecimalField(**MONEY)


class PurchaseLotSerializer(serializers.ModelSerializer):
    variant = VariantMinimalSerializer(read_only=True)
    supplier_name = serializers.CharField(source='supplier.name', read_only=True)
    purchased_by = UserMinimalSerializer(read_only=True)

    class Meta:
        model = PurchaseLot
        fields = [
            'id',
            'session',
            'variant',
            'supplier',
            'supplier_name',
            'quantity',
            'unit_cost',
            'purchase_unit',
            'measured_weight',
            'weighed_at',
            'purchased_by',
            'purchased_at',
        ]
        read_only_fields = fields


class LotFilterSerializer(serializers.Serializer):
    session = serializers.UUIDField(required=False)
    variant = serializers.UUIDField(required=False)


class WeighLotSerializer(serializers.Serializer):
    measured_weight = serializers.DecimalField(max_digits=10, decimal_places=3)


class ConfirmItemResponseSerializer(serializers.Serializer):
    """Documentation of the confirm response."""

    item = SessionItemSerializer()
    lots = PurchaseLotSerializer(many=True)
    daily_price = serializers.DictField()


class ErrorResponseSerializer(serializers.Serializer):
    error = serializers.CharField()
