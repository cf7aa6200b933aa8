from rest_framework import serializers

from apps.purchasing.serializers import UserMinimalSerializer, VariantMinimalSerializer
from .models import DailyPrice


class DailyPriceSerializer(serializers.ModelSerializer):
    """Full daily price, costs included. Admins only."""

    variant = VariantMinimalSerializer(read_only=True)
    manual_set_by = UserMinimalSerializer(read_only=True)

    class Meta:
        model = DailyPrice
        fields = [
            'id',
            'session',
            'variant',
            'sale_unit',
            'normalized_cost',
            'margin_pct',
            'sale_price',
            'pricing_mode',
            'manual_price',
            'manual_set_by',
            'manual_set_at',
            'manual_note',
            'status',
            'anchor_lot',
            'updated_at',
        ]
        read_only_fields = fields


class PublicDailyPriceSerializer(serializers.ModelSerializer):
    """Daily price as sellers see it: no costs, margins or override details."""

    variant = VariantMinimalSerializer(read_only=True)

    class Meta:
        model = DailyPrice
        fields = [
            'id',
            'session',
            'variant',
            'sale_unit',
            'sale_price',
            'status',
            'updated_at',
        ]
        read_only_fields = fields


class PriceViewSerializer(serializers.Serializer):
    """
    A daily price plus its movement against the previous session.

    Pass ``include_costs=True`` in the context to use the full price fields.
    """

    movement = serializers.CharField(source='movement.value')
    delta = serializers.DecimalField(max_digits=12, decimal_places=2, allow_null=True)
    previous_price = serializers.DecimalField(max_digits=12, decimal_places=2, allow_null=True)
    previous_date_key = serializers.DateField(allow_null=True)

    def to_representation(self, instance):
        price_serializer = (
            DailyPriceSerializer if self.context.get('include_costs') else PublicDailyPriceSerializer
        )
        data = price_serializer(instance.price).data
        data.update(super().to_representation(instance))
        return data


class PendingPriceSerializer(DailyPriceSerializer):
    suggested_price = serializers.DecimalField(
        max_digits=12,
        decimal_places=2,
        allow_null=True,
        read_only=True,
    )

    class Meta(DailyPriceSerializer.Meta):
        fields = DailyPriceSerializer.Meta.fields + ['suggested_price']
        read_only_fields = fields


class ManualPriceSerializer(serializers.Serializer):
    sale_price = serializers.DecimalField(max_digits=12, decimal_places=2)
    note = serializers.CharField(max_length=300, required=False, allow_blank=True, default='')


class PricingSettingsSerializer(serializers.Serializer):
    """Margin accepts a fraction (0.35) or a percentage (35)."""

    margin_pct = serializers.DecimalField(max_digits=8, decimal_places=4, required=False)
    round_step = serializers.DecimalField(max_digits=12, decimal_places=4, required=False)


class PricingSnapshotSerializer(serializers.Serializer):
    margin_pct = serializers.DecimalField(max_digits=6, decimal_places=4)
    round_step = serializers.DecimalField(max_digits=12, decimal_places=4)


class ConversionFactorSerializer(serializers.Serializer):
    conversion_factor = serializers.DecimalField(max_digits=10, decimal_places=4, allow_null=True)
    session = serializers.UUIDField(required=False, allow_null=True)

