from rest_framework import serializers
from .models import ShippingZone, ShippingMethod

COST_RANGE_KEYS = {'min', 'max', 'cost'}


def validate_ranges(value):
    if value in (None, ''):
        return []
    if not isinstance(value, list):
        raise serializers.ValidationError("Ranges must be a list.")
    for entry in value:
        if not isinstance(entry, dict) or 'cost' not in entry:
            raise serializers.ValidationError("Each range needs at least a 'cost' and optionally 'min'/'max'.")
        unknown = set(entry) - COST_RANGE_KEYS
        if unknown:
            raise serializers.ValidationError(f"Unknown range keys: {', '.join(sorted(unknown))}")
    return value


class ShippingMethodSerializer(serializers.ModelSerializer):
    zone_name = serializers.CharField(source='zone.name', read_only=True)

    class Meta:
        model = ShippingMethod
        fields = ['id', 'zone', 'zone_name', 'name', 'description', 'cost_type', 'cost', 'min_order_amount',
                  'weight_ranges', 'price_ranges', 'estimated_days', 'taxable', 'enabled',
                  'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']

    def validate_weight_ranges(self, value):
        return validate_ranges(value)

    def validate_price_ranges(self, value):
        return validate_ranges(value)

    def validate_cost(self, value):
        if value < 0:
            raise serializers.ValidationError("Cost cannot be negative.")
        return value


class ShippingZoneSerializer(serializers.ModelSerializer):
    methods = ShippingMethodSerializer(many=True, read_only=True)

    class Meta:
        model = ShippingZone
        fields = ['id', 'store', 'name', 'countries', 'enabled', 'is_default', 'methods', 'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']

    def validate_countries(self, value):
        if not isinstance(value, list):
            raise serializers.ValidationError("Countries must be a list.")
        return [str(country).strip() for country in value if str(country).strip()]
