from rest_framework import serializers
from atelier.core.models import User
from atelier.custom_orders.models import CustomOrder
from .models import MaterialCategory, Material, MaterialMovement


class MaterialCategorySerializer(serializers.ModelSerializer):
    materials_count = serializers.IntegerField(source='materials.count', read_only=True)

    class Meta:
        model = MaterialCategory
        fields = ['id', 'name', 'description', 'sort_order', 'materials_count', 'created_at']
        read_only_fields = ['created_at']


class MaterialSerializer(serializers.ModelSerializer):
    category_name = serializers.CharField(source='category.name', read_only=True, default=None)
    is_low_stock = serializers.BooleanField(read_only=True)
    stock_value = serializers.DecimalField(max_digits=14, decimal_places=2, read_only=True)

    class Meta:
        model = Material
        fields = ['id', 'name', 'sku', 'category', 'category_name', 'unit', 'quantity', 'unit_price',
                  'reorder_level', 'supplier', 'is_active', 'is_low_stock', 'stock_value', 'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']

    def validate_sku(self, value):
        return value or None

    def validate(self, data):
        for field in ('quantity', 'unit_price', 'reorder_level'):
            if data.get(field) is not None and data[field] < 0:
                raise serializers.ValidationError({field: 'Cannot be negative.'})
        return data


class MaterialUpdateSerializer(MaterialSerializer):
    """Material edit; the stock level changes through movements only"""
    class Meta(MaterialSerializer.Meta):
        read_only_fields = MaterialSerializer.Meta.read_only_fields + ['quantity']


class MaterialMovementSerializer(serializers.ModelSerializer):
    material_name = serializers.CharField(source='material.name', read_only=True)
    material_unit = serializers.CharField(source='material.unit', read_only=True)
    custom_order_number = serializers.CharField(source='custom_order.order_number', read_only=True, default=None)
    tailor_name = serializers.CharField(source='tailor.display_name', read_only=True, default=None)
    user_name = serializers.CharField(source='user.display_name', read_only=True, default=None)

    class Meta:
        model = MaterialMovement
        fields = ['id', 'material', 'material_name', 'material_unit', 'movement_type', 'quantity', 'unit_price',
                  'total_cost', 'previous_stock', 'new_stock', 'reference', 'custom_order', 'custom_order_number',
                  'tailor', 'tailor_name', 'notes', 'user', 'user_name', 'created_at']
        read_only_fields = fields


class MaterialMovementCreateSerializer(serializers.Serializer):
    material = serializers.PrimaryKeyRelatedField(queryset=Material.objects.all())
    movement_type = serializers.ChoiceField(choices=MaterialMovement.MOVEMENT_TYPE_CHOICES)
    quantity = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0)
    unit_price = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0, required=False, allow_null=True)
    reference = serializers.CharField(max_length=100, required=False, allow_blank=True)
    custom_order = serializers.PrimaryKeyRelatedField(queryset=CustomOrder.objects.all(), required=False, allow_null=True)
    tailor = serializers.PrimaryKeyRelatedField(queryset=User.objects.filter(role=User.ROLE_TAILOR),
                                                required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True)

    def validate(self, data):
        if data['movement_type'] != 'ADJUST' and data['quantity'] <= 0:
            raise serializers.ValidationError({'quantity': 'Quantity must be greater than zero.'})
        return data
