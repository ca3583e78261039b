from rest_framework import serializers
from .models import Category, Product, StockMovement
from .services import adjust_stock


class CategorySerializer(serializers.ModelSerializer):
    product_count = serializers.SerializerMethodField()

    class Meta:
        model = Category
        fields = ['id', 'store', 'name', 'slug', 'parent', 'description', 'image_url', 'is_active',
                  'product_count', 'created_at', 'updated_at']
        read_only_fields = ['slug', 'created_at', 'updated_at']

    def get_product_count(self, obj):
        annotated = getattr(obj, 'active_product_count', None)
        if annotated is not None:
            return annotated
        return obj.products.filter(is_active=True).count()


class ProductListSerializer(serializers.ModelSerializer):
    category_name = serializers.CharField(source='category.name', read_only=True, default=None)
    category_slug = serializers.CharField(source='category.slug', read_only=True, default=None)
    in_stock = serializers.BooleanField(source='is_in_stock', read_only=True)

    class Meta:
        model = Product
        fields = ['id', 'name', 'slug', 'sku', 'price', 'compare_at_price', 'image_url',
                  'category', 'category_name', 'category_slug', 'is_featured', 'in_stock']


class ProductSerializer(serializers.ModelSerializer):
    category_name = serializers.CharField(source='category.name', read_only=True, default=None)
    in_stock = serializers.BooleanField(source='is_in_stock', read_only=True)
    low_stock = serializers.BooleanField(source='is_low_stock', read_only=True)

    class Meta:
        model = Product
        fields = ['id', 'store', 'category', 'category_name', 'name', 'slug', 'sku', 'description',
                  'price', 'compare_at_price', 'stock', 'low_stock_threshold', 'track_inventory',
                  'weight', 'image_url', 'is_featured', 'is_active', 'in_stock', 'low_stock',
                  'created_at', 'updated_at']
        read_only_fields = ['slug', 'stock', 'created_at', 'updated_at']

    def validate_price(self, value):
        if value < 0:
            raise serializers.ValidationError("Price cannot be negative.")
        return value


class ProductCreateSerializer(ProductSerializer):
    """Initial stock can be set on creation; afterwards it only moves via adjustments"""
    initial_stock = serializers.IntegerField(write_only=True, required=False, min_value=0, default=0)

    class Meta(ProductSerializer.Meta):
        fields = ProductSerializer.Meta.fields + ['initial_stock']

    def create(self, validated_data):
        initial_stock = validated_data.pop('initial_stock', 0)
        product = Product.objects.create(**validated_data)
        if initial_stock:
            adjust_stock(product, 'purchase', initial_stock,
                         user=self.context.get('user'), reason='Initial stock')
        return product


class StockMovementSerializer(serializers.ModelSerializer):
    product_name = serializers.CharField(source='product.name', read_only=True)
    username = serializers.CharField(source='user.username', read_only=True, default=None)

    class Meta:
        model = StockMovement
        fields = ['id', 'product', 'product_name', 'movement_type', 'quantity', 'previous_stock',
                  'new_stock', 'reason', 'reference', 'user', 'username', 'created_at']


class StockAdjustSerializer(serializers.Serializer):
    product = serializers.PrimaryKeyRelatedField(queryset=Product.objects.all())
    type = serializers.ChoiceField(choices=['purchase', 'adjustment', 'return', 'damaged'])
    quantity = serializers.IntegerField()
    reason = serializers.CharField(required=False, allow_blank=True, default='')
    reference = serializers.CharField(required=False, allow_blank=True, default='')

    def validate_quantity(self, value):
        if value == 0:
            raise serializers.ValidationError("Quantity must not be zero.")
        return value
