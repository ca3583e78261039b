from rest_framework import serializers
from atelier.catalog.models import Product
from atelier.shipping.models import ShippingMethod
from .models import Order, OrderItem, OrderNote, Coupon, PAYMENT_METHOD_CHOICES


class CheckoutItemSerializer(serializers.Serializer):
    product = serializers.PrimaryKeyRelatedField(queryset=Product.objects.all())
    quantity = serializers.IntegerField(min_value=1)


class CheckoutSerializer(serializers.Serializer):
    items = CheckoutItemSerializer(many=True)
    billing_name = serializers.CharField(max_length=200)
    billing_phone = serializers.CharField(max_length=20)
    billing_email = serializers.EmailField(required=False, allow_blank=True, allow_null=True)
    shipping_name = serializers.CharField(max_length=200, required=False, allow_blank=True)
    shipping_phone = serializers.CharField(max_length=20, required=False, allow_blank=True)
    shipping_address = serializers.CharField(max_length=255, required=False, allow_blank=True)
    shipping_city = serializers.CharField(max_length=100, required=False, allow_blank=True)
    shipping_country = serializers.CharField(max_length=100, required=False, allow_blank=True)
    shipping_method = serializers.PrimaryKeyRelatedField(
        queryset=ShippingMethod.objects.filter(enabled=True), required=False, allow_null=True
    )
    payment_method = serializers.ChoiceField(choices=PAYMENT_METHOD_CHOICES, default='CASH_ON_DELIVERY')
    coupon_code = serializers.CharField(max_length=50, required=False, allow_blank=True)
    customer_note = serializers.CharField(required=False, allow_blank=True)

    def validate_items(self, value):
        if not value:
            raise serializers.ValidationError("At least one item is required.")
        merged = {}
        for entry in value:
            product = entry['product']
            if product.pk in merged:
                merged[product.pk]['quantity'] += entry['quantity']
            else:
                merged[product.pk] = {'product': product, 'quantity': entry['quantity']}
        return list(merged.values())


class OrderItemSerializer(serializers.ModelSerializer):
    product_slug = serializers.CharField(source='product.slug', read_only=True, default=None)
    image_url = serializers.CharField(source='product.image_url', read_only=True, default=None)

    class Meta:
        model = OrderItem
        fields = ['id', 'product', 'product_name', 'product_slug', 'image_url', 'sku', 'quantity', 'price', 'total']


class OrderNoteSerializer(serializers.ModelSerializer):
    author_name = serializers.CharField(source='author.display_name', read_only=True, default=None)

    class Meta:
        model = OrderNote
        fields = ['id', 'content', 'is_private', 'author', 'author_name', 'created_at']
        read_only_fields = ['author', 'created_at']


class OrderListSerializer(serializers.ModelSerializer):
    items_count = serializers.SerializerMethodField()

    class Meta:
        model = Order
        fields = ['id', 'order_number', 'status', 'payment_status', 'payment_method', 'billing_name',
                  'billing_phone', 'total', 'items_count', 'created_at']

    def get_items_count(self, obj):
        return sum(item.quantity for item in obj.items.all())


class OrderSerializer(serializers.ModelSerializer):
    items = OrderItemSerializer(many=True, read_only=True)
    invoice_number = serializers.SerializerMethodField()
    notes = serializers.SerializerMethodField()

    class Meta:
        model = Order
        fields = ['id', 'order_number', 'user', 'store', 'status', 'payment_status', 'payment_method',
                  'billing_name', 'billing_phone', 'billing_email', 'shipping_name', 'shipping_phone',
                  'shipping_address', 'shipping_city', 'shipping_country', 'shipping_method',
                  'shipping_method_name', 'tracking_number', 'subtotal', 'discount', 'shipping_cost',
                  'total', 'coupon_code', 'customer_note', 'items', 'invoice_number', 'notes',
                  'created_at', 'updated_at']
        read_only_fields = fields

    def get_invoice_number(self, obj):
        invoice = getattr(obj, 'invoice', None)
        return invoice.invoice_number if invoice else None

    def get_notes(self, obj):
        notes = obj.notes.select_related('author')
        if not self.context.get('include_private_notes'):
            notes = notes.filter(is_private=False)
        return OrderNoteSerializer(notes, many=True).data


class AdminOrderUpdateSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Order.STATUS_CHOICES, required=False)
    payment_status = serializers.ChoiceField(choices=Order.PAYMENT_STATUS_CHOICES, required=False)
    tracking_number = serializers.CharField(max_length=100, required=False, allow_blank=True)
    shipping_cost = serializers.DecimalField(max_digits=12, decimal_places=2, required=False, min_value=0)
    note = serializers.CharField(required=False, allow_blank=True)


class CouponSerializer(serializers.ModelSerializer):
    class Meta:
        model = Coupon
        fields = ['id', 'code', 'description', 'discount_type', 'value', 'min_order_amount', 'max_uses',
                  'used_count', 'valid_from', 'valid_until', 'is_active', 'created_at', 'updated_at']
        read_only_fields = ['used_count', 'created_at', 'updated_at']

    def validate_code(self, value):
        value = value.strip().upper()
        queryset = Coupon.objects.filter(code=value)
        if self.instance:
            queryset = queryset.exclude(pk=self.instance.pk)
        if queryset.exists():
            raise serializers.ValidationError("A coupon with this code already exists.")
        return value

    def validate(self, data):
        discount_type = data.get('discount_type', getattr(self.instance, 'discount_type', 'percentage'))
        value = data.get('value', getattr(self.instance, 'value', None))
        if value is not None:
            if value <= 0:
                raise serializers.ValidationError({'value': 'Value must be greater than zero.'})
            if discount_type == 'percentage' and value > 100:
                raise serializers.ValidationError({'value': 'A percentage cannot exceed 100.'})
        valid_from = data.get('valid_from', getattr(self.instance, 'valid_from', None))
        valid_until = data.get('valid_until', getattr(self.instance, 'valid_until', None))
        if valid_from and valid_until and valid_until < valid_from:
            raise serializers.ValidationError({'valid_until': 'End date must be after start date.'})
        return data


class CouponValidateSerializer(serializers.Serializer):
    code = serializers.CharField(max_length=50)
    order_total = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0)
