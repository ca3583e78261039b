from rest_framework import serializers
from atelier.core.models import User
from atelier.invoices.models import INVOICE_PAYMENT_METHOD_CHOICES
from .models import CustomOrder, CustomOrderItem, CustomOrderPayment, CustomOrderTimeline


class CustomOrderItemSerializer(serializers.ModelSerializer):
    total = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)

    class Meta:
        model = CustomOrderItem
        fields = ['id', 'garment_type', 'description', 'quantity', 'unit_price', 'fabric', 'status', 'total']

    def validate_garment_type(self, value):
        if not value.strip():
            raise serializers.ValidationError("Garment type is required.")
        return value.strip()

    def validate_unit_price(self, value):
        if value < 0:
            raise serializers.ValidationError("Unit price cannot be negative.")
        return value


class CustomOrderPaymentSerializer(serializers.ModelSerializer):
    received_by_name = serializers.CharField(source='received_by.display_name', read_only=True, default=None)

    class Meta:
        model = CustomOrderPayment
        fields = ['id', 'amount', 'payment_method', 'payment_type', 'reference', 'notes',
                  'received_by', 'received_by_name', 'paid_at']
        read_only_fields = ['reference', 'received_by', 'paid_at']


class CustomOrderPaymentCreateSerializer(serializers.Serializer):
    amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    payment_method = serializers.ChoiceField(choices=INVOICE_PAYMENT_METHOD_CHOICES, default='CASH')
    payment_type = serializers.ChoiceField(choices=CustomOrderPayment.PAYMENT_TYPE_CHOICES, required=False)
    notes = serializers.CharField(required=False, allow_blank=True)

    def validate_amount(self, value):
        if value <= 0:
            raise serializers.ValidationError("Amount must be greater than zero.")
        return value


class CustomOrderTimelineSerializer(serializers.ModelSerializer):
    user_name = serializers.CharField(source='user.display_name', read_only=True, default=None)

    class Meta:
        model = CustomOrderTimeline
        fields = ['id', 'event', 'description', 'user', 'user_name', 'created_at']


class CustomOrderListSerializer(serializers.ModelSerializer):
    deposit = serializers.DecimalField(source='amount_paid', max_digits=12, decimal_places=2, read_only=True)
    balance = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)
    tailor_name = serializers.CharField(source='tailor.display_name', read_only=True, default=None)
    item_count = serializers.SerializerMethodField()
    garment_types = serializers.SerializerMethodField()

    class Meta:
        model = CustomOrder
        fields = ['id', 'order_number', 'customer_name', 'customer_phone', 'status', 'priority', 'pickup_date',
                  'total_cost', 'material_cost', 'deposit', 'balance', 'tailor', 'tailor_name',
                  'item_count', 'garment_types', 'created_at']

    def get_item_count(self, obj):
        return sum(item.quantity for item in obj.items.all())

    def get_garment_types(self, obj):
        return sorted({item.garment_type for item in obj.items.all()})


class CustomOrderSerializer(serializers.ModelSerializer):
    items = CustomOrderItemSerializer(many=True, required=False)
    payments = CustomOrderPaymentSerializer(many=True, read_only=True)
    timeline = CustomOrderTimelineSerializer(many=True, read_only=True)
    deposit = serializers.DecimalField(source='amount_paid', max_digits=12, decimal_places=2, read_only=True)
    balance = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)
    profit = serializers.SerializerMethodField()
    invoice = serializers.SerializerMethodField()
    tailor = serializers.PrimaryKeyRelatedField(queryset=User.objects.filter(is_active=True), required=False, allow_null=True)
    user = serializers.PrimaryKeyRelatedField(queryset=User.objects.all(), required=False, allow_null=True)

    class Meta:
        model = CustomOrder
        fields = ['id', 'store', 'order_number', 'customer_name', 'customer_phone', 'customer_email', 'user',
                  'status', 'priority', 'pickup_date', 'measurements', 'notes', 'total_cost', 'material_cost',
                  'deposit', 'balance', 'profit', 'tailor', 'items', 'payments', 'timeline', 'invoice',
                  'created_by', 'created_at', 'updated_at']
        read_only_fields = ['store', 'order_number', 'total_cost', 'created_by', 'created_at', 'updated_at']

    def get_profit(self, obj):
        return obj.total_cost - obj.material_cost

    def get_invoice(self, obj):
        invoice = getattr(obj, 'invoice', None)
        if invoice is None:
            return None
        return {
            'id': invoice.id,
            'invoice_number': invoice.invoice_number,
            'status': invoice.status,
            'total': invoice.total,
            'amount_paid': invoice.amount_paid,
        }

    def validate_customer_name(self, value):
        if not value or not value.strip():
            raise serializers.ValidationError("Customer name is required.")
        return value.strip()

    def validate_material_cost(self, value):
        if value < 0:
            raise serializers.ValidationError("Material cost cannot be negative.")
        return value

    def validate_items(self, value):
        if not value:
            raise serializers.ValidationError("At least one item is required.")
        return value


class CustomOrderCreateSerializer(CustomOrderSerializer):
    items = CustomOrderItemSerializer(many=True)
    deposit = serializers.DecimalField(max_digits=12, decimal_places=2, required=False, min_value=0)
    deposit_method = serializers.ChoiceField(choices=INVOICE_PAYMENT_METHOD_CHOICES, required=False)

    class Meta(CustomOrderSerializer.Meta):
        fields = CustomOrderSerializer.Meta.fields + ['deposit_method']
        read_only_fields = CustomOrderSerializer.Meta.read_only_fields + ['status']
