from rest_framework import serializers
from .models import Payment


class PaymentSerializer(serializers.ModelSerializer):
    order_number = serializers.CharField(source='order.order_number', read_only=True, default=None)
    invoice_number = serializers.CharField(source='invoice.invoice_number', read_only=True, default=None)

    class Meta:
        model = Payment
        fields = ['id', 'reference', 'order', 'order_number', 'invoice', 'invoice_number', 'amount', 'currency',
                  'channel', 'payment_method', 'status', 'pay_id', 'payment_url', 'payment_date',
                  'customer_name', 'customer_email', 'customer_phone', 'description', 'created_at', 'updated_at']
        read_only_fields = fields


class PaymentInitializeSerializer(serializers.Serializer):
    order_id = serializers.IntegerField(required=False)
    invoice_id = serializers.IntegerField(required=False)
    channel = serializers.CharField(max_length=30, required=False, allow_blank=True)

    def validate(self, data):
        if not data.get('order_id') and not data.get('invoice_id'):
            raise serializers.ValidationError("order_id or invoice_id is required.")
        return data
