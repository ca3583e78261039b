from decimal import Decimal

from django.db import transaction
from rest_framework import serializers
from .models import Invoice, InvoiceItem, InvoicePayment, Receipt, INVOICE_PAYMENT_METHOD_CHOICES
from .services import generate_invoice_number, update_invoice_amount_and_status


class InvoiceItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = InvoiceItem
        fields = ['id', 'product', 'description', 'quantity', 'unit_price', 'total']
        read_only_fields = ['total']

    def validate_quantity(self, value):
        if value <= 0:
            raise serializers.ValidationError("Quantity must be greater than zero.")
        return value

    def validate_unit_price(self, value):
        if value < 0:
            raise serializers.ValidationError("Unit price cannot be negative.")
        return value


class ReceiptSerializer(serializers.ModelSerializer):
    class Meta:
        model = Receipt
        fields = ['id', 'receipt_number', 'invoice', 'payment', 'amount', 'created_at']


class InvoicePaymentSerializer(serializers.ModelSerializer):
    receipt_number = serializers.CharField(source='receipt.receipt_number', read_only=True, default=None)
    created_by_name = serializers.CharField(source='created_by.display_name', read_only=True, default=None)

    class Meta:
        model = InvoicePayment
        fields = ['id', 'invoice', 'amount', 'payment_method', 'reference', 'payment_date', 'notes',
                  'receipt_number', 'created_by', 'created_by_name', 'created_at']
        read_only_fields = ['invoice', 'created_by', 'created_at']


class InvoicePaymentCreateSerializer(serializers.Serializer):
    amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    payment_method = serializers.ChoiceField(choices=INVOICE_PAYMENT_METHOD_CHOICES, default='CASH')
    reference = serializers.CharField(max_length=100, required=False, allow_blank=True, allow_null=True)
    payment_date = serializers.DateTimeField(required=False)
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)

    def validate_amount(self, value):
        if value <= 0:
            raise serializers.ValidationError("Amount must be greater than zero.")
        remaining = self.context.get('remaining')
        if remaining is not None and value > remaining:
            raise serializers.ValidationError(f"Amount exceeds the remaining balance ({remaining}).")
        return value


class InvoiceListSerializer(serializers.ModelSerializer):
    balance_due = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)
    order_number = serializers.CharField(source='order.order_number', read_only=True, default=None)
    custom_order_number = serializers.CharField(source='custom_order.order_number', read_only=True, default=None)

    class Meta:
        model = Invoice
        fields = ['id', 'invoice_number', 'customer_name', 'customer_phone', 'status', 'total', 'amount_paid',
                  'balance_due', 'currency', 'issue_date', 'due_date', 'order', 'order_number',
                  'custom_order', 'custom_order_number', 'created_at']


class InvoiceSerializer(serializers.ModelSerializer):
    items = InvoiceItemSerializer(many=True)
    payments = InvoicePaymentSerializer(many=True, read_only=True)
    balance_due = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)
    order_number = serializers.CharField(source='order.order_number', read_only=True, default=None)
    custom_order_number = serializers.CharField(source='custom_order.order_number', read_only=True, default=None)

    class Meta:
        model = Invoice
        fields = ['id', 'store', 'invoice_number', 'order', 'order_number', 'custom_order', 'custom_order_number',
                  'customer_name', 'customer_email', 'customer_phone', 'customer_address', 'status',
                  'subtotal', 'tax', 'discount', 'shipping_cost', 'total', 'amount_paid', 'balance_due',
                  'currency', 'issue_date', 'due_date', 'paid_date', 'notes', 'items', 'payments',
                  'created_by', 'created_at', 'updated_at']
        read_only_fields = ['invoice_number', 'order', 'custom_order', 'subtotal', 'total', 'amount_paid',
                            'paid_date', 'created_by', 'created_at', 'updated_at']

    def validate_customer_name(self, value):
        if not value or not value.strip():
            raise serializers.ValidationError("Customer name is required.")
        return value.strip()

    def validate_status(self, value):
        if value in ('PAID', 'PARTIAL'):
            raise serializers.ValidationError("Paid statuses follow the recorded payments.")
        return value

    def validate_items(self, value):
        if not value:
            raise serializers.ValidationError("At least one item is required.")
        return value

    def _save_items(self, invoice, items):
        invoice.items.all().delete()
        for item in items:
            InvoiceItem.objects.create(invoice=invoice, **item)
        invoice.calculate_totals()
        invoice.save(update_fields=['subtotal', 'total', 'updated_at'])

    def create(self, validated_data):
        items = validated_data.pop('items')
        validated_data.setdefault('status', 'DRAFT')
        with transaction.atomic():
            invoice = Invoice.objects.create(invoice_number=generate_invoice_number(), **validated_data)
            self._save_items(invoice, items)
        return invoice

    def update(self, instance, validated_data):
        items = validated_data.pop('items', None)
        with transaction.atomic():
            for field, value in validated_data.items():
                setattr(instance, field, value)
            instance.save()
            if items is not None:
                self._save_items(instance, items)
            else:
                instance.total = max(Decimal('0.00'), instance.subtotal + instance.tax +
                                     instance.shipping_cost - instance.discount)
                instance.save(update_fields=['total', 'updated_at'])
            if instance.payments.exists():
                update_invoice_amount_and_status(instance)
        return instance
