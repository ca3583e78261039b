from decimal import Decimal

from django.conf import settings
from django.db import models
from django.utils import timezone

INVOICE_PAYMENT_METHOD_CHOICES = [
    ('CASH', 'Espèces'),
    ('MOBILE_MONEY', 'Mobile Money'),
    ('ORANGE_MONEY', 'Orange Money'),
    ('MTN_MONEY', 'MTN Mobile Money'),
    ('WAVE', 'Wave'),
    ('BANK_TRANSFER', 'Virement bancaire'),
    ('CARD', 'Carte bancaire'),
    ('OTHER', 'Autre'),
]


class Invoice(models.Model):
    """Customer invoice, standalone or issued for an order / custom order"""
    STATUS_CHOICES = [
        ('DRAFT', 'Brouillon'),
        ('SENT', 'Envoyée'),
        ('PAID', 'Payée'),
        ('PARTIAL', 'Partiellement payée'),
        ('OVERDUE', 'En retard'),
        ('CANCELLED', 'Annulée'),
    ]

    store = models.ForeignKey('locations.Store', on_delete=models.SET_NULL, null=True, blank=True, related_name='invoices')
    invoice_number = models.CharField(max_length=30, unique=True)
    order = models.OneToOneField('orders.Order', on_delete=models.SET_NULL, null=True, blank=True, related_name='invoice')
    custom_order = models.OneToOneField('custom_orders.CustomOrder', on_delete=models.SET_NULL, null=True, blank=True, related_name='invoice')
    customer_name = models.CharField(max_length=200)
    customer_email = models.EmailField(blank=True, null=True)
    customer_phone = models.CharField(max_length=20, blank=True, null=True)
    customer_address = models.CharField(max_length=255, blank=True, null=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='DRAFT')
    subtotal = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    tax = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    discount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    shipping_cost = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    total = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    amount_paid = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    currency = models.CharField(max_length=10, default='XOF')
    issue_date = models.DateField(default=timezone.localdate)
    due_date = models.DateField(null=True, blank=True)
    paid_date = models.DateTimeField(null=True, blank=True)
    notes = models.TextField(blank=True, null=True)
    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='created_invoices')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.invoice_number

    @property
    def balance_due(self):
        return max(Decimal('0.00'), self.total - self.amount_paid)

    def calculate_totals(self):
        """Recompute subtotal and total from the line items"""
        self.subtotal = sum((item.total for item in self.items.all()), Decimal('0.00'))
        self.total = max(Decimal('0.00'), self.subtotal + self.tax + self.shipping_cost - self.discount)
        return self.total

    class Meta:
        db_table = 'invoices'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['status', '-created_at'], name='invoice_status_created_idx'),
        ]


class InvoiceItem(models.Model):
    invoice = models.ForeignKey(Invoice, on_delete=models.CASCADE, related_name='items')
    product = models.ForeignKey('catalog.Product', on_delete=models.SET_NULL, null=True, blank=True, related_name='invoice_items')
    description = models.CharField(max_length=255)
    quantity = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('1.00'))
    unit_price = models.DecimalField(max_digits=12, decimal_places=2)
    total = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))

    def __str__(self):
        return f"{self.description} x{self.quantity}"

    def save(self, *args, **kwargs):
        self.total = self.unit_price * self.quantity
        super().save(*args, **kwargs)

    class Meta:
        db_table = 'invoice_items'


class InvoicePayment(models.Model):
    """Money received against an invoice"""
    invoice = models.ForeignKey(Invoice, on_delete=models.CASCADE, related_name='payments')
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    payment_method = models.CharField(max_length=20, choices=INVOICE_PAYMENT_METHOD_CHOICES, default='CASH')
    reference = models.CharField(max_length=100, blank=True, null=True)
    payment_date = models.DateTimeField(default=timezone.now)
    notes = models.TextField(blank=True, null=True)
    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='invoice_payments')
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.amount} on {self.invoice.invoice_number}"

    class Meta:
        db_table = 'invoice_payments'
        ordering = ['-payment_date']


class Receipt(models.Model):
    """Receipt issued for every invoice payment"""
    receipt_number = models.CharField(max_length=30, unique=True)
    invoice = models.ForeignKey(Invoice, on_delete=models.CASCADE, related_name='receipts')
    payment = models.OneToOneField(InvoicePayment, on_delete=models.CASCADE, related_name='receipt')
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.receipt_number

    class Meta:
        db_table = 'receipts'
        ordering = ['-created_at']
