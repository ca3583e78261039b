import secrets
import string
from decimal import Decimal

from django.conf import settings
from django.db import models
from django.db.models import Sum

from atelier.invoices.models import INVOICE_PAYMENT_METHOD_CHOICES


def generate_payment_reference():
    """CP- followed by 8 uppercase alphanumerics; shared with the mirrored invoice payment"""
    alphabet = string.ascii_uppercase + string.digits
    return f"CP-{''.join(secrets.choice(alphabet) for _ in range(8))}"


class CustomOrder(models.Model):
    """Made-to-measure (tailoring) order"""
    STATUS_CHOICES = [
        ('PENDING', 'En attente'),
        ('IN_PROGRESS', 'En production'),
        ('FITTING', 'Essayage'),
        ('ALTERATIONS', 'Retouches'),
        ('READY', 'Prêt'),
        ('DELIVERED', 'Livré'),
        ('CANCELLED', 'Annulé'),
    ]
    PRIORITY_CHOICES = [
        ('NORMAL', 'Normal'),
        ('URGENT', 'Urgent'),
    ]
    # Statuses still on the workshop floor
    ACTIVE_STATUSES = ('PENDING', 'IN_PROGRESS', 'FITTING', 'ALTERATIONS', 'READY')

    store = models.ForeignKey('locations.Store', on_delete=models.SET_NULL, null=True, blank=True, related_name='custom_orders')
    order_number = models.CharField(max_length=30, unique=True)
    customer_name = models.CharField(max_length=200)
    customer_phone = models.CharField(max_length=20, blank=True)
    customer_email = models.EmailField(blank=True, null=True)
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='custom_orders')
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='PENDING')
    priority = models.CharField(max_length=10, choices=PRIORITY_CHOICES, default='NORMAL')
    pickup_date = models.DateField()
    measurements = models.JSONField(default=dict, blank=True)
    notes = models.TextField(blank=True)
    total_cost = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    material_cost = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    tailor = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='assigned_custom_orders')
    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='created_custom_orders')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.order_number} - {self.customer_name}"

    @property
    def amount_paid(self):
        return self.payments.aggregate(total=Sum('amount'))['total'] or Decimal('0.00')

    @property
    def grand_total(self):
        return self.total_cost + self.material_cost

    @property
    def balance(self):
        return self.grand_total - self.amount_paid

    def recalculate_total(self):
        self.total_cost = sum((item.quantity * item.unit_price for item in self.items.all()), Decimal('0.00'))
        return self.total_cost

    class Meta:
        db_table = 'custom_orders'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['status', 'pickup_date'], name='custom_order_status_idx'),
        ]


class CustomOrderItem(models.Model):
    STATUS_CHOICES = [
        ('PENDING', 'En attente'),
        ('CUTTING', 'Coupe'),
        ('SEWING', 'Couture'),
        ('FINISHING', 'Finitions'),
        ('DONE', 'Terminé'),
    ]

    custom_order = models.ForeignKey(CustomOrder, on_delete=models.CASCADE, related_name='items')
    garment_type = models.CharField(max_length=100)
    description = models.TextField(blank=True)
    quantity = models.PositiveIntegerField(default=1)
    unit_price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    fabric = models.CharField(max_length=200, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='PENDING')
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.garment_type} x{self.quantity}"

    @property
    def total(self):
        return self.quantity * self.unit_price

    class Meta:
        db_table = 'custom_order_items'
        ordering = ['created_at']


class CustomOrderPayment(models.Model):
    PAYMENT_TYPE_CHOICES = [
        ('DEPOSIT', 'Avance'),
        ('PARTIAL', 'Acompte'),
        ('BALANCE', 'Solde'),
    ]

    custom_order = models.ForeignKey(CustomOrder, on_delete=models.CASCADE, related_name='payments')
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    payment_method = models.CharField(max_length=20, choices=INVOICE_PAYMENT_METHOD_CHOICES, default='CASH')
    payment_type = models.CharField(max_length=10, choices=PAYMENT_TYPE_CHOICES, default='PARTIAL')
    reference = models.CharField(max_length=20, unique=True, default=generate_payment_reference)
    notes = models.TextField(blank=True)
    received_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='custom_order_payments')
    paid_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.reference} - {self.amount}"

    class Meta:
        db_table = 'custom_order_payments'
        ordering = ['-paid_at']


class CustomOrderTimeline(models.Model):
    custom_order = models.ForeignKey(CustomOrder, on_delete=models.CASCADE, related_name='timeline')
    event = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='+')
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.event

    class Meta:
        db_table = 'custom_order_timeline'
        ordering = ['-created_at']
