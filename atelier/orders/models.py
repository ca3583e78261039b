import random
import string
from decimal import Decimal

from django.conf import settings
from django.db import models
from django.utils import timezone

PAYMENT_METHOD_CHOICES = [
    ('CASH_ON_DELIVERY', 'Paiement à la livraison'),
    ('MOBILE_MONEY', 'Mobile Money (manuel)'),
    ('ORANGE_MONEY', 'Orange Money'),
    ('MTN_MONEY', 'MTN Mobile Money'),
    ('MOOV_MONEY', 'Moov Money'),
    ('WAVE', 'Wave'),
    ('CARD', 'Carte bancaire'),
    ('PAIEMENTPRO', 'Paiement en ligne'),
]

# Methods settled online through the payment gateway
GATEWAY_PAYMENT_METHODS = ('ORANGE_MONEY', 'MTN_MONEY', 'MOOV_MONEY', 'WAVE', 'CARD', 'PAIEMENTPRO')


def generate_order_number():
    """DDMMYY-XXXXX with a random uppercase alphanumeric suffix"""
    prefix = timezone.localdate().strftime('%d%m%y')
    alphabet = string.ascii_uppercase + string.digits
    while True:
        candidate = f"{prefix}-{''.join(random.choices(alphabet, k=5))}"
        if not Order.objects.filter(order_number=candidate).exists():
            return candidate


class Coupon(models.Model):
    """Discount codes applied at checkout"""
    DISCOUNT_TYPE_CHOICES = [
        ('percentage', 'Percentage'),
        ('fixed', 'Fixed amount'),
    ]

    code = models.CharField(max_length=50, unique=True)
    description = models.CharField(max_length=255, blank=True)
    discount_type = models.CharField(max_length=20, choices=DISCOUNT_TYPE_CHOICES, default='percentage')
    value = models.DecimalField(max_digits=12, decimal_places=2)
    min_order_amount = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    max_uses = models.PositiveIntegerField(null=True, blank=True)
    used_count = models.PositiveIntegerField(default=0)
    valid_from = models.DateTimeField(null=True, blank=True)
    valid_until = models.DateTimeField(null=True, blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.code

    def save(self, *args, **kwargs):
        self.code = (self.code or '').strip().upper()
        super().save(*args, **kwargs)

    class Meta:
        db_table = 'coupons'
        ordering = ['-created_at']


class Order(models.Model):
    """Storefront order"""
    STATUS_CHOICES = [
        ('PENDING', 'En attente'),
        ('PROCESSING', 'En préparation'),
        ('SHIPPED', 'Expédiée'),
        ('DELIVERED', 'Livrée'),
        ('CANCELLED', 'Annulée'),
        ('REFUNDED', 'Remboursée'),
    ]
    PAYMENT_STATUS_CHOICES = [
        ('PENDING', 'En attente'),
        ('COMPLETED', 'Payée'),
        ('FAILED', 'Échouée'),
        ('REFUNDED', 'Remboursée'),
    ]

    store = models.ForeignKey('locations.Store', on_delete=models.SET_NULL, null=True, blank=True, related_name='orders')
    order_number = models.CharField(max_length=20, unique=True, blank=True)
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='orders')
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='PENDING')
    payment_status = models.CharField(max_length=20, choices=PAYMENT_STATUS_CHOICES, default='PENDING')
    payment_method = models.CharField(max_length=30, choices=PAYMENT_METHOD_CHOICES, default='CASH_ON_DELIVERY')

    billing_name = models.CharField(max_length=200)
    billing_phone = models.CharField(max_length=20)
    billing_email = models.EmailField(blank=True, null=True)
    shipping_name = models.CharField(max_length=200, blank=True)
    shipping_phone = models.CharField(max_length=20, blank=True)
    shipping_address = models.CharField(max_length=255, blank=True)
    shipping_city = models.CharField(max_length=100, default='Abidjan')
    shipping_country = models.CharField(max_length=100, default="Côte d'Ivoire")

    shipping_method = models.ForeignKey('shipping.ShippingMethod', on_delete=models.SET_NULL, null=True, blank=True, related_name='orders')
    shipping_method_name = models.CharField(max_length=200, blank=True)
    tracking_number = models.CharField(max_length=100, blank=True)

    subtotal = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    discount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    shipping_cost = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    total = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    coupon_code = models.CharField(max_length=50, blank=True)
    customer_note = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.order_number

    def save(self, *args, **kwargs):
        if not self.order_number:
            self.order_number = generate_order_number()
        super().save(*args, **kwargs)

    def recalculate_total(self):
        self.total = max(Decimal('0.00'), self.subtotal - self.discount + self.shipping_cost)
        return self.total

    class Meta:
        db_table = 'orders'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['status', '-created_at'], name='order_status_created_idx'),
            models.Index(fields=['payment_status'], name='order_payment_status_idx'),
        ]


class OrderItem(models.Model):
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name='items')
    product = models.ForeignKey('catalog.Product', on_delete=models.SET_NULL, null=True, blank=True, related_name='order_items')
    product_name = models.CharField(max_length=200)
    sku = models.CharField(max_length=100, blank=True)
    quantity = models.PositiveIntegerField(default=1)
    price = models.DecimalField(max_digits=12, decimal_places=2)
    total = models.DecimalField(max_digits=12, decimal_places=2)

    def __str__(self):
        return f"{self.product_name} x{self.quantity}"

    def save(self, *args, **kwargs):
        self.total = self.price * self.quantity
        super().save(*args, **kwargs)

    class Meta:
        db_table = 'order_items'


class OrderNote(models.Model):
    """Staff notes on an order; public notes are sent to the customer"""
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name='notes')
    content = models.TextField()
    is_private = models.BooleanField(default=True)
    author = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='order_notes')
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"Note on {self.order.order_number}"

    class Meta:
        db_table = 'order_notes'
        ordering = ['-created_at']
