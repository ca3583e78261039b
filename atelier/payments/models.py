from decimal import Decimal

from django.db import models


class Payment(models.Model):
    """Online payment attempt through the PaiementPro gateway"""
    STATUS_CHOICES = [
        ('PENDING', 'En attente'),
        ('COMPLETED', 'Réussi'),
        ('FAILED', 'Échoué'),
        ('REFUNDED', 'Remboursé'),
    ]

    order = models.ForeignKey('orders.Order', on_delete=models.SET_NULL, null=True, blank=True, related_name='payments')
    invoice = models.ForeignKey('invoices.Invoice', on_delete=models.SET_NULL, null=True, blank=True, related_name='gateway_payments')
    reference = models.CharField(max_length=100, unique=True)
    amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    currency = models.CharField(max_length=10, default='XOF')
    channel = models.CharField(max_length=30, blank=True)
    payment_method = models.CharField(max_length=30, default='PAIEMENTPRO')
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='PENDING')
    pay_id = models.CharField(max_length=100, blank=True)
    payment_url = models.URLField(max_length=500, blank=True)
    provider_response = models.JSONField(default=dict, blank=True)
    payment_date = models.DateTimeField(null=True, blank=True)
    customer_name = models.CharField(max_length=200, blank=True)
    customer_email = models.EmailField(blank=True, null=True)
    customer_phone = models.CharField(max_length=20, blank=True)
    description = models.CharField(max_length=255, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.reference} ({self.status})"

    @property
    def is_final(self):
        return self.status in ('COMPLETED', 'FAILED')

    class Meta:
        db_table = 'payments'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['status', '-created_at'], name='payment_status_created_idx'),
        ]
