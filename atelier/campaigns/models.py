from django.conf import settings
from django.db import models

from atelier.notifications.models import CHANNEL_CHOICES, CHANNEL_SMS


class Campaign(models.Model):
    """Bulk SMS / WhatsApp marketing message"""
    RECIPIENT_TYPE_CHOICES = [
        ('all_customers', 'Tous les clients'),
        ('custom', 'Liste personnalisée'),
    ]
    STATUS_CHOICES = [
        ('draft', 'Brouillon'),
        ('sending', "En cours d'envoi"),
        ('sent', 'Envoyée'),
        ('failed', 'Échouée'),
    ]

    name = models.CharField(max_length=200)
    message = models.TextField(help_text="Supports the {customer_name} placeholder")
    channel = models.CharField(max_length=10, choices=CHANNEL_CHOICES, default=CHANNEL_SMS)
    recipient_type = models.CharField(max_length=20, choices=RECIPIENT_TYPE_CHOICES, default='all_customers')
    custom_recipients = models.JSONField(default=list, blank=True)
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default='draft')
    total_recipients = models.PositiveIntegerField(default=0)
    sent_count = models.PositiveIntegerField(default=0)
    failed_count = models.PositiveIntegerField(default=0)
    sent_at = models.DateTimeField(null=True, blank=True)
    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='campaigns')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'campaigns'
        ordering = ['-created_at']


class CampaignLog(models.Model):
    STATUS_CHOICES = [
        ('SENT', 'Sent'),
        ('FAILED', 'Failed'),
    ]

    campaign = models.ForeignKey(Campaign, on_delete=models.CASCADE, related_name='logs')
    recipient = models.CharField(max_length=30)
    recipient_name = models.CharField(max_length=200, blank=True)
    status = models.CharField(max_length=10, choices=STATUS_CHOICES)
    provider_message_id = models.CharField(max_length=100, blank=True)
    error = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.campaign_id} -> {self.recipient} ({self.status})"

    class Meta:
        db_table = 'campaign_logs'
        ordering = ['-created_at']
