from django.conf import settings
from django.db import models

CHANNEL_SMS = 'SMS'
CHANNEL_WHATSAPP = 'WHATSAPP'
CHANNEL_CHOICES = [
    (CHANNEL_SMS, 'SMS'),
    (CHANNEL_WHATSAPP, 'WhatsApp'),
]

TRIGGER_CHOICES = [
    ('ORDER_PLACED', 'Order placed'),
    ('ORDER_PROCESSING', 'Order processing'),
    ('ORDER_SHIPPED', 'Order shipped'),
    ('ORDER_DELIVERED', 'Order delivered'),
    ('ORDER_CANCELLED', 'Order cancelled'),
    ('ORDER_REFUNDED', 'Order refunded'),
    ('PAYMENT_RECEIVED', 'Payment received'),
    ('PAYMENT_FAILED', 'Payment failed'),
    ('CUSTOMER_NOTE', 'Note to customer'),
    ('INVOICE_CREATED', 'Invoice created'),
    ('CUSTOM_ORDER_READY', 'Custom order ready'),
    ('APPOINTMENT_CONFIRMED', 'Appointment confirmed'),
    ('APPOINTMENT_CANCELLED', 'Appointment cancelled'),
    ('NEW_ACCOUNT', 'New account'),
    ('ADMIN_NEW_ORDER', 'New order (admin)'),
    ('ADMIN_PAYMENT_RECEIVED', 'Payment received (admin)'),
    ('ADMIN_APPOINTMENT_CANCELLED', 'Appointment cancelled (admin)'),
    ('LOW_STOCK', 'Low stock (admin)'),
    ('OUT_OF_STOCK', 'Out of stock (admin)'),
    ('CAMPAIGN', 'Marketing campaign'),
    ('TEST', 'Test message'),
]

ADMIN_TRIGGERS = {'ADMIN_NEW_ORDER', 'ADMIN_PAYMENT_RECEIVED', 'ADMIN_APPOINTMENT_CANCELLED', 'LOW_STOCK', 'OUT_OF_STOCK'}


class NotificationSettings(models.Model):
    """Singleton holding the dispatch configuration"""
    SEND_MODE_CHOICES = [
        ('dual', 'Send on every enabled channel'),
        ('failover', 'Try channels in order until one succeeds'),
    ]

    sms_enabled = models.BooleanField(default=True)
    whatsapp_enabled = models.BooleanField(default=True)
    send_mode = models.CharField(max_length=20, choices=SEND_MODE_CHOICES, default='dual')
    failover_order = models.JSONField(default=list, blank=True, help_text='e.g. ["WHATSAPP", "SMS"]')
    admin_phones = models.JSONField(default=list, blank=True)
    test_mode = models.BooleanField(default=False)
    test_phone = models.CharField(max_length=20, blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"Notification settings ({self.send_mode})"

    @classmethod
    def load(cls):
        obj, _ = cls.objects.get_or_create(pk=1, defaults={'failover_order': [CHANNEL_WHATSAPP, CHANNEL_SMS]})
        return obj

    def channel_enabled(self, channel):
        if channel == CHANNEL_SMS:
            return self.sms_enabled
        if channel == CHANNEL_WHATSAPP:
            return self.whatsapp_enabled
        return False

    class Meta:
        db_table = 'notification_settings'
        verbose_name_plural = 'Notification settings'


class NotificationTemplate(models.Model):
    """Message text for a trigger on one channel; {variable} placeholders are rendered at send time"""
    RECIPIENT_CHOICES = [
        ('customer', 'Customer'),
        ('admin', 'Admin'),
    ]

    trigger = models.CharField(max_length=50, choices=TRIGGER_CHOICES)
    channel = models.CharField(max_length=20, choices=CHANNEL_CHOICES)
    name = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    content = models.TextField()
    recipient_type = models.CharField(max_length=20, choices=RECIPIENT_CHOICES, default='customer')
    enabled = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.trigger} / {self.channel}"

    class Meta:
        db_table = 'notification_templates'
        ordering = ['trigger', 'channel']
        unique_together = [('trigger', 'channel')]


class NotificationLog(models.Model):
    """Outcome of every send attempt"""
    STATUS_CHOICES = [
        ('SENT', 'Sent'),
        ('FAILED', 'Failed'),
    ]

    trigger = models.CharField(max_length=50)
    channel = models.CharField(max_length=20, choices=CHANNEL_CHOICES)
    recipient = models.CharField(max_length=30)
    recipient_name = models.CharField(max_length=200, blank=True)
    message = models.TextField()
    status = models.CharField(max_length=20, choices=STATUS_CHOICES)
    provider_message_id = models.CharField(max_length=100, blank=True)
    error = models.TextField(blank=True)
    order = models.ForeignKey('orders.Order', on_delete=models.SET_NULL, null=True, blank=True, related_name='notification_logs')
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='notification_logs')
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.trigger} -> {self.recipient} ({self.status})"

    class Meta:
        db_table = 'notification_logs'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['-created_at'], name='notif_log_created_idx'),
            models.Index(fields=['trigger', 'status'], name='notif_log_trigger_idx'),
        ]
