# Generated manually
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('orders', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='NotificationSettings',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('sms_enabled', models.BooleanField(default=True)),
                ('whatsapp_enabled', models.BooleanField(default=True)),
                ('send_mode', models.CharField(choices=[('dual', 'Send on every enabled channel'), ('failover', 'Try channels in order until one succeeds')], default='dual', max_length=20)),
                ('failover_order', models.JSONField(blank=True, default=list, help_text='e.g. ["WHATSAPP", "SMS"]')),
                ('admin_phones', models.JSONField(blank=True, default=list)),
                ('test_mode', models.BooleanField(default=False)),
                ('test_phone', models.CharField(blank=True, max_length=20)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'db_table': 'notification_settings',
                'verbose_name_plural': 'Notification settings',
            },
        ),
        migrations.CreateModel(
            name='NotificationTemplate',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('trigger', models.CharField(choices=[('ORDER_PLACED', 'Order placed'), ('ORDER_PROCESSING', 'Order processing'), ('ORDER_SHIPPED', 'Order shipped'), ('ORDER_DELIVERED', 'Order delivered'), ('ORDER_CANCELLED', 'Order cancelled'), ('ORDER_REFUNDED', 'Order refunded'), ('PAYMENT_RECEIVED', 'Payment received'), ('PAYMENT_FAILED', 'Payment failed'), ('CUSTOMER_NOTE', 'Note to customer'), ('INVOICE_CREATED', 'Invoice created'), ('CUSTOM_ORDER_READY', 'Custom order ready'), ('APPOINTMENT_CONFIRMED', 'Appointment confirmed'), ('APPOINTMENT_CANCELLED', 'Appointment cancelled'), ('NEW_ACCOUNT', 'New account'), ('ADMIN_NEW_ORDER', 'New order (admin)'), ('ADMIN_PAYMENT_RECEIVED', 'Payment received (admin)'), ('ADMIN_APPOINTMENT_CANCELLED', 'Appointment cancelled (admin)'), ('LOW_STOCK', 'Low stock (admin)'), ('OUT_OF_STOCK', 'Out of stock (admin)'), ('CAMPAIGN', 'Marketing campaign'), ('TEST', 'Test message')], max_length=50)),
                ('channel', models.CharField(choices=[('SMS', 'SMS'), ('WHATSAPP', 'WhatsApp')], max_length=20)),
                ('name', models.CharField(max_length=200)),
                ('description', models.TextField(blank=True)),
                ('content', models.TextField()),
                ('recipient_type', models.CharField(choices=[('customer', 'Customer'), ('admin', 'Admin')], default='customer', max_length=20)),
                ('enabled', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'db_table': 'notification_templates',
                'ordering': ['trigger', 'channel'],
                'unique_together': {('trigger', 'channel')},
            },
        ),
        migrations.CreateModel(
            name='NotificationLog',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('trigger', models.CharField(max_length=50)),
                ('channel', models.CharField(choices=[('SMS', 'SMS'), ('WHATSAPP', 'WhatsApp')], max_length=20)),
                ('recipient', models.CharField(max_length=30)),
                ('recipient_name', models.CharField(blank=True, max_length=200)),
                ('message', models.TextField()),
                ('status', models.CharField(choices=[('SENT', 'Sent'), ('FAILED', 'Failed')], max_length=20)),
                ('provider_message_id', models.CharField(blank=True, max_length=100)),
                ('error', models.TextField(blank=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('order', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='notification_logs', to='orders.order')),
                ('user', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='notification_logs', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'notification_logs',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['-created_at'], name='notif_log_created_idx'),
                    models.Index(fields=['trigger', 'status'], name='notif_log_trigger_idx'),
                ],
            },
        ),
    ]
