# Generated manually
import django.db.models.deletion
from decimal import Decimal
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('locations', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='ShippingZone',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=200)),
                ('countries', models.JSONField(blank=True, default=list, help_text='ISO country codes or names served by this zone')),
                ('enabled', models.BooleanField(default=True)),
                ('is_default', models.BooleanField(default=False, help_text='Used when no zone lists the destination country')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('store', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.CASCADE, related_name='shipping_zones', to='locations.store')),
            ],
            options={
                'db_table': 'shipping_zones',
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='ShippingMethod',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=200)),
                ('description', models.TextField(blank=True)),
                ('cost_type', models.CharField(choices=[('free', 'Free'), ('flat_rate', 'Flat Rate'), ('weight_based', 'Weight Based'), ('price_based', 'Price Based'), ('variable', 'Variable (set by staff)')], default='flat_rate', max_length=20)),
                ('cost', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('min_order_amount', models.DecimalField(blank=True, decimal_places=2, help_text='Flat rate becomes free from this order total', max_digits=12, null=True)),
                ('weight_ranges', models.JSONField(blank=True, default=list, help_text='[{"min": 0, "max": 5, "cost": 1000}, ...]')),
                ('price_ranges', models.JSONField(blank=True, default=list, help_text='[{"min": 0, "max": 50000, "cost": 2000}, ...]')),
                ('estimated_days', models.CharField(blank=True, max_length=50)),
                ('taxable', models.BooleanField(default=False)),
                ('enabled', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('zone', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='methods', to='shipping.shippingzone')),
            ],
            options={
                'db_table': 'shipping_methods',
                'ordering': ['cost'],
            },
        ),
    ]
