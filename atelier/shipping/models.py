from django.db import models
from decimal import Decimal


class ShippingZone(models.Model):
    """A set of destination countries sharing the same shipping methods"""
    store = models.ForeignKey('locations.Store', on_delete=models.CASCADE, null=True, blank=True, related_name='shipping_zones')
    name = models.CharField(max_length=200)
    countries = models.JSONField(default=list, blank=True, help_text="ISO country codes or names served by this zone")
    enabled = models.BooleanField(default=True)
    is_default = models.BooleanField(default=False, help_text="Used when no zone lists the destination country")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'shipping_zones'
        ordering = ['name']


class ShippingMethod(models.Model):
    """A way of delivering within a zone and how its cost is computed"""
    COST_TYPE_CHOICES = [
        ('free', 'Free'),
        ('flat_rate', 'Flat Rate'),
        ('weight_based', 'Weight Based'),
        ('price_based', 'Price Based'),
        ('variable', 'Variable (set by staff)'),
    ]

    zone = models.ForeignKey(ShippingZone, on_delete=models.CASCADE, related_name='methods')
    name = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    cost_type = models.CharField(max_length=20, choices=COST_TYPE_CHOICES, default='flat_rate')
    cost = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    min_order_amount = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True,
                                           help_text="Flat rate becomes free from this order total")
    weight_ranges = models.JSONField(default=list, blank=True, help_text='[{"min": 0, "max": 5, "cost": 1000}, ...]')
    price_ranges = models.JSONField(default=list, blank=True, help_text='[{"min": 0, "max": 50000, "cost": 2000}, ...]')
    estimated_days = models.CharField(max_length=50, blank=True)
    taxable = models.BooleanField(default=False)
    enabled = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.zone.name} - {self.name}"

    @property
    def is_variable(self):
        return self.cost_type == 'variable'

    class Meta:
        db_table = 'shipping_methods'
        ordering = ['cost']
