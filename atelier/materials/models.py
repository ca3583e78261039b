from decimal import Decimal

from django.conf import settings
from django.db import models


class MaterialCategory(models.Model):
    name = models.CharField(max_length=100, unique=True)
    description = models.TextField(blank=True)
    sort_order = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'material_categories'
        ordering = ['sort_order', 'name']
        verbose_name_plural = 'Material categories'


class Material(models.Model):
    """Workshop supply (fabric, thread, buttons...) tracked in its own unit"""
    UNIT_CHOICES = [
        ('METER', 'Mètre'),
        ('YARD', 'Yard'),
        ('PIECE', 'Pièce'),
        ('ROLL', 'Rouleau'),
        ('SPOOL', 'Bobine'),
        ('KG', 'Kilogramme'),
    ]

    name = models.CharField(max_length=200)
    sku = models.CharField(max_length=100, unique=True, null=True, blank=True)
    category = models.ForeignKey(MaterialCategory, on_delete=models.SET_NULL, null=True, blank=True, related_name='materials')
    unit = models.CharField(max_length=10, choices=UNIT_CHOICES, default='METER')
    quantity = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    unit_price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    reorder_level = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    supplier = models.CharField(max_length=200, blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    @property
    def is_low_stock(self):
        return self.reorder_level > 0 and self.quantity <= self.reorder_level

    @property
    def stock_value(self):
        return self.quantity * self.unit_price

    class Meta:
        db_table = 'materials'
        ordering = ['name']


class MaterialMovement(models.Model):
    MOVEMENT_TYPE_CHOICES = [
        ('IN', 'Entrée'),
        ('OUT', 'Sortie'),
        ('ADJUST', 'Ajustement'),
        ('RETURN', 'Retour'),
    ]

    material = models.ForeignKey(Material, on_delete=models.CASCADE, related_name='movements')
    movement_type = models.CharField(max_length=10, choices=MOVEMENT_TYPE_CHOICES)
    quantity = models.DecimalField(max_digits=12, decimal_places=2)
    unit_price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    total_cost = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    previous_stock = models.DecimalField(max_digits=12, decimal_places=2)
    new_stock = models.DecimalField(max_digits=12, decimal_places=2)
    reference = models.CharField(max_length=100, blank=True)
    custom_order = models.ForeignKey('custom_orders.CustomOrder', on_delete=models.SET_NULL, null=True, blank=True, related_name='material_movements')
    tailor = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='material_withdrawals')
    notes = models.TextField(blank=True)
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='material_movements')
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.material.name} {self.movement_type} {self.quantity}"

    class Meta:
        db_table = 'material_movements'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['movement_type', '-created_at'], name='material_move_type_idx'),
        ]
