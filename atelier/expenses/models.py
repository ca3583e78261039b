from django.conf import settings
from django.db import models
from django.utils import timezone

EXPENSE_PAYMENT_METHOD_CHOICES = [
    ('CASH', 'Espèces'),
    ('BANK_TRANSFER', 'Virement'),
    ('ORANGE_MONEY', 'Orange Money'),
    ('MTN_MONEY', 'MTN Mobile Money'),
    ('WAVE', 'Wave'),
    ('CARD', 'Carte bancaire'),
    ('CHECK', 'Chèque'),
    ('OTHER', 'Autre'),
]


class ExpenseCategory(models.Model):
    name = models.CharField(max_length=100, unique=True)
    description = models.TextField(blank=True)
    color = models.CharField(max_length=20, default='#6B7280')
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'expense_categories'
        ordering = ['name']
        verbose_name_plural = 'Expense categories'


class Expense(models.Model):
    """Money going out of the shop (rent, salaries, supplies...)"""
    store = models.ForeignKey('locations.Store', on_delete=models.SET_NULL, null=True, blank=True, related_name='expenses')
    category = models.ForeignKey(ExpenseCategory, on_delete=models.PROTECT, related_name='expenses')
    description = models.CharField(max_length=255)
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    payment_method = models.CharField(max_length=20, choices=EXPENSE_PAYMENT_METHOD_CHOICES)
    date = models.DateField(default=timezone.localdate)
    reference = models.CharField(max_length=100, blank=True)
    notes = models.TextField(blank=True)
    staff = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='staff_expenses')
    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='recorded_expenses')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.description} ({self.amount})"

    class Meta:
        db_table = 'expenses'
        ordering = ['-date', '-created_at']
        indexes = [
            models.Index(fields=['date'], name='expense_date_idx'),
        ]
