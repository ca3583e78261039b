from django.contrib import admin
from .models import ExpenseCategory, Expense


@admin.register(ExpenseCategory)
class ExpenseCategoryAdmin(admin.ModelAdmin):
    list_display = ['name', 'color', 'is_active']
    list_filter = ['is_active']


@admin.register(Expense)
class ExpenseAdmin(admin.ModelAdmin):
    list_display = ['date', 'description', 'category', 'amount', 'payment_method', 'staff']
    list_filter = ['category', 'payment_method', 'date']
    search_fields = ['description', 'reference']
    date_hierarchy = 'date'
