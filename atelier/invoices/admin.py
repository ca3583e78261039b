from django.contrib import admin
from .models import Invoice, InvoiceItem, InvoicePayment, Receipt


class InvoiceItemInline(admin.TabularInline):
    model = InvoiceItem
    extra = 0
    readonly_fields = ['total']


class InvoicePaymentInline(admin.TabularInline):
    model = InvoicePayment
    extra = 0


@admin.register(Invoice)
class InvoiceAdmin(admin.ModelAdmin):
    list_display = ['invoice_number', 'customer_name', 'status', 'total', 'amount_paid', 'issue_date', 'due_date']
    list_filter = ['status', 'store']
    search_fields = ['invoice_number', 'customer_name', 'customer_phone']
    readonly_fields = ['invoice_number', 'amount_paid', 'created_at', 'updated_at']
    inlines = [InvoiceItemInline, InvoicePaymentInline]


@admin.register(Receipt)
class ReceiptAdmin(admin.ModelAdmin):
    list_display = ['receipt_number', 'invoice', 'amount', 'created_at']
    search_fields = ['receipt_number', 'invoice__invoice_number']
