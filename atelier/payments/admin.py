from django.contrib import admin
from .models import Payment


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = ['reference', 'order', 'invoice', 'amount', 'channel', 'status', 'payment_date', 'created_at']
    list_filter = ['status', 'channel']
    search_fields = ['reference', 'pay_id', 'customer_name', 'customer_phone']
    readonly_fields = ['provider_response', 'created_at', 'updated_at']
