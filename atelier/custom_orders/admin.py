from django.contrib import admin
from .models import CustomOrder, CustomOrderItem, CustomOrderPayment, CustomOrderTimeline


class CustomOrderItemInline(admin.TabularInline):
    model = CustomOrderItem
    extra = 0


class CustomOrderPaymentInline(admin.TabularInline):
    model = CustomOrderPayment
    extra = 0
    readonly_fields = ['reference', 'paid_at']


class CustomOrderTimelineInline(admin.TabularInline):
    model = CustomOrderTimeline
    extra = 0
    readonly_fields = ['created_at']


@admin.register(CustomOrder)
class CustomOrderAdmin(admin.ModelAdmin):
    list_display = ['order_number', 'customer_name', 'status', 'priority', 'pickup_date', 'total_cost', 'tailor']
    list_filter = ['status', 'priority', 'store']
    search_fields = ['order_number', 'customer_name', 'customer_phone']
    readonly_fields = ['order_number', 'created_at', 'updated_at']
    inlines = [CustomOrderItemInline, CustomOrderPaymentInline, CustomOrderTimelineInline]
