from django.contrib import admin
from .models import Order, OrderItem, OrderNote, Coupon


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    readonly_fields = ['total']


class OrderNoteInline(admin.TabularInline):
    model = OrderNote
    extra = 0


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ['order_number', 'billing_name', 'billing_phone', 'status', 'payment_status', 'total', 'created_at']
    list_filter = ['status', 'payment_status', 'payment_method', 'store']
    search_fields = ['order_number', 'billing_name', 'billing_phone', 'billing_email']
    readonly_fields = ['order_number', 'created_at', 'updated_at']
    inlines = [OrderItemInline, OrderNoteInline]


@admin.register(Coupon)
class CouponAdmin(admin.ModelAdmin):
    list_display = ['code', 'discount_type', 'value', 'used_count', 'max_uses', 'valid_until', 'is_active']
    list_filter = ['discount_type', 'is_active']
    search_fields = ['code', 'description']
