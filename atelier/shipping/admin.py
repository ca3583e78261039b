from django.contrib import admin
from .models import ShippingZone, ShippingMethod


class ShippingMethodInline(admin.TabularInline):
    model = ShippingMethod
    extra = 0
    fields = ['name', 'cost_type', 'cost', 'min_order_amount', 'estimated_days', 'enabled']


@admin.register(ShippingZone)
class ShippingZoneAdmin(admin.ModelAdmin):
    list_display = ['name', 'enabled', 'is_default', 'store', 'updated_at']
    list_filter = ['enabled', 'is_default']
    search_fields = ['name']
    inlines = [ShippingMethodInline]


@admin.register(ShippingMethod)
class ShippingMethodAdmin(admin.ModelAdmin):
    list_display = ['name', 'zone', 'cost_type', 'cost', 'min_order_amount', 'enabled']
    list_filter = ['cost_type', 'enabled', 'zone']
    search_fields = ['name', 'zone__name']
