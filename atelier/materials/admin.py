from django.contrib import admin
from .models import MaterialCategory, Material, MaterialMovement


@admin.register(MaterialCategory)
class MaterialCategoryAdmin(admin.ModelAdmin):
    list_display = ['name', 'sort_order']


@admin.register(Material)
class MaterialAdmin(admin.ModelAdmin):
    list_display = ['name', 'sku', 'category', 'quantity', 'unit', 'unit_price', 'reorder_level', 'is_active']
    list_filter = ['category', 'unit', 'is_active']
    search_fields = ['name', 'sku', 'supplier']


@admin.register(MaterialMovement)
class MaterialMovementAdmin(admin.ModelAdmin):
    list_display = ['material', 'movement_type', 'quantity', 'total_cost', 'previous_stock', 'new_stock', 'created_at']
    list_filter = ['movement_type']
    search_fields = ['material__name', 'reference']
    readonly_fields = ['previous_stock', 'new_stock', 'created_at']
