from django.contrib import admin
from .models import Category, Product, StockMovement


@admin.register(Category)
class CategoryAdmin(admin.ModelAdmin):
    list_display = ['name', 'slug', 'parent', 'store', 'is_active', 'created_at']
    list_filter = ['is_active', 'store']
    search_fields = ['name', 'slug']
    prepopulated_fields = {'slug': ('name',)}


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ['name', 'sku', 'category', 'price', 'stock', 'is_featured', 'is_active', 'updated_at']
    list_filter = ['is_active', 'is_featured', 'track_inventory', 'category', 'store']
    search_fields = ['name', 'sku', 'slug']
    readonly_fields = ['stock', 'created_at', 'updated_at']


@admin.register(StockMovement)
class StockMovementAdmin(admin.ModelAdmin):
    list_display = ['product', 'movement_type', 'quantity', 'previous_stock', 'new_stock', 'reference', 'user', 'created_at']
    list_filter = ['movement_type', 'created_at']
    search_fields = ['product__name', 'reference', 'reason']
    readonly_fields = ['created_at']
