from django.contrib import admin
from .models import Store


@admin.register(Store)
class StoreAdmin(admin.ModelAdmin):
    list_display = ['name', 'code', 'phone', 'currency', 'is_default', 'is_active', 'created_at']
    list_filter = ['is_active', 'is_default']
    search_fields = ['name', 'code', 'phone', 'email']
    ordering = ['name']
