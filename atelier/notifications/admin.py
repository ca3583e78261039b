from django.contrib import admin
from .models import NotificationSettings, NotificationTemplate, NotificationLog


@admin.register(NotificationSettings)
class NotificationSettingsAdmin(admin.ModelAdmin):
    list_display = ['send_mode', 'sms_enabled', 'whatsapp_enabled', 'test_mode', 'updated_at']


@admin.register(NotificationTemplate)
class NotificationTemplateAdmin(admin.ModelAdmin):
    list_display = ['trigger', 'channel', 'name', 'recipient_type', 'enabled']
    list_filter = ['channel', 'recipient_type', 'enabled']
    search_fields = ['trigger', 'name', 'content']


@admin.register(NotificationLog)
class NotificationLogAdmin(admin.ModelAdmin):
    list_display = ['trigger', 'channel', 'recipient', 'status', 'created_at']
    list_filter = ['status', 'channel', 'trigger']
    search_fields = ['recipient', 'recipient_name', 'message']
    readonly_fields = ['created_at']
