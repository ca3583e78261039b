from django.contrib import admin
from .models import Campaign, CampaignLog


class CampaignLogInline(admin.TabularInline):
    model = CampaignLog
    extra = 0
    readonly_fields = ['recipient', 'recipient_name', 'status', 'provider_message_id', 'error', 'created_at']
    can_delete = False


@admin.register(Campaign)
class CampaignAdmin(admin.ModelAdmin):
    list_display = ['name', 'channel', 'recipient_type', 'status', 'total_recipients', 'sent_count', 'failed_count', 'sent_at']
    list_filter = ['status', 'channel', 'recipient_type']
    search_fields = ['name', 'message']
    readonly_fields = ['total_recipients', 'sent_count', 'failed_count', 'sent_at', 'created_at', 'updated_at']
    inlines = [CampaignLogInline]
