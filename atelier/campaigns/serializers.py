from rest_framework import serializers
from .models import Campaign, CampaignLog


class CampaignLogSerializer(serializers.ModelSerializer):
    class Meta:
        model = CampaignLog
        fields = ['id', 'recipient', 'recipient_name', 'status', 'provider_message_id', 'error', 'created_at']
        read_only_fields = fields


class CampaignSerializer(serializers.ModelSerializer):
    created_by_name = serializers.CharField(source='created_by.display_name', read_only=True, default=None)

    class Meta:
        model = Campaign
        fields = ['id', 'name', 'message', 'channel', 'recipient_type', 'custom_recipients', 'status',
                  'total_recipients', 'sent_count', 'failed_count', 'sent_at', 'created_by', 'created_by_name',
                  'created_at', 'updated_at']
        read_only_fields = ['status', 'total_recipients', 'sent_count', 'failed_count', 'sent_at', 'created_by',
                            'created_at', 'updated_at']

    def validate_message(self, value):
        if not value.strip():
            raise serializers.ValidationError('Message cannot be empty.')
        return value

    def validate_custom_recipients(self, value):
        if not isinstance(value, list):
            raise serializers.ValidationError('Expected a list of phone numbers.')
        for entry in value:
            if isinstance(entry, dict):
                if not entry.get('phone'):
                    raise serializers.ValidationError('Each recipient needs a phone number.')
            elif not isinstance(entry, str) or not entry.strip():
                raise serializers.ValidationError('Each recipient needs a phone number.')
        return value

    def validate(self, data):
        recipient_type = data.get('recipient_type', getattr(self.instance, 'recipient_type', 'all_customers'))
        custom = data.get('custom_recipients', getattr(self.instance, 'custom_recipients', []))
        if recipient_type == 'custom' and not custom:
            raise serializers.ValidationError({'custom_recipients': 'Add at least one recipient.'})
        return data
