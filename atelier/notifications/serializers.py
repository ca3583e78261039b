from rest_framework import serializers
from .models import NotificationSettings, NotificationTemplate, NotificationLog, CHANNEL_CHOICES, TRIGGER_CHOICES

CHANNEL_VALUES = {value for value, _ in CHANNEL_CHOICES}


class NotificationSettingsSerializer(serializers.ModelSerializer):
    class Meta:
        model = NotificationSettings
        fields = ['sms_enabled', 'whatsapp_enabled', 'send_mode', 'failover_order', 'admin_phones',
                  'test_mode', 'test_phone', 'updated_at']
        read_only_fields = ['updated_at']

    def validate_failover_order(self, value):
        if not isinstance(value, list):
            raise serializers.ValidationError("Failover order must be a list of channels.")
        unknown = [channel for channel in value if channel not in CHANNEL_VALUES]
        if unknown:
            raise serializers.ValidationError(f"Unknown channels: {', '.join(map(str, unknown))}")
        return value

    def validate_admin_phones(self, value):
        if not isinstance(value, list):
            raise serializers.ValidationError("Admin phones must be a list.")
        return [str(phone).strip() for phone in value if str(phone).strip()]

    def validate(self, data):
        test_mode = data.get('test_mode', getattr(self.instance, 'test_mode', False))
        test_phone = data.get('test_phone', getattr(self.instance, 'test_phone', ''))
        if test_mode and not test_phone:
            raise serializers.ValidationError({'test_phone': 'A test phone is required in test mode.'})
        return data


class NotificationTemplateSerializer(serializers.ModelSerializer):
    trigger_display = serializers.CharField(source='get_trigger_display', read_only=True)

    class Meta:
        model = NotificationTemplate
        fields = ['id', 'trigger', 'trigger_display', 'channel', 'name', 'description', 'content',
                  'recipient_type', 'enabled', 'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']


class NotificationLogSerializer(serializers.ModelSerializer):
    order_number = serializers.CharField(source='order.order_number', read_only=True, default=None)

    class Meta:
        model = NotificationLog
        fields = ['id', 'trigger', 'channel', 'recipient', 'recipient_name', 'message', 'status',
                  'provider_message_id', 'error', 'order', 'order_number', 'user', 'created_at']


class TestNotificationSerializer(serializers.Serializer):
    phone = serializers.CharField(max_length=30)
    channel = serializers.ChoiceField(choices=CHANNEL_CHOICES)
    message = serializers.CharField(required=False, allow_blank=True)
    trigger = serializers.ChoiceField(choices=TRIGGER_CHOICES, required=False)
