from rest_framework import serializers
from .models import AppointmentType, Availability, Appointment


class AppointmentTypeSerializer(serializers.ModelSerializer):
    class Meta:
        model = AppointmentType
        fields = ['id', 'name', 'description', 'duration', 'price', 'color', 'is_active', 'created_at']
        read_only_fields = ['created_at']

    def validate_duration(self, value):
        if value <= 0:
            raise serializers.ValidationError("Duration must be greater than zero.")
        return value

    def validate_price(self, value):
        if value < 0:
            raise serializers.ValidationError("Price cannot be negative.")
        return value


class AvailabilitySerializer(serializers.ModelSerializer):
    day_name = serializers.CharField(source='get_day_of_week_display', read_only=True)

    class Meta:
        model = Availability
        fields = ['id', 'day_of_week', 'day_name', 'start_time', 'end_time', 'slot_duration', 'break_between', 'enabled']

    def validate_slot_duration(self, value):
        if value <= 0:
            raise serializers.ValidationError("Slot duration must be greater than zero.")
        return value

    def validate(self, data):
        start = data.get('start_time', getattr(self.instance, 'start_time', None))
        end = data.get('end_time', getattr(self.instance, 'end_time', None))
        if start and end and end <= start:
            raise serializers.ValidationError({'end_time': 'End time must be after start time.'})
        return data


class AppointmentSerializer(serializers.ModelSerializer):
    appointment_type_name = serializers.CharField(source='appointment_type.name', read_only=True, default=None)
    appointment_type_color = serializers.CharField(source='appointment_type.color', read_only=True, default=None)

    class Meta:
        model = Appointment
        fields = ['id', 'reference', 'user', 'appointment_type', 'appointment_type_name', 'appointment_type_color',
                  'customer_name', 'customer_phone', 'customer_email', 'date', 'time', 'status', 'notes',
                  'admin_notes', 'confirmed_at', 'completed_at', 'cancelled_at', 'created_at', 'updated_at']
        read_only_fields = fields


class AppointmentBookSerializer(serializers.Serializer):
    appointment_type = serializers.PrimaryKeyRelatedField(queryset=AppointmentType.objects.filter(is_active=True))
    customer_name = serializers.CharField(max_length=200)
    customer_phone = serializers.CharField(max_length=20)
    customer_email = serializers.EmailField(required=False, allow_blank=True, allow_null=True)
    date = serializers.DateField()
    time = serializers.TimeField()
    notes = serializers.CharField(required=False, allow_blank=True)


class AppointmentUpdateSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Appointment.STATUS_CHOICES, required=False)
    admin_notes = serializers.CharField(required=False, allow_blank=True)
