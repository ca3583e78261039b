from django.contrib import admin
from .models import AppointmentType, Availability, Appointment


@admin.register(AppointmentType)
class AppointmentTypeAdmin(admin.ModelAdmin):
    list_display = ['name', 'duration', 'price', 'is_active']
    list_filter = ['is_active']


@admin.register(Availability)
class AvailabilityAdmin(admin.ModelAdmin):
    list_display = ['day_of_week', 'start_time', 'end_time', 'slot_duration', 'break_between', 'enabled']


@admin.register(Appointment)
class AppointmentAdmin(admin.ModelAdmin):
    list_display = ['reference', 'customer_name', 'customer_phone', 'date', 'time', 'status']
    list_filter = ['status', 'appointment_type', 'date']
    search_fields = ['reference', 'customer_name', 'customer_phone']
    readonly_fields = ['reference', 'confirmed_at', 'completed_at', 'cancelled_at', 'created_at', 'updated_at']
