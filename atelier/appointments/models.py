import random
import string
from decimal import Decimal

from django.conf import settings
from django.db import models
from django.utils import timezone


def generate_appointment_reference():
    """RDV-YYYY-XXXXXX"""
    alphabet = string.ascii_uppercase + string.digits
    year = timezone.localdate().year
    while True:
        candidate = f"RDV-{year}-{''.join(random.choices(alphabet, k=6))}"
        if not Appointment.objects.filter(reference=candidate).exists():
            return candidate


class AppointmentType(models.Model):
    """A bookable service (consultation, fitting, measurements...)"""
    name = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    duration = models.PositiveIntegerField(default=60, help_text="Duration in minutes")
    price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    color = models.CharField(max_length=20, default='#3B82F6')
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'appointment_types'
        ordering = ['name']


class Availability(models.Model):
    """Weekly opening hours; day_of_week follows date.weekday() (0 = Monday)"""
    DAY_CHOICES = [
        (0, 'Lundi'),
        (1, 'Mardi'),
        (2, 'Mercredi'),
        (3, 'Jeudi'),
        (4, 'Vendredi'),
        (5, 'Samedi'),
        (6, 'Dimanche'),
    ]

    day_of_week = models.PositiveSmallIntegerField(choices=DAY_CHOICES, unique=True)
    start_time = models.TimeField()
    end_time = models.TimeField()
    slot_duration = models.PositiveIntegerField(default=60, help_text="Slot length in minutes")
    break_between = models.PositiveIntegerField(default=0, help_text="Minutes between two slots")
    enabled = models.BooleanField(default=True)

    def __str__(self):
        return f"{self.get_day_of_week_display()} {self.start_time:%H:%M}-{self.end_time:%H:%M}"

    class Meta:
        db_table = 'appointment_availability'
        ordering = ['day_of_week']


class Appointment(models.Model):
    STATUS_CHOICES = [
        ('PENDING', 'En attente'),
        ('CONFIRMED', 'Confirmé'),
        ('COMPLETED', 'Terminé'),
        ('CANCELLED', 'Annulé'),
        ('NO_SHOW', 'Absent'),
    ]
    # Statuses the customer may still cancel
    CANCELLABLE_STATUSES = ('PENDING', 'CONFIRMED')

    reference = models.CharField(max_length=30, unique=True, blank=True)
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='appointments')
    appointment_type = models.ForeignKey(AppointmentType, on_delete=models.SET_NULL, null=True, blank=True, related_name='appointments')
    customer_name = models.CharField(max_length=200)
    customer_phone = models.CharField(max_length=20)
    customer_email = models.EmailField(blank=True, null=True)
    date = models.DateField()
    time = models.TimeField()
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='PENDING')
    notes = models.TextField(blank=True)
    admin_notes = models.TextField(blank=True)
    confirmed_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.reference} - {self.customer_name}"

    def save(self, *args, **kwargs):
        if not self.reference:
            self.reference = generate_appointment_reference()
        super().save(*args, **kwargs)

    class Meta:
        db_table = 'appointments'
        ordering = ['-date', '-time']
        indexes = [
            models.Index(fields=['date', 'time'], name='appointment_slot_idx'),
            models.Index(fields=['status'], name='appointment_status_idx'),
        ]
