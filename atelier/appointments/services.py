"""
Appointment booking.

Slots are generated from the weekly Availability of the requested day:
consecutive ``slot_duration`` windows separated by ``break_between`` minutes,
the last one ending no later than ``end_time``. A slot is taken while a
non-cancelled appointment holds the same date and time.
"""
import logging
from datetime import datetime, timedelta

from django.db import transaction
from django.utils import timezone

from atelier.notifications.service import dispatch_notification
from .models import Appointment, Availability

logger = logging.getLogger(__name__)

# Statuses that release their slot
RELEASED_STATUSES = ('CANCELLED', 'NO_SHOW')

STATUS_TIMESTAMPS = {
    'CONFIRMED': 'confirmed_at',
    'COMPLETED': 'completed_at',
    'CANCELLED': 'cancelled_at',
}


class AppointmentError(Exception):
    """Raised when an appointment cannot be booked or changed"""


def generate_slots(availability):
    """Start times of every slot of an availability window"""
    if availability.slot_duration <= 0:
        return []
    day = datetime(2000, 1, 1)
    current = datetime.combine(day, availability.start_time)
    end = datetime.combine(day, availability.end_time)
    step = timedelta(minutes=availability.slot_duration + availability.break_between)
    length = timedelta(minutes=availability.slot_duration)
    slots = []
    while current + length <= end:
        slots.append(current.time())
        current += step
    return slots


def get_available_slots(date):
    """[{'time': 'HH:MM', 'available': bool}] for a date; empty when the shop is closed"""
    availability = Availability.objects.filter(day_of_week=date.weekday(), enabled=True).first()
    if availability is None:
        return []
    booked = set(
        Appointment.objects.filter(date=date).exclude(status__in=RELEASED_STATUSES).values_list('time', flat=True)
    )
    now = timezone.localtime()
    slots = []
    for slot in generate_slots(availability):
        in_past = date < now.date() or (date == now.date() and slot <= now.time())
        slots.append({'time': slot.strftime('%H:%M'), 'available': slot not in booked and not in_past})
    return slots


def book_appointment(data, user=None):
    """
    Book a slot.

    The date/time must fall on a slot of that day's availability, not in the
    past, and must not already be held by another live appointment.
    """
    date = data['date']
    time = data['time'].replace(second=0, microsecond=0)
    now = timezone.localtime()
    if date < now.date():
        raise AppointmentError("Impossible de réserver une date passée")
    if date == now.date() and time <= now.time():
        raise AppointmentError("Ce créneau est déjà passé")

    availability = Availability.objects.filter(day_of_week=date.weekday(), enabled=True).first()
    if availability is None or time not in generate_slots(availability):
        raise AppointmentError("Ce créneau n'est pas disponible")

    user = user if user is not None and user.is_authenticated else None
    with transaction.atomic():
        taken = Appointment.objects.select_for_update().filter(date=date, time=time).exclude(
            status__in=RELEASED_STATUSES
        ).exists()
        if taken:
            raise AppointmentError("Ce créneau n'est plus disponible. Veuillez en choisir un autre.")
        appointment = Appointment.objects.create(
            user=user,
            appointment_type=data.get('appointment_type'),
            customer_name=data['customer_name'],
            customer_phone=data['customer_phone'],
            customer_email=data.get('customer_email') or (user.email if user else None) or None,
            date=date,
            time=time,
            notes=data.get('notes', ''),
        )
    logger.info(f"Appointment {appointment.reference} booked for {date} {time:%H:%M}")
    return appointment


def cancel_appointment(appointment, user=None, reason=''):
    """Customer-side cancellation; the shop is notified"""
    if appointment.status not in Appointment.CANCELLABLE_STATUSES:
        raise AppointmentError("Ce rendez-vous ne peut plus être annulé")
    appointment.status = 'CANCELLED'
    appointment.cancelled_at = timezone.now()
    if reason:
        appointment.notes = f"{appointment.notes}\nAnnulation: {reason}".strip()
    appointment.save(update_fields=['status', 'cancelled_at', 'notes', 'updated_at'])

    dispatch_notification('ADMIN_APPOINTMENT_CANCELLED', {'appointment': appointment})
    dispatch_notification('APPOINTMENT_CANCELLED', {'appointment': appointment},
                          recipient=appointment.customer_phone)
    return appointment


def update_appointment_status(appointment, new_status, admin_notes=None, user=None):
    """Back-office status change stamping the matching timestamp"""
    if new_status not in dict(Appointment.STATUS_CHOICES):
        raise AppointmentError(f"Invalid status: {new_status}")
    old_status = appointment.status
    if admin_notes is not None:
        appointment.admin_notes = admin_notes
    if new_status != old_status:
        appointment.status = new_status
        field = STATUS_TIMESTAMPS.get(new_status)
        if field:
            setattr(appointment, field, timezone.now())
    appointment.save()

    if new_status != old_status:
        if new_status == 'CONFIRMED':
            dispatch_notification('APPOINTMENT_CONFIRMED', {'appointment': appointment},
                                  recipient=appointment.customer_phone)
        elif new_status == 'CANCELLED':
            dispatch_notification('APPOINTMENT_CANCELLED', {'appointment': appointment},
                                  recipient=appointment.customer_phone)
    return appointment


def appointment_stats():
    today = timezone.localdate()
    week_start = today - timedelta(days=today.weekday())
    return {
        'pending': Appointment.objects.filter(status='PENDING').count(),
        'confirmed': Appointment.objects.filter(status='CONFIRMED').count(),
        'completed_today': Appointment.objects.filter(status='COMPLETED', completed_at__date=today).count(),
        'today': Appointment.objects.filter(date=today).exclude(status__in=RELEASED_STATUSES).count(),
        'this_week': Appointment.objects.filter(date__gte=week_start, date__lt=week_start + timedelta(days=7)).count(),
    }
