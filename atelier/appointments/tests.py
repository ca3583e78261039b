"""
Test suite for appointment booking
Tests: slot generation, booking rules, cancellation, back-office status changes
"""
from datetime import datetime, time, timedelta
from unittest.mock import patch
from django.test import TestCase
from django.utils import timezone
from rest_framework import status
from atelier.appointments.models import Appointment, Availability
from atelier.appointments.services import (
    generate_slots, get_available_slots, book_appointment, cancel_appointment, update_appointment_status,
    AppointmentError,
)
from atelier.core.test_utils import TestDataFactory, AuthenticatedAPIClient, FakeSmsingClient
from atelier.notifications.models import NotificationSettings


class SlotTests(TestCase):
    """Test slot generation from the weekly availability"""

    def setUp(self):
        self.date = timezone.localdate() + timedelta(days=7)

    def test_generate_slots(self):
        availability = Availability(day_of_week=0, start_time=time(9, 0), end_time=time(12, 0), slot_duration=60)
        self.assertEqual(generate_slots(availability), [time(9, 0), time(10, 0), time(11, 0)])

    def test_break_between_slots(self):
        availability = Availability(day_of_week=0, start_time=time(9, 0), end_time=time(12, 0),
                                    slot_duration=60, break_between=30)
        self.assertEqual(generate_slots(availability), [time(9, 0), time(10, 30)])

    def test_closed_day(self):
        self.assertEqual(get_available_slots(self.date), [])

    def test_booked_slot_unavailable(self):
        TestDataFactory.create_availability(self.date.weekday())
        book_appointment({'date': self.date, 'time': time(10, 0), 'customer_name': 'Awa',
                          'customer_phone': '0707070707'})
        slots = get_available_slots(self.date)
        self.assertEqual(slots, [
            {'time': '09:00', 'available': True},
            {'time': '10:00', 'available': False},
            {'time': '11:00', 'available': True},
        ])

    def test_past_date_unavailable(self):
        past = timezone.localdate() - timedelta(days=7)
        TestDataFactory.create_availability(past.weekday())
        self.assertFalse(any(slot['available'] for slot in get_available_slots(past)))


class BookingTests(TestCase):
    """Test booking and status rules"""

    def setUp(self):
        self.date = timezone.localdate() + timedelta(days=7)
        TestDataFactory.create_availability(self.date.weekday())
        self.appointment_type = TestDataFactory.create_appointment_type(name='Prise de mesures')

    def _book(self, slot=time(9, 0), **extra):
        data = {'date': self.date, 'time': slot, 'customer_name': 'Mariam Ouattara',
                'customer_phone': '0102030405', 'appointment_type': self.appointment_type}
        data.update(extra)
        return book_appointment(data)

    def test_reference_format(self):
        appointment = self._book()
        self.assertRegex(appointment.reference, rf'^RDV-{timezone.localdate().year}-[A-Z0-9]{{6}}$')
        self.assertEqual(appointment.status, 'PENDING')

    def test_double_booking_rejected(self):
        self._book()
        with self.assertRaises(AppointmentError):
            self._book()

    def test_cancelled_slot_released(self):
        appointment = self._book()
        cancel_appointment(appointment)
        self.assertEqual(self._book().time, time(9, 0))

    def test_off_grid_time_rejected(self):
        with self.assertRaises(AppointmentError):
            self._book(slot=time(9, 30))
        with self.assertRaises(AppointmentError):
            self._book(date=timezone.localdate() - timedelta(days=1))

    def test_earlier_slot_today_rejected(self):
        now = timezone.make_aware(datetime.combine(self.date, time(10, 30)))
        with patch('atelier.appointments.services.timezone.localtime', return_value=now):
            with self.assertRaises(AppointmentError):
                self._book(slot=time(9, 0))
            self.assertEqual(self._book(slot=time(11, 0)).time, time(11, 0))

    def test_completed_cannot_be_cancelled(self):
        appointment = self._book()
        update_appointment_status(appointment, 'COMPLETED')
        self.assertIsNotNone(appointment.completed_at)
        with self.assertRaises(AppointmentError):
            cancel_appointment(appointment)

    def test_confirmation_notifies_customer(self):
        TestDataFactory.create_notification_template(
            'APPOINTMENT_CONFIRMED', content='RDV {appointment_reference} le {appointment_date} à {appointment_time}'
        )
        appointment = self._book()
        fake = FakeSmsingClient()
        with patch('atelier.notifications.service.get_client', return_value=fake):
            update_appointment_status(appointment, 'CONFIRMED', admin_notes='Apporter le tissu')
        expected = f"RDV {appointment.reference} le {self.date.strftime('%d/%m/%Y')} à 09:00"
        self.assertEqual(fake.sent, [('SMS', '0102030405', expected)])
        self.assertIsNotNone(appointment.confirmed_at)
        self.assertEqual(appointment.admin_notes, 'Apporter le tissu')

    def test_cancellation_alerts_admins(self):
        TestDataFactory.create_notification_template('ADMIN_APPOINTMENT_CANCELLED',
                                                     content='Annulation {appointment_reference}')
        settings = NotificationSettings.load()
        settings.admin_phones = ['0700000001']
        settings.save()
        appointment = self._book()
        fake = FakeSmsingClient()
        with patch('atelier.notifications.service.get_client', return_value=fake):
            cancel_appointment(appointment, reason='Empêchement')
        self.assertEqual(fake.sent, [('SMS', '0700000001', f'Annulation {appointment.reference}')])
        self.assertIn('Annulation: Empêchement', appointment.notes)

    def test_invalid_status(self):
        with self.assertRaises(AppointmentError):
            update_appointment_status(self._book(), 'LATE')


class AppointmentAPITests(TestCase):
    """Test the appointment endpoints"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.date = timezone.localdate() + timedelta(days=7)
        TestDataFactory.create_availability(self.date.weekday())
        self.appointment_type = TestDataFactory.create_appointment_type()

    def _payload(self, **extra):
        data = {'appointment_type': self.appointment_type.id, 'customer_name': 'Invité',
                'customer_phone': '0101010101', 'date': str(self.date), 'time': '10:00'}
        data.update(extra)
        return data

    def test_guest_booking(self):
        response = self.client.post('/api/v1/appointments/', self._payload(), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertIsNone(response.data['user'])
        response = self.client.post('/api/v1/appointments/', self._payload(), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_slots_endpoint(self):
        response = self.client.get('/api/v1/appointments/slots/', {'date': str(self.date)})
        self.assertEqual(len(response.data['slots']), 3)
        response = self.client.get('/api/v1/appointments/slots/', {'date': 'demain'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_customer_lists_and_cancels_own(self):
        customer = TestDataFactory.create_user()
        self.client.authenticate_user(customer)
        appointment_id = self.client.post('/api/v1/appointments/', self._payload(), format='json').data['id']
        response = self.client.get('/api/v1/appointments/')
        self.assertEqual(len(response.data), 1)
        self.client.authenticate_user(TestDataFactory.create_user())
        response = self.client.post(f'/api/v1/appointments/{appointment_id}/cancel/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.client.authenticate_user(customer)
        response = self.client.post(f'/api/v1/appointments/{appointment_id}/cancel/', {'reason': 'Voyage'})
        self.assertEqual(response.data['status'], 'CANCELLED')

    def test_admin_list_and_update(self):
        self.client.post('/api/v1/appointments/', self._payload(), format='json')
        self.client.authenticate_user(TestDataFactory.create_staff(role='TAILOR'))
        response = self.client.get('/api/v1/admin/appointments/')
        self.assertEqual(response.data['stats']['pending'], 1)
        appointment_id = response.data['results'][0]['id']
        response = self.client.patch(f'/api/v1/admin/appointments/{appointment_id}/',
                                     {'status': 'CONFIRMED'}, format='json')
        self.assertEqual(response.data['status'], 'CONFIRMED')

    def test_tailor_cannot_edit_availability(self):
        self.client.authenticate_user(TestDataFactory.create_staff(role='TAILOR'))
        response = self.client.get('/api/v1/admin/appointments/availability/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_availability_upsert(self):
        self.client.authenticate_user(TestDataFactory.create_staff())
        data = {'day_of_week': self.date.weekday(), 'start_time': '14:00', 'end_time': '18:00', 'slot_duration': 30}
        response = self.client.post('/api/v1/admin/appointments/availability/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(Availability.objects.get(day_of_week=self.date.weekday()).slot_duration, 30)
        data['end_time'] = '13:00'
        response = self.client.post('/api/v1/admin/appointments/availability/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_type_with_history_is_deactivated(self):
        self.client.post('/api/v1/appointments/', self._payload(), format='json')
        self.client.authenticate_user(TestDataFactory.create_admin())
        response = self.client.delete(f'/api/v1/admin/appointments/types/{self.appointment_type.id}/')
        self.assertFalse(response.data['is_active'])
        self.assertTrue(Appointment.objects.exists())
