"""
Test suite for the back-office dashboard
Tests: revenue, pending payments, workshop load, expenses and caching
"""
from datetime import time, timedelta
from decimal import Decimal
from django.core.cache import cache
from django.test import TestCase
from django.utils import timezone
from rest_framework import status
from atelier.appointments.services import book_appointment
from atelier.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from atelier.custom_orders.services import add_custom_order_payment
from atelier.orders.services import update_order_status, update_payment_status
from atelier.reports.views import build_dashboard


class DashboardTests(TestCase):
    """Test the dashboard figures"""

    def setUp(self):
        cache.clear()
        self.today = timezone.localdate()
        self.product = TestDataFactory.create_product(price=Decimal('10000'), stock=8, low_stock_threshold=5)

    def tearDown(self):
        cache.clear()

    def _dashboard(self):
        return build_dashboard(None, self.today - timedelta(days=30), self.today)

    def test_revenue_sources(self):
        paid = TestDataFactory.create_order(products=[(self.product, 2)])
        update_payment_status(paid, 'COMPLETED')
        refunded = TestDataFactory.create_order(products=[(self.product, 1)])
        update_payment_status(refunded, 'COMPLETED')
        update_order_status(refunded, 'REFUNDED', notify=False)
        TestDataFactory.create_order(products=[(self.product, 1)])
        custom_order = TestDataFactory.create_custom_order()
        add_custom_order_payment(custom_order, Decimal('5000'))
        TestDataFactory.create_expense(amount=Decimal('7000'))

        data = self._dashboard()
        self.assertEqual(data['revenue']['orders'], Decimal('20000'))
        self.assertEqual(data['revenue']['custom_orders'], Decimal('5000'))
        self.assertEqual(data['revenue']['total'], Decimal('25000'))
        self.assertEqual(data['expenses'], {'total': Decimal('7000'), 'count': 1})
        self.assertEqual(data['net'], Decimal('18000'))
        self.assertEqual(data['orders']['total'], 3)
        self.assertEqual(data['orders']['by_status']['REFUNDED'], 1)
        self.assertEqual(data['orders']['by_status']['SHIPPED'], 0)

    def test_pending_payments(self):
        TestDataFactory.create_order(products=[(self.product, 1)])
        custom_order = TestDataFactory.create_custom_order()
        add_custom_order_payment(custom_order, Decimal('5000'))
        data = self._dashboard()
        self.assertEqual(data['pending_payments']['orders_count'], 1)
        self.assertEqual(data['pending_payments']['orders_amount'], Decimal('10000'))
        self.assertEqual(data['pending_payments']['invoices_count'], 2)
        self.assertEqual(data['pending_payments']['invoices_outstanding'], Decimal('20000'))

    def test_workshop_and_stock(self):
        TestDataFactory.create_custom_order(pickup_date=self.today - timedelta(days=2))
        TestDataFactory.create_custom_order()
        TestDataFactory.create_order(products=[(self.product, 4)])
        date = self.today + timedelta(days=7)
        TestDataFactory.create_availability(date.weekday())
        book_appointment({'date': date, 'time': time(9, 0), 'customer_name': 'Awa',
                          'customer_phone': '0707070707'})
        data = self._dashboard()
        self.assertEqual(data['custom_orders']['in_progress'], 2)
        self.assertEqual(data['custom_orders']['overdue'], 1)
        self.assertEqual(data['custom_orders']['by_status'], {'PENDING': 2})
        self.assertEqual(data['low_stock_count'], 1)
        self.assertEqual(data['low_stock_products'][0]['stock'], 4)
        self.assertEqual(len(data['recent_orders']), 1)
        self.assertEqual(data['upcoming_appointments'], 1)

    def test_orders_outside_period_ignored(self):
        order = TestDataFactory.create_order(products=[(self.product, 1)])
        update_payment_status(order, 'COMPLETED')
        data = build_dashboard(None, self.today - timedelta(days=60), self.today - timedelta(days=31))
        self.assertEqual(data['revenue']['total'], Decimal('0.00'))
        self.assertEqual(data['orders']['total'], 0)


class DashboardAPITests(TestCase):
    """Test the dashboard endpoint"""

    def setUp(self):
        cache.clear()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(TestDataFactory.create_staff(role='TAILOR'))

    def tearDown(self):
        cache.clear()

    def test_default_period(self):
        response = self.client.get('/api/v1/admin/dashboard/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        today = timezone.localdate()
        self.assertEqual(response.data['period'], {
            'from': (today - timedelta(days=30)).isoformat(), 'to': today.isoformat(),
        })

    def test_invalid_range(self):
        response = self.client.get('/api/v1/admin/dashboard/', {'date_from': '2026-02-01', 'date_to': '2026-01-01'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_cached_until_invalidated(self):
        self.client.get('/api/v1/admin/dashboard/')
        TestDataFactory.create_expense(amount=Decimal('1000'))
        response = self.client.get('/api/v1/admin/dashboard/')
        self.assertEqual(response.data['expenses']['count'], 0)
        self.client.authenticate_user(TestDataFactory.create_admin())
        self.client.post('/api/v1/admin/expenses/', {
            'category': TestDataFactory.create_expense_category().id, 'description': 'Taxi',
            'amount': '2000', 'payment_method': 'CASH',
        }, format='json')
        response = self.client.get('/api/v1/admin/dashboard/')
        self.assertEqual(response.data['expenses']['count'], 2)

    def test_customer_forbidden(self):
        self.client.authenticate_user(TestDataFactory.create_user())
        response = self.client.get('/api/v1/admin/dashboard/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
