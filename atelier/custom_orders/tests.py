"""
Test suite for custom (tailoring) orders
Tests: creation with deposit, invoice mirroring, payments, status timeline and the production board
"""
from datetime import timedelta
from decimal import Decimal
from unittest.mock import patch
from django.test import TestCase
from django.utils import timezone
from rest_framework import status
from atelier.core.test_utils import TestDataFactory, AuthenticatedAPIClient, FakeSmsingClient
from atelier.custom_orders.models import CustomOrder
from atelier.custom_orders.services import (
    create_custom_order, update_custom_order, add_custom_order_payment, delete_custom_order_payment,
    production_board, CustomOrderError,
)
from atelier.invoices.models import Invoice, InvoicePayment


class CustomOrderServiceTests(TestCase):
    """Test the custom order workflow"""

    def setUp(self):
        self.staff = TestDataFactory.create_staff()

    def test_create_with_deposit(self):
        custom_order = TestDataFactory.create_custom_order(
            user=self.staff,
            items=[
                {'garment_type': 'Boubou', 'quantity': 2, 'unit_price': Decimal('15000')},
                {'garment_type': 'Pagne', 'quantity': 1, 'unit_price': Decimal('5000')},
            ],
            material_cost=Decimal('4000'),
            deposit=Decimal('10000'),
        )
        self.assertRegex(custom_order.order_number, r'^SM-\d{6}-0001$')
        self.assertEqual(custom_order.total_cost, Decimal('35000'))
        self.assertEqual(custom_order.grand_total, Decimal('39000'))
        self.assertEqual(custom_order.balance, Decimal('29000'))

        invoice = Invoice.objects.get(custom_order=custom_order)
        self.assertEqual(invoice.total, Decimal('39000'))
        self.assertEqual(invoice.items.count(), 3)
        self.assertEqual(invoice.status, 'PARTIAL')
        self.assertEqual(invoice.due_date, custom_order.pickup_date)
        deposit = custom_order.payments.get()
        self.assertEqual(deposit.payment_type, 'DEPOSIT')
        self.assertTrue(deposit.reference.startswith('CP-'))
        self.assertEqual(invoice.payments.get().reference, deposit.reference)
        self.assertEqual(custom_order.timeline.count(), 2)

    def test_deposit_cannot_exceed_total(self):
        with self.assertRaises(CustomOrderError):
            TestDataFactory.create_custom_order(deposit=Decimal('20000'))
        self.assertFalse(CustomOrder.objects.exists())
        self.assertFalse(Invoice.objects.exists())

    def test_items_required(self):
        with self.assertRaises(CustomOrderError):
            create_custom_order({'customer_name': 'X', 'pickup_date': timezone.localdate(), 'items': []})

    def test_payments_settle_order(self):
        custom_order = TestDataFactory.create_custom_order()
        first = add_custom_order_payment(custom_order, Decimal('5000'), user=self.staff)
        self.assertEqual(first.payment_type, 'DEPOSIT')
        second = add_custom_order_payment(custom_order, Decimal('4000'))
        self.assertEqual(second.payment_type, 'PARTIAL')
        last = add_custom_order_payment(custom_order, Decimal('6000'), payment_method='WAVE')
        self.assertEqual(last.payment_type, 'BALANCE')
        self.assertEqual(custom_order.balance, Decimal('0'))
        invoice = Invoice.objects.get(custom_order=custom_order)
        self.assertEqual(invoice.status, 'PAID')
        self.assertEqual(invoice.receipts.count(), 3)

    def test_overpayment_rejected(self):
        custom_order = TestDataFactory.create_custom_order()
        with self.assertRaises(CustomOrderError):
            add_custom_order_payment(custom_order, Decimal('15001'))
        with self.assertRaises(CustomOrderError):
            add_custom_order_payment(custom_order, Decimal('0'))

    def test_delete_payment_removes_mirror(self):
        custom_order = TestDataFactory.create_custom_order()
        payment = add_custom_order_payment(custom_order, Decimal('15000'))
        delete_custom_order_payment(payment, user=self.staff)
        self.assertFalse(InvoicePayment.objects.filter(reference=payment.reference).exists())
        invoice = Invoice.objects.get(custom_order=custom_order)
        self.assertEqual(invoice.status, 'SENT')
        self.assertEqual(custom_order.balance, Decimal('15000'))
        self.assertTrue(custom_order.timeline.filter(event='Paiement supprimé').exists())

    def test_update_items_syncs_invoice(self):
        custom_order = TestDataFactory.create_custom_order()
        update_custom_order(custom_order, {
            'items': [{'garment_type': 'Costume', 'quantity': 1, 'unit_price': Decimal('60000')}],
            'material_cost': Decimal('10000'),
        })
        invoice = Invoice.objects.get(custom_order=custom_order)
        self.assertEqual(custom_order.total_cost, Decimal('60000'))
        self.assertEqual(invoice.total, Decimal('70000'))

    def test_ready_notifies_customer(self):
        TestDataFactory.create_notification_template('CUSTOM_ORDER_READY',
                                                     content='{customer_name}, {custom_order_number} est prête')
        custom_order = TestDataFactory.create_custom_order()
        fake = FakeSmsingClient()
        with patch('atelier.notifications.service.get_client', return_value=fake):
            update_custom_order(custom_order, {'status': 'READY'}, user=self.staff)
        self.assertEqual(fake.sent, [('SMS', '0505050505', f'Koffi Yao, {custom_order.order_number} est prête')])
        self.assertTrue(custom_order.timeline.filter(event__startswith='Statut changé').exists())

    def test_production_board_flags_overdue(self):
        late = TestDataFactory.create_custom_order(pickup_date=timezone.localdate() - timedelta(days=1))
        on_time = TestDataFactory.create_custom_order()
        done = TestDataFactory.create_custom_order()
        update_custom_order(done, {'status': 'DELIVERED'})
        board = production_board(CustomOrder.objects.all())
        self.assertEqual(board['PENDING'], [(late, True), (on_time, False)])
        self.assertNotIn('DELIVERED', board)


class CustomOrderAPITests(TestCase):
    """Test the custom order endpoints"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.staff = TestDataFactory.create_staff()
        self.client.authenticate_user(self.staff)

    def test_create_and_detail(self):
        data = {
            'customer_name': 'Aminata Traoré',
            'customer_phone': '0700112233',
            'pickup_date': str(timezone.localdate() + timedelta(days=10)),
            'measurements': {'tour_de_taille': 72},
            'items': [{'garment_type': 'Robe', 'quantity': 1, 'unit_price': '25000'}],
            'deposit': '10000',
            'deposit_method': 'ORANGE_MONEY',
        }
        response = self.client.post('/api/v1/admin/custom-orders/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(Decimal(response.data['deposit']), Decimal('10000'))
        self.assertEqual(Decimal(response.data['balance']), Decimal('15000'))
        self.assertEqual(response.data['invoice']['status'], 'PARTIAL')
        self.assertEqual(response.data['payments'][0]['payment_method'], 'ORANGE_MONEY')

    def test_create_without_items(self):
        data = {'customer_name': 'A', 'pickup_date': str(timezone.localdate()), 'items': []}
        response = self.client.post('/api/v1/admin/custom-orders/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_list_stats(self):
        TestDataFactory.create_custom_order()
        response = self.client.get('/api/v1/admin/custom-orders/')
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['stats'], {'PENDING': 1})

    def test_payment_endpoints(self):
        custom_order = TestDataFactory.create_custom_order()
        url = f'/api/v1/admin/custom-orders/{custom_order.id}/payments/'
        response = self.client.post(url, {'amount': '20000'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        response = self.client.post(url, {'amount': '15000'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        summary = self.client.get(url).data['summary']
        self.assertTrue(summary['is_paid_in_full'])
        response = self.client.delete(f"{url}{response.data['id']}/")
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)

    def test_tailor_sees_assigned_orders_only(self):
        tailor = TestDataFactory.create_staff(role='TAILOR')
        assigned = TestDataFactory.create_custom_order(tailor=tailor)
        TestDataFactory.create_custom_order()
        self.client.authenticate_user(tailor)
        response = self.client.get('/api/v1/admin/production/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([o['id'] for o in response.data['columns']['PENDING']], [assigned.id])

    def test_staff_cannot_delete(self):
        custom_order = TestDataFactory.create_custom_order()
        response = self.client.delete(f'/api/v1/admin/custom-orders/{custom_order.id}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.client.authenticate_user(TestDataFactory.create_admin())
        response = self.client.delete(f'/api/v1/admin/custom-orders/{custom_order.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)

    def test_status_update_via_patch(self):
        custom_order = TestDataFactory.create_custom_order()
        response = self.client.patch(f'/api/v1/admin/custom-orders/{custom_order.id}/',
                                     {'status': 'IN_PROGRESS'}, format='json')
        self.assertEqual(response.data['status'], 'IN_PROGRESS')
        timeline = self.client.get(f'/api/v1/admin/custom-orders/{custom_order.id}/timeline/').data
        self.assertIn('Statut changé: En production', [entry['event'] for entry in timeline])
