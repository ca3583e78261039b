"""
Test suite for checkout and the order lifecycle
Tests: pricing, stock reservation, coupons, shipping, invoices, status changes and access rules
"""
from datetime import timedelta
from decimal import Decimal
from unittest.mock import patch
from django.test import TestCase
from django.utils import timezone
from rest_framework import status
from atelier.core.models import AuditLog
from atelier.core.test_utils import TestDataFactory, AuthenticatedAPIClient, FakeSmsingClient
from atelier.invoices.models import Invoice
from atelier.notifications.models import NotificationLog
from atelier.orders.models import Order, Coupon
from atelier.orders.services import (
    create_order, validate_coupon, update_order_status, update_payment_status, update_shipping_cost,
    CheckoutError, CouponError, OrderStatusError,
)
from atelier.payments.models import Payment


class CouponTests(TestCase):
    """Test coupon validation rules"""

    def test_percentage_discount(self):
        Coupon.objects.create(code='TABASKI10', discount_type='percentage', value=Decimal('10'))
        coupon, discount = validate_coupon(' tabaski10 ', Decimal('25000'))
        self.assertEqual(coupon.code, 'TABASKI10')
        self.assertEqual(discount, Decimal('2500.00'))

    def test_fixed_discount_capped_at_total(self):
        Coupon.objects.create(code='MOINS5000', discount_type='fixed', value=Decimal('5000'))
        _, discount = validate_coupon('MOINS5000', Decimal('3000'))
        self.assertEqual(discount, Decimal('3000'))

    def test_invalid_coupons(self):
        now = timezone.now()
        Coupon.objects.create(code='OFF', value=Decimal('10'), is_active=False)
        Coupon.objects.create(code='OLD', value=Decimal('10'), valid_until=now - timedelta(days=1))
        Coupon.objects.create(code='SOON', value=Decimal('10'), valid_from=now + timedelta(days=1))
        Coupon.objects.create(code='USED', value=Decimal('10'), max_uses=1, used_count=1)
        Coupon.objects.create(code='BIG', value=Decimal('10'), min_order_amount=Decimal('50000'))
        for code in ('', 'NOPE', 'OFF', 'OLD', 'SOON', 'USED', 'BIG'):
            with self.assertRaises(CouponError):
                validate_coupon(code, Decimal('10000'))


class CheckoutServiceTests(TestCase):
    """Test order placement"""

    def setUp(self):
        self.product = TestDataFactory.create_product(name='Robe Kente', price=Decimal('20000'), stock=5)

    def _data(self, **extra):
        data = {
            'items': [{'product': self.product, 'quantity': 2}],
            'billing_name': 'Awa Koné',
            'billing_phone': '0707070707',
        }
        data.update(extra)
        return data

    def test_prices_come_from_catalog(self):
        order, payment = create_order(self._data())
        self.assertEqual(order.subtotal, Decimal('40000'))
        self.assertEqual(order.total, Decimal('40000'))
        self.assertIsNone(payment)
        self.assertEqual(order.items.get().price, Decimal('20000'))
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, 3)

    def test_order_number_format(self):
        order, _ = create_order(self._data())
        prefix = timezone.localdate().strftime('%d%m%y')
        self.assertRegex(order.order_number, rf'^{prefix}-[A-Z0-9]{{5}}$')

    def test_invoice_issued_with_order(self):
        order, _ = create_order(self._data())
        invoice = Invoice.objects.get(order=order)
        self.assertEqual(invoice.status, 'SENT')
        self.assertEqual(invoice.total, order.total)
        self.assertEqual(invoice.items.count(), 1)

    def test_insufficient_stock(self):
        with self.assertRaises(CheckoutError):
            create_order(self._data(items=[{'product': self.product, 'quantity': 6}]))
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, 5)
        self.assertFalse(Order.objects.exists())

    def test_inactive_product(self):
        self.product.is_active = False
        self.product.save()
        with self.assertRaises(CheckoutError):
            create_order(self._data())

    def test_empty_cart(self):
        with self.assertRaises(CheckoutError):
            create_order(self._data(items=[]))

    def test_coupon_and_shipping(self):
        Coupon.objects.create(code='WAX10', discount_type='percentage', value=Decimal('10'))
        method = TestDataFactory.create_shipping_method(cost=Decimal('1500'))
        order, _ = create_order(self._data(coupon_code='WAX10', shipping_method=method))
        self.assertEqual(order.discount, Decimal('4000.00'))
        self.assertEqual(order.shipping_cost, Decimal('1500'))
        self.assertEqual(order.total, Decimal('37500.00'))
        self.assertEqual(Coupon.objects.get(code='WAX10').used_count, 1)

    def test_invalid_coupon_blocks_checkout(self):
        with self.assertRaises(CheckoutError):
            create_order(self._data(coupon_code='NOPE'))

    def test_variable_shipping_priced_later(self):
        method = TestDataFactory.create_shipping_method(cost_type='variable')
        order, _ = create_order(self._data(shipping_method=method))
        self.assertEqual(order.shipping_cost, Decimal('0.00'))
        update_shipping_cost(order, Decimal('3000'))
        order.refresh_from_db()
        self.assertEqual(order.total, Decimal('43000'))
        self.assertEqual(Invoice.objects.get(order=order).total, Decimal('43000'))

    def test_gateway_method_creates_pending_payment(self):
        order, payment = create_order(self._data(payment_method='WAVE'))
        self.assertIsNotNone(payment)
        self.assertEqual(payment.status, 'PENDING')
        self.assertEqual(payment.amount, order.total)
        self.assertTrue(payment.reference.startswith('CMD-'))

    def test_order_placed_notifications(self):
        TestDataFactory.create_notification_template('ORDER_PLACED',
                                                     content='Merci {customer_name}, commande {order_number}')
        fake = FakeSmsingClient()
        with patch('atelier.notifications.service.get_client', return_value=fake):
            order, _ = create_order(self._data())
        self.assertEqual(fake.sent[0][1], '0707070707')
        self.assertEqual(fake.sent[0][2], f'Merci Awa Koné, commande {order.order_number}')
        self.assertEqual(NotificationLog.objects.get(trigger='ORDER_PLACED').order, order)


class OrderLifecycleTests(TestCase):
    """Test status and payment status changes"""

    def setUp(self):
        self.admin = TestDataFactory.create_admin()
        self.product = TestDataFactory.create_product(price=Decimal('10000'), stock=10)
        self.order = TestDataFactory.create_order(products=[(self.product, 3)])

    def test_cancel_restores_stock(self):
        update_order_status(self.order, 'CANCELLED', user=self.admin)
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, 10)
        self.assertTrue(self.order.notes.filter(is_private=True).exists())
        self.assertTrue(AuditLog.objects.filter(action='status_change', object_id=str(self.order.id)).exists())

    def test_reopen_and_cancel_again_keeps_stock_balanced(self):
        update_order_status(self.order, 'CANCELLED', notify=False)
        update_order_status(self.order, 'PROCESSING', notify=False)
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, 7)
        update_order_status(self.order, 'CANCELLED', notify=False)
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, 10)

    def test_reopen_without_stock_fails(self):
        update_order_status(self.order, 'CANCELLED', notify=False)
        TestDataFactory.create_order(products=[(self.product, 9)])
        with self.assertRaises(OrderStatusError):
            update_order_status(self.order, 'PROCESSING', notify=False)
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, 'CANCELLED')
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, 1)

    def test_same_status_is_noop(self):
        update_order_status(self.order, 'PENDING')
        self.assertFalse(self.order.notes.exists())

    def test_invalid_status(self):
        with self.assertRaises(ValueError):
            update_order_status(self.order, 'LOST')

    def test_payment_completed_settles_invoice(self):
        update_payment_status(self.order, 'COMPLETED', user=self.admin)
        invoice = Invoice.objects.get(order=self.order)
        self.assertEqual(invoice.status, 'PAID')
        self.assertEqual(invoice.amount_paid, Decimal('30000'))
        self.assertEqual(invoice.payments.get().payment_method, 'CASH')
        self.assertEqual(invoice.receipts.count(), 1)


class OrderAPITests(TestCase):
    """Test customer and back-office order endpoints"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.customer = TestDataFactory.create_user()
        self.product = TestDataFactory.create_product(price=Decimal('15000'), stock=4)

    def test_guest_checkout(self):
        data = {
            'items': [{'product': self.product.id, 'quantity': 1}, {'product': self.product.id, 'quantity': 1}],
            'billing_name': 'Invité',
            'billing_phone': '0101010101',
        }
        response = self.client.post('/api/v1/orders/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(len(response.data['items']), 1)
        self.assertEqual(response.data['items'][0]['quantity'], 2)
        self.assertFalse(response.data['requires_payment'])
        self.assertIsNotNone(response.data['invoice_number'])

    def test_checkout_error(self):
        data = {'items': [{'product': self.product.id, 'quantity': 9}], 'billing_name': 'A', 'billing_phone': '01'}
        response = self.client.post('/api/v1/orders/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('error', response.data)

    def test_gateway_checkout_requires_payment(self):
        self.client.authenticate_user(self.customer)
        data = {'items': [{'product': self.product.id, 'quantity': 1}], 'billing_name': 'A',
                'billing_phone': '0101010101', 'payment_method': 'ORANGE_MONEY'}
        response = self.client.post('/api/v1/orders/', data, format='json')
        self.assertTrue(response.data['requires_payment'])
        self.assertTrue(Payment.objects.filter(reference=response.data['payment_reference']).exists())

    def test_customer_sees_only_own_orders(self):
        own = TestDataFactory.create_order(user=self.customer, products=[(self.product, 1)])
        other = TestDataFactory.create_order(products=[(self.product, 1)])
        self.client.authenticate_user(self.customer)
        response = self.client.get('/api/v1/orders/')
        self.assertEqual([o['id'] for o in response.data['results']], [own.id])
        response = self.client.get(f'/api/v1/orders/{other.id}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_order_list_requires_login(self):
        response = self.client.get('/api/v1/orders/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_private_notes_hidden_from_customer(self):
        order = TestDataFactory.create_order(user=self.customer, products=[(self.product, 1)])
        update_order_status(order, 'PROCESSING', notify=False)
        self.client.authenticate_user(self.customer)
        response = self.client.get(f'/api/v1/orders/{order.id}/')
        self.assertEqual(response.data['notes'], [])

    def test_payment_status_without_payment(self):
        order = TestDataFactory.create_order(user=self.customer, products=[(self.product, 1)])
        self.client.authenticate_user(self.customer)
        response = self.client.get(f'/api/v1/orders/{order.id}/payment-status/')
        self.assertEqual(response.data['status'], 'PENDING')
        self.assertIsNone(response.data['reference'])

    def test_coupon_validate_endpoint(self):
        Coupon.objects.create(code='NOEL', discount_type='fixed', value=Decimal('2000'))
        response = self.client.post('/api/v1/coupons/validate/', {'code': 'noel', 'order_total': '10000'},
                                    format='json')
        self.assertTrue(response.data['valid'])
        self.assertEqual(response.data['discount'], Decimal('2000'))
        response = self.client.post('/api/v1/coupons/validate/', {'code': 'x', 'order_total': '10000'},
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(response.data['valid'])

    def test_admin_order_list_with_status_counts(self):
        TestDataFactory.create_order(products=[(self.product, 1)])
        self.client.authenticate_user(TestDataFactory.create_staff())
        response = self.client.get('/api/v1/admin/orders/', {'status': 'PENDING'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status_counts']['PENDING'], 1)
        self.assertEqual(response.data['status_counts']['ALL'], 1)

    def test_admin_order_update(self):
        order = TestDataFactory.create_order(products=[(self.product, 1)])
        self.client.authenticate_user(TestDataFactory.create_staff())
        data = {'status': 'SHIPPED', 'tracking_number': 'TRK-1', 'note': 'Remis au coursier'}
        response = self.client.patch(f'/api/v1/admin/orders/{order.id}/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'SHIPPED')
        self.assertEqual(response.data['tracking_number'], 'TRK-1')
        self.assertEqual(len(response.data['notes']), 2)
        self.assertTrue(AuditLog.objects.filter(action='order_update').exists())

    def test_staff_cannot_manage_coupons(self):
        self.client.authenticate_user(TestDataFactory.create_staff())
        response = self.client.get('/api/v1/admin/coupons/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_manager_creates_coupon(self):
        self.client.authenticate_user(TestDataFactory.create_staff(role='MANAGER'))
        data = {'code': 'rentree', 'discount_type': 'percentage', 'value': '150'}
        response = self.client.post('/api/v1/admin/coupons/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        data['value'] = '15'
        response = self.client.post('/api/v1/admin/coupons/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['code'], 'RENTREE')
