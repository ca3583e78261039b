"""
Test suite for invoices
Tests: automatic issuing, payments and receipts, status derivation, sending and customer access
"""
from decimal import Decimal
from unittest.mock import patch
from django.core import mail
from django.test import TestCase
from django.utils import timezone
from rest_framework import status
from atelier.core.test_utils import TestDataFactory, AuthenticatedAPIClient, FakeSmsingClient
from atelier.invoices.models import Invoice, Receipt
from atelier.invoices.services import (
    create_invoice_from_order, record_invoice_payment, delete_invoice_payment, mark_invoice_paid,
    cancel_invoice, generate_invoice_number, InvoiceError,
)


class InvoiceServiceTests(TestCase):
    """Test invoice bookkeeping"""

    def setUp(self):
        self.product = TestDataFactory.create_product(price=Decimal('8000'))
        self.order = TestDataFactory.create_order(products=[(self.product, 2)])
        self.invoice = Invoice.objects.get(order=self.order)

    def test_invoice_number_format(self):
        stem = f"FAC-{timezone.localdate().strftime('%d%m%y')}-"
        self.assertEqual(self.invoice.invoice_number, f'{stem}0001')
        self.assertEqual(generate_invoice_number(), f'{stem}0002')

    def test_order_invoice_is_issued_once(self):
        self.assertEqual(create_invoice_from_order(self.order), self.invoice)
        self.assertEqual(Invoice.objects.filter(order=self.order).count(), 1)
        self.assertEqual(self.invoice.customer_name, 'Awa Koné')
        self.assertEqual(self.invoice.total, Decimal('16000'))

    def test_partial_then_full_payment(self):
        payment = record_invoice_payment(self.invoice, Decimal('6000'))
        self.assertEqual(self.invoice.status, 'PARTIAL')
        self.assertEqual(self.invoice.balance_due, Decimal('10000'))
        self.assertTrue(payment.receipt.receipt_number.startswith('REC-'))
        record_invoice_payment(self.invoice, Decimal('10000'), payment_method='WAVE')
        self.assertEqual(self.invoice.status, 'PAID')
        self.assertIsNotNone(self.invoice.paid_date)

    def test_delete_payment_resyncs(self):
        payment = record_invoice_payment(self.invoice, Decimal('16000'))
        delete_invoice_payment(payment)
        self.invoice.refresh_from_db()
        self.assertEqual(self.invoice.status, 'SENT')
        self.assertEqual(self.invoice.amount_paid, Decimal('0'))
        self.assertFalse(Receipt.objects.exists())

    def test_invalid_payments(self):
        with self.assertRaises(InvoiceError):
            record_invoice_payment(self.invoice, Decimal('0'))
        cancel_invoice(self.invoice)
        with self.assertRaises(InvoiceError):
            record_invoice_payment(self.invoice, Decimal('100'))

    def test_mark_paid_is_noop_when_settled(self):
        mark_invoice_paid(self.invoice)
        self.assertIsNone(mark_invoice_paid(self.invoice))
        self.assertEqual(self.invoice.payments.count(), 1)

    def test_paid_invoice_cannot_be_cancelled(self):
        mark_invoice_paid(self.invoice)
        with self.assertRaises(InvoiceError):
            cancel_invoice(self.invoice)


class InvoiceAPITests(TestCase):
    """Test back-office invoice endpoints"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.staff = TestDataFactory.create_staff()
        self.client.authenticate_user(self.staff)

    def _create(self, **extra):
        data = {
            'customer_name': 'Fatou Diallo',
            'customer_phone': '0102030405',
            'discount': '1000',
            'items': [
                {'description': 'Retouche pantalon', 'quantity': '2', 'unit_price': '3000'},
                {'description': 'Ourlet', 'quantity': '1', 'unit_price': '1500'},
            ],
        }
        data.update(extra)
        return self.client.post('/api/v1/admin/invoices/', data, format='json')

    def test_create_standalone_invoice(self):
        response = self._create()
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['status'], 'DRAFT')
        self.assertEqual(Decimal(response.data['subtotal']), Decimal('7500'))
        self.assertEqual(Decimal(response.data['total']), Decimal('6500'))

    def test_create_requires_items(self):
        response = self._create(items=[])
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_paid_status_cannot_be_set(self):
        response = self._create(status='PAID')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_update_items_recalculates(self):
        invoice_id = self._create().data['id']
        response = self.client.patch(f'/api/v1/admin/invoices/{invoice_id}/', {
            'items': [{'description': 'Robe', 'quantity': '1', 'unit_price': '20000'}],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(Decimal(response.data['total']), Decimal('19000'))

    def test_record_payment_within_balance(self):
        invoice_id = self._create().data['id']
        url = f'/api/v1/admin/invoices/{invoice_id}/payments/'
        response = self.client.post(url, {'amount': '7000'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        response = self.client.post(url, {'amount': '6500', 'payment_method': 'ORANGE_MONEY'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertIsNotNone(response.data['receipt_number'])
        summary = self.client.get(url).data
        self.assertEqual(summary['status'], 'PAID')
        self.assertEqual(summary['remaining'], Decimal('0'))

    def test_delete_payment(self):
        invoice_id = self._create().data['id']
        payment_id = self.client.post(f'/api/v1/admin/invoices/{invoice_id}/payments/',
                                      {'amount': '1000'}, format='json').data['id']
        response = self.client.delete(f'/api/v1/admin/invoices/{invoice_id}/payments/{payment_id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertEqual(Invoice.objects.get(pk=invoice_id).amount_paid, Decimal('0'))

    def test_cancelled_invoice_is_frozen(self):
        invoice_id = self._create().data['id']
        response = self.client.post(f'/api/v1/admin/invoices/{invoice_id}/cancel/')
        self.assertEqual(response.data['status'], 'CANCELLED')
        response = self.client.patch(f'/api/v1/admin/invoices/{invoice_id}/', {'notes': 'x'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_list_stats(self):
        self._create()
        response = self.client.get('/api/v1/admin/invoices/')
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['stats']['total_invoiced'], Decimal('6500'))
        self.assertEqual(response.data['stats']['by_status'], {'DRAFT': 1})

    def test_send_invoice(self):
        TestDataFactory.create_notification_template('INVOICE_CREATED', content='Facture {invoice_number}')
        invoice_id = self._create(customer_email='fatou@test.com').data['id']
        fake = FakeSmsingClient()
        with patch('atelier.notifications.service.get_client', return_value=fake):
            response = self.client.post(f'/api/v1/admin/invoices/{invoice_id}/send/')
        self.assertTrue(response.data['success'])
        self.assertTrue(response.data['email_sent'])
        invoice = Invoice.objects.get(pk=invoice_id)
        self.assertEqual(invoice.status, 'SENT')
        self.assertEqual(fake.sent, [('SMS', '0102030405', f'Facture {invoice.invoice_number}')])
        self.assertEqual(len(mail.outbox), 1)

    def test_customer_forbidden(self):
        self.client.authenticate_user(TestDataFactory.create_user())
        response = self.client.get('/api/v1/admin/invoices/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_account_invoices(self):
        customer = TestDataFactory.create_user()
        TestDataFactory.create_order(user=customer)
        TestDataFactory.create_order()
        self.client.authenticate_user(customer)
        response = self.client.get('/api/v1/account/invoices/')
        self.assertEqual(response.data['count'], 1)
