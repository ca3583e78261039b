"""
Test suite for PaiementPro payments
Tests: gateway client, status mapping, webhook processing, polling and initialization
"""
from decimal import Decimal
from unittest.mock import patch, MagicMock
import requests
from django.test import TestCase, override_settings
from rest_framework import status
from atelier.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from atelier.invoices.models import Invoice
from atelier.payments.models import Payment
from atelier.payments.paiementpro import (
    PaiementProClient, PaymentGatewayError, generate_reference, generate_hashcode, verify_webhook_hash,
    channel_to_payment_method,
)
from atelier.payments.services import interpret_gateway_status, process_webhook, refresh_payment_status


class GatewayHelperTests(TestCase):
    """Test references, hashes and status mapping"""

    def test_reference_format(self):
        self.assertRegex(generate_reference('CMD'), r'^CMD-\d{13}-[A-Z0-9]{6}$')

    def test_webhook_hash(self):
        payload = {'referenceNumber': 'CMD-1', 'amount': '5000', 'responsecode': '0'}
        payload['hashcode'] = generate_hashcode(payload, 's3cret')
        self.assertTrue(verify_webhook_hash(payload, 's3cret'))
        self.assertFalse(verify_webhook_hash(payload, 'other'))
        self.assertFalse(verify_webhook_hash({'referenceNumber': 'CMD-1'}, 's3cret'))

    def test_interpret_gateway_status(self):
        self.assertEqual(interpret_gateway_status({'success': True}), 'COMPLETED')
        self.assertEqual(interpret_gateway_status({'responsecode': '0'}), 'COMPLETED')
        self.assertEqual(interpret_gateway_status({'responsecode': -1}), 'FAILED')
        self.assertEqual(interpret_gateway_status({'success': 'false'}), 'FAILED')
        self.assertEqual(interpret_gateway_status({'message': 'waiting'}), 'PENDING')
        self.assertEqual(interpret_gateway_status(None), 'PENDING')

    def test_channel_mapping(self):
        self.assertEqual(channel_to_payment_method('OMCIV2'), 'ORANGE_MONEY')
        self.assertEqual(channel_to_payment_method('UNKNOWN'), 'OTHER')


class PaiementProClientTests(TestCase):
    """Test the HTTP client with requests mocked"""

    def setUp(self):
        self.client = PaiementProClient(merchant_id='PP-123', init_url='https://gateway.test/init',
                                        status_url='https://gateway.test/status/', currency='952', timeout=5)

    @patch('atelier.payments.paiementpro.requests.post')
    def test_initialize_success(self, mock_post):
        mock_post.return_value.json.return_value = {'success': True, 'url': 'https://pay.test/abc'}
        result = self.client.initialize(Decimal('15000.00'), 'CMD-1', customer_phone='0707070707')
        self.assertTrue(result['success'])
        self.assertEqual(result['url'], 'https://pay.test/abc')
        body = mock_post.call_args.kwargs['json']
        self.assertEqual(body['merchantId'], 'PP-123')
        self.assertEqual(body['amount'], 15000)
        self.assertEqual(body['customerPhoneNumber'], '2250707070707')

    @patch('atelier.payments.paiementpro.requests.post')
    def test_initialize_refused(self, mock_post):
        mock_post.return_value.json.return_value = {'success': False, 'message': 'Montant invalide'}
        result = self.client.initialize(100, 'CMD-2')
        self.assertFalse(result['success'])
        self.assertEqual(result['error'], 'Montant invalide')

    @patch('atelier.payments.paiementpro.requests.post')
    def test_initialize_network_error(self, mock_post):
        mock_post.side_effect = requests.ConnectionError('down')
        with self.assertRaises(PaymentGatewayError):
            self.client.initialize(100, 'CMD-3')

    def test_initialize_requires_merchant(self):
        with self.assertRaises(PaymentGatewayError):
            PaiementProClient(merchant_id='').initialize(100, 'CMD-4')

    @patch('atelier.payments.paiementpro.requests.get')
    def test_check_status(self, mock_get):
        mock_get.return_value.json.return_value = {'responsecode': 0}
        self.assertEqual(self.client.check_status('CMD-5'), {'responsecode': 0})
        self.assertEqual(mock_get.call_args.args[0], 'https://gateway.test/status/CMD-5')


class WebhookTests(TestCase):
    """Test gateway notifications"""

    def setUp(self):
        self.api = AuthenticatedAPIClient()
        self.product = TestDataFactory.create_product(price=Decimal('12000'), stock=5)
        self.order = TestDataFactory.create_order(products=[(self.product, 2)], payment_method='ORANGE_MONEY')
        self.payment = self.order.payments.get()

    def test_success_completes_order_and_invoice(self):
        response = self.api.post('/api/v1/payments/webhook/', {
            'referenceNumber': self.payment.reference, 'responsecode': '0', 'channel': 'OMCIV2',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'COMPLETED')
        self.order.refresh_from_db()
        self.assertEqual(self.order.payment_status, 'COMPLETED')
        self.assertEqual(self.order.status, 'PROCESSING')
        invoice = Invoice.objects.get(order=self.order)
        self.assertEqual(invoice.status, 'PAID')
        self.assertEqual(invoice.payments.get().payment_method, 'ORANGE_MONEY')

    def test_repeated_success_is_idempotent(self):
        payload = {'referenceNumber': self.payment.reference, 'success': True}
        process_webhook(payload)
        process_webhook(payload)
        self.assertEqual(Invoice.objects.get(order=self.order).payments.count(), 1)

    def test_failure_restores_stock(self):
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, 3)
        http_status, body = process_webhook({'referenceNumber': self.payment.reference, 'responsecode': '-1'})
        self.assertEqual(http_status, 200)
        self.assertEqual(body['status'], 'FAILED')
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, 5)
        self.order.refresh_from_db()
        self.assertEqual(self.order.payment_status, 'FAILED')

    def test_failure_after_failed_poll_restores_stock_once(self):
        gateway = MagicMock()
        gateway.check_status.return_value = {'success': False, 'responsecode': -1}
        self.assertEqual(refresh_payment_status(self.payment, client=gateway), 'FAILED')
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, 3)
        process_webhook({'referenceNumber': self.payment.reference, 'responsecode': '-1'})
        process_webhook({'referenceNumber': self.payment.reference, 'responsecode': '-1'})
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, 5)
        self.order.refresh_from_db()
        self.assertEqual(self.order.payment_status, 'FAILED')

    def test_pending_keeps_payload(self):
        process_webhook({'referenceNumber': self.payment.reference, 'message': 'en cours'})
        self.payment.refresh_from_db()
        self.assertEqual(self.payment.status, 'PENDING')
        self.assertEqual(self.payment.provider_response['message'], 'en cours')

    def test_unknown_and_missing_reference(self):
        self.assertEqual(process_webhook({'referenceNumber': 'CMD-0-XXXXXX'})[0], 404)
        self.assertEqual(process_webhook({})[0], 400)

    def test_invoice_reference_creates_payment(self):
        invoice = Invoice.objects.get(order=self.order)
        reference = f'INV_{invoice.id}-1700000000000-ABCDEF'
        http_status, _ = process_webhook({'referenceNumber': reference, 'success': True, 'amount': '10000'})
        self.assertEqual(http_status, 200)
        payment = Payment.objects.get(reference=reference)
        self.assertEqual(payment.status, 'COMPLETED')
        invoice.refresh_from_db()
        self.assertEqual(invoice.amount_paid, Decimal('10000'))
        self.assertEqual(invoice.status, 'PARTIAL')

    @override_settings(PAIEMENTPRO_SECRET='s3cret')
    def test_invalid_hash_rejected(self):
        response = self.api.post('/api/v1/payments/webhook/', {
            'referenceNumber': self.payment.reference, 'success': True, 'hashcode': 'bad',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.payment.refresh_from_db()
        self.assertEqual(self.payment.status, 'PENDING')


class PaymentPollingTests(TestCase):
    """Test status polling and payment initialization endpoints"""

    def setUp(self):
        self.api = AuthenticatedAPIClient()
        self.customer = TestDataFactory.create_user()
        self.order = TestDataFactory.create_order(user=self.customer, payment_method='WAVE')
        self.payment = self.order.payments.get()

    def test_refresh_completes_payment(self):
        gateway = MagicMock()
        gateway.check_status.return_value = {'success': True, 'channel': 'WAVECI'}
        self.assertEqual(refresh_payment_status(self.payment, client=gateway), 'COMPLETED')
        self.payment.refresh_from_db()
        self.assertEqual(self.payment.channel, 'WAVECI')

    def test_refresh_keeps_status_on_gateway_error(self):
        gateway = MagicMock()
        gateway.check_status.side_effect = PaymentGatewayError('timeout')
        self.assertEqual(refresh_payment_status(self.payment, client=gateway), 'PENDING')

    def test_final_payment_not_polled(self):
        self.payment.status = 'COMPLETED'
        self.payment.save()
        gateway = MagicMock()
        self.assertEqual(refresh_payment_status(self.payment, client=gateway), 'COMPLETED')
        gateway.check_status.assert_not_called()

    @patch('atelier.payments.services.get_client')
    def test_order_payment_status_endpoint(self, mock_get_client):
        mock_get_client.return_value.check_status.return_value = {'responsecode': '0'}
        self.api.authenticate_user(self.customer)
        response = self.api.get(f'/api/v1/orders/{self.order.id}/payment-status/')
        self.assertEqual(response.data['status'], 'COMPLETED')
        self.assertEqual(response.data['order_status'], 'PROCESSING')

    @patch('atelier.payments.services.get_client')
    def test_payment_status_access(self, mock_get_client):
        mock_get_client.return_value.check_status.return_value = {}
        self.api.authenticate_user(TestDataFactory.create_user())
        response = self.api.get(f'/api/v1/payments/{self.payment.reference}/status/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    @patch('atelier.payments.views.get_client')
    def test_initialize_order_payment(self, mock_get_client):
        mock_get_client.return_value.initialize.return_value = {
            'success': True, 'url': 'https://pay.test/x', 'reference': self.payment.reference, 'error': None,
        }
        self.api.authenticate_user(self.customer)
        response = self.api.post('/api/v1/payments/initialize/', {'order_id': self.order.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['reference'], self.payment.reference)
        self.payment.refresh_from_db()
        self.assertEqual(self.payment.payment_url, 'https://pay.test/x')
        self.assertEqual(self.payment.channel, 'WAVECI')

    @patch('atelier.payments.views.get_client')
    def test_initialize_gateway_down(self, mock_get_client):
        mock_get_client.return_value.initialize.side_effect = PaymentGatewayError('down')
        self.api.authenticate_user(self.customer)
        response = self.api.post('/api/v1/payments/initialize/', {'order_id': self.order.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_502_BAD_GATEWAY)

    def test_initialize_requires_target(self):
        self.api.authenticate_user(self.customer)
        response = self.api.post('/api/v1/payments/initialize/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_admin_payment_list_stats(self):
        self.api.authenticate_user(TestDataFactory.create_admin())
        response = self.api.get('/api/v1/admin/payments/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['stats']['pending_count'], 1)
