"""
Test suite for notifications
Tests: SMSING client, template rendering, dual and failover dispatch, test mode, back-office endpoints, template seeding
"""
from io import StringIO
from unittest.mock import patch
import requests
from django.core.management import call_command
from django.test import TestCase, override_settings
from rest_framework import status
from atelier.core.test_utils import TestDataFactory, AuthenticatedAPIClient, FakeSmsingClient
from atelier.notifications.management.commands.seed_notification_templates import DEFAULT_TEMPLATES
from atelier.notifications.models import NotificationSettings, NotificationLog, NotificationTemplate
from atelier.notifications.service import (
    render_template, build_variables, send_prepared, send_notification, dispatch_notification,
)
from atelier.notifications.smsing import SmsingClient


class SmsingClientTests(TestCase):
    """Test the SMSING HTTP client with requests mocked"""

    def setUp(self):
        self.client = SmsingClient(api_url='https://smsing.test/api', api_key='key', api_token='token',
                                   sender_id='ATELIER', logo_url='https://cdn.test/logo.png', timeout=5)

    @patch('atelier.notifications.smsing.requests.get')
    def test_send_sms_queued(self, mock_get):
        mock_get.return_value.json.return_value = {'status': 'queued', 'group_id': 42}
        result = self.client.send_sms('07 07 07 07 07', 'Bonjour')
        self.assertTrue(result.success)
        self.assertEqual(result.message_id, '42')
        params = mock_get.call_args.kwargs['params']
        self.assertEqual(params['to'], '2250707070707')
        self.assertEqual(params['type'], 'sms')
        self.assertNotIn('file', params)

    @patch('atelier.notifications.smsing.requests.get')
    def test_whatsapp_attaches_logo(self, mock_get):
        mock_get.return_value.json.return_value = {'status': 'success', 'id': 'abc'}
        self.client.send_whatsapp('0707070707', 'Bonjour')
        params = mock_get.call_args.kwargs['params']
        self.assertEqual(params['type'], 'whatsapp')
        self.assertEqual(params['file'], 'https://cdn.test/logo.png')

    @patch('atelier.notifications.smsing.requests.get')
    def test_rejected_and_network_errors(self, mock_get):
        mock_get.return_value.json.return_value = {'status': 'error', 'message': 'Solde insuffisant'}
        result = self.client.send_sms('0707070707', 'x')
        self.assertFalse(result.success)
        self.assertEqual(result.error, 'Solde insuffisant')
        mock_get.side_effect = requests.Timeout('timeout')
        self.assertFalse(self.client.send_sms('0707070707', 'x').success)

    @patch('atelier.notifications.smsing.requests.get')
    def test_unconfigured_client_does_not_call(self, mock_get):
        result = SmsingClient(api_key='', api_token='').send_sms('0707070707', 'x')
        self.assertEqual(result.error, 'SMS provider not configured')
        mock_get.assert_not_called()
        self.assertEqual(self.client.send_sms('', 'x').error, 'Invalid recipient phone number')


class RenderingTests(TestCase):
    """Test placeholders and variables"""

    def test_unknown_placeholders_kept(self):
        self.assertEqual(render_template('Bonjour {customer_name} {inconnu}', {'customer_name': 'Awa'}),
                         'Bonjour Awa {inconnu}')
        self.assertEqual(render_template('{a}', {'a': None}), '')

    @override_settings(APP_BASE_URL='https://boutique.test')
    def test_order_variables(self):
        order = TestDataFactory.create_order()
        variables = build_variables('ORDER_PLACED', {'order': order})
        self.assertEqual(variables['customer_name'], 'Awa Koné')
        self.assertEqual(variables['billing_first_name'], 'Awa')
        self.assertEqual(variables['order_number'], order.order_number)
        self.assertEqual(variables['order_total'], '10000 CFA')
        self.assertEqual(variables['order_url'], f'https://boutique.test/account/orders/{order.id}')
        self.assertEqual(variables['invoice_number'], order.invoice.invoice_number)

    def test_extra_variables_override(self):
        variables = build_variables('TEST', {'variables': {'store_name': 'Atelier Test'}})
        self.assertEqual(variables['store_name'], 'Atelier Test')


class DispatchTests(TestCase):
    """Test send modes, channel selection and logging"""

    def setUp(self):
        self.settings = NotificationSettings.load()
        TestDataFactory.create_notification_template('NEW_ACCOUNT', channel='SMS', content='SMS {customer_name}')
        TestDataFactory.create_notification_template('NEW_ACCOUNT', channel='WHATSAPP', content='WA {customer_name}')

    def test_dual_mode_sends_both_channels(self):
        fake = FakeSmsingClient()
        result = send_prepared('NEW_ACCOUNT', {'customer_name': 'Awa'}, ['0707070707'], client=fake)
        self.assertTrue(result['success'])
        self.assertEqual(fake.sent, [('SMS', '0707070707', 'SMS Awa'), ('WHATSAPP', '0707070707', 'WA Awa')])
        self.assertEqual(NotificationLog.objects.filter(status='SENT').count(), 2)

    def test_failover_stops_at_first_success(self):
        self.settings.send_mode = 'failover'
        self.settings.save()
        fake = FakeSmsingClient()
        send_prepared('NEW_ACCOUNT', {'customer_name': 'Awa'}, ['0707070707'], client=fake)
        self.assertEqual([entry[0] for entry in fake.sent], ['WHATSAPP'])

    def test_failover_falls_back(self):
        self.settings.send_mode = 'failover'
        self.settings.save()
        fake = FakeSmsingClient(success=False)
        result = send_prepared('NEW_ACCOUNT', {'customer_name': 'Awa'}, ['0707070707'], client=fake)
        self.assertFalse(result['success'])
        self.assertEqual([entry[0] for entry in fake.sent], ['WHATSAPP', 'SMS'])
        log = NotificationLog.objects.filter(channel='SMS').get()
        self.assertEqual(log.status, 'FAILED')
        self.assertEqual(log.recipient, '2250707070707')

    def test_disabled_channel_and_template_skipped(self):
        self.settings.whatsapp_enabled = False
        self.settings.save()
        fake = FakeSmsingClient()
        send_prepared('NEW_ACCOUNT', {}, ['0707070707'], client=fake)
        self.assertEqual([entry[0] for entry in fake.sent], ['SMS'])
        result = send_prepared('ORDER_SHIPPED', {}, ['0707070707'], client=fake)
        self.assertEqual(result['error'], 'No enabled template')

    def test_no_recipient(self):
        result = send_prepared('NEW_ACCOUNT', {}, [], client=FakeSmsingClient())
        self.assertFalse(result['success'])
        self.assertFalse(NotificationLog.objects.exists())

    def test_test_mode_redirects_everything(self):
        self.settings.test_mode = True
        self.settings.test_phone = '0700000099'
        self.settings.save()
        user = TestDataFactory.create_user(phone='0707070707')
        fake = FakeSmsingClient()
        send_notification('NEW_ACCOUNT', {'user': user}, client=fake)
        self.assertEqual({entry[1] for entry in fake.sent}, {'0700000099'})

    def test_client_exception_is_logged(self):
        fake = FakeSmsingClient()
        with patch.object(fake, 'send_sms', side_effect=RuntimeError('boom')):
            result = send_prepared('NEW_ACCOUNT', {}, ['0707070707'], client=fake)
        self.assertTrue(result['success'])
        self.assertEqual(NotificationLog.objects.get(channel='SMS').error, 'boom')

    def test_dispatch_runs_inline_in_tests(self):
        user = TestDataFactory.create_user(phone='0707070707')
        fake = FakeSmsingClient()
        with patch('atelier.notifications.service.get_client', return_value=fake):
            dispatch_notification('NEW_ACCOUNT', {'user': user})
        self.assertEqual(len(fake.sent), 2)
        self.assertEqual(NotificationLog.objects.filter(user=user).count(), 2)


class NotificationAPITests(TestCase):
    """Test the back-office notification endpoints"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(TestDataFactory.create_admin())

    def test_update_settings(self):
        response = self.client.patch('/api/v1/admin/notifications/settings/', {
            'send_mode': 'failover', 'failover_order': ['SMS', 'WHATSAPP'], 'admin_phones': ['0700000001', ' '],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(NotificationSettings.load().admin_phones, ['0700000001'])

    def test_invalid_settings(self):
        url = '/api/v1/admin/notifications/settings/'
        response = self.client.patch(url, {'failover_order': ['FAX']}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        response = self.client.patch(url, {'test_mode': True}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_template_crud(self):
        response = self.client.post('/api/v1/admin/notifications/templates/', {
            'trigger': 'ORDER_SHIPPED', 'channel': 'WHATSAPP', 'name': 'Expédition',
            'content': 'Votre commande {order_number} est en route',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        response = self.client.patch(f"/api/v1/admin/notifications/templates/{response.data['id']}/",
                                     {'enabled': False}, format='json')
        self.assertFalse(response.data['enabled'])
        response = self.client.get('/api/v1/admin/notifications/templates/', {'trigger': 'ORDER_SHIPPED'})
        self.assertEqual(len(response.data), 1)

    @patch('atelier.notifications.service.get_client')
    def test_send_test_message(self, mock_get_client):
        fake = FakeSmsingClient()
        mock_get_client.return_value = fake
        response = self.client.post('/api/v1/admin/notifications/test/',
                                    {'phone': '0707070707', 'channel': 'SMS', 'message': 'Test {store_name}'},
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(NotificationLog.objects.filter(trigger='TEST', status='SENT').exists())
        fake.success = False
        response = self.client.post('/api/v1/admin/notifications/test/',
                                    {'phone': '0707070707', 'channel': 'SMS'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_502_BAD_GATEWAY)

    def test_logs_and_stats(self):
        send_prepared('NEW_ACCOUNT', {}, ['0707070707'], client=FakeSmsingClient(fail_numbers={'0707070707'}))
        TestDataFactory.create_notification_template('NEW_ACCOUNT')
        send_prepared('NEW_ACCOUNT', {}, ['0707070707'], client=FakeSmsingClient())
        send_prepared('NEW_ACCOUNT', {}, ['0101010101'], client=FakeSmsingClient(fail_numbers={'0101010101'}))
        response = self.client.get('/api/v1/admin/notifications/stats/')
        self.assertEqual(response.data['total'], 2)
        self.assertEqual(response.data['success_rate'], 50.0)
        response = self.client.get('/api/v1/admin/notifications/logs/', {'status': 'FAILED'})
        self.assertEqual(response.data['count'], 1)


class SeedTemplatesCommandTests(TestCase):
    """Test the seed_notification_templates command"""

    def test_seeds_both_channels(self):
        out = StringIO()
        call_command('seed_notification_templates', stdout=out)
        self.assertEqual(NotificationTemplate.objects.count(), 2 * len(DEFAULT_TEMPLATES))
        self.assertEqual(NotificationSettings.objects.count(), 1)
        admin_template = NotificationTemplate.objects.get(trigger='ADMIN_NEW_ORDER', channel='SMS')
        self.assertEqual(admin_template.recipient_type, 'admin')
        self.assertTrue(admin_template.content.endswith('- {store_name}'))
        self.assertIn('created', out.getvalue())

    def test_existing_templates_kept_unless_overwrite(self):
        call_command('seed_notification_templates', stdout=StringIO())
        NotificationTemplate.objects.filter(trigger='ORDER_PLACED', channel='SMS').update(content='Personnalisé')
        call_command('seed_notification_templates', stdout=StringIO())
        template = NotificationTemplate.objects.get(trigger='ORDER_PLACED', channel='SMS')
        self.assertEqual(template.content, 'Personnalisé')
        call_command('seed_notification_templates', '--overwrite', stdout=StringIO())
        template.refresh_from_db()
        self.assertIn('{order_number}', template.content)
        self.assertEqual(NotificationTemplate.objects.count(), 2 * len(DEFAULT_TEMPLATES))
