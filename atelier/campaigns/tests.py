"""
Test suite for marketing campaigns
Tests: recipient resolution, personalised sending, status rules and the campaign endpoints
"""
from unittest.mock import patch
from django.test import TestCase
from rest_framework import status
from atelier.campaigns.models import Campaign, CampaignLog
from atelier.campaigns.services import resolve_campaign_recipients, run_campaign, start_campaign, CampaignError
from atelier.core.models import AuditLog
from atelier.core.test_utils import TestDataFactory, AuthenticatedAPIClient, FakeSmsingClient
from atelier.notifications.models import NotificationLog


class RecipientTests(TestCase):
    """Test recipient resolution"""

    def test_all_customers_with_phone(self):
        TestDataFactory.create_user(username='awa', first_name='Awa', last_name='Koné', phone='0707070707')
        TestDataFactory.create_user(username='doublon', phone='+225 07 07 07 07 07')
        TestDataFactory.create_user(username='sans_tel')
        TestDataFactory.create_user(username='inactif', phone='0101010101', is_active=False)
        TestDataFactory.create_user(username='staff', phone='0202020202', role='STAFF')
        campaign = Campaign(name='Tabaski', message='x', channel='SMS')
        self.assertEqual(resolve_campaign_recipients(campaign), [('2250707070707', 'Awa Koné')])

    def test_whatsapp_prefers_whatsapp_number(self):
        TestDataFactory.create_user(username='koffi', phone='0707070707', whatsapp_number='0505050505')
        campaign = Campaign(name='Soldes', message='x', channel='WHATSAPP')
        self.assertEqual(resolve_campaign_recipients(campaign), [('2250505050505', 'koffi')])

    def test_custom_recipients(self):
        campaign = Campaign(name='VIP', message='x', recipient_type='custom', custom_recipients=[
            '0707070707', {'phone': '0505050505', 'name': 'Koffi'}, '07 07 07 07 07', 'abc',
        ])
        self.assertEqual(resolve_campaign_recipients(campaign),
                         [('2250707070707', ''), ('2250505050505', 'Koffi')])


class CampaignSendTests(TestCase):
    """Test campaign sending"""

    def setUp(self):
        self.campaign = Campaign.objects.create(
            name='Nouvelle collection', message='Bonjour {customer_name}, découvrez la collection Wax',
            recipient_type='custom', custom_recipients=[{'phone': '0707070707', 'name': 'Awa'}, '0505050505'],
        )

    def test_run_campaign_personalises_and_logs(self):
        fake = FakeSmsingClient(fail_numbers={'2250505050505'})
        recipients = resolve_campaign_recipients(self.campaign)
        campaign = run_campaign(self.campaign.id, recipients, client=fake)
        self.assertEqual(fake.sent[0], ('SMS', '2250707070707', 'Bonjour Awa, découvrez la collection Wax'))
        self.assertEqual(fake.sent[1][2], 'Bonjour Client, découvrez la collection Wax')
        self.assertEqual((campaign.status, campaign.sent_count, campaign.failed_count), ('sent', 1, 1))
        self.assertIsNotNone(campaign.sent_at)
        self.assertEqual(CampaignLog.objects.filter(campaign=campaign, status='FAILED').count(), 1)
        self.assertEqual(NotificationLog.objects.filter(trigger='CAMPAIGN').count(), 2)

    def test_all_failed_marks_campaign_failed(self):
        campaign = run_campaign(self.campaign.id, resolve_campaign_recipients(self.campaign),
                                client=FakeSmsingClient(success=False))
        self.assertEqual(campaign.status, 'failed')

    def test_start_campaign_runs_inline(self):
        fake = FakeSmsingClient()
        with patch('atelier.campaigns.services.get_client', return_value=fake):
            campaign = start_campaign(self.campaign)
        self.assertEqual(campaign.status, 'sent')
        self.assertEqual(campaign.total_recipients, 2)
        self.assertEqual(len(fake.sent), 2)
        self.assertTrue(AuditLog.objects.filter(action='campaign_send').exists())

    def test_failed_campaign_can_be_resent(self):
        with patch('atelier.campaigns.services.get_client', return_value=FakeSmsingClient(success=False)):
            self.assertEqual(start_campaign(self.campaign).status, 'failed')
        self.campaign.refresh_from_db()
        with patch('atelier.campaigns.services.get_client', return_value=FakeSmsingClient()):
            self.assertEqual(start_campaign(self.campaign).status, 'sent')

    def test_sent_campaign_cannot_be_resent(self):
        self.campaign.status = 'sent'
        self.campaign.save()
        with self.assertRaises(CampaignError):
            start_campaign(self.campaign)

    def test_no_valid_recipient(self):
        self.campaign.custom_recipients = ['abc']
        self.campaign.save()
        with self.assertRaises(CampaignError):
            start_campaign(self.campaign)
        self.campaign.refresh_from_db()
        self.assertEqual(self.campaign.status, 'draft')


class CampaignAPITests(TestCase):
    """Test the campaign endpoints"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.staff = TestDataFactory.create_staff()
        self.client.authenticate_user(self.staff)

    def _create(self, **extra):
        data = {'name': 'Fête des mères', 'message': 'Bonjour {customer_name} -20% ce week-end',
                'recipient_type': 'custom', 'custom_recipients': ['0707070707']}
        data.update(extra)
        return self.client.post('/api/v1/admin/campaigns/', data, format='json')

    def test_create_and_detail(self):
        response = self._create()
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['status'], 'draft')
        self.assertEqual(response.data['created_by'], self.staff.id)
        response = self.client.get(f"/api/v1/admin/campaigns/{response.data['id']}/")
        self.assertEqual(response.data['recipient_count'], 1)

    def test_validation(self):
        self.assertEqual(self._create(message='  ').status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(self._create(custom_recipients=[]).status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(self._create(custom_recipients=[{'name': 'x'}]).status_code, status.HTTP_400_BAD_REQUEST)

    def test_send_and_logs(self):
        campaign_id = self._create().data['id']
        fake = FakeSmsingClient()
        with patch('atelier.campaigns.services.get_client', return_value=fake):
            response = self.client.post(f'/api/v1/admin/campaigns/{campaign_id}/send/')
        self.assertEqual(response.status_code, status.HTTP_202_ACCEPTED)
        self.assertEqual(response.data['sent_count'], 1)
        response = self.client.get(f'/api/v1/admin/campaigns/{campaign_id}/logs/')
        self.assertEqual(response.data['count'], 1)
        response = self.client.post(f'/api/v1/admin/campaigns/{campaign_id}/send/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_sending_campaign_locked(self):
        campaign_id = self._create().data['id']
        Campaign.objects.filter(pk=campaign_id).update(status='sending')
        response = self.client.patch(f'/api/v1/admin/campaigns/{campaign_id}/', {'name': 'x'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        response = self.client.delete(f'/api/v1/admin/campaigns/{campaign_id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_list_filters(self):
        self._create()
        self._create(name='Promo WhatsApp', channel='WHATSAPP')
        response = self.client.get('/api/v1/admin/campaigns/', {'channel': 'WHATSAPP'})
        self.assertEqual(response.data['count'], 1)

    def test_tailor_forbidden(self):
        self.client.authenticate_user(TestDataFactory.create_staff(role='TAILOR'))
        self.assertEqual(self.client.get('/api/v1/admin/campaigns/').status_code, status.HTTP_403_FORBIDDEN)
