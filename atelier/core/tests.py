"""
Test suite for the core module
Tests: role permissions, shared helpers, authentication, team and settings endpoints
"""
from datetime import date, timedelta
from decimal import Decimal
from unittest.mock import patch, MagicMock
from django.core.cache import cache
from django.test import TestCase
from django.utils import timezone
from rest_framework import status
from atelier.core.cache_signals import suspend_cache_signals
from atelier.core.cache_utils import get_or_set, invalidate_cache_pattern, make_cache_key, PRODUCTS_PREFIX
from atelier.core.models import User, AuditLog
from atelier.core.permissions import has_permission, is_staff_role, get_role_permissions
from atelier.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from atelier.core.utils import (
    format_phone_number, format_amount, generate_sequence_number, get_period_range, parse_date,
    create_audit_log,
)
from atelier.invoices.models import Invoice


class RolePermissionTests(TestCase):
    """Test the role to permission mapping"""

    def test_admin_and_manager_have_everything(self):
        for role in ('ADMIN', 'MANAGER'):
            self.assertTrue(has_permission(role, 'expenses'))
            self.assertTrue(has_permission(role, 'team'))

    def test_staff_permissions(self):
        self.assertTrue(has_permission('STAFF', 'orders'))
        self.assertTrue(has_permission('STAFF', 'campaigns'))
        self.assertFalse(has_permission('STAFF', 'expenses'))
        self.assertFalse(has_permission('STAFF', 'settings'))
        self.assertFalse(has_permission('STAFF', 'coupons'))

    def test_tailor_permissions(self):
        self.assertEqual(get_role_permissions('TAILOR'),
                         ['dashboard', 'appointments', 'custom-orders', 'production'])
        self.assertFalse(has_permission('TAILOR', 'invoices'))

    def test_customer_and_unknown_roles(self):
        self.assertFalse(has_permission('CUSTOMER', 'dashboard'))
        self.assertFalse(has_permission('GHOST', 'dashboard'))
        self.assertFalse(is_staff_role('CUSTOMER'))
        self.assertTrue(is_staff_role('TAILOR'))


class UtilsTests(TestCase):
    """Test shared helpers"""

    def test_format_phone_number(self):
        self.assertEqual(format_phone_number('07 59 54 54 10'), '2250759545410')
        self.assertEqual(format_phone_number('+225 0759545410'), '2250759545410')
        self.assertEqual(format_phone_number('00225 07 59 54 54 10'), '2250759545410')
        self.assertEqual(format_phone_number('01020304'), '22501020304')
        self.assertEqual(format_phone_number('2250102030'), '2250102030')
        self.assertEqual(format_phone_number(''), '')
        self.assertEqual(format_phone_number(None), '')

    def test_format_amount(self):
        self.assertEqual(format_amount(Decimal('15000.00')), '15000 CFA')
        self.assertEqual(format_amount(None), '0 CFA')

    def test_parse_date(self):
        self.assertEqual(parse_date('2025-03-01'), date(2025, 3, 1))
        self.assertIsNone(parse_date('01/03/2025'))
        self.assertIsNone(parse_date(None))

    def test_generate_sequence_number(self):
        day = date(2025, 5, 19)
        self.assertEqual(generate_sequence_number('FAC', Invoice, 'invoice_number', date=day), 'FAC-190525-0001')
        Invoice.objects.create(invoice_number='FAC-190525-0001', customer_name='A')
        self.assertEqual(generate_sequence_number('FAC', Invoice, 'invoice_number', date=day), 'FAC-190525-0002')

    def test_generate_sequence_number_skips_taken_numbers(self):
        day = date(2025, 5, 19)
        Invoice.objects.create(invoice_number='FAC-190525-0002', customer_name='A')
        # One row for the day, but 0002 is taken
        self.assertEqual(generate_sequence_number('FAC', Invoice, 'invoice_number', date=day), 'FAC-190525-0003')

    def test_get_period_range(self):
        today = timezone.localdate()
        self.assertEqual(get_period_range('today'), (today, today))
        self.assertEqual(get_period_range('yesterday'), (today - timedelta(days=1), today - timedelta(days=1)))
        self.assertEqual(get_period_range('month'), (today.replace(day=1), today))
        self.assertEqual(get_period_range('year'), (today.replace(month=1, day=1), today))
        self.assertEqual(get_period_range('week')[0].weekday(), 0)
        self.assertEqual(get_period_range('custom', '2025-01-01', '2025-01-31'), (date(2025, 1, 1), date(2025, 1, 31)))
        self.assertEqual(get_period_range('anything'), (today - timedelta(days=30), today))

    def test_create_audit_log_requires_fields(self):
        self.assertIsNone(create_audit_log(action='create', model_name='Order'))
        user = TestDataFactory.create_admin()
        log = create_audit_log(action='create', model_name='Order', object_id=5, user=user)
        self.assertEqual(log.object_id, '5')
        self.assertEqual(log.user, user)


class AuthAPITests(TestCase):
    """Test registration, login and the current user endpoint"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()

    def test_register_customer(self):
        data = {
            'username': 'aminata',
            'email': 'aminata@test.com',
            'password': 'Pagne-Wax-2024!',
            'password_confirm': 'Pagne-Wax-2024!',
            'phone': '0707070707',
        }
        response = self.client.post('/api/v1/auth/register/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertIn('access', response.data)
        self.assertEqual(User.objects.get(username='aminata').role, User.ROLE_CUSTOMER)

    def test_register_password_mismatch(self):
        data = {
            'username': 'aminata',
            'password': 'Pagne-Wax-2024!',
            'password_confirm': 'Other-Wax-2024!',
        }
        response = self.client.post('/api/v1/auth/register/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_login_returns_tokens_and_user(self):
        TestDataFactory.create_user(username='moussa', password='testpass123')
        response = self.client.post('/api/v1/auth/login/', {'username': 'moussa', 'password': 'testpass123'},
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('refresh', response.data)
        self.assertEqual(response.data['user']['username'], 'moussa')

    def test_me_lists_role_permissions(self):
        tailor = TestDataFactory.create_staff(role=User.ROLE_TAILOR)
        self.client.authenticate_user(tailor)
        response = self.client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('production', response.data['permissions'])
        self.assertTrue(response.data['can_access_admin'])

    def test_me_requires_authentication(self):
        response = self.client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)


class TeamAPITests(TestCase):
    """Test back-office member management"""

    def setUp(self):
        self.admin = TestDataFactory.create_admin()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.admin)

    def test_create_team_member(self):
        data = {'username': 'couturier1', 'password': 'Fil-Aiguille-99', 'role': 'TAILOR'}
        response = self.client.post('/api/v1/admin/team/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['role'], 'TAILOR')
        self.assertTrue(AuditLog.objects.filter(model_name='User', action='create').exists())

    def test_customer_role_rejected(self):
        data = {'username': 'client1', 'password': 'Fil-Aiguille-99', 'role': 'CUSTOMER'}
        response = self.client.post('/api/v1/admin/team/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_delete_deactivates_member(self):
        member = TestDataFactory.create_staff()
        response = self.client.delete(f'/api/v1/admin/team/{member.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        member.refresh_from_db()
        self.assertFalse(member.is_active)

    def test_cannot_delete_self(self):
        response = self.client.delete(f'/api/v1/admin/team/{self.admin.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_staff_cannot_manage_team(self):
        self.client.authenticate_user(TestDataFactory.create_staff())
        response = self.client.get('/api/v1/admin/team/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_staff_cannot_read_settings(self):
        self.client.authenticate_user(TestDataFactory.create_staff())
        response = self.client.get('/api/v1/settings/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class CacheUtilsTests(TestCase):
    """Test the cache-aside helpers and signal-driven invalidation"""

    def setUp(self):
        cache.clear()

    def tearDown(self):
        cache.clear()

    def test_make_cache_key_is_stable(self):
        self.assertEqual(make_cache_key('products', 1, page=2), make_cache_key('products', 1, page=2))
        self.assertNotEqual(make_cache_key('products', 1), make_cache_key('products', 2))
        self.assertTrue(make_cache_key('products', 1).startswith('products:'))

    def test_get_or_set_caches_result(self):
        fetcher = MagicMock(return_value={'count': 3})
        self.assertEqual(get_or_set('products:test', fetcher), {'count': 3})
        self.assertEqual(get_or_set('products:test', fetcher), {'count': 3})
        self.assertEqual(fetcher.call_count, 1)

    def test_get_or_set_does_not_store_none(self):
        fetcher = MagicMock(return_value=None)
        self.assertIsNone(get_or_set('products:none', fetcher))
        self.assertIsNone(get_or_set('products:none', fetcher))
        self.assertEqual(fetcher.call_count, 2)

    @patch('atelier.core.cache_utils.cache')
    def test_get_or_set_falls_back_when_cache_fails(self, mock_cache):
        mock_cache.get.side_effect = ConnectionError('redis down')
        self.assertEqual(get_or_set('products:down', lambda: [1, 2]), [1, 2])
        mock_cache.get.side_effect = None
        mock_cache.get.return_value = None
        mock_cache.set.side_effect = ConnectionError('redis down')
        self.assertEqual(get_or_set('products:down', lambda: [3]), [3])

    def test_invalidate_pattern_clears_non_redis_backend(self):
        cache.set('products:abc', 1)
        cache.set('unrelated', 2)
        invalidate_cache_pattern(f"{PRODUCTS_PREFIX}:")
        self.assertIsNone(cache.get('products:abc'))
        self.assertIsNone(cache.get('unrelated'))

    def test_product_change_invalidates_after_commit(self):
        cache.set('products:abc', 1)
        with self.captureOnCommitCallbacks(execute=True):
            TestDataFactory.create_product()
        self.assertIsNone(cache.get('products:abc'))

    def test_suspended_signals_do_not_invalidate(self):
        cache.set('products:abc', 1)
        with self.captureOnCommitCallbacks(execute=True) as callbacks:
            with suspend_cache_signals():
                TestDataFactory.create_product()
        self.assertEqual(callbacks, [])
        self.assertEqual(cache.get('products:abc'), 1)
