"""
Test suite for stores (tenants) and store resolution
"""
from django.test import TestCase, RequestFactory
from django.contrib.auth.models import AnonymousUser
from rest_framework import status
from atelier.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from atelier.catalog.models import Product
from atelier.locations.models import Store
from atelier.locations.utils import get_request_store, filter_by_store


class StoreResolutionTests(TestCase):
    """Test how a request is mapped to a store"""

    def setUp(self):
        self.factory = RequestFactory()
        self.default_store = TestDataFactory.create_store(is_default=True)
        self.other_store = TestDataFactory.create_store(code='PLATEAU')

    def _request(self, user=None, **headers):
        request = self.factory.get('/', **headers)
        request.user = user or AnonymousUser()
        return request

    def test_user_store_wins(self):
        user = TestDataFactory.create_staff(store=self.other_store)
        self.assertEqual(get_request_store(self._request(user)), self.other_store)

    def test_header_store(self):
        request = self._request(HTTP_X_STORE_CODE='PLATEAU')
        self.assertEqual(get_request_store(request), self.other_store)

    def test_unknown_header_falls_back_to_default(self):
        request = self._request(HTTP_X_STORE_CODE='NOPE')
        self.assertEqual(get_request_store(request), self.default_store)

    def test_single_default_store(self):
        new_default = TestDataFactory.create_store(is_default=True)
        self.default_store.refresh_from_db()
        self.assertFalse(self.default_store.is_default)
        self.assertEqual(Store.objects.filter(is_default=True).get(), new_default)

    def test_filter_by_store_keeps_shared_rows(self):
        own = TestDataFactory.create_product(store=self.default_store)
        shared = TestDataFactory.create_product(store=None)
        TestDataFactory.create_product(store=self.other_store)
        result = set(filter_by_store(Product.objects.all(), self.default_store))
        self.assertEqual(result, {own, shared})
        self.assertEqual(filter_by_store(Product.objects.all(), None).count(), 3)


class StoreAPITests(TestCase):
    """Test store endpoints"""

    def setUp(self):
        self.store = TestDataFactory.create_store(name='Atelier Cocody', is_default=True)
        self.client = AuthenticatedAPIClient()

    def test_current_store_is_public(self):
        response = self.client.get('/api/v1/stores/current/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['name'], 'Atelier Cocody')

    def test_admin_creates_store(self):
        self.client.authenticate_user(TestDataFactory.create_admin())
        response = self.client.post('/api/v1/admin/stores/', {'name': 'Atelier Plateau', 'code': 'PLT'},
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(Store.objects.filter(code='PLT').exists())

    def test_delete_deactivates_store(self):
        self.client.authenticate_user(TestDataFactory.create_admin())
        response = self.client.delete(f'/api/v1/admin/stores/{self.store.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.store.refresh_from_db()
        self.assertFalse(self.store.is_active)

    def test_staff_cannot_manage_stores(self):
        self.client.authenticate_user(TestDataFactory.create_staff())
        response = self.client.get('/api/v1/admin/stores/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
