"""
Test suite for shipping zones, methods and cost calculation
"""
from decimal import Decimal
from django.core.cache import cache
from django.test import TestCase
from rest_framework import status
from atelier.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from atelier.shipping.calculator import calculate_shipping_cost, find_range_cost, find_zone, get_available_methods


class ShippingCalculatorTests(TestCase):
    """Test cost rules per cost type"""

    def setUp(self):
        self.zone = TestDataFactory.create_shipping_zone(countries=["Côte d'Ivoire", 'CI'])

    def test_free(self):
        method = TestDataFactory.create_shipping_method(self.zone, cost_type='free', cost=Decimal('5000'))
        self.assertEqual(calculate_shipping_cost(method, 1000), Decimal('0.00'))

    def test_flat_rate_with_free_threshold(self):
        method = TestDataFactory.create_shipping_method(self.zone, cost=Decimal('2000'),
                                                        min_order_amount=Decimal('50000'))
        self.assertEqual(calculate_shipping_cost(method, Decimal('20000')), Decimal('2000'))
        self.assertEqual(calculate_shipping_cost(method, Decimal('50000')), Decimal('0.00'))

    def test_flat_rate_zero_threshold_is_not_free(self):
        method = TestDataFactory.create_shipping_method(self.zone, cost=Decimal('2000'), min_order_amount=Decimal('0'))
        self.assertEqual(calculate_shipping_cost(method, Decimal('20000')), Decimal('2000'))

    def test_weight_based_ranges(self):
        method = TestDataFactory.create_shipping_method(
            self.zone, cost_type='weight_based', cost=Decimal('9000'),
            weight_ranges=[{'min': 0, 'max': 2, 'cost': 1500}, {'min': 2, 'max': None, 'cost': 3000}],
        )
        self.assertEqual(calculate_shipping_cost(method, total_weight='1.5'), Decimal('1500'))
        self.assertEqual(calculate_shipping_cost(method, total_weight=20), Decimal('3000'))
        # No weight known: base cost
        self.assertEqual(calculate_shipping_cost(method), Decimal('9000'))

    def test_price_based_falls_back_to_cost(self):
        method = TestDataFactory.create_shipping_method(
            self.zone, cost_type='price_based', cost=Decimal('2500'),
            price_ranges=[{'min': 0, 'max': 10000, 'cost': 1000}],
        )
        self.assertEqual(calculate_shipping_cost(method, 5000), Decimal('1000'))
        self.assertEqual(calculate_shipping_cost(method, 50000), Decimal('2500'))

    def test_variable_has_no_price(self):
        method = TestDataFactory.create_shipping_method(self.zone, cost_type='variable')
        self.assertIsNone(calculate_shipping_cost(method, 1000))

    def test_find_range_cost_ignores_bad_entries(self):
        self.assertIsNone(find_range_cost([], Decimal('1')))
        self.assertEqual(find_range_cost(['bad', {'min': 0, 'cost': 700}], Decimal('3')), Decimal('700'))

    def test_find_zone(self):
        default_zone = TestDataFactory.create_shipping_zone(name='International', countries=[], is_default=True)
        self.assertEqual(find_zone('ci'), self.zone)
        self.assertEqual(find_zone('Sénégal'), default_zone)
        self.assertIsNone(find_zone(''))

    def test_available_methods_sorted_with_variable_last(self):
        TestDataFactory.create_shipping_method(self.zone, name='Coursier', cost_type='variable')
        TestDataFactory.create_shipping_method(self.zone, name='Express', cost=Decimal('5000'))
        TestDataFactory.create_shipping_method(self.zone, name='Retrait', cost_type='free')
        TestDataFactory.create_shipping_method(self.zone, name='Désactivé', cost=Decimal('1'), enabled=False)
        zone, options = get_available_methods('CI', order_total=10000)
        self.assertEqual(zone, self.zone)
        self.assertEqual([o['name'] for o in options], ['Retrait', 'Express', 'Coursier'])
        self.assertTrue(options[-1]['is_variable'])

    def test_zone_without_methods_falls_back_to_default(self):
        default_zone = TestDataFactory.create_shipping_zone(name='International', countries=[], is_default=True)
        TestDataFactory.create_shipping_method(default_zone, name='Standard', cost=Decimal('4000'))
        TestDataFactory.create_shipping_method(self.zone, name='Désactivé', enabled=False)
        zone, options = get_available_methods('CI', order_total=10000)
        self.assertEqual(zone, default_zone)
        self.assertEqual([o['name'] for o in options], ['Standard'])
        self.assertEqual(find_zone('CI'), self.zone)


class ShippingAPITests(TestCase):
    """Test shipping endpoints"""

    def setUp(self):
        cache.clear()
        self.client = AuthenticatedAPIClient()
        self.zone = TestDataFactory.create_shipping_zone(name='Abidjan', countries=["Côte d'Ivoire"])
        TestDataFactory.create_shipping_method(self.zone, name='Livraison', cost=Decimal('1500'))

    def tearDown(self):
        cache.clear()

    def test_calculate_requires_country(self):
        response = self.client.post('/api/v1/shipping/calculate/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_calculate(self):
        response = self.client.post('/api/v1/shipping/calculate/', {'country': "Côte d'Ivoire"}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['zone_name'], 'Abidjan')
        self.assertEqual(response.data['methods'][0]['cost'], Decimal('1500'))

    def test_calculate_unknown_country(self):
        response = self.client.get('/api/v1/shipping/calculate/', {'country': 'Japon'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['methods'], [])

    def test_public_zones(self):
        response = self.client.get('/api/v1/shipping/zones/')
        self.assertEqual(len(response.data), 1)
        self.assertEqual(len(response.data[0]['methods']), 1)

    def test_admin_creates_method(self):
        self.client.authenticate_user(TestDataFactory.create_admin())
        data = {'zone': self.zone.id, 'name': 'Express', 'cost_type': 'flat_rate', 'cost': '3000'}
        response = self.client.post('/api/v1/admin/shipping/methods/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

    def test_invalid_ranges_rejected(self):
        self.client.authenticate_user(TestDataFactory.create_admin())
        data = {'zone': self.zone.id, 'name': 'Poids', 'cost_type': 'weight_based', 'cost': '0',
                'weight_ranges': [{'min': 0, 'price': 100}]}
        response = self.client.post('/api/v1/admin/shipping/methods/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
