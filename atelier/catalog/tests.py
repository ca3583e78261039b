"""
Test suite for the catalog module
Tests: storefront listing and caching, product and category management, stock adjustments and alerts
"""
from unittest.mock import patch
from django.core.cache import cache
from django.test import TestCase
from rest_framework import status
from atelier.core.models import AuditLog
from atelier.core.test_utils import TestDataFactory, AuthenticatedAPIClient, FakeSmsingClient
from atelier.catalog.models import Product, StockMovement
from atelier.catalog.services import adjust_stock, reserve_stock_for_sale, restore_stock, StockError
from atelier.notifications.models import NotificationSettings, NotificationLog


class StockServiceTests(TestCase):
    """Test stock changes and movement history"""

    def setUp(self):
        self.product = TestDataFactory.create_product(stock=10, low_stock_threshold=3)

    def test_purchase_adds_stock(self):
        movement = adjust_stock(self.product, 'purchase', -5)
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, 15)
        self.assertEqual(movement.quantity, 5)
        self.assertEqual((movement.previous_stock, movement.new_stock), (10, 15))

    def test_damaged_removes_stock(self):
        adjust_stock(self.product, 'damaged', 4)
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, 6)

    def test_stock_never_negative(self):
        movement = adjust_stock(self.product, 'adjustment', -25)
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, 0)
        self.assertEqual(movement.quantity, -10)

    def test_invalid_adjustments(self):
        with self.assertRaises(StockError):
            adjust_stock(self.product, 'sale', 1)
        with self.assertRaises(StockError):
            adjust_stock(self.product, 'adjustment', 0)
        with self.assertRaises(StockError):
            adjust_stock(self.product, 'adjustment', 'abc')

    def test_reserve_stock_for_sale(self):
        reserve_stock_for_sale(self.product, 4, reference='ORD-1')
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, 6)
        movement = StockMovement.objects.get(product=self.product, movement_type='sale')
        self.assertEqual(movement.quantity, -4)

    def test_reserve_more_than_available(self):
        with self.assertRaises(StockError):
            reserve_stock_for_sale(self.product, 11)
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, 10)

    def test_untracked_product_is_not_reserved(self):
        product = TestDataFactory.create_product(stock=0, track_inventory=False)
        self.assertIsNone(reserve_stock_for_sale(product, 3))
        self.assertFalse(StockMovement.objects.filter(product=product).exists())

    def test_restore_stock(self):
        restore_stock(self.product, 2, reference='ORD-1', reason='Commande annulée')
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, 12)
        self.assertIsNone(restore_stock(self.product, 0))


class StockAlertTests(TestCase):
    """Test the low and out of stock admin alerts"""

    def setUp(self):
        settings_obj = NotificationSettings.load()
        settings_obj.admin_phones = ['0102030405']
        settings_obj.save()
        TestDataFactory.create_notification_template('LOW_STOCK', content='Stock bas: {product_name} ({product_stock})')
        TestDataFactory.create_notification_template('OUT_OF_STOCK', content='Rupture: {product_name}')
        self.product = TestDataFactory.create_product(name='Pagne Wax', stock=10, low_stock_threshold=5)
        self.fake = FakeSmsingClient()

    def test_low_stock_alert(self):
        with patch('atelier.notifications.service.get_client', return_value=self.fake):
            adjust_stock(self.product, 'damaged', 6)
        self.assertEqual(len(self.fake.sent), 1)
        self.assertEqual(self.fake.sent[0][2], 'Stock bas: Pagne Wax (4)')
        self.assertTrue(NotificationLog.objects.filter(trigger='LOW_STOCK', status='SENT').exists())

    def test_out_of_stock_alert(self):
        with patch('atelier.notifications.service.get_client', return_value=self.fake):
            adjust_stock(self.product, 'damaged', 10)
        self.assertEqual(self.fake.sent[0][2], 'Rupture: Pagne Wax')

    def test_no_alert_above_threshold(self):
        with patch('atelier.notifications.service.get_client', return_value=self.fake):
            adjust_stock(self.product, 'damaged', 2)
        self.assertEqual(self.fake.sent, [])


class StorefrontAPITests(TestCase):
    """Test public catalog endpoints"""

    def setUp(self):
        cache.clear()
        self.client = AuthenticatedAPIClient()
        self.category = TestDataFactory.create_category(name='Robes')
        self.dress = TestDataFactory.create_product(name='Robe Kente', category=self.category,
                                                    price=25000, is_featured=True)
        self.shirt = TestDataFactory.create_product(name='Chemise Bogolan', price=12000)
        self.hidden = TestDataFactory.create_product(name='Robe retirée', is_active=False)

    def tearDown(self):
        cache.clear()

    def test_list_active_products(self):
        response = self.client.get('/api/v1/products/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        names = {item['name'] for item in response.data['results']}
        self.assertEqual(names, {'Robe Kente', 'Chemise Bogolan'})

    def test_filter_and_ordering(self):
        response = self.client.get('/api/v1/products/', {'category': 'robes'})
        self.assertEqual([p['name'] for p in response.data['results']], ['Robe Kente'])
        response = self.client.get('/api/v1/products/', {'ordering': 'price_asc'})
        self.assertEqual(response.data['results'][0]['name'], 'Chemise Bogolan')
        response = self.client.get('/api/v1/products/', {'search': 'kente'})
        self.assertEqual(response.data['count'], 1)

    def test_product_detail_by_slug(self):
        response = self.client.get(f'/api/v1/products/{self.dress.slug}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['name'], 'Robe Kente')
        self.assertIn('related', response.data)

    def test_inactive_product_not_found(self):
        response = self.client.get(f'/api/v1/products/{self.hidden.slug}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_featured_products(self):
        response = self.client.get('/api/v1/products/featured/')
        self.assertEqual([p['name'] for p in response.data], ['Robe Kente'])

    def test_categories_count_active_products(self):
        response = self.client.get('/api/v1/categories/')
        self.assertEqual(response.data[0]['product_count'], 1)

    def test_product_update_invalidates_cache(self):
        self.client.get('/api/v1/products/')
        admin = TestDataFactory.create_admin()
        self.client.authenticate_user(admin)
        self.client.patch(f'/api/v1/admin/products/{self.shirt.id}/', {'name': 'Chemise Wax'}, format='json')
        self.client.logout()
        response = self.client.get('/api/v1/products/')
        names = {item['name'] for item in response.data['results']}
        self.assertIn('Chemise Wax', names)


class ProductAdminAPITests(TestCase):
    """Test back-office product, category and inventory endpoints"""

    def setUp(self):
        cache.clear()
        self.user = TestDataFactory.create_staff()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_create_product_with_initial_stock(self):
        data = {'name': 'Boubou Bazin', 'price': '45000.00', 'initial_stock': 7}
        response = self.client.post('/api/v1/admin/products/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['stock'], 7)
        self.assertEqual(response.data['slug'], 'boubou-bazin')
        product = Product.objects.get(pk=response.data['id'])
        self.assertEqual(product.stock_movements.get().movement_type, 'purchase')

    def test_negative_price_rejected(self):
        response = self.client.post('/api/v1/admin/products/', {'name': 'X', 'price': '-1'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_slug_is_unique(self):
        TestDataFactory.create_product(name='Robe')
        response = self.client.post('/api/v1/admin/products/', {'name': 'Robe', 'price': '1000'}, format='json')
        self.assertEqual(response.data['slug'], 'robe-2')

    def test_stock_is_read_only_on_update(self):
        product = TestDataFactory.create_product(stock=5)
        self.client.patch(f'/api/v1/admin/products/{product.id}/', {'stock': 50}, format='json')
        product.refresh_from_db()
        self.assertEqual(product.stock, 5)

    def test_sold_product_is_deactivated_not_deleted(self):
        product = TestDataFactory.create_product(stock=5)
        TestDataFactory.create_order(products=[(product, 1)])
        response = self.client.delete(f'/api/v1/admin/products/{product.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        product.refresh_from_db()
        self.assertFalse(product.is_active)

    def test_unsold_product_is_deleted(self):
        product = TestDataFactory.create_product()
        self.client.delete(f'/api/v1/admin/products/{product.id}/')
        self.assertFalse(Product.objects.filter(pk=product.pk).exists())

    def test_inventory_adjust(self):
        product = TestDataFactory.create_product(stock=5)
        data = {'product': product.id, 'type': 'purchase', 'quantity': 10, 'reason': 'Arrivage'}
        response = self.client.post('/api/v1/admin/inventory/adjust/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['product']['stock'], 15)
        self.assertTrue(AuditLog.objects.filter(action='stock_adjust', object_id=str(product.id)).exists())

    def test_inventory_overview(self):
        TestDataFactory.create_product(stock=2, low_stock_threshold=5, price=1000)
        TestDataFactory.create_product(stock=0)
        TestDataFactory.create_product(stock=10, price=500)
        response = self.client.get('/api/v1/admin/inventory/')
        self.assertEqual(response.data['low_stock_count'], 1)
        self.assertEqual(response.data['out_of_stock_count'], 1)
        self.assertEqual(response.data['total_units'], 12)

    def test_tailor_cannot_manage_products(self):
        self.client.authenticate_user(TestDataFactory.create_staff(role='TAILOR'))
        response = self.client.get('/api/v1/admin/products/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
