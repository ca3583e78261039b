"""
Test suite for workshop materials
Tests: stock movements, valuation, low stock flags and the materials report
"""
from decimal import Decimal
from django.test import TestCase
from django.utils import timezone
from rest_framework import status
from atelier.core.models import AuditLog
from atelier.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from atelier.materials.models import Material, MaterialMovement
from atelier.materials.services import record_movement, build_material_report, MaterialStockError


class MovementServiceTests(TestCase):
    """Test stock movements"""

    def setUp(self):
        self.material = TestDataFactory.create_material(name='Wax Hollandais', quantity=Decimal('10'))

    def test_in_and_return_add_stock(self):
        record_movement(self.material, 'IN', Decimal('5'), unit_price=Decimal('3000'))
        movement = record_movement(self.material, 'RETURN', Decimal('1.5'))
        self.assertEqual(self.material.quantity, Decimal('16.5'))
        self.assertEqual(movement.previous_stock, Decimal('15'))
        self.assertEqual(movement.total_cost, Decimal('3750'))

    def test_out_cannot_go_negative(self):
        with self.assertRaises(MaterialStockError):
            record_movement(self.material, 'OUT', Decimal('11'))
        self.material.refresh_from_db()
        self.assertEqual(self.material.quantity, Decimal('10'))
        self.assertFalse(MaterialMovement.objects.exists())

    def test_out_for_custom_order(self):
        tailor = TestDataFactory.create_staff(role='TAILOR')
        custom_order = TestDataFactory.create_custom_order()
        movement = record_movement(self.material, 'OUT', Decimal('3'), custom_order=custom_order, tailor=tailor)
        self.assertEqual(movement.new_stock, Decimal('7'))
        self.assertEqual(custom_order.material_movements.get(), movement)
        self.assertTrue(AuditLog.objects.filter(action='material_movement').exists())

    def test_adjust_sets_absolute_quantity(self):
        movement = record_movement(self.material, 'ADJUST', Decimal('0'))
        self.assertEqual(movement.new_stock, Decimal('0'))
        self.material.refresh_from_db()
        self.assertEqual(self.material.quantity, Decimal('0'))

    def test_invalid_movements(self):
        with self.assertRaises(MaterialStockError):
            record_movement(self.material, 'LOST', Decimal('1'))
        with self.assertRaises(MaterialStockError):
            record_movement(self.material, 'IN', Decimal('0'))

    def test_low_stock_flag(self):
        record_movement(self.material, 'OUT', Decimal('8'))
        self.material.refresh_from_db()
        self.assertTrue(self.material.is_low_stock)
        self.assertEqual(self.material.stock_value, Decimal('5000'))

    def test_report(self):
        category = TestDataFactory.create_material_category(name='Tissus')
        bazin = TestDataFactory.create_material(name='Bazin', category=category, quantity=Decimal('4'),
                                                unit_price=Decimal('5000'))
        record_movement(bazin, 'OUT', Decimal('3'))
        today = timezone.localdate()
        report = build_material_report(today, today)
        self.assertEqual(report['materials_count'], 2)
        self.assertEqual(report['stock_value'], Decimal('30000'))
        self.assertEqual(report['low_stock_count'], 1)
        self.assertEqual(report['movements_by_type']['OUT']['count'], 1)
        self.assertEqual(report['out_by_category'][0]['category'], 'Tissus')
        self.assertEqual(report['top_materials'][0]['material__name'], 'Bazin')


class MaterialAPITests(TestCase):
    """Test the materials endpoints"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(TestDataFactory.create_staff())

    def test_create_records_opening_stock(self):
        response = self.client.post('/api/v1/admin/materials/', {
            'name': 'Fil doré', 'unit': 'SPOOL', 'quantity': '12', 'unit_price': '500', 'reorder_level': '3',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(Decimal(response.data['quantity']), Decimal('12'))
        movement = MaterialMovement.objects.get()
        self.assertEqual(movement.movement_type, 'IN')
        self.assertEqual(movement.reference, 'Stock initial')

    def test_negative_values_rejected(self):
        response = self.client.post('/api/v1/admin/materials/', {'name': 'X', 'unit_price': '-1'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_quantity_not_editable(self):
        material = TestDataFactory.create_material()
        response = self.client.patch(f'/api/v1/admin/materials/{material.id}/',
                                     {'quantity': '999', 'supplier': 'Uniwax'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        material.refresh_from_db()
        self.assertEqual(material.quantity, Decimal('10'))
        self.assertEqual(material.supplier, 'Uniwax')

    def test_list_low_stock_filter(self):
        TestDataFactory.create_material(name='Plein', quantity=Decimal('50'))
        TestDataFactory.create_material(name='Presque vide', quantity=Decimal('1'))
        response = self.client.get('/api/v1/admin/materials/', {'low_stock': 'true'})
        self.assertEqual(response.data['low_stock_count'], 1)
        self.assertEqual([m['name'] for m in response.data['results']], ['Presque vide'])

    def test_movement_endpoint(self):
        material = TestDataFactory.create_material()
        url = '/api/v1/admin/materials/movements/'
        response = self.client.post(url, {'material': material.id, 'movement_type': 'OUT', 'quantity': '20'},
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('error', response.data)
        response = self.client.post(url, {'material': material.id, 'movement_type': 'OUT', 'quantity': '4'},
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        response = self.client.get(url, {'material': material.id})
        self.assertEqual(response.data['totals']['total_cost'], Decimal('10000'))

    def test_delete_with_history_deactivates(self):
        material = TestDataFactory.create_material()
        record_movement(material, 'OUT', Decimal('1'))
        response = self.client.delete(f'/api/v1/admin/materials/{material.id}/')
        self.assertFalse(response.data['is_active'])
        self.assertTrue(Material.objects.filter(pk=material.id).exists())
        unused = TestDataFactory.create_material()
        response = self.client.delete(f'/api/v1/admin/materials/{unused.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)

    def test_category_with_materials_not_deleted(self):
        category = TestDataFactory.create_material_category()
        TestDataFactory.create_material(category=category)
        response = self.client.delete(f'/api/v1/admin/materials/categories/{category.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_tailor_forbidden(self):
        self.client.authenticate_user(TestDataFactory.create_staff(role='TAILOR'))
        response = self.client.get('/api/v1/admin/materials/report/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
