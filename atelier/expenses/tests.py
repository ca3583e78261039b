"""
Test suite for expenses
Tests: expense recording, category rules, filters and the period report
"""
from datetime import timedelta
from decimal import Decimal
from django.test import TestCase
from django.utils import timezone
from rest_framework import status
from atelier.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from atelier.expenses.services import build_expense_report


class ExpenseReportTests(TestCase):
    """Test the expense report aggregation"""

    def test_report_groups(self):
        today = timezone.localdate()
        rent = TestDataFactory.create_expense_category(name='Loyer')
        transport = TestDataFactory.create_expense_category(name='Transport')
        tailor = TestDataFactory.create_staff(role='TAILOR')
        TestDataFactory.create_expense(category=rent, amount=Decimal('150000'))
        expense = TestDataFactory.create_expense(category=transport, amount=Decimal('3000'), payment_method='WAVE')
        expense.staff = tailor
        expense.save()
        TestDataFactory.create_expense(category=transport, amount=Decimal('9999'), date=today - timedelta(days=40))

        report = build_expense_report(today - timedelta(days=30), today)
        self.assertEqual(report['total'], Decimal('153000'))
        self.assertEqual(report['count'], 2)
        self.assertEqual(report['average'], Decimal('76500.00'))
        self.assertEqual([row['name'] for row in report['by_category']], ['Loyer', 'Transport'])
        self.assertEqual(report['by_payment_method'][1]['label'], 'Wave')
        self.assertEqual(report['by_staff'][0]['staff_id'], tailor.id)

    def test_empty_period(self):
        today = timezone.localdate()
        report = build_expense_report(today, today)
        self.assertEqual(report['total'], Decimal('0.00'))
        self.assertEqual(report['average'], Decimal('0.00'))


class ExpenseAPITests(TestCase):
    """Test the expense endpoints"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.manager = TestDataFactory.create_staff(role='MANAGER')
        self.client.authenticate_user(self.manager)
        self.category = TestDataFactory.create_expense_category(name='Électricité')

    def test_create_expense(self):
        response = self.client.post('/api/v1/admin/expenses/', {
            'category': self.category.id, 'description': ' Facture CIE ', 'amount': '45000', 'payment_method': 'CASH',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['description'], 'Facture CIE')
        self.assertEqual(response.data['created_by'], self.manager.id)

    def test_invalid_expenses(self):
        url = '/api/v1/admin/expenses/'
        response = self.client.post(url, {'category': self.category.id, 'description': 'x', 'amount': '0',
                                          'payment_method': 'CASH'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.category.is_active = False
        self.category.save()
        response = self.client.post(url, {'category': self.category.id, 'description': 'x', 'amount': '10',
                                          'payment_method': 'CASH'}, format='json')
        self.assertIn('category', response.data)

    def test_list_filters_and_totals(self):
        TestDataFactory.create_expense(category=self.category, amount=Decimal('1000'))
        TestDataFactory.create_expense(category=self.category, amount=Decimal('2000'), payment_method='WAVE')
        response = self.client.get('/api/v1/admin/expenses/', {'payment_method': 'WAVE'})
        self.assertEqual(response.data['count'], 1)
        response = self.client.get('/api/v1/admin/expenses/', {'period': 'today'})
        self.assertEqual(response.data['totals']['total_amount'], Decimal('3000'))

    def test_category_in_use_not_deleted(self):
        TestDataFactory.create_expense(category=self.category)
        response = self.client.delete(f'/api/v1/admin/expenses/categories/{self.category.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        response = self.client.get('/api/v1/admin/expenses/categories/')
        self.assertEqual(response.data[0]['expenses_count'], 1)

    def test_report_endpoint(self):
        TestDataFactory.create_expense(category=self.category, amount=Decimal('2500'))
        response = self.client.get('/api/v1/admin/expenses/report/', {'period': 'month'})
        self.assertEqual(response.data['total'], Decimal('2500'))

    def test_staff_role_forbidden(self):
        self.client.authenticate_user(TestDataFactory.create_staff())
        response = self.client.get('/api/v1/admin/expenses/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
