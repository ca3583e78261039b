"""
Test utilities and factories for creating test data
"""
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from atelier.locations.models import Store
from atelier.catalog.models import Category, Product
from atelier.shipping.models import ShippingZone, ShippingMethod
from atelier.orders.services import create_order
from atelier.custom_orders.services import create_custom_order
from atelier.appointments.models import AppointmentType, Availability
from atelier.materials.models import Material, MaterialCategory
from atelier.expenses.models import ExpenseCategory, Expense
from atelier.notifications.models import NotificationTemplate
from atelier.notifications.smsing import SendResult
from decimal import Decimal
from datetime import time, timedelta
from django.utils import timezone
import random
import string

User = get_user_model()


class TestDataFactory:
    """Factory class for creating test data"""

    @staticmethod
    def random_string(length=10):
        """Generate a random string"""
        return ''.join(random.choices(string.ascii_letters + string.digits, k=length))

    @staticmethod
    def create_user(username=None, email=None, password='testpass123', role=User.ROLE_CUSTOMER, store=None,
                    phone=None, is_superuser=False, **extra):
        """Create a test user (a customer unless a role is given)"""
        if not username:
            username = f'testuser_{TestDataFactory.random_string(6)}'
        if not email:
            email = f'{username}@test.com'
        return User.objects.create_user(
            username=username,
            email=email,
            password=password,
            role=role,
            store=store,
            phone=phone,
            is_superuser=is_superuser,
            **extra
        )

    @staticmethod
    def create_admin(store=None):
        return TestDataFactory.create_user(role=User.ROLE_ADMIN, store=store)

    @staticmethod
    def create_staff(role=User.ROLE_STAFF, store=None):
        return TestDataFactory.create_user(role=role, store=store)

    @staticmethod
    def create_store(name=None, code=None, is_default=False):
        """Create a test store"""
        if not name:
            name = f'Store_{TestDataFactory.random_string(6)}'
        if not code:
            code = f'STORE_{TestDataFactory.random_string(6).upper()}'
        return Store.objects.create(
            name=name,
            code=code,
            address=f'Test Address {name}',
            phone='0700000000',
            is_default=is_default
        )

    @staticmethod
    def create_category(name=None, store=None):
        """Create a test category"""
        if not name:
            name = f'Category_{TestDataFactory.random_string(6)}'
        return Category.objects.create(name=name, store=store, description=f'Test category {name}')

    @staticmethod
    def create_product(name=None, sku=None, category=None, store=None, price=None, stock=20,
                       track_inventory=True, low_stock_threshold=5, **extra):
        """Create a test product"""
        if not name:
            name = f'Product_{TestDataFactory.random_string(6)}'
        if not sku:
            sku = f'SKU_{TestDataFactory.random_string(8)}'
        return Product.objects.create(
            name=name,
            sku=sku,
            category=category,
            store=store,
            price=price if price is not None else Decimal('10000.00'),
            stock=stock,
            track_inventory=track_inventory,
            low_stock_threshold=low_stock_threshold,
            **extra
        )

    @staticmethod
    def create_shipping_zone(name=None, countries=None, is_default=False, store=None):
        if not name:
            name = f'Zone_{TestDataFactory.random_string(6)}'
        return ShippingZone.objects.create(
            name=name,
            countries=countries if countries is not None else ["Côte d'Ivoire"],
            is_default=is_default,
            store=store
        )

    @staticmethod
    def create_shipping_method(zone=None, cost_type='flat_rate', cost=None, **extra):
        """Create a shipping method (in a new zone unless one is given)"""
        if zone is None:
            zone = TestDataFactory.create_shipping_zone()
        return ShippingMethod.objects.create(
            zone=zone,
            name=extra.pop('name', f'Method_{TestDataFactory.random_string(6)}'),
            cost_type=cost_type,
            cost=cost if cost is not None else Decimal('2000.00'),
            **extra
        )

    @staticmethod
    def create_order(user=None, products=None, store=None, payment_method='CASH_ON_DELIVERY', **extra):
        """Place an order through checkout; ``products`` is a list of (product, quantity)"""
        if not products:
            products = [(TestDataFactory.create_product(store=store), 1)]
        data = {
            'items': [{'product': product, 'quantity': quantity} for product, quantity in products],
            'billing_name': 'Awa Koné',
            'billing_phone': '0707070707',
            'billing_email': 'awa@test.com',
            'shipping_address': 'Cocody Riviera',
            'payment_method': payment_method,
        }
        data.update(extra)
        order, _ = create_order(data, user=user, store=store)
        return order

    @staticmethod
    def create_custom_order(user=None, store=None, items=None, pickup_date=None, **extra):
        """Create a custom order (one 15 000 CFA boubou unless items are given)"""
        data = {
            'customer_name': 'Koffi Yao',
            'customer_phone': '0505050505',
            'pickup_date': pickup_date or timezone.localdate() + timedelta(days=14),
            'items': items or [{'garment_type': 'Boubou', 'quantity': 1, 'unit_price': Decimal('15000.00')}],
        }
        data.update(extra)
        return create_custom_order(data, user=user, store=store)

    @staticmethod
    def create_appointment_type(name=None, duration=60, price=None):
        if not name:
            name = f'Type_{TestDataFactory.random_string(6)}'
        return AppointmentType.objects.create(
            name=name,
            duration=duration,
            price=price if price is not None else Decimal('0.00')
        )

    @staticmethod
    def create_availability(day_of_week, start=time(9, 0), end=time(12, 0), slot_duration=60, break_between=0):
        return Availability.objects.create(
            day_of_week=day_of_week,
            start_time=start,
            end_time=end,
            slot_duration=slot_duration,
            break_between=break_between
        )

    @staticmethod
    def create_material(name=None, quantity=None, unit_price=None, reorder_level=None, category=None, unit='METER'):
        """Create a material directly (no opening movement)"""
        if not name:
            name = f'Material_{TestDataFactory.random_string(6)}'
        return Material.objects.create(
            name=name,
            category=category,
            unit=unit,
            quantity=quantity if quantity is not None else Decimal('10.00'),
            unit_price=unit_price if unit_price is not None else Decimal('2500.00'),
            reorder_level=reorder_level if reorder_level is not None else Decimal('2.00')
        )

    @staticmethod
    def create_material_category(name=None):
        if not name:
            name = f'MatCat_{TestDataFactory.random_string(6)}'
        return MaterialCategory.objects.create(name=name)

    @staticmethod
    def create_expense_category(name=None):
        if not name:
            name = f'ExpCat_{TestDataFactory.random_string(6)}'
        return ExpenseCategory.objects.create(name=name)

    @staticmethod
    def create_expense(category=None, amount=None, date=None, store=None, payment_method='CASH', user=None):
        if category is None:
            category = TestDataFactory.create_expense_category()
        return Expense.objects.create(
            category=category,
            store=store,
            description='Test expense',
            amount=amount if amount is not None else Decimal('5000.00'),
            payment_method=payment_method,
            date=date or timezone.localdate(),
            created_by=user
        )

    @staticmethod
    def create_notification_template(trigger, channel='SMS', content='Bonjour {customer_name}'):
        return NotificationTemplate.objects.create(
            trigger=trigger,
            channel=channel,
            name=f'{trigger} {channel}',
            content=content
        )


class FakeSmsingClient:
    """Stands in for SmsingClient and records what would have been sent"""

    def __init__(self, success=True, fail_numbers=None):
        self.success = success
        self.fail_numbers = set(fail_numbers or [])
        self.sent = []

    def _send(self, channel, to, message):
        self.sent.append((channel, to, message))
        if not self.success or to in self.fail_numbers:
            return SendResult(False, None, 'rejected')
        return SendResult(True, f'msg-{len(self.sent)}', None)

    def send_sms(self, to, message):
        return self._send('SMS', to, message)

    def send_whatsapp(self, to, message, media_url=None):
        return self._send('WHATSAPP', to, message)


class AuthenticatedAPIClient(APIClient):
    """APIClient with authentication helper"""

    def authenticate_user(self, user):
        """Authenticate the client with a user"""
        refresh = RefreshToken.for_user(user)
        self.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
        return self

    def logout(self):
        """Remove authentication"""
        self.credentials()
