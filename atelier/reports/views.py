import logging
from datetime import timedelta
from decimal import Decimal

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.db.models import Sum, Count, F
from django.utils import timezone

from atelier.core.cache_utils import make_cache_key, get_or_set, DASHBOARD_PREFIX, CACHE_TTL_SHORT
from atelier.core.permissions import HasRolePermission
from atelier.core.utils import parse_date
from atelier.locations.utils import get_request_store, filter_by_store
from atelier.catalog.models import Product
from atelier.orders.models import Order
from atelier.orders.serializers import OrderListSerializer
from atelier.invoices.models import Invoice
from atelier.custom_orders.models import CustomOrder, CustomOrderPayment
from atelier.appointments.models import Appointment
from atelier.expenses.models import Expense

logger = logging.getLogger(__name__)

REVENUE_EXCLUDED_STATUSES = ('CANCELLED', 'REFUNDED')


def _decimal(value):
    return value or Decimal('0.00')


def build_dashboard(store, date_from, date_to):
    """KPIs for the back-office home screen over an inclusive date range"""
    orders = filter_by_store(Order.objects.all(), store)
    period_orders = orders.filter(created_at__date__gte=date_from, created_at__date__lte=date_to)

    order_revenue = _decimal(period_orders.filter(payment_status='COMPLETED').exclude(
        status__in=REVENUE_EXCLUDED_STATUSES
    ).aggregate(total=Sum('total'))['total'])

    custom_orders = filter_by_store(CustomOrder.objects.all(), store)
    custom_payments = CustomOrderPayment.objects.filter(
        custom_order__in=custom_orders, paid_at__date__gte=date_from, paid_at__date__lte=date_to
    )
    custom_revenue = _decimal(custom_payments.aggregate(total=Sum('amount'))['total'])
    revenue = order_revenue + custom_revenue

    orders_by_status = {code: 0 for code, _ in Order.STATUS_CHOICES}
    for row in period_orders.values('status').annotate(count=Count('id')).order_by():
        orders_by_status[row['status']] = row['count']

    pending_orders = orders.filter(payment_status='PENDING').exclude(status__in=REVENUE_EXCLUDED_STATUSES)
    pending = pending_orders.aggregate(count=Count('id'), total=Sum('total'))
    open_invoices = filter_by_store(Invoice.objects.all(), store).filter(status__in=['SENT', 'PARTIAL', 'OVERDUE'])
    invoice_outstanding = open_invoices.aggregate(total=Sum('total'), paid=Sum('amount_paid'))

    in_progress = custom_orders.filter(status__in=CustomOrder.ACTIVE_STATUSES)
    today = timezone.localdate()
    overdue_custom = in_progress.filter(pickup_date__lt=today).exclude(status='READY').count()

    expenses = filter_by_store(Expense.objects.all(), store).filter(date__gte=date_from, date__lte=date_to)
    expenses_total = _decimal(expenses.aggregate(total=Sum('amount'))['total'])

    low_stock = Product.objects.filter(
        is_active=True, track_inventory=True, stock__lte=F('low_stock_threshold')
    ).order_by('stock')

    upcoming_appointments = Appointment.objects.filter(
        date__gte=today, status__in=['PENDING', 'CONFIRMED']
    ).count()

    recent_orders = orders.select_related('store').prefetch_related('items').order_by('-created_at')[:10]

    return {
        'period': {'from': date_from.isoformat(), 'to': date_to.isoformat()},
        'revenue': {
            'total': revenue,
            'orders': order_revenue,
            'custom_orders': custom_revenue,
        },
        'orders': {
            'total': period_orders.count(),
            'by_status': orders_by_status,
        },
        'pending_payments': {
            'orders_count': pending['count'] or 0,
            'orders_amount': _decimal(pending['total']),
            'invoices_count': open_invoices.count(),
            'invoices_outstanding': _decimal(invoice_outstanding['total']) - _decimal(invoice_outstanding['paid']),
        },
        'custom_orders': {
            'in_progress': in_progress.count(),
            'overdue': overdue_custom,
            'by_status': {
                row['status']: row['count']
                for row in in_progress.values('status').annotate(count=Count('id')).order_by()
            },
        },
        'expenses': {
            'total': expenses_total,
            'count': expenses.count(),
        },
        'net': revenue - expenses_total,
        'upcoming_appointments': upcoming_appointments,
        'low_stock_count': low_stock.count(),
        'low_stock_products': [
            {'id': p.id, 'name': p.name, 'sku': p.sku, 'stock': p.stock, 'threshold': p.low_stock_threshold}
            for p in low_stock[:10]
        ],
        'recent_orders': list(OrderListSerializer(recent_orders, many=True).data),
    }


@api_view(['GET'])
@permission_classes([IsAuthenticated, HasRolePermission('dashboard')])
def dashboard(request):
    """Dashboard KPIs, defaults to the last 30 days"""
    today = timezone.localdate()
    date_from = parse_date(request.query_params.get('date_from')) or today - timedelta(days=30)
    date_to = parse_date(request.query_params.get('date_to')) or today
    if date_from > date_to:
        return Response({'error': 'date_from must be before date_to'}, status=status.HTTP_400_BAD_REQUEST)

    store = get_request_store(request)
    store_id = store.id if store else None
    cache_key = make_cache_key(DASHBOARD_PREFIX, str(date_from), str(date_to), store_id)
    data = get_or_set(cache_key, lambda: build_dashboard(store, date_from, date_to), CACHE_TTL_SHORT)
    logger.debug(f"Dashboard served for {request.user.username} ({date_from} to {date_to})")
    return Response(data)
