import logging
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.db.models import Q, Count
from django.shortcuts import get_object_or_404
from atelier.core.cache_utils import invalidate_dashboard_cache
from atelier.core.models import User
from atelier.core.permissions import HasRolePermission
from atelier.core.utils import create_audit_log, paginate, parse_date
from atelier.locations.utils import get_request_store, filter_by_store
from .models import CustomOrder, CustomOrderPayment
from .serializers import (
    CustomOrderSerializer, CustomOrderCreateSerializer, CustomOrderListSerializer,
    CustomOrderPaymentSerializer, CustomOrderPaymentCreateSerializer, CustomOrderTimelineSerializer,
)
from .services import (
    create_custom_order, update_custom_order, add_custom_order_payment, delete_custom_order_payment,
    production_board, CustomOrderError,
)

logger = logging.getLogger(__name__)


def _custom_order_queryset(request):
    """Custom orders visible to the user; tailors only see the orders assigned to them"""
    queryset = CustomOrder.objects.select_related('tailor', 'store', 'created_by').prefetch_related('items', 'payments')
    queryset = filter_by_store(queryset, get_request_store(request))
    if getattr(request.user, 'role', None) == User.ROLE_TAILOR and not request.user.is_superuser:
        queryset = queryset.filter(tailor=request.user)
    return queryset


def _detail_payload(custom_order):
    custom_order = CustomOrder.objects.select_related('tailor', 'created_by').prefetch_related(
        'items', 'payments__received_by', 'timeline__user'
    ).get(pk=custom_order.pk)
    return CustomOrderSerializer(custom_order).data


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, HasRolePermission('custom-orders')])
def custom_order_list_create(request):
    """List custom orders with deposit/balance and status stats, or create one"""
    if request.method == 'GET':
        queryset = _custom_order_queryset(request)
        stats_base = queryset
        params = request.query_params
        if params.get('status'):
            queryset = queryset.filter(status=params['status'])
        if params.get('priority'):
            queryset = queryset.filter(priority=params['priority'])
        if params.get('tailor'):
            queryset = queryset.filter(tailor_id=params['tailor'])
        search = params.get('search')
        if search:
            queryset = queryset.filter(
                Q(order_number__icontains=search) | Q(customer_name__icontains=search) |
                Q(customer_phone__icontains=search)
            )
        date_from = parse_date(params.get('date_from'))
        date_to = parse_date(params.get('date_to'))
        if date_from:
            queryset = queryset.filter(created_at__date__gte=date_from)
        if date_to:
            queryset = queryset.filter(created_at__date__lte=date_to)

        stats = {row['status']: row['count'] for row in stats_base.values('status').annotate(count=Count('id')).order_by()}
        return Response(paginate(request, queryset.order_by('-created_at'), CustomOrderListSerializer,
                                 extra={'stats': stats}))

    serializer = CustomOrderCreateSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    try:
        custom_order = create_custom_order(dict(serializer.validated_data), user=request.user,
                                           store=get_request_store(request))
    except CustomOrderError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
    invalidate_dashboard_cache()
    return Response(_detail_payload(custom_order), status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, HasRolePermission('custom-orders')])
def custom_order_detail(request, pk):
    custom_order = get_object_or_404(_custom_order_queryset(request), pk=pk)

    if request.method == 'GET':
        return Response(_detail_payload(custom_order))

    if request.method == 'DELETE':
        if request.user.role not in (User.ROLE_ADMIN, User.ROLE_MANAGER) and not request.user.is_superuser:
            return Response({'error': 'Only administrators can delete custom orders'}, status=status.HTTP_403_FORBIDDEN)
        if custom_order.status == 'DELIVERED':
            return Response({'error': 'A delivered order cannot be deleted'}, status=status.HTTP_400_BAD_REQUEST)
        order_number = custom_order.order_number
        custom_order.delete()
        create_audit_log(request=request, action='delete', model_name='CustomOrder', object_id=pk,
                         object_reference=order_number)
        invalidate_dashboard_cache()
        return Response(status=status.HTTP_204_NO_CONTENT)

    serializer = CustomOrderSerializer(custom_order, data=request.data, partial=request.method == 'PATCH')
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    update_custom_order(custom_order, dict(serializer.validated_data), user=request.user)
    create_audit_log(request=request, action='update', model_name='CustomOrder', object_id=custom_order.id,
                     object_reference=custom_order.order_number, changes=request.data)
    invalidate_dashboard_cache()
    return Response(_detail_payload(custom_order))


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, HasRolePermission('custom-orders')])
def custom_order_payments(request, pk):
    custom_order = get_object_or_404(_custom_order_queryset(request), pk=pk)

    if request.method == 'GET':
        payments = custom_order.payments.select_related('received_by')
        amount_paid = custom_order.amount_paid
        balance = custom_order.grand_total - amount_paid
        return Response({
            'payments': CustomOrderPaymentSerializer(payments, many=True).data,
            'summary': {
                'total_cost': custom_order.total_cost,
                'material_cost': custom_order.material_cost,
                'total_paid': amount_paid,
                'balance': balance,
                'is_paid_in_full': balance <= 0,
            },
        })

    serializer = CustomOrderPaymentCreateSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    data = serializer.validated_data
    try:
        payment = add_custom_order_payment(
            custom_order, data['amount'], payment_method=data['payment_method'],
            payment_type=data.get('payment_type'), notes=data.get('notes', ''), user=request.user,
        )
    except CustomOrderError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
    invalidate_dashboard_cache()
    return Response(CustomOrderPaymentSerializer(payment).data, status=status.HTTP_201_CREATED)


@api_view(['DELETE'])
@permission_classes([IsAuthenticated, HasRolePermission('custom-orders')])
def custom_order_payment_delete(request, pk, payment_id):
    custom_order = get_object_or_404(_custom_order_queryset(request), pk=pk)
    payment = get_object_or_404(CustomOrderPayment, pk=payment_id, custom_order=custom_order)
    delete_custom_order_payment(payment, user=request.user)
    invalidate_dashboard_cache()
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET'])
@permission_classes([IsAuthenticated, HasRolePermission('custom-orders')])
def custom_order_timeline(request, pk):
    custom_order = get_object_or_404(_custom_order_queryset(request), pk=pk)
    return Response(CustomOrderTimelineSerializer(custom_order.timeline.select_related('user'), many=True).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated, HasRolePermission('production')])
def production_overview(request):
    """Workshop board: active custom orders grouped by status, overdue ones flagged"""
    board = production_board(_custom_order_queryset(request))
    columns = {}
    overdue_count = 0
    for order_status, entries in board.items():
        column = []
        for custom_order, overdue in entries:
            data = CustomOrderListSerializer(custom_order).data
            data['is_overdue'] = overdue
            overdue_count += overdue
            column.append(data)
        columns[order_status] = column
    return Response({
        'columns': columns,
        'counts': {order_status: len(entries) for order_status, entries in board.items()},
        'overdue_count': overdue_count,
    })
