import logging
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated, AllowAny
from django.db.models import Count
from django.shortcuts import get_object_or_404
from atelier.core.cache_utils import invalidate_dashboard_cache
from atelier.core.permissions import HasRolePermission, user_is_staff
from atelier.core.utils import create_audit_log, paginate
from atelier.locations.utils import get_request_store, filter_by_store
from atelier.payments.services import refresh_payment_status
from .filters import OrderFilter
from .models import Order, Coupon
from .serializers import (
    CheckoutSerializer, OrderSerializer, OrderListSerializer, OrderNoteSerializer,
    AdminOrderUpdateSerializer, CouponSerializer, CouponValidateSerializer,
)
from .services import (
    create_order, validate_coupon, add_order_note, update_order_status, update_payment_status,
    update_shipping_cost, CheckoutError, CouponError, OrderStatusError,
)

logger = logging.getLogger(__name__)


def _order_queryset():
    return Order.objects.select_related('shipping_method', 'store', 'user').prefetch_related('items__product', 'notes')


def _can_view_order(user, order):
    return user_is_staff(user) or (order.user_id is not None and order.user_id == user.id)


# Customer views
@api_view(['GET', 'POST'])
@permission_classes([AllowAny])
def order_list_create(request):
    """GET: the customer's own orders. POST: checkout (guests allowed)"""
    if request.method == 'GET':
        if not request.user.is_authenticated:
            return Response({'error': 'Authentication required'}, status=status.HTTP_401_UNAUTHORIZED)
        orders = _order_queryset().filter(user=request.user).order_by('-created_at')
        return Response(paginate(request, orders, OrderListSerializer))

    serializer = CheckoutSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    try:
        order, payment = create_order(serializer.validated_data, user=request.user, store=get_request_store(request))
    except CheckoutError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

    invalidate_dashboard_cache()
    data = OrderSerializer(_order_queryset().get(pk=order.pk)).data
    data['payment_reference'] = payment.reference if payment else None
    data['requires_payment'] = payment is not None
    return Response(data, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def order_detail(request, pk):
    order = get_object_or_404(_order_queryset(), pk=pk)
    if not _can_view_order(request.user, order):
        return Response({'error': 'You do not have access to this order'}, status=status.HTTP_403_FORBIDDEN)
    return Response(OrderSerializer(order).data)


@api_view(['GET'])
@permission_classes([AllowAny])
def order_payment_status(request, pk):
    """Current payment status of an order, polling the gateway while it is pending"""
    if not request.user.is_authenticated:
        return Response({'error': 'Authentication required'}, status=status.HTTP_401_UNAUTHORIZED)
    order = get_object_or_404(Order, pk=pk)
    if not _can_view_order(request.user, order):
        return Response({'error': 'You do not have access to this order'}, status=status.HTTP_403_FORBIDDEN)

    payment = order.payments.order_by('-created_at').first()
    if payment is None:
        return Response({
            'order_number': order.order_number,
            'status': order.payment_status,
            'payment_status': order.payment_status,
            'order_status': order.status,
            'reference': None,
        })

    payment_status = refresh_payment_status(payment)
    order.refresh_from_db()
    return Response({
        'order_number': order.order_number,
        'status': payment_status,
        'payment_status': order.payment_status,
        'order_status': order.status,
        'reference': payment.reference,
    })


@api_view(['POST'])
@permission_classes([AllowAny])
def coupon_validate(request):
    serializer = CouponValidateSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    try:
        coupon, discount = validate_coupon(serializer.validated_data['code'], serializer.validated_data['order_total'])
    except CouponError as e:
        return Response({'valid': False, 'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
    return Response({
        'valid': True,
        'code': coupon.code,
        'discount_type': coupon.discount_type,
        'value': coupon.value,
        'discount': discount,
    })


# Back-office views
@api_view(['GET'])
@permission_classes([IsAuthenticated, HasRolePermission('orders')])
def admin_order_list(request):
    """Orders with filters plus per-status counts"""
    store = get_request_store(request)
    base = filter_by_store(Order.objects.all(), store)
    orders = OrderFilter(request.query_params, queryset=base.select_related('user').prefetch_related('items')).qs
    counts = {row['status']: row['count'] for row in base.values('status').annotate(count=Count('id')).order_by()}
    status_counts = {value: counts.get(value, 0) for value, _ in Order.STATUS_CHOICES}
    status_counts['ALL'] = sum(counts.values())
    return Response(paginate(request, orders.order_by('-created_at'), OrderListSerializer,
                             extra={'status_counts': status_counts}))


@api_view(['GET', 'PATCH'])
@permission_classes([IsAuthenticated, HasRolePermission('orders')])
def admin_order_detail(request, pk):
    order = get_object_or_404(_order_queryset(), pk=pk)
    context = {'include_private_notes': True}

    if request.method == 'GET':
        return Response(OrderSerializer(order, context=context).data)

    serializer = AdminOrderUpdateSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    data = serializer.validated_data

    if 'tracking_number' in data and data['tracking_number'] != order.tracking_number:
        order.tracking_number = data['tracking_number']
        order.save(update_fields=['tracking_number', 'updated_at'])
    if 'shipping_cost' in data and data['shipping_cost'] != order.shipping_cost:
        update_shipping_cost(order, data['shipping_cost'], user=request.user)
    if data.get('payment_status'):
        update_payment_status(order, data['payment_status'], user=request.user)
    if data.get('status'):
        try:
            update_order_status(order, data['status'], user=request.user)
        except OrderStatusError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
    if data.get('note'):
        add_order_note(order, data['note'], is_private=True, author=request.user)

    create_audit_log(request=request, action='order_update', model_name='Order', object_id=order.id,
                     object_reference=order.order_number, changes=request.data)
    invalidate_dashboard_cache()
    return Response(OrderSerializer(_order_queryset().get(pk=order.pk), context=context).data)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, HasRolePermission('orders')])
def admin_order_notes(request, pk):
    order = get_object_or_404(Order, pk=pk)
    if request.method == 'GET':
        return Response(OrderNoteSerializer(order.notes.select_related('author'), many=True).data)

    serializer = OrderNoteSerializer(data=request.data)
    if serializer.is_valid():
        note = add_order_note(order, serializer.validated_data['content'],
                              is_private=serializer.validated_data.get('is_private', True), author=request.user)
        return Response(OrderNoteSerializer(note).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, HasRolePermission('coupons')])
def coupon_list_create(request):
    if request.method == 'GET':
        return Response(CouponSerializer(Coupon.objects.all(), many=True).data)

    serializer = CouponSerializer(data=request.data)
    if serializer.is_valid():
        coupon = serializer.save()
        create_audit_log(request=request, action='create', model_name='Coupon',
                         object_id=coupon.id, object_name=coupon.code)
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, HasRolePermission('coupons')])
def coupon_detail(request, pk):
    coupon = get_object_or_404(Coupon, pk=pk)

    if request.method == 'GET':
        return Response(CouponSerializer(coupon).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = CouponSerializer(coupon, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            create_audit_log(request=request, action='update', model_name='Coupon',
                             object_id=coupon.id, object_name=coupon.code, changes=request.data)
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        coupon.delete()
        create_audit_log(request=request, action='delete', model_name='Coupon', object_id=pk, object_name=coupon.code)
        return Response(status=status.HTTP_204_NO_CONTENT)
