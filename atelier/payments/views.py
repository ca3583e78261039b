import logging
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated, AllowAny
from django.conf import settings
from django.db.models import Q, Sum, Count
from django.shortcuts import get_object_or_404
from atelier.core.permissions import HasRolePermission, user_has_permission, user_is_staff
from atelier.core.utils import paginate, parse_date
from atelier.invoices.models import Invoice
from atelier.orders.models import Order
from .models import Payment
from .paiementpro import get_client, verify_webhook_hash, PaymentGatewayError, ORDER_METHOD_CHANNELS
from .serializers import PaymentSerializer, PaymentInitializeSerializer
from .services import process_webhook, refresh_payment_status, create_order_payment, create_invoice_payment

logger = logging.getLogger(__name__)


def _split_name(full_name):
    parts = (full_name or '').split()
    return (parts[0] if parts else 'Client'), ' '.join(parts[1:])


def _can_access_payment(user, payment):
    if user_is_staff(user):
        return True
    if payment.order_id and payment.order.user_id == user.id:
        return True
    invoice = payment.invoice
    return bool(invoice and invoice.order_id and invoice.order.user_id == user.id)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def payment_initialize(request):
    """Open a gateway session for an order (owner) or an invoice balance (owner or staff)"""
    serializer = PaymentInitializeSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    data = serializer.validated_data

    if data.get('order_id'):
        order = get_object_or_404(Order, pk=data['order_id'])
        if order.user_id != request.user.id:
            return Response({'error': 'You do not have access to this order'}, status=status.HTTP_403_FORBIDDEN)
        if order.payment_status == 'COMPLETED':
            return Response({'error': 'Order is already paid'}, status=status.HTTP_400_BAD_REQUEST)
        if order.status == 'CANCELLED':
            return Response({'error': 'Order is cancelled'}, status=status.HTTP_400_BAD_REQUEST)
        payment = order.payments.filter(status='PENDING').order_by('-created_at').first() or create_order_payment(order)
        channel = data.get('channel') or ORDER_METHOD_CHANNELS.get(order.payment_method, '')
        return_url = f"{settings.APP_BASE_URL}/checkout/confirmation/{order.id}"
        context = {'order_id': order.id}
    else:
        invoice = get_object_or_404(Invoice, pk=data['invoice_id'])
        owns_invoice = invoice.order_id and invoice.order.user_id == request.user.id
        if not owns_invoice and not user_has_permission(request.user, 'invoices'):
            return Response({'error': 'You do not have access to this invoice'}, status=status.HTTP_403_FORBIDDEN)
        if invoice.status in ('PAID', 'CANCELLED') or invoice.balance_due <= 0:
            return Response({'error': 'Invoice has no balance to pay'}, status=status.HTTP_400_BAD_REQUEST)
        payment = create_invoice_payment(invoice)
        channel = data.get('channel', '')
        return_url = f"{settings.APP_BASE_URL}/invoices/{invoice.invoice_number}"
        context = {'invoice_id': invoice.id}

    first_name, last_name = _split_name(payment.customer_name)
    try:
        result = get_client().initialize(
            amount=payment.amount,
            reference=payment.reference,
            customer_email=payment.customer_email or request.user.email,
            customer_first_name=first_name,
            customer_last_name=last_name,
            customer_phone=payment.customer_phone,
            description=payment.description,
            channel=channel,
            notification_url=f"{settings.APP_BASE_URL}/api/v1/payments/webhook/",
            return_url=return_url,
            return_context=context,
        )
    except PaymentGatewayError as e:
        logger.error(f"Payment initialization failed for {payment.reference}: {str(e)}")
        return Response({'success': False, 'error': 'Payment gateway unavailable'}, status=status.HTTP_502_BAD_GATEWAY)

    if not result['success']:
        return Response({'success': False, 'error': result['error'], 'reference': payment.reference},
                        status=status.HTTP_400_BAD_REQUEST)

    payment.payment_url = result['url']
    payment.channel = channel or payment.channel
    payment.save(update_fields=['payment_url', 'channel', 'updated_at'])
    return Response({'success': True, 'url': result['url'], 'reference': payment.reference})


@api_view(['POST'])
@permission_classes([AllowAny])
def payment_webhook(request):
    """Gateway notification; the hashcode is checked whenever a secret is configured"""
    payload = request.data.dict() if hasattr(request.data, 'dict') else dict(request.data)
    secret = settings.PAIEMENTPRO_SECRET
    if secret and not verify_webhook_hash(payload, secret):
        logger.warning(f"Rejected webhook with invalid hash for {payload.get('referenceNumber')}")
        return Response({'error': 'Invalid hash'}, status=status.HTTP_403_FORBIDDEN)

    http_status, body = process_webhook(payload)
    return Response(body, status=http_status)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def payment_status(request, reference):
    payment = get_object_or_404(Payment.objects.select_related('order', 'invoice'), reference=reference)
    if not _can_access_payment(request.user, payment):
        return Response({'error': 'You do not have access to this payment'}, status=status.HTTP_403_FORBIDDEN)
    current = refresh_payment_status(payment)
    payment.refresh_from_db()
    data = PaymentSerializer(payment).data
    data['status'] = current
    return Response(data)


@api_view(['GET'])
@permission_classes([IsAuthenticated, HasRolePermission('invoices')])
def admin_payment_list(request):
    payments = Payment.objects.select_related('order', 'invoice')
    params = request.query_params
    if params.get('status'):
        payments = payments.filter(status=params['status'])
    if params.get('search'):
        search = params['search']
        payments = payments.filter(
            Q(reference__icontains=search) | Q(customer_name__icontains=search) |
            Q(customer_phone__icontains=search) | Q(order__order_number__icontains=search)
        )
    date_from = parse_date(params.get('date_from'))
    date_to = parse_date(params.get('date_to'))
    if date_from:
        payments = payments.filter(created_at__date__gte=date_from)
    if date_to:
        payments = payments.filter(created_at__date__lte=date_to)

    stats = payments.aggregate(
        completed_amount=Sum('amount', filter=Q(status='COMPLETED')),
        completed_count=Count('id', filter=Q(status='COMPLETED')),
        pending_count=Count('id', filter=Q(status='PENDING')),
        failed_count=Count('id', filter=Q(status='FAILED')),
    )
    stats['completed_amount'] = stats['completed_amount'] or 0
    return Response(paginate(request, payments.order_by('-created_at'), PaymentSerializer, extra={'stats': stats}))
