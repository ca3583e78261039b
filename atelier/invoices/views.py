import logging
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.db.models import Q, Sum, Count
from django.shortcuts import get_object_or_404
from atelier.core.cache_utils import invalidate_dashboard_cache
from atelier.core.permissions import HasRolePermission
from atelier.core.utils import create_audit_log, paginate, parse_date, format_amount
from atelier.locations.utils import get_request_store, filter_by_store
from atelier.notifications.service import send_notification, send_email
from .models import Invoice, InvoicePayment
from .serializers import (
    InvoiceSerializer, InvoiceListSerializer, InvoicePaymentSerializer, InvoicePaymentCreateSerializer,
)
from .services import record_invoice_payment, delete_invoice_payment, cancel_invoice, InvoiceError

logger = logging.getLogger(__name__)


def _invoice_queryset():
    return Invoice.objects.select_related('order', 'custom_order', 'store').prefetch_related('items', 'payments__receipt')


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, HasRolePermission('invoices')])
def invoice_list_create(request):
    """List invoices with filters and totals, or create a standalone invoice"""
    if request.method == 'GET':
        store = get_request_store(request)
        queryset = filter_by_store(_invoice_queryset(), store)
        params = request.query_params
        if params.get('status'):
            queryset = queryset.filter(status=params['status'])
        search = params.get('search')
        if search:
            queryset = queryset.filter(
                Q(invoice_number__icontains=search) | Q(customer_name__icontains=search) |
                Q(customer_phone__icontains=search) | Q(order__order_number__icontains=search)
            )
        date_from = parse_date(params.get('date_from'))
        date_to = parse_date(params.get('date_to'))
        if date_from:
            queryset = queryset.filter(issue_date__gte=date_from)
        if date_to:
            queryset = queryset.filter(issue_date__lte=date_to)

        active = queryset.exclude(status='CANCELLED')
        totals = active.aggregate(total_invoiced=Sum('total'), total_paid=Sum('amount_paid'))
        by_status = {row['status']: row['count'] for row in queryset.values('status').annotate(count=Count('id')).order_by()}
        stats = {
            'total_invoiced': totals['total_invoiced'] or 0,
            'total_paid': totals['total_paid'] or 0,
            'outstanding': (totals['total_invoiced'] or 0) - (totals['total_paid'] or 0),
            'by_status': by_status,
        }
        return Response(paginate(request, queryset.order_by('-created_at'), InvoiceListSerializer,
                                 extra={'stats': stats}))

    serializer = InvoiceSerializer(data=request.data)
    if serializer.is_valid():
        invoice = serializer.save(
            store=serializer.validated_data.get('store') or get_request_store(request),
            created_by=request.user,
        )
        create_audit_log(request=request, action='invoice_create', model_name='Invoice', object_id=invoice.id,
                         object_reference=invoice.invoice_number,
                         changes={'total': str(invoice.total), 'customer': invoice.customer_name})
        invalidate_dashboard_cache()
        return Response(InvoiceSerializer(invoice).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH'])
@permission_classes([IsAuthenticated, HasRolePermission('invoices')])
def invoice_detail(request, pk):
    invoice = get_object_or_404(_invoice_queryset(), pk=pk)

    if request.method == 'GET':
        return Response(InvoiceSerializer(invoice).data)

    if invoice.status == 'CANCELLED':
        return Response({'error': 'Cancelled invoices cannot be modified'}, status=status.HTTP_400_BAD_REQUEST)
    old_total = invoice.total
    serializer = InvoiceSerializer(invoice, data=request.data, partial=request.method == 'PATCH')
    if serializer.is_valid():
        serializer.save()
        invoice.refresh_from_db()
        create_audit_log(request=request, action='invoice_update', model_name='Invoice', object_id=invoice.id,
                         object_reference=invoice.invoice_number,
                         changes={'total': {'old': str(old_total), 'new': str(invoice.total)}})
        invalidate_dashboard_cache()
        return Response(InvoiceSerializer(invoice).data)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['POST'])
@permission_classes([IsAuthenticated, HasRolePermission('invoices')])
def invoice_cancel(request, pk):
    invoice = get_object_or_404(Invoice, pk=pk)
    try:
        cancel_invoice(invoice)
    except InvoiceError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
    create_audit_log(request=request, action='invoice_cancel', model_name='Invoice', object_id=invoice.id,
                     object_reference=invoice.invoice_number)
    invalidate_dashboard_cache()
    return Response({'status': invoice.status})


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, HasRolePermission('invoices')])
def invoice_payments(request, pk):
    """Payment summary of an invoice, or record a payment (amount must fit the remaining balance)"""
    invoice = get_object_or_404(Invoice, pk=pk)
    remaining = max(invoice.total - invoice.amount_paid, 0)

    if request.method == 'GET':
        payments = invoice.payments.select_related('receipt', 'created_by')
        return Response({
            'invoice_number': invoice.invoice_number,
            'total': invoice.total,
            'amount_paid': invoice.amount_paid,
            'remaining': remaining,
            'status': invoice.status,
            'payments': InvoicePaymentSerializer(payments, many=True).data,
        })

    if invoice.status == 'CANCELLED':
        return Response({'error': 'Cannot add a payment to a cancelled invoice'}, status=status.HTTP_400_BAD_REQUEST)
    serializer = InvoicePaymentCreateSerializer(data=request.data, context={'remaining': remaining})
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    data = serializer.validated_data
    old_status = invoice.status
    try:
        payment = record_invoice_payment(
            invoice, data['amount'], payment_method=data['payment_method'], reference=data.get('reference'),
            notes=data.get('notes'), user=request.user, payment_date=data.get('payment_date'),
        )
    except InvoiceError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

    create_audit_log(request=request, action='payment_add', model_name='InvoicePayment', object_id=payment.id,
                     object_reference=invoice.invoice_number,
                     changes={'amount': str(payment.amount), 'payment_method': payment.payment_method,
                              'invoice_status': {'old': old_status, 'new': invoice.status}})
    invalidate_dashboard_cache()
    return Response(InvoicePaymentSerializer(payment).data, status=status.HTTP_201_CREATED)


@api_view(['DELETE'])
@permission_classes([IsAuthenticated, HasRolePermission('invoices')])
def invoice_payment_delete(request, pk, payment_id):
    payment = get_object_or_404(InvoicePayment, pk=payment_id, invoice_id=pk)
    amount = payment.amount
    invoice = delete_invoice_payment(payment)
    create_audit_log(request=request, action='payment_delete', model_name='InvoicePayment', object_id=payment_id,
                     object_reference=invoice.invoice_number, changes={'amount': str(amount)})
    invalidate_dashboard_cache()
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsAuthenticated, HasRolePermission('invoices')])
def invoice_send(request, pk):
    """Send the invoice to the customer by SMS/WhatsApp, and by email when an address is known"""
    invoice = get_object_or_404(Invoice, pk=pk)
    if invoice.status == 'CANCELLED':
        return Response({'error': 'Cancelled invoices cannot be sent'}, status=status.HTTP_400_BAD_REQUEST)
    if not invoice.customer_phone and not invoice.customer_email:
        return Response({'error': 'The customer has no phone number or email'}, status=status.HTTP_400_BAD_REQUEST)

    context = {'invoice': invoice}
    if invoice.order_id:
        context['order'] = invoice.order
    result = send_notification('INVOICE_CREATED', context, recipient=invoice.customer_phone)

    email_sent = False
    if invoice.customer_email:
        email_sent = send_email(
            invoice.customer_email,
            f"Facture {invoice.invoice_number}",
            f"Bonjour {invoice.customer_name},\n\n"
            f"Votre facture {invoice.invoice_number} d'un montant de {format_amount(invoice.total)} est disponible.\n"
            f"Reste à payer: {format_amount(invoice.balance_due)}.\n",
        )

    if invoice.status == 'DRAFT':
        invoice.status = 'SENT'
        invoice.save(update_fields=['status', 'updated_at'])

    create_audit_log(request=request, action='update', model_name='Invoice', object_id=invoice.id,
                     object_reference=invoice.invoice_number,
                     changes={'sent': result.get('success', False), 'email_sent': email_sent})
    return Response({
        'success': result.get('success', False) or email_sent,
        'notification': result,
        'email_sent': email_sent,
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def account_invoice_list(request):
    """Invoices of the signed-in customer"""
    user = request.user
    match = Q(order__user=user) | Q(custom_order__user=user)
    if user.email:
        match |= Q(customer_email__iexact=user.email)
    invoices = _invoice_queryset().filter(match).exclude(status__in=['DRAFT', 'CANCELLED']).distinct()
    return Response(paginate(request, invoices.order_by('-created_at'), InvoiceListSerializer))
