"""
Payment state transitions shared by the webhook, the status poll and the
back-office.
"""
import logging
from decimal import Decimal

from django.db import transaction
from django.utils import timezone

from atelier.catalog.services import restore_stock
from atelier.core.cache_utils import invalidate_dashboard_cache
from atelier.core.utils import create_audit_log
from atelier.invoices.models import Invoice
from atelier.invoices.services import mark_invoice_paid, record_invoice_payment, InvoiceError
from atelier.notifications.service import dispatch_notification
from atelier.orders.models import Order
from .models import Payment
from .paiementpro import get_client, channel_to_payment_method, generate_reference, PaymentGatewayError

logger = logging.getLogger(__name__)

INVOICE_REFERENCE_PREFIX = 'INV_'


def interpret_gateway_status(data):
    """
    Map a gateway payload to COMPLETED / FAILED / PENDING.

    Success is ``success`` true or ``responsecode`` 0; an explicit false or a
    non-zero response code is a failure; anything else is still pending.
    """
    if not isinstance(data, dict):
        return 'PENDING'
    success = data.get('success')
    if success is True or str(success).lower() == 'true':
        return 'COMPLETED'
    code = data.get('responsecode')
    if code is not None and str(code).strip() != '':
        try:
            return 'COMPLETED' if int(code) == 0 else 'FAILED'
        except (TypeError, ValueError):
            return 'FAILED'
    if success is False or str(success).lower() == 'false':
        return 'FAILED'
    return 'PENDING'


def _apply_gateway_data(payment, data):
    if not data:
        return
    payment.pay_id = str(data.get('pay_id') or data.get('payid') or payment.pay_id or '')[:100]
    payment.channel = str(data.get('channel') or payment.channel or '')[:30]
    payment.provider_response = data


def complete_payment(payment, data=None, user=None):
    """Mark a payment COMPLETED and settle its order and invoice"""
    if payment.status == 'COMPLETED':
        return payment

    with transaction.atomic():
        payment = Payment.objects.select_for_update().get(pk=payment.pk)
        if payment.status == 'COMPLETED':
            return payment
        _apply_gateway_data(payment, data)
        payment.status = 'COMPLETED'
        payment.payment_date = timezone.now()
        payment.save()

        method = channel_to_payment_method(payment.channel)
        order = payment.order
        if order is not None:
            order.payment_status = 'COMPLETED'
            if order.status == 'PENDING':
                order.status = 'PROCESSING'
            order.save(update_fields=['payment_status', 'status', 'updated_at'])
            invoice = Invoice.objects.filter(order=order).first()
            if invoice is not None:
                mark_invoice_paid(invoice, payment_method=method, reference=payment.reference, user=user)
        elif payment.invoice is not None:
            invoice = payment.invoice
            amount = min(payment.amount, invoice.total - invoice.amount_paid)
            if amount > 0:
                try:
                    record_invoice_payment(invoice, amount, payment_method=method,
                                           reference=payment.reference, user=user,
                                           notes='Paiement en ligne')
                except InvoiceError as e:
                    logger.warning(f"Invoice {invoice.invoice_number} not updated for {payment.reference}: {str(e)}")

    create_audit_log(action='payment_status', model_name='Payment', object_id=payment.id,
                     object_reference=payment.reference, user=user,
                     changes={'status': 'COMPLETED', 'channel': payment.channel})
    invalidate_dashboard_cache()
    logger.info(f"Payment {payment.reference} completed ({payment.amount})")

    if payment.order_id:
        dispatch_notification('PAYMENT_RECEIVED', {'order': payment.order})
        dispatch_notification('ADMIN_PAYMENT_RECEIVED', {'order': payment.order})
    elif payment.invoice_id:
        dispatch_notification('PAYMENT_RECEIVED', {'invoice': payment.invoice},
                              recipient=payment.customer_phone or payment.invoice.customer_phone)
    return payment


def fail_payment(payment, data=None, restore=False, user=None):
    """
    Mark a payment FAILED. With ``restore`` the order is flagged failed, its
    reserved stock goes back and the customer is told. The order side runs
    once per order, even when the payment was already marked failed by a
    status poll.
    """
    if payment.status == 'COMPLETED':
        return payment

    restored = False
    with transaction.atomic():
        payment = Payment.objects.select_for_update().get(pk=payment.pk)
        if payment.status == 'COMPLETED':
            return payment
        already_failed = payment.status == 'FAILED'
        if not already_failed:
            _apply_gateway_data(payment, data)
            payment.status = 'FAILED'
            payment.save()

        if restore and payment.order_id:
            order = Order.objects.select_for_update().get(pk=payment.order_id)
            if order.payment_status not in ('FAILED', 'COMPLETED') and order.status != 'CANCELLED':
                order.payment_status = 'FAILED'
                order.save(update_fields=['payment_status', 'updated_at'])
                for item in order.items.select_related('product'):
                    restore_stock(item.product, item.quantity, reference=order.order_number,
                                  reason='Paiement échoué', user=user)
                restored = True

    if already_failed and not restored:
        return payment

    create_audit_log(action='payment_status', model_name='Payment', object_id=payment.id,
                     object_reference=payment.reference, user=user,
                     changes={'status': 'FAILED', 'stock_restored': restored})
    logger.warning(f"Payment {payment.reference} failed")

    if restored:
        dispatch_notification('PAYMENT_FAILED', {'order': payment.order})
    return payment


def refresh_payment_status(payment, client=None):
    """
    Ask the gateway for the outcome of a pending payment.

    Final payments are returned as they are. Gateway errors leave the stored
    status untouched.
    """
    if payment.is_final:
        return payment.status

    client = client or get_client()
    try:
        data = client.check_status(payment.reference)
    except PaymentGatewayError as e:
        logger.warning(f"Using stored status for {payment.reference}: {str(e)}")
        return payment.status

    new_status = interpret_gateway_status(data)
    if new_status == 'COMPLETED':
        payment = complete_payment(payment, data)
    elif new_status == 'FAILED':
        payment = fail_payment(payment, data)
    return payment.status


def _invoice_from_reference(reference):
    """INV_<invoice id>-... references point at an invoice without a Payment row"""
    if not reference.startswith(INVOICE_REFERENCE_PREFIX):
        return None
    invoice_id = reference[len(INVOICE_REFERENCE_PREFIX):].split('-')[0]
    if not invoice_id.isdigit():
        return None
    return Invoice.objects.filter(pk=int(invoice_id)).first()


def process_webhook(payload):
    """
    Apply a gateway notification.

    Returns (http_status, body). The reference resolves to a Payment first,
    then to an INV_ invoice reference.
    """
    reference = str(payload.get('referenceNumber') or payload.get('reference') or '')
    if not reference:
        return 400, {'error': 'Missing reference'}

    outcome = interpret_gateway_status(payload)
    payment = Payment.objects.filter(reference=reference).select_related('order', 'invoice').first()

    if payment is None:
        invoice = _invoice_from_reference(reference)
        if invoice is None:
            logger.error(f"Webhook for unknown payment reference {reference}")
            return 404, {'error': 'Payment not found'}
        amount = payload.get('amount')
        try:
            amount = Decimal(str(amount)) if amount not in (None, '') else invoice.balance_due
        except ArithmeticError:
            amount = invoice.balance_due
        payment = Payment.objects.create(
            invoice=invoice,
            reference=reference,
            amount=amount,
            customer_name=invoice.customer_name,
            customer_email=invoice.customer_email,
            customer_phone=invoice.customer_phone or '',
            description=f"Facture {invoice.invoice_number}",
        )

    if outcome == 'COMPLETED':
        complete_payment(payment, payload)
    elif outcome == 'FAILED':
        fail_payment(payment, payload, restore=True)
    else:
        payment.provider_response = payload
        payment.save(update_fields=['provider_response', 'updated_at'])

    payment.refresh_from_db()
    return 200, {'success': True, 'reference': reference, 'status': payment.status}


def create_order_payment(order):
    """Pending gateway payment for an order"""
    return Payment.objects.create(
        order=order,
        reference=generate_reference('CMD'),
        amount=order.total,
        payment_method=order.payment_method,
        customer_name=order.billing_name,
        customer_email=order.billing_email,
        customer_phone=order.billing_phone,
        description=f"Commande {order.order_number}",
    )


def create_invoice_payment(invoice):
    """Pending gateway payment for the balance of an invoice"""
    return Payment.objects.create(
        invoice=invoice,
        reference=generate_reference(f"{INVOICE_REFERENCE_PREFIX}{invoice.id}"),
        amount=invoice.balance_due,
        customer_name=invoice.customer_name,
        customer_email=invoice.customer_email,
        customer_phone=invoice.customer_phone or '',
        description=f"Facture {invoice.invoice_number}",
    )
