"""
Invoice bookkeeping.

Invoices are issued automatically for storefront orders and custom orders and
by hand from the back-office. ``amount_paid`` and ``status`` always derive
from the recorded InvoicePayments.
"""
import logging
from decimal import Decimal

from django.db import transaction
from django.db.models import Sum
from django.utils import timezone

from atelier.core.utils import generate_sequence_number
from .models import Invoice, InvoiceItem, InvoicePayment, Receipt

logger = logging.getLogger(__name__)

MATERIAL_COST_LABEL = 'Coût matériel (tissu, accessoires)'


class InvoiceError(Exception):
    """Raised when an invoice operation is not allowed"""


def generate_invoice_number(date=None):
    return generate_sequence_number('FAC', Invoice, 'invoice_number', date=date)


def generate_receipt_number(date=None):
    return generate_sequence_number('REC', Receipt, 'receipt_number', date=date)


def update_invoice_amount_and_status(invoice):
    """
    Sync amount_paid with the recorded payments and derive the status:
    nothing paid -> SENT, less than the total -> PARTIAL, otherwise PAID.
    Cancelled invoices keep their status.
    """
    total_paid = invoice.payments.aggregate(total=Sum('amount'))['total'] or Decimal('0.00')
    invoice.amount_paid = total_paid

    if invoice.status != 'CANCELLED':
        if total_paid <= 0:
            invoice.status = 'SENT'
            invoice.paid_date = None
        elif total_paid < invoice.total:
            invoice.status = 'PARTIAL'
            invoice.paid_date = None
        else:
            invoice.status = 'PAID'
            invoice.paid_date = invoice.paid_date or timezone.now()

    invoice.save(update_fields=['amount_paid', 'status', 'paid_date', 'updated_at'])
    return invoice


def create_invoice_from_order(order, user=None):
    """Issue the invoice of a storefront order; returns the existing one when already issued"""
    existing = Invoice.objects.filter(order=order).first()
    if existing:
        return existing

    address = ', '.join(part for part in (order.shipping_address, order.shipping_city) if part)
    with transaction.atomic():
        invoice = Invoice.objects.create(
            store=order.store,
            invoice_number=generate_invoice_number(),
            order=order,
            customer_name=order.billing_name or 'Client',
            customer_email=order.billing_email,
            customer_phone=order.billing_phone,
            customer_address=address or None,
            status='SENT',
            subtotal=order.subtotal,
            discount=order.discount,
            shipping_cost=order.shipping_cost,
            total=order.total,
            notes=f"Code promo appliqué: {order.coupon_code}" if order.coupon_code else None,
            created_by=user if user and user.is_authenticated else None,
        )
        for item in order.items.all():
            InvoiceItem.objects.create(
                invoice=invoice,
                product=item.product,
                description=item.product_name,
                quantity=item.quantity,
                unit_price=item.price,
            )
    logger.info(f"Invoice {invoice.invoice_number} issued for order {order.order_number}")
    return invoice


def create_invoice_from_custom_order(custom_order, user=None):
    """
    Issue the invoice of a custom (tailoring) order.

    One line per garment plus a material-cost line when the order carries one;
    the due date is the pickup date. Idempotent per custom order.
    """
    existing = Invoice.objects.filter(custom_order=custom_order).first()
    if existing:
        return existing

    with transaction.atomic():
        invoice = Invoice.objects.create(
            store=custom_order.store,
            invoice_number=generate_invoice_number(),
            custom_order=custom_order,
            customer_name=custom_order.customer_name or 'Client',
            customer_email=custom_order.customer_email,
            customer_phone=custom_order.customer_phone,
            status='SENT',
            issue_date=timezone.localtime(custom_order.created_at).date() if custom_order.created_at else timezone.localdate(),
            due_date=custom_order.pickup_date,
            notes=f"Commande sur-mesure N° {custom_order.order_number}",
            created_by=user if user and user.is_authenticated else None,
        )
        for item in custom_order.items.all():
            description = item.garment_type
            if item.description:
                description = f"{description}: {item.description}"
            InvoiceItem.objects.create(
                invoice=invoice,
                description=description[:255],
                quantity=item.quantity,
                unit_price=item.unit_price,
            )
        if custom_order.material_cost and custom_order.material_cost > 0:
            InvoiceItem.objects.create(
                invoice=invoice,
                description=MATERIAL_COST_LABEL,
                quantity=1,
                unit_price=custom_order.material_cost,
            )
        invoice.calculate_totals()
        invoice.save(update_fields=['subtotal', 'total', 'updated_at'])
    logger.info(f"Invoice {invoice.invoice_number} issued for custom order {custom_order.order_number}")
    return invoice


def sync_custom_order_invoice_totals(custom_order):
    """Rebuild the invoice lines of a custom order after its items or material cost changed"""
    invoice = Invoice.objects.filter(custom_order=custom_order).first()
    if invoice is None:
        return create_invoice_from_custom_order(custom_order)
    if invoice.status == 'CANCELLED':
        return invoice

    with transaction.atomic():
        invoice.items.all().delete()
        for item in custom_order.items.all():
            description = item.garment_type
            if item.description:
                description = f"{description}: {item.description}"
            InvoiceItem.objects.create(invoice=invoice, description=description[:255],
                                       quantity=item.quantity, unit_price=item.unit_price)
        if custom_order.material_cost and custom_order.material_cost > 0:
            InvoiceItem.objects.create(invoice=invoice, description=MATERIAL_COST_LABEL,
                                       quantity=1, unit_price=custom_order.material_cost)
        invoice.due_date = custom_order.pickup_date
        invoice.calculate_totals()
        invoice.save(update_fields=['subtotal', 'total', 'due_date', 'updated_at'])
        update_invoice_amount_and_status(invoice)
    return invoice


def record_invoice_payment(invoice, amount, payment_method='CASH', reference=None, notes=None,
                           user=None, payment_date=None):
    """Record a payment with its receipt and resync the invoice; returns the InvoicePayment"""
    amount = Decimal(str(amount))
    if amount <= 0:
        raise InvoiceError("Payment amount must be greater than zero")
    if invoice.status == 'CANCELLED':
        raise InvoiceError("Cannot add a payment to a cancelled invoice")

    with transaction.atomic():
        payment = InvoicePayment.objects.create(
            invoice=invoice,
            amount=amount,
            payment_method=payment_method,
            reference=reference,
            notes=notes,
            payment_date=payment_date or timezone.now(),
            created_by=user if user and user.is_authenticated else None,
        )
        Receipt.objects.create(
            receipt_number=generate_receipt_number(),
            invoice=invoice,
            payment=payment,
            amount=amount,
        )
        update_invoice_amount_and_status(invoice)
    logger.info(f"Payment of {amount} recorded on invoice {invoice.invoice_number} ({invoice.status})")
    return payment


def delete_invoice_payment(payment):
    """Delete a payment (and its receipt) and resync the invoice"""
    invoice = payment.invoice
    with transaction.atomic():
        payment.delete()
        update_invoice_amount_and_status(invoice)
    return invoice


def mark_invoice_paid(invoice, payment_method='OTHER', reference=None, user=None, notes=None):
    """Record the outstanding balance as paid; no-op when nothing is left to pay"""
    if invoice is None or invoice.status == 'CANCELLED':
        return None
    remaining = invoice.total - invoice.amount_paid
    if remaining <= 0:
        return None
    return record_invoice_payment(invoice, remaining, payment_method=payment_method,
                                  reference=reference, notes=notes, user=user)


def cancel_invoice(invoice):
    if invoice.status == 'PAID':
        raise InvoiceError("A paid invoice cannot be cancelled")
    invoice.status = 'CANCELLED'
    invoice.save(update_fields=['status', 'updated_at'])
    return invoice
