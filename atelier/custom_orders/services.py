"""
Custom (tailoring) order workflow.

Every custom order gets an invoice at creation. Payments taken on the order
are mirrored as InvoicePayments carrying the same CP- reference, so the
invoice balance and receipts stay in step with the workshop ledger.
"""
import logging
from decimal import Decimal

from django.db import transaction
from django.utils import timezone

from atelier.core.utils import generate_sequence_number, create_audit_log, format_amount
from atelier.invoices.models import Invoice, InvoicePayment
from atelier.invoices.services import (
    create_invoice_from_custom_order, sync_custom_order_invoice_totals, record_invoice_payment,
    update_invoice_amount_and_status,
)
from atelier.notifications.service import dispatch_notification
from .models import CustomOrder, CustomOrderItem, CustomOrderPayment, CustomOrderTimeline

logger = logging.getLogger(__name__)

PAYMENT_TYPE_LABELS = dict(CustomOrderPayment.PAYMENT_TYPE_CHOICES)
STATUS_LABELS = dict(CustomOrder.STATUS_CHOICES)


class CustomOrderError(Exception):
    """Raised when a custom order operation is not allowed"""


def generate_custom_order_number(date=None):
    return generate_sequence_number('SM', CustomOrder, 'order_number', date=date)


def _user_name(user):
    if user is None or not user.is_authenticated:
        return 'Admin'
    return getattr(user, 'display_name', None) or user.get_username()


def add_timeline_entry(custom_order, event, description='', user=None):
    return CustomOrderTimeline.objects.create(
        custom_order=custom_order,
        event=event,
        description=description,
        user=user if user and user.is_authenticated else None,
    )


def _mirror_payment_to_invoice(payment, user=None):
    invoice = Invoice.objects.filter(custom_order=payment.custom_order).first()
    if invoice is None:
        invoice = create_invoice_from_custom_order(payment.custom_order, user=user)
    return record_invoice_payment(
        invoice,
        payment.amount,
        payment_method=payment.payment_method,
        reference=payment.reference,
        notes=f"{PAYMENT_TYPE_LABELS.get(payment.payment_type, payment.payment_type)} - commande {payment.custom_order.order_number}",
        user=user,
        payment_date=payment.paid_at,
    )


def create_custom_order(data, user=None, store=None):
    """
    Create a custom order with its items, invoice and optional deposit.

    ``data`` holds customer fields, items [{garment_type, description,
    quantity, unit_price, fabric}], pickup_date and optional priority,
    measurements, notes, material_cost, tailor and deposit (plus
    deposit_method).
    """
    items = data.get('items') or []
    if not items:
        raise CustomOrderError("Au moins un article requis")
    deposit = Decimal(str(data.get('deposit') or 0))

    with transaction.atomic():
        custom_order = CustomOrder.objects.create(
            store=store,
            order_number=generate_custom_order_number(),
            customer_name=data['customer_name'],
            customer_phone=data.get('customer_phone', ''),
            customer_email=data.get('customer_email') or None,
            user=data.get('user'),
            priority=data.get('priority') or 'NORMAL',
            pickup_date=data['pickup_date'],
            measurements=data.get('measurements') or {},
            notes=data.get('notes', ''),
            material_cost=data.get('material_cost') or Decimal('0.00'),
            tailor=data.get('tailor'),
            created_by=user if user and user.is_authenticated else None,
        )
        for item in items:
            CustomOrderItem.objects.create(custom_order=custom_order, **item)
        custom_order.recalculate_total()
        custom_order.save(update_fields=['total_cost', 'updated_at'])

        add_timeline_entry(custom_order, 'Commande créée',
                           f"Commande sur-mesure créée par {_user_name(user)}", user=user)
        invoice = create_invoice_from_custom_order(custom_order, user=user)

        if deposit > 0:
            if deposit > custom_order.grand_total:
                raise CustomOrderError("L'avance dépasse le montant de la commande")
            payment = CustomOrderPayment.objects.create(
                custom_order=custom_order,
                amount=deposit,
                payment_method=data.get('deposit_method') or 'CASH',
                payment_type='DEPOSIT',
                received_by=user if user and user.is_authenticated else None,
            )
            _mirror_payment_to_invoice(payment, user=user)
            add_timeline_entry(custom_order, 'Paiement reçu: Avance',
                               f"{format_amount(deposit)} reçu", user=user)

    create_audit_log(action='create', model_name='CustomOrder', object_id=custom_order.id, user=user,
                     object_reference=custom_order.order_number,
                     changes={'total_cost': str(custom_order.total_cost), 'deposit': str(deposit),
                              'invoice': invoice.invoice_number})
    logger.info(f"Custom order {custom_order.order_number} created ({custom_order.grand_total})")
    return custom_order


def update_custom_order(custom_order, data, user=None):
    """
    Apply an update; items, when given, replace the existing ones.

    Status changes add a timeline entry and READY notifies the customer.
    Any change to the amounts is pushed to the invoice.
    """
    old_status = custom_order.status
    items = data.pop('items', None)
    amounts_changed = items is not None or (
        'material_cost' in data and data['material_cost'] != custom_order.material_cost
    ) or ('pickup_date' in data and data['pickup_date'] != custom_order.pickup_date)

    with transaction.atomic():
        for field, value in data.items():
            setattr(custom_order, field, value)
        if items is not None:
            custom_order.items.all().delete()
            for item in items:
                CustomOrderItem.objects.create(custom_order=custom_order, **item)
            custom_order.recalculate_total()
        custom_order.save()

        if amounts_changed:
            sync_custom_order_invoice_totals(custom_order)
        if custom_order.status != old_status:
            add_timeline_entry(
                custom_order,
                f"Statut changé: {STATUS_LABELS.get(custom_order.status, custom_order.status)}",
                f"Statut mis à jour par {_user_name(user)}",
                user=user,
            )

    if custom_order.status != old_status:
        create_audit_log(action='status_change', model_name='CustomOrder', object_id=custom_order.id, user=user,
                         object_reference=custom_order.order_number,
                         changes={'status': {'old': old_status, 'new': custom_order.status}})
        if custom_order.status == 'READY':
            dispatch_notification('CUSTOM_ORDER_READY', {'custom_order': custom_order},
                                  recipient=custom_order.customer_phone or None)
    return custom_order


def add_custom_order_payment(custom_order, amount, payment_method='CASH', payment_type=None, notes='', user=None):
    """Take a payment on a custom order and mirror it on the invoice"""
    amount = Decimal(str(amount))
    if amount <= 0:
        raise CustomOrderError("Le montant doit être positif")
    if custom_order.status == 'CANCELLED':
        raise CustomOrderError("Commande annulée")
    balance = custom_order.balance
    if amount > balance:
        raise CustomOrderError(f"Le montant dépasse le reste à payer ({format_amount(balance)})")

    remaining = balance - amount
    if remaining <= 0:
        payment_type = 'BALANCE'
    elif not payment_type:
        payment_type = 'DEPOSIT' if not custom_order.payments.exists() else 'PARTIAL'

    with transaction.atomic():
        payment = CustomOrderPayment.objects.create(
            custom_order=custom_order,
            amount=amount,
            payment_method=payment_method,
            payment_type=payment_type,
            notes=notes or '',
            received_by=user if user and user.is_authenticated else None,
        )
        invoice_payment = _mirror_payment_to_invoice(payment, user=user)
        receipt_number = invoice_payment.receipt.receipt_number
        summary = 'Commande entièrement payée' if remaining <= 0 else f"Reste: {format_amount(remaining)}"
        add_timeline_entry(
            custom_order,
            f"Paiement reçu: {PAYMENT_TYPE_LABELS[payment_type]}",
            f"{format_amount(amount)} reçu via {payment.get_payment_method_display()}. {summary} - Reçu {receipt_number}",
            user=user,
        )

    create_audit_log(action='payment_add', model_name='CustomOrderPayment', object_id=payment.id, user=user,
                     object_reference=custom_order.order_number,
                     changes={'amount': str(amount), 'payment_type': payment_type})
    return payment


def delete_custom_order_payment(payment, user=None):
    """Remove a payment and its mirrored invoice payment, then resync the invoice"""
    custom_order = payment.custom_order
    payment_id = payment.id
    with transaction.atomic():
        mirrored = InvoicePayment.objects.filter(reference=payment.reference, invoice__custom_order=custom_order)
        invoices = {p.invoice for p in mirrored.select_related('invoice')}
        mirrored.delete()
        for invoice in invoices:
            update_invoice_amount_and_status(invoice)
        add_timeline_entry(custom_order, 'Paiement supprimé',
                           f"{format_amount(payment.amount)} ({payment.reference}) supprimé par {_user_name(user)}",
                           user=user)
        payment.delete()
    create_audit_log(action='payment_delete', model_name='CustomOrderPayment', object_id=payment_id, user=user,
                     object_reference=custom_order.order_number, changes={'amount': str(payment.amount)})
    return custom_order


def production_board(queryset):
    """Group active custom orders by status; orders past their pickup date are flagged overdue"""
    today = timezone.localdate()
    board = {status: [] for status in CustomOrder.ACTIVE_STATUSES}
    for custom_order in queryset.filter(status__in=CustomOrder.ACTIVE_STATUSES).order_by('pickup_date'):
        board[custom_order.status].append((custom_order, custom_order.pickup_date < today))
    return board
