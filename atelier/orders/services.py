"""
Checkout and order lifecycle.

Prices always come from the catalog at checkout time; client totals are
ignored. Stock is reserved inside the checkout transaction and given back
when an order is cancelled.
"""
import logging
from decimal import Decimal, ROUND_HALF_UP

from django.db import transaction
from django.db.models import F, Sum
from django.utils import timezone

from atelier.catalog.models import Product, StockMovement
from atelier.catalog.services import reserve_stock_for_sale, restore_stock, StockError
from atelier.core.utils import create_audit_log
from atelier.invoices.models import Invoice
from atelier.invoices.services import create_invoice_from_order, mark_invoice_paid, update_invoice_amount_and_status
from atelier.notifications.service import dispatch_notification
from atelier.payments.services import create_order_payment
from atelier.shipping.calculator import calculate_shipping_cost
from .models import Order, OrderItem, OrderNote, Coupon, GATEWAY_PAYMENT_METHODS

logger = logging.getLogger(__name__)

ZERO = Decimal('0.00')

STATUS_TRIGGERS = {
    'PROCESSING': 'ORDER_PROCESSING',
    'SHIPPED': 'ORDER_SHIPPED',
    'DELIVERED': 'ORDER_DELIVERED',
    'CANCELLED': 'ORDER_CANCELLED',
    'REFUNDED': 'ORDER_REFUNDED',
}

# Order payment method -> invoice payment method when staff mark an order paid
INVOICE_METHODS = {
    'CASH_ON_DELIVERY': 'CASH',
    'MOBILE_MONEY': 'MOBILE_MONEY',
    'ORANGE_MONEY': 'ORANGE_MONEY',
    'MTN_MONEY': 'MTN_MONEY',
    'MOOV_MONEY': 'MOBILE_MONEY',
    'WAVE': 'WAVE',
    'CARD': 'CARD',
    'PAIEMENTPRO': 'OTHER',
}


class CheckoutError(Exception):
    """Raised when an order cannot be placed"""


class CouponError(Exception):
    """Raised when a coupon cannot be applied"""


class OrderStatusError(Exception):
    """Raised when an order cannot move to the requested status"""


def validate_coupon(code, order_total):
    """
    Resolve a coupon code for an order total.

    Returns (coupon, discount). The discount never exceeds the order total.
    """
    code = (code or '').strip().upper()
    if not code:
        raise CouponError("Coupon code is required")
    coupon = Coupon.objects.filter(code=code).first()
    if coupon is None or not coupon.is_active:
        raise CouponError("Code promo invalide")

    now = timezone.now()
    if coupon.valid_from and now < coupon.valid_from:
        raise CouponError("Ce code promo n'est pas encore actif")
    if coupon.valid_until and now > coupon.valid_until:
        raise CouponError("Ce code promo a expiré")
    if coupon.max_uses is not None and coupon.used_count >= coupon.max_uses:
        raise CouponError("Ce code promo a atteint sa limite d'utilisation")

    order_total = Decimal(str(order_total or 0))
    if coupon.min_order_amount is not None and order_total < coupon.min_order_amount:
        raise CouponError(f"Montant minimum de commande: {coupon.min_order_amount}")

    if coupon.discount_type == 'percentage':
        discount = (order_total * coupon.value / Decimal('100')).quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)
    else:
        discount = coupon.value
    return coupon, min(discount, order_total)


def create_order(data, user=None, store=None):
    """
    Place an order from validated checkout data.

    ``data`` holds items [{product, quantity}], billing/shipping fields,
    payment_method, optional shipping_method and coupon_code. Returns
    (order, payment) where payment is the pending gateway Payment or None.
    """
    items = data.get('items') or []
    if not items:
        raise CheckoutError("Le panier est vide")

    user = user if user is not None and user.is_authenticated else None

    with transaction.atomic():
        lines = []
        subtotal = ZERO
        total_weight = Decimal('0')
        for entry in items:
            product = Product.objects.select_for_update().filter(pk=entry['product'].pk).first()
            quantity = int(entry['quantity'])
            if product is None or not product.is_active:
                raise CheckoutError(f"Produit indisponible: {entry['product'].name}")
            if quantity <= 0:
                raise CheckoutError(f"Quantité invalide pour {product.name}")
            if product.track_inventory and product.stock < quantity:
                raise CheckoutError(f"Stock insuffisant pour {product.name} (disponible: {product.stock})")
            lines.append((product, quantity))
            subtotal += product.price * quantity
            if product.weight:
                total_weight += product.weight * quantity

        discount = ZERO
        coupon = None
        if data.get('coupon_code'):
            try:
                coupon, discount = validate_coupon(data['coupon_code'], subtotal)
            except CouponError as e:
                raise CheckoutError(str(e))

        shipping_method = data.get('shipping_method')
        shipping_cost = ZERO
        if shipping_method is not None:
            cost = calculate_shipping_cost(shipping_method, subtotal, total_weight)
            # Variable methods are priced by staff once the courier quotes
            shipping_cost = cost if cost is not None else ZERO

        order = Order(
            store=store,
            user=user,
            payment_method=data.get('payment_method') or 'CASH_ON_DELIVERY',
            billing_name=data['billing_name'],
            billing_phone=data['billing_phone'],
            billing_email=data.get('billing_email') or (user.email if user else None) or None,
            shipping_name=data.get('shipping_name') or data['billing_name'],
            shipping_phone=data.get('shipping_phone') or data['billing_phone'],
            shipping_address=data.get('shipping_address', ''),
            shipping_city=data.get('shipping_city') or 'Abidjan',
            shipping_country=data.get('shipping_country') or "Côte d'Ivoire",
            shipping_method=shipping_method,
            shipping_method_name=shipping_method.name if shipping_method else '',
            subtotal=subtotal,
            discount=discount,
            shipping_cost=shipping_cost,
            coupon_code=coupon.code if coupon else '',
            customer_note=data.get('customer_note', ''),
        )
        order.recalculate_total()
        order.save()

        for product, quantity in lines:
            OrderItem.objects.create(
                order=order,
                product=product,
                product_name=product.name,
                sku=product.sku,
                quantity=quantity,
                price=product.price,
            )
            try:
                reserve_stock_for_sale(product, quantity, reference=order.order_number, user=user)
            except StockError as e:
                raise CheckoutError(str(e))

        if coupon is not None:
            Coupon.objects.filter(pk=coupon.pk).update(used_count=F('used_count') + 1)

        create_invoice_from_order(order, user=user)

        payment = None
        if order.payment_method in GATEWAY_PAYMENT_METHODS and order.total > 0:
            payment = create_order_payment(order)

    create_audit_log(action='order_create', model_name='Order', object_id=order.id, user=user,
                     object_reference=order.order_number,
                     changes={'total': str(order.total), 'items': len(lines),
                              'payment_method': order.payment_method})
    logger.info(f"Order {order.order_number} placed: {order.total} ({len(lines)} lines)")

    dispatch_notification('ORDER_PLACED', {'order': order})
    dispatch_notification('ADMIN_NEW_ORDER', {'order': order})
    return order, payment


def add_order_note(order, content, is_private=True, author=None):
    note = OrderNote.objects.create(
        order=order,
        content=content,
        is_private=is_private,
        author=author if author and author.is_authenticated else None,
    )
    if not is_private:
        dispatch_notification('CUSTOMER_NOTE', {'order': order, 'note_content': content})
    return note


def held_order_stock(order):
    """Units each product still has out for an order, from its sale and return movements"""
    rows = StockMovement.objects.filter(
        reference=order.order_number, movement_type__in=('sale', 'return')
    ).values('product_id').annotate(net=Sum('quantity')).order_by()
    return {row['product_id']: -(row['net'] or 0) for row in rows}


def cancel_order_stock(order, user=None, reason='Commande annulée'):
    """Give back whatever stock the order still holds"""
    held = held_order_stock(order)
    for item in order.items.select_related('product'):
        quantity = min(item.quantity, held.get(item.product_id, 0))
        if quantity > 0:
            restore_stock(item.product, quantity, reference=order.order_number, reason=reason, user=user)
            held[item.product_id] -= quantity


def reserve_order_stock(order, user=None):
    """Take the stock of a reopened order again"""
    held = held_order_stock(order)
    for item in order.items.select_related('product'):
        if item.product is None:
            continue
        quantity = item.quantity - held.get(item.product_id, 0)
        if quantity <= 0:
            held[item.product_id] -= item.quantity
            continue
        try:
            reserve_stock_for_sale(item.product, quantity, reference=order.order_number, user=user)
        except StockError as e:
            raise OrderStatusError(str(e)) from e
        held[item.product_id] = 0


def update_order_status(order, new_status, user=None, notify=True):
    """Move an order to a new status with a private note and the customer notification"""
    old_status = order.status
    if new_status == old_status:
        return order
    if new_status not in dict(Order.STATUS_CHOICES):
        raise ValueError(f"Invalid status: {new_status}")

    with transaction.atomic():
        order.status = new_status
        order.save(update_fields=['status', 'updated_at'])
        if new_status == 'CANCELLED':
            cancel_order_stock(order, user=user)
        elif old_status == 'CANCELLED' and new_status != 'REFUNDED' and order.payment_status != 'FAILED':
            reserve_order_stock(order, user=user)
        add_order_note(order, f"Statut modifié de {old_status} à {new_status}", is_private=True, author=user)

    create_audit_log(action='status_change', model_name='Order', object_id=order.id, user=user,
                     object_reference=order.order_number,
                     changes={'status': {'old': old_status, 'new': new_status}})

    trigger = STATUS_TRIGGERS.get(new_status)
    if notify and trigger:
        dispatch_notification(trigger, {'order': order})
    return order


def update_payment_status(order, new_status, user=None):
    """Staff-side payment status change; COMPLETED settles the invoice"""
    old_status = order.payment_status
    if new_status == old_status:
        return order
    if new_status not in dict(Order.PAYMENT_STATUS_CHOICES):
        raise ValueError(f"Invalid payment status: {new_status}")

    with transaction.atomic():
        order.payment_status = new_status
        order.save(update_fields=['payment_status', 'updated_at'])
        add_order_note(order, f"Statut de paiement modifié de {old_status} à {new_status}",
                       is_private=True, author=user)
        if new_status == 'COMPLETED':
            invoice = Invoice.objects.filter(order=order).first()
            mark_invoice_paid(invoice, payment_method=INVOICE_METHODS.get(order.payment_method, 'OTHER'),
                              reference=order.order_number, user=user)

    create_audit_log(action='payment_status', model_name='Order', object_id=order.id, user=user,
                     object_reference=order.order_number,
                     changes={'payment_status': {'old': old_status, 'new': new_status}})

    if new_status == 'COMPLETED':
        dispatch_notification('PAYMENT_RECEIVED', {'order': order})
    return order


def update_shipping_cost(order, shipping_cost, user=None):
    """Price a variable shipping method after the fact and recompute the order and invoice totals"""
    shipping_cost = Decimal(str(shipping_cost))
    if shipping_cost < 0:
        raise ValueError("Shipping cost cannot be negative")

    with transaction.atomic():
        order.shipping_cost = shipping_cost
        order.recalculate_total()
        order.save(update_fields=['shipping_cost', 'total', 'updated_at'])
        invoice = Invoice.objects.filter(order=order).first()
        if invoice is not None and invoice.status != 'CANCELLED':
            invoice.shipping_cost = shipping_cost
            invoice.total = order.total
            invoice.save(update_fields=['shipping_cost', 'total', 'updated_at'])
            update_invoice_amount_and_status(invoice)
    return order
