"""
Stock level changes for storefront products.

Every change goes through here so that a StockMovement is recorded and the
low/out-of-stock alerts fire when a threshold is crossed.
"""
import logging
from django.db import transaction
from django.db.models import F

from atelier.notifications.service import dispatch_notification
from .models import Product, StockMovement

logger = logging.getLogger(__name__)

ADJUSTMENT_TYPES = ('purchase', 'adjustment', 'return', 'damaged')


class StockError(Exception):
    """Raised when a stock change cannot be applied"""


def _notify_stock_alerts(product, previous_stock, new_stock):
    if not product.track_inventory:
        return
    if new_stock <= 0 < previous_stock:
        logger.warning(f"Product {product.id} ({product.name}) is out of stock")
        dispatch_notification('OUT_OF_STOCK', {'product': product})
    elif 0 < new_stock <= product.low_stock_threshold < previous_stock:
        logger.info(f"Product {product.id} ({product.name}) fell below its low stock threshold")
        dispatch_notification('LOW_STOCK', {'product': product})


def adjust_stock(product, movement_type, quantity, user=None, reason='', reference=''):
    """
    Apply a manual stock adjustment.

    ``quantity`` is signed for 'adjustment'; 'damaged' always removes stock,
    'purchase' and 'return' always add it. The new level never goes below 0.
    """
    if movement_type not in ADJUSTMENT_TYPES:
        raise StockError(f"Invalid adjustment type: {movement_type}")
    try:
        quantity = int(quantity)
    except (TypeError, ValueError):
        raise StockError("Quantity must be an integer")
    if quantity == 0:
        raise StockError("Quantity must not be zero")

    if movement_type == 'damaged':
        quantity = -abs(quantity)
    elif movement_type in ('purchase', 'return'):
        quantity = abs(quantity)

    with transaction.atomic():
        locked = Product.objects.select_for_update().get(pk=product.pk)
        previous_stock = locked.stock
        new_stock = max(0, previous_stock + quantity)
        locked.stock = new_stock
        locked.save(update_fields=['stock', 'updated_at'])
        movement = StockMovement.objects.create(
            product=locked,
            movement_type=movement_type,
            quantity=new_stock - previous_stock,
            previous_stock=previous_stock,
            new_stock=new_stock,
            reason=reason or '',
            reference=reference or '',
            user=user if user and user.is_authenticated else None,
        )

    product.stock = new_stock
    _notify_stock_alerts(locked, previous_stock, new_stock)
    return movement


def reserve_stock_for_sale(product, quantity, reference='', user=None):
    """
    Atomically decrement stock for a sale.

    Raises StockError when the product tracks inventory and not enough is left.
    Must be called inside a transaction.
    """
    if not product.track_inventory:
        return None

    updated = Product.objects.filter(pk=product.pk, stock__gte=quantity).update(stock=F('stock') - quantity)
    if not updated:
        raise StockError(f"Insufficient stock for {product.name}")

    product.refresh_from_db(fields=['stock'])
    previous_stock = product.stock + quantity
    movement = StockMovement.objects.create(
        product=product,
        movement_type='sale',
        quantity=-quantity,
        previous_stock=previous_stock,
        new_stock=product.stock,
        reference=reference,
        user=user if user and user.is_authenticated else None,
    )
    transaction.on_commit(lambda: _notify_stock_alerts(product, previous_stock, product.stock))
    return movement


def restore_stock(product, quantity, reference='', reason='', user=None):
    """Put sold units back into stock (cancelled or failed orders)"""
    if not product or not product.track_inventory or quantity <= 0:
        return None

    Product.objects.filter(pk=product.pk).update(stock=F('stock') + quantity)
    product.refresh_from_db(fields=['stock'])
    return StockMovement.objects.create(
        product=product,
        movement_type='return',
        quantity=quantity,
        previous_stock=product.stock - quantity,
        new_stock=product.stock,
        reason=reason,
        reference=reference,
        user=user if user and user.is_authenticated else None,
    )
