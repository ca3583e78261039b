"""
Cache invalidation signals
Automatically invalidate cache when catalog, order or shipping data changes
"""
from django.db import transaction
from django.db.models.signals import post_save, post_delete
from django.dispatch import receiver
import logging
import threading
from contextlib import contextmanager

from .cache_utils import (
    invalidate_products_cache, invalidate_categories_cache,
    invalidate_dashboard_cache, invalidate_shipping_cache,
)

logger = logging.getLogger(__name__)

# Thread-local storage to track signal suspension
_thread_locals = threading.local()

PRODUCT_MODELS = ('Product', 'StockMovement')
CATEGORY_MODELS = ('Category',)
DASHBOARD_MODELS = ('Order', 'Payment', 'Invoice', 'InvoicePayment', 'CustomOrder', 'Expense')
SHIPPING_MODELS = ('ShippingZone', 'ShippingMethod')


@contextmanager
def suspend_cache_signals():
    """
    Context manager to temporarily suspend cache invalidation signals.
    Useful for bulk operations to prevent excessive cache clearing.
    Remember to manually invalidate cache after the block!
    """
    try:
        _thread_locals.suspended = True
        yield
    finally:
        _thread_locals.suspended = False


def is_suspended():
    return getattr(_thread_locals, 'suspended', False)


@receiver([post_save, post_delete])
def invalidate_cache_on_change(sender, instance, **kwargs):
    """Invalidate cached storefront/dashboard data after the change commits"""
    if is_suspended():
        return

    model_name = sender.__name__

    if model_name in PRODUCT_MODELS:
        transaction.on_commit(invalidate_products_cache)
        transaction.on_commit(invalidate_dashboard_cache)
    elif model_name in CATEGORY_MODELS:
        transaction.on_commit(invalidate_categories_cache)
        transaction.on_commit(invalidate_products_cache)
    elif model_name in DASHBOARD_MODELS:
        transaction.on_commit(invalidate_dashboard_cache)
    elif model_name in SHIPPING_MODELS:
        transaction.on_commit(invalidate_shipping_cache)
