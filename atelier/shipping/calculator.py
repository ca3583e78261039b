"""
Shipping cost calculation.

A method's cost depends on its cost_type:
- free: always 0
- flat_rate: the method cost, or 0 once the order reaches min_order_amount
- weight_based / price_based: the first matching {min, max, cost} range,
  falling back to the method cost
- variable: no price yet; staff set it when preparing the order
"""
import logging
from decimal import Decimal, InvalidOperation

from django.db.models import Q

from .models import ShippingZone

logger = logging.getLogger(__name__)

ZERO = Decimal('0.00')


def to_decimal(value, default=None):
    if value is None or value == '':
        return default
    try:
        return Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        return default


def find_range_cost(ranges, value):
    """
    Return the cost of the first range with min <= value <= max.

    A missing/null max means "and above". Returns None when nothing matches.
    """
    if not ranges or value is None:
        return None
    for entry in ranges:
        if not isinstance(entry, dict):
            continue
        range_min = to_decimal(entry.get('min'), ZERO)
        range_max = to_decimal(entry.get('max'))
        if value >= range_min and (range_max is None or value <= range_max):
            return to_decimal(entry.get('cost'), ZERO)
    return None


def calculate_shipping_cost(method, order_total=None, total_weight=None):
    """
    Compute the shipping cost of a method for an order.

    Returns a Decimal, or None for variable-cost methods.
    """
    order_total = to_decimal(order_total)
    total_weight = to_decimal(total_weight)
    cost_type = method.cost_type

    if cost_type == 'free':
        return ZERO
    if cost_type == 'variable':
        return None
    if cost_type == 'flat_rate':
        if method.min_order_amount and order_total is not None and order_total >= method.min_order_amount:
            return ZERO
        return method.cost
    if cost_type == 'weight_based':
        range_cost = find_range_cost(method.weight_ranges, total_weight)
        return method.cost if range_cost is None else range_cost
    if cost_type == 'price_based':
        range_cost = find_range_cost(method.price_ranges, order_total)
        return method.cost if range_cost is None else range_cost

    logger.warning(f"Unknown shipping cost type '{cost_type}' on method {method.id}, using base cost")
    return method.cost


def find_zone(country, store=None, require_methods=False):
    """
    Zone serving a country: the first enabled zone listing it, otherwise the
    enabled default zone. Country matching is case-insensitive. With
    ``require_methods`` a matching zone without enabled methods gives way to
    the default zone.
    """
    if not country:
        return None
    zones = ShippingZone.objects.filter(enabled=True)
    if store is not None:
        zones = zones.filter(Q(store=store) | Q(store__isnull=True))

    wanted = str(country).strip().lower()
    default_zone = None
    for zone in zones.order_by('id'):
        countries = [str(c).strip().lower() for c in (zone.countries or [])]
        if wanted in countries and (not require_methods or zone.methods.filter(enabled=True).exists()):
            return zone
        if zone.is_default and default_zone is None:
            default_zone = zone
    return default_zone


def get_available_methods(country, order_total=None, total_weight=None, store=None):
    """
    Priced shipping options for a destination.

    Returns (zone, [option dicts]) sorted by cost ascending, variable methods
    last.
    """
    zone = find_zone(country, store=store, require_methods=True)
    if zone is None:
        return None, []

    options = []
    for method in zone.methods.filter(enabled=True).order_by('cost'):
        cost = calculate_shipping_cost(method, order_total, total_weight)
        options.append({
            'id': method.id,
            'name': method.name,
            'description': method.description,
            'cost': cost,
            'cost_type': method.cost_type,
            'is_variable': cost is None,
            'estimated_days': method.estimated_days,
            'taxable': method.taxable,
        })
    options.sort(key=lambda option: (option['cost'] is None, option['cost'] or ZERO))
    return zone, options
