"""
Workshop material stock.

IN and RETURN add to the stock, OUT removes from it and may not go below
zero, ADJUST sets the counted absolute quantity. Each change is recorded as
a MaterialMovement valued at the given unit price or the material's own.
"""
import logging
from datetime import datetime, time
from decimal import Decimal

from django.db import transaction
from django.db.models import Sum, Count, F
from django.utils import timezone

from atelier.core.utils import create_audit_log
from .models import Material, MaterialMovement

logger = logging.getLogger(__name__)

MOVEMENT_TYPES = ('IN', 'OUT', 'ADJUST', 'RETURN')


class MaterialStockError(Exception):
    """Raised when a material movement cannot be applied"""


def record_movement(material, movement_type, quantity, unit_price=None, reference='', custom_order=None,
                    tailor=None, notes='', user=None):
    if movement_type not in MOVEMENT_TYPES:
        raise MaterialStockError(f"Type de mouvement invalide: {movement_type}")
    quantity = Decimal(str(quantity))
    if quantity < 0 or (quantity == 0 and movement_type != 'ADJUST'):
        raise MaterialStockError("La quantité doit être positive")

    with transaction.atomic():
        locked = Material.objects.select_for_update().get(pk=material.pk)
        previous_stock = locked.quantity
        if movement_type in ('IN', 'RETURN'):
            new_stock = previous_stock + quantity
        elif movement_type == 'OUT':
            if quantity > previous_stock:
                raise MaterialStockError(
                    f"Stock insuffisant. Stock actuel: {previous_stock} {locked.get_unit_display()}"
                )
            new_stock = previous_stock - quantity
        else:
            new_stock = quantity

        effective_price = unit_price if unit_price is not None else locked.unit_price
        locked.quantity = new_stock
        locked.save(update_fields=['quantity', 'updated_at'])
        movement = MaterialMovement.objects.create(
            material=locked,
            movement_type=movement_type,
            quantity=quantity,
            unit_price=effective_price,
            total_cost=quantity * effective_price,
            previous_stock=previous_stock,
            new_stock=new_stock,
            reference=reference or '',
            custom_order=custom_order,
            tailor=tailor,
            notes=notes or '',
            user=user if user and user.is_authenticated else None,
        )

    material.quantity = new_stock
    create_audit_log(action='material_movement', model_name='Material', object_id=locked.id, user=user,
                     object_name=locked.name,
                     changes={'type': movement_type, 'quantity': str(quantity),
                              'stock': {'old': str(previous_stock), 'new': str(new_stock)}})
    if locked.is_low_stock:
        logger.info(f"Material {locked.id} ({locked.name}) is at or below its reorder level ({new_stock})")
    return movement


def _period_bounds(start_date, end_date):
    tz = timezone.get_current_timezone()
    return (
        timezone.make_aware(datetime.combine(start_date, time.min), tz),
        timezone.make_aware(datetime.combine(end_date, time.max), tz),
    )


def build_material_report(start_date, end_date):
    """Stock value, low stock materials and movement totals over a period"""
    active = Material.objects.filter(is_active=True)
    stock_value = sum((m.stock_value for m in active), Decimal('0.00'))
    low_stock = active.filter(reorder_level__gt=0, quantity__lte=F('reorder_level')).order_by('quantity')

    start, end = _period_bounds(start_date, end_date)
    movements = MaterialMovement.objects.filter(created_at__gte=start, created_at__lte=end)
    by_type = {
        row['movement_type']: {
            'count': row['count'],
            'quantity': row['quantity'] or 0,
            'total_cost': row['total_cost'] or 0,
        }
        for row in movements.values('movement_type').annotate(
            count=Count('id'), quantity=Sum('quantity'), total_cost=Sum('total_cost')
        ).order_by()
    }
    out_by_category = list(
        movements.filter(movement_type='OUT').values('material__category__name').annotate(
            count=Count('id'), quantity=Sum('quantity'), total_cost=Sum('total_cost')
        ).order_by('-total_cost')
    )
    top_materials = list(
        movements.filter(movement_type='OUT').values('material_id', 'material__name').annotate(
            quantity=Sum('quantity'), total_cost=Sum('total_cost')
        ).order_by('-total_cost')[:10]
    )
    return {
        'period': {'start': start_date, 'end': end_date},
        'stock_value': stock_value,
        'materials_count': active.count(),
        'low_stock_count': low_stock.count(),
        'low_stock_items': [
            {'id': m.id, 'name': m.name, 'quantity': m.quantity, 'reorder_level': m.reorder_level, 'unit': m.unit}
            for m in low_stock[:20]
        ],
        'movements_by_type': by_type,
        'out_by_category': [
            {'category': row['material__category__name'] or 'Sans catégorie', 'count': row['count'],
             'quantity': row['quantity'], 'total_cost': row['total_cost']}
            for row in out_by_category
        ],
        'top_materials': top_materials,
    }
