import logging
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.db.models import Q, Sum, F
from django.shortcuts import get_object_or_404
from atelier.core.permissions import HasRolePermission
from atelier.core.utils import create_audit_log, paginate, parse_date, get_period_range
from .models import MaterialCategory, Material, MaterialMovement
from .serializers import (
    MaterialCategorySerializer, MaterialSerializer, MaterialUpdateSerializer, MaterialMovementSerializer,
    MaterialMovementCreateSerializer,
)
from .services import record_movement, build_material_report, MaterialStockError

logger = logging.getLogger(__name__)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, HasRolePermission('materials')])
def material_category_list_create(request):
    if request.method == 'GET':
        return Response(MaterialCategorySerializer(MaterialCategory.objects.all(), many=True).data)

    serializer = MaterialCategorySerializer(data=request.data)
    if serializer.is_valid():
        category = serializer.save()
        create_audit_log(request=request, action='create', model_name='MaterialCategory',
                         object_id=category.id, object_name=category.name)
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, HasRolePermission('materials')])
def material_category_detail(request, pk):
    category = get_object_or_404(MaterialCategory, pk=pk)

    if request.method == 'GET':
        return Response(MaterialCategorySerializer(category).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = MaterialCategorySerializer(category, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        if category.materials.exists():
            return Response({'error': 'This category still holds materials'}, status=status.HTTP_400_BAD_REQUEST)
        category.delete()
        create_audit_log(request=request, action='delete', model_name='MaterialCategory', object_id=pk,
                         object_name=category.name)
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, HasRolePermission('materials')])
def material_list_create(request):
    """List materials with low-stock flags, or create one (initial stock is recorded as an IN movement)"""
    if request.method == 'GET':
        queryset = Material.objects.select_related('category')
        params = request.query_params
        if params.get('include_inactive') != 'true':
            queryset = queryset.filter(is_active=True)
        if params.get('category'):
            queryset = queryset.filter(category_id=params['category'])
        search = params.get('search')
        if search:
            queryset = queryset.filter(
                Q(name__icontains=search) | Q(sku__icontains=search) | Q(supplier__icontains=search)
            )
        low_stock = Material.objects.filter(is_active=True, reorder_level__gt=0, quantity__lte=F('reorder_level'))
        if params.get('low_stock') == 'true':
            queryset = queryset.filter(pk__in=low_stock.values('pk'))
        return Response(paginate(request, queryset.order_by('name'), MaterialSerializer,
                                 extra={'low_stock_count': low_stock.count()}))

    serializer = MaterialSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    initial_quantity = serializer.validated_data.pop('quantity', None)
    material = serializer.save()
    if initial_quantity:
        record_movement(material, 'IN', initial_quantity, reference='Stock initial', user=request.user)
    create_audit_log(request=request, action='create', model_name='Material', object_id=material.id,
                     object_name=material.name)
    material.refresh_from_db()
    return Response(MaterialSerializer(material).data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, HasRolePermission('materials')])
def material_detail(request, pk):
    material = get_object_or_404(Material.objects.select_related('category'), pk=pk)

    if request.method == 'GET':
        data = MaterialSerializer(material).data
        data['recent_movements'] = MaterialMovementSerializer(
            material.movements.select_related('custom_order', 'tailor', 'user')[:20], many=True
        ).data
        return Response(data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = MaterialUpdateSerializer(material, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            create_audit_log(request=request, action='update', model_name='Material', object_id=material.id,
                             object_name=material.name, changes=request.data)
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        if material.movements.exists():
            material.is_active = False
            material.save(update_fields=['is_active', 'updated_at'])
            return Response({'message': 'Material deactivated', 'is_active': False})
        material.delete()
        create_audit_log(request=request, action='delete', model_name='Material', object_id=pk,
                         object_name=material.name)
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, HasRolePermission('materials')])
def material_movement_list_create(request):
    """Movements with filters and cost/quantity totals, or record a movement"""
    if request.method == 'GET':
        queryset = MaterialMovement.objects.select_related('material', 'custom_order', 'tailor', 'user')
        params = request.query_params
        if params.get('material'):
            queryset = queryset.filter(material_id=params['material'])
        if params.get('type'):
            queryset = queryset.filter(movement_type=params['type'])
        if params.get('custom_order'):
            queryset = queryset.filter(custom_order_id=params['custom_order'])
        if params.get('tailor'):
            queryset = queryset.filter(tailor_id=params['tailor'])
        date_from = parse_date(params.get('date_from'))
        date_to = parse_date(params.get('date_to'))
        if date_from:
            queryset = queryset.filter(created_at__date__gte=date_from)
        if date_to:
            queryset = queryset.filter(created_at__date__lte=date_to)
        totals = queryset.aggregate(total_cost=Sum('total_cost'), total_quantity=Sum('quantity'))
        return Response(paginate(request, queryset.order_by('-created_at'), MaterialMovementSerializer, extra={
            'totals': {
                'total_cost': totals['total_cost'] or 0,
                'total_quantity': totals['total_quantity'] or 0,
            },
        }))

    serializer = MaterialMovementCreateSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    data = serializer.validated_data
    try:
        movement = record_movement(
            data['material'], data['movement_type'], data['quantity'], unit_price=data.get('unit_price'),
            reference=data.get('reference', ''), custom_order=data.get('custom_order'),
            tailor=data.get('tailor'), notes=data.get('notes', ''), user=request.user,
        )
    except MaterialStockError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
    return Response(MaterialMovementSerializer(movement).data, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated, HasRolePermission('materials')])
def material_report(request):
    params = request.query_params
    start_date, end_date = get_period_range(params.get('period', 'month'), params.get('date_from'), params.get('date_to'))
    return Response(build_material_report(start_date, end_date))
