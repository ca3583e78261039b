import logging
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated, AllowAny
from django.shortcuts import get_object_or_404
from atelier.core.cache_utils import get_or_set, make_cache_key, invalidate_shipping_cache, SHIPPING_PREFIX, CACHE_TTL_LONG
from atelier.core.permissions import HasRolePermission
from atelier.core.utils import create_audit_log
from atelier.locations.utils import get_request_store, filter_by_store
from .calculator import get_available_methods
from .models import ShippingZone, ShippingMethod
from .serializers import ShippingZoneSerializer, ShippingMethodSerializer

logger = logging.getLogger(__name__)


@api_view(['GET', 'POST'])
@permission_classes([AllowAny])
def calculate_shipping(request):
    """Shipping options and costs for a destination country"""
    data = request.data if request.method == 'POST' else request.query_params
    country = data.get('country')
    if not country:
        return Response({'success': False, 'error': 'Country is required'}, status=status.HTTP_400_BAD_REQUEST)

    store = get_request_store(request)
    zone, methods = get_available_methods(
        country, order_total=data.get('order_total'), total_weight=data.get('total_weight'), store=store,
    )
    if not methods:
        return Response({
            'success': True,
            'methods': [],
            'zone_name': zone.name if zone else None,
            'message': 'No shipping method available for this destination',
        })
    return Response({'success': True, 'methods': methods, 'zone_name': zone.name})


@api_view(['GET'])
@permission_classes([AllowAny])
def public_zone_list(request):
    """Enabled zones with their enabled methods"""
    store = get_request_store(request)
    cache_key = make_cache_key(SHIPPING_PREFIX, store.id if store else None)

    def fetch():
        zones = filter_by_store(ShippingZone.objects.filter(enabled=True), store).prefetch_related('methods')
        payload = []
        for zone in zones:
            zone_data = ShippingZoneSerializer(zone).data
            zone_data['methods'] = [method for method in zone_data['methods'] if method['enabled']]
            payload.append(zone_data)
        return payload

    return Response(get_or_set(cache_key, fetch, CACHE_TTL_LONG))


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, HasRolePermission('settings')])
def zone_list_create(request):
    if request.method == 'GET':
        zones = ShippingZone.objects.prefetch_related('methods').all()
        return Response(ShippingZoneSerializer(zones, many=True).data)

    serializer = ShippingZoneSerializer(data=request.data)
    if serializer.is_valid():
        zone = serializer.save()
        invalidate_shipping_cache()
        create_audit_log(request=request, action='create', model_name='ShippingZone',
                         object_id=zone.id, object_name=zone.name)
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, HasRolePermission('settings')])
def zone_detail(request, pk):
    zone = get_object_or_404(ShippingZone, pk=pk)

    if request.method == 'GET':
        return Response(ShippingZoneSerializer(zone).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = ShippingZoneSerializer(zone, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            invalidate_shipping_cache()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        zone.delete()
        invalidate_shipping_cache()
        create_audit_log(request=request, action='delete', model_name='ShippingZone',
                         object_id=pk, object_name=zone.name)
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, HasRolePermission('settings')])
def method_list_create(request):
    if request.method == 'GET':
        methods = ShippingMethod.objects.select_related('zone')
        zone_id = request.query_params.get('zone')
        if zone_id:
            methods = methods.filter(zone_id=zone_id)
        return Response(ShippingMethodSerializer(methods, many=True).data)

    serializer = ShippingMethodSerializer(data=request.data)
    if serializer.is_valid():
        method = serializer.save()
        invalidate_shipping_cache()
        create_audit_log(request=request, action='create', model_name='ShippingMethod',
                         object_id=method.id, object_name=str(method))
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, HasRolePermission('settings')])
def method_detail(request, pk):
    method = get_object_or_404(ShippingMethod, pk=pk)

    if request.method == 'GET':
        return Response(ShippingMethodSerializer(method).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = ShippingMethodSerializer(method, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            invalidate_shipping_cache()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        method.delete()
        invalidate_shipping_cache()
        return Response(status=status.HTTP_204_NO_CONTENT)
