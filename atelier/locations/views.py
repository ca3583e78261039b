import logging
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated, AllowAny
from django.shortcuts import get_object_or_404
from atelier.core.permissions import HasRolePermission
from atelier.core.utils import create_audit_log
from .models import Store
from .serializers import StoreSerializer, PublicStoreSerializer
from .utils import get_request_store

logger = logging.getLogger(__name__)


@api_view(['GET'])
@permission_classes([AllowAny])
def current_store(request):
    """Public details of the store serving this request"""
    store = get_request_store(request)
    if store is None:
        return Response({'error': 'No store configured'}, status=status.HTTP_404_NOT_FOUND)
    return Response(PublicStoreSerializer(store).data)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, HasRolePermission('settings')])
def store_list_create(request):
    """List all stores or create a new store"""
    if request.method == 'GET':
        stores = Store.objects.all()
        is_active = request.query_params.get('is_active')
        if is_active is not None:
            stores = stores.filter(is_active=is_active.lower() == 'true')
        return Response(StoreSerializer(stores, many=True).data)

    serializer = StoreSerializer(data=request.data)
    if serializer.is_valid():
        store = serializer.save()
        logger.info(f"Store {store.code} created by {request.user.username}")
        create_audit_log(request=request, action='create', model_name='Store',
                         object_id=store.id, object_name=store.name, object_reference=store.code)
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, HasRolePermission('settings')])
def store_detail(request, pk):
    """Retrieve, update or deactivate a store"""
    store = get_object_or_404(Store, pk=pk)

    if request.method == 'GET':
        return Response(StoreSerializer(store).data)
    elif request.method == 'PATCH':
        serializer = StoreSerializer(store, data=request.data, partial=True)
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        store.is_active = False
        store.save(update_fields=['is_active', 'updated_at'])
        create_audit_log(request=request, action='delete', model_name='Store',
                         object_id=store.id, object_name=store.name, object_reference=store.code)
        return Response(status=status.HTTP_204_NO_CONTENT)
