import logging
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated, AllowAny
from django.db.models import Count, Q, Sum, F, DecimalField, ExpressionWrapper
from django.shortcuts import get_object_or_404
from atelier.core.cache_utils import (
    get_or_set, make_cache_key, invalidate_products_cache, invalidate_categories_cache,
    PRODUCTS_PREFIX, PRODUCT_PREFIX, CATEGORIES_PREFIX, HOME_FEATURED_PREFIX,
    CACHE_TTL_MEDIUM, CACHE_TTL_LONG,
)
from atelier.core.permissions import HasRolePermission
from atelier.core.utils import create_audit_log, paginate
from atelier.locations.utils import get_request_store, filter_by_store
from .filters import ProductFilter, StockMovementFilter
from .models import Category, Product, StockMovement
from .serializers import (
    CategorySerializer, ProductListSerializer, ProductSerializer, ProductCreateSerializer,
    StockMovementSerializer, StockAdjustSerializer,
)
from .services import adjust_stock, StockError

logger = logging.getLogger(__name__)

FEATURED_LIMIT = 8


def _store_id(store):
    return store.id if store else None


# Storefront (public) views
@api_view(['GET'])
@permission_classes([AllowAny])
def storefront_product_list(request):
    """Active products with filters, paginated and cached per filter set"""
    store = get_request_store(request)
    params = {key: request.query_params.get(key) for key in sorted(request.query_params.keys())}
    cache_key = make_cache_key(PRODUCTS_PREFIX, _store_id(store), **params)

    def fetch():
        queryset = filter_by_store(
            Product.objects.filter(is_active=True).select_related('category'), store
        )
        queryset = ProductFilter(request.query_params, queryset=queryset).qs
        ordering = request.query_params.get('ordering', 'newest')
        if ordering == 'price_asc':
            queryset = queryset.order_by('price')
        elif ordering == 'price_desc':
            queryset = queryset.order_by('-price')
        else:
            queryset = queryset.order_by('-created_at')
        return paginate(request, queryset, ProductListSerializer)

    return Response(get_or_set(cache_key, fetch, CACHE_TTL_MEDIUM))


@api_view(['GET'])
@permission_classes([AllowAny])
def storefront_product_detail(request, slug):
    """Single active product by slug"""
    cache_key = make_cache_key(PRODUCT_PREFIX, slug)

    def fetch():
        product = Product.objects.select_related('category').filter(slug=slug, is_active=True).first()
        if product is None:
            return None
        data = ProductSerializer(product).data
        related = Product.objects.filter(
            is_active=True, category_id=product.category_id
        ).exclude(pk=product.pk).order_by('-created_at')[:4] if product.category_id else []
        data['related'] = ProductListSerializer(related, many=True).data
        return data

    data = get_or_set(cache_key, fetch, CACHE_TTL_MEDIUM)
    if data is None:
        return Response({'error': 'Product not found'}, status=status.HTTP_404_NOT_FOUND)
    return Response(data)


@api_view(['GET'])
@permission_classes([AllowAny])
def storefront_featured_products(request):
    store = get_request_store(request)
    cache_key = make_cache_key(HOME_FEATURED_PREFIX, _store_id(store))

    def fetch():
        queryset = filter_by_store(
            Product.objects.filter(is_active=True, is_featured=True).select_related('category'), store
        ).order_by('-created_at')[:FEATURED_LIMIT]
        return ProductListSerializer(queryset, many=True).data

    return Response(get_or_set(cache_key, fetch, CACHE_TTL_MEDIUM))


@api_view(['GET'])
@permission_classes([AllowAny])
def storefront_category_list(request):
    store = get_request_store(request)
    cache_key = make_cache_key(CATEGORIES_PREFIX, _store_id(store))

    def fetch():
        queryset = filter_by_store(Category.objects.filter(is_active=True), store).annotate(
            active_product_count=Count('products', filter=Q(products__is_active=True))
        ).order_by('name')
        return CategorySerializer(queryset, many=True).data

    return Response(get_or_set(cache_key, fetch, CACHE_TTL_LONG))


# Back-office product views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, HasRolePermission('products')])
def product_list_create(request):
    """List all products or create a new product"""
    if request.method == 'GET':
        store = get_request_store(request)
        queryset = filter_by_store(Product.objects.select_related('category'), store)
        queryset = ProductFilter(request.query_params, queryset=queryset).qs.order_by('-updated_at', '-created_at')
        return Response(paginate(request, queryset, ProductSerializer))

    serializer = ProductCreateSerializer(data=request.data, context={'user': request.user})
    if serializer.is_valid():
        product = serializer.save(store=serializer.validated_data.get('store') or get_request_store(request))
        invalidate_products_cache()
        create_audit_log(request=request, action='create', model_name='Product',
                         object_id=product.id, object_name=product.name, object_reference=product.sku)
        product.refresh_from_db()
        return Response(ProductSerializer(product).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, HasRolePermission('products')])
def product_detail(request, pk):
    """Retrieve, update or delete a product"""
    product = get_object_or_404(Product, pk=pk)

    if request.method == 'GET':
        return Response(ProductSerializer(product).data)
    elif request.method in ('PUT', 'PATCH'):
        old_price = product.price
        serializer = ProductSerializer(product, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            invalidate_products_cache()
            changes = {}
            if old_price != product.price:
                changes['price'] = {'old': str(old_price), 'new': str(product.price)}
            create_audit_log(request=request, action='update', model_name='Product',
                             object_id=product.id, object_name=product.name, changes=changes)
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        if product.order_items.exists():
            # Products that were sold stay for order history
            product.is_active = False
            product.save(update_fields=['is_active', 'updated_at'])
        else:
            product.delete()
        invalidate_products_cache()
        create_audit_log(request=request, action='delete', model_name='Product',
                         object_id=pk, object_name=product.name)
        return Response(status=status.HTTP_204_NO_CONTENT)


# Back-office category views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, HasRolePermission('categories')])
def category_list_create(request):
    """List all categories or create a new category"""
    if request.method == 'GET':
        store = get_request_store(request)
        categories = filter_by_store(Category.objects.all(), store).annotate(
            active_product_count=Count('products', filter=Q(products__is_active=True))
        )
        return Response(CategorySerializer(categories, many=True).data)

    serializer = CategorySerializer(data=request.data)
    if serializer.is_valid():
        serializer.save(store=serializer.validated_data.get('store') or get_request_store(request))
        invalidate_categories_cache()
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, HasRolePermission('categories')])
def category_detail(request, pk):
    """Retrieve, update or delete a category"""
    category = get_object_or_404(Category, pk=pk)

    if request.method == 'GET':
        return Response(CategorySerializer(category).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = CategorySerializer(category, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            invalidate_categories_cache()
            invalidate_products_cache()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        category.delete()
        invalidate_categories_cache()
        invalidate_products_cache()
        return Response(status=status.HTTP_204_NO_CONTENT)


# Inventory views
@api_view(['POST'])
@permission_classes([IsAuthenticated, HasRolePermission('inventory')])
def inventory_adjust(request):
    """Adjust a product's stock (purchase, adjustment, return, damaged)"""
    serializer = StockAdjustSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    data = serializer.validated_data
    product = data['product']
    try:
        movement = adjust_stock(
            product, data['type'], data['quantity'], user=request.user,
            reason=data.get('reason', ''), reference=data.get('reference', ''),
        )
    except StockError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

    invalidate_products_cache()
    create_audit_log(request=request, action='stock_adjust', model_name='Product',
                     object_id=product.id, object_name=product.name,
                     changes={'type': data['type'], 'previous_stock': movement.previous_stock,
                              'new_stock': movement.new_stock})
    product.refresh_from_db()
    return Response({
        'success': True,
        'product': ProductSerializer(product).data,
        'movement': StockMovementSerializer(movement).data,
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated, HasRolePermission('inventory')])
def inventory_overview(request):
    """Stock totals, value and alert lists"""
    store = get_request_store(request)
    tracked = filter_by_store(Product.objects.filter(is_active=True, track_inventory=True), store)

    value_expr = ExpressionWrapper(F('stock') * F('price'), output_field=DecimalField(max_digits=14, decimal_places=2))
    totals = tracked.aggregate(total_units=Sum('stock'), total_value=Sum(value_expr))
    low_stock = tracked.filter(stock__gt=0, stock__lte=F('low_stock_threshold')).order_by('stock')
    out_of_stock = tracked.filter(stock__lte=0).order_by('name')

    return Response({
        'total_products': tracked.count(),
        'total_units': totals['total_units'] or 0,
        'total_value': totals['total_value'] or 0,
        'low_stock_count': low_stock.count(),
        'out_of_stock_count': out_of_stock.count(),
        'low_stock': ProductSerializer(low_stock[:20], many=True).data,
        'out_of_stock': ProductSerializer(out_of_stock[:20], many=True).data,
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated, HasRolePermission('inventory')])
def stock_movement_list(request):
    queryset = StockMovement.objects.select_related('product', 'user').order_by('-created_at')
    queryset = StockMovementFilter(request.query_params, queryset=queryset).qs
    return Response(paginate(request, queryset, StockMovementSerializer))
