import django_filters
from django.db.models import Q, F
from .models import Product, StockMovement


class ProductFilter(django_filters.FilterSet):
    """Storefront and back-office product filter"""

    search = django_filters.CharFilter(method='filter_search', label='Search')
    category = django_filters.CharFilter(method='filter_category', label='Category slug or id')
    min_price = django_filters.NumberFilter(field_name='price', lookup_expr='gte')
    max_price = django_filters.NumberFilter(field_name='price', lookup_expr='lte')
    featured = django_filters.BooleanFilter(field_name='is_featured')
    active = django_filters.BooleanFilter(field_name='is_active')
    in_stock = django_filters.BooleanFilter(method='filter_in_stock', label='In Stock')
    low_stock = django_filters.BooleanFilter(method='filter_low_stock', label='Low Stock')

    class Meta:
        model = Product
        fields = ['search', 'category', 'min_price', 'max_price', 'featured', 'active', 'in_stock', 'low_stock']

    def filter_search(self, queryset, name, value):
        """Every word must appear in the name, SKU or description"""
        if not value or not value.strip():
            return queryset
        for word in value.split():
            queryset = queryset.filter(
                Q(name__icontains=word) | Q(sku__icontains=word) | Q(description__icontains=word)
            )
        return queryset

    def filter_category(self, queryset, name, value):
        if not value:
            return queryset
        if str(value).isdigit():
            return queryset.filter(Q(category_id=int(value)) | Q(category__parent_id=int(value)))
        return queryset.filter(Q(category__slug=value) | Q(category__parent__slug=value))

    def filter_in_stock(self, queryset, name, value):
        if value is None:
            return queryset
        in_stock = Q(track_inventory=False) | Q(stock__gt=0)
        return queryset.filter(in_stock) if value else queryset.exclude(in_stock)

    def filter_low_stock(self, queryset, name, value):
        if not value:
            return queryset
        return queryset.filter(track_inventory=True, stock__gt=0, stock__lte=F('low_stock_threshold'))


class StockMovementFilter(django_filters.FilterSet):
    product = django_filters.NumberFilter(field_name='product_id')
    movement_type = django_filters.CharFilter(field_name='movement_type')
    date_from = django_filters.DateFilter(field_name='created_at', lookup_expr='date__gte')
    date_to = django_filters.DateFilter(field_name='created_at', lookup_expr='date__lte')

    class Meta:
        model = StockMovement
        fields = ['product', 'movement_type', 'date_from', 'date_to']
