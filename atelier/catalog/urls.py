from django.urls import path
from .views import (
    storefront_product_list, storefront_product_detail, storefront_featured_products,
    storefront_category_list,
    product_list_create, product_detail, category_list_create, category_detail,
    inventory_adjust, inventory_overview, stock_movement_list,
)

urlpatterns = [
    # Storefront
    path('products/', storefront_product_list, name='storefront-product-list'),
    path('products/featured/', storefront_featured_products, name='storefront-featured-products'),
    path('products/<slug:slug>/', storefront_product_detail, name='storefront-product-detail'),
    path('categories/', storefront_category_list, name='storefront-category-list'),

    # Back-office
    path('admin/products/', product_list_create, name='product-list-create'),
    path('admin/products/<int:pk>/', product_detail, name='product-detail'),
    path('admin/categories/', category_list_create, name='category-list-create'),
    path('admin/categories/<int:pk>/', category_detail, name='category-detail'),
    path('admin/inventory/', inventory_overview, name='inventory-overview'),
    path('admin/inventory/adjust/', inventory_adjust, name='inventory-adjust'),
    path('admin/inventory/movements/', stock_movement_list, name='stock-movement-list'),
]
