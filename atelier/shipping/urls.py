from django.urls import path
from .views import (
    calculate_shipping, public_zone_list,
    zone_list_create, zone_detail, method_list_create, method_detail,
)

urlpatterns = [
    path('shipping/calculate/', calculate_shipping, name='shipping-calculate'),
    path('shipping/zones/', public_zone_list, name='shipping-public-zones'),
    path('admin/shipping/zones/', zone_list_create, name='shipping-zone-list-create'),
    path('admin/shipping/zones/<int:pk>/', zone_detail, name='shipping-zone-detail'),
    path('admin/shipping/methods/', method_list_create, name='shipping-method-list-create'),
    path('admin/shipping/methods/<int:pk>/', method_detail, name='shipping-method-detail'),
]
