from django.urls import path
from .views import (
    custom_order_list_create, custom_order_detail, custom_order_payments, custom_order_payment_delete,
    custom_order_timeline, production_overview,
)

urlpatterns = [
    path('admin/custom-orders/', custom_order_list_create, name='custom-order-list-create'),
    path('admin/custom-orders/<int:pk>/', custom_order_detail, name='custom-order-detail'),
    path('admin/custom-orders/<int:pk>/payments/', custom_order_payments, name='custom-order-payments'),
    path('admin/custom-orders/<int:pk>/payments/<int:payment_id>/', custom_order_payment_delete,
         name='custom-order-payment-delete'),
    path('admin/custom-orders/<int:pk>/timeline/', custom_order_timeline, name='custom-order-timeline'),
    path('admin/production/', production_overview, name='production-overview'),
]
