from django.urls import path
from .views import (
    order_list_create, order_detail, order_payment_status, coupon_validate,
    admin_order_list, admin_order_detail, admin_order_notes, coupon_list_create, coupon_detail,
)

urlpatterns = [
    path('orders/', order_list_create, name='order-list-create'),
    path('orders/<int:pk>/', order_detail, name='order-detail'),
    path('orders/<int:pk>/payment-status/', order_payment_status, name='order-payment-status'),
    path('coupons/validate/', coupon_validate, name='coupon-validate'),
    path('admin/orders/', admin_order_list, name='admin-order-list'),
    path('admin/orders/<int:pk>/', admin_order_detail, name='admin-order-detail'),
    path('admin/orders/<int:pk>/notes/', admin_order_notes, name='admin-order-notes'),
    path('admin/coupons/', coupon_list_create, name='coupon-list-create'),
    path('admin/coupons/<int:pk>/', coupon_detail, name='coupon-detail'),
]
