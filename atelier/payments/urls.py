from django.urls import path
from .views import payment_initialize, payment_webhook, payment_status, admin_payment_list

urlpatterns = [
    path('payments/initialize/', payment_initialize, name='payment-initialize'),
    path('payments/webhook/', payment_webhook, name='payment-webhook'),
    path('payments/<str:reference>/status/', payment_status, name='payment-status'),
    path('admin/payments/', admin_payment_list, name='admin-payment-list'),
]
