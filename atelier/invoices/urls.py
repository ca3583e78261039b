from django.urls import path
from .views import (
    invoice_list_create, invoice_detail, invoice_cancel, invoice_payments, invoice_payment_delete,
    invoice_send, account_invoice_list,
)

urlpatterns = [
    path('account/invoices/', account_invoice_list, name='account-invoice-list'),
    path('admin/invoices/', invoice_list_create, name='invoice-list-create'),
    path('admin/invoices/<int:pk>/', invoice_detail, name='invoice-detail'),
    path('admin/invoices/<int:pk>/cancel/', invoice_cancel, name='invoice-cancel'),
    path('admin/invoices/<int:pk>/payments/', invoice_payments, name='invoice-payments'),
    path('admin/invoices/<int:pk>/payments/<int:payment_id>/', invoice_payment_delete, name='invoice-payment-delete'),
    path('admin/invoices/<int:pk>/send/', invoice_send, name='invoice-send'),
]
