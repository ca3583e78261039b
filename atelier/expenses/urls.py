from django.urls import path
from .views import (
    expense_category_list_create, expense_category_detail, expense_list_create, expense_detail, expense_report,
)

urlpatterns = [
    path('admin/expenses/', expense_list_create, name='expense-list-create'),
    path('admin/expenses/<int:pk>/', expense_detail, name='expense-detail'),
    path('admin/expenses/categories/', expense_category_list_create, name='expense-category-list-create'),
    path('admin/expenses/categories/<int:pk>/', expense_category_detail, name='expense-category-detail'),
    path('admin/expenses/report/', expense_report, name='expense-report'),
]
