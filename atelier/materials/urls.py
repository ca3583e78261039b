from django.urls import path
from .views import (
    material_category_list_create, material_category_detail, material_list_create, material_detail,
    material_movement_list_create, material_report,
)

urlpatterns = [
    path('admin/materials/', material_list_create, name='material-list-create'),
    path('admin/materials/<int:pk>/', material_detail, name='material-detail'),
    path('admin/materials/categories/', material_category_list_create, name='material-category-list-create'),
    path('admin/materials/categories/<int:pk>/', material_category_detail, name='material-category-detail'),
    path('admin/materials/movements/', material_movement_list_create, name='material-movement-list-create'),
    path('admin/materials/report/', material_report, name='material-report'),
]
