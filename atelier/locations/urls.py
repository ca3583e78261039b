from django.urls import path
from .views import current_store, store_list_create, store_detail

urlpatterns = [
    path('stores/current/', current_store, name='store-current'),
    path('admin/stores/', store_list_create, name='store-list-create'),
    path('admin/stores/<int:pk>/', store_detail, name='store-detail'),
]
