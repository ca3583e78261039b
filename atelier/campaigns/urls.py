from django.urls import path
from . import views

urlpatterns = [
    path('admin/campaigns/', views.campaign_list_create, name='campaign-list-create'),
    path('admin/campaigns/<int:pk>/', views.campaign_detail, name='campaign-detail'),
    path('admin/campaigns/<int:pk>/send/', views.campaign_send, name='campaign-send'),
    path('admin/campaigns/<int:pk>/logs/', views.campaign_logs, name='campaign-logs'),
]
