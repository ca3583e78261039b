from django.urls import path
from .views import (
    notification_settings, template_list_create, template_detail, log_list,
    notification_stats, send_test_notification,
)

urlpatterns = [
    path('admin/notifications/settings/', notification_settings, name='notification-settings'),
    path('admin/notifications/templates/', template_list_create, name='notification-template-list-create'),
    path('admin/notifications/templates/<int:pk>/', template_detail, name='notification-template-detail'),
    path('admin/notifications/logs/', log_list, name='notification-log-list'),
    path('admin/notifications/stats/', notification_stats, name='notification-stats'),
    path('admin/notifications/test/', send_test_notification, name='notification-test'),
]
