"""
URL configuration for the atelier project.

Every app exposes its routes under api/v1/; back-office routes are prefixed
with admin/ inside each app's urls module.
"""
from django.contrib import admin
from django.urls import path, include, re_path
from django.conf import settings
from django.views.static import serve

admin.site.site_header = "Atelier Administration"
admin.site.site_title = "Atelier Admin Portal"
admin.site.index_title = "Boutique back-office"

urlpatterns = [
    path('django-admin/', admin.site.urls),
    path('api/v1/', include('atelier.core.urls')),
    path('api/v1/', include('atelier.locations.urls')),
    path('api/v1/', include('atelier.catalog.urls')),
    path('api/v1/', include('atelier.shipping.urls')),
    path('api/v1/', include('atelier.orders.urls')),
    path('api/v1/', include('atelier.payments.urls')),
    path('api/v1/', include('atelier.invoices.urls')),
    path('api/v1/', include('atelier.custom_orders.urls')),
    path('api/v1/', include('atelier.appointments.urls')),
    path('api/v1/', include('atelier.materials.urls')),
    path('api/v1/', include('atelier.expenses.urls')),
    path('api/v1/', include('atelier.notifications.urls')),
    path('api/v1/', include('atelier.campaigns.urls')),
    path('api/v1/', include('atelier.reports.urls')),
    re_path(r'^media/(?P<path>.*)$', serve, {'document_root': settings.MEDIA_ROOT}),
    re_path(r'^static/(?P<path>.*)$', serve, {'document_root': settings.STATIC_ROOT}),
]
