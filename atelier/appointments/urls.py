from django.urls import path
from .views import (
    appointment_type_public_list, appointment_slots, appointment_list_create, appointment_cancel,
    admin_appointment_list, admin_appointment_detail, appointment_type_list_create, appointment_type_detail,
    availability_list_create, availability_detail,
)

urlpatterns = [
    path('appointments/', appointment_list_create, name='appointment-list-create'),
    path('appointments/types/', appointment_type_public_list, name='appointment-type-public-list'),
    path('appointments/slots/', appointment_slots, name='appointment-slots'),
    path('appointments/<int:pk>/cancel/', appointment_cancel, name='appointment-cancel'),
    path('admin/appointments/', admin_appointment_list, name='admin-appointment-list'),
    path('admin/appointments/<int:pk>/', admin_appointment_detail, name='admin-appointment-detail'),
    path('admin/appointments/types/', appointment_type_list_create, name='appointment-type-list-create'),
    path('admin/appointments/types/<int:pk>/', appointment_type_detail, name='appointment-type-detail'),
    path('admin/appointments/availability/', availability_list_create, name='availability-list-create'),
    path('admin/appointments/availability/<int:pk>/', availability_detail, name='availability-detail'),
]
