import logging
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated, AllowAny
from django.db.models import Q
from django.shortcuts import get_object_or_404
from atelier.core.permissions import HasRolePermission
from atelier.core.utils import create_audit_log, paginate, parse_date
from .models import AppointmentType, Availability, Appointment
from .serializers import (
    AppointmentTypeSerializer, AvailabilitySerializer, AppointmentSerializer, AppointmentBookSerializer,
    AppointmentUpdateSerializer,
)
from .services import (
    get_available_slots, book_appointment, cancel_appointment, update_appointment_status, appointment_stats,
    AppointmentError,
)

logger = logging.getLogger(__name__)


# Public / customer views
@api_view(['GET'])
@permission_classes([AllowAny])
def appointment_type_public_list(request):
    types = AppointmentType.objects.filter(is_active=True)
    return Response(AppointmentTypeSerializer(types, many=True).data)


@api_view(['GET'])
@permission_classes([AllowAny])
def appointment_slots(request):
    date = parse_date(request.query_params.get('date'))
    if date is None:
        return Response({'error': 'A valid date (YYYY-MM-DD) is required'}, status=status.HTTP_400_BAD_REQUEST)
    return Response({'date': date, 'slots': get_available_slots(date)})


@api_view(['GET', 'POST'])
@permission_classes([AllowAny])
def appointment_list_create(request):
    """GET: the customer's own appointments. POST: book a slot (guests allowed)"""
    if request.method == 'GET':
        if not request.user.is_authenticated:
            return Response({'error': 'Authentication required'}, status=status.HTTP_401_UNAUTHORIZED)
        appointments = Appointment.objects.filter(user=request.user).select_related('appointment_type')
        return Response(AppointmentSerializer(appointments, many=True).data)

    serializer = AppointmentBookSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    try:
        appointment = book_appointment(serializer.validated_data, user=request.user)
    except AppointmentError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
    return Response(AppointmentSerializer(appointment).data, status=status.HTTP_201_CREATED)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def appointment_cancel(request, pk):
    appointment = get_object_or_404(Appointment, pk=pk, user=request.user)
    try:
        cancel_appointment(appointment, user=request.user, reason=request.data.get('reason', ''))
    except AppointmentError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
    return Response(AppointmentSerializer(appointment).data)


# Back-office views
@api_view(['GET'])
@permission_classes([IsAuthenticated, HasRolePermission('appointments')])
def admin_appointment_list(request):
    """Appointments with filters plus pending/confirmed/today/week stats"""
    queryset = Appointment.objects.select_related('appointment_type')
    params = request.query_params
    if params.get('status'):
        queryset = queryset.filter(status=params['status'].upper())
    if params.get('type'):
        queryset = queryset.filter(appointment_type_id=params['type'])
    search = params.get('search')
    if search:
        queryset = queryset.filter(
            Q(reference__icontains=search) | Q(customer_name__icontains=search) | Q(customer_phone__icontains=search)
        )
    date_from = parse_date(params.get('date_from'))
    date_to = parse_date(params.get('date_to'))
    if date_from:
        queryset = queryset.filter(date__gte=date_from)
    if date_to:
        queryset = queryset.filter(date__lte=date_to)
    return Response(paginate(request, queryset.order_by('-date', '-time'), AppointmentSerializer,
                             extra={'stats': appointment_stats()}))


@api_view(['GET', 'PATCH'])
@permission_classes([IsAuthenticated, HasRolePermission('appointments')])
def admin_appointment_detail(request, pk):
    appointment = get_object_or_404(Appointment.objects.select_related('appointment_type'), pk=pk)
    if request.method == 'GET':
        return Response(AppointmentSerializer(appointment).data)

    serializer = AppointmentUpdateSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    old_status = appointment.status
    new_status = serializer.validated_data.get('status', appointment.status)
    update_appointment_status(appointment, new_status, admin_notes=serializer.validated_data.get('admin_notes'),
                              user=request.user)
    if new_status != old_status:
        create_audit_log(request=request, action='status_change', model_name='Appointment', object_id=appointment.id,
                         object_reference=appointment.reference,
                         changes={'status': {'old': old_status, 'new': new_status}})
    return Response(AppointmentSerializer(appointment).data)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, HasRolePermission('appointments')])
def appointment_type_list_create(request):
    if request.method == 'GET':
        return Response(AppointmentTypeSerializer(AppointmentType.objects.all(), many=True).data)

    serializer = AppointmentTypeSerializer(data=request.data)
    if serializer.is_valid():
        appointment_type = serializer.save()
        create_audit_log(request=request, action='create', model_name='AppointmentType',
                         object_id=appointment_type.id, object_name=appointment_type.name)
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, HasRolePermission('appointments')])
def appointment_type_detail(request, pk):
    appointment_type = get_object_or_404(AppointmentType, pk=pk)

    if request.method == 'GET':
        return Response(AppointmentTypeSerializer(appointment_type).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = AppointmentTypeSerializer(appointment_type, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        if appointment_type.appointments.exists():
            appointment_type.is_active = False
            appointment_type.save(update_fields=['is_active', 'updated_at'])
            return Response({'message': 'Service deactivated', 'is_active': False})
        appointment_type.delete()
        create_audit_log(request=request, action='delete', model_name='AppointmentType', object_id=pk,
                         object_name=appointment_type.name)
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, HasRolePermission('appointments.availability')])
def availability_list_create(request):
    """GET the weekly schedule; POST creates a day or replaces it when the day already exists"""
    if request.method == 'GET':
        return Response(AvailabilitySerializer(Availability.objects.all(), many=True).data)

    instance = Availability.objects.filter(day_of_week=request.data.get('day_of_week')).first()
    serializer = AvailabilitySerializer(instance, data=request.data)
    if serializer.is_valid():
        serializer.save()
        return Response(serializer.data, status=status.HTTP_200_OK if instance else status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, HasRolePermission('appointments.availability')])
def availability_detail(request, pk):
    availability = get_object_or_404(Availability, pk=pk)

    if request.method == 'GET':
        return Response(AvailabilitySerializer(availability).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = AvailabilitySerializer(availability, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        availability.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)
