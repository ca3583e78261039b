import logging
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.db.models import Count, Q
from django.shortcuts import get_object_or_404
from atelier.core.permissions import HasRolePermission
from atelier.core.utils import create_audit_log, paginate, parse_date
from .models import NotificationSettings, NotificationTemplate, NotificationLog
from .serializers import (
    NotificationSettingsSerializer, NotificationTemplateSerializer, NotificationLogSerializer,
    TestNotificationSerializer,
)
from .service import build_variables, render_template, send_via_channel, log_notification

logger = logging.getLogger(__name__)

DEFAULT_TEST_MESSAGE = "Message de test de {store_name}."


@api_view(['GET', 'PUT', 'PATCH'])
@permission_classes([IsAuthenticated, HasRolePermission('notifications')])
def notification_settings(request):
    settings_obj = NotificationSettings.load()
    if request.method == 'GET':
        return Response(NotificationSettingsSerializer(settings_obj).data)

    serializer = NotificationSettingsSerializer(settings_obj, data=request.data, partial=True)
    if serializer.is_valid():
        serializer.save()
        create_audit_log(request=request, action='update', model_name='NotificationSettings',
                         object_id=settings_obj.pk, changes=request.data)
        return Response(serializer.data)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, HasRolePermission('notifications')])
def template_list_create(request):
    if request.method == 'GET':
        templates = NotificationTemplate.objects.all()
        trigger = request.query_params.get('trigger')
        channel = request.query_params.get('channel')
        if trigger:
            templates = templates.filter(trigger=trigger)
        if channel:
            templates = templates.filter(channel=channel)
        return Response(NotificationTemplateSerializer(templates, many=True).data)

    serializer = NotificationTemplateSerializer(data=request.data)
    if serializer.is_valid():
        template = serializer.save()
        create_audit_log(request=request, action='create', model_name='NotificationTemplate',
                         object_id=template.id, object_name=template.name)
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH'])
@permission_classes([IsAuthenticated, HasRolePermission('notifications')])
def template_detail(request, pk):
    template = get_object_or_404(NotificationTemplate, pk=pk)
    if request.method == 'GET':
        return Response(NotificationTemplateSerializer(template).data)

    serializer = NotificationTemplateSerializer(template, data=request.data, partial=request.method == 'PATCH')
    if serializer.is_valid():
        serializer.save()
        create_audit_log(request=request, action='update', model_name='NotificationTemplate',
                         object_id=template.id, object_name=template.name)
        return Response(serializer.data)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET'])
@permission_classes([IsAuthenticated, HasRolePermission('notifications')])
def log_list(request):
    """Send log with trigger/channel/status/search/date filters"""
    logs = NotificationLog.objects.select_related('order')
    params = request.query_params
    for field in ('trigger', 'channel', 'status'):
        if params.get(field):
            logs = logs.filter(**{field: params[field]})
    search = params.get('search')
    if search:
        logs = logs.filter(
            Q(recipient__icontains=search) | Q(recipient_name__icontains=search) |
            Q(order__order_number__icontains=search)
        )
    date_from = parse_date(params.get('date_from'))
    date_to = parse_date(params.get('date_to'))
    if date_from:
        logs = logs.filter(created_at__date__gte=date_from)
    if date_to:
        logs = logs.filter(created_at__date__lte=date_to)
    return Response(paginate(request, logs.order_by('-created_at'), NotificationLogSerializer))


@api_view(['GET'])
@permission_classes([IsAuthenticated, HasRolePermission('notifications')])
def notification_stats(request):
    """Sent/failed counts per channel"""
    rows = NotificationLog.objects.values('channel').annotate(
        sent=Count('id', filter=Q(status='SENT')),
        failed=Count('id', filter=Q(status='FAILED')),
    ).order_by('channel')
    by_channel = {row['channel']: {'sent': row['sent'], 'failed': row['failed']} for row in rows}
    total_sent = sum(entry['sent'] for entry in by_channel.values())
    total_failed = sum(entry['failed'] for entry in by_channel.values())
    total = total_sent + total_failed
    return Response({
        'total': total,
        'sent': total_sent,
        'failed': total_failed,
        'success_rate': round(total_sent * 100 / total, 1) if total else 0,
        'by_channel': by_channel,
    })


@api_view(['POST'])
@permission_classes([IsAuthenticated, HasRolePermission('notifications')])
def send_test_notification(request):
    """Send one message to a phone on a channel, bypassing the templates' dispatch rules"""
    serializer = TestNotificationSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    data = serializer.validated_data
    content = data.get('message')
    if not content and data.get('trigger'):
        template = NotificationTemplate.objects.filter(trigger=data['trigger'], channel=data['channel']).first()
        content = template.content if template else ''
    content = render_template(content or DEFAULT_TEST_MESSAGE, build_variables('TEST', {'user': request.user}))

    result = send_via_channel(data['channel'], data['phone'], content)
    log_notification('TEST', data['channel'], data['phone'], content, result, user_id=request.user.id)
    if not result.success:
        logger.warning(f"Test notification to {data['phone']} failed: {result.error}")
        return Response({'success': False, 'error': result.error}, status=status.HTTP_502_BAD_GATEWAY)
    return Response({'success': True, 'message_id': result.message_id, 'message': content})
