import logging
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.db.models import Q
from django.shortcuts import get_object_or_404
from atelier.core.permissions import HasRolePermission
from atelier.core.utils import create_audit_log, paginate
from .models import Campaign
from .serializers import CampaignSerializer, CampaignLogSerializer
from .services import start_campaign, resolve_campaign_recipients, CampaignError

logger = logging.getLogger(__name__)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, HasRolePermission('campaigns')])
def campaign_list_create(request):
    if request.method == 'GET':
        queryset = Campaign.objects.select_related('created_by')
        params = request.query_params
        if params.get('status'):
            queryset = queryset.filter(status=params['status'])
        if params.get('channel'):
            queryset = queryset.filter(channel=params['channel'])
        search = params.get('search')
        if search:
            queryset = queryset.filter(Q(name__icontains=search) | Q(message__icontains=search))
        return Response(paginate(request, queryset.order_by('-created_at'), CampaignSerializer))

    serializer = CampaignSerializer(data=request.data)
    if serializer.is_valid():
        campaign = serializer.save(created_by=request.user)
        create_audit_log(request=request, action='create', model_name='Campaign', object_id=campaign.id,
                         object_name=campaign.name)
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, HasRolePermission('campaigns')])
def campaign_detail(request, pk):
    campaign = get_object_or_404(Campaign, pk=pk)

    if request.method == 'GET':
        data = CampaignSerializer(campaign).data
        data['recipient_count'] = len(resolve_campaign_recipients(campaign))
        return Response(data)
    elif request.method in ('PUT', 'PATCH'):
        if campaign.status == 'sending':
            return Response({'error': 'Campaign is being sent'}, status=status.HTTP_400_BAD_REQUEST)
        serializer = CampaignSerializer(campaign, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            create_audit_log(request=request, action='update', model_name='Campaign', object_id=campaign.id,
                             object_name=campaign.name, changes=request.data)
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        if campaign.status == 'sending':
            return Response({'error': 'Campaign is being sent'}, status=status.HTTP_400_BAD_REQUEST)
        campaign.delete()
        create_audit_log(request=request, action='delete', model_name='Campaign', object_id=pk,
                         object_name=campaign.name)
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsAuthenticated, HasRolePermission('campaigns')])
def campaign_send(request, pk):
    """Start sending a draft (or previously failed) campaign"""
    campaign = get_object_or_404(Campaign, pk=pk)
    try:
        campaign = start_campaign(campaign, user=request.user)
    except CampaignError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
    return Response(CampaignSerializer(campaign).data, status=status.HTTP_202_ACCEPTED)


@api_view(['GET'])
@permission_classes([IsAuthenticated, HasRolePermission('campaigns')])
def campaign_logs(request, pk):
    campaign = get_object_or_404(Campaign, pk=pk)
    queryset = campaign.logs.all()
    if request.query_params.get('status'):
        queryset = queryset.filter(status=request.query_params['status'])
    return Response(paginate(request, queryset.order_by('-created_at'), CampaignLogSerializer))
