"""
Bulk campaign sending.

Recipients are either every active customer with a phone number or the
campaign's custom list. Each message is personalised with
``{customer_name}`` and sent through SMSING on the campaign channel; every
attempt is written to CampaignLog and NotificationLog.
"""
import logging
import threading

from django.conf import settings
from django.db import connection, transaction
from django.utils import timezone

from atelier.core.models import User
from atelier.core.utils import create_audit_log, format_phone_number
from atelier.notifications.models import CHANNEL_WHATSAPP
from atelier.notifications.service import render_template, send_via_channel, log_notification
from atelier.notifications.smsing import get_client, SendResult
from .models import Campaign, CampaignLog

logger = logging.getLogger(__name__)

DEFAULT_CUSTOMER_NAME = 'Client'
SENDABLE_STATUSES = ('draft', 'failed')


class CampaignError(Exception):
    """Raised when a campaign cannot be sent"""


def _parse_custom_recipient(entry):
    if isinstance(entry, dict):
        return entry.get('phone') or '', entry.get('name') or ''
    return str(entry), ''


def resolve_campaign_recipients(campaign):
    """Return a de-duplicated list of (phone, name) tuples"""
    if campaign.recipient_type == 'custom':
        candidates = [_parse_custom_recipient(entry) for entry in campaign.custom_recipients or []]
    else:
        customers = User.objects.filter(role=User.ROLE_CUSTOMER, is_active=True).order_by('id')
        candidates = []
        for customer in customers:
            if campaign.channel == CHANNEL_WHATSAPP:
                phone = customer.whatsapp_number or customer.phone
            else:
                phone = customer.phone or customer.whatsapp_number
            candidates.append((phone, customer.display_name))

    recipients = []
    seen = set()
    for phone, name in candidates:
        normalized = format_phone_number(phone)
        if not normalized or normalized in seen:
            continue
        seen.add(normalized)
        recipients.append((normalized, name))
    return recipients


def run_campaign(campaign_id, recipients, client=None):
    """Send to each recipient and settle the campaign status"""
    campaign = Campaign.objects.get(pk=campaign_id)
    client = client or get_client()
    sent = failed = 0

    for phone, name in recipients:
        content = render_template(campaign.message, {'customer_name': name or DEFAULT_CUSTOMER_NAME})
        try:
            result = send_via_channel(campaign.channel, phone, content, client=client)
        except Exception as e:
            logger.error(f"Campaign {campaign.id} send to {phone} raised: {str(e)}")
            result = SendResult(False, None, str(e))
        CampaignLog.objects.create(
            campaign=campaign,
            recipient=phone,
            recipient_name=(name or '')[:200],
            status='SENT' if result.success else 'FAILED',
            provider_message_id=result.message_id or '',
            error=result.error or '',
        )
        log_notification('CAMPAIGN', campaign.channel, phone, content, result, recipient_name=name)
        if result.success:
            sent += 1
        else:
            failed += 1

    campaign.sent_count = sent
    campaign.failed_count = failed
    campaign.status = 'failed' if sent == 0 else 'sent'
    campaign.sent_at = timezone.now()
    campaign.save(update_fields=['sent_count', 'failed_count', 'status', 'sent_at', 'updated_at'])
    logger.info(f"Campaign {campaign.id} finished: {sent} sent, {failed} failed")
    return campaign


def _run_in_background(campaign_id, recipients):
    try:
        run_campaign(campaign_id, recipients)
    except Exception as e:
        logger.error(f"Campaign {campaign_id} failed: {str(e)}")
        Campaign.objects.filter(pk=campaign_id, status='sending').update(status='failed')
    finally:
        connection.close()


def start_campaign(campaign, user=None):
    """
    Mark the campaign as sending and send it after the current transaction
    commits (inline when NOTIFICATIONS_ASYNC is off).
    """
    if campaign.status not in SENDABLE_STATUSES:
        raise CampaignError(f"Campaign cannot be sent while {campaign.get_status_display().lower()}")

    recipients = resolve_campaign_recipients(campaign)
    if not recipients:
        raise CampaignError("No recipient with a valid phone number")

    with transaction.atomic():
        locked = Campaign.objects.select_for_update().get(pk=campaign.pk)
        if locked.status not in SENDABLE_STATUSES:
            raise CampaignError("Campaign is already being sent")
        locked.status = 'sending'
        locked.total_recipients = len(recipients)
        locked.sent_count = 0
        locked.failed_count = 0
        locked.save(update_fields=['status', 'total_recipients', 'sent_count', 'failed_count', 'updated_at'])

    create_audit_log(action='campaign_send', model_name='Campaign', object_id=campaign.id, user=user,
                     object_name=campaign.name,
                     changes={'channel': campaign.channel, 'recipients': len(recipients)})

    if not getattr(settings, 'NOTIFICATIONS_ASYNC', True):
        return run_campaign(campaign.id, recipients)

    def start():
        thread = threading.Thread(target=_run_in_background, args=(campaign.id, recipients))
        thread.daemon = True
        thread.start()

    transaction.on_commit(start)
    campaign.refresh_from_db()
    return campaign
