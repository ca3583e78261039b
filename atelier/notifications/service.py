"""
Notification dispatch.

A trigger (ORDER_PLACED, PAYMENT_RECEIVED, ...) is rendered with the
templates configured for each channel and sent through SMSING:

- dual mode sends on every enabled channel that has an enabled template
- failover mode walks ``failover_order`` and stops at the first success

Every attempt is written to NotificationLog. Sending never raises; callers
fire and forget through ``dispatch_notification``.
"""
import logging
import re
import threading

from django.conf import settings
from django.core.mail import send_mail
from django.db import connection, transaction
from django.utils import timezone

from atelier.core.utils import format_amount, format_phone_number
from atelier.locations.utils import get_default_store
from .models import (
    NotificationSettings, NotificationTemplate, NotificationLog,
    ADMIN_TRIGGERS, CHANNEL_SMS, CHANNEL_WHATSAPP,
)
from .smsing import get_client, SendResult

logger = logging.getLogger(__name__)

PLACEHOLDER_RE = re.compile(r'\{(\w+)\}')
DEFAULT_FAILOVER_ORDER = [CHANNEL_WHATSAPP, CHANNEL_SMS]


def render_template(content, variables):
    """Replace {name} placeholders; unknown placeholders are left as they are"""
    def replace(match):
        key = match.group(1)
        if key not in variables:
            return match.group(0)
        value = variables[key]
        return '' if value is None else str(value)
    return PLACEHOLDER_RE.sub(replace, content or '')


def _split_name(full_name):
    parts = (full_name or '').split()
    if not parts:
        return 'Client', ''
    return parts[0], ' '.join(parts[1:])


def _store_variables(store):
    if store is None:
        store = get_default_store()
    whatsapp = format_phone_number(getattr(store, 'whatsapp_number', '') or getattr(store, 'phone', ''))
    return {
        'store_name': getattr(store, 'name', '') or '',
        'store_phone': getattr(store, 'phone', '') or '',
        'store_address': getattr(store, 'address', '') or '',
        'store_whatsapp': f"https://wa.me/{whatsapp}" if whatsapp else '',
        'store_url': settings.APP_BASE_URL,
    }


def build_order_variables(order):
    first_name, last_name = _split_name(order.billing_name)
    items = list(order.items.all())
    variables = {
        'customer_name': order.billing_name or 'Client',
        'billing_first_name': first_name,
        'billing_last_name': last_name,
        'billing_phone': order.billing_phone,
        'billing_email': order.billing_email or '',
        'billing_address': order.shipping_address,
        'billing_city': order.shipping_city,
        'billing_country': order.shipping_country,
        'order_number': order.order_number,
        'order_id': order.id,
        'order_date': timezone.localtime(order.created_at).strftime('%d/%m/%Y') if order.created_at else '',
        'order_status': order.status,
        'order_total': format_amount(order.total),
        'order_subtotal': format_amount(order.subtotal),
        'order_shipping': format_amount(order.shipping_cost),
        'order_discount': format_amount(order.discount),
        'order_product': ', '.join(item.product_name for item in items),
        'order_product_with_qty': ', '.join(f"{item.product_name} ({item.quantity}x)" for item in items),
        'order_items_count': len(items),
        'payment_method': order.get_payment_method_display() if order.payment_method else '',
        'payment_status': order.payment_status,
        'shipping_method': order.shipping_method_name or '',
        'tracking_number': order.tracking_number or '',
        'delivery_date': 'Sous 24-48h',
        'order_url': f"{settings.APP_BASE_URL}/account/orders/{order.id}",
    }
    invoice = getattr(order, 'invoice', None)
    if invoice is not None:
        variables['invoice_number'] = invoice.invoice_number
    return variables


def build_variables(trigger, context):
    """Collect template variables from the objects in the dispatch context"""
    context = context or {}
    order = context.get('order')
    store = context.get('store') or getattr(order, 'store', None)
    variables = _store_variables(store)

    if order is not None:
        variables.update(build_order_variables(order))

    product = context.get('product')
    if product is not None:
        variables.update({
            'product_name': product.name,
            'product_price': format_amount(product.price),
            'product_stock': product.stock,
            'low_stock_threshold': product.low_stock_threshold,
        })

    user = context.get('user')
    if user is not None:
        full_name = user.get_full_name() or user.username
        first_name, last_name = _split_name(full_name)
        variables.setdefault('customer_name', full_name)
        variables.setdefault('billing_first_name', first_name)
        variables.setdefault('billing_last_name', last_name)
        variables.setdefault('billing_phone', user.phone or '')
        variables.setdefault('billing_email', user.email or '')
        variables['registration_date'] = timezone.localtime(user.date_joined).strftime('%d/%m/%Y')

    invoice = context.get('invoice')
    if invoice is not None:
        variables.setdefault('customer_name', invoice.customer_name)
        variables.update({
            'invoice_number': invoice.invoice_number,
            'invoice_total': format_amount(invoice.total),
            'invoice_amount_paid': format_amount(invoice.amount_paid),
            'invoice_balance': format_amount(invoice.balance_due),
            'invoice_due_date': invoice.due_date.strftime('%d/%m/%Y') if invoice.due_date else '',
            'invoice_url': f"{settings.APP_BASE_URL}/invoices/{invoice.invoice_number}",
        })

    custom_order = context.get('custom_order')
    if custom_order is not None:
        variables.setdefault('customer_name', custom_order.customer_name)
        variables.update({
            'custom_order_number': custom_order.order_number,
            'custom_order_total': format_amount(custom_order.total_cost),
            'custom_order_balance': format_amount(custom_order.balance),
            'pickup_date': custom_order.pickup_date.strftime('%d/%m/%Y') if custom_order.pickup_date else '',
        })

    appointment = context.get('appointment')
    if appointment is not None:
        variables.setdefault('customer_name', appointment.customer_name)
        variables.update({
            'appointment_reference': appointment.reference,
            'appointment_date': appointment.date.strftime('%d/%m/%Y'),
            'appointment_time': appointment.time.strftime('%H:%M'),
            'appointment_service': appointment.appointment_type.name if appointment.appointment_type_id else '',
            'customer_phone': appointment.customer_phone,
        })

    if context.get('note_content'):
        variables['note_content'] = context['note_content']

    variables.update(context.get('variables') or {})
    return variables


def resolve_customer_phone(context):
    """Customer phone from the first object in the context that has one"""
    context = context or {}
    order = context.get('order')
    if order is not None:
        if order.user_id and (order.user.whatsapp_number or order.user.phone):
            return order.user.whatsapp_number or order.user.phone
        return order.billing_phone
    user = context.get('user')
    if user is not None and (user.whatsapp_number or user.phone):
        return user.whatsapp_number or user.phone
    for key in ('invoice', 'custom_order', 'appointment'):
        obj = context.get(key)
        if obj is not None and getattr(obj, 'customer_phone', None):
            return obj.customer_phone
    return None


def resolve_recipients(notification_settings, trigger, context=None, recipient=None):
    if notification_settings.test_mode and notification_settings.test_phone:
        return [notification_settings.test_phone]
    if trigger in ADMIN_TRIGGERS:
        return [phone for phone in (notification_settings.admin_phones or []) if phone]
    phone = recipient or resolve_customer_phone(context)
    return [phone] if phone else []


def send_via_channel(channel, to, content, client=None):
    client = client or get_client()
    if channel == CHANNEL_SMS:
        return client.send_sms(to, content)
    if channel == CHANNEL_WHATSAPP:
        return client.send_whatsapp(to, content)
    return SendResult(False, None, f"Unsupported channel {channel}")


def log_notification(trigger, channel, recipient, message, result, order_id=None, user_id=None, recipient_name=''):
    try:
        return NotificationLog.objects.create(
            trigger=trigger,
            channel=channel,
            recipient=format_phone_number(recipient) or str(recipient)[:30],
            recipient_name=(recipient_name or '')[:200],
            message=message,
            status='SENT' if result.success else 'FAILED',
            provider_message_id=result.message_id or '',
            error=result.error or '',
            order_id=order_id,
            user_id=user_id,
        )
    except Exception as e:
        logger.error(f"Failed to log notification {trigger}/{channel}: {str(e)}")
        return None


def _templates_for(trigger):
    return {
        template.channel: template
        for template in NotificationTemplate.objects.filter(trigger=trigger, enabled=True)
    }


def send_prepared(trigger, variables, recipients, order_id=None, user_id=None, send_mode=None, client=None):
    """
    Send an already rendered-variable notification to each recipient.

    Returns a dict: {success, results: [{recipient, channel, success, error}]}
    """
    notification_settings = NotificationSettings.load()
    templates = _templates_for(trigger)
    mode = send_mode or notification_settings.send_mode
    client = client or get_client()
    recipient_name = variables.get('customer_name', '') if trigger not in ADMIN_TRIGGERS else 'Admin'
    results = []

    if not recipients:
        logger.warning(f"Notification {trigger} skipped: no recipient phone")
        return {'success': False, 'results': results, 'error': 'Recipient phone number not found'}
    if not templates:
        logger.info(f"Notification {trigger} skipped: no enabled template")
        return {'success': False, 'results': results, 'error': 'No enabled template'}

    for recipient in recipients:
        if mode == 'dual':
            channels = [CHANNEL_SMS, CHANNEL_WHATSAPP]
        else:
            channels = notification_settings.failover_order or DEFAULT_FAILOVER_ORDER

        for channel in channels:
            if not notification_settings.channel_enabled(channel) or channel not in templates:
                continue
            content = render_template(templates[channel].content, variables)
            try:
                result = send_via_channel(channel, recipient, content, client=client)
            except Exception as e:
                logger.error(f"Notification {trigger} via {channel} raised: {str(e)}")
                result = SendResult(False, None, str(e))
            log_notification(trigger, channel, recipient, content, result,
                             order_id=order_id, user_id=user_id, recipient_name=recipient_name)
            results.append({'recipient': recipient, 'channel': channel,
                            'success': result.success, 'error': result.error})
            if mode != 'dual' and result.success:
                break

    success = any(entry['success'] for entry in results)
    if not success:
        logger.warning(f"Notification {trigger} failed on every channel")
    return {'success': success, 'results': results}


def send_notification(trigger, context=None, recipient=None, send_mode=None, client=None):
    """Build variables and recipients for a trigger and send it synchronously"""
    try:
        notification_settings = NotificationSettings.load()
        variables = build_variables(trigger, context)
        recipients = resolve_recipients(notification_settings, trigger, context, recipient)
        order = (context or {}).get('order')
        user = (context or {}).get('user')
        return send_prepared(
            trigger, variables, recipients,
            order_id=order.id if order is not None else None,
            user_id=user.id if user is not None else None,
            send_mode=send_mode, client=client,
        )
    except Exception as e:
        logger.error(f"Error sending notification {trigger}: {str(e)}")
        return {'success': False, 'results': [], 'error': str(e)}


def _send_in_background(trigger, variables, recipients, order_id, user_id):
    try:
        send_prepared(trigger, variables, recipients, order_id=order_id, user_id=user_id)
    except Exception as e:
        logger.error(f"Background notification {trigger} failed: {str(e)}")
    finally:
        connection.close()


def dispatch_notification(trigger, context=None, recipient=None):
    """
    Fire and forget a notification.

    Variables are captured now; sending happens after the current transaction
    commits, on a daemon thread (inline when NOTIFICATIONS_ASYNC is off).
    """
    if not getattr(settings, 'NOTIFICATIONS_ASYNC', True):
        return send_notification(trigger, context, recipient)

    try:
        notification_settings = NotificationSettings.load()
        variables = build_variables(trigger, context)
        recipients = resolve_recipients(notification_settings, trigger, context, recipient)
        order = (context or {}).get('order')
        user = (context or {}).get('user')
        order_id = order.id if order is not None else None
        user_id = user.id if user is not None else None
    except Exception as e:
        logger.error(f"Could not prepare notification {trigger}: {str(e)}")
        return None

    def start():
        thread = threading.Thread(
            target=_send_in_background,
            args=(trigger, variables, recipients, order_id, user_id),
        )
        thread.daemon = True
        thread.start()

    transaction.on_commit(start)
    return None


def send_email(to, subject, body):
    """Plain-text email through Django's mail backend; returns True on success"""
    if not to:
        return False
    try:
        send_mail(subject, body, settings.DEFAULT_FROM_EMAIL, [to], fail_silently=False)
        logger.info(f"Email '{subject}' sent to {to}")
        return True
    except Exception as e:
        logger.error(f"Email '{subject}' to {to} failed: {str(e)}")
        return False
