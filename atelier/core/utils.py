"""Shared helpers: audit logging, numbering, phone numbers, pagination, periods"""
from datetime import datetime, timedelta
import logging
import re

from django.core.paginator import Paginator
from django.utils import timezone

from .models import AuditLog

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100
COUNTRY_CODE = '225'


def get_client_ip(request):
    """Extract client IP address from request"""
    if not request or not hasattr(request, 'META'):
        return None
    x_forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
    if x_forwarded_for:
        ip = x_forwarded_for.split(',')[0].strip()
    else:
        ip = request.META.get('REMOTE_ADDR')
    return ip or None


def create_audit_log(request=None, action=None, model_name=None, object_id=None,
                     changes=None, user=None, object_name=None, object_reference=None):
    """
    Create an audit log entry

    Args:
        request: Django request object (for user and IP) - optional if user is provided
        action: Action type (create, update, delete, status_change, etc.)
        model_name: Name of the model being acted upon
        object_id: ID of the object (as string)
        changes: Dictionary of changes made
        user: Optional user override (defaults to request.user if request provided)
        object_name: Human-readable name of the object
        object_reference: Reference identifier (e.g., order number, invoice number)
    """
    try:
        audit_user = None
        if user:
            audit_user = user
        elif request and hasattr(request, 'user'):
            audit_user = request.user

        ip_address = get_client_ip(request) if request else None

        if not action or not model_name or not object_id:
            logger.warning(f"Audit log creation skipped: missing required fields (action={action}, model_name={model_name}, object_id={object_id})")
            return None

        return AuditLog.objects.create(
            user=audit_user if audit_user and audit_user.is_authenticated else None,
            action=action,
            model_name=model_name,
            object_id=str(object_id),
            object_name=object_name,
            object_reference=object_reference,
            changes=changes or {},
            ip_address=ip_address
        )
    except Exception as e:
        # Don't fail the main operation if audit logging fails
        logger.error(f"Failed to create audit log: {str(e)}")
        return None


def generate_sequence_number(prefix, model, field, date=None):
    """
    Generate the next daily sequence number, e.g. FAC-190526-0001.

    The counter restarts every day and is derived from the number of rows
    whose ``field`` already carries today's PREFIX-DDMMYY- stem.
    """
    date = date or timezone.localdate()
    stem = f"{prefix}-{date.strftime('%d%m%y')}-"
    count = model.objects.filter(**{f'{field}__startswith': stem}).count()
    candidate = f"{stem}{count + 1:04d}"
    # Deleted rows can leave gaps below the count; skip numbers already taken
    while model.objects.filter(**{field: candidate}).exists():
        count += 1
        candidate = f"{stem}{count + 1:04d}"
    return candidate


def format_phone_number(phone):
    """
    Normalize a phone number to international digits (Côte d'Ivoire by default).

    '07 59 54 54 10' -> '2250759545410', '+225 0759545410' -> '2250759545410'
    """
    if not phone:
        return ''
    digits = re.sub(r'\D', '', str(phone))
    if digits.startswith('00'):
        digits = digits[2:]
    if digits.startswith(COUNTRY_CODE):
        return digits
    # Local numbers: 10 digits since 2021, 8 digits before
    if len(digits) in (8, 10):
        return f"{COUNTRY_CODE}{digits}"
    return digits


def format_amount(amount):
    """Render a money amount for customer messages, e.g. '15000 CFA'"""
    try:
        value = int(round(float(amount or 0)))
    except (TypeError, ValueError):
        value = 0
    return f"{value} CFA"


def paginate(request, queryset, serializer_class, context=None, extra=None):
    """
    Paginate a queryset using ?page= and ?limit= and serialize the page.

    Returns the response payload dict.
    """
    try:
        page = max(int(request.query_params.get('page', 1)), 1)
    except (TypeError, ValueError):
        page = 1
    try:
        limit = int(request.query_params.get('limit', DEFAULT_PAGE_SIZE))
    except (TypeError, ValueError):
        limit = DEFAULT_PAGE_SIZE
    limit = min(max(limit, 1), MAX_PAGE_SIZE)

    paginator = Paginator(queryset, limit)
    page_obj = paginator.get_page(page)
    serializer = serializer_class(page_obj, many=True, context=context or {'request': request})
    payload = {
        'results': serializer.data,
        'count': paginator.count,
        'next': page_obj.next_page_number() if page_obj.has_next() else None,
        'previous': page_obj.previous_page_number() if page_obj.has_previous() else None,
        'page': page_obj.number,
        'page_size': limit,
        'total_pages': paginator.num_pages,
    }
    if extra:
        payload.update(extra)
    return payload


def parse_date(value):
    """Parse a YYYY-MM-DD query parameter, returning None when invalid"""
    if not value:
        return None
    try:
        return datetime.strptime(value, '%Y-%m-%d').date()
    except (TypeError, ValueError):
        return None


def get_period_range(period, date_from=None, date_to=None):
    """
    Resolve a reporting period to an inclusive (start_date, end_date) pair.

    Supported periods: today, yesterday, week, month, year, custom.
    Anything else means the last 30 days.
    """
    today = timezone.localdate()
    if period == 'today':
        return today, today
    if period == 'yesterday':
        yesterday = today - timedelta(days=1)
        return yesterday, yesterday
    if period == 'week':
        return today - timedelta(days=today.weekday()), today
    if period == 'month':
        return today.replace(day=1), today
    if period == 'year':
        return today.replace(month=1, day=1), today
    if period == 'custom':
        start = parse_date(date_from) or today - timedelta(days=30)
        end = parse_date(date_to) or today
        return start, end
    return today - timedelta(days=30), today
