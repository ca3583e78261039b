"""Tenant resolution helpers"""
from django.db.models import Q

from .models import Store

STORE_HEADER = 'HTTP_X_STORE_CODE'


def get_default_store():
    return Store.objects.filter(is_active=True, is_default=True).first()


def get_request_store(request):
    """
    Resolve the store a request operates on.

    Order: the authenticated user's store, the X-Store-Code header, the
    default store. Returns None when nothing matches.
    """
    user = getattr(request, 'user', None)
    if user is not None and user.is_authenticated and getattr(user, 'store_id', None):
        return user.store

    code = request.META.get(STORE_HEADER) if hasattr(request, 'META') else None
    if code:
        store = Store.objects.filter(code=code, is_active=True).first()
        if store:
            return store

    return get_default_store()


def filter_by_store(queryset, store, field='store'):
    """Scope a queryset to a store; rows without a store stay visible"""
    if store is None:
        return queryset
    return queryset.filter(Q(**{field: store}) | Q(**{f'{field}__isnull': True}))
