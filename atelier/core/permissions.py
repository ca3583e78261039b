"""
Role based access control for the back-office.

Each role maps to the list of back-office sections it may use; ADMIN and
MANAGER hold the wildcard and can use every section.
"""
from rest_framework.permissions import BasePermission

ALL_PERMISSIONS = '*'

STAFF_PERMISSIONS = [
    'dashboard',
    'customers', 'customers.create', 'customers.contact',
    'appointments', 'appointments.manage', 'appointments.availability',
    'custom-orders', 'production', 'materials',
    'invoices', 'invoices.create', 'receipts', 'sales',
    'orders', 'orders.create',
    'products', 'categories', 'inventory',
    'campaigns', 'notifications',
]

TAILOR_PERMISSIONS = [
    'dashboard',
    'appointments',
    'custom-orders', 'production',
]

ROLE_PERMISSIONS = {
    'CUSTOMER': [],
    'ADMIN': ALL_PERMISSIONS,
    'MANAGER': ALL_PERMISSIONS,
    'STAFF': STAFF_PERMISSIONS,
    'TAILOR': TAILOR_PERMISSIONS,
}


def get_role_permissions(role):
    """Return the permission list for a role ('*' for full access)"""
    return ROLE_PERMISSIONS.get(role, [])


def has_permission(role, permission):
    perms = ROLE_PERMISSIONS.get(role)
    if not perms:
        return False
    if perms == ALL_PERMISSIONS:
        return True
    return permission in perms


def has_any_permission(role, permissions):
    return any(has_permission(role, perm) for perm in permissions)


def is_staff_role(role):
    """Any role other than CUSTOMER can enter the back-office"""
    return role in ROLE_PERMISSIONS and role != 'CUSTOMER'


def user_has_permission(user, permission):
    if not user or not user.is_authenticated:
        return False
    if user.is_superuser:
        return True
    return has_permission(getattr(user, 'role', None), permission)


def user_is_staff(user):
    if not user or not user.is_authenticated:
        return False
    return user.is_superuser or is_staff_role(getattr(user, 'role', None))


class IsBackOfficeUser(BasePermission):
    """Allow any authenticated non-customer user"""
    message = 'Back-office access required.'

    def has_permission(self, request, view):
        return user_is_staff(request.user)


def HasRolePermission(permission):
    """
    Build a DRF permission class requiring a role permission.

    Usage:
        @permission_classes([IsAuthenticated, HasRolePermission('orders')])
    """
    class _HasRolePermission(BasePermission):
        message = f"You do not have the '{permission}' permission."

        def has_permission(self, request, view):
            return user_has_permission(request.user, permission)

    _HasRolePermission.__name__ = f"HasRolePermission_{permission.replace('-', '_').replace('.', '_')}"
    return _HasRolePermission
