from rest_framework import permissions

STORE_ROLES = ['ADMIN', 'STAFF']


class IsStoreStaff(permissions.BasePermission):
    """
    Generic permission for any authenticated pharmacy staff.
    Roles: ADMIN, STAFF
    """
    def has_permission(self, request, view):
        if not (request.user and request.user.is_authenticated):
            return False
        return request.user.role in STORE_ROLES or request.user.is_superuser


class IsAdminRole(permissions.BasePermission):
    """
    Strict permission for ADMIN role only.
    """
    def has_permission(self, request, view):
        return bool(request.user and request.user.is_authenticated and (request.user.role == 'ADMIN' or request.user.is_superuser))
