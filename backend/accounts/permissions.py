from rest_framework import permissions


def user_role(user) -> str:
    """Role used for workflow checks; superusers always act as super_admin."""
    if user is None or not user.is_authenticated:
        return ''
    if user.is_superuser:
        return 'super_admin'
    return getattr(user, 'role', '') or ''


class IsManagerOrFinance(permissions.BasePermission):
    """
    Custom permission to only allow manager or finance users to perform certain actions.
    """
    def has_permission(self, request, view):
        return user_role(request.user) in ['manager', 'finance', 'admin', 'super_admin']

class CanConfigureCriteria(permissions.BasePermission):
    """
    Read access for any signed-in user; only managers and admins may change
    complexity criteria.
    """
    def has_permission(self, request, view):
        if not request.user or not request.user.is_authenticated:
            return False
        if request.method in permissions.SAFE_METHODS:
            return True
        return user_role(request.user) in ['manager', 'admin', 'super_admin']
