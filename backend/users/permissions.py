from rest_framework import permissions

from core.exceptions import TenantNotFound
from core.tenant_context import get_current_tenant
from orders.repository import OrderRepository


class IsTenantMember(permissions.BasePermission):
    """
    Allow access only when the authenticated user belongs to the tenant bound
    to this request. A role never grants anything outside the user's tenant.
    A deactivated tenant gets TenantNotFound for reads as well as writes.
    """
    message = "You do not belong to the tenant bound to this request."

    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated:
            return False
        tenant_id = get_current_tenant()
        if tenant_id is None or user.tenant_id != tenant_id:
            return False
        if OrderRepository().find_active_tenant(tenant_id) is None:
            raise TenantNotFound()
        return True


class IsTenantAdmin(IsTenantMember):
    """Tenant member with the ADMIN role."""
    message = "Only tenant admins can perform this action."

    def has_permission(self, request, view):
        return super().has_permission(request, view) and request.user.is_tenant_admin
