"""Role and sub-user permission checks applied before privileged writes."""

from fastapi import Depends

from bfood.exceptions import ForbiddenException
from bfood.models.enums import UserRole
from bfood.modules.auth.auth import AuthenticatedUser, get_current_user

# Sub-user permission names
PERM_CREATE_ORDERS = "can_create_orders"
PERM_VIEW_ORDERS = "can_view_orders"
PERM_MANAGE_PAYMENTS = "can_manage_payments"


def require_restaurant(user: AuthenticatedUser) -> None:
    if user.role != UserRole.RESTAURANT:
        raise ForbiddenException("This action requires a restaurant account")


def require_supplier(user: AuthenticatedUser) -> None:
    if user.role != UserRole.SUPPLIER:
        raise ForbiddenException("This action requires a supplier account")


def require_admin(user: AuthenticatedUser) -> None:
    if user.role != UserRole.ADMIN:
        raise ForbiddenException("This action requires an administrator")


def has_permission(user: AuthenticatedUser, permission: str) -> bool:
    """Account owners hold every permission; sub-users only those granted."""
    if not user.is_sub_user:
        return True
    return permission in user.permissions


def require_permission(permission: str):
    """Factory returning a FastAPI dependency that enforces a sub-user permission."""

    async def _check(
        user: AuthenticatedUser = Depends(get_current_user),
    ) -> AuthenticatedUser:
        if not has_permission(user, permission):
            raise ForbiddenException(f"Permission denied: {permission}")
        return user

    return _check
