"""
Authorization policy.

Pure decision functions, evaluated after authentication. Both return
ALLOW or a Forbidden carrying a message that is safe to show the caller.
"""

from typing import Iterable

from app.auth.outcomes import ALLOW, Decision, Forbidden, Principal
from app.models.user import UserRole


def require_role(principal: Principal, allowed_roles: Iterable[UserRole]) -> Decision:
    """Allow iff the principal's role is one of `allowed_roles`."""
    allowed = [UserRole(role) for role in allowed_roles]
    if principal.role in allowed:
        return ALLOW
    return Forbidden(
        f"Access denied. Required role: {' or '.join(role.value for role in allowed)}"
    )


def require_ownership_or_admin(principal: Principal, resource_owner_id: int) -> Decision:
    """Allow admins, and users acting on resources they own."""
    if principal.role == UserRole.ADMIN:
        return ALLOW
    if principal.id == resource_owner_id:
        return ALLOW
    return Forbidden("Not authorized to access this resource")
