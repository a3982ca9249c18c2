"""
Actor context and role checks.

Every service operation receives the acting user explicitly instead of
reading a session from request state.
"""
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from institute_crm.core.exceptions import ForbiddenError


class Role(str, Enum):
    ADMIN = "admin"
    EXECUTIVE = "executive"
    TELECALLER = "telecaller"


ROLE_HIERARCHY = {
    Role.TELECALLER: 1,
    Role.EXECUTIVE: 2,
    Role.ADMIN: 3,
}


def has_permission(user_role: Optional[Role], required_role: Role) -> bool:
    """True when user_role sits at or above required_role."""
    if not user_role:
        return False
    return ROLE_HIERARCHY.get(user_role, 0) >= ROLE_HIERARCHY.get(required_role, 0)


@dataclass(frozen=True)
class ActorContext:
    """Who is performing an operation."""
    user_id: uuid.UUID
    role: Role
    branch_id: Optional[uuid.UUID] = None

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    @property
    def is_telecaller(self) -> bool:
        return self.role == Role.TELECALLER

    @property
    def can_assign(self) -> bool:
        return has_permission(self.role, Role.EXECUTIVE)

    def require_admin(self, message: str = "Access denied") -> None:
        if not self.is_admin:
            raise ForbiddenError(message)

    def require_executive(self, message: str = "Access denied") -> None:
        if not self.can_assign:
            raise ForbiddenError(message)


def ensure_enquiry_access(actor: ActorContext, enquiry) -> None:
    """Telecallers may only touch enquiries assigned to them."""
    if actor.is_telecaller and enquiry.assigned_to_user_id != actor.user_id:
        raise ForbiddenError("Access denied")


def enquiry_list_scope(actor: ActorContext) -> Tuple[Optional[uuid.UUID], Optional[uuid.UUID]]:
    """
    (branch_id, assigned_to_user_id) restriction for enquiry and job order lists.
    Admins see everything; others see their branch, or only their own
    enquiries when they have no branch.
    """
    if actor.is_admin:
        return None, None
    if actor.branch_id:
        return actor.branch_id, None
    return None, actor.user_id


def record_list_scope(actor: ActorContext) -> Tuple[Optional[uuid.UUID], Optional[uuid.UUID]]:
    """
    (branch_id, assigned_to_user_id) restriction for follow-ups, call logs
    and activities, applied through the parent enquiry.
    """
    if actor.is_telecaller:
        return None, actor.user_id
    if not actor.is_admin and actor.branch_id:
        return actor.branch_id, None
    return None, None
