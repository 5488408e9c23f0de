"""Acting user supplied by the identity provider."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from uuid import UUID

from cleaning_billing.errors import PermissionDenied
from cleaning_billing.queries.filters import ALL_OWNERS, OwnerScope


class Role(str, Enum):
    """User roles."""

    ADMINISTRATOR = "administrator"
    EMPLOYEE = "employee"


@dataclass(frozen=True)
class Actor:
    """Identity of the user invoking a workflow.

    Trusted as given; authentication happens upstream.
    """

    user_id: UUID
    role: Role
    active: bool = True

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMINISTRATOR

    def ensure_active(self) -> None:
        if not self.active:
            raise PermissionDenied("Your account is inactive")

    def ensure_admin(self) -> None:
        self.ensure_active()
        if not self.is_admin:
            raise PermissionDenied("Only administrators can do this")

    def ensure_can_act_for(self, user_id: UUID) -> None:
        """Employees act only for themselves; administrators for anyone."""
        self.ensure_active()
        if not self.is_admin and user_id != self.user_id:
            raise PermissionDenied("You can only manage your own records")

    def scope_for(self, requested: UUID | OwnerScope | None = None) -> UUID | OwnerScope:
        """Owner scope for a read.

        Employees are always scoped to themselves. Administrators get the
        requested user, or every owner when nothing was requested.
        """
        self.ensure_active()
        if not self.is_admin:
            if isinstance(requested, UUID) and requested != self.user_id:
                raise PermissionDenied("You can only view your own records")
            return self.user_id
        if requested is None:
            return ALL_OWNERS
        return requested
