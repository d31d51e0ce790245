"""
RBAC vocabulary - the closed sets the permission engine is built on.

Operations are fixed: every resource in the permission matrix is governed by
exactly the four CRUD verbs below, and none can be added at runtime.

Roles and resources are NOT fixed here. They come from the permission
configuration (see permissions_loader.py) so that the backend and every
client evaluate the same data. The StandardRole names below are only the
tiers that PermissionService exposes as named checks (is_manager, ...).
"""
from __future__ import annotations

from enum import Enum
from typing import Final


class CrudOperation(str, Enum):
    """The four operations a permission rule can govern."""
    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"


# Order matters: permission listings are reported in this order
CRUD_OPERATIONS: Final[tuple[str, ...]] = tuple(op.value for op in CrudOperation)


class StandardRole(str, Enum):
    """Role tiers with dedicated convenience checks."""
    ADMIN = "admin"
    MANAGER = "manager"
    DISPATCHER = "dispatcher"
    TECHNICIAN = "technician"
    CLIENT = "client"


def normalize_role_name(role: object) -> str | None:
    """Lower-case a role name, or return None when it cannot name a role.

    Surrounding whitespace is NOT stripped: " admin " is not a role name.
    """
    if not isinstance(role, str) or not role:
        return None
    if role != role.strip():
        return None
    return role.lower()


def normalize_operation(operation: object) -> str | None:
    """Return the operation key for a CrudOperation member or a plain string."""
    if isinstance(operation, CrudOperation):
        return operation.value
    if isinstance(operation, str) and operation:
        return operation
    return None
