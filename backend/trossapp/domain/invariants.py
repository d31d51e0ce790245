"""
Permission configuration invariants.

The permission table is checked once, when it is loaded. A table that breaks
any rule below must stop the process from serving requests.

INVARIANTS:
1. Role priorities - positive integers, unique across all roles
2. Rule references - every rule names a defined role and carries its priority
3. Completeness - every resource defines create, read, update and delete
4. Closed operations - no operation outside the four CRUD verbs
5. RLS references - row-level security keys name defined roles
"""

import logging
from typing import Any

from ..auth.rbac_contract import CRUD_OPERATIONS

logger = logging.getLogger(__name__)


class InvariantViolation(Exception):
    """
    Raised when a domain invariant is violated.

    This is a domain-level error that should be handled explicitly,
    never silently ignored.
    """

    def __init__(self, message: str, *, invariant: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.invariant = invariant
        self.details = details or {}

        logger.error(
            "invariant_violation invariant=%s message=%s details=%s",
            invariant,
            message,
            details,
        )


class PermissionConfigError(InvariantViolation):
    """The permission configuration is malformed and cannot be served."""


def validate_role_priorities(roles: dict[str, int]) -> None:
    """
    INVARIANT-1: Role priorities are unique positive integers.

    Args:
        roles: Mapping of role name to priority

    Raises:
        PermissionConfigError: If no roles exist, a name is malformed,
            or a priority is invalid or duplicated
    """
    if not roles:
        raise PermissionConfigError(
            "At least one role must be defined",
            invariant="INVARIANT-1.roles_present",
        )

    seen: dict[int, str] = {}
    for role_name, priority in roles.items():
        if not role_name or role_name != role_name.strip() or role_name != role_name.lower():
            raise PermissionConfigError(
                f'Role name "{role_name}" must be lower-case without surrounding whitespace',
                invariant="INVARIANT-1.role_name",
                details={"role": role_name},
            )
        if isinstance(priority, bool) or not isinstance(priority, int) or priority < 1:
            raise PermissionConfigError(
                f'Invalid priority for role "{role_name}"',
                invariant="INVARIANT-1.priority_positive",
                details={"role": role_name, "priority": priority},
            )
        if priority in seen:
            raise PermissionConfigError(
                f"Duplicate priority {priority} - each role must have unique priority",
                invariant="INVARIANT-1.priority_unique",
                details={"priority": priority, "roles": [seen[priority], role_name]},
            )
        seen[priority] = role_name


def validate_resource_operations(resource_name: str, operations: set[str]) -> None:
    """
    INVARIANT-3 and INVARIANT-4: A resource defines exactly the CRUD verbs.

    Raises:
        PermissionConfigError: If an operation is missing or unknown
    """
    for op in CRUD_OPERATIONS:
        if op not in operations:
            raise PermissionConfigError(
                f'Missing "{op}" permission for resource "{resource_name}"',
                invariant="INVARIANT-3.crud_complete",
                details={"resource": resource_name, "operation": op},
            )

    unknown = sorted(operations.difference(CRUD_OPERATIONS))
    if unknown:
        raise PermissionConfigError(
            f'Unknown operation(s) {", ".join(unknown)} for resource "{resource_name}"',
            invariant="INVARIANT-4.closed_operations",
            details={"resource": resource_name, "operations": unknown},
        )


def validate_rule_reference(
    resource_name: str,
    operation: str,
    minimum_role: str,
    minimum_priority: int,
    roles: dict[str, int],
) -> None:
    """
    INVARIANT-2: A rule points at a defined role and repeats its priority.

    Raises:
        PermissionConfigError: If the role is undefined or priorities disagree
    """
    if minimum_role not in roles:
        raise PermissionConfigError(
            f'Invalid minimumRole "{minimum_role}" for {resource_name}.{operation}',
            invariant="INVARIANT-2.rule_role_defined",
            details={"resource": resource_name, "operation": operation, "role": minimum_role},
        )

    expected_priority = roles[minimum_role]
    if minimum_priority != expected_priority:
        raise PermissionConfigError(
            f"Priority mismatch for {resource_name}.{operation}: "
            f"minimumPriority={minimum_priority} but "
            f'role "{minimum_role}" has priority={expected_priority}',
            invariant="INVARIANT-2.rule_priority_matches",
            details={
                "resource": resource_name,
                "operation": operation,
                "minimum_priority": minimum_priority,
                "expected_priority": expected_priority,
            },
        )


def validate_row_level_security(
    resource_name: str,
    policies: dict[str, str | None] | None,
    roles: dict[str, int],
) -> None:
    """
    INVARIANT-5: Row-level security entries are keyed by defined roles.

    Raises:
        PermissionConfigError: If a key names an unknown role
    """
    if not policies:
        return

    for role_name in policies:
        if role_name not in roles:
            raise PermissionConfigError(
                f'Row-level security for "{resource_name}" references unknown role "{role_name}"',
                invariant="INVARIANT-5.rls_role_defined",
                details={"resource": resource_name, "role": role_name},
            )
