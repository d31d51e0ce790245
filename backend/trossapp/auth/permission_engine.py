"""
Permission engine - pure access decisions over a loaded PermissionConfig.

Every method is total: malformed input (None, empty strings, wrong types,
unknown names) produces a denial (False / None / empty) and never raises.
Role names are matched case-insensitively. Resource and operation names
must match the configuration keys exactly.
"""
from __future__ import annotations

import threading

from ..schemas.permission import PermissionConfig, PermissionResult
from .permissions_loader import get_permission_matrix, load_permissions
from .rbac_contract import CRUD_OPERATIONS, CrudOperation, normalize_operation, normalize_role_name


class PermissionEngine:
    """Answers "can role R do operation O on resource X?" for one config."""

    def __init__(self, config: PermissionConfig):
        self.config = config
        self._priorities: dict[str, int] = {
            name: role.priority for name, role in config.roles.items()
        }
        self._role_by_priority: dict[int, str] = {
            priority: name for name, priority in self._priorities.items()
        }
        # Decisions read these snapshots, never config.resources
        self._matrix: dict[str, dict[str, int]] = get_permission_matrix(config)
        self._row_level_security: dict[str, dict[str, str | None]] = {
            resource_name: dict(resource.row_level_security or {})
            for resource_name, resource in config.resources.items()
        }

    @property
    def roles(self) -> list[str]:
        """Role names, most privileged first."""
        return sorted(self._priorities, key=self._priorities.__getitem__, reverse=True)

    @property
    def resources(self) -> list[str]:
        return list(self._matrix)

    @property
    def top_role(self) -> str:
        return self.roles[0]

    def get_role_priority(self, role: object) -> int | None:
        normalized = normalize_role_name(role)
        if normalized is None:
            return None
        return self._priorities.get(normalized)

    def _required_priority(self, resource: object, operation: object) -> int | None:
        if not isinstance(resource, str):
            return None
        op = normalize_operation(operation)
        if op is None:
            return None
        return self._matrix.get(resource, {}).get(op)

    def has_permission(self, role: object, resource: object, operation: object) -> bool:
        """True iff the role's priority is at least the rule's minimum (inclusive)."""
        user_priority = self.get_role_priority(role)
        if user_priority is None:
            return False

        required_priority = self._required_priority(resource, operation)
        if required_priority is None:
            return False

        return user_priority >= required_priority

    def check_permission(self, role: object, resource: object, operation: object) -> PermissionResult:
        """Like has_permission, but explains a denial."""
        if normalize_role_name(role) is None:
            return PermissionResult.denied("No role assigned to user")

        user_priority = self.get_role_priority(role)
        if user_priority is None:
            return PermissionResult.denied(f"Unknown role: {role}")

        if not isinstance(resource, str) or resource not in self._matrix:
            return PermissionResult.denied(f"Unknown resource: {resource}")

        required_priority = self._required_priority(resource, operation)
        if required_priority is None:
            return PermissionResult.denied(f"Unknown operation: {operation}")

        if user_priority < required_priority:
            minimum_role = self._role_by_priority[required_priority]
            return PermissionResult.denied(
                f"Minimum role required: {minimum_role} (you have: {normalize_role_name(role)})",
                minimum_role=minimum_role,
            )

        return PermissionResult.granted()

    def has_minimum_role(self, user_role: object, required_role: object) -> bool:
        user_priority = self.get_role_priority(user_role)
        required_priority = self.get_role_priority(required_role)

        if user_priority is None or required_priority is None:
            return False

        return user_priority >= required_priority

    def get_minimum_role(self, resource: object, operation: object) -> str | None:
        required_priority = self._required_priority(resource, operation)
        if required_priority is None:
            return None
        return self._role_by_priority.get(required_priority)

    def get_allowed_operations(self, role: object, resource: object) -> list[str]:
        """Operations the role may perform on one resource, in CRUD order."""
        return [
            op for op in CRUD_OPERATIONS
            if self.has_permission(role, resource, op)
        ]

    def can_access_resource(self, role: object, resource: object) -> bool:
        return bool(self.get_allowed_operations(role, resource))

    def get_role_permissions(self, role: object) -> dict[str, list[str]]:
        """Resource -> permitted operations. Resources with none are omitted."""
        if self.get_role_priority(role) is None:
            return {}

        permissions: dict[str, list[str]] = {}
        for resource in self._matrix:
            allowed = self.get_allowed_operations(role, resource)
            if allowed:
                permissions[resource] = allowed
        return permissions

    def get_row_level_security(self, role: object, resource: object) -> str | None:
        normalized = normalize_role_name(role)
        if normalized is None or normalized not in self._priorities:
            return None
        if not isinstance(resource, str):
            return None

        return self._row_level_security.get(resource, {}).get(normalized)


_engine: PermissionEngine | None = None
_engine_lock = threading.Lock()


def get_permission_engine() -> PermissionEngine:
    """Engine over the process-wide cached config.

    Rebuilt only when the cached config object changes (after
    clear_permission_cache in tests).
    """
    global _engine

    config = load_permissions()
    engine = _engine
    if engine is not None and engine.config is config:
        return engine

    with _engine_lock:
        if _engine is None or _engine.config is not config:
            _engine = PermissionEngine(config)
        return _engine


__all__ = ["CrudOperation", "PermissionEngine", "get_permission_engine"]
