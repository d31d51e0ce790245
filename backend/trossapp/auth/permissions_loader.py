"""
Permission configuration loader.

Reads the permission table (roles, resources, CRUD rules, row-level security)
from the JSON file shared with the frontend, validates it, and caches it for
the lifetime of the process. A broken table raises PermissionConfigError on
first load; callers are expected to let that abort startup.
"""
from __future__ import annotations

import json
import logging
import threading
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pydantic import ValidationError as SchemaValidationError

from ..config import get_settings
from ..domain.invariants import (
    PermissionConfigError,
    validate_resource_operations,
    validate_role_priorities,
    validate_row_level_security,
    validate_rule_reference,
)
from ..schemas.permission import PermissionConfig

logger = logging.getLogger("trossapp.permissions")

_permission_cache: PermissionConfig | None = None
_permission_lock = threading.Lock()


def parse_permission_config(raw: Mapping[str, Any]) -> PermissionConfig:
    """Build a validated PermissionConfig from decoded JSON.

    Args:
        raw: Decoded permission document

    Returns:
        PermissionConfig that satisfies every load-time invariant

    Raises:
        PermissionConfigError: If the document is malformed
    """
    if not isinstance(raw, Mapping):
        raise PermissionConfigError(
            "Permission config must be a JSON object",
            invariant="INVARIANT-0.schema",
            details={"type": type(raw).__name__},
        )

    try:
        config = PermissionConfig.model_validate(dict(raw))
    except SchemaValidationError as exc:
        raise PermissionConfigError(
            f"Permission config does not match schema ({exc.error_count()} error(s))",
            invariant="INVARIANT-0.schema",
            details={"errors": exc.errors(include_url=False, include_context=False)},
        ) from exc

    roles = {name: role.priority for name, role in config.roles.items()}
    validate_role_priorities(roles)

    if not config.resources:
        raise PermissionConfigError(
            "At least one resource must be defined",
            invariant="INVARIANT-3.resources_present",
        )

    for resource_name, resource in config.resources.items():
        validate_resource_operations(resource_name, set(resource.permissions))
        for operation, rule in resource.permissions.items():
            validate_rule_reference(
                resource_name,
                operation,
                rule.minimum_role,
                rule.minimum_priority,
                roles,
            )
        validate_row_level_security(resource_name, resource.row_level_security, roles)

    return config


def read_permission_config(path: Path) -> PermissionConfig:
    """Read and validate a permission file without touching the cache."""
    try:
        with open(path, encoding="utf-8") as handle:
            raw = json.load(handle)
    except FileNotFoundError as exc:
        raise PermissionConfigError(
            f"Permission config not found at {path}",
            invariant="INVARIANT-0.source",
            details={"path": str(path)},
        ) from exc
    except json.JSONDecodeError as exc:
        raise PermissionConfigError(
            f"Permission config at {path} is not valid JSON: {exc.msg}",
            invariant="INVARIANT-0.source",
            details={"path": str(path), "line": exc.lineno},
        ) from exc

    return parse_permission_config(raw)


def load_permissions() -> PermissionConfig:
    """Return the process-wide permission config, loading it on first use.

    Every call after the first returns the same object. Concurrent first
    callers serialize on a lock; only one of them reads the file.

    Raises:
        PermissionConfigError: If the configured file is missing or invalid
    """
    global _permission_cache

    if _permission_cache is not None:
        return _permission_cache

    with _permission_lock:
        if _permission_cache is None:
            path = get_settings().permissions_config_path
            try:
                config = read_permission_config(path)
            except PermissionConfigError as exc:
                logger.error("permissions_load_failed path=%s error=%s", path, exc)
                raise
            logger.info(
                "permissions_loaded path=%s version=%s roles=%d resources=%d",
                path,
                config.version,
                len(config.roles),
                len(config.resources),
            )
            _permission_cache = config

    return _permission_cache


def clear_permission_cache() -> None:
    """Drop the cached config. Intended for test isolation only."""
    global _permission_cache
    with _permission_lock:
        _permission_cache = None


def get_role_hierarchy(config: PermissionConfig | None = None) -> dict[str, int]:
    """Map of role name to priority."""
    config = config or load_permissions()
    return {name: role.priority for name, role in config.roles.items()}


def get_permission_matrix(config: PermissionConfig | None = None) -> dict[str, dict[str, int]]:
    """Map of resource to operation to minimum priority."""
    config = config or load_permissions()
    return {
        resource_name: {
            operation: rule.minimum_priority
            for operation, rule in resource.permissions.items()
        }
        for resource_name, resource in config.resources.items()
    }
