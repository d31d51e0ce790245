"""Shared test fixtures and configuration."""
import copy
import json
from pathlib import Path

import pytest

from trossapp.auth.permission_engine import PermissionEngine
from trossapp.auth.permissions_loader import clear_permission_cache, parse_permission_config
from trossapp.config import reset_settings
from trossapp.services.permission_service import PermissionService


ROLE_PRIORITIES = {"admin": 5, "manager": 4, "dispatcher": 3, "technician": 2, "client": 1}


def _rules(create: str, read: str, update: str, delete: str) -> dict:
    return {
        op: {"minimumRole": role, "minimumPriority": ROLE_PRIORITIES[role], "description": f"{op} rule"}
        for op, role in (("create", create), ("read", read), ("update", update), ("delete", delete))
    }


FIXTURE_CONFIG: dict = {
    "version": "test",
    "roles": {
        name: {"priority": priority, "description": f"{name} role"}
        for name, priority in ROLE_PRIORITIES.items()
    },
    "resources": {
        "users": {
            "description": "User accounts",
            "rowLevelSecurity": {"client": "own_record_only", "admin": "all_records"},
            "permissions": _rules("admin", "client", "admin", "admin"),
        },
        "roles": {
            "description": "Role definitions",
            "permissions": _rules("admin", "manager", "admin", "admin"),
        },
        "work_orders": {
            "description": "Work orders",
            "rowLevelSecurity": {
                "client": "own_work_orders_only",
                "technician": "assigned_work_orders_only",
                "dispatcher": None,
            },
            "permissions": _rules("dispatcher", "client", "technician", "manager"),
        },
        "audit_logs": {
            "description": "Audit trail",
            "permissions": _rules("client", "admin", "admin", "admin"),
        },
    },
}


@pytest.fixture(autouse=True)
def _isolate_process_caches():
    """Every test starts without cached settings or permission config."""
    clear_permission_cache()
    reset_settings()
    yield
    clear_permission_cache()
    reset_settings()


@pytest.fixture
def config_data() -> dict:
    """A deep copy of the fixture permission document, safe to mutate."""
    return copy.deepcopy(FIXTURE_CONFIG)


@pytest.fixture
def engine(config_data) -> PermissionEngine:
    return PermissionEngine(parse_permission_config(config_data))


@pytest.fixture
def service(engine) -> PermissionService:
    return PermissionService(engine)


@pytest.fixture
def write_config(tmp_path, monkeypatch):
    """Write a permission document to disk and point the settings at it."""

    def _write(document: dict | str) -> Path:
        path = tmp_path / "permissions.json"
        payload = document if isinstance(document, str) else json.dumps(document)
        path.write_text(payload, encoding="utf-8")
        monkeypatch.setenv("PERMISSIONS_CONFIG_PATH", str(path))
        reset_settings()
        return path

    return _write
