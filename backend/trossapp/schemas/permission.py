from typing import Any

from pydantic import BaseModel, ConfigDict, Field, StrictInt, field_validator


class ReadOnlyDict(dict):
    """A dict that refuses every in-place change once built."""

    def _read_only(self, *args, **kwargs):
        raise TypeError(f"{type(self).__name__} is read-only")

    __setitem__ = _read_only
    __delitem__ = _read_only
    __ior__ = _read_only
    clear = _read_only
    pop = _read_only
    popitem = _read_only
    setdefault = _read_only
    update = _read_only

    def __reduce__(self):
        return type(self), (dict(self),)


def _freeze(value: dict | None) -> ReadOnlyDict | None:
    return None if value is None else ReadOnlyDict(value)


class RoleDefinition(BaseModel):
    model_config = ConfigDict(frozen=True)

    priority: StrictInt
    description: str = ""


class PermissionRule(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    minimum_role: str = Field(..., alias="minimumRole", min_length=1)
    minimum_priority: StrictInt = Field(..., alias="minimumPriority")
    description: str = ""


class ResourceDefinition(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    description: str = ""
    permissions: dict[str, PermissionRule]
    row_level_security: dict[str, str | None] | None = Field(default=None, alias="rowLevelSecurity")

    freeze_mappings = field_validator("permissions", "row_level_security")(_freeze)


class PermissionConfig(BaseModel):
    """Role hierarchy, permission matrix and row-level security table."""

    model_config = ConfigDict(frozen=True)

    version: str = "1.0.0"
    roles: dict[str, RoleDefinition]
    resources: dict[str, ResourceDefinition]

    freeze_mappings = field_validator("roles", "resources")(_freeze)

    def to_json_dict(self) -> dict[str, Any]:
        """Serialize back to the on-disk JSON layout shared with clients."""
        return self.model_dump(by_alias=True, mode="json")


class PermissionResult(BaseModel):
    """Outcome of a permission check, with the reason when access is denied."""

    model_config = ConfigDict(frozen=True)

    allowed: bool
    denial_reason: str | None = None
    minimum_role: str | None = None

    @classmethod
    def granted(cls) -> "PermissionResult":
        return cls(allowed=True)

    @classmethod
    def denied(cls, reason: str, *, minimum_role: str | None = None) -> "PermissionResult":
        return cls(allowed=False, denial_reason=reason, minimum_role=minimum_role)
