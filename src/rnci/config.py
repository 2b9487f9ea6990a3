# config.py
from __future__ import annotations

from typing import Any, Dict, Literal, Optional, Tuple, get_args

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from .errors import ConfigError


PackageManager = Literal["yarn", "npm", "pnpm"]
StorageType = Literal["github-release", "zoho-drive", "google-drive", "custom"]
BuildType = Literal["dev", "prod-apk", "prod-aab"]
TestKind = Literal["typescript", "eslint", "prettier"]
Trigger = Literal["push-main", "pull-request", "manual"]
NotificationType = Literal["slack", "discord", "both"]

PACKAGE_MANAGERS: Tuple[str, ...] = get_args(PackageManager)
STORAGE_TYPES: Tuple[str, ...] = get_args(StorageType)
BUILD_TYPES: Tuple[str, ...] = get_args(BuildType)
TEST_KINDS: Tuple[str, ...] = get_args(TestKind)
TRIGGERS: Tuple[str, ...] = get_args(Trigger)
NOTIFICATION_TYPES: Tuple[str, ...] = get_args(NotificationType)


class ConfigModel(BaseModel):
    # field names in Python, camelCase aliases in JSON
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        # a null key means "use the default"
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if v is not None}
        return data

    def updated(self, **changes: Any):
        """Return a validated copy with some fields replaced."""
        return type(self).model_validate({**self.model_dump(), **changes})

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    @classmethod
    def from_dict(cls, data: Any):
        """
        Build from the camelCase JSON form.

        Missing keys take their defaults. Raises ConfigError for anything
        outside the supported domain.
        """
        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            raise ConfigError(details=_error_details(exc)) from exc


def _error_details(exc: ValidationError) -> Dict[str, str]:
    details: Dict[str, str] = {}
    for err in exc.errors():
        where = ".".join(str(part) for part in err["loc"]) or "config"
        details[where] = err["msg"]
    return details


class AdvancedOptions(ConfigModel):
    """Optional feature switches of a pipeline configuration."""
    ios_support: bool = Field(False, alias="iOSSupport")
    publish_to_expo: bool = Field(False, alias="publishToExpo")
    publish_to_stores: bool = Field(False, alias="publishToStores")
    jest_tests: bool = Field(False, alias="jestTests")
    rntl_tests: bool = Field(False, alias="rntlTests")
    render_hook_tests: bool = Field(False, alias="renderHookTests")
    caching: bool = True
    notifications: bool = False
    notification_type: Optional[NotificationType] = Field(None, alias="notificationType")

    @property
    def effective_notification_type(self) -> str:
        return self.notification_type or "both"

    @property
    def any_test_flag(self) -> bool:
        return self.jest_tests or self.rntl_tests or self.render_hook_tests


class FormValues(ConfigModel):
    """
    A pipeline configuration.

    Collections are tuples and their order carries no meaning: the compiler
    orders everything from its own rule tables.
    """
    project_name: Optional[str] = Field(None, alias="projectName")
    package_manager: PackageManager = Field("yarn", alias="packageManager")
    storage_type: StorageType = Field("github-release", alias="storageType")
    build_types: Tuple[BuildType, ...] = Field((), alias="buildTypes")
    tests: Tuple[TestKind, ...] = ()
    triggers: Tuple[Trigger, ...] = ()
    node_version: str = Field("20", alias="nodeVersion")
    advanced_options: AdvancedOptions = Field(default_factory=AdvancedOptions, alias="advancedOptions")

    @field_validator("node_version", mode="before")
    @classmethod
    def _version_as_text(cls, value: Any) -> Any:
        # "nodeVersion": 20 is as common as "20"
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value

    def with_options(self, **options: Any) -> "FormValues":
        """Return a copy with some advanced options replaced."""
        return self.updated(advanced_options=self.advanced_options.updated(**options))
