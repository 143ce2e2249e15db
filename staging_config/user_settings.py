"""User-configurable settings persisted locally."""
from __future__ import annotations

import json
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

from staging_config.constants import DriverStagingConfig


SETTINGS_DIRNAME = ".endpoint_staging"
SETTINGS_FILENAME = "settings.json"


def default_settings_path() -> Path:
    return Path.home() / SETTINGS_DIRNAME / SETTINGS_FILENAME


@dataclass
class UserSettings:
    driver_source_root: str = ""
    package_root: str = ""
    site_code: str = ""
    site_server: str = ""
    distribution_point_group: str = ""
    font_source_dir: str = ""
    log_dir: str = ""
    legacy_registry_suffix: bool = False
    rollback_on_import_failure: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "driver_source_root": self.driver_source_root,
            "package_root": self.package_root,
            "site_code": self.site_code,
            "site_server": self.site_server,
            "distribution_point_group": self.distribution_point_group,
            "font_source_dir": self.font_source_dir,
            "log_dir": self.log_dir,
            "legacy_registry_suffix": self.legacy_registry_suffix,
            "rollback_on_import_failure": self.rollback_on_import_failure,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "UserSettings":
        def _get(key: str) -> str:
            value = data.get(key, "")
            return str(value) if value is not None else ""

        return cls(
            driver_source_root=_get("driver_source_root"),
            package_root=_get("package_root"),
            site_code=_get("site_code"),
            site_server=_get("site_server"),
            distribution_point_group=_get("distribution_point_group"),
            font_source_dir=_get("font_source_dir"),
            log_dir=_get("log_dir"),
            legacy_registry_suffix=bool(data.get("legacy_registry_suffix", False)),
            rollback_on_import_failure=bool(data.get("rollback_on_import_failure", False)),
        )

    def apply_to(self, config: DriverStagingConfig) -> DriverStagingConfig:
        """Return ``config`` with every non-blank override from these settings."""
        overrides = {
            "driver_source_root": self.driver_source_root.strip(),
            "package_root": self.package_root.strip(),
            "site_code": self.site_code.strip(),
            "site_server": self.site_server.strip(),
            "distribution_point_group": self.distribution_point_group.strip(),
        }
        return replace(config, **{key: value for key, value in overrides.items() if value})


class SettingsStore:
    def __init__(self, path: Path | None = None) -> None:
        self._path = path or default_settings_path()

    def load(self) -> UserSettings:
        if not self._path.exists():
            return UserSettings()
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError):
            return UserSettings()
        if not isinstance(data, dict):
            return UserSettings()
        return UserSettings.from_dict(data)

    def save(self, settings: UserSettings) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        payload = json.dumps(settings.to_dict(), indent=2, sort_keys=True)
        self._path.write_text(payload, encoding="utf-8")
