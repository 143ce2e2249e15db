"""Configuration Manager operations driven through its PowerShell module."""
from __future__ import annotations

import json
import logging
import subprocess
from typing import Any, Protocol, Sequence

logger = logging.getLogger(__name__)


class ConfigMgrError(RuntimeError):
    pass


class CommandRunner(Protocol):
    def run(self, command: Sequence[str]) -> subprocess.CompletedProcess[str]:  # pragma: no cover - protocol
        ...


class SubprocessRunner:
    def run(self, command: Sequence[str]) -> subprocess.CompletedProcess[str]:
        return subprocess.run(command, capture_output=True, text=True, check=False)


class ManagementPlatform(Protocol):
    def connect(self) -> None:  # pragma: no cover - protocol
        ...

    def get_driver_package(self, name: str) -> dict[str, Any] | None:  # pragma: no cover - protocol
        ...

    def get_category(self, name: str) -> dict[str, Any] | None:  # pragma: no cover - protocol
        ...

    def new_driver_package(self, name: str, path: str, description: str = "") -> None:  # pragma: no cover - protocol
        ...

    def new_category(self, name: str) -> None:  # pragma: no cover - protocol
        ...

    def import_drivers(self, source: str, package_name: str, category_name: str) -> None:  # pragma: no cover - protocol
        ...

    def start_distribution(self, package_name: str, distribution_group: str) -> None:  # pragma: no cover - protocol
        ...

    def remove_driver_package(self, name: str) -> None:  # pragma: no cover - protocol
        ...

    def remove_category(self, name: str) -> None:  # pragma: no cover - protocol
        ...


def ps_quote(value: str) -> str:
    """Single-quote a PowerShell string literal."""
    return "'" + value.replace("'", "''") + "'"


class ConfigMgrClient:
    """Runs ConfigurationManager cmdlets against one site.

    Every call is a fresh PowerShell process, so each script starts by loading
    the console module and switching to the site drive.
    """

    def __init__(
        self,
        site_code: str,
        site_server: str,
        *,
        powershell: str = "powershell",
        command_runner: CommandRunner | None = None,
    ) -> None:
        self._site_code = site_code
        self._site_server = site_server
        self._powershell = powershell
        self._runner = command_runner or SubprocessRunner()

    def connect(self) -> None:
        self._run("Get-CMSite -SiteCode {0} | Out-Null".format(ps_quote(self._site_code)))
        logger.info("Connected to site %s on %s", self._site_code, self._site_server)

    def get_driver_package(self, name: str) -> dict[str, Any] | None:
        return self._query(
            f"Get-CMDriverPackage -Name {ps_quote(name)} -Fast | Select-Object Name, PackageID"
        )

    def get_category(self, name: str) -> dict[str, Any] | None:
        return self._query(
            f"Get-CMCategory -Name {ps_quote(name)} -CategoryType DriverCategories"
            " | Select-Object LocalizedCategoryInstanceName, CategoryInstance_UniqueID"
        )

    def new_driver_package(self, name: str, path: str, description: str = "") -> None:
        script = f"New-CMDriverPackage -Name {ps_quote(name)} -Path {ps_quote(path)}"
        if description:
            script += f" -Description {ps_quote(description)}"
        self._run(script + " | Out-Null")

    def new_category(self, name: str) -> None:
        self._run(f"New-CMCategory -CategoryType DriverCategories -Name {ps_quote(name)} | Out-Null")

    def import_drivers(self, source: str, package_name: str, category_name: str) -> None:
        script = "; ".join(
            [
                f"$package = Get-CMDriverPackage -Name {ps_quote(package_name)} -Fast",
                f"$category = Get-CMCategory -Name {ps_quote(category_name)} -CategoryType DriverCategories",
                (
                    f"Import-CMDriver -Path {ps_quote(source)} -ImportFolder"
                    " -ImportDuplicateDriverOption AppendCategory"
                    " -EnableAndAllowInstall $true"
                    " -DriverPackage $package"
                    " -AdministrativeCategory $category"
                    " -UpdateDistributionPointsForDriverPackage $false | Out-Null"
                ),
            ]
        )
        self._run(script)

    def start_distribution(self, package_name: str, distribution_group: str) -> None:
        self._run(
            f"Start-CMContentDistribution -DriverPackageName {ps_quote(package_name)}"
            f" -DistributionPointGroupName {ps_quote(distribution_group)}"
        )

    def remove_driver_package(self, name: str) -> None:
        self._run(f"Remove-CMDriverPackage -Name {ps_quote(name)} -Force")

    def remove_category(self, name: str) -> None:
        self._run(f"Remove-CMCategory -CategoryType DriverCategories -Name {ps_quote(name)} -Force")

    def build_command(self, script: str) -> list[str]:
        preamble = "; ".join(
            [
                "$ErrorActionPreference = 'Stop'",
                "Import-Module (Join-Path (Split-Path $Env:SMS_ADMIN_UI_PATH -Parent) 'ConfigurationManager.psd1')",
                (
                    f"if (-not (Get-PSDrive -Name {ps_quote(self._site_code)} -PSProvider CMSite -ErrorAction SilentlyContinue))"
                    f" {{ New-PSDrive -Name {ps_quote(self._site_code)} -PSProvider CMSite -Root {ps_quote(self._site_server)} | Out-Null }}"
                ),
                f"Set-Location {ps_quote(self._site_code + ':')}",
            ]
        )
        return [self._powershell, "-NoProfile", "-NonInteractive", "-Command", f"{preamble}; {script}"]

    def _run(self, script: str) -> str:
        command = self.build_command(script)
        try:
            result = self._runner.run(command)
        except OSError as exc:
            raise ConfigMgrError(f"Could not start {self._powershell}: {exc}") from exc
        if result.returncode != 0:
            detail = (result.stderr or result.stdout or "").strip()
            raise ConfigMgrError(detail or f"PowerShell exited with code {result.returncode}")
        return result.stdout

    def _query(self, script: str) -> dict[str, Any] | None:
        output = self._run(f"{script} | ConvertTo-Json -Compress").strip()
        if not output:
            return None
        try:
            data = json.loads(output)
        except json.JSONDecodeError as exc:
            raise ConfigMgrError(f"Unexpected output from ConfigMgr query: {output[:200]}") from exc
        if isinstance(data, list):
            data = data[0] if data else None
        return data if isinstance(data, dict) else None
