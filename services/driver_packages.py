"""Driver package staging and import into Configuration Manager."""
from __future__ import annotations

import logging
import os
import shutil
from dataclasses import dataclass
from pathlib import Path, PureWindowsPath

from staging_config.constants import DRIVER_STAGING_CONFIG, DriverStagingConfig
from staging_config.models import DriverModel
from services.configmgr import ConfigMgrError, ManagementPlatform

logger = logging.getLogger(__name__)


class StagingError(RuntimeError):
    pass


class SourcePathMissingError(StagingError):
    pass


class NoDriverFilesError(StagingError):
    pass


class PackageFolderMissingError(StagingError):
    pass


class VersionFolderNotEmptyError(StagingError):
    pass


class PackageExistsError(StagingError):
    pass


class CategoryExistsError(StagingError):
    pass


class DriverImportError(StagingError):
    pass


@dataclass(frozen=True)
class StagingPlan:
    model: DriverModel
    version: str
    source_path: Path
    model_package_dir: Path
    version_package_dir: Path
    package_name: str
    category_name: str
    description: str
    marker_name: str


@dataclass
class StagingResult:
    plan: StagingPlan
    driver_files: int
    version_folder_created: bool
    marker_created: bool
    marker_copies: int
    distributed: bool
    distribution_message: str


def validate_version(version: str) -> str:
    cleaned = version.strip()
    if not cleaned:
        raise ValueError("Version label must not be empty")
    if any(sep in cleaned for sep in ("\\", "/")) or cleaned in {".", ".."}:
        raise ValueError(f"Version label must not contain path separators: {version}")
    return cleaned


def resolve_plan(model: DriverModel, version: str, config: DriverStagingConfig = DRIVER_STAGING_CONFIG) -> StagingPlan:
    version = validate_version(version)
    model_name = model.value
    # "1909_2020-03" -> release "2020-03"
    release = version.split("_", 1)[-1]
    name = f"{model_name} - {release}"
    source_root = _as_path(config.driver_source_root)
    package_root = _as_path(config.package_root)
    return StagingPlan(
        model=model,
        version=version,
        source_path=source_root / model_name / version,
        model_package_dir=package_root / model_name,
        version_package_dir=package_root / model_name / version,
        package_name=name,
        category_name=name,
        description=f"{model_name} - {version.replace('_', ' - ')}",
        marker_name=f"{model_name.replace(' ', '_')}_{version}.mod.txt",
    )


def _as_path(value: str) -> Path:
    # UNC roots are written with backslashes; convert them on POSIX hosts.
    if os.sep == "/" and value.startswith("\\\\"):
        return Path(PureWindowsPath(value).as_posix())
    return Path(value)


def find_driver_files(path: Path, pattern: str = "*.inf") -> list[Path]:
    suffix = pattern.lstrip("*").lower()
    return sorted(p for p in path.rglob("*") if p.is_file() and p.name.lower().endswith(suffix))


def apply_hash_marker(source: Path, marker_name: str, content: str) -> tuple[bool, int]:
    """Put a copy of the marker file in every folder of ``source``.

    The marker is created at the root of the tree only when it is missing, and
    the root copy is what gets duplicated into each subfolder. Returns whether
    the marker was created and how many subfolders received a copy.
    """
    marker = source / marker_name
    created = False
    if not marker.exists():
        marker.write_text(content, encoding="utf-8")
        created = True
        logger.info("Created hash marker %s", marker)
    copies = 0
    for folder in sorted(p for p in source.rglob("*") if p.is_dir()):
        shutil.copy2(marker, folder / marker_name)
        copies += 1
    logger.info("Copied hash marker into %d subfolder(s) of %s", copies, source)
    return created, copies


class DriverPackageStager:
    def __init__(
        self,
        platform: ManagementPlatform,
        *,
        config: DriverStagingConfig = DRIVER_STAGING_CONFIG,
        rollback_on_import_failure: bool = False,
    ) -> None:
        self._platform = platform
        self._config = config
        self._rollback = rollback_on_import_failure

    def plan(self, model: DriverModel, version: str) -> StagingPlan:
        return resolve_plan(model, version, self._config)

    def stage(self, model: DriverModel, version: str) -> StagingResult:
        plan = self.plan(model, version)
        logger.info("Staging driver package '%s' from %s", plan.package_name, plan.source_path)

        driver_files = self._check_source(plan)
        self._check_model_folder(plan)
        folder_created = self._prepare_version_folder(plan)
        marker_created, copies = apply_hash_marker(plan.source_path, plan.marker_name, self._config.marker_content)

        self._platform.connect()
        self._check_not_existing(plan)

        self._platform.new_driver_package(plan.package_name, str(plan.version_package_dir), plan.description)
        logger.info("Created driver package '%s' at %s", plan.package_name, plan.version_package_dir)
        self._platform.new_category(plan.category_name)
        logger.info("Created driver category '%s'", plan.category_name)

        self._import(plan)
        distributed, message = self._distribute(plan)
        return StagingResult(
            plan=plan,
            driver_files=len(driver_files),
            version_folder_created=folder_created,
            marker_created=marker_created,
            marker_copies=copies,
            distributed=distributed,
            distribution_message=message,
        )

    def _check_source(self, plan: StagingPlan) -> list[Path]:
        if not plan.source_path.is_dir():
            raise SourcePathMissingError(f"Driver source path does not exist: {plan.source_path}")
        files = find_driver_files(plan.source_path, self._config.driver_file_pattern)
        if not files:
            raise NoDriverFilesError(
                f"No driver files ({self._config.driver_file_pattern}) found under {plan.source_path}"
            )
        logger.info("Found %d driver file(s) under %s", len(files), plan.source_path)
        return files

    def _check_model_folder(self, plan: StagingPlan) -> None:
        if not plan.model_package_dir.is_dir():
            raise PackageFolderMissingError(f"Package folder for {plan.model} does not exist: {plan.model_package_dir}")

    def _prepare_version_folder(self, plan: StagingPlan) -> bool:
        folder = plan.version_package_dir
        if folder.exists():
            if not folder.is_dir() or any(folder.iterdir()):
                raise VersionFolderNotEmptyError(f"Package folder already has content: {folder}")
            logger.info("Using existing empty package folder %s", folder)
            return False
        folder.mkdir()
        logger.info("Created package folder %s", folder)
        return True

    def _check_not_existing(self, plan: StagingPlan) -> None:
        if self._platform.get_driver_package(plan.package_name) is not None:
            raise PackageExistsError(f"Driver package '{plan.package_name}' already exists")
        if self._platform.get_category(plan.category_name) is not None:
            raise CategoryExistsError(f"Driver category '{plan.category_name}' already exists")

    def _import(self, plan: StagingPlan) -> None:
        try:
            self._platform.import_drivers(str(plan.source_path), plan.package_name, plan.category_name)
        except ConfigMgrError as exc:
            logger.error("Driver import into '%s' failed: %s", plan.package_name, exc)
            if self._rollback:
                self._roll_back(plan)
            else:
                logger.warning(
                    "Driver package '%s' and category '%s' were left in place",
                    plan.package_name,
                    plan.category_name,
                )
            raise DriverImportError(f"Driver import failed: {exc}") from exc
        logger.info("Imported drivers from %s into '%s'", plan.source_path, plan.package_name)

    def _roll_back(self, plan: StagingPlan) -> None:
        for label, action, name in (
            ("package", self._platform.remove_driver_package, plan.package_name),
            ("category", self._platform.remove_category, plan.category_name),
        ):
            try:
                action(name)
                logger.info("Removed driver %s '%s'", label, name)
            except ConfigMgrError as exc:
                logger.error("Could not remove driver %s '%s': %s", label, name, exc)

    def _distribute(self, plan: StagingPlan) -> tuple[bool, str]:
        target = self._config.distribution_point_group
        try:
            self._platform.start_distribution(plan.package_name, target)
        except ConfigMgrError as exc:
            message = f"Distribution to '{target}' failed: {exc}. Distribute the package manually."
            logger.warning(message)
            return False, message
        message = f"Distribution to '{target}' started"
        logger.info(message)
        return True, message
