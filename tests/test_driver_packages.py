from __future__ import annotations

from dataclasses import replace
from pathlib import Path
from typing import Any

import pytest

from services.configmgr import ConfigMgrError
from services.driver_packages import (
    CategoryExistsError,
    DriverImportError,
    DriverPackageStager,
    NoDriverFilesError,
    PackageExistsError,
    PackageFolderMissingError,
    SourcePathMissingError,
    VersionFolderNotEmptyError,
    apply_hash_marker,
    resolve_plan,
)
from staging_config.constants import DRIVER_STAGING_CONFIG, DriverStagingConfig
from staging_config.models import DriverModel

MODEL = DriverModel.LATITUDE_7480
VERSION = "1909_2020-03"
EXPECTED_NAME = "Latitude 7480 - 2020-03"
MARKER = "Latitude_7480_1909_2020-03.mod.txt"


class FakePlatform:
    def __init__(
        self,
        *,
        packages: set[str] | None = None,
        categories: set[str] | None = None,
        fail: set[str] | None = None,
    ) -> None:
        self.packages = set(packages or ())
        self.categories = set(categories or ())
        self.fail = fail or set()
        self.calls: list[tuple[Any, ...]] = []

    def _record(self, *call: Any) -> None:
        self.calls.append(call)
        if call[0] in self.fail:
            raise ConfigMgrError(f"{call[0]} failed")

    def connect(self) -> None:
        self._record("connect")

    def get_driver_package(self, name: str) -> dict[str, Any] | None:
        self._record("get_driver_package", name)
        return {"Name": name, "PackageID": "PS100123"} if name in self.packages else None

    def get_category(self, name: str) -> dict[str, Any] | None:
        self._record("get_category", name)
        return {"LocalizedCategoryInstanceName": name} if name in self.categories else None

    def new_driver_package(self, name: str, path: str, description: str = "") -> None:
        self._record("new_driver_package", name, path, description)
        self.packages.add(name)

    def new_category(self, name: str) -> None:
        self._record("new_category", name)
        self.categories.add(name)

    def import_drivers(self, source: str, package_name: str, category_name: str) -> None:
        self._record("import_drivers", source, package_name, category_name)

    def start_distribution(self, package_name: str, distribution_group: str) -> None:
        self._record("start_distribution", package_name, distribution_group)

    def remove_driver_package(self, name: str) -> None:
        self._record("remove_driver_package", name)
        self.packages.discard(name)

    def remove_category(self, name: str) -> None:
        self._record("remove_category", name)
        self.categories.discard(name)

    def names(self) -> list[str]:
        return [call[0] for call in self.calls]


@pytest.fixture()
def config(tmp_path: Path) -> DriverStagingConfig:
    source_root = tmp_path / "Source"
    package_root = tmp_path / "Packages"
    driver_dir = source_root / MODEL.value / VERSION / "Audio" / "x64"
    driver_dir.mkdir(parents=True)
    (driver_dir / "RTKVHD64.INF").write_text("[Version]")
    (source_root / MODEL.value / VERSION / "Chipset").mkdir()
    (package_root / MODEL.value).mkdir(parents=True)
    return replace(
        DRIVER_STAGING_CONFIG,
        driver_source_root=str(source_root),
        package_root=str(package_root),
    )


def test_plan_names_follow_conventions(config: DriverStagingConfig) -> None:
    plan = resolve_plan(MODEL, VERSION, config)
    assert plan.package_name == EXPECTED_NAME
    assert plan.category_name == EXPECTED_NAME
    assert plan.description == "Latitude 7480 - 1909 - 2020-03"
    assert plan.marker_name == MARKER
    assert plan.source_path == Path(config.driver_source_root) / "Latitude 7480" / VERSION
    assert plan.version_package_dir == Path(config.package_root) / "Latitude 7480" / VERSION


def test_plan_without_underscore_uses_whole_label(config: DriverStagingConfig) -> None:
    plan = resolve_plan(DriverModel.OPTIPLEX_7060, "A07", config)
    assert plan.package_name == "OptiPlex 7060 - A07"
    assert plan.marker_name == "OptiPlex_7060_A07.mod.txt"


@pytest.mark.parametrize("version", ["", "   ", "..", "1909/2020-03", "1909\\2020-03"])
def test_plan_rejects_bad_versions(config: DriverStagingConfig, version: str) -> None:
    with pytest.raises(ValueError):
        resolve_plan(MODEL, version, config)


def test_stage_happy_path(config: DriverStagingConfig) -> None:
    platform = FakePlatform()
    result = DriverPackageStager(platform, config=config).stage(MODEL, VERSION)

    plan = result.plan
    assert result.version_folder_created
    assert plan.version_package_dir.is_dir()
    assert result.driver_files == 1
    assert result.marker_created
    assert (plan.source_path / MARKER).exists()
    assert result.distributed
    assert platform.names() == [
        "connect",
        "get_driver_package",
        "get_category",
        "new_driver_package",
        "new_category",
        "import_drivers",
        "start_distribution",
    ]
    assert ("new_driver_package", EXPECTED_NAME, str(plan.version_package_dir), plan.description) in platform.calls
    assert ("new_category", EXPECTED_NAME) in platform.calls
    assert ("import_drivers", str(plan.source_path), EXPECTED_NAME, EXPECTED_NAME) in platform.calls
    assert ("start_distribution", EXPECTED_NAME, config.distribution_point_group) in platform.calls


def test_marker_is_present_in_every_subfolder(config: DriverStagingConfig) -> None:
    plan = resolve_plan(MODEL, VERSION, config)
    DriverPackageStager(FakePlatform(), config=config).stage(MODEL, VERSION)

    folders = [plan.source_path] + [p for p in plan.source_path.rglob("*") if p.is_dir()]
    assert len(folders) == 4
    for folder in folders:
        assert (folder / MARKER).read_text(encoding="utf-8") == config.marker_content


def test_marker_is_created_once_and_reused(tmp_path: Path) -> None:
    (tmp_path / "sub").mkdir()
    (tmp_path / "marker.txt").write_text("first copy")

    created, copies = apply_hash_marker(tmp_path, "marker.txt", "replacement")

    assert created is False
    assert copies == 1
    assert (tmp_path / "marker.txt").read_text() == "first copy"
    assert (tmp_path / "sub" / "marker.txt").read_text() == "first copy"


def test_non_empty_version_folder_halts_before_platform(config: DriverStagingConfig) -> None:
    plan = resolve_plan(MODEL, VERSION, config)
    (plan.version_package_dir / "Audio").mkdir(parents=True)
    platform = FakePlatform()

    with pytest.raises(VersionFolderNotEmptyError):
        DriverPackageStager(platform, config=config).stage(MODEL, VERSION)

    assert platform.calls == []
    assert not (plan.source_path / MARKER).exists()


def test_existing_empty_version_folder_is_reused(config: DriverStagingConfig) -> None:
    plan = resolve_plan(MODEL, VERSION, config)
    plan.version_package_dir.mkdir()

    result = DriverPackageStager(FakePlatform(), config=config).stage(MODEL, VERSION)

    assert result.version_folder_created is False


def test_missing_source_path_halts(config: DriverStagingConfig) -> None:
    platform = FakePlatform()
    with pytest.raises(SourcePathMissingError):
        DriverPackageStager(platform, config=config).stage(MODEL, "1909_2099-01")
    assert platform.calls == []


def test_source_without_driver_files_halts(config: DriverStagingConfig) -> None:
    empty = Path(config.driver_source_root) / MODEL.value / "1909_2020-06"
    (empty / "Readme").mkdir(parents=True)
    (empty / "Readme" / "notes.txt").write_text("no drivers here")

    with pytest.raises(NoDriverFilesError):
        DriverPackageStager(FakePlatform(), config=config).stage(MODEL, "1909_2020-06")


def test_missing_model_package_folder_halts(config: DriverStagingConfig) -> None:
    (Path(config.package_root) / MODEL.value).rmdir()
    with pytest.raises(PackageFolderMissingError):
        DriverPackageStager(FakePlatform(), config=config).stage(MODEL, VERSION)


def test_existing_package_halts_before_creation(config: DriverStagingConfig) -> None:
    platform = FakePlatform(packages={EXPECTED_NAME})
    with pytest.raises(PackageExistsError):
        DriverPackageStager(platform, config=config).stage(MODEL, VERSION)
    assert "new_driver_package" not in platform.names()
    assert "new_category" not in platform.names()


def test_existing_category_halts_before_creation(config: DriverStagingConfig) -> None:
    platform = FakePlatform(categories={EXPECTED_NAME})
    with pytest.raises(CategoryExistsError):
        DriverPackageStager(platform, config=config).stage(MODEL, VERSION)
    assert "new_driver_package" not in platform.names()


def test_import_failure_halts_without_rollback(config: DriverStagingConfig) -> None:
    platform = FakePlatform(fail={"import_drivers"})
    with pytest.raises(DriverImportError):
        DriverPackageStager(platform, config=config).stage(MODEL, VERSION)
    assert "start_distribution" not in platform.names()
    assert EXPECTED_NAME in platform.packages
    assert EXPECTED_NAME in platform.categories


def test_import_failure_with_rollback_removes_package_and_category(config: DriverStagingConfig) -> None:
    platform = FakePlatform(fail={"import_drivers"})
    stager = DriverPackageStager(platform, config=config, rollback_on_import_failure=True)
    with pytest.raises(DriverImportError):
        stager.stage(MODEL, VERSION)
    assert platform.names()[-2:] == ["remove_driver_package", "remove_category"]
    assert platform.packages == set()
    assert platform.categories == set()


def test_distribution_failure_is_not_fatal(config: DriverStagingConfig, caplog: pytest.LogCaptureFixture) -> None:
    platform = FakePlatform(fail={"start_distribution"})
    result = DriverPackageStager(platform, config=config).stage(MODEL, VERSION)
    assert result.distributed is False
    assert "Distribute the package manually" in result.distribution_message
    assert "Distribute the package manually" in caplog.text
