"""Immutable defaults for the font installer and the driver package stager."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple


TRUETYPE_LABEL = "TrueType font file"
OPENTYPE_LABEL = "OpenType font file"
COLLECTION_LABEL = "TrueType collection font file"


@dataclass(frozen=True)
class FontInstallConfig:
    registry_path: str
    accepted_types: Tuple[str, ...]
    legacy_suffix: str


@dataclass(frozen=True)
class DriverStagingConfig:
    driver_source_root: str
    package_root: str
    site_code: str
    site_server: str
    distribution_point_group: str
    driver_file_pattern: str
    marker_content: str


@dataclass(frozen=True)
class ImmutableConfig:
    fonts: FontInstallConfig
    drivers: DriverStagingConfig


FONT_INSTALL_CONFIG = FontInstallConfig(
    registry_path=r"HKLM:\SOFTWARE\Microsoft\Windows NT\CurrentVersion\Fonts",
    accepted_types=(TRUETYPE_LABEL, OPENTYPE_LABEL),
    legacy_suffix=".ttf",
)

DRIVER_STAGING_CONFIG = DriverStagingConfig(
    driver_source_root=r"\\cm01\Sources\OSD\Drivers\Source",
    package_root=r"\\cm01\Sources\OSD\Drivers\Packages",
    site_code="PS1",
    site_server="cm01.corp.local",
    distribution_point_group="All Distribution Points",
    driver_file_pattern="*.inf",
    marker_content="Driver package hash marker. Do not delete.",
)

IMMUTABLE_CONFIG = ImmutableConfig(
    fonts=FONT_INSTALL_CONFIG,
    drivers=DRIVER_STAGING_CONFIG,
)
