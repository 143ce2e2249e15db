"""Font installation into the system font store and font registry key."""
from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable

from fontTools.ttLib import TTFont

from staging_config.constants import (
    COLLECTION_LABEL,
    FONT_INSTALL_CONFIG,
    OPENTYPE_LABEL,
    TRUETYPE_LABEL,
    FontInstallConfig,
)
from services.registry import RegistryAccessor, WindowsRegistryAccessor

logger = logging.getLogger(__name__)

_SFNT_SIGNATURES = {
    b"\x00\x01\x00\x00": TRUETYPE_LABEL,
    b"true": TRUETYPE_LABEL,
    b"OTTO": OPENTYPE_LABEL,
    b"ttcf": COLLECTION_LABEL,
}

# Registry value names carry the format in parentheses, e.g. "Arial Bold (TrueType)".
_REGISTRY_KIND = {
    TRUETYPE_LABEL: "TrueType",
    OPENTYPE_LABEL: "OpenType",
}

# Full name, typographic family, family.
_NAME_IDS = (4, 16, 1)


@dataclass
class FontEntry:
    source: Path
    type_label: str | None
    display_name: str
    registry_name: str
    registry_data: str


@dataclass
class FontOperationResult:
    font: FontEntry
    outcome: str
    success: bool
    message: str


def classify_font(path: Path) -> str | None:
    """Return the declared type label read from the file header, or None."""
    try:
        with path.open("rb") as handle:
            signature = handle.read(4)
    except OSError:
        return None
    return _SFNT_SIGNATURES.get(signature)


def read_display_name(path: Path) -> str:
    try:
        font = TTFont(path, lazy=True, recalcBBoxes=False, recalcTimestamp=False)
    except Exception as exc:  # fontTools raises assorted errors on malformed files
        logger.debug("Could not open %s with fontTools: %s", path.name, exc)
        return path.stem
    try:
        if "name" not in font:
            return path.stem
        name_table = font["name"]
        for name_id in _NAME_IDS:
            value = name_table.getDebugName(name_id)
            if value and value.strip():
                return value.strip()
    except Exception as exc:  # fontTools raises assorted errors on damaged tables
        logger.debug("Could not read name table of %s: %s", path.name, exc)
    finally:
        font.close()
    return path.stem


class FontInstallService:
    def __init__(
        self,
        source_dir: Path | str,
        fonts_dir: Path | str,
        *,
        config: FontInstallConfig = FONT_INSTALL_CONFIG,
        registry: RegistryAccessor | None = None,
        legacy_registry_suffix: bool = False,
        classifier: Callable[[Path], str | None] = classify_font,
        name_reader: Callable[[Path], str] = read_display_name,
    ) -> None:
        self._source_dir = Path(source_dir)
        self._fonts_dir = Path(fonts_dir)
        self._config = config
        self._registry = registry or WindowsRegistryAccessor()
        self._legacy_suffix = legacy_registry_suffix
        self._classify = classifier
        self._read_name = name_reader

    def source_files(self) -> list[Path]:
        if not self._source_dir.is_dir():
            raise FileNotFoundError(f"Font source folder not found: {self._source_dir}")
        return sorted((p for p in self._source_dir.iterdir() if p.is_file()), key=lambda p: p.name.lower())

    def describe(self, path: Path) -> FontEntry:
        label = self._classify(path)
        if label in _REGISTRY_KIND:
            display_name = self._read_name(path)
            registry_name = f"{display_name} ({_REGISTRY_KIND[label]})"
        else:
            display_name = path.stem
            registry_name = ""
        if self._legacy_suffix:
            registry_data = f"{path.stem}{self._config.legacy_suffix}"
        else:
            registry_data = path.name
        return FontEntry(path, label, display_name, registry_name, registry_data)

    def scan(self) -> list[FontEntry]:
        return [self.describe(path) for path in self.source_files()]

    def install_all(self) -> list[FontOperationResult]:
        return self.install(self.source_files())

    def install(self, paths: Iterable[Path]) -> list[FontOperationResult]:
        results: list[FontOperationResult] = []
        logger.info("Installing fonts from %s into %s", self._source_dir, self._fonts_dir)
        for path in paths:
            results.append(self._install_one(self.describe(path)))
        installed = sum(1 for r in results if r.outcome == "installed")
        logger.info("Font installation finished: %d installed, %d skipped or failed", installed, len(results) - installed)
        return results

    def _install_one(self, entry: FontEntry) -> FontOperationResult:
        name = entry.source.name
        destination = self._fonts_dir / name
        if destination.exists():
            message = f"{name} is already installed"
            logger.info("Skipped %s", message)
            return FontOperationResult(entry, "exists", False, message)
        if entry.type_label not in self._config.accepted_types:
            message = f"{name} has unsupported type '{entry.type_label or 'unknown'}'"
            logger.info("Skipped %s", message)
            return FontOperationResult(entry, "unsupported", False, message)
        try:
            shutil.copy2(entry.source, destination)
            self._registry.set_value(self._config.registry_path, entry.registry_name, entry.registry_data)
        except OSError as exc:
            message = f"Failed to install {name}: {exc}"
            logger.error(message)
            self._discard_copy(destination)
            return FontOperationResult(entry, "failed", False, message)
        message = f"Installed {name} as '{entry.registry_name}'"
        logger.info(message)
        return FontOperationResult(entry, "installed", True, message)

    def _discard_copy(self, destination: Path) -> None:
        # The destination was absent before this item, so an unregistered copy is ours to remove.
        try:
            destination.unlink(missing_ok=True)
        except OSError as exc:
            logger.error("Could not remove unregistered copy %s: %s", destination, exc)
