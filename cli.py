"""Command-line entrypoint for font installation and driver package staging."""
from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Sequence

from services.configmgr import ConfigMgrClient, ConfigMgrError
from services.driver_packages import DriverPackageStager, StagingError
from services.fonts import FontInstallService
from services.privilege import ensure_admin
from staging_config.constants import IMMUTABLE_CONFIG
from staging_config.logging_utils import configure_logging
from staging_config.models import DriverModel
from staging_config.paths import get_font_source_directory, get_logs_directory, get_system_fonts_directory
from staging_config.user_settings import SettingsStore, UserSettings

logger = logging.getLogger(__name__)

FONT_LOG_NAME = "FontInstall.log"
DRIVER_LOG_NAME = "DriverPackageStaging.log"


def _model_arg(value: str) -> DriverModel:
    try:
        return DriverModel.parse(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Endpoint staging automation: fonts and driver packages")
    parser.add_argument("--settings", type=Path, help="Path to a settings.json overriding the defaults")
    parser.add_argument("--log-file", type=Path, help="Write the run log to this file")
    sub = parser.add_subparsers(dest="command", required=True)

    fonts = sub.add_parser("fonts", help="Install fonts into the system font store")
    fonts.add_argument("--source", type=Path, help="Folder holding the fonts to install")
    fonts.add_argument("--fonts-dir", type=Path, help="Destination font folder (default: %%WINDIR%%\\Fonts)")
    fonts.add_argument(
        "--legacy-registry-suffix",
        action="store_true",
        help="Record every installed font with a .ttf file name in the registry",
    )

    drivers = sub.add_parser("drivers", help="Stage and import a driver package")
    drivers.add_argument("--model", required=True, type=_model_arg, help="Hardware model, see the 'models' command")
    drivers.add_argument("--version", required=True, help="Driver bundle label, e.g. 1909_2020-03")
    drivers.add_argument(
        "--rollback-on-import-failure",
        action="store_true",
        help="Remove the new package and category if the driver import fails",
    )

    sub.add_parser("models", help="List supported hardware models")
    return parser


def run_fonts(args: argparse.Namespace, settings: UserSettings) -> int:
    source = args.source or (Path(settings.font_source_dir) if settings.font_source_dir.strip() else None)
    service = FontInstallService(
        source or get_font_source_directory(),
        args.fonts_dir or get_system_fonts_directory(),
        config=IMMUTABLE_CONFIG.fonts,
        legacy_registry_suffix=args.legacy_registry_suffix or settings.legacy_registry_suffix,
    )
    try:
        service.install_all()
    except FileNotFoundError as exc:
        logger.error(str(exc))
        return 1
    return 0


def run_drivers(args: argparse.Namespace, settings: UserSettings) -> int:
    config = settings.apply_to(IMMUTABLE_CONFIG.drivers)
    client = ConfigMgrClient(config.site_code, config.site_server)
    stager = DriverPackageStager(
        client,
        config=config,
        rollback_on_import_failure=args.rollback_on_import_failure or settings.rollback_on_import_failure,
    )
    try:
        stager.stage(args.model, args.version)
    except (StagingError, ConfigMgrError, ValueError) as exc:
        logger.error("Staging halted: %s", exc)
        return 1
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    if args.command == "models":
        for name in DriverModel.names():
            print(name)
        return 0
    if not ensure_admin():
        return 0
    store = SettingsStore(args.settings) if args.settings else SettingsStore()
    settings = store.load()
    log_dir = Path(settings.log_dir) if settings.log_dir.strip() else get_logs_directory()
    default_log = FONT_LOG_NAME if args.command == "fonts" else DRIVER_LOG_NAME
    configure_logging(args.log_file or log_dir / default_log)
    if args.command == "fonts":
        return run_fonts(args, settings)
    return run_drivers(args, settings)


if __name__ == "__main__":
    raise SystemExit(main())
