import argparse
import logging
import os
from pathlib import Path
from typing import List, Optional

from .constants import EXIT_OK
from .errors import BiosPrepError
from .reconciler import FirmwareReconciler
from .wmi import ManagementInterface

log = logging.getLogger("biosprep")

PASSWORD_ENV = "BIOSPREP_PASSWORD"


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="biosprep",
        description="Enable secure boot, the security chip and virtualization on Lenovo firmware",
    )
    parser.add_argument("--convert-boot-mode", action="store_true", help="Enable secure boot when it is disabled")
    parser.add_argument(
        "--guard-prep",
        action="store_true",
        help="Also enable the security chip, VT and VT-d (requires --convert-boot-mode)",
    )
    parser.add_argument("--dry-run", action="store_true", help="Report what would be sent without changing firmware")
    parser.add_argument(
        "--password",
        default=os.environ.get(PASSWORD_ENV),
        help=f"Firmware supervisor password (default: ${PASSWORD_ENV})",
    )
    parser.add_argument("--log-file", type=Path, help="Append timestamped log lines to this file")
    parser.add_argument("--report", type=Path, help="Write a JSON run report to this file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug output on the console")
    return parser.parse_args(argv)


def setup_logging(log_file: Optional[Path] = None, verbose: bool = False) -> None:
    log.setLevel(logging.DEBUG)
    log.propagate = False
    for handler in list(log.handlers):
        log.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler()
    console.setLevel(logging.DEBUG if verbose else logging.INFO)
    console.setFormatter(logging.Formatter("[%(levelname)s] %(message)s"))
    log.addHandler(console)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
        file_handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(message)s"))
        log.addHandler(file_handler)


def write_report(report, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(report.model_dump_json(indent=2), encoding="utf-8")
    log.info("Wrote run report to %s", path)


def main(argv: Optional[List[str]] = None, interface=None) -> int:
    args = parse_args(argv)
    setup_logging(args.log_file, args.verbose)

    if interface is None:
        interface = ManagementInterface()
    reconciler = FirmwareReconciler(
        interface,
        convert_boot_mode=args.convert_boot_mode,
        guard_prep=args.guard_prep,
        dry_run=args.dry_run,
        password=args.password,
    )

    log.info(
        "Starting (convert boot mode: %s, guard prep: %s, dry run: %s)",
        args.convert_boot_mode,
        args.guard_prep,
        args.dry_run,
    )
    exit_code = None
    try:
        reconciler.run()
        exit_code = EXIT_OK
        log.info("Finished")
    except BiosPrepError as e:
        exit_code = e.exit_code
        log.error("%s (exit code %d)", e, exit_code)
    finally:
        # a failed run still gets its partial report
        if args.report:
            reconciler.report.exit_code = exit_code
            write_report(reconciler.report, args.report)
    return exit_code
