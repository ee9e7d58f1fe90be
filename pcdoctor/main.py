"""
pcdoctor command line entry point.

Collects telemetry (live or from a hardware file), runs the diagnostic
pipeline and writes a JSON or HTML report.
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from pcdoctor import __version__
from pcdoctor.config.manager import get_config_manager
from pcdoctor.errors import (
    DetectionFailedError,
    HardwareCatalogError,
    InvalidInputError,
    SnapshotInvariantError,
)
from pcdoctor.schemas.diagnostics import DiagnosticReport, UseCase
from pcdoctor.services.diagnostic_service import DiagnosticService
from pcdoctor.services.hardware.file_source import FileTelemetrySource
from pcdoctor.services.recommendation.engine import validate_invocation
from pcdoctor.services.report_service import sink_for_format
from pcdoctor.services.snapshot_assembler import SnapshotAssembler
from pcdoctor.utils.logger import log

EXIT_OK = 0
EXIT_INTERNAL = 1
EXIT_INVALID_INPUT = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pcdoctor",
        description="Diagnose hardware bottlenecks and recommend upgrades for gaming and recording.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--use-case", choices=[u.value for u in UseCase], help="Workload profile")
    parser.add_argument("--budget", type=int, help="Upgrade budget in whole USD")
    parser.add_argument("--fps", type=int, help="Target recording/gaming frame rate")
    parser.add_argument("--bitrate", type=int, help="Recording bitrate in kbps (derived from --fps if omitted)")
    parser.add_argument("--format", choices=["json", "html"], dest="report_format", help="Report format")
    parser.add_argument("--output", help="Report file or directory")
    parser.add_argument("--from-file", help="Read hardware from a YAML/JSON file instead of this machine")
    parser.add_argument("--save-defaults", action="store_true",
                        help="Store the given options as defaults for later runs")
    return parser


def _make_source(args):
    if args.from_file:
        return FileTelemetrySource.from_file(args.from_file)
    # Imported lazily so --from-file runs never touch platform detectors
    from pcdoctor.services.hardware.system_source import LocalTelemetrySource
    return LocalTelemetrySource(event_log_timeout=get_config_manager().get("event_log_timeout_s"))


def print_summary(report: DiagnosticReport, out=None) -> None:
    out = out or sys.stdout
    scores = report.scores
    print(f"Scores: gaming {scores.gaming:g}, recording {scores.recording:g}, "
          f"multitasking {scores.multitasking:g}", file=out)
    for rec in report.recommendations:
        marker = " (unknown)" if rec.status_unknown else ""
        print(f"  {rec.category.value.upper():<8} {rec.priority.name:<8}{marker} {rec.reason}", file=out)
        if rec.critical_warning:
            print(f"           !! {rec.critical_warning}", file=out)
    for warning in report.warnings:
        print(f"  warning: {warning}", file=out)


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    config = get_config_manager()

    options = {
        "use_case": args.use_case if args.use_case is not None else config.get("use_case"),
        "budget_usd": args.budget if args.budget is not None else config.get("budget_usd"),
        "target_fps": args.fps if args.fps is not None else config.get("target_fps"),
        "target_bitrate_kbps": args.bitrate if args.bitrate is not None else config.get("target_bitrate_kbps"),
        "report_format": args.report_format or config.get("report_format"),
    }
    output = args.output or config.get("report_dir")

    if args.save_defaults:
        # Only options that would be accepted for a run are persisted
        try:
            validate_invocation(
                options["use_case"], options["budget_usd"],
                options["target_fps"], options["target_bitrate_kbps"],
            )
        except InvalidInputError as e:
            print(f"Invalid input: {e}", file=sys.stderr)
            return EXIT_INVALID_INPUT
        config.update(options)
        log.info("Saved current options as defaults")

    assembler = SnapshotAssembler(
        default_timeout=config.get("telemetry_timeout_s"),
        timeouts={"memory_errors": config.get("event_log_timeout_s")},
        error_window_days=config.get("error_window_days"),
    )

    try:
        service = DiagnosticService(assembler=assembler, stale_driver_days=config.get("stale_driver_days"))
        sink = sink_for_format(options["report_format"], Path(output).expanduser())
        report = service.run(
            _make_source(args),
            options["use_case"],
            options["budget_usd"],
            options["target_fps"],
            options["target_bitrate_kbps"],
            sink=sink,
        )
    except InvalidInputError as e:
        print(f"Invalid input: {e}", file=sys.stderr)
        return EXIT_INVALID_INPUT
    except DetectionFailedError as e:
        print(f"Could not load hardware description: {e}", file=sys.stderr)
        return EXIT_INVALID_INPUT
    except (SnapshotInvariantError, HardwareCatalogError) as e:
        log.error(f"Diagnostic run aborted: {e}")
        print(f"Internal error: {e}", file=sys.stderr)
        return EXIT_INTERNAL
    except OSError as e:
        log.error(f"Could not write report: {e}")
        print(f"Could not write report: {e}", file=sys.stderr)
        return EXIT_INTERNAL

    print_summary(report)
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
