#!/usr/bin/env python3
"""
Deadlock Snapshot Detector
Main entry point for the detection tool.

Reads one or more snapshot files, runs Work/Finish deadlock detection on
each and reports the verdict.
"""

import argparse
import sys
from typing import List, Optional

from algorithms.detection import DetectionResult, detect_deadlock
from analysis.analyzer import analyze_snapshots
from utils.logger import DetectorLogger
from utils.snapshot_loader import ParseError, load_snapshot


EXIT_NO_DEADLOCK = 0
EXIT_DEADLOCK = 1
EXIT_INPUT_ERROR = 2


def run_detection(
    snapshot_path: str,
    logger: DetectorLogger,
    fmt: Optional[str] = None,
    details: bool = False
) -> Optional[DetectionResult]:
    """
    Load a single snapshot file, detect deadlock and report the verdict.

    Args:
        snapshot_path: Path to snapshot file
        logger: Logger instance
        fmt: 'text' or 'json'; inferred from extension when omitted
        details: Report blocked processes, finish order and shortfall

    Returns:
        DetectionResult, or None if the snapshot could not be loaded
    """
    try:
        snapshot = load_snapshot(snapshot_path, fmt)
    except ParseError as e:
        logger.log(f"Error: {e}", "error")
        return None

    logger.log_snapshot(snapshot)
    result = detect_deadlock(snapshot)
    logger.log_result(snapshot_path, result, details=details)
    return result


def run_batch(
    snapshot_paths: List[str],
    logger: DetectorLogger,
    fmt: Optional[str] = None
) -> int:
    """
    Analyse several snapshot files and print a summary table.

    Returns:
        Exit code: input error if any file failed, else deadlock if any
        snapshot is deadlocked, else no deadlock
    """
    summary = analyze_snapshots(snapshot_paths, fmt=fmt, logger=logger)
    logger.log(summary.display())

    if summary.error_count:
        return EXIT_INPUT_ERROR
    if summary.deadlocked_count:
        return EXIT_DEADLOCK
    return EXIT_NO_DEADLOCK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Deadlock detection for resource allocation snapshots'
    )
    parser.add_argument(
        'snapshots',
        nargs='+',
        metavar='SNAPSHOT',
        help='Path to snapshot file (text or .json)'
    )
    parser.add_argument(
        '--format',
        choices=['text', 'json'],
        default=None,
        help='Snapshot file format (default: by file extension)'
    )
    parser.add_argument(
        '--details',
        action='store_true',
        help='Show blocked processes, finish order and missing resources'
    )
    parser.add_argument(
        '--verbose',
        action='store_true',
        help='Enable verbose logging'
    )
    parser.add_argument(
        '--log-file',
        type=str,
        default=None,
        help='Also write output to this file'
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the detector."""
    args = build_parser().parse_args(argv)
    try:
        logger = DetectorLogger(verbose=args.verbose, log_file=args.log_file)
    except OSError as e:
        print(f"[ERROR] Error: cannot open log file {args.log_file}: {e}", file=sys.stderr)
        return EXIT_INPUT_ERROR

    try:
        if len(args.snapshots) > 1:
            return run_batch(args.snapshots, logger, args.format)

        result = run_detection(args.snapshots[0], logger, args.format, args.details)
        if result is None:
            return EXIT_INPUT_ERROR
        return EXIT_DEADLOCK if result.deadlocked else EXIT_NO_DEADLOCK
    finally:
        logger.close()


if __name__ == '__main__':
    sys.exit(main())
