"""
Batch Analysis Library for the Deadlock Snapshot Detector.

Called by detector.py when several snapshot files are given.
This is a library module, not a standalone CLI tool.
"""

from typing import List, Optional
from dataclasses import dataclass, field
from pathlib import Path

from algorithms.detection import DetectionResult, detect_deadlock
from utils.snapshot_loader import ParseError, load_snapshot


@dataclass
class SnapshotReport:
    """Result of analysing one snapshot file."""
    source: str
    result: Optional[DetectionResult] = None
    error: str = ""

    def failed(self) -> bool:
        """Check if the file could not be loaded."""
        return self.result is None

    def status(self) -> str:
        """Short status label for tables."""
        if self.failed():
            return "ERROR"
        return "DEADLOCK" if self.result.deadlocked else "OK"


@dataclass
class BatchSummary:
    """Detection results across many snapshot files."""
    reports: List[SnapshotReport] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.reports)

    @property
    def deadlocked_count(self) -> int:
        return sum(1 for r in self.reports if not r.failed() and r.result.deadlocked)

    @property
    def clear_count(self) -> int:
        return sum(1 for r in self.reports if not r.failed() and not r.result.deadlocked)

    @property
    def error_count(self) -> int:
        return sum(1 for r in self.reports if r.failed())

    @property
    def deadlock_frequency(self) -> float:
        """Deadlocked snapshots / successfully analysed snapshots."""
        analysed = self.total - self.error_count
        if analysed == 0:
            return 0.0
        return self.deadlocked_count / analysed

    def display(self) -> str:
        """Format results as a summary table."""
        lines = []
        lines.append("\n" + "="*80)
        lines.append("DEADLOCK DETECTION SUMMARY")
        lines.append("="*80)
        lines.append(f"{'Snapshot':<30} {'Result':<9} {'Blocked':<20} {'Finish Order':<19}")
        lines.append("-"*80)

        for report in self.reports:
            name = Path(report.source).name
            if report.failed():
                lines.append(f"{name:<30} {report.status():<9} {report.error}")
                continue
            blocked = ",".join(f"P{i}" for i in sorted(report.result.blocked_processes)) or "-"
            order = ",".join(f"P{i}" for i in report.result.finish_order) or "-"
            lines.append(f"{name:<30} {report.status():<9} {blocked:<20} {order:<19}")

        lines.append("-"*80)
        lines.append(
            f"Total: {self.total}  Deadlocked: {self.deadlocked_count}  "
            f"No deadlock: {self.clear_count}  Errors: {self.error_count}  "
            f"({self.deadlock_frequency:.2%} deadlocked)"
        )
        lines.append("="*80)
        return "\n".join(lines)


def analyze_snapshots(paths: List[str], fmt: Optional[str] = None, logger=None) -> BatchSummary:
    """
    Load and analyse each snapshot file.

    A file that fails to load is recorded with its error and never reaches
    detection; the remaining files are still analysed.

    Args:
        paths: Snapshot file paths
        fmt: Force 'text' or 'json' format for every file
        logger: Optional DetectorLogger for progress output

    Returns:
        BatchSummary with one report per path, in input order
    """
    summary = BatchSummary()

    for path in paths:
        try:
            snapshot = load_snapshot(path, fmt)
        except ParseError as e:
            if logger:
                logger.log(f"{path}: {e}", "warning")
            summary.reports.append(SnapshotReport(source=str(path), error=str(e)))
            continue

        result = detect_deadlock(snapshot)
        if logger:
            logger.log(f"{path}: {result.verdict}", "debug")
        summary.reports.append(SnapshotReport(source=str(path), result=result))

    return summary
