"""
Logger utility for the Deadlock Snapshot Detector.

Provides console and file logging with verbosity levels.
"""

import logging
import sys
from typing import Optional
from datetime import datetime


LOGGER_NAME = "deadlock_detector"


class _LevelPrefixFormatter(logging.Formatter):
    """Prefix warnings, errors and debug output; plain text for info."""

    PREFIXES = {
        logging.DEBUG: "[DEBUG] ",
        logging.WARNING: "[WARNING] ",
        logging.ERROR: "[ERROR] ",
        logging.CRITICAL: "[ERROR] ",
    }

    def format(self, record: logging.LogRecord) -> str:
        return self.PREFIXES.get(record.levelno, "") + record.getMessage()


class DetectorLogger:
    """
    Logger for detection runs and verdicts.

    Format: "P<i> blocked (short: R<j>[n])"
    """

    LEVELS = {
        "debug": logging.DEBUG,
        "info": logging.INFO,
        "warning": logging.WARNING,
        "error": logging.ERROR,
    }

    def __init__(self, verbose: bool = False, log_file: Optional[str] = None, quiet: bool = False):
        """
        Initialize logger.

        Args:
            verbose: Enable debug output
            log_file: Optional file path for logging
            quiet: Suppress console output (file output is kept)
        """
        self.verbose = verbose
        self.log_file = log_file
        self.logger = logging.getLogger(LOGGER_NAME)
        self.logger.setLevel(logging.DEBUG if verbose else logging.INFO)
        self.logger.propagate = False

        # Handlers from an earlier instance would duplicate output
        self._remove_handlers()

        formatter = _LevelPrefixFormatter()
        if not quiet:
            console_handler = logging.StreamHandler(sys.stdout)
            console_handler.setFormatter(formatter)
            self.logger.addHandler(console_handler)

        self.file_handler = None
        if self.log_file:
            try:
                self.file_handler = logging.FileHandler(self.log_file, mode='w', encoding='utf-8')
            except OSError:
                self._remove_handlers()
                raise
            self.file_handler.setFormatter(formatter)
            self._write_header()
            self.logger.addHandler(self.file_handler)

    def _write_header(self) -> None:
        """Write log file header."""
        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        self.file_handler.stream.write(f"Deadlock Detection Log - {timestamp}\n")
        self.file_handler.stream.write("="*60 + "\n\n")
        self.file_handler.flush()

    def _remove_handlers(self) -> None:
        for handler in list(self.logger.handlers):
            self.logger.removeHandler(handler)
            handler.close()

    def log(self, message: str, level: str = "info") -> None:
        """
        Log a message.

        Args:
            message: Message to log
            level: Log level (info, debug, warning, error)
        """
        self.logger.log(self.LEVELS.get(level, logging.INFO), message)

    def log_snapshot(self, snapshot) -> None:
        """Log the snapshot tables (verbose only)."""
        if self.verbose:
            self.log(f"Snapshot:{snapshot.display()}", "debug")

    def log_result(self, source: str, result, details: bool = False) -> None:
        """
        Log a detection verdict.

        Args:
            source: Where the snapshot came from (file name)
            result: DetectionResult to report
            details: Also report blocked processes, finish order and shortfall
        """
        message = "Deadlock detected!" if result.deadlocked else "No deadlock."
        self.log(message)
        self.log(f"  Source: {source}", "debug")

        if details or self.verbose:
            order = ", ".join(f"P{i}" for i in result.finish_order) or "none"
            self.log(f"  Finish order: [{order}]")
            if result.deadlocked:
                blocked = ", ".join(f"P{i}" for i in sorted(result.blocked_processes))
                self.log(f"  Blocked processes: [{blocked}]")
                for pid in sorted(result.shortfall):
                    self.log_blocked(pid, result.shortfall[pid])
            self.log(f"  Passes: {result.passes}, final work: {list(result.final_work)}", "debug")
            for number, completed in enumerate(result.pass_completions, start=1):
                self.log_pass(number, completed)

    def log_pass(self, pass_number: int, completed) -> None:
        """
        Log the processes finished during one reduction pass (verbose only).

        Args:
            pass_number: 1-based pass number
            completed: Process indices finished in that pass, in scan order
        """
        finished = ", ".join(f"P{i}" for i in completed) or "none"
        self.log(f"  Pass {pass_number}: finished [{finished}]", "debug")

    def log_blocked(self, pid: int, shortfall) -> None:
        """
        Log the resources a blocked process is still missing.

        Args:
            pid: Blocked process index
            shortfall: Units missing per resource type
        """
        missing = ", ".join(
            f"R{j}[{amount}]" for j, amount in enumerate(shortfall) if amount > 0
        )
        self.log(f"  P{pid} blocked (short: {missing})")

    def close(self) -> None:
        """Close handlers, including the log file if open."""
        self._remove_handlers()
        self.file_handler = None
