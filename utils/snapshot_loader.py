"""
Snapshot Loader for the Deadlock Snapshot Detector.

Parses the line-oriented snapshot text format and JSON snapshot files
into validated Snapshot objects.
"""

import json
import re
from typing import Any, Dict, List, Optional
from pathlib import Path

from models.snapshot import Snapshot, ValidationError


# ASCII digits only; int() would also take "+3", "1_000" and non-ASCII digits
INTEGER_TOKEN = re.compile(r"-?[0-9]+")


class ParseError(ValueError):
    """Exception raised when snapshot input cannot be loaded or is malformed."""

    def __init__(
        self,
        message: str,
        line_number: Optional[int] = None,
        line: Optional[str] = None,
        field: Optional[str] = None
    ):
        self.message = message
        self.line_number = line_number
        self.line = line
        self.field = field
        super().__init__(self._format())

    def _format(self) -> str:
        parts = []
        if self.line_number is not None:
            parts.append(f"line {self.line_number}")
        if self.field:
            parts.append(self.field)
        location = f"{', '.join(parts)}: " if parts else ""
        text = f"{location}{self.message}"
        if self.line is not None:
            text += f" (got: {self.line.strip()!r})"
        return text


class _LineReader:
    """Iterates over meaningful lines, skipping blanks and '#' comments."""

    def __init__(self, text: str):
        self._lines = [
            (number, raw)
            for number, raw in enumerate(text.splitlines(), start=1)
            if raw.strip() and not raw.strip().startswith('#')
        ]
        self._pos = 0

    def next(self, field: str):
        """Return (line_number, raw_line) or raise ParseError for a missing line."""
        if self._pos >= len(self._lines):
            raise ParseError("unexpected end of input, line is missing", field=field)
        entry = self._lines[self._pos]
        self._pos += 1
        return entry

    def remaining(self):
        return self._lines[self._pos:]


def _parse_int(token: str, line_number: int, line: str, field: str) -> int:
    if not INTEGER_TOKEN.fullmatch(token):
        raise ParseError(f"'{token}' is not an integer", line_number, line, field)
    try:
        return int(token)
    except ValueError as e:
        # int() refuses tokens beyond sys.get_int_max_str_digits()
        raise ParseError(str(e), line_number, line, field)


def _parse_header(reader: _LineReader, label: str) -> int:
    """Parse a 'Label: <int>' header line."""
    line_number, line = reader.next(label)
    if ':' not in line:
        raise ParseError(f"expected '{label}: <count>'", line_number, line, label)

    name, value = line.split(':', 1)
    if name.strip().lower() != label.lower():
        raise ParseError(f"expected '{label}' header, found '{name.strip()}'",
                         line_number, line, label)

    tokens = value.split()
    if len(tokens) != 1:
        raise ParseError(f"expected exactly one value, found {len(tokens)}",
                         line_number, line, label)
    return _parse_int(tokens[0], line_number, line, label)


def _parse_row(reader: _LineReader, expected_length: int, field: str) -> List[int]:
    """Parse one line of whitespace-separated integers."""
    line_number, line = reader.next(field)
    tokens = line.split()
    if len(tokens) != expected_length:
        raise ParseError(
            f"expected {expected_length} values, found {len(tokens)}",
            line_number, line, field
        )
    return [_parse_int(token, line_number, line, field) for token in tokens]


def parse_snapshot(text: str) -> Snapshot:
    """
    Parse a snapshot from the line-oriented text format.

    Format:
        Processes: <P>
        Resources: <R>
        <R integers: available>
        <P lines of R integers: allocation rows>
        <P lines of R integers: request rows>

    Args:
        text: Snapshot description

    Returns:
        Validated Snapshot

    Raises:
        ParseError: If the text is malformed or violates snapshot invariants
    """
    reader = _LineReader(text)

    num_processes = _parse_header(reader, "Processes")
    num_resources = _parse_header(reader, "Resources")

    # Row lengths depend on R, so counts are checked before reading rows
    if num_processes <= 0:
        raise ParseError(f"process count must be positive, got {num_processes}", field="Processes")
    if num_resources <= 0:
        raise ParseError(f"resource count must be positive, got {num_resources}", field="Resources")

    available = _parse_row(reader, num_resources, "available")
    allocation = [
        _parse_row(reader, num_resources, f"allocation[{i}]")
        for i in range(num_processes)
    ]
    request = [
        _parse_row(reader, num_resources, f"request[{i}]")
        for i in range(num_processes)
    ]

    leftover = reader.remaining()
    if leftover:
        line_number, line = leftover[0]
        raise ParseError("unexpected content after request matrix", line_number, line)

    return _build_snapshot(num_processes, num_resources, available, allocation, request)


def parse_snapshot_json(data: Dict[str, Any]) -> Snapshot:
    """
    Build a snapshot from a decoded JSON object.

    Expected keys: processes, resources, available, allocation, request.
    An optional 'description' key is ignored.

    Args:
        data: Decoded JSON dictionary

    Returns:
        Validated Snapshot

    Raises:
        ParseError: If a key is missing or the data violates snapshot invariants
    """
    if not isinstance(data, dict):
        raise ParseError("snapshot JSON must be an object")

    required_fields = ['processes', 'resources', 'available', 'allocation', 'request']
    for field in required_fields:
        if field not in data:
            raise ParseError(f"snapshot missing '{field}' field", field=field)

    return _build_snapshot(
        data['processes'],
        data['resources'],
        data['available'],
        data['allocation'],
        data['request']
    )


def _build_snapshot(num_processes, num_resources, available, allocation, request) -> Snapshot:
    try:
        return Snapshot(num_processes, num_resources, available, allocation, request)
    except ValidationError as e:
        raise ParseError(str(e)) from e


def load_snapshot(file_path: str, fmt: Optional[str] = None) -> Snapshot:
    """
    Load a snapshot from a file.

    Args:
        file_path: Path to snapshot file
        fmt: 'text' or 'json'; inferred from the extension when omitted

    Returns:
        Validated Snapshot

    Raises:
        ParseError: If the file cannot be read or its content is invalid
    """
    path = Path(file_path)
    if fmt is None:
        fmt = 'json' if path.suffix.lower() == '.json' else 'text'
    if fmt not in ('text', 'json'):
        raise ParseError(f"unknown snapshot format '{fmt}'")

    try:
        with open(path, 'r', encoding='utf-8') as f:
            content = f.read()
    except FileNotFoundError:
        raise ParseError(f"Snapshot file not found: {file_path}")
    except OSError as e:
        raise ParseError(f"Cannot read snapshot file {file_path}: {e}")
    except UnicodeDecodeError as e:
        raise ParseError(f"Snapshot file is not valid UTF-8: {e}")

    if fmt == 'json':
        try:
            data = json.loads(content)
        except ValueError as e:
            raise ParseError(f"Invalid JSON in snapshot file: {e}")
        return parse_snapshot_json(data)

    return parse_snapshot(content)


def get_snapshot_description(file_path: str) -> str:
    """
    Get description from a JSON snapshot file without full loading.

    Args:
        file_path: Path to snapshot file

    Returns:
        Description string, or empty string if not present or unreadable
    """
    try:
        with open(file_path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except (OSError, ValueError):
        return ''
    if not isinstance(data, dict):
        return ''
    return str(data.get('description', ''))
