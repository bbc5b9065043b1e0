"""
Snapshot model for the Deadlock Snapshot Detector.

Holds one validated, read-only view of a system state: the available
vector plus the allocation and request matrices required for deadlock
detection.
"""

import numbers

import numpy as np
from typing import List, Sequence
from dataclasses import dataclass


class ValidationError(ValueError):
    """Exception raised when snapshot data violates a model invariant."""
    pass


def _check_value(value, where: str) -> int:
    """Return value as a plain int, rejecting bools, non-integers and negatives."""
    if isinstance(value, (bool, np.bool_)) or not isinstance(value, numbers.Integral):
        raise ValidationError(f"{where}: expected a non-negative integer, got {value!r}")
    if value < 0:
        raise ValidationError(f"{where}: value cannot be negative ({value})")
    return int(value)


def _build_vector(values, length: int, name: str) -> np.ndarray:
    """Validate a length-R vector and return it as a read-only array of Python ints."""
    if isinstance(values, (str, bytes)) or not isinstance(values, (Sequence, np.ndarray)):
        raise ValidationError(f"{name}: expected a sequence of {length} integers")
    if len(values) != length:
        raise ValidationError(
            f"{name}: length ({len(values)}) does not match resource count ({length})"
        )
    # object dtype keeps unbounded ints; int64 columns would wrap on release sums
    vector = np.array([_check_value(v, f"{name}[{j}]") for j, v in enumerate(values)], dtype=object)
    vector.flags.writeable = False
    return vector


def _build_matrix(rows, num_rows: int, num_cols: int, name: str) -> np.ndarray:
    """Validate a P x R matrix and return it as a read-only array of Python ints."""
    if isinstance(rows, (str, bytes)) or not isinstance(rows, (Sequence, np.ndarray)):
        raise ValidationError(f"{name}: expected {num_rows} rows")
    if len(rows) != num_rows:
        raise ValidationError(
            f"{name}: row count ({len(rows)}) does not match process count ({num_rows})"
        )
    matrix = np.zeros((num_rows, num_cols), dtype=object)
    for i, row in enumerate(rows):
        matrix[i] = _build_vector(row, num_cols, f"{name}[{i}]")
    matrix.flags.writeable = False
    return matrix


def _check_count(value, name: str) -> int:
    if isinstance(value, (bool, np.bool_)) or not isinstance(value, numbers.Integral):
        raise ValidationError(f"{name} must be an integer, got {value!r}")
    if value <= 0:
        raise ValidationError(f"{name} must be positive, got {value}")
    return int(value)


@dataclass(frozen=True, eq=False)
class Snapshot:
    """
    Immutable state of a multi-process, multi-resource system.

    Attributes:
        num_processes: Number of processes P
        num_resources: Number of resource types R
        available: [R] Free resource units by type
        allocation: [P][R] Units currently held by each process
        request: [P][R] Units each process still needs to complete

    Invariant:
        All arrays are read-only copies; every value is a non-negative int
    """
    num_processes: int
    num_resources: int
    available: np.ndarray
    allocation: np.ndarray
    request: np.ndarray

    def __post_init__(self):
        """Validate dimensions and values, then freeze private copies."""
        num_processes = _check_count(self.num_processes, "Process count")
        num_resources = _check_count(self.num_resources, "Resource count")

        # Frozen dataclass: fields are replaced through object.__setattr__
        object.__setattr__(self, 'num_processes', num_processes)
        object.__setattr__(self, 'num_resources', num_resources)
        object.__setattr__(self, 'available',
                           _build_vector(self.available, num_resources, "available"))
        object.__setattr__(self, 'allocation',
                           _build_matrix(self.allocation, num_processes, num_resources, "allocation"))
        object.__setattr__(self, 'request',
                           _build_matrix(self.request, num_processes, num_resources, "request"))

    @classmethod
    def from_lists(
        cls,
        num_processes: int,
        num_resources: int,
        available: List[int],
        allocation: List[List[int]],
        request: List[List[int]]
    ) -> 'Snapshot':
        """
        Build a snapshot from plain Python lists.

        Raises:
            ValidationError: If any invariant is violated
        """
        return cls(num_processes, num_resources, available, allocation, request)

    def allocation_row(self, process: int) -> np.ndarray:
        """Get read-only allocation row [R] for a process."""
        return self.allocation[process]

    def request_row(self, process: int) -> np.ndarray:
        """Get read-only request row [R] for a process."""
        return self.request[process]

    @property
    def total_held(self) -> np.ndarray:
        """Units held by all processes, per resource type."""
        return self.allocation.sum(axis=0)

    @property
    def total_units(self) -> np.ndarray:
        """Units in the system (available + held), per resource type."""
        return self.available + self.total_held

    def permuted(self, order: Sequence[int]) -> 'Snapshot':
        """
        Return a new snapshot with process rows reordered.

        Row i of the result is row order[i] of this snapshot.

        Args:
            order: Permutation of range(num_processes)

        Raises:
            ValidationError: If order is not a permutation of the process indices
        """
        if sorted(order) != list(range(self.num_processes)):
            raise ValidationError(
                f"order must be a permutation of 0..{self.num_processes - 1}, got {list(order)}"
            )
        index = list(order)
        return Snapshot(
            self.num_processes,
            self.num_resources,
            self.available,
            self.allocation[index],
            self.request[index]
        )

    def __eq__(self, other) -> bool:
        if not isinstance(other, Snapshot):
            return NotImplemented
        return (
            self.num_processes == other.num_processes
            and self.num_resources == other.num_resources
            and np.array_equal(self.available, other.available)
            and np.array_equal(self.allocation, other.allocation)
            and np.array_equal(self.request, other.request)
        )

    __hash__ = None

    def display(self) -> str:
        """
        Generate readable string representation of the snapshot.

        Returns:
            Formatted string showing the available vector and both matrices
        """
        header = "     " + " ".join([f"R{j:2}" for j in range(self.num_resources)])

        output = []
        output.append("\n" + "="*60)
        output.append(f"SNAPSHOT ({self.num_processes} processes, {self.num_resources} resource types)")
        output.append("="*60)

        output.append("\nAvailable Resources:")
        output.append("  [" + ", ".join(
            f"R{j}:{self.available[j]:2}" for j in range(self.num_resources)
        ) + "]")

        for title, matrix in (("Allocation Matrix:", self.allocation),
                              ("Request Matrix:", self.request)):
            output.append("\n" + title)
            output.append(header)
            for i in range(self.num_processes):
                row = f"  P{i}: "
                row += " ".join([f"{matrix[i][j]:3}" for j in range(self.num_resources)])
                output.append(row)

        output.append("\n" + "="*60)
        return "\n".join(output)

    def __repr__(self) -> str:
        return (
            f"Snapshot(processes={self.num_processes}, resources={self.num_resources}, "
            f"available={self.available.tolist()})"
        )
