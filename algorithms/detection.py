"""
Deadlock Detection Algorithm for the Deadlock Snapshot Detector.

Implements matrix-based deadlock detection (Work/Finish algorithm) for
multi-instance resource systems.
"""

import numpy as np
from typing import Dict, FrozenSet, Tuple
from dataclasses import dataclass, field

from models.snapshot import Snapshot


DEADLOCK_PRESENT = "deadlock present"
NO_DEADLOCK = "no deadlock"


@dataclass(frozen=True)
class DetectionResult:
    """
    Outcome of a single detection run.

    Attributes:
        deadlocked: True if at least one process can never finish
        blocked_processes: Indices of processes that can never finish
        finish_order: One valid completion order of the finishable processes
        passes: Full passes over the process list, including the last one
            that made no progress
        final_work: Work vector at the fixed point [R]
        shortfall: Blocked process index -> units still missing per resource type
        pass_completions: Processes finished in each pass, one entry per pass
    """
    deadlocked: bool
    blocked_processes: FrozenSet[int]
    finish_order: Tuple[int, ...]
    passes: int = 0
    final_work: Tuple[int, ...] = ()
    shortfall: Dict[int, Tuple[int, ...]] = field(default_factory=dict)
    pass_completions: Tuple[Tuple[int, ...], ...] = ()

    @property
    def verdict(self) -> str:
        """Canonical verdict string."""
        return DEADLOCK_PRESENT if self.deadlocked else NO_DEADLOCK


def detect_deadlock(snapshot: Snapshot) -> DetectionResult:
    """
    Detect deadlock using matrix-based Work/Finish algorithm.

    Algorithm (Multi-Instance Resources):
    1. Initialize Work = Available.copy(), Finish = [False] * num_processes
    2. Scan every unfinished process i in index order; if Request[i] <= Work
       (element-wise), set Finish[i] = True and Work += Allocation[i]
    3. If the pass finished anyone, run another full pass
    4. Deadlock exists if any Finish[i] == False at the fixed point

    CRITICAL: Uses Request[i] (current outstanding request), NOT a maximum
    demand; this is detection, not the Banker's avoidance check.

    Time Complexity: O(P²×R) where P = processes, R = resource types

    Args:
        snapshot: System state to analyse (never modified)

    Returns:
        DetectionResult with verdict, blocked set and finish order

    References:
        Silberschatz, A., Galvin, P. B., & Gagne, G. (2018).
        Operating System Concepts (10th ed.). Chapter 7: Deadlocks.
    """
    num_processes = snapshot.num_processes
    allocation = snapshot.allocation
    request = snapshot.request

    # Step 1: Private working copies, the snapshot arrays are read-only
    work = snapshot.available.copy()
    finish = np.zeros(num_processes, dtype=bool)
    finish_order = []

    # Steps 2-3: Full passes until one makes no progress
    passes = 0
    pass_completions = []
    found_progress = True
    while found_progress:
        found_progress = False
        passes += 1
        completed = []

        for i in range(num_processes):
            if finish[i]:
                continue

            if np.all(request[i] <= work):
                # Process can complete - it releases everything it holds
                work += allocation[i]
                finish[i] = True
                finish_order.append(i)
                completed.append(i)
                found_progress = True

        pass_completions.append(tuple(completed))

    # Step 4: Whatever never finished is blocked
    blocked = [i for i in range(num_processes) if not finish[i]]
    shortfall = {
        i: tuple(int(x) for x in np.maximum(request[i] - work, 0))
        for i in blocked
    }

    return DetectionResult(
        deadlocked=len(blocked) > 0,
        blocked_processes=frozenset(blocked),
        finish_order=tuple(finish_order),
        passes=passes,
        final_work=tuple(int(x) for x in work),
        shortfall=shortfall,
        pass_completions=tuple(pass_completions)
    )


def is_deadlocked(snapshot: Snapshot) -> bool:
    """
    Check whether a snapshot is deadlocked.

    Args:
        snapshot: System state to analyse

    Returns:
        True if some process can never finish
    """
    return detect_deadlock(snapshot).deadlocked
