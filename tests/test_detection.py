"""
Detection Algorithm Tests

Tests the Work/Finish reduction on hand-checked snapshots and verifies
the properties every verdict must satisfy.
"""

import sys
import itertools
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import numpy as np

from models.snapshot import Snapshot
from algorithms.detection import (
    DEADLOCK_PRESENT,
    NO_DEADLOCK,
    detect_deadlock,
    is_deadlocked,
)


# Five processes, three resource types; every process can finish
TEXTBOOK_ALLOCATION = [[0, 1, 0], [2, 0, 0], [3, 0, 3], [2, 1, 1], [0, 0, 2]]
TEXTBOOK_REQUEST = [[0, 0, 0], [2, 0, 2], [0, 0, 0], [1, 0, 0], [0, 0, 2]]


def test_no_deadlock_scenario():
    """P0 needs nothing, finishes and releases the unit P1 is waiting for."""
    snapshot = Snapshot(2, 1, [0], [[1], [0]], [[0], [1]])
    result = detect_deadlock(snapshot)

    assert result.deadlocked is False
    assert result.blocked_processes == frozenset()
    assert result.finish_order == (0, 1)
    assert result.verdict == NO_DEADLOCK
    assert result.shortfall == {}


def test_deadlock_scenario():
    """Both processes hold one unit and wait for another."""
    snapshot = Snapshot(2, 1, [0], [[1], [1]], [[1], [1]])
    result = detect_deadlock(snapshot)

    assert result.deadlocked is True
    assert result.blocked_processes == frozenset({0, 1})
    assert result.finish_order == ()
    assert result.verdict == DEADLOCK_PRESENT
    assert result.passes == 1
    assert result.shortfall == {0: (1,), 1: (1,)}


def test_textbook_no_deadlock():
    snapshot = Snapshot(5, 3, [0, 0, 0], TEXTBOOK_ALLOCATION, TEXTBOOK_REQUEST)
    result = detect_deadlock(snapshot)

    assert not result.deadlocked
    # P1 only becomes runnable after P2 and P3 release; found on the second pass
    assert result.finish_order == (0, 2, 3, 4, 1)
    assert result.passes == 3
    assert result.final_work == (7, 2, 6)


def test_textbook_deadlock():
    request = [row[:] for row in TEXTBOOK_REQUEST]
    request[2] = [0, 0, 1]
    snapshot = Snapshot(5, 3, [0, 0, 0], TEXTBOOK_ALLOCATION, request)
    result = detect_deadlock(snapshot)

    assert result.deadlocked
    assert result.blocked_processes == frozenset({1, 2, 3, 4})
    assert result.finish_order == (0,)
    assert result.final_work == (0, 1, 0)
    assert result.shortfall == {
        1: (2, 0, 2),
        2: (0, 0, 1),
        3: (1, 0, 0),
        4: (0, 0, 2),
    }


def test_rescan_unblocks_lower_index():
    """A release late in a pass must be seen by processes earlier in the list."""
    snapshot = Snapshot(2, 1, [0], [[0], [1]], [[1], [0]])
    result = detect_deadlock(snapshot)

    assert not result.deadlocked
    assert result.finish_order == (1, 0)
    assert result.passes == 3


def test_partial_deadlock():
    """P0 finishes on its own while P1 and P2 wait on each other."""
    snapshot = Snapshot(
        3, 2,
        [1, 0],
        [[0, 0], [1, 0], [0, 1]],
        [[1, 0], [0, 1], [2, 0]]
    )
    result = detect_deadlock(snapshot)

    assert result.deadlocked
    assert result.finish_order == (0,)
    assert result.blocked_processes == frozenset({1, 2})
    assert result.final_work == (1, 0)
    assert result.shortfall == {1: (0, 1), 2: (1, 0)}


def test_request_satisfiable_from_available_alone():
    """Every request fits in available before any release: nothing blocks."""
    snapshot = Snapshot(
        4, 3,
        [3, 2, 2],
        [[1, 1, 0], [0, 2, 1], [4, 0, 0], [0, 0, 3]],
        [[3, 0, 2], [1, 2, 0], [0, 0, 0], [2, 1, 1]]
    )
    result = detect_deadlock(snapshot)

    assert not result.deadlocked
    assert sorted(result.finish_order) == [0, 1, 2, 3]
    assert result.finish_order == (0, 1, 2, 3)


def test_zero_available_all_requesting():
    """Nothing free and every process wants something: everyone is blocked."""
    snapshot = Snapshot(
        3, 2,
        [0, 0],
        [[5, 0], [0, 5], [2, 2]],
        [[0, 1], [1, 0], [0, 3]]
    )
    result = detect_deadlock(snapshot)

    assert result.deadlocked
    assert result.blocked_processes == frozenset({0, 1, 2})
    assert result.finish_order == ()


def test_detection_is_idempotent():
    """Two runs on the same snapshot agree and leave it untouched."""
    snapshot = Snapshot(5, 3, [0, 0, 0], TEXTBOOK_ALLOCATION, TEXTBOOK_REQUEST)
    available_before = snapshot.available.copy()
    allocation_before = snapshot.allocation.copy()
    request_before = snapshot.request.copy()

    first = detect_deadlock(snapshot)
    second = detect_deadlock(snapshot)

    assert first == second
    assert np.array_equal(snapshot.available, available_before)
    assert np.array_equal(snapshot.allocation, allocation_before)
    assert np.array_equal(snapshot.request, request_before)


def test_verdict_independent_of_process_order():
    """Permuting processes keeps the verdict and the (relabelled) blocked set."""
    snapshots = [
        Snapshot(4, 2, [1, 0], [[0, 1], [1, 0], [0, 1], [1, 1]],
                 [[1, 1], [0, 1], [2, 0], [0, 0]]),
        Snapshot(4, 2, [0, 0], [[1, 0], [0, 1], [1, 0], [0, 0]],
                 [[0, 1], [1, 0], [0, 0], [1, 1]]),
        Snapshot(4, 1, [0], [[1], [1], [0], [2]], [[1], [1], [3], [0]]),
    ]

    for snapshot in snapshots:
        base = detect_deadlock(snapshot)
        for order in itertools.permutations(range(snapshot.num_processes)):
            result = detect_deadlock(snapshot.permuted(order))
            assert result.deadlocked == base.deadlocked
            # New index k holds original process order[k]
            relabelled = frozenset(order[k] for k in result.blocked_processes)
            assert relabelled == base.blocked_processes, f"order {order}"


def test_large_unit_counts_do_not_wrap():
    """Releases past 2**63-1 keep counting up instead of wrapping negative."""
    snapshot = Snapshot(2, 1, [2**63 - 1], [[1], [0]], [[0], [5]])
    result = detect_deadlock(snapshot)

    assert not result.deadlocked
    assert result.finish_order == (0, 1)
    assert result.final_work == (2**63,)

    # Column sums far beyond 64 bits
    huge = 10**30
    snapshot = Snapshot(
        3, 2,
        [huge, 0],
        [[huge, 1], [huge, 1], [huge, 0]],
        [[0, 0], [3 * huge, 0], [2 * huge, 1]]
    )
    result = detect_deadlock(snapshot)
    assert not result.deadlocked
    assert result.finish_order == (0, 2, 1)
    assert result.final_work == (4 * huge, 2)

    blocked = detect_deadlock(Snapshot(1, 1, [huge], [[huge]], [[huge + 1]]))
    assert blocked.deadlocked
    assert blocked.shortfall == {0: (1,)}


def test_pass_completions():
    snapshot = Snapshot(5, 3, [0, 0, 0], TEXTBOOK_ALLOCATION, TEXTBOOK_REQUEST)
    result = detect_deadlock(snapshot)
    assert result.pass_completions == ((0, 2, 3, 4), (1,), ())
    assert len(result.pass_completions) == result.passes

    stuck = detect_deadlock(Snapshot(2, 1, [0], [[1], [1]], [[1], [1]]))
    assert stuck.pass_completions == ((),)


def test_single_process():
    assert not is_deadlocked(Snapshot(1, 1, [2], [[3]], [[2]]))
    assert is_deadlocked(Snapshot(1, 1, [2], [[3]], [[4]]))


def test_process_holding_nothing_and_requesting_nothing():
    snapshot = Snapshot(2, 2, [0, 0], [[0, 0], [0, 0]], [[0, 0], [0, 0]])
    result = detect_deadlock(snapshot)
    assert not result.deadlocked
    assert result.finish_order == (0, 1)


def main():
    """Run all detection tests."""
    tests = [
        test_no_deadlock_scenario,
        test_deadlock_scenario,
        test_textbook_no_deadlock,
        test_textbook_deadlock,
        test_rescan_unblocks_lower_index,
        test_partial_deadlock,
        test_request_satisfiable_from_available_alone,
        test_zero_available_all_requesting,
        test_detection_is_idempotent,
        test_verdict_independent_of_process_order,
        test_large_unit_counts_do_not_wrap,
        test_pass_completions,
        test_single_process,
        test_process_holding_nothing_and_requesting_nothing,
    ]
    for test in tests:
        test()
        print(f"  ✓ {test.__name__}")
    print("\n✅ Detection Tests PASSED")
    return 0


if __name__ == '__main__':
    sys.exit(main())
