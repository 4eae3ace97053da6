"""Tests for process tree resolution."""

import pytest

from memgov.exceptions import RootNotFound
from memgov.tree import children_index, descendants

from conftest import make_record, snapshot_of


def test_children_index():
    snapshot = snapshot_of(
        make_record(1, ppid=0),
        make_record(2, ppid=1),
        make_record(3, ppid=1),
        make_record(4, ppid=2),
    )

    index = children_index(snapshot)

    assert sorted(index[1]) == [2, 3]
    assert index[2] == [4]
    assert index[0] == [1]


def test_descendants_includes_root():
    snapshot = snapshot_of(make_record(10, ppid=1))

    assert descendants(snapshot, 10) == {10}


def test_descendants_follows_grandchildren():
    snapshot = snapshot_of(
        make_record(1, ppid=0),
        make_record(10, ppid=1),
        make_record(11, ppid=10),
        make_record(12, ppid=11),
        make_record(20, ppid=1),
        make_record(21, ppid=20),
    )

    assert descendants(snapshot, 10) == {10, 11, 12}
    assert descendants(snapshot, 1) == {1, 10, 11, 12, 20, 21}


def test_descendants_is_closed_under_parent_links():
    """Test every descendant's parent chain reaches the root inside the set."""
    snapshot = snapshot_of(
        make_record(1, ppid=0),
        make_record(5, ppid=1),
        make_record(6, ppid=5),
        make_record(7, ppid=6),
        make_record(8, ppid=0),
        make_record(9, ppid=8),
    )

    result = descendants(snapshot, 5)

    for pid in result:
        while pid != 5:
            pid = snapshot[pid].ppid
            assert pid in result


def test_descendants_skips_missing_parents():
    """Test a child whose parent vanished mid-scan is not reachable."""
    snapshot = snapshot_of(
        make_record(1, ppid=0),
        make_record(3, ppid=2),  # parent 2 not sampled
    )

    assert descendants(snapshot, 1) == {1}


def test_descendants_terminates_on_cycle():
    """Test malformed cyclic parent links do not loop forever."""
    snapshot = snapshot_of(
        make_record(1, ppid=3),
        make_record(2, ppid=1),
        make_record(3, ppid=2),
    )

    assert descendants(snapshot, 1) == {1, 2, 3}


def test_descendants_self_parent():
    snapshot = snapshot_of(make_record(0, ppid=0), make_record(1, ppid=0))

    assert descendants(snapshot, 0) == {0, 1}


def test_descendants_root_not_found():
    snapshot = snapshot_of(make_record(1, ppid=0))

    with pytest.raises(RootNotFound) as excinfo:
        descendants(snapshot, 4242)

    assert excinfo.value.pid == 4242
    assert "4242" in str(excinfo.value)


def test_descendants_empty_snapshot():
    with pytest.raises(RootNotFound):
        descendants({}, 1)
