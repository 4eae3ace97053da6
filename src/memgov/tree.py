"""Process tree resolution."""

from collections import defaultdict, deque

from memgov.exceptions import RootNotFound
from memgov.models import Snapshot


def children_index(snapshot: Snapshot) -> dict[int, list[int]]:
    """Build a parent PID -> child PIDs index in one pass."""
    children: dict[int, list[int]] = defaultdict(list)
    for record in snapshot.values():
        children[record.ppid].append(record.pid)
    return children


def descendants(snapshot: Snapshot, root_pid: int) -> set[int]:
    """
    Return the PIDs reachable from root_pid, including root_pid itself.

    Traversal is breadth-first and visits each PID at most once, so
    malformed or cyclic parent links cannot loop forever.

    Raises:
        RootNotFound: If root_pid is not in the snapshot.
    """
    if root_pid not in snapshot:
        raise RootNotFound(root_pid)

    children = children_index(snapshot)
    seen = {root_pid}
    queue = deque([root_pid])
    while queue:
        pid = queue.popleft()
        for child in children.get(pid, ()):
            if child not in seen:
                seen.add(child)
                queue.append(child)
    return seen
