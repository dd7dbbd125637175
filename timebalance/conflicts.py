"""
Conflict Detection - double-booking clusters and split attendance.

- Overlap groups are connected components of strictly overlapping events
  (sweep-line + union-find)
- Back-to-back events (end == start) are NOT a conflict
- Split time estimates how much of each event a person actually attends
  when they split attention across a cluster
"""

import logging
from collections.abc import Iterable, Sequence

from timebalance.models import Event, OverlapGroup

logger = logging.getLogger(__name__)


# =============================================================================
# UNION-FIND
# =============================================================================


class UnionFind:
    """Disjoint sets keyed by event id, with path compression and union by rank."""

    def __init__(self):
        self.parent: dict[str, str] = {}
        self.rank: dict[str, int] = {}

    def make_set(self, item: str) -> None:
        if item not in self.parent:
            self.parent[item] = item
            self.rank[item] = 0

    def find(self, item: str) -> str:
        root = item
        while self.parent[root] != root:
            root = self.parent[root]
        # Path compression
        while self.parent[item] != root:
            self.parent[item], item = root, self.parent[item]
        return root

    def union(self, a: str, b: str) -> None:
        root_a = self.find(a)
        root_b = self.find(b)
        if root_a == root_b:
            return

        rank_a = self.rank[root_a]
        rank_b = self.rank[root_b]
        if rank_a < rank_b:
            self.parent[root_a] = root_b
        elif rank_a > rank_b:
            self.parent[root_b] = root_a
        else:
            self.parent[root_b] = root_a
            self.rank[root_a] = rank_a + 1

    def groups(self) -> dict[str, list[str]]:
        """Root -> members, in insertion order of the members."""
        out: dict[str, list[str]] = {}
        for item in self.parent:
            out.setdefault(self.find(item), []).append(item)
        return out


# =============================================================================
# OVERLAP DETECTION
# =============================================================================


def events_overlap(a: Event, b: Event) -> bool:
    """Strict overlap: back-to-back events (a.end == b.start) do not overlap."""
    return a.start < b.end and b.start < a.end


def build_overlap_groups(events: Iterable[Event]) -> list[OverlapGroup]:
    """
    Build groups of overlapping events using sweep-line + union-find.

    Returns only groups with more than one event (actual conflicts),
    sorted by the start of their time span.
    """
    timed = [e for e in events if not e.is_all_day]
    if not timed:
        return []

    ordered = sorted(timed, key=lambda e: e.start)
    by_id = {e.id: e for e in ordered}

    uf = UnionFind()
    for event in ordered:
        uf.make_set(event.id)

    for i, current in enumerate(ordered):
        for j in range(i + 1, len(ordered)):
            # Sorted by start: once j starts at/after i ends, nothing later overlaps i
            if ordered[j].start >= current.end:
                break
            if events_overlap(current, ordered[j]):
                uf.union(current.id, ordered[j].id)

    clusters = []
    for member_ids in uf.groups().values():
        if len(member_ids) < 2:
            continue
        members = [by_id[m] for m in member_ids]
        clusters.append(
            (
                min(e.start for e in members),
                max(e.end for e in members),
                members,
            )
        )

    clusters.sort(key=lambda c: c[0])
    groups = [
        OverlapGroup(id=f"overlap-{index}", start=start, end=end, events=members)
        for index, (start, end, members) in enumerate(clusters)
    ]

    logger.debug(
        "Overlap groups built",
        extra={"events": len(ordered), "groups": len(groups)},
    )
    return groups


def calculate_overlap_minutes(a: Event, b: Event) -> float:
    """Minutes both events share; 0 when they don't overlap."""
    overlap_start = max(a.start, b.start)
    overlap_end = min(a.end, b.end)
    if overlap_start >= overlap_end:
        return 0
    return (overlap_end - overlap_start).total_seconds() / 60


def calculate_split_time(attending: Sequence[Event]) -> dict[str, float]:
    """
    Effective minutes per event when attending a set of overlapping events.

    Each event loses half of every pairwise overlap with the others, floored
    at zero. Exact for two-way overlaps; a heuristic for three or more
    simultaneous events (shared minutes are not partitioned exactly).
    """
    if not attending:
        return {}
    if len(attending) == 1:
        return {attending[0].id: attending[0].duration_minutes}

    result: dict[str, float] = {}
    for event in attending:
        effective = event.duration_minutes
        for other in attending:
            if other.id != event.id:
                effective -= calculate_overlap_minutes(event, other) / 2
        result[event.id] = max(0, effective)
    return result
