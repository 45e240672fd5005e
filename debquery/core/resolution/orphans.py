"""Orphan package detection.

An orphan is an automatically installed package that no manually
installed package still needs, following Depends, Recommends and
Suggests transitively. Core system packages (see config.SYSTEM_PATTERNS)
are never reported, whatever the graph says.
"""

import logging
from collections import defaultdict, deque
from dataclasses import dataclass, field
from typing import (
    Dict, FrozenSet, Iterable, List, Mapping, Optional, Pattern, Sequence, Set, Tuple,
)

from ..config import is_system_package
from ..parsing import base_name, relation_names

logger = logging.getLogger(__name__)

# (package, depends, recommends, suggests) as emitted by dpkg-query
DependencyRow = Tuple[str, str, str, str]


class DependencyGraph:
    """Adjacency list of package -> packages it depends on.

    Depends, Recommends and Suggests edges are merged; the graph does not
    remember which field an edge came from.
    """

    def __init__(self):
        self._adjacency: Dict[str, Set[str]] = defaultdict(set)
        self._edge_count = 0

    def add_edge(self, package: str, dependency: str):
        targets = self._adjacency[package]
        if dependency not in targets:
            targets.add(dependency)
            self._edge_count += 1

    @classmethod
    def from_edges(cls, edges: Iterable[Tuple[str, str]]) -> 'DependencyGraph':
        graph = cls()
        for package, dependency in edges:
            graph.add_edge(package, dependency)
        return graph

    @classmethod
    def from_rows(cls, rows: Iterable[DependencyRow]) -> 'DependencyGraph':
        """Build the graph from raw relation fields."""
        graph = cls()
        for package, depends, recommends, suggests in rows:
            for text in (depends, recommends, suggests):
                for dependency in relation_names(text):
                    graph.add_edge(package, dependency)
        return graph

    @property
    def edge_count(self) -> int:
        return self._edge_count

    def dependencies(self, package: str) -> FrozenSet[str]:
        return frozenset(self._adjacency.get(package, ()))

    def reachable_from(self, roots: Iterable[str]) -> FrozenSet[str]:
        """All packages reachable from roots, roots included.

        Breadth-first walk with a work queue; each vertex and edge is
        visited once.
        """
        reachable = set(roots)
        queue = deque(reachable)
        while queue:
            package = queue.popleft()
            for dependency in self._adjacency.get(package, ()):
                if dependency not in reachable:
                    reachable.add(dependency)
                    queue.append(dependency)
        return frozenset(reachable)


@dataclass(frozen=True)
class Orphan:
    """An unreachable automatic package."""
    name: str
    version: str = ''
    held: bool = False

    @property
    def label(self) -> str:
        return f"{self.name} [hold]" if self.held else self.name


@dataclass(frozen=True)
class StalePair:
    """Orphan that shares a base name with another installed version."""
    orphan: str
    orphan_version: str
    other: str
    other_version: str

    def __str__(self) -> str:
        return f"{self.orphan} ({self.orphan_version}) → {self.other} ({self.other_version})"


@dataclass
class OrphanReport:
    """Result of a full orphan scan."""
    reachable: FrozenSet[str]
    orphans: List[Orphan] = field(default_factory=list)
    stale: List[StalePair] = field(default_factory=list)
    manual_count: int = 0
    automatic_count: int = 0
    edge_count: int = 0

    def to_dict(self) -> dict:
        return {
            'manual': self.manual_count,
            'automatic': self.automatic_count,
            'edges': self.edge_count,
            'reachable': len(self.reachable),
            'orphans': [
                {'name': o.name, 'version': o.version, 'hold': o.held}
                for o in self.orphans
            ],
            'stale_versions': [
                {
                    'orphan': s.orphan, 'orphan_version': s.orphan_version,
                    'other': s.other, 'other_version': s.other_version,
                }
                for s in self.stale
            ],
        }


class OrphanDetector:
    """Reachability-based orphan detection over a frozen package snapshot.

    Args:
        manual: Manually installed package names
        automatic: Automatically installed package names
        rows: (package, depends, recommends, suggests) raw field rows
        versions: Installed package -> version
        holds: Names of held packages
        system_patterns: Compiled regexes of packages never reported
    """

    def __init__(
        self,
        manual: Sequence[str],
        automatic: Sequence[str],
        rows: Iterable[DependencyRow] = (),
        versions: Optional[Mapping[str, str]] = None,
        holds: Iterable[str] = (),
        system_patterns: Sequence[Pattern] = (),
        graph: Optional[DependencyGraph] = None,
    ):
        self.manual = list(manual)
        self.automatic = list(automatic)
        self.versions = dict(versions or {})
        self.holds = frozenset(holds)
        self.system_patterns = list(system_patterns)
        self.graph = graph if graph is not None else DependencyGraph.from_rows(rows)
        self._reachable: Optional[FrozenSet[str]] = None

    def _is_system(self, name: str) -> bool:
        return is_system_package(name, self.system_patterns)

    def reachable_set(self) -> FrozenSet[str]:
        """Packages transitively required by the manual set (cached)."""
        if self._reachable is None:
            self._reachable = self.graph.reachable_from(self.manual)
            logger.debug("Reachable: %d packages from %d manual, %d edges",
                         len(self._reachable), len(self.manual), self.graph.edge_count)
        return self._reachable

    def classify(self) -> List[Orphan]:
        """Automatic packages outside the reachable set, system ones excluded.

        Order follows the automatic input list; duplicates are dropped.
        """
        reachable = self.reachable_set()
        orphans = []
        seen = set()
        for name in self.automatic:
            if name in seen or name in reachable or self._is_system(name):
                continue
            seen.add(name)
            orphans.append(Orphan(name=name,
                                  version=self.versions.get(name, ''),
                                  held=name in self.holds))
        return orphans

    def stale_versions(self, orphans: Sequence[Orphan]) -> List[StalePair]:
        """Pair orphans with same-base-name packages at another version.

        Installed packages are grouped by base name once, so the cost is
        linear in installed + orphans (plus the size of the output).
        """
        groups: Dict[str, List[str]] = defaultdict(list)
        for name in sorted(self.versions):
            if not self._is_system(name):
                groups[base_name(name)].append(name)

        pairs = []
        for orphan in orphans:
            orphan_version = self.versions.get(orphan.name, '')
            if not orphan_version or self._is_system(orphan.name):
                continue
            for other in groups.get(base_name(orphan.name), ()):
                if other == orphan.name:
                    continue
                other_version = self.versions[other]
                if other_version != orphan_version:
                    pairs.append(StalePair(orphan.name, orphan_version,
                                           other, other_version))
        return pairs

    def run(self) -> OrphanReport:
        orphans = self.classify()
        return OrphanReport(
            reachable=self.reachable_set(),
            orphans=orphans,
            stale=self.stale_versions(orphans),
            manual_count=len(self.manual),
            automatic_count=len(self.automatic),
            edge_count=self.graph.edge_count,
        )
