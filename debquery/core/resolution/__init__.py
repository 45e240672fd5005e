"""Orphan detection and removal-candidate lookup.

- orphans: reachability analysis over the local dependency graph
- removal: deborphan / debfoster / apt-get autoremove wrappers
"""

from .orphans import DependencyGraph, Orphan, OrphanDetector, OrphanReport, StalePair
from .removal import RemovalCandidates, find_removal_candidates

__all__ = [
    'DependencyGraph',
    'Orphan',
    'OrphanDetector',
    'OrphanReport',
    'StalePair',
    'RemovalCandidates',
    'find_removal_candidates',
]
