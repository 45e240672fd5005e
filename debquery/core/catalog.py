"""
Available-package catalog from apt list indexes.

Reads /var/lib/apt/lists/*_Packages (plain or compressed, as left by
apt's Acquire::GzipIndexes) and answers section/suite queries and
fuzzy name searches without calling apt-cache.
"""

import io
import logging
from difflib import SequenceMatcher
from pathlib import Path
from typing import Callable, Iterator, List, Optional, Tuple

from debian.deb822 import Deb822

from .compression import decompress
from .errors import CorruptFileError
from .parsing import PackageRecord

logger = logging.getLogger(__name__)

# Uncompressed or compressed Packages indexes (lz4 is not supported)
INDEX_SUFFIXES = ('Packages', 'Packages.gz', 'Packages.xz', 'Packages.bz2', 'Packages.zst')


def index_files(lists_dir: Path) -> List[Path]:
    """Packages index files under an apt lists directory, sorted."""
    if not lists_dir.is_dir():
        return []
    return sorted(
        p for p in lists_dir.iterdir()
        if p.is_file() and p.name.endswith(INDEX_SUFFIXES)
    )


def records_from_text(text: str) -> Iterator[PackageRecord]:
    """Yield records from Packages-format text (index file or dumpavail)."""
    for para in Deb822.iter_paragraphs(io.StringIO(text)):
        record = PackageRecord.from_paragraph(para)
        if record.name:
            yield record


def iter_records(lists_dir: Path) -> Iterator[PackageRecord]:
    """Yield one record per paragraph of every Packages index."""
    for path in index_files(lists_dir):
        try:
            text = decompress(path)
        except (OSError, CorruptFileError) as e:
            logger.warning("Skipping unreadable index %s: %s", path, e)
            continue
        yield from records_from_text(text)


def matches_group(record: PackageRecord, group: str) -> bool:
    """Check whether a record belongs to a section/suite group.

    A record matches when its Section equals the group, its debtags
    contain suite::<group>, or the group occurs (case-insensitively) in
    its Description or Homepage.
    """
    if not group:
        return False
    if record.section == group:
        return True
    if f"suite::{group}" in record.tags:
        return True
    group_lc = group.lower()
    return group_lc in record.description.lower() or group_lc in record.homepage.lower()


class Catalog:
    """Package paragraphs from apt list indexes, loaded lazily.

    Args:
        lists_dir: apt lists directory
        fallback: Callable returning Packages-format text (e.g.
                  `apt-cache dumpavail`), used when no index is readable
    """

    def __init__(self, lists_dir: Path,
                 fallback: Optional[Callable[[], str]] = None):
        self.lists_dir = Path(lists_dir)
        self.fallback = fallback
        self._records: Optional[List[PackageRecord]] = None

    @property
    def records(self) -> List[PackageRecord]:
        if self._records is None:
            self._records = list(iter_records(self.lists_dir))
            logger.debug("Loaded %d paragraphs from %s", len(self._records), self.lists_dir)
            if not self._records and self.fallback is not None:
                logger.debug("No readable indexes, using fallback source")
                self._records = list(records_from_text(self.fallback()))
        return self._records

    def is_empty(self) -> bool:
        return not self.records

    def names(self) -> List[str]:
        """Sorted unique package names."""
        return sorted({r.name for r in self.records})

    def sections(self) -> List[str]:
        """Sorted unique Section values."""
        return sorted({r.section for r in self.records if r.section})

    def group(self, group: str) -> List[PackageRecord]:
        """Records matching a group, first paragraph per name, index order."""
        seen = set()
        result = []
        for record in self.records:
            if record.name in seen or not matches_group(record, group):
                continue
            seen.add(record.name)
            result.append(record)
        return result

    def group_names(self, group: str) -> List[str]:
        return sorted(r.name for r in self.group(group))


def similarity(query: str, name: str) -> float:
    """Similarity score in [0, 1]; substring hits get a bonus."""
    query = query.lower()
    name = name.lower()
    if query == name:
        return 1.0
    ratio = SequenceMatcher(None, query, name).ratio()
    if query and query in name:
        ratio = max(ratio, 0.75 + 0.2 * len(query) / len(name))
    return min(ratio, 0.99)


def fuzzy_rank(query: str, names: List[str], limit: int = 20,
               cutoff: float = 0.6) -> List[Tuple[str, float]]:
    """Names scoring at least cutoff, sorted by score then name."""
    if not query:
        return []
    scored = []
    for name in names:
        score = similarity(query, name)
        if score >= cutoff:
            scored.append((name, score))
    scored.sort(key=lambda item: (-item[1], item[0]))
    return scored[:limit] if limit > 0 else scored
