"""
Parsers for Debian control data and apt log fields.

Relation fields look like:
    libc6 (>= 2.34), libfoo1 (>= 1.2) | libfoo-compat, python3:any
and history.log Install: lines like:
    vim:amd64 (2:9.0.1378-2), vim-runtime:amd64 (2:9.0.1378-2, automatic)

Both are comma separated lists whose elements may carry commas inside
parentheses, so splitting must track nesting depth.
"""

import re
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

from .config import STALE_SUFFIX_TOKENS


def split_top_level(text: str, sep: str = ',') -> List[str]:
    """Split text on sep, ignoring separators nested in parentheses.

    Elements are whitespace-trimmed. Empty or blank input yields [].

    Example:
        "foo (>= 1.0, < 2.0), bar, baz (= 3)"
        -> ["foo (>= 1.0, < 2.0)", "bar", "baz (= 3)"]
    """
    if not text or not text.strip():
        return []

    parts = []
    current = ""
    depth = 0

    for char in text:
        if char == '(':
            depth += 1
            current += char
        elif char == ')':
            depth = max(depth - 1, 0)
            current += char
        elif char == sep and depth == 0:
            parts.append(current.strip())
            current = ""
        else:
            current += char

    parts.append(current.strip())
    return parts


# Version constraint "(>= 1.0)", arch restriction "[amd64]",
# build profile "<!nocheck>"
_RESTRICTIONS = re.compile(r'\s*(\([^)]*\)|\[[^\]]*\]|<[^>]*>)')


def strip_arch(name: str) -> str:
    """Drop a ':arch' qualifier ("python3:any" -> "python3")."""
    return name.split(':', 1)[0]


def relation_names(field_text: str) -> List[str]:
    """Extract dependency target names from a Depends-style field.

    Only the first alternative of each "a | b" group is kept; version
    constraints, restrictions and architecture qualifiers are dropped.

    Returns:
        Names in field order (duplicates preserved)
    """
    names = []
    for element in split_top_level(field_text):
        first = split_top_level(element, sep='|')
        if not first:
            continue
        name = _RESTRICTIONS.sub('', first[0]).strip()
        name = strip_arch(name.split()[0]) if name else ''
        if name:
            names.append(name)
    return names


_BASE_SUFFIX = re.compile(
    r'^(?P<head>.+?)(?:-(?:\d+|' + '|'.join(STALE_SUFFIX_TOKENS) + r')|(?<=[A-Za-z])\d+)$'
)


def base_name(name: str) -> str:
    """Package name without architecture and a known trailing suffix.

    Groups version variants such as soname bumps: "libfoo1", "libfoo2"
    and "libfoo-dev" all map to "libfoo". Stripped suffixes: a trailing
    digit run (optionally after '-'), -dev, -doc, -dbg, -common, -tools,
    -utils. Only one suffix is removed.

    This is a heuristic; a package legitimately named "foo-tools" is
    grouped with "foo".
    """
    name = strip_arch(name)
    match = _BASE_SUFFIX.match(name)
    if match:
        return match.group('head')
    return name


@dataclass
class PackageRecord:
    """One package paragraph (dpkg status, apt lists, or dpkg-query row)."""
    name: str
    version: str = ''
    depends: str = ''
    recommends: str = ''
    suggests: str = ''
    section: str = ''
    description: str = ''
    homepage: str = ''
    tags: str = ''
    status: str = ''

    @property
    def installed(self) -> bool:
        # Full Status field or the bare ${db:Status-Status} word
        return self.status.rsplit(' ', 1)[-1] == 'installed'

    @property
    def summary(self) -> str:
        """First line of Description (the synopsis)."""
        return self.description.split('\n', 1)[0].strip()

    @classmethod
    def from_paragraph(cls, para: Dict[str, str]) -> 'PackageRecord':
        """Build a record from a deb822 paragraph (case-insensitive keys)."""
        return cls(
            name=para.get('Package', ''),
            version=para.get('Version', ''),
            depends=para.get('Depends', ''),
            recommends=para.get('Recommends', ''),
            suggests=para.get('Suggests', ''),
            section=para.get('Section', ''),
            description=para.get('Description', ''),
            homepage=para.get('Homepage', ''),
            tags=' '.join(para.get('Tag', '').split()),
            status=para.get('Status', ''),
        )


# dpkg-query -W format used by the package database reader
DPKG_QUERY_FORMAT = (
    '${Package}\\t${Version}\\t${Depends}\\t${Recommends}\\t${Suggests}'
    '\\t${db:Status-Status}\\n'
)


def parse_dpkg_query_line(line: str) -> Optional[PackageRecord]:
    """Parse one line of `dpkg-query -W -f=DPKG_QUERY_FORMAT` output."""
    if not line.strip():
        return None
    cols = line.rstrip('\n').split('\t')
    cols += [''] * (6 - len(cols))
    name, version, depends, recommends, suggests, status = cols[:6]
    if not name:
        return None
    return PackageRecord(name=name, version=version, depends=depends,
                         recommends=recommends, suggests=suggests, status=status)


@dataclass
class HistoryPackage:
    """One element of a history.log Install:/Upgrade: line."""
    name: str
    arch: str = ''
    version: str = ''
    automatic: bool = False
    raw: str = ''


_HISTORY_TOKEN = re.compile(r'^(?P<pkg>[^\s(]+)\s*(?:\((?P<detail>.*)\))?$')


def parse_history_package(token: str) -> HistoryPackage:
    """Parse "name:arch (version[, automatic])" from history.log.

    Upgrade lines carry "old, new" inside the parentheses; the last
    version-looking element is kept.
    """
    token = token.strip()
    match = _HISTORY_TOKEN.match(token)
    if not match:
        return HistoryPackage(name=token, raw=token)

    pkg = match.group('pkg')
    name, _, arch = pkg.partition(':')
    version = ''
    automatic = False
    detail = match.group('detail')
    if detail is not None:
        items = [i.strip() for i in detail.split(',') if i.strip()]
        if 'automatic' in items:
            automatic = True
            items.remove('automatic')
        if items:
            version = items[-1]
    return HistoryPackage(name=name, arch=arch, version=version,
                          automatic=automatic, raw=token)


def parse_history_packages(text: str) -> List[HistoryPackage]:
    """Parse a full Install:/Upgrade: value into packages."""
    return [parse_history_package(t) for t in split_top_level(text) if t]


def dependency_rows(records: Iterable[PackageRecord]) -> List[Tuple[str, str, str, str]]:
    """(package, depends, recommends, suggests) rows for the orphan detector."""
    return [(r.name, r.depends, r.recommends, r.suggests) for r in records]
