"""
apt history.log reader.

/var/log/apt/history.log and its rotations (history.log.1.gz, ...)
record one block per apt run:

    Start-Date: 2025-08-29  10:15:01
    Commandline: apt install thunar
    Requested-By: user (1000)
    Install: thunar:amd64 (4.18.4-1), libthunarx-3-0:amd64 (4.18.4-1, automatic)
    End-Date: 2025-08-29  10:15:09

Blocks are separated by blank lines; a block may carry several
Install:/Upgrade:/Remove: lines.
"""

import glob
import logging
import os
import re
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Iterable, Iterator, List

from .compression import iter_lines
from .errors import InvalidDateError
from .parsing import HistoryPackage, parse_history_packages, split_top_level

logger = logging.getLogger(__name__)

ACTION_FIELDS = ('Install', 'Reinstall', 'Upgrade', 'Downgrade', 'Remove', 'Purge')

_FIELD_LINE = re.compile(r'^([A-Za-z-]+):\s?(.*)$')


def normalize_date(value: str) -> str:
    """Validate a date argument and return it as YYYY-MM-DD.

    Accepts YYYYMMDD or YYYY-MM-DD; the date must exist on the calendar.

    Raises:
        InvalidDateError: any other input
    """
    value = (value or '').strip()
    if re.fullmatch(r'\d{8}', value):
        fmt = '%Y%m%d'
    elif re.fullmatch(r'\d{4}-\d{2}-\d{2}', value):
        fmt = '%Y-%m-%d'
    else:
        raise InvalidDateError(value)
    try:
        return datetime.strptime(value, fmt).strftime('%Y-%m-%d')
    except ValueError:
        raise InvalidDateError(value)


@dataclass
class HistoryEntry:
    """One apt transaction block."""
    start_date: str = ''
    end_date: str = ''
    commandline: str = ''
    requested_by: str = ''
    actions: dict = field(default_factory=dict)  # field name -> merged raw text

    @property
    def date(self) -> str:
        """YYYY-MM-DD part of Start-Date."""
        return self.start_date.split()[0] if self.start_date else ''

    @property
    def install(self) -> str:
        return self.actions.get('Install', '')

    def install_tokens(self) -> List[str]:
        """Install: elements as written in the log."""
        return split_top_level(self.install)

    def installed_packages(self) -> List[HistoryPackage]:
        return parse_history_packages(self.install)

    def add_action(self, name: str, value: str):
        value = value.strip()
        if not value:
            return
        previous = self.actions.get(name)
        self.actions[name] = f"{previous}, {value}" if previous else value


def history_files(pattern: str) -> List[Path]:
    """History logs matching a glob, newest first (like `ls -t`)."""
    paths = [Path(p) for p in glob.glob(pattern) if os.path.isfile(p)]
    return sorted(paths, key=lambda p: p.stat().st_mtime, reverse=True)


def parse_history(lines: Iterable[str]) -> Iterator[HistoryEntry]:
    """Yield entries from history.log lines, in log order.

    Lines before the first Start-Date are ignored.
    """
    entry = None
    for line in lines:
        line = line.rstrip('\n')
        match = _FIELD_LINE.match(line)
        if not match:
            continue
        key, value = match.group(1), match.group(2)

        if key == 'Start-Date':
            if entry is not None:
                yield entry
            entry = HistoryEntry(start_date=value.strip())
            continue

        if entry is None:
            continue
        if key == 'End-Date':
            entry.end_date = value.strip()
        elif key == 'Commandline':
            entry.commandline = value.strip()
        elif key == 'Requested-By':
            entry.requested_by = value.strip()
        elif key in ACTION_FIELDS:
            entry.add_action(key, value)

    if entry is not None:
        yield entry


def load_history(pattern: str) -> List[HistoryEntry]:
    """Read all rotated logs and return entries, newest first.

    Returns [] when no log file exists.
    """
    files = history_files(pattern)
    if not files:
        logger.debug("No history logs match %s", pattern)
        return []
    entries = list(parse_history(iter_lines(files)))
    entries.sort(key=lambda e: ' '.join(e.start_date.split()), reverse=True)
    return entries


def recent_installs(entries: Iterable[HistoryEntry], count: int) -> List[HistoryEntry]:
    """The `count` most recent entries that installed something."""
    if count <= 0:
        return []
    result = []
    for entry in entries:
        if entry.install:
            result.append(entry)
            if len(result) >= count:
                break
    return result


def entries_on(entries: Iterable[HistoryEntry], date: str) -> List[HistoryEntry]:
    """Entries started on a YYYY-MM-DD date that installed something, oldest first."""
    matching = [e for e in entries if e.date == date and e.install]
    return sorted(matching, key=lambda e: ' '.join(e.start_date.split()))


def installed_tokens_on(entries: Iterable[HistoryEntry], date: str) -> List[str]:
    """Sorted unique Install: elements for a date ("name:arch (version)")."""
    tokens = set()
    for entry in entries_on(entries, date):
        tokens.update(entry.install_tokens())
    return sorted(tokens)


def installed_names_on(entries: Iterable[HistoryEntry], date: str) -> List[str]:
    """Sorted unique package names (no arch) installed on a date."""
    names = set()
    for entry in entries_on(entries, date):
        names.update(p.name for p in entry.installed_packages() if p.name)
    return sorted(names)
