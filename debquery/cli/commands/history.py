"""apt history commands (--data, --data-full, --data-list)."""

import re
from typing import TYPE_CHECKING, List, Optional

from ...core.errors import InvalidDateError
from ...core.history import (
    HistoryEntry, entries_on, installed_names_on, installed_tokens_on,
    load_history, normalize_date, recent_installs,
)

if TYPE_CHECKING:
    from ...core.config import Config

DEFAULT_RECENT_COUNT = 5


def _invalid_date(value: str) -> int:
    from .. import colors
    print(colors.error(f"Invalid date format: {value}"))
    print(colors.dim("  Use YYYY-MM-DD or YYYYMMDD"))
    return 1


def _load(config: 'Config') -> Optional[List[HistoryEntry]]:
    """Entries newest first, or None (after a message) when there are no logs."""
    from .. import colors, display

    entries = load_history(config.history_glob)
    if not entries:
        if display.is_json():
            display.print_json([])
        else:
            print(colors.warning("No apt history logs to analyze"))
        return None
    return entries


def _entry_dict(entry: HistoryEntry) -> dict:
    return {
        'start_date': entry.start_date,
        'commandline': entry.commandline,
        'requested_by': entry.requested_by,
        'install': entry.install_tokens(),
    }


def _print_entry(entry: HistoryEntry):
    from .. import colors
    print(colors.info(f"Start-Date: {entry.start_date}"))
    if entry.commandline:
        print(f"Commandline: {entry.commandline}")
    print(f"Install: {entry.install}")


def cmd_data(args, config: 'Config') -> int:
    """Recent installs (count argument) or installs of one day (date argument)."""
    value = (args.value or '').strip()
    if not value:
        return _recent(DEFAULT_RECENT_COUNT, config)
    # Eight digits is a YYYYMMDD date, not a count
    if re.fullmatch(r'\d{1,7}', value):
        return _recent(int(value), config)

    try:
        date = normalize_date(value)
    except InvalidDateError:
        return _invalid_date(value)
    return _tokens_on(date, config)


def _recent(count: int, config: 'Config') -> int:
    from .. import colors, display

    entries = _load(config)
    if entries is None:
        return 0
    recent = recent_installs(entries, count)

    if display.is_json():
        display.print_json([_entry_dict(e) for e in recent])
        return 0

    print(colors.header(f"Last {count} package installations:"))
    if not recent:
        print(colors.dim("No installations recorded"))
    for i, entry in enumerate(recent):
        if i:
            print()
        _print_entry(entry)
    return 0


def _tokens_on(date: str, config: 'Config') -> int:
    from .. import colors, display

    entries = _load(config)
    if entries is None:
        return 0
    tokens = installed_tokens_on(entries, date)

    if display.is_json():
        display.print_json(tokens)
        return 0
    if not display.is_flat():
        print(colors.header(f"Packages installed on {date}:"))
    if not tokens:
        print(colors.dim(f"Nothing installed on {date}"))
    display.print_lines(tokens)
    return 0


def cmd_data_full(args, config: 'Config') -> int:
    """Each transaction of a day: start date, command line and Install list."""
    from .. import colors, display

    try:
        date = normalize_date(args.value)
    except InvalidDateError:
        return _invalid_date(args.value)

    entries = _load(config)
    if entries is None:
        return 0
    day = entries_on(entries, date)

    if display.is_json():
        display.print_json([_entry_dict(e) for e in day])
        return 0

    print(colors.header(f"Installations on {date} (detailed):"))
    if not day:
        print(colors.dim(f"Nothing installed on {date}"))
    for i, entry in enumerate(day):
        if i:
            print()
        _print_entry(entry)
    return 0


def cmd_data_list(args, config: 'Config') -> int:
    """Sorted package names (no architecture) installed on a day."""
    from .. import colors, display

    try:
        date = normalize_date(args.value)
    except InvalidDateError:
        return _invalid_date(args.value)

    entries = _load(config)
    if entries is None:
        return 0
    names = installed_names_on(entries, date)

    if display.is_json():
        display.print_json(names)
        return 0
    if display.is_flat():
        display.print_lines(names)
        return 0

    print(colors.header(f"Package names installed on {date}:"))
    if not names:
        print(colors.dim(f"Nothing installed on {date}"))
        return 0
    display.print_package_list(names)
    return 0
