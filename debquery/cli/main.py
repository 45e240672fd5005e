"""
Main CLI entry point for debquery

One mode per invocation:
- debquery PACKAGE                 dpkg status + apt-cache show
- debquery --group / --group-list  packages of a section or suite
- debquery --search / --search-pretty
- debquery --files / --rdepends
- debquery --orphans / --orphans-full
- debquery --data / --data-full / --data-list   apt history
"""

import argparse
import sys
from enum import Enum
from pathlib import Path
from typing import Optional, Tuple

from .. import __version__
from ..core.config import load_config
from ..core.errors import DebqueryError
from .commands import (
    cmd_data,
    cmd_data_full,
    cmd_data_list,
    cmd_files,
    cmd_group,
    cmd_group_list,
    cmd_groups,
    cmd_info,
    cmd_orphans,
    cmd_orphans_full,
    cmd_rdepends,
    cmd_search,
    cmd_search_pretty,
)


class Mode(Enum):
    """Query modes; the value is the argparse dest of the mode flag."""
    INFO = "package"
    GROUP = "group"
    GROUP_LIST = "group_list"
    GROUPS = "groups"
    SEARCH = "search"
    SEARCH_PRETTY = "search_pretty"
    FILES = "files"
    RDEPENDS = "rdepends"
    ORPHANS = "orphans"
    ORPHANS_FULL = "orphans_full"
    DATA = "data"
    DATA_FULL = "data_full"
    DATA_LIST = "data_list"


HANDLERS = {
    Mode.INFO: cmd_info,
    Mode.GROUP: cmd_group,
    Mode.GROUP_LIST: cmd_group_list,
    Mode.GROUPS: cmd_groups,
    Mode.SEARCH: cmd_search,
    Mode.SEARCH_PRETTY: cmd_search_pretty,
    Mode.FILES: cmd_files,
    Mode.RDEPENDS: cmd_rdepends,
    Mode.ORPHANS: cmd_orphans,
    Mode.ORPHANS_FULL: cmd_orphans_full,
    Mode.DATA: cmd_data,
    Mode.DATA_FULL: cmd_data_full,
    Mode.DATA_LIST: cmd_data_list,
}

# Modes taking no argument at all
FLAG_MODES = (Mode.GROUPS, Mode.ORPHANS, Mode.ORPHANS_FULL)

# Modes whose argument may be omitted
OPTIONAL_ARG_MODES = (Mode.DATA,)

ARG_METAVARS = {
    Mode.GROUP: 'SECTION',
    Mode.GROUP_LIST: 'SECTION',
    Mode.SEARCH: 'NAME',
    Mode.SEARCH_PRETTY: 'NAME',
    Mode.FILES: 'PACKAGE',
    Mode.RDEPENDS: 'PACKAGE',
    Mode.DATA_FULL: 'DATE',
    Mode.DATA_LIST: 'DATE',
}


class UsageError(DebqueryError):
    """Bad combination or missing argument on the command line."""


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser with all modes and global options."""

    parser = argparse.ArgumentParser(
        prog='debquery',
        description='Package information for Debian/Ubuntu',
        epilog='Examples: debquery vim | debquery --group games | '
               'debquery --orphans-full | debquery --data 20250829'
    )

    parser.add_argument(
        '--version', '-V',
        action='version',
        version=f'debquery {__version__}'
    )

    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Verbose output (debug log on stderr)'
    )

    parser.add_argument(
        '--nocolor',
        action='store_true',
        help='Disable colored output'
    )

    parser.add_argument(
        '--config',
        type=Path,
        metavar='PATH',
        help='YAML configuration file'
    )

    display_group = parser.add_argument_group('display')
    display_group.add_argument(
        '--json',
        action='store_true',
        help='JSON output for scripting'
    )
    display_group.add_argument(
        '--flat',
        action='store_true',
        help='Flat output (one item per line, parsable)'
    )
    display_group.add_argument(
        '--show-all',
        action='store_true',
        help='Show all items without truncation'
    )
    display_group.add_argument(
        '--installed',
        action='store_true',
        help='With --rdepends: only installed reverse dependencies'
    )

    parser.add_argument(
        'package', nargs='?',
        help='Show dpkg status and apt-cache information for PACKAGE'
    )

    modes = parser.add_argument_group('modes').add_mutually_exclusive_group()

    # A mode flag given without its value is stored as '' so main() can
    # report it with exit status 1 instead of argparse's usage error.
    modes.add_argument(
        '--group', nargs='?', const='', metavar='SECTION',
        help='Packages of a section or suite, with descriptions'
    )
    modes.add_argument(
        '--group-list', nargs='?', const='', metavar='SECTION',
        help='Package names of a section or suite'
    )
    modes.add_argument(
        '--groups', action='store_true',
        help='List all sections'
    )
    modes.add_argument(
        '--search', nargs='?', const='', metavar='NAME',
        help='Search by name and description (apt-cache search)'
    )
    modes.add_argument(
        '--search-pretty', nargs='?', const='', metavar='NAME',
        help='Fuzzy search on package names'
    )
    modes.add_argument(
        '--files', nargs='?', const='', metavar='PACKAGE',
        help='Files of a package (local or from packages.debian.org)'
    )
    modes.add_argument(
        '--rdepends', nargs='?', const='', metavar='PACKAGE',
        help='Packages depending on PACKAGE'
    )
    modes.add_argument(
        '--orphans', action='store_true',
        help='Orphans via deborphan/debfoster/apt-get autoremove'
    )
    modes.add_argument(
        '--orphans-full', action='store_true',
        help='Full dependency-graph orphan scan with stale versions'
    )
    modes.add_argument(
        '--data', nargs='?', const='', metavar='N|DATE',
        help='Last N installations (default 5), or installs on YYYYMMDD/YYYY-MM-DD'
    )
    modes.add_argument(
        '--data-full', nargs='?', const='', metavar='DATE',
        help='Detailed installations on a date'
    )
    modes.add_argument(
        '--data-list', nargs='?', const='', metavar='DATE',
        help='Package names installed on a date'
    )

    return parser


def resolve_mode(args) -> Tuple[Optional[Mode], Optional[str]]:
    """Return the active mode and its argument.

    (None, None) when no mode was requested.

    Raises:
        UsageError: two modes at once, or a required argument is missing
    """
    selected = []
    for mode in Mode:
        if mode is Mode.INFO:
            continue
        value = getattr(args, mode.value, None)
        if value is None or value is False:
            continue
        selected.append((mode, None if mode in FLAG_MODES else value))

    if args.package is not None:
        if selected:
            raise UsageError(f"unexpected argument '{args.package}'")
        selected.append((Mode.INFO, args.package))

    if not selected:
        return None, None

    mode, value = selected[0]
    if mode not in FLAG_MODES and mode not in OPTIONAL_ARG_MODES and not value:
        if mode is Mode.INFO:
            raise UsageError("empty PACKAGE name")
        flag = '--' + mode.value.replace('_', '-')
        raise UsageError(f"{flag} requires a {ARG_METAVARS[mode]} argument")
    return mode, value


def main(argv=None) -> int:
    """Main CLI entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    # Configure logging based on verbose flag
    if getattr(args, 'verbose', False):
        import logging
        logging.basicConfig(
            level=logging.DEBUG,
            format='%(name)s - %(levelname)s - %(message)s',
            stream=sys.stderr
        )

    # Initialize color support
    from . import colors
    colors.init(nocolor=getattr(args, 'nocolor', False))

    # Initialize display mode
    from . import display
    if getattr(args, 'json', False):
        display.init(mode='json', show_all=True)  # JSON always shows all
    elif getattr(args, 'flat', False):
        display.init(mode='flat', show_all=True)  # Flat always shows all
    else:
        display.init(mode='columns', show_all=getattr(args, 'show_all', False))

    try:
        mode, value = resolve_mode(args)
    except UsageError as e:
        print(colors.error(f"Error: {e}"))
        print(colors.dim("  See: debquery --help"))
        return 1

    if mode is None:
        parser.print_help()
        return 0

    args.mode = mode
    args.value = value

    try:
        config = load_config(args.config)
        return HANDLERS[mode](args, config)

    except KeyboardInterrupt:
        print("\nInterrupted")
        return 130

    except DebqueryError as e:
        if args.verbose:
            import traceback
            traceback.print_exc()
        else:
            print(colors.error(f"Error: {e}"))
        return 1


if __name__ == '__main__':
    sys.exit(main())
