"""Color output support for debquery.

Color palette:
  - Red: errors, orphans
  - Orange: warnings, held packages, fallbacks
  - Green: success, installed packages
  - Blue: section headers and context
"""

import os
import sys

# ANSI color codes
_COLORS = {
    'reset': '\033[0m',
    'bold': '\033[1m',
    'red': '\033[91m',
    'orange': '\033[93m',   # no true orange in ANSI
    'green': '\033[92m',
    'blue': '\033[94m',
    'dim': '\033[2m',
}

_colors_enabled = True


def init(nocolor: bool = False):
    """Initialize color support.

    Colors are off with --nocolor, when NO_COLOR is set
    (https://no-color.org/), or when stdout is not a terminal.
    """
    global _colors_enabled

    if nocolor or os.environ.get('NO_COLOR'):
        _colors_enabled = False
    else:
        _colors_enabled = sys.stdout.isatty()


def enabled() -> bool:
    return _colors_enabled


def _wrap(text: str, color: str) -> str:
    if not _colors_enabled:
        return text
    return f"{_COLORS[color]}{text}{_COLORS['reset']}"


def error(text: str) -> str:
    return _wrap(text, 'red')


def warning(text: str) -> str:
    return _wrap(text, 'orange')


def success(text: str) -> str:
    return _wrap(text, 'green')


def info(text: str) -> str:
    return _wrap(text, 'blue')


def dim(text: str) -> str:
    return _wrap(text, 'dim')


def bold(text: str) -> str:
    return _wrap(text, 'bold')


def header(text: str) -> str:
    """Section title (bold blue)."""
    return bold(info(text))


def pkg_installed(name: str) -> str:
    return success(name)


def pkg_orphan(name: str) -> str:
    return error(name)


def pkg_held(name: str) -> str:
    return warning(name)


def count(n: int) -> str:
    return bold(str(n))
