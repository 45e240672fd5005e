"""Display utilities for debquery.

Output modes:
- columns: multi-column package lists, truncated unless --show-all
- flat: one item per line (parsable by scripts)
- json: JSON documents (programmatic consumption)
"""

import json
import shutil
from enum import Enum
from typing import Any, Callable, List, Optional


class DisplayMode(Enum):
    """Output display mode."""
    COLUMNS = "columns"
    FLAT = "flat"
    JSON = "json"


_display_mode = DisplayMode.COLUMNS
_show_all = False


def init(mode: str = "columns", show_all: bool = False):
    """Initialize display settings.

    Args:
        mode: Display mode ("columns", "flat", "json")
        show_all: If True, never truncate output
    """
    global _display_mode, _show_all
    _display_mode = DisplayMode(mode) if mode else DisplayMode.COLUMNS
    _show_all = show_all


def is_json() -> bool:
    return _display_mode == DisplayMode.JSON


def is_flat() -> bool:
    return _display_mode == DisplayMode.FLAT


def get_terminal_width() -> int:
    """Get terminal width, with fallback to 80 columns."""
    return shutil.get_terminal_size((80, 24)).columns


def format_package_list(
    packages: List[str],
    max_lines: int = 20,
    show_all: Optional[bool] = None,
    indent: int = 2,
    column_gap: int = 2,
    color_func: Optional[Callable[[str], str]] = None,
    mode: Optional[DisplayMode] = None,
    terminal_width: Optional[int] = None
) -> List[str]:
    """Format a list of package names according to display mode.

    Args:
        packages: Names to display
        max_lines: Lines shown before "... and N more" (columns mode)
        show_all: Override global show_all setting
        indent: Left indent (columns mode)
        column_gap: Gap between columns (columns mode)
        color_func: Optional colorize function (columns mode)
        mode: Override global display mode
        terminal_width: Override terminal width (for testing)

    Returns:
        Lines ready to print
    """
    if not packages:
        return []

    effective_mode = mode if mode is not None else _display_mode
    effective_show_all = show_all if show_all is not None else _show_all

    if effective_mode == DisplayMode.JSON:
        return [json.dumps(packages, ensure_ascii=False)]

    if effective_mode == DisplayMode.FLAT:
        return list(packages)

    width = terminal_width or get_terminal_width()
    col_width = max(len(p) for p in packages) + column_gap
    num_cols = max(1, (width - indent) // col_width)

    total = len(packages)
    lines_needed = (total + num_cols - 1) // num_cols
    lines_to_show = lines_needed if effective_show_all else min(max_lines, lines_needed)
    hidden = max(0, total - lines_to_show * num_cols)

    prefix = " " * indent
    result = []
    for line_idx in range(lines_to_show):
        cols = []
        for pkg in packages[line_idx * num_cols:(line_idx + 1) * num_cols]:
            padding = " " * (col_width - len(pkg))
            cols.append((color_func(pkg) if color_func else pkg) + padding)
        result.append(prefix + "".join(cols).rstrip())

    if hidden > 0:
        result.append(prefix + f"... and {hidden} more (use --show-all)")

    return result


def print_package_list(packages: List[str], **kwargs) -> None:
    """Print a list of package names (see format_package_list)."""
    for line in format_package_list(packages, **kwargs):
        print(line)


def print_lines(lines: List[str], indent: int = 0,
                color_func: Optional[Callable[[str], str]] = None) -> None:
    """Print free-form lines one per line (never truncated)."""
    prefix = " " * indent
    for line in lines:
        print(prefix + (color_func(line) if color_func else line))


def print_json(data: Any) -> None:
    print(json.dumps(data, ensure_ascii=False, indent=2))
