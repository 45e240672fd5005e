"""Removal candidates from external tools (lite orphan scan).

Tried in order, first available wins:
    1. deborphan            - precise library orphan finder
    2. debfoster -s         - dependency-tree based keeper list
    3. apt-get autoremove   - coarse built-in fallback (dry run only)
"""

import logging
import re
from dataclasses import dataclass, field
from typing import List, Optional

from ..dpkg import DEFAULT_TIMEOUT, have_tool, run_command
from ..errors import ToolNotFoundError

logger = logging.getLogger(__name__)

# "Remv libfoo1 [1.2-3]" in apt-get -s output
_REMV_LINE = re.compile(r'^Remv\s+(\S+)(?:\s+\[([^\]]*)\])?')

PRECISE_TOOLS = ('deborphan', 'debfoster')


@dataclass
class RemovalCandidates:
    """Packages some tool considers removable."""
    tool: str
    packages: List[str] = field(default_factory=list)
    accurate: bool = True
    raw: str = ''


def parse_deborphan(output: str) -> List[str]:
    """deborphan prints one package per line."""
    return [line.split()[0] for line in output.splitlines() if line.strip()]


def parse_debfoster(output: str) -> List[str]:
    """`debfoster -s` lists orphan candidates, whitespace separated.

    A header line ending in ':' may precede the list.
    """
    names = []
    for line in output.splitlines():
        if not line.strip() or line.rstrip().endswith(':'):
            continue
        names.extend(line.split())
    return names


def parse_autoremove(output: str) -> List[str]:
    """Package names from `apt-get -s autoremove` Remv lines."""
    names = []
    for line in output.splitlines():
        match = _REMV_LINE.match(line.strip())
        if match:
            names.append(match.group(1))
    return names


def find_removal_candidates(timeout: float = DEFAULT_TIMEOUT,
                            tool: Optional[str] = None) -> RemovalCandidates:
    """Run the best available orphan finder.

    Args:
        timeout: Seconds per external command
        tool: Force a specific tool (testing/diagnostics)

    Raises:
        ToolNotFoundError: apt-get itself is missing
        CommandError: the selected tool failed
    """
    if tool in (None, 'deborphan') and have_tool('deborphan'):
        output = run_command(['deborphan'], timeout)
        return RemovalCandidates('deborphan', parse_deborphan(output), True, output)

    if tool in (None, 'debfoster') and have_tool('debfoster'):
        output = run_command(['debfoster', '-s'], timeout)
        return RemovalCandidates('debfoster', parse_debfoster(output), True, output)

    logger.debug("No precise orphan finder, using apt-get autoremove dry run")
    if not have_tool('apt-get'):
        raise ToolNotFoundError('apt-get')
    output = run_command(['apt-get', '-s', 'autoremove'], timeout)
    return RemovalCandidates('apt-get autoremove', parse_autoremove(output), False, output)


def missing_precise_tools() -> List[str]:
    """Precise orphan finders that are not installed."""
    return [t for t in PRECISE_TOOLS if not have_tool(t)]

