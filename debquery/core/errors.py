"""Exceptions raised by debquery core modules.

CLI handlers catch these at the command boundary and turn them into
user-facing messages; none of them should escape main().
"""

from typing import List, Optional


class DebqueryError(Exception):
    """Base class for all debquery errors."""
    pass


class ToolNotFoundError(DebqueryError):
    """An external program (apt-mark, dpkg-query, deborphan...) is missing."""

    def __init__(self, tool: str):
        self.tool = tool
        super().__init__(f"Required tool not found: {tool}")


class CommandError(DebqueryError):
    """An external program exited with a non-zero status or timed out."""

    def __init__(self, command: List[str], returncode: Optional[int], stderr: str = ''):
        self.command = command
        self.returncode = returncode
        self.stderr = stderr
        detail = stderr.strip().splitlines()[0] if stderr.strip() else ''
        if returncode is None:
            msg = f"{command[0]} timed out"
        else:
            msg = f"{command[0]} exited with status {returncode}"
        if detail:
            msg += f": {detail}"
        super().__init__(msg)


class InvalidDateError(DebqueryError, ValueError):
    """A date argument is not YYYYMMDD or YYYY-MM-DD."""

    def __init__(self, value: str):
        self.value = value
        super().__init__(f"Invalid date format: {value}")


class DataSourceUnavailable(DebqueryError):
    """Neither the tools nor the local files can provide package metadata."""
    pass


class RemoteFetchError(DebqueryError):
    """A remote lookup (packages.debian.org) failed."""

    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(f"Failed to fetch {url}: {reason}")


class CorruptFileError(DebqueryError):
    """A compressed log or index could not be decompressed."""

    def __init__(self, path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Corrupt file {path}: {reason}")
