"""
dpkg/apt utilities for debquery.

Thin wrappers around apt-mark, dpkg-query, apt-cache and dpkg, plus a
file-based reader for /var/lib/dpkg/status and
/var/lib/apt/extended_states used when the tools are unavailable.
"""

import logging
import re
import shutil
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Set

from debian.deb822 import Deb822

from .config import Config
from .errors import CommandError, DataSourceUnavailable, ToolNotFoundError
from .parsing import (
    DPKG_QUERY_FORMAT, PackageRecord, parse_dpkg_query_line, strip_arch,
)

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 60


def have_tool(name: str) -> bool:
    """Check if an executable is on PATH."""
    return shutil.which(name) is not None


def run_command(cmd: List[str], timeout: float = DEFAULT_TIMEOUT,
                check: bool = True) -> str:
    """Run a command and return its stdout.

    Args:
        cmd: Command and arguments
        timeout: Seconds before giving up
        check: Raise CommandError on non-zero exit

    Raises:
        ToolNotFoundError: cmd[0] is not installed
        CommandError: non-zero exit (when check) or timeout
    """
    logger.debug("Running: %s", ' '.join(cmd))
    try:
        result = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            timeout=timeout,
            errors='replace',
        )
    except FileNotFoundError:
        raise ToolNotFoundError(cmd[0])
    except subprocess.TimeoutExpired:
        raise CommandError(cmd, None)

    if check and result.returncode != 0:
        raise CommandError(cmd, result.returncode, result.stderr)
    return result.stdout


def _lines(output: str) -> List[str]:
    return [line.strip() for line in output.splitlines() if line.strip()]


# =============================================================================
# apt-mark / dpkg-query
# =============================================================================

def apt_mark(subcommand: str, timeout: float = DEFAULT_TIMEOUT) -> List[str]:
    """Return package names from `apt-mark showmanual|showauto|showhold`."""
    return [strip_arch(n) for n in _lines(run_command(['apt-mark', subcommand], timeout))]


def query_installed(timeout: float = DEFAULT_TIMEOUT) -> List[PackageRecord]:
    """Installed packages with version and relation fields.

    dpkg-query -W also lists removed packages whose conffiles remain
    (config-files state); those rows are dropped.
    """
    output = run_command(['dpkg-query', '-W', f'-f={DPKG_QUERY_FORMAT}'], timeout)
    records = []
    for line in output.splitlines():
        record = parse_dpkg_query_line(line)
        if record is not None and record.installed:
            records.append(record)
    return records


def package_status(package: str, timeout: float = DEFAULT_TIMEOUT) -> str:
    """Return the dpkg Status field of a package, '' if unknown to dpkg."""
    try:
        return run_command(['dpkg-query', '-W', '-f=${Status}', package],
                           timeout).strip()
    except CommandError:
        return ''


def is_installed(package: str, timeout: float = DEFAULT_TIMEOUT) -> bool:
    """Check if a package is in 'install ok installed' state."""
    return package_status(package, timeout) == 'install ok installed'


# =============================================================================
# Status-file fallback
# =============================================================================

def read_status_file(path: Path) -> List[PackageRecord]:
    """Parse /var/lib/dpkg/status into records (all states)."""
    records = []
    with open(path, 'r', encoding='utf-8', errors='replace') as f:
        for para in Deb822.iter_paragraphs(f):
            record = PackageRecord.from_paragraph(para)
            if record.name:
                records.append(record)
    logger.debug("Read %d entries from %s", len(records), path)
    return records


def read_extended_states(path: Path) -> Set[str]:
    """Names marked Auto-Installed: 1 in apt's extended_states."""
    auto = set()
    if not path.exists():
        return auto
    with open(path, 'r', encoding='utf-8', errors='replace') as f:
        for para in Deb822.iter_paragraphs(f):
            if para.get('Auto-Installed', '0').strip() == '1' and para.get('Package'):
                auto.add(para['Package'])
    return auto


# =============================================================================
# Package state snapshot (input of the orphan detector)
# =============================================================================

@dataclass
class PackageState:
    """Snapshot of the local package database."""
    manual: List[str] = field(default_factory=list)
    automatic: List[str] = field(default_factory=list)
    records: List[PackageRecord] = field(default_factory=list)
    holds: Set[str] = field(default_factory=set)
    source: str = ''

    @property
    def versions(self) -> Dict[str, str]:
        return {r.name: r.version for r in self.records if r.version}


def _state_from_tools(timeout: float) -> PackageState:
    manual = apt_mark('showmanual', timeout)
    automatic = apt_mark('showauto', timeout)
    holds = set(apt_mark('showhold', timeout))
    records = query_installed(timeout)
    return PackageState(manual=manual, automatic=automatic, records=records,
                        holds=holds, source='apt-mark/dpkg-query')


def _state_from_files(config: Config) -> PackageState:
    records = read_status_file(config.dpkg_status)
    auto_marked = read_extended_states(config.extended_states)
    installed = [r for r in records if r.installed]
    automatic = sorted({r.name for r in installed if r.name in auto_marked})
    manual = sorted({r.name for r in installed} - set(automatic))
    holds = {r.name for r in installed if r.status.startswith('hold ')}
    return PackageState(manual=manual, automatic=automatic, records=installed,
                        holds=holds, source=str(config.dpkg_status))


def load_package_state(config: Config) -> PackageState:
    """Collect manual/auto flags, relations, versions and holds.

    Prefers apt-mark + dpkg-query; falls back to reading the dpkg status
    and apt extended_states files directly.

    Raises:
        DataSourceUnavailable: neither source can be used
    """
    if have_tool('apt-mark') and have_tool('dpkg-query'):
        try:
            return _state_from_tools(config.command_timeout)
        except (ToolNotFoundError, CommandError) as e:
            logger.warning("Package tools failed (%s), trying status files", e)
    else:
        logger.debug("apt-mark/dpkg-query not found, trying status files")

    if config.dpkg_status.exists():
        try:
            return _state_from_files(config)
        except OSError as e:
            logger.warning("Cannot read %s: %s", config.dpkg_status, e)

    raise DataSourceUnavailable(
        "no apt-mark/dpkg-query and no readable dpkg status file"
    )


# =============================================================================
# apt-cache queries
# =============================================================================

def apt_cache_show(package: str, timeout: float = DEFAULT_TIMEOUT) -> Optional[str]:
    """Return `apt-cache show` output, or None if the package is unknown."""
    try:
        output = run_command(['apt-cache', 'show', package], timeout)
    except CommandError:
        return None
    return output if output.strip() else None


def apt_cache_search(pattern: str, timeout: float = DEFAULT_TIMEOUT) -> List[tuple]:
    """Return (name, summary) pairs from `apt-cache search`."""
    results = []
    for line in _lines(run_command(['apt-cache', 'search', pattern], timeout)):
        name, _, summary = line.partition(' - ')
        results.append((name.strip(), summary.strip()))
    return results


def apt_cache_pkgnames(timeout: float = DEFAULT_TIMEOUT) -> List[str]:
    """All package names apt knows about (`apt-cache pkgnames`)."""
    return _lines(run_command(['apt-cache', 'pkgnames'], timeout))


def apt_cache_dumpavail(timeout: float = DEFAULT_TIMEOUT) -> str:
    """Available package paragraphs (`apt-cache dumpavail`)."""
    return run_command(['apt-cache', 'dumpavail'], timeout)


@dataclass
class ReverseDependency:
    """One line of `apt-cache rdepends` output."""
    name: str
    alternative: bool = False   # listed as "|name": one of an OR group
    virtual: bool = False       # "<name>": virtual package


def parse_rdepends(output: str) -> List[ReverseDependency]:
    """Parse `apt-cache rdepends` output.

    Format:
        vim
        Reverse Depends:
          vim-gtk3
         |vim-addon-manager
          <vim-tiny>
    """
    rdeps = []
    seen = set()
    in_list = False
    for raw in output.splitlines():
        if not raw.strip():
            continue
        if raw.strip() == 'Reverse Depends:':
            in_list = True
            continue
        if not in_list or not raw[:1].isspace():
            continue

        entry = raw.strip()
        alternative = entry.startswith('|')
        if alternative:
            entry = entry[1:].strip()
        virtual = entry.startswith('<') and entry.endswith('>')
        if virtual:
            entry = entry[1:-1]
        entry = strip_arch(entry)
        if entry and entry not in seen:
            seen.add(entry)
            rdeps.append(ReverseDependency(entry, alternative, virtual))
    return rdeps


def apt_cache_rdepends(package: str, installed_only: bool = False,
                       timeout: float = DEFAULT_TIMEOUT) -> List[ReverseDependency]:
    """Reverse dependencies of a package via `apt-cache rdepends`."""
    cmd = ['apt-cache', 'rdepends']
    if installed_only:
        cmd.append('--installed')
    cmd.append(package)
    return parse_rdepends(run_command(cmd, timeout))


# =============================================================================
# Files and system identity
# =============================================================================

def list_files(package: str, timeout: float = DEFAULT_TIMEOUT) -> List[str]:
    """Files owned by an installed package (`dpkg -L`)."""
    return _lines(run_command(['dpkg', '-L', package], timeout))


def print_architecture(timeout: float = DEFAULT_TIMEOUT) -> str:
    """Native dpkg architecture, 'amd64' if dpkg cannot tell."""
    try:
        arch = run_command(['dpkg', '--print-architecture'], timeout).strip()
    except (ToolNotFoundError, CommandError):
        arch = ''
    return arch or 'amd64'


def distro_codename(timeout: float = DEFAULT_TIMEOUT) -> str:
    """Release codename from lsb_release, 'stable' if unavailable."""
    try:
        codename = run_command(['lsb_release', '-sc'], timeout).strip()
    except (ToolNotFoundError, CommandError):
        codename = ''
    if not codename:
        codename = _codename_from_os_release()
    return codename or 'stable'


def _codename_from_os_release(path: Path = Path('/etc/os-release')) -> str:
    try:
        text = path.read_text()
    except OSError:
        return ''
    match = re.search(r'^VERSION_CODENAME=["\']?([^"\'\n]*)', text, re.MULTILINE)
    return match.group(1) if match else ''
