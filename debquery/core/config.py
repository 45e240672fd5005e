"""
Central configuration for debquery paths and tunables.

Lookup order for the optional YAML file (first existing wins):
    1. --config PATH on the command line
    2. $DEBQUERY_CONFIG
    3. /etc/debquery/config.yaml
    4. ~/.config/debquery/config.yaml

config.yaml format (all keys optional):
    extra_system_patterns:     # regexes never reported as orphans
      - '^firmware-.*'
    apt_lists_dir: /var/lib/apt/lists
    history_glob: /var/log/apt/history.log*
    dpkg_status: /var/lib/dpkg/status
    extended_states: /var/lib/apt/extended_states
    command_timeout: 60
    http_timeout: 15
    fuzzy_cutoff: 0.6
    fuzzy_limit: 20
"""

import logging
import os
import re
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import List, Optional, Pattern, Sequence

import yaml

logger = logging.getLogger(__name__)

ENV_CONFIG = "DEBQUERY_CONFIG"
SYSTEM_CONFIG_FILE = Path("/etc/debquery/config.yaml")
USER_CONFIG_FILE = Path.home() / ".config" / "debquery" / "config.yaml"

# Debian locations
APT_LISTS_DIR = Path("/var/lib/apt/lists")
HISTORY_GLOB = "/var/log/apt/history.log*"
DPKG_STATUS = Path("/var/lib/dpkg/status")
EXTENDED_STATES = Path("/var/lib/apt/extended_states")

FILELIST_URL = "https://packages.debian.org/{codename}/{arch}/{package}/filelist"

# Core system packages that are never orphan candidates, whatever the
# dependency graph says. Matched with re.search, so anchor explicitly.
SYSTEM_PATTERNS = (
    r'^linux-.*',
    r'^systemd.*',
    r'^initramfs.*',
    r'^grub.*',
    r'^libc6.*',
    r'^libstdc.*',
    r'^gcc.*',
    r'^dpkg.*',
    r'^apt.*',
    r'^perl.*',
    r'^bash$',
    r'^dash$',
    r'^coreutils$',
    r'^debconf$',
    r'^login$',
    r'^passwd$',
    r'^sudo$',
    r'^util-linux$',
    r'^hostname$',
    r'^netbase$',
    r'^base-files$',
    r'^base-passwd$',
)

# Trailing tokens stripped when grouping packages by base name
STALE_SUFFIX_TOKENS = ('dev', 'doc', 'dbg', 'common', 'tools', 'utils')


@dataclass
class Config:
    """Effective configuration after merging defaults and the YAML file."""
    extra_system_patterns: List[str] = field(default_factory=list)
    apt_lists_dir: Path = APT_LISTS_DIR
    history_glob: str = HISTORY_GLOB
    dpkg_status: Path = DPKG_STATUS
    extended_states: Path = EXTENDED_STATES
    command_timeout: float = 60
    http_timeout: float = 15
    fuzzy_cutoff: float = 0.6
    fuzzy_limit: int = 20
    source: Optional[Path] = None

    @property
    def system_patterns(self) -> List[Pattern]:
        """Built-in plus user system patterns, compiled."""
        return compile_patterns(list(SYSTEM_PATTERNS) + list(self.extra_system_patterns))


def compile_patterns(patterns: Sequence[str]) -> List[Pattern]:
    """Compile regex patterns, dropping (and logging) invalid ones."""
    compiled = []
    for pattern in patterns:
        try:
            compiled.append(re.compile(pattern))
        except re.error as e:
            logger.warning("Ignoring invalid system pattern %r: %s", pattern, e)
    return compiled


def is_system_package(name: str, patterns: Sequence[Pattern]) -> bool:
    """Check whether a package name matches any core-system pattern."""
    return any(p.search(name) for p in patterns)


def _candidate_files(explicit: Optional[Path]) -> List[Path]:
    if explicit is not None:
        return [Path(explicit)]
    candidates = []
    env = os.environ.get(ENV_CONFIG)
    if env:
        candidates.append(Path(env))
    candidates.extend([SYSTEM_CONFIG_FILE, USER_CONFIG_FILE])
    return candidates


_PATH_KEYS = {'apt_lists_dir', 'dpkg_status', 'extended_states'}
_FLOAT_KEYS = {'command_timeout', 'http_timeout', 'fuzzy_cutoff'}


def _apply(config: Config, data: dict) -> None:
    known = {f.name for f in fields(Config)} - {'source'}
    for key, value in data.items():
        if key not in known:
            logger.debug("Ignoring unknown config key: %s", key)
            continue
        try:
            if key in _PATH_KEYS:
                value = Path(str(value)).expanduser()
            elif key in _FLOAT_KEYS:
                value = float(value)
            elif key == 'fuzzy_limit':
                value = int(value)
            elif key == 'extra_system_patterns':
                if isinstance(value, str):
                    value = [value]
                value = [str(v) for v in (value or [])]
            elif key == 'history_glob':
                value = os.path.expanduser(str(value))
        except (TypeError, ValueError) as e:
            logger.warning("Ignoring invalid value for %s: %s", key, e)
            continue
        setattr(config, key, value)


def load_config(path: Optional[Path] = None) -> Config:
    """Load configuration, falling back to defaults.

    Args:
        path: Explicit config file (--config). When given and missing,
              a warning is logged and defaults are used.

    Returns:
        Config instance (never raises for a bad file)
    """
    config = Config()

    for candidate in _candidate_files(path):
        if not candidate.exists():
            if path is not None:
                logger.warning("Config file not found: %s", candidate)
            continue
        try:
            with open(candidate, 'r') as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            logger.warning("Failed to load config %s: %s", candidate, e)
            return config
        if not isinstance(data, dict):
            logger.warning("Ignoring config %s: top level must be a mapping", candidate)
            return config
        _apply(config, data)
        config.source = candidate
        logger.debug("Loaded config from %s", candidate)
        break

    return config
