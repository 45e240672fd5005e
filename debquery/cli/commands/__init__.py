"""CLI command modules, one per area."""

from .query import (
    cmd_info,
    cmd_group,
    cmd_group_list,
    cmd_groups,
    cmd_search,
    cmd_search_pretty,
    cmd_files,
    cmd_rdepends,
)
from .orphans import (
    cmd_orphans,
    cmd_orphans_full,
    render_orphan_report,
)
from .history import (
    cmd_data,
    cmd_data_full,
    cmd_data_list,
)

__all__ = [
    'cmd_info',
    'cmd_group',
    'cmd_group_list',
    'cmd_groups',
    'cmd_search',
    'cmd_search_pretty',
    'cmd_files',
    'cmd_rdepends',
    'cmd_orphans',
    'cmd_orphans_full',
    'render_orphan_report',
    'cmd_data',
    'cmd_data_full',
    'cmd_data_list',
]
