"""Orphan scan commands (--orphans, --orphans-full)."""

from typing import TYPE_CHECKING, List

from ...core import dpkg
from ...core.errors import CommandError, DataSourceUnavailable, ToolNotFoundError
from ...core.parsing import dependency_rows
from ...core.resolution import OrphanDetector, OrphanReport, find_removal_candidates
from ...core.resolution.removal import missing_precise_tools

if TYPE_CHECKING:
    from ...core.config import Config


def render_orphan_report(report: OrphanReport) -> List[str]:
    """Plain-text report lines: reachable count, orphans, count, stale pairs."""
    from .. import colors

    lines = [
        f"Packages required by manually installed ones: {colors.count(len(report.reachable))}",
        "",
    ]

    if report.orphans:
        lines.append(colors.header("Orphan packages (automatic, no longer required):"))
        for orphan in report.orphans:
            if orphan.held:
                lines.append(f"  {colors.pkg_held(orphan.label)}")
            else:
                lines.append(f"  {colors.pkg_orphan(orphan.label)}")
    else:
        lines.append(colors.success("No orphans found"))
    lines.append(f"Orphans: {colors.count(len(report.orphans))}")
    lines.append("")

    if report.stale:
        lines.append(colors.header("Stale versions (orphan → other installed version):"))
        for pair in sorted(report.stale, key=str):
            lines.append(f"  {pair}")
    else:
        lines.append(colors.dim("No stale versions found"))
    return lines


def cmd_orphans(args, config: 'Config') -> int:
    """Lite orphan scan through deborphan, debfoster or apt-get autoremove."""
    from .. import colors, display

    try:
        result = find_removal_candidates(config.command_timeout)
    except (ToolNotFoundError, CommandError) as e:
        print(colors.error(f"Error: {e}"))
        return 1

    if display.is_json():
        display.print_json({
            'tool': result.tool,
            'accurate': result.accurate,
            'packages': result.packages,
        })
        return 0

    if display.is_flat():
        display.print_lines(result.packages)
        return 0

    if result.accurate:
        print(colors.info(f"Orphan candidates reported by {result.tool}:"))
    else:
        print(colors.warning(f"Orphan candidates reported by {result.tool} (less accurate):"))

    if result.packages:
        display.print_package_list(result.packages, color_func=colors.pkg_orphan)
        print(f"\nOrphans: {colors.count(len(result.packages))}")
    else:
        print(colors.success("No orphans found"))

    if not result.accurate:
        missing = missing_precise_tools()
        if missing:
            print(colors.dim("\nFor a more precise scan install one of:"))
            for tool in missing:
                print(colors.dim(f"  sudo apt install {tool}"))
        print(colors.dim("Or run: debquery --orphans-full"))
    return 0


def cmd_orphans_full(args, config: 'Config') -> int:
    """Full reachability scan over manual/automatic marks and relations."""
    from .. import colors, display

    try:
        state = dpkg.load_package_state(config)
    except DataSourceUnavailable as e:
        print(colors.error(f"Cannot run the full orphan scan: {e}"))
        print(colors.warning("Falling back to the lite scan"))
        return cmd_orphans(args, config)

    detector = OrphanDetector(
        manual=state.manual,
        automatic=state.automatic,
        rows=dependency_rows(state.records),
        versions=state.versions,
        holds=state.holds,
        system_patterns=config.system_patterns,
    )
    report = detector.run()

    if display.is_json():
        data = report.to_dict()
        data['source'] = state.source
        display.print_json(data)
        return 0

    if display.is_flat():
        display.print_lines([o.name for o in report.orphans])
        return 0

    print(colors.dim(
        f"{report.manual_count} manual, {report.automatic_count} automatic, "
        f"{report.edge_count} dependency edges (from {state.source})"
    ))
    for line in render_orphan_report(report):
        print(line)
    return 0
