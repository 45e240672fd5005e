"""Package query commands (info, groups, search, files, rdepends)."""

import io
import re
from typing import TYPE_CHECKING

from debian.deb822 import Deb822

from ...core import dpkg
from ...core.catalog import Catalog, fuzzy_rank
from ...core.errors import CommandError, RemoteFetchError, ToolNotFoundError
from ...core.filelist import fetch_remote_filelist

if TYPE_CHECKING:
    from ...core.config import Config


def _catalog(config: 'Config') -> Catalog:
    """Catalog over apt lists, falling back to apt-cache dumpavail."""
    def dumpavail() -> str:
        try:
            return dpkg.apt_cache_dumpavail(config.command_timeout)
        except (ToolNotFoundError, CommandError):
            return ''
    return Catalog(config.apt_lists_dir, fallback=dumpavail)


def _no_catalog(config: 'Config') -> int:
    from .. import colors
    print(colors.warning(f"No package indexes found in {config.apt_lists_dir}"))
    print(colors.dim("  Run 'apt update' to download package lists"))
    return 0


def _tool_error(e: Exception) -> int:
    from .. import colors
    print(colors.error(f"Error: {e}"))
    return 1


def cmd_info(args, config: 'Config') -> int:
    """Show dpkg status and apt-cache information for a package."""
    from .. import colors, display

    package = args.value
    try:
        status = dpkg.package_status(package, config.command_timeout)
        shown = dpkg.apt_cache_show(package, config.command_timeout)
    except ToolNotFoundError as e:
        return _tool_error(e)

    installed = status == 'install ok installed'

    if display.is_json():
        paragraphs = [dict(p) for p in Deb822.iter_paragraphs(io.StringIO(shown or ''))]
        display.print_json({
            'package': package,
            'installed': installed,
            'status': status or None,
            'versions': paragraphs,
        })
        return 0 if shown else 1

    if installed:
        print(colors.success(f"Status: {status}"))
    else:
        print(colors.dim("Status: not installed"))

    if not shown:
        print(colors.error(f"Package '{package}' not found"))
        return 1

    for line in shown.rstrip('\n').splitlines():
        key, sep, value = line.partition(':')
        if sep and not line[:1].isspace():
            print(f"{colors.bold(key + ':')}{value}")
        else:
            print(line)
    return 0


def cmd_groups(args, config: 'Config') -> int:
    """List all sections known to the package indexes."""
    from .. import colors, display

    catalog = _catalog(config)
    if catalog.is_empty():
        return _no_catalog(config)

    sections = catalog.sections()
    if display.is_json():
        display.print_json(sections)
        return 0
    if display.is_flat():
        display.print_lines(sections)
        return 0

    print(colors.header(f"Sections ({len(sections)}):"))
    display.print_package_list(sections)
    return 0


def cmd_group(args, config: 'Config') -> int:
    """List packages of a section/suite with their descriptions."""
    from .. import colors, display

    group = args.value
    catalog = _catalog(config)
    if catalog.is_empty():
        return _no_catalog(config)

    records = catalog.group(group)
    if display.is_json():
        display.print_json([{'name': r.name, 'section': r.section,
                             'description': r.summary} for r in records])
        return 0

    if not records:
        print(colors.warning(f"No packages found in section or suite '{group}'"))
        return 0

    if not display.is_flat():
        print(colors.header(f"Packages in section or suite '{group}' with descriptions:"))
    for record in records:
        print(f"{colors.bold(record.name)}: {record.summary}")
    return 0


def cmd_group_list(args, config: 'Config') -> int:
    """List package names of a section/suite, sorted."""
    from .. import colors, display

    group = args.value
    catalog = _catalog(config)
    if catalog.is_empty():
        return _no_catalog(config)

    names = catalog.group_names(group)
    if display.is_json():
        display.print_json(names)
        return 0
    if not names:
        print(colors.warning(f"No packages found in section or suite '{group}'"))
        return 0
    if display.is_flat():
        display.print_lines(names)
        return 0

    print(colors.header(f"Packages in section or suite '{group}' ({len(names)}):"))
    display.print_package_list(names)
    return 0


def _highlight(text: str, pattern: str) -> str:
    """Highlight case-insensitive occurrences of pattern in green."""
    from .. import colors

    if not colors.enabled() or not pattern:
        return text
    regex = re.compile(f'({re.escape(pattern)})', re.IGNORECASE)
    return regex.sub(lambda m: colors.success(m.group(1)), text)


def cmd_search(args, config: 'Config') -> int:
    """Search packages by name/description (apt-cache search)."""
    from .. import colors, display

    pattern = args.value
    try:
        results = dpkg.apt_cache_search(pattern, config.command_timeout)
    except (ToolNotFoundError, CommandError) as e:
        return _tool_error(e)

    if display.is_json():
        display.print_json([{'name': n, 'summary': s} for n, s in results])
        return 0

    if not results:
        print(colors.warning(f"No packages found for '{pattern}'"))
        return 0

    for name, summary in results:
        if display.is_flat():
            print(name)
        else:
            print(f"{colors.bold(_highlight(name, pattern))} - {summary}")

    if not display.is_flat():
        print(colors.dim(f"\n{len(results)} package(s) found"))
    return 0


def cmd_search_pretty(args, config: 'Config') -> int:
    """Fuzzy search on package names."""
    from .. import colors, display

    query = args.value
    catalog = _catalog(config)
    names = catalog.names()
    if not names:
        try:
            names = sorted(set(dpkg.apt_cache_pkgnames(config.command_timeout)))
        except (ToolNotFoundError, CommandError) as e:
            return _tool_error(e)

    matches = fuzzy_rank(query, names, limit=config.fuzzy_limit, cutoff=config.fuzzy_cutoff)

    if display.is_json():
        display.print_json([{'name': n, 'score': round(s, 3)} for n, s in matches])
        return 0

    if not matches:
        print(colors.warning(f"No package names close to '{query}'"))
        return 0

    if display.is_flat():
        display.print_lines([n for n, _ in matches])
        return 0

    print(colors.header(f"Closest package names to '{query}':"))
    for name, score in matches:
        print(f"  {_highlight(name, query):<40} {colors.dim(f'{score:.0%}')}")
    return 0


def cmd_files(args, config: 'Config') -> int:
    """List package files, locally or from packages.debian.org."""
    from .. import colors, display

    package = args.value
    timeout = config.command_timeout

    try:
        installed = dpkg.is_installed(package, timeout)
    except ToolNotFoundError:
        installed = False

    if installed:
        try:
            files = dpkg.list_files(package, timeout)
        except (ToolNotFoundError, CommandError) as e:
            return _tool_error(e)
        if display.is_json():
            display.print_json({'package': package, 'source': 'local', 'files': files})
            return 0
        if not display.is_flat():
            print(colors.header(f"Files of package '{package}' (installed):"))
        display.print_lines(files)
        return 0

    codename = dpkg.distro_codename(timeout)
    arch = dpkg.print_architecture(timeout)
    if not display.is_json():
        print(colors.warning(
            f"Package '{package}' is not installed, "
            f"fetching file list from packages.debian.org ({codename}/{arch})..."
        ))
    try:
        result = fetch_remote_filelist(package, codename, arch, timeout=config.http_timeout)
    except RemoteFetchError as e:
        if display.is_json():
            display.print_json({'package': package, 'source': e.url, 'files': [],
                                'error': e.reason})
        else:
            print(colors.warning(f"Could not get the file list from the Debian site: {e.reason}"))
        return 0

    if display.is_json():
        display.print_json({'package': package, 'source': result.source, 'files': result.files})
        return 0
    if not display.is_flat():
        print(colors.header(f"Files of package '{package}' (from the Debian repository):"))
    display.print_lines(result.files)
    return 0


def cmd_rdepends(args, config: 'Config') -> int:
    """Show packages depending on a package (apt-cache rdepends)."""
    from .. import colors, display

    package = args.value
    installed_only = getattr(args, 'installed', False)
    try:
        rdeps = dpkg.apt_cache_rdepends(package, installed_only, config.command_timeout)
    except (ToolNotFoundError, CommandError) as e:
        return _tool_error(e)

    try:
        installed = {r.name for r in dpkg.query_installed(config.command_timeout)}
    except (ToolNotFoundError, CommandError):
        installed = set()

    if display.is_json():
        display.print_json([
            {'name': r.name, 'alternative': r.alternative, 'virtual': r.virtual,
             'installed': r.name in installed}
            for r in rdeps
        ])
        return 0

    if not rdeps:
        print(f"No package depends on '{package}'")
        return 0

    if display.is_flat():
        display.print_lines([r.name for r in rdeps])
        return 0

    print(colors.header(f"Reverse dependencies of '{package}' ({len(rdeps)}):"))
    for r in rdeps:
        name = f"<{r.name}>" if r.virtual else r.name
        if r.name in installed:
            name = colors.pkg_installed(name)
        marker = colors.dim('|') if r.alternative else ' '
        print(f"  {marker}{name}")
    if any(r.alternative for r in rdeps):
        print(colors.dim("\n  | = alternative dependency, <name> = virtual package"))
    return 0
