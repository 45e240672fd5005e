"""
Package file lists.

Installed packages are answered locally with `dpkg -L`; for anything
else the list is fetched once from packages.debian.org.
"""

import html
import logging
import re
from dataclasses import dataclass, field
from typing import List
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from .config import FILELIST_URL
from .errors import RemoteFetchError

logger = logging.getLogger(__name__)

USER_AGENT = 'debquery'

_PRE_BLOCK = re.compile(r'<pre[^>]*>(.*?)</pre>', re.DOTALL | re.IGNORECASE)
_TAG = re.compile(r'<[^>]+>')


@dataclass
class FileList:
    """Files of one package and where the list came from."""
    package: str
    files: List[str] = field(default_factory=list)
    source: str = 'local'   # 'local' or the remote URL


def filelist_url(package: str, codename: str, arch: str) -> str:
    return FILELIST_URL.format(codename=codename, arch=arch, package=package)


def parse_filelist_html(page: str) -> List[str]:
    """Extract paths from a packages.debian.org filelist page.

    The list sits in a <pre> block, one path per line, sometimes wrapped
    in links.
    """
    files = []
    for block in _PRE_BLOCK.findall(page):
        for line in _TAG.sub('', block).splitlines():
            line = html.unescape(line).strip()
            if line:
                files.append(line)
    return files


def fetch_remote_filelist(package: str, codename: str, arch: str,
                          timeout: float = 15) -> FileList:
    """Fetch the file list of a package from packages.debian.org.

    Raises:
        RemoteFetchError: network error, HTTP error, or no list on page
    """
    url = filelist_url(package, codename, arch)
    logger.debug("Fetching %s", url)
    request = Request(url, headers={'User-Agent': USER_AGENT})
    try:
        with urlopen(request, timeout=timeout) as response:
            page = response.read().decode('utf-8', errors='replace')
    except HTTPError as e:
        raise RemoteFetchError(url, f"HTTP {e.code}")
    except (URLError, OSError) as e:
        raise RemoteFetchError(url, str(getattr(e, 'reason', e)))

    files = parse_filelist_html(page)
    if not files:
        raise RemoteFetchError(url, "no file list on page")
    return FileList(package=package, files=files, source=url)
