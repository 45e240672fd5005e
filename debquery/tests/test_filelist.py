"""Tests for remote package file lists"""

import io
from unittest.mock import MagicMock, patch
from urllib.error import HTTPError, URLError

import pytest

from debquery.core.errors import RemoteFetchError
from debquery.core.filelist import (
    fetch_remote_filelist,
    filelist_url,
    parse_filelist_html,
)


PAGE = """\
<html><body>
<h1>File list of package <a href="/bookworm/hello">hello</a></h1>
<div id="pfilelist">
<pre>
/usr/bin/hello
/usr/share/doc/hello/NEWS.gz
/usr/share/man/man1/hello.1.gz
/usr/share/doc/hello/AT&amp;T
</pre>
</div>
</body></html>
"""


def _response(body: str):
    response = MagicMock()
    response.read.return_value = body.encode()
    response.__enter__.return_value = response
    return response


class TestParse:
    """Tests for HTML extraction."""

    def test_pre_block(self):
        files = parse_filelist_html(PAGE)
        assert files == [
            "/usr/bin/hello",
            "/usr/share/doc/hello/NEWS.gz",
            "/usr/share/man/man1/hello.1.gz",
            "/usr/share/doc/hello/AT&T",
        ]

    def test_links_stripped(self):
        page = '<pre><a href="x">/usr/bin/a</a>\n/usr/bin/b</pre>'
        assert parse_filelist_html(page) == ["/usr/bin/a", "/usr/bin/b"]

    def test_no_pre(self):
        assert parse_filelist_html("<p>No such package.</p>") == []

    def test_url(self):
        assert filelist_url("hello", "bookworm", "arm64") == \
            "https://packages.debian.org/bookworm/arm64/hello/filelist"


class TestFetch:
    """Tests for fetch_remote_filelist with urlopen mocked."""

    def test_success(self):
        with patch('debquery.core.filelist.urlopen', return_value=_response(PAGE)) as urlopen:
            result = fetch_remote_filelist("hello", "bookworm", "amd64", timeout=3)
        assert result.source == "https://packages.debian.org/bookworm/amd64/hello/filelist"
        assert result.files[0] == "/usr/bin/hello"
        assert urlopen.call_args[1]['timeout'] == 3

    def test_http_error(self):
        error = HTTPError("u", 404, "Not Found", {}, io.BytesIO(b""))
        with patch('debquery.core.filelist.urlopen', side_effect=error):
            with pytest.raises(RemoteFetchError) as exc:
                fetch_remote_filelist("nope", "bookworm", "amd64")
        assert exc.value.reason == "HTTP 404"

    def test_network_error(self):
        with patch('debquery.core.filelist.urlopen', side_effect=URLError("no route")):
            with pytest.raises(RemoteFetchError) as exc:
                fetch_remote_filelist("hello", "bookworm", "amd64")
        assert exc.value.reason == "no route"

    def test_empty_page(self):
        with patch('debquery.core.filelist.urlopen', return_value=_response("<p>none</p>")):
            with pytest.raises(RemoteFetchError):
                fetch_remote_filelist("hello", "bookworm", "amd64")
