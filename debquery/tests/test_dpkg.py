"""Tests for dpkg/apt wrappers and the status-file fallback"""

import subprocess
from unittest.mock import MagicMock, patch

import pytest

from debquery.core import dpkg
from debquery.core.config import Config
from debquery.core.errors import CommandError, DataSourceUnavailable, ToolNotFoundError


STATUS = """\
Package: vim
Status: install ok installed
Version: 2:9.0.1378-2
Depends: vim-common (= 2:9.0.1378-2), libc6 (>= 2.34)
Suggests: ctags

Package: vim-common
Status: install ok installed
Version: 2:9.0.1378-2

Package: libold1
Status: hold ok installed
Version: 1.0-1

Package: removed-pkg
Status: deinstall ok config-files
Version: 0.1
"""

EXTENDED_STATES = """\
Package: vim-common
Architecture: amd64
Auto-Installed: 1

Package: libold1
Architecture: amd64
Auto-Installed: 1

Package: vim
Architecture: amd64
Auto-Installed: 0
"""

RDEPENDS = """\
vim-common
Reverse Depends:
  vim
 |vim-gtk3
  <vim-tiny>
  vim
  vim-gtk3:i386
"""


def _completed(stdout='', returncode=0, stderr=''):
    return subprocess.CompletedProcess([], returncode, stdout=stdout, stderr=stderr)


class TestRunCommand:
    """Tests for subprocess wrapper error mapping."""

    def test_stdout(self):
        with patch('subprocess.run', return_value=_completed('ok\n')):
            assert dpkg.run_command(['true']) == 'ok\n'

    def test_missing_tool(self):
        with patch('subprocess.run', side_effect=FileNotFoundError()):
            with pytest.raises(ToolNotFoundError) as exc:
                dpkg.run_command(['deborphan'])
        assert exc.value.tool == 'deborphan'

    def test_nonzero_exit(self):
        with patch('subprocess.run', return_value=_completed('', 100, 'E: boom\nmore')):
            with pytest.raises(CommandError) as exc:
                dpkg.run_command(['apt-cache', 'show', 'nope'])
        assert exc.value.returncode == 100
        assert 'E: boom' in str(exc.value)

    def test_nonzero_exit_unchecked(self):
        with patch('subprocess.run', return_value=_completed('partial', 1)):
            assert dpkg.run_command(['x'], check=False) == 'partial'

    def test_timeout(self):
        with patch('subprocess.run', side_effect=subprocess.TimeoutExpired(['x'], 1)):
            with pytest.raises(CommandError) as exc:
                dpkg.run_command(['x'], timeout=1)
        assert exc.value.returncode is None


class TestQueries:
    """Tests for apt/dpkg query wrappers with mocked output."""

    def test_apt_mark_strips_arch(self):
        with patch('subprocess.run', return_value=_completed('vim\nlibfoo1:i386\n\n')):
            assert dpkg.apt_mark('showauto') == ['vim', 'libfoo1']

    def test_query_installed(self):
        output = ("vim\t2:9.0\tlibc6\t\t\tinstalled\n"
                  "vim-common\t2:9.0\t\t\t\tinstalled\n")
        with patch('subprocess.run', return_value=_completed(output)) as run:
            records = dpkg.query_installed()
        assert [r.name for r in records] == ['vim', 'vim-common']
        assert records[0].depends == 'libc6'
        assert '${db:Status-Status}' in run.call_args[0][0][2]

    def test_query_installed_skips_config_files(self):
        output = ("vim\t2:9.0\t\t\t\tinstalled\n"
                  "removed-pkg\t0.1\t\t\t\tconfig-files\n"
                  "half\t1.0\t\t\t\thalf-installed\n")
        with patch('subprocess.run', return_value=_completed(output)):
            records = dpkg.query_installed()
        assert [r.name for r in records] == ['vim']

    def test_package_status_unknown(self):
        with patch('subprocess.run', return_value=_completed('', 1, 'no packages found')):
            assert dpkg.package_status('nope') == ''
            assert dpkg.is_installed('nope') is False

    def test_is_installed(self):
        with patch('subprocess.run', return_value=_completed('install ok installed')):
            assert dpkg.is_installed('vim') is True

    def test_apt_cache_search(self):
        output = "vim - Vi IMproved - enhanced vi editor\nvim-gtk3 - Vi IMproved (GTK)\n"
        with patch('subprocess.run', return_value=_completed(output)):
            results = dpkg.apt_cache_search('vim')
        assert results == [('vim', 'Vi IMproved - enhanced vi editor'),
                           ('vim-gtk3', 'Vi IMproved (GTK)')]

    def test_apt_cache_show_unknown(self):
        with patch('subprocess.run', return_value=_completed('', 100, 'E: No packages found')):
            assert dpkg.apt_cache_show('nope') is None

    def test_rdepends_installed_flag(self):
        with patch('subprocess.run', return_value=_completed(RDEPENDS)) as run:
            dpkg.apt_cache_rdepends('vim-common', installed_only=True)
        assert run.call_args[0][0] == ['apt-cache', 'rdepends', '--installed', 'vim-common']

    def test_print_architecture_fallback(self):
        with patch('subprocess.run', side_effect=FileNotFoundError()):
            assert dpkg.print_architecture() == 'amd64'

    def test_codename_fallback(self, monkeypatch):
        monkeypatch.setattr(dpkg, '_codename_from_os_release', lambda: '')
        with patch('subprocess.run', side_effect=FileNotFoundError()):
            assert dpkg.distro_codename() == 'stable'

    def test_codename_from_os_release(self, tmp_path):
        path = tmp_path / 'os-release'
        path.write_text('NAME="Debian GNU/Linux"\nVERSION_CODENAME=bookworm\n')
        assert dpkg._codename_from_os_release(path) == 'bookworm'


class TestParseRdepends:
    """Tests for apt-cache rdepends output parsing."""

    def test_markers_and_dedup(self):
        rdeps = dpkg.parse_rdepends(RDEPENDS)
        assert [r.name for r in rdeps] == ['vim', 'vim-gtk3', 'vim-tiny']
        assert rdeps[1].alternative is True
        assert rdeps[2].virtual is True
        assert rdeps[0].alternative is False

    def test_header_only(self):
        assert dpkg.parse_rdepends("foo\nReverse Depends:\n") == []


class TestStatusFiles:
    """Tests for the dpkg status / extended_states reader."""

    @pytest.fixture
    def config(self, tmp_path):
        (tmp_path / 'status').write_text(STATUS)
        (tmp_path / 'extended_states').write_text(EXTENDED_STATES)
        return Config(dpkg_status=tmp_path / 'status',
                      extended_states=tmp_path / 'extended_states')

    def test_read_status_file(self, config):
        records = dpkg.read_status_file(config.dpkg_status)
        assert [r.name for r in records] == ['vim', 'vim-common', 'libold1', 'removed-pkg']
        assert records[0].suggests == 'ctags'
        assert records[3].installed is False

    def test_read_extended_states(self, config):
        assert dpkg.read_extended_states(config.extended_states) == {'vim-common', 'libold1'}

    def test_missing_extended_states(self, tmp_path):
        assert dpkg.read_extended_states(tmp_path / 'nope') == set()

    def test_state_from_files(self, config, monkeypatch):
        monkeypatch.setattr(dpkg, 'have_tool', lambda name: False)
        state = dpkg.load_package_state(config)
        assert state.manual == ['vim']
        assert state.automatic == ['libold1', 'vim-common']
        assert state.holds == {'libold1'}
        assert 'removed-pkg' not in state.versions
        assert state.versions['vim'] == '2:9.0.1378-2'

    def test_tools_fail_then_files(self, config, monkeypatch):
        monkeypatch.setattr(dpkg, 'have_tool', lambda name: True)
        monkeypatch.setattr(dpkg, '_state_from_tools',
                            MagicMock(side_effect=CommandError(['apt-mark'], 1)))
        state = dpkg.load_package_state(config)
        assert state.source == str(config.dpkg_status)

    def test_state_from_tools(self, monkeypatch):
        outputs = {
            'showmanual': ['vim'],
            'showauto': ['vim-common'],
            'showhold': [],
        }
        monkeypatch.setattr(dpkg, 'have_tool', lambda name: True)
        monkeypatch.setattr(dpkg, 'apt_mark', lambda sub, timeout=60: outputs[sub])
        monkeypatch.setattr(dpkg, 'query_installed', lambda timeout=60: [])
        state = dpkg.load_package_state(Config())
        assert state.manual == ['vim']
        assert state.automatic == ['vim-common']
        assert state.source == 'apt-mark/dpkg-query'

    def test_state_from_tools_excludes_config_files(self, monkeypatch):
        outputs = {'showmanual': ['app'], 'showauto': ['libfoo2'], 'showhold': []}
        monkeypatch.setattr(dpkg, 'have_tool', lambda name: True)
        monkeypatch.setattr(dpkg, 'apt_mark', lambda sub, timeout=60: outputs[sub])
        output = ("app\t1.0\tlibfoo2\t\t\tinstalled\n"
                  "libfoo1\t1.9-1\t\t\t\tconfig-files\n"
                  "libfoo2\t2.1-1\t\t\t\tinstalled\n")
        with patch('subprocess.run', return_value=_completed(output)):
            state = dpkg.load_package_state(Config())
        assert state.versions == {'app': '1.0', 'libfoo2': '2.1-1'}

    def test_nothing_available(self, tmp_path, monkeypatch):
        monkeypatch.setattr(dpkg, 'have_tool', lambda name: False)
        with pytest.raises(DataSourceUnavailable):
            dpkg.load_package_state(Config(dpkg_status=tmp_path / 'absent'))
