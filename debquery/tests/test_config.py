"""Tests for YAML configuration loading"""

from pathlib import Path

from debquery.core import config as config_mod
from debquery.core.config import (
    SYSTEM_PATTERNS,
    Config,
    compile_patterns,
    is_system_package,
    load_config,
)


def _no_default_files(monkeypatch, tmp_path):
    monkeypatch.delenv(config_mod.ENV_CONFIG, raising=False)
    monkeypatch.setattr(config_mod, 'SYSTEM_CONFIG_FILE', tmp_path / 'etc.yaml')
    monkeypatch.setattr(config_mod, 'USER_CONFIG_FILE', tmp_path / 'user.yaml')


class TestLoadConfig:
    """Tests for load_config."""

    def test_defaults_without_file(self, monkeypatch, tmp_path):
        _no_default_files(monkeypatch, tmp_path)
        config = load_config()
        assert config == Config()
        assert config.source is None
        assert config.command_timeout == 60

    def test_explicit_file(self, tmp_path):
        path = tmp_path / 'debquery.yaml'
        path.write_text(
            "extra_system_patterns:\n"
            "  - '^firmware-.*'\n"
            "apt_lists_dir: /srv/lists\n"
            "command_timeout: 5\n"
            "fuzzy_limit: 3\n"
        )
        config = load_config(path)
        assert config.source == path
        assert config.extra_system_patterns == ['^firmware-.*']
        assert config.apt_lists_dir == Path('/srv/lists')
        assert config.command_timeout == 5.0
        assert config.fuzzy_limit == 3

    def test_env_variable(self, monkeypatch, tmp_path):
        _no_default_files(monkeypatch, tmp_path)
        path = tmp_path / 'env.yaml'
        path.write_text("http_timeout: 2\n")
        monkeypatch.setenv(config_mod.ENV_CONFIG, str(path))
        assert load_config().http_timeout == 2.0

    def test_user_file(self, monkeypatch, tmp_path):
        _no_default_files(monkeypatch, tmp_path)
        (tmp_path / 'user.yaml').write_text("fuzzy_cutoff: 0.8\n")
        assert load_config().fuzzy_cutoff == 0.8

    def test_unknown_keys_ignored(self, tmp_path):
        path = tmp_path / 'c.yaml'
        path.write_text("colour: always\nfuzzy_limit: 7\n")
        config = load_config(path)
        assert config.fuzzy_limit == 7
        assert not hasattr(config, 'colour')

    def test_invalid_value_ignored(self, tmp_path):
        path = tmp_path / 'c.yaml'
        path.write_text("command_timeout: soon\n")
        assert load_config(path).command_timeout == 60

    def test_malformed_yaml_uses_defaults(self, tmp_path):
        path = tmp_path / 'c.yaml'
        path.write_text("fuzzy_limit: [unclosed\n")
        assert load_config(path) == Config()

    def test_non_mapping_uses_defaults(self, tmp_path):
        path = tmp_path / 'c.yaml'
        path.write_text("- a\n- b\n")
        assert load_config(path) == Config()

    def test_missing_explicit_file(self, tmp_path):
        assert load_config(tmp_path / 'absent.yaml') == Config()

    def test_single_pattern_string(self, tmp_path):
        path = tmp_path / 'c.yaml'
        path.write_text("extra_system_patterns: '^nvidia-'\n")
        assert load_config(path).extra_system_patterns == ['^nvidia-']


class TestSystemPatterns:
    """Tests for core-system pattern matching."""

    def test_builtin(self):
        patterns = compile_patterns(SYSTEM_PATTERNS)
        assert is_system_package('linux-image-amd64', patterns)
        assert is_system_package('libc6', patterns)
        assert is_system_package('bash', patterns)
        assert not is_system_package('bash-completion', patterns)
        assert not is_system_package('vim', patterns)

    def test_config_adds_extra(self):
        config = Config(extra_system_patterns=['^firmware-'])
        assert is_system_package('firmware-linux', config.system_patterns)

    def test_invalid_pattern_dropped(self):
        assert len(compile_patterns(['^ok$', '(unclosed'])) == 1
