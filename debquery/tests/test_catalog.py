"""Tests for the apt lists catalog and fuzzy ranking"""

import gzip

import pytest

from debquery.core.catalog import (
    Catalog,
    fuzzy_rank,
    index_files,
    matches_group,
    records_from_text,
    similarity,
)
from debquery.core.parsing import PackageRecord


MAIN_PACKAGES = """\
Package: 0ad
Version: 0.0.26-3
Section: games
Description: Real-time strategy game of ancient warfare
 0 A.D. is a free, open-source, cross-platform real-time strategy game.

Package: vim
Version: 2:9.0.1378-2
Section: editors
Homepage: https://www.vim.org/
Tag: devel::editor, role::program, suite::gnu
Description: Vi IMproved - enhanced vi editor

Package: gnome-chess
Version: 1:43.2-1
Section: games
Tag: game::board, suite::gnome
Description: simple chess game
"""

CONTRIB_PACKAGES = """\
Package: game-data-packager
Version: 75
Section: contrib/games
Description: Installer for game data files

Package: vim
Version: 2:9.0.1378-2
Section: editors
Description: duplicate paragraph from another suite
"""


@pytest.fixture
def lists_dir(tmp_path):
    (tmp_path / "deb.debian.org_debian_dists_bookworm_main_binary-amd64_Packages").write_text(
        MAIN_PACKAGES
    )
    with gzip.open(
        tmp_path / "deb.debian.org_debian_dists_bookworm_contrib_binary-amd64_Packages.gz", "wt"
    ) as f:
        f.write(CONTRIB_PACKAGES)
    (tmp_path / "deb.debian.org_debian_dists_bookworm_InRelease").write_text("signed")
    (tmp_path / "lock").write_text("")
    return tmp_path


class TestIndexFiles:
    """Tests for index discovery."""

    def test_only_packages_indexes(self, lists_dir):
        names = [p.name for p in index_files(lists_dir)]
        assert len(names) == 2
        assert all("Packages" in n for n in names)

    def test_missing_dir(self, tmp_path):
        assert index_files(tmp_path / "nope") == []


class TestMatchesGroup:
    """Tests for section/suite matching."""

    def _records(self):
        return {r.name: r for r in records_from_text(MAIN_PACKAGES)}

    def test_section(self):
        assert matches_group(self._records()["0ad"], "games")

    def test_suite_tag(self):
        assert matches_group(self._records()["gnome-chess"], "gnome")

    def test_description_case_insensitive(self):
        assert matches_group(self._records()["vim"], "IMPROVED")

    def test_homepage(self):
        assert matches_group(self._records()["vim"], "vim.org")

    def test_no_match(self):
        assert not matches_group(self._records()["vim"], "games")

    def test_empty_group(self):
        assert not matches_group(PackageRecord(name="x", section=""), "")


class TestCatalog:
    """Tests for Catalog queries."""

    def test_reads_plain_and_compressed(self, lists_dir):
        catalog = Catalog(lists_dir)
        assert catalog.names() == ["0ad", "game-data-packager", "gnome-chess", "vim"]

    def test_sections_sorted_unique(self, lists_dir):
        assert Catalog(lists_dir).sections() == ["contrib/games", "editors", "games"]

    def test_group_first_paragraph_wins(self, lists_dir):
        # Indexes are read in sorted file name order: contrib before main
        records = Catalog(lists_dir).group("editors")
        assert [r.name for r in records] == ["vim"]
        assert records[0].summary == "duplicate paragraph from another suite"

    def test_group_names_sorted(self, lists_dir):
        assert Catalog(lists_dir).group_names("games") == ["0ad", "gnome-chess"]

    def test_fallback_used_when_no_indexes(self, tmp_path):
        catalog = Catalog(tmp_path, fallback=lambda: MAIN_PACKAGES)
        assert catalog.names() == ["0ad", "gnome-chess", "vim"]

    def test_empty_without_fallback(self, tmp_path):
        assert Catalog(tmp_path).is_empty()

    def test_corrupt_xz_index_skipped(self, lists_dir):
        broken = lists_dir / "deb.debian.org_debian_dists_bookworm_non-free_binary-amd64_Packages.xz"
        broken.write_bytes(b"\xfd7zXZ\x00" + b"garbage" * 8)
        catalog = Catalog(lists_dir)
        assert catalog.names() == ["0ad", "game-data-packager", "gnome-chess", "vim"]


class TestFuzzy:
    """Tests for fuzzy name ranking."""

    NAMES = ["firefox-esr", "firefox-esr-l10n-fr", "thunderbird", "vim", "vim-gtk3", "fim"]

    def test_exact_match_first(self):
        result = fuzzy_rank("vim", self.NAMES)
        assert result[0] == ("vim", 1.0)

    def test_typo(self):
        names = [n for n, _ in fuzzy_rank("firefx-esr", self.NAMES)]
        assert names[0] == "firefox-esr"

    def test_substring_bonus(self):
        assert similarity("vim", "vim-gtk3") >= 0.75

    def test_cutoff(self):
        assert fuzzy_rank("zzzz", self.NAMES) == []

    def test_limit(self):
        assert len(fuzzy_rank("vim", self.NAMES, limit=1)) == 1

    def test_empty_query(self):
        assert fuzzy_rank("", self.NAMES) == []

    def test_sorted_by_score(self):
        scores = [s for _, s in fuzzy_rank("vim", self.NAMES)]
        assert scores == sorted(scores, reverse=True)
