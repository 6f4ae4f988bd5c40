# Overview: Pytest coverage for the location path encoding helpers.

import re

import pytest

from organizer.services.location_paths import (
    MAX_DEPTH,
    build_path,
    get_parent_path,
    is_descendant_path,
    is_direct_child_path,
    last_segment,
    normalize_name,
    path_depth,
    rebase_path,
    replace_last_segment,
)


SLUG_RE = re.compile(r"^(?:[a-z0-9]+(?:_[a-z0-9]+)*)?$")

SAMPLE_NAMES = [
    "Garaż",
    "Półka A",
    "ŻÓŁĆ gęślą jaźń",
    "  --Strych__  ",
    "Box #12 (top)",
    "already_slug",
    "Ąę",
    "???",
    "",
    "Café Münster",
    "UPPER lower 123",
]


class TestNormalizeName:
    @pytest.mark.parametrize("raw,expected", [
        ("Garaż", "garaz"),
        ("Półka A", "polka_a"),
        ("ŻÓŁĆ gęślą jaźń", "zolc_gesla_jazn"),
        ("  --Strych__  ", "strych"),
        ("Box #12 (top)", "box_12_top"),
        ("???", ""),
        ("", ""),
    ])
    def test_normalized_segments(self, raw, expected):
        assert normalize_name(raw) == expected

    @pytest.mark.parametrize("raw", SAMPLE_NAMES)
    def test_idempotent(self, raw):
        once = normalize_name(raw)
        assert normalize_name(once) == once

    @pytest.mark.parametrize("raw", SAMPLE_NAMES)
    def test_output_alphabet(self, raw):
        """Only [a-z0-9_], no leading, trailing or doubled underscores."""
        assert SLUG_RE.match(normalize_name(raw))

    def test_unmapped_diacritics_become_separators(self):
        """Only Polish letters are transliterated; others are replaced."""
        assert normalize_name("Café") == "caf"
        assert normalize_name("Münster") == "m_nster"


class TestPathConstruction:
    def test_build_path_at_root(self):
        assert build_path(None, "garaz") == "root.garaz"
        assert build_path("", "garaz") == "root.garaz"

    def test_build_path_under_parent(self):
        assert build_path("root.garaz", "polka_a") == "root.garaz.polka_a"

    @pytest.mark.parametrize("parent", ["root", "root.garaz", "root.garaz.polka_a.x"])
    def test_parent_of_built_path_is_parent(self, parent):
        assert get_parent_path(build_path(parent, "slug")) == parent

    def test_parent_of_single_segment_is_empty(self):
        assert get_parent_path("root") == ""

    def test_depth(self):
        assert path_depth("root") == 1
        assert path_depth("root.garaz") == 2
        assert path_depth("root.a.b.c.d") == MAX_DEPTH
        assert path_depth("") == 0

    def test_last_segment(self):
        assert last_segment("root.garaz.polka_a") == "polka_a"


class TestPrefixChecks:
    def test_descendant_any_depth(self):
        assert is_descendant_path("root.garaz.polka_a", "root.garaz")
        assert is_descendant_path("root.garaz.polka_a.pudlo", "root.garaz")

    def test_not_descendant_of_itself(self):
        assert not is_descendant_path("root.garaz", "root.garaz")

    def test_shared_prefix_without_separator_is_not_descendant(self):
        """root.garaz2 is a sibling of root.garaz, not its child."""
        assert not is_descendant_path("root.garaz2", "root.garaz")

    def test_direct_child(self):
        assert is_direct_child_path("root.garaz.polka_a", "root.garaz")
        assert not is_direct_child_path("root.garaz.polka_a.pudlo", "root.garaz")
        assert not is_direct_child_path("root.garaz", "root.garaz")


class TestRename:
    def test_replace_last_segment(self):
        assert replace_last_segment("root.garaz.polka_a", "polka_b") == "root.garaz.polka_b"

    def test_rebase_descendant(self):
        assert rebase_path("root.garaz.polka_a", "root.garaz", "root.piwnica") == "root.piwnica.polka_a"

    def test_rebase_prefix_itself(self):
        assert rebase_path("root.garaz", "root.garaz", "root.piwnica") == "root.piwnica"

    def test_rebase_leaves_unrelated_paths(self):
        assert rebase_path("root.garaz2.x", "root.garaz", "root.piwnica") == "root.garaz2.x"
