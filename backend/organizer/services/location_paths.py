# Overview: Pure helpers for the materialized location path encoding; no database access.

"""
Location Path Encoding

Every location is stored with an ASCII-only materialized path such as
``root.garaz.polka_a``. The first segment is always ``root``; each further
segment is the slug of one ancestor's name. The hierarchy is answered with
plain string equality and prefix checks on these paths, never with tree
operators in the database.

Nothing in this module raises on string input.
"""

from __future__ import annotations

import re


ROOT_SEGMENT = "root"
PATH_SEPARATOR = "."

# root + at most four named levels
MAX_DEPTH = 5

# Fixed map; other non-ASCII characters fall through to "_" replacement.
_TRANSLITERATION = str.maketrans({
    "ą": "a", "ć": "c", "ę": "e", "ł": "l", "ń": "n",
    "ó": "o", "ś": "s", "ź": "z", "ż": "z",
    "Ą": "A", "Ć": "C", "Ę": "E", "Ł": "L", "Ń": "N",
    "Ó": "O", "Ś": "S", "Ź": "Z", "Ż": "Z",
})

_INVALID_CHARS = re.compile(r"[^a-z0-9_]")
_UNDERSCORE_RUNS = re.compile(r"_+")


def normalize_name(raw: str) -> str:
    """
    Convert a display name into a path segment.

    "Półka A" -> "polka_a", "  Garaż!! " -> "garaz". The result only holds
    [a-z0-9_], without leading, trailing or repeated underscores, and may be
    empty when the name has no usable characters. Idempotent.
    """
    slug = raw.translate(_TRANSLITERATION).lower()
    slug = _INVALID_CHARS.sub("_", slug)
    slug = _UNDERSCORE_RUNS.sub("_", slug)
    return slug.strip("_")


def split_path(path: str) -> list[str]:
    if not path:
        return []
    return path.split(PATH_SEPARATOR)


def path_depth(path: str) -> int:
    """Number of segments, root included: "root.garaz" has depth 2."""
    return len(split_path(path))


def build_path(parent_path: str | None, slug: str) -> str:
    if not parent_path:
        return f"{ROOT_SEGMENT}{PATH_SEPARATOR}{slug}"
    return f"{parent_path}{PATH_SEPARATOR}{slug}"


def get_parent_path(path: str) -> str:
    """All but the last segment; "" for a single-segment path."""
    head, sep, _ = path.rpartition(PATH_SEPARATOR)
    if not sep:
        return ""
    return head


def last_segment(path: str) -> str:
    return path.rpartition(PATH_SEPARATOR)[2]


def is_descendant_path(candidate: str, ancestor_path: str) -> bool:
    """True when candidate sits anywhere below ancestor_path (never itself)."""
    return candidate.startswith(ancestor_path + PATH_SEPARATOR)


def is_direct_child_path(candidate: str, parent_path: str) -> bool:
    return (
        is_descendant_path(candidate, parent_path)
        and PATH_SEPARATOR not in candidate[len(parent_path) + 1:]
    )


def replace_last_segment(path: str, slug: str) -> str:
    parent = get_parent_path(path)
    if not parent:
        return slug
    return f"{parent}{PATH_SEPARATOR}{slug}"


def rebase_path(path: str, old_prefix: str, new_prefix: str) -> str:
    """
    Move path from under old_prefix to under new_prefix.

    Used when a location is renamed and its descendants must follow:
    rebase_path("root.garaz.polka_a", "root.garaz", "root.piwnica")
    -> "root.piwnica.polka_a". Paths outside old_prefix are returned as is.
    """
    if path == old_prefix:
        return new_prefix
    if not is_descendant_path(path, old_prefix):
        return path
    return new_prefix + path[len(old_prefix):]
