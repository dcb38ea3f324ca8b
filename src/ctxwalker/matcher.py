"""
Include/exclude pattern matching for paths relative to a traversal root.

Three pattern forms are recognized:

* ``name/`` - a directory anchor. Matches any path that lies beneath a
  directory called ``name`` at any depth (``/name/`` anchors it to the root).
* ``*.py`` - no separator. A shell glob matched against the basename only.
* ``src/**/*.py`` - contains a separator. Matched against the whole
  root-relative path with gitignore wildcard rules, so ``*`` stays inside one
  segment and ``**`` spans any number of them.
"""

import os
from fnmatch import fnmatchcase
from functools import lru_cache
from pathlib import PurePath
from typing import Callable, Iterable, List, Sequence

from pathspec import PathSpec

from .options import TraversalOptions

_Matcher = Callable[[str, Sequence[str]], bool]


def normalize_path(path: str) -> str:
    """Converts backslashes to forward slashes and strips ``./`` and outer slashes."""
    normalized = path.replace("\\", "/")
    while normalized.startswith("./"):
        normalized = normalized[2:]
    return normalized.strip("/")


def _segments_match(pattern_parts: Sequence[str], dir_parts: Sequence[str], anchored: bool) -> bool:
    width = len(pattern_parts)
    starts = [0] if anchored else range(len(dir_parts) - width + 1)
    for start in starts:
        window = dir_parts[start : start + width]
        if len(window) == width and all(
            fnmatchcase(part, pat) for part, pat in zip(window, pattern_parts)
        ):
            return True
    return False


@lru_cache(maxsize=1024)
def compile_pattern(pattern: str) -> _Matcher:
    """
    Compiles a pattern string into a predicate ``(relative_path, dir_parts) -> bool``.

    ``dir_parts`` are the directory segments of the candidate, i.e. every
    segment except the final file name.
    """
    raw = pattern.replace("\\", "/").strip()

    if raw.endswith("/"):
        anchored = raw.startswith("/")
        parts = tuple(p for p in raw.strip("/").split("/") if p)
        if not parts:
            return lambda rel, dir_parts: False
        return lambda rel, dir_parts: _segments_match(parts, dir_parts, anchored)

    if "/" not in raw:
        return lambda rel, dir_parts: fnmatchcase(rel.rsplit("/", 1)[-1], raw)

    spec = PathSpec.from_lines("gitwildmatch", [raw])
    return lambda rel, dir_parts: spec.match_file(rel)


def match_pattern(pattern: str, relative_path: str) -> bool:
    """Checks a single pattern against a root-relative file path."""
    rel = normalize_path(relative_path)
    return compile_pattern(pattern)(rel, rel.split("/")[:-1])


class PathMatcher:
    """Evaluates root-relative paths against ordered include and exclude patterns."""

    def __init__(self, include_patterns: Iterable[str] = (), exclude_patterns: Iterable[str] = ()):
        self.include_patterns = tuple(p for p in include_patterns if p.strip())
        self.exclude_patterns = tuple(p for p in exclude_patterns if p.strip())
        self._includes = [compile_pattern(p) for p in self.include_patterns]
        self._excludes = [compile_pattern(p) for p in self.exclude_patterns]
        self._dir_excludes = [
            compile_pattern(p) for p in self.exclude_patterns if p.replace("\\", "/").rstrip().endswith("/")
        ]

    @classmethod
    def from_options(cls, options: TraversalOptions) -> "PathMatcher":
        return cls(options.include_patterns, options.exclude_patterns)

    def matches(self, relative_path: str) -> bool:
        """
        Decides whether a file is accepted.

        Args:
            relative_path (str): The file's path relative to the traversal root.

        Returns:
            bool: False if include patterns exist and none match, or if any
            exclude pattern matches. True otherwise.
        """
        rel = normalize_path(relative_path)
        dir_parts = rel.split("/")[:-1]
        if self._includes and not any(m(rel, dir_parts) for m in self._includes):
            return False
        return not any(m(rel, dir_parts) for m in self._excludes)

    def excludes_directory(self, relative_dir: str) -> bool:
        """
        Returns True if every file beneath ``relative_dir`` would be excluded.

        Only directory-anchor patterns can guarantee that, so only they are
        consulted. Used to prune whole subtrees during enumeration.
        """
        rel = normalize_path(relative_dir)
        if not rel:
            return False
        dir_parts = rel.split("/")
        return any(m(rel, dir_parts) for m in self._dir_excludes)


def should_include(path: str, root_relative_path: str, options: TraversalOptions) -> bool:
    """
    Applies the options' include/exclude patterns to a single file.

    Args:
        path (str): The file's path, absolute or otherwise. Kept for callers
            that only hold the full path; the basename is taken from
            ``root_relative_path`` when it is given.
        root_relative_path (str): The file's path relative to the traversal root.
        options (TraversalOptions): Supplies the pattern lists.

    Returns:
        bool: Whether the file passes the pattern rules.
    """
    rel = root_relative_path or os.path.basename(normalize_path(path))
    return PathMatcher.from_options(options).matches(rel)


def filter_files(files: Iterable[str], patterns: Sequence[str]) -> List[str]:
    """Keeps the files whose basename matches any pattern; all files if none are given."""
    files = list(files)
    if not patterns:
        return files
    return [
        f
        for f in files
        if any(fnmatchcase(PurePath(normalize_path(f)).name, p) for p in patterns)
    ]


def filter_by_size(path: str, max_size: int) -> bool:
    """Reports whether a file is within ``max_size`` bytes (0 means no limit)."""
    try:
        size = os.stat(path).st_size
    except OSError:
        return False
    return max_size <= 0 or size <= max_size
