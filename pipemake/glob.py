"""File-pattern matching for steps that clean or collect files.

Patterns use ``/`` as the separator (``\\`` is accepted too):

- ``*`` and ``?`` match within one path segment.
- ``**`` matches any number of directories. A trailing ``**`` matches
  everything below its directory, but not the directory itself.
- A pattern starting with ``/`` is absolute; any other pattern is relative
  to the glob's root directory.

Example:
    artifacts = (
        Glob.create("src/**/bin")
        .add("src/**/obj")
        .exclude("src/tools/**")
        .to_paths()
    )
    for path in artifacts:
        shutil.rmtree(path, ignore_errors=True)
"""

import logging
from dataclasses import dataclass, replace
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Optional, Union

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def _split(pattern: str) -> tuple[Optional[Path], list[str]]:
    """Split a pattern into its anchor (None when relative) and segments."""
    normalized = pattern.replace("\\", "/")
    anchor = Path(normalized).anchor or None
    if anchor is not None:
        normalized = normalized[len(anchor.replace("\\", "/")):]
    segments = [s for s in normalized.split("/") if s and s != "."]
    if segments and segments[-1] == "**":
        segments.append("*")
    return (Path(anchor) if anchor else None), segments


def _match_segments(pattern: list[str], parts: tuple[str, ...]) -> bool:
    if not pattern:
        return not parts
    head, rest = pattern[0], pattern[1:]
    if head == "**":
        return any(_match_segments(rest, parts[i:]) for i in range(len(parts) + 1))
    return bool(parts) and fnmatchcase(parts[0], head) and _match_segments(rest, parts[1:])


@dataclass(frozen=True)
class Glob:
    """A set of include and exclude patterns under a root directory.

    Globs are immutable; add() and exclude() return new ones.
    """

    root_dir: Path
    includes: tuple[str, ...] = ()
    excludes: tuple[str, ...] = ()

    @classmethod
    def create(cls, pattern: str, root_dir: Optional[PathLike] = None) -> "Glob":
        """Create a glob with one include pattern.

        Args:
            pattern: Include pattern.
            root_dir: Directory relative patterns start from. Defaults to
                the current working directory.
        """
        root = Path(root_dir) if root_dir is not None else Path.cwd()
        return cls(root_dir=root.absolute(), includes=(pattern,))

    def add(self, pattern: str) -> "Glob":
        """Return a glob that also includes ``pattern``."""
        return replace(self, includes=self.includes + (pattern,))

    def exclude(self, pattern: str) -> "Glob":
        """Return a glob that drops paths matching ``pattern``."""
        return replace(self, excludes=self.excludes + (pattern,))

    def _base_and_segments(self, pattern: str) -> tuple[Path, list[str]]:
        anchor, segments = _split(pattern)
        return (anchor if anchor is not None else self.root_dir), segments

    def _matches(self, pattern: str, path: Path) -> bool:
        base, segments = self._base_and_segments(pattern)
        try:
            relative = path.relative_to(base)
        except ValueError:
            return False
        return _match_segments(segments, relative.parts)

    def is_excluded(self, path: PathLike) -> bool:
        """Return True if ``path`` matches any exclude pattern."""
        candidate = Path(path)
        if not candidate.is_absolute():
            candidate = self.root_dir / candidate
        return any(self._matches(p, candidate) for p in self.excludes)

    def _expand(self, pattern: str) -> list[Path]:
        base, segments = self._base_and_segments(pattern)
        if not base.is_dir():
            logger.debug("Glob root %s does not exist", base)
            return []
        if not segments:
            return [base]
        return sorted(base.glob("/".join(segments)))

    def to_paths(self) -> list[Path]:
        """Return the existing paths matched by the include patterns.

        Paths are absolute, sorted within each include pattern, listed in
        the order the patterns were added, and never repeated.
        """
        seen: dict[Path, None] = {}
        for pattern in self.includes:
            for path in self._expand(pattern):
                if path not in seen and not self.is_excluded(path):
                    seen[path] = None
        logger.debug("Glob under %s matched %d paths", self.root_dir, len(seen))
        return list(seen)

    def files(self) -> list[Path]:
        """Matched paths that are files."""
        return [p for p in self.to_paths() if p.is_file()]

    def directories(self) -> list[Path]:
        """Matched paths that are directories."""
        return [p for p in self.to_paths() if p.is_dir()]
