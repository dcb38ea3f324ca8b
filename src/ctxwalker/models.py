from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterator, List, Optional, Tuple

BINARY_PLACEHOLDER = "[binary file]"


# --- Exceptions ---
class WalkError(Exception):
    """Base class for errors raised by the traversal engine."""


class PathNotFoundError(WalkError):
    """The traversal root does not exist or cannot be read."""

    def __init__(self, path: str, reason: str = ""):
        self.path = path
        self.reason = reason
        message = f"Root path '{path}' not found"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class WalkCancelledError(WalkError):
    """The caller cancelled the traversal before it completed."""


class SizeLimitExceeded(WalkError):
    """A file is larger than the configured size limit."""

    def __init__(self, path: str, size: int, limit: int):
        self.path, self.size, self.limit = path, size, limit
        super().__init__(f"File '{path}' exceeds size limit: {size} > {limit}")


# --- Records ---
@dataclass(frozen=True)
class EntryError:
    """A non-fatal failure attached to a single file or directory."""

    path: str
    kind: str
    message: str

    def __str__(self) -> str:
        return f"[{self.kind}] {self.path}: {self.message}"


@dataclass(frozen=True)
class FileRecord:
    """An accepted file. ``content`` holds decoded text, or the binary placeholder."""

    path: str
    relative_path: str
    name: str
    size: int
    mod_time: datetime
    is_hidden: bool
    is_binary: bool
    content: str
    encoding: Optional[str] = None


@dataclass(frozen=True)
class FolderRecord:
    """An accepted directory with aggregate statistics over its accepted files."""

    path: str
    relative_path: str
    name: str
    mod_time: datetime
    is_hidden: bool
    size: int = 0
    file_count: int = 0
    files: Tuple[FileRecord, ...] = ()
    folders: Tuple["FolderRecord", ...] = ()


@dataclass
class TraversalResult:
    """
    The finalized output of a walk.

    ``files`` and ``folders`` are unordered; consumers should not rely on the
    order in which entries were discovered.
    """

    root_path: str
    files: List[FileRecord] = field(default_factory=list)
    folders: List[FolderRecord] = field(default_factory=list)
    file_count: int = 0
    folder_count: int = 0
    total_size: int = 0
    errors: List[EntryError] = field(default_factory=list)
    duration: float = 0.0

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    def error_summary(self) -> str:
        """Returns a short multi-line summary of the per-entry failures."""
        if not self.errors:
            return "No errors"
        lines = [f"{len(self.errors)} entries could not be processed:"]
        lines.extend(f"  - {error}" for error in self.errors)
        return "\n".join(lines)

    def text_contents(self) -> Iterator[Tuple[str, str]]:
        """Yields ``(relative_path, content)`` for every text file in the result."""
        for record in self.files:
            if not record.is_binary:
                yield record.relative_path, record.content
