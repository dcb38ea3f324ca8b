"""
ctxwalker - A concurrent directory walker that collects file metadata and
decoded text content for code-context tooling.
"""

__version__ = "0.3.0"

from .aggregator import ResultAggregator
from .binary import is_binary, is_text_file
from .encoding import decode_bytes, detect, read_file_content, transcode
from .matcher import PathMatcher, filter_by_size, filter_files, should_include
from .models import (
    BINARY_PLACEHOLDER,
    EntryError,
    FileRecord,
    FolderRecord,
    PathNotFoundError,
    SizeLimitExceeded,
    TraversalResult,
    WalkCancelledError,
    WalkError,
)
from .options import (
    DEFAULT_EXCLUDE_PATTERNS,
    IgnorePreset,
    LanguagePreset,
    TraversalOptions,
)
from .snapshot import scan_directory
from .walker import get_file_info, get_folder_info, walk, walk_files

__all__ = [
    # The primary entry points for scanning.
    "walk",
    "walk_files",
    "scan_directory",
    "get_file_info",
    "get_folder_info",

    # Options and presets.
    "TraversalOptions",
    "LanguagePreset",
    "IgnorePreset",
    "DEFAULT_EXCLUDE_PATTERNS",

    # Result types and errors.
    "FileRecord",
    "FolderRecord",
    "TraversalResult",
    "EntryError",
    "BINARY_PLACEHOLDER",
    "WalkError",
    "PathNotFoundError",
    "WalkCancelledError",
    "SizeLimitExceeded",

    # Building blocks.
    "PathMatcher",
    "ResultAggregator",
    "should_include",
    "filter_files",
    "filter_by_size",
    "is_binary",
    "is_text_file",
    "detect",
    "transcode",
    "decode_bytes",
    "read_file_content",
]
