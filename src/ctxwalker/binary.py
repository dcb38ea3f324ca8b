import os
from typing import Union

SNIFF_SIZE = 512
TEXT_RATIO_THRESHOLD = 0.8

TEXT_FILE_EXTENSIONS = {
    ".txt",
    ".md",
    ".rst",
    ".json",
    ".xml",
    ".yaml",
    ".yml",
    ".toml",
    ".ini",
    ".cfg",
    ".csv",
    ".go",
    ".py",
    ".pyi",
    ".js",
    ".jsx",
    ".ts",
    ".tsx",
    ".java",
    ".kt",
    ".scala",
    ".c",
    ".h",
    ".cpp",
    ".hpp",
    ".cs",
    ".rb",
    ".php",
    ".rs",
    ".swift",
    ".html",
    ".htm",
    ".css",
    ".scss",
    ".sass",
    ".sql",
    ".sh",
    ".bat",
    ".ps1",
}
BINARY_FILE_EXTENSIONS = {
    ".png",
    ".jpg",
    ".jpeg",
    ".gif",
    ".ico",
    ".pdf",
    ".zip",
    ".gz",
    ".tar",
    ".7z",
    ".exe",
    ".dll",
    ".so",
    ".dylib",
    ".jar",
    ".class",
    ".pyc",
    ".mp3",
    ".mp4",
    ".wasm",
}

# Printable ASCII plus tab, LF and CR.
_TEXT_BYTES = frozenset(range(0x20, 0x7F)) | {0x09, 0x0A, 0x0D}


def looks_binary(chunk: bytes) -> bool:
    """Classifies a leading chunk of file content."""
    if not chunk:
        return False
    if b"\x00" in chunk:
        return True
    printable = sum(1 for b in chunk if b in _TEXT_BYTES)
    return printable / len(chunk) <= TEXT_RATIO_THRESHOLD


def sniff(path: Union[str, os.PathLike]) -> bool:
    """
    Classifies a file as binary (True) or text (False).

    Well-known extensions are classified without touching the file. Anything
    else is sniffed from its first 512 bytes.

    Raises:
        OSError: If the file has to be sniffed and cannot be opened or read.
    """
    ext = os.path.splitext(os.fspath(path))[1].lower()
    if ext in TEXT_FILE_EXTENSIONS:
        return False
    if ext in BINARY_FILE_EXTENSIONS:
        return True
    with open(path, "rb") as handle:
        chunk = handle.read(SNIFF_SIZE)
    return looks_binary(chunk)


def is_binary(path: Union[str, os.PathLike]) -> bool:
    """
    Decides whether a file should be treated as opaque binary content.

    Same as ``sniff``, except that a file which cannot be opened or read is
    reported as binary so it is never decoded.
    """
    try:
        return sniff(path)
    except OSError:
        return True


def is_text_file(path: Union[str, os.PathLike]) -> bool:
    return not is_binary(path)
