"""
Source-encoding detection and transcoding to text.

Detection is heuristic and ordered; the first rule that fires wins:

1. UTF-8 BOM                      -> ``utf-8`` (BOM stripped)
2. UTF-16LE / UTF-16BE BOM        -> ``utf-16le`` / ``utf-16be`` (BOM stripped)
3. strictly valid UTF-8           -> ``utf-8``
4. even length, >25% NUL bytes    -> ``utf-16le``
5. every high byte in a GBK pair  -> ``gbk``
6. >80% Windows-1252 printables   -> ``ansi``
7. anything else                  -> ``utf-8`` (best effort)
"""

import codecs
import os
from typing import NamedTuple, Tuple, Union

from .binary import is_binary
from .models import BINARY_PLACEHOLDER, SizeLimitExceeded

UTF8, UTF16LE, UTF16BE, GBK, ANSI = "utf-8", "utf-16le", "utf-16be", "gbk", "ansi"

UTF16_NUL_RATIO = 0.25
ANSI_PRINTABLE_RATIO = 0.8

_CODECS = {
    UTF8: "utf-8",
    UTF16LE: "utf-16-le",
    UTF16BE: "utf-16-be",
    GBK: "gbk",
    ANSI: "cp1252",
}
_ALIASES = {
    "utf8": UTF8,
    "utf-16-le": UTF16LE,
    "utf-16-be": UTF16BE,
    "gb2312": GBK,
    "windows-1252": ANSI,
    "cp1252": ANSI,
}
_ANSI_BYTES = frozenset(range(0x20, 0x7F)) | frozenset(range(0xA0, 0x100)) | {0x09, 0x0A, 0x0D}


class TranscodeError(ValueError):
    """Raised when bytes cannot be decoded with the requested encoding."""


class DecodedText(NamedTuple):
    text: str
    encoding: str
    fallback: bool


# --- Heuristics ---
def is_valid_utf8(data: bytes) -> bool:
    try:
        data.decode("utf-8", errors="strict")
    except UnicodeDecodeError:
        return False
    return True


def looks_like_utf16(data: bytes) -> bool:
    if not data or len(data) % 2:
        return False
    return data.count(0) / len(data) > UTF16_NUL_RATIO


def looks_like_gbk(data: bytes) -> bool:
    i, n = 0, len(data)
    while i < n:
        lead = data[i]
        if lead < 0x80:
            i += 1
            continue
        if i + 1 < n and 0x81 <= lead <= 0xFE:
            trail = data[i + 1]
            if 0x40 <= trail <= 0xFE and trail != 0x7F:
                i += 2
                continue
        return False
    return True


def looks_like_ansi(data: bytes) -> bool:
    if not data:
        return False
    printable = sum(1 for b in data if b in _ANSI_BYTES)
    return printable / len(data) > ANSI_PRINTABLE_RATIO


# --- Detection & Transcoding ---
def detect(data: bytes) -> Tuple[str, bytes]:
    """
    Identifies the probable source encoding of ``data``.

    Args:
        data (bytes): Raw file content.

    Returns:
        Tuple[str, bytes]: The encoding name and the content with any byte
        order mark removed.
    """
    if not data:
        return UTF8, data
    if data.startswith(codecs.BOM_UTF8):
        return UTF8, data[len(codecs.BOM_UTF8) :]
    if data.startswith(codecs.BOM_UTF16_LE):
        return UTF16LE, data[2:]
    if data.startswith(codecs.BOM_UTF16_BE):
        return UTF16BE, data[2:]
    if is_valid_utf8(data):
        return UTF8, data
    if looks_like_utf16(data):
        return UTF16LE, data
    if looks_like_gbk(data):
        return GBK, data
    if looks_like_ansi(data):
        return ANSI, data
    return UTF8, data


def _decode(data: bytes, encoding: str) -> str:
    name = _ALIASES.get(encoding.lower(), encoding.lower())
    codec = _CODECS.get(name)
    if codec is None:
        raise TranscodeError(f"Unsupported encoding: {encoding}")
    if name == UTF8:
        # Rule 7 lands here with arbitrary bytes, so UTF-8 is always lenient.
        return data.decode(codec, errors="replace")
    try:
        return data.decode(codec, errors="strict")
    except UnicodeDecodeError as e:
        raise TranscodeError(f"Failed to decode as {name}: {e}") from e


def transcode(data: bytes, encoding: str) -> str:
    """
    Converts ``data`` from ``encoding`` to text.

    A failed conversion does not raise: the original bytes are returned as
    best-effort UTF-8, which may contain U+FFFD replacement characters.
    """
    return decode_bytes(data, encoding).text


def decode_bytes(data: bytes, encoding: str = "") -> DecodedText:
    """
    Detects (unless ``encoding`` is given) and transcodes ``data``.

    The ``fallback`` flag of the result is True when the detected encoding
    could not decode the bytes and the best-effort UTF-8 text was used instead.
    """
    if not encoding:
        encoding, data = detect(data)
    try:
        return DecodedText(_decode(data, encoding), encoding, False)
    except TranscodeError:
        return DecodedText(data.decode("utf-8", errors="replace"), encoding, True)


def read_file_content(path: Union[str, os.PathLike], max_size: int = 0) -> Tuple[str, bool]:
    """
    Reads a file and returns its decoded content.

    Args:
        path (str | PathLike): The file to read.
        max_size (int): Size limit in bytes; 0 disables the check.

    Returns:
        Tuple[str, bool]: The content (or the binary placeholder) and whether
        the file was classified as binary.

    Raises:
        SizeLimitExceeded: If the file is larger than a positive ``max_size``.
        OSError: If the file cannot be read.
    """
    size = os.stat(path).st_size
    if max_size > 0 and size > max_size:
        raise SizeLimitExceeded(os.fspath(path), size, max_size)
    if is_binary(path):
        return BINARY_PLACEHOLDER, True
    with open(path, "rb") as handle:
        data = handle.read()
    return decode_bytes(data).text, False
