"""
Transfer-encoding helpers for MHT archive parts.

Decodes part bodies (base64, quoted-printable or raw text) and derives
safe, unique output file names from a part's Content-Location.
"""

import base64
import binascii
import codecs
import locale
import logging
import os
import re
from pathlib import Path

logger = logging.getLogger(__name__)

BASE64 = "base64"
QUOTED_PRINTABLE = "quoted-printable"

# TestComplete writes the UTF-8 byte order mark as an escape in front of the body
UTF8_BOM = "=EF=BB=BF"
SOFT_LINE_BREAK = re.compile(r"=\r?\n")
NON_BASE64 = re.compile(r"[^A-Za-z0-9+/]")
FILE_NAME_PATTERN = re.compile(r"[\w-]+\.\w+")

MAIN_NAME = "main"
UNKNOWN_NAME = "unknown"
DEFAULT_EXTENSION = "dat"


def _platform_encoding() -> str:
    return locale.getpreferredencoding(False)


def resolve_charset(charset: str) -> str:
    """Return charset if Python knows it, otherwise utf-8."""
    if not charset:
        return "utf-8"
    try:
        codecs.lookup(charset)
        return charset
    except LookupError:
        logger.warning(f"Unknown charset '{charset}', using utf-8")
        return "utf-8"


def is_binary(encoding: str) -> bool:
    """Only base64 parts are written as raw bytes."""
    return (encoding or "").strip().lower() == BASE64


def decode(body: str, encoding: str, charset: str = "utf-8") -> bytes:
    """
    Decode a part body according to its Content-Transfer-Encoding.

    Args:
        body: Body text as accumulated from the archive
        encoding: Transfer encoding name (base64, quoted-printable or other)
        charset: Declared charset, ignored for base64

    Returns:
        Decoded bytes
    """
    name = (encoding or "").strip().lower()

    if name == BASE64:
        # Line breaks and stray characters are dropped, padding is restored
        data = NON_BASE64.sub("", body)
        data += "=" * (-len(data) % 4)
        return base64.b64decode(data)

    if name == QUOTED_PRINTABLE:
        charset = resolve_charset(charset)
        if _is_ascii_compatible(charset):
            return _unquote(body, charset)
        return _decode_quoted_printable(body, charset).encode(charset, errors="replace")

    return body.encode(_platform_encoding(), errors="replace")


def decode_text(body: str, encoding: str, charset: str = "utf-8") -> str:
    """Decode a textual part body to the string that is written to disk."""
    if (encoding or "").strip().lower() == QUOTED_PRINTABLE:
        return _decode_quoted_printable(body, resolve_charset(charset))
    return decode(body, encoding, charset).decode(_platform_encoding(), errors="replace")


def _is_ascii_compatible(charset: str) -> bool:
    return "=\n".encode(charset, errors="replace") == b"=\n"


def _unquote(body: str, charset: str) -> bytes:
    """Undo =XX escapes. The escapes are ASCII whatever the part's charset is."""
    text = body.replace(UTF8_BOM, "")
    text = SOFT_LINE_BREAK.sub("", text)
    codec = charset if _is_ascii_compatible(charset) else "latin-1"
    return binascii.a2b_qp(text.encode(codec, errors="replace"))


def _decode_quoted_printable(body: str, charset: str) -> str:
    data = _unquote(body, charset)
    if _is_ascii_compatible(charset):
        return data.decode(charset, errors="replace")

    # Hard line breaks stay ASCII, only the bytes between them are in charset
    decoder = codecs.getincrementaldecoder(charset)(errors="replace")
    text = "\n".join(decoder.decode(line) for line in data.split(b"\n"))
    return text + decoder.decode(b"", final=True)


def extension_from_type(content_type: str) -> str:
    """Map a content type (type/subtype) to a file extension."""
    content_type = (content_type or "").strip().lower()
    if content_type.endswith("jpeg"):
        return "jpg"
    if "/" not in content_type:
        return DEFAULT_EXTENSION
    subtype = content_type.split("/", 1)[1].strip()
    return subtype or DEFAULT_EXTENSION


def derive_filename(content_location: str, content_type: str) -> tuple[str, str]:
    """
    Derive a (name, extension) pair for a part.

    A location ending in '/' is the main document. Otherwise the last
    'name.ext' token of the last path segment is used, falling back to
    'unknown' with an extension taken from the content type.
    """
    location = (content_location or "").strip()
    ext = extension_from_type(content_type)

    if location.endswith("/"):
        return MAIN_NAME, ext

    segment = location[location.rfind("/") + 1:]
    matches = FILE_NAME_PATTERN.findall(segment)
    if not matches:
        return UNKNOWN_NAME, ext

    fname = matches[-1]
    dot = fname.index(".")
    return fname[:dot], fname[dot + 1:]


def unique_name(directory, name: str, ext: str) -> Path:
    """
    Return a path in directory that does not exist yet.

    Probes name.ext, then name1.ext, name2.ext, ... The returned path is
    created empty so later calls never hand out the same path twice.

    Raises:
        OSError: If the directory cannot be probed or written
    """
    directory = Path(directory)
    if not directory.is_dir():
        raise NotADirectoryError(f"Not a directory: {directory}")

    candidate = directory / f"{name}.{ext}"
    i = 1
    while True:
        try:
            fd = os.open(candidate, os.O_CREAT | os.O_EXCL | os.O_WRONLY)
        except FileExistsError:
            candidate = directory / f"{name}{i}.{ext}"
            i += 1
            continue
        os.close(fd)
        return candidate
