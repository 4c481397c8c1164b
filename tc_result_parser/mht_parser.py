"""
Decomposes an *.mht web archive into its constituting parts.

The archive is scanned line by line: the boundary declared near the top
separates the parts, each part's headers select a transfer encoding and
an output file name, and the decoded body is written to the output
directory when the next boundary (or the end of the archive) is reached.
"""

import io
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, TextIO, Union

from .encoding import (
    decode,
    decode_text,
    derive_filename,
    is_binary,
    resolve_charset,
    unique_name,
)
from .errors import MissingBoundaryError
from .models import DecodedFile

logger = logging.getLogger(__name__)

BOUNDARY = "boundary"
CHAR_SET = "charset"
CONTENT_TYPE = "Content-Type"
CONTENT_TRANSFER_ENCODING = "Content-Transfer-Encoding"
CONTENT_LOCATION = "Content-Location"

BOUNDARY_VALUE = re.compile(r'boundary\s*=\s*(?:"([^"]*)"|([^;\s"]+))')

ArchiveSource = Union[str, Path, TextIO, io.BufferedIOBase]


@dataclass
class PartHeaders:
    """Header state of the part currently being read.

    content_type, encoding, location and filename are reset at every
    boundary. charset keeps the last declared value across parts.
    """
    content_type: str = ""
    encoding: str = ""
    location: str = ""
    filename: Optional[tuple[str, str]] = None
    charset: str = "utf-8"

    def reset(self):
        self.content_type = ""
        self.encoding = ""
        self.location = ""
        self.filename = None


def _header_value(line: str) -> str:
    """Value after the first colon, cut at the first ';'."""
    value = line.split(":", 1)[1] if ":" in line else ""
    return value.split(";", 1)[0].strip()


def _charset_value(line: str) -> str:
    value = line.split("=", 1)[1] if "=" in line else ""
    return value.split(";", 1)[0].strip().strip('"').strip("'")


def _boundary_value(line: str) -> Optional[str]:
    """Boundary from 'boundary="value"' or 'boundary=value', stopping at ';'."""
    match = BOUNDARY_VALUE.search(line)
    if match:
        return match.group(1) or match.group(2)

    # Declaration without '=': the text between the first and last quote
    first = line.find('"')
    last = line.rfind('"')
    if first == -1 or last <= first:
        return None
    return line[first + 1:last]


class MHTParser:
    """Splits an MHT archive into files in an output directory."""

    def __init__(self, mht_file: ArchiveSource, output_folder, encoding: str = "utf-8"):
        """
        Args:
            mht_file: Path to the archive, or an open text/binary stream
            output_folder: Directory the parts are written to (created if absent)
            encoding: Encoding used to read the archive text
        """
        self.mht_file = mht_file
        self.output_folder = Path(output_folder)
        self.encoding = encoding

    def decompress(self) -> list[DecodedFile]:
        """
        Decode every part of the archive into the output folder.

        Returns:
            List of written files, in archive order

        Raises:
            MissingBoundaryError: If no boundary declaration is found
            OSError: If the archive cannot be read or a part cannot be written
        """
        written = []
        with self._open() as reader:
            lines = (line.rstrip("\r\n") for line in reader)
            boundary = self._get_boundary(lines)
            if boundary is None:
                raise MissingBoundaryError(
                    "Failed to find document 'boundary'. Please check *.mht file."
                )
            logger.debug(f"Archive boundary: {boundary}")

            headers = PartHeaders()
            buffer: Optional[list[str]] = None

            for line in lines:
                temp = line.strip()
                if boundary in temp:
                    if buffer is not None:
                        self._flush(buffer, headers, written)
                    headers.reset()
                    buffer = []
                elif temp.startswith(CONTENT_TYPE):
                    headers.content_type = _header_value(temp)
                    if f"{CHAR_SET}=" in temp:
                        headers.charset = _charset_value(temp[temp.find(CHAR_SET):]) or headers.charset
                elif temp.startswith(CHAR_SET):
                    headers.charset = _charset_value(temp) or headers.charset
                elif temp.startswith(CONTENT_TRANSFER_ENCODING):
                    headers.encoding = _header_value(temp)
                elif temp.startswith(CONTENT_LOCATION):
                    headers.location = temp.split(":", 1)[1].strip()
                    headers.filename = derive_filename(headers.location, headers.content_type)
                elif buffer is not None and (buffer or temp):
                    # Blank lines ahead of the body separate it from the headers
                    buffer.append(line + "\n")

            if buffer is not None:
                self._flush(buffer, headers, written)

        logger.info(f"Decompressed {len(written)} parts into {self.output_folder}")
        return written

    def _open(self) -> TextIO:
        source = self.mht_file
        if isinstance(source, (str, Path)):
            return open(source, "r", encoding=self.encoding, errors="replace")
        if isinstance(source, io.TextIOBase):
            return _Borrowed(source)
        wrapper = io.TextIOWrapper(source, encoding=self.encoding, errors="replace")
        return _Borrowed(wrapper, detach=True)

    @staticmethod
    def _get_boundary(lines) -> Optional[str]:
        """Consume lines up to and including the boundary declaration."""
        for line in lines:
            temp = line.strip()
            if temp.startswith(BOUNDARY) or f"{BOUNDARY}=" in temp:
                value = _boundary_value(temp[temp.find(BOUNDARY):])
                if value:
                    return value
        return None

    def _flush(self, buffer: list[str], headers: PartHeaders, written: list[DecodedFile]):
        """Decode the buffered body and write it to a unique file."""
        body = "".join(buffer)
        if not body.strip():
            return

        self.output_folder.mkdir(parents=True, exist_ok=True)

        name, ext = headers.filename or derive_filename(headers.location, headers.content_type)
        path = unique_name(self.output_folder, name, ext)
        binary = is_binary(headers.encoding)

        if binary:
            content = decode(body, headers.encoding, headers.charset)
            path.write_bytes(content)
            size = len(content)
            charset = ""
        else:
            charset = resolve_charset(headers.charset)
            text = decode_text(body, headers.encoding, charset)
            with open(path, "w", encoding=charset, errors="replace", newline="") as f:
                f.write(text)
            size = path.stat().st_size

        logger.debug(f"Wrote {path.name} ({headers.content_type or 'unknown type'}, {size} bytes)")
        written.append(DecodedFile(
            path=path,
            content_type=headers.content_type,
            encoding=headers.encoding,
            charset=charset,
            binary=binary,
            size=size,
        ))


class _Borrowed:
    """Context manager over a caller-owned stream that leaves it open."""

    def __init__(self, stream, detach: bool = False):
        self.stream = stream
        self.detach = detach

    def __enter__(self):
        return self.stream

    def __exit__(self, *exc):
        if self.detach:
            # Keep the wrapped binary stream usable for the caller
            self.stream.detach()
        return False
