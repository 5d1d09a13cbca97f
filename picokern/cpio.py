"""Reader for initramfs archives in the cpio "new ASCII" (newc) layout."""

from __future__ import annotations

import string
from dataclasses import dataclass
from typing import Iterator, Union

MAGIC = b"070701"
TRAILER = "TRAILER!!!"
HEADER_SIZE = 110

_FIELD_WIDTH = 8
_FILESIZE_AT = 54
_NAMESIZE_AT = 94
_HEX_DIGITS = frozenset(string.hexdigits)

HexField = Union[str, bytes, bytearray, memoryview]


def padded_size(size: int) -> int:
    """Round ``size`` up to the next multiple of 4."""
    return (size + 3) & ~3


def parse_hex(field: HexField) -> int:
    """Convert an ASCII hexadecimal header field to an unsigned 32-bit int."""
    if isinstance(field, str):
        text = field
    else:
        text = bytes(field).decode("ascii", errors="replace")
    bad = next((char for char in text if char not in _HEX_DIGITS), None)
    if bad is not None:
        raise ValueError(f"invalid hex digit {bad!r} in field {text!r}")
    if not text:
        return 0
    return int(text, 16) & 0xFFFFFFFF


@dataclass(frozen=True)
class CpioEntry:
    """One file stored in the archive."""

    name: str
    size: int
    header_offset: int
    data_offset: int
    data: bytes


class CpioArchive:
    """An in-memory cpio archive, walked entry by entry up to the trailer."""

    def __init__(self, data: bytes) -> None:
        self._data = bytes(data)

    def _field(self, offset: int, at: int) -> int:
        return parse_hex(self._data[offset + at : offset + at + _FIELD_WIDTH])

    def __iter__(self) -> Iterator[CpioEntry]:
        offset = 0
        while True:
            if offset + HEADER_SIZE > len(self._data):
                raise ValueError(f"truncated cpio header at offset {offset}")
            namesize = self._field(offset, _NAMESIZE_AT)
            filesize = self._field(offset, _FILESIZE_AT)

            name_start = offset + HEADER_SIZE
            raw_name = self._data[name_start : name_start + namesize]
            name = raw_name.split(b"\0", 1)[0].decode("utf-8", errors="surrogateescape")
            if name == TRAILER:
                return

            data_offset = name_start + namesize
            data = self._data[data_offset : data_offset + filesize]
            if len(data) < filesize:
                raise ValueError(f"truncated data for cpio entry {name!r}")
            yield CpioEntry(name, filesize, offset, data_offset, data)

            offset = data_offset + padded_size(filesize)

    def names(self) -> list[str]:
        """Return the names of all files, in archive order."""
        return [entry.name for entry in self]

    def _entry(self, name: str) -> CpioEntry:
        for entry in self:
            if entry.name == name:
                return entry
        raise FileNotFoundError(f"File not found: {name}")

    def read(self, name: str) -> bytes:
        """Return the contents of the file called ``name``."""
        return self._entry(name).data

    def find_offset(self, name: str) -> int:
        """Return the offset within the archive where the file's data starts."""
        return self._entry(name).data_offset