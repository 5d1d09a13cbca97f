"""Kernel transfer protocol: a small header followed by the kernel image."""

from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import BinaryIO

KERNEL_LOAD_ADDR = 0x80000
BOOT_SIGNATURE = 0x544F4F42  # b"BOOT" read as a little-endian word

_HEADER = struct.Struct("<III")


class BootError(Exception):
    """Raised when a kernel image cannot be received or verified."""


@dataclass(frozen=True)
class BootHeader:
    """Header sent before the kernel: signature, size and 8-bit checksum."""

    signature: int
    size: int
    checksum: int

    def pack(self) -> bytes:
        return _HEADER.pack(self.signature, self.size, self.checksum)

    @classmethod
    def unpack(cls, data: bytes) -> "BootHeader":
        if len(data) < _HEADER.size:
            raise BootError(f"header needs {_HEADER.size} bytes, got {len(data)}")
        return cls(*_HEADER.unpack_from(data))


def checksum(data: bytes) -> int:
    """Sum of all bytes, truncated to 8 bits."""
    return sum(data) & 0xFF


def build_image(kernel: bytes) -> bytes:
    """Return the header and kernel exactly as they are sent to the loader."""
    kernel = bytes(kernel)
    header = BootHeader(BOOT_SIGNATURE, len(kernel), checksum(kernel))
    return header.pack() + kernel


def _read_exact(stream: BinaryIO, size: int) -> bytes:
    chunks = bytearray()
    while len(chunks) < size:
        chunk = stream.read(size - len(chunks))
        if not chunk:
            raise BootError(f"stream ended after {len(chunks)} of {size} bytes")
        chunks += chunk
    return bytes(chunks)


def receive_kernel(stream: BinaryIO) -> bytes:
    """Read a header and kernel from ``stream`` and return the verified kernel."""
    header = BootHeader.unpack(_read_exact(stream, _HEADER.size))
    if header.signature != BOOT_SIGNATURE:
        raise BootError("Invalid signature")
    kernel = _read_exact(stream, header.size)
    if checksum(kernel) != header.checksum:
        raise BootError("Checksum verification failed")
    return kernel