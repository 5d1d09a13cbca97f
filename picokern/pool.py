"""Small-object allocators: a bump allocator and a chunk-pool allocator over buddy pages."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Optional

from picokern.buddy import MAX_ORDER, PAGE_SIZE, BuddyAllocator, format_size

CHUNK_SIZES = (16, 32, 64, 128, 256, 512, 1024, 2048)
MAX_ALLOCATION = (1 << (MAX_ORDER - 1)) * PAGE_SIZE

LogFunc = Callable[[str], None]


def _hex(value: int) -> str:
    return f"0x{value & 0xFFFFFFFF:08x}"


class BumpAllocator:
    """Linear allocator that hands out 8-byte aligned blocks and never frees."""

    def __init__(self, begin: int, end: int) -> None:
        if end < begin:
            raise ValueError(f"heap end {end:#x} lies before its start {begin:#x}")
        self.begin = begin
        self.end = end
        self.next_free = begin

    def alloc(self, size: int) -> int:
        """Return the address of a new block of at least ``size`` bytes."""
        if size < 0:
            raise ValueError(f"size must not be negative, got {size}")
        size = (size + 7) & ~7
        if self.next_free + size > self.end:
            raise MemoryError(f"heap exhausted: cannot allocate {size} bytes")
        address = self.next_free
        self.next_free += size
        return address


@dataclass
class MemoryPool:
    """Fixed-size chunks carved from one buddy page; free chunks kept LIFO."""

    chunk_size: int
    free_chunks: list[int] = field(default_factory=list)
    page_address: Optional[int] = None
    total_chunks: int = 0

    @property
    def nr_free_chunks(self) -> int:
        return len(self.free_chunks)


class DynamicAllocator:
    """Serves small requests from chunk pools and large ones from the buddy allocator."""

    def __init__(self, buddy: BuddyAllocator, log: Optional[LogFunc] = None) -> None:
        self.buddy = buddy
        self.log = log
        self.pools = [MemoryPool(size) for size in CHUNK_SIZES]

    def _emit(self, message: str) -> None:
        if self.log is not None:
            self.log(message)

    def _refill(self, pool: MemoryPool) -> None:
        page = self.buddy.alloc_pages(0)
        self._emit(
            f"[Chunk] Allocated a new page at {_hex(page)} "
            f"for pool size {pool.chunk_size} bytes"
        )
        count = PAGE_SIZE // pool.chunk_size
        pool.page_address = page
        pool.total_chunks = count
        # Chunks are pushed in address order, so the highest one is handed out first.
        pool.free_chunks = [page + i * pool.chunk_size for i in range(count)]
        self._emit(f"[Chunk] Created {count} chunks of size {pool.chunk_size} bytes")

    def malloc(self, size: int) -> int:
        """Allocate ``size`` bytes and return the address of the block."""
        self._emit(f"[Dmalloc] Requested {size} bytes")
        if size < 0:
            raise ValueError(f"size must not be negative, got {size}")
        if size > MAX_ALLOCATION:
            self._emit(
                "[Dmalloc] Error: Requested size exceeds maximum allowable size, "
                f"maximum {format_size(MAX_ALLOCATION)}"
            )
            raise MemoryError(f"request of {size} bytes exceeds {MAX_ALLOCATION} bytes")

        if size > CHUNK_SIZES[-1]:
            pages_needed = (size + PAGE_SIZE - 1) // PAGE_SIZE
            order = 0
            while (1 << order) < pages_needed:
                order += 1
            return self.buddy.alloc_pages(order)

        size = (size + 7) & ~7
        pool = next(p for p in self.pools if size <= p.chunk_size)
        if not pool.free_chunks:
            self._refill(pool)

        chunk = pool.free_chunks.pop()
        if pool.page_address is not None:
            index = (chunk - pool.page_address) // pool.chunk_size
            self._emit(
                f"[Chunk] Allocated chunk at {_hex(chunk)} (index: {index}) "
                f"from pool size {pool.chunk_size} bytes"
            )
        return chunk

    def _return_chunk(self, pool: MemoryPool, chunk: int) -> None:
        pool.free_chunks.append(chunk)
        self._emit(f"[Chunk] Chunk returned to pool of size {pool.chunk_size} bytes")
        if pool.nr_free_chunks == pool.total_chunks:
            page = pool.page_address
            self._emit(f"[Dfree] All chunks freed, returning page {_hex(page or 0)} to buddy system")
            pool.free_chunks = []
            pool.page_address = None
            pool.total_chunks = 0
            self.buddy.free_pages(page)

    def free(self, address: Optional[int]) -> None:
        """Release a block from :meth:`malloc`; ``None`` is ignored."""
        if address is None:
            return
        self._emit(f"[Dfree] Freeing memory at {_hex(address)}")

        if address % PAGE_SIZE == 0:
            pool = next((p for p in self.pools if p.page_address == address), None)
            if pool is None:
                self.buddy.free_pages(address)
            else:
                self._return_chunk(pool, address)
            return

        page = address & ~(PAGE_SIZE - 1)
        pool = next((p for p in self.pools if p.page_address == page), None)
        if pool is None:
            self._emit("[Chunk] Error: Invalid address or not from a memory pool")
            raise ValueError(f"address {address:#x} does not belong to any memory pool")
        self._return_chunk(pool, address)


def run_demo(allocator: DynamicAllocator) -> list[int]:
    """Allocate and free a fixed mix of small and large blocks; return the addresses."""
    allocator._emit("=== Dynamic Allocator Demo ===")
    addresses = [allocator.malloc(size) for size in (16, 16, 31, 523, 699, 5633)]
    for address in addresses:
        allocator.free(address)
    allocator._emit(allocator.buddy.stats())
    allocator._emit("==============================")
    return addresses