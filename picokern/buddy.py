"""Buddy page allocator over a contiguous range of physical memory."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional

MAX_ORDER = 11
PAGE_SIZE = 4096
PAGE_SHIFT = 12

LogFunc = Callable[[str], None]


def format_size(size: int) -> str:
    """Render a byte count as B, KB or MB, truncating to whole units."""
    if size < 1024:
        return f"{size}B"
    if size < 1024 * 1024:
        return f"{size // 1024}KB"
    return f"{size // (1024 * 1024)}MB"


def _hex(value: int) -> str:
    return f"0x{value & 0xFFFFFFFF:08x}"


@dataclass(eq=False)
class Page:
    """Descriptor of one page frame."""

    index: int
    used: bool = False
    order: int = 0


class BuddyAllocator:
    """Hands out blocks of 2**order pages and coalesces them when freed."""

    def __init__(self, mem_start: int, mem_size: int, log: Optional[LogFunc] = None) -> None:
        self.base_pfn = mem_start >> PAGE_SHIFT
        self.total_pages = mem_size >> PAGE_SHIFT
        self.pages = [Page(index) for index in range(self.total_pages)]
        self._free: list[list[Page]] = [[] for _ in range(MAX_ORDER)]
        self._log = log

        index = 0
        while index < self.total_pages:
            order = next(
                (
                    candidate
                    for candidate in range(MAX_ORDER - 1, 0, -1)
                    if not index & ((1 << candidate) - 1)
                    and index + (1 << candidate) <= self.total_pages
                ),
                0,
            )
            size = 1 << order
            for page in self.pages[index : index + size]:
                page.order = order
            self._free[order].append(self.pages[index])
            index += size

    @property
    def base_address(self) -> int:
        return self.base_pfn << PAGE_SHIFT

    @property
    def free_page_count(self) -> int:
        """Number of pages currently sitting in the free lists."""
        return sum(len(blocks) << order for order, blocks in enumerate(self._free))

    def _emit(self, message: str) -> None:
        if self._log is not None:
            self._log(message)

    def _range(self, page: Page, order: int) -> str:
        return f"[{page.index}, {page.index + (1 << order) - 1}]"

    def _address(self, page: Page) -> int:
        return (self.base_pfn + page.index) << PAGE_SHIFT

    def free_blocks(self, order: int) -> list[int]:
        """First page index of every free block of ``order``, in list order."""
        if not 0 <= order < MAX_ORDER:
            raise ValueError(f"order must be in 0..{MAX_ORDER - 1}, got {order}")
        return [page.index for page in self._free[order]]

    def alloc_pages(self, order: int) -> int:
        """Allocate 2**order pages and return the physical address of the block."""
        self._emit(f"[Page] Allocate {format_size((1 << order) * PAGE_SIZE)} at order {order}")
        if not 0 <= order < MAX_ORDER:
            raise ValueError(f"order must be in 0..{MAX_ORDER - 1}, got {order}")

        current = next((o for o in range(order, MAX_ORDER) if self._free[o]), None)
        if current is None:
            raise MemoryError(f"no free block of order {order} or above")

        page = self._free[current].pop(0)
        self._emit(
            f"[-] Get Page {page.index} in order {current}\t "
            f"Range of free blocks: {self._range(page, current)}"
        )

        if current > order:
            self._emit("Start Spliting: ")
            self._split(page, current, order)
        else:
            self._emit(f"Exist at least one free block in order {current}")

        page.order = order
        page.used = True
        address = self._address(page)

        if self._log is not None:
            self._emit(f"Allocated at address {_hex(address)} at order {order}, page{page.index}")
            self._emit(self.stats())
        return address

    def _split(self, page: Page, high_order: int, low_order: int) -> None:
        size = 1 << high_order
        while high_order > low_order:
            high_order -= 1
            size >>= 1
            buddy = self.pages[page.index + size]
            buddy.order = high_order
            self._free[high_order].insert(0, buddy)
            self._emit(
                f"[+] Add page {buddy.index} to order {high_order}\t "
                f"Range of free blocks: {self._range(buddy, high_order)}"
            )

    def _find_buddy(self, page: Page, order: int) -> Optional[Page]:
        index = page.index ^ (1 << order)
        if index >= self.total_pages:
            return None
        return self.pages[index]

    def free_pages(self, address: Optional[int]) -> None:
        """Return the block starting at ``address``, merging it with free buddies.

        Freeing ``None`` or a block that is not allocated does nothing.
        """
        if address is None:
            self._emit("[Page] Free: NULL pointer")
            return

        index = (address >> PAGE_SHIFT) - self.base_pfn
        if not 0 <= index < self.total_pages:
            self._emit(f"[Page] Free: Invalid address {_hex(address)}")
            raise ValueError(f"address {address:#x} is outside the managed memory")

        page = self.pages[index]
        if not page.used:
            return
        page.used = False
        order = page.order

        self._emit(
            f"[Page] Free the memory at address {_hex(address)} with order {order}, "
            f"page {index}. Total {format_size((1 << order) * PAGE_SIZE)}"
        )

        while order < MAX_ORDER - 1:
            buddy = self._find_buddy(page, order)
            if buddy is None or buddy.used or buddy.order != order:
                break
            if buddy not in self._free[order]:
                break

            self._emit(f"[*] Find an unused buddy page {buddy.index} in order {order}")
            self._free[order].remove(buddy)
            self._emit(
                f"[-] Remove Page {buddy.index} in order {order}\t "
                f"Range of free blocks: {self._range(buddy, order)}"
            )
            low = buddy if buddy.index < page.index else page
            self._emit(
                f"[*] Coalesce page {page.index} and page {buddy.index} to order {order + 1}"
            )
            self._emit(
                f"    {self._range(page, order)} +  {self._range(buddy, order)}"
                f" => {self._range(low, order + 1)}"
            )
            page = low
            order += 1
            page.order = order

        self._free[order].insert(0, page)
        if self._log is not None:
            self._emit(
                f"[+] Add page {page.index} to order {order}\t "
                f"Range of free blocks: {self._range(page, order)}"
            )
            self._emit(self.stats())

    def stats(self) -> str:
        """Render a report of the free lists and page usage."""
        lines = [
            "=== Buddy System Statistics ===",
            f"Base address: {_hex(self.base_address)}",
            f"Total pages: {self.total_pages} ({format_size(self.total_pages * PAGE_SIZE)})",
            "Free blocks by order:",
        ]
        for order, blocks in enumerate(self._free):
            line = f"  Order {order}:\t{len(blocks)} blocks "
            if blocks:
                ranges = "".join(f"{self._range(page, order)} " for page in blocks)
                line += f"( {ranges})"
            lines.append(line)
        free = self.free_page_count
        used = self.total_pages - free
        lines += [
            f"Total free: {free} pages",
            f"Used: {used} pages ({format_size(used * PAGE_SIZE)})",
            "================================",
        ]
        return "\n".join(lines)