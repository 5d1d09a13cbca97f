"""Mini UART helpers: number formatting, interrupt-driven buffers and line editing."""

from __future__ import annotations

from collections import deque
from typing import Iterable, Optional, Tuple

UART_BUFFER_SIZE = 256
LINE_CAPACITY = 64

BACKSPACE_CHARS = ("\b", "\x7f")


def format_hex(value: int) -> str:
    """Render a 32-bit value as ``0x`` followed by eight lower-case hex digits."""
    return f"0x{value & 0xFFFFFFFF:08x}"


def format_dec(value: int) -> str:
    """Render a value as an unsigned 32-bit decimal number."""
    return str(value & 0xFFFFFFFF)


class RingBuffer:
    """Circular queue of ``size`` slots, of which ``size - 1`` can hold data."""

    def __init__(self, size: int = UART_BUFFER_SIZE) -> None:
        if size < 2:
            raise ValueError(f"ring buffer needs at least 2 slots, got {size}")
        self.size = size
        self._items: deque = deque()

    def __len__(self) -> int:
        return len(self._items)

    def full(self) -> bool:
        return len(self._items) >= self.size - 1

    def push(self, item) -> bool:
        """Append ``item``; return False and drop it when the buffer is full."""
        if self.full():
            return False
        self._items.append(item)
        return True

    def pop(self):
        """Remove and return the oldest item."""
        if not self._items:
            raise IndexError("pop from empty ring buffer")
        return self._items.popleft()


class AsyncUart:
    """Non-blocking UART with receive and transmit buffers fed by interrupts."""

    def __init__(self) -> None:
        self.rx = RingBuffer(UART_BUFFER_SIZE)
        self.tx = RingBuffer(UART_BUFFER_SIZE)
        self.rx_interrupt_enabled = True
        self.tx_interrupt_enabled = False

    def read(self, size: int) -> str:
        """Take up to ``size`` received characters without waiting."""
        chars = []
        while len(chars) < size and self.rx:
            chars.append(self.rx.pop())
        return "".join(chars)

    def write(self, data: str) -> int:
        """Queue as much of ``data`` as fits; return the number of characters queued."""
        was_empty = not self.tx
        count = 0
        for char in data:
            if not self.tx.push(char):
                break
            count += 1
        if was_empty and self.tx:
            self.tx_interrupt_enabled = True
        return count

    def puts(self, text: Optional[str]) -> int:
        """Queue a string for transmission; ``None`` queues nothing."""
        if text is None:
            return 0
        return self.write(text)

    def irq_receive(self, data: Iterable[str]) -> int:
        """Store characters from the receive FIFO; those that do not fit are dropped."""
        return sum(1 for char in data if self.rx.push(char))

    def irq_transmit(self) -> Optional[str]:
        """Send the next queued character, or None when nothing is queued.

        The transmit interrupt is disabled once the queue runs dry.
        """
        char = self.tx.pop() if self.tx else None
        if not self.tx:
            self.tx_interrupt_enabled = False
        return char


class LineEditor:
    """Collects typed characters into a line, handling backspace and Enter."""

    def __init__(self) -> None:
        self._chars: list[str] = []

    @property
    def buffer(self) -> str:
        return "".join(self._chars)

    def feed(self, char: str) -> Tuple[str, Optional[str]]:
        """Process one character; return the text to echo and a finished line or None."""
        if char in BACKSPACE_CHARS:
            if self._chars:
                self._chars.pop()
                return char + "\b \b", None
            return char, None
        if char == "\r":
            line = self.buffer
            self._chars.clear()
            return char, line
        if len(self._chars) < LINE_CAPACITY - 1:
            self._chars.append(char)
        return char, None