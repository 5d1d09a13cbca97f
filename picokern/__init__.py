"""Kernel services for a small teaching OS: archives, kernel transfer, allocators, timers, UART, exceptions and mailbox."""

__version__ = "0.1.0"

__all__ = [
    "bootloader",
    "buddy",
    "cpio",
    "exception",
    "mailbox",
    "pool",
    "timer",
    "uart",
]