"""Property mailbox messages, register map and reset register values."""

from __future__ import annotations

from typing import Sequence

MMIO_BASE = 0x3F000000

GPFSEL1 = MMIO_BASE + 0x00200004
GPPUD = MMIO_BASE + 0x00200094
GPPUDCLK0 = MMIO_BASE + 0x00200098

AUXIRQ = MMIO_BASE + 0x00215000
AUXENB = MMIO_BASE + 0x00215004
AUX_MU_CNTL_REG = MMIO_BASE + 0x00215060
AUX_MU_IER_REG = MMIO_BASE + 0x00215044
AUX_MU_LCR_REG = MMIO_BASE + 0x0021504C
AUX_MU_MCR_REG = MMIO_BASE + 0x00215050
AUX_MU_BAUD = MMIO_BASE + 0x00215068
AUX_MU_IIR_REG = MMIO_BASE + 0x00215048
AUX_MU_LSR_REG = MMIO_BASE + 0x00215054
AUX_MU_IO_REG = MMIO_BASE + 0x00215040

INTERRUPT_BASE = MMIO_BASE + 0x0000B000
IRQ_PEND1 = INTERRUPT_BASE + 0x204
ENABLE_IRQS1 = INTERRUPT_BASE + 0x210
DISABLE_IRQS1 = INTERRUPT_BASE + 0x21C

MAILBOX_BASE = MMIO_BASE + 0xB880
MAILBOX_READ = MAILBOX_BASE
MAILBOX_STATUS = MAILBOX_BASE + 0x18
MAILBOX_WRITE = MAILBOX_BASE + 0x20
MAILBOX_EMPTY = 0x40000000
MAILBOX_FULL = 0x80000000

GET_BOARD_REVISION = 0x00010002
GET_ARM_MEMORY = 0x00010005
REQUEST_CODE = 0x00000000
REQUEST_SUCCEED = 0x80000000
REQUEST_FAILED = 0x80000001
TAG_REQUEST_CODE = 0x00000000
END_TAG = 0x00000000

PROPERTY_CHANNEL = 8

PM_BASE = MMIO_BASE + 0x100000
PM_RSTC = PM_BASE + 0x1C
PM_RSTS = PM_BASE + 0x20
PM_WDOG = PM_BASE + 0x24
PM_PASSWD = 0x5A << 24
PM_RSTC_CLEAR = 0xFFFFFFCF
PM_RSTC_REBOOT = 0x00000020
WATCHDOG_TICKS = 10


class MailboxError(Exception):
    """Raised when a mailbox response is malformed or reports failure."""


def board_revision_request() -> list[int]:
    """Build the property message asking for the board revision."""
    message = [
        0,
        REQUEST_CODE,
        GET_BOARD_REVISION,
        4,
        TAG_REQUEST_CODE,
        0,
        END_TAG,
    ]
    message[0] = len(message) * 4
    return message


def memory_info_request() -> list[int]:
    """Build the property message asking for the ARM memory base and size."""
    message = [
        0,
        REQUEST_CODE,
        GET_ARM_MEMORY,
        8,
        TAG_REQUEST_CODE,
        0,
        0,
        END_TAG,
    ]
    message[0] = len(message) * 4
    return message


def _check_response(message: Sequence[int], length: int) -> None:
    if len(message) < length:
        raise MailboxError(f"response needs {length} words, got {len(message)}")
    if message[1] != REQUEST_SUCCEED:
        raise MailboxError(f"Request is failed (code 0x{message[1]:08x})")


def parse_board_revision(message: Sequence[int]) -> int:
    """Return the board revision from an answered board revision message."""
    _check_response(message, 7)
    return message[5]


def parse_memory_info(message: Sequence[int]) -> tuple[int, int]:
    """Return ``(base, size)`` from an answered ARM memory message."""
    _check_response(message, 8)
    return message[5], message[6]


def encode_mailbox_address(address: int, channel: int = PROPERTY_CHANNEL) -> int:
    """Combine a 16-byte aligned message address with a channel number."""
    return ((address & ~0xF) | (channel & 0xF)) & 0xFFFFFFFF


def reset_values(rstc: int) -> tuple[int, int]:
    """Return the values written to PM_RSTC and PM_WDOG to trigger a full reset.

    ``rstc`` is the current content of the reset control register.
    """
    new_rstc = ((rstc & PM_RSTC_CLEAR) | PM_PASSWD | PM_RSTC_REBOOT) & 0xFFFFFFFF
    return new_rstc, WATCHDOG_TICKS | PM_PASSWD