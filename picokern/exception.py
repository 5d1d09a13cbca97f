"""Exception reporting and interrupt source decoding."""

from __future__ import annotations

import enum

from picokern.uart import format_hex

CORE0_IRQ_SRC = 0x40000060

CORE_TIMER_BIT = 1 << 1
GPU_IRQ_BIT = 1 << 8
AUX_PENDING_BIT = 1 << 29
MINI_UART_BIT = 1 << 0

EC_UNKNOWN = 0x00
EC_SVC_AARCH64 = 0x15

_CAUSES = {
    EC_SVC_AARCH64: "SVC instruction exception from AArch64 execution state",
    EC_UNKNOWN: "Exceptions with an unknown reason ",
}
_OTHER_CAUSE = "other cause "


class IrqSource(enum.Enum):
    """Handler an interrupt is routed to."""

    TIMER = "timer"
    UART = "uart"
    UNEXPECTED = "unexpected"


def exception_class(esr: int) -> int:
    """Return the exception class, bits [31:26] of ESR_EL1."""
    return (esr >> 26) & 0x3F


def describe_exception(spsr: int, elr: int, esr: int) -> str:
    """Render the report printed when a synchronous exception is taken."""
    cause = _CAUSES.get(exception_class(esr), _OTHER_CAUSE)
    lines = [
        "",
        "Taken an Exception!",
        f"SPSR_EL1: {format_hex(spsr)}",
        f"ELR_EL1: {format_hex(elr)}",
        f"ESR_EL1: {format_hex(esr)}",
        f"Cause of exception : {cause}",
    ]
    return "\n".join(lines)


def classify_irq(core_status: int, pending1: int, aux_irq: int) -> IrqSource:
    """Decide which handler serves an IRQ from the three status registers.

    ``core_status`` is the core 0 interrupt source register, ``pending1``
    the IRQ pending 1 register and ``aux_irq`` the AUX interrupt register.
    """
    if core_status & CORE_TIMER_BIT:
        return IrqSource.TIMER
    if core_status & GPU_IRQ_BIT and pending1 & AUX_PENDING_BIT and aux_irq & MINI_UART_BIT:
        return IrqSource.UART
    return IrqSource.UNEXPECTED