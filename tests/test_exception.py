import pytest

from picokern.exception import (
    AUX_PENDING_BIT,
    CORE_TIMER_BIT,
    GPU_IRQ_BIT,
    MINI_UART_BIT,
    IrqSource,
    classify_irq,
    describe_exception,
    exception_class,
)
from picokern.uart import format_hex


def test_exception_class_extracts_svc():
    assert exception_class(0x15 << 26) == 0x15


def test_exception_class_ignores_low_bits():
    assert exception_class((0x15 << 26) | 0x3FFFFFF) == 0x15


def test_exception_class_is_six_bits():
    assert exception_class(0xFFFFFFFFFFFFFFFF) == 0x3F


def test_describe_svc_exception():
    report = describe_exception(0x3C0, 0x80000, 0x15 << 26)
    lines = report.split("\n")
    assert "Taken an Exception!" in lines
    assert lines[-1] == (
        "Cause of exception : SVC instruction exception from AArch64 execution state"
    )


def test_describe_includes_registers():
    spsr, elr, esr = 0x3C0, 0x80000, 0x15 << 26
    lines = describe_exception(spsr, elr, esr).split("\n")
    assert f"SPSR_EL1: {format_hex(spsr)}" in lines
    assert f"ELR_EL1: {format_hex(elr)}" in lines
    assert f"ESR_EL1: {format_hex(esr)}" in lines


def test_describe_unknown_reason():
    report = describe_exception(0, 0, 0)
    assert report.endswith("Exceptions with an unknown reason ")


def test_describe_other_cause():
    report = describe_exception(0, 0, 0x20 << 26)
    assert report.endswith("other cause ")


def test_timer_has_priority():
    source = classify_irq(CORE_TIMER_BIT | GPU_IRQ_BIT, AUX_PENDING_BIT, MINI_UART_BIT)
    assert source is IrqSource.TIMER


def test_uart_interrupt():
    assert classify_irq(GPU_IRQ_BIT, AUX_PENDING_BIT, MINI_UART_BIT) is IrqSource.UART


@pytest.mark.parametrize(
    "core, pending, aux",
    [
        (0, 0, 0),
        (GPU_IRQ_BIT, 0, MINI_UART_BIT),
        (GPU_IRQ_BIT, AUX_PENDING_BIT, 0),
        (0, AUX_PENDING_BIT, MINI_UART_BIT),
    ],
)
def test_unexpected_interrupts(core, pending, aux):
    assert classify_irq(core, pending, aux) is IrqSource.UNEXPECTED