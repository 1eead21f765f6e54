"""x86 trap and interrupt vector numbers."""

from __future__ import annotations

from enum import IntEnum


class Trap(IntEnum):
    """Processor-defined and kernel-chosen trap vectors."""

    DIVIDE = 0
    DEBUG = 1
    NMI = 2
    BRKPT = 3
    OFLOW = 4
    BOUND = 5
    ILLOP = 6
    DEVICE = 7
    DBLFLT = 8
    TSS = 10
    SEGNP = 11
    STACK = 12
    GPFLT = 13
    PGFLT = 14
    FPERR = 16
    ALIGN = 17
    MCHK = 18
    SIMDERR = 19
    IRQ0 = 32
    SYSCALL = 64
    DEFAULT = 500


class Irq(IntEnum):
    """Hardware interrupt request lines."""

    TIMER = 0
    KBD = 1
    COM1 = 4
    IDE = 14
    ERROR = 19
    SPURIOUS = 31


_IRQ_LINES = 32


def irq_vector(irq: int) -> int:
    """The trap vector that an IRQ line is delivered on."""
    if not 0 <= irq < _IRQ_LINES:
        raise ValueError(f"IRQ {irq} out of range")
    return int(Trap.IRQ0) + int(irq)


def trap_name(trapno: int) -> str:
    """A readable name for a trap vector."""
    if Trap.IRQ0 <= trapno < Trap.IRQ0 + _IRQ_LINES:
        line = trapno - Trap.IRQ0
        try:
            return f"IRQ_{Irq(line).name}"
        except ValueError:
            return f"IRQ{line}"
    try:
        return Trap(trapno).name
    except ValueError:
        return f"UNKNOWN{trapno}"