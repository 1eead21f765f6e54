import pytest

from kernelsim.traps import Irq, Trap, irq_vector, trap_name


def test_documented_vectors():
    assert trap_name(64) == "SYSCALL"
    assert trap_name(14) == "PGFLT"
    assert irq_vector(Irq.TIMER) == 32
    assert irq_vector(Irq.SPURIOUS) == 63


def test_timer_irq_is_irq0():
    assert irq_vector(Irq.TIMER) == Trap.IRQ0


@pytest.mark.parametrize("irq", list(Irq))
def test_irq_vectors_below_syscall(irq):
    v = irq_vector(irq)
    assert Trap.IRQ0 <= v < Trap.SYSCALL
    assert v - Trap.IRQ0 == irq


@pytest.mark.parametrize("bad", [-1, 32])
def test_irq_out_of_range(bad):
    with pytest.raises(ValueError):
        irq_vector(bad)


def test_trap_names():
    assert trap_name(Trap.PGFLT) == "PGFLT"
    assert trap_name(Trap.SYSCALL) == "SYSCALL"
    assert trap_name(irq_vector(Irq.TIMER)) == "IRQ_TIMER"
    assert trap_name(irq_vector(Irq.IDE)) == "IRQ_IDE"


def test_unnamed_irq_and_unknown_trap():
    assert trap_name(Trap.IRQ0 + 7) == "IRQ7"
    assert trap_name(9).startswith("UNKNOWN")