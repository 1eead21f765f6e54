"""Memory layout, paging arithmetic and x86 descriptor encodings."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field, fields

_MASK32 = 0xFFFFFFFF

# Eflags register
FL_IF = 0x00000200

# Control register flags
CR0_PE = 0x00000001
CR0_WP = 0x00010000
CR0_PG = 0x80000000
CR4_PSE = 0x00000010

# Segment selectors (indices into the GDT)
SEG_KCODE = 1
SEG_KDATA = 2
SEG_UCODE = 3
SEG_UDATA = 4
SEG_TSS = 5
NSEGS = 6

DPL_USER = 0x3

# Application segment type bits
STA_X = 0x8
STA_W = 0x2
STA_R = 0x2

# System segment type bits
STS_T32A = 0x9
STS_IG32 = 0xE
STS_TG32 = 0xF

# Paging
NPDENTRIES = 1024
NPTENTRIES = 1024
PGSIZE = 4096
PTXSHIFT = 12
PDXSHIFT = 22

PTE_P = 0x001
PTE_W = 0x002
PTE_U = 0x004
PTE_PS = 0x080

# Physical and virtual memory layout
EXTMEM = 0x100000
PHYSTOP = 0xE000000
DEVSPACE = 0xFE000000
KERNBASE = 0x80000000
KERNLINK = KERNBASE + EXTMEM

# System parameters
NPROC = 64
KSTACKSIZE = 4096
NCPU = 8
NOFILE = 16
NFILE = 100
NINODE = 50
NDEV = 10
ROOTDEV = 1
MAXARG = 32
MAXOPBLOCKS = 10
LOGSIZE = MAXOPBLOCKS * 3
NBUF = MAXOPBLOCKS * 3
FSSIZE = 1000

DESCRIPTOR_SIZE = 8


def pdx(va: int) -> int:
    """Page directory index of a virtual address."""
    return ((va & _MASK32) >> PDXSHIFT) & 0x3FF


def ptx(va: int) -> int:
    """Page table index of a virtual address."""
    return ((va & _MASK32) >> PTXSHIFT) & 0x3FF


def pgaddr(d: int, t: int, o: int) -> int:
    """Build a virtual address from directory index, table index and offset."""
    return ((d << PDXSHIFT) | (t << PTXSHIFT) | o) & _MASK32


def pg_round_up(sz: int) -> int:
    """Round up to a page boundary, wrapping like a 32-bit unsigned value."""
    return (sz + PGSIZE - 1) & ~(PGSIZE - 1) & _MASK32


def pg_round_down(a: int) -> int:
    """Round down to a page boundary."""
    return a & ~(PGSIZE - 1) & _MASK32


def pte_addr(pte: int) -> int:
    """Physical address held in a page table or directory entry."""
    return pte & ~0xFFF & _MASK32


def pte_flags(pte: int) -> int:
    """Flag bits of a page table or directory entry."""
    return pte & 0xFFF


def v2p(a: int) -> int:
    """Kernel virtual address to physical address."""
    return (a - KERNBASE) & _MASK32


def p2v(a: int) -> int:
    """Physical address to kernel virtual address."""
    return (a + KERNBASE) & _MASK32


def seg_asm(type: int, base: int, lim: int) -> bytes:
    """Encode a flat 32-bit, 4K-granular segment descriptor as the boot code does."""
    return struct.pack(
        "<HHBBBB",
        (lim >> 12) & 0xFFFF,
        base & 0xFFFF,
        (base >> 16) & 0xFF,
        0x90 | type,
        0xC0 | ((lim >> 28) & 0xF),
        (base >> 24) & 0xFF,
    )


def _bits(width: int):
    return field(default=0, metadata={"bits": width})


def _pack_bits(obj) -> bytes:
    value = 0
    shift = 0
    for f in fields(obj):
        width = f.metadata["bits"]
        v = getattr(obj, f.name)
        if not 0 <= v < (1 << width):
            raise ValueError(f"{f.name}={v} does not fit in {width} bits")
        value |= v << shift
        shift += width
    return value.to_bytes(DESCRIPTOR_SIZE, "little")


def _unpack_bits(cls, data: bytes):
    if len(data) != DESCRIPTOR_SIZE:
        raise ValueError(f"descriptor must be {DESCRIPTOR_SIZE} bytes, got {len(data)}")
    value = int.from_bytes(data, "little")
    values = {}
    for f in fields(cls):
        width = f.metadata["bits"]
        values[f.name] = value & ((1 << width) - 1)
        value >>= width
    return cls(**values)


@dataclass
class SegmentDescriptor:
    """An x86 segment descriptor, field by field."""

    lim_15_0: int = _bits(16)
    base_15_0: int = _bits(16)
    base_23_16: int = _bits(8)
    type: int = _bits(4)
    s: int = _bits(1)
    dpl: int = _bits(2)
    p: int = _bits(1)
    lim_19_16: int = _bits(4)
    avl: int = _bits(1)
    rsv1: int = _bits(1)
    db: int = _bits(1)
    g: int = _bits(1)
    base_31_24: int = _bits(8)

    @classmethod
    def seg(cls, type: int, base: int, lim: int, dpl: int) -> "SegmentDescriptor":
        """A normal 32-bit segment with the limit in 4K units."""
        base &= _MASK32
        lim &= _MASK32
        return cls(
            lim_15_0=(lim >> 12) & 0xFFFF,
            base_15_0=base & 0xFFFF,
            base_23_16=(base >> 16) & 0xFF,
            type=type & 0xF,
            s=1,
            dpl=dpl & 0x3,
            p=1,
            lim_19_16=(lim >> 28) & 0xF,
            avl=0,
            rsv1=0,
            db=1,
            g=1,
            base_31_24=base >> 24,
        )

    @classmethod
    def seg16(cls, type: int, base: int, lim: int, dpl: int) -> "SegmentDescriptor":
        """A segment with a byte-granular limit."""
        base &= _MASK32
        lim &= _MASK32
        return cls(
            lim_15_0=lim & 0xFFFF,
            base_15_0=base & 0xFFFF,
            base_23_16=(base >> 16) & 0xFF,
            type=type & 0xF,
            s=1,
            dpl=dpl & 0x3,
            p=1,
            lim_19_16=(lim >> 16) & 0xF,
            avl=0,
            rsv1=0,
            db=1,
            g=0,
            base_31_24=base >> 24,
        )

    @property
    def base(self) -> int:
        return self.base_15_0 | (self.base_23_16 << 16) | (self.base_31_24 << 24)

    def pack(self) -> bytes:
        """The 8-byte hardware encoding."""
        return _pack_bits(self)

    @classmethod
    def unpack(cls, data: bytes) -> "SegmentDescriptor":
        """Decode an 8-byte hardware encoding."""
        return _unpack_bits(cls, data)


@dataclass
class GateDescriptor:
    """An x86 interrupt or trap gate descriptor."""

    off_15_0: int = _bits(16)
    cs: int = _bits(16)
    args: int = _bits(5)
    rsv1: int = _bits(3)
    type: int = _bits(4)
    s: int = _bits(1)
    dpl: int = _bits(2)
    p: int = _bits(1)
    off_31_16: int = _bits(16)

    @classmethod
    def gate(cls, istrap: bool, sel: int, off: int, dpl: int) -> "GateDescriptor":
        """A trap gate if istrap, otherwise an interrupt gate."""
        off &= _MASK32
        return cls(
            off_15_0=off & 0xFFFF,
            cs=sel & 0xFFFF,
            args=0,
            rsv1=0,
            type=STS_TG32 if istrap else STS_IG32,
            s=0,
            dpl=dpl & 0x3,
            p=1,
            off_31_16=off >> 16,
        )

    @property
    def offset(self) -> int:
        return self.off_15_0 | (self.off_31_16 << 16)

    def pack(self) -> bytes:
        """The 8-byte hardware encoding."""
        return _pack_bits(self)

    @classmethod
    def unpack(cls, data: bytes) -> "GateDescriptor":
        """Decode an 8-byte hardware encoding."""
        return _unpack_bits(cls, data)