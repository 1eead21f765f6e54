import pytest
from hypothesis import given
from hypothesis import strategies as st

from kernelsim.layout import (
    DPL_USER,
    EXTMEM,
    KERNBASE,
    KERNLINK,
    PGSIZE,
    SEG_KCODE,
    STA_R,
    STA_W,
    STA_X,
    STS_IG32,
    STS_T32A,
    STS_TG32,
    GateDescriptor,
    SegmentDescriptor,
    p2v,
    pdx,
    pg_round_down,
    pg_round_up,
    pgaddr,
    pte_addr,
    pte_flags,
    ptx,
    seg_asm,
    v2p,
)

u32 = st.integers(min_value=0, max_value=0xFFFFFFFF)


@given(u32)
def test_address_split_and_rebuild(va):
    assert pgaddr(pdx(va), ptx(va), va & 0xFFF) == va


@given(u32)
def test_indices_within_table(va):
    assert 0 <= pdx(va) <= 0x3FF
    assert 0 <= ptx(va) <= 0x3FF


def test_kernbase_index():
    assert pdx(KERNBASE) == KERNBASE >> 22
    assert ptx(KERNBASE) == 0


@given(st.integers(min_value=0, max_value=0xFFFFF000))
def test_round_up_and_down(sz):
    up = pg_round_up(sz)
    down = pg_round_down(sz)
    assert up % PGSIZE == 0 and down % PGSIZE == 0
    assert down <= sz <= up
    assert up - sz < PGSIZE
    assert sz - down < PGSIZE


def test_round_on_boundary_is_identity():
    assert pg_round_up(PGSIZE) == PGSIZE
    assert pg_round_down(PGSIZE) == PGSIZE
    assert pg_round_up(1) == PGSIZE


@given(u32)
def test_pte_addr_and_flags_partition(pte):
    assert pte_addr(pte) | pte_flags(pte) == pte
    assert pte_addr(pte) & pte_flags(pte) == 0


@given(u32)
def test_v2p_p2v_round_trip(a):
    assert v2p(p2v(a)) == a
    assert p2v(v2p(a)) == a


def test_kernel_link_address():
    assert p2v(0) == KERNBASE
    assert v2p(KERNLINK) == EXTMEM


def test_kernlink_indices():
    assert pdx(KERNLINK) == 512
    assert ptx(KERNLINK) == 256
    assert pgaddr(512, 256, 0) == KERNLINK


@given(st.sampled_from([STA_X | STA_R, STA_W]), u32, u32)
def test_seg_asm_matches_descriptor(type_, base, lim):
    assert seg_asm(type_, base, lim) == SegmentDescriptor.seg(type_, base, lim, 0).pack()


def test_flat_code_segment():
    d = SegmentDescriptor.seg(STA_X | STA_R, 0, 0xFFFFFFFF, DPL_USER)
    assert d.lim_15_0 == 0xFFFF
    assert d.base == 0
    assert d.dpl == DPL_USER
    assert d.g == 1 and d.db == 1 and d.p == 1 and d.s == 1
    assert len(d.pack()) == 8


@given(u32, st.integers(min_value=0, max_value=0xFFFFF), st.integers(0, 3))
def test_seg16_round_trip(base, lim, dpl):
    d = SegmentDescriptor.seg16(STS_T32A, base, lim, dpl)
    assert d.base == base
    assert d.g == 0
    assert d.lim_15_0 | (d.lim_19_16 << 16) == lim
    assert SegmentDescriptor.unpack(d.pack()) == d


def test_segment_field_overflow_rejected():
    with pytest.raises(ValueError):
        SegmentDescriptor(type=16).pack()


def test_segment_unpack_wrong_length():
    with pytest.raises(ValueError):
        SegmentDescriptor.unpack(b"\x00" * 7)


@given(st.booleans(), u32, st.integers(0, 3))
def test_gate_round_trip(istrap, off, dpl):
    g = GateDescriptor.gate(istrap, SEG_KCODE << 3, off, dpl)
    assert g.offset == off
    assert g.cs == SEG_KCODE << 3
    assert g.type == (STS_TG32 if istrap else STS_IG32)
    assert g.s == 0 and g.p == 1 and g.args == 0
    assert GateDescriptor.unpack(g.pack()) == g


def test_gate_unpack_wrong_length():
    with pytest.raises(ValueError):
        GateDescriptor.unpack(b"")