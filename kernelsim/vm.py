"""Two-level x86 page tables over a simulated pool of physical pages."""

from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple, Union

from .layout import (
    KERNBASE,
    NPDENTRIES,
    PDXSHIFT,
    PGSIZE,
    PTE_P,
    PTE_U,
    PTE_W,
    pdx,
    pg_round_down,
    pg_round_up,
    pte_addr,
    pte_flags,
    ptx,
)

_MASK32 = 0xFFFFFFFF
_ENTRY = struct.Struct("<I")

BytesLike = Union[bytes, bytearray, memoryview]


class OutOfPages(MemoryError):
    """No free physical page is left."""


class PhysicalMemory:
    """A pool of page-sized frames of physical memory."""

    def __init__(self, npages: int = 1024, start: int = 0x400000) -> None:
        if npages < 0:
            raise ValueError("number of pages must not be negative")
        if start % PGSIZE:
            raise ValueError(f"start {start:#x} is not page aligned")
        self.start = start
        self.npages = npages
        self._pages: Dict[int, bytearray] = {}
        # The last page freed is the first one handed out.
        self._free: List[int] = [start + i * PGSIZE for i in range(npages)]

    @property
    def free_pages(self) -> int:
        """Number of pages that can still be allocated."""
        return len(self._free)

    def alloc_page(self) -> int:
        """Allocate a zeroed page and return its physical address."""
        if not self._free:
            raise OutOfPages("out of physical pages")
        pa = self._free.pop()
        self._pages[pa] = bytearray(PGSIZE)
        return pa

    def free_page(self, pa: int) -> None:
        """Return an allocated page to the pool."""
        if pa not in self._pages:
            raise ValueError(f"kfree {pa:#x}: not an allocated page")
        del self._pages[pa]
        self._free.append(pa)

    def _locate(self, pa: int, n: int) -> Tuple[bytearray, int]:
        page = pg_round_down(pa)
        frame = self._pages.get(page)
        if frame is None:
            raise ValueError(f"physical address {pa:#x} is not in an allocated page")
        off = pa - page
        if n < 0 or off + n > PGSIZE:
            raise ValueError(f"{n} bytes at {pa:#x} cross a page boundary")
        return frame, off

    def read(self, pa: int, n: int) -> bytes:
        """Read n bytes at pa, all within one allocated page."""
        frame, off = self._locate(pa, n)
        return bytes(frame[off:off + n])

    def write(self, pa: int, data: BytesLike) -> None:
        """Write data at pa, all within one allocated page."""
        frame, off = self._locate(pa, len(data))
        frame[off:off + len(data)] = data


@dataclass(frozen=True)
class KernelMapping:
    """A kernel range mapped at virt onto physical [phys_start, phys_end)."""

    virt: int
    phys_start: int
    phys_end: int
    perm: int

    @property
    def size(self) -> int:
        return (self.phys_end - self.phys_start) & _MASK32


class AddressSpace:
    """A page directory with its page tables and user pages."""

    def __init__(
        self,
        memory: PhysicalMemory,
        pgdir: int,
        kernel_map: Iterable[KernelMapping] = (),
    ) -> None:
        self.memory = memory
        self.pgdir = pgdir
        self.kernel_map = tuple(kernel_map)
        self._released = False

    @classmethod
    def create(
        cls, memory: PhysicalMemory, kernel_map: Iterable[KernelMapping] = ()
    ) -> "AddressSpace":
        """A new address space holding only the kernel mappings."""
        space = cls(memory, memory.alloc_page(), kernel_map)
        try:
            for k in space.kernel_map:
                space.map_pages(k.virt, k.size, k.phys_start, k.perm)
        except Exception:
            space.release()
            raise
        return space

    def _entry(self, loc: int) -> int:
        return _ENTRY.unpack(self.memory.read(loc, _ENTRY.size))[0]

    def _set_entry(self, loc: int, value: int) -> None:
        self.memory.write(loc, _ENTRY.pack(value & _MASK32))

    def walk(self, va: int, alloc: bool = False) -> Optional[int]:
        """Physical address of the page table entry for va, or None if absent.

        With alloc, a missing page table is allocated.
        """
        pde_loc = self.pgdir + 4 * pdx(va)
        pde = self._entry(pde_loc)
        if pde & PTE_P:
            pgtab = pte_addr(pde)
        else:
            if not alloc:
                return None
            pgtab = self.memory.alloc_page()
            self._set_entry(pde_loc, pgtab | PTE_P | PTE_W | PTE_U)
        return pgtab + 4 * ptx(va)

    def map_pages(self, va: int, size: int, pa: int, perm: int) -> None:
        """Map [va, va+size) onto physical memory starting at pa."""
        if size <= 0:
            raise ValueError("mapping size must be positive")
        a = pg_round_down(va)
        last = pg_round_down(va + size - 1)
        while True:
            loc = self.walk(a, alloc=True)
            assert loc is not None
            if self._entry(loc) & PTE_P:
                raise ValueError(f"remap {a:#x}")
            self._set_entry(loc, pa | perm | PTE_P)
            if a == last:
                break
            a = (a + PGSIZE) & _MASK32
            pa += PGSIZE

    def init_code(self, code: BytesLike) -> None:
        """Place code, smaller than a page, at user address 0."""
        if len(code) >= PGSIZE:
            raise ValueError("initial code is more than a page")
        mem = self.memory.alloc_page()
        self.map_pages(0, PGSIZE, mem, PTE_W | PTE_U)
        self.memory.write(mem, code)

    def load(self, addr: int, data: BytesLike, sz: Optional[int] = None) -> None:
        """Copy sz bytes of data into already mapped pages starting at addr."""
        if sz is None:
            sz = len(data)
        if addr % PGSIZE:
            raise ValueError("load address must be page aligned")
        for i in range(0, sz, PGSIZE):
            loc = self.walk(addr + i)
            if loc is None:
                raise ValueError(f"address {addr + i:#x} should exist")
            pa = pte_addr(self._entry(loc))
            n = min(sz - i, PGSIZE)
            chunk = data[i:i + n]
            if len(chunk) != n:
                raise ValueError(f"short segment: wanted {n} bytes at {i}")
            self.memory.write(pa, chunk)

    def grow(self, oldsz: int, newsz: int) -> int:
        """Allocate user pages to grow from oldsz to newsz; return the new size."""
        if newsz >= KERNBASE:
            raise ValueError(f"size {newsz:#x} reaches kernel space")
        if newsz < oldsz:
            return oldsz
        a = pg_round_up(oldsz)
        while a < newsz:
            try:
                mem = self.memory.alloc_page()
            except OutOfPages:
                self.shrink(newsz, oldsz)
                raise
            try:
                self.map_pages(a, PGSIZE, mem, PTE_W | PTE_U)
            except OutOfPages:
                self.shrink(newsz, oldsz)
                self.memory.free_page(mem)
                raise
            a += PGSIZE
        return newsz

    def shrink(self, oldsz: int, newsz: int) -> int:
        """Free user pages to bring the size from oldsz down to newsz."""
        if newsz >= oldsz:
            return oldsz
        a = pg_round_up(newsz)
        while a < oldsz:
            loc = self.walk(a)
            if loc is None:
                a = (pdx(a) + 1) << PDXSHIFT
                continue
            pte = self._entry(loc)
            if pte & PTE_P:
                pa = pte_addr(pte)
                if pa == 0:
                    raise ValueError("kfree: mapped page at physical 0")
                self.memory.free_page(pa)
                self._set_entry(loc, 0)
            a += PGSIZE
        return newsz

    def release(self) -> None:
        """Free every user page, every page table and the directory itself."""
        if self._released:
            raise ValueError("freevm: no pgdir")
        self.shrink(KERNBASE, 0)
        directory = self.memory.read(self.pgdir, NPDENTRIES * _ENTRY.size)
        for (pde,) in _ENTRY.iter_unpack(directory):
            if pde & PTE_P:
                self.memory.free_page(pte_addr(pde))
        self.memory.free_page(self.pgdir)
        self._released = True

    def clear_user(self, va: int) -> None:
        """Make the page at va inaccessible to user code."""
        loc = self.walk(va)
        if loc is None:
            raise ValueError(f"clearpteu: no page table for {va:#x}")
        self._set_entry(loc, self._entry(loc) & ~PTE_U)

    def copy(self, sz: int) -> "AddressSpace":
        """A new address space with a private copy of the first sz bytes."""
        child = AddressSpace.create(self.memory, self.kernel_map)
        try:
            for i in range(0, sz, PGSIZE):
                loc = self.walk(i)
                if loc is None:
                    raise ValueError(f"copyuvm: pte for {i:#x} should exist")
                pte = self._entry(loc)
                if not pte & PTE_P:
                    raise ValueError(f"copyuvm: page {i:#x} not present")
                pa, flags = pte_addr(pte), pte_flags(pte)
                mem = self.memory.alloc_page()
                self.memory.write(mem, self.memory.read(pa, PGSIZE))
                try:
                    child.map_pages(i, PGSIZE, mem, flags)
                except Exception:
                    self.memory.free_page(mem)
                    raise
        except Exception:
            child.release()
            raise
        return child

    def uva2ka(self, va: int) -> Optional[int]:
        """Physical address of the user page at va, or None if not user-accessible."""
        loc = self.walk(va)
        if loc is None:
            return None
        pte = self._entry(loc)
        if not pte & PTE_P or not pte & PTE_U:
            return None
        return pte_addr(pte)

    def copy_out(self, va: int, data: BytesLike) -> None:
        """Copy data to user address va, across pages as needed."""
        view = memoryview(bytes(data))
        while view:
            va0 = pg_round_down(va)
            pa0 = self.uva2ka(va0)
            if pa0 is None:
                raise ValueError(f"user address {va:#x} is not mapped")
            n = min(PGSIZE - (va - va0), len(view))
            self.memory.write(pa0 + (va - va0), view[:n])
            view = view[n:]
            va = va0 + PGSIZE