"""A first-fit, address-ordered free-list allocator over a growable heap."""

from __future__ import annotations

from typing import Dict, List, Optional, Set, Tuple

HEADER_SIZE = 8
MIN_UNITS = 4096


class OutOfMemory(MemoryError):
    """The heap cannot grow any further."""


class Heap:
    """A simulated user heap grown with sbrk and managed with malloc/free.

    Addresses are plain integers; each block is preceded by a header of
    HEADER_SIZE bytes and sizes are counted in header-sized units.
    """

    def __init__(self, start: int = 0, limit: Optional[int] = None) -> None:
        if start < 0:
            raise ValueError("heap start must not be negative")
        self.start = start
        self.limit = limit
        self.brk = start
        self._base = start - HEADER_SIZE
        self._freep: Optional[int] = None
        self._next: Dict[int, int] = {}
        self._size: Dict[int, int] = {}
        self._allocated: Set[int] = set()

    def sbrk(self, n: int) -> int:
        """Move the break by n bytes and return the old break."""
        new = self.brk + n
        if new < self.start:
            raise ValueError("cannot shrink the heap below its start")
        if self.limit is not None and new > self.limit:
            raise OutOfMemory(f"heap limit {self.limit:#x} reached")
        old, self.brk = self.brk, new
        return old

    def _morecore(self, nunits: int) -> int:
        nunits = max(nunits, MIN_UNITS)
        header = self.sbrk(nunits * HEADER_SIZE)
        self._size[header] = nunits
        self._allocated.add(header)
        self.free(header + HEADER_SIZE)
        assert self._freep is not None
        return self._freep

    def malloc(self, nbytes: int) -> int:
        """Allocate nbytes and return the address of the block's payload."""
        if nbytes < 0:
            raise ValueError("cannot allocate a negative size")
        nunits = (nbytes + HEADER_SIZE - 1) // HEADER_SIZE + 1
        if self._freep is None:
            self._next[self._base] = self._base
            self._size[self._base] = 0
            self._freep = self._base
        prevp = self._freep
        p = self._next[prevp]
        while True:
            size = self._size[p]
            if size >= nunits:
                if size == nunits:
                    self._next[prevp] = self._next.pop(p)
                else:
                    self._size[p] = size - nunits
                    p += (size - nunits) * HEADER_SIZE
                    self._size[p] = nunits
                self._freep = prevp
                self._allocated.add(p)
                return p + HEADER_SIZE
            if p == self._freep:
                p = self._morecore(nunits)
            prevp, p = p, self._next[p]

    def free(self, addr: int) -> None:
        """Return a block from malloc to the free list, merging neighbours."""
        bp = addr - HEADER_SIZE
        if bp not in self._allocated:
            raise ValueError(f"{addr:#x} is not an allocated block")
        self._allocated.discard(bp)
        nxt = self._next
        p = self._freep if self._freep is not None else self._base
        if self._freep is None:
            nxt[self._base] = self._base
            self._size[self._base] = 0
        while not (p < bp < nxt[p]):
            if p >= nxt[p] and (bp > p or bp < nxt[p]):
                break
            p = nxt[p]
        upper = nxt[p]
        if bp + self._size[bp] * HEADER_SIZE == upper:
            self._size[bp] += self._size.pop(upper)
            nxt[bp] = nxt.pop(upper)
        else:
            nxt[bp] = upper
        if p + self._size[p] * HEADER_SIZE == bp:
            self._size[p] += self._size.pop(bp)
            nxt[p] = nxt.pop(bp)
        else:
            nxt[p] = bp
        self._freep = p

    def free_blocks(self) -> List[Tuple[int, int]]:
        """Free blocks as (header address, size in bytes), in address order."""
        if self._freep is None:
            return []
        blocks = []
        p = self._next[self._base]
        while p != self._base:
            blocks.append((p, self._size[p] * HEADER_SIZE))
            p = self._next[p]
        return blocks