"""Reading and writing 32-bit ELF executable headers."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from typing import List

ELF_MAGIC = 0x464C457F  # "\x7FELF" in little endian

ELF_PROG_LOAD = 1

ELF_PROG_FLAG_EXEC = 1
ELF_PROG_FLAG_WRITE = 2
ELF_PROG_FLAG_READ = 4

_HEADER = struct.Struct("<I12sHHIIIIIHHHHHH")
_PROGHDR = struct.Struct("<8I")

HEADER_SIZE = _HEADER.size
PROGHDR_SIZE = _PROGHDR.size


class ElfFormatError(ValueError):
    """The data is not a well-formed ELF image."""


@dataclass(frozen=True)
class ElfHeader:
    """The ELF file header."""

    magic: int = ELF_MAGIC
    elf: bytes = field(default=bytes(12))
    type: int = 0
    machine: int = 0
    version: int = 0
    entry: int = 0
    phoff: int = 0
    shoff: int = 0
    flags: int = 0
    ehsize: int = 0
    phentsize: int = 0
    phnum: int = 0
    shentsize: int = 0
    shnum: int = 0
    shstrndx: int = 0

    @classmethod
    def from_bytes(cls, data: bytes) -> "ElfHeader":
        """Parse the header at the start of data; the magic number must match."""
        if len(data) < HEADER_SIZE:
            raise ElfFormatError(f"need {HEADER_SIZE} bytes for an ELF header, got {len(data)}")
        header = cls(*_HEADER.unpack_from(data, 0))
        if header.magic != ELF_MAGIC:
            raise ElfFormatError(f"bad ELF magic {header.magic:#x}")
        return header

    def pack(self) -> bytes:
        if len(self.elf) > 12:
            raise ElfFormatError("ident field longer than 12 bytes")
        try:
            return _HEADER.pack(
                self.magic, self.elf, self.type, self.machine, self.version,
                self.entry, self.phoff, self.shoff, self.flags, self.ehsize,
                self.phentsize, self.phnum, self.shentsize, self.shnum, self.shstrndx,
            )
        except struct.error as exc:
            raise ElfFormatError(str(exc)) from exc


@dataclass(frozen=True)
class ProgramHeader:
    """An ELF program section header."""

    type: int = 0
    off: int = 0
    vaddr: int = 0
    paddr: int = 0
    filesz: int = 0
    memsz: int = 0
    flags: int = 0
    align: int = 0

    @classmethod
    def from_bytes(cls, data: bytes, offset: int = 0) -> "ProgramHeader":
        if offset < 0 or offset + PROGHDR_SIZE > len(data):
            raise ElfFormatError(f"program header at {offset} runs past end of data")
        return cls(*_PROGHDR.unpack_from(data, offset))

    def pack(self) -> bytes:
        try:
            return _PROGHDR.pack(
                self.type, self.off, self.vaddr, self.paddr,
                self.filesz, self.memsz, self.flags, self.align,
            )
        except struct.error as exc:
            raise ElfFormatError(str(exc)) from exc

    def is_loadable(self) -> bool:
        return self.type == ELF_PROG_LOAD

    @property
    def executable(self) -> bool:
        return bool(self.flags & ELF_PROG_FLAG_EXEC)

    @property
    def writable(self) -> bool:
        return bool(self.flags & ELF_PROG_FLAG_WRITE)

    @property
    def readable(self) -> bool:
        return bool(self.flags & ELF_PROG_FLAG_READ)


def program_headers(data: bytes) -> List[ProgramHeader]:
    """All program headers of the ELF image in data, in table order."""
    header = ElfHeader.from_bytes(data)
    return [
        ProgramHeader.from_bytes(data, header.phoff + i * PROGHDR_SIZE)
        for i in range(header.phnum)
    ]