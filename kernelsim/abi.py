"""User-visible constants and records: open modes, file types, signals, stat."""

from __future__ import annotations

import struct
from dataclasses import dataclass
from enum import IntEnum, IntFlag
from typing import Callable, Tuple, Union


class OpenMode(IntFlag):
    RDONLY = 0x000
    WRONLY = 0x001
    RDWR = 0x002
    CREATE = 0x200


class FileType(IntEnum):
    DIR = 1
    FILE = 2
    DEV = 3


class Signal(IntEnum):
    KILL = 9
    STOP = 17
    CONT = 19


SIG_DFL = 0
SIG_IGN = 1
SIGNAL_HANDLERS_SIZE = 32

_STAT = struct.Struct("<hxxiIhxxI")
STAT_SIZE = _STAT.size


@dataclass(frozen=True)
class Stat:
    """File status as returned by fstat."""

    type: int
    dev: int
    ino: int
    nlink: int
    size: int

    def pack(self) -> bytes:
        """The in-memory layout of the record."""
        try:
            return _STAT.pack(self.type, self.dev, self.ino, self.nlink, self.size)
        except struct.error as exc:
            raise ValueError(str(exc)) from exc

    @classmethod
    def unpack(cls, data: bytes) -> "Stat":
        if len(data) != STAT_SIZE:
            raise ValueError(f"stat record must be {STAT_SIZE} bytes, got {len(data)}")
        return cls(*_STAT.unpack(data))


Handler = Union[int, Callable[[int], None]]


@dataclass
class SigAction:
    """A signal disposition: a handler (or SIG_DFL/SIG_IGN) and a mask."""

    handler: Handler = SIG_DFL
    sigmask: int = 0

    def __post_init__(self) -> None:
        if not 0 <= self.sigmask <= 0xFFFFFFFF:
            raise ValueError(f"sigmask {self.sigmask:#x} is not a 32-bit mask")


def access_for_mode(mode: int) -> Tuple[bool, bool]:
    """Whether a file opened with mode is (readable, writable)."""
    readable = not (mode & OpenMode.WRONLY)
    writable = bool(mode & OpenMode.WRONLY) or bool(mode & OpenMode.RDWR)
    return readable, writable


def is_catchable(signum: int) -> bool:
    """Whether a handler may be installed for signum."""
    if signum in (Signal.KILL, Signal.STOP):
        return False
    return 0 <= signum < SIGNAL_HANDLERS_SIZE