"""System call numbers, argument fetching from user memory, and dispatch."""

from __future__ import annotations

import struct
from enum import IntEnum
from typing import Callable, Dict, Union

_MASK32 = 0xFFFFFFFF
_INT = struct.Struct("<i")


class SyscallNumber(IntEnum):
    FORK = 1
    EXIT = 2
    WAIT = 3
    PIPE = 4
    READ = 5
    KILL = 6
    EXEC = 7
    FSTAT = 8
    CHDIR = 9
    DUP = 10
    GETPID = 11
    SBRK = 12
    SLEEP = 13
    UPTIME = 14
    OPEN = 15
    WRITE = 16
    MKNOD = 17
    UNLINK = 18
    LINK = 19
    MKDIR = 20
    CLOSE = 21
    SIGPROCMASK = 22
    SIGACTION = 23
    SIGRET = 24


class BadAddress(ValueError):
    """A user address lies outside the process's memory."""


class UnknownSyscall(LookupError):
    """No handler is registered for the system call number."""


class UserMemory:
    """A process's user memory, from address 0 up to its size."""

    def __init__(self, data: Union[bytes, bytearray]) -> None:
        self.data = bytearray(data)

    @property
    def size(self) -> int:
        return len(self.data)

    def fetch_int(self, addr: int) -> int:
        """The signed 32-bit little-endian integer at addr."""
        addr &= _MASK32
        if addr >= self.size or addr + 4 > self.size:
            raise BadAddress(f"int at {addr:#x} outside {self.size:#x} bytes")
        return _INT.unpack_from(self.data, addr)[0]

    def fetch_str(self, addr: int) -> bytes:
        """The NUL-terminated string at addr, without its NUL."""
        addr &= _MASK32
        if addr >= self.size:
            raise BadAddress(f"string at {addr:#x} outside {self.size:#x} bytes")
        end = self.data.find(0, addr)
        if end < 0:
            raise BadAddress(f"string at {addr:#x} is not terminated")
        return bytes(self.data[addr:end])

    def arg_int(self, esp: int, n: int) -> int:
        """The nth 32-bit argument above the return address at esp."""
        return self.fetch_int((esp + 4 + 4 * n) & _MASK32)

    def arg_ptr(self, esp: int, n: int, size: int) -> int:
        """The nth argument as the address of size bytes of user memory."""
        addr = self.arg_int(esp, n) & _MASK32
        if size < 0 or addr >= self.size or addr + size > self.size:
            raise BadAddress(f"{size} bytes at {addr:#x} outside {self.size:#x} bytes")
        return addr

    def arg_str(self, esp: int, n: int) -> bytes:
        """The nth argument as a NUL-terminated string."""
        return self.fetch_str(self.arg_int(esp, n))


Handler = Callable[[], int]


class SyscallTable:
    """Handlers keyed by system call number."""

    def __init__(self) -> None:
        self._handlers: Dict[int, Handler] = {}

    def register(self, num: int, handler: Handler) -> None:
        try:
            key = SyscallNumber(num)
        except ValueError:
            raise ValueError(f"{num} is not a system call number") from None
        self._handlers[int(key)] = handler

    def dispatch(self, num: int) -> int:
        """Run the handler for num and return its result."""
        handler = self._handlers.get(num) if num > 0 else None
        if handler is None:
            raise UnknownSyscall(f"unknown sys call {num}")
        return handler()