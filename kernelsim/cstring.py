"""C-style byte string and memory helpers over Python bytes and bytearrays."""

from __future__ import annotations

from itertools import islice
from typing import BinaryIO, Optional, Union

BytesLike = Union[bytes, bytearray, memoryview, str]

_INT32 = 1 << 32


def _as_bytes(s: BytesLike) -> bytes:
    if isinstance(s, str):
        return s.encode("latin-1")
    return bytes(s)


def _cstr(s: BytesLike) -> bytes:
    """The bytes of s up to, not including, the first NUL."""
    data = _as_bytes(s)
    end = data.find(0)
    return data if end < 0 else data[:end]


def _check_range(length: int, offset: int, n: int) -> None:
    if n < 0 or offset < 0 or offset + n > length:
        raise ValueError(f"range {offset}..{offset + n} outside buffer of {length} bytes")


def memset(buf: bytearray, c: int, n: int, offset: int = 0) -> bytearray:
    """Fill n bytes of buf from offset with the low byte of c."""
    _check_range(len(buf), offset, n)
    buf[offset:offset + n] = bytes([c & 0xFF]) * n
    return buf


def memcmp(a: BytesLike, b: BytesLike, n: int) -> int:
    """Difference of the first unequal bytes among the first n, or 0."""
    left, right = _as_bytes(a), _as_bytes(b)
    if n < 0 or n > len(left) or n > len(right):
        raise ValueError(f"cannot compare {n} bytes")
    for x, y in zip(left[:n], right[:n]):
        if x != y:
            return x - y
    return 0


def memmove(buf: bytearray, dst: int, src: int, n: int) -> bytearray:
    """Copy n bytes within buf from src to dst; overlapping ranges are safe."""
    _check_range(len(buf), dst, n)
    _check_range(len(buf), src, n)
    buf[dst:dst + n] = buf[src:src + n]
    return buf


def strlen(s: BytesLike) -> int:
    """Number of bytes before the first NUL."""
    return len(_cstr(s))


def strcmp(p: BytesLike, q: BytesLike) -> int:
    """Compare two NUL-terminated strings as unsigned bytes."""
    for x, y in zip(_cstr(p) + b"\0", _cstr(q) + b"\0"):
        if x == 0 or x != y:
            return x - y
    return 0


def strncmp(p: BytesLike, q: BytesLike, n: int) -> int:
    """Compare at most n bytes of two NUL-terminated strings."""
    if n < 0:
        raise ValueError("n must not be negative")
    for x, y in islice(zip(_cstr(p) + b"\0", _cstr(q) + b"\0"), n):
        if x == 0 or x != y:
            return x - y
    return 0


def strncpy(t: BytesLike, n: int) -> bytes:
    """The n-byte buffer strncpy fills: t truncated to n, padded with NULs."""
    if n <= 0:
        return b""
    src = _cstr(t)[:n]
    return src + bytes(n - len(src))


def safestrcpy(t: BytesLike, n: int) -> bytes:
    """The string that fits, NUL-terminated, in an n-byte buffer (without the NUL)."""
    if n <= 0:
        return b""
    return _cstr(t)[:n - 1]


def strchr(s: BytesLike, c: Union[int, str, bytes]) -> Optional[int]:
    """Index of the first c before the terminating NUL, or None."""
    code = c if isinstance(c, int) else _as_bytes(c)[0]
    code &= 0xFF
    if code == 0:
        return None
    index = _cstr(s).find(code)
    return None if index < 0 else index


def atoi(s: BytesLike) -> int:
    """Value of the leading decimal digits of s; no sign or spaces are accepted."""
    n = 0
    for ch in _as_bytes(s):
        if not 0x30 <= ch <= 0x39:
            break
        n = (n * 10 + ch - 0x30) % _INT32
    return n - _INT32 if n >= _INT32 // 2 else n


def gets(stream: BinaryIO, max: int) -> bytes:
    """Read a line of at most max-1 bytes, keeping the newline or carriage return."""
    out = bytearray()
    while len(out) + 1 < max:
        ch = stream.read(1)
        if not ch:
            break
        ch = _as_bytes(ch)
        out += ch
        if ch in (b"\n", b"\r"):
            break
    return bytes(out)