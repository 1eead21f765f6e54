"""Count lines, words and bytes."""

from __future__ import annotations

import sys
from dataclasses import dataclass
from typing import BinaryIO, Iterable, List, Optional

_WHITESPACE = frozenset(b" \r\t\n\v")
_CHUNK = 512


@dataclass(frozen=True)
class Counts:
    lines: int = 0
    words: int = 0
    chars: int = 0


def count(chunks: Iterable[bytes]) -> Counts:
    """Count lines, words and bytes over a sequence of byte chunks."""
    lines = words = chars = 0
    inword = False
    for chunk in chunks:
        chars += len(chunk)
        for ch in chunk:
            if ch == 0x0A:
                lines += 1
            if ch in _WHITESPACE:
                inword = False
            elif not inword:
                words += 1
                inword = True
    return Counts(lines, words, chars)


def _chunks(stream: BinaryIO):
    while True:
        data = stream.read(_CHUNK)
        if not data:
            return
        yield data


def wc(stream: BinaryIO, name: str) -> str:
    """The report line for one stream: lines, words, bytes and name."""
    c = count(_chunks(stream))
    return f"{c.lines} {c.words} {c.chars} {name}"


def main(argv: Optional[List[str]] = None) -> int:
    args = sys.argv[1:] if argv is None else argv
    if not args:
        print(wc(sys.stdin.buffer, ""))
        return 0
    for path in args:
        try:
            stream = open(path, "rb")
        except OSError:
            print(f"wc: cannot open {path}")
            return 1
        with stream:
            print(wc(stream, path))
    return 0


if __name__ == "__main__":
    sys.exit(main())