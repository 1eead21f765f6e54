"""Parsing of shell command lines into command trees."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Tuple, Union

from .abi import OpenMode

WHITESPACE = " \t\r\n\v"
SYMBOLS = "<|>&;()"
MAXARGS = 10

_END = ""


class ShellSyntaxError(ValueError):
    """The command line cannot be parsed."""


@dataclass
class ExecCommand:
    argv: List[str] = field(default_factory=list)


@dataclass
class RedirCommand:
    cmd: "Command"
    file: str
    mode: int
    fd: int


@dataclass
class PipeCommand:
    left: "Command"
    right: "Command"


@dataclass
class ListCommand:
    left: "Command"
    right: "Command"


@dataclass
class BackCommand:
    cmd: "Command"


Command = Union[ExecCommand, RedirCommand, PipeCommand, ListCommand, BackCommand]


class Parser:
    """A recursive-descent parser over one command line.

    Token kinds: "a" for a word, "+" for ">>", the symbol itself otherwise.
    """

    def __init__(self, line: str) -> None:
        self.line = line
        self.pos = 0

    def _skip(self) -> None:
        while self.pos < len(self.line) and self.line[self.pos] in WHITESPACE:
            self.pos += 1

    def _peek(self, toks: str) -> bool:
        self._skip()
        return self.pos < len(self.line) and self.line[self.pos] in toks

    def _gettoken(self) -> Tuple[str, str]:
        self._skip()
        start = self.pos
        if start >= len(self.line):
            return _END, ""
        c = self.line[start]
        if c in "|();&<":
            self.pos += 1
            kind = c
        elif c == ">":
            self.pos += 1
            kind = ">"
            if self.pos < len(self.line) and self.line[self.pos] == ">":
                self.pos += 1
                kind = "+"
        else:
            kind = "a"
            while (
                self.pos < len(self.line)
                and self.line[self.pos] not in WHITESPACE
                and self.line[self.pos] not in SYMBOLS
            ):
                self.pos += 1
        text = self.line[start:self.pos]
        self._skip()
        return kind, text

    def parse(self) -> Command:
        """Parse the whole line; trailing unparsed text is an error."""
        self.pos = 0
        cmd = self._parse_line()
        self._skip()
        if self.pos != len(self.line):
            raise ShellSyntaxError(f"syntax: leftovers: {self.line[self.pos:]}")
        return cmd

    def _parse_line(self) -> Command:
        cmd = self._parse_pipe()
        while self._peek("&"):
            self._gettoken()
            cmd = BackCommand(cmd)
        if self._peek(";"):
            self._gettoken()
            cmd = ListCommand(cmd, self._parse_line())
        return cmd

    def _parse_pipe(self) -> Command:
        cmd = self._parse_exec()
        if self._peek("|"):
            self._gettoken()
            cmd = PipeCommand(cmd, self._parse_pipe())
        return cmd

    def _parse_redirs(self, cmd: Command) -> Command:
        while self._peek("<>"):
            kind, _ = self._gettoken()
            fkind, file = self._gettoken()
            if fkind != "a":
                raise ShellSyntaxError("missing file for redirection")
            if kind == "<":
                cmd = RedirCommand(cmd, file, OpenMode.RDONLY, 0)
            else:
                cmd = RedirCommand(cmd, file, OpenMode.WRONLY | OpenMode.CREATE, 1)
        return cmd

    def _parse_block(self) -> Command:
        if not self._peek("("):
            raise ShellSyntaxError("parseblock")
        self._gettoken()
        cmd = self._parse_line()
        if not self._peek(")"):
            raise ShellSyntaxError("syntax - missing )")
        self._gettoken()
        return self._parse_redirs(cmd)

    def _parse_exec(self) -> Command:
        if self._peek("("):
            return self._parse_block()
        ecmd = ExecCommand()
        ret = self._parse_redirs(ecmd)
        while not self._peek("|)&;"):
            kind, text = self._gettoken()
            if kind == _END:
                break
            if kind != "a":
                raise ShellSyntaxError("syntax")
            ecmd.argv.append(text)
            if len(ecmd.argv) >= MAXARGS:
                raise ShellSyntaxError("too many args")
            ret = self._parse_redirs(ret)
        return ret


def tokenize(line: str) -> List[Tuple[str, str]]:
    """All tokens of line as (kind, text) pairs."""
    parser = Parser(line)
    tokens = []
    while True:
        kind, text = parser._gettoken()
        if kind == _END:
            return tokens
        tokens.append((kind, text))


def parse_command(line: str) -> Command:
    """Parse a command line into a command tree."""
    return Parser(line).parse()