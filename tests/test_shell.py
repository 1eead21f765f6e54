import pytest
from hypothesis import given
from hypothesis import strategies as st

from kernelsim.abi import OpenMode
from kernelsim.shell import (
    BackCommand,
    ExecCommand,
    ListCommand,
    Parser,
    PipeCommand,
    RedirCommand,
    ShellSyntaxError,
    parse_command,
    tokenize,
)

WRITE = OpenMode.WRONLY | OpenMode.CREATE


def test_simple_exec_with_newline():
    assert parse_command("echo hi\n") == ExecCommand(["echo", "hi"])


def test_empty_line():
    assert parse_command("") == ExecCommand([])
    assert parse_command("  \t\n") == ExecCommand([])


def test_pipe_is_right_associative():
    assert parse_command("a | b | c") == PipeCommand(
        ExecCommand(["a"]), PipeCommand(ExecCommand(["b"]), ExecCommand(["c"]))
    )


def test_list_and_background():
    assert parse_command("a &; b") == ListCommand(
        BackCommand(ExecCommand(["a"])), ExecCommand(["b"])
    )
    assert parse_command("a & &") == BackCommand(BackCommand(ExecCommand(["a"])))
    assert parse_command("a ; b") == ListCommand(ExecCommand(["a"]), ExecCommand(["b"]))


def test_background_followed_by_command_is_leftover():
    with pytest.raises(ShellSyntaxError):
        parse_command("a & b")


def test_redirections_nest_last_outermost():
    assert parse_command("cat < in > out") == RedirCommand(
        RedirCommand(ExecCommand(["cat"]), "in", OpenMode.RDONLY, 0), "out", WRITE, 1
    )


def test_append_behaves_like_write():
    assert parse_command("echo x >> log") == RedirCommand(
        ExecCommand(["echo", "x"]), "log", WRITE, 1
    )


def test_args_after_redirection_join_command():
    assert parse_command("echo > f hi") == RedirCommand(
        ExecCommand(["echo", "hi"]), "f", WRITE, 1
    )


def test_block_with_redirection():
    assert parse_command("(a ; b) > out") == RedirCommand(
        ListCommand(ExecCommand(["a"]), ExecCommand(["b"])), "out", WRITE, 1
    )


@pytest.mark.parametrize("line", ["echo >", "echo < |", "(echo", "echo )", "echo hi(", "a & b"])
def test_syntax_errors(line):
    with pytest.raises(ShellSyntaxError):
        parse_command(line)


def test_argument_limit():
    nine = " ".join(f"w{i}" for i in range(9))
    assert parse_command(nine) == ExecCommand(nine.split())
    with pytest.raises(ShellSyntaxError):
        parse_command(nine + " w9")


def test_tokenize():
    assert tokenize("a>>b|c") == [
        ("a", "a"),
        ("+", ">>"),
        ("a", "b"),
        ("|", "|"),
        ("a", "c"),
    ]
    assert tokenize("\tx  ( y ) &;<") == [
        ("a", "x"),
        ("(", "("),
        ("a", "y"),
        (")", ")"),
        ("&", "&"),
        (";", ";"),
        ("<", "<"),
    ]


def test_parser_can_parse_twice():
    parser = Parser("ls dir")
    first = parser.parse()
    second = parser.parse()
    assert first == ExecCommand(["ls", "dir"])
    assert second == ExecCommand(["ls", "dir"])


words = st.lists(st.text(alphabet="abcxyz019./-", min_size=1, max_size=6), min_size=1, max_size=6)


def _flatten(cmd, kind):
    out = []
    while isinstance(cmd, kind):
        out.append(cmd.left.argv)
        cmd = cmd.right
    out.append(cmd.argv)
    return out


@given(words)
def test_pipeline_round_trip(ws):
    cmd = parse_command(" | ".join(ws))
    assert _flatten(cmd, PipeCommand) == [[w] for w in ws]


@given(words)
def test_list_round_trip(ws):
    cmd = parse_command(";".join(ws))
    assert _flatten(cmd, ListCommand) == [[w] for w in ws]