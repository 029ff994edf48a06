from __future__ import annotations

import pytest

from arepl.commands import Command, FunctionHandler, arg, opt
from arepl.errors import ArgumentValueError, ArityError, UnterminatedQuote
from arepl.interface.parser import (
    NOOP,
    bind_args,
    build_usage,
    quote_token,
    split_tokens,
    tokenize,
)


def _tokens(line):
    invocation = tokenize(line)
    return [invocation.command_name, *invocation.raw_args]


def test_quoted_span_is_one_token():
    assert _tokens('cmd "a b" c') == ["cmd", "a b", "c"]


def test_unterminated_quote_fails():
    with pytest.raises(UnterminatedQuote):
        tokenize('cmd "unterminated')


@pytest.mark.parametrize("line", ["", "   ", "\t \t"])
def test_blank_line_is_noop(line):
    invocation = tokenize(line)
    assert invocation is NOOP
    assert invocation.is_noop


def test_empty_quoted_name_is_not_a_blank_line():
    invocation = tokenize('""')
    assert invocation is not NOOP
    assert not invocation.is_noop
    assert invocation.command_name == ""
    assert invocation.raw_args == ()


def test_command_name_is_not_coerced():
    invocation = tokenize("Add 1 2")
    assert invocation.command_name == "Add"
    assert invocation.raw_args == ("1", "2")


def test_single_quotes_and_escapes():
    assert _tokens("say 'it \"is\"' x") == ["say", 'it "is"', "x"]
    assert _tokens(r'say "a \"b\" \\ c"') == ["say", 'a "b" \\ c']
    assert _tokens(r"say a\ b") == ["say", "a b"]


def test_quotes_join_adjacent_text():
    assert _tokens('set key="a b"') == ["set", "key=a b"]


def test_empty_quotes_make_an_empty_token():
    assert _tokens('echo ""') == ["echo", ""]


def test_token_spans():
    tokens = split_tokens('ab  "c d"')
    assert [(t.text, t.start, t.end) for t in tokens] == [("ab", 0, 2), ("c d", 4, 9)]


def test_lenient_split_marks_open_token():
    tokens = split_tokens('echo "par', strict=False)
    assert tokens[-1].text == "par"
    assert tokens[-1].closed is False


def _command(*spec):
    return Command("add", FunctionHandler(lambda *a: a, arg_spec=spec))


def test_bind_args_checks_arity():
    command_obj = _command(arg("x", int), arg("y", int))
    with pytest.raises(ArityError) as too_few:
        bind_args(command_obj, ["1"])
    assert too_few.value.got == 1
    assert "usage: add <x:int> <y:int>" in str(too_few.value)
    with pytest.raises(ArityError):
        bind_args(command_obj, ["1", "2", "3"])


def test_bind_args_converts_values():
    command_obj = _command(arg("x", int), opt("ratio", float), opt("flag", bool))
    assert bind_args(command_obj, ["3"]) == [3]
    assert bind_args(command_obj, ["3", "0.5", "yes"]) == [3, 0.5, True]
    assert bind_args(command_obj, ["3", "1", "OFF"]) == [3, 1.0, False]


def test_bind_args_rejects_bad_values():
    command_obj = _command(arg("x", int), opt("flag", bool))
    with pytest.raises(ArgumentValueError) as excinfo:
        bind_args(command_obj, ["one"])
    assert excinfo.value.argument == "x"
    with pytest.raises(ArgumentValueError):
        bind_args(command_obj, ["1", "maybe"])


def test_build_usage():
    assert build_usage(_command()) == "add"
    assert build_usage(_command(arg("x", int), opt("name", hint="who"))) == "add <x:int> [who]"


@pytest.mark.parametrize(
    "text, expected",
    [("plain", "plain"), ("a b", "'a b'"), ("", "''")],
)
def test_quote_token(text, expected):
    assert quote_token(text) == expected
