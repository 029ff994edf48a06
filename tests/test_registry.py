from __future__ import annotations

import pytest

from arepl.commands import (
    Command,
    CommandRegistry,
    FunctionHandler,
    Strictness,
    arg,
    command,
    opt,
)
from arepl.errors import (
    Ambiguous,
    DuplicateName,
    InvalidArgSpec,
    InvalidName,
    PrefixConflict,
    RegistryFrozen,
    Unknown,
)


def _cmd(name, *aliases, spec=()):
    return Command(name, FunctionHandler(lambda *a: None, arg_spec=spec), aliases=aliases)


def _registry(*commands, **kwargs):
    registry = CommandRegistry(**kwargs)
    for command_obj in commands:
        registry.register(command_obj)
    return registry


def test_resolve_exact_names_and_aliases():
    commands = [_cmd("list", "ls"), _cmd("remove", "rm", "del"), _cmd("quit", "exit")]
    registry = _registry(*commands)
    for command_obj in commands:
        for name in command_obj.names:
            assert registry.resolve(name) is command_obj


def test_exact_match_beats_prefix():
    registry = _registry(_cmd("he"), _cmd("help"))
    assert registry.resolve("he").name == "he"


def test_unambiguous_prefix_resolves(registry):
    assert registry.resolve("a").name == "add"
    assert registry.resolve("hell").name == "hello"
    assert registry.resolve("ex").name == "exit"


def test_prefix_matching_one_command_through_several_names():
    registry = _registry(_cmd("list", "ls"), _cmd("quit"))
    assert registry.resolve("l").name == "list"


@pytest.mark.parametrize(
    "prefix, expected",
    [("h", {"hello", "help"}), ("he", {"hello", "help"}), ("e", {"echo", "exit"})],
)
def test_ambiguous_prefix_lists_exactly_the_matches(registry, prefix, expected):
    with pytest.raises(Ambiguous) as excinfo:
        registry.resolve(prefix)
    assert set(excinfo.value.candidates) == expected


def test_unknown_name(registry):
    with pytest.raises(Unknown) as excinfo:
        registry.resolve("bogus")
    assert str(excinfo.value) == "unknown command 'bogus'"


def test_unknown_name_suggests_close_matches(registry):
    with pytest.raises(Unknown) as excinfo:
        registry.resolve("ecko")
    assert excinfo.value.suggestions == ["echo"]
    assert "did you mean: echo?" in str(excinfo.value)


def test_names_are_case_sensitive(registry):
    with pytest.raises(Unknown):
        registry.resolve("ECHO")


def test_prefix_resolution_can_be_disabled():
    registry = _registry(_cmd("hello"), _cmd("help"), _cmd("add"), prefix_resolution=False)
    assert registry.resolve("add").name == "add"
    with pytest.raises(Unknown) as excinfo:
        registry.resolve("ad")
    assert excinfo.value.suggestions == ["add"]
    with pytest.raises(Unknown) as excinfo:
        registry.resolve("he")
    assert excinfo.value.suggestions == ["hello", "help"]


def test_duplicate_names_are_rejected():
    registry = _registry(_cmd("list", "ls"))
    with pytest.raises(DuplicateName):
        registry.register(_cmd("list"))
    with pytest.raises(DuplicateName) as excinfo:
        registry.register(_cmd("show", "ls"))
    assert excinfo.value.owner == "list"
    with pytest.raises(DuplicateName):
        registry.register(_cmd("ls"))
    with pytest.raises(DuplicateName):
        registry.register(_cmd("dup", "dup"))
    # failed registrations leave nothing behind
    assert registry.names() == ["list", "ls"]


@pytest.mark.parametrize(
    "spec",
    [
        (opt("a"), arg("b")),
        (arg("x"), opt("a"), arg("b")),
        (opt("a", int), opt("b"), arg("c", float, hint="c")),
    ],
)
def test_required_after_optional_is_rejected(spec):
    with pytest.raises(InvalidArgSpec):
        CommandRegistry().register(_cmd("broken", spec=spec))


def test_bad_argument_order_wins_over_other_registration_errors():
    registry = _registry(_cmd("taken"))
    bad = (opt("a"), arg("b"))
    with pytest.raises(InvalidArgSpec):
        registry.register(_cmd("taken", spec=bad))
    with pytest.raises(InvalidArgSpec):
        registry.register(_cmd("two words", spec=bad))
    with pytest.raises(InvalidArgSpec):
        _registry(_cmd("help"), strictness=Strictness.STRICT).register(_cmd("he", spec=bad))
    assert registry.names() == ["taken"]


def test_duplicate_argument_names_are_rejected():
    with pytest.raises(InvalidArgSpec):
        CommandRegistry().register(_cmd("broken", spec=(arg("a"), opt("a"))))


@pytest.mark.parametrize("name", ["", "two words", "quo'te", 'dq"', "back\\slash"])
def test_untypeable_names_are_rejected(name):
    with pytest.raises(InvalidName):
        CommandRegistry().register(_cmd(name))


def test_strict_mode_rejects_prefix_overlaps():
    registry = _registry(_cmd("help"), strictness=Strictness.STRICT)
    with pytest.raises(PrefixConflict):
        registry.register(_cmd("he"))
    with pytest.raises(PrefixConflict):
        registry.register(_cmd("helper"))
    with pytest.raises(PrefixConflict):
        registry.register(_cmd("show", "h"))
    registry.register(_cmd("quit"))
    assert registry.names() == ["help", "quit"]


def test_lenient_mode_allows_prefix_overlaps():
    registry = _registry(_cmd("help"), _cmd("he"), _cmd("helper"))
    assert len(registry) == 3


def test_frozen_registry_rejects_registration():
    registry = _registry(_cmd("a"))
    registry.freeze()
    assert registry.frozen
    with pytest.raises(RegistryFrozen):
        registry.register(_cmd("b"))
    assert registry.resolve("a").name == "a"


def test_listing_keeps_registration_order():
    registry = _registry(_cmd("zeta", "z"), _cmd("alpha"), _cmd("mid", "m"))
    assert [c.name for c in registry.list()] == ["zeta", "alpha", "mid"]
    assert [c.name for c in registry] == ["zeta", "alpha", "mid"]
    assert registry.names() == ["zeta", "alpha", "mid", "z", "m"]
    assert registry.candidates("") == ["alpha", "m", "mid", "z", "zeta"]
    assert "z" in registry and "nope" not in registry
    assert registry.get("z").name == "zeta"
    assert registry.get("ze") is None


def test_decorator_derives_metadata_from_function():
    @command(aliases=["sa"], example="show-all 3")
    def show_all(limit: int, verbose: bool = False):
        """Show everything.

        Longer description that is not part of the summary.
        """
        return limit

    assert isinstance(show_all, Command)
    assert show_all.name == "show-all"
    assert show_all.aliases == ("sa",)
    assert show_all.summary == "Show everything."
    assert [d.render() for d in show_all.arg_spec] == ["<limit:int>", "[verbose:bool]"]
    assert (show_all.min_args, show_all.max_args) == (1, 2)


def test_registry_decorator_registers(registry):
    command_obj = registry.get("add")
    assert command_obj.summary == "Add two integers."
    assert [d.name for d in command_obj.arg_spec] == ["x", "y"]


def test_string_args_are_required_untyped():
    @command(args=["src", "dst"])
    def copy(src, dst):
        return None

    assert [d.render() for d in copy.arg_spec] == ["<src>", "<dst>"]
