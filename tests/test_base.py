import re
from datetime import timedelta

import pytest

from flagkit.base import (
    BoolFlag,
    DurationFlag,
    Float64Flag,
    Int64Flag,
    IntFlag,
    ValueWrapper,
)
from flagkit.flags import FlagParseError, FlagSet, with_env_hint
from flagkit.values import BoolConfig, BoolValue, DurationValue, Float64Value, IntegerConfig, IntValue


def _applied(flag, arguments=()):
    flag_set = FlagSet("test")
    flag.apply(flag_set)
    flag_set.parse(list(arguments))
    return flag_set


@pytest.mark.parametrize("name, expected", [("help", "--help\t(default: false)"), ("h", "-h\t(default: false)")])
def test_bool_flag_help_output(name, expected):
    assert str(BoolFlag(name=name)) == expected


def test_bool_flag_apply_sets_all_names():
    dest = BoolValue()
    flag = BoolFlag(name="wat", aliases=["W", "huh"], destination=dest)
    _applied(flag, ["--wat", "-W", "--huh"])
    assert dest.get() is True


def test_bool_flag_value_from_flag_set():
    true_flag = BoolFlag(name="trueflag", value=True)
    false_flag = BoolFlag(name="falseflag")
    flag_set = FlagSet("test")
    true_flag.apply(flag_set)
    false_flag.apply(flag_set)
    flag_set.parse([])
    assert true_flag.get(flag_set) is True
    assert false_flag.get(flag_set) is False


def test_bool_flag_apply_sets_count():
    dest = BoolValue()
    config = BoolConfig()
    flag = BoolFlag(name="wat", aliases=["W", "huh"], destination=dest, config=config)
    _applied(flag, ["--wat", "-W", "--huh"])
    assert dest.get() is True
    assert config.count == 3


@pytest.mark.parametrize("arguments, value, count", [(["-tf", "-w", "-huh"], True, 3), ([], False, 0)])
def test_bool_flag_count_from_flag_set(arguments, value, count):
    flag = BoolFlag(name="tf", aliases=["w", "huh"])
    flag_set = _applied(flag, arguments)
    assert flag.get(flag_set) is value
    assert flag_set.lookup("tf").value.count() == count


@pytest.mark.parametrize(
    "make_flag, text, expected",
    [
        (lambda: BoolFlag(name="debug", env_vars=["DEBUG"]), "1", True),
        (lambda: BoolFlag(name="debug", env_vars=["DEBUG"]), "false", False),
        (lambda: DurationFlag(name="time", env_vars=["DEBUG"]), "1s", timedelta(seconds=1)),
        (lambda: Float64Flag(name="seconds", env_vars=["DEBUG"]), "1.2", 1.2),
        (lambda: Float64Flag(name="seconds", env_vars=["DEBUG"]), "1", 1.0),
        (lambda: Int64Flag(name="seconds", env_vars=["DEBUG"]), "1", 1),
        (lambda: IntFlag(name="seconds", env_vars=["DEBUG"]), "1", 1),
        (lambda: IntFlag(name="seconds", env_vars=["DEBUG"], config=IntegerConfig(base=10)), "08", 8),
        (lambda: IntFlag(name="seconds", env_vars=["DEBUG"], config=IntegerConfig(base=8)), "755", 493),
        (
            lambda: IntFlag(name="seconds", env_vars=["DEBUG"], config=IntegerConfig(base=16)),
            "deadBEEF",
            3735928559,
        ),
    ],
)
def test_flags_from_env(monkeypatch, make_flag, text, expected):
    monkeypatch.setenv("DEBUG", text)
    flag = make_flag()
    flag_set = _applied(flag)
    assert flag_set.lookup(flag.name).value.get() == expected
    assert flag.is_set() is True
    assert flag.get(flag_set) == expected


@pytest.mark.parametrize(
    "make_flag, text, prefix",
    [
        (lambda: BoolFlag(name="debug", env_vars=["DEBUG"]), "foobar", 'could not parse "foobar" as bool value from environment variable "DEBUG" for flag debug: '),
        (lambda: DurationFlag(name="time", env_vars=["DEBUG"]), "foobar", 'could not parse "foobar" as duration value from environment variable "DEBUG" for flag time: '),
        (lambda: Float64Flag(name="seconds", env_vars=["DEBUG"]), "foobar", 'could not parse "foobar" as float64 value from environment variable "DEBUG" for flag seconds: '),
        (lambda: Int64Flag(name="seconds", env_vars=["DEBUG"]), "1.2", 'could not parse "1.2" as int64 value from environment variable "DEBUG" for flag seconds: '),
        (lambda: Int64Flag(name="seconds", env_vars=["DEBUG"]), "foobar", 'could not parse "foobar" as int64 value from environment variable "DEBUG" for flag seconds: '),
        (lambda: IntFlag(name="seconds", env_vars=["DEBUG"], config=IntegerConfig(base=0)), "08", 'could not parse "08" as int value from environment variable "DEBUG" for flag seconds: '),
        (lambda: IntFlag(name="seconds", env_vars=["DEBUG"]), "1.2", 'could not parse "1.2" as int value from environment variable "DEBUG" for flag seconds: '),
        (lambda: IntFlag(name="seconds", env_vars=["DEBUG"]), "foobar", 'could not parse "foobar" as int value from environment variable "DEBUG" for flag seconds: '),
    ],
)
def test_flags_from_env_errors(monkeypatch, make_flag, text, prefix):
    monkeypatch.setenv("DEBUG", text)
    with pytest.raises(ValueError, match="^" + re.escape(prefix) + ".+"):
        make_flag().apply(FlagSet("test"))


@pytest.mark.parametrize(
    "flag, expected",
    [
        (BoolFlag(name="vividly"), "--vividly\t(default: false)"),
        (BoolFlag(name="wildly", default_text="scrambled"), "--wildly\t(default: scrambled)"),
        (DurationFlag(name="scream-for"), "--scream-for value\t(default: 0s)"),
        (DurationFlag(name="feels-about", default_text="whimsically"), "--feels-about value\t(default: whimsically)"),
        (Float64Flag(name="arduous"), "--arduous value\t(default: 0)"),
        (Float64Flag(name="filibuster", default_text="42"), "--filibuster value\t(default: 42)"),
        (IntFlag(name="grubs"), "--grubs value\t(default: 0)"),
        (IntFlag(name="poisons", default_text="11ty"), "--poisons value\t(default: 11ty)"),
        (IntFlag(name="pens", default_text="-19"), "--pens value\t(default: -19)"),
        (Int64Flag(name="flume"), "--flume value\t(default: 0)"),
        (Int64Flag(name="shattering", default_text="22"), "--shattering value\t(default: 22)"),
    ],
)
def test_flag_stringifying(flag, expected):
    assert str(flag) == expected


@pytest.mark.parametrize(
    "make_flag, expected",
    [
        (lambda n: IntFlag(name=n, value=9), "value\t(default: 9)"),
        (lambda n: Int64Flag(name=n, value=8589934592), "value\t(default: 8589934592)"),
        (lambda n: DurationFlag(name=n, value=timedelta(seconds=1)), "value\t(default: 1s)"),
        (lambda n: Float64Flag(name=n, value=0.1), "value\t(default: 0.1)"),
    ],
)
@pytest.mark.parametrize("name, prefix", [("hats", "--hats "), ("H", "-H ")])
def test_typed_flag_help_output(make_flag, expected, name, prefix):
    flag = make_flag(name)
    flag.apply(FlagSet("test"))
    assert str(flag) == prefix + expected


@pytest.mark.parametrize("cls", [IntFlag, Int64Flag, DurationFlag, Float64Flag, BoolFlag])
def test_flag_with_env_var_help_output(monkeypatch, cls):
    monkeypatch.setenv("APP_BAR", "2")
    assert str(cls(name="hats", env_vars=["APP_BAR"])).endswith(with_env_hint(["APP_BAR"], ""))


def test_int_flag_apply_sets_all_names():
    dest = IntValue(3)
    flag = IntFlag(name="banana", aliases=["B", "banannanana"], destination=dest)
    _applied(flag, ["--banana", "1", "-B", "2", "--banannanana", "5"])
    assert dest.get() == 5


def test_duration_flag_apply_sets_all_names():
    dest = DurationValue(timedelta(seconds=20))
    flag = DurationFlag(name="howmuch", aliases=["H", "whyyy"], destination=dest)
    _applied(flag, ["--howmuch", "30s", "-H", "5m", "--whyyy", "30h"])
    assert dest.get() == timedelta(hours=30)


def test_float64_flag_apply_sets_all_names():
    dest = Float64Value(99.1)
    flag = Float64Flag(name="noodles", aliases=["N", "nurbles"], destination=dest)
    _applied(flag, ["--noodles", "1.3", "-N", "11", "--nurbles", "43.33333"])
    assert dest.get() == 43.33333


def test_destination_takes_default_value():
    dest = IntValue(3)
    flag = IntFlag(name="n", value=7, destination=dest)
    _applied(flag, [])
    assert dest.get() == 7


def test_destination_of_wrong_type_is_rejected():
    with pytest.raises(TypeError):
        IntFlag(name="n", destination=BoolValue()).apply(FlagSet("test"))


@pytest.mark.parametrize(
    "make_flag, arguments, key, expected",
    [
        (lambda: IntFlag(name="serve", aliases=["s"]), ["-s", "10"], "serve", 10),
        (lambda: Float64Flag(name="serve", aliases=["s"]), ["-s", "10.2"], "serve", 10.2),
        (lambda: BoolFlag(name="serve", aliases=["s"]), ["--serve"], "s", True),
        (lambda: BoolFlag(name="implode", aliases=["i"], value=True), ["--implode=false"], "i", False),
    ],
)
def test_parse_multi(make_flag, arguments, key, expected):
    flag_set = _applied(make_flag(), arguments)
    assert flag_set.lookup(key).value.get() == expected


@pytest.mark.parametrize("env, expected", [("", False), ("1", True), ("false", False), ("true", True)])
def test_parse_bool_from_env(monkeypatch, env, expected):
    monkeypatch.setenv("DEBUG", env)
    flag = BoolFlag(name="debug", aliases=["d"], env_vars=["DEBUG"])
    flag_set = _applied(flag)
    assert flag_set.lookup("d").value.get() is expected


def test_parse_int_from_env_cascade(monkeypatch):
    monkeypatch.delenv("COMPAT_TIMEOUT_SECONDS", raising=False)
    monkeypatch.setenv("APP_TIMEOUT_SECONDS", "10")
    flag = IntFlag(name="timeout", aliases=["t"], env_vars=["COMPAT_TIMEOUT_SECONDS", "APP_TIMEOUT_SECONDS"])
    flag_set = _applied(flag)
    assert flag_set.lookup("t").value.get() == 10


def test_value_from_file(tmp_path):
    path = tmp_path / "value"
    path.write_text("42")
    flag = IntFlag(name="answer", file_paths=[str(path)])
    flag_set = _applied(flag)
    assert flag.get(flag_set) == 42
    assert flag.is_set() is True


@pytest.mark.parametrize(
    "flag, arguments, env, expected",
    [
        (BoolFlag(name="flag", value=True, env_vars=["uflag"]), ["--flag", "false"], "false", "--flag\t(default: true)"),
        (Int64Flag(name="flag", value=1, env_vars=["uflag"]), ["--flag", "13"], "10", "--flag value\t(default: 1)"),
        (IntFlag(name="flag", value=1, env_vars=["uflag"]), ["--flag", "13"], "10", "--flag value\t(default: 1)"),
        (
            DurationFlag(name="flag", value=timedelta(seconds=1), env_vars=["uflag"]),
            ["--flag", "2m"],
            "2h4m10s",
            "--flag value\t(default: 1s)",
        ),
    ],
)
def test_flag_default_value_with_env(monkeypatch, flag, arguments, env, expected):
    monkeypatch.setenv("uflag", env)
    _applied(flag, arguments)
    assert str(flag) == expected + with_env_hint(["uflag"], "")


def test_persistent_flag_keeps_first_value(monkeypatch):
    monkeypatch.setenv("N", "5")
    flag = IntFlag(name="n", env_vars=["N"], persistent=True)
    first = FlagSet("first")
    flag.apply(first)
    monkeypatch.setenv("N", "7")
    second = FlagSet("second")
    flag.apply(second)
    assert second.lookup("n").value.get() == 5


def test_non_persistent_flag_rereads_environment(monkeypatch):
    monkeypatch.setenv("N", "5")
    flag = IntFlag(name="n", env_vars=["N"])
    flag.apply(FlagSet("first"))
    monkeypatch.setenv("N", "7")
    second = FlagSet("second")
    flag.apply(second)
    assert second.lookup("n").value.get() == 7


def test_only_once_rejects_duplicates():
    flag = IntFlag(name="n", only_once=True)
    flag_set = FlagSet("test")
    flag.apply(flag_set)
    with pytest.raises(FlagParseError, match="duplicate"):
        flag_set.parse(["--n", "1", "--n", "2"])


def test_get_returns_zero_when_missing():
    assert Float64Flag(name="x").get(FlagSet("test")) == 0.0
    assert DurationFlag(name="x").get(FlagSet("test")) == timedelta(0)


def test_run_action_receives_value():
    seen = []
    flag = IntFlag(name="n", action=lambda flag_set, value: seen.append(value))
    flag_set = _applied(flag, ["--n", "4"])
    flag.run_action(flag_set)
    assert seen == [4]


def test_flag_properties():
    flag = IntFlag(name="n", aliases=["x"], category="cat", usage="use", required=True, hidden=True, persistent=True)
    assert flag.names() == ["n", "x"]
    assert flag.is_required() is True
    assert flag.is_visible() is False
    assert flag.get_category() == "cat"
    assert flag.get_usage() == "use"
    assert flag.is_persistent() is True
    assert flag.is_multi_value_flag() is False


def test_get_value_and_takes_value():
    assert BoolFlag(name="b", value=True).get_value() == ""
    assert BoolFlag(name="b").takes_value() is False
    assert IntFlag(name="n", value=9).get_value() == "9"
    assert IntFlag(name="n").takes_value() is True


def test_value_wrapper_counts_bool_sets():
    wrapper = ValueWrapper(BoolValue.create(False, BoolConfig()))
    wrapper.set("true")
    assert wrapper.is_bool_flag() is True
    assert wrapper.count() == 1
    assert wrapper.serialize() == "true"
    assert wrapper.get() is True


def test_value_wrapper_over_int():
    wrapper = ValueWrapper(IntValue(), only_once=True)
    wrapper.set("12")
    assert wrapper.is_bool_flag() is False
    assert wrapper.count() == 0
    assert str(wrapper) == "12"
    with pytest.raises(ValueError, match="duplicate"):
        wrapper.set("13")