"""Flag sets, command-line parsing and the text used to describe flags in help."""

from __future__ import annotations

import json
import os
import re
import sys
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Sequence

from flagkit.values import BoolValue

DEFAULT_PLACEHOLDER = "value"

# Prefix marking a value serialized by a multi-value flag, so that a copy can
# restore it exactly instead of parsing it as one more item.
SERIALIZED_PREFIX = f"sl:::{time.time_ns()}:::"

_COMMA_WHITESPACE = re.compile(r"[, ]+.*", re.DOTALL)


@dataclass
class _Settings:
    slice_separator: str = ","
    map_key_value_separator: str = "="
    disable_slice_separator: bool = False


settings = _Settings()


def _quote(text: str) -> str:
    return json.dumps(text, ensure_ascii=False)


class FlagParseError(ValueError):
    """Raised when command-line arguments cannot be parsed into flags."""


@dataclass
class _FlagEntry:
    name: str
    usage: str
    value: Any
    default: str


def _is_bool_value(value: Any) -> bool:
    check = getattr(value, "is_bool_flag", None)
    if callable(check):
        return bool(check())
    return isinstance(value, BoolValue)


@dataclass
class FlagSet:
    """A named set of flags that parses ``-name``/``--name`` arguments."""

    name: str = ""
    _formal: dict[str, _FlagEntry] = field(default_factory=dict, repr=False)
    _actual: dict[str, _FlagEntry] = field(default_factory=dict, repr=False)
    _args: list[str] = field(default_factory=list, repr=False)
    parsed: bool = False

    def var(self, value: Any, name: str, usage: str) -> None:
        """Register ``value`` under ``name``."""
        if name.startswith("-"):
            raise ValueError(f"flag {_quote(name)} begins with -")
        if "=" in name:
            raise ValueError(f"flag {_quote(name)} contains =")
        if name in self._formal:
            prefix = f"{self.name} " if self.name else ""
            raise ValueError(f"{prefix}flag redefined: {name}")
        self._formal[name] = _FlagEntry(name, usage, value, str(value))

    def lookup(self, name: str) -> _FlagEntry | None:
        """Return the registered flag called ``name``, or None."""
        return self._formal.get(name)

    def set(self, name: str, value: str) -> None:
        """Set the flag ``name`` from text, marking it as given."""
        entry = self._formal.get(name)
        if entry is None:
            raise FlagParseError(f"no such flag -{name}")
        entry.value.set(value)
        self._actual[name] = entry

    def parse(self, arguments: Iterable[str] | None) -> None:
        """Parse flags from ``arguments``; what follows them is kept in ``args()``."""
        self.parsed = True
        self._args = list(arguments or [])
        while self._parse_one():
            pass

    def _parse_one(self) -> bool:
        if not self._args:
            return False
        text = self._args[0]
        if len(text) < 2 or text[0] != "-":
            return False
        minuses = 1
        if text[1] == "-":
            minuses = 2
            if len(text) == 2:
                self._args.pop(0)
                return False
        name = text[minuses:]
        if not name or name[0] in "-=":
            raise FlagParseError(f"bad flag syntax: {text}")
        self._args.pop(0)

        has_value = False
        value = ""
        if "=" in name[1:]:
            index = name.index("=", 1)
            name, value, has_value = name[:index], name[index + 1:], True

        entry = self._formal.get(name)
        if entry is None:
            if name in ("help", "h"):
                raise FlagParseError("flag: help requested")
            raise FlagParseError(f"flag provided but not defined: -{name}")

        if _is_bool_value(entry.value):
            if has_value:
                try:
                    entry.value.set(value)
                except Exception as err:
                    raise FlagParseError(
                        f"invalid boolean value {_quote(value)} for -{name}: {err}"
                    ) from err
            else:
                try:
                    entry.value.set("true")
                except Exception as err:
                    raise FlagParseError(f"invalid boolean flag {name}: {err}") from err
        else:
            if not has_value and self._args:
                value, has_value = self._args.pop(0), True
            if not has_value:
                raise FlagParseError(f"flag needs an argument: -{name}")
            try:
                entry.value.set(value)
            except Exception as err:
                raise FlagParseError(
                    f"invalid value {_quote(value)} for flag -{name}: {err}"
                ) from err
        self._actual[name] = entry
        return True

    def visit(self, fn: Callable[[_FlagEntry], Any]) -> None:
        """Call ``fn`` for every flag that has been given, in name order."""
        for name in sorted(self._actual):
            fn(self._actual[name])

    def args(self) -> list[str]:
        """Return the arguments left after the flags."""
        return list(self._args)


@dataclass
class ExtFlag:
    """A flag made from one already registered in another flag set."""

    entry: _FlagEntry

    def apply(self, flag_set: FlagSet) -> None:
        flag_set.var(self.entry.value, self.entry.name, self.entry.usage)

    def names(self) -> list[str]:
        return [self.entry.name]

    def is_set(self) -> bool:
        return False

    def is_visible(self) -> bool:
        return True

    def takes_value(self) -> bool:
        return False

    def get_usage(self) -> str:
        return self.entry.usage

    def get_value(self) -> str:
        return str(self.entry.value)

    def get_default_text(self) -> str:
        return self.entry.default

    def get_env_vars(self) -> list[str]:
        return []

    def __str__(self) -> str:
        return stringify_flag(self)


def flag_set(name: str, flags: Iterable[Any]) -> FlagSet:
    """Create a flag set called ``name`` with every flag applied to it."""
    result = FlagSet(name)
    for flag in flags:
        flag.apply(result)
    return result


def _copy_flag(name: str, entry: _FlagEntry, target: FlagSet) -> None:
    serialize = getattr(entry.value, "serialize", None)
    text = serialize() if callable(serialize) else str(entry.value)
    try:
        target.set(name, text)
    except Exception:
        pass


def normalize_flags(flags: Iterable[Any], flag_set: FlagSet) -> None:
    """Copy the value of whichever name of a flag was given to its other names."""
    visited: set[str] = set()
    flag_set.visit(lambda entry: visited.add(entry.name))
    for flag in flags:
        parts = flag.names()
        if len(parts) == 1:
            continue
        found: _FlagEntry | None = None
        for name in (part.strip(" ") for part in parts):
            if name in visited:
                if found is not None:
                    raise FlagParseError(
                        f"Cannot use two forms of the same flag: {name} {found.name}"
                    )
                found = flag_set.lookup(name)
        if found is None:
            continue
        for name in (part.strip(" ") for part in parts):
            if name not in visited:
                _copy_flag(name, found, flag_set)


def visible_flags(flags: Iterable[Any]) -> list[Any]:
    """Return the flags that are not hidden."""
    return [f for f in flags if callable(getattr(f, "is_visible", None)) and f.is_visible()]


def prefix_for(name: str) -> str:
    """Return "-" for one-letter names and "--" for longer ones."""
    dashes = 1 if len(name) == 1 else 2
    return "-" * dashes


def unquote_usage(usage: str) -> tuple[str, str]:
    """Return the back-quoted placeholder in ``usage``, if any, and the usage unquoted."""
    start = usage.find("`")
    if start != -1:
        end = usage.find("`", start + 1)
        if end != -1:
            name = usage[start + 1:end]
            return name, usage[:start] + name + usage[end + 1:]
    return "", usage


def prefixed_names(names: Sequence[str], placeholder: str) -> str:
    """Join the names with their dashes and placeholder, e.g. "--config FILE, -c FILE"."""
    prefixed = ""
    last = len(names) - 1
    for index, name in enumerate(names):
        if not name:
            continue
        prefixed += prefix_for(name) + name
        if placeholder:
            prefixed += " " + placeholder
        if index < last:
            prefixed += ", "
    return prefixed


def env_format(env_vars: Sequence[str], prefix: str, sep: str, suffix: str) -> str:
    """Describe environment variables, e.g. " [$A, $B]"; empty if there are none."""
    if env_vars:
        return f" [{prefix}{sep.join(env_vars)}{suffix}]"
    return ""


def with_env_hint(env_vars: Sequence[str], text: str) -> str:
    """Append the environment variables to ``text`` in the platform's notation."""
    if sys.platform != "win32" or os.environ.get("PSHOME", ""):
        return text + env_format(env_vars, "$", ", $", "")
    return text + env_format(env_vars, "%", "%, %", "%")


def flag_names(name: str, aliases: Iterable[str] | None) -> list[str]:
    """Return the name and aliases, each cut at its first comma or space."""
    return [_COMMA_WHITESPACE.sub("", part) for part in [name, *(aliases or [])]]


def with_file_hint(file_path: str, text: str) -> str:
    """Append the file path in brackets to ``text`` when there is one."""
    return text + (f" [{file_path}]" if file_path else "")


def format_default(text: str) -> str:
    return f" (default: {text})"


_DOC_METHODS = ("get_usage", "takes_value", "get_default_text", "names", "get_env_vars")


def stringify_flag(flag: Any) -> str:
    """Describe a flag for help output; empty for flags that cannot document themselves."""
    if not all(callable(getattr(flag, method, None)) for method in _DOC_METHODS):
        return ""
    placeholder, usage = unquote_usage(flag.get_usage())
    if flag.takes_value() and not placeholder:
        placeholder = DEFAULT_PLACEHOLDER

    default_text = flag.get_default_text()
    default_part = format_default(default_text) if default_text else ""
    usage_with_default = (usage + default_part).strip()

    names = prefixed_names(flag.names(), placeholder)
    multi = getattr(flag, "is_multi_value_flag", None)
    if callable(multi) and multi():
        names = f"{names} [ {names} ]"

    return with_env_hint(flag.get_env_vars(), f"{names}\t{usage_with_default}")


def has_flag(flags: Iterable[Any], flag: Any) -> bool:
    """Return whether this very flag object is among ``flags``."""
    return any(existing is flag for existing in flags)


def flag_from_env_or_file(
    env_vars: Iterable[str] | None, file_paths: Sequence[str] | None
) -> tuple[str, str] | None:
    """Return the first value found and where it came from, or None.

    Environment variables are tried first, then the files in order.
    """
    for env_var in env_vars or []:
        env_var = env_var.strip()
        if env_var in os.environ:
            return os.environ[env_var], f"environment variable {_quote(env_var)}"
    paths = list(file_paths or [])
    for path in paths:
        if not path:
            continue
        try:
            with open(path, encoding="utf-8", errors="surrogateescape") as handle:
                data = handle.read()
        except OSError:
            continue
        return data, f"file [{' '.join(_quote(p) for p in paths)}]"
    return None


def split_multi_values(value: str) -> list[str]:
    """Split a multi-value text on the configured separator, unless splitting is off."""
    if settings.disable_slice_separator:
        return [value]
    return value.split(settings.slice_separator)