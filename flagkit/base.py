"""Generic flags backed by typed values, and the wrapper that guards those values."""

from __future__ import annotations

import dataclasses
import json
from dataclasses import dataclass, field
from typing import Any, Callable, ClassVar

from flagkit.flags import FlagSet, flag_from_env_or_file, flag_names, stringify_flag
from flagkit.values import (
    BoolConfig,
    BoolValue,
    DurationValue,
    Float64Value,
    Int64Value,
    IntegerConfig,
    IntValue,
    NoConfig,
)

_VALUE_TYPE_NAMES: dict[type, str] = {
    BoolValue: "bool",
    IntValue: "int",
    Int64Value: "int64",
    Float64Value: "float64",
    DurationValue: "duration",
}


def _quote(text: str) -> str:
    return json.dumps(text, ensure_ascii=False)


def _value_type_name(value_type: type) -> str:
    return _VALUE_TYPE_NAMES.get(value_type, value_type.__name__)


def _rebind(target: Any, source: Any) -> None:
    """Make ``target`` hold exactly what the freshly created ``source`` holds."""
    if type(target) is not type(source):
        raise TypeError(
            f"destination must be a {type(source).__name__}, not {type(target).__name__}"
        )
    for item in dataclasses.fields(source):
        setattr(target, item.name, getattr(source, item.name))


@dataclass
class ValueWrapper:
    """Wraps a flag's value to count how often it is set and refuse duplicates."""

    value: Any
    times_set: int = 0
    only_once: bool = False

    def set(self, text: str) -> None:
        if self.times_set == 1 and self.only_once:
            raise ValueError("can't duplicate this flag")
        self.times_set += 1
        self.value.set(text)

    def get(self) -> Any:
        return self.value.get()

    def is_bool_flag(self) -> bool:
        return isinstance(self.value, BoolValue)

    def serialize(self) -> str:
        serialize = getattr(self.value, "serialize", None)
        if callable(serialize):
            return serialize()
        return str(self.value)

    def count(self) -> int:
        count = getattr(self.value, "count", None)
        if callable(count):
            return count()
        return 0

    def __str__(self) -> str:
        return "" if self.value is None else str(self.value)


@dataclass(eq=False)
class FlagBase:
    """A flag whose value is parsed by ``value_type``.

    ``destination``, when given, is a value object of ``value_type`` that the
    flag uses to hold its value, so the caller sees every update.
    """

    value_type: ClassVar[type]
    config_type: ClassVar[type] = NoConfig

    name: str = ""
    category: str = ""
    default_text: str = ""
    file_paths: list[str] = field(default_factory=list)
    usage: str = ""
    required: bool = False
    hidden: bool = False
    persistent: bool = False
    value: Any = None
    destination: Any = None
    aliases: list[str] = field(default_factory=list)
    env_vars: list[str] = field(default_factory=list)
    takes_file: bool = False
    action: Callable[[FlagSet, Any], Any] | None = None
    config: Any = None
    only_once: bool = False

    _has_been_set: bool = field(default=False, init=False, repr=False)
    _applied: bool = field(default=False, init=False, repr=False)
    _value_object: Any = field(default=None, init=False, repr=False)

    def __post_init__(self) -> None:
        if self.value is None:
            self.value = self._zero()
        if self.config is None:
            self.config = self._default_config()

    def _zero(self) -> Any:
        return self.value_type().get()

    def _default_config(self) -> Any:
        return self.config_type()

    def _create(self, value: Any) -> Any:
        return self.value_type.create(value, self.config)

    def _format(self, value: Any) -> str:
        return self.value_type.to_string(value)

    def _type_name(self) -> str:
        return _value_type_name(self.value_type)

    def _is_bool(self) -> bool:
        return type(self._zero()) is bool

    def _is_string(self) -> bool:
        return isinstance(self._zero(), str)

    def apply(self, flag_set: FlagSet) -> None:
        """Register the flag under all its names, taking its value from the
        environment or a file when one is found."""
        if not self._applied or not self.persistent:
            new_value = self.value
            found = flag_from_env_or_file(self.env_vars, self.file_paths)
            if found is not None:
                text, source = found
                temporary = self._create(self.value)
                if text == "" and not self._is_string():
                    if self._is_bool():
                        text = "false"
                        self._set_from_source(temporary, text, source)
                else:
                    self._set_from_source(temporary, text, source)
                new_value = temporary.get()
                self._has_been_set = True

            created = self._create(new_value)
            if self.destination is None:
                self._value_object = created
            else:
                _rebind(self.destination, created)
                self._value_object = self.destination

        wrapper = ValueWrapper(self._value_object, only_once=self.only_once)
        for name in self.names():
            flag_set.var(wrapper, name, self.usage)
        self._applied = True

    def _set_from_source(self, temporary: Any, text: str, source: str) -> None:
        try:
            temporary.set(text)
        except ValueError as err:
            raise ValueError(
                f"could not parse {_quote(text)} as {self._type_name()} value "
                f"from {source} for flag {self.name}: {err}"
            ) from err

    def names(self) -> list[str]:
        return flag_names(self.name, self.aliases)

    def is_set(self) -> bool:
        """Whether the value came from the environment or a file."""
        return self._has_been_set

    def is_required(self) -> bool:
        return self.required

    def is_visible(self) -> bool:
        return not self.hidden

    def get_category(self) -> str:
        return self.category

    def get_usage(self) -> str:
        return self.usage

    def get_env_vars(self) -> list[str]:
        return list(self.env_vars)

    def get_value(self) -> str:
        """The default value as text; empty for boolean flags."""
        if self._is_bool():
            return ""
        return str(self._create(self.value))

    def takes_value(self) -> bool:
        return not self._is_bool()

    def get_default_text(self) -> str:
        if self.default_text:
            return self.default_text
        return self._format(self.value)

    def get(self, flag_set: FlagSet) -> Any:
        """The flag's value in ``flag_set``, or the type's zero value."""
        zero = self._zero()
        entry = flag_set.lookup(self.name)
        if entry is not None:
            result = entry.value.get()
            if type(result) is type(zero):
                return result
        return zero

    def run_action(self, flag_set: FlagSet) -> Any:
        if self.action is not None:
            return self.action(flag_set, self.get(flag_set))
        return None

    def is_multi_value_flag(self) -> bool:
        return isinstance(self._zero(), (list, dict))

    def is_persistent(self) -> bool:
        return self.persistent

    def __str__(self) -> str:
        return stringify_flag(self)


@dataclass(eq=False)
class BoolFlag(FlagBase):
    """A flag that is true when given, and counts how often it was given."""

    value_type = BoolValue
    config_type = BoolConfig


@dataclass(eq=False)
class IntFlag(FlagBase):
    """An integer flag parsed in the configured base."""

    value_type = IntValue
    config_type = IntegerConfig


@dataclass(eq=False)
class Int64Flag(FlagBase):
    """A 64-bit integer flag."""

    value_type = Int64Value
    config_type = IntegerConfig


@dataclass(eq=False)
class Float64Flag(FlagBase):
    """A floating-point flag."""

    value_type = Float64Value


@dataclass(eq=False)
class DurationFlag(FlagBase):
    """A duration flag such as "1h30m"."""

    value_type = DurationValue