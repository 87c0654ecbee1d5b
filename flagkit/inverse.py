"""A boolean flag paired with a negated form, such as ``--env`` and ``--no-env``."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from flagkit.base import BoolFlag
from flagkit.flags import FlagSet, flag_names
from flagkit.values import BoolConfig, BoolValue

DEFAULT_INVERSE_BOOL_PREFIX = "no-"


@dataclass(eq=False)
class BoolWithInverseFlag:
    """A boolean flag that can also be switched off with a prefixed name.

    With ``bool_flag`` named "env", both ``--env`` and ``--no-env`` are
    accepted, and ``is_set()`` tells whether either of them was given.
    """

    bool_flag: BoolFlag
    inverse_prefix: str = ""

    _positive: BoolFlag | None = field(default=None, init=False, repr=False)
    _negative: BoolFlag | None = field(default=None, init=False, repr=False)
    _pos_dest: BoolValue | None = field(default=None, init=False, repr=False)
    _neg_dest: BoolValue | None = field(default=None, init=False, repr=False)

    def _prefix(self) -> str:
        return self.inverse_prefix or DEFAULT_INVERSE_BOOL_PREFIX

    def _inverse_name(self) -> str:
        if not self.inverse_prefix:
            self.inverse_prefix = DEFAULT_INVERSE_BOOL_PREFIX
        return self.inverse_prefix + self.bool_flag.name

    def _inverse_aliases(self) -> list[str]:
        prefix = self._prefix()
        return [prefix + alias for alias in self.bool_flag.aliases]

    def _initialize(self) -> None:
        child = self.bool_flag
        self._neg_dest = BoolValue()
        if child.destination is not None:
            self._pos_dest = child.destination
        else:
            self._pos_dest = BoolValue()
        if child.config is None:
            child.config = BoolConfig()

        child.destination = self._pos_dest
        self._positive = child

        negative = BoolFlag(
            name=self._inverse_name(),
            category=child.category,
            default_text=child.default_text,
            file_paths=list(child.file_paths),
            usage=child.usage,
            required=child.required,
            hidden=child.hidden,
            persistent=child.persistent,
            value=child.value,
            destination=self._neg_dest,
            aliases=self._inverse_aliases(),
            takes_file=child.takes_file,
            only_once=child.only_once,
        )
        prefix = self.inverse_prefix.upper()
        negative.env_vars = [prefix + env_var for env_var in child.env_vars]
        self._negative = negative

    def flags(self) -> list[BoolFlag]:
        """The positive and the negative flag."""
        if self._positive is None:
            self._initialize()
        return [self._positive, self._negative]  # type: ignore[list-item]

    def is_set(self) -> bool:
        """Whether either form was given on the command line, in the environment or a file."""
        if self._positive is None or self._negative is None:
            return self.bool_flag.is_set()
        return (
            self._positive.config.count > 0
            or self._positive.is_set()
            or self._negative.is_set()
        )

    def value(self) -> bool:
        """The resulting value of the positive flag."""
        if self._pos_dest is None:
            return False
        return self._pos_dest.value

    def run_action(self, flag_set: FlagSet) -> Any:
        """Resolve the negative form into the positive one, then run the action."""
        if self._positive is None or self._negative is None:
            self._initialize()
        assert self._pos_dest is not None and self._neg_dest is not None
        if self._neg_dest.value and self._pos_dest.value:
            raise ValueError(
                f"cannot set both flags `--{self._positive.name}` and `--{self._negative.name}`"
            )
        if self._neg_dest.value:
            flag_set.set(self._positive.name, "false")
        if self.bool_flag.action is not None:
            return self.bool_flag.action(flag_set, self.value())
        return None

    def apply(self, flag_set: FlagSet) -> None:
        """Register both forms in ``flag_set``."""
        if self._positive is None:
            self._initialize()
        self._positive.apply(flag_set)  # type: ignore[union-attr]
        self._negative.apply(flag_set)  # type: ignore[union-attr]

    def names(self) -> list[str]:
        """Names of the form that was given, or of both forms."""
        if self._positive is None or self._negative is None:
            return self.bool_flag.names() + flag_names(
                self._inverse_name(), self._inverse_aliases()
            )
        if self._neg_dest is not None and self._neg_dest.value:
            return self._negative.names()
        if self._pos_dest is not None and self._pos_dest.value:
            return self._positive.names()
        return self._negative.names() + self._positive.names()

    def is_required(self) -> bool:
        return self.bool_flag.is_required()

    def is_visible(self) -> bool:
        return self.bool_flag.is_visible()

    def is_persistent(self) -> bool:
        return self.bool_flag.is_persistent()

    def get_category(self) -> str:
        return self.bool_flag.get_category()

    def get_usage(self) -> str:
        return self.bool_flag.get_usage()

    def get_env_vars(self) -> list[str]:
        return self.bool_flag.get_env_vars()

    def get_value(self) -> str:
        return self.bool_flag.get_value()

    def takes_value(self) -> bool:
        return self.bool_flag.takes_value()

    def get_default_text(self) -> str:
        return self.bool_flag.get_default_text()

    def get(self, flag_set: FlagSet) -> bool:
        return self.bool_flag.get(flag_set)

    def __str__(self) -> str:
        if self._positive is None or self._negative is None:
            return f"{self.bool_flag} || --{self._inverse_name()}"
        return f"{self._positive} || {self._negative}"