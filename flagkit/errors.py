"""Errors raised while handling command lines, and the default exit handling."""

from __future__ import annotations

import json
import sys
from typing import Any, Callable, Iterable, Sequence, TextIO


def _quote(text: str) -> str:
    return json.dumps(text, ensure_ascii=False)


def _is_exit_coder(err: object) -> bool:
    return isinstance(err, BaseException) and callable(getattr(err, "exit_code", None))


class MultiError(Exception):
    """An error that wraps several errors."""

    def __init__(self, *errors: BaseException) -> None:
        self._errors = list(errors)
        super().__init__(*self._errors)

    def errors(self) -> list[BaseException]:
        """Return a copy of the wrapped errors."""
        return list(self._errors)

    def __str__(self) -> str:
        return "\n".join(str(err) for err in self._errors)


class ExitError(Exception):
    """An error that carries the exit code the program should end with."""

    def __init__(self, message: Any, exit_code: int) -> None:
        self.error = message if isinstance(message, BaseException) else Exception(str(message))
        self._exit_code = exit_code
        super().__init__(str(self.error))
        if isinstance(message, BaseException):
            self.__cause__ = message

    def exit_code(self) -> int:
        return self._exit_code

    def __str__(self) -> str:
        return str(self.error)


class RequiredFlagsError(Exception):
    """Raised when required flags were not given."""

    def __init__(self, missing_flags: Iterable[str]) -> None:
        self.missing_flags = list(missing_flags)
        super().__init__(*self.missing_flags)

    def __str__(self) -> str:
        if len(self.missing_flags) == 1:
            return f"Required flag {_quote(self.missing_flags[0])} not set"
        return f"Required flags {_quote(', '.join(self.missing_flags))} not set"


class MutuallyExclusiveGroupError(Exception):
    """Raised when two flags of a mutually exclusive group are both given."""

    def __init__(self, flag1_name: str, flag2_name: str) -> None:
        self.flag1_name = flag1_name
        self.flag2_name = flag2_name
        super().__init__(flag1_name, flag2_name)

    def __str__(self) -> str:
        return f"option {self.flag1_name} cannot be set along with option {self.flag2_name}"


class MutuallyExclusiveGroupRequiredError(Exception):
    """Raised when none of the flags of a required exclusive group is given.

    ``groups`` is a sequence of groups, each a sequence of flags with ``names()``.
    """

    def __init__(self, groups: Sequence[Sequence[Any]]) -> None:
        self.groups = [list(group) for group in groups]
        super().__init__()

    def __str__(self) -> str:
        missing = []
        for group in self.groups:
            names = [name for flag in group for name in flag.names()]
            if len(self.groups) == 1:
                return str(RequiredFlagsError(names))
            missing.append(" ".join(names))
        return f"one of these flags needs to be provided: {', '.join(missing)}"


def exit(message: Any, exit_code: int) -> ExitError:
    """Wrap a message and an exit code into an error."""
    return ExitError(message, exit_code)


def handle_exit_coder(
    err: BaseException | None,
    exiter: Callable[[int], Any] | None = None,
    writer: TextIO | None = None,
) -> None:
    """Print an error carrying an exit code and call ``exiter`` with that code.

    A ``MultiError`` has each of its errors printed, and ``exiter`` is called with
    the last exit code found, or 1 if there is none. Other errors are ignored.
    """
    if err is None:
        return
    exiter = exiter if exiter is not None else sys.exit
    writer = writer if writer is not None else sys.stderr

    if _is_exit_coder(err):
        text = str(err)
        if text:
            print(text, file=writer)
        exiter(err.exit_code())  # type: ignore[attr-defined]
        return

    if isinstance(err, MultiError):
        exiter(_handle_multi_error(err, writer))


def _handle_multi_error(multi: MultiError, writer: TextIO) -> int:
    code = 1
    for err in multi.errors():
        if isinstance(err, MultiError):
            code = _handle_multi_error(err, writer)
        elif err is not None:
            print(err, file=writer)
            if _is_exit_coder(err):
                code = err.exit_code()  # type: ignore[attr-defined]
    return code