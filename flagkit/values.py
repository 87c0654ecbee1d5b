"""Typed values that turn command-line text into Python objects."""

from __future__ import annotations

import json
import math
import re
import string
from dataclasses import dataclass, field
from datetime import timedelta
from decimal import Decimal


def _quote(text: str) -> str:
    return json.dumps(text, ensure_ascii=False)


@dataclass
class NoConfig:
    """Configuration for value types that need none."""


@dataclass
class BoolConfig:
    """Configuration for booleans; ``count`` tracks how often a value was set.

    A config shared between values shares its counter.
    """

    count: int = 0


@dataclass
class IntegerConfig:
    """Configuration for integers: the base used to parse them (0 detects it)."""

    base: int = 0


_TRUE = frozenset({"1", "t", "T", "TRUE", "true", "True"})
_FALSE = frozenset({"0", "f", "F", "FALSE", "false", "False"})


def parse_bool(text: str) -> bool:
    """Parse a boolean written as 1, t, true, 0, f, false and their capitals."""
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    raise ValueError(f"parsing {_quote(text)}: invalid syntax")


_UNDERSCORED = re.compile(r"(0[box]_?)?[0-9a-z]+(_[0-9a-z]+)*", re.IGNORECASE)
_ALNUM = set(string.digits + string.ascii_letters)
_PREFIX_BASES = {"b": 2, "o": 8, "x": 16}


def parse_int(text: str, base: int = 0, bits: int = 64) -> int:
    """Parse a signed integer of ``bits`` bits in ``base``.

    Base 0 takes the base from a prefix (0b, 0o, 0x, or a leading 0 for
    octal) and allows underscores between digits.
    """
    if bits == 0:
        bits = 64
    syntax = ValueError(f"parsing {_quote(text)}: invalid syntax")
    body = text
    negative = False
    if body and body[0] in "+-":
        negative = body[0] == "-"
        body = body[1:]
    if not body:
        raise syntax

    digits = body
    detect = base == 0
    if detect:
        base = 10
        if digits[0] == "0":
            if len(digits) >= 3 and digits[1].lower() in _PREFIX_BASES:
                base = _PREFIX_BASES[digits[1].lower()]
                digits = digits[2:]
            else:
                base = 8
                digits = digits[1:]
    elif not 2 <= base <= 36:
        raise ValueError(f"parsing {_quote(text)}: invalid base {base}")

    if "_" in digits:
        if not detect or not _UNDERSCORED.fullmatch(body):
            raise syntax
        digits = digits.replace("_", "")
    if any(ch not in _ALNUM or int(ch, 36) >= base for ch in digits):
        raise syntax

    magnitude = int(digits, base) if digits else 0
    result = -magnitude if negative else magnitude
    limit = 1 << (bits - 1)
    if not -limit <= result < limit:
        raise ValueError(f"parsing {_quote(text)}: value out of range")
    return result


_DECIMAL_FLOAT = re.compile(r"[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?")
_HEX_FLOAT = re.compile(r"[+-]?0[xX]([0-9a-fA-F]+\.?[0-9a-fA-F]*|\.[0-9a-fA-F]+)[pP][+-]?\d+")
_SPECIAL_FLOATS = frozenset(
    {"inf", "+inf", "-inf", "infinity", "+infinity", "-infinity", "nan", "+nan", "-nan"}
)


def _parse_float(text: str) -> float:
    if text.lower() in _SPECIAL_FLOATS:
        return float(text)
    if _DECIMAL_FLOAT.fullmatch(text):
        result = float(text)
    elif _HEX_FLOAT.fullmatch(text):
        result = float.fromhex(text)
    else:
        raise ValueError(f"parsing {_quote(text)}: invalid syntax")
    if math.isinf(result):
        raise ValueError(f"parsing {_quote(text)}: value out of range")
    return result


def format_float(value: float) -> str:
    """Format a float in its shortest form, using an exponent when it is
    below -4 or at least 6."""
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "+Inf" if value > 0 else "-Inf"
    sign = "-" if math.copysign(1.0, value) < 0 else ""
    if value == 0:
        return sign + "0"
    parts = Decimal(repr(abs(value))).as_tuple()
    raw = "".join(str(d) for d in parts.digits)
    point = len(raw) + parts.exponent
    digits = raw.rstrip("0")
    exponent = point - 1
    if exponent < -4 or exponent >= 6:
        mantissa = digits[0] + ("." + digits[1:] if len(digits) > 1 else "")
        return f"{sign}{mantissa}e{'-' if exponent < 0 else '+'}{abs(exponent):02d}"
    if point <= 0:
        return f"{sign}0.{'0' * -point}{digits}"
    if point >= len(digits):
        return sign + digits + "0" * (point - len(digits))
    return f"{sign}{digits[:point]}.{digits[point:]}"


_NANOSECOND = 1
_UNITS = {
    "ns": _NANOSECOND,
    "us": 1000,
    "\u00b5s": 1000,
    "\u03bcs": 1000,
    "ms": 1000_000,
    "s": 1000_000_000,
    "m": 60 * 1000_000_000,
    "h": 3600 * 1000_000_000,
}
_MAX_NS = (1 << 63) - 1
_COMPONENT = re.compile(r"([0-9]*)(\.([0-9]*))?([^0-9.]*)")


def parse_duration(text: str) -> timedelta:
    """Parse a duration such as "300ms", "-1.5h" or "2h45m".

    Units are ns, us (or µs), ms, s, m and h. Precision below a
    microsecond is dropped.
    """
    quoted = _quote(text)
    invalid = ValueError(f"invalid duration {quoted}")
    rest = text
    negative = False
    if rest and rest[0] in "+-":
        negative = rest[0] == "-"
        rest = rest[1:]
    if rest == "0":
        return timedelta(0)
    if not rest:
        raise invalid

    total = 0
    pos = 0
    while pos < len(rest):
        if rest[pos] not in "0123456789.":
            raise invalid
        match = _COMPONENT.match(rest, pos)
        whole, frac, unit = match.group(1), match.group(3) or "", match.group(4)
        if not whole and not frac:
            raise invalid
        if not unit:
            raise ValueError(f"missing unit in duration {quoted}")
        scale = _UNITS.get(unit)
        if scale is None:
            raise ValueError(f"unknown unit {_quote(unit)} in duration {quoted}")
        total += int(whole or "0") * scale
        if frac:
            total += int(frac) * scale // 10 ** len(frac)
        if total > 1 << 63:
            raise invalid
        pos = match.end()

    if not negative and total > _MAX_NS:
        raise invalid
    micros = total // 1000
    return timedelta(microseconds=-micros if negative else micros)


def _to_nanoseconds(value: timedelta) -> int:
    return (value.days * 86400 + value.seconds) * 1000_000_000 + value.microseconds * 1000


def _with_fraction(whole: int, frac: int, width: int) -> str:
    tail = str(frac).rjust(width, "0").rstrip("0")
    return f"{whole}.{tail}" if tail else str(whole)


def format_duration(value: timedelta) -> str:
    """Format a duration as e.g. "72h3m0.5s", "1.5ms" or "0s"."""
    nanos = _to_nanoseconds(value)
    sign = "-" if nanos < 0 else ""
    nanos = abs(nanos)
    if nanos == 0:
        return "0s"
    if nanos < 1000:
        return f"{sign}{nanos}ns"
    if nanos < 1000_000:
        return sign + _with_fraction(*divmod(nanos, 1000), 3) + "\u00b5s"
    if nanos < 1000_000_000:
        return sign + _with_fraction(*divmod(nanos, 1000_000), 6) + "ms"
    total_seconds, frac = divmod(nanos, 1000_000_000)
    total_minutes, seconds = divmod(total_seconds, 60)
    text = _with_fraction(seconds, frac, 9) + "s"
    if total_minutes > 0:
        hours, minutes = divmod(total_minutes, 60)
        text = f"{minutes}m{text}"
        if hours > 0:
            text = f"{hours}h{text}"
    return sign + text


@dataclass
class BoolValue:
    """A boolean value that counts how often it has been set."""

    value: bool = False
    config: BoolConfig = field(default_factory=BoolConfig)

    @classmethod
    def create(cls, value: bool, config: BoolConfig | None = None) -> "BoolValue":
        return cls(value=value, config=config if config is not None else BoolConfig())

    @staticmethod
    def to_string(value: bool) -> str:
        return str(bool(value)).lower()

    def set(self, text: str) -> None:
        try:
            parsed = parse_bool(text)
        except ValueError:
            raise ValueError("parse error") from None
        self.value = parsed
        self.config.count += 1

    def get(self) -> bool:
        return self.value

    def count(self) -> int:
        return self.config.count

    def __str__(self) -> str:
        return self.to_string(self.value)


@dataclass
class IntValue:
    """An integer value parsed in the configured base."""

    value: int = 0
    base: int = 0

    @classmethod
    def create(cls, value: int, config: IntegerConfig | None = None) -> "IntValue":
        return cls(value=value, base=config.base if config is not None else 0)

    @staticmethod
    def to_string(value: int) -> str:
        return str(value)

    def set(self, text: str) -> None:
        self.value = parse_int(text, self.base, 64)

    def get(self) -> int:
        return self.value

    def __str__(self) -> str:
        return str(self.value)


@dataclass
class Int64Value:
    """A 64-bit integer value; its base always comes from the text's prefix."""

    value: int = 0
    base: int = 0

    @classmethod
    def create(cls, value: int, config: IntegerConfig | None = None) -> "Int64Value":
        return cls(value=value, base=config.base if config is not None else 0)

    @staticmethod
    def to_string(value: int) -> str:
        return str(value)

    def set(self, text: str) -> None:
        self.value = parse_int(text, 0, 64)

    def get(self) -> int:
        return self.value

    def __str__(self) -> str:
        return str(self.value)


@dataclass
class Float64Value:
    """A floating-point value."""

    value: float = 0.0

    @classmethod
    def create(cls, value: float, config: NoConfig | None = None) -> "Float64Value":
        return cls(value=float(value))

    @staticmethod
    def to_string(value: float) -> str:
        return format_float(value)

    def set(self, text: str) -> None:
        self.value = _parse_float(text)

    def get(self) -> float:
        return self.value

    def __str__(self) -> str:
        return format_float(self.value)


@dataclass
class DurationValue:
    """A duration value held as a ``timedelta``."""

    value: timedelta = field(default_factory=timedelta)

    @classmethod
    def create(cls, value: timedelta, config: NoConfig | None = None) -> "DurationValue":
        return cls(value=value)

    @staticmethod
    def to_string(value: timedelta) -> str:
        return format_duration(value)

    def set(self, text: str) -> None:
        self.value = parse_duration(text)

    def get(self) -> timedelta:
        return self.value

    def __str__(self) -> str:
        return format_duration(self.value)