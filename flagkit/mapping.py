"""Flags whose value is a mapping of keys to typed values, given as key=value."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

from flagkit.base import FlagBase, _value_type_name
from flagkit.flags import SERIALIZED_PREFIX, settings, split_multi_values


def _quote(text: str) -> str:
    return json.dumps(text, ensure_ascii=False)


@dataclass
class _MapConfig:
    element_type: type
    element_config: Any = None


@dataclass
class MapValue:
    """A mapping from strings to values parsed by ``element_type``."""

    element_type: type
    mapping: dict[str, Any] = field(default_factory=dict)
    element: Any = None
    has_been_set: bool = False

    def __post_init__(self) -> None:
        if self.element is None:
            self.element = self.element_type()

    @classmethod
    def create(cls, value: dict[str, Any] | None, config: _MapConfig) -> "MapValue":
        element_type = config.element_type
        element = element_type.create(element_type().get(), config.element_config)
        return cls(element_type=element_type, mapping=dict(value or {}), element=element)

    def set(self, text: str) -> None:
        """Add key=value items; the first call replaces the defaults."""
        if not self.has_been_set:
            self.mapping = {}
            self.has_been_set = True

        if text.startswith(SERIALIZED_PREFIX):
            self._restore(text[len(SERIALIZED_PREFIX):])
            return

        separator = settings.map_key_value_separator
        for item in split_multi_values(text):
            key, found, raw = item.partition(separator)
            if not found:
                raise ValueError(f"item {_quote(item)} is missing separator {_quote(separator)}")
            self.element.set(raw)
            self.mapping[key] = self.element.get()

    def _restore(self, payload: str) -> None:
        try:
            decoded = json.loads(payload)
        except ValueError:
            # A malformed copy leaves the mapping as it is.
            return
        if not isinstance(decoded, dict):
            return
        for key, raw in decoded.items():
            self.element.set(str(raw))
            self.mapping[key] = self.element.get()

    def get(self) -> dict[str, Any]:
        return self.mapping

    def value(self) -> dict[str, Any]:
        return self.mapping if self.mapping is not None else {}

    def serialize(self) -> str:
        """Encode the mapping so that ``set`` on another value restores it exactly."""
        payload = {
            key: str(self.element_type.create(item, None)) for key, item in self.value().items()
        }
        return SERIALIZED_PREFIX + json.dumps(payload)

    def to_string(self, mapping: dict[str, Any] | None) -> str:
        """Describe a mapping as "k1=v1, k2=v2" in key order."""
        mapping = mapping or {}
        separator = settings.map_key_value_separator
        return ", ".join(
            key + separator + self.element_type.to_string(mapping[key]) for key in sorted(mapping)
        )

    def __str__(self) -> str:
        mapping = self.value()
        if isinstance(self.element_type().get(), str):
            return "map[" + " ".join(f"{key}:{mapping[key]}" for key in sorted(mapping)) + "]"
        return f"map[string]{_value_type_name(self.element_type)}{{{self.to_string(mapping)}}}"


@dataclass(eq=False, kw_only=True)
class MapFlag(FlagBase):
    """A flag taking key=value items whose values ``element_type`` parses.

    ``config`` is the configuration of the element values.
    """

    value_type = MapValue

    element_type: type

    def _zero(self) -> Any:
        return {}

    def _default_config(self) -> Any:
        return None

    def _create(self, value: Any) -> MapValue:
        return MapValue.create(value, _MapConfig(self.element_type, self.config))

    def _format(self, value: Any) -> str:
        return MapValue(element_type=self.element_type).to_string(value)

    def _type_name(self) -> str:
        return f"map[string]{_value_type_name(self.element_type)}"


def new_map(value_cls: type, defaults: dict[str, Any] | None) -> MapValue:
    """Make a mapping value holding ``defaults`` until it is first set."""
    return MapValue(element_type=value_cls, mapping=dict(defaults or {}))