"""
Structured values decoded from property lists and JSON.

Plist and JSON trees are arbitrary nesting of strings, numbers, booleans,
arrays, dictionaries, dates and data. ``StructuredValue`` wraps one node and
offers typed accessors that return ``None`` on a type mismatch, so callers can
tell apart a missing key (``StructuredValue.missing()``), a key of the wrong
type (accessor returns ``None``) and a usable value.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional


class ValueKind(Enum):
    MISSING = "missing"
    NULL = "null"
    STRING = "string"
    NUMBER = "number"
    BOOL = "bool"
    ARRAY = "array"
    MAP = "map"
    DATE = "date"
    DATA = "data"


def _kind_of(raw: Any) -> ValueKind:
    # bool before int: bool is an int subclass
    if raw is None:
        return ValueKind.NULL
    if isinstance(raw, bool):
        return ValueKind.BOOL
    if isinstance(raw, (int, float)):
        return ValueKind.NUMBER
    if isinstance(raw, str):
        return ValueKind.STRING
    if isinstance(raw, (list, tuple)):
        return ValueKind.ARRAY
    if isinstance(raw, dict):
        return ValueKind.MAP
    if isinstance(raw, datetime):
        return ValueKind.DATE
    if isinstance(raw, (bytes, bytearray)):
        return ValueKind.DATA
    raise TypeError(f"Unsupported structured value type: {type(raw).__name__}")


class StructuredValue:
    """A single node of a decoded plist/JSON tree"""

    __slots__ = ('_kind', '_raw')

    def __init__(self, raw: Any = None, kind: Optional[ValueKind] = None):
        self._kind = kind or _kind_of(raw)
        self._raw = raw

    @classmethod
    def missing(cls) -> StructuredValue:
        return cls(None, ValueKind.MISSING)

    @property
    def kind(self) -> ValueKind:
        return self._kind

    @property
    def raw(self) -> Any:
        return self._raw

    @property
    def is_missing(self) -> bool:
        return self._kind is ValueKind.MISSING

    @property
    def is_present(self) -> bool:
        return self._kind is not ValueKind.MISSING

    def as_string(self) -> Optional[str]:
        return self._raw if self._kind is ValueKind.STRING else None

    def as_number(self) -> Optional[float]:
        return self._raw if self._kind is ValueKind.NUMBER else None

    def as_bool(self) -> Optional[bool]:
        return self._raw if self._kind is ValueKind.BOOL else None

    def as_array(self) -> Optional[List[Any]]:
        return list(self._raw) if self._kind is ValueKind.ARRAY else None

    def as_dict(self) -> Optional[Dict[str, Any]]:
        return dict(self._raw) if self._kind is ValueKind.MAP else None

    def get(self, key: str) -> StructuredValue:
        """Child lookup; anything but a present key of a map is missing"""
        if self._kind is ValueKind.MAP and key in self._raw:
            return StructuredValue(self._raw[key])
        return StructuredValue.missing()

    def items(self) -> Iterator[StructuredValue]:
        if self._kind is ValueKind.ARRAY:
            for item in self._raw:
                yield StructuredValue(item)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, StructuredValue):
            return NotImplemented
        return self._kind is other._kind and self._raw == other._raw

    def __hash__(self) -> int:
        return hash((self._kind, repr(self._raw)))

    def __bool__(self) -> bool:
        return self.is_present

    def __repr__(self) -> str:
        if self.is_missing:
            return "StructuredValue.missing()"
        return f"StructuredValue({self._raw!r})"
