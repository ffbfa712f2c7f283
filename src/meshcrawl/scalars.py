"""Storage kinds for mesh leaf arrays and their numeric primitives."""

from __future__ import annotations

import math
import numbers
from dataclasses import dataclass
from enum import Enum
from typing import Final

import numpy as np

from .errors import MeshUnsupportedError


@dataclass(frozen=True)
class _KindInfo:
    dtype: np.dtype
    bits: int
    numeric: bool
    integer: bool
    signed: bool = True


class ScalarKind(str, Enum):
    DOUBLE = "double"
    FLOAT = "float"
    LONG = "long"
    INT = "int"
    SHORT = "short"
    BYTE = "byte"
    CHAR = "char"
    BOOLEAN = "boolean"
    OBJECT = "object"

    @property
    def dtype(self) -> np.dtype:
        return _INFO[self].dtype

    @property
    def bits(self) -> int:
        return _INFO[self].bits

    @property
    def is_numeric(self) -> bool:
        return _INFO[self].numeric

    @property
    def is_integer(self) -> bool:
        return _INFO[self].integer

    @property
    def is_floating(self) -> bool:
        return _INFO[self].numeric and not _INFO[self].integer

    @property
    def element_type(self) -> type:
        if self is ScalarKind.CHAR:
            return str
        if self is ScalarKind.BOOLEAN:
            return bool
        if self is ScalarKind.OBJECT:
            return object
        return self.dtype.type

    @property
    def zero(self):
        if self is ScalarKind.OBJECT:
            return None
        if self is ScalarKind.CHAR:
            return "\x00"
        if self is ScalarKind.BOOLEAN:
            return False
        return self.dtype.type(0)

    # -- conversions between stored cells and element values --------------

    def from_cell(self, raw):
        if self is ScalarKind.BOOLEAN:
            return bool(raw)
        if self is ScalarKind.CHAR:
            return chr(int(raw))
        return raw

    def to_cell(self, value):
        if self is ScalarKind.BOOLEAN:
            return bool(value)
        if self is ScalarKind.CHAR:
            if isinstance(value, str):
                if len(value) != 1:
                    raise ValueError(f"char cell needs exactly one character, got {value!r}")
                return ord(value)
            return int(value)
        return value

    def parse(self, text: str):
        cleaned = text.strip()
        if self is ScalarKind.OBJECT:
            return text
        if self is ScalarKind.CHAR:
            if len(cleaned) == 3 and cleaned[0] == cleaned[-1] == "'":
                cleaned = cleaned[1]
            if len(cleaned) != 1:
                raise ValueError(f"Not a single character: {text!r}")
            return cleaned
        if self is ScalarKind.BOOLEAN:
            return parse_boolean(cleaned)
        if self.is_integer:
            return self.cast(int(cleaned))
        return self.cast(float(cleaned))

    # -- numeric primitives ------------------------------------------------

    def value_of(self, x) -> float:
        """The double-precision value of a number, as used for scaling."""
        return float(x)

    def cast(self, x):
        info = _INFO[self]
        if self is ScalarKind.OBJECT:
            return x
        if self is ScalarKind.BOOLEAN:
            return bool(x)
        if not info.integer:
            with np.errstate(over="ignore"):
                return info.dtype.type(float(x))
        if is_integral(x):
            value = int(x)
        else:
            value = _saturating_trunc(float(x), 64 if self is ScalarKind.LONG else 32)
        return info.dtype.type(_wrap(value, info.bits, info.signed))

    def sum(self, a, b):
        if is_integral(a) and is_integral(b):
            return self.cast(int(a) + int(b))
        return self.cast(float(a) + float(b))

    def difference(self, a, b):
        if is_integral(a) and is_integral(b):
            return self.cast(int(a) - int(b))
        return self.cast(float(a) - float(b))

    def product(self, a, b):
        self._require_integer("product")
        if is_integral(a) and is_integral(b):
            return self.cast(int(a) * int(b))
        return self.cast(float(a) * float(b))

    def ratio(self, a, b):
        self._require_integer("ratio")
        if is_integral(a) and is_integral(b):
            num, den = int(a), int(b)
            quotient = abs(num) // abs(den)
            return self.cast(quotient if (num < 0) == (den < 0) else -quotient)
        return self.cast(float(a) / float(b))

    def bitwise_and(self, a, b):
        self._require_integer("bitwise AND")
        return self.cast(_as_long(a) & _as_long(b))

    def bitwise_or(self, a, b):
        self._require_integer("bitwise OR")
        return self.cast(_as_long(a) | _as_long(b))

    def bitwise_xor(self, a, b):
        self._require_integer("bitwise XOR")
        return self.cast(_as_long(a) ^ _as_long(b))

    def bitwise_nand(self, a, b):
        self._require_integer("bitwise NAND")
        return self.cast(~(_as_long(a) & _as_long(b)))

    def bitwise_not(self, a):
        self._require_integer("bitwise NOT")
        return self.cast(~_as_long(a))

    def _require_integer(self, what: str) -> None:
        if not _INFO[self].integer:
            raise MeshUnsupportedError(f"{what} is only defined for integer kinds, not {self.value}")

    # -- dispatch ----------------------------------------------------------

    @classmethod
    def for_array(cls, array: object) -> "ScalarKind":
        """Pick the leaf kind of a linear storage array."""
        if not isinstance(array, np.ndarray) or array.ndim != 1:
            raise MeshUnsupportedError(f"Not a linear storage array: {type(array).__name__}")
        for kind in _LEAF_DISPATCH_ORDER:
            if array.dtype == _INFO[kind].dtype:
                return kind
        raise MeshUnsupportedError(f"No leaf crawler for element type {array.dtype}")

    @classmethod
    def resolve(cls, element_type: object) -> "ScalarKind":
        if isinstance(element_type, ScalarKind):
            return element_type
        if element_type is bool:
            return cls.BOOLEAN
        if element_type is float:
            return cls.DOUBLE
        if element_type is int:
            return cls.LONG
        if isinstance(element_type, str):
            try:
                return cls(element_type)
            except ValueError:
                pass
        if isinstance(element_type, (np.dtype, str)) or (
            isinstance(element_type, type) and issubclass(element_type, np.generic)
        ):
            try:
                dtype = np.dtype(element_type)
            except TypeError as exc:
                raise MeshUnsupportedError(f"Unknown element type {element_type!r}") from exc
            for kind in _LEAF_DISPATCH_ORDER:
                if dtype == _INFO[kind].dtype:
                    return kind
            raise MeshUnsupportedError(f"Unsupported element type {dtype}")
        if isinstance(element_type, type):
            return cls.OBJECT
        raise MeshUnsupportedError(f"Unknown element type {element_type!r}")


_INFO: Final[dict[ScalarKind, _KindInfo]] = {
    ScalarKind.DOUBLE: _KindInfo(np.dtype(np.float64), 64, True, False),
    ScalarKind.FLOAT: _KindInfo(np.dtype(np.float32), 32, True, False),
    ScalarKind.LONG: _KindInfo(np.dtype(np.int64), 64, True, True),
    ScalarKind.INT: _KindInfo(np.dtype(np.int32), 32, True, True),
    ScalarKind.SHORT: _KindInfo(np.dtype(np.int16), 16, True, True),
    ScalarKind.BYTE: _KindInfo(np.dtype(np.int8), 8, True, True),
    ScalarKind.CHAR: _KindInfo(np.dtype(np.uint16), 16, False, True, signed=False),
    ScalarKind.BOOLEAN: _KindInfo(np.dtype(np.bool_), 1, False, False),
    ScalarKind.OBJECT: _KindInfo(np.dtype(object), 0, False, False),
}

# Floating kinds first, then integers, then boolean/char: the most common
# storage types are matched with the fewest comparisons.
_LEAF_DISPATCH_ORDER: Final[tuple[ScalarKind, ...]] = (
    ScalarKind.FLOAT,
    ScalarKind.DOUBLE,
    ScalarKind.INT,
    ScalarKind.LONG,
    ScalarKind.SHORT,
    ScalarKind.BYTE,
    ScalarKind.BOOLEAN,
    ScalarKind.CHAR,
    ScalarKind.OBJECT,
)

_TRUE_WORDS: Final[frozenset[str]] = frozenset({"true", "t", "yes", "y", "on", "enabled", "1"})
_FALSE_WORDS: Final[frozenset[str]] = frozenset({"false", "f", "no", "n", "off", "disabled", "0"})


def leaf_dispatch_order() -> tuple[ScalarKind, ...]:
    return _LEAF_DISPATCH_ORDER


def is_integral(x: object) -> bool:
    return isinstance(x, (numbers.Integral, np.integer, np.bool_))


def parse_boolean(text: str) -> bool:
    lowered = text.strip().casefold()
    if lowered in _TRUE_WORDS:
        return True
    if lowered in _FALSE_WORDS:
        return False
    raise ValueError(f"Not a boolean value: {text!r}")


def _wrap(value: int, bits: int, signed: bool) -> int:
    value &= (1 << bits) - 1
    if signed and value >> (bits - 1):
        value -= 1 << bits
    return value


def _saturating_trunc(value: float, bits: int) -> int:
    if math.isnan(value):
        return 0
    lo = -(1 << (bits - 1))
    hi = (1 << (bits - 1)) - 1
    if value <= lo:
        return lo
    if value >= hi:
        return hi
    return math.trunc(value)


def _as_long(x: object) -> int:
    if is_integral(x):
        return int(x)
    return _saturating_trunc(float(x), 64)
