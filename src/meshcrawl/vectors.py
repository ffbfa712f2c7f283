"""Vector-space element types for additive and linear meshes.

Elements are mutable: mesh arithmetic updates each cell in place through the
element's own methods rather than replacing it.
"""

from __future__ import annotations

import math
import numbers
from typing import Protocol, runtime_checkable


@runtime_checkable
class Additive(Protocol):
    def add(self, other) -> None: ...

    def subtract(self, other) -> None: ...

    def set_sum(self, a, b) -> None: ...

    def set_difference(self, a, b) -> None: ...


@runtime_checkable
class Linear(Additive, Protocol):
    def scale(self, factor: float) -> None: ...

    def add_scaled(self, other, factor: float) -> None: ...

    def is_null(self) -> bool: ...

    def zero(self) -> None: ...


def _components(value) -> tuple[float, float]:
    if isinstance(value, Vector2D):
        return value.x, value.y
    if isinstance(value, numbers.Complex):
        value = complex(value)
        return value.real, value.imag
    raise TypeError(f"Cannot combine a vector with {type(value).__name__}")


class Vector2D:
    __slots__ = ("x", "y")

    def __init__(self, x: float = 0.0, y: float = 0.0) -> None:
        self.x = float(x)
        self.y = float(y)

    def copy(self) -> "Vector2D":
        return type(self)(self.x, self.y)

    def set(self, x: float, y: float) -> None:
        self.x = float(x)
        self.y = float(y)

    def add(self, other) -> None:
        dx, dy = _components(other)
        self.x += dx
        self.y += dy

    def subtract(self, other) -> None:
        dx, dy = _components(other)
        self.x -= dx
        self.y -= dy

    def set_sum(self, a, b) -> None:
        ax, ay = _components(a)
        bx, by = _components(b)
        self.x = ax + bx
        self.y = ay + by

    def set_difference(self, a, b) -> None:
        ax, ay = _components(a)
        bx, by = _components(b)
        self.x = ax - bx
        self.y = ay - by

    def scale(self, factor: float) -> None:
        self.x *= factor
        self.y *= factor

    def add_scaled(self, other, factor: float) -> None:
        dx, dy = _components(other)
        self.x += factor * dx
        self.y += factor * dy

    def is_null(self) -> bool:
        return self.x == 0.0 and self.y == 0.0

    def zero(self) -> None:
        self.x = 0.0
        self.y = 0.0

    def add_x(self, value: float) -> None:
        self.x += value

    def add_y(self, value: float) -> None:
        self.y += value

    def subtract_x(self, value: float) -> None:
        self.x -= value

    def subtract_y(self, value: float) -> None:
        self.y -= value

    def length(self) -> float:
        return math.hypot(self.x, self.y)

    @classmethod
    def parse(cls, text: str) -> "Vector2D":
        cleaned = text.strip()
        if cleaned.startswith("(") and cleaned.endswith(")"):
            cleaned = cleaned[1:-1]
        parts = cleaned.replace(";", ",").split(",")
        if len(parts) != 2:
            raise ValueError(f"Not a 2D vector: {text!r}")
        return cls(float(parts[0]), float(parts[1]))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Vector2D):
            return NotImplemented
        return self.x == other.x and self.y == other.y

    __hash__ = None

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.x!r}, {self.y!r})"

    def __str__(self) -> str:
        return f"({self.x!r};{self.y!r})"


class Complex(Vector2D):
    """Mutable complex number stored as a (re, im) vector."""

    __slots__ = ()

    @property
    def re(self) -> float:
        return self.x

    @re.setter
    def re(self, value: float) -> None:
        self.x = float(value)

    @property
    def im(self) -> float:
        return self.y

    @im.setter
    def im(self, value: float) -> None:
        self.y = float(value)

    def conjugate(self) -> None:
        self.y = -self.y

    def multiply_by(self, z) -> None:
        zr, zi = _components(z)
        self.x, self.y = self.x * zr - self.y * zi, self.x * zi + self.y * zr

    def set_product(self, a, b) -> None:
        ar, ai = _components(a)
        br, bi = _components(b)
        self.x, self.y = ar * br - ai * bi, ar * bi + ai * br

    def divide_by(self, z) -> None:
        zr, zi = _components(z)
        norm = zr * zr + zi * zi
        if norm == 0.0:
            raise ZeroDivisionError("complex division by zero")
        self.x, self.y = (self.x * zr + self.y * zi) / norm, (self.y * zr - self.x * zi) / norm

    def abs(self) -> float:
        return self.length()

    def __abs__(self) -> float:
        return self.length()

    def __complex__(self) -> complex:
        return complex(self.x, self.y)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, numbers.Complex) and not isinstance(other, Vector2D):
            return complex(self.x, self.y) == complex(other)
        return super().__eq__(other)

    __hash__ = None

    @classmethod
    def parse(cls, text: str) -> "Complex":
        """Parse ``re``, ``re+imi``, ``imi`` or ``i`` (``j`` is accepted for ``i``)."""
        cleaned = text.strip().replace(" ", "")
        if not cleaned:
            raise ValueError("Empty complex value")
        try:
            return cls(float(cleaned), 0.0)
        except ValueError:
            pass
        if cleaned[-1] not in "iIjJ":
            raise ValueError(f"Not a complex value: {text!r}")
        value = complex(cleaned[:-1] + "j")
        return cls(value.real, value.imag)

    def __str__(self) -> str:
        return f"{self.x!r}{'' if self.y < 0 else '+'}{self.y!r}i"
