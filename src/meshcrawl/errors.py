"""Structured error types for mesh storage, traversal and arithmetic."""

from __future__ import annotations

from dataclasses import dataclass


class MeshError(Exception):
    """Base class for structured meshcrawl errors."""


class MeshShapeError(MeshError, ValueError):
    """Operand shapes do not conform, or data is not rectangular."""


class MeshIndexError(MeshError, IndexError):
    """Index or crawler range falls outside the mesh extent."""


class MeshExhaustedError(MeshError):
    """Crawler was advanced or read past the end of its range."""


class MeshUnsupportedError(MeshError, TypeError):
    """Storage array has a scalar type no leaf crawler handles."""


class MeshAllocationError(MeshError):
    """Storage for the requested element type and shape cannot be created."""


@dataclass(frozen=True)
class MeshParseError(MeshError):
    """Malformed mesh literal text, with the offending character span."""

    message: str
    start: int
    end: int
    expected: tuple[str, ...] = ()
    found: str | None = None

    def __str__(self) -> str:
        expected = ""
        if self.expected:
            expected = f"; expected {', '.join(self.expected)}"
        found = ""
        if self.found is not None:
            found = f"; found {self.found}"
        return f"{self.message} at span [{self.start}, {self.end}){expected}{found}"


def non_conforming(what: str, expected: tuple[int, ...], actual: tuple[int, ...]) -> MeshShapeError:
    return MeshShapeError(f"cannot {what} mesh of different size/shape: expected {expected}, got {actual}")
