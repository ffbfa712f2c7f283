"""Position-tracking cursors over nested mesh storage.

A crawler walks every cell of a (possibly range-restricted) block of storage
in row-major order: the last dimension varies fastest. Rank-1 storage is
walked by an :class:`ArrayCrawler`, which resolves the scalar kind of its
linear array once, at construction. Higher ranks use a :class:`NestedCrawler`,
which keeps one cursor per outer dimension in flat, depth-indexed lists and
owns a single leaf :class:`ArrayCrawler` for the innermost dimension.

Typical use::

    crawler = mesh.crawler()
    while crawler.has_next():
        value = crawler.advance()
        crawler.set_current(value * 2)
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import MutableSequence, Sequence

import numpy as np

from .errors import MeshExhaustedError, MeshIndexError
from .scalars import ScalarKind
from .storage import shape_of


class MeshCrawler(ABC):
    """Common protocol of leaf and nested crawlers."""

    @property
    @abstractmethod
    def rank(self) -> int: ...

    @property
    @abstractmethod
    def kind(self) -> ScalarKind: ...

    @abstractmethod
    def reset(self) -> None: ...

    @abstractmethod
    def has_next(self) -> bool: ...

    @abstractmethod
    def advance(self):
        """Move to the next cell and return its element."""

    @abstractmethod
    def current(self): ...

    @abstractmethod
    def set_current(self, value) -> None: ...

    @abstractmethod
    def position(self, out: MutableSequence[int] | np.ndarray | None = None): ...

    @abstractmethod
    def set_position(self, index: Sequence[int]) -> None: ...

    def set_next(self, value) -> None:
        self.advance()
        self.set_current(value)

    def __iter__(self) -> "MeshCrawler":
        return self

    def __next__(self):
        if not self.has_next():
            raise StopIteration
        return self.advance()

    @staticmethod
    def create_for(
        data: object,
        from_: Sequence[int] | None = None,
        to: Sequence[int] | None = None,
    ) -> "MeshCrawler":
        """Build a crawler over ``data``, restricted to ``[from_, to)`` when given."""
        if from_ is None or to is None:
            shape = shape_of(data)
            from_ = (0,) * len(shape) if from_ is None else from_
            to = shape if to is None else to
        lo = tuple(int(i) for i in from_)
        hi = tuple(int(i) for i in to)
        if len(lo) != len(hi):
            raise MeshIndexError(f"Crawler bounds have different ranks: {lo} vs {hi}")
        if not lo:
            raise MeshIndexError("Crawler bounds must cover at least one dimension")
        if len(lo) == 1:
            if not isinstance(data, np.ndarray):
                raise MeshIndexError("Crawler bounds are lower rank than the array")
            return ArrayCrawler(data, lo[0], hi[0])
        return NestedCrawler(data, lo, hi)


def _check_range(from_: int, to: int, extent: int) -> None:
    if from_ < 0 or to > extent:
        raise MeshIndexError(f"Crawler range [{from_}, {to}) outside of array range [0, {extent})")
    if to < from_:
        raise MeshIndexError(f"Crawler range [{from_}, {to}) is reversed")


class ArrayCrawler(MeshCrawler):
    """Leaf crawler over one linear storage array."""

    __slots__ = ("_array", "_kind", "_from", "_to", "_current")

    def __init__(self, array: np.ndarray, from_: int = 0, to: int | None = None) -> None:
        self._kind = ScalarKind.for_array(array)
        self._array = array
        self._from = int(from_)
        self._to = array.shape[0] if to is None else int(to)
        _check_range(self._from, self._to, array.shape[0])
        self._current = self._from - 1

    @property
    def rank(self) -> int:
        return 1

    @property
    def kind(self) -> ScalarKind:
        return self._kind

    @property
    def current_index(self) -> int:
        return self._current

    def set_array(self, array: np.ndarray) -> None:
        """Re-point at a sibling array of the same kind and extent."""
        self._array = array

    def reset(self) -> None:
        self._current = self._from - 1

    def has_next(self) -> bool:
        return self._current + 1 < self._to

    def advance(self):
        if self._current + 1 >= self._to:
            raise MeshExhaustedError(f"Reached end of crawler range at index {self._current}")
        self._current += 1
        return self._kind.from_cell(self._array[self._current])

    def current(self):
        if not self._from <= self._current < self._to:
            raise MeshExhaustedError("Crawler is not positioned on a cell")
        return self._kind.from_cell(self._array[self._current])

    def set_current(self, value) -> None:
        if not self._from <= self._current < self._to:
            raise MeshExhaustedError("Crawler is not positioned on a cell")
        self._array[self._current] = self._kind.to_cell(value)

    def position(self, out=None):
        if out is None:
            return (self._current,)
        out[0] = self._current
        return out

    def set_position(self, index: Sequence[int]) -> None:
        if len(index) != 1:
            raise MeshIndexError(f"Position {tuple(index)} does not match crawler rank 1")
        self.set_lead_position(int(index[0]))

    def set_lead_position(self, i: int) -> None:
        if not self._from <= i < self._to:
            raise MeshIndexError(f"Index {i} outside of crawler range [{self._from}, {self._to})")
        self._current = i


class NestedCrawler(MeshCrawler):
    """Crawler over rank > 1 storage.

    ``_arrays[k]`` is the array walked at depth ``k``; ``_current[k]`` its
    cursor. Depth ``rank - 1`` is handled by the leaf crawler, which is
    re-pointed at ``_arrays[rank - 1]`` whenever an outer cursor moves.
    """

    def __init__(self, data: list, from_: Sequence[int], to: Sequence[int]) -> None:
        rank = len(from_)
        self._rank = rank
        self._from = list(from_)
        self._to = list(to)
        self._current = list(from_)
        self._arrays: list[object] = [None] * rank
        self._arrays[0] = data

        # Validate every level against the first sub-array along the start
        # corner; rectangular storage makes that representative.
        probe = data
        for k in range(rank - 1):
            if not isinstance(probe, list):
                raise MeshIndexError("Crawler bounds are higher rank than the array")
            _check_range(self._from[k], self._to[k], len(probe))
            probe = probe[self._from[k]] if self._from[k] < len(probe) else (probe[0] if probe else None)
            if probe is None:
                break
        self._empty = any(lo >= hi for lo, hi in zip(self._from, self._to))

        if self._empty:
            if isinstance(probe, np.ndarray):
                _check_range(self._from[-1], self._to[-1], probe.shape[0])
            self._leaf = None
        else:
            if not isinstance(probe, np.ndarray):
                raise MeshIndexError("Crawler bounds are lower rank than the array")
            self._leaf = ArrayCrawler(probe, self._from[-1], self._to[-1])
        self.reset()

    @property
    def rank(self) -> int:
        return self._rank

    @property
    def kind(self) -> ScalarKind:
        if self._leaf is None:
            raise MeshExhaustedError("Empty crawler range has no leaf")
        return self._leaf.kind

    def _seed(self, depth: int) -> None:
        """Re-point every level below ``depth`` at the start of its range."""
        for k in range(depth, self._rank - 1):
            if k > depth:
                self._current[k] = self._from[k]
            self._arrays[k + 1] = self._arrays[k][self._current[k]]
        self._leaf.set_array(self._arrays[self._rank - 1])
        self._leaf.reset()

    def reset(self) -> None:
        self._current = list(self._from)
        if self._empty:
            return
        self._seed(0)

    def has_next(self) -> bool:
        if self._empty:
            return False
        if self._leaf.has_next():
            return True
        return any(self._current[k] + 1 < self._to[k] for k in range(self._rank - 1))

    def advance(self):
        if self._empty:
            raise MeshExhaustedError("Crawler range is empty")
        if self._leaf.has_next():
            return self._leaf.advance()
        for k in range(self._rank - 2, -1, -1):
            if self._current[k] + 1 < self._to[k]:
                self._current[k] += 1
                self._seed(k)
                return self._leaf.advance()
        raise MeshExhaustedError(f"Reached end of crawler range at {self.position()}")

    def current(self):
        if self._empty:
            raise MeshExhaustedError("Crawler range is empty")
        return self._leaf.current()

    def set_current(self, value) -> None:
        if self._empty:
            raise MeshExhaustedError("Crawler range is empty")
        self._leaf.set_current(value)

    def position(self, out=None):
        leaf_index = self._from[-1] - 1 if self._leaf is None else self._leaf.current_index
        if out is None:
            return tuple(self._current[:-1]) + (leaf_index,)
        for k in range(self._rank - 1):
            out[k] = self._current[k]
        out[self._rank - 1] = leaf_index
        return out

    def set_position(self, index: Sequence[int]) -> None:
        if len(index) != self._rank:
            raise MeshIndexError(f"Position {tuple(index)} does not match crawler rank {self._rank}")
        if self._empty:
            raise MeshIndexError("Cannot position an empty crawler")
        for k in range(self._rank):
            i = int(index[k])
            if not self._from[k] <= i < self._to[k]:
                raise MeshIndexError(
                    f"Index {i} outside of crawler range [{self._from[k]}, {self._to[k]}) at depth {k}"
                )
        for k in range(self._rank - 1):
            self._current[k] = int(index[k])
            self._arrays[k + 1] = self._arrays[k][self._current[k]]
        self._leaf.set_array(self._arrays[self._rank - 1])
        self._leaf.set_lead_position(int(index[-1]))
