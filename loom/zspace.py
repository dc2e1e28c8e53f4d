__copyright__ = "Copyright (C) 2024 Loom Developers"

__license__ = """
Permission is hereby granted, free of charge, to any person obtaining a copy
of this software and associated documentation files (the "Software"), to deal
in the Software without restriction, including without limitation the rights
to use, copy, modify, merge, publish, distribute, sublicense, and/or sell
copies of the Software, and to permit persons to whom the Software is
furnished to do so, subject to the following conditions:

The above copyright notice and this permission notice shall be included in
all copies or substantial portions of the Software.

THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND, EXPRESS OR
IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF MERCHANTABILITY,
FITNESS FOR A PARTICULAR PURPOSE AND NONINFRINGEMENT. IN NO EVENT SHALL THE
AUTHORS OR COPYRIGHT HOLDERS BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER
LIABILITY, WHETHER IN AN ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING FROM,
OUT OF OR IN CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN
THE SOFTWARE.
"""


import operator
import re
from functools import reduce
from typing import Iterable, Iterator, List, Optional, Sequence, Tuple, Union

import numpy as np

from loom.diagnostic import LoomValueError, LoomZeroDivisionError


__doc__ = """
Integer lattice algebra: points, half-open boxes, affine maps and the
index projection functions used to describe tiled tensor selections.

.. autoclass:: ZPoint
.. autoclass:: ZRange
.. autoclass:: ZAffineMap
.. autoclass:: IndexProjectionFunction

.. autofunction:: bounding_range
"""


def _freeze(ary: np.ndarray) -> np.ndarray:
    ary.flags.writeable = False
    return ary


def _as_int_vector(values) -> np.ndarray:
    if isinstance(values, ZPoint):
        return values.coords
    if isinstance(values, np.ndarray):
        if values.ndim != 1:
            raise LoomValueError(
                    "expected a vector, got an array of shape %s"
                    % (values.shape,))
        if values.dtype.kind not in "iu":
            raise LoomValueError("expected integer coordinates, got dtype '%s'"
                    % values.dtype)
        return _freeze(values.astype(np.int64))

    return _freeze(np.array([operator.index(v) for v in values],
        dtype=np.int64))


def _resolve_dim(dim: int, ndim: int) -> int:
    if not -ndim <= dim < ndim:
        raise LoomValueError(f"dimension {dim} out of range for rank {ndim}")
    return dim % ndim


# {{{ ZPoint

class ZPoint:
    """An immutable integer vector.

    Comparison operators implement the component-wise partial order:
    ``a <= b`` holds iff every component of *a* is less than or equal to the
    corresponding component of *b*. Points for which neither ``a <= b`` nor
    ``b <= a`` holds are incomparable; this is not an error.

    .. attribute:: coords

        A read-only :class:`numpy.ndarray` of dtype :class:`numpy.int64`.

    .. automethod:: zeros
    .. automethod:: ones
    .. automethod:: new_filled
    .. automethod:: exact_div
    .. automethod:: exact_mod
    .. automethod:: partial_compare
    """

    __slots__ = ("coords",)

    def __init__(self, *coords):
        if len(coords) == 1 and not isinstance(coords[0], (int, np.integer)):
            coords, = coords
        self.coords = _as_int_vector(coords)

    @staticmethod
    def zeros(ndim: int) -> "ZPoint":
        return ZPoint.new_filled(ndim, 0)

    @staticmethod
    def ones(ndim: int) -> "ZPoint":
        return ZPoint.new_filled(ndim, 1)

    @staticmethod
    def new_filled(ndim: int, value: int) -> "ZPoint":
        return ZPoint(_freeze(np.full(ndim, value, dtype=np.int64)))

    @property
    def ndim(self) -> int:
        return len(self.coords)

    def __len__(self):
        return len(self.coords)

    def __iter__(self) -> Iterator[int]:
        return (int(c) for c in self.coords)

    def __getitem__(self, idx):
        if isinstance(idx, slice):
            return ZPoint(_freeze(self.coords[idx].copy()))
        return int(self.coords[idx])

    def to_tuple(self) -> Tuple[int, ...]:
        return tuple(self)

    def is_zero(self) -> bool:
        return not self.coords.any()

    def prod(self) -> int:
        result = 1
        for c in self:
            result *= c
        return result

    # {{{ comparison

    def _check_rank(self, other: "ZPoint"):
        if self.ndim != other.ndim:
            raise LoomValueError(
                    f"rank mismatch: {self} vs. {other}")

    def __eq__(self, other):
        if not isinstance(other, ZPoint):
            return NotImplemented
        return (self.ndim == other.ndim
                and bool((self.coords == other.coords).all()))

    def __hash__(self):
        return hash(("ZPoint", self.to_tuple()))

    def __le__(self, other):
        if not isinstance(other, ZPoint):
            return NotImplemented
        self._check_rank(other)
        return bool((self.coords <= other.coords).all())

    def __lt__(self, other):
        if not isinstance(other, ZPoint):
            return NotImplemented
        self._check_rank(other)
        # strict order is irreflexive, also for rank 0
        return self.ndim > 0 and bool((self.coords < other.coords).all())

    def __ge__(self, other):
        if not isinstance(other, ZPoint):
            return NotImplemented
        return other.__le__(self)

    def __gt__(self, other):
        if not isinstance(other, ZPoint):
            return NotImplemented
        return other.__lt__(self)

    def partial_compare(self, other: "ZPoint") -> Optional[int]:
        """Return -1, 0 or 1 if the points are ordered, *None* if they are
        incomparable."""
        if self == other:
            return 0
        if self <= other:
            return -1
        if other <= self:
            return 1
        return None

    # }}}

    # {{{ arithmetic

    def _operand(self, other) -> Union[np.ndarray, int]:
        if isinstance(other, (int, np.integer)):
            return int(other)
        other = other if isinstance(other, ZPoint) else ZPoint(other)
        self._check_rank(other)
        return other.coords

    def __add__(self, other):
        return ZPoint(_freeze(self.coords + self._operand(other)))

    __radd__ = __add__

    def __sub__(self, other):
        return ZPoint(_freeze(self.coords - self._operand(other)))

    def __rsub__(self, other):
        return ZPoint(_freeze(self._operand(other) - self.coords))

    def __mul__(self, other):
        return ZPoint(_freeze(self.coords * self._operand(other)))

    __rmul__ = __mul__

    def __neg__(self):
        return ZPoint(_freeze(-self.coords))

    def __abs__(self):
        return ZPoint(_freeze(np.abs(self.coords)))

    def exact_div(self, other) -> "ZPoint":
        """Component-wise floor division. Raises
        :class:`~loom.diagnostic.LoomZeroDivisionError` on a zero divisor.
        """
        divisor = self._operand(other)
        if not np.all(divisor):
            raise LoomZeroDivisionError(f"division by zero: {self} // {other}")
        return ZPoint(_freeze(self.coords // divisor))

    __floordiv__ = exact_div

    def exact_mod(self, other) -> "ZPoint":
        divisor = self._operand(other)
        if not np.all(divisor):
            raise LoomZeroDivisionError(f"modulo by zero: {self} % {other}")
        return ZPoint(_freeze(self.coords % divisor))

    __mod__ = exact_mod

    def minimum(self, other) -> "ZPoint":
        return ZPoint(_freeze(np.minimum(self.coords, self._operand(other))))

    def maximum(self, other) -> "ZPoint":
        return ZPoint(_freeze(np.maximum(self.coords, self._operand(other))))

    # }}}

    def to_json(self) -> List[int]:
        return list(self)

    @staticmethod
    def from_json(data) -> "ZPoint":
        if not isinstance(data, list) or not all(
                isinstance(v, int) and not isinstance(v, bool) for v in data):
            raise LoomValueError(f"expected a list of integers, got: {data!r}")
        return ZPoint(data)

    def __str__(self):
        return "z[%s]" % ", ".join(str(c) for c in self)

    def __repr__(self):
        return "ZPoint(%s)" % ", ".join(str(c) for c in self)

    def __reduce__(self):
        return (ZPoint, (self.to_tuple(),))

# }}}


# {{{ ZRange

_RANGE_RE = re.compile(r"^zr\[(.*)\]$", re.DOTALL)
_DIM_RE = re.compile(r"^\s*(-?\d+)\s*:\s*(-?\d+)\s*$")


class ZRange:
    """An immutable half-open box ``[start, end)`` of equal-rank
    :class:`ZPoint`\\ s, with ``start <= end`` component-wise.

    A rank-0 range denotes a scalar; it has size 1.

    .. attribute:: start
    .. attribute:: end

    .. automethod:: from_shape
    .. automethod:: from_start_with_shape
    .. automethod:: parse
    .. automethod:: contains
    .. automethod:: intersection
    .. automethod:: translate
    .. automethod:: split
    .. automethod:: split_chunks
    .. automethod:: split_by_size
    .. automethod:: cartesian_product
    """

    __slots__ = ("start", "end")

    def __init__(self, start, end):
        start = start if isinstance(start, ZPoint) else ZPoint(start)
        end = end if isinstance(end, ZPoint) else ZPoint(end)

        if start.ndim != end.ndim:
            raise LoomValueError(
                    f"start and end must have the same rank: {start} vs. {end}")
        if not start <= end:
            raise LoomValueError(
                    f"start must be <= end component-wise: {start} vs. {end}")

        self.start = start
        self.end = end

    @staticmethod
    def from_shape(*shape) -> "ZRange":
        shape = ZPoint(*shape)
        return ZRange(ZPoint.zeros(shape.ndim), shape)

    @staticmethod
    def from_start_with_shape(start, shape) -> "ZRange":
        start = start if isinstance(start, ZPoint) else ZPoint(start)
        return ZRange(start, start + shape)

    @staticmethod
    def scalar() -> "ZRange":
        return ZRange(ZPoint(), ZPoint())

    @staticmethod
    def parse(s: str) -> "ZRange":
        """Parse the ``zr[0:3, 0:4]`` form produced by :func:`str`."""
        match = _RANGE_RE.match(s.strip())
        if match is None:
            raise LoomValueError(f"invalid ZRange: '{s}'")

        body = match.group(1).strip()
        if not body:
            return ZRange.scalar()

        start = []
        end = []
        for part in body.split(","):
            dim_match = _DIM_RE.match(part)
            if dim_match is None:
                raise LoomValueError(f"invalid ZRange: '{s}'")
            start.append(int(dim_match.group(1)))
            end.append(int(dim_match.group(2)))

        return ZRange(start, end)

    # {{{ properties

    @property
    def ndim(self) -> int:
        return self.start.ndim

    @property
    def shape(self) -> ZPoint:
        return self.end - self.start

    @property
    def size(self) -> int:
        return self.shape.prod()

    def is_empty(self) -> bool:
        return self.size == 0

    @property
    def inclusive_end(self) -> ZPoint:
        """The last point contained in the range.

        :raises LoomValueError: if the range is empty.
        """
        if self.is_empty():
            raise LoomValueError(f"empty range has no inclusive end: {self}")
        return self.end - 1

    # }}}

    def __eq__(self, other):
        if not isinstance(other, ZRange):
            return NotImplemented
        return self.start == other.start and self.end == other.end

    def __hash__(self):
        return hash(("ZRange", self.start, self.end))

    def contains(self, other: Union["ZRange", ZPoint]) -> bool:
        """For a :class:`ZRange` *other*: whether *other* lies within this
        range. For a :class:`ZPoint`: whether the point is a member of this
        (non-empty) range. Values of differing rank are never contained.
        """
        if isinstance(other, ZPoint):
            if other.ndim != self.ndim or self.is_empty():
                return False
            return self.start <= other and other < self.end

        if other.ndim != self.ndim:
            return False
        if self.ndim == 0:
            return True
        return self.start <= other.start and other.end <= self.end

    __contains__ = contains

    def intersection(self, other: "ZRange") -> Optional["ZRange"]:
        """Return the common sub-range, or *None* if the ranges are
        disjoint."""
        if other.ndim != self.ndim:
            raise LoomValueError(f"rank mismatch: {self} vs. {other}")
        start = self.start.maximum(other.start)
        end = self.end.minimum(other.end)
        if not start <= end:
            return None
        result = ZRange(start, end)
        if result.is_empty() and not (self.is_empty() or other.is_empty()):
            return None
        return result

    def translate(self, delta) -> "ZRange":
        return ZRange(self.start + delta, self.end + delta)

    # {{{ splitting

    def split_chunks(self, dim: int, chunks: Sequence[int]) -> List["ZRange"]:
        """Split along *dim* into consecutive pieces of the given sizes,
        which must be positive and sum to the extent of *dim*."""
        dim = _resolve_dim(dim, self.ndim)
        extent = self.shape[dim]

        if any(c <= 0 for c in chunks):
            raise LoomValueError(f"chunk sizes must be > 0: {list(chunks)}")
        if sum(chunks) != extent:
            raise LoomValueError(
                    f"total chunk size ({sum(chunks)}) must be equal to "
                    f"dim size ({extent}): {list(chunks)}")

        result = []
        lower = self.start[dim]
        for c in chunks:
            start = list(self.start)
            end = list(self.end)
            start[dim] = lower
            end[dim] = lower + c
            result.append(ZRange(start, end))
            lower += c

        return result

    def split(self, dim: int, count: int) -> List["ZRange"]:
        """Partition into *count* consecutive sub-ranges along *dim*.

        When the extent is not divisible by *count*, the first
        ``extent % count`` sub-ranges are one element longer than the rest.
        """
        dim = _resolve_dim(dim, self.ndim)
        extent = self.shape[dim]

        if count <= 0:
            raise LoomValueError(f"split count must be > 0: {count}")
        if extent == 0:
            if count != 1:
                raise LoomValueError(
                        f"cannot split empty dimension {dim} of {self} "
                        f"into {count} parts")
            return [self]
        if count > extent:
            raise LoomValueError(
                    f"cannot split dimension {dim} of extent {extent} "
                    f"into {count} parts")

        base, remainder = divmod(extent, count)
        return self.split_chunks(
                dim, [base + 1]*remainder + [base]*(count - remainder))

    def split_by_size(self, dim: int, chunk_size: int) -> List["ZRange"]:
        """Split along *dim* into pieces of *chunk_size*; the last piece may
        be smaller."""
        dim = _resolve_dim(dim, self.ndim)
        extent = self.shape[dim]

        if chunk_size <= 0:
            raise LoomValueError(f"chunk size must be > 0: {chunk_size}")
        if chunk_size >= extent:
            return [self]

        nfull, rest = divmod(extent, chunk_size)
        return self.split_chunks(
                dim, [chunk_size]*nfull + ([rest] if rest else []))

    # }}}

    def cartesian_product(self) -> Iterator[ZPoint]:
        """Iterate over the contained points in row-major order."""
        if self.is_empty():
            return

        import itertools
        for coords in itertools.product(*(
                range(s, e) for s, e in zip(self.start, self.end))):
            yield ZPoint(coords)

    def to_json(self):
        return {"start": self.start.to_json(), "end": self.end.to_json()}

    @staticmethod
    def from_json(data) -> "ZRange":
        try:
            start = data["start"]
            end = data["end"]
        except (KeyError, TypeError):
            raise LoomValueError(f"invalid ZRange document: {data!r}") from None
        return ZRange(ZPoint.from_json(start), ZPoint.from_json(end))

    def __str__(self):
        return "zr[%s]" % ", ".join(
                f"{s}:{e}" for s, e in zip(self.start, self.end))

    def __repr__(self):
        return f"ZRange({self.start!r}, {self.end!r})"

    def __getstate__(self):
        return (self.start, self.end)

    def __setstate__(self, state):
        self.start, self.end = state


def bounding_range(ranges: Iterable[ZRange]) -> ZRange:
    """Return the component-wise tightest :class:`ZRange` containing every
    element of *ranges*.

    :raises LoomValueError: if *ranges* is empty or of mixed rank.
    """
    ranges = list(ranges)
    if not ranges:
        raise LoomValueError("cannot compute the bounding range of no ranges")

    ndims = {r.ndim for r in ranges}
    if len(ndims) != 1:
        raise LoomValueError(
                "cannot bound ranges of mixed rank: %s"
                % ", ".join(str(r) for r in ranges))

    return ZRange(
            reduce(ZPoint.minimum, (r.start for r in ranges)),
            reduce(ZPoint.maximum, (r.end for r in ranges)))


ZRange.bounding_range = staticmethod(bounding_range)

# }}}


# {{{ ZAffineMap

class ZAffineMap:
    """An integer affine map ``x -> A @ x + b``.

    .. attribute:: projection

        A read-only integer :class:`numpy.ndarray` of shape
        ``(output_ndim, input_ndim)``.

    .. attribute:: offset

        A :class:`ZPoint` of rank :attr:`output_ndim`.

    .. automethod:: identity
    .. automethod:: from_matrix
    .. automethod:: apply
    .. automethod:: translate
    .. automethod:: translate_output
    .. automethod:: compose
    """

    __slots__ = ("projection", "offset")

    def __init__(self, projection, offset=None):
        if isinstance(projection, np.ndarray):
            if projection.size and projection.dtype.kind not in "iu":
                raise LoomValueError(
                        "projection must be an integer matrix, got dtype '%s'"
                        % projection.dtype)
            projection = projection.astype(np.int64)
        else:
            projection = np.array(
                    [[operator.index(v) for v in row] for row in projection],
                    dtype=np.int64)

        if projection.ndim == 1 and projection.size == 0:
            projection = projection.reshape(0, 0)
        elif projection.ndim != 2:
            raise LoomValueError(
                    f"projection must be a matrix: {projection.tolist()}")

        self.projection = _freeze(projection)

        if offset is None:
            offset = ZPoint.zeros(self.output_ndim)
        elif not isinstance(offset, ZPoint):
            offset = ZPoint(offset)

        if offset.ndim != self.output_ndim:
            raise LoomValueError(
                    f"offset rank ({offset.ndim}) != projection output rank "
                    f"({self.output_ndim})")
        self.offset = offset

    @staticmethod
    def identity(ndim: int) -> "ZAffineMap":
        return ZAffineMap(np.eye(ndim, dtype=np.int64))

    @staticmethod
    def from_matrix(matrix, offset=None) -> "ZAffineMap":
        return ZAffineMap(matrix, offset)

    @staticmethod
    def from_diagonal(diagonal) -> "ZAffineMap":
        return ZAffineMap(np.diag(np.array(list(diagonal), dtype=np.int64)))

    @property
    def input_ndim(self) -> int:
        return self.projection.shape[1]

    @property
    def output_ndim(self) -> int:
        return self.projection.shape[0]

    def apply(self, x) -> ZPoint:
        x = x if isinstance(x, ZPoint) else ZPoint(x)
        if x.ndim != self.input_ndim:
            raise LoomValueError(
                    f"point {x} has rank {x.ndim}, map expects "
                    f"rank {self.input_ndim}")
        return ZPoint(_freeze(self.projection @ x.coords + self.offset.coords))

    __call__ = apply

    def translate(self, delta) -> "ZAffineMap":
        """Return the map ``x -> self.apply(x + delta)``, i.e. with
        ``A @ delta`` added to the offset."""
        delta = delta if isinstance(delta, ZPoint) else ZPoint(delta)
        if delta.ndim != self.input_ndim:
            raise LoomValueError(
                    f"translation {delta} has rank {delta.ndim}, map expects "
                    f"rank {self.input_ndim}")
        return ZAffineMap(self.projection,
                self.offset + ZPoint(_freeze(self.projection @ delta.coords)))

    def translate_output(self, delta) -> "ZAffineMap":
        """Return the map ``x -> self.apply(x) + delta``."""
        return ZAffineMap(self.projection, self.offset + delta)

    def compose(self, inner: "ZAffineMap") -> "ZAffineMap":
        """Return the map ``x -> self.apply(inner.apply(x))``."""
        if inner.output_ndim != self.input_ndim:
            raise LoomValueError(
                    f"cannot compose: inner map produces rank "
                    f"{inner.output_ndim}, outer expects {self.input_ndim}")
        return ZAffineMap(
                self.projection @ inner.projection,
                self.apply(inner.offset))

    def is_monotone(self) -> bool:
        """Whether every output coordinate is non-decreasing in every input
        coordinate."""
        return bool((self.projection >= 0).all())

    def __eq__(self, other):
        if not isinstance(other, ZAffineMap):
            return NotImplemented
        return (self.projection.shape == other.projection.shape
                and bool((self.projection == other.projection).all())
                and self.offset == other.offset)

    def __hash__(self):
        return hash(("ZAffineMap",
            tuple(map(tuple, self.projection.tolist())), self.offset))

    def to_json(self):
        """The JSON form of the map. A map without output rows also records
        its ``"inputNdim"``, which the empty projection cannot carry."""
        result = {
                "projection": self.projection.tolist(),
                "offset": self.offset.to_json(),
                }
        if self.output_ndim == 0:
            result["inputNdim"] = self.input_ndim
        return result

    @staticmethod
    def from_json(data) -> "ZAffineMap":
        try:
            projection = data["projection"]
        except (KeyError, TypeError):
            raise LoomValueError(
                    f"invalid ZAffineMap document: {data!r}") from None

        input_ndim = data.get("inputNdim")
        if input_ndim is not None:
            if projection:
                if any(len(row) != input_ndim for row in projection):
                    raise LoomValueError(
                            f"projection rows do not have inputNdim "
                            f"({input_ndim}) entries: {projection!r}")
            else:
                projection = np.zeros((0, operator.index(input_ndim)),
                        dtype=np.int64)

        offset = data.get("offset")
        return ZAffineMap(projection,
                None if offset is None else ZPoint.from_json(offset))

    def __str__(self):
        return "ZAffineMap(projection=%s, offset=%s)" % (
                self.projection.tolist(), self.offset.to_json())

    __repr__ = __str__

    def __getstate__(self):
        return (self.projection, self.offset)

    def __setstate__(self, state):
        projection, self.offset = state
        self.projection = _freeze(projection.copy())

# }}}


# {{{ IndexProjectionFunction

class IndexProjectionFunction:
    """An affine projection from an operation's index space onto tensor
    selections.

    A point ``p`` of the index space projects to the box of :attr:`shape`
    starting at ``affine_map.apply(p)``. A range of the index space projects
    to the bounding range of the projections of its first and last points;
    this is only meaningful for :meth:`ZAffineMap.is_monotone` maps.

    .. attribute:: affine_map
    .. attribute:: shape

        A :class:`ZPoint`, defaults to all ones.

    .. automethod:: apply
    .. automethod:: translate
    .. automethod:: translate_index
    """

    __slots__ = ("affine_map", "shape")

    def __init__(self, affine_map: ZAffineMap, shape=None):
        if not isinstance(affine_map, ZAffineMap):
            affine_map = ZAffineMap(affine_map)

        if shape is None:
            shape = ZPoint.ones(affine_map.output_ndim)
        elif not isinstance(shape, ZPoint):
            shape = ZPoint(shape)

        if shape.ndim != affine_map.output_ndim:
            raise LoomValueError(
                    f"affine map output rank ({affine_map.output_ndim}) "
                    f"!= shape rank ({shape.ndim})")
        if not ZPoint.zeros(shape.ndim) <= shape:
            raise LoomValueError(f"shape must be non-negative: {shape}")

        self.affine_map = affine_map
        self.shape = shape

    @property
    def input_ndim(self) -> int:
        return self.affine_map.input_ndim

    @property
    def output_ndim(self) -> int:
        return self.affine_map.output_ndim

    def apply(self, index: Union[ZPoint, ZRange]) -> ZRange:
        if isinstance(index, ZRange):
            start = self.apply(index.start)
            if index.is_empty():
                return ZRange(start.start, start.start)
            return bounding_range([start, self.apply(index.inclusive_end)])

        return ZRange.from_start_with_shape(
                self.affine_map.apply(index), self.shape)

    __call__ = apply

    def translate(self, delta) -> "IndexProjectionFunction":
        """Shift the produced selections by *delta* (in tensor space)."""
        return IndexProjectionFunction(
                self.affine_map.translate_output(delta), self.shape)

    def translate_index(self, delta) -> "IndexProjectionFunction":
        """Return the function ``I -> self.apply(I.translate(delta))``."""
        return IndexProjectionFunction(
                self.affine_map.translate(delta), self.shape)

    def __eq__(self, other):
        if not isinstance(other, IndexProjectionFunction):
            return NotImplemented
        return self.affine_map == other.affine_map and self.shape == other.shape

    def __hash__(self):
        return hash(("IndexProjectionFunction", self.affine_map, self.shape))

    def to_json(self):
        return {
                "affineMap": self.affine_map.to_json(),
                "shape": self.shape.to_json(),
                }

    @staticmethod
    def from_json(data) -> "IndexProjectionFunction":
        try:
            affine_map = ZAffineMap.from_json(data["affineMap"])
        except (KeyError, TypeError):
            raise LoomValueError(
                    f"invalid IndexProjectionFunction document: {data!r}"
                    ) from None

        shape = data.get("shape")
        return IndexProjectionFunction(affine_map,
                None if shape is None else ZPoint.from_json(shape))

    def __str__(self):
        return "ipf(affineMap=%s, shape=%s)" % (self.affine_map, self.shape)

    __repr__ = __str__

    def __getstate__(self):
        return (self.affine_map, self.shape)

    def __setstate__(self, state):
        self.affine_map, self.shape = state

# }}}

# vim: foldmethod=marker
