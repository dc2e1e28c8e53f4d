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

import pickle
import sys

import numpy as np
import pytest

from loom import (
        ZPoint, ZRange, ZAffineMap, IndexProjectionFunction, bounding_range,
        LoomValueError, LoomZeroDivisionError)

import logging
logger = logging.getLogger(__name__)


# {{{ ZPoint

def test_zpoint_construction():
    assert ZPoint(1, 2, 3) == ZPoint([1, 2, 3])
    assert ZPoint(np.array([1, 2, 3])) == ZPoint((1, 2, 3))
    assert ZPoint(4).ndim == 1
    assert ZPoint().ndim == 0
    assert ZPoint.zeros(2) == ZPoint(0, 0)
    assert ZPoint.ones(3) == ZPoint(1, 1, 1)
    assert ZPoint.new_filled(2, 7) == ZPoint(7, 7)

    p = ZPoint(3, -4)
    assert list(p) == [3, -4]
    assert p[1] == -4
    assert p[:1] == ZPoint(3)
    assert str(p) == "z[3, -4]"

    with pytest.raises(TypeError):
        ZPoint([1.5, 2])

    with pytest.raises(ValueError):
        p.coords[0] = 12


def test_zpoint_arithmetic():
    a = ZPoint(1, 2)
    b = ZPoint(3, 5)

    assert a + b == ZPoint(4, 7)
    assert b - a == ZPoint(2, 3)
    assert a * 3 == ZPoint(3, 6)
    assert 3 * a == ZPoint(3, 6)
    assert a + 1 == ZPoint(2, 3)
    assert 10 - a == ZPoint(9, 8)
    assert -a == ZPoint(-1, -2)
    assert abs(ZPoint(-1, 2)) == ZPoint(1, 2)
    assert a.minimum(ZPoint(0, 9)) == ZPoint(0, 2)
    assert a.maximum(ZPoint(0, 9)) == ZPoint(1, 9)
    assert ZPoint(2, 3, 4).prod() == 24
    assert ZPoint().prod() == 1

    with pytest.raises(LoomValueError):
        a + ZPoint(1, 2, 3)


def test_zpoint_exact_division():
    assert ZPoint(7, -7).exact_div(2) == ZPoint(3, -4)
    assert ZPoint(7, -7).exact_mod(2) == ZPoint(1, 1)
    assert ZPoint(9, 8) // ZPoint(3, 4) == ZPoint(3, 2)
    assert ZPoint(9, 8) % ZPoint(4, 3) == ZPoint(1, 2)

    with pytest.raises(LoomZeroDivisionError):
        ZPoint(1, 2).exact_div(0)

    with pytest.raises(ZeroDivisionError):
        ZPoint(1, 2).exact_mod(ZPoint(1, 0))


def test_zpoint_partial_order():
    a = ZPoint(1, 2)
    b = ZPoint(2, 3)
    c = ZPoint(0, 5)

    assert a < b and a <= b
    assert b > a and b >= a
    assert a <= a and not a < a

    # incomparable, not an error
    assert not a <= c and not c <= a
    assert not a < c and not a > c
    assert a.partial_compare(c) is None
    assert a.partial_compare(b) == -1
    assert b.partial_compare(a) == 1
    assert a.partial_compare(ZPoint(1, 2)) == 0

    # strict domination in every component
    assert not ZPoint(1, 2) < ZPoint(1, 3)
    assert ZPoint(1, 2) <= ZPoint(1, 3)

    scalar = ZPoint()
    assert scalar <= scalar and scalar >= scalar
    assert not scalar < scalar and not scalar > scalar
    assert scalar.partial_compare(ZPoint()) == 0


def test_zpoint_hash_and_pickle():
    a = ZPoint(1, 2)
    assert len({a, ZPoint(1, 2), ZPoint(2, 1)}) == 2
    assert pickle.loads(pickle.dumps(a)) == a
    assert ZPoint.from_json(a.to_json()) == a

    with pytest.raises(LoomValueError):
        ZPoint.from_json([1, "2"])

# }}}


# {{{ ZRange

def test_zrange_basics():
    r = ZRange(ZPoint(1, 2), ZPoint(4, 6))
    assert r.ndim == 2
    assert r.shape == ZPoint(3, 4)
    assert r.size == 12
    assert not r.is_empty()
    assert r.inclusive_end == ZPoint(3, 5)
    assert str(r) == "zr[1:4, 2:6]"
    assert ZRange.parse(str(r)) == r
    assert ZRange.parse("zr[]") == ZRange.scalar()
    assert ZRange.from_shape(3, 4) == ZRange([0, 0], [3, 4])
    assert ZRange.from_start_with_shape([1, 1], [2, 2]) == ZRange([1, 1], [3, 3])
    assert ZRange.from_json(r.to_json()) == r
    assert r.to_json() == {"start": [1, 2], "end": [4, 6]}

    empty = ZRange([0, 0], [0, 3])
    assert empty.size == 0
    assert empty.is_empty()
    with pytest.raises(LoomValueError):
        empty.inclusive_end

    scalar = ZRange.scalar()
    assert scalar.size == 1
    assert scalar.ndim == 0

    with pytest.raises(LoomValueError):
        ZRange([0, 3], [1, 2])
    with pytest.raises(LoomValueError):
        ZRange([0], [1, 2])
    with pytest.raises(LoomValueError):
        ZRange.parse("zr[0:1, 2]")
    with pytest.raises(LoomValueError):
        ZRange.from_json({"start": [0]})


def test_zrange_contains():
    r = ZRange.from_shape(3, 4)

    assert r.contains(r)
    assert r.contains(ZRange([1, 1], [2, 4]))
    assert not r.contains(ZRange([1, 1], [2, 5]))
    assert not r.contains(ZRange([0], [1]))
    assert ZRange.scalar().contains(ZRange.scalar())
    assert r.contains(ZRange([3, 4], [3, 4]))

    assert r.contains(ZPoint(0, 0))
    assert r.contains(ZPoint(2, 3))
    assert not r.contains(ZPoint(3, 0))
    assert ZPoint(1, 1) in r
    assert not ZRange([0, 0], [0, 4]).contains(ZPoint(0, 0))


@pytest.mark.parametrize("a,b", [
    (ZRange([0, 0], [3, 4]), ZRange([0, 0], [3, 4])),
    (ZRange([0, 0], [3, 4]), ZRange([1, 0], [3, 4])),
    (ZRange([0, 1], [3, 4]), ZRange([1, 0], [3, 4])),
    (ZRange([2], [2]), ZRange([2], [2])),
    ])
def test_zrange_containment_antisymmetric(a, b):
    assert a.contains(a) and b.contains(b)
    if a.contains(b) and b.contains(a):
        assert a == b


def test_zrange_intersection_and_translate():
    a = ZRange.from_shape(4, 4)
    b = ZRange([2, 1], [6, 3])

    assert a.intersection(b) == ZRange([2, 1], [4, 3])
    assert b.intersection(a) == a.intersection(b)
    assert a.intersection(ZRange([4, 0], [5, 4])) is None
    assert a.intersection(ZRange([5, 5], [6, 6])) is None

    assert a.translate([1, -1]) == ZRange([1, -1], [5, 3])
    assert a.translate(ZPoint(1, 1)).shape == a.shape


def test_bounding_range():
    ranges = [
            ZRange([0, 2], [1, 3]),
            ZRange([2, 0], [3, 1]),
            ZRange([1, 1], [2, 4]),
            ]
    bounds = bounding_range(ranges)
    assert bounds == ZRange([0, 0], [3, 4])
    assert ZRange.bounding_range(ranges) == bounds

    for r in ranges:
        assert bounds.contains(r)

    # tightest: shrinking either end along any axis loses a member
    for dim in range(bounds.ndim):
        for delta_start, delta_end in [(1, 0), (0, -1)]:
            start = list(bounds.start)
            end = list(bounds.end)
            start[dim] += delta_start
            end[dim] += delta_end
            smaller = ZRange(start, end)
            assert not all(smaller.contains(r) for r in ranges)

    with pytest.raises(LoomValueError):
        bounding_range([])
    with pytest.raises(LoomValueError):
        bounding_range([ZRange.from_shape(1), ZRange.from_shape(1, 1)])


@pytest.mark.parametrize("extent,count", [
    (6, 2), (5, 2), (7, 3), (4, 4), (9, 1), (10, 4),
    ])
def test_zrange_split_partitions(extent, count):
    r = ZRange([1, 3], [4, 3 + extent])
    parts = r.split(1, count)

    assert len(parts) == count
    assert bounding_range(parts) == r
    assert sum(p.size for p in parts) == r.size

    for p, q in zip(parts, parts[1:]):
        assert p.end[1] == q.start[1]
        assert p.intersection(q) is None

    sizes = [p.shape[1] for p in parts]
    assert sizes == sorted(sizes, reverse=True)
    assert max(sizes) - min(sizes) <= 1


def test_zrange_split_remainder_goes_first():
    parts = ZRange.from_shape(3, 5).split(-1, 2)
    assert parts == [ZRange([0, 0], [3, 3]), ZRange([0, 3], [3, 5])]

    with pytest.raises(LoomValueError):
        ZRange.from_shape(3, 5).split(1, 6)
    with pytest.raises(LoomValueError):
        ZRange.from_shape(3, 5).split(1, 0)
    with pytest.raises(LoomValueError):
        ZRange.from_shape(3, 5).split(2, 1)


def test_zrange_split_chunks_and_by_size():
    r = ZRange.from_shape(2, 5)

    assert r.split_chunks(1, [1, 4]) == [
            ZRange([0, 0], [2, 1]), ZRange([0, 1], [2, 5])]
    with pytest.raises(LoomValueError):
        r.split_chunks(1, [1, 2])
    with pytest.raises(LoomValueError):
        r.split_chunks(1, [0, 5])

    assert r.split_by_size(1, 2) == [
            ZRange([0, 0], [2, 2]),
            ZRange([0, 2], [2, 4]),
            ZRange([0, 4], [2, 5]),
            ]
    assert r.split_by_size(0, 7) == [r]


def test_zrange_cartesian_product():
    points = list(ZRange([1, 0], [3, 2]).cartesian_product())
    assert points == [ZPoint(1, 0), ZPoint(1, 1), ZPoint(2, 0), ZPoint(2, 1)]

    assert list(ZRange.from_shape(0, 3).cartesian_product()) == []
    assert list(ZRange.scalar().cartesian_product()) == [ZPoint()]


def test_zrange_pickle():
    r = ZRange([1, 2], [3, 4])
    assert pickle.loads(pickle.dumps(r)) == r

# }}}


# {{{ ZAffineMap

def test_affine_map_apply():
    m = ZAffineMap([[1, 0], [0, 2], [1, 1]], offset=[5, 6, 7])
    assert m.input_ndim == 2
    assert m.output_ndim == 3
    assert m.apply(ZPoint(1, 2)) == ZPoint(6, 10, 10)
    assert m(ZPoint(0, 0)) == ZPoint(5, 6, 7)

    with pytest.raises(LoomValueError):
        m.apply(ZPoint(1, 2, 3))
    with pytest.raises(LoomValueError):
        ZAffineMap([[1, 0]], offset=[1, 2])

    assert ZAffineMap.identity(3).apply(ZPoint(4, 5, 6)) == ZPoint(4, 5, 6)
    assert ZAffineMap.from_diagonal([2, 3]).apply(ZPoint(1, 1)) == ZPoint(2, 3)


def test_affine_map_translate():
    m = ZAffineMap([[1, 0], [0, 0], [2, 1]], offset=[1, 1, 1])
    delta = ZPoint(3, -2)

    translated = m.translate(delta)
    assert translated.offset == m.apply(delta)
    for x in ZRange.from_shape(3, 3).cartesian_product():
        assert translated.apply(x) == m.apply(x + delta)
        assert m.translate_output(ZPoint(1, 2, 3)).apply(x) == (
                m.apply(x) + ZPoint(1, 2, 3))

    with pytest.raises(LoomValueError):
        m.translate(ZPoint(1, 2, 3))


def test_affine_map_compose_and_json():
    outer = ZAffineMap([[1, 1]], offset=[3])
    inner = ZAffineMap([[2], [1]], offset=[0, 1])
    composed = outer.compose(inner)

    for x in ZRange([-2], [3]).cartesian_product():
        assert composed.apply(x) == outer.apply(inner.apply(x))

    assert ZAffineMap.from_json(outer.to_json()) == outer
    assert outer.to_json() == {"projection": [[1, 1]], "offset": [3]}
    assert ZAffineMap.from_json({"projection": [[1, 0]]}) == ZAffineMap([[1, 0]])
    assert pickle.loads(pickle.dumps(outer)) == outer

    assert outer.is_monotone()
    assert not ZAffineMap([[1, -1]]).is_monotone()

    # a map onto rank 0 keeps its input rank through JSON
    to_scalar = ZAffineMap(np.zeros((0, 3), dtype=np.int64))
    assert (to_scalar.input_ndim, to_scalar.output_ndim) == (3, 0)
    assert to_scalar.to_json() == {
            "projection": [], "offset": [], "inputNdim": 3}
    restored = ZAffineMap.from_json(to_scalar.to_json())
    assert restored == to_scalar
    assert restored.apply(ZPoint(4, 5, 6)) == ZPoint()
    assert ZAffineMap(np.zeros((0, 2))).input_ndim == 2

    with pytest.raises(LoomValueError):
        ZAffineMap.from_json({"projection": [[1, 0]], "inputNdim": 3})

# }}}


# {{{ IndexProjectionFunction

def test_ipf_apply():
    ipf = IndexProjectionFunction(ZAffineMap([[1, 0], [0, 0]]), shape=(1, 4))

    assert ipf.apply(ZPoint(2, 3)) == ZRange([2, 0], [3, 4])
    assert ipf.apply(ZRange.from_shape(3, 5)) == ZRange.from_shape(3, 4)
    assert ipf.apply(ZRange([1, 0], [2, 5])) == ZRange([1, 0], [2, 4])

    # empty index: zero-size selection at the projected start
    empty = ipf.apply(ZRange([1, 2], [1, 5]))
    assert empty.is_empty()
    assert empty.start == ZPoint(1, 0)

    assert IndexProjectionFunction(ZAffineMap.identity(2)).shape == ZPoint(1, 1)
    with pytest.raises(LoomValueError):
        IndexProjectionFunction(ZAffineMap.identity(2), shape=(1, 1, 1))

    assert str(ipf).startswith("ipf(affineMap=")


def test_ipf_apply_covers_corner_projections():
    ipf = IndexProjectionFunction(
            ZAffineMap([[1, 1], [0, 2]], offset=[1, 0]), shape=(2, 2))
    index = ZRange([0, 1], [3, 4])
    image = ipf.apply(index)

    for p in index.cartesian_product():
        assert image.contains(ipf.apply(p))

    assert image == bounding_range(ipf.apply(p) for p in index.cartesian_product())


@pytest.mark.parametrize("delta", [(0, 0), (2, 3), (-1, 4)])
def test_ipf_translation_laws(delta):
    ipf = IndexProjectionFunction(
            ZAffineMap([[1, 0], [0, 1], [1, 1]], offset=[0, 1, 2]),
            shape=(1, 2, 1))
    index = ZRange([1, 2], [4, 5])
    delta = ZPoint(delta)

    assert ipf.translate_index(delta).apply(index) == (
            ipf.apply(index.translate(delta)))
    assert ipf.translate_index(-delta).apply(index.translate(delta)) == (
            ipf.apply(index))

    out_delta = ZPoint(list(delta) + [1])
    assert ipf.translate(out_delta).apply(index) == (
            ipf.apply(index).translate(out_delta))


def test_ipf_json():
    ipf = IndexProjectionFunction(ZAffineMap([[0, 1]], offset=[2]), shape=[3])
    data = ipf.to_json()
    assert data == {
            "affineMap": {"projection": [[0, 1]], "offset": [2]},
            "shape": [3],
            }
    assert IndexProjectionFunction.from_json(data) == ipf
    assert len({ipf, IndexProjectionFunction.from_json(data)}) == 1

    with pytest.raises(LoomValueError):
        IndexProjectionFunction.from_json({"shape": [3]})

# }}}


# {{{ coverage sets

def test_describe_coverage():
    from loom.isl_helpers import (
            describe_coverage, union_of_ranges, zrange_to_basic_set)

    target = ZRange.from_shape(3, 5)

    assert describe_coverage(target, target.split(1, 3)) == {}
    assert describe_coverage(target, [target]) == {}

    defects = describe_coverage(target, [
        ZRange([0, 0], [3, 3]), ZRange([0, 1], [3, 4])])
    assert set(defects) == {"missing", "overlapping"}

    defects = describe_coverage(target, [
        ZRange([0, 0], [3, 2]), ZRange([0, 3], [3, 5])])
    assert set(defects) == {"missing"}

    defects = describe_coverage(target, [
        ZRange([0, 0], [3, 5]), ZRange([3, 0], [4, 5])])
    assert set(defects) == {"outside"}

    union = union_of_ranges(target.split(0, 3))
    assert union.is_equal(zrange_to_basic_set(target).to_set())

# }}}


if __name__ == "__main__":
    if len(sys.argv) > 1:
        exec(sys.argv[1])
    else:
        from pytest import main
        main([__file__])

# vim: foldmethod=marker
