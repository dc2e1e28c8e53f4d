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


from typing import Dict, Sequence

import islpy as isl

from loom.diagnostic import LoomValueError
from loom.zspace import ZRange


__doc__ = """
Exact set-level views of :class:`~loom.zspace.ZRange` boxes, used to
describe shard coverage defects in diagnostics.

.. autofunction:: range_space
.. autofunction:: zrange_to_basic_set
.. autofunction:: union_of_ranges
.. autofunction:: describe_coverage
"""


def range_space(ndim: int, prefix: str = "i") -> isl.Space:
    return isl.Space.create_from_names(isl.DEFAULT_CONTEXT,
            set=["%s%d" % (prefix, i) for i in range(ndim)])


def zrange_to_basic_set(zrange: ZRange, space=None) -> isl.BasicSet:
    """
    Returns an instance of :class:`islpy.BasicSet` containing exactly the
    integer points ``start <= x < end`` of *zrange*.
    """
    if space is None:
        space = range_space(zrange.ndim)

    if space.dim(isl.dim_type.set) != zrange.ndim:
        raise LoomValueError(
                "space of dimension %d does not match range %s"
                % (space.dim(isl.dim_type.set), zrange))

    zero = isl.Aff.zero_on_domain(space)
    result = isl.BasicSet.universe(space)
    var_dict = zero.get_space().get_var_dict()

    for name, start, end in zip(
            space.get_var_names(isl.dim_type.set), zrange.start, zrange.end):
        var_dt, var_idx = var_dict[name]
        var = zero.add_coefficient_val(var_dt, var_idx, 1)
        result = (result
                # start <= var
                .add_constraint(isl.Constraint.inequality_from_aff(
                    var - (zero + start)))
                # var < end
                .add_constraint(isl.Constraint.inequality_from_aff(
                    (zero + end) - 1 - var)))

    return result


def union_of_ranges(ranges: Sequence[ZRange], space=None) -> isl.Set:
    if not ranges:
        raise LoomValueError("need at least one range")
    if space is None:
        space = range_space(ranges[0].ndim)

    result = isl.Set.empty(space)
    for r in ranges:
        result = result | zrange_to_basic_set(r, space)

    return result.coalesce()


def describe_coverage(target: ZRange, ranges: Sequence[ZRange]) -> Dict[str, str]:
    """Describe how *ranges* fail to partition *target*.

    :returns: a :class:`dict` with (a subset of) the keys ``"missing"``
        (points of *target* covered by no range), ``"overlapping"``
        (points covered by more than one range) and ``"outside"`` (points
        covered but not part of *target*), each mapped to the string form of
        an :class:`islpy.Set`. Empty when *ranges* partition *target*
        exactly.
    """
    space = range_space(target.ndim)
    target_set = zrange_to_basic_set(target, space).to_set()
    boxes = [zrange_to_basic_set(r, space).to_set() for r in ranges]

    covered = isl.Set.empty(space)
    overlapping = isl.Set.empty(space)
    for box in boxes:
        overlapping = overlapping | (covered & box)
        covered = covered | box

    result = {}
    for key, pset in [
            ("missing", target_set - covered),
            ("overlapping", overlapping),
            ("outside", covered - target_set),
            ]:
        pset = pset.coalesce()
        if not pset.is_empty():
            result[key] = str(pset)

    return result
