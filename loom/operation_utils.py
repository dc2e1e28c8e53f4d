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


import logging
from typing import Callable, List, Mapping, Optional, Sequence, Union

from loom.diagnostic import LoomValueError
from loom.nodes import (
        IPF_SIGNATURE_TAG_TYPE, IPF_INDEX_TAG_TYPE,
        IPFSignature, TensorSelection, TensorBody, OperationBody,
        ApplicationBody, TensorNode, OperationNode, ApplicationNode,
        make_selection_map)
from loom.zspace import ZRange


logger = logging.getLogger(__name__)


__doc__ = """
Helpers for building Operations with IPF signatures, their output tensors,
and their Application shards.

.. autofunction:: apply_fixed_signature
.. autofunction:: apply_relative_signature
.. autofunction:: create_ipf_shard
.. autofunction:: create_ipf_shards
"""


IndexBuilder = Union[ZRange, Callable[[Mapping], ZRange]]
ShardBuilder = Union[None, Sequence[ZRange], Callable[[ZRange], Sequence[ZRange]]]


def _project_selections(signature_map, base_map, index: ZRange):
    result = {}
    for name in sorted(signature_map):
        projections = signature_map[name]
        base_selections = base_map.get(name, ())
        if len(projections) != len(base_selections):
            raise LoomValueError(
                    f"'{name}': {len(projections)} projections but "
                    f"{len(base_selections)} selections")
        result[name] = [
                TensorSelection(s.tensor_id, p.apply(index))
                for p, s in zip(projections, base_selections)]
    return result


def create_ipf_shard(operation: OperationNode, shard_index: ZRange
        ) -> ApplicationNode:
    """Add to *operation*'s graph an Application shard of *operation*
    covering *shard_index*, with selections projected through the
    operation's IPF signature.

    :raises LoomValueError: if *shard_index* is not contained in the
        operation's IPF index.
    """
    graph = operation.node.assert_graph()

    signature = operation.ipf_signature
    index = operation.ipf_index
    if signature is None or index is None:
        raise LoomValueError(
                f"operation {operation.id} has no IPF signature and index")
    if not index.contains(shard_index):
        raise LoomValueError(
                f"shard index {shard_index} is outside of operation "
                f"index {index}")

    body = ApplicationBody(
            operation_id=operation.id,
            inputs=_project_selections(
                signature.inputs, operation.inputs, shard_index),
            outputs=_project_selections(
                signature.outputs, operation.outputs, shard_index))

    return ApplicationNode.build(graph, body,
            label=operation.label,
            tags={IPF_INDEX_TAG_TYPE: shard_index})


def create_ipf_shards(operation: OperationNode, shard_indexes: Sequence[ZRange]
        ) -> List[ApplicationNode]:
    return [create_ipf_shard(operation, shard_index)
            for shard_index in shard_indexes]


def apply_fixed_signature(
        graph,
        kernel: str,
        signature: IPFSignature,
        index_builder: IndexBuilder,
        inputs: Mapping[str, Sequence[TensorSelection]],
        output_dtypes: Mapping[str, Sequence[str]],
        params: Optional[Mapping] = None,
        shard_builder: ShardBuilder = None,
        label: Optional[str] = None,
        ) -> OperationNode:
    """Add to *graph* an Operation of *kernel* carrying *signature* and an
    IPF index, together with its output tensors and its shards.

    :arg index_builder: the IPF index, or a function computing it from
        *inputs*.
    :arg output_dtypes: maps each output name of *signature* to the dtypes
        of its tensors. Output tensor ``i`` of output ``name`` is labeled
        ``"kernel/name[i]"`` and has the range of its projection of the
        index.
    :arg shard_builder: the shard indexes, or a function computing them
        from the index. If *None*, a single shard covers the whole index.
    :raises LoomValueError: if an input selection is not the projection of
        the index under its signature entry.
    """
    inputs = make_selection_map(inputs)
    index = index_builder(inputs) if callable(index_builder) else index_builder

    if set(inputs) != set(signature.inputs):
        raise LoomValueError(
                "input names %s do not match signature input names %s"
                % (sorted(inputs), sorted(signature.inputs)))
    for name, projected in _project_selections(
            signature.inputs, inputs, index).items():
        for sel, expected in zip(inputs[name], projected):
            if sel.range != expected.range:
                raise LoomValueError(
                        f"input '{name}' selection {sel.range} is not "
                        f"the projection {expected.range} of index {index}")

    if set(output_dtypes) != set(signature.outputs):
        raise LoomValueError(
                "output names %s do not match signature output names %s"
                % (sorted(output_dtypes), sorted(signature.outputs)))

    outputs = {}
    for name in sorted(signature.outputs):
        projections = signature.outputs[name]
        dtypes = output_dtypes[name]
        if isinstance(dtypes, str):
            dtypes = [dtypes]*len(projections)
        if len(dtypes) != len(projections):
            raise LoomValueError(
                    f"output '{name}': {len(projections)} projections but "
                    f"{len(dtypes)} dtypes")

        outputs[name] = [
                TensorNode.build(graph,
                    TensorBody(dtype=dtype, range=p.apply(index)),
                    label=f"{kernel}/{name}[{idx}]").selection()
                for idx, (p, dtype) in enumerate(zip(projections, dtypes))]

    operation = OperationNode.build(graph,
            OperationBody(kernel=kernel, params=params or {},
                inputs=inputs, outputs=outputs),
            label=label,
            tags={
                IPF_SIGNATURE_TAG_TYPE: signature,
                IPF_INDEX_TAG_TYPE: index,
                })

    if shard_builder is None:
        shard_indexes = [index]
    elif callable(shard_builder):
        shard_indexes = shard_builder(index)
    else:
        shard_indexes = shard_builder

    shards = create_ipf_shards(operation, shard_indexes)
    logger.debug("built operation %s (%s) with %d shards",
            operation.id, kernel, len(shards))

    return operation


def apply_relative_signature(
        graph,
        kernel: str,
        signature: IPFSignature,
        index_builder: IndexBuilder,
        inputs: Mapping[str, Sequence[TensorSelection]],
        output_dtypes: Mapping[str, Sequence[str]],
        params: Optional[Mapping] = None,
        shard_builder: ShardBuilder = None,
        label: Optional[str] = None,
        ) -> OperationNode:
    """Like :func:`apply_fixed_signature`, but the input projections of
    *signature* are relative to the start of the corresponding input
    selection, and are shifted by it before use.
    """
    inputs = make_selection_map(inputs)

    relative_inputs = {}
    for name in sorted(signature.inputs):
        projections = signature.inputs[name]
        selections = inputs.get(name, ())
        if len(projections) != len(selections):
            raise LoomValueError(
                    f"input '{name}': {len(projections)} projections but "
                    f"{len(selections)} selections")
        relative_inputs[name] = [
                p.translate(s.range.start)
                for p, s in zip(projections, selections)]

    return apply_fixed_signature(graph, kernel,
            IPFSignature(inputs=relative_inputs, outputs=signature.outputs),
            index_builder, inputs, output_dtypes,
            params=params, shard_builder=shard_builder, label=label)
