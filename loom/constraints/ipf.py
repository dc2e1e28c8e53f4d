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


from typing import Mapping, Sequence

from loom.diagnostic import NODE_VALIDATION_ERROR, LoomValueError
from loom.environment import Constraint
from loom.nodes import (
        TENSOR_NODE_TYPE, OPERATION_NODE_TYPE, APPLICATION_NODE_TYPE,
        IPF_SIGNATURE_TAG_TYPE, IPF_INDEX_TAG_TYPE,
        OperationNode, TensorSelection)
from loom.validation import concat_jsonpath, ValidationContext
from loom.zspace import ZRange, IndexProjectionFunction
from loom.constraints.selection import TensorOperationAgreement
from loom.constraints.sharding import (
        OperationApplicationAgreement, collect_shards)


__doc__ = """
.. autoclass:: OperationIPFSignatureAgreement
.. autoclass:: ApplicationIPFSignatureAgreement

.. autofunction:: validate_projection_agreement
"""


def validate_projection_agreement(
        index: ZRange,
        map_name: str,
        selection_map: Mapping[str, Sequence[TensorSelection]],
        projection_map: Mapping[str, Sequence[IndexProjectionFunction]],
        collector, contexts) -> bool:
    """Check that each selection of *selection_map* has exactly the range
    obtained by applying the corresponding projection of *projection_map*
    to *index*.

    Differing key sets are reported once and end the check. A key with
    differing numbers of selections and projections is reported and
    skipped.
    """
    if set(selection_map) != set(projection_map):
        collector.add_issue(
                type=NODE_VALIDATION_ERROR,
                summary="Selection map and projection map have different keys",
                params={
                    "selectionMapName": map_name,
                    "selectionMapKeys": set(selection_map),
                    "projectionMapKeys": set(projection_map),
                    },
                contexts=contexts)
        return False

    valid = True
    for key in sorted(selection_map):
        selections = selection_map[key]
        projections = projection_map[key]

        if len(selections) != len(projections):
            collector.add_issue(
                    type=NODE_VALIDATION_ERROR,
                    summary="Selection map and projection map have different "
                    "sizes",
                    params={
                        "selectionMapName": map_name,
                        "ioName": key,
                        "selections": [str(s.range) for s in selections],
                        "projections": projections,
                        },
                    contexts=contexts)
            valid = False
            continue

        for idx, (selection, projection) in enumerate(
                zip(selections, projections)):
            try:
                expected = projection.apply(index)
            except LoomValueError as e:
                collector.add_issue(
                        type=NODE_VALIDATION_ERROR,
                        summary="Projection cannot be applied to the IPF index",
                        params={
                            "selectionMapName": map_name,
                            "ioName": f"{key}[{idx}]",
                            "projection": projection,
                            "index": index,
                            },
                        message=str(e),
                        contexts=contexts)
                valid = False
                continue

            if selection.range != expected:
                collector.add_issue(
                        type=NODE_VALIDATION_ERROR,
                        summary="Selection map and projection map have "
                        "different ranges",
                        params={
                            "selectionMapName": map_name,
                            "ioName": f"{key}[{idx}]",
                            "selection": selection.range,
                            "projection": projection,
                            "expected": expected,
                            },
                        contexts=contexts)
                valid = False

    return valid


class OperationIPFSignatureAgreement(Constraint):
    """For every Operation carrying an IPF signature tag, each selection's
    range is the projection of the Operation's IPF index under the
    corresponding signature entry."""

    def check_requirements(self, env):
        env.assert_supports_node_type(TENSOR_NODE_TYPE)
        env.assert_supports_node_type(OPERATION_NODE_TYPE)
        env.assert_supports_tag_type(IPF_SIGNATURE_TAG_TYPE)
        env.assert_supports_tag_type(IPF_INDEX_TAG_TYPE)
        env.assert_constraint(TensorOperationAgreement)

    def validate_constraint(self, env, graph, collector):
        for operation in graph.nodes_of_type(OperationNode):
            if operation.has_tag(IPF_SIGNATURE_TAG_TYPE):
                with self.reading_node(graph, collector):
                    self.check_operation(operation, collector)

    def check_operation(self, operation: OperationNode, collector):
        def contexts():
            return [
                    ValidationContext(
                        name="Operation Signature",
                        jsonpath=concat_jsonpath(operation.json_path, "tags"),
                        data=operation.node.tags),
                    operation.as_context("Operation Node"),
                    ]

        index = operation.ipf_index
        if index is None:
            collector.add_issue(
                    type=NODE_VALIDATION_ERROR,
                    summary="Operation signature does not have an IPF index",
                    params={"opSigId": operation.id},
                    contexts=contexts)
            return

        signature = operation.ipf_signature
        validate_projection_agreement(index, "inputs",
                operation.inputs, signature.inputs, collector, contexts)
        validate_projection_agreement(index, "outputs",
                operation.outputs, signature.outputs, collector, contexts)


class ApplicationIPFSignatureAgreement(Constraint):
    """For every Application shard of an Operation carrying an IPF
    signature tag, the shard has its own IPF index, contained in the
    Operation's IPF index, and each shard selection's range is the
    projection of the shard's index under the Operation's signature.
    """

    def check_requirements(self, env):
        env.assert_supports_node_type(APPLICATION_NODE_TYPE)
        env.assert_supports_tag_type(IPF_SIGNATURE_TAG_TYPE)
        env.assert_supports_tag_type(IPF_INDEX_TAG_TYPE)
        env.assert_constraint(OperationApplicationAgreement)

    def validate_constraint(self, env, graph, collector):
        shards_by_operation = collect_shards(graph,
                self.unreadable_node_handler(graph, collector))

        for operation in graph.nodes_of_type(OperationNode):
            if not operation.has_tag(IPF_SIGNATURE_TAG_TYPE):
                continue

            with self.reading_node(graph, collector):
                signature = operation.ipf_signature
                operation_index = operation.ipf_index

                for shard in shards_by_operation.get(operation.id, []):
                    with self.reading_node(graph, collector):
                        self.check_shard(operation, signature,
                                operation_index, shard, collector)

    def check_shard(self, operation, signature, operation_index, shard,
            collector):
        def contexts():
            return [
                    shard.as_context("Application Node"),
                    operation.as_context("Operation Node"),
                    ]

        shard_index = shard.ipf_index
        if shard_index is None:
            collector.add_issue(
                    type=NODE_VALIDATION_ERROR,
                    summary="Application node does not have an IPF index",
                    params={
                        "appNodeId": shard.id,
                        "opSigId": operation.id,
                        },
                    contexts=contexts)
            return

        if (operation_index is not None
                and not operation_index.contains(shard_index)):
            collector.add_issue(
                    type=NODE_VALIDATION_ERROR,
                    summary="Application IPF index is outside the "
                    "Operation IPF index",
                    params={
                        "appNodeId": shard.id,
                        "opSigId": operation.id,
                        "appIndex": shard_index,
                        "opIndex": operation_index,
                        },
                    contexts=contexts)

        validate_projection_agreement(shard_index, "inputs",
                shard.inputs, signature.inputs, collector, contexts)
        validate_projection_agreement(shard_index, "outputs",
                shard.outputs, signature.outputs, collector, contexts)
