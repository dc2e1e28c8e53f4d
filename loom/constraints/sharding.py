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


from collections import defaultdict
from typing import Dict, List
import uuid

from loom.diagnostic import NODE_VALIDATION_ERROR
from loom.environment import Constraint
from loom.nodes import (
        TENSOR_NODE_TYPE, OPERATION_NODE_TYPE, APPLICATION_NODE_TYPE,
        OperationNode, ApplicationNode)
from loom.validation import concat_jsonpath, ValidationContext
from loom.zspace import bounding_range
from loom.constraints.reference import validate_node_reference
from loom.constraints.selection import TensorOperationAgreement


__doc__ = """
.. autoclass:: OperationApplicationAgreement

.. autofunction:: collect_shards
.. autofunction:: check_shard_structure
.. autofunction:: shard_range_map
"""


def collect_shards(graph, on_unreadable=None
        ) -> Dict[uuid.UUID, List[ApplicationNode]]:
    """Map each operation id to the Application nodes naming it as their
    ``operationId``, in graph order.

    :arg on_unreadable: if not *None*, Application nodes whose body cannot
        be read are left out and the
        :class:`~loom.graph.MalformedNodeBodyError` is passed to this
        callable instead of propagating.
    """
    from loom.graph import MalformedNodeBodyError

    result = defaultdict(list)
    for application in graph.nodes_of_type(ApplicationNode):
        try:
            operation_id = application.operation_id
        except MalformedNodeBodyError as e:
            if on_unreadable is None:
                raise
            on_unreadable(e)
            continue

        result[operation_id].append(application)
    return result


def shard_range_map(shards, map_name, key, idx):
    """Map each shard id (as a string) to the range of its selection
    *map_name*\\ [*key*][*idx*]. Used as diagnostic data."""
    return {str(shard.id): getattr(shard, map_name)[key][idx].range
            for shard in shards}


def _key_list(keys):
    return "[%s]" % ", ".join(sorted(keys))


def check_shard_structure(operation: OperationNode, shard: ApplicationNode,
        collector=None) -> bool:
    """Check that *shard*'s selections agree with *operation*'s: the same
    keys, the same number of selections per key, the same tensor per
    selection, and ranges contained in the operation's ranges.

    :arg collector: if not *None*, record an issue for every disagreement.
    :returns: whether all checks passed.
    """
    valid = True

    def add_issue(**kwargs):
        if collector is not None:
            collector.add_issue(type=NODE_VALIDATION_ERROR, **kwargs)

    def node_contexts():
        return [
                shard.as_context("Application Node"),
                operation.as_context("Operation Node"),
                ]

    for map_name, app_map, sig_map in [
            ("inputs", shard.inputs, operation.inputs),
            ("outputs", shard.outputs, operation.outputs),
            ]:
        if set(app_map) != set(sig_map):
            add_issue(
                    summary="Application Node {} keys {} != Operation Signature "
                    "{} keys {}".format(
                        map_name, _key_list(app_map),
                        map_name, _key_list(sig_map)),
                    contexts=node_contexts)
            valid = False
            continue

        for key in sorted(app_map):
            app_sels = app_map[key]
            sig_sels = sig_map[key]

            if len(app_sels) != len(sig_sels):
                add_issue(
                        summary=f"Application {map_name} key \"{key}\" "
                        f"selection size ({len(app_sels)}) != Signature "
                        f"selection size ({len(sig_sels)})",
                        contexts=node_contexts)
                valid = False
                continue

            for idx, (app_sel, sig_sel) in enumerate(zip(app_sels, sig_sels)):
                def selection_contexts(idx=idx, app_sel=app_sel,
                        sig_sel=sig_sel, key=key, map_name=map_name):
                    return [
                        ValidationContext(
                            name="Application Tensor Selection",
                            jsonpath=concat_jsonpath(shard.json_path,
                                "body", map_name, key, f"[{idx}]"),
                            data=app_sel.to_json()),
                        ValidationContext(
                            name="Operation Tensor Selection",
                            jsonpath=concat_jsonpath(operation.json_path,
                                "body", map_name, key, f"[{idx}]"),
                            data=sig_sel.to_json()),
                        ]

                if app_sel.tensor_id != sig_sel.tensor_id:
                    add_issue(
                            summary="Application Tensor Selection Tensor Id "
                            "!= Signature Tensor Id",
                            contexts=[selection_contexts, node_contexts])
                    valid = False

                elif not sig_sel.range.contains(app_sel.range):
                    add_issue(
                            summary="Application Tensor Selection range "
                            f"{app_sel.range} is outside signature range "
                            f"{sig_sel.range}",
                            contexts=[selection_contexts, node_contexts])
                    valid = False

    return valid


class OperationApplicationAgreement(Constraint):
    """Every Application references an existing Operation; every Operation
    has at least one Application shard; the shards' selections agree with
    the Operation's (see :func:`check_shard_structure`); and, for
    structurally agreeing shards, each Operation selection range equals the
    bounding range of the corresponding shard selection ranges.
    """

    def check_requirements(self, env):
        env.assert_supports_node_type(TENSOR_NODE_TYPE)
        env.assert_supports_node_type(OPERATION_NODE_TYPE)
        env.assert_supports_node_type(APPLICATION_NODE_TYPE)
        env.assert_constraint(TensorOperationAgreement)

    def validate_constraint(self, env, graph, collector):
        for application in graph.nodes_of_type(ApplicationNode):
            with self.reading_node(graph, collector):
                validate_node_reference(
                        graph, application.operation_id, OPERATION_NODE_TYPE,
                        concat_jsonpath(application.json_path, "body",
                            "operationId"),
                        collector,
                        lambda application=application: application.as_context(
                            "Application Node"))

        shards_by_operation = collect_shards(graph,
                self.unreadable_node_handler(graph, collector))
        for operation in graph.nodes_of_type(OperationNode):
            with self.reading_node(graph, collector):
                self.check_operation(operation,
                        shards_by_operation.get(operation.id, []), collector)

    def check_operation(self, operation: OperationNode,
            shards: List[ApplicationNode], collector) -> bool:
        def operation_context():
            return operation.as_context("Operation Node")

        if not shards:
            collector.add_issue(
                    type=NODE_VALIDATION_ERROR,
                    summary="Operation Signature has no Application shards",
                    params={"opSigId": operation.id},
                    contexts=operation_context)
            return False

        valid = True
        for shard in shards:
            valid = check_shard_structure(operation, shard, collector) and valid

        if not valid:
            return False

        for map_name, sig_map in [
                ("inputs", operation.inputs),
                ("outputs", operation.outputs)]:
            for key in sorted(sig_map):
                for idx, sig_sel in enumerate(sig_map[key]):
                    shard_ranges = shard_range_map(shards, map_name, key, idx)
                    bounds = bounding_range(shard_ranges.values())

                    if bounds != sig_sel.range:
                        collector.add_issue(
                                type=NODE_VALIDATION_ERROR,
                                summary=f"Operation Signature {map_name} key "
                                f"\"{key}[{idx}]\" range {sig_sel.range} "
                                f"!= shard bounding range {bounds}",
                                contexts=[
                                    ValidationContext(
                                        name="Application Shard Ranges",
                                        data=shard_ranges),
                                    operation_context,
                                    ])
                        valid = False

        return valid
