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

import sys
import uuid

import numpy as np
import pytest

from loom import (
        ZRange, ZAffineMap, IndexProjectionFunction,
        TensorSelection, TensorBody, OperationBody, ApplicationBody, NoteBody,
        IPFSignature, TensorNode, OperationNode, ApplicationNode, NoteNode,
        ListValidationIssueCollector, LoomValidationError,
        TENSOR_NODE_TYPE, IPF_INDEX_TAG_TYPE, IPF_SIGNATURE_TAG_TYPE,
        NODE_VALIDATION_ERROR, NODE_REFERENCE_ERROR, REFERENCE_CYCLE_ERROR,
        NODE_SCHEMA_ERROR,
        operation_expression_environment, application_expression_environment)

from testlib import (
        make_matmul_graph, make_copy_graph, replace_body, issues_with_summary,
        MATMUL_SIGNATURE)

import logging
logger = logging.getLogger(__name__)


def validation_issues(graph):
    collector = ListValidationIssueCollector()
    assert graph.validate(collector) is collector
    return collector.issues


def make_op_env_copy(in_range=None, out_range=None):
    env = operation_expression_environment()
    graph = env.new_graph()
    x = TensorNode.build(graph,
            TensorBody(dtype="int32", range=ZRange.from_shape(3, 5)), label="X")
    y = TensorNode.build(graph,
            TensorBody(dtype="int32", range=ZRange.from_shape(3, 5)), label="Y")

    op = OperationNode.build(graph,
            OperationBody(
                kernel="copy",
                inputs={"in": [TensorSelection(x.id, in_range or x.range)]},
                outputs={"out": [TensorSelection(y.id, out_range or y.range)]}),
            label="Copy")

    return graph, (x, y), op


# {{{ valid graphs

@pytest.mark.parametrize("nshards", [1, 2, 3, 5])
def test_valid_matmul(nshards):
    graph, _, op, shards = make_matmul_graph(nshards=nshards)
    assert len(shards) == nshards

    graph.validate()
    assert validation_issues(graph) == []


def test_valid_sum_to_scalar():
    from loom.operation_utils import apply_fixed_signature

    env = application_expression_environment()
    graph = env.new_graph()
    x = TensorNode.build(graph,
            TensorBody(dtype="int32", range=ZRange.from_shape(4)), label="X")
    signature = IPFSignature(
            inputs={"x": [IndexProjectionFunction(ZAffineMap([[1]]))]},
            outputs={"total": [IndexProjectionFunction(
                ZAffineMap(np.zeros((0, 1), dtype=np.int64)))]})

    op = apply_fixed_signature(graph, "sum", signature, ZRange.from_shape(4),
            inputs={"x": [x.selection()]},
            output_dtypes={"total": "int32"})

    (total,), = op.output_nodes().values()
    assert total.range == ZRange.scalar()
    assert op.ipf_signature == signature
    assert validation_issues(graph) == []

    restored = env.graph_from_json(graph.to_json())
    assert validation_issues(restored) == []


def test_valid_copy_partition():
    graph, _, _, _ = make_copy_graph(
            [ZRange([0, 0], [2, 5]), ZRange([2, 0], [3, 2]),
                ZRange([2, 2], [3, 5])])
    graph.validate()


def test_validate_raises_aggregate():
    graph, _, op, _ = make_matmul_graph()
    op.node.remove_tag(IPF_INDEX_TAG_TYPE)

    with pytest.raises(LoomValidationError) as exc_info:
        graph.validate()

    issues = exc_info.value.issues
    assert [issue.summary for issue in issues] == [
            "Operation signature does not have an IPF index"]
    assert str(exc_info.value).startswith("Validation failed with 1 issues:")

# }}}


# {{{ references

def test_missing_reference():
    graph, (a, b, c), op, shards = make_matmul_graph()

    bogus_id = uuid.uuid4()
    shard = shards[0]
    replace_body(shard, ApplicationBody(
        operation_id=op.id,
        inputs={
            "x": [TensorSelection(bogus_id, shard.inputs["x"][0].range)],
            "y": shard.inputs["y"],
            },
        outputs=shard.outputs))

    issues = validation_issues(graph)
    ref_issues = [i for i in issues if i.type == NODE_REFERENCE_ERROR]

    assert len(ref_issues) == 1
    issue, = ref_issues
    assert issue.summary == "Referenced node does not exist"
    assert dict(issue.params) == {"nodeId": str(bogus_id), "nodeType": "Tensor"}
    assert issue.contexts[0].name == "Reference"
    assert issue.contexts[0].jsonpath == (
            f"$.nodes['{shard.id}'].body.inputs.x[0].tensorId")
    assert issue.contexts[1].name == "Application Node"


def test_wrong_type_reference():
    env = operation_expression_environment()
    graph = env.new_graph()
    note = NoteNode.build(graph, NoteBody("not a tensor"))
    y = TensorNode.build(graph,
            TensorBody(dtype="int32", range=ZRange.from_shape(3)))
    OperationNode.build(graph, OperationBody(
        kernel="copy",
        inputs={"in": [TensorSelection(note.id, ZRange.from_shape(3))]},
        outputs={"out": [y.selection()]}))

    issues = validation_issues(graph)
    assert len(issues) == 1

    issue, = issues
    assert issue.type == NODE_REFERENCE_ERROR
    assert issue.summary == "Referenced node has the wrong type"
    assert dict(issue.params) == {
            "nodeId": str(note.id),
            "expectedType": "Tensor",
            "actualType": "Note",
            }


def test_application_operation_reference():
    graph, _, op, shards = make_matmul_graph()
    a = graph.nodes_of_type(TensorNode)[0]

    shard = shards[0]
    replace_body(shard, ApplicationBody(
        operation_id=a.id, inputs=shard.inputs, outputs=shard.outputs))

    issues = validation_issues(graph)
    ref_issues = [i for i in issues if i.type == NODE_REFERENCE_ERROR]
    assert len(ref_issues) == 1
    assert ref_issues[0].summary == "Referenced node has the wrong type"
    assert ref_issues[0].params["expectedType"] == "Operation"
    assert ref_issues[0].params["actualType"] == "Tensor"

    # the remaining shard no longer covers the operation
    assert issues_with_summary(issues, "Operation Signature inputs key")

# }}}


# {{{ tensors and selections

def test_invalid_dtype():
    env = operation_expression_environment()
    graph = env.new_graph()
    t = TensorNode.build(graph,
            TensorBody(dtype="float64", range=ZRange.from_shape(2)))

    issues = validation_issues(graph)
    assert len(issues) == 1
    issue, = issues
    assert issue.type == NODE_VALIDATION_ERROR
    assert issue.summary == "Tensor dtype (float64) not a recognized type"
    assert dict(issue.params) == {"nodeType": "Tensor"}
    assert issue.contexts[0].jsonpath == f"$.nodes['{t.id}'].body.dtype"

    env = operation_expression_environment(valid_dtypes=["float64"])
    graph = env.new_graph()
    TensorNode.build(graph,
            TensorBody(dtype="float64", range=ZRange.from_shape(2)))
    graph.validate()


def test_selection_wrong_dimensions():
    graph, _, _ = make_op_env_copy(in_range=ZRange.from_shape(3))

    issues = validation_issues(graph)
    assert len(issues) == 1
    issue, = issues
    assert issue.summary == "Tensor selection has the wrong number of dimensions"
    assert dict(issue.params) == {
            "nodeType": "Operation",
            "expectedDimensions": "2",
            "actualDimensions": "1",
            }
    assert [ctx.name for ctx in issue.contexts] == [
            "Selection Range", "Tensor Node", "Operation Node"]


def test_selection_out_of_bounds():
    graph, _, op = make_op_env_copy(out_range=ZRange([1, 0], [4, 5]))

    issues = validation_issues(graph)
    assert len(issues) == 1
    issue, = issues
    assert issue.summary == "Tensor selection is out of bounds"
    assert dict(issue.params) == {
            "nodeType": "Operation",
            "tensorRange": "zr[0:3, 0:5]",
            "selectionRange": "zr[1:4, 0:5]",
            }
    assert issue.contexts[0].jsonpath == (
            f"$.nodes['{op.id}'].body.outputs.out[0].range")

# }}}


# {{{ shards

def test_no_shards():
    graph, _, op, shards = make_copy_graph([])
    assert shards == []

    issues = validation_issues(graph)
    assert len(issues) == 1
    issue, = issues
    assert issue.type == NODE_VALIDATION_ERROR
    assert issue.summary == "Operation Signature has no Application shards"
    assert dict(issue.params) == {"opSigId": str(op.id)}


def test_shard_keys_differ():
    graph, (x, y), op, (shard,) = make_copy_graph([ZRange.from_shape(3, 5)])
    replace_body(shard, ApplicationBody(
        operation_id=op.id,
        inputs=shard.inputs,
        outputs={"other": [y.selection()]}))

    issues = validation_issues(graph)
    assert [issue.summary for issue in issues] == [
            "Application Node outputs keys [other] != Operation Signature "
            "outputs keys [out]"]


def test_shard_selection_size_differs():
    graph, (x, y), op, (shard,) = make_copy_graph([ZRange.from_shape(3, 5)])
    replace_body(shard, ApplicationBody(
        operation_id=op.id,
        inputs={"in": [x.selection(), x.selection()]},
        outputs=shard.outputs))

    issues = validation_issues(graph)
    assert [issue.summary for issue in issues] == [
            "Application inputs key \"in\" selection size (2) != Signature "
            "selection size (1)"]


def test_shard_tensor_id_differs():
    graph, (x, y), op, (shard,) = make_copy_graph([ZRange.from_shape(3, 5)])
    replace_body(shard, ApplicationBody(
        operation_id=op.id,
        inputs={"in": [y.selection()]},
        outputs=shard.outputs))

    issues = validation_issues(graph)
    assert [issue.summary for issue in issues] == [
            "Application Tensor Selection Tensor Id != Signature Tensor Id"]
    assert [ctx.name for ctx in issues[0].contexts] == [
            "Application Tensor Selection", "Operation Tensor Selection",
            "Application Node", "Operation Node"]


def test_shard_outside_signature_range():
    graph, (x, y), op, (shard,) = make_copy_graph([ZRange.from_shape(3, 5)])
    narrow = ZRange.from_shape(3, 4)
    replace_body(op, OperationBody(
        kernel="copy",
        inputs={"in": [x.selection(narrow)]},
        outputs={"out": [y.selection(narrow)]}))

    issues = validation_issues(graph)
    assert [issue.summary for issue in issues] == 2*[
            "Application Tensor Selection range zr[0:3, 0:5] is outside "
            "signature range zr[0:3, 0:4]"]


def test_shard_bounding_range():
    graph, _, op, (shard,) = make_copy_graph([ZRange([0, 0], [3, 2])])

    issues = validation_issues(graph)
    assert [issue.summary for issue in issues] == [
            "Operation Signature inputs key \"in[0]\" range zr[0:3, 0:5] "
            "!= shard bounding range zr[0:3, 0:2]",
            "Operation Signature outputs key \"out[0]\" range zr[0:3, 0:5] "
            "!= shard bounding range zr[0:3, 0:2]",
            "Overlapping Application output key \"out[0]\" ranges",
            ]
    assert issues[0].contexts[0].name == "Application Shard Ranges"
    assert issues[0].contexts[0].data == {
            str(shard.id): ZRange([0, 0], [3, 2])}

# }}}


# {{{ coverage

def test_coverage_overlap():
    graph, _, _, _ = make_copy_graph(
            [ZRange([0, 0], [3, 3]), ZRange([0, 2], [3, 5])])

    issues = validation_issues(graph)
    assert len(issues) == 1
    issue, = issues
    assert issue.summary == "Overlapping Application output key \"out[0]\" ranges"
    assert dict(issue.params) == {
            "signatureSize": "15", "totalShardSize": "18"}
    assert [ctx.name for ctx in issue.contexts] == [
            "Application Shard Ranges", "Coverage Defects", "Operation Node"]
    assert set(issue.contexts[1].data) == {"overlapping"}


def test_coverage_gap():
    graph, _, _, _ = make_copy_graph(
            [ZRange([0, 0], [3, 2]), ZRange([0, 3], [3, 5])])

    issues = validation_issues(graph)
    assert len(issues) == 1
    issue, = issues
    assert dict(issue.params) == {
            "signatureSize": "15", "totalShardSize": "12"}
    assert set(issue.contexts[1].data) == {"missing"}


def test_coverage_without_set_description():
    env = application_expression_environment(
            options={"describe_coverage_sets": False})
    graph, _, _, _ = make_copy_graph(
            [ZRange([0, 0], [3, 3]), ZRange([0, 2], [3, 5])], env=env)

    issue, = validation_issues(graph)
    assert [ctx.name for ctx in issue.contexts] == [
            "Application Shard Ranges", "Operation Node"]

# }}}


# {{{ index projection functions

def test_operation_index_mismatch():
    graph, _, op, shards = make_matmul_graph()
    op.node.add_tag(IPF_INDEX_TAG_TYPE, ZRange.from_shape(3, 4))

    issues = validation_issues(graph)
    assert len(issues_with_summary(issues,
        "Selection map and projection map have different ranges")) == 2
    outside, = issues_with_summary(issues,
            "Application IPF index is outside the Operation IPF index")
    assert outside.params["appNodeId"] == str(shards[1].id)
    assert outside.params["appIndex"] == "zr[0:3, 3:5]"
    assert len(issues) == 3


def test_shard_without_index():
    graph, _, op, shards = make_matmul_graph()
    shards[0].node.remove_tag(IPF_INDEX_TAG_TYPE)

    issues = validation_issues(graph)
    assert [issue.summary for issue in issues] == [
            "Application node does not have an IPF index"]
    assert dict(issues[0].params) == {
            "appNodeId": str(shards[0].id), "opSigId": str(op.id)}


def test_shard_selection_not_projected():
    graph, (a, b, c), op, shards = make_matmul_graph()
    shard = shards[0]
    replace_body(shard, ApplicationBody(
        operation_id=op.id,
        inputs={"x": [a.selection()], "y": [b.selection()]},
        outputs=shard.outputs))

    issues = validation_issues(graph)
    issue, = issues
    assert issue.summary == (
            "Selection map and projection map have different ranges")
    assert issue.params["ioName"] == "y[0]"
    assert issue.params["selection"] == "zr[0:4, 0:5]"
    assert issue.params["expected"] == "zr[0:4, 0:3]"


def test_signature_keys_differ():
    graph, _, op, _ = make_matmul_graph()
    op.node.add_tag(IPF_SIGNATURE_TAG_TYPE, IPFSignature(
        inputs={"x": MATMUL_SIGNATURE.inputs["x"]},
        outputs=MATMUL_SIGNATURE.outputs))

    issues = validation_issues(graph)
    assert [issue.summary for issue in issues] == 3*[
            "Selection map and projection map have different keys"]
    assert dict(issues[0].params) == {
            "selectionMapName": "inputs",
            "selectionMapKeys": "[x, y]",
            "projectionMapKeys": "[x]",
            }


def test_signature_sizes_differ():
    graph, _, op, _ = make_matmul_graph()
    x_projection, = MATMUL_SIGNATURE.inputs["x"]
    op.node.add_tag(IPF_SIGNATURE_TAG_TYPE, IPFSignature(
        inputs={
            "x": [x_projection, x_projection],
            "y": MATMUL_SIGNATURE.inputs["y"],
            },
        outputs=MATMUL_SIGNATURE.outputs))

    issues = validation_issues(graph)
    assert [issue.summary for issue in issues] == 3*[
            "Selection map and projection map have different sizes"]
    assert issues[0].params["ioName"] == "x"


def test_signature_projection_rank_mismatch():
    graph, _, op, _ = make_matmul_graph()
    op.node.add_tag(IPF_SIGNATURE_TAG_TYPE, IPFSignature(
        inputs={
            "x": [IndexProjectionFunction(
                ZAffineMap([[1, 0, 0], [0, 0, 0]]), shape=(1, 4))],
            "y": MATMUL_SIGNATURE.inputs["y"],
            },
        outputs=MATMUL_SIGNATURE.outputs))

    issues = validation_issues(graph)
    assert [issue.summary for issue in issues] == 3*[
            "Projection cannot be applied to the IPF index"]

# }}}


# {{{ cycles

def test_cycle():
    env = operation_expression_environment()
    graph = env.new_graph()
    a = TensorNode.build(graph,
            TensorBody(dtype="int32", range=ZRange.from_shape(4)), label="A")
    add = OperationNode.build(graph,
            OperationBody(
                kernel="add",
                inputs={"x": [a.selection()]},
                outputs={"y": [a.selection()]}),
            label="Add")

    issues = validation_issues(graph)
    assert len(issues) == 1
    issue, = issues
    assert issue.type == REFERENCE_CYCLE_ERROR
    assert issue.summary == "Reference Cycle detected"

    ctx, = issue.contexts
    assert ctx.name == "Cycle"
    assert ctx.data == [
            {"id": str(add.id), "type": "Operation", "label": "Add"},
            {"id": str(a.id), "type": "Tensor", "label": "A"},
            ]

# }}}


# {{{ types and schemas

def test_unsupported_types():
    graph, _, op = make_op_env_copy()
    ApplicationNode.build(graph, ApplicationBody(
        operation_id=op.id, inputs=op.inputs, outputs=op.outputs))
    note = NoteNode.build(graph, NoteBody("tagged"))
    note.node.add_tag("http://example.com/tags#/Foo", {"bar": 1})

    issues = validation_issues(graph)
    assert [issue.summary for issue in issues] == [
            "Unsupported node type", "Unsupported tag type"]
    assert dict(issues[0].params) == {"nodeType": "loom:Application"}
    assert dict(issues[1].params) == {
            "nodeType": "loom:Note",
            "tagType": "http://example.com/tags#/Foo",
            }


def test_schema_violation():
    env = operation_expression_environment()
    graph = env.new_graph()
    node = graph.build_node(TENSOR_NODE_TYPE,
            {"dtype": 12, "range": {"start": [0], "end": [3]}})

    issues = validation_issues(graph)
    assert [issue.type for issue in issues] == [
            NODE_SCHEMA_ERROR, NODE_SCHEMA_ERROR]

    schema_issue, unreadable = issues
    assert schema_issue.summary == "12 is not of type 'string'"
    assert dict(schema_issue.params) == {
            "nodeType": "loom:Tensor",
            "schemaPath": "properties/dtype/type",
            }
    assert schema_issue.contexts[0].name == "Schema Violation"
    assert schema_issue.contexts[0].jsonpath == (
            f"$.nodes['{node.id}'].body.dtype")
    assert schema_issue.contexts[0].data == 12

    assert unreadable.summary == "Node body could not be read"
    assert unreadable.params["nodeId"] == str(node.id)


def test_schema_violation_in_tag():
    graph, _, op, _ = make_matmul_graph()
    op.node.add_tag(IPF_INDEX_TAG_TYPE, {"start": [0, 0], "end": [3, "5"]})

    issues = validation_issues(graph)
    schema_issues = [i for i in issues if i.type == NODE_SCHEMA_ERROR]
    assert schema_issues[0].summary == "'5' is not of type 'integer'"
    assert schema_issues[0].params["tagType"] == "loom:IPFIndex"
    assert schema_issues[0].contexts[0].jsonpath == (
            f"$.nodes['{op.id}'].tags['{IPF_INDEX_TAG_TYPE}'].end[1]")

    # the unreadable tag is reported once although several checks read it
    unreadable = issues_with_summary(schema_issues,
            f"Node {IPF_INDEX_TAG_TYPE} could not be read")
    assert len(unreadable) == 1


def test_unreadable_node_does_not_hide_other_issues():
    env = application_expression_environment()
    graph = env.new_graph()
    broken = graph.build_node(TENSOR_NODE_TYPE,
            {"dtype": "int32", "range": {"start": [3], "end": [1]}})
    TensorNode.build(graph,
            TensorBody(dtype="bogus", range=ZRange.from_shape(3)))

    issues = validation_issues(graph)
    assert [issue.summary for issue in issues] == [
            "Node body could not be read",
            "Tensor dtype (bogus) not a recognized type",
            ]
    assert issues[0].type == NODE_SCHEMA_ERROR
    assert dict(issues[0].params) == {
            "nodeId": str(broken.id),
            "constraint": "TensorDTypesAreValid",
            }


def test_unreadable_referenced_tensor():
    graph, (x, y), op = make_op_env_copy(out_range=ZRange([1, 0], [4, 5]))
    body = x.node.to_json()["body"]
    body["range"] = {"start": [0, 0], "end": [3]}
    replace_body(x, body)

    # the input selection of x is skipped, the output selection is checked
    issues = validation_issues(graph)
    assert [issue.summary for issue in issues] == [
            "Node body could not be read",
            "Tensor selection is out of bounds",
            ]
    assert issues[0].params["nodeId"] == str(x.id)
    assert issues[1].params["selectionRange"] == "zr[1:4, 0:5]"

# }}}


if __name__ == "__main__":
    if len(sys.argv) > 1:
        exec(sys.argv[1])
    else:
        from pytest import main
        main([__file__])

# vim: foldmethod=marker
