from loom import (
        ZRange, ZAffineMap, IndexProjectionFunction,
        TensorBody, OperationBody, ApplicationBody,
        TensorNode, OperationNode, ApplicationNode, IPFSignature,
        IPF_SIGNATURE_TAG_TYPE, IPF_INDEX_TAG_TYPE,
        application_expression_environment)


# {{{ matmul

MATMUL_SIGNATURE = IPFSignature(
        inputs={
            "x": [IndexProjectionFunction(
                ZAffineMap([[1, 0], [0, 0]]), shape=(1, 4))],
            "y": [IndexProjectionFunction(
                ZAffineMap([[0, 0], [0, 1]]), shape=(4, 1))],
            },
        outputs={
            "z": [IndexProjectionFunction(ZAffineMap.identity(2))],
            })


def make_matmul_graph(env=None, nshards=2):
    """A:int32[3,4] @ B:int32[4,5] -> C:int32[3,5], with the [3,5] index
    space split into *nshards* shards along its second axis."""
    if env is None:
        env = application_expression_environment()

    graph = env.new_graph()

    a = TensorNode.build(graph,
            TensorBody(dtype="int32", range=ZRange.from_shape(3, 4)), label="A")
    b = TensorNode.build(graph,
            TensorBody(dtype="int32", range=ZRange.from_shape(4, 5)), label="B")
    c = TensorNode.build(graph,
            TensorBody(dtype="int32", range=ZRange.from_shape(3, 5)), label="C")

    index = ZRange.from_shape(3, 5)
    op = OperationNode.build(graph,
            OperationBody(
                kernel="matmul",
                inputs={"x": [a.selection()], "y": [b.selection()]},
                outputs={"z": [c.selection()]}),
            label="Matmul",
            tags={
                IPF_SIGNATURE_TAG_TYPE: MATMUL_SIGNATURE,
                IPF_INDEX_TAG_TYPE: index,
                })

    shards = []
    for shard_index in index.split(1, nshards):
        def project(name, tensor, projections):
            return {name: [tensor.selection(projections[name][0].apply(
                shard_index))]}

        shards.append(ApplicationNode.build(graph,
            ApplicationBody(
                operation_id=op.id,
                inputs={
                    **project("x", a, MATMUL_SIGNATURE.inputs),
                    **project("y", b, MATMUL_SIGNATURE.inputs),
                    },
                outputs=project("z", c, MATMUL_SIGNATURE.outputs)),
            label="Matmul",
            tags={IPF_INDEX_TAG_TYPE: shard_index}))

    return graph, (a, b, c), op, shards

# }}}


# {{{ untagged copy operation

def make_copy_graph(shard_ranges, env=None):
    """X:int32[3,5] -> Y:int32[3,5] by an Operation without an IPF
    signature, with one shard per entry of *shard_ranges* selecting that
    range of both tensors."""
    if env is None:
        env = application_expression_environment()

    graph = env.new_graph()
    x = TensorNode.build(graph,
            TensorBody(dtype="int32", range=ZRange.from_shape(3, 5)), label="X")
    y = TensorNode.build(graph,
            TensorBody(dtype="int32", range=ZRange.from_shape(3, 5)), label="Y")

    op = OperationNode.build(graph,
            OperationBody(
                kernel="copy",
                inputs={"in": [x.selection()]},
                outputs={"out": [y.selection()]}),
            label="Copy")

    shards = [
            ApplicationNode.build(graph,
                ApplicationBody(
                    operation_id=op.id,
                    inputs={"in": [x.selection(r)]},
                    outputs={"out": [y.selection(r)]}))
            for r in shard_ranges]

    return graph, (x, y), op, shards

# }}}


def replace_body(view, body):
    """Replace *view*'s node by one with the same id, type, label and tags
    but with *body*. Returns the new node."""
    node = view.node
    graph = node.graph
    graph.remove_node(node)
    return graph.build_node(node.type, body,
            label=node.label, tags=node.tags, id=node.id)


def issues_with_summary(issues, prefix):
    return [issue for issue in issues if issue.summary.startswith(prefix)]

# vim: foldmethod=marker
