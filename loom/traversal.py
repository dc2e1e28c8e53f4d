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
import uuid
from typing import Dict, List

import networkx as nx

from loom.nodes import (
        TENSOR_NODE_TYPE, OperationNode, iter_selections)


logger = logging.getLogger(__name__)


__doc__ = """
Graph analyses over the Operation/Tensor data flow of a
:class:`~loom.graph.LoomGraph`.

.. autofunction:: build_data_flow_graph
.. autofunction:: find_operation_simple_cycles
.. autofunction:: build_coloring_graph
.. autofunction:: strategy_insertion_order
.. autofunction:: compute_tensor_operation_coloring
"""


def _referenced_tensor_ids(graph, selections):
    for _, _, sel in iter_selections(selections):
        node = graph.get_node(sel.tensor_id)
        if node is not None and node.type == TENSOR_NODE_TYPE:
            yield sel.tensor_id


def build_data_flow_graph(graph, on_unreadable=None) -> nx.DiGraph:
    """Return a :class:`networkx.DiGraph` on node ids with an edge
    ``tensor -> operation`` for every input selection of an Operation and an
    edge ``operation -> tensor`` for every output selection.

    Selections that do not reference an existing Tensor node are ignored.

    :arg on_unreadable: if not *None*, Operation nodes whose body cannot be
        read are left out and the :class:`~loom.graph.MalformedNodeBodyError`
        is passed to this callable instead of propagating.
    """
    from loom.graph import MalformedNodeBodyError

    result = nx.DiGraph()
    for operation in graph.nodes_of_type(OperationNode):
        try:
            inputs, outputs = operation.inputs, operation.outputs
        except MalformedNodeBodyError as e:
            if on_unreadable is None:
                raise
            on_unreadable(e)
            continue

        result.add_node(operation.id)
        for tensor_id in _referenced_tensor_ids(graph, inputs):
            result.add_edge(tensor_id, operation.id)
        for tensor_id in _referenced_tensor_ids(graph, outputs):
            result.add_edge(operation.id, tensor_id)

    return result


def find_operation_simple_cycles(graph, on_unreadable=None) -> List[List]:
    """Return the simple cycles of :func:`build_data_flow_graph` with more
    than one node, each as a list of :class:`~loom.graph.LoomNode` in data
    flow order.

    Each cycle starts at its Operation node appearing first in *graph*, and
    cycles are ordered by the graph positions of their nodes.

    :arg on_unreadable: see :func:`build_data_flow_graph`.
    """
    from pytools.graph import compute_sccs

    flow = build_data_flow_graph(graph, on_unreadable)
    sccs = compute_sccs({node: list(flow.successors(node)) for node in flow})

    position = {node.id: i for i, node in enumerate(graph)}
    operation_ids = set(
            node.id for node in graph.nodes_of_type(OperationNode))

    cycles = []
    for scc in sccs:
        if len(scc) < 2:
            continue

        for cycle in nx.simple_cycles(flow.subgraph(scc)):
            if len(cycle) < 2:
                continue

            start = min(
                    (i for i, id in enumerate(cycle) if id in operation_ids),
                    key=lambda i: position[cycle[i]])
            cycles.append(cycle[start:] + cycle[:start])

    cycles.sort(key=lambda cycle: [position[id] for id in cycle])
    logger.debug("found %d data flow cycles", len(cycles))

    return [[graph.get_node(id) for id in cycle] for cycle in cycles]


def build_coloring_graph(graph) -> nx.Graph:
    """Return an undirected :class:`networkx.Graph` on node ids connecting

    * each Operation to every Tensor it reads or writes,
    * each Operation to every other Operation reading or writing one of
      those Tensors, and
    * all Tensors touched by the same Operation pairwise.
    """
    result = nx.Graph()
    touched: Dict[uuid.UUID, List[uuid.UUID]] = {}
    tensor_ops: Dict[uuid.UUID, List[uuid.UUID]] = {}

    for operation in graph.nodes_of_type(OperationNode):
        result.add_node(operation.id)

        tensor_ids = []
        for selections in [operation.inputs, operation.outputs]:
            for tensor_id in _referenced_tensor_ids(graph, selections):
                if tensor_id not in tensor_ids:
                    tensor_ids.append(tensor_id)

        touched[operation.id] = tensor_ids
        for tensor_id in tensor_ids:
            tensor_ops.setdefault(tensor_id, []).append(operation.id)
            result.add_edge(operation.id, tensor_id)

        for i, tensor_id in enumerate(tensor_ids):
            for other_id in tensor_ids[i+1:]:
                result.add_edge(tensor_id, other_id)

    for operation_id, tensor_ids in touched.items():
        for tensor_id in tensor_ids:
            for other_op_id in tensor_ops[tensor_id]:
                if other_op_id != operation_id:
                    result.add_edge(operation_id, other_op_id)

    return result


def strategy_insertion_order(G, colors):
    """A :func:`networkx.greedy_color` strategy visiting the nodes of *G* in
    the order they were added."""
    return iter(G)


def compute_tensor_operation_coloring(graph, strategy=strategy_insertion_order
        ) -> Dict[uuid.UUID, int]:
    """Greedily color :func:`build_coloring_graph`; adjacent nodes receive
    different colors.

    :arg strategy: passed to :func:`networkx.greedy_color`. By default nodes
        are colored in the order :func:`build_coloring_graph` adds them, so
        Operations come first in graph order, each followed by the Tensors it
        is the first to touch.
    :returns: a mapping from node id to color index.
    """
    return nx.greedy_color(build_coloring_graph(graph), strategy=strategy)
