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


from loom.diagnostic import NODE_VALIDATION_ERROR
from loom.environment import Constraint
from loom.nodes import (
        TENSOR_NODE_TYPE, OPERATION_NODE_TYPE, APPLICATION_NODE_TYPE,
        TensorNode, OperationNode, ApplicationNode,
        iter_selections, type_name)
from loom.validation import concat_jsonpath, ValidationContext
from loom.constraints.reference import validate_node_reference


class TensorOperationAgreement(Constraint):
    """Every tensor selection of an Operation (and, where the environment
    supports them, of an Application) references an existing Tensor node, has
    that tensor's rank, and lies within the tensor's range.

    A failed reference only skips the checks of that one selection.
    """

    def check_requirements(self, env):
        env.assert_supports_node_type(TENSOR_NODE_TYPE)
        env.assert_supports_node_type(OPERATION_NODE_TYPE)

    def validate_constraint(self, env, graph, collector):
        for operation in graph.nodes_of_type(OperationNode):
            with self.reading_node(graph, collector):
                self.check_selecting_node(graph, operation, "Operation Node",
                        collector)

        if env.supports_node_type(APPLICATION_NODE_TYPE):
            for application in graph.nodes_of_type(ApplicationNode):
                with self.reading_node(graph, collector):
                    self.check_selecting_node(graph, application,
                            "Application Node", collector)

    def check_selecting_node(self, graph, view, context_name, collector):
        def node_context():
            return view.as_context(context_name)

        for map_name, selections in [
                ("inputs", view.inputs),
                ("outputs", view.outputs)]:
            for key, idx, sel in iter_selections(selections):
                sel_path = concat_jsonpath(
                        view.json_path, "body", map_name, key, f"[{idx}]")
                with self.reading_node(graph, collector):
                    self.check_selection(graph, view, sel, sel_path,
                            node_context, collector)

    def check_selection(self, graph, view, sel, sel_path, node_context,
            collector):
        tensor_node = validate_node_reference(
                graph, sel.tensor_id, TENSOR_NODE_TYPE,
                concat_jsonpath(sel_path, "tensorId"),
                collector, node_context)
        if tensor_node is None:
            return

        tensor = TensorNode(tensor_node)
        tensor_range = tensor.range
        node_type = type_name(view.type)

        def selection_contexts():
            return [
                ValidationContext(
                    name="Selection Range",
                    jsonpath=concat_jsonpath(sel_path, "range"),
                    data=sel.range.to_json()),
                tensor.as_context("Tensor Node"),
                node_context(),
                ]

        if sel.range.ndim != tensor_range.ndim:
            collector.add_issue(
                    type=NODE_VALIDATION_ERROR,
                    summary="Tensor selection has the wrong number "
                    "of dimensions",
                    params={
                        "nodeType": node_type,
                        "expectedDimensions": tensor_range.ndim,
                        "actualDimensions": sel.range.ndim,
                        },
                    contexts=selection_contexts)
            return

        if not tensor_range.contains(sel.range):
            collector.add_issue(
                    type=NODE_VALIDATION_ERROR,
                    summary="Tensor selection is out of bounds",
                    params={
                        "nodeType": node_type,
                        "tensorRange": tensor_range,
                        "selectionRange": sel.range,
                        },
                    contexts=selection_contexts)
