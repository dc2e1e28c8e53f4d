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


from loom.diagnostic import REFERENCE_CYCLE_ERROR
from loom.environment import Constraint
from loom.nodes import type_name
from loom.validation import ValidationContext
from loom.constraints.selection import TensorOperationAgreement


def describe_cycle(cycle):
    result = []
    for node in cycle:
        desc = {"id": str(node.id), "type": type_name(node.type)}
        if node.label is not None:
            desc["label"] = node.label
        result.append(desc)
    return result


class NoTensorOperationCycles(Constraint):
    """The Operation/Tensor data flow graph is acyclic. Each simple cycle is
    reported once, listing its nodes in data flow order."""

    def check_requirements(self, env):
        env.assert_constraint(TensorOperationAgreement)

    def validate_constraint(self, env, graph, collector):
        from loom.traversal import find_operation_simple_cycles

        for cycle in find_operation_simple_cycles(graph,
                self.unreadable_node_handler(graph, collector)):
            collector.add_issue(
                    type=REFERENCE_CYCLE_ERROR,
                    summary="Reference Cycle detected",
                    contexts=[
                        ValidationContext(name="Cycle",
                            data=describe_cycle(cycle)),
                        ])
