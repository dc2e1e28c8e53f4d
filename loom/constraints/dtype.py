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


from typing import Iterable, Optional

from loom.diagnostic import NODE_VALIDATION_ERROR
from loom.environment import Constraint
from loom.nodes import TENSOR_NODE_TYPE, TensorNode, type_name
from loom.validation import concat_jsonpath, ValidationContext


class TensorDTypesAreValid(Constraint):
    """Every Tensor node's dtype is one of :attr:`valid_dtypes`.

    .. attribute:: valid_dtypes

        If *None*, :attr:`loom.options.Options.valid_dtypes` of the
        environment is used.
    """

    def __init__(self, valid_dtypes: Optional[Iterable[str]] = None):
        self.valid_dtypes = (None if valid_dtypes is None
                else frozenset(valid_dtypes))

    def check_requirements(self, env):
        env.assert_supports_node_type(TENSOR_NODE_TYPE)

    def get_valid_dtypes(self, env):
        if self.valid_dtypes is not None:
            return self.valid_dtypes
        return env.options.valid_dtypes

    def validate_constraint(self, env, graph, collector):
        valid_dtypes = self.get_valid_dtypes(env)

        for tensor in graph.nodes_of_type(TensorNode):
            with self.reading_node(graph, collector):
                self.check_tensor(tensor, valid_dtypes, collector)

    def check_tensor(self, tensor: TensorNode, valid_dtypes, collector):
        dtype = tensor.dtype
        if dtype not in valid_dtypes:
            collector.add_issue(
                    type=NODE_VALIDATION_ERROR,
                    summary=f"Tensor dtype ({dtype}) not a recognized type",
                    params={"nodeType": type_name(TENSOR_NODE_TYPE)},
                    contexts=[
                        ValidationContext(
                            name="Tensor",
                            jsonpath=concat_jsonpath(
                                tensor.json_path, "body", "dtype"),
                            data=tensor.node.to_json()),
                        ])
