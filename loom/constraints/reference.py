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


from typing import Optional

from loom.diagnostic import NODE_REFERENCE_ERROR
from loom.graph import LoomNode
from loom.nodes import type_name
from loom.validation import ValidationContext


def validate_node_reference(graph, node_id, node_type: str, jsonpath: str,
        collector, contexts=None) -> Optional[LoomNode]:
    """Resolve *node_id* in *graph*, expecting a node of type *node_type*.

    :returns: the referenced node, or *None* after recording a
        ``NodeReferenceError`` if it does not exist or has the wrong type.
    """
    reference_context = ValidationContext(
            name="Reference", jsonpath=jsonpath, data=str(node_id))

    node = graph.get_node(node_id)
    if node is None:
        collector.add_issue(
                type=NODE_REFERENCE_ERROR,
                summary="Referenced node does not exist",
                params={"nodeId": node_id, "nodeType": type_name(node_type)},
                contexts=[reference_context, contexts])
        return None

    if node.type != node_type:
        collector.add_issue(
                type=NODE_REFERENCE_ERROR,
                summary="Referenced node has the wrong type",
                params={
                    "nodeId": node_id,
                    "expectedType": type_name(node_type),
                    "actualType": type_name(node.type),
                    },
                contexts=[reference_context, contexts])
        return None

    return node
