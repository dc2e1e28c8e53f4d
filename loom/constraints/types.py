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


from typing import Iterable

from loom.diagnostic import NODE_VALIDATION_ERROR
from loom.environment import Constraint


class TypeRestrictionConstraint(Constraint):
    """Reports nodes and tags whose type is not in the given sets.

    .. attribute:: node_types
    .. attribute:: tag_types
    """

    def __init__(self, node_types: Iterable[str], tag_types: Iterable[str] = ()):
        self.node_types = frozenset(node_types)
        self.tag_types = frozenset(tag_types)

    def validate_constraint(self, env, graph, collector):
        for node in graph:
            if node.type not in self.node_types:
                collector.add_issue(
                        type=NODE_VALIDATION_ERROR,
                        summary="Unsupported node type",
                        params={"nodeType": env.url_alias(node.type)},
                        contexts=[lambda node=node: node.as_context("Node")])

            for tag_type in sorted(node.tags):
                if tag_type not in self.tag_types:
                    collector.add_issue(
                            type=NODE_VALIDATION_ERROR,
                            summary="Unsupported tag type",
                            params={
                                "nodeType": env.url_alias(node.type),
                                "tagType": env.url_alias(tag_type),
                                },
                            contexts=[lambda node=node: node.as_context("Node")])
