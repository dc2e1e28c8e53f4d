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
from contextlib import contextmanager
from typing import Iterable, List, Mapping, Optional, Type, TypeVar

from pytools import ProcessLogger

from loom.diagnostic import (
        MissingDependency, UnsupportedNodeType, NODE_SCHEMA_ERROR)


logger = logging.getLogger(__name__)


__doc__ = """
.. autoclass:: Constraint
.. autofunction:: record_unreadable_node
.. autoclass:: LoomEnvironment
"""


# {{{ constraint interface

class Constraint:
    """A whole-graph check.

    .. automethod:: check_requirements
    .. automethod:: validate_constraint
    .. automethod:: reading_node
    .. automethod:: unreadable_node_handler
    """

    def check_requirements(self, env: "LoomEnvironment") -> None:
        """Called when the constraint is added to *env*. Raise a
        :class:`~loom.diagnostic.ConstraintSetupError` if *env* lacks a node
        type, schema or prerequisite constraint this constraint relies on.
        """

    def validate_constraint(self, env: "LoomEnvironment", graph, collector
            ) -> None:
        """Record every violation found in *graph* into *collector*.

        Must not modify *graph*, and must not raise for defects of the graph
        data.
        """
        raise NotImplementedError

    @contextmanager
    def reading_node(self, graph, collector):
        """Run the block checking one node or selection. If the block fails
        with a :class:`~loom.graph.MalformedNodeBodyError`, record it through
        :func:`record_unreadable_node` and skip the rest of the block only.
        """
        from loom.graph import MalformedNodeBodyError

        try:
            yield
        except MalformedNodeBodyError as e:
            record_unreadable_node(graph, collector, e, self.name)

    def unreadable_node_handler(self, graph, collector):
        """Return a callback for the *on_unreadable* argument of graph scans
        such as :func:`~loom.constraints.sharding.collect_shards`."""
        def handle(error):
            record_unreadable_node(graph, collector, error, self.name)

        return handle

    @property
    def name(self) -> str:
        return type(self).__name__

    def __repr__(self):
        return f"{self.name}()"


def record_unreadable_node(graph, collector, error, constraint_name: str):
    """Record a :data:`~loom.diagnostic.NODE_SCHEMA_ERROR` for the node part
    *error* (a :class:`~loom.graph.MalformedNodeBodyError`) could not read,
    unless *collector* already holds one for the same node part.
    """
    summary = f"Node {error.what} could not be read"
    node_id = str(error.node_id)
    logger.warning("%s: %s", constraint_name, error)

    for issue in collector.issues:
        if (issue.type == NODE_SCHEMA_ERROR and issue.summary == summary
                and issue.params.get("nodeId") == node_id):
            return

    node = graph.get_node(error.node_id)
    collector.add_issue(
            type=NODE_SCHEMA_ERROR,
            summary=summary,
            params={"nodeId": node_id, "constraint": constraint_name},
            message=str(error.detail),
            contexts=[] if node is None else [
                lambda: node.as_context("Node")])

# }}}


ConstraintT = TypeVar("ConstraintT", bound=Constraint)


class LoomEnvironment:
    """The node and tag types a graph may use, the schemas of their bodies,
    and the ordered constraints a valid graph satisfies.

    Constraints run in the order they were added. Each constraint's
    :meth:`Constraint.check_requirements` is run when it is added, so a
    constraint must be added after the constraints it depends on.

    .. attribute:: type_support

        The :class:`~loom.constraints.types.TypeRestrictionConstraint`
        that always runs first.

    .. attribute:: constraints
    .. attribute:: schemas

        A :class:`loom.schema.SchemaRegistry`.

    .. attribute:: options

        A :class:`loom.options.Options`.

    .. automethod:: add_constraint
    .. automethod:: validate_graph
    """

    def __init__(self, node_types: Iterable[str], tag_types: Iterable[str] = (),
            constraints: Iterable[Constraint] = (),
            schemas=None,
            url_aliases: Optional[Mapping[str, str]] = None,
            options=None):
        from loom.constraints.types import TypeRestrictionConstraint
        from loom.options import make_options
        from loom.schema import SchemaRegistry

        self.type_support = TypeRestrictionConstraint(node_types, tag_types)
        self.schemas = SchemaRegistry() if schemas is None else schemas
        self.url_aliases = dict(url_aliases or {})
        self.options = make_options(options)
        self.constraints: List[Constraint] = []

        for constraint in constraints:
            self.add_constraint(constraint)

    # {{{ type support

    def supports_node_type(self, type: str) -> bool:
        return type in self.type_support.node_types

    def supports_tag_type(self, type: str) -> bool:
        return type in self.type_support.tag_types

    def assert_supports_node_type(self, type: str) -> None:
        if not self.supports_node_type(type):
            raise UnsupportedNodeType(
                    f"Unsupported node type: {self.url_alias(type)}")

    def assert_supports_tag_type(self, type: str) -> None:
        if not self.supports_tag_type(type):
            raise UnsupportedNodeType(
                    f"Unsupported tag type: {self.url_alias(type)}")

    def url_alias(self, type: str) -> str:
        """Abbreviate a type URI ``<url>#/$defs/Name`` to ``alias:Name`` if
        *url* has an alias."""
        url, sep, fragment = type.partition("#")
        alias = self.url_aliases.get(url)
        if alias is None or not sep:
            return type
        return "{}:{}".format(alias, fragment.rsplit("/", 1)[-1])

    # }}}

    # {{{ constraints

    def add_constraint(self, constraint: ConstraintT) -> ConstraintT:
        constraint.check_requirements(self)
        self.constraints.append(constraint)
        logger.debug("added constraint %s", constraint.name)
        return constraint

    def lookup_constraint(self, cls: Type[ConstraintT]) -> Optional[ConstraintT]:
        for constraint in self.constraints:
            if isinstance(constraint, cls):
                return constraint
        return None

    def assert_constraint(self, cls: Type[ConstraintT]) -> ConstraintT:
        constraint = self.lookup_constraint(cls)
        if constraint is None:
            raise MissingDependency(
                    f"Required constraint not found: {cls.__name__}")
        return constraint

    # }}}

    def new_graph(self, id=None):
        from loom.graph import LoomGraph
        return LoomGraph(env=self, id=id)

    def graph_from_json(self, data):
        from loom.graph import LoomGraph
        return LoomGraph.from_json(data, env=self)

    def validate_graph(self, graph, collector=None):
        """Run :attr:`type_support` and then every constraint against
        *graph*.

        If *collector* is *None*, collect into a fresh
        :class:`~loom.validation.ListValidationIssueCollector` and raise
        :class:`~loom.diagnostic.LoomValidationError` if it is non-empty.
        Otherwise return *collector*.
        """
        from loom.validation import ListValidationIssueCollector

        raise_on_issues = collector is None
        if collector is None:
            collector = ListValidationIssueCollector()

        with ProcessLogger(logger, f"validate graph {graph.id}"):
            for constraint in [self.type_support, *self.constraints]:
                with ProcessLogger(logger, f"constraint {constraint.name}"):
                    self._run_constraint(constraint, graph, collector)

        if raise_on_issues:
            collector.check()

        return collector

    def _run_constraint(self, constraint, graph, collector):
        # reads outside of a per-node block end the constraint
        with constraint.reading_node(graph, collector):
            constraint.validate_constraint(self, graph, collector)

    def __repr__(self):
        return "LoomEnvironment(constraints=[%s])" % ", ".join(
                c.name for c in self.constraints)
