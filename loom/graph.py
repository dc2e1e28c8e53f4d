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


import copy
import logging
import uuid
from types import MappingProxyType
from typing import Any, Dict, Iterator, Mapping, Optional, Union

from pytools import memoize_method

from loom.diagnostic import (
        LoomValueError, LoomTypeMismatch, NodeNotFoundError,
        GraphMembershipError, EnvironmentNotSetError)


logger = logging.getLogger(__name__)


__doc__ = """
.. autoclass:: LoomNode
.. autoclass:: LoomGraph
.. autoclass:: MalformedNodeBodyError

.. autofunction:: as_node_id
"""


class MalformedNodeBodyError(LoomValueError):
    """Raised when a node body or tag cannot be read as the requested typed
    record.

    .. attribute:: node_id
    .. attribute:: what

        ``"body"`` or the tag type.
    """

    def __init__(self, node_id, what, detail):
        self.node_id = node_id
        self.what = what
        self.detail = detail
        super().__init__(f"node {node_id}: malformed {what}: {detail}")

    def __reduce__(self):
        return (type(self), (self.node_id, self.what, self.detail))


def as_node_id(value) -> uuid.UUID:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except ValueError:
        raise LoomValueError(f"invalid node id: {value!r}") from None


def _to_json_value(value):
    if hasattr(value, "to_json"):
        return value.to_json()
    return copy.deepcopy(value)


# {{{ node

class LoomNode:
    """A typed, tagged vertex of a :class:`LoomGraph`.

    The body is held in its JSON form and read through :meth:`view_body_as`.
    Only :attr:`label` and the tags may change after construction.

    .. attribute:: id

        A :class:`uuid.UUID`.

    .. attribute:: type

        The node type URI.

    .. attribute:: label
    .. attribute:: body
    .. attribute:: tags

        A :class:`dict` mapping tag type URIs to JSON values.

    .. attribute:: graph

        The owning :class:`LoomGraph`, or *None*.

    .. automethod:: view_body_as
    .. automethod:: view_tag_as
    .. automethod:: as_context
    """

    def __init__(self, id, type: str, body, label: Optional[str] = None,
            tags: Optional[Mapping[str, Any]] = None):
        self.id = as_node_id(id)
        self.type = type
        self.label = label
        self._body = _to_json_value(body)
        self.tags: Dict[str, Any] = {
                tag_type: _to_json_value(value)
                for tag_type, value in (tags or {}).items()}
        self.graph: Optional["LoomGraph"] = None

    @property
    def body(self):
        return self._body

    @property
    def json_path(self) -> str:
        return f"$.nodes['{self.id}']"

    def assert_graph(self) -> "LoomGraph":
        if self.graph is None:
            raise GraphMembershipError(f"node {self.id} does not belong to a graph")
        return self.graph

    def assert_type(self, type: str) -> None:
        if self.type != type:
            raise LoomTypeMismatch(
                    f"Node type does not match: expected '{type}', "
                    f"got '{self.type}'")

    @memoize_method
    def view_body_as(self, cls):
        """Return ``cls.from_json(self.body)``.

        :raises MalformedNodeBodyError: if the body does not have the shape
            *cls* expects.
        """
        try:
            return cls.from_json(self._body)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise MalformedNodeBodyError(self.id, "body", e) from e

    # {{{ tags

    def has_tag(self, tag_type: str) -> bool:
        return tag_type in self.tags

    def get_tag(self, tag_type: str):
        try:
            return self.tags[tag_type]
        except KeyError:
            raise LoomValueError(
                    f"node {self.id} has no tag '{tag_type}'") from None

    def view_tag_as(self, tag_type: str, cls):
        value = self.get_tag(tag_type)
        try:
            return cls.from_json(value)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise MalformedNodeBodyError(self.id, tag_type, e) from e

    def add_tag(self, tag_type: str, value) -> None:
        self.tags[tag_type] = _to_json_value(value)

    def remove_tag(self, tag_type: str) -> None:
        self.tags.pop(tag_type, None)

    # }}}

    def as_context(self, name: str, message: Optional[str] = None):
        from loom.validation import ValidationContext
        return ValidationContext(
                name=name, message=message,
                jsonpath=self.json_path, data=self.to_json())

    def __eq__(self, other):
        if not isinstance(other, LoomNode):
            return NotImplemented
        return (self.id == other.id
                and self.type == other.type
                and self.label == other.label
                and self._body == other._body
                and self.tags == other.tags)

    def __hash__(self):
        return hash(self.id)

    def to_json(self):
        result = {"id": str(self.id), "type": self.type}
        if self.label is not None:
            result["label"] = self.label
        result["body"] = copy.deepcopy(self._body)
        if self.tags:
            result["tags"] = copy.deepcopy(self.tags)
        return result

    @staticmethod
    def from_json(data) -> "LoomNode":
        try:
            return LoomNode(
                    id=data["id"],
                    type=data["type"],
                    body=data.get("body"),
                    label=data.get("label"),
                    tags=data.get("tags"))
        except (KeyError, TypeError, AttributeError):
            raise LoomValueError(f"invalid node document: {data!r}") from None

    def __repr__(self):
        label = "" if self.label is None else f", label={self.label!r}"
        return f"LoomNode(id={self.id}, type={self.type!r}{label})"

    def __getstate__(self):
        state = self.__dict__.copy()
        # memoize_method caches
        for key in list(state):
            if key.startswith("_memoize_dic"):
                del state[key]
        return state

# }}}


# {{{ graph

class LoomGraph:
    """An id-keyed store of :class:`LoomNode`\\ s, optionally bound to a
    :class:`loom.environment.LoomEnvironment`.

    Iteration yields nodes in insertion order.

    .. attribute:: id
    .. attribute:: env
    .. attribute:: nodes

        A read-only mapping from node id to :class:`LoomNode`.

    .. automethod:: add_node
    .. automethod:: build_node
    .. automethod:: remove_node
    .. automethod:: assert_node
    .. automethod:: nodes_of_type
    .. automethod:: validate
    """

    def __init__(self, env=None, id=None):
        self.id = uuid.uuid4() if id is None else as_node_id(id)
        self.env = env
        self._nodes: Dict[uuid.UUID, LoomNode] = {}

    @property
    def nodes(self) -> Mapping[uuid.UUID, LoomNode]:
        return MappingProxyType(self._nodes)

    def __iter__(self) -> Iterator[LoomNode]:
        return iter(list(self._nodes.values()))

    def __len__(self):
        return len(self._nodes)

    def __contains__(self, id):
        return self.has_node(id)

    def assert_env(self):
        if self.env is None:
            raise EnvironmentNotSetError(f"Environment not set for graph {self.id}")
        return self.env

    def new_node_id(self) -> uuid.UUID:
        while True:
            id = uuid.uuid4()
            if id not in self._nodes:
                return id

    # {{{ lookup

    def has_node(self, id) -> bool:
        try:
            return as_node_id(id) in self._nodes
        except LoomValueError:
            return False

    def get_node(self, id) -> Optional[LoomNode]:
        try:
            return self._nodes.get(as_node_id(id))
        except LoomValueError:
            return None

    def assert_node(self, id, type: Optional[str] = None) -> LoomNode:
        node = self.get_node(id)
        if node is None:
            raise NodeNotFoundError(f"Node not found: {id}")
        if type is not None and node.type != type:
            raise LoomTypeMismatch(
                    f"Node {id} is not of type '{type}': '{node.type}'")
        return node

    def nodes_of_type(self, type_or_view):
        """If *type_or_view* is a type URI, return the list of nodes of
        that type. If it is a node view class (such as
        :class:`loom.nodes.TensorNode`), return views of the nodes of its
        :attr:`~loom.nodes.NodeView.TYPE`.
        """
        if isinstance(type_or_view, str):
            return [node for node in self if node.type == type_or_view]

        return [type_or_view(node) for node in self
                if node.type == type_or_view.TYPE]

    # }}}

    # {{{ mutation

    def add_node(self, node: LoomNode) -> LoomNode:
        if node.graph is not None and node.graph is not self:
            raise GraphMembershipError(
                    f"Node already belongs to a graph: {node.id}")

        existing = self._nodes.get(node.id)
        if existing is not None and existing is not node:
            raise GraphMembershipError(
                    f"Graph already has node with id: {node.id}")

        node.graph = self
        self._nodes[node.id] = node
        return node

    def build_node(self, type: str, body, label: Optional[str] = None,
            tags: Optional[Mapping[str, Any]] = None, id=None) -> LoomNode:
        """Create a node and add it to this graph. A fresh id is drawn with
        :meth:`new_node_id` if *id* is not given."""
        if id is None:
            id = self.new_node_id()
        return self.add_node(
                LoomNode(id=id, type=type, body=body, label=label, tags=tags))

    def remove_node(self, node_or_id: Union[LoomNode, uuid.UUID, str]
            ) -> Optional[LoomNode]:
        id = node_or_id.id if isinstance(node_or_id, LoomNode) else node_or_id
        try:
            node = self._nodes.pop(as_node_id(id), None)
        except LoomValueError:
            return None
        if node is not None:
            node.graph = None
        return node

    # }}}

    def copy(self) -> "LoomGraph":
        """Return a deep copy with the same id and environment, whose nodes
        are not shared with this graph."""
        return LoomGraph.from_json(self.to_json(), env=self.env)

    def validate(self, collector=None):
        """Run every constraint of :attr:`env` against this graph.

        Without *collector*, raise a single
        :class:`loom.diagnostic.LoomValidationError` carrying all issues if
        any were found. With *collector*, record the issues into it and
        return it without raising.
        """
        return self.assert_env().validate_graph(self, collector)

    def to_json(self):
        return {
                "id": str(self.id),
                "nodes": [node.to_json() for node in self],
                }

    @staticmethod
    def from_json(data, env=None) -> "LoomGraph":
        if not isinstance(data, dict) or "nodes" not in data:
            raise LoomValueError("graph document must be an object with 'nodes'")

        graph = LoomGraph(env=env, id=data.get("id"))
        nodes = data["nodes"]
        if isinstance(nodes, dict):
            nodes = [dict(node, id=node.get("id", id))
                    for id, node in nodes.items()]

        for node_data in nodes:
            graph.add_node(LoomNode.from_json(node_data))

        logger.debug("loaded graph %s with %d nodes", graph.id, len(graph))
        return graph

    def __repr__(self):
        return f"LoomGraph(id={self.id}, nodes={len(self)})"

# }}}

# vim: foldmethod=marker
