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


import uuid
from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, List, Mapping, Optional, Tuple

from immutables import Map

from loom.diagnostic import LoomValueError, LoomTypeMismatch
from loom.graph import LoomNode, as_node_id
from loom.zspace import ZRange, IndexProjectionFunction


__doc__ = """
Node and tag types of the tensor operation dialects, their typed bodies, and
zero-state views over :class:`~loom.graph.LoomNode`.

.. data:: TENSOR_NODE_TYPE
.. data:: OPERATION_NODE_TYPE
.. data:: APPLICATION_NODE_TYPE
.. data:: NOTE_NODE_TYPE
.. data:: IPF_SIGNATURE_TAG_TYPE
.. data:: IPF_INDEX_TAG_TYPE

.. autoclass:: TensorSelection
.. autoclass:: TensorBody
.. autoclass:: OperationBody
.. autoclass:: ApplicationBody
.. autoclass:: NoteBody
.. autoclass:: IPFSignature

.. autoclass:: NodeView
.. autoclass:: TensorNode
.. autoclass:: OperationNode
.. autoclass:: ApplicationNode
.. autoclass:: NoteNode
"""


LOOM_SCHEMA_BASE = "http://tensortapestry.org/schemas/loom/2024-01"

NODE_TYPES_URL = LOOM_SCHEMA_BASE + "/node_types.jsd"
TAG_TYPES_URL = LOOM_SCHEMA_BASE + "/annotation_types.jsd"

TENSOR_NODE_TYPE = NODE_TYPES_URL + "#/$defs/Tensor"
OPERATION_NODE_TYPE = NODE_TYPES_URL + "#/$defs/Operation"
APPLICATION_NODE_TYPE = NODE_TYPES_URL + "#/$defs/Application"
NOTE_NODE_TYPE = NODE_TYPES_URL + "#/$defs/Note"

IPF_SIGNATURE_TAG_TYPE = TAG_TYPES_URL + "#/$defs/IPFSignature"
IPF_INDEX_TAG_TYPE = TAG_TYPES_URL + "#/$defs/IPFIndex"


# {{{ bodies

@dataclass(frozen=True)
class TensorSelection:
    """A reference to the sub-range *range* of the tensor node
    *tensor_id*."""

    tensor_id: uuid.UUID
    range: ZRange

    def __post_init__(self):
        object.__setattr__(self, "tensor_id", as_node_id(self.tensor_id))

    @staticmethod
    def from_tensor(tensor: "TensorNode", range: Optional[ZRange] = None
            ) -> "TensorSelection":
        """
        :raises LoomValueError: if *range* is not contained in the
            tensor's range.
        """
        if range is None:
            range = tensor.range
        elif not tensor.range.contains(range):
            raise LoomValueError(
                    f"tensor {tensor.id} range {tensor.range} does not "
                    f"contain {range}")
        return TensorSelection(tensor.id, range)

    def to_json(self):
        return {"tensorId": str(self.tensor_id), "range": self.range.to_json()}

    @staticmethod
    def from_json(data) -> "TensorSelection":
        return TensorSelection(
                tensor_id=data["tensorId"],
                range=ZRange.from_json(data["range"]))

    def __str__(self):
        return f"{self.tensor_id}{self.range}"


SelectionMap = Mapping[str, Tuple[TensorSelection, ...]]


def make_selection_map(selections) -> "Map[str, Tuple[TensorSelection, ...]]":
    """Normalize *selections*, a mapping from names to a
    :class:`TensorSelection` or a sequence of them."""
    if selections is None:
        return Map()
    return Map({
        name: ((sels,) if isinstance(sels, TensorSelection) else tuple(sels))
        for name, sels in selections.items()})


def selection_map_to_json(selections: SelectionMap):
    return {name: [sel.to_json() for sel in sels]
            for name, sels in sorted(selections.items())}


def iter_selections(selections: SelectionMap):
    """Yield *(name, index, selection)* for every selection in
    *selections*, ordered by name."""
    for name in sorted(selections):
        for idx, sel in enumerate(selections[name]):
            yield name, idx, sel


def selection_map_from_json(data) -> "Map[str, Tuple[TensorSelection, ...]]":
    if data is None:
        return Map()
    if not isinstance(data, dict):
        raise LoomValueError(f"selection map must be an object: {data!r}")
    return Map({
        name: tuple(TensorSelection.from_json(s) for s in sels)
        for name, sels in data.items()})


@dataclass(frozen=True)
class TensorBody:
    dtype: str
    range: ZRange

    @property
    def shape(self):
        return self.range.shape

    @property
    def ndim(self) -> int:
        return self.range.ndim

    @property
    def size(self) -> int:
        return self.range.size

    def to_json(self):
        return {"dtype": self.dtype, "range": self.range.to_json()}

    @staticmethod
    def from_json(data) -> "TensorBody":
        dtype = data["dtype"]
        if not isinstance(dtype, str):
            raise LoomValueError(f"dtype must be a string: {dtype!r}")
        return TensorBody(dtype=dtype, range=ZRange.from_json(data["range"]))


@dataclass(frozen=True)
class OperationBody:
    kernel: str
    params: Mapping[str, Any] = field(default_factory=Map)
    inputs: SelectionMap = field(default_factory=Map)
    outputs: SelectionMap = field(default_factory=Map)

    def __post_init__(self):
        object.__setattr__(self, "params", Map(self.params or {}))
        object.__setattr__(self, "inputs", make_selection_map(self.inputs))
        object.__setattr__(self, "outputs", make_selection_map(self.outputs))

    def to_json(self):
        result = {"kernel": self.kernel}
        if self.params:
            result["params"] = dict(sorted(self.params.items()))
        result["inputs"] = selection_map_to_json(self.inputs)
        result["outputs"] = selection_map_to_json(self.outputs)
        return result

    @staticmethod
    def from_json(data) -> "OperationBody":
        return OperationBody(
                kernel=data["kernel"],
                params=data.get("params") or {},
                inputs=selection_map_from_json(data.get("inputs")),
                outputs=selection_map_from_json(data.get("outputs")))


@dataclass(frozen=True)
class ApplicationBody:
    operation_id: uuid.UUID
    inputs: SelectionMap = field(default_factory=Map)
    outputs: SelectionMap = field(default_factory=Map)

    def __post_init__(self):
        object.__setattr__(self, "operation_id", as_node_id(self.operation_id))
        object.__setattr__(self, "inputs", make_selection_map(self.inputs))
        object.__setattr__(self, "outputs", make_selection_map(self.outputs))

    def to_json(self):
        return {
                "operationId": str(self.operation_id),
                "inputs": selection_map_to_json(self.inputs),
                "outputs": selection_map_to_json(self.outputs),
                }

    @staticmethod
    def from_json(data) -> "ApplicationBody":
        return ApplicationBody(
                operation_id=data["operationId"],
                inputs=selection_map_from_json(data.get("inputs")),
                outputs=selection_map_from_json(data.get("outputs")))


@dataclass(frozen=True)
class NoteBody:
    message: str

    def to_json(self):
        return {"message": self.message}

    @staticmethod
    def from_json(data) -> "NoteBody":
        return NoteBody(message=data["message"])


def _ipf_map_from_json(data):
    if data is None:
        return Map()
    return Map({
        name: tuple(IndexProjectionFunction.from_json(p) for p in ipfs)
        for name, ipfs in data.items()})


@dataclass(frozen=True)
class IPFSignature:
    """The value of an :data:`IPF_SIGNATURE_TAG_TYPE` tag: per input and
    output key, one :class:`~loom.zspace.IndexProjectionFunction` per
    selection."""

    inputs: Mapping[str, Tuple[IndexProjectionFunction, ...]] = field(
            default_factory=Map)
    outputs: Mapping[str, Tuple[IndexProjectionFunction, ...]] = field(
            default_factory=Map)

    def __post_init__(self):
        for name in ["inputs", "outputs"]:
            object.__setattr__(self, name, Map({
                key: ((ipfs,) if isinstance(ipfs, IndexProjectionFunction)
                    else tuple(ipfs))
                for key, ipfs in (getattr(self, name) or {}).items()}))

    def to_json(self):
        return {
                name: {key: [p.to_json() for p in ipfs]
                    for key, ipfs in sorted(getattr(self, name).items())}
                for name in ["inputs", "outputs"]}

    @staticmethod
    def from_json(data) -> "IPFSignature":
        return IPFSignature(
                inputs=_ipf_map_from_json(data.get("inputs")),
                outputs=_ipf_map_from_json(data.get("outputs")))

# }}}


# {{{ views

class NodeView:
    """A typed view of a :class:`~loom.graph.LoomNode`. Views hold no
    state besides the node; they may be created and dropped freely.

    .. attribute:: TYPE
    .. attribute:: BODY_CLASS
    .. attribute:: node
    """

    TYPE: ClassVar[str]
    BODY_CLASS: ClassVar[type]

    __slots__ = ("node",)

    def __init__(self, node: LoomNode):
        if isinstance(node, NodeView):
            node = node.node
        if node.type != self.TYPE:
            raise LoomTypeMismatch(
                    f"cannot view node {node.id} of type '{node.type}' "
                    f"as {type(self).__name__}")
        self.node = node

    @classmethod
    def build(cls, graph, body, label=None, tags=None, id=None):
        """Create a node of :attr:`TYPE` in *graph* and return its view."""
        if not isinstance(body, cls.BODY_CLASS):
            raise TypeError(f"expected a {cls.BODY_CLASS.__name__}, "
                    f"got {type(body).__name__}")
        return cls(graph.build_node(cls.TYPE, body,
            label=label, tags=tags, id=id))

    @property
    def id(self) -> uuid.UUID:
        return self.node.id

    @property
    def type(self) -> str:
        return self.node.type

    @property
    def label(self) -> Optional[str]:
        return self.node.label

    @property
    def graph(self):
        return self.node.graph

    @property
    def json_path(self) -> str:
        return self.node.json_path

    @property
    def body(self):
        return self.node.view_body_as(self.BODY_CLASS)

    def has_tag(self, tag_type: str) -> bool:
        return self.node.has_tag(tag_type)

    def view_tag_as(self, tag_type: str, cls):
        return self.node.view_tag_as(tag_type, cls)

    def as_context(self, name: str, message: Optional[str] = None):
        return self.node.as_context(name, message)

    def __eq__(self, other):
        if not isinstance(other, NodeView):
            return NotImplemented
        return type(self) is type(other) and self.node == other.node

    def __hash__(self):
        return hash(self.node)

    def __repr__(self):
        return f"{type(self).__name__}({self.node!r})"


class TensorNode(NodeView):
    TYPE = TENSOR_NODE_TYPE
    BODY_CLASS = TensorBody

    __slots__ = ()

    @property
    def dtype(self) -> str:
        return self.body.dtype

    @property
    def range(self) -> ZRange:
        return self.body.range

    @property
    def shape(self):
        return self.body.shape

    def selection(self, range: Optional[ZRange] = None) -> TensorSelection:
        return TensorSelection.from_tensor(self, range)


class _IPFTaggedMixin:
    __slots__ = ()

    @property
    def ipf_index(self) -> Optional[ZRange]:
        """The :data:`IPF_INDEX_TAG_TYPE` tag, or *None*."""
        if not self.has_tag(IPF_INDEX_TAG_TYPE):
            return None
        return self.view_tag_as(IPF_INDEX_TAG_TYPE, ZRange)


class OperationNode(_IPFTaggedMixin, NodeView):
    TYPE = OPERATION_NODE_TYPE
    BODY_CLASS = OperationBody

    __slots__ = ()

    @property
    def kernel(self) -> str:
        return self.body.kernel

    @property
    def params(self) -> Mapping[str, Any]:
        return self.body.params

    @property
    def inputs(self) -> SelectionMap:
        return self.body.inputs

    @property
    def outputs(self) -> SelectionMap:
        return self.body.outputs

    @property
    def ipf_signature(self) -> Optional[IPFSignature]:
        if not self.has_tag(IPF_SIGNATURE_TAG_TYPE):
            return None
        return self.view_tag_as(IPF_SIGNATURE_TAG_TYPE, IPFSignature)

    def application_nodes(self) -> List["ApplicationNode"]:
        """The shards of this operation: the Application nodes of the graph
        whose ``operationId`` is :attr:`id`, in graph order."""
        graph = self.node.assert_graph()
        return [app for app in graph.nodes_of_type(ApplicationNode)
                if app.operation_id == self.id]

    def _tensor_nodes(self, selections: SelectionMap):
        graph = self.node.assert_graph()
        return {
                name: [TensorNode(graph.assert_node(
                    sel.tensor_id, TENSOR_NODE_TYPE)) for sel in sels]
                for name, sels in selections.items()}

    def input_nodes(self) -> Dict[str, List[TensorNode]]:
        return self._tensor_nodes(self.inputs)

    def output_nodes(self) -> Dict[str, List[TensorNode]]:
        return self._tensor_nodes(self.outputs)


class ApplicationNode(_IPFTaggedMixin, NodeView):
    TYPE = APPLICATION_NODE_TYPE
    BODY_CLASS = ApplicationBody

    __slots__ = ()

    @property
    def operation_id(self) -> uuid.UUID:
        return self.body.operation_id

    @property
    def inputs(self) -> SelectionMap:
        return self.body.inputs

    @property
    def outputs(self) -> SelectionMap:
        return self.body.outputs

    def operation_node(self) -> OperationNode:
        return OperationNode(self.node.assert_graph().assert_node(
            self.operation_id, OPERATION_NODE_TYPE))


class NoteNode(NodeView):
    TYPE = NOTE_NODE_TYPE
    BODY_CLASS = NoteBody

    __slots__ = ()

    @property
    def message(self) -> str:
        return self.body.message

# }}}


def type_name(type_uri: str) -> str:
    """The short name of a node or tag type URI, e.g. ``"Tensor"`` for
    :data:`TENSOR_NODE_TYPE`."""
    return type_uri.rsplit("/", 1)[-1]


# vim: foldmethod=marker
