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
from typing import Any, Dict, Iterator, Mapping, Optional

import jsonschema

from loom.diagnostic import MissingDependency
from loom.nodes import (
        TENSOR_NODE_TYPE, OPERATION_NODE_TYPE, APPLICATION_NODE_TYPE,
        NOTE_NODE_TYPE, IPF_SIGNATURE_TAG_TYPE, IPF_INDEX_TAG_TYPE)


logger = logging.getLogger(__name__)


__doc__ = """
JSON Schemas for node bodies and tags.

.. autoclass:: SchemaRegistry
.. autofunction:: make_default_schema_registry
"""


UUID_PATTERN = (
        "^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-"
        "[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$")

COMMON_DEFS = {
        "UUID": {"type": "string", "pattern": UUID_PATTERN},
        "ZPoint": {"type": "array", "items": {"type": "integer"}},
        "ZRange": {
            "type": "object",
            "properties": {
                "start": {"$ref": "#/$defs/ZPoint"},
                "end": {"$ref": "#/$defs/ZPoint"},
                },
            "required": ["start", "end"],
            "additionalProperties": False,
            },
        "TensorSelection": {
            "type": "object",
            "properties": {
                "tensorId": {"$ref": "#/$defs/UUID"},
                "range": {"$ref": "#/$defs/ZRange"},
                },
            "required": ["tensorId", "range"],
            "additionalProperties": False,
            },
        "SelectionMap": {
            "type": "object",
            "additionalProperties": {
                "type": "array",
                "items": {"$ref": "#/$defs/TensorSelection"},
                },
            },
        "ZAffineMap": {
            "type": "object",
            "properties": {
                "projection": {
                    "type": "array",
                    "items": {"type": "array", "items": {"type": "integer"}},
                    },
                "offset": {"$ref": "#/$defs/ZPoint"},
                "inputNdim": {"type": "integer", "minimum": 0},
                },
            "required": ["projection"],
            "additionalProperties": False,
            },
        "IndexProjectionFunction": {
            "type": "object",
            "properties": {
                "affineMap": {"$ref": "#/$defs/ZAffineMap"},
                "shape": {"$ref": "#/$defs/ZPoint"},
                },
            "required": ["affineMap"],
            "additionalProperties": False,
            },
        "IPFMap": {
            "type": "object",
            "additionalProperties": {
                "type": "array",
                "items": {"$ref": "#/$defs/IndexProjectionFunction"},
                },
            },
        }


def make_schema(root: Mapping[str, Any]) -> Dict[str, Any]:
    result = {
            "$schema": "https://json-schema.org/draft/2020-12/schema",
            "$defs": COMMON_DEFS,
            }
    result.update(root)
    return result


TENSOR_BODY_SCHEMA = make_schema({
    "type": "object",
    "properties": {
        "dtype": {"type": "string"},
        "range": {"$ref": "#/$defs/ZRange"},
        },
    "required": ["dtype", "range"],
    "additionalProperties": False,
    })

OPERATION_BODY_SCHEMA = make_schema({
    "type": "object",
    "properties": {
        "kernel": {"type": "string"},
        "params": {"type": "object"},
        "inputs": {"$ref": "#/$defs/SelectionMap"},
        "outputs": {"$ref": "#/$defs/SelectionMap"},
        },
    "required": ["kernel", "inputs", "outputs"],
    "additionalProperties": False,
    })

APPLICATION_BODY_SCHEMA = make_schema({
    "type": "object",
    "properties": {
        "operationId": {"$ref": "#/$defs/UUID"},
        "inputs": {"$ref": "#/$defs/SelectionMap"},
        "outputs": {"$ref": "#/$defs/SelectionMap"},
        },
    "required": ["operationId", "inputs", "outputs"],
    "additionalProperties": False,
    })

NOTE_BODY_SCHEMA = make_schema({
    "type": "object",
    "properties": {
        "message": {"type": "string"},
        },
    "required": ["message"],
    })

IPF_SIGNATURE_TAG_SCHEMA = make_schema({
    "type": "object",
    "properties": {
        "inputs": {"$ref": "#/$defs/IPFMap"},
        "outputs": {"$ref": "#/$defs/IPFMap"},
        },
    "required": ["inputs", "outputs"],
    "additionalProperties": False,
    })

IPF_INDEX_TAG_SCHEMA = make_schema({"$ref": "#/$defs/ZRange"})


class SchemaRegistry:
    """Maps node and tag type URIs to JSON Schemas.

    .. automethod:: register
    .. automethod:: has_schema
    .. automethod:: assert_schema
    .. automethod:: iter_errors
    """

    def __init__(self, schemas: Optional[Mapping[str, Mapping]] = None):
        self._schemas: Dict[str, Mapping] = {}
        self._validators: Dict[str, Any] = {}

        for type_uri, schema in (schemas or {}).items():
            self.register(type_uri, schema)

    def register(self, type_uri: str, schema: Mapping) -> None:
        validator_cls = jsonschema.validators.validator_for(
                schema, default=jsonschema.Draft202012Validator)
        validator_cls.check_schema(schema)

        self._schemas[type_uri] = schema
        self._validators[type_uri] = validator_cls(schema)

    def has_schema(self, type_uri: str) -> bool:
        return type_uri in self._schemas

    def assert_schema(self, type_uri: str) -> Mapping:
        try:
            return self._schemas[type_uri]
        except KeyError:
            raise MissingDependency(f"No schema registered for type: {type_uri}"
                    ) from None

    def __contains__(self, type_uri):
        return self.has_schema(type_uri)

    def __iter__(self):
        return iter(self._schemas)

    def iter_errors(self, type_uri: str, instance
            ) -> Iterator[jsonschema.ValidationError]:
        """Yield the :class:`jsonschema.ValidationError`\\ s of *instance*
        against the schema of *type_uri*, ordered by their location."""
        self.assert_schema(type_uri)
        yield from sorted(self._validators[type_uri].iter_errors(instance),
                key=lambda e: [str(p) for p in e.absolute_path])

    def is_valid(self, type_uri: str, instance) -> bool:
        self.assert_schema(type_uri)
        return self._validators[type_uri].is_valid(instance)


def make_default_schema_registry() -> SchemaRegistry:
    return SchemaRegistry({
        TENSOR_NODE_TYPE: TENSOR_BODY_SCHEMA,
        OPERATION_NODE_TYPE: OPERATION_BODY_SCHEMA,
        APPLICATION_NODE_TYPE: APPLICATION_BODY_SCHEMA,
        NOTE_NODE_TYPE: NOTE_BODY_SCHEMA,
        IPF_SIGNATURE_TAG_TYPE: IPF_SIGNATURE_TAG_SCHEMA,
        IPF_INDEX_TAG_TYPE: IPF_INDEX_TAG_SCHEMA,
        })
