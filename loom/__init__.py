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


from loom.version import VERSION, VERSION_TEXT
from loom.diagnostic import (
        LoomError, LoomValueError, LoomZeroDivisionError, LoomTypeMismatch,
        NodeNotFoundError, GraphMembershipError, EnvironmentNotSetError,
        ConstraintSetupError, MissingDependency, UnsupportedNodeType,
        LoomValidationError,
        NODE_VALIDATION_ERROR, NODE_REFERENCE_ERROR, REFERENCE_CYCLE_ERROR,
        NODE_SCHEMA_ERROR)
from loom.options import Options, make_options
from loom.zspace import (
        ZPoint, ZRange, ZAffineMap, IndexProjectionFunction, bounding_range)
from loom.validation import (
        ValidationContext, ValidationIssue, ValidationIssueCollector,
        ListValidationIssueCollector, format_issues)
from loom.graph import LoomNode, LoomGraph, MalformedNodeBodyError
from loom.nodes import (
        TENSOR_NODE_TYPE, OPERATION_NODE_TYPE, APPLICATION_NODE_TYPE,
        NOTE_NODE_TYPE, IPF_SIGNATURE_TAG_TYPE, IPF_INDEX_TAG_TYPE,
        TensorSelection, TensorBody, OperationBody, ApplicationBody, NoteBody,
        IPFSignature, NodeView, TensorNode, OperationNode, ApplicationNode,
        NoteNode)
from loom.environment import Constraint, LoomEnvironment
from loom.dialects import (
        operation_expression_environment, application_expression_environment)


__all__ = [
        "VERSION", "VERSION_TEXT",

        "LoomError", "LoomValueError", "LoomZeroDivisionError",
        "LoomTypeMismatch", "NodeNotFoundError", "GraphMembershipError",
        "EnvironmentNotSetError", "ConstraintSetupError", "MissingDependency",
        "UnsupportedNodeType", "LoomValidationError",
        "NODE_VALIDATION_ERROR", "NODE_REFERENCE_ERROR",
        "REFERENCE_CYCLE_ERROR", "NODE_SCHEMA_ERROR",

        "Options", "make_options",

        "ZPoint", "ZRange", "ZAffineMap", "IndexProjectionFunction",
        "bounding_range",

        "ValidationContext", "ValidationIssue", "ValidationIssueCollector",
        "ListValidationIssueCollector", "format_issues",

        "LoomNode", "LoomGraph", "MalformedNodeBodyError",

        "TENSOR_NODE_TYPE", "OPERATION_NODE_TYPE", "APPLICATION_NODE_TYPE",
        "NOTE_NODE_TYPE", "IPF_SIGNATURE_TAG_TYPE", "IPF_INDEX_TAG_TYPE",
        "TensorSelection", "TensorBody", "OperationBody", "ApplicationBody",
        "NoteBody", "IPFSignature", "NodeView", "TensorNode", "OperationNode",
        "ApplicationNode", "NoteNode",

        "Constraint", "LoomEnvironment",

        "operation_expression_environment",
        "application_expression_environment",
        ]

# vim: foldmethod=marker
