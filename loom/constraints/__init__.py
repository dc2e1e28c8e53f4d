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


from loom.constraints.types import TypeRestrictionConstraint
from loom.constraints.schema import NodeBodySchemaConstraint
from loom.constraints.dtype import TensorDTypesAreValid
from loom.constraints.reference import validate_node_reference
from loom.constraints.selection import TensorOperationAgreement
from loom.constraints.sharding import OperationApplicationAgreement
from loom.constraints.coverage import ApplicationOutputRangeCoverageIsExact
from loom.constraints.ipf import (
        OperationIPFSignatureAgreement, ApplicationIPFSignatureAgreement)
from loom.constraints.cycles import NoTensorOperationCycles


__doc__ = """
.. currentmodule:: loom.constraints

.. autoclass:: TypeRestrictionConstraint
.. autoclass:: NodeBodySchemaConstraint
.. autoclass:: TensorDTypesAreValid
.. autoclass:: TensorOperationAgreement
.. autoclass:: OperationApplicationAgreement
.. autoclass:: ApplicationOutputRangeCoverageIsExact
.. autoclass:: OperationIPFSignatureAgreement
.. autoclass:: ApplicationIPFSignatureAgreement
.. autoclass:: NoTensorOperationCycles

.. autofunction:: validate_node_reference
"""


__all__ = [
        "TypeRestrictionConstraint",
        "NodeBodySchemaConstraint",
        "TensorDTypesAreValid",
        "validate_node_reference",
        "TensorOperationAgreement",
        "OperationApplicationAgreement",
        "ApplicationOutputRangeCoverageIsExact",
        "OperationIPFSignatureAgreement",
        "ApplicationIPFSignatureAgreement",
        "NoTensorOperationCycles",
        ]
