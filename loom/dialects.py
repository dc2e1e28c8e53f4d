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


from loom.environment import LoomEnvironment
from loom.nodes import (
        NODE_TYPES_URL, TAG_TYPES_URL,
        TENSOR_NODE_TYPE, OPERATION_NODE_TYPE, APPLICATION_NODE_TYPE,
        NOTE_NODE_TYPE, IPF_SIGNATURE_TAG_TYPE, IPF_INDEX_TAG_TYPE)


__doc__ = """
Pre-configured environments.

.. autofunction:: operation_expression_environment
.. autofunction:: application_expression_environment
"""


URL_ALIASES = {
        NODE_TYPES_URL: "loom",
        TAG_TYPES_URL: "loom",
        }


def operation_expression_environment(options=None, valid_dtypes=None):
    """An environment of Tensor and Operation nodes, without shards.

    :arg valid_dtypes: the dtypes accepted for tensors. Defaults to
        :attr:`loom.options.Options.valid_dtypes`.
    """
    from loom.constraints import (
            NodeBodySchemaConstraint, TensorDTypesAreValid,
            TensorOperationAgreement, NoTensorOperationCycles,
            OperationIPFSignatureAgreement)
    from loom.schema import make_default_schema_registry

    return LoomEnvironment(
            node_types=[NOTE_NODE_TYPE, TENSOR_NODE_TYPE, OPERATION_NODE_TYPE],
            tag_types=[IPF_SIGNATURE_TAG_TYPE, IPF_INDEX_TAG_TYPE],
            schemas=make_default_schema_registry(),
            url_aliases=URL_ALIASES,
            options=options,
            constraints=[
                NodeBodySchemaConstraint(),
                TensorDTypesAreValid(valid_dtypes),
                TensorOperationAgreement(),
                NoTensorOperationCycles(),
                OperationIPFSignatureAgreement(),
                ])


def application_expression_environment(options=None, valid_dtypes=None):
    """An environment of Tensor, Operation and Application nodes, in which
    every Operation is executed by Application shards exactly covering its
    outputs.

    :arg valid_dtypes: the dtypes accepted for tensors. Defaults to
        :attr:`loom.options.Options.valid_dtypes`.
    """
    from loom.constraints import (
            NodeBodySchemaConstraint, TensorDTypesAreValid,
            TensorOperationAgreement, NoTensorOperationCycles,
            OperationIPFSignatureAgreement, OperationApplicationAgreement,
            ApplicationIPFSignatureAgreement,
            ApplicationOutputRangeCoverageIsExact)
    from loom.schema import make_default_schema_registry

    return LoomEnvironment(
            node_types=[
                NOTE_NODE_TYPE, TENSOR_NODE_TYPE,
                OPERATION_NODE_TYPE, APPLICATION_NODE_TYPE],
            tag_types=[IPF_SIGNATURE_TAG_TYPE, IPF_INDEX_TAG_TYPE],
            schemas=make_default_schema_registry(),
            url_aliases=URL_ALIASES,
            options=options,
            constraints=[
                NodeBodySchemaConstraint(),
                TensorDTypesAreValid(valid_dtypes),
                TensorOperationAgreement(),
                NoTensorOperationCycles(),
                OperationIPFSignatureAgreement(),
                OperationApplicationAgreement(),
                ApplicationIPFSignatureAgreement(),
                ApplicationOutputRangeCoverageIsExact(),
                ])
