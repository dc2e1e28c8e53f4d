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


# {{{ errors

class LoomError(RuntimeError):
    pass


class LoomValueError(LoomError, ValueError):
    pass


class LoomZeroDivisionError(LoomError, ZeroDivisionError):
    pass


class LoomTypeMismatch(LoomError, TypeError):
    """
    Raised when a typed view is requested for a node whose
    :attr:`~loom.LoomNode.type` differs from the view's type.
    """


class NodeNotFoundError(LoomError, KeyError):
    def __str__(self):
        # KeyError would otherwise repr() the message
        return RuntimeError.__str__(self)


class GraphMembershipError(LoomError):
    pass


class EnvironmentNotSetError(LoomError):
    pass


class ConstraintSetupError(LoomError):
    pass


class MissingDependency(ConstraintSetupError):
    """
    Raised at registration time when a constraint's prerequisite
    constraint (or schema) is not registered in the environment ahead of it.
    """


class UnsupportedNodeType(ConstraintSetupError):
    pass


class LoomValidationError(LoomError):
    """
    The aggregated error raised by :meth:`loom.LoomGraph.validate`.

    .. attribute:: issues

        A :class:`list` of :class:`loom.validation.ValidationIssue` in
        the order in which they were recorded.
    """

    def __init__(self, issues):
        self.issues = list(issues)

        from loom.validation import format_issues
        super().__init__(format_issues(self.issues))

    def __reduce__(self):
        return (type(self), (self.issues,))

# }}}


# {{{ issue types

NODE_VALIDATION_ERROR = "NodeValidationError"
NODE_REFERENCE_ERROR = "NodeReferenceError"
REFERENCE_CYCLE_ERROR = "ReferenceCycleError"
NODE_SCHEMA_ERROR = "NodeSchemaError"

ISSUE_TYPES = frozenset({
    NODE_VALIDATION_ERROR,
    NODE_REFERENCE_ERROR,
    REFERENCE_CYCLE_ERROR,
    NODE_SCHEMA_ERROR,
    })

# }}}

# vim: foldmethod=marker
