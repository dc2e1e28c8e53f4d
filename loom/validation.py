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


import json
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, List, Mapping, Optional, Tuple, Union

from immutables import Map

from loom.diagnostic import LoomValidationError


logger = logging.getLogger(__name__)


__doc__ = """
.. autoclass:: ValidationContext
.. autoclass:: ValidationIssue
.. autoclass:: ValidationIssueCollector
.. autoclass:: ListValidationIssueCollector

.. autofunction:: concat_jsonpath
.. autofunction:: format_issues
.. autofunction:: format_issue
.. autofunction:: format_context
"""


def concat_jsonpath(*parts: Optional[str]) -> str:
    """Join JSONPath fragments below the root ``$``.

    ``concat_jsonpath("$.nodes['x']", "body", "inputs.foo", "[0]")``
    gives ``"$.nodes['x'].body.inputs.foo[0]"``.
    """
    result = "$"
    for part in parts:
        if not part:
            continue
        if part.startswith("$"):
            part = part[1:]
        if part.startswith("."):
            part = part[1:]
        if not part:
            continue
        if not part.startswith("["):
            result += "."
        result += part

    return result


def _to_json_value(obj):
    if hasattr(obj, "to_json"):
        return obj.to_json()
    if isinstance(obj, (set, frozenset)):
        return sorted(obj, key=str)
    if isinstance(obj, Map):
        return dict(obj)
    return str(obj)


def to_pretty_json(data) -> str:
    return json.dumps(data, indent=2, sort_keys=True, default=_to_json_value,
            ensure_ascii=False)


def format_param_value(value) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, (set, frozenset)):
        return "[%s]" % ", ".join(sorted(str(v) for v in value))
    if isinstance(value, (list, tuple)):
        return "[%s]" % ", ".join(str(v) for v in value)
    return str(value)


# {{{ issue data

@dataclass(frozen=True)
class ValidationContext:
    """A named pointer into the validated document supporting an issue.

    .. attribute:: name
    .. attribute:: message
    .. attribute:: jsonpath
    .. attribute:: data

        Any JSON-compatible value (or a value with a ``to_json`` method).
    """

    name: str
    message: Optional[str] = None
    jsonpath: Optional[str] = None
    data: Any = None

    def to_json(self):
        result = {"name": self.name}
        if self.message is not None:
            result["message"] = self.message
        if self.jsonpath is not None:
            result["jsonpath"] = self.jsonpath
        if self.data is not None:
            result["data"] = json.loads(to_pretty_json(self.data))
        return result


ContextSource = Union[
        ValidationContext,
        Callable[[], Union[ValidationContext, Iterable[ValidationContext]]],
        ]


def _materialize_contexts(contexts) -> Tuple[ValidationContext, ...]:
    if contexts is None:
        return ()
    if isinstance(contexts, ValidationContext) or callable(contexts):
        contexts = [contexts]

    result = []
    for ctx in contexts:
        if ctx is None:
            continue
        if isinstance(ctx, (list, tuple)):
            result.extend(_materialize_contexts(ctx))
            continue
        if callable(ctx) and not isinstance(ctx, ValidationContext):
            ctx = ctx()
            if ctx is None:
                continue
            if not isinstance(ctx, ValidationContext):
                result.extend(_materialize_contexts(ctx))
                continue
        result.append(ctx)

    return tuple(result)


@dataclass(frozen=True)
class ValidationIssue:
    """
    .. attribute:: type

        One of the issue type names in :mod:`loom.diagnostic`, e.g.
        :data:`~loom.diagnostic.NODE_VALIDATION_ERROR`.

    .. attribute:: summary
    .. attribute:: params

        An :class:`immutables.Map` from parameter names to their string
        representation.

    .. attribute:: message
    .. attribute:: contexts

        A :class:`tuple` of :class:`ValidationContext`. Context sources that
        are callables are invoked once, when the issue is created.
    """

    type: str
    summary: str
    params: Mapping[str, str] = field(default_factory=Map)
    message: Optional[str] = None
    contexts: Tuple[ValidationContext, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "params", Map({
            str(k): format_param_value(v) for k, v in dict(self.params).items()}))
        object.__setattr__(self, "contexts",
                _materialize_contexts(self.contexts))

    def to_json(self):
        result = {
                "type": self.type,
                "summary": self.summary,
                "params": dict(sorted(self.params.items())),
                }
        if self.message is not None:
            result["message"] = self.message
        result["contexts"] = [ctx.to_json() for ctx in self.contexts]
        return result

    def __str__(self):
        return format_issue(self)

# }}}


# {{{ collectors

class ValidationIssueCollector:
    """A sink for :class:`ValidationIssue`\\ s.

    .. automethod:: add_issue
    .. automethod:: is_empty
    .. automethod:: check
    """

    def add_issue(self, issue: Optional[ValidationIssue] = None, **kwargs) -> None:
        """Record *issue*, or, if it is not given, an issue built from
        *kwargs* by the :class:`ValidationIssue` constructor."""
        if issue is None:
            issue = ValidationIssue(**kwargs)
        elif kwargs:
            raise TypeError("may not pass both an issue and issue fields")

        logger.debug("recorded %s: %s", issue.type, issue.summary)
        self._record(issue)

    def add_issues(self, issues: Iterable[ValidationIssue]) -> None:
        for issue in issues:
            self.add_issue(issue)

    def _record(self, issue: ValidationIssue) -> None:
        raise NotImplementedError

    @property
    def issues(self) -> List[ValidationIssue]:
        raise NotImplementedError

    def is_empty(self) -> bool:
        return not self.issues

    def __len__(self):
        return len(self.issues)

    def check(self) -> None:
        """
        :raises loom.diagnostic.LoomValidationError: if any issue was
            recorded.
        """
        if not self.is_empty():
            raise LoomValidationError(self.issues)


class ListValidationIssueCollector(ValidationIssueCollector):
    """Keeps issues in insertion order."""

    def __init__(self):
        self._issues = []

    def _record(self, issue):
        self._issues.append(issue)

    @property
    def issues(self):
        return list(self._issues)

# }}}


# {{{ text formatting

def _indent(text: str, prefix: str) -> str:
    return "\n".join((prefix + line).rstrip() if line.strip() else ""
            for line in text.split("\n"))


def _reindent(text: str, prefix: str) -> str:
    import textwrap
    return _indent(textwrap.dedent(text).strip("\n"), prefix)


def format_context(context: ValidationContext, options=None) -> str:
    if options is None:
        from loom.options import Options
        options = Options(allow_terminal_colors=False)

    result = "- {}{}{}::".format(
            options._fore.CYAN, context.name, options._style.RESET_ALL)
    if context.jsonpath is not None:
        result += " " + context.jsonpath

    if context.message is not None and context.message.strip():
        result += "\n\n" + _reindent(context.message, "  ")

    if context.data is not None:
        lines = to_pretty_json(context.data).split("\n")
        max_lines = options.max_context_data_lines
        if max_lines is not None and len(lines) > max_lines:
            lines = lines[:max_lines] + ["..."]
        result += "\n\n" + "\n".join("  |> " + line for line in lines)

    return result


def format_issue(issue: ValidationIssue, options=None) -> str:
    if options is None:
        from loom.options import Options
        options = Options(allow_terminal_colors=False)

    result = "* {}Error{} [{}]: {}".format(
            options._fore.RED, options._style.RESET_ALL,
            issue.type, issue.summary)

    if issue.params:
        result += "\n" + "\n".join(
                f"   └> {k}: {v}" for k, v in sorted(issue.params.items()))

    if issue.message is not None:
        result += "\n\n" + _reindent(issue.message, "  ")

    for context in issue.contexts:
        result += "\n\n" + _indent(format_context(context, options), "  ")

    return result


def format_issues(issues: Iterable[ValidationIssue], options=None) -> str:
    """Render *issues* as a human-readable report.

    :arg options: a :class:`loom.options.Options` controlling colors. If not
        given, no colors are used.
    """
    issues = list(issues)
    if not issues:
        return "No Validation Issues"

    return ("Validation failed with %d issues:\n\n" % len(issues)
            + "\n\n".join(format_issue(issue, options) for issue in issues)
            + "\n")

# }}}

# vim: foldmethod=marker
