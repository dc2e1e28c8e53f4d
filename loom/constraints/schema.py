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


from loom.diagnostic import NODE_SCHEMA_ERROR
from loom.environment import Constraint
from loom.validation import concat_jsonpath, ValidationContext


def _error_jsonpath(base, error):
    return concat_jsonpath(base, *(
        f"[{p}]" if isinstance(p, int) else str(p)
        for p in error.absolute_path))


class NodeBodySchemaConstraint(Constraint):
    """Every node body and tag value of a supported type matches the JSON
    Schema registered for its type in the environment's
    :class:`~loom.schema.SchemaRegistry`."""

    def check_requirements(self, env):
        for node_type in sorted(env.type_support.node_types):
            env.schemas.assert_schema(node_type)
        for tag_type in sorted(env.type_support.tag_types):
            env.schemas.assert_schema(tag_type)

    def validate_constraint(self, env, graph, collector):
        for node in graph:
            if env.schemas.has_schema(node.type):
                for error in env.schemas.iter_errors(node.type, node.body):
                    self._add_issue(env, collector, node, error,
                            concat_jsonpath(node.json_path, "body"),
                            {"nodeType": env.url_alias(node.type)})

            for tag_type in sorted(node.tags):
                if not env.schemas.has_schema(tag_type):
                    continue
                for error in env.schemas.iter_errors(
                        tag_type, node.tags[tag_type]):
                    self._add_issue(env, collector, node, error,
                            concat_jsonpath(node.json_path, f"tags['{tag_type}']"),
                            {
                                "nodeType": env.url_alias(node.type),
                                "tagType": env.url_alias(tag_type),
                                })

    @staticmethod
    def _add_issue(env, collector, node, error, base_path, params):
        params = dict(params)
        params["schemaPath"] = "/".join(str(p) for p in error.schema_path)

        collector.add_issue(
                type=NODE_SCHEMA_ERROR,
                summary=error.message,
                params=params,
                contexts=[
                    ValidationContext(
                        name="Schema Violation",
                        jsonpath=_error_jsonpath(base_path, error),
                        data=error.instance),
                    lambda: node.as_context("Node"),
                    ])
