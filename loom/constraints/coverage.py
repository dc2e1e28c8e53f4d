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

from loom.diagnostic import NODE_VALIDATION_ERROR
from loom.environment import Constraint
from loom.nodes import OperationNode
from loom.validation import ValidationContext
from loom.constraints.sharding import (
        OperationApplicationAgreement, collect_shards, check_shard_structure,
        shard_range_map)


logger = logging.getLogger(__name__)


class ApplicationOutputRangeCoverageIsExact(Constraint):
    """For every output selection of an Operation, the sizes of the
    corresponding shard ranges sum to the size of the Operation's range.

    Together with the bounding range check of
    :class:`~loom.constraints.sharding.OperationApplicationAgreement`, this
    makes the shard ranges an exact partition of the output range. Operations
    without shards, or whose shards disagree structurally with them, are
    skipped; those defects are reported by
    :class:`~loom.constraints.sharding.OperationApplicationAgreement`.
    """

    def check_requirements(self, env):
        env.assert_constraint(OperationApplicationAgreement)

    def validate_constraint(self, env, graph, collector):
        describe_sets = env.options.describe_coverage_sets
        shards_by_operation = collect_shards(graph,
                self.unreadable_node_handler(graph, collector))

        for operation in graph.nodes_of_type(OperationNode):
            with self.reading_node(graph, collector):
                self.check_operation(operation,
                        shards_by_operation.get(operation.id, []),
                        describe_sets, collector)

    def check_operation(self, operation, shards, describe_sets, collector):
        if not shards or not all(
                check_shard_structure(operation, shard) for shard in shards):
            return

        outputs = operation.outputs
        for key in sorted(outputs):
            for idx, sig_sel in enumerate(outputs[key]):
                shard_ranges = shard_range_map(shards, "outputs", key, idx)
                total_size = sum(r.size for r in shard_ranges.values())
                if total_size == sig_sel.range.size:
                    continue

                contexts = [
                        ValidationContext(
                            name="Application Shard Ranges",
                            data=shard_ranges),
                        ]
                if describe_sets:
                    contexts.append(self._coverage_context(
                        sig_sel.range, list(shard_ranges.values())))
                contexts.append(
                        lambda operation=operation:
                        operation.as_context("Operation Node"))

                collector.add_issue(
                        type=NODE_VALIDATION_ERROR,
                        summary=f"Overlapping Application output key "
                        f"\"{key}[{idx}]\" ranges",
                        params={
                            "signatureSize": sig_sel.range.size,
                            "totalShardSize": total_size,
                            },
                        contexts=contexts)

    @staticmethod
    def _coverage_context(target, ranges):
        def make_context():
            from loom.isl_helpers import describe_coverage
            return ValidationContext(
                    name="Coverage Defects",
                    message="Index sets missing from, covered more than once "
                    "by, or outside of the signature range.",
                    data=describe_coverage(target, ranges))

        return make_context
