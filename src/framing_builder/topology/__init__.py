"""Graph maintenance tools.

- spans: automatic intermediate columns keeping sub-spans within limits
- supports: beam-on-beam support anchors and free beam splits
- move: transactional column move sessions
"""

from framing_builder.topology.spans import (
    SpanReport,
    desired_positions,
    enforce_spans,
    limit_for,
    max_sub_span,
    prune_orphans,
)
from framing_builder.topology.supports import link_support, split_beam_at, support_point
from framing_builder.topology.move import MoveSession

__all__ = [
    "SpanReport",
    "desired_positions",
    "enforce_spans",
    "limit_for",
    "max_sub_span",
    "prune_orphans",
    "link_support",
    "split_beam_at",
    "support_point",
    "MoveSession",
]
