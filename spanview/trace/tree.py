"""Span tree builder — reconstructs the hierarchy of one trace.

Input is a flat, arbitrarily ordered span list; output is a single root
node whose descendants are ordered by start time.  Malformed input never
raises: dangling parent references drop out of the tree, and a trace with
no parentless span falls back to its earliest span as root.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterator, Sequence

from spanview.trace.span import SpanData

logger = logging.getLogger("spanview.trace")

BRANCH = "├─ "
LAST_BRANCH = "└─ "
PIPE_PREFIX = "│  "
BLANK_PREFIX = "   "


@dataclass
class SpanTreeNode:
    """A span plus its ordered children."""

    span: SpanData
    children: list[SpanTreeNode] = field(default_factory=list)

    @property
    def span_id(self) -> str:
        return self.span.span_id

    @property
    def name(self) -> str:
        return self.span.name

    @property
    def start_time(self) -> float:
        return self.span.start_time

    @property
    def duration(self) -> float:
        return self.span.duration

    @property
    def attributes(self) -> dict[str, Any] | None:
        return self.span.attributes


def build_span_tree(spans: Sequence[SpanData]) -> SpanTreeNode | None:
    """Build the span tree for one trace.

    - Returns ``None`` for an empty span list.
    - Duplicate ``span_id`` values keep the last occurrence.
    - Spans whose parent id is not in *spans* are orphans and unreachable.
    - With several parentless spans the last one in input order is the root.
    - With no parentless span the earliest-starting span is the root.
    - Children of every reachable node are sorted by ``start_time``.
    """
    if not spans:
        return None

    nodes: dict[str, SpanTreeNode] = {}
    for s in spans:
        nodes[s.span_id] = SpanTreeNode(span=s)

    root: SpanTreeNode | None = None
    orphans = 0
    for s in spans:
        node = nodes[s.span_id]
        if s.parent_span_id and s.parent_span_id in nodes:
            nodes[s.parent_span_id].children.append(node)
        elif not s.parent_span_id:
            root = node
        else:
            orphans += 1

    if root is None:
        earliest = min(spans, key=lambda s: s.start_time)
        root = nodes[earliest.span_id]
        logger.debug("tree.root fallback=earliest id=%s orphans=%d", root.span_id, orphans)
    else:
        logger.debug("tree.root id=%s orphans=%d", root.span_id, orphans)

    sort_children(root)
    return root


def sort_children(root: SpanTreeNode) -> None:
    """Stable-sort children by start time for every node reachable from *root*."""
    seen: set[int] = set()
    stack = [root]
    while stack:
        node = stack.pop()
        if id(node) in seen:
            continue
        seen.add(id(node))
        node.children.sort(key=lambda n: n.start_time)
        stack.extend(node.children)


def iter_depth_first(root: SpanTreeNode) -> Iterator[tuple[SpanTreeNode, str, bool, bool]]:
    """Yield ``(node, prefix, is_last, is_root)`` in pre-order.

    *prefix* is the accumulated ancestor guide (``"│  "`` / ``"   "``
    segments) to draw before the node's own connector.  Every node is
    yielded at most once, even if the links contain a cycle.
    """
    seen: set[int] = set()
    stack: list[tuple[SpanTreeNode, str, bool, bool]] = [(root, "", True, True)]
    while stack:
        node, prefix, is_last, is_root = stack.pop()
        if id(node) in seen:
            continue
        seen.add(id(node))
        yield node, prefix, is_last, is_root

        child_prefix = "" if is_root else prefix + (BLANK_PREFIX if is_last else PIPE_PREFIX)
        last_index = len(node.children) - 1
        for index in range(last_index, -1, -1):
            stack.append((node.children[index], child_prefix, index == last_index, False))


def count_nodes(root: SpanTreeNode | None) -> int:
    """Number of spans reachable from *root*."""
    if root is None:
        return 0
    return sum(1 for _ in iter_depth_first(root))
