"""Estimate rendered node size from node content."""

from __future__ import annotations

from ..config import NODE_HEIGHT, NODE_WIDTH
from ..models import Dimensions, Node

CHAR_WIDTH = 8  # approximate pixels per character
TEXT_PADDING = 40
SUB_ITEM_HEIGHT = 28

EXPANDABLE_SIZE = Dimensions(width=200, height=80)


def longest_text_length(node: Node) -> int:
    """Length of the longest line of text: the label or any sub-item label."""
    longest = len(node.label or "")
    for item in node.sub_items:
        longest = max(longest, len(item.label or ""))
    return longest


def estimate_width(node: Node) -> float:
    return float(max(NODE_WIDTH, longest_text_length(node) * CHAR_WIDTH + TEXT_PADDING))


def estimate_dimensions(node: Node, *, width_override: float | None = None) -> Dimensions:
    """Estimated width/height for a node, dispatched on its render kind.

    Pure: identical nodes always produce identical dimensions.
    """
    kind = node.render_kind

    if kind == "group":
        # Container sized to hold expandable children side by side.
        children = node.child_count or 3
        dims = Dimensions(width=float(min(800, 100 + children * 220)), height=140.0)
    elif kind == "cluster":
        previews = len(node.preview_items)
        height = 60
        if node.description:
            height += 30
        if previews:
            height += 50
        dims = Dimensions(width=float(min(400, 280 + previews * 20)), height=float(height))
    elif kind == "expandable":
        dims = EXPANDABLE_SIZE
    elif kind in ("cause", "intermediate", "effect"):
        dims = Dimensions(
            width=estimate_width(node),
            height=float(NODE_HEIGHT + len(node.sub_items) * SUB_ITEM_HEIGHT),
        )
    else:
        raise ValueError(f"Unknown render kind: {kind}")

    if width_override is not None:
        return Dimensions(width=float(width_override), height=dims.height)
    return dims
