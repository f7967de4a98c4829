"""Visual styling for edges and nodes.

Both lookups are deterministic and side-effect free.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from ..models import Edge, Node, RenderKind, StyledEdge

# Stroke width by edge strength
STROKE_WIDTHS: dict[str, float] = {"strong": 2.5, "medium": 1.5, "weak": 1.0}
DEFAULT_STROKE_WIDTH = 1.5

EDGE_COLOR_TOKEN = "edge-neutral"
EDGE_COLOR = "#cbd5e1"
EDGE_LABEL_COLOR = "#64748b"
EDGE_LABEL_BG = "#f8fafc"
MARKER_KIND = "arrow"


def style_edge(edge: Edge) -> StyledEdge:
    return StyledEdge(
        id=edge.id,
        source=edge.source,
        target=edge.target,
        stroke_width=STROKE_WIDTHS.get(edge.strength, DEFAULT_STROKE_WIDTH),
        color_token=EDGE_COLOR_TOKEN,
        marker_kind=MARKER_KIND,
        label=edge.label,
        label_chip=bool(edge.label),
        effect=edge.effect,
    )


def style_edges(edges: Iterable[Edge]) -> list[StyledEdge]:
    return [style_edge(e) for e in edges]


@dataclass(frozen=True)
class NodeStyle:
    background: str
    border: str
    text: str
    accent: str
    radius: int


# Tier colors: causes blue, intermediates purple, effects amber.
NODE_STYLES: dict[RenderKind, NodeStyle] = {
    "cause": NodeStyle(background="#dbeafe", border="#93c5fd", text="#1d4ed8", accent="#60a5fa", radius=12),
    "intermediate": NodeStyle(background="#ede9fe", border="#c4b5fd", text="#5b21b6", accent="#8b5cf6", radius=20),
    "effect": NodeStyle(background="#fef3c7", border="#fcd34d", text="#92400e", accent="#f59e0b", radius=40),
    "cluster": NodeStyle(background="#f8fafc", border="#cbd5e1", text="#334155", accent="#94a3b8", radius=12),
    "expandable": NodeStyle(background="#ffffff", border="#cbd5e1", text="#334155", accent="#64748b", radius=10),
    "group": NodeStyle(background="#f1f5f9", border="#e2e8f0", text="#475569", accent="#94a3b8", radius=12),
}

# Outcome nodes that are colored by valence instead of tier.
OUTCOME_STYLES: dict[str, NodeStyle] = {
    "existential-catastrophe": NodeStyle(
        background="#fee2e2", border="#fca5a5", text="#991b1b", accent="#ef4444", radius=40
    ),
    "long-term-trajectory": NodeStyle(
        background="#fef3c7", border="#fcd34d", text="#92400e", accent="#fbbf24", radius=40
    ),
}


def node_style(node: Node) -> NodeStyle:
    if node.render_kind == "effect" and node.id in OUTCOME_STYLES:
        return OUTCOME_STYLES[node.id]
    return NODE_STYLES[node.render_kind]
