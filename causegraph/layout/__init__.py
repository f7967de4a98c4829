"""Layout strategies, sizing, and styling."""

from .barycenter import barycenter_layout
from .dimensions import estimate_dimensions
from .layered import layered_layout
from .styles import node_style, style_edge, style_edges
from .tiers import partition_tiers

__all__ = [
    "barycenter_layout",
    "estimate_dimensions",
    "layered_layout",
    "node_style",
    "partition_tiers",
    "style_edge",
    "style_edges",
]
