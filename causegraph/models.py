"""Data models for cause-effect graphs and layout output."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Literal, Mapping

# Tier a node belongs to (top to bottom)
NodeKind = Literal["cause", "intermediate", "effect"]

# Rendering variant; "standard" nodes render according to their tier kind
NodeVariant = Literal["standard", "cluster", "expandable", "group"]

# Dispatch key for dimension estimation and styling
RenderKind = Literal["cause", "intermediate", "effect", "cluster", "expandable", "group"]

Strength = Literal["weak", "medium", "strong"]
Confidence = Literal["low", "medium", "high"]
Effect = Literal["increases", "decreases", "mixed"]

DetailLevel = Literal["overview", "detailed"]

EdgeDensity = Literal["minimal", "low", "medium", "high", "all"]

TIER_ORDER: tuple[NodeKind, ...] = ("cause", "intermediate", "effect")
NODE_VARIANTS: tuple[NodeVariant, ...] = ("standard", "cluster", "expandable", "group")
STRENGTHS: tuple[Strength, ...] = ("weak", "medium", "strong")
CONFIDENCES: tuple[Confidence, ...] = ("low", "medium", "high")
EFFECTS: tuple[Effect, ...] = ("increases", "decreases", "mixed")
DETAIL_LEVELS: tuple[DetailLevel, ...] = ("overview", "detailed")
EDGE_DENSITIES: tuple[EdgeDensity, ...] = ("minimal", "low", "medium", "high", "all")

# Bucket for nodes whose subgroup is missing or not registered
DEFAULT_SUBGROUP = "default"


def _frozen_mapping(value: Mapping[str, Any] | None) -> Mapping[str, Any]:
    return MappingProxyType(dict(value or {}))


@dataclass(frozen=True)
class SubItem:
    """A bullet rendered inside a node (e.g. a sub-factor)."""

    label: str
    description: str | None = None
    ratings: Mapping[str, float] = field(default_factory=dict)


@dataclass(frozen=True)
class Node:
    """A single graph node."""

    id: str
    label: str
    kind: NodeKind
    subgroup: str | None = None
    subcategory: str | None = None
    category: str | None = None
    order: int | None = None
    description: str | None = None
    sub_items: tuple[SubItem, ...] = ()
    variant: NodeVariant = "standard"
    child_count: int | None = None
    preview_items: tuple[str, ...] = ()
    href: str | None = None

    @property
    def render_kind(self) -> RenderKind:
        return render_kind(self)


def render_kind(node: Node) -> RenderKind:
    """Tier kind for standard nodes, otherwise the rendering variant."""
    if node.variant == "standard":
        return node.kind
    return node.variant


@dataclass(frozen=True)
class Edge:
    """A directed causal link between two nodes."""

    id: str
    source: str
    target: str
    strength: Strength = "medium"
    confidence: Confidence = "medium"
    effect: Effect = "increases"
    label: str | None = None


@dataclass(frozen=True)
class SubcategoryInfo:
    id: str
    label: str
    node_count: int = 0


@dataclass(frozen=True)
class Category:
    """Filter metadata for one category of nodes."""

    id: str
    label: str
    kind: NodeKind
    subgroup: str | None = None
    node_count: int = 0
    subcategories: tuple[SubcategoryInfo, ...] = ()
    description: str | None = None


@dataclass(frozen=True)
class SubgraphSpec:
    """A saved neighborhood view declared alongside the dataset."""

    entity_id: str
    center_node: str
    depth: int = 2
    title: str | None = None
    level: DetailLevel = "detailed"
    include_nodes: tuple[str, ...] = ()
    exclude_nodes: tuple[str, ...] = ()


@dataclass(frozen=True)
class GraphFilters:
    """Visibility toggles owned by the caller.

    A toggle that is absent from its map counts as visible.
    """

    categories: Mapping[str, bool] = field(default_factory=dict)
    subgroups: Mapping[str, bool] = field(default_factory=dict)
    kinds: Mapping[str, bool] = field(default_factory=dict)
    subcategories: Mapping[str, bool] = field(default_factory=dict)
    edge_density: EdgeDensity = "all"

    def __post_init__(self) -> None:
        for name in ("categories", "subgroups", "kinds", "subcategories"):
            object.__setattr__(self, name, _frozen_mapping(getattr(self, name)))

    def toggled(self, dimension: str, key: str, value: bool | None = None) -> "GraphFilters":
        """Return a copy with one toggle flipped (or set to `value`)."""
        if dimension not in ("categories", "subgroups", "kinds", "subcategories"):
            raise ValueError(f"Unknown filter dimension: {dimension}")
        current: Mapping[str, bool] = getattr(self, dimension)
        updated = dict(current)
        updated[key] = (not current.get(key, True)) if value is None else value
        return self._replace(**{dimension: updated})

    def with_density(self, density: EdgeDensity) -> "GraphFilters":
        return self._replace(edge_density=density)

    def _replace(self, **changes: Any) -> "GraphFilters":
        values = {
            "categories": self.categories,
            "subgroups": self.subgroups,
            "kinds": self.kinds,
            "subcategories": self.subcategories,
            "edge_density": self.edge_density,
        }
        values.update(changes)
        return GraphFilters(**values)

    def to_dict(self) -> dict[str, Any]:
        return {
            "categories": dict(self.categories),
            "subgroups": dict(self.subgroups),
            "kinds": dict(self.kinds),
            "subcategories": dict(self.subcategories),
            "edge_density": self.edge_density,
        }


# --- Layout output (consumed by a renderer) ---


@dataclass(frozen=True)
class Dimensions:
    width: float
    height: float


@dataclass(frozen=True)
class PositionedNode:
    id: str
    x: float
    y: float
    width: float
    height: float


@dataclass(frozen=True)
class StyledEdge:
    id: str
    source: str
    target: str
    stroke_width: float
    color_token: str
    marker_kind: str
    label: str | None = None
    label_chip: bool = False
    effect: Effect = "increases"


@dataclass(frozen=True)
class GroupContainer:
    """Non-interactive background box drawn behind a tier or subgroup."""

    scope_id: str
    x: float
    y: float
    width: float
    height: float
    label: str
    scope: Literal["tier", "subgroup"] = "tier"
    kind: NodeKind | None = None
    color: str | None = None


@dataclass(frozen=True)
class PositionedLayout:
    """What a layout strategy returns: node boxes plus background containers."""

    nodes: tuple[PositionedNode, ...]
    containers: tuple[GroupContainer, ...] = ()


@dataclass
class LayoutResult:
    positioned_nodes: list[PositionedNode]
    styled_edges: list[StyledEdge]
    group_containers: list[GroupContainer]
    strategy: str
    warnings: list[str] = field(default_factory=list)
    token: int | None = None

    def position_of(self, node_id: str) -> PositionedNode | None:
        for p in self.positioned_nodes:
            if p.id == node_id:
                return p
        return None
