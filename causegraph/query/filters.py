"""Node/edge visibility from caller-owned filter toggles."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Sequence

from ..graph.model import GraphModel
from ..models import TIER_ORDER, Category, Edge, EdgeDensity, GraphFilters, Node

# Share of edges (by importance rank) kept at each density level
DENSITY_FRACTIONS: dict[str, float] = {
    "minimal": 0.10,
    "low": 0.25,
    "medium": 0.50,
    "high": 0.75,
    "all": 1.00,
}

STRENGTH_SCORE = {"weak": 1, "medium": 2, "strong": 3}
CONFIDENCE_SCORE = {"low": 1, "medium": 2, "high": 3}


def importance_score(edge: Edge) -> int:
    """Strength dominates; confidence breaks ties between equal strengths."""
    return STRENGTH_SCORE.get(edge.strength, 2) * 3 + CONFIDENCE_SCORE.get(edge.confidence, 2)


@dataclass(frozen=True)
class FilteredGraph:
    nodes: tuple[Node, ...]
    edges: tuple[Edge, ...]

    @property
    def node_ids(self) -> frozenset[str]:
        return frozenset(n.id for n in self.nodes)

    @property
    def edge_ids(self) -> frozenset[str]:
        return frozenset(e.id for e in self.edges)


class FilterEngine:
    """Visibility rules over one GraphModel.

    Edge importance ranks are computed once over every edge in the model, so an
    edge's density status never depends on which other nodes are currently hidden.
    """

    def __init__(self, model: GraphModel):
        self.model = model
        ranked = sorted(
            model.edges,
            key=lambda e: (-importance_score(e), model.edge_position(e.id) or 0),
        )
        self._rank: dict[str, int] = {e.id: i for i, e in enumerate(ranked)}

    # --- toggle discovery ---

    def list_categories(self) -> list[Category]:
        return list(self.model.categories)

    def _subgroup_of(self, node: Node) -> str | None:
        if node.category:
            cat = self.model.category(node.category)
            if cat is not None:
                return cat.subgroup
        return node.subgroup

    def toggle_keys(self) -> dict[str, list[str]]:
        """Every toggle key per dimension, from the category listing and node tags."""
        categories: list[str] = []
        subgroups: list[str] = []
        subcategories: list[str] = []

        def add(bucket: list[str], value: str | None) -> None:
            if value and value not in bucket:
                bucket.append(value)

        for cat in self.model.categories:
            add(categories, cat.id)
            add(subgroups, cat.subgroup)
            for sub in cat.subcategories:
                add(subcategories, sub.id)
        for node in self.model.nodes:
            add(categories, node.category)
            add(subgroups, self._subgroup_of(node))
            add(subcategories, node.subcategory)

        return {
            "categories": categories,
            "subgroups": subgroups,
            "kinds": list(TIER_ORDER),
            "subcategories": subcategories,
        }

    def _all(self, value: bool, density: EdgeDensity) -> GraphFilters:
        keys = self.toggle_keys()
        return GraphFilters(
            categories={k: value for k in keys["categories"]},
            subgroups={k: value for k in keys["subgroups"]},
            kinds={k: value for k in keys["kinds"]},
            subcategories={k: value for k in keys["subcategories"]},
            edge_density=density,
        )

    def initial_filters(self, density: EdgeDensity = "all") -> GraphFilters:
        return self._all(True, density)

    def show_all(self, filters: GraphFilters | None = None) -> GraphFilters:
        return self._all(True, filters.edge_density if filters else "all")

    def hide_all(self, filters: GraphFilters | None = None) -> GraphFilters:
        return self._all(False, filters.edge_density if filters else "all")

    # --- visibility ---

    def is_node_visible(self, node: Node, filters: GraphFilters) -> bool:
        if node.category and filters.categories.get(node.category) is False:
            return False
        subgroup = self._subgroup_of(node)
        if subgroup and filters.subgroups.get(subgroup) is False:
            return False
        if filters.kinds.get(node.kind) is False:
            return False
        if node.subcategory and filters.subcategories.get(node.subcategory) is False:
            return False
        return True

    def edge_rank(self, edge_id: str) -> int | None:
        """0-based importance rank (0 = most important)."""
        return self._rank.get(edge_id)

    def density_cutoff(self, density: EdgeDensity) -> int:
        """Number of top-ranked edges kept at `density`."""
        fraction = DENSITY_FRACTIONS.get(density, 1.0)
        return math.ceil(len(self._rank) * fraction)

    def passes_density(self, edge: Edge, density: EdgeDensity) -> bool:
        if density == "all":
            return True
        rank = self.edge_rank(edge.id)
        if rank is None:
            return False
        return rank < self.density_cutoff(density)

    def is_edge_visible(
        self,
        edge: Edge,
        filters: GraphFilters,
        visible_node_ids: set[str] | frozenset[str] | None = None,
    ) -> bool:
        if visible_node_ids is None:
            endpoints = (self.model.node(edge.source), self.model.node(edge.target))
            if any(n is None or not self.is_node_visible(n, filters) for n in endpoints):
                return False
        elif edge.source not in visible_node_ids or edge.target not in visible_node_ids:
            return False
        return self.passes_density(edge, filters.edge_density)

    def apply(
        self,
        filters: GraphFilters,
        nodes: Sequence[Node] | None = None,
        edges: Iterable[Edge] | None = None,
    ) -> FilteredGraph:
        """Visible subset of `nodes`/`edges` (default: the whole model), in input order."""
        nodes = self.model.nodes if nodes is None else nodes
        edges = self.model.edges if edges is None else edges
        visible = tuple(n for n in nodes if self.is_node_visible(n, filters))
        ids = {n.id for n in visible}
        return FilteredGraph(
            nodes=visible,
            edges=tuple(e for e in edges if self.is_edge_visible(e, filters, ids)),
        )
