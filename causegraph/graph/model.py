"""Immutable graph model for one detail level."""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterable, Mapping

from ..models import Category, DetailLevel, Edge, Node, SubgraphSpec

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GraphModel:
    """Nodes, edges, and category metadata for one detail level.

    Built once per dataset and shared by reference; never mutated after `build`.
    Edges with unknown endpoints are dropped and counted in `dropped_edges`.
    """

    level: DetailLevel
    nodes: tuple[Node, ...]
    edges: tuple[Edge, ...]
    categories: tuple[Category, ...] = ()
    dropped_edges: int = 0
    dropped_nodes: int = 0

    _by_id: Mapping[str, Node] = field(default_factory=dict, repr=False, compare=False)
    _edge_index: Mapping[str, int] = field(default_factory=dict, repr=False, compare=False)
    _out: Mapping[str, tuple[str, ...]] = field(default_factory=dict, repr=False, compare=False)
    _in: Mapping[str, tuple[str, ...]] = field(default_factory=dict, repr=False, compare=False)
    _categories_by_id: Mapping[str, Category] = field(default_factory=dict, repr=False, compare=False)

    @classmethod
    def build(
        cls,
        nodes: Iterable[Node],
        edges: Iterable[Edge],
        categories: Iterable[Category] = (),
        *,
        level: DetailLevel = "detailed",
        skipped_nodes: int = 0,
    ) -> "GraphModel":
        """Build a model, dropping duplicate nodes and dangling edges.

        `skipped_nodes` counts entries the caller already discarded (no usable id);
        they are included in `dropped_nodes`.
        """
        by_id: dict[str, Node] = {}
        kept_nodes: list[Node] = []
        dropped_nodes = 0
        for node in nodes:
            if node.id in by_id:
                dropped_nodes += 1
                continue
            by_id[node.id] = node
            kept_nodes.append(node)

        kept_edges: list[Edge] = []
        edge_index: dict[str, int] = {}
        out_adj: dict[str, list[str]] = defaultdict(list)
        in_adj: dict[str, list[str]] = defaultdict(list)
        dropped_edges = 0
        for edge in edges:
            if edge.source not in by_id or edge.target not in by_id or edge.id in edge_index:
                dropped_edges += 1
                continue
            edge_index[edge.id] = len(kept_edges)
            kept_edges.append(edge)
            out_adj[edge.source].append(edge.target)
            in_adj[edge.target].append(edge.source)

        if skipped_nodes:
            logger.warning("Dropped %d node(s) without a usable id from %s graph", skipped_nodes, level)
        if dropped_nodes:
            logger.warning("Dropped %d duplicate node(s) from %s graph", dropped_nodes, level)
        if dropped_edges:
            logger.warning("Dropped %d edge(s) with unknown endpoints from %s graph", dropped_edges, level)

        cats = tuple(categories)
        return cls(
            level=level,
            nodes=tuple(kept_nodes),
            edges=tuple(kept_edges),
            categories=cats,
            dropped_edges=dropped_edges,
            dropped_nodes=dropped_nodes + skipped_nodes,
            _by_id=MappingProxyType(by_id),
            _edge_index=MappingProxyType(edge_index),
            _out=MappingProxyType({k: tuple(v) for k, v in out_adj.items()}),
            _in=MappingProxyType({k: tuple(v) for k, v in in_adj.items()}),
            _categories_by_id=MappingProxyType({c.id: c for c in cats}),
        )

    def node(self, node_id: str) -> Node | None:
        return self._by_id.get(node_id)

    def has_node(self, node_id: str) -> bool:
        return node_id in self._by_id

    def edge_position(self, edge_id: str) -> int | None:
        """Input order of an edge (used as a stable tie-break)."""
        return self._edge_index.get(edge_id)

    def category(self, category_id: str) -> Category | None:
        return self._categories_by_id.get(category_id)

    def successors(self, node_id: str) -> tuple[str, ...]:
        return self._out.get(node_id, ())

    def predecessors(self, node_id: str) -> tuple[str, ...]:
        return self._in.get(node_id, ())

    def neighbors(self, node_id: str) -> set[str]:
        """Neighbors ignoring edge direction."""
        return set(self.successors(node_id)) | set(self.predecessors(node_id))

    def in_degree(self, node_id: str) -> int:
        return len(self.predecessors(node_id))

    def out_degree(self, node_id: str) -> int:
        return len(self.successors(node_id))

    def induced(self, node_ids: Iterable[str]) -> tuple[list[Node], list[Edge]]:
        """Nodes in `node_ids` (model order) and the edges between them."""
        keep = set(node_ids)
        nodes = [n for n in self.nodes if n.id in keep]
        edges = [e for e in self.edges if e.source in keep and e.target in keep]
        return nodes, edges


@dataclass(frozen=True)
class GraphSet:
    """Parallel overview/detailed models loaded from one dataset."""

    overview: GraphModel
    detailed: GraphModel
    id: str = ""
    title: str = ""
    description: str | None = None
    subgraphs: tuple[SubgraphSpec, ...] = ()

    def level(self, level: DetailLevel) -> GraphModel:
        if level == "overview":
            return self.overview
        if level == "detailed":
            return self.detailed
        raise ValueError(f"Unknown detail level: {level}")

    def subgraph_spec(self, entity_id: str) -> SubgraphSpec | None:
        for spec in self.subgraphs:
            if spec.entity_id == entity_id:
                return spec
        return None
