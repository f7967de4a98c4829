"""k-hop neighborhoods around a focal node."""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Mapping

from ..graph.model import GraphModel, GraphSet
from ..models import DetailLevel, Edge, Node, SubgraphSpec

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Subgraph:
    """Nodes within `hops` of `focal` and the edges between them."""

    focal: str
    hops: int
    level: DetailLevel
    nodes: tuple[Node, ...] = ()
    edges: tuple[Edge, ...] = ()
    distances: Mapping[str, int] = field(default_factory=dict)
    title: str | None = None

    @property
    def node_ids(self) -> frozenset[str]:
        return frozenset(n.id for n in self.nodes)

    @property
    def edge_ids(self) -> frozenset[str]:
        return frozenset(e.id for e in self.edges)

    def is_empty(self) -> bool:
        return not self.nodes


def hop_distances(model: GraphModel, focal: str, hops: int) -> dict[str, int]:
    """Breadth-first distances from `focal`, ignoring edge direction, up to `hops`."""
    if not model.has_node(focal):
        return {}
    dist = {focal: 0}
    queue = deque([focal])
    while queue:
        current = queue.popleft()
        if dist[current] >= hops:
            continue
        for nbr in sorted(model.neighbors(current)):
            if nbr not in dist:
                dist[nbr] = dist[current] + 1
                queue.append(nbr)
    return dist


def neighborhood(model: GraphModel, focal: str, hops: int) -> Subgraph:
    hops = max(0, int(hops))
    dist = hop_distances(model, focal, hops)
    if not dist:
        logger.debug("Focal node %r not in %s graph", focal, model.level)
        return Subgraph(focal=focal, hops=hops, level=model.level)
    nodes, edges = model.induced(dist)
    return Subgraph(
        focal=focal,
        hops=hops,
        level=model.level,
        nodes=tuple(nodes),
        edges=tuple(edges),
        distances=dist,
    )


class SubgraphExtractor:
    """Extract neighborhoods from the overview or detailed model of a GraphSet."""

    def __init__(self, graphs: GraphSet):
        self.graphs = graphs

    def extract(self, focal: str, hops: int = 2, level: DetailLevel = "detailed") -> Subgraph:
        return neighborhood(self.graphs.level(level), focal, hops)

    def extract_spec(self, spec: SubgraphSpec) -> Subgraph:
        """A saved neighborhood: BFS around the center, then explicit include/exclude lists."""
        model = self.graphs.level(spec.level)
        base = neighborhood(model, spec.center_node, spec.depth)
        if base.is_empty():
            return base

        keep = set(base.distances)
        keep.update(n for n in spec.include_nodes if model.has_node(n))
        keep.difference_update(n for n in spec.exclude_nodes if n != spec.center_node)

        nodes, edges = model.induced(keep)
        return Subgraph(
            focal=spec.center_node,
            hops=base.hops,
            level=model.level,
            nodes=tuple(nodes),
            edges=tuple(edges),
            distances={k: v for k, v in base.distances.items() if k in keep},
            title=spec.title,
        )

    def extract_saved(self, entity_id: str) -> Subgraph | None:
        spec = self.graphs.subgraph_spec(entity_id)
        if spec is None:
            return None
        return self.extract_spec(spec)
