"""Generic layered layout backed by networkx.

Within each tier, nodes are ranked by longest path over the condensation of the
intra-tier edges, so a tier with internal chains spreads over several rows.
Rows are then ordered with a single top-down median sweep and placed with the
same row and container rules as the barycenter engine.
"""

from __future__ import annotations

import logging
import statistics
from typing import Sequence

import networkx as nx

from ..config import GROUP_PADDING, NODE_WIDTH, SUBGROUP_HEADER_HEIGHT, SUBGROUP_PADDING, LayoutConfig
from ..models import Edge, Node, PositionedLayout, PositionedNode
from .barycenter import RowFrame, build_containers, measure, place_row, row_header, undirected_adjacency
from .tiers import Bucket, partition_tiers

logger = logging.getLogger(__name__)


def intra_tier_ranks(nodes: Sequence[Node], edges: Sequence[Edge]) -> dict[str, int]:
    """Longest-path rank of each node, counting only edges inside its own tier.

    Cycles collapse into one strongly connected component and share a rank.
    """
    kind_of = {n.id: n.kind for n in nodes}
    g = nx.DiGraph()
    g.add_nodes_from(n.id for n in nodes)
    for e in edges:
        if e.source in kind_of and e.target in kind_of and kind_of[e.source] == kind_of[e.target]:
            g.add_edge(e.source, e.target)

    dag = nx.condensation(g)
    mapping: dict[str, int] = dag.graph["mapping"]

    comp_rank: dict[int, int] = {}
    for comp in nx.topological_sort(dag):
        preds = list(dag.predecessors(comp))
        comp_rank[comp] = max((comp_rank[p] + 1 for p in preds), default=0)

    return {node_id: comp_rank[mapping[node_id]] for node_id in g.nodes}


def layered_layout(nodes: Sequence[Node], edges: Sequence[Edge], config: LayoutConfig) -> PositionedLayout:
    config = config.normalized()
    if not nodes:
        return PositionedLayout(nodes=())

    dims = measure(nodes, config)
    adj = undirected_adjacency(edges, {n.id for n in nodes})
    ranks = intra_tier_ranks(nodes, edges)

    rows: list[RowFrame] = []
    cursor = 0.0
    for tier in partition_tiers(nodes, config.subgroup_registry):
        depth = max(ranks[n.id] for n in tier.nodes)
        first = True
        for rank in range(depth + 1):
            buckets = [
                Bucket(key=b.key, nodes=[n for n in b.nodes if ranks[n.id] == rank], registered=b.registered)
                for b in tier.buckets
            ]
            members = [n for b in buckets for n in b.nodes]
            if not members:
                continue
            if first:
                header = row_header(tier.has_subgroups)
            else:
                header = float(SUBGROUP_HEADER_HEIGHT + SUBGROUP_PADDING) if tier.has_subgroups else 0.0
            y = cursor + header
            height = max(dims[n.id].height for n in members)
            rows.append(RowFrame(kind=tier.kind, y=y, height=height, header=header, buckets=buckets))
            cursor = y + height + config.layer_gap
            if tier.has_subgroups:
                cursor += SUBGROUP_PADDING
            first = False
        cursor += GROUP_PADDING

    positions: dict[str, float] = {}

    def place(row: RowFrame) -> None:
        place_row(
            row,
            dims,
            positions,
            center_x=config.center_x,
            gap=config.node_gap + config.spacing_for(row.kind),
            bucket_gap=config.subgroup_gap,
            anchor_width=config.node_width or NODE_WIDTH,
        )

    for row in rows:
        place(row)

    # One top-down sweep: median x of neighbors in any row above.
    placed: set[str] = set(rows[0].node_ids) if rows else set()
    for row in rows[1:]:
        for bucket in row.buckets:
            keys: dict[str, tuple[float, float]] = {}
            for node in bucket.nodes:
                current = positions[node.id] + dims[node.id].width / 2
                above = [positions[n] + dims[n].width / 2 for n in adj.get(node.id, ()) if n in placed]
                keys[node.id] = (statistics.median(above) if above else current, current)
            bucket.nodes = sorted(bucket.nodes, key=lambda n: keys[n.id])
        place(row)
        placed.update(row.node_ids)

    logger.debug("Layered layout: %d rows, %d nodes", len(rows), len(nodes))

    y_of = {i: row.y for row in rows for i in row.node_ids}
    positioned = tuple(
        PositionedNode(id=n.id, x=positions[n.id], y=y_of[n.id], width=dims[n.id].width, height=dims[n.id].height)
        for n in nodes
    )
    return PositionedLayout(nodes=positioned, containers=tuple(build_containers(rows, dims, positions, config)))
