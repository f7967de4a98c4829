"""Tiered layout with an iterative barycenter sweep.

Phases:
  1. Tier partition (cause -> intermediate -> effect, cause subgroups)
  2. Vertical placement (one row per tier, cumulative heights + layer gap)
  3. Initial row placement in partition order
  4. Barycenter sweeps (fixed pass count, stable tie-breaks)
  5. Group containers around tiers and registered subgroups
"""

from __future__ import annotations

import logging
import math
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Iterable, Sequence

from ..config import (
    GROUP_HEADER_HEIGHT,
    GROUP_PADDING,
    NODE_WIDTH,
    SUBGROUP_HEADER_HEIGHT,
    SUBGROUP_PADDING,
    LayoutConfig,
)
from ..models import (
    Dimensions,
    Edge,
    GroupContainer,
    Node,
    NodeKind,
    PositionedLayout,
    PositionedNode,
)
from .dimensions import estimate_dimensions
from .tiers import Bucket, partition_tiers

logger = logging.getLogger(__name__)


@dataclass
class RowFrame:
    """One horizontal row of nodes during a layout call."""

    kind: NodeKind
    y: float
    height: float
    header: float
    buckets: list[Bucket] = field(default_factory=list)

    @property
    def node_ids(self) -> list[str]:
        return [n.id for b in self.buckets for n in b.nodes]

    @property
    def pinned(self) -> bool:
        return any(n.order is not None for b in self.buckets for n in b.nodes)


def row_header(has_subgroups: bool) -> float:
    header = GROUP_HEADER_HEIGHT + GROUP_PADDING
    if has_subgroups:
        header += SUBGROUP_HEADER_HEIGHT + SUBGROUP_PADDING
    return float(header)


def measure(nodes: Iterable[Node], config: LayoutConfig) -> dict[str, Dimensions]:
    return {n.id: estimate_dimensions(n, width_override=config.node_width) for n in nodes}


def undirected_adjacency(edges: Iterable[Edge], node_ids: set[str]) -> dict[str, tuple[str, ...]]:
    """Neighbor ids per node, sorted so float sums over them are reproducible."""
    adj: dict[str, set[str]] = defaultdict(set)
    for e in edges:
        if e.source in node_ids and e.target in node_ids and e.source != e.target:
            adj[e.source].add(e.target)
            adj[e.target].add(e.source)
    return {k: tuple(sorted(v)) for k, v in adj.items()}


def place_row(
    row: RowFrame,
    dims: dict[str, Dimensions],
    positions: dict[str, float],
    *,
    center_x: float,
    gap: float,
    bucket_gap: float,
    anchor_width: float = NODE_WIDTH,
) -> None:
    """Lay out a row left to right, centered on `center_x`.

    Writes left-edge x coordinates into `positions`. A lone node gets its left
    edge at `center_x - anchor_width / 2` whatever its own width, so single-node
    rows line up with each other.
    """
    buckets = [b for b in row.buckets if b.nodes]
    ids = [n.id for b in buckets for n in b.nodes]
    if not ids:
        return
    if len(ids) == 1:
        positions[ids[0]] = center_x - anchor_width / 2
        return

    total = sum(dims[i].width for i in ids) + gap * (len(ids) - 1) + bucket_gap * (len(buckets) - 1)
    cursor = center_x - total / 2
    for b_idx, bucket in enumerate(buckets):
        if b_idx > 0:
            cursor += bucket_gap
        for node in bucket.nodes:
            positions[node.id] = cursor
            cursor += dims[node.id].width + gap


def reorder_row(
    row: RowFrame,
    neighbor_row: RowFrame,
    adj: dict[str, tuple[str, ...]],
    dims: dict[str, Dimensions],
    positions: dict[str, float],
) -> bool:
    """Re-sort each bucket of `row` by barycenter of its neighbors in `neighbor_row`.

    Nodes without neighbors in `neighbor_row` keep their current x as their key.
    Ties break on prior x. Returns True if any bucket changed order.
    """

    def center(node_id: str) -> float:
        return positions[node_id] + dims[node_id].width / 2

    neighbor_ids = set(neighbor_row.node_ids)
    changed = False
    for bucket in row.buckets:
        keys: dict[str, tuple[float, float]] = {}
        for node in bucket.nodes:
            linked = [n for n in adj.get(node.id, ()) if n in neighbor_ids]
            current = center(node.id)
            bary = math.fsum(center(n) for n in linked) / len(linked) if linked else current
            keys[node.id] = (bary, current)
        reordered = sorted(bucket.nodes, key=lambda n: keys[n.id])
        if [n.id for n in reordered] != [n.id for n in bucket.nodes]:
            changed = True
        bucket.nodes = reordered
    return changed


def build_containers(
    rows: Sequence[RowFrame],
    dims: dict[str, Dimensions],
    positions: dict[str, float],
    config: LayoutConfig,
) -> list[GroupContainer]:
    """Background boxes around each tier and each registered subgroup."""
    if config.hide_group_containers:
        return []

    containers: list[GroupContainer] = []
    rows_by_kind: dict[str, list[RowFrame]] = defaultdict(list)
    for row in rows:
        if row.node_ids:
            rows_by_kind[row.kind].append(row)

    for kind, kind_rows in rows_by_kind.items():
        ids = [i for r in kind_rows for i in r.node_ids]
        min_x = min(positions[i] for i in ids) - GROUP_PADDING
        max_x = max(positions[i] + dims[i].width for i in ids) + GROUP_PADDING
        top = min(r.y - r.header for r in kind_rows)
        bottom = max(r.y + r.height for r in kind_rows) + GROUP_PADDING
        containers.append(
            GroupContainer(
                scope_id=f"group-{kind}",
                x=min_x,
                y=top,
                width=max_x - min_x,
                height=bottom - top,
                label=config.type_label(kind),
                scope="tier",
                kind=kind,  # type: ignore[arg-type]
            )
        )

        for row in kind_rows:
            for bucket in row.buckets:
                if not bucket.registered or not bucket.nodes:
                    continue
                style = config.subgroup_registry.get(bucket.key)
                b_ids = [n.id for n in bucket.nodes]
                sx = min(positions[i] for i in b_ids) - SUBGROUP_PADDING
                ex = max(positions[i] + dims[i].width for i in b_ids) + SUBGROUP_PADDING
                containers.append(
                    GroupContainer(
                        scope_id=f"{kind}-subgroup-{bucket.key}",
                        x=sx,
                        y=row.y - SUBGROUP_HEADER_HEIGHT - SUBGROUP_PADDING,
                        width=ex - sx,
                        height=row.height + SUBGROUP_HEADER_HEIGHT + SUBGROUP_PADDING * 2,
                        label=style.label if style else bucket.key,
                        scope="subgroup",
                        kind=kind,  # type: ignore[arg-type]
                        color=style.color if style else None,
                    )
                )

    return containers


def barycenter_layout(nodes: Sequence[Node], edges: Sequence[Edge], config: LayoutConfig) -> PositionedLayout:
    """Position nodes in three tiers, reducing crossings with barycenter sweeps."""
    config = config.normalized()
    if not nodes:
        return PositionedLayout(nodes=())

    dims = measure(nodes, config)
    node_ids = {n.id for n in nodes}
    adj = undirected_adjacency(edges, node_ids)

    # Vertical placement: single pass, each tier below the previous one.
    rows: list[RowFrame] = []
    cursor = 0.0
    for tier in partition_tiers(nodes, config.subgroup_registry):
        header = row_header(tier.has_subgroups)
        y = cursor + header
        height = max(dims[n.id].height for n in tier.nodes)
        rows.append(RowFrame(kind=tier.kind, y=y, height=height, header=header, buckets=tier.buckets))
        cursor = y + height + GROUP_PADDING + config.layer_gap

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

    # The first row is the anchor; rows with explicit order keep partition order.
    movable = {
        idx for idx in range(1, len(rows)) if not (config.respect_manual_order and rows[idx].pinned)
    }

    passes_run = 0
    for _ in range(config.barycenter_passes):
        passes_run += 1
        changed = False
        for idx in range(1, len(rows)):
            if idx in movable and reorder_row(rows[idx], rows[idx - 1], adj, dims, positions):
                changed = True
            place(rows[idx])
        for idx in range(len(rows) - 2, 0, -1):
            if idx in movable and reorder_row(rows[idx], rows[idx + 1], adj, dims, positions):
                changed = True
            place(rows[idx])
        if not changed:
            break

    logger.debug("Barycenter layout: %d rows, %d nodes, %d pass(es)", len(rows), len(nodes), passes_run)

    y_of = {i: row.y for row in rows for i in row.node_ids}
    positioned = tuple(
        PositionedNode(
            id=n.id,
            x=positions[n.id],
            y=y_of[n.id],
            width=dims[n.id].width,
            height=dims[n.id].height,
        )
        for n in nodes
    )
    return PositionedLayout(nodes=positioned, containers=tuple(build_containers(rows, dims, positions, config)))
