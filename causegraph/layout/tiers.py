"""Partition nodes into ordered tiers and cause-tier subgroups."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Mapping

from ..models import DEFAULT_SUBGROUP, TIER_ORDER, Node, NodeKind


@dataclass
class Bucket:
    """Nodes sharing a tier and subgroup, in layout order."""

    key: str
    nodes: list[Node] = field(default_factory=list)
    registered: bool = False


@dataclass
class Tier:
    kind: NodeKind
    buckets: list[Bucket] = field(default_factory=list)

    @property
    def nodes(self) -> list[Node]:
        return [n for b in self.buckets for n in b.nodes]

    @property
    def has_subgroups(self) -> bool:
        return any(b.registered for b in self.buckets)

    def is_empty(self) -> bool:
        return not any(b.nodes for b in self.buckets)


def sort_by_order(nodes: Iterable[Node]) -> list[Node]:
    """Explicit `order` ascending; nodes without one keep input order, last."""
    indexed = list(enumerate(nodes))
    indexed.sort(key=lambda pair: (pair[1].order is None, pair[1].order or 0, pair[0]))
    return [n for _, n in indexed]


def partition_tiers(nodes: Iterable[Node], subgroup_registry: Mapping[str, object] | None = None) -> list[Tier]:
    """Split nodes into cause/intermediate/effect tiers.

    The cause tier is further split by subgroup in registry order, followed by a
    trailing "default" bucket for nodes with a missing or unregistered subgroup.
    Empty tiers are omitted.
    """
    registry = list((subgroup_registry or {}).keys())
    by_kind: dict[str, list[Node]] = {kind: [] for kind in TIER_ORDER}
    for node in nodes:
        by_kind.setdefault(node.kind, []).append(node)

    tiers: list[Tier] = []
    for kind in TIER_ORDER:
        members = by_kind.get(kind) or []
        if not members:
            continue

        if kind != "cause" or not registry:
            tiers.append(Tier(kind=kind, buckets=[Bucket(key=DEFAULT_SUBGROUP, nodes=sort_by_order(members))]))
            continue

        grouped: dict[str, list[Node]] = {sg: [] for sg in registry}
        leftovers: list[Node] = []
        for node in members:
            if node.subgroup in grouped:
                grouped[node.subgroup].append(node)
            else:
                leftovers.append(node)

        buckets = [Bucket(key=sg, nodes=sort_by_order(grouped[sg]), registered=True) for sg in registry if grouped[sg]]
        if leftovers:
            buckets.append(Bucket(key=DEFAULT_SUBGROUP, nodes=sort_by_order(leftovers)))
        tiers.append(Tier(kind=kind, buckets=buckets))

    return tiers
