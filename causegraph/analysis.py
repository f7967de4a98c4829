"""Structural summaries of a GraphModel (degree tables, orphans, clusters)."""

from __future__ import annotations

from collections import Counter, defaultdict

from .graph.model import GraphModel
from .models import TIER_ORDER


def summarize(model: GraphModel, *, title: str = "", top: int = 10) -> dict:
    """Counts plus the top in/out-degree nodes, as a JSON-ready payload."""
    rows = [
        {
            "name": n.id,
            "label": n.label,
            "kind": n.kind,
            "in_degree": model.in_degree(n.id),
            "out_degree": model.out_degree(n.id),
        }
        for n in model.nodes
    ]

    def top_list(key: str) -> list[dict]:
        ordered = sorted(rows, key=lambda r: (-r[key], r["name"]))
        return ordered[: max(0, top)]

    kinds = Counter(n.kind for n in model.nodes)
    return {
        "title": title or f"Cause-effect graph ({model.level})",
        "level": model.level,
        "node_count": len(model.nodes),
        "edge_count": len(model.edges),
        "dropped_edges": model.dropped_edges,
        "kind_counts": {k: kinds.get(k, 0) for k in TIER_ORDER},
        "orphans": find_orphans(model),
        "top_in_degree": top_list("in_degree"),
        "top_out_degree": top_list("out_degree"),
    }


def find_orphans(model: GraphModel) -> list[str]:
    """Node ids with no incoming or outgoing edges, in model order."""
    return [n.id for n in model.nodes if not model.neighbors(n.id)]


def most_connected(model: GraphModel, *, limit: int = 10) -> list[tuple[str, int]]:
    scored = [(n.id, model.in_degree(n.id) + model.out_degree(n.id)) for n in model.nodes]
    scored.sort(key=lambda item: (-item[1], item[0]))
    return scored[: max(0, limit)]


def label_propagation_clusters(model: GraphModel, *, max_iter: int = 50) -> dict[str, str]:
    """Deterministic label propagation on the undirected view of the graph.

    Returns node id -> cluster id (`c1` is the largest cluster).
    """
    nodes = sorted(n.id for n in model.nodes)
    labels: dict[str, str] = {n: n for n in nodes}

    for _ in range(max(1, max_iter)):
        changed = 0
        for n in nodes:
            counts: Counter[str] = Counter(labels[x] for x in model.neighbors(n) if x in labels and x != n)
            if not counts:
                continue
            best_count = max(counts.values())
            best = min(lab for lab, c in counts.items() if c == best_count)
            if best != labels[n]:
                labels[n] = best
                changed += 1
        if changed == 0:
            break

    groups: dict[str, list[str]] = defaultdict(list)
    for node, lab in labels.items():
        groups[lab].append(node)

    ordered = sorted(groups.values(), key=lambda ns: (-len(ns), ns[0]))
    return {node: f"c{idx}" for idx, members in enumerate(ordered, start=1) for node in members}
