"""Load the master-graph YAML document into overview/detailed models."""

from __future__ import annotations

import logging
import math
from collections import Counter
from pathlib import Path
from typing import Any

import yaml

from ..models import (
    CONFIDENCES,
    EFFECTS,
    NODE_VARIANTS,
    STRENGTHS,
    Category,
    Edge,
    Node,
    SubcategoryInfo,
    SubgraphSpec,
    SubItem,
)
from .model import GraphModel, GraphSet

logger = logging.getLogger(__name__)

_KIND_ALIASES = {
    "leaf": "cause",
    "cause": "cause",
    "intermediate": "intermediate",
    "effect": "effect",
}


def _coerce_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _coerce_list(value: Any, section: str) -> list[Any]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValueError(f"'{section}' must be a list")
    return value


def _opt_str(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _id_str(value: Any) -> str | None:
    """Ids may be written as bare YAML numbers; those are read as strings."""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return _opt_str(value)


def _kind(value: Any) -> str:
    return _KIND_ALIASES.get(str(value or "").strip().lower(), "intermediate")


def _choice(value: Any, allowed: tuple[str, ...], default: str) -> str:
    v = str(value or "").strip().lower()
    return v if v in allowed else default


def subcategory_label(subcategory_id: str) -> str:
    """`compute-governance` -> `Compute Governance`."""
    return " ".join(w[:1].upper() + w[1:] for w in subcategory_id.split("-"))


def _sub_items(raw: Any, where: str) -> tuple[SubItem, ...]:
    items: list[SubItem] = []
    for item in _coerce_list(raw, f"{where}.subItems"):
        if isinstance(item, str):
            items.append(SubItem(label=item))
            continue
        item = _coerce_dict(item)
        label = _opt_str(item.get("label"))
        if not label:
            continue
        ratings = {
            str(k): float(v)
            for k, v in _coerce_dict(item.get("ratings")).items()
            if isinstance(v, (int, float)) and not isinstance(v, bool)
        }
        items.append(SubItem(label=label, description=_opt_str(item.get("description")), ratings=ratings))
    return tuple(items)


def _order(value: Any, where: str) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, float) and not math.isfinite(value):
        raise ValueError(f"'{where}.order' must be a finite number")
    if isinstance(value, (int, float)):
        return int(value)
    return None


def _node_from_raw(raw: dict[str, Any], where: str, **overrides: Any) -> Node | None:
    node_id = _id_str(raw.get("id"))
    if not node_id:
        return None
    child_count = raw.get("childCount")
    fields: dict[str, Any] = {
        "id": node_id,
        "label": _opt_str(raw.get("label")) or node_id,
        "kind": _kind(raw.get("type")),
        "subgroup": _opt_str(raw.get("subgroup")),
        "subcategory": _opt_str(raw.get("subcategory")),
        "category": _opt_str(raw.get("category")),
        "order": _order(raw.get("order"), where),
        "description": _opt_str(raw.get("description")),
        "sub_items": _sub_items(raw.get("subItems"), where),
        "variant": _choice(raw.get("variant"), NODE_VARIANTS, "standard"),
        "child_count": child_count if isinstance(child_count, int) else None,
        "preview_items": tuple(str(p) for p in _coerce_list(raw.get("previewItems"), f"{where}.previewItems")),
        "href": _opt_str(raw.get("href")),
    }
    fields.update(overrides)
    return Node(**fields)


def _edge_from_raw(raw: dict[str, Any], edge_id: str) -> Edge | None:
    source = _id_str(raw.get("source"))
    target = _id_str(raw.get("target"))
    if not source or not target:
        return None
    return Edge(
        id=edge_id,
        source=source,
        target=target,
        strength=_choice(raw.get("strength"), STRENGTHS, "medium"),  # type: ignore[arg-type]
        confidence=_choice(raw.get("confidence"), CONFIDENCES, "medium"),  # type: ignore[arg-type]
        effect=_choice(raw.get("effect"), EFFECTS, "increases"),  # type: ignore[arg-type]
        label=_opt_str(raw.get("label")),
    )


def _categories(raw_categories: list[dict[str, Any]], raw_detailed: list[dict[str, Any]]) -> list[Category]:
    """Category filter metadata with node counts taken from detailed nodes."""
    counts: Counter[str] = Counter()
    sub_counts: Counter[tuple[str, str]] = Counter()
    sub_order: dict[str, list[str]] = {}
    for node in raw_detailed:
        cat = _opt_str(node.get("category"))
        if not cat:
            continue
        counts[cat] += 1
        sub = _opt_str(node.get("subcategory"))
        if sub:
            sub_counts[(cat, sub)] += 1
            seen = sub_order.setdefault(cat, [])
            if sub not in seen:
                seen.append(sub)

    categories: list[Category] = []
    for raw in raw_categories:
        cat_id = _id_str(raw.get("id"))
        if not cat_id:
            continue
        kind = _kind(raw.get("type"))
        node_count = counts.get(cat_id, 0)
        if node_count == 0 and kind in ("intermediate", "effect"):
            # The category node itself
            node_count = 1
        subcategories = tuple(
            SubcategoryInfo(id=sub, label=subcategory_label(sub), node_count=sub_counts[(cat_id, sub)])
            for sub in sub_order.get(cat_id, [])
        )
        categories.append(
            Category(
                id=cat_id,
                label=_opt_str(raw.get("label")) or cat_id,
                kind=kind,  # type: ignore[arg-type]
                subgroup=_opt_str(raw.get("subgroup")),
                node_count=node_count,
                subcategories=subcategories,
                description=_opt_str(raw.get("description")),
            )
        )
    return categories


def _subgraph_specs(raw_specs: list[Any]) -> tuple[SubgraphSpec, ...]:
    specs: list[SubgraphSpec] = []
    for i, raw in enumerate(raw_specs):
        raw = _coerce_dict(raw)
        where = f"subgraphs[{i}]"
        entity_id = _opt_str(raw.get("entityId"))
        center = _opt_str(raw.get("centerNode")) or entity_id
        if not entity_id or not center:
            continue
        depth = raw.get("depth")
        specs.append(
            SubgraphSpec(
                entity_id=entity_id,
                center_node=center,
                depth=depth if isinstance(depth, int) and not isinstance(depth, bool) else 2,
                title=_opt_str(raw.get("title")),
                level="overview" if raw.get("level") == "overview" else "detailed",
                include_nodes=tuple(str(n) for n in _coerce_list(raw.get("includeNodes"), f"{where}.includeNodes")),
                exclude_nodes=tuple(str(n) for n in _coerce_list(raw.get("excludeNodes"), f"{where}.excludeNodes")),
            )
        )
    return tuple(specs)


def graph_set_from_dict(data: dict[str, Any]) -> GraphSet:
    """Build overview and detailed models from a parsed master-graph document."""
    if not isinstance(data, dict):
        raise ValueError("Graph document must be a mapping")

    raw_categories = [_coerce_dict(c) for c in _coerce_list(data.get("categories"), "categories")]
    raw_category_edges = [_coerce_dict(e) for e in _coerce_list(data.get("categoryEdges"), "categoryEdges")]
    raw_detailed = [_coerce_dict(n) for n in _coerce_list(data.get("detailedNodes"), "detailedNodes")]
    raw_detailed_edges = [_coerce_dict(e) for e in _coerce_list(data.get("detailedEdges"), "detailedEdges")]
    raw_specs = _coerce_list(data.get("subgraphs"), "subgraphs")

    categories = _categories(raw_categories, raw_detailed)

    # Overview: one node per category.
    overview_nodes: list[Node] = []
    overview_skipped = 0
    for i, raw in enumerate(raw_categories):
        node = _node_from_raw(raw, f"categories[{i}]", category=_id_str(raw.get("id")))
        if node is None:
            overview_skipped += 1
            continue
        overview_nodes.append(node)

    category_edges: list[Edge] = []
    for i, raw in enumerate(raw_category_edges):
        edge = _edge_from_raw(raw, f"cat-{i}-{raw.get('source')}-{raw.get('target')}")
        if edge is not None:
            category_edges.append(edge)

    # Detailed: granular nodes, plus scenario/outcome category nodes which have no granular children.
    detailed_nodes: list[Node] = []
    detailed_skipped = 0
    for i, raw in enumerate(raw_detailed):
        category = _opt_str(raw.get("category"))
        node = _node_from_raw(raw, f"detailedNodes[{i}]", subgroup=_opt_str(raw.get("subgroup")) or category)
        if node is None:
            detailed_skipped += 1
            continue
        detailed_nodes.append(node)
    for node in overview_nodes:
        if node.kind in ("intermediate", "effect"):
            detailed_nodes.append(node)

    detailed_ids = {n.id for n in detailed_nodes}
    detailed_edges: list[Edge] = []
    for i, raw in enumerate(raw_detailed_edges):
        edge = _edge_from_raw(raw, f"det-{i}-{raw.get('source')}-{raw.get('target')}")
        if edge is not None:
            detailed_edges.append(edge)
    for edge in category_edges:
        # Category edges between cause categories only make sense at overview level.
        if edge.source in detailed_ids and edge.target in detailed_ids:
            detailed_edges.append(edge)

    overview = GraphModel.build(
        overview_nodes, category_edges, categories, level="overview", skipped_nodes=overview_skipped
    )
    detailed = GraphModel.build(
        detailed_nodes, detailed_edges, categories, level="detailed", skipped_nodes=detailed_skipped
    )

    logger.debug(
        "Loaded graph %r: overview %d nodes/%d edges, detailed %d nodes/%d edges",
        data.get("id"),
        len(overview.nodes),
        len(overview.edges),
        len(detailed.nodes),
        len(detailed.edges),
    )

    return GraphSet(
        overview=overview,
        detailed=detailed,
        id=str(data.get("id") or ""),
        title=str(data.get("title") or ""),
        description=_opt_str(data.get("description")),
        subgraphs=_subgraph_specs(raw_specs),
    )


def load_graph_set(path: str | Path) -> GraphSet:
    """
    Load a master-graph YAML file.

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the YAML is malformed or a section has the wrong shape
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Graph data not found: {path}")

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ValueError(f"Failed to parse graph YAML: {e}") from e

    return graph_set_from_dict(data or {})
