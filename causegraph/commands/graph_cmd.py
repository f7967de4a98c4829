"""Graph commands - lay out, query, and summarize a cause-effect dataset."""

from __future__ import annotations

import json
from collections import Counter
from pathlib import Path
from typing import Iterable

from rich.console import Console
from rich.table import Table

from ..analysis import label_propagation_clusters, most_connected, summarize
from ..config import LayoutConfig, load_config
from ..export import to_dot, to_json_payload, to_svg, to_yaml, wrap_html
from ..graph.loader import load_graph_set
from ..graph.model import GraphModel
from ..models import DetailLevel, Edge, EdgeDensity, GraphFilters, LayoutResult, Node
from ..orchestrator import LayoutOrchestrator
from ..query.subgraph import Subgraph, SubgraphExtractor


def _emit(text: str, out: Path | None, console: Console, what: str) -> None:
    if out:
        out.write_text(text, encoding="utf-8")
        console.print(f"Wrote {what} to {out}", style="green")
    else:
        print(text, end="" if text.endswith("\n") else "\n")


def _load_config(config_path: Path | None) -> LayoutConfig:
    return load_config(config_path) if config_path else LayoutConfig()


def _visible(model: GraphModel, result: LayoutResult) -> tuple[list[Node], list[Edge]]:
    node_ids = {p.id for p in result.positioned_nodes}
    edge_ids = {e.id for e in result.styled_edges}
    return (
        [n for n in model.nodes if n.id in node_ids],
        [e for e in model.edges if e.id in edge_ids],
    )


def _render_result(
    result: LayoutResult,
    model: GraphModel,
    *,
    fmt: str,
    title: str,
    out: Path | None,
    console: Console,
    distances: dict[str, int] | None = None,
) -> None:
    nodes, edges = _visible(model, result)

    if fmt == "rich":
        if out:
            rich_console = Console(record=True)
            _print_layout_rich(result, model, title=title, console=rich_console, distances=distances)
            out.write_text(rich_console.export_text(), encoding="utf-8")
            console.print(f"Wrote layout to {out}", style="green")
        else:
            _print_layout_rich(result, model, title=title, console=Console(), distances=distances)
        return

    text: str
    if fmt == "svg":
        text = to_svg(result, nodes, title=title)
    elif fmt == "html":
        text = wrap_html(to_svg(result, nodes, title=title), title=title)
    elif fmt == "dot":
        text = to_dot(nodes, edges, title=title)
    elif fmt == "yaml":
        text = to_yaml(nodes, edges)
    else:
        text = json.dumps(to_json_payload(result), indent=2) + "\n"
    _emit(text, out, console, "layout")


def _print_layout_rich(
    result: LayoutResult,
    model: GraphModel,
    *,
    title: str,
    console: Console,
    distances: dict[str, int] | None = None,
) -> None:
    console.print(f"[bold]{title}[/bold]")
    console.print(
        f"Strategy: {result.strategy}  Nodes: {len(result.positioned_nodes)}  "
        f"Edges: {len(result.styled_edges)}  Groups: {len(result.group_containers)}"
    )
    console.print()

    t = Table(show_header=True, header_style="bold")
    t.add_column("Node", style="cyan", no_wrap=True)
    t.add_column("Kind")
    if distances is not None:
        t.add_column("Hops", justify="right")
    t.add_column("X", justify="right")
    t.add_column("Y", justify="right")
    t.add_column("W", justify="right")
    t.add_column("H", justify="right")

    ordered = sorted(result.positioned_nodes, key=lambda p: (p.y, p.x, p.id))
    for p in ordered:
        node = model.node(p.id)
        row = [p.id, node.kind if node else "?"]
        if distances is not None:
            row.append(str(distances.get(p.id, "")))
        row += [f"{p.x:.0f}", f"{p.y:.0f}", f"{p.width:.0f}", f"{p.height:.0f}"]
        t.add_row(*row)
    console.print(t)


def _filters_for(
    orchestrator: LayoutOrchestrator,
    density: EdgeDensity,
    *,
    hide_categories: Iterable[str] = (),
    hide_subgroups: Iterable[str] = (),
    hide_kinds: Iterable[str] = (),
    hide_subcategories: Iterable[str] = (),
) -> GraphFilters:
    filters = orchestrator.filters.initial_filters(density)
    for dimension, keys in (
        ("categories", hide_categories),
        ("subgroups", hide_subgroups),
        ("kinds", hide_kinds),
        ("subcategories", hide_subcategories),
    ):
        for key in keys:
            filters = filters.toggled(dimension, key, False)
    return filters


def run_layout(
    data_path: Path,
    *,
    level: DetailLevel = "detailed",
    strategy: str | None = None,
    density: EdgeDensity | None = None,
    config_path: Path | None = None,
    hide_categories: Iterable[str] = (),
    hide_subgroups: Iterable[str] = (),
    hide_kinds: Iterable[str] = (),
    hide_subcategories: Iterable[str] = (),
    fmt: str = "json",
    out: Path | None = None,
) -> int:
    """Filter and lay out one detail level of the dataset."""
    console = Console(stderr=True)

    graphs = load_graph_set(data_path)
    config = _load_config(config_path)
    model = graphs.level(level)
    orchestrator = LayoutOrchestrator(model, config)

    filters = _filters_for(
        orchestrator,
        density or config.normalized().default_edge_density,
        hide_categories=hide_categories,
        hide_subgroups=hide_subgroups,
        hide_kinds=hide_kinds,
        hide_subcategories=hide_subcategories,
    )
    result = orchestrator.layout(filters=filters, strategy=strategy)
    for warning in result.warnings:
        console.print(f"Warning: {warning}", style="yellow")

    title = f"{graphs.title or graphs.id or 'Cause-effect graph'} ({level})"
    _render_result(result, model, fmt=fmt, title=title, out=out, console=console)
    return 0


def run_neighborhood(
    data_path: Path,
    focal: str | None,
    *,
    hops: int = 2,
    level: DetailLevel = "detailed",
    spec_entity: str | None = None,
    strategy: str | None = None,
    config_path: Path | None = None,
    fmt: str = "rich",
    out: Path | None = None,
) -> int:
    """Lay out the k-hop neighborhood of a focal node (or a saved neighborhood)."""
    console = Console(stderr=True)

    graphs = load_graph_set(data_path)
    extractor = SubgraphExtractor(graphs)

    sub: Subgraph | None
    if spec_entity:
        sub = extractor.extract_saved(spec_entity)
        if sub is None:
            console.print(f"No saved neighborhood for '{spec_entity}'", style="red")
            return 1
    elif focal:
        sub = extractor.extract(focal, hops, level)
    else:
        console.print("Pass a FOCAL node id or --spec ENTITY", style="red")
        return 1

    if sub.is_empty():
        console.print(f"Node '{sub.focal}' not found in the {sub.level} graph", style="yellow")
        return 1

    model = graphs.level(sub.level)
    orchestrator = LayoutOrchestrator(model, _load_config(config_path))
    result = orchestrator.layout(sub.nodes, sub.edges, strategy=strategy, prefiltered=True)
    for warning in result.warnings:
        console.print(f"Warning: {warning}", style="yellow")

    title = sub.title or f"Neighborhood of {sub.focal} ({sub.hops} hop{'s' if sub.hops != 1 else ''})"
    _render_result(result, model, fmt=fmt, title=title, out=out, console=console, distances=dict(sub.distances))
    return 0


def _categories_payload(model: GraphModel) -> dict:
    return {
        "level": model.level,
        "categories": [
            {
                "id": c.id,
                "label": c.label,
                "kind": c.kind,
                "subgroup": c.subgroup,
                "node_count": c.node_count,
                "subcategories": [{"id": s.id, "label": s.label, "node_count": s.node_count} for s in c.subcategories],
            }
            for c in model.categories
        ],
    }


def _categories_to_markdown(payload: dict) -> str:
    lines = ["## Categories", "", "| Category | Kind | Subgroup | Nodes | Subcategories |", "|---|---|---|---:|---|"]
    for c in payload["categories"]:
        subs = ", ".join(f"{s['label']} ({s['node_count']})" for s in c["subcategories"])
        lines.append(f"| `{c['id']}` {c['label']} | {c['kind']} | {c['subgroup'] or ''} | {c['node_count']} | {subs} |")
    return "\n".join(lines) + "\n"


def run_categories(
    data_path: Path,
    *,
    level: DetailLevel = "detailed",
    fmt: str = "rich",
    out: Path | None = None,
) -> int:
    """List filter categories with node counts."""
    console = Console(stderr=True)
    model = load_graph_set(data_path).level(level)
    payload = _categories_payload(model)

    if fmt == "rich":
        t = Table(title="Categories", show_header=True, header_style="bold")
        t.add_column("Category", style="cyan", no_wrap=True)
        t.add_column("Label")
        t.add_column("Kind")
        t.add_column("Subgroup")
        t.add_column("Nodes", justify="right")
        for c in payload["categories"]:
            t.add_row(c["id"], c["label"], c["kind"], c["subgroup"] or "", str(c["node_count"]))
        if out:
            rich_console = Console(record=True)
            rich_console.print(t)
            out.write_text(rich_console.export_text(), encoding="utf-8")
            console.print(f"Wrote categories to {out}", style="green")
        else:
            Console().print(t)
        return 0

    text = json.dumps(payload, indent=2) + "\n" if fmt == "json" else _categories_to_markdown(payload)
    _emit(text, out, console, "categories")
    return 0


def _stats_to_markdown(payload: dict) -> str:
    lines: list[str] = [f"## {payload['title']}", ""]
    lines.append(f"- Nodes: {payload['node_count']}")
    lines.append(f"- Edges: {payload['edge_count']}")
    lines.append(f"- Dropped edges: {payload['dropped_edges']}")
    kinds = ", ".join(f"{k}: {v}" for k, v in payload["kind_counts"].items())
    lines.append(f"- By kind: {kinds}")
    lines.append(f"- Clusters: {payload['cluster_count']}")
    lines.append(f"- Orphans: {', '.join(payload['orphans']) or 'none'}")
    lines.append("")

    def table(title: str, rows: list[dict]) -> None:
        lines.append(f"### {title}")
        lines.append("")
        lines.append("| Node | In-degree | Out-degree |")
        lines.append("|---|---:|---:|")
        for r in rows:
            lines.append(f"| `{r['name']}` | {r['in_degree']} | {r['out_degree']} |")
        lines.append("")

    table("Top in-degree", payload["top_in_degree"])
    table("Top out-degree", payload["top_out_degree"])
    return "\n".join(lines).rstrip() + "\n"


def _print_stats_rich(payload: dict, *, console: Console) -> None:
    console.print(f"[bold]{payload['title']}[/bold]")
    console.print(
        f"Nodes: {payload['node_count']}  Edges: {payload['edge_count']}  "
        f"Dropped edges: {payload['dropped_edges']}  Clusters: {payload['cluster_count']}"
    )
    console.print()

    def render_table(title: str, rows: list[dict]) -> None:
        t = Table(title=title, show_header=True, header_style="bold")
        t.add_column("Node", style="cyan", no_wrap=True)
        t.add_column("In", justify="right")
        t.add_column("Out", justify="right")
        for r in rows:
            t.add_row(str(r["name"]), str(r["in_degree"]), str(r["out_degree"]))
        console.print(t)
        console.print()

    render_table("Top in-degree", payload["top_in_degree"])
    render_table("Top out-degree", payload["top_out_degree"])


def run_stats(
    data_path: Path,
    *,
    level: DetailLevel = "detailed",
    top: int = 10,
    fmt: str = "rich",
    out: Path | None = None,
) -> int:
    """Degree tables, orphans, and cluster counts for one detail level."""
    console = Console(stderr=True)
    graphs = load_graph_set(data_path)
    model = graphs.level(level)

    payload = summarize(model, title=f"{graphs.title or 'Cause-effect graph'} ({level})", top=top)
    clusters = label_propagation_clusters(model)
    payload["cluster_count"] = len(set(clusters.values()))
    payload["cluster_sizes"] = dict(sorted(Counter(clusters.values()).items(), key=lambda kv: int(kv[0][1:])))
    payload["most_connected"] = [{"name": n, "degree": d} for n, d in most_connected(model, limit=top)]

    if fmt == "rich":
        if out:
            rich_console = Console(record=True)
            _print_stats_rich(payload, console=rich_console)
            out.write_text(rich_console.export_text(), encoding="utf-8")
            console.print(f"Wrote stats to {out}", style="green")
        else:
            _print_stats_rich(payload, console=Console())
        return 0

    text = json.dumps(payload, indent=2, sort_keys=True) + "\n" if fmt == "json" else _stats_to_markdown(payload)
    _emit(text, out, console, "stats")
    return 0
