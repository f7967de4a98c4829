"""Serializers for layout results and graphs: JSON, SVG, HTML, DOT, YAML."""

from __future__ import annotations

import html
from dataclasses import asdict
from typing import Any, Iterable, Mapping, Sequence

import yaml

from .layout.styles import EDGE_COLOR, EDGE_LABEL_BG, EDGE_LABEL_COLOR, node_style
from .models import TIER_ORDER, Edge, LayoutResult, Node

MARGIN = 40
TITLE_HEIGHT = 36
EFFECT_DASH = {"increases": "", "decreases": "6 4", "mixed": "2 3"}


def to_json_payload(result: LayoutResult) -> dict[str, Any]:
    """Renderer-facing payload; keys follow the renderer's camelCase contract."""
    return {
        "strategy": result.strategy,
        "warnings": list(result.warnings),
        "positionedNodes": [asdict(p) for p in result.positioned_nodes],
        "styledEdges": [
            {
                "id": e.id,
                "source": e.source,
                "target": e.target,
                "strokeWidth": e.stroke_width,
                "colorToken": e.color_token,
                "markerKind": e.marker_kind,
                "label": e.label,
                "labelChip": e.label_chip,
                "effect": e.effect,
            }
            for e in result.styled_edges
        ],
        "groupContainers": [
            {
                "scopeId": c.scope_id,
                "x": c.x,
                "y": c.y,
                "width": c.width,
                "height": c.height,
                "label": c.label,
                "scope": c.scope,
                "color": c.color,
            }
            for c in result.group_containers
        ],
    }


def _node_index(nodes: Mapping[str, Node] | Iterable[Node]) -> dict[str, Node]:
    if isinstance(nodes, Mapping):
        return dict(nodes)
    return {n.id: n for n in nodes}


def to_svg(result: LayoutResult, nodes: Mapping[str, Node] | Iterable[Node], *, title: str) -> str:
    """Render a static preview of a layout result (no external deps)."""
    by_id = _node_index(nodes)
    boxes = {p.id: p for p in result.positioned_nodes}

    xs = [p.x for p in boxes.values()] + [c.x for c in result.group_containers]
    ys = [p.y for p in boxes.values()] + [c.y for c in result.group_containers]
    x2 = [p.x + p.width for p in boxes.values()] + [c.x + c.width for c in result.group_containers]
    y2 = [p.y + p.height for p in boxes.values()] + [c.y + c.height for c in result.group_containers]
    min_x, min_y = min(xs, default=0.0), min(ys, default=0.0)
    width = max(x2, default=0.0) - min_x + MARGIN * 2
    height = max(y2, default=0.0) - min_y + MARGIN * 2 + TITLE_HEIGHT

    # Shift everything so the drawing starts at the margin.
    ox = MARGIN - min_x
    oy = MARGIN + TITLE_HEIGHT - min_y

    def esc(s: str) -> str:
        return html.escape(s, quote=True)

    parts: list[str] = [
        f'<svg xmlns="http://www.w3.org/2000/svg" width="{width:.0f}" height="{height:.0f}" '
        f'viewBox="0 0 {width:.0f} {height:.0f}" style="background:#ffffff">',
        "<defs>",
        f'<marker id="arrow" viewBox="0 0 10 10" refX="9" refY="5" markerWidth="8" markerHeight="8" orient="auto">'
        f'<path d="M 0 0 L 10 5 L 0 10 z" fill="{EDGE_COLOR}"/></marker>',
        "</defs>",
        f'<text x="{MARGIN}" y="{MARGIN + 8}" fill="#0f172a" font-family="Helvetica" font-size="16">{esc(title)}</text>',
    ]

    parts.append('<g id="groups">')
    for c in result.group_containers:
        fill = c.color or "#f8fafc"
        opacity = "0.35" if c.scope == "subgroup" else "0.6"
        parts.append(
            f'<rect x="{c.x + ox:.1f}" y="{c.y + oy:.1f}" width="{c.width:.1f}" height="{c.height:.1f}" rx="10" '
            f'fill="{fill}" fill-opacity="{opacity}" stroke="#e2e8f0"/>'
        )
        parts.append(
            f'<text x="{c.x + ox + 10:.1f}" y="{c.y + oy + 18:.1f}" fill="#475569" font-family="Helvetica" '
            f'font-size="{12 if c.scope == "tier" else 11}">{esc(c.label)}</text>'
        )
    parts.append("</g>")

    parts.append('<g id="edges" fill="none" stroke-linecap="round">')
    for e in result.styled_edges:
        src, dst = boxes.get(e.source), boxes.get(e.target)
        if src is None or dst is None:
            continue
        x1, y1 = src.x + src.width / 2 + ox, src.y + src.height + oy
        xe, ye = dst.x + dst.width / 2 + ox, dst.y + oy
        ctrl = max(30.0, abs(ye - y1) * 0.4)
        d = f"M {x1:.1f},{y1:.1f} C {x1:.1f},{y1 + ctrl:.1f} {xe:.1f},{ye - ctrl:.1f} {xe:.1f},{ye:.1f}"
        dash = EFFECT_DASH.get(e.effect, "")
        dash_attr = f' stroke-dasharray="{dash}"' if dash else ""
        parts.append(
            f'<path d="{d}" stroke="{EDGE_COLOR}" stroke-width="{e.stroke_width}"{dash_attr} marker-end="url(#arrow)"/>'
        )
        if e.label:
            mx, my = (x1 + xe) / 2, (y1 + ye) / 2
            chip_w = len(e.label) * 6 + 12
            parts.append(
                f'<rect x="{mx - chip_w / 2:.1f}" y="{my - 9:.1f}" width="{chip_w}" height="18" rx="4" '
                f'fill="{EDGE_LABEL_BG}" stroke="{EDGE_COLOR}"/>'
            )
            parts.append(
                f'<text x="{mx:.1f}" y="{my + 4:.1f}" fill="{EDGE_LABEL_COLOR}" font-family="Helvetica" '
                f'font-size="10" text-anchor="middle">{esc(e.label)}</text>'
            )
    parts.append("</g>")

    parts.append('<g id="nodes">')
    for p in result.positioned_nodes:
        node = by_id.get(p.id)
        label = node.label if node else p.id
        style = node_style(node) if node else None
        fill = style.background if style else "#ffffff"
        stroke = style.border if style else "#cbd5e1"
        text = style.text if style else "#334155"
        radius = min(style.radius if style else 8, p.height / 2)
        parts.append(
            f'<rect x="{p.x + ox:.1f}" y="{p.y + oy:.1f}" width="{p.width:.1f}" height="{p.height:.1f}" '
            f'rx="{radius:.1f}" fill="{fill}" stroke="{stroke}" stroke-width="1.5"/>'
        )
        parts.append(
            f'<text x="{p.x + ox + p.width / 2:.1f}" y="{p.y + oy + 26:.1f}" fill="{text}" font-family="Helvetica" '
            f'font-size="13" font-weight="600" text-anchor="middle">{esc(label)}</text>'
        )
        for i, item in enumerate(node.sub_items if node else ()):
            parts.append(
                f'<text x="{p.x + ox + 14:.1f}" y="{p.y + oy + 56 + i * 28:.1f}" fill="{text}" '
                f'font-family="Helvetica" font-size="11">{esc(item.label)}</text>'
            )
    parts.append("</g>")
    parts.append("</svg>")
    return "\n".join(parts) + "\n"


_HTML_TEMPLATE = """<!doctype html>
<html>
<head>
  <meta charset="utf-8" />
  <title>{title}</title>
  <meta name="viewport" content="width=device-width, initial-scale=1" />
  <style>
    html, body {{ height: 100%; margin: 0; }}
    body {{ background: #f8fafc; color: #0f172a; font-family: system-ui, -apple-system, Segoe UI, Roboto, Helvetica, Arial; }}
    .wrap {{ padding: 12px; height: 100vh; box-sizing: border-box; display: flex; flex-direction: column; }}
    .toolbar {{ display: flex; gap: 8px; align-items: center; margin-bottom: 10px; }}
    .btn {{ background: #ffffff; border: 1px solid #cbd5e1; border-radius: 8px; padding: 6px 10px; cursor: pointer; }}
    .hint {{ color: #64748b; font-size: 12px; }}
    .viewport {{ border: 1px solid #e2e8f0; border-radius: 10px; overflow: hidden; flex: 1; min-height: 0; background: #ffffff; }}
    svg {{ width: 100%; height: 100%; display: block; touch-action: none; user-select: none; }}
  </style>
</head>
<body>
  <div class="wrap">
    <div class="toolbar">
      <button class="btn" id="fitBtn" type="button">Fit</button>
      <button class="btn" id="zoomInBtn" type="button">+</button>
      <button class="btn" id="zoomOutBtn" type="button">-</button>
      <span class="hint">Drag to pan, scroll to zoom</span>
    </div>
    <div class="viewport" id="viewport">
{svg}
    </div>
  </div>
  <script>
    (function () {{
      const svg = document.querySelector('#viewport svg');
      if (!svg) return;
      const vb = svg.viewBox.baseVal;
      const home = {{ x: vb.x, y: vb.y, w: vb.width, h: vb.height }};
      const zoom = (cx, cy, f) => {{
        const r = svg.getBoundingClientRect();
        const px = (cx - r.left) / r.width, py = (cy - r.top) / r.height;
        const w = Math.min(home.w * 4, Math.max(home.w * 0.1, vb.width / f));
        const h = w * (home.h / home.w);
        vb.x += (vb.width - w) * px; vb.y += (vb.height - h) * py;
        vb.width = w; vb.height = h;
      }};
      let drag = null;
      svg.addEventListener('pointerdown', (e) => {{
        svg.setPointerCapture(e.pointerId);
        drag = {{ x: e.clientX, y: e.clientY, vx: vb.x, vy: vb.y }};
      }});
      svg.addEventListener('pointerup', () => {{ drag = null; }});
      svg.addEventListener('pointermove', (e) => {{
        if (!drag) return;
        const r = svg.getBoundingClientRect();
        vb.x = drag.vx - (e.clientX - drag.x) * (vb.width / r.width);
        vb.y = drag.vy - (e.clientY - drag.y) * (vb.height / r.height);
      }});
      svg.addEventListener('wheel', (e) => {{
        e.preventDefault();
        zoom(e.clientX, e.clientY, e.deltaY > 0 ? 1 / 1.15 : 1.15);
      }}, {{ passive: false }});
      const center = () => {{
        const r = svg.getBoundingClientRect();
        return [r.left + r.width / 2, r.top + r.height / 2];
      }};
      document.getElementById('fitBtn').addEventListener('click', () => {{
        vb.x = home.x; vb.y = home.y; vb.width = home.w; vb.height = home.h;
      }});
      document.getElementById('zoomInBtn').addEventListener('click', () => zoom(...center(), 1.2));
      document.getElementById('zoomOutBtn').addEventListener('click', () => zoom(...center(), 1 / 1.2));
    }})();
  </script>
</body>
</html>
"""


def wrap_html(svg: str, *, title: str) -> str:
    """Wrap SVG in a standalone HTML page with pan/zoom (no external deps)."""
    return _HTML_TEMPLATE.format(title=html.escape(title, quote=True), svg=svg)


def to_dot(nodes: Sequence[Node], edges: Sequence[Edge], *, title: str) -> str:
    """Top-down DOT graph with one rank per tier."""

    def esc(s: str) -> str:
        return s.replace("\\", "\\\\").replace('"', '\\"')

    strength_pen = {"strong": "2.5", "medium": "1.5", "weak": "1.0"}
    lines = [
        "digraph causegraph {",
        f'  label="{esc(title)}";',
        "  labelloc=t;",
        "  rankdir=TB;",
        '  graph [fontname="Helvetica"];',
        '  node [fontname="Helvetica", fontsize=10, shape=box, style="rounded,filled"];',
        f'  edge [color="{EDGE_COLOR}", arrowhead=normal];',
    ]

    for kind in TIER_ORDER:
        members = [n for n in nodes if n.kind == kind]
        if not members:
            continue
        lines.append(f"  subgraph tier_{kind} {{")
        lines.append("    rank=same;")
        for n in members:
            style = node_style(n)
            lines.append(
                f'    "{esc(n.id)}" [label="{esc(n.label)}"; fillcolor="{style.background}"; '
                f'color="{style.border}"; fontcolor="{style.text}"];'
            )
        lines.append("  }")

    for e in edges:
        attrs = [f'penwidth="{strength_pen.get(e.strength, "1.5")}"']
        if e.effect == "decreases":
            attrs.append('style="dashed"')
        elif e.effect == "mixed":
            attrs.append('style="dotted"')
        if e.label:
            attrs.append(f'label="{esc(e.label)}"')
        lines.append(f'  "{esc(e.source)}" -> "{esc(e.target)}" [{"; ".join(attrs)}];')

    lines.append("}")
    return "\n".join(lines) + "\n"


def _node_to_raw(node: Node) -> dict[str, Any]:
    raw: dict[str, Any] = {"id": node.id, "label": node.label, "type": node.kind}
    optional = {
        "category": node.category,
        "subcategory": node.subcategory,
        "subgroup": node.subgroup,
        "order": node.order,
        "description": node.description,
        "href": node.href,
    }
    raw.update({k: v for k, v in optional.items() if v is not None})
    if node.variant != "standard":
        raw["variant"] = node.variant
    if node.sub_items:
        raw["subItems"] = [
            {k: v for k, v in {"label": s.label, "description": s.description, "ratings": dict(s.ratings)}.items() if v}
            for s in node.sub_items
        ]
    return raw


def _edge_to_raw(edge: Edge) -> dict[str, Any]:
    raw: dict[str, Any] = {
        "source": edge.source,
        "target": edge.target,
        "strength": edge.strength,
        "confidence": edge.confidence,
        "effect": edge.effect,
    }
    if edge.label:
        raw["label"] = edge.label
    return raw


def to_yaml(nodes: Sequence[Node], edges: Sequence[Edge]) -> str:
    """Nodes/edges in the dataset's own YAML shape (loadable as detailed data)."""
    doc = {
        "detailedNodes": [_node_to_raw(n) for n in nodes],
        "detailedEdges": [_edge_to_raw(e) for e in edges],
    }
    return yaml.safe_dump(doc, sort_keys=False, allow_unicode=True)
