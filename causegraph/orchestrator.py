"""Filter -> layout -> style pipeline.

The orchestrator holds no layout state between calls: every call takes the
graph, filters, and config it needs and returns a fresh LayoutResult.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, Awaitable, Callable, Sequence, Union

from .config import LayoutConfig
from .graph.model import GraphModel
from .layout.barycenter import barycenter_layout
from .layout.layered import layered_layout
from .layout.styles import style_edges
from .models import Edge, GraphFilters, LayoutResult, Node, PositionedLayout
from .query.filters import FilterEngine

logger = logging.getLogger(__name__)

LayoutStrategy = Callable[
    [Sequence[Node], Sequence[Edge], LayoutConfig],
    Union[PositionedLayout, Awaitable[PositionedLayout]],
]

DEFAULT_STRATEGY = "barycenter-tiered"

STRATEGIES: dict[str, LayoutStrategy] = {
    "barycenter-tiered": barycenter_layout,
    "external-layered": layered_layout,
}


def register_strategy(name: str, strategy: LayoutStrategy) -> None:
    """Make a layout strategy selectable by id (sync callable or coroutine function)."""
    if not name:
        raise ValueError("Strategy name must be non-empty")
    STRATEGIES[name] = strategy


def validate_layout(layout: Any, nodes: Sequence[Node]) -> PositionedLayout:
    """Require exactly one position per input node."""
    if not isinstance(layout, PositionedLayout):
        raise TypeError(f"Strategy returned {type(layout).__name__}, expected PositionedLayout")
    expected = [n.id for n in nodes]
    got = [p.id for p in layout.nodes]
    if len(got) != len(set(got)):
        raise ValueError("Strategy returned duplicate node positions")
    if set(got) != set(expected):
        missing = sorted(set(expected) - set(got))
        extra = sorted(set(got) - set(expected))
        raise ValueError(f"Strategy positions do not match input nodes (missing={missing}, extra={extra})")
    return layout


class LayoutOrchestrator:
    """Stateless pipeline over one GraphModel."""

    def __init__(self, model: GraphModel, config: LayoutConfig | None = None):
        self.model = model
        self.config = config or LayoutConfig()
        self.filters = FilterEngine(model)

    def prepare(
        self,
        nodes: Sequence[Node] | None = None,
        edges: Sequence[Edge] | None = None,
        filters: GraphFilters | None = None,
        *,
        prefiltered: bool = False,
    ) -> tuple[list[Node], list[Edge]]:
        """Select the working node/edge set.

        With `prefiltered`, the given set (e.g. an extracted neighborhood) is used as-is
        apart from dropping edges whose endpoints are not in it.
        """
        nodes = list(self.model.nodes if nodes is None else nodes)
        edges = list(self.model.edges if edges is None else edges)

        if filters is not None and not prefiltered:
            filtered = self.filters.apply(filters, nodes, edges)
            return list(filtered.nodes), list(filtered.edges)

        ids = {n.id for n in nodes}
        return nodes, [e for e in edges if e.source in ids and e.target in ids]

    def _resolve(self, strategy: str | None, config: LayoutConfig) -> tuple[str, LayoutStrategy, list[str]]:
        name = strategy or config.layout_algorithm
        if name in STRATEGIES:
            return name, STRATEGIES[name], []
        message = f"Unknown layout strategy {name!r}; using {DEFAULT_STRATEGY}"
        logger.warning(message)
        return DEFAULT_STRATEGY, STRATEGIES[DEFAULT_STRATEGY], [message]

    def _fallback(
        self,
        name: str,
        error: Exception,
        nodes: Sequence[Node],
        edges: Sequence[Edge],
        config: LayoutConfig,
    ) -> PositionedLayout:
        logger.warning("Layout strategy %r failed (%s); falling back to %s", name, error, DEFAULT_STRATEGY)
        return barycenter_layout(nodes, edges, config)

    def _result(
        self,
        layout: PositionedLayout,
        edges: Sequence[Edge],
        strategy: str,
        warnings: list[str],
    ) -> LayoutResult:
        return LayoutResult(
            positioned_nodes=list(layout.nodes),
            styled_edges=style_edges(edges),
            group_containers=list(layout.containers),
            strategy=strategy,
            warnings=warnings,
        )

    def layout(
        self,
        nodes: Sequence[Node] | None = None,
        edges: Sequence[Edge] | None = None,
        filters: GraphFilters | None = None,
        strategy: str | None = None,
        config: LayoutConfig | None = None,
        *,
        prefiltered: bool = False,
    ) -> LayoutResult:
        """Run the pipeline synchronously.

        A strategy that raises, returns an invalid layout, or is asynchronous falls
        back to the barycenter strategy; the reason is recorded in `warnings`.
        """
        config = (config or self.config).normalized()
        work_nodes, work_edges = self.prepare(nodes, edges, filters, prefiltered=prefiltered)
        name, fn, warnings = self._resolve(strategy, config)

        try:
            out = fn(work_nodes, work_edges, config)
            if inspect.isawaitable(out):
                if inspect.iscoroutine(out):
                    out.close()
                raise TypeError("asynchronous strategy requires layout_async()")
            layout = validate_layout(out, work_nodes)
        except Exception as e:
            layout = self._fallback(name, e, work_nodes, work_edges, config)
            warnings.append(f"Layout strategy {name!r} failed: {e}; used {DEFAULT_STRATEGY}")
            name = DEFAULT_STRATEGY

        return self._result(layout, work_edges, name, warnings)

    async def layout_async(
        self,
        nodes: Sequence[Node] | None = None,
        edges: Sequence[Edge] | None = None,
        filters: GraphFilters | None = None,
        strategy: str | None = None,
        config: LayoutConfig | None = None,
        *,
        prefiltered: bool = False,
    ) -> LayoutResult:
        """Like `layout`, but awaits asynchronous strategies and runs sync ones in a thread."""
        config = (config or self.config).normalized()
        work_nodes, work_edges = self.prepare(nodes, edges, filters, prefiltered=prefiltered)
        name, fn, warnings = self._resolve(strategy, config)

        try:
            if inspect.iscoroutinefunction(fn):
                out = await fn(work_nodes, work_edges, config)
            else:
                out = await asyncio.to_thread(fn, work_nodes, work_edges, config)
                if inspect.isawaitable(out):
                    out = await out
            layout = validate_layout(out, work_nodes)
        except Exception as e:
            layout = self._fallback(name, e, work_nodes, work_edges, config)
            warnings.append(f"Layout strategy {name!r} failed: {e}; used {DEFAULT_STRATEGY}")
            name = DEFAULT_STRATEGY

        return self._result(layout, work_edges, name, warnings)


class AsyncLayoutSession:
    """Tracks in-flight async layout requests and drops stale results.

    Each request takes the next token; a result is accepted only if no newer
    request was issued while it was running.
    """

    def __init__(self, orchestrator: LayoutOrchestrator):
        self.orchestrator = orchestrator
        self.current: LayoutResult | None = None
        self._latest = 0

    @property
    def latest_token(self) -> int:
        return self._latest

    async def request(self, **kwargs: Any) -> LayoutResult | None:
        self._latest += 1
        token = self._latest
        result = await self.orchestrator.layout_async(**kwargs)
        result.token = token
        if token != self._latest:
            logger.debug("Discarding stale layout result (token %d, latest %d)", token, self._latest)
            return None
        self.current = result
        return result
