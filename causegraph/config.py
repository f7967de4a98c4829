"""Layout configuration: defaults, clamping, and TOML loading."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from pathlib import Path
from types import MappingProxyType
from typing import Any, Literal, Mapping

import tomllib

from .models import EDGE_DENSITIES, TIER_ORDER, EdgeDensity

logger = logging.getLogger(__name__)

LayoutAlgorithm = Literal["barycenter-tiered", "external-layered"]
LAYOUT_ALGORITHMS: tuple[LayoutAlgorithm, ...] = ("barycenter-tiered", "external-layered")

# Node dimensions
NODE_WIDTH = 180
NODE_HEIGHT = 80
MIN_NODE_WIDTH = 40

# Group container padding and spacing
GROUP_PADDING = 20
GROUP_HEADER_HEIGHT = 28

# Subgroup padding and spacing
SUBGROUP_PADDING = 12
SUBGROUP_HEADER_HEIGHT = 20

DEFAULT_TYPE_LABELS: dict[str, str] = {
    "cause": "Causes",
    "intermediate": "Intermediate",
    "effect": "Effects",
}

DEFAULT_NODE_SPACING: dict[str, float] = {
    "cause": 40,
    "intermediate": 60,
    "effect": 80,
}


@dataclass(frozen=True)
class SubgroupStyle:
    label: str
    color: str = "#e2e8f0"


@dataclass(frozen=True)
class LayoutConfig:
    """Recognized layout options. Use `normalized()` before laying out."""

    layer_gap: float = 30
    node_spacing: Mapping[str, float] = field(default_factory=lambda: dict(DEFAULT_NODE_SPACING))
    node_gap: float = 20
    subgroup_gap: float = 60
    node_width: float | None = None
    center_x: float = 450
    layout_algorithm: LayoutAlgorithm = "barycenter-tiered"
    type_labels: Mapping[str, str] = field(default_factory=lambda: dict(DEFAULT_TYPE_LABELS))
    subgroup_registry: Mapping[str, SubgroupStyle] = field(default_factory=dict)
    default_edge_density: EdgeDensity = "medium"
    barycenter_passes: int = 4
    respect_manual_order: bool = True
    hide_group_containers: bool = False

    def __post_init__(self) -> None:
        # Registry order is significant: subgroups are laid out in declaration order.
        object.__setattr__(self, "node_spacing", MappingProxyType(dict(self.node_spacing)))
        object.__setattr__(self, "type_labels", MappingProxyType(dict(self.type_labels)))
        object.__setattr__(self, "subgroup_registry", MappingProxyType(dict(self.subgroup_registry)))

    def spacing_for(self, kind: str) -> float:
        return float(self.node_spacing.get(kind, 0))

    def type_label(self, kind: str) -> str:
        return self.type_labels.get(kind) or DEFAULT_TYPE_LABELS.get(kind, kind.title())

    def normalized(self) -> "LayoutConfig":
        """Return a copy with out-of-range values clamped to their minimums."""
        changes: dict[str, Any] = {}

        def clamp(name: str, value: float, minimum: float) -> float:
            if value < minimum:
                logger.debug("Clamped %s from %s to %s", name, value, minimum)
                return minimum
            return value

        changes["layer_gap"] = clamp("layer_gap", float(self.layer_gap), 0)
        changes["node_gap"] = clamp("node_gap", float(self.node_gap), 0)
        changes["subgroup_gap"] = clamp("subgroup_gap", float(self.subgroup_gap), 0)
        changes["barycenter_passes"] = int(clamp("barycenter_passes", int(self.barycenter_passes), 1))

        spacing = dict(DEFAULT_NODE_SPACING)
        spacing.update(self.node_spacing)
        changes["node_spacing"] = {
            kind: clamp(f"node_spacing.{kind}", float(value), 0) for kind, value in spacing.items()
        }

        if self.node_width is not None:
            changes["node_width"] = clamp("node_width", float(self.node_width), MIN_NODE_WIDTH)

        labels = dict(DEFAULT_TYPE_LABELS)
        labels.update({k: v for k, v in self.type_labels.items() if v})
        changes["type_labels"] = labels

        if self.layout_algorithm not in LAYOUT_ALGORITHMS:
            logger.warning("Unknown layout algorithm %r; using barycenter-tiered", self.layout_algorithm)
            changes["layout_algorithm"] = "barycenter-tiered"

        if self.default_edge_density not in EDGE_DENSITIES:
            logger.warning("Unknown edge density %r; using medium", self.default_edge_density)
            changes["default_edge_density"] = "medium"

        return replace(self, **changes)


def _coerce_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def config_from_dict(data: Mapping[str, Any]) -> LayoutConfig:
    """Build a LayoutConfig from a parsed TOML/dict document.

    Recognized tables: [layout], [layout.node_spacing], [type_labels], [subgroups.<id>].
    """
    layout = _coerce_dict(data.get("layout"))
    kwargs: dict[str, Any] = {}

    for key in ("layer_gap", "node_gap", "subgroup_gap", "center_x", "node_width"):
        if key in layout:
            try:
                kwargs[key] = float(layout[key])
            except (TypeError, ValueError) as e:
                raise ValueError(f"layout.{key} must be a number") from e

    if "barycenter_passes" in layout:
        try:
            kwargs["barycenter_passes"] = int(layout["barycenter_passes"])
        except (TypeError, ValueError) as e:
            raise ValueError("layout.barycenter_passes must be an integer") from e

    for key in ("layout_algorithm", "default_edge_density"):
        if isinstance(layout.get(key), str):
            kwargs[key] = layout[key].strip()

    for key in ("respect_manual_order", "hide_group_containers"):
        if key in layout:
            kwargs[key] = bool(layout[key])

    spacing = _coerce_dict(layout.get("node_spacing"))
    if spacing:
        merged = dict(DEFAULT_NODE_SPACING)
        for kind, value in spacing.items():
            if kind not in TIER_ORDER:
                continue
            try:
                merged[kind] = float(value)
            except (TypeError, ValueError) as e:
                raise ValueError(f"layout.node_spacing.{kind} must be a number") from e
        kwargs["node_spacing"] = merged

    labels = _coerce_dict(data.get("type_labels"))
    if labels:
        kwargs["type_labels"] = {str(k): str(v) for k, v in labels.items() if isinstance(v, str)}

    registry: dict[str, SubgroupStyle] = {}
    for sg_id, raw in _coerce_dict(data.get("subgroups")).items():
        raw = _coerce_dict(raw)
        label = str(raw.get("label") or sg_id)
        color = raw.get("color")
        registry[str(sg_id)] = SubgroupStyle(label=label, color=str(color)) if color else SubgroupStyle(label=label)
    if registry:
        kwargs["subgroup_registry"] = registry

    return LayoutConfig(**kwargs)


def load_config(path: str | Path) -> LayoutConfig:
    """
    Load layout configuration from a TOML file.

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the TOML is malformed or a value has the wrong type
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Layout config not found: {path}")

    with open(path, "rb") as f:
        try:
            data = tomllib.load(f)
        except Exception as e:
            raise ValueError(f"Failed to parse layout config TOML: {e}") from e

    return config_from_dict(data)
