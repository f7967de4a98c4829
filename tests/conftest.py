"""Pytest configuration and fixtures."""

from pathlib import Path

import pytest
import yaml

from causegraph.graph.loader import graph_set_from_dict
from causegraph.graph.model import GraphModel, GraphSet


def _dataset() -> dict:
    return {
        "id": "test-model",
        "title": "Test transition model",
        "categories": [
            {"id": "ai-capabilities", "label": "AI Capabilities", "type": "cause", "subgroup": "ai"},
            {"id": "governance", "label": "Governance", "type": "cause", "subgroup": "society"},
            {"id": "ai-takeover", "label": "AI Takeover", "type": "intermediate"},
            {"id": "existential-catastrophe", "label": "Existential Catastrophe", "type": "effect"},
        ],
        "categoryEdges": [
            {"source": "ai-capabilities", "target": "ai-takeover", "strength": "strong"},
            {"source": "governance", "target": "ai-takeover", "effect": "decreases"},
            {"source": "ai-takeover", "target": "existential-catastrophe", "strength": "strong"},
        ],
        "detailedNodes": [
            {
                "id": "compute",
                "label": "Compute",
                "type": "leaf",
                "category": "ai-capabilities",
                "subcategory": "compute-scaling",
            },
            {
                "id": "algorithms",
                "label": "Algorithms",
                "type": "leaf",
                "category": "ai-capabilities",
                "subcategory": "algorithmic-progress",
            },
            {
                "id": "regulation",
                "label": "Regulation",
                "type": "leaf",
                "category": "governance",
                "subcategory": "compute-governance",
            },
            {
                "id": "coordination",
                "label": "Coordination",
                "type": "leaf",
                "category": "governance",
                "subcategory": "international",
            },
            {"id": "racing-dynamics", "label": "Racing Dynamics", "type": "intermediate", "category": "governance"},
        ],
        "detailedEdges": [
            {"source": "compute", "target": "ai-takeover", "strength": "strong", "confidence": "high"},
            {"source": "algorithms", "target": "ai-takeover", "strength": "medium"},
            {"source": "regulation", "target": "compute", "strength": "weak", "effect": "decreases", "label": "limits"},
            {"source": "coordination", "target": "racing-dynamics", "strength": "medium", "confidence": "low"},
            {"source": "racing-dynamics", "target": "ai-takeover", "strength": "weak"},
            {"source": "compute", "target": "ghost"},
        ],
        "subgraphs": [
            {
                "entityId": "ai-takeover",
                "centerNode": "ai-takeover",
                "depth": 1,
                "title": "AI takeover pathways",
                "includeNodes": ["coordination"],
                "excludeNodes": ["existential-catastrophe"],
            }
        ],
    }


@pytest.fixture
def graph_data() -> dict:
    """Raw master-graph document (fresh copy per test)."""
    return _dataset()


@pytest.fixture
def graph_set(graph_data: dict) -> GraphSet:
    return graph_set_from_dict(graph_data)


@pytest.fixture
def detailed(graph_set: GraphSet) -> GraphModel:
    return graph_set.detailed


@pytest.fixture
def overview(graph_set: GraphSet) -> GraphModel:
    return graph_set.overview


@pytest.fixture
def data_path(tmp_path: Path, graph_data: dict) -> Path:
    """The dataset written to disk as YAML."""
    path = tmp_path / "master-graph.yaml"
    path.write_text(yaml.safe_dump(graph_data, sort_keys=False), encoding="utf-8")
    return path
