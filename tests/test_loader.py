import logging
from pathlib import Path

import pytest

from causegraph.graph.loader import graph_set_from_dict, load_graph_set, subcategory_label
from causegraph.graph.model import GraphModel
from causegraph.models import Edge, Node


def test_detailed_level_includes_scenario_and_outcome_category_nodes(detailed) -> None:
    ids = [n.id for n in detailed.nodes]
    assert ids == [
        "compute",
        "algorithms",
        "regulation",
        "coordination",
        "racing-dynamics",
        "ai-takeover",
        "existential-catastrophe",
    ]


def test_leaf_nodes_become_causes_and_subgroup_defaults_to_category(detailed) -> None:
    compute = detailed.node("compute")
    assert compute.kind == "cause"
    assert compute.subgroup == "ai-capabilities"
    assert detailed.node("racing-dynamics").kind == "intermediate"


def test_dangling_edges_are_dropped_and_counted(detailed, overview) -> None:
    assert detailed.dropped_edges == 1
    assert all(e.target != "ghost" for e in detailed.edges)
    assert overview.dropped_edges == 0


def test_edge_ids_and_defaults(detailed, overview) -> None:
    ids = [e.id for e in detailed.edges]
    assert ids[0] == "det-0-compute-ai-takeover"
    # Only the category edge whose endpoints exist at detailed level is carried over.
    assert ids[-1] == "cat-2-ai-takeover-existential-catastrophe"
    assert len(detailed.edges) == 6

    algorithms_edge = detailed.edges[1]
    assert algorithms_edge.confidence == "medium"
    assert algorithms_edge.effect == "increases"

    assert [e.id for e in overview.edges] == [
        "cat-0-ai-capabilities-ai-takeover",
        "cat-1-governance-ai-takeover",
        "cat-2-ai-takeover-existential-catastrophe",
    ]
    assert overview.edges[1].effect == "decreases"


def test_category_counts(detailed) -> None:
    counts = {c.id: c.node_count for c in detailed.categories}
    assert counts == {
        "ai-capabilities": 2,
        "governance": 3,
        "ai-takeover": 1,
        "existential-catastrophe": 1,
    }
    governance = detailed.category("governance")
    assert [s.id for s in governance.subcategories] == ["compute-governance", "international"]
    assert governance.subcategories[0].label == "Compute Governance"


def test_subcategory_label() -> None:
    assert subcategory_label("compute-governance") == "Compute Governance"
    assert subcategory_label("ai") == "Ai"


def test_saved_subgraph_specs(graph_set) -> None:
    spec = graph_set.subgraph_spec("ai-takeover")
    assert spec is not None
    assert spec.depth == 1
    assert spec.level == "detailed"
    assert spec.include_nodes == ("coordination",)
    assert spec.exclude_nodes == ("existential-catastrophe",)
    assert graph_set.subgraph_spec("missing") is None


def test_duplicate_nodes_keep_first() -> None:
    model = GraphModel.build(
        [Node(id="a", label="First", kind="cause"), Node(id="a", label="Second", kind="effect")],
        [Edge(id="e", source="a", target="a")],
    )
    assert model.dropped_nodes == 1
    assert model.node("a").label == "First"


def test_load_graph_set_reads_yaml(data_path: Path) -> None:
    graphs = load_graph_set(data_path)
    assert graphs.id == "test-model"
    assert len(graphs.detailed.nodes) == 7


def test_missing_file_raises(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_graph_set(tmp_path / "nope.yaml")


def test_malformed_yaml_raises_value_error(tmp_path: Path) -> None:
    path = tmp_path / "bad.yaml"
    path.write_text("categories: [unclosed\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_graph_set(path)


def test_wrong_section_shape_names_section() -> None:
    with pytest.raises(ValueError, match="detailedEdges"):
        graph_set_from_dict({"detailedEdges": "not-a-list"})


def test_unknown_level_raises(graph_set) -> None:
    with pytest.raises(ValueError):
        graph_set.level("medium")


@pytest.mark.parametrize(
    ("field", "value", "where"),
    [
        ("subItems", 5, "detailedNodes[0].subItems"),
        ("previewItems", 3, "detailedNodes[0].previewItems"),
        ("order", float("inf"), "detailedNodes[0].order"),
        ("order", float("nan"), "detailedNodes[0].order"),
    ],
)
def test_malformed_node_fields_raise_value_error(field: str, value: object, where: str) -> None:
    data = {"detailedNodes": [{"id": "a", "type": "leaf", field: value}]}
    with pytest.raises(ValueError) as exc:
        graph_set_from_dict(data)
    assert where in str(exc.value)


def test_malformed_saved_subgraph_lists_raise_value_error() -> None:
    data = {"subgraphs": [{"entityId": "x", "includeNodes": "a"}]}
    with pytest.raises(ValueError, match=r"subgraphs\[0\]\.includeNodes"):
        graph_set_from_dict(data)


def test_infinite_order_in_yaml_raises_value_error(tmp_path: Path) -> None:
    path = tmp_path / "inf.yaml"
    path.write_text("detailedNodes:\n  - id: a\n    order: .inf\n", encoding="utf-8")
    with pytest.raises(ValueError, match="order"):
        load_graph_set(path)


def test_numeric_ids_are_read_as_strings() -> None:
    graphs = graph_set_from_dict(
        {
            "detailedNodes": [{"id": 1, "type": "leaf"}, {"id": "b", "type": "leaf"}],
            "detailedEdges": [{"source": 1, "target": "b"}],
        }
    )
    assert [n.id for n in graphs.detailed.nodes] == ["1", "b"]
    assert [(e.source, e.target) for e in graphs.detailed.edges] == [("1", "b")]


def test_nodes_without_usable_id_are_counted(caplog) -> None:
    caplog.set_level(logging.WARNING, logger="causegraph.graph.model")
    graphs = graph_set_from_dict(
        {"detailedNodes": [{"id": "a", "type": "leaf"}, {"id": ["not", "an", "id"]}, {"label": "no id"}]}
    )
    assert [n.id for n in graphs.detailed.nodes] == ["a"]
    assert graphs.detailed.dropped_nodes == 2
    assert "without a usable id" in caplog.text
