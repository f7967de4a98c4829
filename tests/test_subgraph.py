import pytest

from causegraph.query.subgraph import SubgraphExtractor, neighborhood


@pytest.fixture
def extractor(graph_set) -> SubgraphExtractor:
    return SubgraphExtractor(graph_set)


def test_zero_hops_is_just_the_focal_node(extractor) -> None:
    sub = extractor.extract("ai-takeover", 0)
    assert sub.node_ids == {"ai-takeover"}
    assert sub.edges == ()


def test_traversal_ignores_edge_direction(extractor) -> None:
    sub = extractor.extract("compute", 1)
    # regulation -> compute (incoming) and compute -> ai-takeover (outgoing)
    assert sub.node_ids == {"compute", "regulation", "ai-takeover"}
    assert sub.distances["regulation"] == 1


def test_one_hop_neighborhood_and_induced_edges(extractor) -> None:
    sub = extractor.extract("ai-takeover", 1)
    assert sub.node_ids == {"ai-takeover", "compute", "algorithms", "racing-dynamics", "existential-catastrophe"}
    for edge in sub.edges:
        assert edge.source in sub.node_ids and edge.target in sub.node_ids
    # coordination is two hops away, so its edge is excluded.
    assert all(e.source != "coordination" for e in sub.edges)


def test_neighborhoods_grow_monotonically(extractor) -> None:
    previous = extractor.extract("regulation", 0)
    for hops in range(1, 6):
        current = extractor.extract("regulation", hops)
        assert previous.node_ids <= current.node_ids
        assert previous.edge_ids <= current.edge_ids
        previous = current
    assert len(previous.node_ids) == 7


def test_unknown_focal_returns_empty(extractor) -> None:
    sub = extractor.extract("nope", 3)
    assert sub.is_empty()
    assert sub.edges == ()


def test_negative_hops_clamp_to_zero(extractor) -> None:
    assert extractor.extract("compute", -2).node_ids == {"compute"}


def test_overview_level_uses_category_nodes(extractor) -> None:
    sub = extractor.extract("ai-takeover", 1, level="overview")
    assert sub.node_ids == {"ai-takeover", "ai-capabilities", "governance", "existential-catastrophe"}
    assert sub.level == "overview"


def test_extraction_is_deterministic(graph_set, detailed) -> None:
    a = neighborhood(detailed, "ai-takeover", 2)
    b = SubgraphExtractor(graph_set).extract("ai-takeover", 2)
    assert a == b


def test_saved_neighborhood_applies_include_and_exclude(extractor) -> None:
    sub = extractor.extract_saved("ai-takeover")
    assert sub is not None
    assert sub.title == "AI takeover pathways"
    assert sub.node_ids == {"ai-takeover", "compute", "algorithms", "racing-dynamics", "coordination"}
    assert "cat-2-ai-takeover-existential-catastrophe" not in sub.edge_ids
    assert "det-3-coordination-racing-dynamics" in sub.edge_ids


def test_unknown_saved_neighborhood(extractor) -> None:
    assert extractor.extract_saved("missing") is None
