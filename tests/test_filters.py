import pytest

from causegraph.models import EDGE_DENSITIES, Edge, GraphFilters
from causegraph.query.filters import FilterEngine


@pytest.fixture
def engine(detailed) -> FilterEngine:
    return FilterEngine(detailed)


def test_all_visible_returns_model_unchanged(engine, detailed) -> None:
    result = engine.apply(engine.initial_filters("all"))
    assert result.nodes == detailed.nodes
    assert result.edges == detailed.edges

    # No toggles at all means everything is visible too.
    assert engine.apply(GraphFilters()).nodes == detailed.nodes


def test_hide_all_then_show_all_round_trips(engine, detailed) -> None:
    hidden = engine.hide_all(engine.initial_filters())
    assert engine.apply(hidden).nodes == ()
    assert engine.apply(hidden).edges == ()

    shown = engine.show_all(hidden)
    result = engine.apply(shown)
    assert result.nodes == detailed.nodes
    assert result.edges == detailed.edges


def test_bulk_toggles_derive_from_model(engine) -> None:
    filters = engine.hide_all()
    assert set(filters.categories) == {"ai-capabilities", "governance", "ai-takeover", "existential-catastrophe"}
    assert set(filters.subgroups) >= {"ai", "society"}
    assert set(filters.kinds) == {"cause", "intermediate", "effect"}
    assert set(filters.subcategories) == {
        "compute-scaling",
        "algorithmic-progress",
        "compute-governance",
        "international",
    }
    assert not any(filters.categories.values())


def test_density_levels_form_monotone_chain(engine) -> None:
    visible = [engine.apply(engine.initial_filters(d)).edge_ids for d in EDGE_DENSITIES]
    for smaller, larger in zip(visible, visible[1:]):
        assert smaller <= larger
    assert visible[-1] == frozenset(e.id for e in engine.model.edges)


def test_density_keeps_most_important_edges(engine) -> None:
    minimal = engine.apply(engine.initial_filters("minimal")).edge_ids
    low = engine.apply(engine.initial_filters("low")).edge_ids
    medium = engine.apply(engine.initial_filters("medium")).edge_ids

    # 6 edges: ceil(0.6) = 1, ceil(1.5) = 2, ceil(3.0) = 3
    assert minimal == {"det-0-compute-ai-takeover"}
    assert low == minimal | {"cat-2-ai-takeover-existential-catastrophe"}
    assert medium == low | {"det-1-algorithms-ai-takeover"}


def test_disabling_a_category_leaves_other_edges_untouched(engine, detailed) -> None:
    for density in EDGE_DENSITIES:
        before = engine.initial_filters(density)
        after = before.toggled("categories", "ai-capabilities")
        assert after.categories["ai-capabilities"] is False

        was = engine.apply(before)
        now = engine.apply(after)

        hidden_nodes = {"compute", "algorithms"}
        assert now.node_ids == was.node_ids - hidden_nodes
        for edge in detailed.edges:
            if edge.source in hidden_nodes or edge.target in hidden_nodes:
                assert edge.id not in now.edge_ids
            else:
                assert (edge.id in now.edge_ids) == (edge.id in was.edge_ids)


def test_subgroup_kind_and_subcategory_toggles(engine) -> None:
    base = engine.initial_filters()

    society_off = engine.apply(base.toggled("subgroups", "society", False)).node_ids
    assert "regulation" not in society_off
    assert "racing-dynamics" not in society_off
    assert "compute" in society_off

    no_effects = engine.apply(base.toggled("kinds", "effect", False)).node_ids
    assert "existential-catastrophe" not in no_effects
    assert "ai-takeover" in no_effects

    no_intl = engine.apply(base.toggled("subcategories", "international", False)).node_ids
    assert no_intl == engine.apply(base).node_ids - {"coordination"}


def test_edge_unknown_to_model_only_visible_at_all(engine) -> None:
    stray = Edge(id="stray", source="compute", target="ai-takeover", strength="strong")
    node_ids = {"compute", "ai-takeover"}
    assert engine.is_edge_visible(stray, engine.initial_filters("all"), node_ids)
    assert not engine.is_edge_visible(stray, engine.initial_filters("high"), node_ids)


def test_apply_on_a_subset_uses_global_ranks(engine, detailed) -> None:
    nodes = [detailed.node("regulation"), detailed.node("compute")]
    edges = [e for e in detailed.edges if e.source == "regulation"]
    # regulation -> compute is weak; it is outside the top half of all edges.
    assert engine.apply(engine.initial_filters("medium"), nodes, edges).edges == ()
    assert len(engine.apply(engine.initial_filters("high"), nodes, edges).edges) == 1


def test_list_categories(engine) -> None:
    cats = engine.list_categories()
    assert [(c.id, c.kind, c.node_count) for c in cats] == [
        ("ai-capabilities", "cause", 2),
        ("governance", "cause", 3),
        ("ai-takeover", "intermediate", 1),
        ("existential-catastrophe", "effect", 1),
    ]
