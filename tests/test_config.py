import logging
from pathlib import Path

import pytest

from causegraph.config import LayoutConfig, SubgroupStyle, config_from_dict, load_config


def test_defaults() -> None:
    config = LayoutConfig()
    assert config.layer_gap == 30
    assert config.spacing_for("cause") == 40
    assert config.spacing_for("intermediate") == 60
    assert config.spacing_for("effect") == 80
    assert config.layout_algorithm == "barycenter-tiered"
    assert config.default_edge_density == "medium"
    assert config.barycenter_passes == 4
    assert config.type_label("effect") == "Effects"


def test_normalized_clamps_to_minimums(caplog) -> None:
    caplog.set_level(logging.DEBUG, logger="causegraph.config")
    config = LayoutConfig(
        layer_gap=-5,
        node_gap=-1,
        subgroup_gap=-10,
        node_width=0,
        barycenter_passes=0,
        node_spacing={"effect": -20},
    ).normalized()

    assert config.layer_gap == 0
    assert config.node_gap == 0
    assert config.subgroup_gap == 0
    assert config.node_width == 40
    assert config.barycenter_passes == 1
    assert config.spacing_for("effect") == 0
    assert config.spacing_for("cause") == 40
    assert "Clamped layer_gap" in caplog.text


def test_unknown_algorithm_and_density_fall_back(caplog) -> None:
    config = LayoutConfig(layout_algorithm="spring", default_edge_density="dense").normalized()
    assert config.layout_algorithm == "barycenter-tiered"
    assert config.default_edge_density == "medium"
    assert "Unknown layout algorithm" in caplog.text


def test_config_from_dict_keeps_subgroup_order() -> None:
    config = config_from_dict(
        {
            "layout": {"layer_gap": 50, "layout_algorithm": "external-layered", "node_spacing": {"cause": 10}},
            "type_labels": {"cause": "Factors"},
            "subgroups": {
                "society": {"label": "Societal factors", "color": "#fef3c7"},
                "ai": {"label": "AI factors"},
            },
        }
    )
    assert config.layer_gap == 50
    assert config.layout_algorithm == "external-layered"
    assert config.spacing_for("cause") == 10
    assert config.spacing_for("effect") == 80
    assert config.type_label("cause") == "Factors"
    assert list(config.subgroup_registry) == ["society", "ai"]
    assert config.subgroup_registry["society"] == SubgroupStyle("Societal factors", "#fef3c7")
    assert config.subgroup_registry["ai"].color == "#e2e8f0"


def test_load_config_from_toml(tmp_path: Path) -> None:
    path = tmp_path / "layout.toml"
    path.write_text(
        "\n".join(
            [
                "[layout]",
                "layer_gap = 45",
                'default_edge_density = "low"',
                "hide_group_containers = true",
                "",
                "[subgroups.ai]",
                'label = "AI"',
                "",
            ]
        ),
        encoding="utf-8",
    )
    config = load_config(path)
    assert config.layer_gap == 45
    assert config.default_edge_density == "low"
    assert config.hide_group_containers is True
    assert list(config.subgroup_registry) == ["ai"]


def test_load_config_errors(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "missing.toml")

    bad = tmp_path / "bad.toml"
    bad.write_text("[layout\nlayer_gap = 1\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_config(bad)

    wrong_type = tmp_path / "wrong.toml"
    wrong_type.write_text('[layout]\nlayer_gap = "wide"\n', encoding="utf-8")
    with pytest.raises(ValueError, match="layer_gap"):
        load_config(wrong_type)
