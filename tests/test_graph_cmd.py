import json
from pathlib import Path

from click.testing import CliRunner

from causegraph.cli import cli
from causegraph.commands.graph_cmd import run_categories, run_layout, run_neighborhood, run_stats


def test_layout_json_respects_filters(data_path: Path, tmp_path: Path) -> None:
    out = tmp_path / "layout.json"
    code = run_layout(data_path, density="all", hide_categories=["governance"], fmt="json", out=out)
    assert code == 0

    payload = json.loads(out.read_text(encoding="utf-8"))
    ids = {p["id"] for p in payload["positionedNodes"]}
    assert ids == {"compute", "algorithms", "ai-takeover", "existential-catastrophe"}
    assert all(e["source"] in ids and e["target"] in ids for e in payload["styledEdges"])


def test_layout_html_with_config(data_path: Path, tmp_path: Path) -> None:
    config = tmp_path / "layout.toml"
    config.write_text('[type_labels]\ncause = "Root factors"\n', encoding="utf-8")
    out = tmp_path / "graph.html"

    code = run_layout(data_path, strategy="external-layered", config_path=config, fmt="html", out=out)
    assert code == 0
    page = out.read_text(encoding="utf-8")
    assert page.startswith("<!doctype html>")
    assert "Root factors" in page


def test_neighborhood_json(data_path: Path, tmp_path: Path) -> None:
    out = tmp_path / "hood.json"
    code = run_neighborhood(data_path, "compute", hops=1, fmt="json", out=out)
    assert code == 0
    payload = json.loads(out.read_text(encoding="utf-8"))
    assert {p["id"] for p in payload["positionedNodes"]} == {"compute", "regulation", "ai-takeover"}


def test_neighborhood_saved_spec_and_unknown_focal(data_path: Path, tmp_path: Path) -> None:
    out = tmp_path / "saved.yaml"
    assert run_neighborhood(data_path, None, spec_entity="ai-takeover", fmt="yaml", out=out) == 0
    assert "coordination" in out.read_text(encoding="utf-8")

    assert run_neighborhood(data_path, "nope", fmt="json") == 1
    assert run_neighborhood(data_path, None, spec_entity="missing") == 1


def test_categories_and_stats_json(data_path: Path, tmp_path: Path) -> None:
    cats_out = tmp_path / "cats.json"
    assert run_categories(data_path, fmt="json", out=cats_out) == 0
    cats = json.loads(cats_out.read_text(encoding="utf-8"))
    assert [c["id"] for c in cats["categories"]][:2] == ["ai-capabilities", "governance"]

    stats_out = tmp_path / "stats.json"
    assert run_stats(data_path, fmt="json", out=stats_out) == 0
    stats = json.loads(stats_out.read_text(encoding="utf-8"))
    assert stats["node_count"] == 7
    assert stats["dropped_edges"] == 1
    assert stats["cluster_count"] >= 1
    assert stats["most_connected"][0] == {"name": "ai-takeover", "degree": 4}


def test_stats_markdown(data_path: Path, tmp_path: Path) -> None:
    out = tmp_path / "stats.md"
    assert run_stats(data_path, level="overview", fmt="md", out=out) == 0
    text = out.read_text(encoding="utf-8")
    assert "### Top in-degree" in text
    assert "`ai-takeover`" in text


def test_cli_layout_writes_file(data_path: Path, tmp_path: Path) -> None:
    out = tmp_path / "cli.json"
    result = CliRunner().invoke(cli, ["--data", str(data_path), "layout", "--density", "low", "--out", str(out)])
    assert result.exit_code == 0, result.output
    assert json.loads(out.read_text(encoding="utf-8"))["strategy"] == "barycenter-tiered"


def test_cli_reports_bad_data(tmp_path: Path) -> None:
    bad = tmp_path / "bad.yaml"
    bad.write_text("detailedNodes: 3\n", encoding="utf-8")
    result = CliRunner().invoke(cli, ["--data", str(bad), "stats"])
    assert result.exit_code != 0
    assert "detailedNodes" in result.output


def test_cli_categories_rich_writes_out_file(data_path: Path, tmp_path: Path) -> None:
    out = tmp_path / "cats.txt"
    result = CliRunner().invoke(cli, ["--data", str(data_path), "categories", "--out", str(out)])
    assert result.exit_code == 0, result.output
    text = out.read_text(encoding="utf-8")
    assert "ai-capabilities" in text
    assert "governance" in text


def test_cli_reports_malformed_node_field(tmp_path: Path) -> None:
    bad = tmp_path / "bad-items.yaml"
    bad.write_text("detailedNodes:\n  - id: a\n    subItems: 5\n", encoding="utf-8")
    result = CliRunner().invoke(cli, ["--data", str(bad), "stats"])
    assert result.exit_code != 0
    assert "detailedNodes[0].subItems" in result.output
