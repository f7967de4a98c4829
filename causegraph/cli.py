"""CLI entrypoint for causegraph."""

import logging
import sys
from pathlib import Path
from typing import Callable

import click

from . import __version__
from .config import LAYOUT_ALGORITHMS
from .models import DETAIL_LEVELS, EDGE_DENSITIES, TIER_ORDER

DATA_FILENAMES = ("master-graph.yaml", "master-graph.yml")


def _auto_detect_data(start: Path) -> Path | None:
    """Find a master-graph YAML file by walking up from `start` (also checks ./data)."""
    cur = start.resolve()
    for p in (cur, *cur.parents):
        for base in (p, p / "data"):
            for name in DATA_FILENAMES:
                candidate = base / name
                if candidate.is_file():
                    return candidate
    return None


def _run(fn: Callable[..., int], *args, **kwargs) -> None:
    """Run a command, turning data/config load errors into CLI errors."""
    try:
        exit_code = fn(*args, **kwargs)
    except (FileNotFoundError, ValueError) as e:
        raise click.ClickException(str(e)) from e
    sys.exit(exit_code)


level_option = click.option(
    "--level",
    type=click.Choice(list(DETAIL_LEVELS)),
    default="detailed",
    show_default=True,
    help="Detail level: coarse category nodes or the full granular graph",
)
out_option = click.option(
    "--out", type=click.Path(dir_okay=False, path_type=Path), default=None, help="Write output to a file"
)
config_option = click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Layout config TOML ([layout], [type_labels], [subgroups.<id>])",
)
strategy_option = click.option(
    "--strategy",
    type=click.Choice(list(LAYOUT_ALGORITHMS)),
    default=None,
    help="Layout strategy (defaults to the config's layout_algorithm)",
)


@click.group()
@click.version_option(__version__, prog_name="causegraph")
@click.option(
    "--data",
    "-d",
    type=click.Path(exists=False, dir_okay=False, path_type=Path),
    default=None,
    help="Path to the master-graph YAML (defaults to auto-detected master-graph.yaml)",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, data: Path | None, verbose: bool) -> None:
    """causegraph - Lay out and explore tiered cause-effect graphs."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    ctx.ensure_object(dict)
    if data is None:
        data = _auto_detect_data(Path.cwd())
        if data is None:
            raise click.ClickException("Graph data not found. Pass --data /path/to/master-graph.yaml.")

    if not data.exists():
        raise click.BadParameter(f"File '{data}' does not exist.", param_hint="--data / -d")

    ctx.obj["data"] = data.resolve()


@cli.command()
@level_option
@strategy_option
@click.option(
    "--density",
    type=click.Choice(list(EDGE_DENSITIES)),
    default=None,
    help="Edge density (defaults to the config's default_edge_density)",
)
@config_option
@click.option("--hide-category", "hide_categories", multiple=True, metavar="ID", help="Hide a category (repeatable)")
@click.option("--hide-subgroup", "hide_subgroups", multiple=True, metavar="ID", help="Hide a subgroup (repeatable)")
@click.option(
    "--hide-kind",
    "hide_kinds",
    multiple=True,
    type=click.Choice(list(TIER_ORDER)),
    help="Hide a tier (repeatable)",
)
@click.option(
    "--hide-subcategory", "hide_subcategories", multiple=True, metavar="ID", help="Hide a subcategory (repeatable)"
)
@click.option(
    "--format",
    "fmt",
    type=click.Choice(["json", "svg", "html", "dot", "yaml", "rich"]),
    default="json",
    show_default=True,
    help="Output format",
)
@out_option
@click.pass_context
def layout(
    ctx: click.Context,
    level: str,
    strategy: str | None,
    density: str | None,
    config_path: Path | None,
    hide_categories: tuple[str, ...],
    hide_subgroups: tuple[str, ...],
    hide_kinds: tuple[str, ...],
    hide_subcategories: tuple[str, ...],
    fmt: str,
    out: Path | None,
) -> None:
    """Filter and lay out the graph.

    Examples:

        causegraph -d data/master-graph.yaml layout --density low --format html --out graph.html

        causegraph layout --hide-category misuse-risks --format rich
    """
    from .commands.graph_cmd import run_layout

    _run(
        run_layout,
        ctx.obj["data"],
        level=level,
        strategy=strategy,
        density=density,
        config_path=config_path,
        hide_categories=hide_categories,
        hide_subgroups=hide_subgroups,
        hide_kinds=hide_kinds,
        hide_subcategories=hide_subcategories,
        fmt=fmt,
        out=out,
    )


@cli.command()
@click.argument("focal", required=False)
@click.option("--hops", type=int, default=2, show_default=True, help="Maximum hop count from the focal node")
@level_option
@click.option("--spec", "spec_entity", default=None, metavar="ENTITY", help="Use a saved neighborhood instead of FOCAL")
@strategy_option
@config_option
@click.option(
    "--format",
    "fmt",
    type=click.Choice(["rich", "json", "svg", "html", "dot", "yaml"]),
    default="rich",
    show_default=True,
    help="Output format",
)
@out_option
@click.pass_context
def neighborhood(
    ctx: click.Context,
    focal: str | None,
    hops: int,
    level: str,
    spec_entity: str | None,
    strategy: str | None,
    config_path: Path | None,
    fmt: str,
    out: Path | None,
) -> None:
    """Lay out the neighborhood around FOCAL."""
    from .commands.graph_cmd import run_neighborhood

    _run(
        run_neighborhood,
        ctx.obj["data"],
        focal,
        hops=hops,
        level=level,
        spec_entity=spec_entity,
        strategy=strategy,
        config_path=config_path,
        fmt=fmt,
        out=out,
    )


@cli.command()
@level_option
@click.option(
    "--format",
    "fmt",
    type=click.Choice(["rich", "md", "json"]),
    default="rich",
    show_default=True,
    help="Output format",
)
@out_option
@click.pass_context
def categories(ctx: click.Context, level: str, fmt: str, out: Path | None) -> None:
    """List filter categories and their node counts."""
    from .commands.graph_cmd import run_categories

    _run(run_categories, ctx.obj["data"], level=level, fmt=fmt, out=out)


@cli.command()
@level_option
@click.option("--top", type=int, default=10, show_default=True, help="How many nodes to show in top lists")
@click.option(
    "--format",
    "fmt",
    type=click.Choice(["rich", "md", "json"]),
    default="rich",
    show_default=True,
    help="Output format",
)
@out_option
@click.pass_context
def stats(ctx: click.Context, level: str, top: int, fmt: str, out: Path | None) -> None:
    """Summarize graph structure: degrees, orphans, clusters."""
    from .commands.graph_cmd import run_stats

    _run(run_stats, ctx.obj["data"], level=level, top=top, fmt=fmt, out=out)


def main() -> None:
    """Main entrypoint."""
    cli()


if __name__ == "__main__":
    main()
