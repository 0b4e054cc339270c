"""CLI entry point for helptree.

Commands:
    helptree parse PROGRAM            # Crawl PROGRAM's help pages and store the tree
    helptree compare PROGRAM          # Diff two stored versions of PROGRAM
    helptree keywords INPUT_JSON      # List commands, subcommands and flags
    helptree summary INPUT_JSON       # Keyword counts
    helptree config show|set          # Inspect or change ~/.helptree/config.toml
"""

import json
import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from helptree import __version__
from helptree.click_group import HelpTreeGroup
from helptree.config_manager import ConfigError, ConfigManager, HelpTreeConfig
from helptree.crawl_config import get_crawl_config
from helptree.crawler import HelpTreeCrawler
from helptree.diff_engine import Change, DiffError, diff_files
from helptree.keywords import extract_keywords, summarize
from helptree.line_classifier import FLAG_SPLIT_LEGACY
from helptree.projection_diff import diff_typescript_directories
from helptree.storage import ParsedStore, StorageError, read_tree, write_tree

logger = logging.getLogger(__name__)

_CHANGE_STYLES = {"+": "green", "-": "red", "~": "yellow"}


@click.group(cls=HelpTreeGroup, invoke_without_command=True)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.option("--config", "config_path", type=str, help="Config file path")
@click.version_option(version=__version__, prog_name="helptree")
@click.pass_context
def main(ctx: click.Context, verbose: bool, config_path: str | None) -> None:
    """Reverse-engineer a CLI's command tree from its --help output.

    \b
    EXAMPLES:
        # Crawl kubectl and store the tree under out/kubectl/<version>/
        $ helptree parse kubectl

        # Store under an explicit tag
        $ helptree parse ./bin/app --tag before-refactor

        # Compare the two most recent stored versions
        $ helptree compare kubectl

    \b
    CONFIGURATION:
        Config file: ~/.helptree/config.toml
        Settings: output_dir, max_depth, probe_timeout
        Change with: helptree config set max_depth=3
    """
    logging.basicConfig(level=logging.DEBUG if verbose else logging.INFO, format="%(message)s")

    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())
        ctx.exit(0)


def _load_config(ctx: click.Context) -> HelpTreeConfig:
    try:
        return ConfigManager.load_config(ctx.obj.get("config_path"))
    except ConfigError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


def _store(config: HelpTreeConfig, output_dir: str | None) -> ParsedStore:
    return ParsedStore(Path(output_dir) if output_dir else Path(config.output_dir))


@main.command(name="parse")
@click.argument("program", type=str)
@click.argument("subcommand", required=False, type=str)
@click.option("--tag", "-t", help="Store under this tag instead of the program version")
@click.option(
    "--output", "-o", type=click.Path(path_type=Path), help="Write the tree to this file"
)
@click.option("--output-dir", help="Root directory for stored trees")
@click.option("--max-depth", type=click.IntRange(min=0), help="Deepest level to probe")
@click.option("--timeout", type=float, help="Per-probe timeout in seconds")
@click.option("--infer-flags", is_flag=True, help="Add required/default hints to flags")
@click.option("--legacy-flags", is_flag=True, help="Assign flag names in encounter order")
@click.pass_context
def parse_command(
    ctx: click.Context,
    program: str,
    subcommand: str | None,
    tag: str | None,
    output: Path | None,
    output_dir: str | None,
    max_depth: int | None,
    timeout: float | None,
    infer_flags: bool,
    legacy_flags: bool,
) -> None:
    """Crawl PROGRAM's help pages into a CLI structure tree.

    \b
    PROGRAM is the program name or path.
    SUBCOMMAND optionally starts the crawl below the root.

    \b
    Examples:
      $ helptree parse git
      $ helptree parse docker network --max-depth 2
      $ helptree parse ./app -o app.json --infer-flags
    """
    config = _load_config(ctx)
    try:
        crawl_config = get_crawl_config().with_overrides(
            max_depth=max_depth if max_depth is not None else config.max_depth,
            probe_timeout=timeout if timeout is not None else config.probe_timeout,
            flag_split_mode=FLAG_SPLIT_LEGACY if legacy_flags else None,
            infer_flag_details=True if infer_flags else None,
        )
    except ValueError as e:
        click.echo(f"Error: Invalid crawl settings: {e}", err=True)
        sys.exit(1)

    logger.debug(f"Crawl settings: {crawl_config}")
    tree = HelpTreeCrawler(config=crawl_config).crawl(program, subcommand)

    try:
        if output:
            path = write_tree(tree, output)
        else:
            path = _store(config, output_dir).save(tree, tag)
    except StorageError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    command_count = sum(1 for _ in tree.iter_nodes()) - 1
    click.echo(f"CLI structure saved: {path}")
    click.echo(f"Version: {tree.version}  Commands: {command_count}")


@main.command(name="compare")
@click.argument("program", type=str)
@click.option("--from", "from_tag", help="First version/tag (default: latest)")
@click.option("--to", "to_tag", help="Second version/tag (default: second latest)")
@click.option(
    "--format",
    "compare_format",
    type=click.Choice(["json", "ts-dir"]),
    default="json",
    show_default=True,
    help="Which stored projection to compare",
)
@click.option("--output-dir", help="Root directory for stored trees")
@click.pass_context
def compare_command(
    ctx: click.Context,
    program: str,
    from_tag: str | None,
    to_tag: str | None,
    compare_format: str,
    output_dir: str | None,
) -> None:
    """Compare two stored versions of PROGRAM.

    \b
    Examples:
      $ helptree compare kubectl
      $ helptree compare app --from v1.2.0 --to v1.3.0
    """
    store = _store(_load_config(ctx), output_dir)
    try:
        from_version, to_version = store.resolve_tags(program, from_tag, to_tag)
        if compare_format == "ts-dir":
            from_path = store.projection_dir(program, from_version)
            to_path = store.projection_dir(program, to_version)
        else:
            from_path = store.path_for(program, from_version)
            to_path = store.path_for(program, to_version)
    except StorageError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    for version, path in ((from_version, from_path), (to_version, to_path)):
        if not path.exists():
            click.echo(f"Error: Version '{version}' not found at: {path}", err=True)
            sys.exit(1)

    logger.debug(f"Comparing {from_path} -> {to_path}")
    click.echo(f"Comparing {program} versions: {from_version} -> {to_version}\n")

    try:
        if compare_format == "ts-dir":
            changes = diff_typescript_directories(from_path, to_path)
        else:
            changes = diff_files(from_path, to_path)
    except DiffError as e:
        click.echo(f"Error comparing structures: {e}", err=True)
        if compare_format == "json":
            _raw_compare(from_path, to_path, from_version, to_version)
        sys.exit(1)

    _print_changes(changes, from_version, to_version)


def _raw_compare(from_path: Path, to_path: Path, from_version: str, to_version: str) -> None:
    click.echo("Falling back to simple file comparison...\n")
    try:
        identical = from_path.read_bytes() == to_path.read_bytes()
    except OSError as e:
        click.echo(f"Error: {e}", err=True)
        return
    if identical:
        click.echo(f"No differences found between {from_version} and {to_version}")
    else:
        click.echo(f"Files differ between {from_version} and {to_version}")
        click.echo(f"  diff {from_path} {to_path}")


def _print_changes(changes: list[Change], from_version: str, to_version: str) -> None:
    console = Console()
    if not changes:
        console.print(f"No differences found between {from_version} and {to_version}")
        return

    console.print(f"Changes found between {from_version} and {to_version}:\n")
    for change in changes:
        text = change.format()
        console.print(
            text, style=_CHANGE_STYLES.get(text[:1]), markup=False, highlight=False, soft_wrap=True
        )
    console.print(f"\nSummary: {len(changes)} changes detected")


@main.command(name="keywords")
@click.argument("input_json", type=click.Path(path_type=Path))
def keywords_command(input_json: Path) -> None:
    """Print the unique keywords of a stored tree as JSON."""
    try:
        tree = read_tree(input_json)
    except StorageError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    click.echo(json.dumps(extract_keywords(tree).to_dict(), indent=2))


@main.command(name="summary")
@click.argument("input_json", type=click.Path(path_type=Path))
def summary_command(input_json: Path) -> None:
    """Print keyword counts for a stored tree."""
    try:
        tree = read_tree(input_json)
    except StorageError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    summary = summarize(tree)
    table = Table(title=f"{tree.name} ({tree.version or 'Unknown'})")
    table.add_column("Keyword", style="cyan")
    table.add_column("Unique", justify="right")
    table.add_column("Total", justify="right")
    table.add_row("Commands", str(summary.unique_command_count), str(summary.total_command_count))
    table.add_row(
        "Subcommands", str(summary.unique_subcommand_count), str(summary.total_subcommand_count)
    )
    table.add_row(
        "Short flags", str(summary.unique_short_flag_count), str(summary.total_short_flag_count)
    )
    table.add_row(
        "Long flags", str(summary.unique_long_flag_count), str(summary.total_long_flag_count)
    )
    table.add_row("All keywords", str(summary.unique_keywords_count), "")
    Console().print(table)


@main.group(name="config")
def config_group() -> None:
    """Show or change the helptree configuration file.

    \b
    Examples:
      $ helptree config show
      $ helptree config set max_depth=3 probe_timeout=10
      $ helptree config set probe_timeout=
    """
    pass


@config_group.command(name="show")
@click.pass_context
def config_show(ctx: click.Context) -> None:
    """Print the current settings."""
    config_path = ctx.obj.get("config_path")
    try:
        path = ConfigManager.get_config_path(config_path)
        config = ConfigManager.load_config(config_path)
    except ConfigError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    click.echo(f"Config file: {path}")
    click.echo(json.dumps(config.to_dict(), indent=2))


@config_group.command(name="set")
@click.argument("settings", nargs=-1, required=True)
@click.pass_context
def config_set(ctx: click.Context, settings: tuple[str, ...]) -> None:
    """Set one or more KEY=VALUE settings.

    An empty VALUE restores the default. Keys: output_dir, max_depth,
    probe_timeout.
    """
    try:
        updates = dict(ConfigManager.parse_setting(setting) for setting in settings)
        ConfigManager.update_config(ctx.obj.get("config_path"), **updates)
    except ConfigError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    click.echo("Configuration updated")
    for key, value in updates.items():
        click.echo(f"  {key}: {value}")


if __name__ == "__main__":
    main()
