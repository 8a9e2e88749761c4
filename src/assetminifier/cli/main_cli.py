"""
Top-level CLI: load a rules file, then minify the archives of an input directory.
"""

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from assetminifier.core.config import get_settings
from assetminifier.core.errors import ConfigurationError, MinifierError
from assetminifier.pipeline.minifier import AssetsMinifier
from assetminifier.pipeline.runner import prepare_run

RULES_HELP = """
Path to the file that defines the minifying rules, one per line:

  OutFilename <name with extension>  (required) name of the minified archive

  InputFile <md5 hash> <filename>  adds a source archive; a hash of 0 skips the check.
  With no InputFile at all, every archive in the input folder is used.

  EntryWhitelist <wildcard>  entries matching this are included unless blacklisted

  EntryBlacklist <wildcard>  entries matching this are always excluded
"""

console = Console()

main_app = typer.Typer(
    help="Merge game asset archives into one minified archive driven by a rules file.",
    add_completion=False,
)


def _print_rules(minifier: AssetsMinifier, rules_path: Path) -> None:
    summary = minifier.rules.summary()
    table = Table(title=f"Rules loaded from {rules_path}")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Minified output", str(summary["output_name"]))
    table.add_row("Input file filters", str(summary["input_filters"]))
    table.add_row("Whitelist filters", str(summary["whitelist_filters"]))
    table.add_row("Blacklist filters", str(summary["blacklist_filters"]))
    console.print(table)


def _print_plan(minifier: AssetsMinifier) -> None:
    planned = minifier.plan()
    table = Table(title="Entries that would be staged")
    table.add_column("Archive", style="cyan")
    table.add_column("Entries", style="magenta")
    table.add_column("Sample", style="yellow")
    total = 0
    for archive, entries in planned.items():
        total += len(entries)
        sample = ", ".join(entries[:3]) + (" ..." if len(entries) > 3 else "")
        table.add_row(Path(archive).name, str(len(entries)), sample)
    console.print(table)
    console.print(f"[bold]{total}[/bold] entries from {len(planned)} archives would be packed "
                  f"into {minifier.output_file}", soft_wrap=True)


@main_app.command(no_args_is_help=True)
def minify(
    rules: Path = typer.Argument(..., help=RULES_HELP),
    input_dir: Path = typer.Argument(..., help="Folder containing the source zip archives"),
    output_dir: Optional[Path] = typer.Argument(
        None,
        help="Folder for the minified archive and temporary files (defaults to the input folder)",
    ),
    recursive: bool = typer.Option(False, "--recursive", "-r", help="Also look for archives in subfolders"),
    dry_run: bool = typer.Option(False, "--dry-run", "-n", help="List what would be packed without writing anything"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    """
    Minify the archives found in INPUT_DIR according to RULES.
    """
    settings = get_settings()
    logging.basicConfig(
        level=logging.DEBUG if verbose else settings.log_level.upper(),
        format="%(levelname)s %(name)s - %(message)s",
    )
    if recursive:
        settings = settings.model_copy(update={"recursive_scan": True})

    try:
        minifier = prepare_run(rules, input_dir, output_dir, settings)
    except ConfigurationError as e:
        console.print(f"[bold red]Error:[/bold red] {e}", soft_wrap=True)
        raise typer.Exit(code=1)

    _print_rules(minifier, rules)

    if dry_run:
        try:
            _print_plan(minifier)
        except (MinifierError, OSError) as e:
            console.print(f"[bold red]Error:[/bold red] {e}", soft_wrap=True)
            raise typer.Exit(code=1)
        return

    result = minifier.minify()
    if not result.succeeded:
        console.print(f"[bold red]Minify failed:[/bold red] {result.error}", soft_wrap=True)
        raise typer.Exit(code=1)

    console.print(
        f"[bold green]Done:[/bold green] {len(result.archives)} archives, "
        f"{result.extracted} files extracted, {result.written} entries written to {result.output_file}",
        soft_wrap=True,
    )


def main():
    main_app()


if __name__ == "__main__":
    main()
