"""
JDConv - Patch archive tools for the Roland JD-800 family.

A CLI for inspecting, merging and repacking JD-800 / JD-990 SysEx dumps
and JD-800 plugin, ZC1 and JD-08 containers.
"""

import logging

import typer
from rich.console import Console
from rich.logging import RichHandler

from cli.commands.list import list_file
from cli.commands.merge import merge
from cli.commands.repack import repack
from jdconv import __version__

console = Console()

# Main app
app = typer.Typer(
    name="jdconv",
    help="Inspect, merge and repack Roland JD-800 / JD-990 patch archives.",
    add_completion=False,
    rich_markup_mode="rich",
)

# Add commands directly
app.command(name="list")(list_file)
app.command(name="merge")(merge)
app.command(name="repack")(repack)


def configure_logging(verbose: bool = False) -> None:
    """Route library logging through rich; DEBUG with --verbose, else WARNING."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


@app.command()
def version() -> None:
    """Show version information."""
    console.print(f"[bold]jdconv[/bold] version {__version__}")
    console.print("[dim]Patch archive tools for the Roland JD-800 family[/dim]")


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
    version_flag: bool = typer.Option(False, "--version", "-V", help="Show version"),
) -> None:
    """
    JDConv - Inspect, merge and repack JD-800 family patch archives.

    Reads:

    - [cyan]JD-800 / JD-990[/cyan] SysEx dumps (.syx, .mid)
    - [cyan]JD-800 plugin[/cyan] banks (.bin)
    - [cyan]ZC1 / JD-08[/cyan] patch files (.svz)
    - [cyan]JD-08[/cyan] backups (.svd)

    [bold]Commands:[/bold]

        jdconv list dump.syx                      # Show what a file holds
        jdconv merge live1.mid live2.mid out.syx  # Bank up temporary patches
        jdconv repack JD800.bin JD08.svz          # Move patches between containers

    Use --help with any command for more details.
    """
    configure_logging(verbose)

    if version_flag:
        version()
        raise typer.Exit()

    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())


def run() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    run()
