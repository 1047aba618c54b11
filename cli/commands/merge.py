"""
Merge command - collect temporary patches from live session dumps into banks.
"""

from pathlib import Path
from typing import List

import typer
from rich.console import Console

from cli.display.tables import display_issues
from jdconv.dialects import PATCHES_PER_BANK
from jdconv.errors import JDConvError
from jdconv.formats.sysex import SysExWriter
from jdconv.formats.sysex.message import DEFAULT_DEVICE_ID
from jdconv.memory import DeviceMemoryImage
from jdconv.records import patch_index_label, patch_name

console = Console()
app = typer.Typer()


def bank_output_path(output: Path, bank: int, num_banks: int) -> Path:
    """
    Output file for a bank; numbered when more than one bank is written.

    "out.syx" becomes "out.1.syx", "out.2.syx", ...; names without a
    .syx / .mid suffix get ".1", ".2", ... appended.
    """
    if num_banks <= 1:
        return output
    if output.suffix.lower() in (".syx", ".mid"):
        return output.with_suffix(f".{bank + 1}{output.suffix}")
    return output.with_name(f"{output.name}.{bank + 1}")


@app.command()
def merge(
    sources: List[Path] = typer.Argument(..., help="SysEx or MIDI dumps, merged in order"),
    output: Path = typer.Argument(..., help="Output .syx or .mid file"),
    device_id: int = typer.Option(
        DEFAULT_DEVICE_ID, "--device-id", "-d", help="SysEx device id of the output"
    ),
) -> None:
    """
    Merge temporary patches of JD-800 or JD-990 dumps into patch banks.

    Every patch the device broadcast to its edit buffer is kept in order,
    across all input files. The patches are written as internal patch
    dumps, 64 per bank; more than one bank gives numbered output files.

    Examples:

        jdconv merge session1.syx session2.mid merged.syx
    """
    image = DeviceMemoryImage()

    try:
        for source in sources:
            if not source.exists():
                console.print(f"[red]Error: File not found: {source}[/red]")
                raise typer.Exit(1)
            stored = image.ingest_file(source)
            console.print(f"[dim]{source}: {stored} messages[/dim]")
    except JDConvError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(e.exit_code)

    display_issues(image.issues)

    dialect = image.dialect
    if dialect is None:
        console.print("[yellow]Nothing to merge, no JD-800 or JD-990 data found[/yellow]")
        raise typer.Exit(1)

    patches = image.temporary_patches
    console.print(f"Merging {len(patches)} {dialect.name} patches...")

    num_banks = (len(patches) + PATCHES_PER_BANK - 1) // PATCHES_PER_BANK
    for bank in range(num_banks):
        writer = SysExWriter(device_id)
        bank_patches = patches[bank * PATCHES_PER_BANK : (bank + 1) * PATCHES_PER_BANK]

        for dest, patch in enumerate(bank_patches):
            console.print(
                f"Adding {patch_index_label(dest, PATCHES_PER_BANK)}: {patch_name(patch)}",
                markup=False,
            )
            writer.add(dialect.patch_address(dest), dialect, patch)

        path = bank_output_path(output, bank, num_banks)
        try:
            writer.write(path)
        except JDConvError as e:
            console.print(f"[red]Error: {e}[/red]")
            raise typer.Exit(e.exit_code)
        console.print(f"[green]Written:[/green] {path}")


if __name__ == "__main__":
    app()
