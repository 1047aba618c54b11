"""
List command - show what a dump or container holds.
"""

from pathlib import Path

import typer
from rich.console import Console

from cli.display.tables import display_container_info, display_issues, display_memory_info
from jdconv.errors import JDConvError
from jdconv.formats.detect import StreamKind, detect_kind
from jdconv.formats.svd import SVDReader
from jdconv.formats.svz import SVZReader
from jdconv.memory import DeviceMemoryImage

console = Console()
app = typer.Typer()

# Offset of the patch name inside each container's records
NAME_OFFSETS = {
    StreamKind.SVZ_PLUGIN: 16,
    StreamKind.SVZ_HARDWARE: 0,
    StreamKind.SVD_BACKUP: 16,
}


@app.command()
def list_file(
    source: Path = typer.Argument(..., help="Dump or container (.syx, .mid, .bin, .svz, .svd)"),
) -> None:
    """
    List the contents of a SysEx dump, MIDI file or container.

    For SysEx and MIDI files shows the detected model, the memory areas
    present, stored and temporary patches and special setups. For
    containers shows every patch name.

    Examples:

        jdconv list JD800.syx

        jdconv list JD08Backup.svd
    """
    if not source.exists():
        console.print(f"[red]Error: File not found: {source}[/red]")
        raise typer.Exit(1)

    with open(source, "rb") as f:
        data = f.read()

    try:
        kind = detect_kind(data)

        if kind.is_container:
            if kind is StreamKind.SVD_BACKUP:
                records = SVDReader().parse_bytes(data)
                issues = []
            else:
                reader = SVZReader()
                records = reader.parse_bytes(data)
                issues = reader.issues
            display_container_info(source, kind, records, NAME_OFFSETS[kind])
        else:
            image = DeviceMemoryImage()
            image.ingest_bytes(data)
            issues = image.issues
            display_memory_info(image, source, kind)

    except JDConvError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(e.exit_code)

    display_issues(issues)


if __name__ == "__main__":
    app()
