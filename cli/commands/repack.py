"""
Repack command - move patches between plugin, hardware and backup containers.
"""

import logging
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console

from cli.display.tables import display_issues
from jdconv.errors import FormatError, JDConvError
from jdconv.formats.detect import StreamKind, detect_kind
from jdconv.formats.svd import SVDReader, SVDWriter
from jdconv.formats.svd.reader import parse_chunk_table
from jdconv.formats.svd.structures import TAG_PATA
from jdconv.formats.svz import SVZReader, SVZWriter
from jdconv.records import (
    backup_from_vst,
    empty_vst_patch,
    hardware_from_vst,
    is_vst_model,
    merge_into_backup,
    parse_backup_position,
    vst_from_backup,
    vst_from_hardware,
)

logger = logging.getLogger(__name__)

console = Console()
app = typer.Typer()


def read_vst_records(data: bytes, kind: StreamKind) -> List[bytes]:
    """Read a container's records and frame them as plugin records."""
    if kind is StreamKind.SVD_BACKUP:
        return [vst_from_backup(record) for record in SVDReader().parse_bytes(data)]

    reader = SVZReader()
    records = reader.parse_bytes(data)
    display_issues(reader.issues)

    if kind is StreamKind.SVZ_HARDWARE:
        return [vst_from_hardware(record) for record in records]

    vst_records = []
    for index, record in enumerate(records):
        if is_vst_model(record):
            vst_records.append(record)
        else:
            logger.warning(
                "Patch %d is not a JD-800 patch, replacing it with an empty patch", index + 1
            )
            vst_records.append(empty_vst_patch())
    return vst_records


def read_backup_records(path: Path) -> List[bytes]:
    """Patch records already in a backup; empty if it has no patch chunk yet."""
    if not path.exists():
        return []

    with open(path, "rb") as f:
        data = f.read()

    _, entries = parse_chunk_table(data)
    if not any(entry.tag == TAG_PATA for entry in entries):
        return []
    return SVDReader().parse_bytes(data)


@app.command()
def repack(
    source: Path = typer.Argument(..., help="Source container (.bin, .svz or .svd)"),
    output: Path = typer.Argument(..., help="Output container (.bin, .svz or .svd)"),
    template: Optional[Path] = typer.Option(
        None, "--template", "-t", help="JD-08 backup to write into (defaults to the output)"
    ),
    position: Optional[str] = typer.Option(
        None, "--position", "-p", help="Backup bank (A-D) or patch (e.g. B42) to start at"
    ),
) -> None:
    """
    Repack JD-800 plugin, ZC1 and JD-08 patches into another container.

    The output format follows the output suffix:

    - .bin  JD-800 plugin bank
    - .svz  ZC1 / JD-08 patch file
    - .svd  JD-08 backup; the patches are written into an existing backup

    Examples:

        jdconv repack JD800.bin JD08.svz

        jdconv repack JD08.svz JD08Backup.svd --position B

        jdconv repack JD800.bin new.svd -t JD08Backup.svd -p C11
    """
    if not source.exists():
        console.print(f"[red]Error: Source file not found: {source}[/red]")
        raise typer.Exit(1)

    suffix = output.suffix.lower()
    if suffix not in (".bin", ".svz", ".svd"):
        console.print(f"[red]Error: Unknown output type: {suffix}[/red]")
        console.print("Supported formats: .bin (plugin), .svz (hardware), .svd (backup)")
        raise typer.Exit(1)

    offset = 0
    if position is not None:
        if suffix != ".svd":
            console.print("[red]Error: --position only applies to .svd output[/red]")
            raise typer.Exit(1)
        try:
            offset = parse_backup_position(position)
        except ValueError as e:
            console.print(f"[red]Error: {e}[/red]")
            raise typer.Exit(1)

    with open(source, "rb") as f:
        data = f.read()

    try:
        kind = detect_kind(data)
        if not kind.is_container:
            raise FormatError(
                f"{source} is a {kind.value} dump; repack reads .bin, .svz and .svd containers"
            )

        records = read_vst_records(data, kind)

        if suffix == ".bin":
            SVZWriter.write_plugin(records, output)
        elif suffix == ".svz":
            SVZWriter.write_hardware([hardware_from_vst(record) for record in records], output)
        else:
            template_path = template or output
            existing = read_backup_records(template_path)
            merged = merge_into_backup(
                [backup_from_vst(record) for record in records], existing, offset
            )
            writer = SVDWriter()
            writer.write(template_path, merged, output)
            display_issues(writer.issues)

    except JDConvError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(e.exit_code)

    console.print(f"[green]Repacked:[/green] {source} -> {output}")
    console.print(f"[dim]{len(records)} patches[/dim]")


if __name__ == "__main__":
    app()
