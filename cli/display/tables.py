"""
Rich table displays for dump and container contents.
"""

from pathlib import Path
from typing import Dict, List, Optional, Sequence

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from jdconv.errors import Issue, IssueKind
from jdconv.formats.detect import StreamKind
from jdconv.memory import DeviceMemoryImage
from jdconv.records import is_vst_model, patch_index_label, patch_name

console = Console()

CONTAINER_TITLES = {
    StreamKind.SVZ_PLUGIN: "JD-800 Plugin Bank",
    StreamKind.SVZ_HARDWARE: "ZC1 / JD-08 Patches",
    StreamKind.SVD_BACKUP: "JD-08 Backup",
}


def _patch_table(title: str, patches: Dict[int, bytes], count: int, is_card: bool = False) -> Table:
    table = Table(title=title, box=box.ROUNDED, show_header=True, header_style="bold magenta")
    table.add_column("#", style="dim", width=4)
    table.add_column("Name", style="cyan", width=18)

    for index, patch in sorted(patches.items()):
        table.add_row(patch_index_label(index, count, is_card), patch_name(patch))
    return table


def display_memory_info(image: DeviceMemoryImage, filepath: Path, kind: StreamKind) -> None:
    """Display what a SysEx / MIDI dump wrote into device memory."""
    dialect = image.dialect

    header_content = f"""[bold]File:[/bold] {filepath}
[bold]Container:[/bold] {"Standard MIDI File" if kind is StreamKind.MIDI_FILE else "SysEx"}
[bold]Format:[/bold] {dialect.name if dialect else "N/A"}
[bold]Messages:[/bold] {image.messages_ingested}"""

    console.print(
        Panel(
            header_content,
            title="[bold blue]SysEx Dump Info[/bold blue]",
            border_style="blue",
            expand=False,
        )
    )

    if dialect is None:
        console.print("[yellow]No JD-800 or JD-990 data found[/yellow]")
        return

    for name, address in image.present_regions():
        console.print(f"[green]{name} data present[/green] [dim](0x{address:06X})[/dim]")

    display = image.display_text()
    if display is not None:
        console.print("[bold]Display data:[/bold]")
        console.print(display[0], markup=False)
        console.print(display[1], markup=False)

    internal = image.internal_patches()
    if internal:
        console.print(_patch_table("Internal Patches", internal, len(internal)))

    card = image.card_patches()
    if card:
        console.print(_patch_table("Card Patches", card, len(card), is_card=True))

    if image.temporary_patches:
        table = Table(
            title="Temporary Patches",
            box=box.ROUNDED,
            show_header=True,
            header_style="bold magenta",
        )
        table.add_column("#", style="dim", width=4)
        table.add_column("Name", style="cyan", width=18)
        for index, patch in enumerate(image.temporary_patches, 1):
            table.add_row(str(index), patch_name(patch))
        console.print(table)

    for kind_name in ("internal", "temporary", "card"):
        if image.special_setup(kind_name) is not None:
            console.print(f"[green]Special setup ({kind_name}) present[/green]")


def display_container_info(
    filepath: Path, kind: StreamKind, records: Sequence[bytes], name_offset: int
) -> None:
    """Display the patch names held by a plugin, hardware or backup container."""
    console.print(
        Panel(
            f"""[bold]File:[/bold] {filepath}
[bold]Format:[/bold] {CONTAINER_TITLES[kind]}
[bold]Patches:[/bold] {len(records)}""",
            title="[bold blue]Container Info[/bold blue]",
            border_style="blue",
            expand=False,
        )
    )

    table = Table(title="Patches", box=box.ROUNDED, show_header=True, header_style="bold magenta")
    table.add_column("#", style="dim", width=4)
    table.add_column("Name", style="cyan", width=18)
    table.add_column("Model", width=8)

    for index, record in enumerate(records):
        model = ""
        if kind is StreamKind.SVZ_PLUGIN and not is_vst_model(record):
            model = "[red]other[/red]"
        table.add_row(
            patch_index_label(index, len(records)), patch_name(record, name_offset), model
        )

    console.print(table)


def display_issues(issues: List[Issue], title: Optional[str] = None) -> None:
    """Summarise recoverable problems found while reading."""
    if not issues:
        return

    table = Table(
        title=title or f"Issues ({len(issues)})",
        box=box.SIMPLE,
        show_header=True,
        header_style="bold yellow",
    )
    table.add_column("Kind", width=18)
    table.add_column("Offset", style="dim", width=10)
    table.add_column("Message")

    for issue in issues:
        style = "dim" if issue.kind is IssueKind.IGNORED_MESSAGE else "yellow"
        offset = f"0x{issue.offset:06X}" if issue.offset is not None else "-"
        table.add_row(f"[{style}]{issue.kind.name}[/{style}]", offset, issue.message)

    console.print(table)
