"""Command line tool for inspecting how a book is ingested."""

import logging
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from flowreader.core.session import load_document
from flowreader.errors import FlowReaderError
from flowreader.models.epub import Document, LoadWarning

app = typer.Typer(
    name="flowreader",
    help="Inspect EPUB books as plain-text chapters.",
    add_completion=False,
)

console = Console()

BookPath = Annotated[
    Path,
    typer.Argument(
        help="Path to the EPUB file",
        exists=True,
        file_okay=True,
        dir_okay=False,
        resolve_path=True,
    ),
]


@app.callback()
def main(
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show debug logging"),
    ] = False,
) -> None:
    """Inspect EPUB books as plain-text chapters."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _load(book_path: Path) -> tuple[Document, tuple[LoadWarning, ...]]:
    try:
        return load_document(book_path)
    except FlowReaderError as e:
        console.print(f"[red]Error: {e.user_message}[/]")
        console.print(f"[dim]{e.message}[/]")
        raise typer.Exit(1)


@app.command()
def info(book_path: BookPath) -> None:
    """Display book metadata and the chapter list."""
    document, skipped = _load(book_path)
    metadata = document.metadata

    info_lines = [
        f"[bold]{metadata.title}[/]",
        "",
        f"[dim]Author:[/] {metadata.creator or 'Unknown'}",
        f"[dim]Language:[/] {metadata.language}",
        f"[dim]Publisher:[/] {metadata.publisher or 'Unknown'}",
        f"[dim]Identifier:[/] {metadata.identifier}",
        f"[dim]Chapters:[/] {len(document.chapters)}",
    ]
    if metadata.date:
        info_lines.append(f"[dim]Date:[/] {metadata.date}")

    if skipped:
        info_lines.append("")
        for warning in skipped:
            info_lines.append(f"[yellow]Skipped {warning.href}: {warning.message}[/]")

    console.print()
    console.print(Panel("\n".join(info_lines), title="Book Information", border_style="green"))

    if document.is_empty:
        console.print("[yellow]No readable chapters.[/]")
        return

    console.print()
    table = Table(title="Chapters", show_header=True, header_style="bold cyan")
    table.add_column("#", style="dim", width=4)
    table.add_column("Title", style="white")
    table.add_column("Source", style="dim")
    table.add_column("Words", justify="right", style="green")

    for chapter in document.chapters:
        table.add_row(
            str(chapter.index + 1),
            chapter.title,
            chapter.href,
            f"{len(chapter.content.split()):,}",
        )

    console.print(table)
    console.print()


@app.command()
def read(
    book_path: BookPath,
    chapter: Annotated[
        Optional[int],
        typer.Option("--chapter", "-c", help="Chapter number (1-based, default: first)", min=1),
    ] = None,
) -> None:
    """Print the plain text of one chapter."""
    document, _ = _load(book_path)

    if document.is_empty:
        console.print("[yellow]No readable chapters.[/]")
        raise typer.Exit(1)

    number = chapter or 1
    if number > len(document.chapters):
        console.print(
            f"[red]Chapter {number} does not exist (book has {len(document.chapters)}).[/]"
        )
        raise typer.Exit(1)

    selected = document.chapters[number - 1]
    console.print(Panel(selected.title, border_style="blue"))
    console.print(selected.content, markup=False, highlight=False)


if __name__ == "__main__":
    app()
