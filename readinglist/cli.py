import logging
from pathlib import Path
from typing import Any, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from .classifier import Segment, section_title
from .config import load_config, update_config, get_config_path
from .coordinator import EmptyState, Presenter, SegmentedListCoordinator
from .db.models import Book, ReadState
from .decorators import handle_library_errors
from .store import BookStore, IndexPath, ResultSet

console = Console()

logging.basicConfig(
    level=logging.INFO,
    format="%(message)s",
    datefmt="[%X]",
    handlers=[RichHandler(rich_tracebacks=True)]
)
logger = logging.getLogger(__name__)

app = typer.Typer(help="Track books you want to read, are reading, and have finished.")

LibraryOption = typer.Option(
    None, "--library", "-L",
    help="Path to the library (defaults to the configured library)",
)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose mode"),
):
    """
    readinglist - a reading list with to-read and finished segments.
    """
    config = load_config()
    console.no_color = not config.cli.color
    if verbose or config.cli.verbose:
        logging.getLogger().setLevel(logging.DEBUG)


class ConsolePresenter(Presenter):
    """Renders the book list to a Rich console."""

    def __init__(self, console: Console, limit: Optional[int] = None):
        self.console = console
        self.limit = limit
        self.offset = 0
        self.selected: Optional[IndexPath] = None
        self.detail: Optional[Book] = None

    def render(self, results: ResultSet, segment: Segment, empty_state: EmptyState) -> None:
        if empty_state is not EmptyState.NOT_EMPTY:
            self.console.print(f"[bold]{empty_state.title(segment)}[/bold]")
            if empty_state is EmptyState.SEGMENT_EMPTY:
                self.console.print("[dim]Add a book with 'readinglist add'.[/dim]")
            else:
                self.console.print(f"[dim]{empty_state.description()}[/dim]")
            return

        remaining = self.limit
        for section in results.sections:
            books = section.books if remaining is None else section.books[:remaining]
            if not books:
                break
            table = Table(title=section_title(segment, section.state) or segment.label)
            table.add_column("ID", style="dim", width=6)
            table.add_column("Title", style="cyan")
            table.add_column("Author", style="green")
            table.add_column("ISBN", style="dim")
            for book in books:
                table.add_row(str(book.id), book.title, book.author_display or "", book.isbn13 or "")
            self.console.print(table)
            if remaining is not None:
                remaining -= len(books)

        if self.limit is not None and len(results) > self.limit:
            self.console.print(f"[dim]Showing {self.limit} of {len(results)} books[/dim]")

    def scroll_offset(self) -> Any:
        return self.offset

    def set_scroll_offset(self, offset: Any) -> None:
        self.offset = offset

    def select_row(self, index_path: IndexPath) -> None:
        self.selected = index_path

    def show_detail(self, book: Book) -> None:
        self.detail = book

    def clear_detail(self) -> None:
        self.detail = None

    def displayed_book_id(self) -> Optional[int]:
        return self.detail.id if self.detail else None


def _open_store(library_path: Optional[Path]) -> BookStore:
    if library_path is None:
        default = load_config().library.default_path
        if not default:
            raise ValueError(
                "No library given. Pass --library or run 'readinglist config --default-path'"
            )
        library_path = Path(default)

    library_path = Path(library_path).expanduser()
    if not (library_path / 'library.db').exists():
        raise FileNotFoundError(f"{library_path} (use 'readinglist init' to create it)")
    return BookStore.open(library_path)


def _parse_state(value: str) -> ReadState:
    key = value.strip().upper().replace('-', '_')
    try:
        return ReadState[key]
    except KeyError:
        raise ValueError(f"Unknown state '{value}'. Use to-read, reading or finished") from None


@app.command()
@handle_library_errors
def init(
    library_path: Path = typer.Argument(..., help="Directory for the new library"),
    set_default: bool = typer.Option(False, "--default", help="Make this the default library"),
):
    """Create a new, empty library."""
    library_path = library_path.expanduser()
    if (library_path / 'library.db').exists():
        console.print(f"[yellow]Library already exists at {library_path}[/yellow]")
        raise typer.Exit(code=1)

    BookStore.open(library_path).close()
    console.print(f"[green]Library created at {library_path}[/green]")

    if set_default:
        update_config(library_default_path=str(library_path.resolve()))
        console.print("[dim]Set as default library[/dim]")


@app.command()
@handle_library_errors
def add(
    title: str = typer.Argument(..., help="Book title"),
    author: Optional[str] = typer.Option(None, "--author", "-a", help="'Last, First' or 'First Last'"),
    isbn: Optional[str] = typer.Option(None, "--isbn", help="ISBN-13"),
    state: str = typer.Option("to-read", "--state", "-s", help="to-read, reading or finished"),
    library_path: Optional[Path] = LibraryOption,
):
    """Add a book to the reading list."""
    store = _open_store(library_path)
    try:
        book = store.add_book(title, read_state=_parse_state(state), author=author, isbn13=isbn)
        console.print(f"[green]Added[/green] [{book.id}] {book.title} ({book.read_state.description})")
    finally:
        store.close()


@app.command(name="list")
@handle_library_errors
def list_books(
    segment: Optional[str] = typer.Option(None, "--segment", "-g", help="to-read or finished"),
    search: Optional[str] = typer.Option(None, "--search", "-s", help="Filter titles containing text"),
    limit: Optional[int] = typer.Option(None, "--limit", "-n", min=1, help="Maximum books to show"),
    library_path: Optional[Path] = LibraryOption,
):
    """List books in a segment, optionally filtered by title."""
    config = load_config()
    chosen = Segment.from_name(segment or config.cli.default_segment)

    store = _open_store(library_path)
    try:
        presenter = ConsolePresenter(console, limit=limit if limit is not None else config.cli.page_size)
        coordinator = SegmentedListCoordinator(store, presenter, initial_segment=chosen)
        if search:
            # Set text first so activation issues a single filtered query
            coordinator.set_search_text(search)
            coordinator.activate_search()
        if coordinator.results is None:
            coordinator.start()
        coordinator.stop()
    finally:
        store.close()


def _move(book_id: int, state: ReadState, library_path: Optional[Path]):
    store = _open_store(library_path)
    try:
        book = store.set_read_state(book_id, state)
        console.print(f"[{book.id}] {book.title} → [bold]{state.description}[/bold]")
    finally:
        store.close()


@app.command()
@handle_library_errors
def start(
    book_id: int = typer.Argument(..., help="Book ID"),
    library_path: Optional[Path] = LibraryOption,
):
    """Mark a book as currently being read."""
    _move(book_id, ReadState.READING, library_path)


@app.command()
@handle_library_errors
def finish(
    book_id: int = typer.Argument(..., help="Book ID"),
    library_path: Optional[Path] = LibraryOption,
):
    """Mark a book as finished."""
    _move(book_id, ReadState.FINISHED, library_path)


@app.command()
@handle_library_errors
def delete(
    book_id: int = typer.Argument(..., help="Book ID"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
    library_path: Optional[Path] = LibraryOption,
):
    """Delete a book."""
    store = _open_store(library_path)
    try:
        book = store.get_book(book_id)
        if book is None:
            console.print(f"[red]Book {book_id} not found[/red]")
            raise typer.Exit(code=1)

        if not yes and not typer.confirm(f"Delete '{book.title}'?"):
            console.print("[yellow]Cancelled[/yellow]")
            raise typer.Exit(code=0)

        coordinator = SegmentedListCoordinator(store, ConsolePresenter(Console(quiet=True)))
        coordinator.delete_book(book_id)
        console.print(f"[green]Deleted[/green] {book.title}")
    finally:
        store.close()


@app.command()
@handle_library_errors
def show(
    book_id: int = typer.Argument(..., help="Book ID"),
    library_path: Optional[Path] = LibraryOption,
):
    """Locate a book in its segment and show its details."""
    store = _open_store(library_path)
    try:
        presenter = ConsolePresenter(Console(quiet=True))
        coordinator = SegmentedListCoordinator(store, presenter)
        coordinator.start()
        if not coordinator.restore(book_id):
            console.print(f"[red]Book {book_id} not found[/red]")
            raise typer.Exit(code=1)
        coordinator.stop()

        book = presenter.detail
        table = Table(show_header=False, box=None)
        table.add_column("Field", style="bold")
        table.add_column("Value")
        table.add_row("Title", book.title)
        table.add_row("Author", book.author.display_last_comma_first if book.author else "")
        table.add_row("State", book.read_state.description)
        table.add_row("ISBN-13", book.isbn13 or "")
        table.add_row("Segment", coordinator.current_segment.label)
        if presenter.selected is not None:
            table.add_row("Position", f"section {presenter.selected.section + 1}, row {presenter.selected.row + 1}")
        if book.started_at:
            table.add_row("Started", book.started_at.strftime("%Y-%m-%d"))
        if book.finished_at:
            table.add_row("Finished", book.finished_at.strftime("%Y-%m-%d"))
        console.print(table)
    finally:
        store.close()


@app.command()
@handle_library_errors
def config(
    show_config: bool = typer.Option(False, "--show", help="Show current configuration"),
    default_path: Optional[str] = typer.Option(None, "--default-path", help="Default library path"),
    page_size: Optional[int] = typer.Option(None, "--page-size", help="Books shown by 'list'"),
    default_segment: Optional[str] = typer.Option(None, "--default-segment", help="to-read or finished"),
    verbose: Optional[bool] = typer.Option(None, "--verbose/--quiet", help="Verbose logging by default"),
    color: Optional[bool] = typer.Option(None, "--color/--no-color", help="Coloured output"),
):
    """Show or update configuration."""
    if any(v is not None for v in (default_path, page_size, default_segment, verbose, color)):
        update_config(
            cli_verbose=verbose,
            cli_color=color,
            cli_page_size=page_size,
            cli_default_segment=default_segment,
            library_default_path=default_path,
        )
        console.print(f"[green]Configuration saved to {get_config_path()}[/green]")
        if not show_config:
            return

    current = load_config()
    table = Table(title="Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value")
    table.add_row("library.default_path", str(current.library.default_path))
    table.add_row("cli.page_size", str(current.cli.page_size))
    table.add_row("cli.default_segment", current.cli.default_segment)
    table.add_row("cli.verbose", str(current.cli.verbose))
    table.add_row("cli.color", str(current.cli.color))
    console.print(table)
    console.print(f"[dim]{get_config_path()}[/dim]")


if __name__ == "__main__":
    app()
