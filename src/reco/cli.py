"""Command-line interface for reco.

Uses Typer for commands and Rich for output. Every command opens the
library store for its own duration and closes it on exit.
"""

from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path
from typing import Annotated, Iterator, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from reco import __version__
from reco.aggregates import AggregateManager
from reco.config import RecoConfig, load_config
from reco.errors import RecoError, format_error_for_display
from reco.export import ExportFormat, export_narrative, narrative_filename, render_narrative
from reco.logging import LogLevel, configure_logging, enable_file_logging, set_verbosity
from reco.models.project import Project
from reco.models.transcript import Transcript
from reco.search import TranscriptSearcher
from reco.storage import LibraryStore
from reco.subtitles.parser import parse_subtitle_path
from reco.timecode import format_duration, format_milliseconds

app = typer.Typer(
    name="reco",
    help="Search subtitle transcripts and recompose dialogue into narratives.",
    add_completion=False,
    rich_markup_mode="rich",
)
project_app = typer.Typer(help="Manage projects.", no_args_is_help=True)
aggregate_app = typer.Typer(help="Manage a project's narrative aggregates.", no_args_is_help=True)
app.add_typer(project_app, name="project")
app.add_typer(aggregate_app, name="aggregate")

console = Console(emoji=False)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"reco version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    data_dir: Annotated[
        Optional[Path],
        typer.Option("--data-dir", help="Directory holding transcripts and projects"),
    ] = None,
    verbose: Annotated[
        bool, typer.Option("--verbose", "-v", help="Show progress messages")
    ] = False,
    debug: Annotated[bool, typer.Option("--debug", help="Show debug logging")] = False,
    log_file: Annotated[
        Optional[Path], typer.Option("--log-file", help="Also write debug logs to this file")
    ] = None,
    version: Annotated[
        Optional[bool],
        typer.Option(
            "--version",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit",
        ),
    ] = None,
) -> None:
    """reco - subtitle search and narrative recomposition."""
    config = load_config()
    if data_dir is not None:
        config.data_dir = data_dir
    configure_logging(config.log_config())
    if debug:
        set_verbosity(LogLevel.DEBUG)
    elif verbose:
        set_verbosity(LogLevel.VERBOSE)
    if log_file is not None:
        enable_file_logging(log_file)
    ctx.obj = config


@contextmanager
def open_store(ctx: typer.Context) -> Iterator[LibraryStore]:
    """Open the configured store, turning reco errors into exit code 1."""
    config: RecoConfig = ctx.obj
    try:
        with LibraryStore(config.data_dir) as store:
            yield store
    except RecoError as e:
        console.print(f"[red]Error:[/red] {escape(format_error_for_display(e))}")
        raise typer.Exit(1) from None


def _print_transcripts(transcripts: list[Transcript]) -> None:
    table = Table(title="Transcripts")
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("File", style="dim")
    table.add_column("Segments", justify="right")
    table.add_column("Duration", justify="right")
    table.add_column("Uploaded", style="dim")
    for t in transcripts:
        table.add_row(
            t.id,
            escape(t.name),
            escape(t.filename),
            str(t.segment_count),
            format_duration(t.total_duration),
            t.uploaded_at.strftime("%Y-%m-%d %H:%M"),
        )
    console.print(table)


def _print_project(project: Project, names: dict[str, str]) -> None:
    console.print(f"[bold]{escape(project.name)}[/bold] [dim]({project.id})[/dim]")
    if project.description:
        console.print(escape(project.description))
    console.print(f"Updated: {project.updated_at.strftime('%Y-%m-%d %H:%M')}")

    console.print(f"\n[bold]Transcripts[/bold] ({len(project.transcript_ids)})")
    for transcript_id in project.transcript_ids:
        name = names.get(transcript_id, "Unknown")
        console.print(f"  {transcript_id}  {escape(name)}")

    console.print(f"\n[bold]Narrative[/bold] ({len(project.aggregates)} aggregates)")
    for aggregate in project.aggregates:
        name = names.get(aggregate.transcript_id, "Unknown")
        console.print(
            f"  {aggregate.order + 1}. [cyan]{aggregate.id}[/cyan] "
            f"[dim]{escape(name)} "
            f"{format_milliseconds(aggregate.start_time)}-{format_milliseconds(aggregate.end_time)} "
            f"#{aggregate.start_segment_index}-{aggregate.end_segment_index}[/dim]"
        )
        console.print(f"     {escape(aggregate.text)}")


# Transcripts


@app.command("import")
def import_transcript(
    ctx: typer.Context,
    file: Annotated[Path, typer.Argument(help="Subtitle file (.srt or .vtt)", exists=True, dir_okay=False)],
    name: Annotated[
        Optional[str], typer.Option("--name", "-n", help="Display name (default: file name)")
    ] = None,
) -> None:
    """Parse a subtitle file and add it to the library."""
    with open_store(ctx) as store:
        segments = parse_subtitle_path(file)
        display_name = (name if name is not None else file.stem).strip()
        if not display_name:
            console.print("[red]Error:[/red] Transcript name is required.")
            raise typer.Exit(1)
        transcript = store.create_transcript(
            Transcript(name=display_name, filename=file.name, segments=segments)
        )
    console.print(
        f"[green]Imported[/green] '{escape(transcript.name)}' "
        f"with {transcript.segment_count} segments [dim]({transcript.id})[/dim]"
    )


@app.command("transcripts")
def list_transcripts(ctx: typer.Context) -> None:
    """List transcripts in the library."""
    with open_store(ctx) as store:
        transcripts = store.get_transcripts()
    if not transcripts:
        console.print("[yellow]No transcripts found.[/yellow]")
        console.print("Import one with: reco import <file>")
        return
    _print_transcripts(transcripts)


@app.command("show")
def show_transcript(
    ctx: typer.Context,
    transcript_id: Annotated[str, typer.Argument(help="Transcript ID")],
    limit: Annotated[
        Optional[int], typer.Option("--limit", "-l", help="Show at most this many segments")
    ] = None,
) -> None:
    """Print a transcript's segments."""
    with open_store(ctx) as store:
        transcript = store.get_transcript_by_id(transcript_id)
    console.print(
        f"[bold]{escape(transcript.name)}[/bold] [dim]{escape(transcript.filename)}, "
        f"{transcript.segment_count} segments, {format_duration(transcript.total_duration)}[/dim]"
    )
    segments = transcript.segments if limit is None else transcript.segments[:limit]
    for segment in segments:
        console.print(
            f"[cyan]{segment.index:>5}[/cyan] [dim]{format_milliseconds(segment.start_time)}[/dim] "
            f"{escape(segment.text)}"
        )


@app.command("rm-transcript")
def remove_transcript(
    ctx: typer.Context,
    transcript_id: Annotated[str, typer.Argument(help="Transcript ID")],
) -> None:
    """Delete a transcript. Aggregates that reference it are kept."""
    with open_store(ctx) as store:
        store.delete_transcript(transcript_id)
    console.print(f"[green]Deleted[/green] transcript {transcript_id}")


@app.command("search")
def search(
    ctx: typer.Context,
    query: Annotated[str, typer.Argument(help="Text to find (case-insensitive)")],
    transcript: Annotated[
        Optional[list[str]],
        typer.Option("--transcript", "-t", help="Restrict to this transcript ID (repeatable)"),
    ] = None,
    project: Annotated[
        Optional[str], typer.Option("--project", "-p", help="Search a project's transcripts")
    ] = None,
) -> None:
    """Find segments containing a phrase, with surrounding context."""
    config: RecoConfig = ctx.obj
    with open_store(ctx) as store:
        searcher = TranscriptSearcher(store, context_radius=config.context_radius)
        if project:
            results = searcher.search_project(project, query)
        else:
            results = searcher.search(query, transcript_ids=transcript)

    if not results.results:
        console.print(f"[yellow]No matches for '{escape(query)}'.[/yellow]")
        return

    console.print(
        f"[bold]{results.total_count} matches[/bold] in {results.transcript_count} transcripts\n"
    )
    for result in results:
        console.print(f"[bold cyan]{escape(result.transcript_name)}[/bold cyan] [dim]{result.transcript_id}[/dim]")
        for segment in result.context:
            marker = ">" if segment.id == result.segment.id else " "
            style = "bold" if marker == ">" else "dim"
            console.print(
                f" {marker} [{style}]{segment.index:>5} {format_milliseconds(segment.start_time)} "
                f"{escape(segment.text)}[/{style}]"
            )
        console.print()


# Projects


@project_app.command("create")
def project_create(
    ctx: typer.Context,
    name: Annotated[str, typer.Argument(help="Project name")],
    description: Annotated[
        str, typer.Option("--description", "-d", help="Project description")
    ] = "",
) -> None:
    """Create a project."""
    if not name.strip():
        console.print("[red]Error:[/red] Project name is required.")
        raise typer.Exit(1)
    with open_store(ctx) as store:
        project = store.create_project(Project(name=name.strip(), description=description))
    console.print(f"[green]Created[/green] project '{escape(project.name)}' [dim]({project.id})[/dim]")


@project_app.command("list")
def project_list(ctx: typer.Context) -> None:
    """List projects, most recently updated first."""
    with open_store(ctx) as store:
        projects = store.get_projects()
    if not projects:
        console.print("[yellow]No projects found.[/yellow]")
        console.print("Create one with: reco project create <name>")
        return

    table = Table(title="Projects")
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("Transcripts", justify="right")
    table.add_column("Aggregates", justify="right")
    table.add_column("Updated", style="dim")
    for p in projects:
        table.add_row(
            p.id,
            escape(p.name),
            str(len(p.transcript_ids)),
            str(len(p.aggregates)),
            p.updated_at.strftime("%Y-%m-%d %H:%M"),
        )
    console.print(table)


@project_app.command("show")
def project_show(
    ctx: typer.Context,
    project_id: Annotated[str, typer.Argument(help="Project ID")],
) -> None:
    """Show a project's transcripts and narrative."""
    with open_store(ctx) as store:
        project = store.get_project_by_id(project_id)
        names = store.transcript_names()
    _print_project(project, names)


@project_app.command("add-transcript")
def project_add_transcript(
    ctx: typer.Context,
    project_id: Annotated[str, typer.Argument(help="Project ID")],
    transcript_id: Annotated[str, typer.Argument(help="Transcript ID")],
) -> None:
    """Load a transcript into a project for searching."""
    with open_store(ctx) as store:
        store.get_transcript_by_id(transcript_id)
        with store.mutate_project(project_id) as project:
            added = project.add_transcript(transcript_id)
    if added:
        console.print(f"[green]Added[/green] transcript {transcript_id} to project {project_id}")
    else:
        console.print(f"[yellow]Transcript {transcript_id} is already in project {project_id}[/yellow]")


@project_app.command("remove-transcript")
def project_remove_transcript(
    ctx: typer.Context,
    project_id: Annotated[str, typer.Argument(help="Project ID")],
    transcript_id: Annotated[str, typer.Argument(help="Transcript ID")],
) -> None:
    """Unload a transcript from a project. Its aggregates stay."""
    with open_store(ctx) as store:
        with store.mutate_project(project_id) as project:
            removed = project.remove_transcript(transcript_id)
    if removed:
        console.print(f"[green]Removed[/green] transcript {transcript_id} from project {project_id}")
    else:
        console.print(f"[yellow]Transcript {transcript_id} is not in project {project_id}[/yellow]")


@project_app.command("delete")
def project_delete(
    ctx: typer.Context,
    project_id: Annotated[str, typer.Argument(help="Project ID")],
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Skip confirmation")] = False,
) -> None:
    """Delete a project and its narrative."""
    if not yes:
        typer.confirm(f"Delete project {project_id}?", abort=True)
    with open_store(ctx) as store:
        store.delete_project(project_id)
    console.print(f"[green]Deleted[/green] project {project_id}")


# Aggregates


@aggregate_app.command("add")
def aggregate_add(
    ctx: typer.Context,
    project_id: Annotated[str, typer.Argument(help="Project ID")],
    transcript_id: Annotated[str, typer.Argument(help="Transcript ID")],
    start: Annotated[int, typer.Argument(help="First segment index")],
    end: Annotated[Optional[int], typer.Argument(help="Last segment index (default: start)")] = None,
) -> None:
    """Append a span of a transcript's segments to the narrative."""
    with open_store(ctx) as store:
        aggregate = AggregateManager(store).create_from_transcript(
            project_id, transcript_id, start, start if end is None else end
        )
    console.print(
        f"[green]Added[/green] aggregate {aggregate.id} at position {aggregate.order + 1}: "
        f"{escape(aggregate.text)}"
    )


@aggregate_app.command("rm")
def aggregate_remove(
    ctx: typer.Context,
    project_id: Annotated[str, typer.Argument(help="Project ID")],
    aggregate_id: Annotated[str, typer.Argument(help="Aggregate ID")],
) -> None:
    """Remove an aggregate from the narrative."""
    with open_store(ctx) as store:
        removed = AggregateManager(store).delete(project_id, aggregate_id)
    if removed:
        console.print(f"[green]Removed[/green] aggregate {aggregate_id}")
    else:
        console.print(f"[yellow]Aggregate {aggregate_id} not found in project[/yellow]")


@aggregate_app.command("move")
def aggregate_move(
    ctx: typer.Context,
    project_id: Annotated[str, typer.Argument(help="Project ID")],
    aggregate_id: Annotated[str, typer.Argument(help="Aggregate ID")],
    position: Annotated[int, typer.Argument(help="New 1-based position")],
) -> None:
    """Move an aggregate to a new position in the narrative."""
    with open_store(ctx) as store:
        reordered = AggregateManager(store).move(project_id, aggregate_id, position - 1)
    moved = next(a for a in reordered if a.id == aggregate_id)
    console.print(f"[green]Moved[/green] aggregate {aggregate_id} to position {moved.order + 1}")


@app.command("export")
def export(
    ctx: typer.Context,
    project_id: Annotated[str, typer.Argument(help="Project ID")],
    fmt: Annotated[
        ExportFormat, typer.Option("--format", "-f", help="Export template")
    ] = ExportFormat.PLAIN,
    output: Annotated[
        Optional[Path],
        typer.Option("--output", "-o", help="Write to this file (use '-' for the default name)"),
    ] = None,
) -> None:
    """Render a project's narrative as text."""
    with open_store(ctx) as store:
        project = store.get_project_by_id(project_id)
        names = store.transcript_names()
        if output is None:
            typer.echo(render_narrative(project.aggregates, names, fmt))
            return
        if str(output) == "-":
            output = Path.cwd() / narrative_filename(project.name)
        export_narrative(output, project.aggregates, names, fmt)
    console.print(f"[green]Exported[/green] narrative to {escape(str(output))}")


if __name__ == "__main__":
    app()
