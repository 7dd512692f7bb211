"""CLI entry point for docmap."""

import asyncio
import json
import logging
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from .config import load_config
from .errors import DocmapError

console = Console()


@click.group()
@click.option("--config", "-c", "config_path", default=None, help="Path to config file")
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging")
@click.pass_context
def cli(ctx, config_path, verbose):
    """docmap - Chunk, embed and map a small set of research documents."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )


def _get_config(ctx) -> dict:
    return load_config(ctx.obj.get("config_path"))


def _session(ctx, model=None):
    from .session import ResearchSession

    session = ResearchSession(_get_config(ctx))
    if model:
        session.set_model(model)
    return session


@cli.command()
@click.argument("files", nargs=-1, required=True, type=click.Path(exists=True, dir_okay=False))
@click.option("--no-summary", is_flag=True, help="Skip LLM summarization")
@click.pass_context
def ingest(ctx, files, no_summary):
    """Process FILES and add them to the document store."""
    from .session import ResearchSession

    config = _get_config(ctx)
    if no_summary:
        config["summarize"] = False
    try:
        session = ResearchSession(config)
    except ValueError as e:
        console.print(f"[red]{e}[/]")
        return

    def report(result):
        name = Path(result.path).name
        if result.ok:
            doc = result.document
            console.print(f"  [green]✓ {name}[/] ({len(doc.chunks)} chunks, id {doc.id})")
            for err in doc.metadata.processing_errors:
                console.print(f"    [yellow]{err}[/]")
        else:
            console.print(f"  [red]✗ {name}: {result.error}[/]")

    console.print(f"[blue]Processing {len(files)} document(s)...[/]")
    try:
        results = asyncio.run(session.ingest(list(files), on_result=report))
    except DocmapError as e:
        console.print(f"[red]{e}[/]")
        return

    ok = sum(1 for r in results if r.ok)
    console.print(f"[green]✓ {ok} of {len(results)} document(s) ready for questions[/]")


@cli.command("list")
@click.pass_context
def list_documents(ctx):
    """List stored documents."""
    from .storage.records import DocumentStore

    config = _get_config(ctx)
    records = DocumentStore(config["store_path"]).load()
    if not records:
        console.print("[yellow]No documents stored. Run 'docmap ingest FILE...' first.[/]")
        return

    table = Table(title="Documents")
    table.add_column("ID", style="dim")
    table.add_column("Name", style="cyan")
    table.add_column("Size", justify="right")
    table.add_column("Status")
    table.add_column("Added")
    for r in records:
        status = "[green]processed[/]" if r.processed else "[yellow]pending[/]"
        table.add_row(r.id, r.name, f"{r.size / 1024:.1f} KB", status, r.timestamp[:19])
    console.print(table)


@cli.command()
@click.argument("document_id")
@click.pass_context
def remove(ctx, document_id):
    """Remove a document from the store."""
    from .storage.records import DocumentStore

    config = _get_config(ctx)
    if DocumentStore(config["store_path"]).remove(document_id):
        console.print(f"[green]✓ Removed {document_id}[/]")
    else:
        console.print(f"[yellow]No document with id {document_id}[/]")


@cli.command()
@click.pass_context
def stats(ctx):
    """Show document count and byte budget."""
    from .ingest.admission import AdmissionPolicy
    from .storage.records import DocumentStore

    config = _get_config(ctx)
    store = DocumentStore(config["store_path"])
    policy = AdmissionPolicy.from_config(config)
    budget = policy.budget(store.held_bytes())

    console.print("\n[bold]📊 Document Store[/]")
    console.print(f"  Documents: {store.count()} / {policy.max_documents}")
    style = "red" if budget.exceeded else "green"
    console.print(
        f"  Size: [{style}]{budget.used / 1024 / 1024:.2f} MB[/] of "
        f"{budget.limit / 1024 / 1024:.0f} MB ({budget.remaining / 1024 / 1024:.2f} MB left)"
    )


async def _map_files(config: dict, files: list[str]):
    """Process files into a fresh mapper without touching the store."""
    from .clustering.concepts import ConceptMapper
    from .embeddings.embedder import Embedder
    from .ingest.processor import DocumentPipeline

    config["summarize"] = False
    pipeline = DocumentPipeline(config, Embedder(config))
    mapper = ConceptMapper()
    async for result in pipeline.process_batch(files):
        if result.ok:
            mapper.add_document(result.document)
        else:
            console.print(f"  [red]✗ {Path(result.path).name}: {result.error}[/]")
    return mapper


def _parse_note(raw: str, mapper) -> tuple[str, str]:
    """Split 'NAME: text' and resolve NAME to a document id (left as-is if unknown)."""
    name, _, text = raw.partition(":")
    name = name.strip()
    for doc in mapper.documents:
        if doc.metadata.name == name:
            return doc.id, text.strip()
    return name, text.strip()


@cli.command()
@click.argument("files", nargs=-1, required=True, type=click.Path(exists=True, dir_okay=False))
@click.option("--note", "notes", multiple=True, help='Attach a note: "file.pdf: note text"')
@click.option("--topics", "include_topics", is_flag=True, help="Include topic nodes")
@click.option("--json", "as_json", is_flag=True, help="Print the graph as JSON")
@click.pass_context
def graph(ctx, files, notes, include_topics, as_json):
    """Build the concept graph for FILES."""
    from .models import ResearchNote

    config = _get_config(ctx)
    try:
        mapper = asyncio.run(_map_files(config, list(files)))
    except DocmapError as e:
        console.print(f"[red]{e}[/]")
        return

    for raw in notes:
        document_id, text = _parse_note(raw, mapper)
        mapper.add_note(ResearchNote.create(document_id, text))

    result = mapper.generate_concept_graph(include_topics=include_topics)
    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        return

    labels = {n.id: n.label for n in result.nodes}
    table = Table(title="Nodes")
    table.add_column("Type", style="dim")
    table.add_column("Label", style="cyan")
    table.add_column("Size", justify="right")
    for n in result.nodes:
        table.add_row(n.type, n.label, "" if n.size is None else str(n.size))
    console.print(table)

    if not result.edges:
        console.print("[yellow]No edges. Documents are not similar enough to link.[/]")
    for e in result.edges:
        source = labels.get(e.source, e.source)
        target = labels.get(e.target, e.target)
        console.print(f"  {source} ↔ {target} ({e.type}, {e.weight:.3f})")


@cli.command()
@click.argument("files", nargs=-1, required=True, type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def topics(ctx, files):
    """List greedy chunk topics for FILES."""
    config = _get_config(ctx)
    try:
        mapper = asyncio.run(_map_files(config, list(files)))
    except DocmapError as e:
        console.print(f"[red]{e}[/]")
        return

    names = {d.id: d.metadata.name for d in mapper.documents}
    for doc_id, labels in mapper.identify_topics().items():
        console.print(f"\n[bold]{names[doc_id]}[/] ({len(labels)} topic(s))")
        for label in labels:
            console.print(f"  • {label}")


@cli.command()
@click.argument("question")
@click.option("--model", "-m", type=click.Choice(["claude", "deepseek"]), default=None, help="LLM backend")
@click.option("--general", is_flag=True, help="Answer without document context")
@click.pass_context
def ask(ctx, question, model, general):
    """Ask a question about the stored documents."""
    from rich.markdown import Markdown
    from rich.panel import Panel

    try:
        session = _session(ctx, model)
        console.print(f"[blue]Asking {session.model.value}...[/]\n")
        result = asyncio.run(session.ask(question, document_mode=not general))
    except (DocmapError, ValueError) as e:
        console.print(f"[red]{e}[/]")
        return

    console.print(Panel(Markdown(result["answer"]), title="Answer", border_style="green"))
    if result["sources"]:
        console.print("\n[bold]📚 Sources:[/]")
        for name in result["sources"]:
            console.print(f"  • {name}")


if __name__ == "__main__":
    cli()
