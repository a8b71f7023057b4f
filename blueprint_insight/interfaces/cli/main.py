"""
CLI Main - Typer-based command-line interface.

Usage:
    blueprint-insight extract drawings/*.pdf --csv results.csv
    blueprint-insight templates list
    blueprint-insight templates import my_template.json
    blueprint-insight settings set --provider genericChat --base-url http://localhost:11434/v1
    blueprint-insight serve
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from blueprint_insight.adapters.sqlite import SQLiteStore
from blueprint_insight.config import BlueprintError, NotFoundError, Settings, get_settings
from blueprint_insight.domains.batch import (
    BatchItem,
    BatchRunner,
    BatchStatus,
    export_csv,
    export_json,
    format_cell,
)
from blueprint_insight.domains.extraction import (
    DocumentPayload,
    ExtractionSettings,
    GenericChatProvider,
    StructuredProvider,
    TemplateExtractor,
    mask_secret,
)
from blueprint_insight.domains.templates import Template

app = typer.Typer(
    name="blueprint-insight",
    help="BluePrint Insight - Template-driven extraction from technical drawings",
    add_completion=False,
)
templates_app = typer.Typer(help="Manage extraction templates.")
settings_app = typer.Typer(help="Show or change provider settings.")
app.add_typer(templates_app, name="templates")
app.add_typer(settings_app, name="settings")

console = Console()


@app.callback()
def setup(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """Configure logging for every command."""
    level = logging.DEBUG if verbose else get_settings().log_level.upper()
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=False)],
        force=True,
    )


def _open_store(settings: Settings) -> SQLiteStore:
    return SQLiteStore(settings.db_path, default_settings=ExtractionSettings.from_settings(settings))


def _fail(error: Exception) -> None:
    console.print(f"[red]Error:[/red] {escape(str(error))}")
    raise typer.Exit(1)


# --- Extraction ---


@app.command()
def extract(
    files: list[Path] = typer.Argument(..., help="Images or PDFs to read"),
    template_id: str | None = typer.Option(None, "--template", "-t", help="Template ID (default: active)"),
    json_path: Path | None = typer.Option(None, "--json", help="Write completed results as JSON"),
    csv_path: Path | None = typer.Option(None, "--csv", help="Write completed results as CSV"),
) -> None:
    """Extract template fields from one or more documents."""
    missing = [f for f in files if not f.exists()]
    if missing:
        console.print(f"[red]Error:[/red] File not found: {missing[0]}")
        raise typer.Exit(1)

    failed = asyncio.run(_extract_async(files, template_id, json_path, csv_path))
    if failed:
        raise typer.Exit(1)


async def _extract_async(
    files: list[Path],
    template_id: str | None,
    json_path: Path | None,
    csv_path: Path | None,
) -> int:
    """Async extraction implementation. Returns the number of failed documents."""
    settings = get_settings()
    store = _open_store(settings)
    extractor = TemplateExtractor(settings)

    try:
        await store.initialize()
        template = await _resolve_template(store, template_id)
        config = await store.load_settings()

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
        ) as progress:
            task = progress.add_task("Loading documents...", total=None)

            def on_change(item: BatchItem) -> None:
                if item.status == BatchStatus.PROCESSING:
                    progress.update(task, description=f"Extracting {item.file_name}...")

            runner = BatchRunner(extractor, listener=on_change)
            for path in files:
                runner.add(DocumentPayload.from_path(path))

            await runner.run(template, config)
    except (BlueprintError, ValueError) as e:
        _fail(e)
    finally:
        await extractor.close()
        await store.close()

    _print_results(runner.items, template)

    if json_path:
        json_path.write_text(export_json(runner.items), encoding="utf-8")
        console.print(f"[green]Saved JSON:[/green] {json_path}")
    if csv_path:
        csv_path.write_text(export_csv(runner.items, template), encoding="utf-8")
        console.print(f"[green]Saved CSV:[/green] {csv_path}")

    return sum(1 for item in runner.items if item.status == BatchStatus.ERROR)


def _print_results(items: list[BatchItem], template: Template) -> None:
    for item in items:
        if item.status == BatchStatus.ERROR:
            console.print(Panel(item.error or "Processing failed", title=item.file_name, style="red"))
            continue

        table = Table(title=f"{item.file_name} [dim]{item.sha256[:12]}[/dim]")
        table.add_column("Field", style="cyan")
        table.add_column("Value", style="green")
        for field in template.fields:
            value = (item.result or {}).get(field.key)
            table.add_row(field.label or field.key, format_cell(value) if value is not None else "[dim]-[/dim]")
        console.print(table)

        for warning in item.warnings:
            console.print(f"  [yellow]![/yellow] {warning}")


async def _resolve_template(store: SQLiteStore, template_id: str | None) -> Template:
    if template_id is None:
        return await store.get_active_template()
    template = await store.get_template(template_id)
    if template is None:
        raise NotFoundError(f"Template not found: {template_id}", {"id": template_id})
    return template


# --- Templates ---


@templates_app.command("list")
def templates_list() -> None:
    """List templates; the active one is marked."""
    asyncio.run(_templates_list_async())


async def _templates_list_async() -> None:
    store = _open_store(get_settings())
    try:
        await store.initialize()
        templates = await store.list_templates()
        active = await store.get_active_template()
    finally:
        await store.close()

    table = Table(title="Templates")
    table.add_column("", width=1)
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("Fields", justify="right")
    for template in templates:
        table.add_row("*" if template.id == active.id else "", template.id, template.name, str(len(template.fields)))
    console.print(table)


@templates_app.command("show")
def templates_show(template_id: str = typer.Argument(..., help="Template ID")) -> None:
    """Show a template's fields."""
    asyncio.run(_templates_show_async(template_id))


async def _templates_show_async(template_id: str) -> None:
    store = _open_store(get_settings())
    try:
        await store.initialize()
        template = await _resolve_template(store, template_id)
    except BlueprintError as e:
        _fail(e)
    finally:
        await store.close()

    table = Table(title=template.name)
    table.add_column("Key", style="cyan")
    table.add_column("Label")
    table.add_column("Type", style="magenta")
    table.add_column("Description", style="dim")
    for field in template.fields:
        table.add_row(field.key, field.label, field.value_kind.value, field.description)
    console.print(table)


@templates_app.command("import")
def templates_import(
    path: Path = typer.Argument(..., help="Template JSON file"),
    activate: bool = typer.Option(False, "--activate", "-a", help="Make it the active template"),
) -> None:
    """Import a template from JSON."""
    if not path.exists():
        console.print(f"[red]Error:[/red] File not found: {path}")
        raise typer.Exit(1)
    asyncio.run(_templates_import_async(path, activate))


async def _templates_import_async(path: Path, activate: bool) -> None:
    store = _open_store(get_settings())
    try:
        template = Template.from_json(path.read_text(encoding="utf-8"))
        await store.initialize()
        saved = await store.save_template(template)
        if activate:
            await store.set_active_template(saved.id)
    except BlueprintError as e:
        _fail(e)
    finally:
        await store.close()

    console.print(f"[green]Imported:[/green] {saved.name} ({saved.id}, {len(saved.fields)} fields)")


@templates_app.command("export")
def templates_export(
    template_id: str = typer.Argument(..., help="Template ID"),
    output: Path | None = typer.Option(None, "--output", "-o", help="Output JSON path (default: stdout)"),
) -> None:
    """Export a template as JSON."""
    asyncio.run(_templates_export_async(template_id, output))


async def _templates_export_async(template_id: str, output: Path | None) -> None:
    store = _open_store(get_settings())
    try:
        await store.initialize()
        template = await _resolve_template(store, template_id)
    except BlueprintError as e:
        _fail(e)
    finally:
        await store.close()

    if output:
        output.write_text(template.to_json(), encoding="utf-8")
        console.print(f"[green]Saved to:[/green] {output}")
    else:
        typer.echo(template.to_json())


@templates_app.command("delete")
def templates_delete(template_id: str = typer.Argument(..., help="Template ID")) -> None:
    """Delete a template. The last template cannot be deleted."""
    asyncio.run(_templates_delete_async(template_id))


async def _templates_delete_async(template_id: str) -> None:
    store = _open_store(get_settings())
    try:
        await store.initialize()
        active_id = await store.delete_template(template_id)
    except BlueprintError as e:
        _fail(e)
    finally:
        await store.close()

    console.print(f"[green]Deleted:[/green] {template_id} [dim](active: {active_id})[/dim]")


@templates_app.command("use")
def templates_use(template_id: str = typer.Argument(..., help="Template ID")) -> None:
    """Make a template the active one."""
    asyncio.run(_templates_use_async(template_id))


async def _templates_use_async(template_id: str) -> None:
    store = _open_store(get_settings())
    try:
        await store.initialize()
        template = await store.set_active_template(template_id)
    except BlueprintError as e:
        _fail(e)
    finally:
        await store.close()

    console.print(f"[green]Active template:[/green] {template.name}")


# --- Settings ---


@settings_app.command("show")
def settings_show() -> None:
    """Show the stored provider settings."""
    asyncio.run(_settings_show_async())


async def _settings_show_async() -> None:
    settings = get_settings()
    store = _open_store(settings)
    try:
        await store.initialize()
        config = await store.load_settings()
    except BlueprintError as e:
        _fail(e)
    finally:
        await store.close()

    table = Table(title="Extraction Settings")
    table.add_column("Setting", style="cyan")
    table.add_column("Value")
    table.add_row("Provider", config.kind.value)
    if isinstance(config.provider, GenericChatProvider):
        table.add_row("Base URL", config.provider.endpoint_base)
        table.add_row("Model", config.provider.model_name)
        table.add_row("API key", mask_secret(config.provider.api_key))
    else:
        table.add_row("Model", settings.gemini_model)
        table.add_row("API key", mask_secret(settings.api_key) if settings.api_key else "[red]not set[/red]")
    table.add_row("Temperature", str(config.temperature))
    table.add_row("System prompt", config.system_prompt)
    console.print(table)


@settings_app.command("set")
def settings_set(
    provider: str | None = typer.Option(None, "--provider", "-p", help="structured or genericChat"),
    base_url: str | None = typer.Option(None, "--base-url", help="Chat-completion endpoint base URL"),
    api_key: str | None = typer.Option(None, "--api-key", help="Chat-completion API key"),
    model: str | None = typer.Option(None, "--model", "-m", help="Chat-completion model name"),
    prompt: str | None = typer.Option(None, "--prompt", help="System prompt"),
    temperature: float | None = typer.Option(None, "--temperature", min=0.0, max=1.0),
) -> None:
    """Change provider settings. Unspecified options keep their stored value."""
    asyncio.run(_settings_set_async(provider, base_url, api_key, model, prompt, temperature))


async def _settings_set_async(
    provider: str | None,
    base_url: str | None,
    api_key: str | None,
    model: str | None,
    prompt: str | None,
    temperature: float | None,
) -> None:
    store = _open_store(get_settings())
    try:
        await store.initialize()
        current = await store.load_settings()

        endpoint = {}
        if isinstance(current.provider, GenericChatProvider):
            endpoint = current.provider.model_dump(by_alias=True, exclude={"provider"})
        for key, value in (("baseUrl", base_url), ("apiKey", api_key), ("model", model)):
            if value is not None:
                endpoint[key] = value

        config = ExtractionSettings.from_app_settings(
            {
                "provider": provider or current.kind.value,
                "genericChat": endpoint,
                "systemPrompt": prompt if prompt is not None else current.system_prompt,
                "temperature": temperature if temperature is not None else current.temperature,
            }
        )
        await store.save_settings(config)
    except BlueprintError as e:
        _fail(e)
    finally:
        await store.close()

    label = "structured" if isinstance(config.provider, StructuredProvider) else config.provider.model_name
    console.print(f"[green]Settings saved[/green] [dim](provider: {label})[/dim]")


# --- Server ---


@app.command()
def serve(
    host: str | None = typer.Option(None, "--host", "-h", help="Host to bind"),
    port: int | None = typer.Option(None, "--port", "-p", help="Port to bind"),
    reload: bool = typer.Option(False, "--reload", "-r", help="Enable auto-reload"),
) -> None:
    """Start the API server."""
    import uvicorn

    settings = get_settings()
    host = host or settings.api_host
    port = port or settings.api_port

    console.print("\n[green]Starting BluePrint Insight API server[/green]")
    console.print(f"[dim]http://{host}:{port}[/dim]\n")

    uvicorn.run(
        "blueprint_insight.interfaces.api:create_app",
        host=host,
        port=port,
        reload=reload,
        factory=True,
    )


@app.command()
def version() -> None:
    """Show version information."""
    from blueprint_insight import __version__

    console.print(f"BluePrint Insight v{__version__}")


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
