"""Main CLI application using Typer."""
import asyncio
from collections.abc import Callable
from pathlib import Path

import httpx
import typer
from dotenv import load_dotenv
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ..llm import StreamingChatSession
from ..memory import DEFAULT_CONTEXT_WINDOW, Message
from ..notes import NotesError, read_line_range
from ..settings import RECOGNIZED_KEYS
from .providers import (
    get_http_client,
    get_notes_client,
    get_session,
    get_settings_store,
    get_transport,
)

# Load environment variables
load_dotenv()

# Create Typer app
app = typer.Typer(
    name="marknote",
    help="AI assistant panel for a markdown notes workspace",
    no_args_is_help=True,
    add_completion=True,
)

config_app = typer.Typer(help="Show or change the assistant settings", no_args_is_help=True)
app.add_typer(config_app, name="config")

# Console for rich output
console = Console()
# Trace output goes to stderr so piped answers stay clean
err_console = Console(stderr=True)


def _mask_secret(value: str) -> str:
    if not value:
        return "[dim](not set)[/dim]"
    if len(value) <= 8:
        return "****"
    return f"{value[:3]}...{value[-4:]}"


async def _stream_reply(session: StreamingChatSession, start: Callable[[], bool]) -> Message | None:
    """Start an exchange with ``start`` and print the reply as it streams in."""
    printed = 0
    errors: list[str] = []

    def on_partial(text: str) -> None:
        nonlocal printed
        console.print(text[printed:], end="", markup=False, highlight=False, soft_wrap=True)
        printed = len(text)

    session.set_callbacks(on_partial=on_partial, on_error=errors.append)

    if not start():
        console.print("[yellow]Nothing to send[/yellow]")
        raise typer.Exit(code=1)

    message = await session.wait()
    if printed:
        console.print()

    if errors:
        console.print(f"[red]Error: {escape(errors[-1])}[/red]")
        raise typer.Exit(code=1)
    if message is None:
        console.print("[dim](empty reply)[/dim]")
    return message


@app.command()
def chat(
    document: str | None = typer.Option(
        None,
        "--document",
        "-d",
        help="Document to analyze with Ctrl+O"
    ),
    remote: bool = typer.Option(
        False,
        "--remote",
        "-r",
        help="Load --document from the notes server instead of the local disk"
    ),
    max_messages: int = typer.Option(
        DEFAULT_CONTEXT_WINDOW,
        "--max-messages",
        "-n",
        min=1,
        help="Number of messages kept in the transcript and sent as context"
    ),
    log_level: str | None = typer.Option(
        None,
        "--log-level",
        "-l",
        help="Show log panel with level: debug (all), info, warning, or error"
    ),
):
    """Launch the interactive assistant panel."""
    if document and not remote and not Path(document).is_file():
        console.print(f"[red]Error: File not found: {document}[/red]")
        raise typer.Exit(code=1)

    async def _load_document() -> str:
        if remote:
            async with get_notes_client() as notes:
                return await notes.get_file_content(document)
        return read_line_range(document)

    async def _tui():
        from ..ui import run_textual_tui

        transport = get_transport()
        try:
            await run_textual_tui(
                settings=get_settings_store(console),
                transport=transport,
                max_messages=max_messages,
                log_level=log_level,
                document_loader=_load_document if document else None,
                document_name=document,
            )
        finally:
            await transport.close()
            console.print("\n[dim]Goodbye![/dim]")

    try:
        asyncio.run(_tui())
    except KeyboardInterrupt:
        pass


@app.command()
def ask(
    prompt: str = typer.Argument(..., help="Message to send to the assistant"),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Print session trace to stderr"
    ),
):
    """Send one message and print the streamed reply."""
    async def _ask():
        settings = get_settings_store(console)
        transport = get_transport()
        try:
            session = get_session(
                settings,
                transport,
                debug_console=err_console if verbose else None,
            )
            if not session.config.api_key:
                console.print("[yellow]Warning: no API key configured (marknote config set apiKey ...)[/yellow]")
            await _stream_reply(session, lambda: session.submit(prompt))
        finally:
            await transport.close()

    asyncio.run(_ask())


@app.command()
def analyze(
    path: str = typer.Argument(..., help="File to analyze (notes-relative with --remote)"),
    start: int | None = typer.Option(
        None,
        "--start",
        "-s",
        min=1,
        help="First line to include (1-based)"
    ),
    end: int | None = typer.Option(
        None,
        "--end",
        "-e",
        min=1,
        help="Last line to include (inclusive)"
    ),
    remote: bool = typer.Option(
        False,
        "--remote",
        "-r",
        help="Read the file from the notes server"
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Print session trace to stderr"
    ),
):
    """Ask the assistant for a summary and suggestions on a document."""
    async def _load() -> str:
        if remote:
            async with get_notes_client() as notes:
                if start is None and end is None:
                    return await notes.get_file_content(path)
                if start is None or end is None:
                    raise ValueError("--remote line ranges need both --start and --end")
                return await notes.get_content_range(path, start, end)
        return read_line_range(path, start, end)

    async def _analyze():
        try:
            text = await _load()
        except FileNotFoundError:
            console.print(f"[red]Error: File not found: {path}[/red]")
            raise typer.Exit(code=1)
        except (NotesError, OSError, ValueError) as e:
            console.print(f"[red]Error: {escape(str(e))}[/red]")
            raise typer.Exit(code=1)

        console.print(f"[dim]Analyzing {path} ({len(text)} chars)...[/dim]\n")

        settings = get_settings_store(console)
        transport = get_transport()
        try:
            session = get_session(
                settings,
                transport,
                debug_console=err_console if verbose else None,
            )
            await _stream_reply(session, lambda: session.analysis_port(text))
        finally:
            await transport.close()

    asyncio.run(_analyze())


@config_app.command("show")
def config_show():
    """Show the effective assistant settings."""
    settings = get_settings_store(console)
    config = settings.load()
    stored = settings.read_raw()

    table = Table(title="Assistant Settings")
    table.add_column("Key", style="cyan", no_wrap=True)
    table.add_column("Value")
    table.add_column("Source", style="dim", no_wrap=True)

    for key, value in config.to_storage_dict().items():
        shown = _mask_secret(value) if key == "apiKey" else str(value)
        if key == "systemPrompt" and len(shown) > 60:
            shown = shown[:57] + "..."
        source = "file" if stored.get(key) not in (None, "") else "default/env"
        table.add_row(key, shown if key == "apiKey" else escape(shown), source)

    console.print(table)
    console.print(f"[dim]Settings file: {settings.path}[/dim]")


@config_app.command("set")
def config_set(
    key: str = typer.Argument(..., help=f"Setting key: {', '.join(RECOGNIZED_KEYS)}"),
    value: str = typer.Argument(..., help="New value"),
):
    """Change one assistant setting."""
    settings = get_settings_store(console)
    try:
        config = settings.set_value(key, value)
    except KeyError as e:
        console.print(f"[red]Error: {escape(str(e.args[0]))}[/red]")
        raise typer.Exit(code=1)
    except ValidationError as e:
        console.print(f"[red]Error: invalid value for {key}: {e.errors()[0]['msg']}[/red]")
        raise typer.Exit(code=1)
    except OSError as e:
        console.print(f"[red]Error: could not write {settings.path}: {e}[/red]")
        raise typer.Exit(code=1)

    shown = _mask_secret(config.api_key) if key == "apiKey" else value
    console.print(f"[green]Set {key} = {shown}[/green]")


@app.command()
def health():
    """Check settings, API key and endpoint reachability."""
    async def _health() -> bool:
        settings = get_settings_store(console)
        config = settings.load()

        table = Table(title="marknote health")
        table.add_column("Check", style="cyan", no_wrap=True)
        table.add_column("Status", no_wrap=True)
        table.add_column("Details", style="dim")

        ok = True
        if settings.path.exists():
            table.add_row("Settings", "[green]ok[/green]", str(settings.path))
        else:
            table.add_row("Settings", "[yellow]defaults[/yellow]", f"{settings.path} not created yet")

        if config.api_key:
            table.add_row("API key", "[green]ok[/green]", _mask_secret(config.api_key))
        else:
            table.add_row("API key", "[red]missing[/red]", "marknote config set apiKey ...")
            ok = False

        url = f"{config.endpoint_base_url.rstrip('/')}/models"
        headers = {"Authorization": f"Bearer {config.api_key}"} if config.api_key else {}
        try:
            async with get_http_client() as client:
                response = await client.get(url, headers=headers)
        except (httpx.HTTPError, httpx.InvalidURL, UnicodeEncodeError) as e:
            table.add_row("Endpoint", "[red]unreachable[/red]", f"{url}: {escape(str(e))}")
            ok = False
        else:
            if response.status_code < 500:
                table.add_row("Endpoint", "[green]reachable[/green]", f"{url} (HTTP {response.status_code})")
            else:
                table.add_row("Endpoint", "[red]error[/red]", f"{url} (HTTP {response.status_code})")
                ok = False

        console.print(table)
        return ok

    if not asyncio.run(_health()):
        raise typer.Exit(code=1)


def main():
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
