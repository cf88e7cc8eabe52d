import asyncio
import json
import sys
from pathlib import Path

import typer
from rich.console import Console
from rich.live import Live
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ..core.config import Settings
from ..core.logging import log, setup_logging

app = typer.Typer(add_completion=False, help="Sokudoku RSVP reader CLI")

_state: dict = {"settings": None}


@app.callback()
def _init(
    config_file: str | None = typer.Option(
        None,
        "--config",
        help="Config file (.sokudoku.yaml auto-discovered)",
    ),
    log_format: str | None = typer.Option(None, "--log-format", help="Logging format: json|plain|auto"),
) -> None:
    try:
        settings = Settings.load_config(config_file)
    except Exception as e:
        typer.echo(f"❌ Config error: {e}", err=True)
        raise typer.Exit(1) from e
    setup_logging(log_format or settings.LOG_FORMAT)  # type: ignore[arg-type]
    _state["settings"] = settings


def _settings() -> Settings:
    return _state["settings"] or Settings.load_config()


def _read_text(source: str) -> str:
    if source == "-":
        return sys.stdin.read()
    path = Path(source)
    if not path.exists():
        typer.echo(f"❌ File not found: {source}", err=True)
        raise typer.Exit(1)
    return path.read_text(encoding="utf-8")


def _apply_overrides(
    settings: Settings,
    mode: str | None,
    max_length: int | None,
    protect: list[str] | None,
    segmenter: str | None,
    rate: float | None = None,
) -> Settings:
    """CLI flags have the highest precedence."""
    updates: dict = {}
    if mode:
        updates["GROUPING_MODE"] = mode
    if max_length is not None:
        updates["MAX_CHUNK_LENGTH"] = max_length
    if protect:
        updates["PROTECTED_TERMS"] = list(protect)
    if segmenter:
        updates["SEGMENTER"] = segmenter
    if rate is not None:
        updates["RATE"] = rate
    return settings.model_copy(update=updates)


def _session(settings: Settings):
    from ..session import ReaderSession

    return ReaderSession(settings=settings)


@app.command()
def version() -> None:
    from .. import __version__

    typer.echo(__version__)


@app.command()
def config(
    mask_paths: bool = typer.Option(False, help="Hide filesystem paths in output"),
) -> None:
    """Show the effective configuration."""
    settings = _settings()
    data = settings.model_dump()
    if mask_paths and data.get("EVENTS_PATH"):
        data["EVENTS_PATH"] = "***"
    for key, value in data.items():
        typer.echo(f"{key}={value}")


@app.command()
def chunk(
    source: str = typer.Argument(..., help="Text file to chunk, or - for stdin"),
    mode: str | None = typer.Option(None, "--mode", help="Grouping mode: grouped|atomic"),
    max_length: int | None = typer.Option(None, "--max-length", help="Character budget per chunk"),
    protect: list[str] | None = typer.Option(None, "--protect", help="Protected term (repeatable)"),
    segmenter: str | None = typer.Option(None, "--segmenter", help="Segmenter: regex|tinysegmenter|whitespace"),
    as_json: bool = typer.Option(False, "--json", help="Emit chunks as NDJSON"),
) -> None:
    """
    Split text into display chunks and print them, one per line.
    """
    settings = _apply_overrides(_settings(), mode, max_length, protect, segmenter)
    session = _session(settings)
    session.set_text(_read_text(source))

    for ord_, c in enumerate(session.chunks):
        if as_json:
            typer.echo(
                json.dumps(
                    {
                        "ord": ord_,
                        "surface": c.surface,
                        "start": c.start,
                        "end": c.end,
                        "token_count": c.token_count,
                        "forced": c.forced,
                    },
                    ensure_ascii=False,
                )
            )
        else:
            typer.echo(c.surface)

    log.info("cli.chunk.done", chunks=len(session.chunks), chars=session.total_character_count)
    session.close()


@app.command()
def verify(
    source: str = typer.Argument(..., help="Text file to verify, or - for stdin"),
    mode: str | None = typer.Option(None, "--mode", help="Grouping mode: grouped|atomic"),
    max_length: int | None = typer.Option(None, "--max-length", help="Character budget per chunk"),
    protect: list[str] | None = typer.Option(None, "--protect", help="Protected term (repeatable)"),
    segmenter: str | None = typer.Option(None, "--segmenter", help="Segmenter: regex|tinysegmenter|whitespace"),
    as_json: bool = typer.Option(False, "--json", help="Print the full report as JSON"),
) -> None:
    """
    Check coverage, length budget and protected terms for a text.

    Exits with status 1 when the assurance report fails.
    """
    from ..chunking.assurance import build_chunk_assurance

    settings = _apply_overrides(_settings(), mode, max_length, protect, segmenter)
    session = _session(settings)
    session.set_text(_read_text(source))
    report = build_chunk_assurance(
        session.text,
        session.chunks,
        session.grouping_config,
        session.protected_terms,
    )
    session.close()

    if as_json:
        typer.echo(json.dumps(report, ensure_ascii=False, indent=2))
    else:
        console = Console()
        table = Table(title="Chunk assurance")
        table.add_column("Check")
        table.add_column("Result")
        table.add_row("Chunks", str(report["chunkCount"]))
        table.add_row("Coverage", "ok" if report["coverage"]["ok"] else "MISMATCH")
        table.add_row("Length breaches", str(report["lengthBreaches"]["count"]))
        table.add_row("Protected splits", str(report["protectedSplits"]["count"]))
        table.add_row("Status", report["status"])
        console.print(table)

    if report["status"] != "PASS":
        raise typer.Exit(1)


def _render(session) -> Panel:
    from ..playback.display import focus_split, format_elapsed

    current = session.current_chunk
    body = Text(justify="center")
    if current is None:
        body.append("Waiting...", style="dim")
    else:
        pre, center, post = focus_split(current.surface)
        body.append(pre)
        body.append(center, style="bold red")
        body.append(post)

    total = len(session.chunks)
    subtitle = (
        f"{min(session.current_index + 1, total)}/{total}  "
        f"{format_elapsed(session.elapsed_seconds)}  "
        f"{session.rate:g} cpm"
    )
    return Panel(body, subtitle=subtitle, padding=(1, 4))


@app.command()
def play(
    source: str = typer.Argument(..., help="Text file to read, or - for stdin"),
    rate: float | None = typer.Option(None, "--rate", help="Chunks per minute"),
    start_at: int = typer.Option(0, "--start-at", help="Chunk index to start from"),
    mode: str | None = typer.Option(None, "--mode", help="Grouping mode: grouped|atomic"),
    max_length: int | None = typer.Option(None, "--max-length", help="Character budget per chunk"),
    protect: list[str] | None = typer.Option(None, "--protect", help="Protected term (repeatable)"),
    segmenter: str | None = typer.Option(None, "--segmenter", help="Segmenter: regex|tinysegmenter|whitespace"),
) -> None:
    """
    Present the text one chunk at a time in the terminal.

    Playback stops on its own at the end of the text; Ctrl-C stops early.
    """
    from ..playback.driver import FrameDriver

    settings = _apply_overrides(_settings(), mode, max_length, protect, segmenter, rate)
    session = _session(settings)
    session.set_text(_read_text(source))
    if not session.chunks:
        typer.echo("Nothing to play", err=True)
        session.close()
        return
    session.seek(start_at)

    console = Console(no_color=settings.NO_COLOR)
    with Live(_render(session), console=console, refresh_per_second=settings.FRAME_RATE, transient=False) as live:
        driver = FrameDriver(
            session.scheduler,
            frame_rate=settings.FRAME_RATE,
            on_frame=lambda _s, advanced: live.update(_render(session)) if advanced else None,
        )

        async def _run() -> None:
            await driver.run_until_stopped()

        try:
            asyncio.run(_run())
        except KeyboardInterrupt:
            session.stop()
            typer.echo("⏹  Stopped", err=True)
        live.update(_render(session))

    log.info("cli.play.done", chunks=len(session.chunks), elapsed=round(session.elapsed_seconds, 3))
    session.close()


if __name__ == "__main__":
    app()
