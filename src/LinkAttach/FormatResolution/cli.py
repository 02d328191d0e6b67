"""Typer-based CLI for LinkAttach format resolution."""

import asyncio
import json
import logging
from pathlib import Path
from typing import Any, List, Optional

import httpx
import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from LinkAttach.FormatResolution.assembler import reconcile_filename
from LinkAttach.FormatResolution.config import (
    LinkAttachConfig,
    export_config_schema,
    load_config,
    resolve_provider_policies,
    validate_config_file,
)
from LinkAttach.FormatResolution.errors import describe_fetch_failure
from LinkAttach.FormatResolution.fetch import HttpxFetcher
from LinkAttach.FormatResolution.pipeline import LinkConverter, convert_text
from LinkAttach.FormatResolution.strategy import StrategySelector
from LinkAttach.FormatResolution.types import ResourceReference

console = Console()
app = typer.Typer(help="LinkAttach: turn links into safely named attachments")

CONFIG_ENVVAR = "LINKATTACH_CONFIG"


def _setup_logging(verbose: bool) -> None:
    """Setup logging based on verbosity."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def _transport() -> Optional[httpx.AsyncBaseTransport]:
    """Transport override for the HTTP client; ``None`` uses the network."""
    return None


def _load(
    config: Optional[str],
    mode: Optional[str] = None,
    max_bytes: Optional[int] = None,
    locale: Optional[str] = None,
) -> LinkAttachConfig:
    cli_overrides: dict[str, Any] = {}
    if mode:
        cli_overrides["detection"] = {"mode": mode}
    if max_bytes:
        cli_overrides["size_guard"] = {"max_bytes": max_bytes}
    if locale:
        cli_overrides["batch"] = {"locale": locale}
    return load_config(path=config, cli_overrides=cli_overrides)


@app.command()
def convert(
    text: List[str] = typer.Argument(..., help="Text containing links"),
    config: Optional[str] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to config file",
        envvar=CONFIG_ENVVAR,
    ),
    mode: Optional[str] = typer.Option(None, "--mode", help="concurrent or strategy"),
    max_bytes: Optional[int] = typer.Option(None, "--max-bytes", help="Size ceiling in bytes"),
    locale: Optional[str] = typer.Option(None, "--locale", help="Status message locale"),
    as_json: bool = typer.Option(False, "--json", help="Print the raw result as JSON"),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Verbose"),
) -> None:
    """Convert links found in TEXT into attachment descriptors."""
    _setup_logging(verbose)

    try:
        cfg = _load(config, mode, max_bytes, locale)
        result = asyncio.run(convert_text(text, cfg, transport=_transport()))

        if as_json:
            typer.echo(json.dumps(result.to_dict(), ensure_ascii=False, indent=2))
            return

        table = Table(title="Attachments")
        table.add_column("#", style="cyan")
        table.add_column("Name", style="green")
        table.add_column("URL", style="white")
        for idx, item in enumerate(result.data, 1):
            table.add_row(str(idx), item["name"], item["content"])
        console.print(table)
        console.print(
            f"\n[cyan]{result.message}: {len(result.data)}/{result.attempted} "
            f"(batch {result.log_id})[/cyan]"
        )

    except Exception as e:
        console.print(f"[red]✗ Error: {e}[/red]")
        if verbose:
            raise
        raise typer.Exit(code=1)


@app.command()
def resolve(
    url: str = typer.Argument(..., help="URL to resolve"),
    config: Optional[str] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to config file",
        envvar=CONFIG_ENVVAR,
    ),
    mode: Optional[str] = typer.Option(None, "--mode", help="concurrent or strategy"),
    max_bytes: Optional[int] = typer.Option(None, "--max-bytes", help="Size ceiling in bytes"),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Verbose"),
) -> None:
    """Resolve one URL and show every probe's evidence."""
    _setup_logging(verbose)

    try:
        cfg = _load(config, mode, max_bytes)
        reference = ResourceReference.parse(url)

        async def _run() -> Any:
            async with HttpxFetcher(cfg.http, transport=_transport()) as fetcher:
                converter = LinkConverter(fetcher, cfg)
                decision = await converter.orchestrator.resolve(reference, log_id="cli")
                verdicts = await converter.size_verdicts(reference, decision, log_id="cli")
                return decision, verdicts

        decision, verdicts = asyncio.run(_run())

        table = Table(title=f"Probe Evidence ({cfg.detection.mode})")
        table.add_column("Probe", style="cyan")
        table.add_column("Result", style="green")
        table.add_column("Extension", style="yellow")
        table.add_column("Confidence", style="magenta")
        table.add_column("Reason", style="white")
        for result in decision.evidence:
            detail = result.reason
            if not result.succeeded:
                message, _ = describe_fetch_failure(
                    result.status or None, result.meta.get("error") or result.reason
                )
                detail = f"{result.reason}: {message}"
            table.add_row(
                result.method.value,
                "[green]✓[/green]" if result.succeeded else "[red]✗[/red]",
                result.extension or "-",
                f"{result.confidence:.2f}",
                detail,
            )
        console.print(table)

        dropped = any(v.exceeded for v in verdicts)
        name = reconcile_filename(reference.last_segment, decision.extension, 0)
        console.print(
            Panel(
                f"Policy: {decision.policy}\n"
                f"Extension: {decision.extension}\n"
                f"Confidence: {decision.confidence:.2f}\n"
                f"Size: {', '.join(f'{v.source}={v.formatted}' for v in verdicts)}\n"
                + ("[red]Dropped: exceeds size ceiling[/red]" if dropped else f"Name: {name}"),
                title="Decision",
            )
        )

    except Exception as e:
        console.print(f"[red]✗ Error: {e}[/red]")
        if verbose:
            raise
        raise typer.Exit(code=1)


@app.command()
def explain(
    config: Optional[str] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to config file",
        envvar=CONFIG_ENVVAR,
    ),
    host: Optional[str] = typer.Option(None, "--host", help="Show the policy chosen for HOST"),
) -> None:
    """Explain the provider policy table and its evaluation order."""
    try:
        cfg = load_config(path=config)
        policies, default = resolve_provider_policies(cfg)
        selector = StrategySelector(policies, default)

        table = Table(title="Provider Policies")
        table.add_column("Order", style="cyan")
        table.add_column("Name", style="green")
        table.add_column("Primary", style="yellow")
        table.add_column("Fallback", style="yellow")
        table.add_column("Confidence", style="magenta")
        table.add_column("Domains", style="white")

        for idx, row in enumerate(selector.describe(), 1):
            domains = row["domains"] or ["*"]
            table.add_row(
                str(idx),
                str(row["name"]),
                str(row["primary"]),
                str(row["fallback"]),
                f"{row['confidence']:.2f}",
                str(len(domains)) if len(domains) > 3 else ", ".join(domains),
            )

        console.print(table)
        console.print(f"\n[cyan]Mode: {cfg.detection.mode}[/cyan]")

        if host:
            chosen = selector.select(host)
            console.print(f"[cyan]{host} → {chosen.name}[/cyan]")

    except Exception as e:
        console.print(f"[red]✗ Error: {e}[/red]")
        raise typer.Exit(code=1)


@app.command()
def print_config(
    config: Optional[str] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to config file",
        envvar=CONFIG_ENVVAR,
    ),
    raw: bool = typer.Option(False, "--raw", help="Raw JSON"),
) -> None:
    """Print merged effective config."""
    try:
        cfg = load_config(path=config)
        data = cfg.model_dump(mode="json")

        if raw:
            typer.echo(json.dumps(data, indent=2))
        else:
            console.print(
                Panel(json.dumps(data, indent=2), title="LinkAttach Config", expand=False)
            )

    except Exception as e:
        console.print(f"[red]✗ Error: {e}[/red]")
        raise typer.Exit(code=1)


@app.command()
def validate_config(
    config: str = typer.Argument(..., help="Path to config file"),
) -> None:
    """Validate a config file."""
    try:
        validate_config_file(config)
        console.print("[green]✓ Config valid[/green]")
    except Exception as e:
        console.print(f"[red]✗ Invalid: {e}[/red]")
        raise typer.Exit(code=1)


@app.command()
def schema(
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Save schema to file"),
) -> None:
    """Export JSON Schema for LinkAttachConfig."""
    try:
        schema_data = export_config_schema()

        if output:
            output.write_text(json.dumps(schema_data, indent=2))
            console.print(f"[green]✓ Schema written to {output}[/green]")
        else:
            console.print(
                Panel(json.dumps(schema_data, indent=2), title="JSON Schema", expand=False)
            )

    except Exception as e:
        console.print(f"[red]✗ Error: {e}[/red]")
        raise typer.Exit(code=1)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
