"""Typer-based CLI for ModuleMap."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskProgressColumn, TextColumn

from . import __version__, config, config_manager
from .errors import ModuleMapError
from .llm import KEYLESS_PROVIDERS, create_client
from .pipeline import create_module_map, summarize
from .serializer import save_map_as_yaml

logger = logging.getLogger(__name__)

console = Console()

app = typer.Typer(
    help="🗺️  ModuleMap: describe every source file and map who imports whom.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


def version_callback(value: bool):
    """Print version and exit."""
    if value:
        typer.echo(f"ModuleMap CLI v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    )
):
    """ModuleMap CLI: LLM-assisted module dependency maps."""
    pass


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@app.command("generate")
def generate(
    project_root: Path = typer.Argument(
        config.PROJECT_ROOT, file_okay=False, help="Root of the project to map."
    ),
    output: Path = typer.Option(config.OUTPUT_PATH, "--output", "-o", help="Destination YAML file."),
    on_error: str = typer.Option(
        config.ON_ERROR, "--on-error", help="What to do when a file fails: abort or skip."
    ),
    workers: int = typer.Option(config.WORKERS, min=1, max=32, help="Concurrent oracle calls."),
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging."),
):
    """Analyze every source file and write the module map."""
    _configure_logging(verbose)

    if on_error not in config.ON_ERROR_CHOICES:
        raise typer.BadParameter(f"--on-error must be one of: {', '.join(config.ON_ERROR_CHOICES)}")

    resolved_root = project_root.resolve()
    console.print(f"Analyzing modules in [cyan]{resolved_root}[/cyan]...")

    try:
        client = create_client(
            config.LLM_PROVIDER,
            model=config.LLM_MODEL,
            api_key=config.LLM_API_KEY,
            endpoint=config.LLM_ENDPOINT,
        )

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            console=console,
            transient=True,
        ) as progress:
            task = progress.add_task("Analyzing files", total=None)

            def on_files(files: List[str]) -> None:
                progress.update(task, total=len(files))

            def on_done(path: str) -> None:
                progress.update(task, advance=1, description=f"Analyzed {path}")

            module_map = create_module_map(
                resolved_root,
                client,
                on_error=on_error,
                workers=workers,
                max_tool_rounds=config.MAX_TOOL_ROUNDS,
                extensions=config.SOURCE_EXTENSIONS,
                exclude_markers=config.EXCLUDE_MARKERS,
                skip_dirs=config.SKIP_DIRS,
                progress=on_done,
                on_files=on_files,
            )

        written = save_map_as_yaml(module_map, output)
    except (ModuleMapError, ValueError) as e:
        console.print(f"[red]Error generating module map: {e}[/red]")
        logger.debug("Module map generation failed", exc_info=True)
        raise typer.Exit(code=1)

    console.print(f"[green]Module map generated successfully and saved to {written}[/green]")
    for line in summarize(module_map):
        console.print(line, markup=False, highlight=False)

    if not module_map.is_complete:
        console.print(
            f"[yellow]Map is incomplete: {len(module_map.skipped)} file(s) skipped, "
            f"see 'skipped' in {written}[/yellow]"
        )


# ===================================================================
# LLM configuration commands
# ===================================================================

@app.command("set-llm")
def set_llm(
    provider: str = typer.Argument(
        ..., help="LLM provider: openai, groq, openrouter, gemini, anthropic, ollama"
    ),
    model: str = typer.Option(None, "--model", "-m", help="Model name (uses provider default if not set)."),
    api_key: str = typer.Option(None, "--api-key", "-k", help="API key for cloud providers."),
    endpoint: str = typer.Option(None, "--endpoint", "-e", help="Custom chat-completions endpoint URL."),
):
    """Switch the LLM provider used for analysis.

    Examples:
        modmap set-llm openai -k YOUR_API_KEY
        modmap set-llm ollama -m qwen2.5-coder:7b
    """
    provider = provider.lower().strip()

    try:
        defaults = config_manager.get_provider_config(provider)
    except ValueError as e:
        console.print(f"[red]❌ {e}[/red]")
        raise typer.Exit(code=1)

    current = config_manager.load_config()
    resolved_model = model or defaults["model"]
    resolved_endpoint = endpoint or defaults.get("endpoint", "")
    resolved_api_key = api_key or ""

    if provider not in KEYLESS_PROVIDERS and not resolved_api_key:
        if current.get("provider") == provider and current.get("api_key"):
            resolved_api_key = current["api_key"]
            console.print(f"ℹ️  Reusing existing API key for {provider}")
        else:
            resolved_api_key = typer.prompt(f"Enter your {provider} API key", hide_input=True)

    try:
        config_manager.save_config(provider, resolved_model, resolved_api_key, resolved_endpoint)
    except OSError as e:
        console.print(f"[red]❌ Failed to save configuration: {e}[/red]")
        raise typer.Exit(code=1)

    console.print(f"[green]✅ LLM provider set to: {provider}[/green]")
    console.print(f"  Provider: [cyan]{provider}[/cyan]")
    console.print(f"  Model:    [cyan]{resolved_model}[/cyan]")
    if resolved_endpoint:
        console.print(f"  Endpoint: {resolved_endpoint}")


@app.command("show-llm")
def show_llm():
    """Show current LLM provider configuration."""
    cfg = config_manager.load_config()

    provider = cfg.get("provider", config_manager.DEFAULT_PROVIDER)
    api_key = cfg.get("api_key", "")

    console.print(f"  Provider  [bold]{provider.upper()}[/bold]")
    console.print(f"  Model     [bold]{cfg.get('model', '')}[/bold]")
    if cfg.get("endpoint"):
        console.print(f"  Endpoint  [dim]{cfg['endpoint']}[/dim]")
    if api_key:
        masked = api_key[:8] + "•" * min(max(len(api_key) - 8, 0), 16)
        console.print(f"  API Key   {masked}")
    else:
        console.print("  API Key   [dim](not set)[/dim]")
    console.print(f"  Config    [dim]{config_manager.CONFIG_FILE}[/dim]")


@app.command("unset-llm")
def unset_llm():
    """Remove the LLM configuration (provider, model and API key)."""
    if not config_manager.CONFIG_FILE.exists():
        console.print("ℹ️  No LLM configuration found. Nothing to unset.")
        raise typer.Exit(code=0)

    config_manager.clear_llm_config()
    console.print(f"[green]✅ LLM configuration removed from {config_manager.CONFIG_FILE}[/green]")


if __name__ == "__main__":
    app()
