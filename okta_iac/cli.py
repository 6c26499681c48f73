"""Command line interface for okta-iac."""

import asyncio
from pathlib import Path
from typing import Optional

import structlog
import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from okta_iac.clients.exceptions import APIError, ConfigurationError
from okta_iac.config.loader import ConfigLoader, find_config_file, sanitize_log_input
from okta_iac.config.models import ProviderConfig
from okta_iac.logging import setup_logging_from_config
from okta_iac.provider import OperationResult, Provider
from okta_iac.resources.models import PolicyDataState
from okta_iac.version import __version__

console = Console()
logger = structlog.get_logger(__name__)

app = typer.Typer(
    name="okta-iac",
    help="Declarative reconciliation of Okta applications and policies.",
    rich_markup_mode="rich",
)


def load_configuration(config_file: Optional[Path] = None) -> ProviderConfig:
    """Load and validate configuration.

    Raises:
        typer.Exit: If configuration loading fails
    """
    if config_file is None:
        config_file = find_config_file()
        if config_file is None:
            console.print("[red]Error: No configuration file found[/red]")
            console.print("Please create an okta-iac.yaml file or specify --config")
            raise typer.Exit(1)

    try:
        config = ConfigLoader().load_config(config_file)
    except ConfigurationError as e:
        console.print(f"[red]Error loading configuration: {escape(sanitize_log_input(str(e), 1000))}[/red]")
        raise typer.Exit(1)

    setup_logging_from_config(config.logging)
    console.print(f"[green]✓[/green] Loaded configuration from {config_file}")
    return config


def print_diagnostics(result: OperationResult) -> None:
    for diagnostic in result.diagnostics:
        color = "red" if diagnostic.severity.value == "error" else "yellow"
        target = f" ({diagnostic.attribute})" if diagnostic.attribute else ""
        console.print(f"[{color}]{diagnostic.summary}{target}[/{color}]")
        if diagnostic.detail:
            console.print(f"  {escape(sanitize_log_input(diagnostic.detail, 1000))}")


@app.command()
def validate(
    config_file: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Path to configuration file"
    ),
) -> None:
    """Validate configuration file."""
    console.print("[blue]Validating configuration...[/blue]")
    config = load_configuration(config_file)

    table = Table(title="Configuration")
    table.add_column("Setting")
    table.add_column("Value")
    table.add_row("Okta domain", config.okta.domain)
    table.add_row("Rate limit / minute", str(config.okta.rate_limit_per_minute))
    table.add_row("Create timeout", f"{config.timeouts.create_seconds:g}s")
    table.add_row("Read timeout", f"{config.timeouts.read_seconds:g}s")
    table.add_row("Update timeout", f"{config.timeouts.update_seconds:g}s")
    table.add_row("Delete timeout", f"{config.timeouts.delete_seconds:g}s")
    table.add_row("Extra features", ", ".join(config.features) or "-")
    console.print(table)

    console.print("[green]✓ Configuration is valid[/green]")


@app.command("lookup-policy")
def lookup_policy(
    name: str = typer.Argument(..., help="Policy name"),
    policy_type: str = typer.Argument(..., metavar="TYPE", help="Policy type, e.g. ACCESS_POLICY"),
    config_file: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Path to configuration file"
    ),
) -> None:
    """Resolve a policy by name and type and print its id and status."""
    config = load_configuration(config_file)

    async def run_lookup() -> OperationResult[PolicyDataState]:
        try:
            provider = await Provider.from_config(config)
        except APIError as e:
            console.print(f"[red]Failed to reach Okta: {escape(sanitize_log_input(str(e), 1000))}[/red]")
            raise typer.Exit(1)

        async with provider:
            return await provider.policy_data_source.read(provider.context, name, policy_type)

    result = asyncio.run(run_lookup())
    if result.has_errors or result.state is None:
        print_diagnostics(result)
        raise typer.Exit(1)

    table = Table(title="Policy")
    table.add_column("Name")
    table.add_column("Type")
    table.add_column("ID")
    table.add_column("Status")
    table.add_row(result.state.name, result.state.type.value, result.state.id, result.state.status)
    console.print(table)


@app.command()
def version() -> None:
    """Show version information."""
    console.print(f"okta-iac {__version__}")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
