"""Main tenantctl CLI application."""

import typer
from rich.console import Console

from tenantctl import __version__
from tenantctl.commands import create, delete, health, list_cmd, migrate, purge, worker


console = Console()

app = typer.Typer(
    name="tenantctl",
    help="Provision, migrate, monitor and destroy tenant databases.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

# Register commands
app.command(name="create")(create.create)
app.command(name="delete")(delete.delete)
app.command(name="purge")(purge.purge)
app.command(name="migrate")(migrate.migrate)
app.command(name="migrate-all")(migrate.migrate_all)
app.command(name="health")(health.health)
app.command(name="list")(list_cmd.list_tenants)
app.command(name="worker")(worker.worker)


@app.callback(invoke_without_command=True)
def version_callback(
    version: bool = typer.Option(False, "--version", "-v", help="Show version and exit."),
) -> None:
    """tenantctl - Manage database-per-tenant lifecycles."""
    if version:
        console.print(f"[bold cyan]tenantctl[/bold cyan] version {__version__}")
        raise typer.Exit()


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
