"""Command: tenantctl worker - Run the provisioning worker."""

import typer
from rich.console import Console


console = Console()


def worker() -> None:
    """Run the tenant provisioning worker until interrupted."""
    from tenant_db.config import get_settings
    from tenant_db.core.jobs.worker import run
    from tenant_db.core.logging import configure_logging

    try:
        settings = get_settings()
    except Exception as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    configure_logging(settings)
    console.print(
        f"[bold cyan]Starting provisioning worker[/bold cyan] "
        f"(queue: {settings.queue_tenant_provisioning})"
    )
    run(settings)
