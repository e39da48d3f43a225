"""Command: tenantctl list - List tenants in the catalog."""

import json
from enum import StrEnum

import typer
from rich.console import Console
from rich.table import Table

from tenant_db.modules.tenants.enums import TenantStatus


console = Console()

STATUS_STYLES = {
    TenantStatus.ACTIVE: "green",
    TenantStatus.PROVISIONING: "yellow",
    TenantStatus.FAILED: "red",
    TenantStatus.SUSPENDED: "magenta",
    TenantStatus.DELETED: "dim",
}


class OutputFormat(StrEnum):
    TABLE = "table"
    JSON = "json"


def list_tenants(
    status: TenantStatus | None = typer.Option(None, "--status", "-s", help="Filter by status"),
    output_format: OutputFormat = typer.Option(
        OutputFormat.TABLE, "--format", help="Output format"
    ),
) -> None:
    """List tenants, optionally filtered by status."""
    from tenantctl.utils import run_with_manager

    try:
        tenants = run_with_manager(lambda manager: manager.list_tenants(status))
    except Exception as e:
        console.print(f"[red]Error:[/red] Failed to list tenants: {e}")
        raise typer.Exit(1)

    if output_format == OutputFormat.JSON:
        payload = [t.model_dump(mode="json") for t in tenants]
        typer.echo(json.dumps(payload, indent=2))
        return

    if not tenants:
        console.print("[yellow]No tenants found.[/yellow]")
        return

    table = Table(title=f"Tenants ({len(tenants)} total)", show_header=True)
    table.add_column("Slug", style="cyan", no_wrap=True)
    table.add_column("Name")
    table.add_column("Database", no_wrap=True)
    table.add_column("Host", no_wrap=True)
    table.add_column("Region")
    table.add_column("Tier")
    table.add_column("Status", no_wrap=True)
    table.add_column("Created", no_wrap=True)

    for t in tenants:
        style = STATUS_STYLES.get(t.status, "")
        table.add_row(
            t.slug,
            t.name,
            t.database_name,
            f"{t.host}:{t.port}",
            t.region or "N/A",
            t.tier.value,
            f"[{style}]{t.status.value}[/{style}]",
            t.created_at.date().isoformat() if t.created_at else "",
        )

    console.print()
    console.print(table)
    console.print()
