"""Command: tenantctl create - Register a tenant and queue its provisioning."""

from uuid import UUID, uuid4

import typer
from rich.console import Console

from tenant_db.modules.tenants.enums import TenantTier


console = Console()


def create(
    slug: str = typer.Argument(..., help="Tenant slug (e.g., 'acme-corp')"),
    name: str = typer.Argument(..., help="Display name (e.g., 'Acme Corporation')"),
    tier: TenantTier = typer.Option(TenantTier.SHARED, "--tier", "-t", help="Service tier"),
    organization_id: str | None = typer.Option(
        None, "--organization-id", help="Organization id (generated if omitted)"
    ),
    host_id: str | None = typer.Option(
        None, "--host-id", help="Database host id (default host if omitted)"
    ),
) -> None:
    """Create a new tenant.

    The tenant is registered in the catalog and its database is created
    by the provisioning worker.
    """
    from tenant_db.modules.tenants.schemas import ProvisionTenantParams
    from tenantctl.utils import parse_uuid, run_with_manager

    database_host_id: UUID | None = None
    if host_id is not None:
        database_host_id = parse_uuid(host_id)
        if database_host_id is None:
            console.print(f"[red]Error:[/red] Invalid host id: {host_id}")
            raise typer.Exit(1)

    console.print("\n[bold cyan]Creating tenant...[/bold cyan]")
    console.print(f"  Slug: {slug}")
    console.print(f"  Name: {name}")
    console.print(f"  Tier: {tier.value}\n")

    try:
        params = ProvisionTenantParams(
            organization_id=organization_id or str(uuid4()),
            slug=slug,
            name=name,
            tier=tier,
            database_host_id=database_host_id,
        )
        tenant = run_with_manager(lambda manager: manager.provision_async(params))
    except Exception as e:
        console.print(f"[red]Error:[/red] Failed to create tenant: {e}")
        raise typer.Exit(1)

    console.print("[green]✓[/green] Tenant registered, provisioning queued\n")
    console.print(f"  ID: {tenant.id}")
    console.print(f"  Organization ID: {tenant.organization_id}")
    console.print(f"  Database: {tenant.database_name}")
    console.print(f"  Host: {tenant.host}:{tenant.port}")
    console.print(f"  Region: {tenant.region or 'N/A'}")
    console.print(f"  Status: {tenant.status.value}")
    console.print()
