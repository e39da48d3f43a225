"""Command: tenantctl purge - Permanently destroy a tenant database."""

from typing import TYPE_CHECKING

import typer
from rich.console import Console
from rich.panel import Panel


if TYPE_CHECKING:
    from tenant_db.modules.tenants.manager import TenantLifecycleManager


console = Console()


async def purge_tenant(manager: "TenantLifecycleManager", identifier: str, force: bool) -> int:
    """Purge the tenant, or print the danger-zone warning without --force.

    Returns:
        Process exit code
    """
    from tenantctl.utils import resolve_tenant

    tenant = await resolve_tenant(manager, identifier)
    if tenant is None:
        console.print(f"[red]Error:[/red] Tenant not found: {identifier}")
        return 1

    if not force:
        console.print(
            Panel(
                "This will PERMANENTLY delete:\n"
                f"  - Tenant: {tenant.name} ({tenant.slug})\n"
                f"  - Database: {tenant.database_name}\n"
                "  - All data in the database\n"
                "  - All activity logs and metrics\n\n"
                "[bold]THIS CANNOT BE UNDONE![/bold]",
                title="[bold red]DANGER ZONE[/bold red]",
                border_style="red",
            )
        )
        console.print("To confirm permanent deletion, run:")
        console.print(f"  tenantctl purge {identifier} --force\n")
        console.print("[dim]For a recoverable soft delete, use: tenantctl delete[/dim]")
        return 0

    await manager.purge_tenant(tenant.organization_id)
    console.print(f"[green]✓[/green] Tenant permanently purged: {tenant.slug}")
    console.print("[dim]Database dropped and catalog record removed[/dim]")
    return 0


def purge(
    identifier: str = typer.Argument(..., help="Tenant slug or id"),
    force: bool = typer.Option(False, "--force", "-f", help="Confirm the permanent deletion"),
) -> None:
    """Permanently purge a soft-deleted tenant.

    Drops the physical database and removes the catalog record along
    with its activity log and metrics. The tenant can be named by the
    slug it had before deletion.
    """
    from tenantctl.utils import run_with_manager

    try:
        code = run_with_manager(lambda manager: purge_tenant(manager, identifier, force))
    except Exception as e:
        console.print(f"[red]Error:[/red] Failed to purge tenant: {e}")
        raise typer.Exit(1)

    raise typer.Exit(code)
