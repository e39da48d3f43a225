"""Command: tenantctl delete - Soft delete a tenant."""

from typing import TYPE_CHECKING

import typer
from rich.console import Console


if TYPE_CHECKING:
    from tenant_db.modules.tenants.manager import TenantLifecycleManager


console = Console()


async def soft_delete(
    manager: "TenantLifecycleManager",
    identifier: str,
    force: bool,
    user_id: str | None = None,
) -> int:
    """Soft delete the tenant, or describe what would happen without --force.

    Returns:
        Process exit code
    """
    from tenantctl.utils import resolve_tenant

    tenant = await resolve_tenant(manager, identifier)
    if tenant is None:
        console.print(f"[red]Error:[/red] Tenant not found: {identifier}")
        return 1

    if not force:
        console.print("[yellow]Warning:[/yellow] This will soft delete the tenant:")
        console.print(f"  - Tenant: {tenant.name} ({tenant.slug})")
        console.print("  - Status will be marked as 'deleted'")
        console.print("  - Database will be kept (can be recovered)\n")
        console.print("To confirm deletion, run with --force:")
        console.print(f"  tenantctl delete {identifier} --force\n")
        console.print("[dim]For permanent deletion, use: tenantctl purge[/dim]")
        return 0

    await manager.delete_tenant(tenant.organization_id, user_id=user_id)
    console.print(f"[green]✓[/green] Tenant soft deleted: {tenant.slug}")
    console.print("[dim]Database preserved (can be recovered)[/dim]")
    return 0


def delete(
    identifier: str = typer.Argument(..., help="Tenant slug or id"),
    force: bool = typer.Option(False, "--force", "-f", help="Confirm the deletion"),
    user_id: str | None = typer.Option(
        None, "--user-id", help="User the deletion is attributed to"
    ),
) -> None:
    """Soft delete a tenant.

    The tenant is marked deleted and its slug released. The physical
    database is preserved.
    """
    from tenantctl.utils import run_with_manager

    try:
        code = run_with_manager(
            lambda manager: soft_delete(manager, identifier, force, user_id)
        )
    except Exception as e:
        console.print(f"[red]Error:[/red] Failed to delete tenant: {e}")
        raise typer.Exit(1)

    raise typer.Exit(code)
