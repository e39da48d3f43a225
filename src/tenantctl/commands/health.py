"""Command: tenantctl health - Check tenant database health."""

from typing import TYPE_CHECKING

import typer
from rich.console import Console


if TYPE_CHECKING:
    from tenant_db.modules.tenants.manager import TenantLifecycleManager
    from tenant_db.modules.tenants.schemas import HealthCheckResult


console = Console()


def _print_result(result: "HealthCheckResult", verbose: bool = True) -> None:
    icon = "[green]✓[/green]" if result.healthy else "[red]✗[/red]"
    console.print(f"{icon} {result.slug}")
    if verbose:
        console.print(f"  Status: {result.status}")
        console.print(f"  Can connect: {result.can_connect}")
        console.print(f"  Database exists: {result.database_exists}")
        if result.extensions:
            console.print(f"  Extensions: {', '.join(result.extensions)}")
        if result.schema_version:
            console.print(f"  Schema version: {result.schema_version}")
    if result.error:
        console.print(f"  Error: {result.error}")


async def check_health(manager: "TenantLifecycleManager", identifier: str | None) -> int:
    """Check one tenant, or all of them when no identifier is given.

    Returns:
        Process exit code, 1 if any result is unhealthy
    """
    from tenantctl.utils import resolve_tenant

    if identifier is not None:
        tenant = await resolve_tenant(manager, identifier)
        if tenant is None:
            console.print(f"[red]Error:[/red] Tenant not found: {identifier}")
            return 1

        result = await manager.check_tenant_health(tenant.id)
        _print_result(result)
        return 0 if result.healthy else 1

    results = await manager.check_all_tenants_health()
    healthy = sum(1 for r in results if r.healthy)

    console.print("\n[bold]Health Check Results[/bold]")
    console.print(f"  Total: {len(results)}")
    console.print(f"  Healthy: {healthy}")
    console.print(f"  Unhealthy: {len(results) - healthy}\n")
    for result in results:
        _print_result(result, verbose=False)
    console.print()

    return 0 if healthy == len(results) else 1


def health(
    identifier: str | None = typer.Argument(None, help="Tenant slug or id (all if omitted)"),
) -> None:
    """Check connectivity and extensions for one or all tenants.

    Exits with status 1 if any tenant is unhealthy.
    """
    from tenantctl.utils import run_with_manager

    try:
        code = run_with_manager(lambda manager: check_health(manager, identifier))
    except Exception as e:
        console.print(f"[red]Error:[/red] Health check failed: {e}")
        raise typer.Exit(1)

    raise typer.Exit(code)
