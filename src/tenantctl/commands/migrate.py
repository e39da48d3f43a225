"""Commands: tenantctl migrate / migrate-all - Apply tenant schema migrations."""

from typing import TYPE_CHECKING

import typer
from rich.console import Console
from rich.table import Table

from tenant_db.core.constants import DEFAULT_MIGRATION_CONCURRENCY


if TYPE_CHECKING:
    from tenant_db.modules.tenants.manager import TenantLifecycleManager


console = Console()


async def migrate_one(manager: "TenantLifecycleManager", identifier: str) -> int:
    from tenantctl.utils import resolve_tenant

    tenant = await resolve_tenant(manager, identifier)
    if tenant is None:
        console.print(f"[red]Error:[/red] Tenant not found: {identifier}")
        return 1

    await manager.migrate_tenant(tenant.id)
    console.print(f"[green]✓[/green] Migrated tenant: {tenant.slug}")
    return 0


async def migrate_every(
    manager: "TenantLifecycleManager",
    parallel: bool,
    max_concurrency: int,
    continue_on_error: bool,
) -> int:
    results = await manager.migrate_all(
        parallel=parallel,
        max_concurrency=max_concurrency,
        continue_on_error=continue_on_error,
    )

    failed = [r for r in results if not r.success]

    table = Table(title="Migration Results", show_header=True)
    table.add_column("Tenant", style="cyan", no_wrap=True)
    table.add_column("Result", no_wrap=True)
    table.add_column("Duration", justify="right")
    table.add_column("Error")
    for r in results:
        table.add_row(
            r.slug,
            "[green]ok[/green]" if r.success else "[red]failed[/red]",
            f"{r.duration_ms} ms",
            r.error or "",
        )

    console.print()
    console.print(table)
    console.print(
        f"\nTotal: {len(results)}  Succeeded: {len(results) - len(failed)}  "
        f"Failed: {len(failed)}\n"
    )
    return 1 if failed else 0


def migrate(
    identifier: str = typer.Argument(..., help="Tenant slug or id"),
) -> None:
    """Apply pending schema migrations to one tenant."""
    from tenantctl.utils import run_with_manager

    try:
        code = run_with_manager(lambda manager: migrate_one(manager, identifier))
    except Exception as e:
        console.print(f"[red]Error:[/red] Migration failed: {e}")
        raise typer.Exit(1)

    raise typer.Exit(code)


def migrate_all(
    parallel: str = typer.Option("true", "--parallel", help="Migrate in concurrent chunks"),
    max_concurrency: int = typer.Option(
        DEFAULT_MIGRATION_CONCURRENCY,
        "--max-concurrency",
        min=1,
        help="Tenants migrated at once in parallel mode",
    ),
    continue_on_error: str = typer.Option(
        "false", "--continue-on-error", help="Keep going after a failed tenant"
    ),
) -> None:
    """Apply pending schema migrations to every active tenant.

    Exits with status 1 if any tenant failed.
    """
    from tenantctl.utils import parse_bool, run_with_manager

    parallel_mode = parse_bool(parallel)
    keep_going = parse_bool(continue_on_error)

    console.print("\n[bold cyan]Migrating all active tenants...[/bold cyan]")
    console.print(f"  Parallel: {parallel_mode}")
    console.print(f"  Max concurrency: {max_concurrency}")
    console.print(f"  Continue on error: {keep_going}")

    try:
        code = run_with_manager(
            lambda manager: migrate_every(manager, parallel_mode, max_concurrency, keep_going)
        )
    except Exception as e:
        console.print(f"[red]Error:[/red] Migration failed: {e}")
        raise typer.Exit(1)

    raise typer.Exit(code)
