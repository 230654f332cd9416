"""
School Admin CLI.

Command-line interface for common operations.
"""

import sys
from pathlib import Path

# Add backend to path for imports
sys.path.insert(0, str(Path(__file__).parent))

import typer
from rich.console import Console
from rich.table import Table
from rich.tree import Tree

app = typer.Typer(
    name="school-admin",
    help="School Admin management CLI",
    add_completion=False,
)
console = Console()


# =============================================================================
# Database Commands
# =============================================================================

@app.command()
def db_init():
    """Create all tables that do not exist yet."""
    from shared.infrastructure.db import engine
    from rest_api.models import Base

    console.print(f"[blue]Creating tables on: {engine.url.render_as_string(hide_password=True)}[/blue]")
    try:
        Base.metadata.create_all(bind=engine)
    except Exception as e:
        console.print(f"[red]✗ Table creation failed: {e}[/red]")
        raise typer.Exit(1)
    console.print(f"[green]✓ {len(Base.metadata.tables)} tables ready[/green]")


# =============================================================================
# Organization Commands
# =============================================================================

def _add_chart_nodes(branch: Tree, nodes) -> None:
    for node in nodes:
        label = f"[cyan]{node.type}[/cyan] {node.name}"
        if node.code:
            label += f" [dim]({node.code})[/dim]"
        if node.status != "active":
            label += f" [yellow]{node.status}[/yellow]"
        _add_chart_nodes(branch.add(label), node.children)


def _add_department_nodes(branch: Tree, nodes) -> None:
    for node in nodes:
        label = node.name if not node.department_type else f"{node.name} [dim]{node.department_type}[/dim]"
        _add_department_nodes(branch.add(label), node.children)


@app.command()
def org_tree(
    company_id: str = typer.Argument(..., help="Company id"),
    departments: bool = typer.Option(True, help="Also print the department tree"),
):
    """Print the organization chart of a company."""
    from shared.infrastructure.db import get_db_context
    from shared.utils.exceptions import NotFoundError
    from rest_api.services.domain import OrgChartService

    with get_db_context() as db:
        try:
            chart = OrgChartService(db).chart(company_id)
        except NotFoundError:
            console.print(f"[red]✗ Company {company_id} not found[/red]")
            raise typer.Exit(1)

    root = Tree("[bold]Organization[/bold]")
    _add_chart_nodes(root, chart.roots)
    console.print(root)

    if departments and chart.departments:
        dept_root = Tree("[bold]Departments[/bold]")
        _add_department_nodes(dept_root, chart.departments)
        console.print(dept_root)

    table = Table(title="Totals")
    table.add_column("Type", style="cyan")
    table.add_column("Count", style="green")
    for name, count in chart.totals.items():
        table.add_row(name, str(count))
    console.print(table)


# =============================================================================
# Health Commands
# =============================================================================

@app.command()
def health(
    url: str = typer.Option("http://localhost:8000", help="REST API base URL"),
):
    """Check system health."""
    import time
    import httpx

    table = Table(title="Service Health")
    table.add_column("Check", style="cyan")
    table.add_column("Status", style="green")
    table.add_column("Response Time", style="yellow")

    with httpx.Client(timeout=5.0) as client:
        for name, path in (("REST API", "/api/health"), ("Dependencies", "/api/health/detailed")):
            try:
                start = time.time()
                response = client.get(f"{url}{path}")
                elapsed = (time.time() - start) * 1000

                if response.status_code == 200:
                    table.add_row(name, "✓ Healthy", f"{elapsed:.0f}ms")
                else:
                    table.add_row(name, f"✗ Status {response.status_code}", f"{elapsed:.0f}ms")
            except httpx.HTTPError as e:
                table.add_row(name, f"✗ {type(e).__name__}", "-")

    console.print(table)


@app.command()
def version():
    """Show version information."""
    table = Table(title="School Admin Version")
    table.add_column("Component", style="cyan")
    table.add_column("Version", style="green")

    table.add_row("API", "0.1.0")
    table.add_row("Python", sys.version.split()[0])

    console.print(table)


if __name__ == "__main__":
    app()
