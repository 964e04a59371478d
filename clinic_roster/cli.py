"""Command Line Interface for Clinic Roster.

This module provides a Typer CLI for operators: inspecting the organization
directory, checking an organization's roster with an admin token, showing
configuration and running the API server.

Security Impact:
    - Roster output shows counts per doctor, never patient names
    - Secrets are masked when configuration is displayed
"""

import logging

import typer
from rich.console import Console
from rich.table import Table

from clinic_roster import __version__
from clinic_roster.adapters.credentials import JWTCredentialVerifier
from clinic_roster.adapters.storage import MongoDBAdapter
from clinic_roster.dashboard.services.organization_directory import OrganizationDirectory
from clinic_roster.dashboard.services.roster_service import RosterService
from clinic_roster.domain.ports import DocumentStorePort
from clinic_roster.domain.services.authorization_guard import AuthorizationGuard
from clinic_roster.infrastructure.settings import settings

app = typer.Typer(
    name="clinic-roster",
    help="Clinic Roster: organization directory and doctor roster service",
    add_completion=False
)
console = Console()

# Exit codes per roster failure kind
EXIT_CODES = {
    "Unavailable": 3,
    "NotFound": 4,
    "Unauthenticated": 5,
    "Forbidden": 6,
    "InternalFault": 1,
}


def create_document_store_cli() -> DocumentStorePort:
    """Create the document store adapter from configuration (CLI wrapper)."""
    try:
        return MongoDBAdapter(store_config=settings.document_store_config)
    except ValueError as e:
        console.print(f"[red]✗[/red] Invalid document store configuration: {str(e)}")
        raise typer.Exit(code=1)


@app.command()
def organizations() -> None:
    """List organizations as the dashboard directory shows them.

    Falls back to the seed organizations when the store is unavailable.
    """
    storage = create_document_store_cli()
    if not storage.is_available():
        console.print("[yellow]![/yellow] Document store unavailable; showing seed organizations")

    table = Table(title="Organizations")
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    for org in OrganizationDirectory(storage).list_organizations():
        table.add_row(org.id, org.name)
    console.print(table)


@app.command()
def doctors(
    organization_id: str = typer.Argument(..., help="Organization identifier"),
    token: str = typer.Option(..., "--token", "-t", envvar="ROSTER_TOKEN", help="Admin bearer token"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
) -> None:
    """Show an organization's doctors with patient and diagnosis counts.

    Examples:
        clinic-roster doctors 65f1c0ffee0000000000abcd --token $ROSTER_TOKEN
    """
    if verbose:
        logging.basicConfig(level=logging.DEBUG)

    try:
        auth_config = settings.auth_config
    except ValueError as e:
        console.print(f"[red]✗[/red] {str(e)}")
        raise typer.Exit(code=1)

    storage = create_document_store_cli()
    guard = AuthorizationGuard(JWTCredentialVerifier(auth_config), identity_claim=auth_config.identity_claim)
    service = RosterService(storage, guard, fanout_workers=settings.fanout_workers)

    result = service.list_doctors_with_records(organization_id, f"Bearer {token}")
    if result.is_failure():
        console.print(f"[red]✗[/red] {result.error_type}: {result.error}")
        raise typer.Exit(code=EXIT_CODES.get(result.error_type, 1))

    table = Table(title=f"Doctors of {organization_id}")
    table.add_column("ID", style="cyan")
    table.add_column("Email")
    table.add_column("Name")
    table.add_column("Patients", justify="right")
    table.add_column("Diagnoses", justify="right")
    for doctor in result.value.doctors:
        table.add_row(
            doctor.id,
            doctor.email or "-",
            str(doctor.profile.get("name") or "-"),
            str(len(doctor.patients)),
            str(len(doctor.diagnoses)),
        )
    console.print(table)


@app.command()
def info() -> None:
    """Display configuration with secrets masked."""
    console.print("[bold blue]System Information[/bold blue]\n")

    store_config = settings.document_store_config
    info_table = Table(show_header=False, box=None, padding=(0, 2))
    info_table.add_row("Application:", settings.app_name)
    info_table.add_row("Environment:", settings.environment)
    info_table.add_row("Document Store:", store_config.masked_uri())
    info_table.add_row("Fan-out Workers:", str(settings.fanout_workers))
    try:
        auth_config = settings.auth_config
        info_table.add_row("JWT Algorithms:", ", ".join(auth_config.algorithms))
        info_table.add_row("Identity Claim:", auth_config.identity_claim)
        info_table.add_row(
            "JWT Secret:",
            "[yellow]development default[/yellow]" if auth_config.uses_development_secret else "configured"
        )
    except ValueError as e:
        info_table.add_row("JWT Secret:", f"[red]{str(e)}[/red]")

    console.print(info_table)


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", "--host", help="Bind address"),
    port: int = typer.Option(8000, "--port", "-p", help="Bind port"),
    reload: bool = typer.Option(False, "--reload", help="Reload on code changes"),
) -> None:
    """Run the dashboard API under uvicorn."""
    import uvicorn
    uvicorn.run(
        "clinic_roster.dashboard.api.main:app",
        host=host,
        port=port,
        reload=reload,
        log_level=settings.log_level.lower()
    )


@app.callback(invoke_without_command=True)
def main_callback(
    version: bool = typer.Option(False, "--version", help="Show version information")
) -> None:
    """Clinic Roster: organization directory and doctor roster service."""
    if version:
        console.print(f"Clinic Roster v{__version__}")
        raise typer.Exit()


if __name__ == "__main__":
    app()
