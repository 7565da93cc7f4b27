import asyncio
import json
import logging
from enum import Enum

import typer
from tortoise import Tortoise
from tortoise.exceptions import IntegrityError

from backoffice.core.config import TORTOISE_ORM_CONFIG
from backoffice.features.auth.models import User as AuthUser, UserRole
from backoffice.features.auth.security import get_password_hash
from backoffice.features.reports import service as report_service
from backoffice.features.reports.repository import get_report_readers

logger = logging.getLogger(__name__)

app = typer.Typer(name="backoffice-cli", help="CLI for managing back-office data and reports.")


# Shared async context manager for database connection
class DBConnection:
    async def __aenter__(self):
        await Tortoise.init(config=TORTOISE_ORM_CONFIG)
        await Tortoise.generate_schemas(safe=True) # Generate schema if it doesn't exist
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await Tortoise.close_connections()


# User management commands
user_app = typer.Typer(name="users", help="Manage user accounts.")
app.add_typer(user_app)

@user_app.command("create-admin")
def create_admin_user_command(
    full_name: str = typer.Option(..., prompt=True, help="Full name of the new admin."),
    email: str = typer.Option(..., prompt=True, help="Email (login) of the new admin."),
    password: str = typer.Option(..., prompt=True, hide_input=True, confirmation_prompt=True, help="Password for the new admin.")
):
    """Creates a new admin user."""
    asyncio.run(_create_admin_user(full_name, email, password))

async def _create_admin_user(full_name: str, email: str, password: str):
    """Async implementation for creating an admin user."""
    async with DBConnection():
        typer.echo(f"Attempting to create admin user: {full_name} ({email})...")
        if await AuthUser.filter(email=email).exists():
            typer.secho(f"Error: User with email '{email}' already exists.", fg=typer.colors.RED)
            raise typer.Exit(code=1)
        try:
            admin_user = await AuthUser.create(
                full_name=full_name,
                email=email,
                hashed_password=get_password_hash(password),
                role=UserRole.ADMIN,
                is_active=True
            )
        except IntegrityError as e:
            typer.secho(f"Error creating admin user: {e}", fg=typer.colors.RED)
            raise typer.Exit(code=1)
        typer.secho(f"Admin user '{admin_user.email}' created successfully with ID: {admin_user.public_id}", fg=typer.colors.GREEN)


# Report commands
report_app = typer.Typer(name="reports", help="Generate reports from the command line.")
app.add_typer(report_app)


class ReportKind(str, Enum):
    dashboard = "dashboard"
    products = "products"
    suppliers = "suppliers"
    users = "users"
    quotations = "quotations"
    reservations = "reservations"


GENERATORS = {
    ReportKind.products: report_service.generate_product_report,
    ReportKind.suppliers: report_service.generate_supplier_report,
    ReportKind.users: report_service.generate_user_report,
    ReportKind.quotations: report_service.generate_quotation_report,
    ReportKind.reservations: report_service.generate_reservation_report,
}


@report_app.command("show")
def show_report_command(
    kind: ReportKind = typer.Argument(..., help="Which report to generate."),
    period: int = typer.Option(report_service.DEFAULT_PERIOD_DAYS, min=0, help="Trailing window in days for recent counts."),
):
    """Prints a report as JSON."""
    asyncio.run(_show_report(kind, period))

async def _show_report(kind: ReportKind, period: int):
    async with DBConnection():
        readers = get_report_readers()
        try:
            if kind is ReportKind.dashboard:
                report = await report_service.generate_dashboard_overview(readers)
            else:
                report = await GENERATORS[kind](readers, period=period)
        except report_service.ReportError as e:
            typer.secho(f"Error generating {kind.value} report: {e}", fg=typer.colors.RED, err=True)
            raise typer.Exit(code=1)
        typer.echo(json.dumps(report.model_dump(mode="json", by_alias=True), indent=2))


if __name__ == "__main__":
    app()
