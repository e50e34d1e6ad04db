"""Command-line interface for administering the rewards service."""

from typing import Annotated

import typer
import uvicorn
from rich.console import Console
from rich.table import Table

from sacrewards.logging_config import configure_logging, get_logger
from sacrewards.settings import settings
from sacrewards.storage.db import Database
from sacrewards.storage.sql import SqlStorage

# Configure logging
configure_logging()
logger = get_logger(__name__)

# Create Typer app
app = typer.Typer(
    name="sacrewards",
    help="SAC Rewards - referral rewards administration",
    no_args_is_help=True,
)

# Rich console for pretty output
console = Console()


def _storage(database_url: str | None) -> SqlStorage:
    return SqlStorage(Database(database_url or settings.database_url))


DatabaseOption = Annotated[
    str | None, typer.Option("--database-url", "-d", help="Override the configured database URL")
]


@app.command("init")
def init_database(database_url: DatabaseOption = None) -> None:
    """Initialize the database and create tables."""
    console.print("[bold blue]Initializing database...[/bold blue]")
    storage = _storage(database_url)
    storage.create_tables()
    storage.close()
    console.print("[bold green]✓[/bold green] Database initialized successfully")


@app.command("make-admin")
def make_admin(
    email: Annotated[str, typer.Argument(help="Email of the user to promote")],
    revoke: Annotated[bool, typer.Option("--revoke", help="Remove admin rights instead")] = False,
    database_url: DatabaseOption = None,
) -> None:
    """Grant (or revoke) admin rights for a registered user."""
    storage = _storage(database_url)
    try:
        user = storage.get_user_by_email(email)
        if not user:
            console.print(f"[bold red]✗[/bold red] No user with email {email}")
            raise typer.Exit(code=1)

        storage.update_user(user.id, is_admin=not revoke)
        logger.info("admin_flag_changed", user_id=user.id, is_admin=not revoke)
    finally:
        storage.close()

    action = "revoked from" if revoke else "granted to"
    console.print(f"[bold green]✓[/bold green] Admin rights {action} {user.name} <{user.email}>")


@app.command("stats")
def show_stats(database_url: DatabaseOption = None) -> None:
    """Show the admin dashboard statistics."""
    storage = _storage(database_url)
    try:
        stats = storage.get_admin_stats()
    finally:
        storage.close()

    table = Table(title="Referral Program")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right", style="green")
    table.add_row("Total users", str(stats.total_users))
    table.add_row("Active referrers", str(stats.active_referrers))
    table.add_row("Total payouts", f"{stats.total_payouts:,.2f}")
    table.add_row("Pending reviews", str(stats.pending_reviews))
    console.print(table)


@app.command("serve")
def serve(
    host: Annotated[str, typer.Option("--host", help="Bind address")] = "0.0.0.0",
    port: Annotated[int, typer.Option("--port", "-p", help="Port")] = 5000,
    reload: Annotated[bool, typer.Option("--reload", help="Reload on code changes")] = False,
) -> None:
    """Run the API server."""
    uvicorn.run("sacrewards.api.main:create_app", factory=True, host=host, port=port, reload=reload)


if __name__ == "__main__":
    app()
