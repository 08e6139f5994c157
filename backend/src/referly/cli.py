"""Command-line interface for Referly."""

from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from referly.context import AppContext, build_context
from referly.errors import NotFoundError
from referly.logging_config import configure_logging, get_logger
from referly.settings import Settings

logger = get_logger(__name__)

# Create Typer app
app = typer.Typer(
    name="referly",
    help="Referly - referral marketing backend",
    no_args_is_help=True,
)

# Rich console for pretty output
console = Console()


def _context() -> AppContext:
    settings = Settings()
    configure_logging(settings)
    return build_context(settings)


@app.command("init")
def init_database() -> None:
    """Initialize the database and create tables."""
    console.print("[bold blue]Initializing database...[/bold blue]")
    ctx = _context()
    ctx.database.create_tables()
    console.print("[bold green]✓[/bold green] Database initialized successfully")


@app.command("serve")
def serve(
    host: Annotated[str, typer.Option("--host", help="Bind address")] = "0.0.0.0",
    port: Annotated[int | None, typer.Option("--port", "-p", help="Port (defaults to PORT setting)")] = None,
    reload: Annotated[bool, typer.Option("--reload", help="Reload on code changes")] = False,
) -> None:
    """Run the HTTP API with uvicorn."""
    import uvicorn

    settings = Settings()
    uvicorn.run(
        "referly.api.main:create_app",
        factory=True,
        host=host,
        port=port or settings.port,
        reload=reload,
    )


@app.command("users")
def list_users() -> None:
    """List all users with their referral counters."""
    ctx = _context()
    users = ctx.users.list_users()

    if not users:
        console.print("[yellow]No users found[/yellow]")
        return

    table = Table(title="Users")
    table.add_column("ID", style="cyan")
    table.add_column("Name", style="green")
    table.add_column("Email")
    table.add_column("Code", style="magenta")
    table.add_column("Referred By")
    table.add_column("Referrals", justify="right")
    table.add_column("Rewards", justify="right")

    for user in users:
        table.add_row(
            str(user.id),
            user.name or "-",
            user.email,
            user.referral_code,
            user.referred_by or "-",
            str(user.referral_count),
            str(user.rewards),
        )

    console.print(table)


@app.command("campaigns")
def list_campaigns() -> None:
    """List all campaigns."""
    ctx = _context()
    campaigns = ctx.campaigns.list_all()

    if not campaigns:
        console.print("[yellow]No campaigns found[/yellow]")
        return

    table = Table(title="Campaigns")
    table.add_column("ID", style="cyan")
    table.add_column("Title", style="green")
    table.add_column("Period")
    table.add_column("Reward")
    table.add_column("Status")

    for campaign in campaigns:
        start = campaign.start_date.isoformat() if campaign.start_date else "?"
        end = campaign.end_date.isoformat() if campaign.end_date else "?"
        reward = " / ".join(part for part in (campaign.reward_type, campaign.reward_format) if part) or "-"
        table.add_row(
            str(campaign.id),
            campaign.title,
            f"{start} → {end}",
            reward,
            campaign.status.value,
        )

    console.print(table)


@app.command("referrals")
def show_referrals(
    code: Annotated[str, typer.Argument(help="Referral code of the referrer")],
) -> None:
    """Show the referral ledger for one code."""
    ctx = _context()
    try:
        stats = ctx.users.referral_stats(code)
    except NotFoundError:
        console.print(f"[bold red]✗[/bold red] Referral code {code} not found")
        raise typer.Exit(code=1)

    console.print(f"[bold]Code:[/bold] {stats.referral_code}")
    console.print(f"  Referrals: {stats.referral_count}")
    console.print(f"  Rewards: {stats.rewards}")

    if not stats.referrals:
        console.print("[yellow]No referees yet[/yellow]")
        return

    table = Table(title=f"Referees of {stats.referral_code}")
    table.add_column("Referee", style="green")
    table.add_column("Logins", justify="right")
    table.add_column("Since")

    for entry in stats.referrals:
        table.add_row(
            entry.referee,
            str(entry.login_count),
            entry.created_at.strftime("%Y-%m-%d %H:%M"),
        )

    console.print(table)


if __name__ == "__main__":
    app()
