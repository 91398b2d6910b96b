"""Sales funnel CLI - serve the app and manage accounts from the shell."""

from __future__ import annotations

import asyncio
import logging

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .config import settings

app = typer.Typer(
    name="salesfunnel",
    help="Sales funnel manager - web app, accounts and pipeline statistics",
    no_args_is_help=True,
)
console = Console()


def _configure_logging() -> None:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@app.callback()
def main():
    """Configure logging before any command runs."""
    _configure_logging()


@app.command()
def serve(
    port: int = typer.Option(8030, "--port", "-p", help="Port to run on"),
    host: str = typer.Option("127.0.0.1", "--host", help="Host to bind to"),
    reload: bool = typer.Option(False, "--reload", help="Reload on code changes"),
):
    """Launch the sales funnel web UI + API."""
    import uvicorn

    console.print(f"[bold cyan]Starting {settings.app_title} at http://{host}:{port}[/bold cyan]")
    uvicorn.run(
        "salesfunnel.app:app",
        host=host,
        port=port,
        reload=reload,
        log_level=settings.log_level.lower(),
    )


@app.command("init-db")
def init_db():
    """Create all tables in the configured database."""
    from .database import create_tables

    asyncio.run(create_tables())
    console.print(f"[green]Tables created[/green] in {settings.database_url}")


@app.command("create-user")
def create_user(
    username: str = typer.Argument(..., help="Unique username"),
    email: str = typer.Argument(..., help="Login email"),
    password: str = typer.Option(
        ..., "--password", prompt=True, hide_input=True, confirmation_prompt=True
    ),
    location: str = typer.Option(None, "--location", help="Optional location"),
):
    """Register an account without going through the web form."""
    from .database import async_session_factory, create_tables
    from .errors import ConflictError, ValidationFailed
    from .schemas.account import UserRegister
    from .services import account_svc

    async def _run():
        await create_tables()
        async with async_session_factory() as db:
            return await account_svc.register_account(
                db,
                UserRegister(username=username, email=email, password=password, location=location),
            )

    try:
        account = asyncio.run(_run())
    except ValidationFailed as exc:
        for err in exc.errors:
            console.print(f"[red]{err.field}:[/red] {err.message}")
        raise typer.Exit(1)
    except ConflictError as exc:
        console.print(f"[red]{exc.message}[/red]")
        raise typer.Exit(1)

    console.print(Panel(f"[green]Account created[/green]\n\n{account.username} <{account.email}>", title="Users"))


@app.command()
def stats(
    email: str = typer.Argument(..., help="Account email whose funnel to summarize"),
):
    """Print dashboard statistics for one account."""
    from sqlalchemy import select

    from .database import async_session_factory
    from .models.account import UserAccount
    from .services import stats_svc

    async def _run():
        async with async_session_factory() as db:
            account = (
                await db.execute(
                    select(UserAccount).where(UserAccount.email == email.strip().lower())
                )
            ).scalar_one_or_none()
            if not account:
                return None
            return await stats_svc.funnel_stats(db, account.id)

    summary = asyncio.run(_run())
    if summary is None:
        console.print(f"[red]No account for {email}[/red]")
        raise typer.Exit(1)

    table = Table(title=f"Funnel Summary - {email}")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green", justify="right")
    table.add_row("Total Revenue", f"${summary.total_revenue:,.2f}")
    table.add_row("Deals Won", str(summary.deals_won))
    table.add_row("Pipeline Value", f"${summary.pipeline_value:,.2f}")
    table.add_row("Conversion Rate", f"{summary.conversion_rate}%")
    console.print(table)

    if summary.stages:
        by_stage = Table(title="By Stage")
        by_stage.add_column("Stage", style="cyan")
        by_stage.add_column("Deals", justify="right")
        by_stage.add_column("Total Value", justify="right")
        by_stage.add_column("Expected Revenue", justify="right")
        for rollup in summary.stages:
            by_stage.add_row(
                str(rollup.stage),
                str(rollup.deal_count),
                f"${rollup.total_value:,.2f}",
                f"${rollup.total_expected_revenue:,.2f}",
            )
        console.print(by_stage)


if __name__ == "__main__":
    app()
