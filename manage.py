import asyncio
import json
from pathlib import Path
import subprocess

from rich import print
from rich.table import Table
import typer

from vault.core.config import settings

app = typer.Typer()


async def create_tables_task() -> None:
    """Create every mapped table that does not exist yet."""
    from vault.core.db import dispose_db, init_db

    print("[yellow]Creating database tables[/yellow]")
    try:
        await init_db()
        print("[green]Database tables ensured[/green]")
    finally:
        await dispose_db()


async def sweep_codes_task() -> int:
    from vault.core.db import dispose_db
    from vault.infrastructure.scheduler.jobs import sweep_one_time_codes

    try:
        return await sweep_one_time_codes()
    finally:
        await dispose_db()


@app.command()
def createtables():
    """
    Creates the database tables for all models.

    Safe to run repeatedly; existing tables are left untouched.
    """
    asyncio.run(create_tables_task())


@app.command()
def sweepcodes():
    """
    Deletes consumed and expired one-time codes once, outside the scheduler.
    """
    deleted = asyncio.run(sweep_codes_task())
    print(f"[green]Deleted {deleted} spent one-time code(s)[/green]")


@app.command()
def channels():
    """Show which step-up delivery channels the current settings enable."""
    from vault.core.services import BrevoService, TwilioService

    email = BrevoService.is_configured()
    sms = TwilioService.is_configured()

    table = Table(title="Delivery channels")
    table.add_column("Channel")
    table.add_column("Provider")
    table.add_column("Configured")

    table.add_row("email", "Brevo", "[green]yes[/green]" if email else "[red]no[/red]")
    table.add_row("sms", "Twilio", "[green]yes[/green]" if sms else "[red]no[/red]")
    print(table)

    if not (email or sms):
        print("[yellow]No channel configured: step-up requests will fail with 503[/yellow]")


@app.command()
def runserver():
    try:
        server_command = (
            "uvicorn vault.main:app --host 127.0.0.1 --port 8000 --reload"
            if settings.DEBUG
            else "uvicorn vault.main:app --host 0.0.0.0 --port 8000"
        )
        print(f"Running FastAPI server: {server_command}")
        subprocess.run(server_command, shell=True, check=True)
    except subprocess.CalledProcessError as e:
        print(f"[red]Error:[/red] {e}")
        raise


@app.command()
def runscheduler():
    """
    Run the APScheduler worker as its own process.
    """
    from vault.infrastructure.scheduler.main import main

    asyncio.run(main())


@app.command()
def generateopenapi():
    """
    Generates the OpenAPI schema for the FastAPI application and saves it to openapi.json.
    """
    from vault.main import app as fastapi_app

    openapi_path = Path("openapi.json")
    with openapi_path.open("w", encoding="utf-8") as f:
        json.dump(fastapi_app.openapi(), f, ensure_ascii=False, indent=2)
    print(f"[green]OpenAPI schema generated at {openapi_path.name}[/green]")


if __name__ == "__main__":
    app()
