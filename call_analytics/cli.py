import asyncio
from pathlib import Path
from typing import Optional

import typer
from alembic import command
from alembic.config import Config

from call_analytics.core.config import get_settings
from call_analytics.core.database import Database
from call_analytics.core.security import sign_payload

app = typer.Typer(help="Call analytics operator commands.")

ALEMBIC_INI = Path(__file__).resolve().parents[1] / "alembic.ini"


def alembic_config(database_url: Optional[str] = None) -> Config:
    config = Config(str(ALEMBIC_INI))
    config.set_main_option("script_location", str(ALEMBIC_INI.parent / "alembic"))
    if database_url:
        config.set_main_option("sqlalchemy.url", database_url)
    return config


@app.command("init-db")
def init_db():
    """Create any missing tables without running migrations."""

    async def _create() -> None:
        database = Database.from_settings(get_settings())
        try:
            await database.create_all()
        finally:
            await database.dispose()

    asyncio.run(_create())
    typer.echo("Tables created")


@app.command()
def migrate(revision: str = "head"):
    command.upgrade(alembic_config(get_settings().database_url), revision)
    typer.echo(f"Database upgraded to {revision}")


@app.command("sign-webhook")
def sign_webhook(
    payload_file: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True),
    secret: Optional[str] = typer.Option(None, envvar="ELEVENLABS_WEBHOOK_SECRET"),
    timestamp: Optional[int] = typer.Option(None, help="Unix seconds; defaults to now."),
):
    """Print an ElevenLabs-Signature header value for a payload file."""
    if not secret:
        typer.echo("A webhook secret is required", err=True)
        raise typer.Exit(code=1)
    body = payload_file.read_bytes().decode("utf-8")
    typer.echo(sign_payload(body, secret, timestamp))


@app.command()
def serve(host: Optional[str] = None, port: Optional[int] = None):
    from call_analytics.entrypoint import serve as run_server

    asyncio.run(run_server(host, port))


if __name__ == "__main__":
    app()
