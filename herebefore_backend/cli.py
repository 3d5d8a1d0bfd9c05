"""
Here Before Backend CLI Interface
Command line interface implemented using Typer
"""

import asyncio
from typing import Optional

import typer
import uvicorn

from herebefore_backend.config.loader import get_config
from herebefore_backend.core.errors import CheckInError
from herebefore_backend.core.logger import get_logger

logger = get_logger(__name__)


def start(
    host: Optional[str] = typer.Option(None, help="Server host address (default: server.host)"),
    port: Optional[int] = typer.Option(None, help="Server port (default: server.port)"),
    config_file: Optional[str] = typer.Option(None, help="Configuration file path"),
    debug: bool = typer.Option(False, help="Enable debug mode"),
):
    """Start the backend API server"""
    config = get_config(config_file)
    host = host or config.get("server.host", "127.0.0.1")
    port = port or config.get("server.port", 8000)

    logger.info("Starting Here Before backend service...")
    logger.info(f"Host: {host}, Port: {port}")
    logger.info(f"Debug mode: {debug}")

    uvicorn.run(
        "herebefore_backend.app:app",
        host=host,
        port=port,
        reload=debug,
        log_level="debug" if debug else "info",
    )


def refresh(
    config_file: Optional[str] = typer.Option(None, help="Configuration file path"),
):
    """Reconcile reminders for every episode once and print the pending count"""
    from herebefore_backend.system.runtime import get_runtime

    get_config(config_file)

    async def run_refresh() -> int:
        return await get_runtime().check_ins.refresh()

    try:
        count = asyncio.run(run_refresh())
    except CheckInError as e:
        logger.error(f"Refresh failed: {e}")
        raise typer.Exit(1)

    typer.echo(f"Pending check-ins: {count}")


def init_db(
    config_file: Optional[str] = typer.Option(None, help="Configuration file path"),
):
    """Initialize database"""
    from herebefore_backend.core.db import get_db

    get_config(config_file)
    logger.info("Initializing database...")
    try:
        db = get_db()
    except CheckInError as e:
        logger.error(f"Database initialization failed: {e}")
        raise typer.Exit(1)
    typer.echo(f"Database ready: {db.db_path}")


def main():
    """Main function"""
    app = typer.Typer()

    app.command()(start)
    app.command()(refresh)
    app.command()(init_db)

    app()


if __name__ == "__main__":
    main()
