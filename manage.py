"""Management commands for the BarberBook application."""

from __future__ import annotations

import logging

import click

from barberbook.core.config import get_admin_credentials
from barberbook.db.seed import ensure_admin_user, seed_demo_data
from barberbook.db.session import create_tables

logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(message)s")


@click.group()
def cli() -> None:
    """Entry point for management commands."""


@cli.command("create-tables")
def create_tables_command() -> None:
    """Create any missing database tables."""
    create_tables()
    logging.info("Database tables ready.")


@cli.command("ensure-admin")
def ensure_admin() -> None:
    """Create or refresh the admin account from ADMIN_USERNAME / ADMIN_PASSWORD."""
    if get_admin_credentials() is None:
        raise click.ClickException(
            "ADMIN_USERNAME and ADMIN_PASSWORD environment variables must be set."
        )
    create_tables()
    admin_id = ensure_admin_user()
    logging.info("Admin account ready (id=%s).", admin_id)


@cli.command("seed-demo")
def seed_demo() -> None:
    """Populate an empty database with a demo business."""
    create_tables()
    summary = seed_demo_data()
    for key, value in summary.items():
        click.echo(f"{key}: {value}")


if __name__ == "__main__":
    cli()
