#!/usr/bin/env python3
"""
Database migration runner for the IdSync tables.

Connects directly to the Supabase PostgreSQL database and applies the SQL
files in migrations/ in name order, recording each one with its checksum.

Usage:
    uv run python run_migrations.py                    # Apply pending migrations
    uv run python run_migrations.py --status           # Show migration status
    uv run python run_migrations.py --dry-run          # Show what would run

Configuration:
    Set SUPABASE_DB_URL in your .env file (Supabase Dashboard → Settings →
    Database → Connection string → URI).
"""

import argparse
import hashlib
import sys
from dataclasses import dataclass
from pathlib import Path

import psycopg2
from psycopg2 import sql
from rich.console import Console
from rich.table import Table

from shared.config import get_settings

console = Console()

MIGRATIONS_DIR = Path(__file__).parent / "migrations"
MIGRATIONS_TABLE = "_idsync_migrations"


@dataclass(frozen=True)
class Migration:
    name: str
    path: Path
    checksum: str

    @property
    def sql(self) -> str:
        return self.path.read_text()


def checksum_of(content: str) -> str:
    return hashlib.sha256(content.encode()).hexdigest()[:16]


def discover_migrations(directory: Path = MIGRATIONS_DIR) -> list[Migration]:
    """Migration files in application order."""
    if not directory.exists():
        return []
    return [
        Migration(name=path.name, path=path, checksum=checksum_of(path.read_text()))
        for path in sorted(directory.glob("*.sql"))
    ]


def get_db_connection():
    """Get a connection to the Supabase PostgreSQL database."""
    settings = get_settings()

    if not settings.supabase_db_url:
        console.print("[red]Error:[/red] SUPABASE_DB_URL is not set.")
        sys.exit(1)

    try:
        return psycopg2.connect(settings.supabase_db_url)
    except psycopg2.Error as e:
        console.print(f"[red]Database connection failed:[/red] {e}")
        sys.exit(1)


def ensure_migrations_table(conn) -> None:
    with conn.cursor() as cur:
        cur.execute(
            sql.SQL("""
                CREATE TABLE IF NOT EXISTS {} (
                    name VARCHAR(255) PRIMARY KEY,
                    checksum VARCHAR(64) NOT NULL,
                    applied_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
                )
            """).format(sql.Identifier(MIGRATIONS_TABLE))
        )
    conn.commit()


def get_applied(conn) -> dict[str, str]:
    """Applied migration names mapped to their recorded checksums."""
    with conn.cursor() as cur:
        cur.execute(
            sql.SQL("SELECT name, checksum FROM {} ORDER BY name").format(
                sql.Identifier(MIGRATIONS_TABLE)
            )
        )
        return {name: checksum for name, checksum in cur.fetchall()}


def plan(migrations: list[Migration], applied: dict[str, str]) -> tuple[list[Migration], list[Migration]]:
    """
    Split migrations into pending and modified-since-applied.

    Returns:
        Tuple of (pending, changed)
    """
    pending = [m for m in migrations if m.name not in applied]
    changed = [m for m in migrations if m.name in applied and applied[m.name] != m.checksum]
    return pending, changed


def apply(conn, migration: Migration) -> None:
    """Run one migration and record it, in a single transaction."""
    try:
        with conn.cursor() as cur:
            cur.execute(migration.sql)
            cur.execute(
                sql.SQL("INSERT INTO {} (name, checksum) VALUES (%s, %s)").format(
                    sql.Identifier(MIGRATIONS_TABLE)
                ),
                (migration.name, migration.checksum),
            )
        conn.commit()
    except psycopg2.Error:
        conn.rollback()
        raise


def show_status(migrations: list[Migration], applied: dict[str, str]) -> None:
    pending, changed = plan(migrations, applied)
    pending_names = {m.name for m in pending}
    changed_names = {m.name for m in changed}

    table = Table(title="Migration Status")
    table.add_column("Migration", style="cyan")
    table.add_column("Status")
    table.add_column("Checksum")

    for migration in migrations:
        if migration.name in pending_names:
            status = "[yellow]Pending[/yellow]"
        elif migration.name in changed_names:
            status = "[red]Changed since applied[/red]"
        else:
            status = "[green]Applied[/green]"
        table.add_row(migration.name, status, migration.checksum)

    console.print(table)


def main():
    parser = argparse.ArgumentParser(description="Apply IdSync database migrations")
    parser.add_argument("--status", action="store_true", help="Show status without running anything")
    parser.add_argument("--dry-run", action="store_true", help="List pending migrations without running them")
    args = parser.parse_args()

    migrations = discover_migrations()
    if not migrations:
        console.print(f"[yellow]No migrations found in {MIGRATIONS_DIR}[/yellow]")
        return

    conn = get_db_connection()
    try:
        ensure_migrations_table(conn)
        applied = get_applied(conn)

        if args.status:
            show_status(migrations, applied)
            return

        pending, changed = plan(migrations, applied)
        for migration in changed:
            console.print(f"[yellow]Warning:[/yellow] {migration.name} has changed since it was applied")
        if not pending:
            console.print("[green]All migrations are up to date[/green]")
            return

        for migration in pending:
            if args.dry_run:
                console.print(f"[cyan]Would run:[/cyan] {migration.name}")
                continue
            console.print(f"[blue]Running:[/blue] {migration.name}")
            try:
                apply(conn, migration)
            except psycopg2.Error as e:
                console.print(f"[red]✗[/red] {migration.name} failed: {e}")
                sys.exit(1)
            console.print(f"[green]✓[/green] {migration.name}")
    finally:
        conn.close()


if __name__ == "__main__":
    main()
