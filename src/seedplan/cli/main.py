"""CLI commands for seedplan."""

import asyncio
import logging
import sys
from pathlib import Path

import click

from seedplan.backends import DirectBackend
from seedplan.client import SeedClient
from seedplan.codegen import render_descriptors
from seedplan.config import Config
from seedplan.exceptions import SeedPlanError
from seedplan.models import Schema
from seedplan.store import load_store_data


def _load_schema(path: str) -> Schema:
    try:
        return Schema.from_file(path)
    except SeedPlanError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


@click.group()
@click.version_option(package_name="seedplan")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose: bool) -> None:
    """seedplan - deterministic relational seed data generation."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@cli.command()
@click.argument("schema", type=click.Path(exists=True, dir_okay=False))
def validate(schema: str) -> None:
    """Validate a schema description."""
    loaded = _load_schema(schema)
    click.echo(f"✓ Valid schema: {len(loaded.table_names)} tables")


@cli.command()
@click.argument("schema", type=click.Path(exists=True, dir_okay=False))
@click.option("--output", "-o", type=click.Path(dir_okay=False), help="Write to file")
def describe(schema: str, output: str | None) -> None:
    """Print per-table data-shape descriptors (Python source)."""
    source = render_descriptors(_load_schema(schema))
    if output:
        Path(output).write_text(source)
        click.echo(f"✓ Wrote {output}")
    else:
        click.echo(source, nl=False)


@cli.command()
@click.argument("schema", type=click.Path(exists=True, dir_okay=False))
@click.option("--table", "-t", required=True, help="Table to generate")
@click.option("--count", "-n", type=int, default=1, help="Number of rows (default: 1)")
@click.option("--seed", help="Root seed (default: config)")
@click.option("--auto-connect", is_flag=True, help="Connect to existing rows")
@click.option(
    "--store",
    "store_path",
    type=click.Path(exists=True, dir_okay=False),
    help="YAML/JSON rows that already exist in the database",
)
@click.option("--config", "config_path", type=click.Path(exists=True), help="seedplan.toml")
@click.option("--database-url", help="Execute the statements on this database")
def sql(
    schema: str,
    table: str,
    count: int,
    seed: str | None,
    auto_connect: bool,
    store_path: str | None,
    config_path: str | None,
    database_url: str | None,
) -> None:
    """Generate rows and print (or execute) their INSERT statements."""
    config = Config.from_toml(config_path) if config_path else Config.find_and_load()
    try:
        client = SeedClient(
            _load_schema(schema),
            seed=seed,
            auto_connect=True if auto_connect else None,
            config=config,
        )
        initial = None
        if store_path:
            initial = client.create_store(load_store_data(store_path), external=True)
        store = client.generate(table, lambda x: x(count)).run(initial)

        url = database_url or config.database.url
        if url:
            backend = DirectBackend.connect(url)
            try:
                client.db = backend
                statements = asyncio.run(client.persist(store))
            finally:
                backend.close()
            click.echo(f"✓ Inserted {len(statements)} rows")
        else:
            for statement in store.to_sql():
                click.echo(statement)
    except SeedPlanError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


if __name__ == "__main__":
    cli()
