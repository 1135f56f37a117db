"""Command-line interface for CitySec Geocoder using Typer."""

import json
from pathlib import Path

import typer
from loguru import logger
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn, BarColumn, MofNCompleteColumn
from rich.table import Table

from citysec_geocoder.address_parser import parse_address
from citysec_geocoder.config import get_settings
from citysec_geocoder.csv_reader import (
    DEFAULT_ADDRESS_COLUMN,
    addresses_from_dataframe,
    read_address_csv,
    results_to_dataframe,
)
from citysec_geocoder.database import init_database, get_engine, get_session
from citysec_geocoder.geocoder import resolve_address, resolve_addresses
from citysec_geocoder.logging import setup_logging
from citysec_geocoder.models import Base

app = typer.Typer(
    name="citysec-geocoder",
    help="CitySec Geocoder: resolve Peruvian street addresses to GPS coordinates",
    add_completion=True,
)

console = Console()


@app.callback()
def main(
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose logging (DEBUG level)",
    ),
) -> None:
    """
    Geocode Peruvian street addresses from the local store or Nominatim.
    """
    settings = get_settings()
    if verbose:
        settings.log_level = "DEBUG"
    setup_logging(settings)

    logger.debug(
        "Locality {} ({}), Nominatim at {} (enabled={})",
        settings.locality.district,
        settings.locality.ubigeo_code,
        settings.nominatim.base_url,
        settings.nominatim.enabled,
    )


@app.command()
def init_db(
    drop: bool = typer.Option(
        False,
        "--drop",
        help="Drop the calles and direcciones tables first (all reference geocodes are lost)",
    ),
    yes: bool = typer.Option(
        False,
        "--yes",
        "-y",
        help="Do not ask for confirmation before dropping",
    ),
) -> None:
    """Create the calles/direcciones tables for a development address store."""
    logger.info("init-db command called with drop={}", drop)

    settings = get_settings()
    tables = ", ".join(table.name for table in Base.metadata.sorted_tables)

    if drop and not yes:
        typer.confirm(
            f"Drop {tables} and every reference geocode they hold?",
            abort=True,
        )

    try:
        init_database(drop_tables=drop, settings=settings)
    except Exception as e:
        logger.error("Could not create the address store: {}", str(e))
        typer.secho(
            f"✗ Could not create {tables}: {str(e)}",
            fg=typer.colors.RED,
            bold=True,
        )
        raise typer.Exit(code=1)

    action = "Recreated" if drop else "Ensured"
    typer.secho(f"✓ {action} tables: {tables}", fg=typer.colors.GREEN, bold=True)


@app.command()
def parse(
    address: str = typer.Argument(..., help="Free-text address, e.g. 'Av. Ejército 450'"),
) -> None:
    """Show how an address is split into components."""
    logger.info("parse command called with address: {}", address)

    components = parse_address(address)

    table = Table(title="Address Components", show_header=True, header_style="bold magenta")
    table.add_column("Component", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Prefix", components.street_prefix or "-")
    table.add_row("Street name", components.street_name or "-")
    table.add_row("Full street", components.full_street or "-")
    table.add_row("House number", components.house_number or "-")
    table.add_row("Manzana", components.block or "-")
    table.add_row("Lote", components.lot or "-")

    console.print(table)


@app.command()
def resolve(
    address: str = typer.Argument(..., help="Free-text address to geocode"),
    as_json: bool = typer.Option(
        False,
        "--json",
        help="Print the result as JSON",
    ),
) -> None:
    """Geocode a single address (local store first, then Nominatim)."""
    logger.info("resolve command called with address: {}", address)

    settings = get_settings()

    try:
        engine = get_engine(settings)
        session = get_session(engine)

        try:
            result = resolve_address(address, session, settings)
        finally:
            session.close()
            engine.dispose()

    except Exception as e:
        logger.error("Geocoding failed: {}", str(e))
        typer.secho(
            f"✗ Geocoding failed: {str(e)}",
            fg=typer.colors.RED,
            bold=True,
        )
        raise typer.Exit(code=1)

    if as_json:
        typer.echo(json.dumps(result.to_dict(), ensure_ascii=False, indent=2))
    elif result.success:
        typer.secho(
            f"✓ {result.latitude}, {result.longitude} "
            f"({result.location_type.value}, {result.method.value})",
            fg=typer.colors.GREEN,
            bold=True,
        )
        if result.reference_text:
            typer.echo(f"  Reference: {result.reference_text} (id={result.reference_id})")
        if result.numeric_distance is not None:
            typer.echo(f"  Numeric distance: {result.numeric_distance}")
        if result.display_name:
            typer.echo(f"  {result.display_name}")
    else:
        typer.secho(f"✗ {result.message}", fg=typer.colors.YELLOW, bold=True)

    if not result.success:
        raise typer.Exit(code=2)


@app.command()
def geocode_csv(
    input_file: Path = typer.Argument(..., help="CSV file with an address column"),
    output_file: Path = typer.Argument(..., help="Where to write the geocoded CSV"),
    column: str = typer.Option(
        DEFAULT_ADDRESS_COLUMN,
        "--column",
        "-c",
        help="Name of the address column",
    ),
    limit: int | None = typer.Option(
        None,
        "--limit",
        "-l",
        help="Only geocode the first N rows",
    ),
) -> None:
    """Geocode every address in a CSV file."""
    logger.info(
        "geocode-csv command called with input={}, output={}, column={}, limit={}",
        input_file,
        output_file,
        column,
        limit,
    )

    settings = get_settings()

    try:
        df = read_address_csv(str(input_file), column=column)
        if limit is not None:
            df = df.head(limit)
        addresses = addresses_from_dataframe(df, column=column)

        engine = get_engine(settings)
        session = get_session(engine)

        try:
            with Progress(
                SpinnerColumn(),
                TextColumn("[progress.description]{task.description}"),
                BarColumn(),
                MofNCompleteColumn(),
                transient=False,
            ) as progress:
                task = progress.add_task("Geocoding addresses...", total=len(addresses))

                results = resolve_addresses(
                    addresses,
                    session,
                    settings,
                    on_result=lambda _: progress.update(task, advance=1),
                )
        finally:
            session.close()
            engine.dispose()

        output = results_to_dataframe(df, results)
        output_file.parent.mkdir(parents=True, exist_ok=True)
        output.to_csv(output_file, index=False)

    except FileNotFoundError as e:
        logger.error("File not found: {}", str(e))
        typer.secho(
            f"✗ File not found: {input_file}",
            fg=typer.colors.RED,
            bold=True,
        )
        raise typer.Exit(code=1)

    except ValueError as e:
        logger.error("Validation error: {}", str(e))
        typer.secho(
            f"✗ CSV validation failed: {str(e)}",
            fg=typer.colors.RED,
            bold=True,
        )
        raise typer.Exit(code=1)

    except Exception as e:
        logger.error("Geocoding failed: {}", str(e))
        typer.secho(
            f"✗ Geocoding failed: {str(e)}",
            fg=typer.colors.RED,
            bold=True,
        )
        raise typer.Exit(code=1)

    total = len(results)
    from_database = sum(1 for r in results if r.success and r.method.value == "database")
    from_remote = sum(1 for r in results if r.success and r.method.value == "remote_api")
    unresolved = total - from_database - from_remote

    table = Table(title="Geocoding Results", show_header=True, header_style="bold magenta")
    table.add_column("Method", style="cyan")
    table.add_column("Count", justify="right", style="green")
    table.add_column("Percentage", justify="right", style="yellow")

    if total > 0:
        table.add_row("Local store", str(from_database), f"{from_database / total * 100:.1f}%")
        table.add_row("Nominatim", str(from_remote), f"{from_remote / total * 100:.1f}%")
        table.add_row("Not found", str(unresolved), f"{unresolved / total * 100:.1f}%")
        table.add_row("Total", str(total), "100.0%", style="bold")
    else:
        table.add_row("No addresses processed", "0", "0.0%")

    console.print(table)

    typer.secho(
        f"\n✓ Results written to {output_file}",
        fg=typer.colors.GREEN,
        bold=True,
    )


if __name__ == "__main__":
    app()
