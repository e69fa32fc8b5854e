"""Time Tracker CLI sub-commands."""

import typer

app = typer.Typer(no_args_is_help=True)


@app.command("generate-summaries")
def generate_summaries(
    as_of: str = typer.Option(None, "--as-of", help="Treat this date (YYYY-MM-DD) as today"),
):
    """Pre-aggregate closed months into monthly cost summaries."""
    from timebudget.core import get_db
    from timebudget.core.dates import parse_date
    from timebudget.core.errors import ValidationError
    from timebudget.timetracker.summaries import generate_monthly_summaries

    try:
        current = parse_date(as_of, "as_of", required=False)
    except ValidationError as exc:
        typer.echo(f"Error: {exc.message}")
        raise typer.Exit(1)

    with get_db() as conn:
        inserted = generate_monthly_summaries(conn, current_date=current)

    typer.echo(f"Monthly summaries: {inserted} new row(s).")
