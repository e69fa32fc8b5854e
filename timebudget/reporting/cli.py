"""Reporting CLI sub-commands."""

import typer

from timebudget.core.output import OutputFormat, format_result

app = typer.Typer(no_args_is_help=True)


@app.command()
def breakdown(
    project_id: int = typer.Argument(..., help="Project ID"),
    year: int = typer.Option(..., "--year", "-y", help="Report year"),
    month: int = typer.Option(..., "--month", "-m", help="Report month (1-12)"),
    include_idle: bool = typer.Option(False, "--include-idle", help="Show split departments with no time logged"),
    output_format: OutputFormat = typer.Option(OutputFormat.HUMAN, "--format", "-f", help="human | json | markdown"),
):
    """Monthly spend vs. retainer fee, by department and user."""
    from timebudget.core import get_db
    from timebudget.core.errors import TimeBudgetError
    from timebudget.reporting.breakdown import get_monthly_breakdown

    try:
        with get_db(readonly=True) as conn:
            report = get_monthly_breakdown(
                conn, project_id, year, month, include_idle_departments=include_idle
            )
    except TimeBudgetError as exc:
        typer.echo(f"Error: {exc.message}")
        raise typer.Exit(1)

    if output_format == OutputFormat.JSON:
        typer.echo(format_result(report, output_format))
        return

    title = f"{report.project['name']} - {report.year}-{report.month:02d}"
    typer.echo(format_result(report.month_data, output_format, title=title))
    typer.echo(f"  Total hours: {float(report.total_hours):.2f}")

    for dept in report.departments:
        typer.echo(f"\n  {dept.name}  ({float(dept.total_hours):.2f} hrs, {float(dept.total_spend):,.2f})")
        if dept.budget is not None:
            typer.echo(
                f"    Budget {float(dept.budget.retainer_fee):,.2f}  "
                f"leftover {float(dept.budget.leftover):,.2f}  "
                f"used {dept.budget.used_percentage}%"
            )
        for user in dept.users.values():
            weeks = " ".join(f"{float(h):6.2f}" for h in user.weekly_hours)
            typer.echo(
                f"    {user.name:<25} {float(user.total_hours):>7.2f} hrs "
                f"{float(user.total_spend):>10,.2f}   [{weeks}]"
            )


@app.command()
def lifetime(
    project_id: int = typer.Argument(..., help="Project ID"),
    output_format: OutputFormat = typer.Option(OutputFormat.HUMAN, "--format", "-f", help="human | json | markdown"),
):
    """Total injected budget vs. all-time spend."""
    from timebudget.core import get_db
    from timebudget.core.errors import TimeBudgetError
    from timebudget.reporting.lifetime import get_lifetime_summary

    try:
        with get_db(readonly=True) as conn:
            summary = get_lifetime_summary(conn, project_id)
    except TimeBudgetError as exc:
        typer.echo(f"Error: {exc.message}")
        raise typer.Exit(1)

    typer.echo(format_result(summary, output_format, title=f"Lifetime budget - {summary['project']['name']}"))
