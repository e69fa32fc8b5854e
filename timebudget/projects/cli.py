"""Budget ledger CLI sub-commands."""

import typer

app = typer.Typer(no_args_is_help=True)


@app.command()
def injections(
    project_id: int = typer.Argument(..., help="Project ID"),
):
    """List one-off budget injections and the lifetime total."""
    from timebudget.core import get_db
    from timebudget.projects.ledger import get_lifetime_budget, list_budget_injections

    with get_db(readonly=True) as conn:
        rows = list_budget_injections(conn, project_id)
        total = get_lifetime_budget(conn, project_id)

    if not rows:
        typer.echo("No budget injections.")
        return

    typer.echo(f"  {'ID':>5}  {'Date':<12} {'Amount':>12}  Description")
    for r in rows:
        typer.echo(f"  {r['id']:>5}  {r['date']:<12} {float(r['amount']):>12,.2f}  {r['description'] or ''}")
    typer.echo(f"\n  Lifetime budget: {float(total):,.2f}")


@app.command()
def recurring(
    project_id: int = typer.Argument(..., help="Project ID"),
    active_only: bool = typer.Option(False, "--active", help="Only the active definition"),
):
    """List recurring budget definitions."""
    from timebudget.core import get_db
    from timebudget.projects.ledger import list_recurring_budgets
    from timebudget.projects.recurring import monthly_share

    with get_db(readonly=True) as conn:
        rows = list_recurring_budgets(conn, project_id, include_inactive=not active_only)

    if not rows:
        typer.echo("No recurring budgets.")
        return

    for r in rows:
        status = "active" if r["is_active"] else f"inactive since {r['deactivated_on'] or '?'}"
        window = f"{r['start_date']} -> {r['end_date'] or 'open'}"
        typer.echo(
            f"  [{r['id']}] {float(r['amount']):,.2f} {r['frequency']} "
            f"({float(monthly_share(r['amount'], r['frequency'])):,.2f}/month)  {window}  {status}"
        )
