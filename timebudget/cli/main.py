"""
timebudget CLI - Main Entry Point

Unified Typer CLI that assembles all module sub-commands.

Usage:
    timebudget version
    timebudget migrate
    timebudget serve
    timebudget report [command]
    timebudget ledger [command]
    timebudget timetracker [command]
"""

import importlib

import typer

import timebudget

app = typer.Typer(
    name="timebudget",
    help="Timesheet and project budget tracking.",
    no_args_is_help=True,
)


@app.command()
def version():
    """Show timebudget version."""
    typer.echo(f"timebudget {timebudget.__version__}")


@app.command()
def migrate():
    """Run database schema migrations for all modules."""
    from timebudget.core.db import migrate_all

    migrate_all()
    typer.echo("Database migration complete.")


@app.command()
def serve(
    port: int = typer.Option(None, "--port", "-p", help="Port number (default: server.port)"),
    host: str = typer.Option(None, "--host", "-h", help="Host address (default: 0.0.0.0 prod, 127.0.0.1 debug)"),
    debug: bool = typer.Option(False, "--debug", help="Use Flask dev server with auto-reload (localhost only)"),
    threads: int = typer.Option(None, "--threads", "-t", help="Waitress worker threads (default: server.threads)"),
):
    """Launch the timebudget JSON API.

    Default: Waitress production server on 0.0.0.0.
    With --debug: Flask dev server on 127.0.0.1 with auto-reload.
    """
    from waitress import serve as waitress_serve

    from timebudget.api import create_app
    from timebudget.core.config import get_config_value

    port = port or get_config_value("server", "port", default=5000)
    threads = threads or get_config_value("server", "threads", default=8)
    web = create_app()

    if debug:
        _host = host or "127.0.0.1"
        typer.echo(f"Starting Flask dev server at http://{_host}:{port}")
        web.run(host=_host, port=port, debug=True)
    else:
        _host = host or "0.0.0.0"
        typer.echo(f"Starting Waitress production server on {_host}:{port} ({threads} threads)")
        waitress_serve(web, host=_host, port=port, threads=threads)


MODULE_REGISTRY = [
    ("timebudget.reporting.cli", "report", "Monthly breakdown & lifetime budget reports"),
    ("timebudget.projects.cli", "ledger", "Budget injections & recurring budgets"),
    ("timebudget.timetracker.cli", "timetracker", "Time entries & monthly cost summaries"),
]


def _register_modules():
    """Register module CLI sub-apps."""
    for module_path, name, help_text in MODULE_REGISTRY:
        mod = importlib.import_module(module_path)
        app.add_typer(mod.app, name=name, help=help_text)


_register_modules()


def main():
    """Entry point for the timebudget CLI."""
    app()


if __name__ == "__main__":
    main()
