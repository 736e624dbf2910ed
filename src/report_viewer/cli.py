from __future__ import annotations

import logging
from typing import Optional

import typer
from rich import print
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from report_viewer.config import resolve_settings
from report_viewer.errors import ReportIOError, ReportNotFoundError
from report_viewer.logging_setup import configure_logging
from report_viewer.models import ViewerSettings
from report_viewer.resolver import ReportResolver
from report_viewer.table import ReportTable, TableViewState
from report_viewer.web import serve

app = typer.Typer(help="Browse and serve generated HTML/CSV reports")
logger = logging.getLogger(__name__)


def _resolver(data_dir: Optional[str]) -> tuple[ReportResolver, ViewerSettings]:
    overrides = {"DATA_DIR": data_dir} if data_dir else None
    settings = resolve_settings(overrides)
    return ReportResolver(settings.data_dir, settings.display_name_prefix), settings


@app.command("list-reports")
def list_reports(
    data_dir: Optional[str] = typer.Option(None, help="Report data root (defaults to DATA_DIR)"),
) -> None:
    resolver, _ = _resolver(data_dir)
    try:
        reports = resolver.list_reports()
    except ReportIOError as exc:
        print(f"[red]Failed to list reports:[/red] {escape(str(exc))}")
        raise typer.Exit(code=1)

    if not reports:
        print(f"[yellow]No reports found in[/yellow] {resolver.data_dir}")
        return

    table = Table(title=escape(f"Reports in {resolver.data_dir}"))
    table.add_column("App name")
    table.add_column("Display name")
    table.add_column("CSV")
    for report in reports:
        table.add_row(report.app_name, report.display_name, "yes" if report.csv_path else "no")
    Console().print(table)


@app.command("show-report")
def show_report(
    app_name: str = typer.Argument(..., help="Report directory name"),
    board: list[str] = typer.Option([], "--board", help="Only show rows for this board. Repeat for more."),
    sort: Optional[str] = typer.Option(None, help="Header to sort by"),
    descending: bool = typer.Option(False, help="Sort descending"),
    source: str = typer.Option("html", help="html|csv"),
    data_dir: Optional[str] = typer.Option(None, help="Report data root (defaults to DATA_DIR)"),
) -> None:
    resolver, settings = _resolver(data_dir)
    source_name = source.strip().lower()
    if source_name not in {"html", "csv"}:
        raise typer.BadParameter("source must be 'html' or 'csv'")

    try:
        if source_name == "csv":
            report_table = ReportTable.from_csv_text(resolver.get_report_csv(app_name))
        else:
            report_table = ReportTable.from_html(resolver.get_report_html(app_name))
    except ReportNotFoundError as exc:
        print(f"[red]{escape(str(exc))}[/red]")
        raise typer.Exit(code=1)
    except ReportIOError as exc:
        print(f"[red]Failed to read report:[/red] {escape(str(exc))}")
        raise typer.Exit(code=1)

    if report_table is None:
        print(f"[yellow]Report '{escape(app_name)}' has no table.[/yellow]")
        return

    view = TableViewState(
        report_table,
        ticket_column=settings.ticket_column,
        ticket_url_template=settings.ticket_url_template,
    )
    if board:
        if not view.filter_enabled:
            print("[yellow]No board column found; showing all rows.[/yellow]")
        view.set_board_filter(board)
    if sort:
        column = report_table.header_index(sort)
        if column is None:
            raise typer.BadParameter(f"Unknown column '{sort}'. Columns: {report_table.headers}")
        view.toggle_sort(column)
        if descending:
            view.toggle_sort(column)

    table = Table(title=escape(app_name))
    for header in report_table.headers:
        table.add_column(header)
    for row in view.visible_rows():
        cells = [escape(value) for value in row.cells]
        if view.ticket_column_index is not None and view.ticket_column_index < len(cells):
            ticket_id = row.cell(view.ticket_column_index)
            cells[view.ticket_column_index] = f"[link={view.ticket_url(ticket_id)}]{escape(ticket_id)}[/link]"
        table.add_row(*cells)
    Console().print(table)
    print(f"{len(view.visible_rows())} of {len(view.rows)} rows")


@app.command("run-web")
def run_web(
    host: Optional[str] = typer.Option(None, help="Bind host (defaults to HOST)"),
    port: Optional[int] = typer.Option(None, help="Bind port (defaults to PORT)"),
) -> None:
    settings = resolve_settings()
    configure_logging(settings.logs_dir, level=settings.log_level)
    try:
        serve(settings, host=host, port=port)
    except OSError as exc:
        logger.error("Failed to start server: %s", exc)
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
