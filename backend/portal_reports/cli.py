import asyncio
import json
from pathlib import Path
from typing import Any, Dict, Optional

import typer

from portal_reports.core.config import settings
from portal_reports.core.exceptions import PortalReportsError
from portal_reports.core.log import configure_logging
from portal_reports.services.export import to_csv
from portal_reports.services.fetcher import ReportPage, build_fetcher
from portal_reports.services.registry import report_names
from portal_reports.services.window import to_epoch_seconds

app = typer.Typer(help="Fetch call-center portal reports.")


def _window_params(start: Optional[str], end: Optional[str]) -> Dict[str, Any]:
    params: Dict[str, Any] = {}
    for key, label, value in (("startDate", "start", start), ("endDate", "end", end)):
        if not value:
            continue
        try:
            params[key] = to_epoch_seconds(value)
        except ValueError as exc:
            raise typer.BadParameter(f"Invalid {label} date") from exc
    return params


async def _run_fetch(report: str, tenant: str, params: Dict[str, Any]) -> ReportPage:
    fetcher = build_fetcher(settings)
    try:
        return await fetcher.fetch_report(report, tenant, params)
    finally:
        await fetcher.client.aclose()


@app.command()
def fetch(
    report: str = typer.Argument(..., help=f"One of: {' | '.join(report_names())}"),
    tenant: str = typer.Argument(..., help="Account / domain id"),
    start: Optional[str] = typer.Option(None, help="ISO start of the window"),
    end: Optional[str] = typer.Option(None, help="ISO end of the window"),
    out: Optional[Path] = typer.Option(None, help="Write rows to a .csv or .json file"),
):
    configure_logging()
    params = _window_params(start, end)
    try:
        page = asyncio.run(_run_fetch(report, tenant, params))
    except PortalReportsError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1)
    typer.echo(f"Fetched {len(page.rows)} rows for {report}")
    if page.next:
        typer.echo(f"Next start key: {page.next}")
    if out:
        out.parent.mkdir(parents=True, exist_ok=True)
        if out.suffix == ".csv":
            out.write_text(to_csv(page.rows))
        else:
            out.write_text(json.dumps(page.rows, indent=2))
        typer.echo(f"Saved to {out}")
    elif page.rows:
        typer.echo(to_csv(page.rows, delimiter="\t"))


@app.command()
def reports():
    for name in report_names():
        typer.echo(name)


if __name__ == "__main__":
    app()
