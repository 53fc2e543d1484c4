# epireport/app.py
# COMMAND-LINE ENTRY POINT FOR THE REPORT ENGINE

import json
import logging
import sys
from pathlib import Path
from typing import Any, Callable, Dict, Optional

import click

_project_root = Path(__file__).resolve().parent
if str(_project_root) not in sys.path:
    sys.path.insert(0, str(_project_root))

from config import settings
from analytics import (
    get_age_groups_report,
    get_disease_options,
    get_gender_ratio_report,
    get_hospital_options,
    get_incidence_rates_report,
    get_occupation_report,
    get_public_stats,
    get_trend_report,
    report_to_frame,
)
from data_processing import ReportError, load_report_data_source

logger = logging.getLogger(__name__)


def _configure_logging() -> None:
    # Logs go to stderr so stdout stays a clean JSON/CSV payload.
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format=settings.LOG_FORMAT,
        datefmt=settings.LOG_DATE_FORMAT,
        handlers=[logging.StreamHandler(sys.stderr)],
        force=True,
    )


def _emit(payload: Any, as_table: bool = False) -> None:
    if as_table:
        click.echo(report_to_frame(payload).to_csv(index=False), nl=False)
    else:
        click.echo(json.dumps(payload, ensure_ascii=False, indent=2, default=str))


def filter_options(func: Callable) -> Callable:
    """Adds the shared report filter options to a command."""
    options = [
        click.option("--disease-id", "disease_id", required=True, help="UUID of the disease to report on"),
        click.option("--year", default=None, help="calendar year, or 'all' (default: current year)"),
        click.option("--hospital-code", "hospital_code", default="all", show_default=True),
        click.option("--gender", default="all", show_default=True, help="MALE, FEMALE or all"),
        click.option("--age-group", "age_group", default="all", show_default=True, help="0-10, 11-20, 21-30, 31-40, 41-50, 51+ or all"),
        click.option("--occupation", default="all", show_default=True),
        click.option("--date-from", "date_from", default=None, help="YYYY-MM-DD"),
        click.option("--date-to", "date_to", default=None, help="YYYY-MM-DD"),
        click.option("--table", "as_table", is_flag=True, help="print the breakdown rows as CSV instead of JSON"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _filters(params: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in params.items() if v is not None}


def _run(ctx: click.Context, service: Callable, params: Dict[str, Any], **options: Any) -> None:
    as_table = params.pop("as_table", False)
    try:
        report = service(_filters(params), source=ctx.obj["source"], **options)
    except ReportError as e:
        logger.error(f"Report failed ({e.kind}): {e}")
        raise click.ClickException(f"{e.kind}: {e}") from e
    _emit(report, as_table)


@click.group()
@click.option("-d", "--data-dir", "data_dir", default=None, type=click.Path(file_okay=False),
              help="directory holding patient_visits.csv, populations.csv, hospitals.csv and diseases.csv")
@click.pass_context
def main(ctx: click.Context, data_dir: Optional[str]):
    """Epidemiological report engine: incidence, mortality and distribution reports."""
    _configure_logging()
    ctx.ensure_object(dict)
    ctx.obj["source"] = load_report_data_source(data_dir)


@main.command(name="age-groups")
@filter_options
@click.pass_context
def age_groups(ctx: click.Context, **params: Any):
    """Case counts, shares and incidence per clinical age band."""
    _run(ctx, get_age_groups_report, params)


@main.command(name="gender-ratio")
@filter_options
@click.pass_context
def gender_ratio(ctx: click.Context, **params: Any):
    """Male/female ratio and gender shares (the gender filter is ignored)."""
    _run(ctx, get_gender_ratio_report, params)


@main.command(name="incidence")
@filter_options
@click.pass_context
def incidence(ctx: click.Context, **params: Any):
    """Incidence, mortality and case-fatality rates, overall and per hospital."""
    _run(ctx, get_incidence_rates_report, params)


@main.command(name="occupation")
@filter_options
@click.pass_context
def occupation(ctx: click.Context, **params: Any):
    """Case distribution by occupation (the occupation filter is ignored)."""
    _run(ctx, get_occupation_report, params)


@main.command(name="trend")
@filter_options
@click.option("--period", default="month", show_default=True,
              type=click.Choice(["day", "week", "month", "quarter", "year"]))
@click.option("--split-by-gender", "split_by_gender", is_flag=True, help="emit separate male and female series")
@click.pass_context
def trend(ctx: click.Context, period: str, split_by_gender: bool, **params: Any):
    """Case counts over time."""
    _run(ctx, get_trend_report, params, period=period, split_by_gender=split_by_gender)


@main.command(name="diseases")
@click.pass_context
def diseases(ctx: click.Context):
    """List active diseases."""
    _emit(get_disease_options(ctx.obj["source"]))


@main.command(name="hospitals")
@click.pass_context
def hospitals(ctx: click.Context):
    """List active hospitals."""
    _emit(get_hospital_options(ctx.obj["source"]))


@main.command(name="stats")
@click.pass_context
def stats(ctx: click.Context):
    """Headline counts: active diseases, patients and patients this month."""
    _emit(get_public_stats(ctx.obj["source"]))


if __name__ == "__main__":
    main()
