"""Command-line interface for the debt payoff planner.

This module uses the ``click`` library to implement a multi-command interface.
Users can view a single loan's amortization schedule, inspect the
minimum-payment baseline for a list of loans, or compare the payoff
strategies. Results can be printed to the terminal or exported to JSON/CSV
files.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import List, Optional

import click

from .analysis import calculate_debt_summary
from .config import LOG_FORMATS, LOG_LEVELS, DebtPayoffConfig
from .data_models import Loan, LoanType
from .engine import generate_amortization_schedule, summarize_schedule
from .exceptions import ConfigurationError, InvalidLoanError
from .formatter import print_baseline, print_debt_summary, print_schedule, print_strategy_comparison, print_summary
from .loan_io import (
    example_loans,
    export_optimization_to_json,
    export_schedule_to_csv,
    export_schedule_to_json,
    export_strategies_to_csv,
    load_loans,
)
from .logging import setup_logging
from .optimizer import optimize_debt_payoff
from .strategies import calculate_baseline_schedule
from .utils import decimal_from_str, parse_year_month

MAX_ROWS = 120


def parse_amount(value: str) -> Decimal:
    """Parse a numeric string with optional suffixes.

    Accepts plain numbers ("500000", "1,520.50") and shorthand with ``k``/``m``
    suffixes (e.g., "12k" meaning 12_000).
    """
    cleaned = value.strip().lower().replace(",", "")
    factor = Decimal(1)
    if cleaned.endswith("k"):
        factor = Decimal(1_000)
        cleaned = cleaned[:-1]
    elif cleaned.endswith("m"):
        factor = Decimal(1_000_000)
        cleaned = cleaned[:-1]
    try:
        amount = decimal_from_str(cleaned) * factor
    except ValueError:
        raise click.BadParameter(f"Invalid amount: {value}")
    if not amount.is_finite() or amount < 0:
        raise click.BadParameter(f"Amount must be a non-negative number: {value}")
    return amount


def parse_rate(rate: float) -> Decimal:
    # click's float type accepts "nan" and "inf"
    value = decimal_from_str(str(rate))
    if not value.is_finite():
        raise click.BadParameter(f"Interest rate must be a finite number: {rate}", param_hint="--rate")
    return value


def parse_start_date(value: Optional[str]) -> Optional[date]:
    if not value:
        return None
    try:
        return parse_year_month(value)
    except ValueError as exc:
        raise click.BadParameter(str(exc))


def _load_loans_option(path: Optional[str]) -> List[Loan]:
    if path is None:
        return example_loans()
    try:
        return load_loans(Path(path))
    except InvalidLoanError as exc:
        raise click.BadParameter(str(exc), param_hint="--loans")


def _output_path(output: str, allowed: tuple) -> Path:
    path = Path(output)
    if path.suffix.lower() not in allowed:
        raise click.BadParameter(
            f"Unsupported output format; use {' or '.join(allowed)}", param_hint="--output"
        )
    return path


@click.group()
@click.option("--log-level", type=click.Choice(LOG_LEVELS, case_sensitive=False), help="Log level")
@click.option("--log-format", type=click.Choice(LOG_FORMATS), help="Log format")
@click.pass_context
def cli(ctx: click.Context, log_level: Optional[str], log_format: Optional[str]) -> None:
    """Compare debt payoff strategies (avalanche, snowball, snowball with scrapes)."""
    try:
        config = DebtPayoffConfig.from_env()
    except ConfigurationError as exc:
        raise click.UsageError(str(exc))
    setup_logging(log_level or config.log_level, log_format or config.log_format)
    ctx.obj = config


@cli.command()
@click.option("--balance", "-b", "balance", required=True, help="Current balance")
@click.option("--rate", "-r", "rate", required=True, type=float, help="Annual interest rate (percent)")
@click.option("--payment", "-p", "payment", required=True, help="Minimum monthly payment")
@click.option("--term", "-t", "term", required=True, type=click.IntRange(min=1), help="Loan term in months")
@click.option("--fees", "fees", default="0", help="Monthly fee (display only)")
@click.option("--extra", "-e", "extra", default="0", help="Extra payment every month")
@click.option("--lump-sum", "-l", "lump_sum", default="0", help="One-off payment before the first month")
@click.option("--start-date", "-s", "start_date", help="First payment month (YYYY-MM)")
@click.option("--output", "output", type=str, help="Output file path (.json or .csv)")
def schedule(
    balance: str,
    rate: float,
    payment: str,
    term: int,
    fees: str,
    extra: str,
    lump_sum: str,
    start_date: Optional[str],
    output: Optional[str],
) -> None:
    """Compute and print the amortization schedule of a single loan."""
    loan = Loan(
        id="loan-1",
        name="Loan",
        type=LoanType.OTHER,
        current_balance=parse_amount(balance),
        interest_rate=parse_rate(rate),
        monthly_payment=parse_amount(payment),
        term_months=term,
        fees=parse_amount(fees),
    )
    entries = generate_amortization_schedule(
        loan, parse_amount(extra), parse_amount(lump_sum), start_date=parse_start_date(start_date)
    )
    summary_data = summarize_schedule(loan, entries)
    if output:
        path = _output_path(output, (".json", ".csv"))
        if path.suffix.lower() == ".json":
            export_schedule_to_json(path, entries, summary_data)
        else:
            export_schedule_to_csv(path, entries)
        click.echo(f"Schedule exported to {path}")
        return

    print_summary(summary_data)
    # Limit schedule length printed to avoid flooding the terminal
    if len(entries) > MAX_ROWS:
        click.echo(f"Schedule has {len(entries)} rows; showing first {MAX_ROWS} rows.")
        print_schedule(entries[:MAX_ROWS])
    else:
        print_schedule(entries)


@cli.command()
@click.option("--loans", "loans_path", type=click.Path(exists=True, dir_okay=False), help="Loan file (.json or .csv); example loans when omitted")
@click.option("--start-date", "-s", "start_date", help="First payment month (YYYY-MM)")
@click.pass_obj
def baseline(config: DebtPayoffConfig, loans_path: Optional[str], start_date: Optional[str]) -> None:
    """Show the combined schedule when every loan gets only its minimum payment."""
    loans = _load_loans_option(loans_path)
    plans = calculate_baseline_schedule(loans, start_date=parse_start_date(start_date))
    print_baseline(plans, config.default_currency)


@cli.command()
@click.option("--loans", "loans_path", type=click.Path(exists=True, dir_okay=False), help="Loan file (.json or .csv); example loans when omitted")
@click.option("--start-date", "-s", "start_date", help="First payment month (YYYY-MM)")
@click.pass_obj
def summary(config: DebtPayoffConfig, loans_path: Optional[str], start_date: Optional[str]) -> None:
    """Print totals, average rate and debt-free date for a list of loans."""
    loans = _load_loans_option(loans_path)
    print_debt_summary(calculate_debt_summary(loans, start_date=parse_start_date(start_date)), config.default_currency)


@cli.command()
@click.option("--loans", "loans_path", type=click.Path(exists=True, dir_okay=False), help="Loan file (.json or .csv); example loans when omitted")
@click.option("--extra", "-e", "extra", default="0", help="Extra amount available every month")
@click.option("--lump-sum", "-l", "lump_sum", default="0", help="One-off amount available before the first month")
@click.option("--start-date", "-s", "start_date", help="First payment month (YYYY-MM)")
@click.option("--output", "output", type=str, help="Output file path (.json or .csv)")
@click.option("--no-schedule", "no_schedule", is_flag=True, help="Leave monthly schedules out of JSON output")
@click.pass_obj
def optimize(
    config: DebtPayoffConfig,
    loans_path: Optional[str],
    extra: str,
    lump_sum: str,
    start_date: Optional[str],
    output: Optional[str],
    no_schedule: bool,
) -> None:
    """Compare payoff strategies and recommend one."""
    loans = _load_loans_option(loans_path)
    result = optimize_debt_payoff(
        loans, parse_amount(extra), parse_amount(lump_sum), start_date=parse_start_date(start_date)
    )
    if output:
        path = _output_path(output, (".json", ".csv"))
        if path.suffix.lower() == ".json":
            export_optimization_to_json(path, result, include_schedule=not no_schedule)
        else:
            export_strategies_to_csv(path, result)
        click.echo(f"Results exported to {path}")
        return
    print_strategy_comparison(result, config.default_currency)


if __name__ == "__main__":
    cli()
