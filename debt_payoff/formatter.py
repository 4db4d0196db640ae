"""Output helpers for the debt payoff planner.

This module renders schedules, portfolio summaries and strategy comparisons as
plain text tables using built-in printing and string formatting.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Dict, Iterable, Sequence

from .data_models import Currency, DebtSummary, MonthlyPaymentPlan, OptimizationResult, PaymentScheduleItem

CURRENCY_SYMBOLS: Dict[Currency, str] = {
    Currency.USD: "$",
    Currency.EUR: "€",
    Currency.NOK: "kr",
    Currency.GBP: "£",
    Currency.CAD: "C$",
    Currency.AUD: "A$",
    Currency.JPY: "¥",
}


def format_currency(amount: Decimal, currency: Currency = Currency.USD) -> str:
    """Format ``amount`` with the currency symbol; yen has no minor unit."""
    symbol = CURRENCY_SYMBOLS[currency]
    sign = "-" if amount < 0 else ""
    if currency is Currency.JPY:
        return f"{sign}{symbol}{abs(amount):,.0f}"
    return f"{sign}{symbol}{abs(amount):,.2f}"


def format_percentage(rate: Decimal) -> str:
    return f"{rate:.2f}%"


def print_summary(summary: Dict[str, object]) -> None:
    """Print a single-loan schedule summary in a human-readable format."""
    print("Summary")
    print("-" * 72)
    print(f"Loan               : {summary['loan_name']}")
    print(f"Starting balance   : {summary['starting_balance']:.2f}")
    print(f"Monthly payment    : {summary['monthly_payment']:.2f}")
    print(f"Total interest     : {summary['total_interest']:.2f}")
    if summary.get("total_extra"):
        print(f"Total extra paid   : {summary['total_extra']:.2f}")
    print(f"Months             : {summary['months']}")
    print(f"Payoff date        : {summary['payoff_date'] or '-'}")
    if not summary.get("fully_amortized", True):
        print("Warning            : payment does not cover interest; loan never amortizes")
    print("-" * 72)


def print_schedule(schedule: Iterable[PaymentScheduleItem]) -> None:
    """Print a single-loan amortization schedule as a simple table."""
    headers = ["Month", "Date", "Payment", "Principal", "Interest", "Fees", "Extra", "Balance"]
    print("\t".join(headers))
    for item in schedule:
        row = [
            str(item.month),
            item.date.strftime("%Y-%m"),
            f"{item.monthly_payment:.2f}",
            f"{item.principal:.2f}",
            f"{item.interest:.2f}",
            f"{item.fees:.2f}",
            f"{item.extra_payment:.2f}",
            f"{item.remaining_balance:.2f}",
        ]
        print("\t".join(row))


def print_debt_summary(summary: DebtSummary, currency: Currency = Currency.USD) -> None:
    print("Debt overview")
    print("-" * 72)
    print(f"Total debt         : {format_currency(summary.total_debt, currency)}")
    print(f"Monthly payments   : {format_currency(summary.total_monthly_payment, currency)}")
    print(f"Interest remaining : {format_currency(summary.total_interest, currency)}")
    print(f"Average rate       : {format_percentage(summary.average_rate)}")
    print(f"Debt-free date     : {summary.payoff_date.strftime('%Y-%m')}")
    print(f"Months remaining   : {summary.months_remaining}")
    print("-" * 72)


def print_baseline(schedule: Sequence[MonthlyPaymentPlan], currency: Currency = Currency.USD) -> None:
    """Print the minimum-payment baseline, one line per year."""
    total = sum((plan.total_interest for plan in schedule), Decimal("0"))
    print("Baseline (minimum payments only)")
    print("-" * 72)
    print(f"{'Month':>6s} {'Date':>8s} {'Open':>5s} {'Paid':>14s} {'Interest':>12s} {'Balance':>16s}")
    for plan in schedule:
        if plan.month % 12 != 1 and plan is not schedule[-1]:
            continue
        print(
            f"{plan.month:6d} {plan.date.strftime('%Y-%m'):>8s} {plan.active_loan_count:5d} "
            f"{plan.total_payment:14.2f} {plan.total_interest:12.2f} {plan.remaining_balance:16.2f}"
        )
    print("-" * 72)
    print(f"Months: {len(schedule)}    Total interest: {format_currency(total, currency)}")


def print_strategy_comparison(result: OptimizationResult, currency: Currency = Currency.USD) -> None:
    """Print every strategy next to the baseline and mark the recommendation."""
    print("Strategy comparison")
    print("=" * 92)
    print(f"{'Strategy':40s} {'Interest':>14s} {'Saved':>14s} {'Months':>7s} {'Saved':>6s} {'Payoff':>8s}")
    print(
        f"{'Baseline (minimum payments)':40s} {result.baseline_total_interest:14.2f} "
        f"{'':>14s} {result.baseline_months:7d} {'':>6s} {'':>8s}"
    )
    for strategy in result.strategies:
        marker = "*" if strategy.id == result.recommended_strategy.id else " "
        print(
            f"{marker}{strategy.name:39s} {strategy.total_interest:14.2f} {strategy.interest_saved:14.2f} "
            f"{strategy.months:7d} {strategy.months_saved:6d} {strategy.payoff_date.strftime('%Y-%m'):>8s}"
        )
        if not strategy.fully_amortized:
            print(f"  still open after the simulation limit: {', '.join(strategy.unpaid_loan_ids)}")
    print("=" * 92)
    print(result.explanation)
    details = result.recommended_strategy.per_debt_details
    if details:
        print()
        print(f"{'Loan':30s} {'Payoff':>8s} {'Month':>6s} {'Interest':>14s} {'Saved':>14s} {'Months saved':>13s}")
        for detail in details:
            print(
                f"{detail.loan_name[:30]:30s} {detail.payoff_date.strftime('%Y-%m'):>8s} {detail.payoff_month:6d} "
                f"{format_currency(detail.total_interest, currency):>14s} "
                f"{format_currency(detail.interest_saved, currency):>14s} {detail.months_saved:13d}"
            )
