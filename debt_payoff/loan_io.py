"""Reading loan lists and writing simulation results.

Loans arrive as dictionaries (from JSON files, CSV rows or HTTP bodies) using
either ``snake_case`` or ``camelCase`` keys. Results are written as JSON or as
CSV tables for spreadsheets.
"""

from __future__ import annotations

import csv
import json
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence

from .data_models import Currency, Loan, LoanType, OptimizationResult, PaymentScheduleItem
from .exceptions import InvalidLoanError
from .serialization import optimization_result_to_dict, to_dict
from .utils import parse_year_month, to_decimal

_KEY_ALIASES = {
    "currentBalance": "current_balance",
    "balance": "current_balance",
    "interestRate": "interest_rate",
    "rate": "interest_rate",
    "monthlyPayment": "monthly_payment",
    "payment": "monthly_payment",
    "termMonths": "term_months",
    "term": "term_months",
    "startDate": "start_date",
}

_REQUIRED = ("name", "current_balance", "interest_rate", "monthly_payment", "term_months")


def normalize_loan_keys(data: Mapping[str, Any]) -> Dict[str, Any]:
    normalized: Dict[str, Any] = {}
    for key, value in data.items():
        normalized[_KEY_ALIASES.get(key, key)] = value
    return normalized


def _amount(data: Mapping[str, Any], key: str, default: Optional[Decimal] = None) -> Optional[Decimal]:
    value = data.get(key)
    if value is None or value == "":
        return default
    try:
        amount = to_decimal(value)
    except ValueError as exc:
        raise InvalidLoanError(f"{key} must be a number, got {value!r}") from exc
    if not amount.is_finite():
        raise InvalidLoanError(f"{key} must be finite, got {value!r}")
    return amount


def loan_from_dict(data: Mapping[str, Any], default_id: Optional[str] = None) -> Loan:
    """Build a ``Loan`` from a mapping, validating required fields.

    Raises
    ------
    InvalidLoanError
        If a required field is missing or a value cannot be parsed.
    """
    fields = normalize_loan_keys(data)
    missing = [key for key in _REQUIRED if fields.get(key) in (None, "")]
    if missing:
        raise InvalidLoanError(f"Loan is missing required fields: {', '.join(missing)}")

    loan_id = str(fields.get("id") or default_id or "")
    if not loan_id:
        raise InvalidLoanError("Loan is missing an id")

    try:
        loan_type = LoanType(str(fields.get("type") or "other").lower())
    except ValueError as exc:
        raise InvalidLoanError(f"Unknown loan type: {fields.get('type')!r}") from exc
    try:
        currency = Currency(str(fields.get("currency") or "USD").upper())
    except ValueError as exc:
        raise InvalidLoanError(f"Unsupported currency: {fields.get('currency')!r}") from exc
    try:
        term_months = int(fields["term_months"])
    except (TypeError, ValueError) as exc:
        raise InvalidLoanError(f"term_months must be an integer, got {fields['term_months']!r}") from exc
    if term_months <= 0:
        raise InvalidLoanError("term_months must be positive")

    balance = _amount(fields, "current_balance")
    if balance < 0:
        raise InvalidLoanError("current_balance must not be negative")

    start_date = fields.get("start_date")
    if isinstance(start_date, str) and start_date:
        try:
            start_date = parse_year_month(start_date)
        except ValueError as exc:
            raise InvalidLoanError(str(exc)) from exc
    elif not isinstance(start_date, date):
        start_date = None

    return Loan(
        id=loan_id,
        name=str(fields["name"]),
        type=loan_type,
        current_balance=balance,
        interest_rate=_amount(fields, "interest_rate"),
        monthly_payment=_amount(fields, "monthly_payment"),
        term_months=term_months,
        fees=_amount(fields, "fees", Decimal("0")),
        principal=_amount(fields, "principal"),
        start_date=start_date,
        color=fields.get("color") or None,
        currency=currency,
    )


def loan_to_dict(loan: Loan) -> Dict[str, Any]:
    return to_dict(loan)


def loans_from_records(records: Sequence[Mapping[str, Any]]) -> List[Loan]:
    """Build loans from records, numbering missing ids and rejecting duplicates."""
    loans: List[Loan] = []
    seen = set()
    for index, record in enumerate(records, start=1):
        if not isinstance(record, Mapping):
            raise InvalidLoanError(f"Loan #{index} must be an object")
        loan = loan_from_dict(record, default_id=f"loan-{index}")
        if loan.id in seen:
            raise InvalidLoanError(f"Duplicate loan id: {loan.id}")
        seen.add(loan.id)
        loans.append(loan)
    return loans


def load_loans(path: Path) -> List[Loan]:
    """Load loans from a ``.json`` file (a list, or ``{"loans": [...]}``) or a ``.csv`` file."""
    suffix = path.suffix.lower()
    if suffix == ".json":
        with path.open("r", encoding="utf-8") as f:
            try:
                data = json.load(f)
            except json.JSONDecodeError as exc:
                raise InvalidLoanError(f"{path} is not valid JSON: {exc}") from exc
        if isinstance(data, dict):
            data = data.get("loans", [])
        if not isinstance(data, list):
            raise InvalidLoanError(f"{path} must contain a list of loans")
        return loans_from_records(data)
    if suffix == ".csv":
        with path.open("r", newline="", encoding="utf-8") as f:
            return loans_from_records(list(csv.DictReader(f)))
    raise InvalidLoanError(f"Unsupported loan file format: {path.suffix}; use .json or .csv")


def example_loans() -> List[Loan]:
    """A mortgage, a car loan and a personal loan for demos and seeding."""
    return [
        Loan(
            id="loan-mortgage",
            name="Primary Mortgage",
            type=LoanType.MORTGAGE,
            principal=Decimal("350000"),
            current_balance=Decimal("320000"),
            interest_rate=Decimal("3.25"),
            monthly_payment=Decimal("1520"),
            fees=Decimal("0"),
            start_date=date(2020, 1, 1),
            term_months=360,
            color="#1e40af",
        ),
        Loan(
            id="loan-auto",
            name="Car Loan",
            type=LoanType.AUTO,
            principal=Decimal("28000"),
            current_balance=Decimal("22000"),
            interest_rate=Decimal("4.5"),
            monthly_payment=Decimal("520"),
            fees=Decimal("0"),
            start_date=date(2022, 6, 1),
            term_months=60,
            color="#059669",
        ),
        Loan(
            id="loan-personal",
            name="Personal Loan",
            type=LoanType.PERSONAL,
            principal=Decimal("15000"),
            current_balance=Decimal("12000"),
            interest_rate=Decimal("7.2"),
            monthly_payment=Decimal("450"),
            fees=Decimal("10"),
            start_date=date(2023, 1, 1),
            term_months=36,
            color="#d97706",
        ),
    ]


SCHEDULE_HEADER = [
    "Month",
    "Date",
    "Payment",
    "Principal",
    "Interest",
    "Fees",
    "Extra",
    "Remaining_Balance",
    "Cumulative_Interest",
    "Cumulative_Principal",
]


def export_schedule_to_json(path: Path, schedule: Sequence[PaymentScheduleItem], summary: Dict[str, Any]) -> None:
    """Export a single-loan schedule and its summary to a JSON file."""
    data = {"summary": summary, "schedule": [to_dict(item) for item in schedule]}
    with path.open("w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)


def export_schedule_to_csv(path: Path, schedule: Sequence[PaymentScheduleItem]) -> None:
    """Export a single-loan schedule to a CSV file."""
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(SCHEDULE_HEADER)
        for item in schedule:
            writer.writerow(
                [
                    item.month,
                    item.date.strftime("%Y-%m"),
                    f"{item.monthly_payment:.2f}",
                    f"{item.principal:.2f}",
                    f"{item.interest:.2f}",
                    f"{item.fees:.2f}",
                    f"{item.extra_payment:.2f}",
                    f"{item.remaining_balance:.2f}",
                    f"{item.cumulative_interest:.2f}",
                    f"{item.cumulative_principal:.2f}",
                ]
            )


def export_optimization_to_json(path: Path, result: OptimizationResult, include_schedule: bool = True) -> None:
    with path.open("w", encoding="utf-8") as f:
        json.dump(optimization_result_to_dict(result, include_schedule), f, indent=2)


def export_strategies_to_csv(path: Path, result: OptimizationResult) -> None:
    """Write one row per strategy: name, interest, savings and payoff date."""
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(["Strategy", "Total Interest", "Interest Saved", "Months Saved", "Payoff Date", "Recommended"])
        for strategy in result.strategies:
            writer.writerow(
                [
                    strategy.name,
                    f"{strategy.total_interest:.2f}",
                    f"{strategy.interest_saved:.2f}",
                    strategy.months_saved,
                    strategy.payoff_date.isoformat(),
                    "yes" if strategy.id == result.recommended_strategy.id else "no",
                ]
            )
