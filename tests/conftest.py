"""Pytest configuration and fixtures."""

import logging
from datetime import date
from decimal import Decimal

import pytest

from debt_payoff.data_models import Loan, LoanType
from debt_payoff.loan_io import example_loans
from debt_payoff.logging import PACKAGE_LOGGERS, QUIET_LOGGERS

CONFIGURED_LOGGERS = PACKAGE_LOGGERS + QUIET_LOGGERS


@pytest.fixture
def start_date() -> date:
    """Fixed first month so schedules are reproducible."""
    return date(2025, 1, 1)


@pytest.fixture
def loans() -> list:
    """Mortgage 320000 @ 3.25 %, car 22000 @ 4.5 %, personal 12000 @ 7.2 %."""
    return example_loans()


@pytest.fixture
def personal_loan() -> Loan:
    return Loan(
        id="loan-personal",
        name="Personal Loan",
        type=LoanType.PERSONAL,
        current_balance=Decimal("12000"),
        interest_rate=Decimal("7.2"),
        monthly_payment=Decimal("450"),
        term_months=36,
        fees=Decimal("10"),
    )


def make_loan(loan_id: str, balance, rate, payment, term: int = 60) -> Loan:
    return Loan(
        id=loan_id,
        name=loan_id.title(),
        type=LoanType.OTHER,
        current_balance=Decimal(str(balance)),
        interest_rate=Decimal(str(rate)),
        monthly_payment=Decimal(str(payment)),
        term_months=term,
    )


@pytest.fixture(autouse=True)
def restore_root_logger():
    """CLI commands reconfigure the root logger; put it back after each test."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    levels = {name: logging.getLogger(name).level for name in CONFIGURED_LOGGERS}
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    for name, saved in levels.items():
        logging.getLogger(name).setLevel(saved)
