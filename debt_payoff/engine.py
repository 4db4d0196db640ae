"""Single-loan amortization engine.

This module builds the month-by-month schedule of one loan paid at its fixed
minimum payment, optionally with a constant monthly extra payment and a
one-off lump sum applied before the first month. The multi-loan simulations in
``strategies`` share the constants defined here.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional, Sequence

from .data_models import Loan, LoanComparison, LoanScenario, PaymentScheduleItem
from .logging import get_logger
from .utils import Number, add_months, first_of_month, to_decimal

logger = get_logger(__name__)

# Balances at or below this are treated as fully repaid (floating residue).
PAYOFF_TOLERANCE = Decimal("0.01")
# Iteration ceiling for a single-loan schedule, as a multiple of the term.
SINGLE_LOAN_CEILING_FACTOR = 3

ZERO = Decimal("0")


def calculate_monthly_payment(principal: Number, annual_rate: Number, term_months: int) -> Decimal:
    """Return the annuity (equal installment) monthly payment for a loan.

    The formula is:

        payment = P * (i * (1 + i)^n) / ((1 + i)^n - 1)

    where ``P`` is the principal, ``i`` is the monthly interest rate and
    ``n`` is the number of payments. When the interest rate is zero, the
    payment simplifies to ``P / n``.
    """
    if term_months <= 0:
        raise ValueError("Term must be positive")
    principal = to_decimal(principal)
    rate_per_month = to_decimal(annual_rate) / Decimal(100) / Decimal(12)
    if rate_per_month == 0:
        return principal / Decimal(term_months)
    factor = (1 + rate_per_month) ** term_months
    return principal * (rate_per_month * factor) / (factor - 1)


def generate_amortization_schedule(
    loan: Loan,
    extra_payment: Number = 0,
    lump_sum: Number = 0,
    start_date: Optional[date] = None,
) -> List[PaymentScheduleItem]:
    """Compute the amortization schedule of a single loan.

    Parameters
    ----------
    loan: Loan
        The loan to amortize. Its ``monthly_payment`` is paid every month.
    extra_payment: Number
        Constant amount added to principal every month.
    lump_sum: Number
        One-off payment applied before month 1. A lump sum larger than the
        balance clears the loan and yields an empty schedule.
    start_date: date, optional
        Date of month 1, normalized to the first of the month. Defaults to the
        current month.

    Returns
    -------
    List[PaymentScheduleItem]
        One entry per month until the balance is at or below
        ``PAYOFF_TOLERANCE`` or ``term_months * 3`` months have elapsed. A
        payment below the interest due pays no principal, so such a schedule
        runs to the ceiling without reaching zero (see ``is_fully_amortized``).
    """
    extra = to_decimal(extra_payment)
    lump = to_decimal(lump_sum)
    monthly_rate = loan.interest_rate / Decimal(100) / Decimal(12)
    start = first_of_month(start_date)

    applied_lump = min(max(lump, ZERO), max(loan.current_balance, ZERO))
    remaining_balance = loan.current_balance - applied_lump
    if remaining_balance < 0:
        remaining_balance = ZERO
    cumulative_interest = ZERO
    cumulative_principal = applied_lump

    ceiling = loan.term_months * SINGLE_LOAN_CEILING_FACTOR
    schedule: List[PaymentScheduleItem] = []
    month = 1
    while remaining_balance > PAYOFF_TOLERANCE and month <= ceiling:
        interest_payment = remaining_balance * monthly_rate
        principal_payment = min(loan.monthly_payment - interest_payment + extra, remaining_balance)
        if principal_payment < 0:
            principal_payment = ZERO

        remaining_balance -= principal_payment
        cumulative_interest += interest_payment
        cumulative_principal += principal_payment

        schedule.append(
            PaymentScheduleItem(
                month=month,
                date=add_months(start, month - 1),
                monthly_payment=loan.monthly_payment,
                principal=principal_payment,
                interest=interest_payment,
                fees=loan.fees,
                extra_payment=extra,
                remaining_balance=max(ZERO, remaining_balance),
                cumulative_interest=cumulative_interest,
                cumulative_principal=cumulative_principal,
            )
        )
        month += 1

    logger.debug(
        "Schedule for %s: %d months, total interest %.2f, extra %s, lump sum %s",
        loan.name,
        len(schedule),
        cumulative_interest,
        extra,
        applied_lump,
    )
    if schedule and not is_fully_amortized(schedule):
        logger.warning(
            "%s did not fully amortize within %d months (remaining %.2f)",
            loan.name,
            ceiling,
            schedule[-1].remaining_balance,
        )
    return schedule


def is_fully_amortized(schedule: Sequence[PaymentScheduleItem]) -> bool:
    """Return True unless the schedule stopped at its ceiling with a balance left."""
    if not schedule:
        return True
    return schedule[-1].remaining_balance <= PAYOFF_TOLERANCE


def total_interest(schedule: Sequence[PaymentScheduleItem]) -> Decimal:
    return sum((item.interest for item in schedule), ZERO)


def compare_strategies(
    loan: Loan,
    extra_payment: Number,
    start_date: Optional[date] = None,
) -> LoanComparison:
    """Compare paying ``loan`` at its minimum with paying a monthly extra on top."""
    start = first_of_month(start_date)
    base_schedule = generate_amortization_schedule(loan, start_date=start)
    strategy_schedule = generate_amortization_schedule(loan, extra_payment, start_date=start)

    base_interest = total_interest(base_schedule)
    strategy_interest = total_interest(strategy_schedule)

    base = LoanScenario(
        total_interest=base_interest,
        payoff_date=base_schedule[-1].date if base_schedule else start,
        months_remaining=len(base_schedule),
    )
    with_strategy = LoanScenario(
        total_interest=strategy_interest,
        payoff_date=strategy_schedule[-1].date if strategy_schedule else start,
        months_remaining=len(strategy_schedule),
    )
    return LoanComparison(
        base=base,
        with_strategy=with_strategy,
        interest_saved=base_interest - strategy_interest,
        months_saved=base.months_remaining - with_strategy.months_remaining,
    )


def summarize_schedule(loan: Loan, schedule: Sequence[PaymentScheduleItem]) -> Dict[str, object]:
    """Aggregate metrics for a single-loan schedule, as plain JSON-ready values."""
    interest = total_interest(schedule)
    extra = sum((item.extra_payment for item in schedule), ZERO)
    return {
        "loan_name": loan.name,
        "starting_balance": float(loan.current_balance),
        "monthly_payment": float(loan.monthly_payment),
        "total_interest": float(interest),
        "total_principal": float(schedule[-1].cumulative_principal) if schedule else 0.0,
        "total_extra": float(extra),
        "months": len(schedule),
        "payoff_date": schedule[-1].date.strftime("%Y-%m") if schedule else None,
        "fully_amortized": is_fully_amortized(schedule),
    }
