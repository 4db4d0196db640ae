"""Per-loan analysis of simulated schedules and portfolio summaries."""

from __future__ import annotations

from datetime import date
from typing import List, Optional, Sequence

from .data_models import DebtSummary, Loan, MonthlyPaymentPlan, PerLoanDetail
from .engine import ZERO, generate_amortization_schedule, total_interest
from .logging import get_logger
from .utils import first_of_month

logger = get_logger(__name__)


def find_payoff_month(loan_id: str, schedule: Sequence[MonthlyPaymentPlan]) -> int:
    """Return the 1-based month in which ``loan_id`` is marked paid off.

    A loan that never appears in the schedule was cleared before month 1 and
    gets 0. A loan that appears but is never paid off (the simulation hit its
    ceiling) gets the length of the schedule.

    A loan cleared by the lump sum therefore reports its whole baseline term as
    ``months_saved`` in ``calculate_per_debt_details``. Falling back to the
    schedule length for such loans instead would report no months saved.
    """
    appeared = False
    for index, plan in enumerate(schedule):
        payment = plan.payment_for(loan_id)
        if payment is None:
            continue
        appeared = True
        if payment.is_paid_off:
            return index + 1
    return len(schedule) if appeared else 0


def calculate_per_debt_details(
    loans: Sequence[Loan],
    schedule: Sequence[MonthlyPaymentPlan],
    start_date: Optional[date] = None,
) -> List[PerLoanDetail]:
    """Summarize each loan's share of a strategy schedule.

    Each loan is compared with its own minimum-payment amortization (no extra,
    no lump sum), so ``interest_saved`` and ``months_saved`` show how much the
    strategy helped that particular loan. One entry per loan, in input order.
    """
    start = first_of_month(start_date)
    details: List[PerLoanDetail] = []
    for loan in loans:
        payoff_month = find_payoff_month(loan.id, schedule)
        loan_interest = ZERO
        for plan in schedule:
            payment = plan.payment_for(loan.id)
            if payment is not None:
                loan_interest += payment.monthly_interest

        baseline = generate_amortization_schedule(loan, 0, 0, start_date=start)
        baseline_interest = total_interest(baseline)
        baseline_months = len(baseline)

        details.append(
            PerLoanDetail(
                loan_id=loan.id,
                loan_name=loan.name,
                total_interest=loan_interest,
                baseline_total_interest=baseline_interest,
                interest_saved=baseline_interest - loan_interest,
                baseline_months=baseline_months,
                payoff_month=payoff_month,
                months_saved=max(0, baseline_months - payoff_month),
                payoff_date=schedule[payoff_month - 1].date if payoff_month > 0 else start,
            )
        )
        logger.debug(
            "%s: payoff month %d (baseline %d), interest %.2f (baseline %.2f)",
            loan.name,
            payoff_month,
            baseline_months,
            loan_interest,
            baseline_interest,
        )
    return details


def calculate_debt_summary(loans: Sequence[Loan], start_date: Optional[date] = None) -> DebtSummary:
    """Portfolio totals with every loan paid at its minimum on its own schedule.

    ``average_rate`` is weighted by current balance and is zero when there is
    no outstanding debt.
    """
    start = first_of_month(start_date)
    total_debt = sum((loan.current_balance for loan in loans), ZERO)
    total_monthly_payment = sum((loan.monthly_payment for loan in loans), ZERO)

    interest = ZERO
    weighted_rate = ZERO
    payoff_date = start
    months_remaining = 0
    for loan in loans:
        schedule = generate_amortization_schedule(loan, start_date=start)
        interest += total_interest(schedule)
        if total_debt > 0:
            weighted_rate += loan.interest_rate * (loan.current_balance / total_debt)
        if schedule and schedule[-1].date > payoff_date:
            payoff_date = schedule[-1].date
        months_remaining = max(months_remaining, len(schedule))

    return DebtSummary(
        total_debt=total_debt,
        total_monthly_payment=total_monthly_payment,
        total_interest=interest,
        average_rate=weighted_rate,
        payoff_date=payoff_date,
        months_remaining=months_remaining,
    )
