"""Multi-loan payoff simulations.

All loans are simulated together, one calendar month at a time. The baseline
pays every loan its own minimum and nothing else. The payoff strategies run the
same minimum-payment step and then direct a single surplus pool at one target
loan chosen by the strategy's ordering rule:

* avalanche (fixed): highest interest rate first, larger balance on ties;
* snowball (fixed): smallest balance first, higher interest rate on ties;
* snowball with scrapes: snowball ordering, and every paid-off loan's minimum
  payment joins the surplus pool from the following month on.

The surplus is never split: whatever exceeds the target's balance is left
unspent for that month.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from functools import cmp_to_key
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from .analysis import calculate_per_debt_details
from .data_models import (
    DebtOptimizationStrategy,
    DebtPaymentPlan,
    Loan,
    LoanState,
    MonthlyPaymentPlan,
    StrategyType,
)
from .engine import PAYOFF_TOLERANCE, ZERO
from .logging import get_logger
from .utils import Number, add_months, first_of_month, to_decimal

logger = get_logger(__name__)

# Hard stop for every multi-loan simulation.
MULTI_LOAN_MONTH_CEILING = 600
# Principal applied when the minimum payment does not cover the interest.
MINIMUM_PRINCIPAL_FLOOR = Decimal("50")
# Rates or balances closer than this are considered equal when picking a target.
TIE_TOLERANCE = Decimal("0.01")


def _compare(a: Decimal, b: Decimal) -> int:
    return (a > b) - (a < b)


def avalanche_order(a: LoanState, b: LoanState) -> int:
    """Highest interest rate first; the larger balance wins a tie."""
    if abs(a.interest_rate - b.interest_rate) < TIE_TOLERANCE:
        return _compare(b.current_balance, a.current_balance)
    return _compare(b.interest_rate, a.interest_rate)


def snowball_order(a: LoanState, b: LoanState) -> int:
    """Smallest balance first; the higher interest rate wins a tie."""
    if abs(a.current_balance - b.current_balance) < TIE_TOLERANCE:
        return _compare(b.interest_rate, a.interest_rate)
    return _compare(a.current_balance, b.current_balance)


def select_target(states: Sequence[LoanState], order: Callable[[LoanState, LoanState], int]) -> Optional[LoanState]:
    """Return the open loan that ``order`` ranks first, or None when all are paid off."""
    active = [s for s in states if not s.is_paid_off]
    if not active:
        return None
    # min() scans in input order, so equal-ranked loans resolve to the earlier one
    return min(active, key=cmp_to_key(order))


def _new_state(loan: Loan, balance: Decimal) -> LoanState:
    paid_off = balance <= PAYOFF_TOLERANCE
    return LoanState(
        id=loan.id,
        name=loan.name,
        current_balance=ZERO if paid_off else balance,
        interest_rate=loan.interest_rate,
        original_monthly_payment=loan.monthly_payment,
        current_minimum_payment=loan.monthly_payment,
        term_months=loan.term_months,
        fees=loan.fees,
        is_paid_off=paid_off,
        paid_off_month=0 if paid_off else None,
    )


def _mark_paid_off(state: LoanState, month: int, label: str) -> None:
    state.is_paid_off = True
    state.paid_off_month = month
    state.current_balance = ZERO
    logger.debug("%s: %s paid off in month %d", label, state.name, month)


def allocate_lump_sum_proportionally(loans: Sequence[Loan], lump_sum: Number) -> List[Decimal]:
    """Split ``lump_sum`` across loans by their share of the total starting balance.

    Returns the starting balance of each loan after the lump sum, clamped at
    zero. With no outstanding balance the lump sum is not applied at all.
    """
    lump = max(to_decimal(lump_sum), ZERO)
    balances = [max(loan.current_balance, ZERO) for loan in loans]
    total_balance = sum(balances, ZERO)
    if lump == 0 or total_balance <= 0:
        return balances
    return [max(ZERO, balance - lump * (balance / total_balance)) for balance in balances]


def allocate_lump_sum_snowball(loans: Sequence[Loan], lump_sum: Number) -> List[Decimal]:
    """Apply ``lump_sum`` to loans in snowball order until it runs out.

    The smallest balance is cleared first, then the next smallest and so on;
    the loan where the lump sum runs out is only partially reduced.
    """
    remaining = max(to_decimal(lump_sum), ZERO)
    balances = [max(loan.current_balance, ZERO) for loan in loans]
    if remaining == 0:
        return balances

    ranked = [_new_state(loan, balance) for loan, balance in zip(loans, balances)]
    order = sorted(range(len(loans)), key=cmp_to_key(lambda i, j: snowball_order(ranked[i], ranked[j])))
    for index in order:
        if remaining <= 0:
            break
        applied = min(remaining, balances[index])
        balances[index] -= applied
        remaining -= applied
        if applied > 0:
            logger.debug(
                "Applied lump sum %.2f to %s, new balance %.2f",
                applied,
                loans[index].name,
                balances[index],
            )
    return balances


def calculate_baseline_schedule(loans: Sequence[Loan], start_date: Optional[date] = None) -> List[MonthlyPaymentPlan]:
    """Simulate all loans paying only their own minimum payment.

    Loans do not interact: a paid-off loan's payment simply stops. A minimum
    payment below the interest due pays no principal, so such a loan stays open
    until the 600-month ceiling.
    """
    start = first_of_month(start_date)
    states = [_new_state(loan, loan.current_balance) for loan in loans]
    schedule: List[MonthlyPaymentPlan] = []

    month = 1
    while any(not s.is_paid_off for s in states) and month <= MULTI_LOAN_MONTH_CEILING:
        open_count = sum(1 for s in states if not s.is_paid_off)
        plan = MonthlyPaymentPlan(
            month=month,
            date=add_months(start, month - 1),
            remaining_debts=open_count,
            active_loan_count=open_count,
        )

        for state in states:
            if state.is_paid_off:
                continue
            starting_balance = state.current_balance
            interest = starting_balance * state.monthly_rate
            principal = min(state.current_minimum_payment - interest, starting_balance)
            if principal < 0:
                principal = ZERO

            state.current_balance -= principal
            if state.current_balance <= PAYOFF_TOLERANCE:
                _mark_paid_off(state, month, "BASELINE")

            plan.payments.append(
                DebtPaymentPlan(
                    loan_id=state.id,
                    month=month,
                    current_balance=starting_balance,
                    monthly_interest=interest,
                    minimum_payment=state.current_minimum_payment,
                    principal_payment=principal,
                    extra_payment=ZERO,
                    total_payment=interest + principal,
                    remaining_balance=state.current_balance,
                    fees=state.fees,
                    is_paid_off=state.is_paid_off,
                )
            )
            plan.total_payment += interest + principal
            plan.total_interest += interest
            plan.total_principal += principal

        plan.remaining_balance = sum((s.current_balance for s in states), ZERO)
        schedule.append(plan)
        month += 1

    logger.info(
        "Baseline: %d loans repaid over %d months, total interest %.2f",
        len(states),
        len(schedule),
        sum((p.total_interest for p in schedule), ZERO),
    )
    return schedule


@dataclass(frozen=True)
class StrategyDefinition:
    """Static description and allocation rules of one payoff strategy."""

    type: StrategyType
    name: str
    description: str
    notes: str
    order: Callable[[LoanState, LoanState], int]
    allocate_lump_sum: Callable[[Sequence[Loan], Number], List[Decimal]]

    @property
    def label(self) -> str:
        return self.type.value.upper()


AVALANCHE_FIXED = StrategyDefinition(
    type=StrategyType.AVALANCHE_FIXED,
    name="Avalanche (Lower Term)",
    description=(
        "Pay minimums on all debts. Fixed extra payment goes to highest interest rate debt. "
        "Maintains same total monthly payment throughout."
    ),
    notes="Mathematically optimal for minimizing total interest paid. Goal: Lower term, not total time.",
    order=avalanche_order,
    allocate_lump_sum=allocate_lump_sum_proportionally,
)

SNOWBALL_FIXED = StrategyDefinition(
    type=StrategyType.SNOWBALL_FIXED,
    name="Snowball (Lower Term)",
    description=(
        "Pay minimums on all debts. Fixed extra payment goes to smallest balance debt. "
        "Maintains same total monthly payment throughout."
    ),
    notes="Psychologically satisfying for quick wins. Goal: Lower term, not total time.",
    order=snowball_order,
    allocate_lump_sum=allocate_lump_sum_proportionally,
)

SNOWBALL_SCRAPES = StrategyDefinition(
    type=StrategyType.SNOWBALL_SCRAPES,
    name="Snowball + Scrapes (Lower Total Time)",
    description=(
        "Pay minimums on all debts. Extra payments go to smallest balance debt. "
        "Freed payments from paid-off loans accelerate remaining debts."
    ),
    notes=(
        "Best for minimizing total time to debt freedom. "
        "Freed payments create compound acceleration effect."
    ),
    order=snowball_order,
    allocate_lump_sum=allocate_lump_sum_snowball,
)

STRATEGY_DEFINITIONS: Dict[StrategyType, StrategyDefinition] = {
    definition.type: definition for definition in (AVALANCHE_FIXED, SNOWBALL_FIXED, SNOWBALL_SCRAPES)
}


def _pay_minimums(
    states: Sequence[LoanState],
    plan: MonthlyPaymentPlan,
    definition: StrategyDefinition,
) -> Tuple[Decimal, Decimal]:
    """Phase 1: pay every open loan its minimum. Returns (interest, newly freed payments)."""
    interest_paid = ZERO
    freed = ZERO
    recirculate = definition.type.recirculates_freed_payments
    for state in states:
        if state.is_paid_off:
            continue
        starting_balance = state.current_balance
        interest = starting_balance * state.monthly_rate
        principal = min(state.current_minimum_payment - interest, starting_balance)
        if principal < 0:
            principal = min(starting_balance, MINIMUM_PRINCIPAL_FLOOR)

        state.current_balance -= principal
        interest_paid += interest

        freed_payment = ZERO
        if state.current_balance <= PAYOFF_TOLERANCE:
            _mark_paid_off(state, plan.month, definition.label)
            if recirculate:
                freed_payment = state.original_monthly_payment
                freed += freed_payment

        plan.payments.append(
            DebtPaymentPlan(
                loan_id=state.id,
                month=plan.month,
                current_balance=starting_balance,
                monthly_interest=interest,
                minimum_payment=state.current_minimum_payment,
                principal_payment=principal,
                extra_payment=ZERO,
                total_payment=interest + principal,
                remaining_balance=state.current_balance,
                fees=state.fees,
                is_paid_off=state.is_paid_off,
                freed_payment=freed_payment,
            )
        )
        plan.total_payment += interest + principal
        plan.total_interest += interest
        plan.total_principal += principal
    return interest_paid, freed


def _apply_surplus(
    states: Sequence[LoanState],
    plan: MonthlyPaymentPlan,
    definition: StrategyDefinition,
    surplus: Decimal,
) -> Decimal:
    """Phase 2: put the surplus on a single target loan. Returns newly freed payments."""
    if surplus <= 0:
        return ZERO
    target = select_target(states, definition.order)
    if target is None:
        return ZERO

    extra_principal = min(surplus, target.current_balance)
    record = plan.payment_for(target.id)
    if record is not None:
        record.extra_payment = extra_principal
        record.principal_payment += extra_principal
        record.total_payment += extra_principal
        record.is_extra_payment = True
        # opening balance minus total principal, exactly as recorded
        target.current_balance = record.current_balance - record.principal_payment
    else:
        target.current_balance -= extra_principal

    freed = ZERO
    if target.current_balance <= PAYOFF_TOLERANCE:
        _mark_paid_off(target, plan.month, definition.label)
        if definition.type.recirculates_freed_payments:
            freed = target.original_monthly_payment
    logger.debug(
        "Month %d: applied %.2f extra to %s (balance %.2f)",
        plan.month,
        extra_principal,
        target.name,
        target.current_balance,
    )

    if record is not None:
        record.remaining_balance = target.current_balance
        record.is_paid_off = target.is_paid_off
        if freed:
            record.freed_payment = freed

    plan.total_payment += extra_principal
    plan.total_principal += extra_principal
    return freed


def run_strategy(
    definition: StrategyDefinition,
    loans: Sequence[Loan],
    extra_payment_base: Number,
    lump_sum: Number = 0,
    start_date: Optional[date] = None,
) -> DebtOptimizationStrategy:
    """Simulate ``loans`` month by month under ``definition``.

    The returned strategy carries zero ``interest_saved``/``months_saved``;
    the optimizer scores it against the combined baseline.
    """
    start = first_of_month(start_date)
    extra_base = to_decimal(extra_payment_base)
    starting_balances = definition.allocate_lump_sum(loans, lump_sum)
    states = [_new_state(loan, balance) for loan, balance in zip(loans, starting_balances)]

    freed_payment_pool = ZERO
    if definition.type.recirculates_freed_payments:
        for loan, state in zip(loans, states):
            if state.is_paid_off and loan.current_balance > PAYOFF_TOLERANCE:
                freed_payment_pool += state.original_monthly_payment
                logger.debug("%s paid off by lump sum, freed payment %.2f", loan.name, state.original_monthly_payment)

    logger.debug(
        "%s: extra payment %s, lump sum %s, starting freed pool %s",
        definition.name,
        extra_base,
        lump_sum,
        freed_payment_pool,
    )

    schedule: List[MonthlyPaymentPlan] = []
    total_interest = ZERO
    month = 1
    while any(not s.is_paid_off for s in states) and month <= MULTI_LOAN_MONTH_CEILING:
        open_count = sum(1 for s in states if not s.is_paid_off)
        surplus = extra_base + freed_payment_pool
        plan = MonthlyPaymentPlan(
            month=month,
            date=add_months(start, month - 1),
            remaining_debts=open_count,
            active_loan_count=open_count,
            extra_payment_pool=surplus,
            freed_payment_pool=freed_payment_pool,
        )

        interest, freed_by_minimums = _pay_minimums(states, plan, definition)
        freed_by_surplus = _apply_surplus(states, plan, definition, surplus)
        total_interest += interest

        # Released payments join the pool from next month
        plan.total_freed_payments = freed_by_minimums + freed_by_surplus
        freed_payment_pool += plan.total_freed_payments
        plan.remaining_balance = sum((s.current_balance for s in states), ZERO)

        schedule.append(plan)
        month += 1

    unpaid = tuple(s.id for s in states if not s.is_paid_off)
    if unpaid:
        logger.warning(
            "%s: %d loans still open after %d months",
            definition.name,
            len(unpaid),
            MULTI_LOAN_MONTH_CEILING,
        )
    logger.info(
        "%s completed in %d months, total interest %.2f",
        definition.name,
        len(schedule),
        total_interest,
    )

    return DebtOptimizationStrategy(
        id=definition.type.value,
        name=definition.name,
        type=definition.type,
        description=definition.description,
        total_interest=total_interest,
        interest_saved=ZERO,
        months_saved=0,
        payoff_date=schedule[-1].date if schedule else start,
        monthly_schedule=schedule,
        per_debt_details=calculate_per_debt_details(loans, schedule, start_date=start),
        notes=definition.notes,
        fully_amortized=not unpaid,
        unpaid_loan_ids=unpaid,
    )


def calculate_avalanche_fixed_strategy(
    loans: Sequence[Loan],
    extra_payment_base: Number,
    lump_sum: Number = 0,
    start_date: Optional[date] = None,
) -> DebtOptimizationStrategy:
    """Avalanche with a constant monthly outlay; freed payments are not reused."""
    return run_strategy(AVALANCHE_FIXED, loans, extra_payment_base, lump_sum, start_date)


def calculate_snowball_fixed_strategy(
    loans: Sequence[Loan],
    extra_payment_base: Number,
    lump_sum: Number = 0,
    start_date: Optional[date] = None,
) -> DebtOptimizationStrategy:
    """Snowball with a constant monthly outlay; freed payments are not reused."""
    return run_strategy(SNOWBALL_FIXED, loans, extra_payment_base, lump_sum, start_date)


def calculate_snowball_scrapes_strategy(
    loans: Sequence[Loan],
    extra_payment_base: Number,
    lump_sum: Number = 0,
    start_date: Optional[date] = None,
) -> DebtOptimizationStrategy:
    """Snowball where each paid-off loan's minimum payment is added to the surplus."""
    return run_strategy(SNOWBALL_SCRAPES, loans, extra_payment_base, lump_sum, start_date)
