"""Data models for the debt payoff planner.

This module defines the dataclasses shared by the simulation engine: the loan
record supplied by callers, the mutable per-run loan state, single-loan schedule
entries, the cross-loan monthly plans produced by the baseline and the payoff
strategies, and the result records returned by the optimizer. Money values are
``Decimal`` and calendar values are ``date`` objects throughout.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import List, Optional, Tuple


class LoanType(str, Enum):
    """Category of a loan. Informational only, never used in the math."""

    MORTGAGE = "mortgage"
    PERSONAL = "personal"
    AUTO = "auto"
    STUDENT = "student"
    CREDIT_CARD = "credit_card"
    OTHER = "other"


class Currency(str, Enum):
    USD = "USD"
    EUR = "EUR"
    NOK = "NOK"
    GBP = "GBP"
    CAD = "CAD"
    AUD = "AUD"
    JPY = "JPY"


class StrategyType(str, Enum):
    """The payoff strategies computed by the optimizer."""

    AVALANCHE_FIXED = "avalanche_fixed"
    SNOWBALL_FIXED = "snowball_fixed"
    SNOWBALL_SCRAPES = "snowball_scrapes"

    @property
    def recirculates_freed_payments(self) -> bool:
        return self is StrategyType.SNOWBALL_SCRAPES


@dataclass
class Loan:
    """A debt supplied by the caller.

    Attributes
    ----------
    id: str
        Identifier, unique within one simulation run.
    current_balance: Decimal
        Principal outstanding when the simulation starts.
    interest_rate: Decimal
        Annual percentage rate, e.g. ``Decimal("3.25")`` for 3.25 %.
    monthly_payment: Decimal
        Fixed minimum monthly payment (interest plus some principal).
    fees: Decimal
        Monthly fee shown in schedules. It never reduces the balance.
    term_months: int
        Contractual duration. Only used for the single-loan iteration ceiling
        (``term_months * 3``), never as a hard stop for multi-loan runs.
    """

    id: str
    name: str
    type: LoanType
    current_balance: Decimal
    interest_rate: Decimal
    monthly_payment: Decimal
    term_months: int
    fees: Decimal = Decimal("0")
    principal: Optional[Decimal] = None  # original amount borrowed
    start_date: Optional[date] = None
    color: Optional[str] = None
    currency: Currency = Currency.USD


@dataclass
class LoanState:
    """Mutable projection of a ``Loan`` used inside one simulation run.

    ``current_balance`` only ever decreases and is clamped to exactly zero when
    the loan is paid off. ``is_paid_off`` and ``paid_off_month`` are set once.
    """

    id: str
    name: str
    current_balance: Decimal
    interest_rate: Decimal
    original_monthly_payment: Decimal
    current_minimum_payment: Decimal
    term_months: int
    fees: Decimal = Decimal("0")
    is_paid_off: bool = False
    paid_off_month: Optional[int] = None

    @property
    def monthly_rate(self) -> Decimal:
        return self.interest_rate / Decimal(100) / Decimal(12)


@dataclass
class PaymentScheduleItem:
    """One month of a single-loan amortization schedule."""

    month: int
    date: date
    monthly_payment: Decimal
    principal: Decimal
    interest: Decimal
    fees: Decimal
    extra_payment: Decimal
    remaining_balance: Decimal
    cumulative_interest: Decimal
    cumulative_principal: Decimal


@dataclass
class DebtPaymentPlan:
    """What happened to one loan in one month of a multi-loan simulation.

    ``current_balance`` is the balance at the start of the month and
    ``remaining_balance`` the balance after the minimum and any extra payment.
    ``freed_payment`` is the minimum payment released when the loan was paid
    off this month (recirculating strategies only).
    """

    loan_id: str
    month: int
    current_balance: Decimal
    monthly_interest: Decimal
    minimum_payment: Decimal
    principal_payment: Decimal
    extra_payment: Decimal
    total_payment: Decimal
    remaining_balance: Decimal
    fees: Decimal = Decimal("0")
    is_extra_payment: bool = False
    is_paid_off: bool = False
    freed_payment: Decimal = Decimal("0")


@dataclass
class MonthlyPaymentPlan:
    """All loan payments for one month plus cross-loan aggregates.

    ``remaining_debts`` and ``active_loan_count`` count the loans still open at
    the start of the month. ``extra_payment_pool`` is the surplus available
    that month and ``freed_payment_pool`` the part of it made of recirculated
    minimum payments. ``total_freed_payments`` is what was released by loans
    paid off during this month; it joins the pool from the next month on.
    ``remaining_balance`` is the total balance left after the month.
    """

    month: int
    date: date
    payments: List[DebtPaymentPlan] = field(default_factory=list)
    total_payment: Decimal = Decimal("0")
    total_interest: Decimal = Decimal("0")
    total_principal: Decimal = Decimal("0")
    remaining_debts: int = 0
    extra_payment_pool: Decimal = Decimal("0")
    freed_payment_pool: Decimal = Decimal("0")
    total_freed_payments: Decimal = Decimal("0")
    active_loan_count: int = 0
    remaining_balance: Decimal = Decimal("0")

    def payment_for(self, loan_id: str) -> Optional[DebtPaymentPlan]:
        for payment in self.payments:
            if payment.loan_id == loan_id:
                return payment
        return None


@dataclass
class PerLoanDetail:
    """Per-loan outcome of a strategy compared with paying that loan alone at its minimum."""

    loan_id: str
    loan_name: str
    total_interest: Decimal
    baseline_total_interest: Decimal
    interest_saved: Decimal
    baseline_months: int
    payoff_month: int
    months_saved: int
    payoff_date: date


@dataclass
class DebtOptimizationStrategy:
    """Result of simulating one payoff strategy over all loans.

    ``interest_saved`` and ``months_saved`` are relative to the combined
    baseline schedule once the optimizer has scored the strategy; they are zero
    straight out of the strategy functions.
    """

    id: str
    name: str
    type: StrategyType
    description: str
    total_interest: Decimal
    interest_saved: Decimal
    months_saved: int
    payoff_date: date
    monthly_schedule: List[MonthlyPaymentPlan]
    per_debt_details: List[PerLoanDetail]
    notes: str = ""
    fully_amortized: bool = True
    unpaid_loan_ids: Tuple[str, ...] = ()

    @property
    def months(self) -> int:
        return len(self.monthly_schedule)


@dataclass
class OptimizationResult:
    strategies: List[DebtOptimizationStrategy]
    recommended_strategy: DebtOptimizationStrategy
    explanation: str
    baseline_schedule: List[MonthlyPaymentPlan]
    baseline_total_interest: Decimal = Decimal("0")
    baseline_months: int = 0


@dataclass
class LoanScenario:
    total_interest: Decimal
    payoff_date: date
    months_remaining: int


@dataclass
class LoanComparison:
    """A single loan paid at its minimum versus with a fixed monthly extra."""

    base: LoanScenario
    with_strategy: LoanScenario
    interest_saved: Decimal
    months_saved: int


@dataclass
class DebtSummary:
    """Portfolio overview computed from minimum-payment schedules."""

    total_debt: Decimal
    total_monthly_payment: Decimal
    total_interest: Decimal
    average_rate: Decimal
    payoff_date: date
    months_remaining: int
