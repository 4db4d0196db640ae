"""Persistence layer for loan records.

The simulation core only needs an ordered list of ``Loan`` objects; this store
keeps them in a database so the web API can serve and update them. It defaults
to SQLite for local development, but accepts any SQLAlchemy-compatible URL.
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Mapping, Optional
from uuid import uuid4

from sqlalchemy import Column, Date, DateTime, Integer, Numeric, String, create_engine, select
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from debt_payoff.data_models import Currency, Loan, LoanType
from debt_payoff.exceptions import InvalidLoanError, LoanNotFoundError
from debt_payoff.loan_io import example_loans, loan_from_dict
from debt_payoff.logging import get_logger

logger = get_logger(__name__)

Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class LoanModel(Base):
    __tablename__ = "loans"

    id = Column(String(64), primary_key=True)
    name = Column(String(255), nullable=False)
    type = Column(String(32), index=True, nullable=False)
    principal = Column(Numeric(14, 2), nullable=True)
    current_balance = Column(Numeric(14, 2), nullable=False)
    interest_rate = Column(Numeric(7, 4), nullable=False)
    monthly_payment = Column(Numeric(14, 2), nullable=False)
    fees = Column(Numeric(14, 2), nullable=False, default=0)
    start_date = Column(Date, nullable=True)
    term_months = Column(Integer, nullable=False)
    color = Column(String(16), nullable=True)
    currency = Column(String(3), nullable=False, default="USD")
    created_at = Column(DateTime, default=_utcnow, nullable=False)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow, nullable=False)


# Loan fields that may be changed through ``update_loan``.
UPDATABLE_FIELDS = (
    "name",
    "type",
    "principal",
    "current_balance",
    "interest_rate",
    "monthly_payment",
    "fees",
    "start_date",
    "term_months",
    "color",
    "currency",
)


class LoanStore:
    """Database-backed loan store."""

    def __init__(self, url: str) -> None:
        engine_kwargs: Dict[str, Any] = {"future": True}
        if url in ("sqlite://", "sqlite:///:memory:"):
            # one shared connection, otherwise every session sees an empty database
            engine_kwargs.update(connect_args={"check_same_thread": False}, poolclass=StaticPool)
        self._engine = create_engine(url, **engine_kwargs)
        Base.metadata.create_all(self._engine)
        self._session_factory = sessionmaker(self._engine, expire_on_commit=False, future=True)

    def list_loans(self) -> List[Loan]:
        with self._session_factory() as session:
            rows: Iterable[LoanModel] = session.execute(
                select(LoanModel).order_by(LoanModel.name.asc(), LoanModel.id.asc())
            ).scalars()
            return [self._to_loan(row) for row in rows]

    def list_loans_by_type(self, loan_type: LoanType) -> List[Loan]:
        with self._session_factory() as session:
            rows = session.execute(
                select(LoanModel)
                .where(LoanModel.type == LoanType(loan_type).value)
                .order_by(LoanModel.name.asc(), LoanModel.id.asc())
            ).scalars()
            return [self._to_loan(row) for row in rows]

    def get_loan(self, loan_id: str) -> Loan:
        with self._session_factory() as session:
            row = session.get(LoanModel, loan_id)
            if row is None:
                raise LoanNotFoundError(f"Loan not found: {loan_id}")
            return self._to_loan(row)

    def add_loan(self, loan: Loan) -> Loan:
        """Insert ``loan``; a fresh ``loan-<hex>`` id replaces an empty or taken one."""
        with self._session_factory() as session:
            loan_id = loan.id
            if not loan_id or session.get(LoanModel, loan_id) is not None:
                loan_id = f"loan-{uuid4().hex[:12]}"
            row = LoanModel(id=loan_id)
            self._apply(row, loan)
            session.add(row)
            session.commit()
            logger.info("Added loan %s (%s)", loan_id, loan.name)
            return self._to_loan(row)

    def update_loan(self, loan_id: str, updates: Mapping[str, Any]) -> Loan:
        """Apply a partial update. The merged record is validated like a new loan."""
        with self._session_factory() as session:
            row = session.get(LoanModel, loan_id)
            if row is None:
                raise LoanNotFoundError(f"Loan not found: {loan_id}")
            unknown = sorted(set(updates) - set(UPDATABLE_FIELDS))
            if unknown:
                raise InvalidLoanError(f"Cannot update fields: {', '.join(unknown)}")
            merged = self._to_record(row)
            merged.update(updates)
            self._apply(row, loan_from_dict(merged))
            session.commit()
            return self._to_loan(row)

    def remove_loan(self, loan_id: str) -> None:
        with self._session_factory() as session:
            row = session.get(LoanModel, loan_id)
            if row is None:
                raise LoanNotFoundError(f"Loan not found: {loan_id}")
            session.delete(row)
            session.commit()

    def seed_examples(self) -> int:
        """Insert the example loans when the store is empty. Returns how many were added."""
        if self.list_loans():
            logger.info("Store already has loan data, skipping example data")
            return 0
        loans = example_loans()
        for loan in loans:
            self.add_loan(loan)
        return len(loans)

    @staticmethod
    def _apply(row: LoanModel, loan: Loan) -> None:
        row.name = loan.name
        row.type = loan.type.value
        row.principal = loan.principal
        row.current_balance = loan.current_balance
        row.interest_rate = loan.interest_rate
        row.monthly_payment = loan.monthly_payment
        row.fees = loan.fees
        row.start_date = loan.start_date
        row.term_months = loan.term_months
        row.color = loan.color
        row.currency = loan.currency.value

    @staticmethod
    def _to_record(row: LoanModel) -> Dict[str, Any]:
        return {
            "id": row.id,
            "name": row.name,
            "type": row.type,
            "principal": row.principal,
            "current_balance": row.current_balance,
            "interest_rate": row.interest_rate,
            "monthly_payment": row.monthly_payment,
            "fees": row.fees,
            "start_date": row.start_date,
            "term_months": row.term_months,
            "color": row.color,
            "currency": row.currency,
        }

    @staticmethod
    def _to_loan(row: LoanModel) -> Loan:
        return Loan(
            id=row.id,
            name=row.name,
            type=LoanType(row.type),
            current_balance=_decimal(row.current_balance),
            interest_rate=_decimal(row.interest_rate),
            monthly_payment=_decimal(row.monthly_payment),
            term_months=row.term_months,
            fees=_decimal(row.fees),
            principal=_decimal(row.principal) if row.principal is not None else None,
            start_date=row.start_date,
            color=row.color,
            currency=Currency(row.currency),
        )


def _decimal(value: Optional[Any]) -> Decimal:
    if value is None:
        return Decimal("0")
    # Numeric columns come back as Decimal, but SQLite may round-trip through float
    return value if isinstance(value, Decimal) else Decimal(str(value))


def create_store_from_env(url: Optional[str]) -> LoanStore:
    return LoanStore(url or "sqlite:///debt_payoff.sqlite3")
