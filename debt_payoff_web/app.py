"""JSON API for managing loans and comparing payoff strategies."""

from __future__ import annotations

import os
from typing import Any, Dict, Optional
from uuid import uuid4

from flask import Flask, jsonify, request

from debt_payoff.analysis import calculate_debt_summary
from debt_payoff.config import DebtPayoffConfig
from debt_payoff.engine import generate_amortization_schedule, summarize_schedule
from debt_payoff.exceptions import InvalidLoanError, LoanNotFoundError
from debt_payoff.loan_io import loan_from_dict, loan_to_dict, loans_from_records, normalize_loan_keys
from debt_payoff.logging import get_logger, setup_logging
from debt_payoff.optimizer import optimize_debt_payoff
from debt_payoff.serialization import optimization_result_to_dict, to_dict
from debt_payoff.utils import parse_year_month, to_decimal
from debt_payoff_web.loan_store import LoanStore, create_store_from_env

logger = get_logger(__name__)


def _amount_arg(value: Any, name: str):
    if value is None or value == "":
        return to_decimal(0)
    try:
        amount = to_decimal(value)
    except ValueError as exc:
        raise InvalidLoanError(f"{name} must be a number") from exc
    if not amount.is_finite() or amount < 0:
        raise InvalidLoanError(f"{name} must be a non-negative number")
    return amount


def _start_date_arg(value: Optional[str]):
    if not value:
        return None
    try:
        return parse_year_month(value)
    except ValueError as exc:
        raise InvalidLoanError(str(exc)) from exc


def _json_body() -> Dict[str, Any]:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise InvalidLoanError("Request body must be a JSON object")
    return data


def create_app(config: Optional[DebtPayoffConfig] = None, store: Optional[LoanStore] = None) -> Flask:
    """Build the Flask application.

    ``store`` defaults to one created from ``config.database_url``; pass an
    in-memory store for tests.
    """
    config = config or DebtPayoffConfig.from_env()
    if store is None:
        store = create_store_from_env(config.database_url)
        if config.seed_examples:
            store.seed_examples()

    app = Flask(__name__)
    app.secret_key = config.secret_key
    app.config["DEBT_PAYOFF"] = config
    app.extensions["loan_store"] = store

    @app.errorhandler(InvalidLoanError)
    def handle_invalid(exc: InvalidLoanError):
        return jsonify({"error": str(exc)}), 400

    @app.errorhandler(LoanNotFoundError)
    def handle_not_found(exc: LoanNotFoundError):
        return jsonify({"error": str(exc)}), 404

    @app.get("/api/loans")
    def list_loans():
        return jsonify([loan_to_dict(loan) for loan in store.list_loans()])

    @app.post("/api/loans")
    def add_loan():
        loan = store.add_loan(loan_from_dict(_json_body(), default_id=f"loan-{uuid4().hex[:12]}"))
        return jsonify(loan_to_dict(loan)), 201

    @app.get("/api/loans/<loan_id>")
    def get_loan(loan_id: str):
        return jsonify(loan_to_dict(store.get_loan(loan_id)))

    @app.patch("/api/loans/<loan_id>")
    def update_loan(loan_id: str):
        updates = normalize_loan_keys(_json_body())
        updates.pop("id", None)
        return jsonify(loan_to_dict(store.update_loan(loan_id, updates)))

    @app.delete("/api/loans/<loan_id>")
    def remove_loan(loan_id: str):
        store.remove_loan(loan_id)
        return "", 204

    @app.get("/api/loans/<loan_id>/schedule")
    def loan_schedule(loan_id: str):
        loan = store.get_loan(loan_id)
        entries = generate_amortization_schedule(
            loan,
            _amount_arg(request.args.get("extra"), "extra"),
            _amount_arg(request.args.get("lump_sum"), "lump_sum"),
            start_date=_start_date_arg(request.args.get("start_date")),
        )
        return jsonify(
            {
                "summary": summarize_schedule(loan, entries),
                "schedule": [to_dict(item) for item in entries],
            }
        )

    @app.get("/api/summary")
    def summary():
        loans = store.list_loans()
        start_date = _start_date_arg(request.args.get("start_date"))
        return jsonify(to_dict(calculate_debt_summary(loans, start_date=start_date)))

    @app.post("/api/optimize")
    def optimize():
        body = _json_body()
        if "loans" in body:
            if not isinstance(body["loans"], list):
                raise InvalidLoanError("loans must be a list")
            loans = loans_from_records(body["loans"])
        else:
            loans = store.list_loans()
        result = optimize_debt_payoff(
            loans,
            _amount_arg(body.get("extra_payment"), "extra_payment"),
            _amount_arg(body.get("lump_sum"), "lump_sum"),
            start_date=_start_date_arg(body.get("start_date")),
        )
        logger.info("Optimized %d loans, recommended %s", len(loans), result.recommended_strategy.id)
        return jsonify(optimization_result_to_dict(result, include_schedule=bool(body.get("include_schedule"))))

    return app


if __name__ == "__main__":
    app_config = DebtPayoffConfig.from_env()
    setup_logging(app_config.log_level, app_config.log_format)
    logger.info("Starting debt payoff API...")
    create_app(app_config).run(host="0.0.0.0", port=int(os.environ.get("PORT", "8710")))
