"""Tests for the loan store and the JSON API."""

from datetime import date
from decimal import Decimal

import pytest

from debt_payoff.config import DebtPayoffConfig
from debt_payoff.data_models import LoanType
from debt_payoff.exceptions import InvalidLoanError, LoanNotFoundError
from debt_payoff.loan_io import example_loans
from debt_payoff_web.app import create_app
from debt_payoff_web.loan_store import LoanStore

NEW_LOAN = {
    "name": "Student Loan",
    "type": "student",
    "currentBalance": 8000,
    "interestRate": 5.5,
    "monthlyPayment": 200,
    "termMonths": 48,
}


@pytest.fixture
def store() -> LoanStore:
    store = LoanStore("sqlite://")
    store.seed_examples()
    return store


@pytest.fixture
def client(store):
    app = create_app(DebtPayoffConfig(), store=store)
    app.config["TESTING"] = True
    return app.test_client()


class TestLoanStore:
    """Tests for LoanStore."""

    def test_seed_only_once(self, store) -> None:
        assert store.seed_examples() == 0
        assert len(store.list_loans()) == 3

    def test_list_is_ordered_by_name(self, store) -> None:
        assert [loan.name for loan in store.list_loans()] == ["Car Loan", "Personal Loan", "Primary Mortgage"]

    def test_values_survive_round_trip(self, store) -> None:
        loan = store.get_loan("loan-personal")

        assert loan.type is LoanType.PERSONAL
        assert loan.current_balance == Decimal("12000")
        assert loan.interest_rate == Decimal("7.2")
        assert loan.fees == Decimal("10")
        assert loan.start_date == date(2023, 1, 1)
        assert loan.color == "#d97706"

    def test_list_by_type(self, store) -> None:
        assert [loan.id for loan in store.list_loans_by_type(LoanType.AUTO)] == ["loan-auto"]
        assert store.list_loans_by_type("student") == []

    def test_get_missing(self, store) -> None:
        with pytest.raises(LoanNotFoundError):
            store.get_loan("missing")

    def test_add_with_taken_id_gets_new_id(self, store) -> None:
        added = store.add_loan(example_loans()[0])

        assert added.id != "loan-mortgage"
        assert added.id.startswith("loan-")
        assert len(store.list_loans()) == 4

    def test_update(self, store) -> None:
        updated = store.update_loan("loan-auto", {"monthly_payment": "600", "color": "#000000"})

        assert updated.monthly_payment == Decimal("600")
        assert store.get_loan("loan-auto").color == "#000000"
        assert store.get_loan("loan-auto").current_balance == Decimal("22000")

    def test_update_rejects_unknown_fields(self, store) -> None:
        with pytest.raises(InvalidLoanError, match="owner"):
            store.update_loan("loan-auto", {"owner": "me"})

    def test_update_validates_merged_record(self, store) -> None:
        with pytest.raises(InvalidLoanError):
            store.update_loan("loan-auto", {"term_months": 0})
        assert store.get_loan("loan-auto").term_months == 60

    def test_update_missing(self, store) -> None:
        with pytest.raises(LoanNotFoundError):
            store.update_loan("missing", {"name": "x"})

    def test_remove(self, store) -> None:
        store.remove_loan("loan-auto")

        with pytest.raises(LoanNotFoundError):
            store.get_loan("loan-auto")
        with pytest.raises(LoanNotFoundError):
            store.remove_loan("loan-auto")


class TestLoanEndpoints:
    """Tests for /api/loans."""

    def test_list(self, client) -> None:
        response = client.get("/api/loans")

        assert response.status_code == 200
        assert [loan["id"] for loan in response.get_json()] == ["loan-auto", "loan-personal", "loan-mortgage"]

    def test_create(self, client) -> None:
        response = client.post("/api/loans", json=NEW_LOAN)

        assert response.status_code == 201
        data = response.get_json()
        assert data["id"].startswith("loan-")
        assert data["type"] == "student"
        assert data["current_balance"] == 8000.0
        assert client.get(f"/api/loans/{data['id']}").status_code == 200

    def test_create_invalid(self, client) -> None:
        response = client.post("/api/loans", json={"name": "Half a loan"})

        assert response.status_code == 400
        assert "missing required fields" in response.get_json()["error"]

    def test_create_requires_json_object(self, client) -> None:
        response = client.post("/api/loans", data="not json", content_type="text/plain")

        assert response.status_code == 400

    def test_get_missing(self, client) -> None:
        response = client.get("/api/loans/missing")

        assert response.status_code == 404
        assert response.get_json() == {"error": "Loan not found: missing"}

    def test_patch(self, client) -> None:
        response = client.patch("/api/loans/loan-auto", json={"monthlyPayment": 650, "id": "ignored"})

        assert response.status_code == 200
        data = response.get_json()
        assert data["id"] == "loan-auto"
        assert data["monthly_payment"] == 650.0

    def test_patch_unknown_field(self, client) -> None:
        response = client.patch("/api/loans/loan-auto", json={"owner": "me"})

        assert response.status_code == 400

    def test_delete(self, client) -> None:
        assert client.delete("/api/loans/loan-auto").status_code == 204
        assert client.delete("/api/loans/loan-auto").status_code == 404


class TestScheduleAndSummaryEndpoints:
    def test_schedule(self, client) -> None:
        response = client.get("/api/loans/loan-personal/schedule?start_date=2025-01")

        assert response.status_code == 200
        data = response.get_json()
        assert 29 <= data["summary"]["months"] <= 30
        assert data["schedule"][0]["interest"] == pytest.approx(72.0)
        assert data["schedule"][0]["date"] == "2025-01-01"

    def test_schedule_with_extra(self, client) -> None:
        plain = client.get("/api/loans/loan-personal/schedule").get_json()
        faster = client.get("/api/loans/loan-personal/schedule?extra=200&lump_sum=1000").get_json()

        assert faster["summary"]["months"] < plain["summary"]["months"]

    @pytest.mark.parametrize("query", ["extra=abc", "lump_sum=-5", "start_date=later"])
    def test_schedule_bad_arguments(self, client, query) -> None:
        response = client.get(f"/api/loans/loan-personal/schedule?{query}")

        assert response.status_code == 400

    def test_schedule_missing_loan(self, client) -> None:
        assert client.get("/api/loans/missing/schedule").status_code == 404

    def test_summary(self, client) -> None:
        data = client.get("/api/summary?start_date=2025-01").get_json()

        assert data["total_debt"] == 354000.0
        assert data["total_monthly_payment"] == 2490.0
        assert data["months_remaining"] > 300


class TestOptimizeEndpoint:
    """Tests for POST /api/optimize."""

    def test_stored_loans(self, client) -> None:
        response = client.post("/api/optimize", json={"extra_payment": 500, "start_date": "2025-01"})

        assert response.status_code == 200
        data = response.get_json()
        assert data["recommended_strategy"] == "snowball_scrapes"
        assert [s["id"] for s in data["strategies"]] == ["avalanche_fixed", "snowball_fixed", "snowball_scrapes"]
        assert "baseline_schedule" not in data
        assert "monthly_schedule" not in data["strategies"][0]

    def test_loans_in_body(self, client) -> None:
        body = {
            "extra_payment": "300",
            "lump_sum": 0,
            "include_schedule": True,
            "loans": [
                {"name": "Cheap", "balance": 2000, "rate": 2, "payment": 100, "term": 60},
                {"name": "Costly", "balance": 20000, "rate": 18, "payment": 400, "term": 60},
            ],
        }

        data = client.post("/api/optimize", json=body).get_json()

        assert data["strategies"][0]["per_debt_details"][0]["loan_id"] == "loan-1"
        assert len(data["baseline_schedule"]) == data["baseline_months"]
        assert data["strategies"][0]["monthly_schedule"][0]["payments"][1]["is_extra_payment"] is True

    def test_loans_must_be_list(self, client) -> None:
        response = client.post("/api/optimize", json={"loans": {"name": "x"}})

        assert response.status_code == 400

    def test_invalid_loan_in_body(self, client) -> None:
        response = client.post("/api/optimize", json={"loans": [{"name": "x"}]})

        assert response.status_code == 400

    def test_negative_extra(self, client) -> None:
        response = client.post("/api/optimize", json={"extra_payment": -1})

        assert response.status_code == 400
        assert "extra_payment" in response.get_json()["error"]
