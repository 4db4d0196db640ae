"""Custom exception hierarchy for the debt payoff planner.

The simulation functions never raise on numeric input; these errors come from
the edges where loan records, files, configuration and storage are handled.
"""


class DebtPayoffError(Exception):
    """Base exception for all debt payoff errors."""


class InvalidLoanError(DebtPayoffError, ValueError):
    """Raised when a loan record or loan file is malformed."""


class LoanNotFoundError(DebtPayoffError, KeyError):
    """Raised when a referenced loan does not exist in the store."""

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the plain message.
        return str(self.args[0]) if self.args else ""


class ConfigurationError(DebtPayoffError):
    """Raised when configuration is invalid or missing."""
