"""Conversion of result dataclasses into JSON-ready dictionaries."""

from dataclasses import fields, is_dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from .data_models import DebtOptimizationStrategy, OptimizationResult


def to_dict(obj: Any) -> dict:
    """Convert a dataclass instance to a dict with JSON-friendly values."""
    if is_dataclass(obj) and not isinstance(obj, type):
        return {f.name: serialize_value(getattr(obj, f.name)) for f in fields(obj)}
    elif isinstance(obj, dict):
        return {k: serialize_value(v) for k, v in obj.items()}
    raise TypeError(f"Cannot convert {type(obj).__name__} to dict")


def serialize_value(value: Any) -> Any:
    """Serialize a value for JSON output.

    Decimals become floats, which is what charting and export consumers
    expect; enums become their value and dates ISO strings.
    """
    if isinstance(value, Decimal):
        return float(value)
    elif isinstance(value, Enum):
        return value.value
    elif isinstance(value, (datetime, date)):
        return value.isoformat()
    elif is_dataclass(value) and not isinstance(value, type):
        return to_dict(value)
    elif isinstance(value, dict):
        return {k: serialize_value(v) for k, v in value.items()}
    elif isinstance(value, (list, tuple)):
        return [serialize_value(v) for v in value]
    return value


def strategy_to_dict(strategy: DebtOptimizationStrategy, include_schedule: bool = True) -> dict:
    data = to_dict(strategy)
    data["months"] = strategy.months
    if not include_schedule:
        data.pop("monthly_schedule")
    return data


def optimization_result_to_dict(result: OptimizationResult, include_schedule: bool = True) -> dict:
    """Serialize an optimization result.

    Monthly schedules make up almost all of the payload; leave them out with
    ``include_schedule=False`` when only the comparison is needed.
    """
    data = {
        "strategies": [strategy_to_dict(s, include_schedule) for s in result.strategies],
        "recommended_strategy": result.recommended_strategy.id,
        "explanation": result.explanation,
        "baseline_total_interest": serialize_value(result.baseline_total_interest),
        "baseline_months": result.baseline_months,
    }
    if include_schedule:
        data["baseline_schedule"] = serialize_value(result.baseline_schedule)
    return data
