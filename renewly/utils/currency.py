"""
Currency normalisation.

Amounts are converted through a factor table relative to a reference
currency (USD). The table is looked up through a ``RateLookup`` callable so a
live-rate source can replace the static one without touching the analytics.
"""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Callable, Dict, Iterable, Optional

from renewly.models.records import BillRecord, BudgetRecord, SubscriptionRecord

logger = logging.getLogger(__name__)

REFERENCE_CURRENCY = "USD"

DEFAULT_CURRENCY_FACTORS: Dict[str, float] = {
    "USD": 1.0,
    "EUR": 1.07,
    "GBP": 1.25,
}

RateLookup = Callable[[str], Optional[float]]


class StaticRateLookup:
    """Factor lookup backed by an in-memory table."""

    def __init__(self, factors: Optional[Dict[str, float]] = None) -> None:
        self._factors = dict(DEFAULT_CURRENCY_FACTORS if factors is None else factors)

    @classmethod
    def from_json(cls, path: Optional[str | Path]) -> "StaticRateLookup":
        """Default table, extended by a JSON ``{code: factor}`` file when it exists."""
        factors = dict(DEFAULT_CURRENCY_FACTORS)
        if not path:
            return cls(factors)

        factors_file = Path(path)
        if not factors_file.exists():
            return cls(factors)

        with factors_file.open() as fp:
            overrides = json.load(fp)
        logger.info(f"Loaded {len(overrides)} currency factors from {factors_file}")
        factors.update({code.upper(): float(value) for code, value in overrides.items()})
        return cls(factors)

    def __call__(self, code: str) -> Optional[float]:
        return self._factors.get(code)


class CurrencyNormalizer:
    def __init__(self, lookup: Optional[RateLookup] = None) -> None:
        self._lookup = lookup or StaticRateLookup()

    def factor(self, code: Optional[str]) -> float:
        # Unknown codes are treated as the reference currency.
        if not code:
            return 1.0
        value = self._lookup(code.upper())
        if not value:
            return 1.0
        return float(value)

    def convert(self, amount: Optional[float], from_code: Optional[str], to_code: Optional[str]) -> float:
        amount = float(amount or 0)
        if from_code == to_code:
            return amount
        return (amount / self.factor(from_code)) * self.factor(to_code)


def select_base_currency(
    budget: Optional[BudgetRecord],
    subscriptions: Iterable[SubscriptionRecord],
    bills: Iterable[BillRecord],
    default: str = REFERENCE_CURRENCY,
) -> str:
    """
    Pick the currency every figure of one computation is expressed in.

    The budget currency wins when set. Otherwise the most frequent code across
    subscriptions and then bills is used; among tied codes the one seen first
    (subscriptions scanned before bills, each in the given order) wins.
    """
    if budget is not None and budget.currency:
        return budget.currency

    counts: Dict[str, int] = {}
    for record in [*subscriptions, *bills]:
        if record.currency:
            counts[record.currency] = counts.get(record.currency, 0) + 1

    if not counts:
        return default

    selected, max_count = default, 0
    for code, count in counts.items():
        if count > max_count:
            selected, max_count = code, count
    return selected
