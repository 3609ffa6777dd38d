import json

import pytest

from renewly.models.records import BillRecord, BudgetRecord, SubscriptionRecord
from renewly.utils.currency import CurrencyNormalizer, StaticRateLookup, select_base_currency


def test_convert_between_known_currencies():
    normalizer = CurrencyNormalizer()
    assert normalizer.convert(100, "EUR", "USD") == pytest.approx(100 / 1.07)
    assert normalizer.convert(100, "USD", "GBP") == pytest.approx(125.0)


def test_same_currency_is_unchanged():
    assert CurrencyNormalizer().convert(42.5, "GBP", "GBP") == 42.5


def test_unknown_codes_use_neutral_factor():
    normalizer = CurrencyNormalizer()
    assert normalizer.convert(10, "XYZ", "USD") == 10
    assert normalizer.convert(10, None, "USD") == 10
    assert normalizer.convert(None, "USD", "EUR") == 0


def test_injected_rate_lookup_replaces_static_table():
    normalizer = CurrencyNormalizer(lambda code: {"USD": 1.0, "JPY": 150.0}.get(code))
    assert normalizer.convert(1, "USD", "JPY") == pytest.approx(150.0)
    # EUR is unknown to this lookup
    assert normalizer.convert(10, "EUR", "USD") == 10


def test_rate_lookup_loads_overrides_from_json(tmp_path):
    path = tmp_path / "factors.json"
    path.write_text(json.dumps({"cad": 0.73}))
    lookup = StaticRateLookup.from_json(path)
    assert lookup("CAD") == 0.73
    assert lookup("EUR") == 1.07


def test_rate_lookup_ignores_missing_file(tmp_path):
    lookup = StaticRateLookup.from_json(tmp_path / "missing.json")
    assert lookup("GBP") == 1.25
    assert lookup("CAD") is None


def test_budget_currency_wins():
    budget = BudgetRecord(monthly_limit=100, currency="GBP")
    subs = [SubscriptionRecord(name="A", price=1, currency="EUR")]
    assert select_base_currency(budget, subs, []) == "GBP"


def test_majority_currency_across_subscriptions_and_bills():
    subs = [
        SubscriptionRecord(name="A", price=1, currency="USD"),
        SubscriptionRecord(name="B", price=1, currency="EUR"),
    ]
    bills = [
        BillRecord(name="Rent", amount=1, currency="EUR"),
        BillRecord(name="Power", amount=1, currency="EUR"),
    ]
    assert select_base_currency(None, subs, bills) == "EUR"


def test_tie_goes_to_first_observed_code():
    subs = [
        SubscriptionRecord(name="A", price=1, currency="GBP"),
        SubscriptionRecord(name="B", price=1, currency="EUR"),
    ]
    bills = [BillRecord(name="Rent", amount=1, currency="EUR"), BillRecord(name="Gas", amount=1, currency="GBP")]
    assert select_base_currency(None, subs, bills) == "GBP"


def test_default_currency_without_records():
    assert select_base_currency(None, [], []) == "USD"
    assert select_base_currency(BudgetRecord(monthly_limit=10), [], []) == "USD"


def test_lowercase_codes_use_loaded_factors(tmp_path):
    path = tmp_path / "factors.json"
    path.write_text(json.dumps({"CAD": 0.73}))
    normalizer = CurrencyNormalizer(StaticRateLookup.from_json(path))
    assert normalizer.factor("eur") == 1.07
    assert normalizer.factor("cad") == 0.73
    assert normalizer.convert(100, "gbp", "USD") == pytest.approx(80.0)
