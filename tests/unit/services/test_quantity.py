import math
from decimal import Decimal

import pytest

from inventory_sync.services.quantity import normalize_quantity


@pytest.mark.parametrize("value, expected", [
    ("42", 42),
    (42.9, 42),
    (None, 0),
    ("abc", 0),
])
def test_normalize_documented_examples(value, expected):
    assert normalize_quantity(value) == expected


def test_normalize_truncates_toward_zero():
    assert normalize_quantity(-3.7) == -3
    assert normalize_quantity(Decimal("9.99")) == 9


def test_normalize_string_prefix_parsing():
    """Strings parse a leading base-10 integer and ignore the rest"""
    assert normalize_quantity(" 7 units") == 7
    assert normalize_quantity("42.9") == 42
    assert normalize_quantity("-5") == -5
    assert normalize_quantity("") == 0
    assert normalize_quantity("units 7") == 0


def test_normalize_never_raises_on_odd_input():
    assert normalize_quantity(math.nan) == 0
    assert normalize_quantity(math.inf) == 0
    assert normalize_quantity(True) == 0
    assert normalize_quantity({"qty": 3}) == 0
    assert normalize_quantity([1, 2]) == 0
    assert normalize_quantity(b"12") == 12
