"""Tests for the stock ledger."""

import random
from datetime import datetime

import pytest

from conftest import make_med
from medtrack.models import MedicationStatus, StockOperation
from medtrack.service.inventory import (
    adjust_stock,
    empty_stock_medications,
    low_stock_medications,
    set_stock,
    update_stock,
)

NOW = datetime(2026, 10, 19, 10, 0)


class TestStockChanges:
    def test_set(self):
        med = set_stock(make_med(stock=3), 30, NOW)
        assert med.stock == 30
        assert med.last_stock_update == NOW

    def test_set_negative_clamps(self):
        assert set_stock(make_med(), -4, NOW).stock == 0

    def test_add_and_subtract(self):
        med = adjust_stock(make_med(stock=5), 3, StockOperation.ADD, NOW)
        assert med.stock == 8
        med = adjust_stock(med, 2, "subtract", NOW)
        assert med.stock == 6

    def test_subtract_below_zero_clamps(self):
        assert adjust_stock(make_med(stock=2), 5, StockOperation.SUBTRACT, NOW).stock == 0

    def test_adjust_rejects_set(self):
        with pytest.raises(ValueError):
            adjust_stock(make_med(), 1, StockOperation.SET, NOW)

    def test_input_not_mutated(self):
        med = make_med(stock=5)
        adjust_stock(med, 1, StockOperation.SUBTRACT, NOW)
        assert med.stock == 5

    def test_update_stock_dispatch(self):
        med = make_med(stock=5)
        assert update_stock(med, 1, StockOperation.SET, NOW).stock == 1
        assert update_stock(med, 1, StockOperation.ADD, NOW).stock == 6
        assert update_stock(med, 1, StockOperation.SUBTRACT, NOW).stock == 4

    def test_never_negative_under_random_adjustments(self):
        rng = random.Random(7)
        med = make_med(stock=5)
        for _ in range(200):
            direction = rng.choice([StockOperation.ADD, StockOperation.SUBTRACT])
            med = adjust_stock(med, rng.randint(0, 9), direction, NOW)
            assert med.stock >= 0


class TestLowStock:
    def test_low_excludes_empty_and_healthy(self):
        low = make_med(name="low", stock=5, low_stock_threshold=5)
        empty = make_med(name="empty", stock=0)
        healthy = make_med(name="healthy", stock=6, low_stock_threshold=5)
        assert [m.name for m in low_stock_medications([low, empty, healthy])] == ["low"]
        assert [m.name for m in empty_stock_medications([low, empty, healthy])] == ["empty"]

    def test_inactive_ignored(self):
        med = make_med(stock=1, status=MedicationStatus.SUSPENDED)
        assert low_stock_medications([med]) == []
        assert empty_stock_medications([make_med(stock=0, status="inactive")]) == []
