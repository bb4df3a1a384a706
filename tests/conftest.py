import itertools
import os
from datetime import date, datetime

import pytest

from forecast_models import Budget, Transaction, TransactionType

# Point the config loader at a file that does not exist so a developer's
# local config.yaml never leaks into test runs.
os.environ.setdefault("BUDGET_FORECAST_CONFIG", "tests/.no-config.yaml")


@pytest.fixture
def make_budget():
    """Factory for Budget records with sensible defaults."""

    def _make(
        category_id=1,
        period_kind="monthly",
        limit_amount=1000.0,
        anchor_date=date(2024, 1, 1)
    ):
        return Budget(
            category_id=category_id,
            period_kind=period_kind,
            limit_amount=limit_amount,
            anchor_date=anchor_date
        )

    return _make


@pytest.fixture
def make_expense():
    """Factory for expense transactions with unique ids."""
    counter = itertools.count(1)

    def _make(amount, occurred_at, category_id=1, tx_type=TransactionType.EXPENSE):
        return Transaction(
            id=f"tx-{next(counter)}",
            category_id=category_id,
            amount=amount,
            type=tx_type,
            occurred_at=occurred_at
        )

    return _make


@pytest.fixture
def june_15():
    """Mid-June 2024 reference instant (June has 30 days)."""
    return datetime(2024, 6, 15, 12, 0)
