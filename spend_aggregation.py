"""
Spend aggregation for budget forecasting.

Sums the expense transactions of one category that fall inside a budget
period. Everything here is a pure function of its inputs.
"""

import logging
import math
from dataclasses import dataclass
from datetime import datetime, tzinfo
from typing import Hashable, Iterable, Optional

from forecast_models import Period, Transaction, TransactionType

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SpendSummary:
    """
    Aggregated spending for one category and window.

    Attributes:
        total: Sum of matching expense amounts (never negative)
        transaction_count: Number of transactions included in the total
    """
    total: float = 0.0
    transaction_count: int = 0


def is_expense(transaction: Transaction) -> bool:
    """Return True if the transaction type is expense (enum or string)."""
    kind = transaction.type
    if isinstance(kind, TransactionType):
        return kind is TransactionType.EXPENSE
    return str(kind).strip().lower() == TransactionType.EXPENSE.value


def align_instant(instant: datetime, zone: Optional[tzinfo]) -> datetime:
    """
    Make an instant comparable with period boundaries in the given zone.

    Naive instants are read as wall time in that zone; aware instants are
    reduced to wall time when the period itself is naive.
    """
    if instant.tzinfo is None and zone is not None:
        return instant.replace(tzinfo=zone)
    if instant.tzinfo is not None and zone is None:
        return instant.replace(tzinfo=None)
    return instant


def _amount(transaction: Transaction) -> Optional[float]:
    try:
        value = float(transaction.amount)
    except (TypeError, ValueError):
        logger.warning(
            "Ignoring transaction %s with non-numeric amount %r",
            transaction.id,
            transaction.amount
        )
        return None
    if not math.isfinite(value) or value <= 0:
        logger.debug("Ignoring transaction %s with non-positive amount %s", transaction.id, value)
        return None
    return value


def aggregate_spend(
    transactions: Iterable[Transaction],
    category_id: Hashable,
    period: Period,
    until: Optional[datetime] = None
) -> SpendSummary:
    """
    Sum expense transactions for a category inside [period.start, period.end).

    Args:
        transactions: Ledger snapshot (any category, any type)
        category_id: Category to aggregate
        period: Window to aggregate over
        until: Optional exclusive cutoff inside the period, used to measure
            spend up to a point in time

    Returns:
        SpendSummary with the total and the number of counted transactions.
    """
    zone = period.start.tzinfo
    end = period.end if until is None else min(period.end, align_instant(until, zone))

    amounts = []
    for transaction in transactions:
        if transaction.category_id != category_id or not is_expense(transaction):
            continue
        if not isinstance(transaction.occurred_at, datetime):
            logger.warning(
                "Ignoring transaction %s with invalid timestamp %r",
                transaction.id,
                transaction.occurred_at
            )
            continue
        occurred_at = align_instant(transaction.occurred_at, zone)
        if not (period.start <= occurred_at < end):
            continue
        amount = _amount(transaction)
        if amount is not None:
            amounts.append(amount)

    return SpendSummary(total=math.fsum(amounts), transaction_count=len(amounts))
