"""
Domain types for the budget forecast engine.

Budgets and transactions are read-only snapshots supplied by the caller;
periods and predictions are value objects created fresh on every run.
"""

from dataclasses import asdict, dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, Hashable, Optional, Tuple, Union


class PeriodKind(str, Enum):
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class TransactionType(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"
    TRANSFER = "transfer"


class RiskLevel(str, Enum):
    """Risk of overrunning a budget, ordered low < medium < high."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def rank(self) -> int:
        return _RISK_RANK[self]


_RISK_RANK = {RiskLevel.LOW: 0, RiskLevel.MEDIUM: 1, RiskLevel.HIGH: 2}


@dataclass(frozen=True)
class Budget:
    """
    A user-defined spending limit for one category.

    Attributes:
        category_id: Opaque category key
        period_kind: weekly, monthly or yearly (enum or its string value)
        limit_amount: Non-negative spending limit for one period
        anchor_date: Reference date the budget periods start from
    """
    category_id: Hashable
    period_kind: Union[PeriodKind, str]
    limit_amount: float
    anchor_date: date


@dataclass(frozen=True)
class Transaction:
    """A single ledger entry; only expenses count towards budgets."""
    id: Hashable
    category_id: Hashable
    amount: float
    type: Union[TransactionType, str]
    occurred_at: datetime


@dataclass(frozen=True)
class Period:
    """
    Budget period as a half-open interval [start, end).

    Attributes:
        start: First instant of the period
        end: First instant after the period
        total_days: Number of calendar days in the period (always > 0)
        elapsed_days: Calendar days elapsed including the current one,
            clamped to [0, total_days]
    """
    start: datetime
    end: datetime
    total_days: int
    elapsed_days: int

    @property
    def days_remaining(self) -> int:
        return max(self.total_days - self.elapsed_days, 0)

    def contains(self, instant: datetime) -> bool:
        return self.start <= instant < self.end


@dataclass(frozen=True)
class BudgetPrediction:
    """
    End-of-period forecast for one budget.

    Monetary fields are rounded to cents and confidence to two decimals.
    """
    category_id: Hashable
    category_name: str
    period_kind: PeriodKind
    current_spend: float
    projected_spend: float
    budget_limit: float
    overrun_amount: float
    risk_level: RiskLevel
    confidence: float
    days_remaining: int
    recommended_daily_limit: float
    insight: str
    seasonal_note: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to plain Python types (enums become their values)."""
        data = asdict(self)
        data["period_kind"] = self.period_kind.value
        data["risk_level"] = self.risk_level.value
        return data


@dataclass(frozen=True)
class BudgetIssue:
    """A budget that was skipped because it failed validation."""
    category_id: Optional[Hashable]
    message: str


@dataclass(frozen=True)
class PredictionResult:
    """
    Output of one orchestrator run.

    Attributes:
        predictions: One prediction per valid budget, in input order
        overall_risk: Highest risk level among predictions, None when empty
        summary: One-sentence narrative for the whole batch
        errors: Budgets skipped during the run
    """
    predictions: Tuple[BudgetPrediction, ...] = ()
    overall_risk: Optional[RiskLevel] = None
    summary: str = ""
    errors: Tuple[BudgetIssue, ...] = field(default_factory=tuple)

    @property
    def error(self) -> Optional[str]:
        if not self.errors:
            return None
        return "; ".join(f"{issue.category_id}: {issue.message}" for issue in self.errors)

    def find(self, category_id: Hashable) -> Optional[BudgetPrediction]:
        """Return the first prediction for a category, if any."""
        for prediction in self.predictions:
            if prediction.category_id == category_id:
                return prediction
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "predictions": [p.to_dict() for p in self.predictions],
            "overall_risk": self.overall_risk.value if self.overall_risk else None,
            "summary": self.summary,
            "errors": [{"category_id": e.category_id, "message": e.message} for e in self.errors],
        }
