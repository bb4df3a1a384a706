"""
Prediction orchestration for the budget forecast engine.

Runs the forecast pipeline for every budget:

1. Resolve the current period
2. Aggregate spend in the period
3. Project end-of-period spend
4. Classify risk and estimate confidence
5. Generate the recommendation and insight text

compute_predictions is pure and synchronous. Loading, caching and refresh
state belong to the caller (see prediction_service).
"""

import dataclasses
import logging
import math
from collections import Counter
from datetime import datetime
from typing import Iterable, List, Optional, Sequence, Tuple

from category_directory import CategoryDirectory, resolve_category_name
from config_manager import SUPPORTED_LANGUAGES, ForecastSettings
from confidence import estimate_confidence
from exceptions import BudgetValidationError, InvalidInputError, PeriodResolutionError
from forecast_models import (
    Budget,
    BudgetIssue,
    BudgetPrediction,
    PeriodKind,
    PredictionResult,
    RiskLevel,
    Transaction,
)
from period_resolver import coerce_period_kind, resolve_period
from projection import project_spend
from recommendations import build_insight, build_seasonal_note, recommended_daily_limit
from risk import classify_risk, highest_risk, spend_ratio
from spend_aggregation import aggregate_spend
from utils import round_money

logger = logging.getLogger(__name__)

SUMMARY_TEMPLATES = {
    'en': {
        'empty': "No budgets to forecast{skipped}.",
        'batch': (
            "Forecast for {count} {noun}: {high} high risk, {medium} medium risk, "
            "{low} on track{skipped}."
        ),
        'skipped': " ({count} skipped)",
        'noun': ("budget", "budgets"),
    },
    'id': {
        'empty': "Tidak ada budget untuk diprediksi{skipped}.",
        'batch': (
            "Prediksi untuk {count} {noun}: {high} risiko tinggi, {medium} risiko sedang, "
            "{low} sesuai rencana{skipped}."
        ),
        'skipped': " ({count} dilewati)",
        'noun': ("budget", "budget"),
    },
}


def validate_budget(budget: Budget) -> Tuple[PeriodKind, float]:
    """
    Check a budget record and return its period kind and limit.

    Raises:
        BudgetValidationError: If the limit is missing, non-numeric,
            non-finite or negative, or the period kind is unknown
    """
    raw_limit = getattr(budget, "limit_amount", None)
    try:
        limit = float(raw_limit)
    except (TypeError, ValueError) as exc:
        raise BudgetValidationError(
            "Budget limit must be numeric",
            details={"limit_amount": raw_limit},
            original_error=exc
        ) from exc
    if not math.isfinite(limit):
        raise BudgetValidationError("Budget limit must be finite", details={"limit_amount": raw_limit})
    if limit < 0:
        raise BudgetValidationError("Budget limit cannot be negative", details={"limit_amount": raw_limit})

    try:
        kind = coerce_period_kind(getattr(budget, "period_kind", None))
    except PeriodResolutionError as exc:
        raise BudgetValidationError(
            exc.message,
            details=exc.details,
            original_error=exc
        ) from exc
    return kind, limit


def predict_budget(
    budget: Budget,
    transactions: Sequence[Transaction],
    now: datetime,
    settings: ForecastSettings,
    category_directory: Optional[CategoryDirectory] = None
) -> BudgetPrediction:
    """
    Run the forecast pipeline for one budget.

    Raises:
        BudgetValidationError: If the budget is malformed
        PeriodResolutionError: If the budget period cannot be resolved
    """
    kind, limit = validate_budget(budget)
    period = resolve_period(kind, getattr(budget, "anchor_date", None), now)

    spend = aggregate_spend(transactions, budget.category_id, period)
    projection = project_spend(spend.total, period, limit)

    # Classify on the reported (cent-rounded) figures so risk, overrun and
    # the displayed ratio agree.
    current = round_money(spend.total)
    projected = round_money(projection.projected_spend)
    budget_limit = round_money(limit)
    overrun = round_money(max(0.0, projected - budget_limit))

    ratio = spend_ratio(projected, budget_limit, current)
    risk_level = classify_risk(ratio, settings.medium_threshold, settings.high_threshold)
    confidence = estimate_confidence(period, spend.transaction_count, settings)

    days_remaining = period.days_remaining
    daily_limit = round_money(recommended_daily_limit(limit, spend.total, days_remaining))
    category_name = resolve_category_name(category_directory, budget.category_id)

    insight = build_insight(risk_level, category_name, overrun, daily_limit, days_remaining, settings.language)
    seasonal_note = build_seasonal_note(
        transactions,
        budget.category_id,
        kind,
        period,
        budget.anchor_date,
        spend.total,
        settings
    )

    logger.debug(
        "Budget %s (%s): spend=%.2f projected=%.2f limit=%.2f fraction=%.4f risk=%s confidence=%.2f",
        budget.category_id,
        kind.value,
        spend.total,
        projection.projected_spend,
        limit,
        projection.elapsed_fraction,
        risk_level.value,
        confidence
    )

    return BudgetPrediction(
        category_id=budget.category_id,
        category_name=category_name,
        period_kind=kind,
        current_spend=current,
        projected_spend=projected,
        budget_limit=budget_limit,
        overrun_amount=overrun,
        risk_level=risk_level,
        confidence=confidence,
        days_remaining=days_remaining,
        recommended_daily_limit=daily_limit,
        insight=insight,
        seasonal_note=seasonal_note
    )


def build_summary(
    predictions: Sequence[BudgetPrediction],
    skipped: int = 0,
    language: str = 'en'
) -> str:
    """One-sentence narrative for a batch of predictions."""
    templates = SUMMARY_TEMPLATES[language]
    skipped_text = templates['skipped'].format(count=skipped) if skipped else ""
    if not predictions:
        return templates['empty'].format(skipped=skipped_text)

    counts = Counter(p.risk_level for p in predictions)
    singular, plural = templates['noun']
    return templates['batch'].format(
        count=len(predictions),
        noun=singular if len(predictions) == 1 else plural,
        high=counts[RiskLevel.HIGH],
        medium=counts[RiskLevel.MEDIUM],
        low=counts[RiskLevel.LOW],
        skipped=skipped_text
    )


def compute_predictions(
    budgets: Iterable[Budget],
    transactions: Iterable[Transaction],
    now: Optional[datetime] = None,
    category_directory: Optional[CategoryDirectory] = None,
    settings: Optional[ForecastSettings] = None,
    language: Optional[str] = None
) -> PredictionResult:
    """
    Forecast every budget against the transaction ledger.

    Args:
        budgets: Budget records, forecast in the given order
        transactions: Transaction snapshot covering at least the current
            and previous periods
        now: Reference instant (defaults to the local wall clock)
        category_directory: Optional object with find_by_id for display names
        settings: Forecast tuning parameters (defaults when omitted)
        language: Optional narrative language overriding settings.language

    Returns:
        PredictionResult with predictions, overall risk, summary and the
        budgets that were skipped.

    Raises:
        InvalidInputError: If budgets or transactions is None, now is not a
            datetime, or the language is unsupported
    """
    if budgets is None:
        raise InvalidInputError("budgets must not be None")
    if transactions is None:
        raise InvalidInputError("transactions must not be None")
    if now is None:
        now = datetime.now().astimezone()
    elif not isinstance(now, datetime):
        raise InvalidInputError("now must be a datetime", details={"now": repr(now)})

    settings = settings or ForecastSettings()
    if language is not None:
        if language not in SUPPORTED_LANGUAGES:
            raise InvalidInputError(
                f"Unsupported language '{language}'",
                details={"supported": ", ".join(SUPPORTED_LANGUAGES)}
            )
        settings = dataclasses.replace(settings, language=language)

    ledger = tuple(transactions)
    predictions: List[BudgetPrediction] = []
    issues: List[BudgetIssue] = []

    for budget in budgets:
        category_id = getattr(budget, "category_id", None)
        try:
            predictions.append(predict_budget(budget, ledger, now, settings, category_directory))
        except (BudgetValidationError, PeriodResolutionError) as exc:
            logger.warning("Skipping budget for category %s: %s", category_id, exc)
            issues.append(BudgetIssue(category_id=category_id, message=str(exc)))

    overall_risk = highest_risk(p.risk_level for p in predictions)
    summary = build_summary(predictions, skipped=len(issues), language=settings.language)

    logger.info(
        "Computed %d budget predictions (%d skipped), overall risk: %s",
        len(predictions),
        len(issues),
        overall_risk.value if overall_risk else "none"
    )

    return PredictionResult(
        predictions=tuple(predictions),
        overall_risk=overall_risk,
        summary=summary,
        errors=tuple(issues)
    )
