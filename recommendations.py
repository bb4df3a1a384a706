"""
Recommendation generation for budget forecasts.

Derives the recommended daily spending ceiling, the templated insight text
and the optional seasonal note comparing this period's pace with the
previous period of the same kind.
"""

import logging
from datetime import date, timedelta
from typing import Hashable, Optional, Sequence

from config_manager import ForecastSettings
from forecast_models import Period, PeriodKind, RiskLevel, Transaction
from period_resolver import previous_period
from spend_aggregation import aggregate_spend
from utils import format_amount

logger = logging.getLogger(__name__)

INSIGHT_TEMPLATES = {
    'en': {
        RiskLevel.LOW: "{name} is on track. You can spend up to {daily}/day for the rest of the period.",
        RiskLevel.MEDIUM: "{name} is approaching its limit. Keep spending under {daily}/day to stay within budget.",
        RiskLevel.HIGH: (
            "{name} is projected to go over budget by {overrun}. "
            "Reduce spending by {reduction}/day and keep it under {daily}/day."
        ),
        'period_closed_over': "{name} went over budget by {overrun} this period.",
    },
    'id': {
        RiskLevel.LOW: "{name} sesuai rencana. Anda dapat membelanjakan hingga {daily}/hari untuk sisa periode.",
        RiskLevel.MEDIUM: "{name} mendekati batas. Jaga pengeluaran di bawah {daily}/hari agar tetap sesuai budget.",
        RiskLevel.HIGH: (
            "{name} diproyeksikan melebihi budget sebesar {overrun}. "
            "Kurangi pengeluaran {reduction}/hari dan jaga di bawah {daily}/hari."
        ),
        'period_closed_over': "{name} melebihi budget sebesar {overrun} pada periode ini.",
    },
}

SEASONAL_TEMPLATES = {
    'en': "Spending is {pct}% {direction} than at the same point last {unit}.",
    'id': "Pengeluaran {pct}% lebih {direction} dibanding titik yang sama {unit} lalu.",
}

_DIRECTIONS = {
    'en': {'up': 'higher', 'down': 'lower'},
    'id': {'up': 'tinggi', 'down': 'rendah'},
}

_PERIOD_UNITS = {
    'en': {PeriodKind.WEEKLY: 'week', PeriodKind.MONTHLY: 'month', PeriodKind.YEARLY: 'year'},
    'id': {PeriodKind.WEEKLY: 'minggu', PeriodKind.MONTHLY: 'bulan', PeriodKind.YEARLY: 'tahun'},
}


def recommended_daily_limit(budget_limit: float, current_spend: float, days_remaining: int) -> float:
    """
    Spend per remaining day that keeps the category within its limit.

    With no days remaining the whole remaining budget is returned.
    """
    remaining_budget = max(0.0, budget_limit - current_spend)
    if days_remaining > 0:
        return remaining_budget / days_remaining
    return remaining_budget


def build_insight(
    risk_level: RiskLevel,
    category_name: str,
    overrun_amount: float,
    daily_limit: float,
    days_remaining: int,
    language: str = 'en'
) -> str:
    """Render the insight sentence for a prediction."""
    templates = INSIGHT_TEMPLATES[language]
    if risk_level is RiskLevel.HIGH and days_remaining == 0:
        template = templates['period_closed_over']
    else:
        template = templates[risk_level]

    reduction = overrun_amount / days_remaining if days_remaining > 0 else overrun_amount
    return template.format(
        name=category_name,
        daily=format_amount(daily_limit),
        overrun=format_amount(overrun_amount),
        reduction=format_amount(reduction)
    )


def build_seasonal_note(
    transactions: Sequence[Transaction],
    category_id: Hashable,
    period_kind: PeriodKind,
    period: Period,
    anchor_date: date,
    current_spend: float,
    settings: ForecastSettings
) -> Optional[str]:
    """
    Compare this period's spend with the previous period at the same point.

    Returns None when the previous period has no expenses for the category,
    when nothing had been spent by the same point of the previous period, or
    when the deviation stays below the configured threshold.
    """
    if period.elapsed_days <= 0:
        return None

    prior = previous_period(period_kind, period, anchor_date)
    prior_total = aggregate_spend(transactions, category_id, prior)
    if prior_total.transaction_count == 0:
        return None

    fraction = period.elapsed_days / period.total_days
    cutoff = prior.start + timedelta(days=prior.total_days * fraction)
    prior_at_point = aggregate_spend(transactions, category_id, prior, until=cutoff).total
    if prior_at_point <= 0:
        logger.debug(
            "No spend for category %s by the same point of the previous period; skipping seasonal note",
            category_id
        )
        return None

    deviation = (current_spend - prior_at_point) / prior_at_point
    if abs(deviation) < settings.deviation_threshold:
        return None

    language = settings.language
    return SEASONAL_TEMPLATES[language].format(
        pct=round(abs(deviation) * 100),
        direction=_DIRECTIONS[language]['up' if deviation > 0 else 'down'],
        unit=_PERIOD_UNITS[language][period_kind]
    )
