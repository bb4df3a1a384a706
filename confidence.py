"""
Confidence scoring for spend projections.

Confidence rises with data maturity (days of the period observed) and with
data sufficiency (number of transactions seen). It never suppresses a
projection; it only tells the caller how much to trust it.
"""

from config_manager import ForecastSettings
from forecast_models import Period


def data_maturity(period: Period, settings: ForecastSettings) -> float:
    """
    Share of the required observation window that has elapsed.

    The window is maturity_fraction of the period, but never shorter than
    min_days.
    """
    required_days = max(float(settings.min_days), period.total_days * settings.maturity_fraction)
    return min(period.elapsed_days / required_days, 1.0)


def data_sufficiency(transaction_count: int, settings: ForecastSettings) -> float:
    """Weight in [sparse_data_weight, 1] that grows with transaction count."""
    coverage = min(transaction_count / settings.min_transactions, 1.0)
    return settings.sparse_data_weight + (1.0 - settings.sparse_data_weight) * coverage


def estimate_confidence(
    period: Period,
    transaction_count: int,
    settings: ForecastSettings
) -> float:
    """
    Score the reliability of a projection in [0, 1].

    A completed period scores 1.0 since its projection is the actual spend.
    """
    if period.elapsed_days >= period.total_days:
        return 1.0
    score = data_maturity(period, settings) * data_sufficiency(transaction_count, settings)
    return round(min(max(score, 0.0), 1.0), 2)
