"""
Run-rate projection of end-of-period spend.

Spend so far is divided by the fraction of the period that has elapsed.
Early in a period this overreacts by construction; the confidence score
communicates that instead of damping the projection.
"""

from dataclasses import dataclass

from forecast_models import Period


@dataclass(frozen=True)
class Projection:
    """
    Attributes:
        elapsed_fraction: Share of the period elapsed, in [1/total_days, 1]
        projected_spend: Extrapolated spend for the whole period
        overrun_amount: max(0, projected_spend - budget_limit)
    """
    elapsed_fraction: float
    projected_spend: float
    overrun_amount: float


def elapsed_fraction(period: Period) -> float:
    """Return the elapsed fraction of a period, floored at one day."""
    floor = 1.0 / period.total_days
    fraction = period.elapsed_days / period.total_days
    return min(max(fraction, floor), 1.0)


def project_spend(current_spend: float, period: Period, budget_limit: float) -> Projection:
    """
    Extrapolate current spend to a full-period projection.

    A completed period returns current_spend unchanged; nothing is
    extrapolated beyond actuals.
    """
    fraction = elapsed_fraction(period)
    if fraction >= 1.0:
        projected = current_spend
    else:
        projected = current_spend / fraction
    return Projection(
        elapsed_fraction=fraction,
        projected_spend=projected,
        overrun_amount=max(0.0, projected - budget_limit)
    )
