"""
Period resolution for budget forecasting.

Computes the boundaries of the budget period that contains a reference
instant. Weekly periods are aligned to the weekday of the budget's anchor
date; monthly and yearly periods follow the calendar.
"""

import logging
from datetime import date, datetime, time, timedelta
from typing import Optional, Tuple, Union

from exceptions import PeriodResolutionError
from forecast_models import Period, PeriodKind

logger = logging.getLogger(__name__)


def coerce_period_kind(value: Union[PeriodKind, str]) -> PeriodKind:
    """
    Convert a period kind value (enum or string) to PeriodKind.

    Raises:
        PeriodResolutionError: If the value is not a known period kind
    """
    if isinstance(value, PeriodKind):
        return value
    try:
        return PeriodKind(str(value).strip().lower())
    except ValueError as exc:
        raise PeriodResolutionError(
            f"Unknown period kind '{value}'",
            details={"supported": ", ".join(k.value for k in PeriodKind)},
            original_error=exc
        ) from exc


def _as_date(value: Union[date, datetime]) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    raise PeriodResolutionError(
        "Anchor date must be a date or datetime",
        details={"anchor_date": repr(value)}
    )


def _next_month_start(day: date) -> date:
    if day.month == 12:
        return date(day.year + 1, 1, 1)
    return date(day.year, day.month + 1, 1)


def get_period_bounds(period_kind: PeriodKind, anchor: date, reference: date) -> Tuple[date, date]:
    """
    Get the first day of the period containing reference and the first day after it.

    Args:
        period_kind: Kind of period
        anchor: Budget anchor date (only its weekday matters for weekly periods)
        reference: Any date inside the desired period

    Returns:
        Tuple of (period_start, period_end) with period_end exclusive.
    """
    if period_kind is PeriodKind.WEEKLY:
        offset = (reference.weekday() - anchor.weekday()) % 7
        start = reference - timedelta(days=offset)
        return start, start + timedelta(days=7)
    if period_kind is PeriodKind.MONTHLY:
        start = reference.replace(day=1)
        return start, _next_month_start(start)
    start = date(reference.year, 1, 1)
    return start, date(reference.year + 1, 1, 1)


def _to_instant(day: date, tzinfo) -> datetime:
    return datetime.combine(day, time.min, tzinfo=tzinfo)


def resolve_period(
    period_kind: Union[PeriodKind, str],
    anchor_date: Union[date, datetime],
    now: datetime
) -> Period:
    """
    Resolve the current budget period.

    The current calendar day counts as elapsed, so the first day of a period
    has one elapsed day. When the anchor date lies after now, the first
    period of the budget is returned with zero elapsed days.

    Args:
        period_kind: weekly, monthly or yearly
        anchor_date: Budget anchor date
        now: Reference instant; its tzinfo is carried onto the boundaries

    Returns:
        Period with start/end instants, total_days and elapsed_days.
    """
    kind = coerce_period_kind(period_kind)
    anchor = _as_date(anchor_date)
    today = now.date()
    reference = max(today, anchor)

    start_day, end_day = get_period_bounds(kind, anchor, reference)
    total_days = (end_day - start_day).days
    elapsed_days = min(max((today - start_day).days + 1, 0), total_days)

    if today < start_day:
        logger.debug(
            "Reference date %s precedes period start %s; elapsed days clamped to 0",
            today,
            start_day
        )

    return Period(
        start=_to_instant(start_day, now.tzinfo),
        end=_to_instant(end_day, now.tzinfo),
        total_days=total_days,
        elapsed_days=elapsed_days
    )


def previous_period(
    period_kind: Union[PeriodKind, str],
    period: Period,
    anchor_date: Optional[Union[date, datetime]] = None
) -> Period:
    """
    Return the same-kind period immediately before the given one.

    The returned period is complete, so elapsed_days equals total_days.
    """
    kind = coerce_period_kind(period_kind)
    current_start = period.start.date()
    anchor = _as_date(anchor_date) if anchor_date is not None else current_start
    start_day, end_day = get_period_bounds(kind, anchor, current_start - timedelta(days=1))
    total_days = (end_day - start_day).days
    return Period(
        start=_to_instant(start_day, period.start.tzinfo),
        end=_to_instant(end_day, period.start.tzinfo),
        total_days=total_days,
        elapsed_days=total_days
    )
