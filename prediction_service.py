"""
Caller-side prediction service.

Wraps the pure forecast engine with the state a UI needs: memoization of
results while inputs are unchanged, a cache lifetime, retried input fetches,
manual refresh that bypasses the cache, loading/refreshing/error flags, and
an in-memory history of computed results that is pruned as it grows.
"""

import logging
import math
import threading
import time
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from category_directory import CategoryDirectory
from config_manager import get_forecast_settings, get_service_settings, load_config
from exceptions import PredictionServiceError
from forecast_models import Budget, BudgetPrediction, PredictionResult, RiskLevel, Transaction
from forecasting import compute_predictions
from utils import format_amount

logger = logging.getLogger(__name__)

BudgetLoader = Callable[[], Iterable[Budget]]
TransactionLoader = Callable[[], Iterable[Transaction]]

_RISK_TEXT = {
    'en': {RiskLevel.LOW: 'Low', RiskLevel.MEDIUM: 'Medium', RiskLevel.HIGH: 'High'},
    'id': {RiskLevel.LOW: 'Rendah', RiskLevel.MEDIUM: 'Sedang', RiskLevel.HIGH: 'Tinggi'},
}


@dataclass(frozen=True)
class StoredPrediction:
    """A computed result kept in the service history."""
    computed_at: datetime
    result: PredictionResult


@dataclass(frozen=True)
class _CacheEntry:
    key: Tuple[Tuple[Budget, ...], Tuple[Transaction, ...], date]
    computed_at: datetime
    result: PredictionResult


class PredictionService:
    """
    Serves budget predictions to a UI layer.

    Budgets and transactions are pulled from the injected loaders on every
    request; the engine is only re-run when they (or the calendar day)
    change, the cache entry has expired, or refresh() is called.
    """

    def __init__(
        self,
        budget_loader: BudgetLoader,
        transaction_loader: TransactionLoader,
        category_directory: Optional[CategoryDirectory] = None,
        config: Optional[Dict[str, Any]] = None,
        clock: Optional[Callable[[], datetime]] = None,
        sleep: Optional[Callable[[float], None]] = None
    ):
        """
        Initialize the prediction service.

        Args:
            budget_loader: Callable returning the user's budgets
            transaction_loader: Callable returning the transaction snapshot
            category_directory: Optional object with find_by_id for display names
            config: Configuration dictionary (loaded from config.yaml when omitted)
            clock: Callable returning "now" (defaults to the local wall clock)
            sleep: Callable used to wait between fetch retries (defaults to time.sleep)
        """
        config = config if config is not None else load_config()
        self.settings = get_forecast_settings(config)
        service_settings = get_service_settings(config)
        self.cache_ttl = timedelta(hours=service_settings["cache_ttl_hours"])
        self.history_retention_days = service_settings["history_retention_days"]
        self.fetch_retries = service_settings["fetch_retries"]
        self.retry_delay_seconds = service_settings["retry_delay_seconds"]
        self.max_retry_delay_seconds = service_settings["max_retry_delay_seconds"]

        self._budget_loader = budget_loader
        self._transaction_loader = transaction_loader
        self._category_directory = category_directory
        self._clock = clock or (lambda: datetime.now().astimezone())
        self._sleep = sleep or time.sleep

        self._lock = threading.RLock()
        self._cache: Optional[_CacheEntry] = None
        self._history: List[StoredPrediction] = []

        self.is_loading = False
        self.is_refreshing = False
        self.error: Optional[PredictionServiceError] = None
        self.last_result: Optional[PredictionResult] = None
        logger.info("Prediction service initialized")

    @property
    def history(self) -> Tuple[StoredPrediction, ...]:
        with self._lock:
            return tuple(self._history)

    def get_predictions(self) -> Optional[PredictionResult]:
        """
        Return predictions, reusing the cached result when it is still valid.

        Returns:
            PredictionResult, or None if the predictions could not be
            produced (the failure is available in self.error)
        """
        return self._load(force=False)

    def refresh(self, cancel_event: Optional[threading.Event] = None) -> Optional[PredictionResult]:
        """
        Recompute predictions, ignoring the cache.

        Args:
            cancel_event: Optional event; when set before the inputs are
                fetched or before the engine runs, the refresh is abandoned
                and the previous result is kept

        Returns:
            The new PredictionResult, the previous result if cancelled, or
            None if the predictions could not be produced
        """
        return self._load(force=True, cancel_event=cancel_event)

    def invalidate(self) -> None:
        """Drop the cached result so the next request recomputes."""
        with self._lock:
            self._cache = None

    def cleanup(self, max_age_days: Optional[float] = None) -> int:
        """
        Remove history entries older than max_age_days.

        Args:
            max_age_days: Age limit (defaults to service.history_retention_days)

        Returns:
            Number of entries removed
        """
        if max_age_days is None:
            max_age_days = self.history_retention_days
        with self._lock:
            removed = self._prune_history(self._clock(), max_age_days)
        if removed:
            logger.info("Removed %d stored predictions older than %s days", removed, max_age_days)
        return removed

    def _prune_history(self, now: datetime, max_age_days: float) -> int:
        cutoff = now - timedelta(days=max_age_days)
        kept = [entry for entry in self._history if entry.computed_at >= cutoff]
        removed = len(self._history) - len(kept)
        self._history = kept
        return removed

    def _retry_delay(self, attempt: int) -> float:
        return min(self.retry_delay_seconds * 2 ** attempt, self.max_retry_delay_seconds)

    def _call_loader(self, loader: Callable[[], Any], source: str) -> Any:
        attempt = 0
        while True:
            try:
                return loader()
            except Exception as exc:
                if attempt >= self.fetch_retries:
                    raise PredictionServiceError(
                        f"Failed to fetch {source}",
                        code="FETCH_ERROR",
                        details={"source": source, "attempts": attempt + 1},
                        original_error=exc
                    ) from exc
                delay = self._retry_delay(attempt)
                logger.warning(
                    "Fetching %s failed (attempt %d of %d), retrying in %.1fs: %s",
                    source,
                    attempt + 1,
                    self.fetch_retries + 1,
                    delay,
                    exc
                )
                self._sleep(delay)
                attempt += 1

    def _fetch_inputs(self) -> Tuple[Tuple[Budget, ...], Tuple[Transaction, ...]]:
        budgets = self._call_loader(self._budget_loader, "budgets")
        transactions = self._call_loader(self._transaction_loader, "transactions")

        if budgets is None or transactions is None:
            raise PredictionServiceError(
                "Loader returned no data",
                code="INVALID_RESPONSE",
                details={"source": "budgets" if budgets is None else "transactions"}
            )
        try:
            return tuple(budgets), tuple(transactions)
        except TypeError as exc:
            raise PredictionServiceError(
                "Loader returned a non-iterable response",
                code="INVALID_RESPONSE",
                original_error=exc
            ) from exc

    def _compute(self, budgets, transactions, now: datetime) -> PredictionResult:
        try:
            return compute_predictions(
                budgets,
                transactions,
                now=now,
                category_directory=self._category_directory,
                settings=self.settings
            )
        except Exception as exc:
            raise PredictionServiceError(
                "Failed to compute predictions",
                code="UNKNOWN_ERROR",
                original_error=exc
            ) from exc

    def _cached(self, key, now: datetime) -> Optional[PredictionResult]:
        entry = self._cache
        if entry is None or entry.key != key:
            return None
        if now - entry.computed_at >= self.cache_ttl:
            logger.debug("Cached predictions expired (computed at %s)", entry.computed_at)
            return None
        return entry.result

    def _load(self, force: bool, cancel_event: Optional[threading.Event] = None) -> Optional[PredictionResult]:
        if cancel_event is not None and cancel_event.is_set():
            logger.info("Prediction refresh cancelled; keeping previous result")
            return self.last_result

        if force:
            self.is_refreshing = True
        else:
            self.is_loading = True
        try:
            # Loaders may do I/O; only the cache and history updates hold the lock.
            now = self._clock()
            budgets, transactions = self._fetch_inputs()
            key = (budgets, transactions, now.date())

            with self._lock:
                if not force:
                    cached = self._cached(key, now)
                    if cached is not None:
                        logger.debug("Serving cached predictions")
                        self.error = None
                        return cached

                if cancel_event is not None and cancel_event.is_set():
                    logger.info("Prediction refresh cancelled; keeping previous result")
                    return self.last_result

                result = self._compute(budgets, transactions, now)
                self._cache = _CacheEntry(key=key, computed_at=now, result=result)
                self._prune_history(now, self.history_retention_days)
                self._history.append(StoredPrediction(computed_at=now, result=result))
                self.last_result = result
                self.error = None
                return result

        except PredictionServiceError as exc:
            logger.error("Failed to load predictions: %s", exc, exc_info=True)
            self.error = exc
            return None
        finally:
            self.is_loading = False
            self.is_refreshing = False


def _half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def format_prediction(prediction: BudgetPrediction, language: str = 'en') -> Dict[str, Any]:
    """
    Build display fields for a prediction card.

    Amounts are rendered as plain numbers; currency symbols and locale
    formatting are left to the UI.

    Returns:
        Dictionary with title, subtitle, percentage, progress_band,
        risk_text, confidence_text, recommendation and seasonal_note.
    """
    if language not in _RISK_TEXT:
        raise PredictionServiceError(
            f"Unsupported language '{language}'",
            code="INVALID_REQUEST",
            details={"supported": ", ".join(_RISK_TEXT)}
        )

    percentage = (
        _half_up(prediction.projected_spend / prediction.budget_limit * 100)
        if prediction.budget_limit > 0 else 0
    )
    if percentage >= 100:
        progress_band = 'over'
    elif percentage >= 85:
        progress_band = 'warning'
    else:
        progress_band = 'ok'

    label = 'Projected' if language == 'en' else 'Proyeksi'
    confidence_word = 'confidence' if language == 'en' else 'keyakinan'
    return {
        "title": prediction.category_name,
        "subtitle": (
            f"{label}: {format_amount(prediction.projected_spend)} / "
            f"{format_amount(prediction.budget_limit)}"
        ),
        "percentage": percentage,
        "progress_band": progress_band,
        "risk_text": _RISK_TEXT[language][prediction.risk_level],
        "confidence_text": f"{_half_up(prediction.confidence * 100)}% {confidence_word}",
        "recommendation": prediction.insight,
        "seasonal_note": prediction.seasonal_note,
    }
