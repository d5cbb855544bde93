"""Financial vitality scoring — the only domain that may need I/O.

Design notes:
    - The engine depends on the FinancialScoreProvider protocol and never
      on a concrete provider.  Which provider is used is decided once, at
      wiring time (see main.py), never per call.
    - HeuristicFinancialProvider scores caller-supplied approximate
      inputs synchronously.  It cannot fail.
    - LedgerFinancialProvider asks an external ledger service for account
      metrics over httpx.  Any transport, status or payload problem
      degrades to the heuristic.  It never raises to the engine.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Protocol

import httpx
from pydantic import ValidationError

from atmos_ovr.domain.conditions import FinancialInputs, FinancialMetrics
from atmos_ovr.foundation.clock import utc_now
from atmos_ovr.foundation.numeric import SCORE_MIDPOINT, clamp_score

logger = logging.getLogger(__name__)

USER_AGENT = "atmos-ovr/0.3 (financial-vitality)"

# Neutral values substituted for missing heuristic inputs
_DEFAULT_SAVINGS_PROGRESS = 50.0
_DEFAULT_DEBT_RATIO = 0.3
_DEFAULT_BUDGET_ADHERENCE = 70.0
_DEFAULT_INCOME_GROWTH = 0.0


class FinancialScoreProvider(Protocol):
    """Capability that turns whatever financial data is reachable into a score."""

    async def score(self, inputs: FinancialInputs | None) -> int:
        """Return a financial score in [0, 99].  Must never raise."""
        ...


# ── Pure scoring functions ───────────────────────────────────────────────────

def heuristic_score(inputs: FinancialInputs | None) -> int:
    """Score approximate figures: savings, debt, budget discipline, growth.

    Returns the midpoint when no inputs were supplied at all.
    """
    if inputs is None:
        return SCORE_MIDPOINT

    savings = _or_default(inputs.savings_progress, _DEFAULT_SAVINGS_PROGRESS)
    debt_ratio = _or_default(inputs.debt_ratio, _DEFAULT_DEBT_RATIO)
    budget = _or_default(inputs.budget_adherence, _DEFAULT_BUDGET_ADHERENCE)
    growth = _or_default(inputs.income_growth, _DEFAULT_INCOME_GROWTH)

    score = float(SCORE_MIDPOINT)
    score += savings / 100.0 * 30.0  # 0–30
    score += max(0.0, 20.0 - debt_ratio * 50.0)  # 0–20, lower debt is better
    score += budget / 100.0 * 20.0  # 0–20
    score += min(10.0, max(0.0, growth * 10.0))  # 0–10
    return clamp_score(score)


def metrics_score(metrics: FinancialMetrics) -> int:
    """Score ledger metrics by savings rate, emergency fund, debt and credit bands."""
    score = float(SCORE_MIDPOINT)

    rate = metrics.savings_rate
    if rate >= 20:
        score += 25
    elif rate >= 15:
        score += 20
    elif rate >= 10:
        score += 15
    elif rate >= 5:
        score += 10
    elif rate >= 0:
        score += 5

    fund_months = metrics.emergency_fund / (metrics.monthly_expenses or 1.0)
    if fund_months >= 6:
        score += 20
    elif fund_months >= 3:
        score += 15
    elif fund_months >= 1:
        score += 10

    dti = metrics.debt_to_income_ratio
    if dti <= 0.2:
        score += 15
    elif dti <= 0.3:
        score += 10
    elif dti <= 0.4:
        score += 5

    credit = metrics.credit_score or 0
    if credit >= 750:
        score += 10
    elif credit >= 700:
        score += 7
    elif credit >= 650:
        score += 5

    return clamp_score(score)


def _or_default(value: float | None, default: float) -> float:
    return default if value is None else value


# ── Providers ────────────────────────────────────────────────────────────────

class HeuristicFinancialProvider:
    """Synchronous heuristic over caller-supplied inputs."""

    async def score(self, inputs: FinancialInputs | None) -> int:
        return heuristic_score(inputs)


class LedgerFinancialProvider:
    """Fetches account metrics from an external ledger service.

    Args:
        base_url: Root URL of the ledger service; metrics live at ``/metrics``.
        api_key: Bearer token, sent only when non-empty.
        timeout: Per-request timeout in seconds.
        cache_ttl: How long a successful metrics response is reused.
        transport: Optional httpx transport (tests inject a MockTransport).
    """

    def __init__(
        self,
        base_url: str,
        api_key: str | None = None,
        timeout: float = 10.0,
        cache_ttl: timedelta = timedelta(minutes=5),
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._timeout = timeout
        self._cache_ttl = cache_ttl
        self._transport = transport
        self._cached: FinancialMetrics | None = None
        self._cached_at: datetime | None = None

    async def score(self, inputs: FinancialInputs | None) -> int:
        metrics = await self.fetch_metrics()
        if metrics is None:
            fallback = heuristic_score(inputs)
            logger.warning("Ledger unavailable, using heuristic financial score %d", fallback)
            return fallback
        return metrics_score(metrics)

    async def fetch_metrics(self) -> FinancialMetrics | None:
        """Return fresh or cached metrics, or None if the ledger cannot be read."""
        now = utc_now()
        if (
            self._cached is not None
            and self._cached_at is not None
            and now - self._cached_at < self._cache_ttl
        ):
            return self._cached

        headers = {"User-Agent": USER_AGENT}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"

        try:
            async with httpx.AsyncClient(
                base_url=self._base_url,
                timeout=self._timeout,
                headers=headers,
                transport=self._transport,
            ) as client:
                response = await client.get("/metrics")
                response.raise_for_status()
                metrics = FinancialMetrics.model_validate(response.json())
        except httpx.HTTPStatusError as exc:
            logger.error("Ledger returned HTTP %s", exc.response.status_code)
            return None
        except httpx.HTTPError as exc:
            logger.error("Ledger request failed: %s", exc)
            return None
        except (ValidationError, ValueError) as exc:
            logger.error("Ledger returned an unusable payload: %s", exc)
            return None

        self._cached = metrics
        self._cached_at = now
        logger.debug("Refreshed ledger metrics (savings_rate=%.1f)", metrics.savings_rate)
        return metrics

    def clear_cache(self) -> None:
        self._cached = None
        self._cached_at = None
