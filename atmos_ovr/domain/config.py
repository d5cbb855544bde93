"""Engine configuration — domain weights and smart-update parameters.

Both dataclasses are frozen.  The engine swaps in a new instance on every
update so that a tick in flight always sees one consistent configuration.
Weights are expected to sum to 1.0 but are never normalised or rejected.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import timedelta

from atmos_ovr.domain.enums import Domain


@dataclass(frozen=True)
class DomainWeights:
    """Per-domain weights used to combine sub-scores into the composite."""

    biological: float = 0.30
    emotional: float = 0.25
    environmental: float = 0.20
    financial: float = 0.25

    def weight_of(self, domain: Domain) -> float:
        if domain is Domain.BIOLOGICAL:
            return self.biological
        if domain is Domain.EMOTIONAL:
            return self.emotional
        if domain is Domain.ENVIRONMENTAL:
            return self.environmental
        if domain is Domain.FINANCIAL:
            return self.financial
        raise ValueError(f"unknown domain: {domain!r}")

    @property
    def total(self) -> float:
        return self.biological + self.emotional + self.environmental + self.financial

    def combine(
        self,
        biological: float,
        emotional: float,
        environmental: float,
        financial: float,
    ) -> float:
        """Weighted sum of the four domain values (unrounded, unclamped)."""
        return (
            biological * self.biological
            + emotional * self.emotional
            + environmental * self.environmental
            + financial * self.financial
        )


@dataclass(frozen=True)
class SmartUpdateConfig:
    """Parameters of the adaptive publish policy and real-time alerting."""

    min_interval: timedelta = timedelta(minutes=5)
    max_interval: timedelta = timedelta(minutes=15)
    # Raw readings averaged per publish
    moving_average_window: int = 10
    # Raw-to-raw delta (points) that raises an alert
    threshold_sensitivity: float = 3.0
    # |micro_trend| that counts as a short-horizon move
    micro_trend_sensitivity: float = 1.5
    # Variance of recent raw overall values that triggers an early publish
    early_update_variance: float = 10.0


@dataclass(frozen=True)
class EngineConfig:
    weights: DomainWeights = field(default_factory=DomainWeights)
    smart_update: SmartUpdateConfig = field(default_factory=SmartUpdateConfig)

    def with_weights(self, **changes: float) -> EngineConfig:
        """Return a copy with some weights replaced.

        Raises:
            TypeError: If a field name is not a known weight.
        """
        return replace(self, weights=replace(self.weights, **changes))

    def with_smart_update(self, **changes) -> EngineConfig:
        """Return a copy with some smart-update parameters replaced.

        Raises:
            TypeError: If a field name is not a known parameter.
        """
        return replace(self, smart_update=replace(self.smart_update, **changes))
