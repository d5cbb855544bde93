from atmos_ovr.domain.conditions import Conditions, FinancialInputs, FinancialMetrics, SensorSample
from atmos_ovr.domain.config import DomainWeights, EngineConfig, SmartUpdateConfig
from atmos_ovr.domain.records import CompositeScore, DomainScores, RawReading, ThresholdAlert, TrendSummary

__all__ = [
    "CompositeScore",
    "Conditions",
    "DomainScores",
    "DomainWeights",
    "EngineConfig",
    "FinancialInputs",
    "FinancialMetrics",
    "RawReading",
    "SensorSample",
    "SmartUpdateConfig",
    "ThresholdAlert",
    "TrendSummary",
]
