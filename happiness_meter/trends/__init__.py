from happiness_meter.trends.aggregator import (
    AssetTrend,
    AssetTrendPoint,
    JourneyTrend,
    JourneyTrendPoint,
    TrendAggregator,
    TrendPoint,
)

__all__ = [
    "AssetTrend",
    "AssetTrendPoint",
    "JourneyTrend",
    "JourneyTrendPoint",
    "TrendAggregator",
    "TrendPoint",
]
