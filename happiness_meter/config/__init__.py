from happiness_meter.config.settings import (
    AlertConfig,
    ChannelOfReviewWeights,
    ChannelTypeWeights,
    EntityBlendWeights,
    JourneyBlendWeights,
    PhaseWeights,
    ReportConfig,
    ScoringConfig,
    Settings,
    TrendConfig,
)

__all__ = [
    "AlertConfig",
    "ChannelOfReviewWeights",
    "ChannelTypeWeights",
    "EntityBlendWeights",
    "JourneyBlendWeights",
    "PhaseWeights",
    "ReportConfig",
    "ScoringConfig",
    "Settings",
    "TrendConfig",
]
