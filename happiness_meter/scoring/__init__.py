from happiness_meter.scoring.aggregator import ScoreAggregator, round_score, weighted_average
from happiness_meter.scoring.channels import ChannelScoreAggregator
from happiness_meter.scoring.entity import EntityScoreAggregator
from happiness_meter.scoring.journeys import JourneyAnalyzer
from happiness_meter.scoring.services import ServiceScoreAggregator

__all__ = [
    "ChannelScoreAggregator",
    "EntityScoreAggregator",
    "JourneyAnalyzer",
    "ScoreAggregator",
    "ServiceScoreAggregator",
    "round_score",
    "weighted_average",
]
