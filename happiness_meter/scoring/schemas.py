from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from happiness_meter.ingestion.schema import ChannelType, ServiceKind


class _Result(BaseModel):
    model_config = ConfigDict(frozen=True)


class ChannelTypeScores(_Result):
    app: float
    web: float
    service_center: float
    overall: float
    rated_channels: dict[str, int] = Field(default_factory=dict)

    def is_present(self, channel_type: str) -> bool:
        return self.rated_channels.get(channel_type, 0) > 0


class ChannelScore(_Result):
    id: str
    name: str
    type: ChannelType
    score: float
    total_ratings: int
    booth_count: int = 0
    performance_category: str


class ReviewBreakdown(_Result):
    app: int = 0
    web: int = 0
    shared: int = 0


class ServiceScore(_Result):
    id: str
    name: str
    entity_id: str
    kind: ServiceKind
    standalone_score: float
    overall_score: float
    journey_influence: float
    review_count: int
    review_breakdown: ReviewBreakdown
    journey_enabled: bool


class PerformanceDistribution(_Result):
    excellent: int
    good: int
    needs_attention: int


class ServicePortfolio(_Result):
    simple: int
    multiphase: int
    journey_enabled: int
    total_reviews: int


class Scorecard(_Result):
    entity_score: float
    service_score: float
    channel_score: float
    channel_breakdown: ChannelTypeScores
    services: list[ServiceScore]
    top_services: list[ServiceScore]
    worst_services: list[ServiceScore]
    performance_distribution: PerformanceDistribution
    portfolio: ServicePortfolio
    decomposition: dict[str, float]


class JourneyStep(_Result):
    service_id: str
    name: str
    entity_id: str | None
    kind: ServiceKind
    step_index: int
    performance: float
    review_count: int
    is_bottleneck: bool
    known: bool = True


class JourneyAnalysis(_Result):
    id: str
    name: str
    score: float
    review_count: int
    steps: list[JourneyStep]
    involved_entities: list[str]
    is_cross_entity: bool
    complexity: int
    bottleneck_count: int
    average_step_performance: float
    efficiency: float
    performance_category: str
