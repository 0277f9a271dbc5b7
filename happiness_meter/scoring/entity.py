from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from happiness_meter.config.settings import ReportConfig
from happiness_meter.ingestion.schema import ServiceKind
from happiness_meter.scoring.aggregator import ScoreAggregator, round_score
from happiness_meter.scoring.channels import ChannelScoreAggregator
from happiness_meter.scoring.schemas import (
    PerformanceDistribution,
    Scorecard,
    ServicePortfolio,
    ServiceScore,
)
from happiness_meter.scoring.services import ServiceScoreAggregator

if TYPE_CHECKING:
    from happiness_meter.config.settings import ScoringConfig
    from happiness_meter.ingestion.dataset import Dataset

logger = structlog.get_logger(__name__)


class EntityScoreAggregator:
    def __init__(self, config: ScoringConfig, report_config: ReportConfig | None = None) -> None:
        self.config = config
        self.report_config = report_config or ReportConfig()
        self.aggregator = ScoreAggregator()
        self.channels = ChannelScoreAggregator(config, self.report_config)
        self.services = ServiceScoreAggregator(config)

    def combine(self, service_score: float, channel_score: float) -> float:
        weights = self.config.entity_blend_weights
        return round_score(service_score * weights.service + channel_score * weights.channel)

    def entity_score(self, dataset: Dataset) -> float:
        channel_scores = self.channels.score(
            dataset.channels, dataset.channel_ratings, dataset.booths
        )
        service_score = self.services.entity_service_score(
            dataset.services, dataset.service_reviews, dataset.journey_reviews
        )
        return self.combine(service_score, channel_scores.overall)

    def scorecard(self, dataset: Dataset) -> Scorecard:
        """Overview of a (usually entity-scoped) dataset: top-line scores plus service rankings."""
        logger.info("scorecard_start", **dataset.summary())

        channel_scores = self.channels.score(
            dataset.channels, dataset.channel_ratings, dataset.booths
        )
        service_score = self.services.entity_service_score(
            dataset.services, dataset.service_reviews, dataset.journey_reviews
        )
        entity_score = self.combine(service_score, channel_scores.overall)

        scored = [
            s
            for s in self.services.score_services(
                dataset.services, dataset.service_reviews, dataset.journey_reviews
            )
            if s.review_count > 0
        ]
        ranked = sorted(scored, key=lambda s: s.overall_score, reverse=True)
        top_n = self.report_config.top_n
        worst = sorted(
            (s for s in ranked if s.review_count >= self.report_config.min_reviews_for_worst),
            key=lambda s: s.overall_score,
        )

        weights = self.config.entity_blend_weights
        scorecard = Scorecard(
            entity_score=entity_score,
            service_score=service_score,
            channel_score=channel_scores.overall,
            channel_breakdown=channel_scores,
            services=scored,
            top_services=ranked[:top_n],
            worst_services=worst[:top_n],
            performance_distribution=self._distribution(scored),
            portfolio=ServicePortfolio(
                simple=sum(1 for s in dataset.services if s.kind == ServiceKind.SIMPLE),
                multiphase=sum(1 for s in dataset.services if s.kind == ServiceKind.MULTIPHASE),
                journey_enabled=sum(1 for s in dataset.services if s.journey_ids),
                total_reviews=sum(r.n for r in dataset.service_reviews),
            ),
            decomposition=self.aggregator.decompose(
                service_score,
                channel_scores.overall,
                weights=(weights.service, weights.channel),
            ),
        )

        logger.info(
            "scorecard_complete",
            entity_score=entity_score,
            service_score=service_score,
            channel_score=channel_scores.overall,
            scored_services=len(scored),
        )
        return scorecard

    def _distribution(self, services: list[ServiceScore]) -> PerformanceDistribution:
        excellent = self.report_config.excellent_threshold
        good = self.report_config.good_threshold
        return PerformanceDistribution(
            excellent=sum(1 for s in services if s.overall_score >= excellent),
            good=sum(1 for s in services if good <= s.overall_score < excellent),
            needs_attention=sum(1 for s in services if s.overall_score < good),
        )
