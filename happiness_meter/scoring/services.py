from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Sequence
from typing import TYPE_CHECKING

import structlog

from happiness_meter.ingestion.schema import (
    JourneyReview,
    Phase,
    ReviewChannel,
    Service,
    ServiceKind,
    ServiceReview,
)
from happiness_meter.scoring.aggregator import ScoreAggregator, round_score, weighted_average
from happiness_meter.scoring.schemas import ReviewBreakdown, ServiceScore

if TYPE_CHECKING:
    from happiness_meter.config.settings import ScoringConfig

logger = structlog.get_logger(__name__)


def group_reviews(reviews: Iterable[ServiceReview]) -> dict[str, list[ServiceReview]]:
    grouped: dict[str, list[ServiceReview]] = defaultdict(list)
    for review in reviews:
        grouped[review.service_id].append(review)
    return grouped


class ServiceScoreAggregator:
    """Standalone, journey-blended and entity-wide service scores.

    Every entry point takes the full review collections and picks out what
    belongs to the service itself, so callers never pre-filter by service.
    """

    def __init__(self, config: ScoringConfig) -> None:
        self.config = config
        self.aggregator = ScoreAggregator()

    def standalone_score(self, service: Service, reviews: Sequence[ServiceReview]) -> float:
        own = [r for r in reviews if r.service_id == service.id]
        return round_score(self._standalone(service, own))

    def overall_score(
        self,
        service: Service,
        reviews: Sequence[ServiceReview],
        journey_reviews: Sequence[JourneyReview],
    ) -> float:
        own = [r for r in reviews if r.service_id == service.id]
        return self._overall(service, own, journey_reviews)

    def journey_influence(
        self,
        service: Service,
        reviews: Sequence[ServiceReview],
        journey_reviews: Sequence[JourneyReview],
    ) -> float:
        """Signed shift the journey blend applies to the standalone score."""
        own = [r for r in reviews if r.service_id == service.id]
        standalone = round_score(self._standalone(service, own))
        return round_score(self._overall(service, own, journey_reviews) - standalone)

    def entity_service_score(
        self,
        services: Sequence[Service],
        reviews: Sequence[ServiceReview],
        journey_reviews: Sequence[JourneyReview],
    ) -> float:
        """Review-count weighted average of overall scores; unreviewed services are left out."""
        by_service = group_reviews(reviews)

        pairs: list[tuple[float, int]] = []
        for service in services:
            own = by_service.get(service.id, [])
            review_count = sum(r.n for r in own)
            if review_count > 0:
                pairs.append((self._overall(service, own, journey_reviews), review_count))

        score = round_score(weighted_average(pairs))
        logger.debug(
            "entity_service_scoring_complete",
            services=len(services),
            scored=len(pairs),
            score=score,
        )
        return score

    def score_services(
        self,
        services: Sequence[Service],
        reviews: Sequence[ServiceReview],
        journey_reviews: Sequence[JourneyReview],
    ) -> list[ServiceScore]:
        by_service = group_reviews(reviews)
        return [
            self._score_service(service, by_service.get(service.id, []), journey_reviews)
            for service in services
        ]

    def _score_service(
        self,
        service: Service,
        own: list[ServiceReview],
        journey_reviews: Sequence[JourneyReview],
    ) -> ServiceScore:
        standalone = round_score(self._standalone(service, own))
        overall = self._overall(service, own, journey_reviews)
        breakdown = {channel.value: 0 for channel in ReviewChannel}
        for review in own:
            breakdown[review.channel_of_review.value] += review.n

        return ServiceScore(
            id=service.id,
            name=service.name,
            entity_id=service.entity_id,
            kind=service.kind,
            standalone_score=standalone,
            overall_score=overall,
            journey_influence=round_score(overall - standalone) if service.journey_ids else 0.0,
            review_count=sum(r.n for r in own),
            review_breakdown=ReviewBreakdown(**breakdown),
            journey_enabled=bool(service.journey_ids),
        )

    def _standalone(self, service: Service, own: list[ServiceReview]) -> float:
        if not own:
            return 0.0

        if service.kind == ServiceKind.SIMPLE:
            by_channel: dict[str, list[tuple[float, int]]] = {}
            for review in own:
                by_channel.setdefault(review.channel_of_review.value, []).append(
                    (review.score, review.n)
                )
            # Absent channels contribute 0; their weight is not redistributed.
            return self.aggregator.blend(
                {channel: weighted_average(pairs) for channel, pairs in by_channel.items()},
                self.config.channel_of_review_weights.model_dump(),
            )

        process = [(r.score, r.n) for r in own if r.phase == Phase.PROCESS]
        deliverable = [(r.score, r.n) for r in own if r.phase == Phase.DELIVERABLE]
        return self.aggregator.blend(
            {
                Phase.PROCESS.value: weighted_average(process),
                Phase.DELIVERABLE.value: weighted_average(deliverable),
            },
            self.config.phase_weights.model_dump(),
        )

    def _overall(
        self,
        service: Service,
        own: list[ServiceReview],
        journey_reviews: Sequence[JourneyReview],
    ) -> float:
        standalone = round_score(self._standalone(service, own))
        if not service.journey_ids:
            return standalone

        journeys = set(service.journey_ids)
        journey_score = weighted_average(
            (r.score, r.n) for r in journey_reviews if r.journey_id in journeys
        )
        weights = self.config.journey_blend_weights
        return round_score(standalone * weights.standalone + journey_score * weights.journey)
