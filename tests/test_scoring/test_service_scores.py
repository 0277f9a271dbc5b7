from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING

import pytest

from happiness_meter.config.settings import ScoringConfig
from happiness_meter.ingestion.schema import (
    JourneyReview,
    Phase,
    ReviewChannel,
    Service,
    ServiceKind,
    ServiceReview,
)
from happiness_meter.scoring.services import ServiceScoreAggregator

if TYPE_CHECKING:
    from happiness_meter.ingestion.dataset import Dataset

TS = date(2025, 9, 1)


def _review(
    service_id: str,
    channel: ReviewChannel,
    score: float,
    n: int,
    phase: Phase | None = None,
) -> ServiceReview:
    return ServiceReview(
        service_id=service_id,
        ts=TS,
        channel_of_review=channel,
        score=score,
        n=n,
        phase=phase,
    )


@pytest.fixture  # type: ignore[misc]
def simple_service() -> Service:
    return Service(id="s1", entity_id="e", kind=ServiceKind.SIMPLE)


@pytest.fixture  # type: ignore[misc]
def multiphase_service() -> Service:
    return Service(id="m1", entity_id="e", kind=ServiceKind.MULTIPHASE)


class TestStandaloneScore:
    def test_simple_service_fixed_weights(
        self, scoring_config: ScoringConfig, simple_service: Service
    ) -> None:
        reviews = [
            _review("s1", ReviewChannel.APP, 80, 100),
            _review("s1", ReviewChannel.WEB, 60, 50),
        ]

        aggregator = ServiceScoreAggregator(scoring_config)

        assert aggregator.standalone_score(simple_service, reviews) == 46.0
        assert aggregator.overall_score(simple_service, reviews, []) == 46.0

    def test_simple_service_weights_by_count_within_channel(
        self, scoring_config: ScoringConfig, simple_service: Service
    ) -> None:
        reviews = [
            _review("s1", ReviewChannel.SHARED, 90, 3),
            _review("s1", ReviewChannel.SHARED, 70, 1),
        ]

        result = ServiceScoreAggregator(scoring_config).standalone_score(simple_service, reviews)

        assert result == 30.6

    def test_multiphase_service(
        self, scoring_config: ScoringConfig, multiphase_service: Service
    ) -> None:
        reviews = [
            _review("m1", ReviewChannel.WEB, 90, 10, Phase.PROCESS),
            _review("m1", ReviewChannel.APP, 70, 5, Phase.DELIVERABLE),
        ]

        result = ServiceScoreAggregator(scoring_config).standalone_score(
            multiphase_service, reviews
        )

        assert result == 86.0

    def test_multiphase_missing_phase_contributes_zero(
        self, scoring_config: ScoringConfig, multiphase_service: Service
    ) -> None:
        reviews = [_review("m1", ReviewChannel.WEB, 90, 10, Phase.PROCESS)]

        result = ServiceScoreAggregator(scoring_config).standalone_score(
            multiphase_service, reviews
        )

        assert result == 72.0

    def test_no_reviews_is_zero(
        self, scoring_config: ScoringConfig, simple_service: Service
    ) -> None:
        assert ServiceScoreAggregator(scoring_config).standalone_score(simple_service, []) == 0.0

    def test_other_services_reviews_are_ignored(
        self, scoring_config: ScoringConfig, simple_service: Service
    ) -> None:
        reviews = [_review("other", ReviewChannel.APP, 100, 1000)]

        assert (
            ServiceScoreAggregator(scoring_config).standalone_score(simple_service, reviews) == 0.0
        )

    def test_custom_weights(self, simple_service: Service) -> None:
        config = ScoringConfig.from_options(
            {"channelOfReviewWeights": {"app": 1.0, "web": 0.0, "shared": 0.0}}
        )
        reviews = [
            _review("s1", ReviewChannel.APP, 80, 100),
            _review("s1", ReviewChannel.WEB, 60, 50),
        ]

        assert ServiceScoreAggregator(config).standalone_score(simple_service, reviews) == 80.0


class TestOverallScore:
    def test_journey_blend(self, scoring_config: ScoringConfig) -> None:
        service = Service(id="s1", entity_id="e", journey_ids=("j1",))
        reviews = [_review("s1", ReviewChannel.APP, 85, 120)]
        journey_reviews = [JourneyReview(journey_id="j1", ts=TS, score=75, n=25)]

        aggregator = ServiceScoreAggregator(scoring_config)

        assert aggregator.standalone_score(service, reviews) == 32.3
        assert aggregator.overall_score(service, reviews, journey_reviews) == 45.11
        assert aggregator.journey_influence(service, reviews, journey_reviews) == 12.81

    def test_journey_reviews_of_other_journeys_are_ignored(
        self, scoring_config: ScoringConfig
    ) -> None:
        service = Service(id="s1", entity_id="e", journey_ids=("j1",))
        reviews = [_review("s1", ReviewChannel.APP, 85, 120)]
        journey_reviews = [JourneyReview(journey_id="j2", ts=TS, score=75, n=25)]

        result = ServiceScoreAggregator(scoring_config).overall_score(
            service, reviews, journey_reviews
        )

        assert result == 22.61

    def test_without_journeys_equals_standalone(
        self, scoring_config: ScoringConfig, simple_service: Service
    ) -> None:
        reviews = [_review("s1", ReviewChannel.APP, 77, 9)]
        journey_reviews = [JourneyReview(journey_id="j1", ts=TS, score=10, n=500)]

        aggregator = ServiceScoreAggregator(scoring_config)

        assert aggregator.overall_score(
            simple_service, reviews, journey_reviews
        ) == aggregator.standalone_score(simple_service, reviews)
        assert aggregator.journey_influence(simple_service, reviews, journey_reviews) == 0.0


class TestEntityServiceScore:
    def test_weighted_by_review_volume(
        self, scoring_config: ScoringConfig, municipality: Dataset
    ) -> None:
        result = ServiceScoreAggregator(scoring_config).entity_service_score(
            municipality.services, municipality.service_reviews, municipality.journey_reviews
        )

        assert result == 62.57

    def test_unreviewed_services_are_left_out(self, scoring_config: ScoringConfig) -> None:
        services = [
            Service(id="s1", entity_id="e"),
            Service(id="s2", entity_id="e", journey_ids=("j1",)),
        ]
        reviews = [_review("s1", ReviewChannel.APP, 50, 10)]
        journey_reviews = [JourneyReview(journey_id="j1", ts=TS, score=100, n=10)]

        result = ServiceScoreAggregator(scoring_config).entity_service_score(
            services, reviews, journey_reviews
        )

        assert result == 19.0

    def test_no_services_is_zero(self, scoring_config: ScoringConfig) -> None:
        assert ServiceScoreAggregator(scoring_config).entity_service_score([], [], []) == 0.0


class TestScoreServices:
    def test_sample_services(self, scoring_config: ScoringConfig, municipality: Dataset) -> None:
        results = ServiceScoreAggregator(scoring_config).score_services(
            municipality.services, municipality.service_reviews, municipality.journey_reviews
        )
        by_id = {s.id: s for s in results}

        assert [s.id for s in results] == ["srv-001", "srv-002", "srv-010"]

        simple = by_id["srv-001"]
        assert simple.standalone_score == 50.5
        assert simple.overall_score == 56.35
        assert simple.journey_influence == 5.85
        assert simple.review_count == 160
        assert simple.review_breakdown.app == 120
        assert simple.review_breakdown.web == 40
        assert simple.journey_enabled

        multiphase = by_id["srv-002"]
        assert multiphase.standalone_score == 75.2
        assert multiphase.overall_score == 73.64
        assert multiphase.journey_influence == -1.56

        unreviewed = by_id["srv-010"]
        assert unreviewed.review_count == 0
        assert unreviewed.standalone_score == 0.0
        assert unreviewed.overall_score == 24.6
