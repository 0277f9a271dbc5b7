from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

import numpy as np
import structlog

from happiness_meter.config.settings import ReportConfig
from happiness_meter.ingestion.schema import Journey, JourneyReview, ServiceKind, ServiceReview
from happiness_meter.scoring.aggregator import round_score, weighted_average
from happiness_meter.scoring.schemas import JourneyAnalysis, JourneyStep
from happiness_meter.scoring.services import group_reviews

if TYPE_CHECKING:
    from happiness_meter.ingestion.dataset import Dataset
    from happiness_meter.ingestion.schema import Service

logger = structlog.get_logger(__name__)


class JourneyAnalyzer:
    def __init__(self, report_config: ReportConfig | None = None) -> None:
        self.report_config = report_config or ReportConfig()

    def journey_score(
        self, journey_id: str, journey_reviews: Sequence[JourneyReview]
    ) -> tuple[float, int]:
        own = [r for r in journey_reviews if r.journey_id == journey_id]
        return round_score(weighted_average((r.score, r.n) for r in own)), sum(r.n for r in own)

    def analyze(self, dataset: Dataset, entity_id: str | None = None) -> list[JourneyAnalysis]:
        """Analyze every journey, best score first.

        ``dataset`` should be unscoped: journeys cross entity boundaries and
        their steps are resolved against every known service. With
        ``entity_id`` only journeys touching one of that entity's services are
        returned.
        """
        services = {s.id: s for s in dataset.services}
        reviews = group_reviews(dataset.service_reviews)

        journeys: list[Journey] = list(dataset.journeys)
        if entity_id is not None:
            journeys = [
                j
                for j in journeys
                if any(s in services and services[s].entity_id == entity_id for s in j.steps)
            ]

        results = [
            self._analyze_journey(journey, services, reviews, dataset.journey_reviews)
            for journey in journeys
        ]
        results.sort(key=lambda a: a.score, reverse=True)

        logger.info(
            "journey_analysis_complete",
            journeys=len(results),
            cross_entity=sum(1 for a in results if a.is_cross_entity),
            bottlenecks=sum(a.bottleneck_count for a in results),
        )
        return results

    def _analyze_journey(
        self,
        journey: Journey,
        services: dict[str, Service],
        reviews: dict[str, list[ServiceReview]],
        journey_reviews: Sequence[JourneyReview],
    ) -> JourneyAnalysis:
        score, review_count = self.journey_score(journey.id, journey_reviews)
        floor = score - self.report_config.bottleneck_margin

        steps: list[JourneyStep] = []
        for index, service_id in enumerate(journey.steps, start=1):
            service = services.get(service_id)
            if service is None:
                steps.append(
                    JourneyStep(
                        service_id=service_id,
                        name=f"Unknown Service ({service_id})",
                        entity_id=None,
                        kind=ServiceKind.SIMPLE,
                        step_index=index,
                        performance=0.0,
                        review_count=0,
                        is_bottleneck=False,
                        known=False,
                    )
                )
                continue

            own = reviews.get(service_id, [])
            raw_performance = weighted_average((r.score, r.n) for r in own)
            steps.append(
                JourneyStep(
                    service_id=service_id,
                    name=service.name,
                    entity_id=service.entity_id,
                    kind=service.kind,
                    step_index=index,
                    performance=round_score(raw_performance),
                    review_count=sum(r.n for r in own),
                    is_bottleneck=raw_performance < floor,
                )
            )

        involved = list(dict.fromkeys(s.entity_id for s in steps if s.entity_id is not None))
        average = float(np.mean([s.performance for s in steps])) if steps else 0.0
        efficiency = score / average * 100 if average > 0 else 100.0

        return JourneyAnalysis(
            id=journey.id,
            name=journey.name or journey.id,
            score=score,
            review_count=review_count,
            steps=steps,
            involved_entities=involved,
            is_cross_entity=len(involved) > 1,
            complexity=sum(2 if s.kind == ServiceKind.MULTIPHASE else 1 for s in steps),
            bottleneck_count=sum(1 for s in steps if s.is_bottleneck),
            average_step_performance=round_score(average),
            efficiency=round_score(efficiency),
            performance_category=self._category(score),
        )

    def _category(self, score: float) -> str:
        if score >= self.report_config.excellent_threshold:
            return "high"
        if score >= self.report_config.good_threshold:
            return "medium"
        return "low"
