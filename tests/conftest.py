from __future__ import annotations

from datetime import date
from pathlib import Path
from typing import Any

import pytest

from happiness_meter.config.settings import (
    AlertConfig,
    ReportConfig,
    ScoringConfig,
    Settings,
    TrendConfig,
)
from happiness_meter.ingestion.dataset import Dataset
from happiness_meter.ingestion.schema import (
    Booth,
    Channel,
    ChannelRating,
    ChannelType,
    Entity,
    Journey,
    JourneyReview,
    Phase,
    ReviewChannel,
    Service,
    ServiceKind,
    ServiceReview,
)

AUG = date(2025, 8, 1)
SEP = date(2025, 9, 1)


@pytest.fixture  # type: ignore[misc]
def scoring_config() -> ScoringConfig:
    return ScoringConfig()


@pytest.fixture  # type: ignore[misc]
def report_config() -> ReportConfig:
    return ReportConfig()


@pytest.fixture  # type: ignore[misc]
def trend_config() -> TrendConfig:
    return TrendConfig(buckets=[date(2025, 7, 1), AUG, SEP])


@pytest.fixture  # type: ignore[misc]
def settings(
    scoring_config: ScoringConfig,
    trend_config: TrendConfig,
    report_config: ReportConfig,
    tmp_path: Path,
) -> Settings:
    return Settings(
        scoring=scoring_config,
        trend=trend_config,
        report=report_config,
        alerts=AlertConfig(),
        data_dir=tmp_path / "data",
    )


@pytest.fixture  # type: ignore[misc]
def sample_document() -> dict[str, list[dict[str, Any]]]:
    """Raw collections in the dashboard's JSON shape."""
    return {
        "entities": [
            {
                "id": "ent-001",
                "name": "Digital Dubai Municipality",
                "sector": "Government",
                "location": "Dubai",
            },
            {
                "id": "ent-002",
                "name": "Roads Authority",
                "sector": "Transport",
                "location": "Dubai",
            },
        ],
        "services": [
            {
                "id": "srv-001",
                "entityId": "ent-001",
                "name": "Property Title Verification",
                "type": 1,
                "dcxIds": ["dcx-property"],
                "owner": "Land Department",
            },
            {
                "id": "srv-002",
                "entityId": "ent-001",
                "name": "Building Permit Application",
                "type": 2,
                "dcxIds": ["dcx-property"],
                "owner": "Building Control",
            },
            {
                "id": "srv-010",
                "entityId": "ent-001",
                "name": "Business License Registration",
                "type": 1,
                "dcxIds": ["dcx-business"],
                "owner": "Economic Development",
            },
            {
                "id": "srv-020",
                "entityId": "ent-002",
                "name": "Parking Permit",
                "type": 1,
                "dcxIds": [],
                "owner": "Parking",
            },
        ],
        "channels": [
            {"id": "ch-001", "entityId": "ent-001", "type": "app", "name": "DubaiNow App"},
            {"id": "ch-002", "entityId": "ent-001", "type": "web", "name": "Municipality Portal"},
            {
                "id": "ch-003",
                "entityId": "ent-001",
                "type": "service_center",
                "name": "Deira Customer Service Center",
            },
            {"id": "ch-101", "entityId": "ent-002", "type": "app", "name": "RTA App"},
        ],
        "booths": [
            {"id": "booth-001", "centerId": "ch-003", "name": "Service Booth A"},
            {"id": "booth-002", "centerId": "ch-003", "name": "Service Booth B"},
        ],
        "serviceReviews": [
            {
                "id": "sr-001",
                "serviceId": "srv-001",
                "ts": "2025-09-01",
                "channelOfReview": "app",
                "score": 85,
                "n": 120,
            },
            {
                "id": "sr-002",
                "serviceId": "srv-002",
                "ts": "2025-09-01",
                "channelOfReview": "web",
                "phase": "process",
                "score": 72,
                "n": 45,
            },
            {
                "id": "sr-003",
                "serviceId": "srv-002",
                "ts": "2025-09-01",
                "channelOfReview": "web",
                "phase": "deliverable",
                "score": 88,
                "n": 45,
            },
            {
                "id": "sr-004",
                "serviceId": "srv-020",
                "ts": "2025-09-01",
                "channelOfReview": "app",
                "score": 90,
                "n": 30,
            },
            {
                "id": "sr-005",
                "serviceId": "srv-001",
                "ts": "2025-08-01",
                "channelOfReview": "web",
                "score": 70,
                "n": 40,
            },
        ],
        "channelRatings": [
            {"id": "cr-001", "channelId": "ch-001", "ts": "2025-09-01", "score": 78, "n": 200},
            {"id": "cr-002", "channelId": "ch-002", "ts": "2025-09-01", "score": 65, "n": 150},
            {"id": "cr-003", "channelId": "ch-003", "ts": "2025-09-01", "score": 45, "n": 80},
            {"id": "cr-004", "boothId": "booth-001", "ts": "2025-09-01", "score": 80, "n": 60},
            {"id": "cr-005", "boothId": "booth-002", "ts": "2025-09-01", "score": 70, "n": 40},
            {"id": "cr-006", "boothId": "booth-999", "ts": "2025-09-01", "score": 10, "n": 500},
            {"id": "cr-007", "channelId": "ch-101", "ts": "2025-09-01", "score": 95, "n": 10},
            {"id": "cr-008", "channelId": "ch-001", "ts": "2025-08-01", "score": 74, "n": 100},
        ],
        "dcx": [
            {
                "id": "dcx-property",
                "name": "Property Registration Journey",
                "steps": ["srv-001", "srv-002", "srv-020"],
            },
            {
                "id": "dcx-business",
                "name": "Business License Application",
                "steps": ["srv-010", "srv-404"],
            },
        ],
        "dcxReviews": [
            {"id": "dr-001", "dcxId": "dcx-property", "ts": "2025-09-01", "score": 75, "n": 25},
            {"id": "dr-002", "dcxId": "dcx-business", "ts": "2025-09-01", "score": 82, "n": 18},
            {"id": "dr-003", "dcxId": "dcx-property", "ts": "2025-08-01", "score": 65, "n": 25},
        ],
    }


@pytest.fixture  # type: ignore[misc]
def sample_dataset() -> Dataset:
    """The records of ``sample_document``, built directly."""
    return Dataset(
        entities=(
            Entity(
                id="ent-001",
                name="Digital Dubai Municipality",
                sector="Government",
                location="Dubai",
            ),
            Entity(id="ent-002", name="Roads Authority", sector="Transport", location="Dubai"),
        ),
        services=(
            Service(
                id="srv-001",
                entity_id="ent-001",
                name="Property Title Verification",
                kind=ServiceKind.SIMPLE,
                journey_ids=("dcx-property",),
                owner="Land Department",
            ),
            Service(
                id="srv-002",
                entity_id="ent-001",
                name="Building Permit Application",
                kind=ServiceKind.MULTIPHASE,
                journey_ids=("dcx-property",),
                owner="Building Control",
            ),
            Service(
                id="srv-010",
                entity_id="ent-001",
                name="Business License Registration",
                kind=ServiceKind.SIMPLE,
                journey_ids=("dcx-business",),
                owner="Economic Development",
            ),
            Service(
                id="srv-020",
                entity_id="ent-002",
                name="Parking Permit",
                kind=ServiceKind.SIMPLE,
                owner="Parking",
            ),
        ),
        channels=(
            Channel(id="ch-001", entity_id="ent-001", type=ChannelType.APP, name="DubaiNow App"),
            Channel(
                id="ch-002", entity_id="ent-001", type=ChannelType.WEB, name="Municipality Portal"
            ),
            Channel(
                id="ch-003",
                entity_id="ent-001",
                type=ChannelType.SERVICE_CENTER,
                name="Deira Customer Service Center",
            ),
            Channel(id="ch-101", entity_id="ent-002", type=ChannelType.APP, name="RTA App"),
        ),
        booths=(
            Booth(id="booth-001", center_id="ch-003", name="Service Booth A"),
            Booth(id="booth-002", center_id="ch-003", name="Service Booth B"),
        ),
        service_reviews=(
            ServiceReview(
                id="sr-001",
                service_id="srv-001",
                ts=SEP,
                channel_of_review=ReviewChannel.APP,
                score=85,
                n=120,
            ),
            ServiceReview(
                id="sr-002",
                service_id="srv-002",
                ts=SEP,
                channel_of_review=ReviewChannel.WEB,
                phase=Phase.PROCESS,
                score=72,
                n=45,
            ),
            ServiceReview(
                id="sr-003",
                service_id="srv-002",
                ts=SEP,
                channel_of_review=ReviewChannel.WEB,
                phase=Phase.DELIVERABLE,
                score=88,
                n=45,
            ),
            ServiceReview(
                id="sr-004",
                service_id="srv-020",
                ts=SEP,
                channel_of_review=ReviewChannel.APP,
                score=90,
                n=30,
            ),
            ServiceReview(
                id="sr-005",
                service_id="srv-001",
                ts=AUG,
                channel_of_review=ReviewChannel.WEB,
                score=70,
                n=40,
            ),
        ),
        channel_ratings=(
            ChannelRating(id="cr-001", channel_id="ch-001", ts=SEP, score=78, n=200),
            ChannelRating(id="cr-002", channel_id="ch-002", ts=SEP, score=65, n=150),
            ChannelRating(id="cr-003", channel_id="ch-003", ts=SEP, score=45, n=80),
            ChannelRating(id="cr-004", booth_id="booth-001", ts=SEP, score=80, n=60),
            ChannelRating(id="cr-005", booth_id="booth-002", ts=SEP, score=70, n=40),
            ChannelRating(id="cr-006", booth_id="booth-999", ts=SEP, score=10, n=500),
            ChannelRating(id="cr-007", channel_id="ch-101", ts=SEP, score=95, n=10),
            ChannelRating(id="cr-008", channel_id="ch-001", ts=AUG, score=74, n=100),
        ),
        journeys=(
            Journey(
                id="dcx-property",
                name="Property Registration Journey",
                steps=("srv-001", "srv-002", "srv-020"),
            ),
            Journey(
                id="dcx-business",
                name="Business License Application",
                steps=("srv-010", "srv-404"),
            ),
        ),
        journey_reviews=(
            JourneyReview(id="dr-001", journey_id="dcx-property", ts=SEP, score=75, n=25),
            JourneyReview(id="dr-002", journey_id="dcx-business", ts=SEP, score=82, n=18),
            JourneyReview(id="dr-003", journey_id="dcx-property", ts=AUG, score=65, n=25),
        ),
    )


@pytest.fixture  # type: ignore[misc]
def municipality(sample_dataset: Dataset) -> Dataset:
    return sample_dataset.for_entity("ent-001")
