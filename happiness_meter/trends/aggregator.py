from __future__ import annotations

import datetime as dt
from collections import defaultdict
from collections.abc import Iterable, Sequence
from typing import TYPE_CHECKING, Any

import polars as pl
import structlog
from pydantic import BaseModel, ConfigDict

from happiness_meter.config.settings import TrendConfig
from happiness_meter.ingestion.schema import ChannelType, Journey, JourneyReview
from happiness_meter.scoring.aggregator import round_score
from happiness_meter.scoring.channels import RatingIndex, group_booths
from happiness_meter.scoring.entity import EntityScoreAggregator

if TYPE_CHECKING:
    from happiness_meter.config.settings import ScoringConfig
    from happiness_meter.ingestion.dataset import Dataset

logger = structlog.get_logger(__name__)

TREND_SCHEMA = {
    "date": pl.Date,
    "entity_score": pl.Float64,
    "service_score": pl.Float64,
    "channel_score": pl.Float64,
    "volume": pl.Int64,
}

JOURNEY_TREND_SCHEMA = {
    "journey_id": pl.Utf8,
    "name": pl.Utf8,
    "date": pl.Date,
    "score": pl.Float64,
    "n": pl.Int64,
}

ASSET_TREND_SCHEMA = {
    "date": pl.Date,
    "score": pl.Float64,
    "volume": pl.Int64,
}


class _Point(BaseModel):
    model_config = ConfigDict(frozen=True)


class TrendPoint(_Point):
    date: dt.date
    entity_score: float
    service_score: float
    channel_score: float
    volume: int


class JourneyTrendPoint(_Point):
    date: dt.date
    score: float
    n: int


class JourneyTrend(_Point):
    journey_id: str
    name: str
    points: list[JourneyTrendPoint]


class AssetTrendPoint(_Point):
    date: dt.date
    score: float
    volume: int


class AssetTrend(_Point):
    asset_id: str
    asset_name: str
    asset_type: ChannelType
    points: list[AssetTrendPoint]


def group_by_bucket(records: Iterable[Any]) -> dict[dt.date, list[Any]]:
    grouped: dict[dt.date, list[Any]] = defaultdict(list)
    for record in records:
        grouped[record.ts].append(record)
    return grouped


class TrendAggregator:
    """Re-scores a dataset once per monthly bucket.

    A bucket only sees reviews stamped with exactly that date; services,
    channels and booths are the same for every bucket.
    """

    def __init__(self, config: ScoringConfig, trend_config: TrendConfig | None = None) -> None:
        self.config = config
        self.trend_config = trend_config or TrendConfig()
        self.entity = EntityScoreAggregator(config)

    def entity_trend(
        self,
        dataset: Dataset,
        buckets: Sequence[dt.date] | None = None,
    ) -> list[TrendPoint]:
        buckets = self.trend_config.buckets if buckets is None else buckets

        service_reviews = group_by_bucket(dataset.service_reviews)
        channel_ratings = group_by_bucket(dataset.channel_ratings)
        journey_reviews = group_by_bucket(dataset.journey_reviews)

        points: list[TrendPoint] = []
        for bucket in buckets:
            bucket_reviews = service_reviews.get(bucket, [])
            bucket_ratings = channel_ratings.get(bucket, [])

            channel_scores = self.entity.channels.score(
                dataset.channels, bucket_ratings, dataset.booths
            )
            service_score = self.entity.services.entity_service_score(
                dataset.services, bucket_reviews, journey_reviews.get(bucket, [])
            )

            point = TrendPoint(
                date=bucket,
                entity_score=self.entity.combine(service_score, channel_scores.overall),
                service_score=service_score,
                channel_score=channel_scores.overall,
                volume=sum(r.n for r in bucket_reviews) + sum(r.n for r in bucket_ratings),
            )
            logger.debug("trend_bucket_scored", **point.model_dump())
            points.append(point)

        logger.info("entity_trend_complete", buckets=len(points))
        return points

    def journey_trends(
        self,
        journey_reviews: Sequence[JourneyReview],
        journeys: Sequence[Journey] = (),
    ) -> list[JourneyTrend]:
        """All-time review series per journey, oldest first, in first-seen journey order."""
        names = {j.id: j.name for j in journeys if j.name}

        grouped: dict[str, list[JourneyReview]] = defaultdict(list)
        for review in journey_reviews:
            grouped[review.journey_id].append(review)

        trends = [
            JourneyTrend(
                journey_id=journey_id,
                name=names.get(journey_id, journey_id),
                points=[
                    JourneyTrendPoint(date=r.ts, score=r.score, n=r.n)
                    for r in sorted(reviews, key=lambda r: r.ts)
                ],
            )
            for journey_id, reviews in grouped.items()
        ]
        logger.info("journey_trends_complete", journeys=len(trends))
        return trends

    def asset_trend(
        self,
        channel_id: str,
        dataset: Dataset,
        buckets: Sequence[dt.date] | None = None,
    ) -> AssetTrend:
        """Monthly series for one channel; buckets without ratings score 0 with volume 0."""
        channel = next((c for c in dataset.channels if c.id == channel_id), None)
        if channel is None:
            available = [c.id for c in dataset.channels]
            msg = f"Channel '{channel_id}' not found. Available: {available}"
            raise KeyError(msg)

        buckets = self.trend_config.buckets if buckets is None else buckets
        booths_by_center = group_booths(dataset.booths)
        ratings = group_by_bucket(dataset.channel_ratings)

        points = []
        for bucket in buckets:
            index = RatingIndex(ratings.get(bucket, []))
            score, volume = self.entity.channels.score_asset(channel, index, booths_by_center)
            points.append(AssetTrendPoint(date=bucket, score=round_score(score), volume=volume))

        return AssetTrend(
            asset_id=channel.id,
            asset_name=channel.name,
            asset_type=channel.type,
            points=points,
        )

    @staticmethod
    def to_frame(points: Sequence[TrendPoint]) -> pl.DataFrame:
        return pl.DataFrame([p.model_dump() for p in points], schema=TREND_SCHEMA)

    @staticmethod
    def journeys_to_frame(trends: Sequence[JourneyTrend]) -> pl.DataFrame:
        rows = [
            {"journey_id": t.journey_id, "name": t.name, **p.model_dump()}
            for t in trends
            for p in t.points
        ]
        return pl.DataFrame(rows, schema=JOURNEY_TREND_SCHEMA)

    @staticmethod
    def asset_to_frame(trend: AssetTrend) -> pl.DataFrame:
        return pl.DataFrame([p.model_dump() for p in trend.points], schema=ASSET_TREND_SCHEMA)
