from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Sequence
from typing import TYPE_CHECKING

import numpy as np
import structlog

from happiness_meter.config.settings import ReportConfig
from happiness_meter.ingestion.schema import Booth, Channel, ChannelRating, ChannelType
from happiness_meter.scoring.aggregator import ScoreAggregator, round_score, weighted_average
from happiness_meter.scoring.schemas import ChannelScore, ChannelTypeScores

if TYPE_CHECKING:
    from happiness_meter.config.settings import ScoringConfig

logger = structlog.get_logger(__name__)

CATEGORY_TYPES = (ChannelType.APP, ChannelType.WEB, ChannelType.SERVICE_CENTER)
DIRECT_TYPES = (ChannelType.APP, ChannelType.WEB)


class RatingIndex:
    """Channel ratings grouped by the channel or booth they reference."""

    def __init__(self, ratings: Iterable[ChannelRating]) -> None:
        self.by_channel: dict[str, list[ChannelRating]] = defaultdict(list)
        self.by_booth: dict[str, list[ChannelRating]] = defaultdict(list)
        for rating in ratings:
            if rating.channel_id is not None:
                self.by_channel[rating.channel_id].append(rating)
            if rating.booth_id is not None:
                self.by_booth[rating.booth_id].append(rating)

    def for_channel(self, channel_id: str) -> list[ChannelRating]:
        return self.by_channel.get(channel_id, [])

    def for_booth(self, booth_id: str) -> list[ChannelRating]:
        return self.by_booth.get(booth_id, [])


def group_booths(booths: Iterable[Booth]) -> dict[str, list[Booth]]:
    grouped: dict[str, list[Booth]] = defaultdict(list)
    for booth in booths:
        grouped[booth.center_id].append(booth)
    return grouped


class ChannelScoreAggregator:
    def __init__(self, config: ScoringConfig, report_config: ReportConfig | None = None) -> None:
        self.config = config
        self.report_config = report_config or ReportConfig()
        self.aggregator = ScoreAggregator()

    def score(
        self,
        channels: Sequence[Channel],
        ratings: Sequence[ChannelRating],
        booths: Sequence[Booth],
    ) -> ChannelTypeScores:
        """Roll channel and booth ratings up into per-type scores and one overall score.

        Channel types without a single rated channel drop out, and the
        remaining type weights are renormalized to sum to 1. Ratings whose
        channel or booth id matches nothing in scope are ignored.
        """
        index = RatingIndex(ratings)
        booths_by_center = group_booths(booths)
        per_type: dict[str, list[float]] = {t.value: [] for t in CATEGORY_TYPES}

        for channel in channels:
            if channel.type in DIRECT_TYPES:
                direct = self._direct_score(channel.id, index)
                if direct is not None:
                    per_type[channel.type.value].append(direct[0])

        for channel in channels:
            if channel.type == ChannelType.SERVICE_CENTER:
                center = self._center_score(channel.id, index, booths_by_center)
                if center is not None:
                    per_type[ChannelType.SERVICE_CENTER.value].append(center[0])

        category_scores = {
            channel_type: float(np.mean(scores))
            for channel_type, scores in per_type.items()
            if scores
        }
        overall = self.aggregator.redistribute(
            category_scores,
            self.config.channel_type_weights.model_dump(),
        )

        result = ChannelTypeScores(
            app=round_score(category_scores.get(ChannelType.APP.value, 0.0)),
            web=round_score(category_scores.get(ChannelType.WEB.value, 0.0)),
            service_center=round_score(category_scores.get(ChannelType.SERVICE_CENTER.value, 0.0)),
            overall=round_score(overall),
            rated_channels={channel_type: len(scores) for channel_type, scores in per_type.items()},
        )
        logger.debug(
            "channel_scoring_complete",
            channels=len(channels),
            ratings=len(ratings),
            overall=result.overall,
            present=sorted(category_scores),
        )
        return result

    def score_channels(
        self,
        channels: Sequence[Channel],
        ratings: Sequence[ChannelRating],
        booths: Sequence[Booth],
    ) -> list[ChannelScore]:
        """Per-asset breakdown in input order, unrated assets included."""
        index = RatingIndex(ratings)
        booths_by_center = group_booths(booths)

        results = []
        for channel in channels:
            score, volume = self.score_asset(channel, index, booths_by_center)
            results.append(
                ChannelScore(
                    id=channel.id,
                    name=channel.name,
                    type=channel.type,
                    score=round_score(score),
                    total_ratings=volume,
                    booth_count=len(booths_by_center.get(channel.id, [])),
                    performance_category=self.performance_category(score, volume),
                )
            )
        return results

    def score_asset(
        self,
        channel: Channel,
        index: RatingIndex,
        booths_by_center: dict[str, list[Booth]],
    ) -> tuple[float, int]:
        """Unrounded score and rated sample count of one asset, ``(0.0, 0)`` when unrated.

        Service centers are scored through their booths; every other type
        through its direct ratings.
        """
        if channel.type == ChannelType.SERVICE_CENTER:
            result = self._center_score(channel.id, index, booths_by_center)
        else:
            result = self._direct_score(channel.id, index)
        return result if result is not None else (0.0, 0)

    def performance_category(self, score: float, volume: int) -> str:
        if volume == 0:
            return "unrated"
        if score >= self.report_config.excellent_threshold:
            return "high"
        if score >= self.report_config.good_threshold:
            return "medium"
        return "low"

    def _direct_score(self, channel_id: str, index: RatingIndex) -> tuple[float, int] | None:
        ratings = index.for_channel(channel_id)
        if not ratings:
            return None
        return weighted_average((r.score, r.n) for r in ratings), sum(r.n for r in ratings)

    def _center_score(
        self,
        center_id: str,
        index: RatingIndex,
        booths_by_center: dict[str, list[Booth]],
    ) -> tuple[float, int] | None:
        booth_scores: list[tuple[float, int]] = []
        for booth in booths_by_center.get(center_id, []):
            ratings = index.for_booth(booth.id)
            if ratings:
                booth_scores.append(
                    (weighted_average((r.score, r.n) for r in ratings), sum(r.n for r in ratings))
                )

        if not booth_scores:
            return None
        return weighted_average(booth_scores), sum(n for _, n in booth_scores)
