from __future__ import annotations

from collections.abc import Mapping
from datetime import date
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_TREND_BUCKETS = [
    date(2025, 4, 1),
    date(2025, 5, 1),
    date(2025, 6, 1),
    date(2025, 7, 1),
    date(2025, 8, 1),
    date(2025, 9, 1),
]

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


class _Weights(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class ChannelTypeWeights(_Weights):
    app: float = Field(default=0.5, ge=0.0)
    web: float = Field(default=0.2, ge=0.0)
    service_center: float = Field(default=0.3, ge=0.0)


class ChannelOfReviewWeights(_Weights):
    app: float = Field(default=0.38, ge=0.0)
    web: float = Field(default=0.26, ge=0.0)
    shared: float = Field(default=0.36, ge=0.0)


class PhaseWeights(_Weights):
    process: float = Field(default=0.8, ge=0.0)
    deliverable: float = Field(default=0.2, ge=0.0)


class JourneyBlendWeights(_Weights):
    standalone: float = Field(default=0.7, ge=0.0)
    journey: float = Field(default=0.3, ge=0.0)


class EntityBlendWeights(_Weights):
    service: float = Field(default=0.7, ge=0.0)
    channel: float = Field(default=0.3, ge=0.0)


class ScoringConfig(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="HM_SCORING_", env_nested_delimiter="__")

    channel_type_weights: ChannelTypeWeights = Field(default_factory=ChannelTypeWeights)
    channel_of_review_weights: ChannelOfReviewWeights = Field(
        default_factory=ChannelOfReviewWeights
    )
    phase_weights: PhaseWeights = Field(default_factory=PhaseWeights)
    journey_blend_weights: JourneyBlendWeights = Field(default_factory=JourneyBlendWeights)
    entity_blend_weights: EntityBlendWeights = Field(default_factory=EntityBlendWeights)

    @classmethod
    def from_options(cls, options: Mapping[str, Any]) -> ScoringConfig:
        """Build a config from the dashboard's camelCase option names.

        ``trendBuckets`` is accepted and ignored here so that a single options
        document can feed both this class and :class:`TrendConfig`.
        """
        values = _translate_options(options, SCORING_OPTIONS, ignore={"trendBuckets"})
        return cls(**values)


class TrendConfig(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="HM_TREND_")

    buckets: list[date] = Field(default_factory=lambda: list(DEFAULT_TREND_BUCKETS))

    @field_validator("buckets")
    @classmethod
    def buckets_unique(cls, v: list[date]) -> list[date]:
        if len(set(v)) != len(v):
            msg = "trend buckets must not repeat"
            raise ValueError(msg)
        return v


class ReportConfig(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="HM_REPORT_")

    top_n: int = Field(default=8, ge=1)
    min_reviews_for_worst: int = Field(default=10, ge=0)
    excellent_threshold: float = Field(default=85.0, ge=0.0, le=100.0)
    good_threshold: float = Field(default=70.0, ge=0.0, le=100.0)
    bottleneck_margin: float = Field(default=10.0, ge=0.0)

    @field_validator("good_threshold")
    @classmethod
    def good_lte_excellent(cls, v: float, info: ValidationInfo) -> float:
        excellent = info.data.get("excellent_threshold", 85.0)
        if v > excellent:
            msg = "good_threshold must be <= excellent_threshold"
            raise ValueError(msg)
        return v


class AlertConfig(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="HM_ALERT_")

    entity_score_threshold: float = Field(default=70.0, ge=0.0, le=100.0)
    critical_service_threshold: float = Field(default=60.0, ge=0.0, le=100.0)
    service_center_threshold: float = Field(default=75.0, ge=0.0, le=100.0)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="HM_",
        env_file=".env",
        env_file_encoding="utf-8",
    )

    data_dir: Path = Field(default=Path("data"))
    log_level: str = Field(default="INFO")

    scoring: ScoringConfig = Field(default_factory=ScoringConfig)
    trend: TrendConfig = Field(default_factory=TrendConfig)
    report: ReportConfig = Field(default_factory=ReportConfig)
    alerts: AlertConfig = Field(default_factory=AlertConfig)

    @field_validator("log_level")
    @classmethod
    def log_level_known(cls, v: str) -> str:
        level = v.upper()
        if level not in LOG_LEVELS:
            msg = f"log_level must be one of {list(LOG_LEVELS)}"
            raise ValueError(msg)
        return level

    @classmethod
    def from_options(cls, options: Mapping[str, Any], **overrides: Any) -> Settings:
        scoring = ScoringConfig.from_options(options)
        if "trendBuckets" in options:
            trend = TrendConfig(buckets=options["trendBuckets"])
        else:
            trend = TrendConfig()
        return cls(scoring=scoring, trend=trend, **overrides)


SCORING_OPTIONS = {
    "channelTypeWeights": "channel_type_weights",
    "channelOfReviewWeights": "channel_of_review_weights",
    "phaseWeights": "phase_weights",
    "journeyBlendWeights": "journey_blend_weights",
    "entityBlendWeights": "entity_blend_weights",
}


def _translate_options(
    options: Mapping[str, Any],
    names: Mapping[str, str],
    ignore: set[str] | None = None,
) -> dict[str, Any]:
    ignore = ignore or set()
    unknown = set(options) - set(names) - ignore
    if unknown:
        msg = f"Unknown configuration options: {sorted(unknown)}"
        raise ValueError(msg)
    return {names[key]: value for key, value in options.items() if key in names}
