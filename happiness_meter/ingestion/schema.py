from __future__ import annotations

from datetime import date
from enum import Enum, IntEnum
from typing import Any

import polars as pl
import structlog
from pydantic import BaseModel, ConfigDict

logger = structlog.get_logger(__name__)


class ServiceKind(IntEnum):
    SIMPLE = 1
    MULTIPHASE = 2


class ChannelType(str, Enum):
    APP = "app"
    WEB = "web"
    SERVICE_CENTER = "service_center"
    SHARED_PLATFORM = "shared_platform"


class ReviewChannel(str, Enum):
    APP = "app"
    WEB = "web"
    SHARED = "shared"


class Phase(str, Enum):
    PROCESS = "process"
    DELIVERABLE = "deliverable"


class _Record(BaseModel):
    model_config = ConfigDict(frozen=True)


class Entity(_Record):
    id: str
    name: str = ""
    sector: str | None = None
    location: str | None = None


class Service(_Record):
    id: str
    entity_id: str
    name: str = ""
    kind: ServiceKind = ServiceKind.SIMPLE
    journey_ids: tuple[str, ...] = ()
    owner: str | None = None


class Channel(_Record):
    id: str
    entity_id: str
    type: ChannelType
    name: str = ""


class Booth(_Record):
    id: str
    center_id: str
    name: str = ""


class ServiceReview(_Record):
    service_id: str
    ts: date
    channel_of_review: ReviewChannel
    score: float
    n: int
    phase: Phase | None = None
    id: str | None = None


class ChannelRating(_Record):
    ts: date
    score: float
    n: int
    channel_id: str | None = None
    booth_id: str | None = None
    id: str | None = None


class Journey(_Record):
    id: str
    name: str = ""
    steps: tuple[str, ...] = ()
    description: str | None = None
    category: str | None = None


class JourneyReview(_Record):
    journey_id: str
    ts: date
    score: float
    n: int
    id: str | None = None


# Raw dashboard column names mapped onto record field names.
COLUMN_RENAMES: dict[str, dict[str, str]] = {
    "entities": {},
    "services": {"entityId": "entity_id", "type": "kind", "dcxIds": "journey_ids"},
    "channels": {"entityId": "entity_id"},
    "booths": {"centerId": "center_id"},
    "serviceReviews": {"serviceId": "service_id", "channelOfReview": "channel_of_review"},
    "channelRatings": {"channelId": "channel_id", "boothId": "booth_id"},
    "dcx": {},
    "dcxReviews": {"dcxId": "journey_id"},
}

# Columns a row cannot be scored without, after renaming.
REQUIRED_COLUMNS: dict[str, list[str]] = {
    "entities": ["id"],
    "services": ["id", "entity_id", "kind"],
    "channels": ["id", "entity_id", "type"],
    "booths": ["id", "center_id"],
    "serviceReviews": ["service_id", "ts", "channel_of_review", "score", "n"],
    "channelRatings": ["ts", "score", "n"],
    "dcx": ["id"],
    "dcxReviews": ["journey_id", "ts", "score", "n"],
}

# Optional columns filled with nulls when a collection omits them.
OPTIONAL_COLUMNS: dict[str, dict[str, pl.DataType]] = {
    "serviceReviews": {"phase": pl.Utf8(), "id": pl.Utf8()},
    "channelRatings": {"channel_id": pl.Utf8(), "booth_id": pl.Utf8(), "id": pl.Utf8()},
    "dcxReviews": {"id": pl.Utf8()},
}

TIMESTAMPED = {"serviceReviews", "channelRatings", "dcxReviews"}

# Enum-valued columns and their accepted raw values. Nullable columns may also be null.
ENUM_COLUMNS: dict[str, dict[str, list[Any]]] = {
    "services": {"kind": [k.value for k in ServiceKind]},
    "channels": {"type": [t.value for t in ChannelType]},
    "serviceReviews": {
        "channel_of_review": [c.value for c in ReviewChannel],
        "phase": [p.value for p in Phase],
    },
}
NULLABLE_ENUM_COLUMNS = {"phase"}


def enum_check(name: str, columns: list[str]) -> pl.Expr:
    """True for rows whose enum columns all hold accepted values."""
    expr = pl.lit(True)
    for col, values in ENUM_COLUMNS.get(name, {}).items():
        if col not in columns:
            continue
        dtype = pl.Utf8 if isinstance(values[0], str) else pl.Int64
        check = pl.col(col).cast(dtype, strict=False).is_in(values)
        if col in NULLABLE_ENUM_COLUMNS:
            check = pl.col(col).is_null() | check
        expr = expr & check.fill_null(False)
    return expr


RECORD_TYPES: dict[str, type[_Record]] = {
    "entities": Entity,
    "services": Service,
    "channels": Channel,
    "booths": Booth,
    "serviceReviews": ServiceReview,
    "channelRatings": ChannelRating,
    "dcx": Journey,
    "dcxReviews": JourneyReview,
}


class SchemaValidator:
    def validate_collection(self, name: str, df: pl.DataFrame) -> tuple[bool, list[str]]:
        errors: list[str] = []

        required = set(REQUIRED_COLUMNS[name])
        missing = required - set(df.columns)
        if missing:
            errors.append(f"Missing columns: {sorted(missing)}")
            return False, errors

        null_counts = {
            col: df[col].null_count() for col in sorted(required) if df[col].null_count() > 0
        }
        if null_counts:
            errors.append(f"Null values found: {null_counts}")

        if "n" in df.columns:
            non_positive = df.filter(pl.col("n") < 1).height
            if non_positive > 0:
                errors.append(f"{non_positive} rows with sample size below 1")

        if name in ENUM_COLUMNS:
            unknown = df.filter(~enum_check(name, df.columns)).height
            if unknown > 0:
                errors.append(f"{unknown} rows with unknown enum values")

        if "id" in required:
            n_unique = df["id"].n_unique()
            if n_unique != df.height:
                errors.append(f"Duplicate ids: {df.height - n_unique} duplicates")

        valid = len(errors) == 0
        if not valid:
            logger.warning("collection_schema_invalid", collection=name, errors=errors)

        return valid, errors
