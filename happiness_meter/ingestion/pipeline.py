from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

import polars as pl
import structlog

from happiness_meter.ingestion.dataset import Dataset
from happiness_meter.ingestion.schema import (
    COLUMN_RENAMES,
    ENUM_COLUMNS,
    OPTIONAL_COLUMNS,
    RECORD_TYPES,
    REQUIRED_COLUMNS,
    TIMESTAMPED,
    SchemaValidator,
    enum_check,
)

if TYPE_CHECKING:
    from collections.abc import Mapping
    from pathlib import Path

    from happiness_meter.config.settings import Settings

logger = structlog.get_logger(__name__)

DATASET_FIELDS = {
    "entities": "entities",
    "services": "services",
    "channels": "channels",
    "booths": "booths",
    "serviceReviews": "service_reviews",
    "channelRatings": "channel_ratings",
    "dcx": "journeys",
    "dcxReviews": "journey_reviews",
}


class IngestionPipeline:
    """Turns the dashboard's raw collections into an immutable :class:`Dataset`.

    Collections are keyed by their dashboard names (``services``,
    ``serviceReviews``, ``dcxReviews``...). Review timestamps are truncated to
    the first day of their month so they line up with trend buckets.
    """

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self.validator = SchemaValidator()

    def load_from_json(self, path: Path | None = None) -> Dataset:
        json_path = path or self.settings.data_dir / "data.json"
        if not json_path.exists():
            msg = f"Dataset file not found: {json_path}"
            raise FileNotFoundError(msg)

        with json_path.open(encoding="utf-8") as fh:
            document: dict[str, list[dict[str, Any]]] = json.load(fh)

        frames = {
            name: pl.DataFrame(rows, infer_schema_length=None, strict=False)
            for name, rows in document.items()
            if name in RECORD_TYPES and rows
        }
        logger.info("json_document_read", path=str(json_path), collections=sorted(frames))
        return self.build_dataset(frames)

    def load_from_parquet(self, directory: Path | None = None) -> Dataset:
        data_dir = directory or self.settings.data_dir
        if not data_dir.is_dir():
            msg = f"Data directory not found: {data_dir}"
            raise FileNotFoundError(msg)

        frames: dict[str, pl.DataFrame] = {}
        for name in RECORD_TYPES:
            path = data_dir / f"{name}.parquet"
            if path.exists():
                frames[name] = pl.read_parquet(path)
            else:
                logger.warning("collection_file_missing", collection=name, path=str(path))

        return self.build_dataset(frames)

    def build_dataset(self, frames: Mapping[str, pl.DataFrame]) -> Dataset:
        collections: dict[str, tuple[Any, ...]] = {}
        for name, df in frames.items():
            if name not in RECORD_TYPES:
                logger.warning("unknown_collection_skipped", collection=name)
                continue
            collections[DATASET_FIELDS[name]] = self.to_records(name, self.normalize(name, df))

        dataset = Dataset(**collections)
        logger.info("dataset_loaded", **dataset.summary())
        return dataset

    def normalize(self, name: str, df: pl.DataFrame) -> pl.DataFrame:
        renames = {old: new for old, new in COLUMN_RENAMES[name].items() if old in df.columns}
        df = df.rename(renames)

        fill = [
            pl.lit(None, dtype=dtype).alias(col)
            for col, dtype in OPTIONAL_COLUMNS.get(name, {}).items()
            if col not in df.columns
        ]
        if fill:
            df = df.with_columns(fill)

        valid, errors = self.validator.validate_collection(name, df)
        missing = set(REQUIRED_COLUMNS[name]) - set(df.columns)
        if missing:
            logger.warning("collection_unusable", collection=name, missing=sorted(missing))
            return df.clear()

        if name in TIMESTAMPED:
            df = df.with_columns(self._month_start(df).alias("ts"))

        before = df.height
        df = df.drop_nulls(subset=REQUIRED_COLUMNS[name])
        if name == "channelRatings":
            df = df.filter(pl.col("channel_id").is_not_null() | pl.col("booth_id").is_not_null())
        if name in ENUM_COLUMNS:
            df = df.filter(enum_check(name, df.columns))

        dropped = before - df.height
        if dropped:
            logger.warning("rows_dropped", collection=name, dropped=dropped, errors=errors)
        elif not valid:
            logger.warning("collection_validation_issues", collection=name, errors=errors)

        return df

    def to_records(self, name: str, df: pl.DataFrame) -> tuple[Any, ...]:
        record_type = RECORD_TYPES[name]
        fields = [col for col in df.columns if col in record_type.model_fields]

        return tuple(
            record_type(**{key: value for key, value in row.items() if value is not None})
            for row in df.select(fields).iter_rows(named=True)
        )

    def _month_start(self, df: pl.DataFrame) -> pl.Expr:
        dtype = df.schema["ts"]
        if dtype == pl.Utf8:
            ts = pl.col("ts").str.slice(0, 10).str.to_date("%Y-%m-%d", strict=False)
        elif isinstance(dtype, pl.Datetime):
            ts = pl.col("ts").dt.date()
        else:
            ts = pl.col("ts")
        return ts.dt.truncate("1mo")
