from __future__ import annotations

import json
import logging
import sys
from datetime import date
from pathlib import Path
from typing import TYPE_CHECKING, Any

import click
import structlog

from happiness_meter.config.settings import LOG_LEVELS, Settings

if TYPE_CHECKING:
    from happiness_meter.ingestion.dataset import Dataset

logger = structlog.get_logger(__name__)

data_option = click.option(
    "--data",
    "data_path",
    default="data/data.json",
    help="Dataset JSON document or directory of per-collection Parquet files",
)
entity_option = click.option("--entity", default=None, help="Scope scores to one entity id")
config_option = click.option(
    "--config",
    "config_path",
    default=None,
    help="JSON file of weight options (channelTypeWeights, trendBuckets, ...)",
)
bucket_option = click.option(
    "--bucket",
    "buckets",
    multiple=True,
    type=click.DateTime(formats=["%Y-%m-%d"]),
    help="Trend bucket (month start, YYYY-MM-DD); repeat for several",
)
output_option = click.option(
    "--output", default=None, help="Write results to this file instead of stdout"
)


@click.group()  # type: ignore[misc]
@click.option(  # type: ignore[misc]
    "--log-level",
    default=None,
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    help="Minimum log level (defaults to HM_LOG_LEVEL, then INFO)",
)
def cli(log_level: str | None) -> None:
    """Happiness Meter: customer-experience scoring for entities, services and channels."""
    if log_level is None:
        try:
            log_level = Settings().log_level
        except ValueError as e:
            raise click.ClickException(str(e)) from e

    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(log_level.upper())
        ),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
    )


@cli.command()  # type: ignore[misc]
@data_option  # type: ignore[misc]
@entity_option  # type: ignore[misc]
@config_option  # type: ignore[misc]
@output_option  # type: ignore[misc]
def score(data_path: str, entity: str | None, config_path: str | None, output: str | None) -> None:
    """Compute the entity scorecard and its alerts."""
    from happiness_meter.monitoring.alerts import AlertService
    from happiness_meter.scoring.entity import EntityScoreAggregator

    settings, dataset = _load(data_path, config_path)
    scoped = _scope(dataset, entity)

    aggregator = EntityScoreAggregator(settings.scoring, settings.report)
    scorecard = aggregator.scorecard(scoped)
    alerts = AlertService(settings.alerts).generate_alerts(scorecard)

    _emit({"scorecard": scorecard.model_dump(mode="json"), "alerts": alerts}, output)


@cli.command()  # type: ignore[misc]
@data_option  # type: ignore[misc]
@entity_option  # type: ignore[misc]
@config_option  # type: ignore[misc]
@bucket_option  # type: ignore[misc]
@output_option  # type: ignore[misc]
def trend(
    data_path: str,
    entity: str | None,
    config_path: str | None,
    buckets: tuple[Any, ...],
    output: str | None,
) -> None:
    """Score every trend bucket. A .parquet output path writes a table."""
    from happiness_meter.trends.aggregator import TrendAggregator

    settings, dataset = _load(data_path, config_path)
    scoped = _scope(dataset, entity)

    aggregator = TrendAggregator(settings.scoring, settings.trend)
    points = aggregator.entity_trend(scoped, _bucket_dates(buckets))

    if output and output.endswith(".parquet"):
        _write_parquet(aggregator.to_frame(points), output)
        return
    _emit([p.model_dump(mode="json") for p in points], output)


@cli.command()  # type: ignore[misc]
@data_option  # type: ignore[misc]
@entity_option  # type: ignore[misc]
@config_option  # type: ignore[misc]
@output_option  # type: ignore[misc]
def journeys(
    data_path: str, entity: str | None, config_path: str | None, output: str | None
) -> None:
    """Analyze journeys (DCX) and their review history."""
    from happiness_meter.scoring.journeys import JourneyAnalyzer
    from happiness_meter.trends.aggregator import TrendAggregator

    settings, dataset = _load(data_path, config_path)
    if entity is not None:
        _require_entity(dataset, entity)

    analyses = JourneyAnalyzer(settings.report).analyze(dataset, entity_id=entity)
    trends = TrendAggregator(settings.scoring, settings.trend).journey_trends(
        dataset.journey_reviews, dataset.journeys
    )
    shown = {a.id for a in analyses}

    _emit(
        {
            "journeys": [a.model_dump(mode="json") for a in analyses],
            "trends": [t.model_dump(mode="json") for t in trends if t.journey_id in shown],
        },
        output,
    )


@cli.command("asset-trend")  # type: ignore[misc]
@data_option  # type: ignore[misc]
@click.option(  # type: ignore[misc]
    "--channel", "channel_id", required=True, help="Channel id to chart"
)
@config_option  # type: ignore[misc]
@bucket_option  # type: ignore[misc]
@output_option  # type: ignore[misc]
def asset_trend(
    data_path: str,
    channel_id: str,
    config_path: str | None,
    buckets: tuple[Any, ...],
    output: str | None,
) -> None:
    """Monthly score and volume of one channel asset."""
    from happiness_meter.trends.aggregator import TrendAggregator

    settings, dataset = _load(data_path, config_path)
    aggregator = TrendAggregator(settings.scoring, settings.trend)
    try:
        result = aggregator.asset_trend(channel_id, dataset, _bucket_dates(buckets))
    except KeyError as e:
        raise click.ClickException(str(e.args[0])) from e

    if output and output.endswith(".parquet"):
        _write_parquet(aggregator.asset_to_frame(result), output)
        return
    _emit(result.model_dump(mode="json"), output)


def _load(data_path: str, config_path: str | None) -> tuple[Settings, Dataset]:
    from happiness_meter.ingestion.pipeline import IngestionPipeline

    path = Path(data_path)
    try:
        if config_path is not None:
            options = json.loads(Path(config_path).read_text(encoding="utf-8"))
            settings = Settings.from_options(options, data_dir=path.parent)
        else:
            settings = Settings(data_dir=path.parent)

        pipeline = IngestionPipeline(settings)
        if path.is_dir():
            dataset = pipeline.load_from_parquet(path)
        else:
            dataset = pipeline.load_from_json(path)
    except (FileNotFoundError, ValueError) as e:
        raise click.ClickException(str(e)) from e

    return settings, dataset


def _scope(dataset: Dataset, entity: str | None) -> Dataset:
    if entity is None:
        return dataset
    _require_entity(dataset, entity)
    return dataset.for_entity(entity)


def _require_entity(dataset: Dataset, entity: str) -> None:
    if entity not in dataset.entity_ids():
        msg = f"Entity '{entity}' not found. Available: {dataset.entity_ids()}"
        raise click.ClickException(msg)


def _bucket_dates(buckets: tuple[Any, ...]) -> list[date] | None:
    if not buckets:
        return None
    return [b.date() for b in buckets]


def _emit(payload: Any, output: str | None) -> None:
    text = json.dumps(payload, indent=2, default=str)
    if output is None:
        click.echo(text)
        return

    out_path = Path(output)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(text + "\n", encoding="utf-8")
    click.echo(f"Results saved to {out_path}")


def _write_parquet(frame: Any, output: str) -> None:
    out_path = Path(output)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    frame.write_parquet(out_path)
    click.echo(f"Results saved to {out_path} ({frame.height} rows)")


if __name__ == "__main__":
    cli()
